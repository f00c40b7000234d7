"""
동기화 엔티티 모델

- 외부 레코드 (pydantic): 외부 API JSON 응답 형태. 알 수 없는 키는 무시, `id` 필수
- 로컬 엔티티 (dataclass): 저장소 문서 형태. to_document() / from_document() 로 변환
- 파생 필드 계산 함수: slug, excerpt, 단어 수, 읽기 시간
"""

import math
import re
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# 분당 읽기 단어 수
WORDS_PER_MINUTE = 200
EXCERPT_LENGTH = 200


class SyncSource(str, Enum):
    """엔티티 출처"""

    API = "api"
    MANUAL = "manual"
    IMPORT = "import"
    MIGRATION = "migration"


# ============================================================================
# 외부 레코드
# ============================================================================


class ExternalRecord(BaseModel):
    """외부 API 레코드 공통 기반 (source 가 부여한 정수 id)"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    id: int


class ExternalGeo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    lat: str | None = None
    lng: str | None = None


class ExternalAddress(BaseModel):
    model_config = ConfigDict(extra="ignore")

    street: str | None = None
    suite: str | None = None
    city: str | None = None
    zipcode: str | None = None
    geo: ExternalGeo | None = None


class ExternalCompany(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str | None = None
    catch_phrase: str | None = Field(default=None, alias="catchPhrase")
    bs: str | None = None


class ExternalUser(ExternalRecord):
    name: str = Field(min_length=1)
    username: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str | None = None
    website: str | None = None
    address: ExternalAddress | None = None
    company: ExternalCompany | None = None


class ExternalPost(ExternalRecord):
    user_id: int = Field(alias="userId")
    title: str = Field(min_length=1)
    body: str = Field(min_length=1)


class ExternalComment(ExternalRecord):
    post_id: int = Field(alias="postId")
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    body: str = Field(min_length=1)
    parent_id: int | None = Field(default=None, alias="parentId")


# ============================================================================
# 파생 필드
# ============================================================================


def slugify(title: str) -> str:
    """소문자화, [a-z0-9 -] 외 문자 제거, 공백 연속 → '-'"""
    slug = re.sub(r"[^a-z0-9 -]", "", title.lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    return re.sub(r"-+", "-", slug)


def make_excerpt(body: str, length: int = EXCERPT_LENGTH) -> str:
    excerpt = body[:length].strip()
    if len(body) > length:
        excerpt += "..."
    return excerpt


def count_words(text: str) -> int:
    return len(text.split())


def reading_time_seconds(word_count: int) -> int:
    return math.ceil(word_count / WORDS_PER_MINUTE * 60)


# ============================================================================
# 로컬 엔티티
# ============================================================================


def _known_fields(cls: type, doc: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in doc.items() if k in names}


@dataclass
class UserStats:
    post_count: int = 0
    comment_count: int = 0
    last_activity: datetime | None = None


@dataclass
class PostStats:
    comment_count: int = 0


@dataclass
class User:
    name: str
    username: str
    email: str
    id: str | None = None
    external_id: int | None = None
    phone: str | None = None
    website: str | None = None
    address: dict[str, Any] = field(default_factory=dict)
    company: dict[str, Any] = field(default_factory=dict)
    status: str = "active"
    stats: UserStats = field(default_factory=UserStats)
    sync_source: str = SyncSource.API.value
    synced_at: datetime | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "external_id": self.external_id,
            "name": self.name,
            "username": self.username,
            "email": self.email,
            "phone": self.phone,
            "website": self.website,
            "address": dict(self.address),
            "company": dict(self.company),
            "status": self.status,
            "stats": {
                "post_count": self.stats.post_count,
                "comment_count": self.stats.comment_count,
                "last_activity": self.stats.last_activity,
            },
            "sync_source": self.sync_source,
            "synced_at": self.synced_at,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "User":
        data = _known_fields(cls, doc)
        data["stats"] = UserStats(**_known_fields(UserStats, doc.get("stats") or {}))
        return cls(**data)


@dataclass
class Post:
    user_id: str
    title: str
    body: str
    id: str | None = None
    external_id: int | None = None
    external_user_id: int | None = None
    slug: str = ""
    excerpt: str = ""
    status: str = "published"
    visibility: str = "public"
    published_at: datetime | None = None
    word_count: int = 0
    reading_time_seconds: int = 0
    version: int = 1
    stats: PostStats = field(default_factory=PostStats)
    sync_source: str = SyncSource.API.value
    synced_at: datetime | None = None

    def refresh_derived(self) -> None:
        """title/body 로부터 slug, excerpt, 단어 수, 읽기 시간 재계산"""
        self.slug = slugify(self.title)
        self.excerpt = make_excerpt(self.body)
        self.word_count = count_words(self.body)
        self.reading_time_seconds = reading_time_seconds(self.word_count)

    def to_document(self) -> dict[str, Any]:
        return {
            "external_id": self.external_id,
            "user_id": self.user_id,
            "external_user_id": self.external_user_id,
            "title": self.title,
            "body": self.body,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "status": self.status,
            "visibility": self.visibility,
            "published_at": self.published_at,
            "word_count": self.word_count,
            "reading_time_seconds": self.reading_time_seconds,
            "version": self.version,
            "stats": {"comment_count": self.stats.comment_count},
            "sync_source": self.sync_source,
            "synced_at": self.synced_at,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Post":
        data = _known_fields(cls, doc)
        data["stats"] = PostStats(**_known_fields(PostStats, doc.get("stats") or {}))
        return cls(**data)


@dataclass
class Comment:
    post_id: str
    name: str
    email: str
    body: str
    id: str | None = None
    external_id: int | None = None
    external_post_id: int | None = None
    user_id: str | None = None  # email 이 일치하는 등록 사용자
    status: str = "approved"
    visibility: str = "public"
    parent_id: str | None = None
    depth: int = 0
    word_count: int = 0
    sync_source: str = SyncSource.API.value
    synced_at: datetime | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "external_id": self.external_id,
            "post_id": self.post_id,
            "external_post_id": self.external_post_id,
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "body": self.body,
            "status": self.status,
            "visibility": self.visibility,
            "parent_id": self.parent_id,
            "depth": self.depth,
            "word_count": self.word_count,
            "sync_source": self.sync_source,
            "synced_at": self.synced_at,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Comment":
        return cls(**_known_fields(cls, doc))
