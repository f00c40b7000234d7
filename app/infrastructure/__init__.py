"""
Infrastructure Layer

데이터베이스 등 인프라 관련 모듈을 포함합니다.

Subpackages:
- storage.entity: 엔티티 저장소 구현 (MongoDB, 인메모리) 및 팩토리
"""
