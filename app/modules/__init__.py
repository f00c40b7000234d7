"""
Modules package initialization

이 패키지는 서비스의 도메인 모듈을 포함합니다:
- sync: 외부 API → 로컬 저장소 동기화 엔진
"""
