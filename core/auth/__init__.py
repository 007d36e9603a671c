# core/auth/__init__.py
"""
AWS 인증 모듈 (core/auth)

단일 계정/단일 리전 스캔을 위한 boto3 Session을 생성합니다.

지원하는 인증 방식:
- 기본 자격 증명 체인 (환경변수, 인스턴스 프로파일 등)
- 명명된 프로파일 (~/.aws/config, ~/.aws/credentials)
- STS AssumeRole (External ID 선택)

사용 예시:
    from core.auth import AuthConfig, create_session

    session = create_session(AuthConfig(profile="dev", region="us-east-1"))
"""

from .session import AuthConfig, create_session, validate_credentials

__all__ = [
    "AuthConfig",
    "create_session",
    "validate_credentials",
]
