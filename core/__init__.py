# core/__init__.py
"""
core - find-serverless-stacks 공통 인프라

탐지 플러그인과 CLI가 공유하는 인프라를 포함하는 최상위 패키지입니다.

아키텍처:
    core/
    ├── auth/           # boto3 Session 생성 (프로파일, AssumeRole)
    ├── parallel/       # 취소 토큰, rate limiter, 재시도, 에러 분류
    ├── config.py       # 중앙 설정 관리
    └── exceptions.py   # 통합 예외 계층

Usage:
    # 설정 사용
    from core.config import settings, get_default_region
    region = get_default_region() or settings.DEFAULT_REGION

    # 예외 처리
    from core.exceptions import is_access_denied
    try:
        cfn.list_stacks()
    except Exception as e:
        if is_access_denied(e):
            print("권한이 없습니다")
"""

from core import auth, config, exceptions, parallel

__all__: list[str] = [
    # 서브패키지
    "auth",
    "parallel",
    # 모듈
    "config",
    "exceptions",
]
