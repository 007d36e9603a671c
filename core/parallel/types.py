"""
core/parallel/types.py - 병렬 처리 공통 타입

AWS API 에러 분류에 사용되는 열거형을 정의합니다.
"""

from enum import Enum


class ErrorCategory(Enum):
    """AWS API 에러 카테고리

    에러 변환과 사용자 메시지 분기에 사용됩니다. 재시도 여부는 is_retryable()이 판단합니다.
    """

    THROTTLING = "throttling"
    ACCESS_DENIED = "access_denied"  # 권한 부족
    NOT_FOUND = "not_found"  # 리소스 없음
    NETWORK = "network"
    TIMEOUT = "timeout"
    EXPIRED_TOKEN = "expired_token"
    INVALID_REGION = "invalid_region"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"
