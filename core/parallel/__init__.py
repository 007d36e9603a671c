"""
core/parallel - 병렬 처리 지원 모듈

CloudFormation 스택을 워커 풀로 병렬 조회할 때 필요한
취소 토큰, Rate limiting, 재시도, 에러 분류 유틸리티를 제공합니다.

주요 구성 요소:
- CancelToken: 스캔 취소/데드라인 신호
- TokenBucketRateLimiter: API 쓰로틀링 방지
- RetryConfig: 지수 백오프 재시도 설정
- get_client: botocore Config가 적용된 boto3 client

Example:
    from core.parallel import CancelToken, get_client, get_rate_limiter

    token = CancelToken(timeout=600)
    limiter = get_rate_limiter("cloudformation")
    cfn = get_client(session, "cloudformation", region_name="us-east-1")

    if limiter.acquire(cancel_token=token):
        cfn.list_stacks()
"""

from .cancel import CancelToken
from .client import get_client
from .decorators import RetryConfig, categorize_error, get_error_code, is_retryable
from .rate_limiter import (
    RateLimiterConfig,
    TokenBucketRateLimiter,
    get_rate_limiter,
    reset_rate_limiters,
)
from .types import ErrorCategory

__all__: list[str] = [
    # Cancellation
    "CancelToken",
    # Client
    "get_client",
    # Retry / 에러 분류
    "RetryConfig",
    "categorize_error",
    "get_error_code",
    "is_retryable",
    # Rate Limiter
    "TokenBucketRateLimiter",
    "RateLimiterConfig",
    "get_rate_limiter",
    "reset_rate_limiters",
    # Types
    "ErrorCategory",
]
