"""
plugins/cloudformation/source.py - 스택 데이터 소스

탐지기가 사용하는 데이터 소스 인터페이스(StackDataSource)와
boto3 CloudFormation 구현(CloudFormationDataSource)을 정의합니다.

CloudFormationDataSource는 모든 API 호출에 다음을 적용합니다:
    1. 토큰 버킷 rate limiting (기본 초당 5회, 버스트 10)
    2. 재시도 가능 에러(is_retryable)에 대한 지수 백오프 재시도 (기본 3회: 1s, 2s, 4s)
    3. botocore 예외를 CloudFormationAPIError로 변환 (ErrorCategory 포함)

하나의 인스턴스를 여러 워커 스레드가 공유합니다.
boto3 client는 스레드 세이프하므로 별도 잠금이 필요 없습니다.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from core.config import settings
from core.exceptions import CloudFormationAPIError, ScanCancelledError
from core.parallel import (
    CancelToken,
    ErrorCategory,
    RetryConfig,
    TokenBucketRateLimiter,
    categorize_error,
    get_client,
    get_error_code,
    get_rate_limiter,
    is_retryable,
)

from .types import ResourceRecord, StackCandidate, StackDetail

if TYPE_CHECKING:
    import boto3

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 탐지 대상 스택 상태
ACTIVE_STACK_STATUSES: tuple[str, ...] = (
    "CREATE_COMPLETE",
    "UPDATE_COMPLETE",
    "UPDATE_ROLLBACK_COMPLETE",
)

class StackDataSource(ABC):
    """탐지기가 요구하는 스택 데이터 조회 인터페이스

    구현체는 여러 워커 스레드에서 동시에 호출되어도 안전해야 합니다.
    """

    @abstractmethod
    def list_candidates(self, token: CancelToken) -> list[StackCandidate]:
        """활성 상태의 스택 목록 조회 (실패 시 예외)"""

    @abstractmethod
    def get_resources(self, token: CancelToken, stack_name: str) -> list[ResourceRecord]:
        """스택 리소스 목록 조회"""

    @abstractmethod
    def get_detail(self, token: CancelToken, stack_name: str) -> StackDetail | None:
        """스택 상세 정보 조회 (스택이 없으면 None)"""


def default_cfn_retry_config() -> RetryConfig:
    """CloudFormation 재시도 설정: 1s, 2s, 4s (지터 없음)"""
    return RetryConfig(max_retries=settings.API_RETRY_COUNT, base_delay=1.0, exponential_base=2.0, jitter=False)


class CloudFormationDataSource(StackDataSource):
    """boto3 CloudFormation client 기반 데이터 소스

    Example:
        source = CloudFormationDataSource.from_session(session, "us-east-1")
        candidates = source.list_candidates(CancelToken())
    """

    def __init__(
        self,
        client: Any,
        region: str,
        rate_limiter: TokenBucketRateLimiter | None = None,
        retry_config: RetryConfig | None = None,
    ):
        """초기화

        Args:
            client: boto3 cloudformation client
            region: 대상 리전 (에러 메시지용)
            rate_limiter: rate limiter (None이면 get_rate_limiter("cloudformation") 공유 인스턴스)
            retry_config: 재시도 설정 (None이면 default_cfn_retry_config())
        """
        self.client = client
        self.region = region
        self.rate_limiter = rate_limiter or get_rate_limiter("cloudformation")
        self.retry_config = retry_config or default_cfn_retry_config()

    @classmethod
    def from_session(
        cls,
        session: boto3.Session,
        region: str,
        max_workers: int = settings.DEFAULT_MAX_WORKERS,
        **kwargs: Any,
    ) -> CloudFormationDataSource:
        """boto3 Session에서 생성 (연결 풀은 워커 수 이상으로 설정)"""
        client = get_client(
            session,
            "cloudformation",
            region_name=region,
            read_timeout=settings.API_TIMEOUT,
            max_pool_connections=max(max_workers, 10),
        )
        return cls(client, region, **kwargs)

    # -------------------------------------------------------------------------
    # StackDataSource
    # -------------------------------------------------------------------------

    def list_candidates(self, token: CancelToken) -> list[StackCandidate]:
        """CREATE_COMPLETE / UPDATE_COMPLETE / UPDATE_ROLLBACK_COMPLETE 스택 전체 조회

        페이지마다 rate limit과 재시도가 적용됩니다.
        """
        candidates: list[StackCandidate] = []
        next_token: str | None = None

        while True:
            params: dict[str, Any] = {"StackStatusFilter": list(ACTIVE_STACK_STATUSES)}
            if next_token:
                params["NextToken"] = next_token

            page = self._call("list_stacks", token, lambda p=params: self.client.list_stacks(**p))
            candidates.extend(StackCandidate.from_summary(s) for s in page.get("StackSummaries", []))

            next_token = page.get("NextToken")
            if not next_token:
                break

        logger.info("[%s] 활성 스택 %d개 조회", self.region, len(candidates))
        return candidates

    def get_resources(self, token: CancelToken, stack_name: str) -> list[ResourceRecord]:
        response = self._call(
            "describe_stack_resources",
            token,
            lambda: self.client.describe_stack_resources(StackName=stack_name),
        )
        return [ResourceRecord.from_api(r) for r in response.get("StackResources", [])]

    def get_detail(self, token: CancelToken, stack_name: str) -> StackDetail | None:
        response = self._call(
            "describe_stacks",
            token,
            lambda: self.client.describe_stacks(StackName=stack_name),
        )
        stacks = response.get("Stacks") or []
        if not stacks:
            return None
        return StackDetail.from_api(stacks[0])

    # -------------------------------------------------------------------------
    # 내부 호출 래퍼
    # -------------------------------------------------------------------------

    def _call(self, operation: str, token: CancelToken, func: Callable[[], T]) -> T:
        """rate limit + 재시도 + 에러 변환을 적용하여 API 호출

        Raises:
            CloudFormationAPIError: 재시도 불가 에러 또는 재시도 소진
            ScanCancelledError: 취소 토큰이 발동된 경우
        """
        retries = self.retry_config.max_retries

        for attempt in range(retries + 1):
            token.raise_if_cancelled()

            if not self.rate_limiter.acquire(cancel_token=token):
                token.raise_if_cancelled()
                error = CloudFormationAPIError(
                    operation,
                    ErrorCategory.THROTTLING,
                    error_code="RateLimitTimeout",
                    error_message="Rate limiter timeout",
                )
                retryable = True
            else:
                try:
                    return func()
                except (ClientError, BotoCoreError) as e:
                    error = self._translate(operation, e)
                    retryable = is_retryable(e)

            if not retryable or attempt >= retries:
                raise error

            delay = self.retry_config.get_delay(attempt)
            logger.debug(
                "[%s] %s 시도 %d 실패 (%s), %.2f초 후 재시도...",
                self.region,
                operation,
                attempt + 1,
                error.error_code,
                delay,
            )
            if token.wait(delay):
                raise ScanCancelledError()

        # range()가 최소 1회 실행되므로 도달하지 않음
        raise CloudFormationAPIError(operation, ErrorCategory.UNKNOWN, error_message="최대 재시도 횟수 초과")

    def _translate(self, operation: str, error: Exception) -> CloudFormationAPIError:
        """botocore 예외를 CloudFormationAPIError로 변환"""
        category = categorize_error(error)
        error_code = get_error_code(error)

        response = getattr(error, "response", None)
        if isinstance(response, dict):
            error_message = response.get("Error", {}).get("Message") or str(error)
        else:
            error_message = str(error)

        if category == ErrorCategory.INVALID_REGION:
            error_message = f"invalid AWS region: {self.region}"

        return CloudFormationAPIError(
            operation,
            category,
            error_code=error_code,
            error_message=error_message,
            cause=error,
        )
