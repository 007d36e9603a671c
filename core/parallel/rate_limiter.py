"""
core/parallel/rate_limiter.py - 토큰 버킷 Rate Limiter

AWS API 쓰로틀링을 방지하기 위한 스레드 세이프 토큰 버킷입니다.
여러 워커 스레드가 하나의 limiter를 공유합니다.

Example:
    limiter = get_rate_limiter("cloudformation")

    if limiter.acquire(cancel_token=token):
        cfn.describe_stacks(StackName=name)
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.config import settings

if TYPE_CHECKING:
    from .cancel import CancelToken

logger = logging.getLogger(__name__)


@dataclass
class RateLimiterConfig:
    """Rate limiter 설정

    Attributes:
        requests_per_second: 초당 토큰 리필 속도
        burst_size: 버킷 최대 크기 (순간 허용량)
        wait_timeout: acquire() 최대 대기 시간 (초)
    """

    requests_per_second: float = 10.0
    burst_size: int = 20
    wait_timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be > 0, got {self.requests_per_second}")
        if self.burst_size < 1:
            raise ValueError(f"burst_size must be >= 1, got {self.burst_size}")


# 서비스별 Rate limit 설정
# CloudFormation Describe*/List* 기본 한도는 초당 약 10회 → 보수적으로 5회 (settings.API_*)
SERVICE_RATE_LIMITS: dict[str, RateLimiterConfig] = {
    "default": RateLimiterConfig(requests_per_second=10, burst_size=20),
    "cloudformation": RateLimiterConfig(
        requests_per_second=settings.API_REQUESTS_PER_SECOND,
        burst_size=settings.API_BURST_SIZE,
    ),
}


class TokenBucketRateLimiter:
    """토큰 버킷 Rate Limiter

    burst_size 만큼의 토큰으로 시작하여 requests_per_second 속도로 리필됩니다.
    """

    def __init__(self, config: RateLimiterConfig | None = None):
        self.config = config or RateLimiterConfig()
        self._tokens = float(self.config.burst_size)
        self._last_refill = time.monotonic()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        """경과 시간만큼 토큰 리필 (lock 보유 상태에서 호출)"""
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(
            float(self.config.burst_size),
            self._tokens + elapsed * self.config.requests_per_second,
        )
        self._last_refill = now

    @property
    def available_tokens(self) -> float:
        """현재 사용 가능한 토큰 수"""
        with self._lock:
            self._refill()
            return self._tokens

    def try_acquire(self, tokens: int = 1) -> bool:
        """대기 없이 토큰 획득 시도

        Returns:
            획득 성공 시 True
        """
        with self._lock:
            self._refill()
            if self._tokens >= tokens:
                self._tokens -= tokens
                return True
            return False

    def acquire(self, tokens: int = 1, cancel_token: CancelToken | None = None) -> bool:
        """토큰을 획득할 때까지 대기

        Args:
            tokens: 필요한 토큰 수
            cancel_token: 취소 토큰 (취소되면 즉시 False 반환)

        Returns:
            획득 성공 시 True, 타임아웃/취소 시 False
        """
        deadline = time.monotonic() + self.config.wait_timeout

        while True:
            with self._lock:
                self._refill()
                if self._tokens >= tokens:
                    self._tokens -= tokens
                    return True
                shortfall = tokens - self._tokens

            now = time.monotonic()
            if now >= deadline:
                logger.debug("Rate limiter 대기 타임아웃 (%.1f초)", self.config.wait_timeout)
                return False

            wait = min(shortfall / self.config.requests_per_second, deadline - now)
            if cancel_token is not None:
                if cancel_token.wait(wait):
                    return False
            else:
                time.sleep(wait)


_limiters: dict[str, TokenBucketRateLimiter] = {}
_limiters_lock = threading.Lock()


def get_rate_limiter(service: str) -> TokenBucketRateLimiter:
    """서비스별 공유 Rate limiter 반환 (스레드 세이프 싱글톤)

    Args:
        service: AWS 서비스 이름. 설정이 없으면 default 사용
    """
    with _limiters_lock:
        limiter = _limiters.get(service)
        if limiter is None:
            config = SERVICE_RATE_LIMITS.get(service, SERVICE_RATE_LIMITS["default"])
            limiter = TokenBucketRateLimiter(
                RateLimiterConfig(
                    requests_per_second=config.requests_per_second,
                    burst_size=config.burst_size,
                    wait_timeout=config.wait_timeout,
                )
            )
            _limiters[service] = limiter
        return limiter


def reset_rate_limiters() -> None:
    """공유 Rate limiter 캐시 초기화 (테스트용)"""
    with _limiters_lock:
        _limiters.clear()
