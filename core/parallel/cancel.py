"""
core/parallel/cancel.py - 스캔 취소/데드라인 신호

워커 스레드와 AWS API 호출 경로 전체에 전달되는 취소 토큰입니다.
Rate limiter 대기와 재시도 백오프는 이 토큰으로 중단할 수 있습니다.

Example:
    token = CancelToken(timeout=300)

    try:
        stacks = detector.detect(token)
    except KeyboardInterrupt:
        token.cancel()
"""

from __future__ import annotations

import threading
import time

from core.exceptions import ScanCancelledError


class CancelToken:
    """스레드 세이프 취소 토큰

    Attributes:
        deadline: 데드라인 (time.monotonic 기준, None이면 무제한)
    """

    def __init__(self, timeout: float | None = None):
        """초기화

        Args:
            timeout: 데드라인까지 남은 시간 (초). None이면 데드라인 없음
        """
        self._event = threading.Event()
        self.deadline: float | None = None
        if timeout is not None:
            self.deadline = time.monotonic() + timeout

    def cancel(self) -> None:
        """취소 신호 발생 (여러 번 호출해도 안전)"""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """취소되었거나 데드라인을 넘겼으면 True"""
        if self._event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> float | None:
        """데드라인까지 남은 시간 (초). 데드라인이 없으면 None"""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def wait(self, seconds: float) -> bool:
        """최대 seconds 동안 대기하되 취소되면 즉시 반환

        Returns:
            대기 도중 취소되었으면 True
        """
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        if seconds > 0:
            self._event.wait(seconds)
        return self.cancelled

    def raise_if_cancelled(self) -> None:
        """취소 상태이면 ScanCancelledError 발생"""
        if self._event.is_set():
            raise ScanCancelledError()
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise ScanCancelledError("스캔 데드라인을 초과했습니다")
