"""
plugins/cloudformation/detector.py - Serverless 스택 탐지기

후보 스택 목록을 조회한 뒤 워커 풀로 스택별 리소스를 병렬 조회하고,
RuleEngine 판정에 매칭된 스택만 DetectedStack으로 수집합니다.

스택 단위 실패 처리:
    - 이름 없는 후보: 스킵
    - 리소스 조회 실패 / 취소: 해당 스택만 스킵 (스캔은 계속)
    - 상세 조회 실패: 상세 없이(None) 결과 생성
    - 후보 목록 조회 실패: 스캔 전체 실패 (StackListingError)

Example:
    source = CloudFormationDataSource.from_session(session, "us-east-1")
    detector = ServerlessStackDetector(source, "us-east-1", max_workers=10)

    stacks = detector.detect(CancelToken(timeout=600))
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone

from core.config import settings
from core.exceptions import ScanCancelledError, StackListingError
from core.parallel import CancelToken

from .rules import RuleEngine
from .source import StackDataSource
from .types import DetectedStack, StackCandidate

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = settings.DEFAULT_MAX_WORKERS


@dataclass
class DetectionReport:
    """한 번의 탐지 실행 결과 및 통계

    Attributes:
        stacks: 매칭된 스택 (완료 순서, 정렬되지 않음)
        total: 후보 스택 수
        skipped_unnamed: 이름이 없어 건너뛴 후보 수
        resource_errors: 리소스 조회 실패 (또는 예상치 못한 예외)로 건너뛴 스택 수
        detail_errors: 상세 조회 실패 (상세 없이 처리) 수
        duration_ms: 전체 소요 시간
    """

    stacks: list[DetectedStack] = field(default_factory=list)
    total: int = 0
    skipped_unnamed: int = 0
    resource_errors: int = 0
    detail_errors: int = 0
    duration_ms: float = 0.0

    @property
    def matched(self) -> int:
        return len(self.stacks)

    @property
    def skipped(self) -> int:
        """결과에서 제외된 후보 수 (매칭 실패 제외)"""
        return self.skipped_unnamed + self.resource_errors


# _process_stack 결과 태그: DetectionReport 카운터 필드 이름 (None이면 집계 없음)
_SKIPPED_UNNAMED = "skipped_unnamed"
_RESOURCE_ERROR = "resource_errors"
_DETAIL_ERROR = "detail_errors"


class ServerlessStackDetector:
    """Serverless Framework 스택 탐지기

    하나의 인스턴스를 여러 번 detect()해도 안전하며,
    호출 사이에 상태를 보존하지 않습니다.
    """

    def __init__(
        self,
        source: StackDataSource,
        region: str,
        rule_engine: RuleEngine | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """초기화

        Args:
            source: 스택 데이터 소스
            region: 결과에 기록할 리전
            rule_engine: 판정 엔진 (None이면 기본 규칙)
            max_workers: 워커 풀 최대 크기 (1 이상)

        Raises:
            ValueError: max_workers < 1
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        self.source = source
        self.rule_engine = rule_engine or RuleEngine()
        self.region = region
        self.max_workers = max_workers

    def detect(self, token: CancelToken | None = None) -> list[DetectedStack]:
        """매칭된 스택 목록 반환 (순서 보장 없음)

        Raises:
            StackListingError: 후보 목록 조회 실패
            ScanCancelledError: 목록 조회 전에 취소된 경우
        """
        return self.detect_with_stats(token).stacks

    def detect_with_stats(self, token: CancelToken | None = None) -> DetectionReport:
        """탐지 실행 후 통계를 포함한 DetectionReport 반환"""
        token = token or CancelToken()
        start_time = time.monotonic()

        token.raise_if_cancelled()

        try:
            candidates = self.source.list_candidates(token)
        except ScanCancelledError:
            raise
        except Exception as e:
            raise StackListingError(cause=e) from e

        report = DetectionReport(total=len(candidates))
        if not candidates:
            logger.info("[%s] 탐지 대상 스택이 없습니다", self.region)
            return report

        workers = min(self.max_workers, len(candidates))
        logger.info("[%s] 탐지 시작: 후보 %d개, workers=%d", self.region, len(candidates), workers)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self._process_stack, token, candidate): candidate for candidate in candidates}

            try:
                # 카운터 집계는 이 스레드에서만 수행
                for future in as_completed(futures):
                    candidate = futures[future]
                    try:
                        outcome, detected = future.result()
                    except Exception as e:
                        logger.error("스택 처리 중 예외 [%s]: %s", candidate.name, e)
                        outcome, detected = _RESOURCE_ERROR, None

                    if outcome is not None:
                        setattr(report, outcome, getattr(report, outcome) + 1)
                    if detected is not None:
                        report.stacks.append(detected)
            except KeyboardInterrupt:
                # 풀 종료 대기 전에 워커의 대기/재시도를 중단
                token.cancel()
                executor.shutdown(wait=False, cancel_futures=True)
                raise

        report.duration_ms = (time.monotonic() - start_time) * 1000

        logger.info(
            "[%s] 탐지 완료: 매칭 %d / 후보 %d (스킵 %d), %.0fms",
            self.region,
            report.matched,
            report.total,
            report.skipped,
            report.duration_ms,
        )
        return report

    def _process_stack(
        self,
        token: CancelToken,
        candidate: StackCandidate,
    ) -> tuple[str | None, DetectedStack | None]:
        """단일 스택 처리 (워커 스레드 내에서 호출)

        공유 상태를 변경하지 않고 결과만 반환합니다.

        Returns:
            (집계할 카운터 이름 또는 None, 매칭되면 DetectedStack 아니면 None)
        """
        name = candidate.name
        if not name:
            logger.debug("이름 없는 후보 스킵: %s", candidate.stack_id)
            return _SKIPPED_UNNAMED, None

        if token.cancelled:
            return None, None

        try:
            resources = self.source.get_resources(token, name)
        except ScanCancelledError:
            return None, None
        except Exception as e:
            logger.warning("스택 리소스 조회 실패, 스킵 [%s]: %s", name, e)
            return _RESOURCE_ERROR, None

        outcome = None
        try:
            detail = self.source.get_detail(token, name)
        except ScanCancelledError:
            return None, None
        except Exception as e:
            logger.warning("스택 상세 조회 실패, 상세 없이 진행 [%s]: %s", name, e)
            outcome = _DETAIL_ERROR
            detail = None

        verdict = self.rule_engine.evaluate(resources, detail)
        if not verdict.is_match:
            return outcome, None

        return outcome, DetectedStack.build(
            candidate,
            detail,
            verdict.reasons,
            self.region,
            now=datetime.now(timezone.utc),
        )
