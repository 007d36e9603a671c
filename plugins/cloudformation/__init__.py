"""
plugins/cloudformation - Serverless Framework 스택 탐지

CloudFormation 스택 중 Serverless Framework로 배포된 스택을 찾습니다.

## 사용 케이스
- 계정/리전 내 Serverless Framework 배포 현황 파악
- 레거시 Serverless 스택 정리 전 목록 확보
- 다른 도구(jq, awk 등)와 파이프라인 연계 (JSON / TSV 출력)
"""

from .detector import DetectionReport, ServerlessStackDetector
from .output import Formatter, JSONFormatter, TSVFormatter, get_formatter
from .rules import DetectionRule, RuleEngine, ServerlessDeploymentBucketRule
from .source import ACTIVE_STACK_STATUSES, CloudFormationDataSource, StackDataSource
from .types import (
    DetectedStack,
    DetectionVerdict,
    ResourceRecord,
    StackCandidate,
    StackDetail,
    StacksOutput,
)

__all__ = [
    "ACTIVE_STACK_STATUSES",
    "CloudFormationDataSource",
    "DetectedStack",
    "DetectionReport",
    "DetectionRule",
    "DetectionVerdict",
    "Formatter",
    "JSONFormatter",
    "ResourceRecord",
    "RuleEngine",
    "ServerlessDeploymentBucketRule",
    "ServerlessStackDetector",
    "StackCandidate",
    "StackDataSource",
    "StackDetail",
    "StacksOutput",
    "TSVFormatter",
    "get_formatter",
    "run_detect",
]


def run_detect(
    session,
    region: str,
    max_workers: int | None = None,
    token=None,
) -> DetectionReport:
    """boto3 Session으로 데이터 소스와 탐지기를 구성하여 탐지 실행

    Args:
        session: boto3.Session
        region: 대상 리전
        max_workers: 워커 풀 크기 (None이면 FSS_MAX_WORKERS 또는 기본값)
        token: CancelToken (선택)

    Returns:
        DetectionReport

    Raises:
        ValueError: max_workers < 1
        StackListingError: 후보 목록 조회 실패
    """
    from core.config import get_default_max_workers

    workers = get_default_max_workers() if max_workers is None else max_workers
    if workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {workers}")

    source = CloudFormationDataSource.from_session(session, region, max_workers=workers)
    detector = ServerlessStackDetector(source, region, max_workers=workers)
    return detector.detect_with_stats(token)
