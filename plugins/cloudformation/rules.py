"""
plugins/cloudformation/rules.py - Serverless 스택 판정 규칙

스택의 리소스/상세 정보를 받아 (매칭 여부, 사유)를 반환하는 규칙과,
등록된 규칙 전체를 한 번에 평가하는 RuleEngine을 제공합니다.

규칙 작성 규약:
    - check()는 입력을 변경하지 않고 상태를 저장하지 않는 순수 함수여야 합니다.
      (하나의 RuleEngine을 모든 워커 스레드가 공유합니다)
    - 필드가 누락된 입력에도 예외 대신 (False, "")를 반환합니다.

Example:
    class ServerlessSSMParameterRule(DetectionRule):
        @property
        def name(self) -> str:
            return "ServerlessSSMParameter"

        def check(self, resources, detail):
            ...

    engine = RuleEngine()
    engine.register(ServerlessSSMParameterRule())
    verdict = engine.evaluate(resources, detail)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from .types import DetectionVerdict, ResourceRecord, StackDetail

# Serverless Framework v3가 생성하는 배포 버킷
SERVERLESS_DEPLOYMENT_BUCKET_LOGICAL_ID = "ServerlessDeploymentBucket"
S3_BUCKET_RESOURCE_TYPE = "AWS::S3::Bucket"


class DetectionRule(ABC):
    """스택 판정 규칙 인터페이스"""

    @property
    @abstractmethod
    def name(self) -> str:
        """규칙 이름 (중복 허용)"""

    @abstractmethod
    def check(
        self,
        resources: Sequence[ResourceRecord],
        detail: StackDetail | None,
    ) -> tuple[bool, str]:
        """스택 데이터에 규칙 적용

        Returns:
            (매칭 여부, 사유). 매칭되지 않으면 사유는 빈 문자열
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


def has_serverless_deployment_bucket(resources: Iterable[ResourceRecord]) -> bool:
    """ServerlessDeploymentBucket(AWS::S3::Bucket) 리소스 포함 여부

    logical ID와 리소스 타입이 모두 정확히 일치해야 합니다 (대소문자 구분).
    """
    return any(
        resource.logical_id == SERVERLESS_DEPLOYMENT_BUCKET_LOGICAL_ID
        and resource.resource_type == S3_BUCKET_RESOURCE_TYPE
        for resource in resources
    )


class ServerlessDeploymentBucketRule(DetectionRule):
    """ServerlessDeploymentBucket 리소스 존재 여부로 판정"""

    REASON = f"Contains resource with logical ID '{SERVERLESS_DEPLOYMENT_BUCKET_LOGICAL_ID}'"

    @property
    def name(self) -> str:
        return SERVERLESS_DEPLOYMENT_BUCKET_LOGICAL_ID

    def check(
        self,
        resources: Sequence[ResourceRecord],
        detail: StackDetail | None,
    ) -> tuple[bool, str]:
        if has_serverless_deployment_bucket(resources):
            return True, self.REASON
        return False, ""


def default_rules() -> list[DetectionRule]:
    """기본 규칙 목록"""
    return [ServerlessDeploymentBucketRule()]


class RuleEngine:
    """등록 순서대로 모든 규칙을 평가하는 엔진

    규칙은 스캔 시작 전에 등록합니다. 스캔 중에는 읽기 전용으로 공유됩니다.
    """

    def __init__(self, rules: Iterable[DetectionRule] | None = None):
        """초기화

        Args:
            rules: 초기 규칙 목록 (None이면 default_rules())
        """
        self._rules: list[DetectionRule] = list(rules) if rules is not None else default_rules()

    @property
    def rules(self) -> tuple[DetectionRule, ...]:
        """등록된 규칙 스냅샷"""
        return tuple(self._rules)

    def register(self, rule: DetectionRule) -> None:
        """규칙 추가 (이름 중복 검사 없음)"""
        self._rules.append(rule)

    def evaluate(
        self,
        resources: Sequence[ResourceRecord],
        detail: StackDetail | None = None,
    ) -> DetectionVerdict:
        """모든 규칙을 평가하여 매칭된 사유를 모두 수집

        Args:
            resources: 스택 리소스 목록
            detail: 스택 상세 정보 (없으면 None)

        Returns:
            DetectionVerdict (사유가 하나 이상이면 매칭)
        """
        reasons = []
        for rule in self._rules:
            matched, reason = rule.check(resources, detail)
            if matched:
                reasons.append(reason)
        return DetectionVerdict(reasons=tuple(reasons))
