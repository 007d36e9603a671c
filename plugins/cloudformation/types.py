"""
plugins/cloudformation/types.py - Serverless 스택 탐지 데이터 모델

CloudFormation API 응답을 감싸는 불변 값 객체와
탐지 결과(DetectedStack), 출력 봉투(StacksOutput)를 정의합니다.

모든 입력 필드는 Optional입니다. API 응답에 값이 없으면 None이며,
빈 문자열과 구분됩니다.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any


def _empty_tags() -> Mapping[str, str]:
    return MappingProxyType({})


def to_utc(value: datetime) -> datetime:
    """timezone 없는 datetime은 UTC로 간주하여 UTC로 변환"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime | None, fractional: bool = True) -> str:
    """RFC 3339 (UTC, 'Z' 접미사) 문자열로 변환. None이면 빈 문자열

    fractional이면 초 미만 값을 끝자리 0을 제거하여 표시하고 (2024-01-01T00:00:00.123Z),
    아니면 초 단위로 자릅니다 (2024-01-01T00:00:00Z).
    """
    if value is None:
        return ""
    utc = to_utc(value)
    seconds = utc.strftime("%Y-%m-%dT%H:%M:%S")
    if fractional and utc.microsecond:
        return f"{seconds}.{utc.microsecond:06d}".rstrip("0") + "Z"
    return f"{seconds}Z"


# =============================================================================
# 입력 모델 (CloudFormation API)
# =============================================================================


@dataclass(frozen=True)
class StackCandidate:
    """ListStacks 결과의 스택 요약

    Attributes:
        name: 스택 이름 (잘못된 항목이면 None 또는 빈 문자열)
        stack_id: 스택 ARN
        status: 스택 상태 (CREATE_COMPLETE 등)
        creation_time: 생성 시각
        last_updated_time: 마지막 업데이트 시각
    """

    name: str | None
    stack_id: str | None = None
    status: str | None = None
    creation_time: datetime | None = None
    last_updated_time: datetime | None = None

    @classmethod
    def from_summary(cls, summary: dict[str, Any]) -> StackCandidate:
        """list_stacks의 StackSummaries 항목에서 생성"""
        return cls(
            name=summary.get("StackName"),
            stack_id=summary.get("StackId"),
            status=summary.get("StackStatus"),
            creation_time=summary.get("CreationTime"),
            last_updated_time=summary.get("LastUpdatedTime"),
        )


@dataclass(frozen=True)
class ResourceRecord:
    """스택에 속한 단일 리소스"""

    logical_id: str | None
    resource_type: str | None
    physical_id: str | None = None
    status: str | None = None

    @classmethod
    def from_api(cls, resource: dict[str, Any]) -> ResourceRecord:
        """describe_stack_resources의 StackResources 항목에서 생성"""
        return cls(
            logical_id=resource.get("LogicalResourceId"),
            resource_type=resource.get("ResourceType"),
            physical_id=resource.get("PhysicalResourceId"),
            status=resource.get("ResourceStatus"),
        )


@dataclass(frozen=True)
class StackDetail:
    """DescribeStacks로 얻는 스택 상세 정보 (보강용)

    Attributes:
        description: 템플릿 Description
        creation_time: 생성 시각
        last_updated_time: 마지막 업데이트 시각
        tags: 스택 태그 (읽기 전용 매핑)
    """

    description: str | None = None
    creation_time: datetime | None = None
    last_updated_time: datetime | None = None
    tags: Mapping[str, str] = field(default_factory=_empty_tags)

    def __post_init__(self) -> None:
        if not isinstance(self.tags, MappingProxyType):
            object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    @classmethod
    def from_api(cls, stack: dict[str, Any]) -> StackDetail:
        """describe_stacks의 Stacks 항목에서 생성

        Key 또는 Value가 없는 태그는 버립니다.
        """
        tags = {
            tag["Key"]: tag["Value"]
            for tag in stack.get("Tags") or []
            if tag.get("Key") is not None and tag.get("Value") is not None
        }
        return cls(
            description=stack.get("Description"),
            creation_time=stack.get("CreationTime"),
            last_updated_time=stack.get("LastUpdatedTime"),
            tags=tags,
        )


# =============================================================================
# 탐지 결과
# =============================================================================


@dataclass(frozen=True)
class DetectionVerdict:
    """Rule engine의 스택별 판정

    reasons는 매칭된 규칙의 사유 목록이며 규칙 등록 순서를 따릅니다.
    is_match는 reasons에서 파생되므로 항상 bool(reasons)와 같습니다.
    """

    reasons: tuple[str, ...] = ()

    @property
    def is_match(self) -> bool:
        return bool(self.reasons)


@dataclass(frozen=True)
class DetectedStack:
    """Serverless Framework로 배포된 것으로 판정된 스택

    생성 후 변경되지 않습니다. 타임스탬프는 build()에서 보정되므로
    항상 값이 존재합니다.
    """

    stack_name: str
    stack_id: str
    region: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    stack_tags: Mapping[str, str] = field(default_factory=_empty_tags)
    reasons: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.stack_tags, MappingProxyType):
            object.__setattr__(self, "stack_tags", MappingProxyType(dict(self.stack_tags)))
        object.__setattr__(self, "reasons", tuple(self.reasons))

    @classmethod
    def build(
        cls,
        candidate: StackCandidate,
        detail: StackDetail | None,
        reasons: tuple[str, ...] | list[str],
        region: str,
        now: datetime | None = None,
    ) -> DetectedStack:
        """후보 + 상세 정보로 탐지 결과 생성

        상세 정보가 있으면 그 타임스탬프/설명/태그를, 없으면 요약의 타임스탬프를 사용합니다.
        생성 시각이 없으면 현재 UTC 시각, 업데이트 시각이 없으면 생성 시각으로 대체합니다.

        Args:
            candidate: ListStacks 요약
            detail: DescribeStacks 상세 (조회 실패 시 None)
            reasons: 매칭 사유
            region: 스캔 대상 리전 (후보 데이터가 아닌 탐지기 설정값)
            now: 현재 시각 주입 (테스트용)
        """
        if detail is not None:
            created_at = detail.creation_time
            updated_at = detail.last_updated_time
            description = detail.description or ""
            tags: Mapping[str, str] = detail.tags
        else:
            created_at = candidate.creation_time
            updated_at = candidate.last_updated_time
            description = ""
            tags = {}

        if created_at is None:
            created_at = now or datetime.now(timezone.utc)
        if updated_at is None:
            updated_at = created_at

        return cls(
            stack_name=candidate.name or "",
            stack_id=candidate.stack_id or "",
            region=region,
            created_at=created_at,
            updated_at=updated_at,
            description=description,
            stack_tags=tags,
            reasons=tuple(reasons),
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON 직렬화용 딕셔너리 (lowerCamelCase 키)"""
        return {
            "stackName": self.stack_name,
            "stackId": self.stack_id,
            "region": self.region,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "description": self.description,
            "stackTags": dict(self.stack_tags),
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class StacksOutput:
    """한 번의 스캔 출력 봉투"""

    stacks: tuple[DetectedStack, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"stacks": [stack.to_dict() for stack in self.stacks]}
