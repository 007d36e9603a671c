"""
plugins/cloudformation/output.py - 탐지 결과 출력 포맷터

탐지 결과를 stdout으로 출력할 문자열로 변환합니다.

지원 형식:
    - json: {"stacks": [...]} 형태의 compact JSON (lowerCamelCase 키)
    - tsv: 헤더 1행 + 스택당 1행. 태그/사유는 ';'로 결합,
      셀 내부의 탭/개행/CR은 \\t, \\n, \\r 두 글자로 이스케이프

Example:
    formatter = get_formatter("tsv")
    print(formatter.format(stacks))
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from core.config import settings
from core.exceptions import UnsupportedFormatError

from .types import DetectedStack, StacksOutput, format_timestamp

TSV_HEADERS: tuple[str, ...] = (
    "StackName",
    "StackID",
    "Region",
    "Description",
    "CreatedAt",
    "UpdatedAt",
    "Tags",
    "Reasons",
)

_TSV_ESCAPES = str.maketrans({"\t": "\\t", "\n": "\\n", "\r": "\\r"})


def escape_tsv(value: str) -> str:
    """셀 값의 탭/개행/CR을 리터럴 이스케이프 시퀀스로 치환"""
    return value.translate(_TSV_ESCAPES)


def format_tags(tags: Mapping[str, str]) -> str:
    """태그를 key 기준 정렬된 'k=v;k=v' 문자열로 변환"""
    return ";".join(f"{key}={tags[key]}" for key in sorted(tags))


def stack_to_row(stack: DetectedStack) -> list[str]:
    """DetectedStack을 TSV 행 값 목록으로 변환 (이스케이프 적용)"""
    values = [
        stack.stack_name,
        stack.stack_id,
        stack.region,
        stack.description,
        format_timestamp(stack.created_at, fractional=False),
        format_timestamp(stack.updated_at, fractional=False),
        format_tags(stack.stack_tags),
        ";".join(stack.reasons),
    ]
    return [escape_tsv(v) for v in values]


class Formatter(ABC):
    """출력 포맷터 인터페이스"""

    name: str = ""

    @abstractmethod
    def format(self, stacks: Iterable[DetectedStack]) -> str:
        """탐지 결과를 출력 문자열로 변환"""


class JSONFormatter(Formatter):
    """compact JSON 포맷터"""

    name = "json"

    def format(self, stacks: Iterable[DetectedStack]) -> str:
        output = StacksOutput(stacks=tuple(stacks))
        return json.dumps(output.to_dict(), ensure_ascii=False, separators=(",", ":"))


class TSVFormatter(Formatter):
    """탭 구분 포맷터 (마지막 줄바꿈 없음)"""

    name = "tsv"

    def format(self, stacks: Iterable[DetectedStack]) -> str:
        lines = ["\t".join(TSV_HEADERS)]
        lines.extend("\t".join(stack_to_row(stack)) for stack in stacks)
        return "\n".join(lines)


_FORMATTERS: dict[str, type[Formatter]] = {
    JSONFormatter.name: JSONFormatter,
    TSVFormatter.name: TSVFormatter,
}


def get_formatter(name: str) -> Formatter:
    """형식 이름으로 포맷터 생성

    Raises:
        UnsupportedFormatError: 지원하지 않는 형식
    """
    formatter_cls = _FORMATTERS.get(name)
    if formatter_cls is None:
        raise UnsupportedFormatError(name, settings.SUPPORTED_OUTPUT_FORMATS)
    return formatter_cls()
