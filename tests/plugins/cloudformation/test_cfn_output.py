"""
tests/plugins/cloudformation/test_cfn_output.py - plugins/cloudformation/output.py 테스트
"""

import json
from datetime import datetime, timezone

import pytest

from core.exceptions import UnsupportedFormatError
from plugins.cloudformation.output import (
    TSV_HEADERS,
    JSONFormatter,
    TSVFormatter,
    escape_tsv,
    format_tags,
    get_formatter,
)
from plugins.cloudformation.types import DetectedStack

REASON = "Contains resource with logical ID 'ServerlessDeploymentBucket'"


@pytest.fixture
def stack():
    return DetectedStack(
        stack_name="svc-dev",
        stack_id="arn:aws:cloudformation:us-east-1:123456789012:stack/svc-dev/1",
        region="us-east-1",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2024, 2, 1, 10, 0, 0, tzinfo=timezone.utc),
        description="line1\nline2\tend",
        stack_tags={"b": "2", "a": "1"},
        reasons=(REASON,),
    )


class TestJSONFormatter:
    """JSONFormatter 테스트"""

    def test_empty(self):
        """결과가 없어도 stacks 키는 존재"""
        assert JSONFormatter().format([]) == '{"stacks":[]}'

    def test_compact_camel_case(self, stack):
        output = JSONFormatter().format([stack])

        assert "\n" not in output
        assert ": " not in output
        data = json.loads(output)
        assert data["stacks"][0]["stackName"] == "svc-dev"
        assert data["stacks"][0]["createdAt"] == "2024-01-01T00:00:00Z"
        assert data["stacks"][0]["updatedAt"] == "2024-02-01T10:00:00Z"
        assert data["stacks"][0]["stackTags"] == {"a": "1", "b": "2"}
        assert data["stacks"][0]["reasons"] == [REASON]

    def test_non_ascii_preserved(self, stack):
        korean = DetectedStack(
            stack_name="svc",
            stack_id="id",
            region="ap-northeast-2",
            created_at=stack.created_at,
            updated_at=stack.updated_at,
            description="서버리스 스택",
        )

        assert "서버리스 스택" in JSONFormatter().format([korean])


class TestTSVFormatter:
    """TSVFormatter 테스트"""

    def test_header_only(self):
        """결과가 없으면 헤더 한 줄"""
        assert TSVFormatter().format([]) == "\t".join(TSV_HEADERS)
        assert TSV_HEADERS == (
            "StackName",
            "StackID",
            "Region",
            "Description",
            "CreatedAt",
            "UpdatedAt",
            "Tags",
            "Reasons",
        )

    def test_row(self, stack):
        output = TSVFormatter().format([stack])

        lines = output.split("\n")
        assert len(lines) == 2
        assert not output.endswith("\n")

        cells = lines[1].split("\t")
        assert cells == [
            "svc-dev",
            "arn:aws:cloudformation:us-east-1:123456789012:stack/svc-dev/1",
            "us-east-1",
            "line1\\nline2\\tend",
            "2024-01-01T00:00:00Z",
            "2024-02-01T10:00:00Z",
            "a=1;b=2",
            REASON,
        ]

    def test_millisecond_timestamps(self, stack):
        """CloudFormation 밀리초 타임스탬프: TSV는 초 단위, JSON은 밀리초 유지"""
        precise = DetectedStack(
            stack_name=stack.stack_name,
            stack_id=stack.stack_id,
            region=stack.region,
            created_at=datetime(2024, 1, 1, 0, 0, 0, 123000, tzinfo=timezone.utc),
            updated_at=datetime(2024, 2, 1, 10, 0, 0, 450000, tzinfo=timezone.utc),
            reasons=(REASON,),
        )

        cells = TSVFormatter().format([precise]).split("\n")[1].split("\t")
        data = json.loads(JSONFormatter().format([precise]))

        assert cells[4:6] == ["2024-01-01T00:00:00Z", "2024-02-01T10:00:00Z"]
        assert data["stacks"][0]["createdAt"] == "2024-01-01T00:00:00.123Z"
        assert data["stacks"][0]["updatedAt"] == "2024-02-01T10:00:00.45Z"

    def test_multiple_reasons_joined(self, stack):
        multi = DetectedStack(
            stack_name=stack.stack_name,
            stack_id=stack.stack_id,
            region=stack.region,
            created_at=stack.created_at,
            updated_at=stack.updated_at,
            reasons=("first", "second"),
        )

        cells = TSVFormatter().format([multi]).split("\n")[1].split("\t")

        assert cells[6] == ""
        assert cells[7] == "first;second"


class TestHelpers:
    """이스케이프/태그 헬퍼 테스트"""

    def test_escape_tsv(self):
        assert escape_tsv("a\tb\nc\rd") == "a\\tb\\nc\\rd"

    def test_format_tags_sorted(self):
        assert format_tags({"z": "26", "a": "1", "m": "13"}) == "a=1;m=13;z=26"

    def test_format_tags_empty(self):
        assert format_tags({}) == ""


class TestGetFormatter:
    """get_formatter 테스트"""

    def test_known_formats(self):
        assert isinstance(get_formatter("json"), JSONFormatter)
        assert isinstance(get_formatter("tsv"), TSVFormatter)

    def test_unknown_format(self):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            get_formatter("yaml")

        assert exc_info.value.format_name == "yaml"
