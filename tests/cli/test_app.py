"""
tests/cli/test_app.py - cli/app.py 테스트

click CliRunner로 옵션 파싱과 run_headless 연동을 검증합니다.
"""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cli.app import VERSION, cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_run_headless():
    with patch("cli.headless.run_headless", return_value=0) as mock:
        yield mock


class TestCliOptions:
    """옵션 파싱 테스트"""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert VERSION in result.output

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for option in ("--profile", "--region", "--output", "--assume-role", "--external-id", "--workers"):
            assert option in result.output

    def test_defaults(self, runner, mock_run_headless):
        """기본값: default 프로파일, json, 환경변수 리전"""
        result = runner.invoke(cli, [])

        assert result.exit_code == 0
        kwargs = mock_run_headless.call_args.kwargs
        assert kwargs["region"] == "ap-northeast-2"
        assert kwargs["profile"] == "default"
        assert kwargs["output_format"] == "json"
        assert kwargs["role_arn"] is None
        assert kwargs["session_name"] == "find-serverless-stacks-session"
        assert kwargs["duration"] == 3600
        assert kwargs["max_workers"] is None
        assert kwargs["quiet"] is False

    def test_all_options(self, runner, mock_run_headless):
        result = runner.invoke(
            cli,
            [
                "-p",
                "dev",
                "-r",
                "us-west-2",
                "-o",
                "tsv",
                "--assume-role",
                "arn:aws:iam::123456789012:role/ReadOnly",
                "--session-name",
                "ci-run",
                "--duration",
                "900",
                "--external-id",
                "ext-1",
                "-w",
                "20",
                "--timeout",
                "120",
                "-q",
            ],
        )

        assert result.exit_code == 0
        kwargs = mock_run_headless.call_args.kwargs
        assert kwargs["profile"] == "dev"
        assert kwargs["region"] == "us-west-2"
        assert kwargs["output_format"] == "tsv"
        assert kwargs["role_arn"] == "arn:aws:iam::123456789012:role/ReadOnly"
        assert kwargs["session_name"] == "ci-run"
        assert kwargs["duration"] == 900
        assert kwargs["external_id"] == "ext-1"
        assert kwargs["max_workers"] == 20
        assert kwargs["timeout"] == 120.0
        assert kwargs["quiet"] is True

    def test_profile_from_env(self, runner, mock_run_headless, monkeypatch):
        monkeypatch.setenv("AWS_PROFILE", "from-env")

        runner.invoke(cli, [])

        assert mock_run_headless.call_args.kwargs["profile"] == "from-env"

    def test_invalid_output_choice(self, runner, mock_run_headless):
        """json/tsv 외 형식은 usage 에러"""
        result = runner.invoke(cli, ["-o", "xml"])

        assert result.exit_code == 2
        mock_run_headless.assert_not_called()

    def test_region_required(self, runner, mock_run_headless, monkeypatch):
        """리전이 없으면 usage 에러"""
        monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)

        result = runner.invoke(cli, [])

        assert result.exit_code == 2
        mock_run_headless.assert_not_called()


class TestCliExitCode:
    """종료 코드 전달 테스트"""

    @pytest.mark.parametrize("code", [0, 1, 130])
    def test_exit_code_propagated(self, runner, code):
        with patch("cli.headless.run_headless", return_value=code):
            result = runner.invoke(cli, ["-r", "us-east-1"])

        assert result.exit_code == code
