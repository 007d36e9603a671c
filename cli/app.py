"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 find-serverless-stacks 명령어 진입점입니다.

명령어 구조:
    find-serverless-stacks -r <region> [옵션]
    find-serverless-stacks --version
    find-serverless-stacks --help

    예시:
    find-serverless-stacks -r ap-northeast-2
    find-serverless-stacks -p dev -r us-east-1 -o tsv | cut -f1
    find-serverless-stacks -r us-east-1 --assume-role arn:aws:iam::123456789012:role/ReadOnly \\
        --external-id my-ext-id --duration 900

Usage:
    # 명령줄에서 직접 실행
    $ find-serverless-stacks -r us-east-1

    # 모듈로 실행
    $ python -m cli.app -r us-east-1
"""

import click

from core.config import (
    configure_logging,
    get_default_profile,
    get_default_region,
    get_version,
    settings,
)

VERSION = get_version()


@click.command(
    name="find-serverless-stacks",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "-p",
    "--profile",
    default=lambda: get_default_profile() or settings.DEFAULT_PROFILE,
    show_default=settings.DEFAULT_PROFILE,
    help="AWS 프로파일",
)
@click.option(
    "-r",
    "--region",
    default=get_default_region,
    help="대상 리전 (미지정 시 AWS_REGION / AWS_DEFAULT_REGION)",
)
@click.option(
    "-o",
    "--output",
    "output_format",
    type=click.Choice(list(settings.SUPPORTED_OUTPUT_FORMATS)),
    default=settings.DEFAULT_OUTPUT_FORMAT,
    show_default=True,
    help="출력 형식",
)
@click.option("--assume-role", "role_arn", default=None, help="AssumeRole 대상 Role ARN")
@click.option(
    "--session-name",
    default=settings.DEFAULT_SESSION_NAME,
    show_default=True,
    help="AssumeRole 세션 이름",
)
@click.option(
    "--duration",
    type=int,
    default=settings.DEFAULT_SESSION_DURATION,
    show_default=True,
    help=f"AssumeRole 세션 유효 시간 (초, {settings.MIN_SESSION_DURATION}~{settings.MAX_SESSION_DURATION})",
)
@click.option("--external-id", default=None, help="AssumeRole External ID")
@click.option(
    "-w",
    "--workers",
    "max_workers",
    type=int,
    default=None,
    help=f"동시 조회 워커 수 (기본 {settings.DEFAULT_MAX_WORKERS}, FSS_MAX_WORKERS)",
)
@click.option("--timeout", type=float, default=None, help="스캔 데드라인 (초)")
@click.option("-q", "--quiet", is_flag=True, help="최소 출력 모드 (진행 표시/요약 생략)")
@click.option("-v", "--verbose", is_flag=True, help="DEBUG 로그 출력 (stderr)")
@click.version_option(version=VERSION, prog_name="find-serverless-stacks")
def cli(
    profile: str,
    region: str | None,
    output_format: str,
    role_arn: str | None,
    session_name: str,
    duration: int,
    external_id: str | None,
    max_workers: int | None,
    timeout: float | None,
    quiet: bool,
    verbose: bool,
) -> None:
    """CloudFormation 스택 중 Serverless Framework로 배포된 스택을 찾습니다.

    ServerlessDeploymentBucket(AWS::S3::Bucket) 리소스를 포함한 스택을
    JSON 또는 TSV로 stdout에 출력합니다.
    """
    configure_logging(verbose=verbose)

    if not region:
        raise click.UsageError("리전을 지정하세요 (-r/--region 또는 AWS_REGION)")

    from cli.headless import run_headless

    exit_code = run_headless(
        region=region,
        profile=profile,
        output_format=output_format,
        role_arn=role_arn,
        session_name=session_name,
        duration=duration,
        external_id=external_id,
        max_workers=max_workers,
        timeout=timeout,
        quiet=quiet,
    )
    raise SystemExit(exit_code)


if __name__ == "__main__":
    cli()
