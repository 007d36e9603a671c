"""
cli/headless.py - Headless CLI Runner

대화형 프롬프트 없이 Serverless 스택 탐지를 실행합니다.
결과(JSON/TSV)는 stdout으로, 진행 상황과 에러는 stderr로 출력되므로
파이프라인에 그대로 연결할 수 있습니다.

Usage:
    find-serverless-stacks -r ap-northeast-2
    find-serverless-stacks -p dev -r us-east-1 -o tsv
    find-serverless-stacks -r us-east-1 --assume-role arn:aws:iam::123456789012:role/ReadOnly

종료 코드:
    0: 성공 (매칭 0건 포함)
    1: 실패 (설정/인증/목록 조회 오류)
    130: 사용자 중단 (Ctrl-C)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import click
from rich.console import Console
from rich.markup import escape

from core.auth import AuthConfig, create_session, validate_credentials
from core.config import AssumeRoleConfig, ScanConfig, get_default_max_workers, settings
from core.exceptions import ScanCancelledError, StackFinderError, format_error_for_user
from core.parallel import CancelToken
from plugins.cloudformation import DetectionReport, get_formatter, run_detect

logger = logging.getLogger(__name__)

# stdout은 탐지 결과 전용
console = Console(stderr=True)


@dataclass
class HeadlessConfig:
    """Headless 실행 설정"""

    # 대상
    region: str
    profile: str | None = settings.DEFAULT_PROFILE

    # AssumeRole (role_arn이 있을 때만 사용)
    role_arn: str | None = None
    session_name: str = settings.DEFAULT_SESSION_NAME
    duration: int = settings.DEFAULT_SESSION_DURATION
    external_id: str | None = None

    # 실행
    output_format: str = settings.DEFAULT_OUTPUT_FORMAT
    max_workers: int | None = None
    timeout: float | None = None
    quiet: bool = False

    def to_scan_config(self) -> ScanConfig:
        """ScanConfig로 변환 (검증은 하지 않음)"""
        assume_role = None
        if self.role_arn:
            assume_role = AssumeRoleConfig(
                role_arn=self.role_arn,
                session_name=self.session_name,
                duration=self.duration,
                external_id=self.external_id or None,
            )
        return ScanConfig(
            region=self.region,
            profile=self.profile,
            output_format=self.output_format,
            max_workers=self.max_workers if self.max_workers is not None else get_default_max_workers(),
            assume_role=assume_role,
        )


class HeadlessRunner:
    """Headless CLI Runner

    설정 검증 → 세션 생성 → 자격 증명 검증 → 탐지 → 출력 순으로 실행합니다.
    """

    def __init__(self, config: HeadlessConfig):
        self.config = config
        self.token = CancelToken(timeout=config.timeout)

    def run(self) -> int:
        """Headless 실행

        Returns:
            0: 성공
            1: 실패
            130: 사용자 중단
        """
        try:
            # 1. 설정 검증
            scan = self.config.to_scan_config()
            scan.validate()

            # 2. 인증 및 세션 설정
            auth = AuthConfig(region=scan.region, profile=scan.profile, assume_role=scan.assume_role)
            session = create_session(auth)
            validate_credentials(session, scan.region)

            # 3. 탐지
            report = self._detect(session, scan)
            if self.token.cancelled:
                # 취소된 스캔의 부분 결과는 출력하지 않음
                raise ScanCancelledError("스캔 데드라인을 초과했습니다 (결과가 불완전함)")

            # 4. 출력
            formatter = get_formatter(scan.output_format)
            click.echo(formatter.format(report.stacks))

            self._print_summary(report)
            return 0

        except KeyboardInterrupt:
            self.token.cancel()
            if not self.config.quiet:
                console.print("\n[dim]사용자가 중단했습니다[/dim]")
            return 130
        except StackFinderError as e:
            console.print(f"[red]오류: {escape(format_error_for_user(e))}[/red]", highlight=False)
            logger.debug("실행 실패", exc_info=True)
            return 1
        except Exception as e:
            console.print(f"[red]예상치 못한 오류: {escape(str(e))}[/red]", highlight=False)
            logger.debug("예상치 못한 오류", exc_info=True)
            return 1

    def _detect(self, session, scan: ScanConfig) -> DetectionReport:
        """run_detect로 탐지 실행 (quiet가 아니면 스피너 표시)"""
        if self.config.quiet:
            return run_detect(session, scan.region, max_workers=scan.max_workers, token=self.token)

        with console.status(f"[bold]{scan.region}[/bold] CloudFormation 스택 탐지 중..."):
            return run_detect(session, scan.region, max_workers=scan.max_workers, token=self.token)

    def _print_summary(self, report: DetectionReport) -> None:
        if self.config.quiet:
            return

        console.print(
            f"[green]탐지 완료[/green]: {report.matched}개 매칭 / {report.total}개 스택 ({report.duration_ms / 1000:.1f}초)"
        )
        if report.resource_errors or report.detail_errors:
            console.print(
                f"[yellow]  리소스 조회 실패 {report.resource_errors}개 (제외), "
                f"상세 조회 실패 {report.detail_errors}개[/yellow]"
            )


def run_headless(
    region: str,
    profile: str | None = settings.DEFAULT_PROFILE,
    output_format: str = settings.DEFAULT_OUTPUT_FORMAT,
    role_arn: str | None = None,
    session_name: str = settings.DEFAULT_SESSION_NAME,
    duration: int = settings.DEFAULT_SESSION_DURATION,
    external_id: str | None = None,
    max_workers: int | None = None,
    timeout: float | None = None,
    quiet: bool = False,
) -> int:
    """Headless 실행 편의 함수

    Args:
        region: 대상 리전
        profile: AWS 프로파일
        output_format: 출력 형식 (json, tsv)
        role_arn: AssumeRole 대상 Role ARN (선택)
        session_name: AssumeRole 세션 이름
        duration: AssumeRole 세션 유효 시간 (초)
        external_id: AssumeRole External ID
        max_workers: 워커 풀 크기
        timeout: 스캔 데드라인 (초, None이면 무제한)
        quiet: 최소 출력 모드

    Returns:
        종료 코드 (0, 1, 130)
    """
    config = HeadlessConfig(
        region=region,
        profile=profile,
        role_arn=role_arn,
        session_name=session_name,
        duration=duration,
        external_id=external_id,
        output_format=output_format,
        max_workers=max_workers,
        timeout=timeout,
        quiet=quiet,
    )

    runner = HeadlessRunner(config)
    return runner.run()
