"""
core/config.py - 애플리케이션 설정

불변 기본 설정(Settings), 환경변수 헬퍼, 로깅 설정,
그리고 한 번의 스캔 실행에 필요한 ScanConfig를 정의합니다.

환경변수:
    AWS_PROFILE / AWS_DEFAULT_PROFILE: 기본 프로파일
    AWS_REGION / AWS_DEFAULT_REGION: 기본 리전
    FSS_MAX_WORKERS: 워커 풀 크기
    FSS_LOG_LEVEL: 로그 레벨 (기본 WARNING)
    FSS_LOG_FORMAT: 로그 포맷
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from core.exceptions import ConfigError, UnsupportedFormatError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """불변 기본 설정값"""

    DEFAULT_REGION: str = "us-east-1"
    DEFAULT_PROFILE: str = "default"

    # 탐지 워커 풀
    DEFAULT_MAX_WORKERS: int = 10
    MAX_WORKERS_LIMIT: int = 100

    # 출력
    DEFAULT_OUTPUT_FORMAT: str = "json"
    SUPPORTED_OUTPUT_FORMATS: tuple[str, ...] = ("json", "tsv")

    # AssumeRole
    DEFAULT_SESSION_NAME: str = "find-serverless-stacks-session"
    DEFAULT_SESSION_DURATION: int = 3600
    MIN_SESSION_DURATION: int = 900
    MAX_SESSION_DURATION: int = 43200

    # CloudFormation API 호출
    API_REQUESTS_PER_SECOND: float = 5.0
    API_BURST_SIZE: int = 10
    API_RETRY_COUNT: int = 3
    API_TIMEOUT: int = 30


settings = Settings()


# =============================================================================
# 환경변수 헬퍼
# =============================================================================


def get_env_bool(name: str, default: bool = False) -> bool:
    """환경변수를 bool로 해석 (1/true/yes/on, 0/false/no/off)"""
    value = os.environ.get(name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    return default


def get_env_int(name: str, default: int) -> int:
    """환경변수를 int로 해석 (해석 불가 시 default)"""
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("환경변수 %s 값이 정수가 아님: %r", name, value)
        return default


def get_default_profile() -> str | None:
    """환경변수에서 기본 프로파일 조회"""
    return os.environ.get("AWS_PROFILE") or os.environ.get("AWS_DEFAULT_PROFILE")


def get_default_region() -> str | None:
    """환경변수에서 기본 리전 조회 (없으면 None)"""
    return os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")


def get_default_max_workers() -> int:
    """워커 풀 기본 크기 (FSS_MAX_WORKERS 우선)"""
    return get_env_int("FSS_MAX_WORKERS", settings.DEFAULT_MAX_WORKERS)


@lru_cache(maxsize=1)
def get_version() -> str:
    """version.txt에서 버전 문자열 반환"""
    version_file = Path(__file__).resolve().parent.parent / "version.txt"
    try:
        return version_file.read_text(encoding="utf-8").strip() or "0.0.0"
    except OSError as e:
        logger.debug("Failed to read version file: %s", e)
        return "0.0.0"


# =============================================================================
# 로깅 설정
# =============================================================================


@dataclass
class LogConfig:
    """로깅 설정"""

    level: str = "WARNING"
    format: str = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def from_env(cls) -> LogConfig:
        """환경변수(FSS_LOG_LEVEL, FSS_LOG_FORMAT)에서 생성"""
        default = cls()
        return cls(
            level=os.environ.get("FSS_LOG_LEVEL", default.level).upper(),
            format=os.environ.get("FSS_LOG_FORMAT", default.format),
        )


def configure_logging(config: LogConfig | None = None, verbose: bool = False) -> None:
    """루트 로거 설정

    로그는 stderr로만 출력되어 stdout의 JSON/TSV 출력과 섞이지 않습니다.

    Args:
        config: 로깅 설정 (None이면 환경변수 기반)
        verbose: True이면 DEBUG 레벨 강제
    """
    config = config or LogConfig.from_env()
    level = logging.DEBUG if verbose else getattr(logging, config.level, logging.WARNING)

    logging.basicConfig(
        level=level,
        format=config.format,
        datefmt=config.date_format,
        force=True,
    )
    # botocore 내부 로그는 verbose에서도 과도하므로 WARNING 유지
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


# =============================================================================
# 스캔 설정
# =============================================================================


def validate_output_format(format_name: str) -> bool:
    """지원하는 출력 형식인지 확인"""
    return format_name in settings.SUPPORTED_OUTPUT_FORMATS


@dataclass(frozen=True)
class AssumeRoleConfig:
    """AssumeRole 설정

    Attributes:
        role_arn: 수임할 IAM Role ARN
        session_name: Role 세션 이름
        duration: 세션 유효 시간 (초, 900~43200)
        external_id: External ID (선택)
    """

    role_arn: str
    session_name: str = settings.DEFAULT_SESSION_NAME
    duration: int = settings.DEFAULT_SESSION_DURATION
    external_id: str | None = None

    def validate(self) -> None:
        """설정 검증

        Raises:
            ValidationError: 필드 값이 유효하지 않은 경우
        """
        if not self.role_arn:
            raise ValidationError("assume_role", self.role_arn, "비어있지 않은 Role ARN")

        if not (settings.MIN_SESSION_DURATION <= self.duration <= settings.MAX_SESSION_DURATION):
            raise ValidationError(
                "duration",
                self.duration,
                f"{settings.MIN_SESSION_DURATION}~{settings.MAX_SESSION_DURATION}초",
            )

        if not self.session_name:
            raise ValidationError("session_name", self.session_name, "비어있지 않은 세션 이름")


@dataclass(frozen=True)
class ScanConfig:
    """한 번의 스캔 실행 설정

    생성 후 변경되지 않으며, 워커 스레드 간에 잠금 없이 공유됩니다.
    """

    region: str
    profile: str | None = settings.DEFAULT_PROFILE
    output_format: str = settings.DEFAULT_OUTPUT_FORMAT
    max_workers: int = field(default_factory=get_default_max_workers)
    assume_role: AssumeRoleConfig | None = None

    def validate(self) -> None:
        """설정 검증

        Raises:
            ConfigError: 리전 누락
            UnsupportedFormatError: 지원하지 않는 출력 형식
            ValidationError: 워커 수 또는 AssumeRole 설정 오류
        """
        if not self.region:
            raise ConfigError("region", "리전은 필수입니다")

        if not validate_output_format(self.output_format):
            raise UnsupportedFormatError(self.output_format, settings.SUPPORTED_OUTPUT_FORMATS)

        if not (1 <= self.max_workers <= settings.MAX_WORKERS_LIMIT):
            raise ValidationError("max_workers", self.max_workers, f"1~{settings.MAX_WORKERS_LIMIT}")

        if self.assume_role is not None:
            self.assume_role.validate()
