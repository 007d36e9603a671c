"""
core/auth/session.py - boto3 Session 생성

프로파일(또는 기본 자격 증명 체인)로 Session을 만들고,
필요하면 STS AssumeRole로 임시 자격 증명 Session을 생성합니다.

Example:
    from core.auth import AuthConfig, create_session, validate_credentials
    from core.config import AssumeRoleConfig

    auth = AuthConfig(
        profile="dev",
        region="us-east-1",
        assume_role=AssumeRoleConfig(role_arn="arn:aws:iam::123456789012:role/ReadOnly"),
    )
    session = create_session(auth)
    validate_credentials(session, auth.region)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import boto3
from botocore.exceptions import BotoCoreError, ClientError, ProfileNotFound

from core.config import AssumeRoleConfig, settings
from core.exceptions import AuthError, format_error_for_user
from core.parallel.client import get_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthConfig:
    """인증 설정

    Attributes:
        profile: AWS 프로파일 이름 (None 또는 "default"면 기본 자격 증명 체인)
        region: 대상 리전
        assume_role: AssumeRole 설정 (선택)
    """

    region: str
    profile: str | None = None
    assume_role: AssumeRoleConfig | None = None


def _base_session(auth: AuthConfig) -> boto3.Session:
    """프로파일 기반 기본 Session 생성"""
    profile = auth.profile
    try:
        if profile and profile != settings.DEFAULT_PROFILE:
            return boto3.Session(profile_name=profile, region_name=auth.region)
        return boto3.Session(region_name=auth.region)
    except ProfileNotFound as e:
        raise AuthError(
            f"AWS 설정 로드 실패 (profile '{profile}', region '{auth.region}')",
            profile=profile,
            region=auth.region,
            cause=e,
        ) from e


def _assume_role_session(base: boto3.Session, auth: AuthConfig, role: AssumeRoleConfig) -> boto3.Session:
    """STS AssumeRole로 임시 자격 증명 Session 생성"""

    params: dict = {
        "RoleArn": role.role_arn,
        "RoleSessionName": role.session_name,
        "DurationSeconds": role.duration,
    }
    if role.external_id:
        params["ExternalId"] = role.external_id

    sts = get_client(base, "sts", region_name=auth.region)
    try:
        response = sts.assume_role(**params)
    except (ClientError, BotoCoreError) as e:
        raise AuthError(
            f"AssumeRole 실패 [{role.role_arn}]",
            profile=auth.profile,
            region=auth.region,
            cause=e,
        ) from e

    credentials = response["Credentials"]
    logger.info("AssumeRole 성공: %s (만료 %s)", role.role_arn, credentials.get("Expiration"))

    return boto3.Session(
        aws_access_key_id=credentials["AccessKeyId"],
        aws_secret_access_key=credentials["SecretAccessKey"],
        aws_session_token=credentials["SessionToken"],
        region_name=auth.region,
    )


def create_session(auth: AuthConfig) -> boto3.Session:
    """인증 설정으로 boto3 Session 생성

    Args:
        auth: 인증 설정

    Returns:
        boto3.Session

    Raises:
        AuthError: 프로파일 로드 또는 AssumeRole 실패
    """
    session = _base_session(auth)

    if auth.assume_role is not None:
        session = _assume_role_session(session, auth, auth.assume_role)

    return session


def validate_credentials(session: boto3.Session, region: str) -> None:
    """CloudFormation 최소 호출로 자격 증명 검증

    Raises:
        AuthError: 자격 증명이 없거나 권한이 부족한 경우
    """
    cfn = get_client(session, "cloudformation", region_name=region)
    try:
        # 첫 페이지만 조회
        cfn.list_stacks()
    except (ClientError, BotoCoreError) as e:
        raise AuthError(
            f"AWS 자격 증명 검증 실패 ({format_error_for_user(e)})",
            region=region,
            cause=e,
        ) from e
