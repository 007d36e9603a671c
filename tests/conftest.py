"""
tests/conftest.py - pytest 공통 픽스처

AWS API 모킹과 테스트 헬퍼를 제공합니다.

Usage:
    def test_something(mock_cfn_client, moto_cfn):
        # mock_cfn_client: MagicMock 기반 CloudFormation client
        # moto_cfn: moto를 사용한 CloudFormation 모킹
        pass
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from unittest.mock import MagicMock, patch

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """테스트 환경 설정"""
    # 테스트용 환경 변수 설정
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-northeast-2")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    for name in ("AWS_PROFILE", "AWS_DEFAULT_PROFILE", "AWS_REGION", "FSS_MAX_WORKERS", "FSS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    yield

    # 공유 rate limiter 정리
    from core.parallel import reset_rate_limiters

    reset_rate_limiters()


# =============================================================================
# AWS 모킹 픽스처
# =============================================================================


@pytest.fixture
def mock_boto3_session():
    """boto3.Session 모킹"""
    with patch("boto3.Session") as mock_session_class:
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session

        # 기본 클라이언트 설정
        mock_session.client.return_value = MagicMock()
        mock_session.region_name = "ap-northeast-2"

        yield mock_session


@pytest.fixture
def mock_cfn_client():
    """CloudFormation 클라이언트 모킹"""
    mock_client = MagicMock()

    created = datetime(2024, 1, 1, tzinfo=timezone.utc)

    # list_stacks 기본 응답 (단일 페이지)
    mock_client.list_stacks.return_value = {
        "StackSummaries": [
            {
                "StackName": "my-service-dev",
                "StackId": "arn:aws:cloudformation:ap-northeast-2:123456789012:stack/my-service-dev/1",
                "StackStatus": "UPDATE_COMPLETE",
                "CreationTime": created,
            }
        ]
    }

    # describe_stack_resources 기본 응답
    mock_client.describe_stack_resources.return_value = {
        "StackResources": [
            {
                "LogicalResourceId": "ServerlessDeploymentBucket",
                "PhysicalResourceId": "my-service-dev-serverlessdeploymentbucket-abc",
                "ResourceType": "AWS::S3::Bucket",
                "ResourceStatus": "CREATE_COMPLETE",
            }
        ]
    }

    # describe_stacks 기본 응답
    mock_client.describe_stacks.return_value = {
        "Stacks": [
            {
                "StackName": "my-service-dev",
                "Description": "The AWS CloudFormation template for this Serverless application",
                "CreationTime": created,
                "Tags": [{"Key": "STAGE", "Value": "dev"}],
            }
        ]
    }

    yield mock_client


@pytest.fixture
def mock_sts_client():
    """STS 클라이언트 모킹"""
    mock_client = MagicMock()

    mock_client.get_caller_identity.return_value = {
        "UserId": "AIDATEST123",
        "Account": "123456789012",
        "Arn": "arn:aws:iam::123456789012:user/test-user",
    }

    mock_client.assume_role.return_value = {
        "Credentials": {
            "AccessKeyId": "ASIATEST123",
            "SecretAccessKey": "test-secret",
            "SessionToken": "test-token",
            "Expiration": "2024-12-31T23:59:59Z",
        }
    }

    yield mock_client


@pytest.fixture
def fast_retry_config():
    """대기 없는 재시도 설정"""
    from core.parallel import RetryConfig

    return RetryConfig(max_retries=3, base_delay=0.0, jitter=False)


@pytest.fixture
def unlimited_rate_limiter():
    """사실상 제한 없는 rate limiter"""
    from core.parallel import RateLimiterConfig, TokenBucketRateLimiter

    return TokenBucketRateLimiter(RateLimiterConfig(requests_per_second=10000, burst_size=10000))


# =============================================================================
# 유틸리티 함수
# =============================================================================


def create_mock_response(
    data: Dict[str, Any],
    next_token: Optional[str] = None,
) -> Dict[str, Any]:
    """페이지네이션 응답 생성 헬퍼"""
    response = data.copy()
    if next_token:
        response["NextToken"] = next_token
    return response


def create_mock_client_error(
    error_code: str,
    error_message: str = "Test error",
    operation_name: str = "TestOperation",
) -> Exception:
    """ClientError 생성 헬퍼"""
    from botocore.exceptions import ClientError

    return ClientError(
        {
            "Error": {
                "Code": error_code,
                "Message": error_message,
            }
        },
        operation_name,
    )


@pytest.fixture
def client_error():
    """ClientError 팩토리 픽스처"""
    return create_mock_client_error


# =============================================================================
# moto 통합
# =============================================================================

SERVERLESS_TEMPLATE = """{
  "AWSTemplateFormatVersion": "2010-09-09",
  "Description": "The AWS CloudFormation template for this Serverless application",
  "Resources": {
    "ServerlessDeploymentBucket": {"Type": "AWS::S3::Bucket"}
  }
}"""

PLAIN_TEMPLATE = """{
  "AWSTemplateFormatVersion": "2010-09-09",
  "Description": "Plain stack",
  "Resources": {
    "DataBucket": {"Type": "AWS::S3::Bucket"}
  }
}"""


@pytest.fixture
def aws_credentials(monkeypatch):
    """moto 사용 시 AWS 자격 증명 설정"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-northeast-2")


@pytest.fixture
def moto_cfn(aws_credentials):
    """moto를 사용한 CloudFormation 모킹

    Serverless 스택 1개와 일반 스택 1개를 생성합니다.
    """
    moto = pytest.importorskip("moto")

    with moto.mock_aws():
        import boto3

        session = boto3.Session(region_name="ap-northeast-2")
        cfn = session.client("cloudformation")

        cfn.create_stack(
            StackName="my-service-dev",
            TemplateBody=SERVERLESS_TEMPLATE,
            Tags=[{"Key": "STAGE", "Value": "dev"}],
        )
        cfn.create_stack(StackName="plain-stack", TemplateBody=PLAIN_TEMPLATE)

        yield session
