"""
core/exceptions.py - 통합 예외 계층 구조

애플리케이션 전체에서 사용되는 예외 클래스들을 정의합니다.
일관된 예외 처리와 에러 메시지를 제공합니다.

예외 계층 구조:
    StackFinderError (베이스)
    ├── ConfigError (설정 관련)
    ├── ValidationError (입력 검증)
    ├── AuthError (인증/세션)
    ├── APICallError (AWS API 호출)
    │   └── CloudFormationAPIError
    ├── DetectionError (스택 탐지)
    │   └── StackListingError
    ├── ScanCancelledError (취소/데드라인)
    └── UnsupportedFormatError (출력 형식)

Usage:
    from core.exceptions import APICallError

    try:
        result = cfn.list_stacks()
    except ClientError as e:
        raise APICallError.from_client_error("cloudformation", "list_stacks", e) from e
"""

from typing import Any, Dict, Optional

# =============================================================================
# 베이스 예외
# =============================================================================


class StackFinderError(Exception):
    """find-serverless-stacks 기본 예외 클래스

    모든 커스텀 예외의 베이스 클래스입니다.

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# 설정 관련 예외
# =============================================================================


class ConfigError(StackFinderError):
    """설정 관련 예외"""

    def __init__(
        self,
        key: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"설정 오류 [{key}]: {message}"
        super().__init__(full_message, cause)
        self.config_key = key
        self.details["config_key"] = key


class ValidationError(StackFinderError):
    """입력 검증 오류"""

    def __init__(
        self,
        field: str,
        value: Any,
        expected: str,
        cause: Optional[Exception] = None,
    ):
        message = f"검증 오류 [{field}]: 예상값 '{expected}', 실제값 '{value}'"
        super().__init__(message, cause)
        self.field = field
        self.value = value
        self.expected = expected
        self.details.update(
            {
                "field": field,
                "value": str(value),
                "expected": expected,
            }
        )


class UnsupportedFormatError(ValidationError):
    """지원하지 않는 출력 형식"""

    def __init__(self, format_name: str, supported: tuple[str, ...] = ("json", "tsv")):
        super().__init__("output", format_name, " | ".join(supported))
        self.format_name = format_name
        self.supported = supported


# =============================================================================
# 인증 관련 예외
# =============================================================================


class AuthError(StackFinderError):
    """자격 증명/세션 생성 실패

    프로파일 로드, AssumeRole, 자격 증명 검증 단계에서 발생합니다.
    """

    def __init__(
        self,
        message: str,
        profile: Optional[str] = None,
        region: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause)
        self.profile = profile
        self.region = region
        if profile:
            self.details["profile"] = profile
        if region:
            self.details["region"] = region


# =============================================================================
# AWS API 호출 관련 예외
# =============================================================================


class APICallError(StackFinderError):
    """AWS API 호출 관련 예외

    boto3/botocore의 ClientError를 래핑하여 일관된 예외 처리를 제공합니다.
    """

    def __init__(
        self,
        service: str,
        operation: str,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        message = f"{service}.{operation}"
        if error_code:
            message = f"{message} 실패 ({error_code})"
        if error_message:
            message = f"{message}: {error_message}"

        super().__init__(message, cause)
        self.service = service
        self.operation = operation
        self.error_code = error_code
        self.error_message = error_message
        self.details.update(
            {
                "service": service,
                "operation": operation,
                "error_code": error_code,
            }
        )

    @classmethod
    def from_client_error(
        cls,
        service: str,
        operation: str,
        client_error: Exception,
    ) -> "APICallError":
        """botocore.exceptions.ClientError로부터 생성

        Args:
            service: AWS 서비스 이름
            operation: API 작업 이름
            client_error: ClientError 예외

        Returns:
            APICallError 인스턴스
        """
        error_code = None
        error_message = None

        # ClientError 형식 파싱
        if hasattr(client_error, "response"):
            error_info = client_error.response.get("Error", {})
            error_code = error_info.get("Code")
            error_message = error_info.get("Message")

        return cls(
            service=service,
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            cause=client_error,
        )


class CloudFormationAPIError(APICallError):
    """CloudFormation API 호출 실패 (카테고리 포함)

    category는 core.parallel.types.ErrorCategory 값이며,
    재시도 여부 판단과 사용자 메시지에 사용됩니다.
    """

    def __init__(
        self,
        operation: str,
        category: Any,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            service="cloudformation",
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            cause=cause,
        )
        self.category = category
        self.details["category"] = getattr(category, "value", str(category))

    def __str__(self) -> str:
        # cause 메시지가 error_message와 중복되므로 message만 사용
        return self.message


# =============================================================================
# 탐지 관련 예외
# =============================================================================


class DetectionError(StackFinderError):
    """스택 탐지 중 발생한 예외

    Attributes:
        stack_name: 대상 스택 이름 (목록 조회 단계에서는 None)
        operation: 실패한 단계 (list_stacks, describe_stack_resources 등)
    """

    def __init__(
        self,
        stack_name: Optional[str],
        operation: str,
        cause: Optional[Exception] = None,
    ):
        if stack_name:
            message = f"스택 탐지 오류 [{stack_name}] ({operation})"
        else:
            message = f"스택 탐지 오류 ({operation})"
        super().__init__(message, cause)
        self.stack_name = stack_name
        self.operation = operation
        self.details["operation"] = operation
        if stack_name:
            self.details["stack_name"] = stack_name


class StackListingError(DetectionError):
    """후보 스택 목록 조회 실패 (스캔 전체 실패)"""

    def __init__(self, cause: Optional[Exception] = None):
        super().__init__(None, "list_stacks", cause)
        self.message = "스택 목록 조회 실패"


class ScanCancelledError(StackFinderError):
    """취소 신호 또는 데드라인 초과"""

    def __init__(self, message: str = "스캔이 취소되었습니다"):
        super().__init__(message)


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================

_ACCESS_DENIED_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "UnauthorizedAccess",
    "UnauthorizedOperation",
}

_THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
}

_NOT_FOUND_CODES = {
    "ResourceNotFoundException",
    "NotFoundException",
    "StackNotFoundException",
}


def _error_code_of(error: Exception) -> Optional[str]:
    if isinstance(error, APICallError):
        return error.error_code
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        return response.get("Error", {}).get("Code", "")
    return None


def is_access_denied(error: Exception) -> bool:
    """액세스 거부 오류인지 확인

    Args:
        error: 확인할 예외

    Returns:
        액세스 거부 오류이면 True
    """
    return _error_code_of(error) in _ACCESS_DENIED_CODES


def is_throttling(error: Exception) -> bool:
    """스로틀링 오류인지 확인"""
    return _error_code_of(error) in _THROTTLING_CODES


def is_not_found(error: Exception) -> bool:
    """리소스를 찾을 수 없는 오류인지 확인"""
    return _error_code_of(error) in _NOT_FOUND_CODES


def format_error_for_user(error: Exception) -> str:
    """사용자에게 표시할 에러 메시지 포맷팅

    Args:
        error: 예외

    Returns:
        사용자 친화적인 에러 메시지
    """
    if isinstance(error, StackFinderError):
        # 커스텀 예외는 이미 포맷팅됨
        return str(error)

    # boto3 ClientError
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        error_info = response.get("Error", {})
        code = error_info.get("Code", "UnknownError")
        message = error_info.get("Message", str(error))

        friendly_messages = {
            "AccessDenied": "권한이 없습니다. IAM 정책을 확인하세요.",
            "ExpiredToken": "인증 토큰이 만료되었습니다. 다시 로그인하세요.",
            "InvalidClientTokenId": "잘못된 자격 증명입니다.",
            "Throttling": "요청이 너무 많습니다. 잠시 후 다시 시도하세요.",
        }

        return friendly_messages.get(code, f"{code}: {message}")

    return str(error)
