"""
Grading error taxonomy.

Every failure the grading flow can hit maps to one of these exceptions,
each carrying its HTTP status and the user-facing error/feedback pair
that goes back to the caller with a zero score.
"""

import httpx
from google.genai import errors as genai_errors

from api.models import ErrorResponse


class GradingError(Exception):
    status_code = 500
    error = "채점 중 오류가 발생했습니다."
    feedback = "채점 중 오류가 발생했습니다."

    def __init__(self, error=None, feedback=None):
        if error is not None:
            self.error = error
        if feedback is not None:
            self.feedback = feedback
        super().__init__(self.error)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.error, score=0, feedback=self.feedback)


class RequestParseError(GradingError):
    status_code = 400
    error = "잘못된 요청 형식입니다."
    feedback = "요청 데이터를 파싱할 수 없습니다."


class ValidationError(GradingError):
    status_code = 400
    error = "필수 필드가 누락되었습니다."
    feedback = "문제, 답안, 유형 정보가 필요합니다."


class FieldTypeError(ValidationError):
    error = "필드 형식이 올바르지 않습니다."
    feedback = "문제, 답안, 유형 정보의 형식이 올바르지 않습니다."


class ConfigurationError(GradingError):
    status_code = 500
    error = "Missing API Key"
    feedback = "채점 서버 설정 오류입니다."


class UpstreamOutputParseError(GradingError):
    status_code = 500
    error = "채점 결과 파싱 오류"
    feedback = "채점 결과를 처리하는 중 오류가 발생했습니다."


class UpstreamOutputFormatError(GradingError):
    status_code = 500
    error = "채점 결과 형식 오류"
    feedback = "채점 결과 형식이 올바르지 않습니다."


class UpstreamInvocationError(GradingError):
    status_code = 500


API_KEY_MESSAGE = "API 키 오류입니다."
RATE_LIMIT_MESSAGE = "요청 한도가 초과되었습니다. 잠시 후 다시 시도해주세요."
TIMEOUT_MESSAGE = "채점 요청 시간이 초과되었습니다. 다시 시도해주세요."
GENERIC_MESSAGE = "채점 중 오류가 발생했습니다."

API_KEY_CODES = {401, 403}
API_KEY_STATUSES = {"UNAUTHENTICATED", "PERMISSION_DENIED"}
RATE_LIMIT_CODES = {429}
RATE_LIMIT_STATUSES = {"RESOURCE_EXHAUSTED"}
TIMEOUT_CODES = {504}
TIMEOUT_STATUSES = {"DEADLINE_EXCEEDED"}


def _message_for(exc: Exception) -> str:
    if isinstance(exc, genai_errors.APIError):
        status = (exc.status or "").upper()
        if exc.code in API_KEY_CODES or status in API_KEY_STATUSES:
            return API_KEY_MESSAGE
        if exc.code in RATE_LIMIT_CODES or status in RATE_LIMIT_STATUSES:
            return RATE_LIMIT_MESSAGE
        if exc.code in TIMEOUT_CODES or status in TIMEOUT_STATUSES:
            return TIMEOUT_MESSAGE

    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return TIMEOUT_MESSAGE

    # Gemini reports a bad key as a plain 400 "API key not valid"
    text = str(exc).lower()
    if "api key" in text:
        return API_KEY_MESSAGE
    if "rate limit" in text:
        return RATE_LIMIT_MESSAGE
    if "timeout" in text:
        return TIMEOUT_MESSAGE

    return GENERIC_MESSAGE


def classify_upstream_error(exc: Exception) -> UpstreamInvocationError:
    """Map an exception raised by the completion call to a user-facing error."""
    message = _message_for(exc)
    return UpstreamInvocationError(error=message, feedback=message)
