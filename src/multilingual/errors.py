"""Exception types and backend error classification."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

import httpx


class MultilingualError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(MultilingualError):
    """Invalid or incomplete configuration; translation is not attempted."""


class BackendError(MultilingualError):
    """A backend call failed; the message is already user-facing."""

    def __init__(self, message: str, backend: str = "", error_type: Optional["ErrorType"] = None):
        super().__init__(message)
        self.backend = backend
        self.error_type = error_type or ErrorType.UNKNOWN


class ErrorType(Enum):
    """后端错误分类（仅用于提示，调度器不会自动重试）。"""
    AUTH = "auth"                 # 401/403
    RATE_LIMIT = "rate_limit"     # 429
    QUOTA = "quota"               # 456
    SERVER = "server"             # 5xx
    CONNECTION = "connection"     # 无响应
    UNKNOWN = "unknown"


def describe_error(error_type: ErrorType, backend: str, detail: str = "") -> str:
    name = backend.upper()
    if error_type is ErrorType.AUTH:
        return f"{name} API key is invalid or expired"
    if error_type is ErrorType.RATE_LIMIT:
        return f"{name} rate limit exceeded. Please try again later."
    if error_type is ErrorType.QUOTA:
        return f"{name} quota exceeded. Please check your plan limits."
    if error_type is ErrorType.SERVER:
        return f"{name} service temporarily unavailable"
    if error_type is ErrorType.CONNECTION:
        return f"Network error: Unable to reach {name} API"
    return detail or "Unknown translation error"


def _response_message(response: httpx.Response) -> Optional[str]:
    try:
        data: Any = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    if isinstance(data.get("message"), str):
        return data["message"]
    error = data.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(error, str):
        return error
    return None


def classify_status(status: int) -> ErrorType:
    if status in (401, 403):
        return ErrorType.AUTH
    if status == 429:
        return ErrorType.RATE_LIMIT
    if status == 456:
        return ErrorType.QUOTA
    if 500 <= status < 600:
        return ErrorType.SERVER
    return ErrorType.UNKNOWN


def classify_http_error(error: Exception, backend: str) -> tuple[ErrorType, str]:
    """
    Classify an exception from an HTTP backend.

    Returns:
        (error type, advisory message)
    """
    if isinstance(error, BackendError):
        return error.error_type, str(error)

    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        error_type = classify_status(status)
        detail = _response_message(error.response) or f"{backend.upper()} error: {status}"
        return error_type, describe_error(error_type, backend, detail)

    if isinstance(error, httpx.RequestError):
        return ErrorType.CONNECTION, describe_error(ErrorType.CONNECTION, backend)

    return ErrorType.UNKNOWN, str(error) or "Unknown translation error"
