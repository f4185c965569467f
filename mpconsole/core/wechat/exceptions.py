"""WeChat-specific exceptions for error handling."""
from __future__ import annotations
from typing import Any, Optional


class WeChatError(Exception):
    """Base exception for all WeChat platform operations."""
    pass


class TransportError(WeChatError):
    """Network failure, timeout or non-200 status from the platform.

    Attributes:
        operation: Operation that was being executed
        message: Error description
        status_code: HTTP status code when a response was received
    """

    def __init__(self, operation: str, message: str, status_code: Optional[int] = None):
        self.operation = operation
        self.message = message
        self.status_code = status_code
        prefix = f"[{status_code}] " if status_code is not None else ""
        super().__init__(f"{prefix}{operation}: {message}")


class RetryExhaustedError(TransportError):
    """Every attempt of a pipeline invocation failed at the transport level."""

    def __init__(self, operation: str, attempts: int):
        self.attempts = attempts
        super().__init__(operation, f"exhausted after {attempts} attempt(s)")


class InvalidJsonError(WeChatError):
    """Response body is not syntactically valid JSON."""
    pass


class MissingFieldError(WeChatError):
    """Expected field is absent (or malformed) in a platform response.

    Attributes:
        path: Dot-addressed path that could not be resolved
    """

    def __init__(self, path: str, detail: str = "missing"):
        self.path = path
        self.detail = detail
        super().__init__(f"response field '{path}' {detail}")


class PlatformError(WeChatError):
    """Semantic rejection reported by the platform through ``errcode``.

    Attributes:
        code: Platform errcode (None when the operation requires an explicit
            errcode and none was returned)
        errmsg: Platform errmsg, if any
    """

    def __init__(self, code: Any, errmsg: str = ""):
        self.code = code
        self.errmsg = errmsg
        super().__init__(f"platform errcode={code} errmsg={errmsg or '-'}")


class MappingNotFoundError(WeChatError):
    """Template has no tag associated in the template/tag mapping."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"template '{template_id}' has no associated tag")


class MappingStoreError(WeChatError):
    """Template/tag mapping could not be read or written."""
    pass
