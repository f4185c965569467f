"""Uniform interpretation of WeChat JSON responses.

Every platform response passes through this module before any domain
decoding: the body must be valid JSON, the expected field must exist, and
for mutating operations the ``errcode`` field decides success.

Usage:
    openids = validate(body, "data.openid")
    require_semantic_success(body, SuccessPolicy.EXPLICIT_ZERO)
"""
from __future__ import annotations
import enum
import json
from typing import Any

from .exceptions import InvalidJsonError, MissingFieldError, PlatformError

_MISSING = object()


class SuccessPolicy(enum.Enum):
    """How the ``errcode`` field is interpreted for a given operation.

    The platform is not consistent across endpoints, so the policy is chosen
    per operation instead of being unified:

    - ABSENT_OR_ZERO: no errcode, or errcode == 0
    - ABSENT: success only when errcode is missing (tag creation)
    - EXPLICIT_ZERO: errcode must be present and equal to 0 (mutations)
    """
    ABSENT_OR_ZERO = "absent_or_zero"
    ABSENT = "absent"
    EXPLICIT_ZERO = "explicit_zero"


def parse_json(body: str) -> Any:
    """Parse a response body, raising InvalidJsonError when it is not JSON."""
    try:
        return json.loads(body)
    except (TypeError, ValueError) as exc:
        raise InvalidJsonError(f"response is not valid JSON: {exc}") from exc


def lookup(document: Any, path: str) -> Any:
    """Resolve a dot-addressed path inside a parsed document.

    Numeric segments index into lists (``"tags.0.name"``).

    Raises:
        MissingFieldError: If any segment is absent
    """
    current = document
    for segment in path.split("."):
        value = _MISSING
        if isinstance(current, dict):
            value = current.get(segment, _MISSING)
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            if index < len(current):
                value = current[index]
        if value is _MISSING:
            raise MissingFieldError(path)
        current = value
    return current


def validate(body: str, required_path: str) -> Any:
    """Check a response body and return the value at ``required_path``.

    Args:
        body: Raw response body
        required_path: Dot-addressed path that must be present

    Returns:
        Value found at the path (``None`` for an explicit JSON null)

    Raises:
        InvalidJsonError: If the body is not valid JSON
        MissingFieldError: If the path is absent
    """
    return lookup(parse_json(body), required_path)


def _errcode(document: Any) -> Any:
    if isinstance(document, dict):
        return document.get("errcode", _MISSING)
    return _MISSING


def _is_zero(code: Any) -> bool:
    # bool is an int subclass
    if isinstance(code, bool):
        return False
    if isinstance(code, (int, float)):
        return code == 0
    if isinstance(code, str):
        return code.strip() == "0"
    return False


def _document_success(document: Any, policy: SuccessPolicy) -> bool:
    code = _errcode(document)
    if policy is SuccessPolicy.ABSENT:
        return code is _MISSING
    if policy is SuccessPolicy.EXPLICIT_ZERO:
        return code is not _MISSING and _is_zero(code)
    return code is _MISSING or _is_zero(code)


def is_semantic_success(body: str, policy: SuccessPolicy = SuccessPolicy.ABSENT_OR_ZERO) -> bool:
    """Return True when the platform reports success for ``body``.

    Raises:
        InvalidJsonError: If the body is not valid JSON
    """
    return _document_success(parse_json(body), policy)


def require_semantic_success(body: str, policy: SuccessPolicy = SuccessPolicy.ABSENT_OR_ZERO) -> Any:
    """Return the parsed document, or raise PlatformError on semantic failure.

    Raises:
        InvalidJsonError: If the body is not valid JSON
        PlatformError: If the platform reports an error (``code`` is None when
            an explicit errcode was required but missing)
    """
    document = parse_json(body)
    if _document_success(document, policy):
        return document
    code = _errcode(document)
    errmsg = document.get("errmsg", "") if isinstance(document, dict) else ""
    raise PlatformError(None if code is _MISSING else code, str(errmsg or ""))
