"""
Flask decorators for operator authorization.

The console API is protected by a static operator token compared in
constant time. The token is accepted from either header:

- ``Authorization: Bearer <token>``
- ``X-Operator-Token: <token>``
"""

import hmac
import logging
from functools import wraps
from typing import Optional

from flask import current_app, request

from mpconsole.api.errors import envelope

logger = logging.getLogger(__name__)


def extract_operator_token() -> Optional[str]:
    """Return the operator token presented by the current request, if any."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header:
        scheme, _, value = auth_header.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    token = request.headers.get("X-Operator-Token", "").strip()
    return token or None


def require_operator_token(fn):
    """Reject requests that do not carry the configured operator token."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        cfg = current_app.config["APP_CONFIG"]
        presented = extract_operator_token()
        if not presented:
            logger.warning("Console request without operator token: %s %s", request.method, request.path)
            return envelope(error="Operator token required", status=401)
        if not hmac.compare_digest(presented.encode("utf-8"), cfg.operator_token.encode("utf-8")):
            logger.warning("Console request with invalid operator token: %s %s", request.method, request.path)
            return envelope(error="Invalid operator token", status=401)
        return fn(*args, **kwargs)
    return wrapper
