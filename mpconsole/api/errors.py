"""Error handlers and the JSON response envelope of the console API."""
from __future__ import annotations
from typing import Any, Optional

from flask import jsonify
from werkzeug.exceptions import HTTPException

from mpconsole.core.wechat.exceptions import (
    MappingStoreError,
    TransportError,
    WeChatError,
)

CODE_SUCCESS = 1
CODE_FAILURE = 2


def envelope(data: Any = None, error: Optional[Any] = None, status: int = 200):
    """Build the console response: ``{"code": 1|2, "message": ..., "data": ...}``."""
    if error is None:
        return jsonify({"code": CODE_SUCCESS, "message": None, "data": data}), status
    return jsonify({"code": CODE_FAILURE, "message": str(error), "data": data}), status


def status_for(error: WeChatError) -> int:
    """HTTP status used when a platform error reaches the router."""
    if isinstance(error, TransportError):
        return 502
    if isinstance(error, MappingStoreError):
        return 500
    return 200


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(WeChatError)
    def platform_error(error):
        """Handle platform errors that escaped a route."""
        app.logger.warning("Platform operation failed: %s", error)
        return envelope(error=error, status=status_for(error))

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request errors."""
        return envelope(error=getattr(error, "description", None) or "Bad Request", status=400)

    @app.errorhandler(401)
    def unauthorized(error):
        """Handle 401 Unauthorized errors."""
        return envelope(error="Operator token required", status=401)

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        return envelope(error="Resource not found", status=404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 Method Not Allowed errors."""
        return envelope(error="Method not allowed", status=405)

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error."""
        app.logger.error(f"Internal error: {error}", exc_info=True)
        return envelope(error="An unexpected error occurred", status=500)

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Pass through HTTP errors
        if isinstance(error, HTTPException):
            return error

        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return envelope(error="An unexpected error occurred", status=500)
