"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with the console blueprints, the platform component
container and the token refresh scheduler.
"""
from __future__ import annotations
import logging
import os

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from mpconsole.config import AppConfig, load_settings
from mpconsole.core.container import PlatformContainer

EXTENSION_KEY = "mpconsole"

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: AppConfig | None = None, start_scheduler: bool = False) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Configuration (loaded from the environment by default)
        start_scheduler: Start the background token refresh immediately

    Returns:
        Flask app with the PlatformContainer in ``app.extensions["mpconsole"]``
    """
    cfg = cfg or load_settings()

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.json.ensure_ascii = False

    if cfg.trust_proxy:
        # Trust X-Forwarded-* headers from the reverse proxy
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    container = PlatformContainer.from_config(cfg)
    app.extensions[EXTENSION_KEY] = container

    # Register blueprints
    from mpconsole.api import console, errors, health

    app.register_blueprint(health.bp)
    app.register_blueprint(console.bp, url_prefix="/api")

    # Register error handlers
    errors.register_error_handlers(app)

    if start_scheduler and cfg.token_refresh_enabled:
        container.scheduler.start()

    logger.info("Console API registered at /api (platform=%s)", cfg.platform_base_url)
    return app


def get_container(app: Flask) -> PlatformContainer:
    """Return the component container of an app built by create_app()."""
    return app.extensions[EXTENSION_KEY]


def start_token_refresh(app: Flask) -> None:
    """Start the scheduled token refresh of an app (if enabled)."""
    cfg = app.config["APP_CONFIG"]
    if not cfg.token_refresh_enabled:
        logger.info("Scheduled token refresh disabled (TOKEN_REFRESH_ENABLED=false)")
        return
    get_container(app).scheduler.start()


def stop_token_refresh(app: Flask, timeout: float | None = 5.0) -> None:
    """Stop the scheduled token refresh of an app."""
    get_container(app).scheduler.stop(timeout)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for standalone runs."""
    logging.basicConfig(
        level=(level or os.environ.get("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Application Instance (for Gunicorn)
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()


if __name__ == "__main__":
    configure_logging(app.config["APP_CONFIG"].log_level)
    start_token_refresh(app)
    try:
        app.run(
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "8990")),
        )
    finally:
        stop_token_refresh(app)
