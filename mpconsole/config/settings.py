"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SECRETS_DIR = "/run/secrets"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path(SECRETS_DIR) / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from %s", secret_name, SECRETS_DIR)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read %s/%s: %s", SECRETS_DIR, secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.info("Loaded %s from environment (fallback)", env_var)
            return secret_value

    return None


def _env_bool(var_name: str, default: bool) -> bool:
    value = os.environ.get(var_name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_number(var_name: str, default: float, cast=float, minimum: float | None = None):
    """Parse a numeric environment variable.

    Raises:
        RuntimeError: If the value is not a number or is below ``minimum``
    """
    raw = os.environ.get(var_name)
    if raw is None or not raw.strip():
        return cast(default)
    try:
        value = cast(raw.strip())
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be a number, got {raw!r}.") from None
    if minimum is not None and value < minimum:
        raise RuntimeError(f"Environment variable {var_name} must be >= {minimum}, got {value}.")
    return value


def _require(value: str | None, var_name: str) -> str:
    if not value:
        raise RuntimeError(f"Environment variable {var_name} is required.")
    return value


@dataclass
class AppConfig:
    """Application configuration container."""
    # Official account identity
    app_id: str
    app_secret: str

    # Console access
    operator_token: str

    # Platform API
    platform_base_url: str = "https://api.weixin.qq.com"
    retry_budget: int = 3
    request_timeout: float = 5.0
    refresh_interval: float = 1800.0
    token_refresh_enabled: bool = True

    # Persistence
    mapping_file_path: str = "data.json"

    # Flask
    trust_proxy: bool = False
    log_level: str = "INFO"

    def __repr__(self) -> str:
        return (
            f"AppConfig(app_id_length={len(self.app_id)}, platform_base_url={self.platform_base_url!r}, "
            f"retry_budget={self.retry_budget}, request_timeout={self.request_timeout}, "
            f"refresh_interval={self.refresh_interval}, mapping_file_path={self.mapping_file_path!r})"
        )


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    app_id = _require(os.environ.get("APP_ID", "").strip(), "APP_ID")
    app_secret = _require(_load_secret_from_file("app_secret", "APP_SECRET"), "APP_SECRET")
    operator_token = _require(_load_secret_from_file("operator_token", "OPERATOR_TOKEN"), "OPERATOR_TOKEN")

    platform_base_url = os.environ.get("WECHAT_API_BASE_URL", "https://api.weixin.qq.com").strip().rstrip("/")
    retry_budget = _env_number("RETRY_BUDGET", 3, cast=int, minimum=1)
    request_timeout = _env_number("REQUEST_TIMEOUT", 5.0, minimum=0.1)
    refresh_interval = _env_number("TOKEN_REFRESH_INTERVAL", 1800.0, minimum=1)
    token_refresh_enabled = _env_bool("TOKEN_REFRESH_ENABLED", True)

    mapping_file_path = os.environ.get("MAPPING_FILE_PATH", "data.json").strip() or "data.json"
    trust_proxy = _env_bool("TRUST_PROXY", False)
    log_level = os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    # Identity is logged by length only
    logger.info(
        "Settings loaded: app_id length=%d, app_secret length=%d, operator_token length=%d",
        len(app_id),
        len(app_secret),
        len(operator_token),
    )
    logger.info(
        "Platform=%s retry_budget=%d timeout=%ss refresh_interval=%ss mapping=%s",
        platform_base_url,
        retry_budget,
        request_timeout,
        refresh_interval,
        mapping_file_path,
    )

    return AppConfig(
        app_id=app_id,
        app_secret=app_secret,
        operator_token=operator_token,
        platform_base_url=platform_base_url,
        retry_budget=retry_budget,
        request_timeout=request_timeout,
        refresh_interval=refresh_interval,
        token_refresh_enabled=token_refresh_enabled,
        mapping_file_path=mapping_file_path,
        trust_proxy=trust_proxy,
        log_level=log_level,
    )
