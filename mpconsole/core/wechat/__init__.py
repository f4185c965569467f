"""WeChat Official Account platform API client library.

This package provides a modular, testable interface to the platform
operations used by the operator console.

Architecture:
- credentials.py: access token store, refresher and scheduled refresh
- pipeline.py: bounded-retry request pipeline shared by every operation
- validation.py: JSON response validation and errcode interpretation
- models.py: decoded platform resources (Tag, Template, UserInfo)
- tags.py: tag CRUD and tag membership
- templates.py: private template listing
- users.py: subscriber enumeration and profiles
- messages.py: template message delivery
- exceptions.py: typed exceptions for error handling

Usage:
    from mpconsole.core.wechat import (
        CredentialStore, CredentialRefresher, RequestPipeline, TagService,
    )

    store = CredentialStore()
    refresher = CredentialRefresher(store, app_id, app_secret)
    pipeline = RequestPipeline(refresher)

    tag_service = TagService(pipeline)
    tag_service.create_tag("vip")
"""
from .credentials import (
    CredentialStore,
    CredentialRefresher,
    RefreshScheduler,
    DEFAULT_BASE_URL,
    DEFAULT_RETRY_BUDGET,
    REQUEST_TIMEOUT,
    REFRESH_INTERVAL,
)
from .exceptions import (
    WeChatError,
    TransportError,
    RetryExhaustedError,
    InvalidJsonError,
    MissingFieldError,
    PlatformError,
    MappingNotFoundError,
    MappingStoreError,
)
from .pipeline import PlatformRequest, RequestPipeline
from .validation import (
    SuccessPolicy,
    parse_json,
    lookup,
    validate,
    is_semantic_success,
    require_semantic_success,
)
from .models import Tag, Template, UserInfo
from .tags import TagService
from .templates import TemplateService
from .users import UserService
from .messages import MessageService

__all__ = [
    # Credentials
    "CredentialStore",
    "CredentialRefresher",
    "RefreshScheduler",
    "DEFAULT_BASE_URL",
    "DEFAULT_RETRY_BUDGET",
    "REQUEST_TIMEOUT",
    "REFRESH_INTERVAL",

    # Exceptions
    "WeChatError",
    "TransportError",
    "RetryExhaustedError",
    "InvalidJsonError",
    "MissingFieldError",
    "PlatformError",
    "MappingNotFoundError",
    "MappingStoreError",

    # Pipeline
    "PlatformRequest",
    "RequestPipeline",

    # Validation
    "SuccessPolicy",
    "parse_json",
    "lookup",
    "validate",
    "is_semantic_success",
    "require_semantic_success",

    # Models
    "Tag",
    "Template",
    "UserInfo",

    # Services
    "TagService",
    "TemplateService",
    "UserService",
    "MessageService",
]
