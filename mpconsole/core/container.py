"""Wiring of the platform components for one process."""
from __future__ import annotations
from dataclasses import dataclass

from mpconsole.core.broadcast_service import BroadcastService
from mpconsole.core.mapping_store import TemplateTagStore
from mpconsole.core.wechat import (
    CredentialRefresher,
    CredentialStore,
    MessageService,
    RefreshScheduler,
    RequestPipeline,
    TagService,
    TemplateService,
    UserService,
)


@dataclass
class PlatformContainer:
    """Owns the credential store and every service built on top of it."""
    store: CredentialStore
    refresher: CredentialRefresher
    scheduler: RefreshScheduler
    pipeline: RequestPipeline
    tags: TagService
    templates: TemplateService
    users: UserService
    messages: MessageService
    mapping: TemplateTagStore
    broadcast: BroadcastService

    @classmethod
    def from_config(cls, cfg, store: CredentialStore | None = None) -> "PlatformContainer":
        """Build the component graph from an AppConfig.

        Args:
            cfg: Application configuration
            store: Credential store to use (a fresh one by default)
        """
        store = store or CredentialStore()
        refresher = CredentialRefresher(
            store,
            cfg.app_id,
            cfg.app_secret,
            base_url=cfg.platform_base_url,
            retry_budget=cfg.retry_budget,
            timeout=cfg.request_timeout,
        )
        pipeline = RequestPipeline(
            refresher,
            base_url=cfg.platform_base_url,
            retry_budget=cfg.retry_budget,
            timeout=cfg.request_timeout,
        )
        tags = TagService(pipeline)
        messages = MessageService(pipeline)
        mapping = TemplateTagStore(cfg.mapping_file_path)
        return cls(
            store=store,
            refresher=refresher,
            scheduler=RefreshScheduler(refresher, interval=cfg.refresh_interval),
            pipeline=pipeline,
            tags=tags,
            templates=TemplateService(pipeline),
            users=UserService(pipeline),
            messages=messages,
            mapping=mapping,
            broadcast=BroadcastService(mapping, tags, messages),
        )
