"""Core Business Logic Module

This module provides the platform-facing logic of the operator console,
independent of the HTTP framework.

Module Structure:
    - wechat/               : WeChat platform client (credentials, pipeline,
                              validation, domain operations)
    - mapping_store.py      : template → tag association persistence
    - broadcast_service.py  : template broadcast to a tag's subscribers
    - container.py          : component wiring for one process

Usage Pattern:
    from mpconsole.core.container import PlatformContainer
    from mpconsole.config import load_settings

    container = PlatformContainer.from_config(load_settings())
    container.scheduler.start()
    failed = container.broadcast.send_template_by_tag(template_id, url, {"first": "Hello"})
"""
