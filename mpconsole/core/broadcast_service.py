"""
Broadcast Service Layer - Template messages to tagged subscribers

Architecture:
    Console API (/api/messages/template) ──> broadcast_service.py
        ├──> mapping_store.py (template → tag)
        ├──> TagService.list_member_openids (cohort)
        └──> MessageService.send_template (one call per subscriber)

The fan-out is sequential: each subscriber send completes before the next
begins. A failure for one subscriber is recorded and the fan-out continues;
failures resolving the cohort abort the whole broadcast.
"""
from __future__ import annotations
import logging
from typing import Dict, List, Mapping

from mpconsole.core.mapping_store import TemplateTagStore
from mpconsole.core.wechat import MessageService, TagService, WeChatError

logger = logging.getLogger(__name__)


def build_template_data(values: Mapping[str, object]) -> Dict[str, Dict[str, str]]:
    """Shape flat template values as the platform expects: ``{key: {"value": v}}``."""
    return {str(key): {"value": "" if value is None else str(value)} for key, value in values.items()}


class BroadcastService:
    """Sends a template to every subscriber of the tag mapped to it."""

    def __init__(self, store: TemplateTagStore, tags: TagService, messages: MessageService):
        self.store = store
        self.tags = tags
        self.messages = messages

    def send_template_by_tag(self, template_id: str, url: str, values: Mapping[str, object]) -> List[str]:
        """Broadcast a template to its mapped tag.

        Args:
            template_id: Template to send
            url: Link attached to the message
            values: Flat template values (``{"first": "Hello", ...}``)

        Returns:
            Openids the message could not be delivered to (empty on full success)

        Raises:
            MappingNotFoundError: If no tag is mapped to the template
            WeChatError: If the tag members could not be listed
        """
        tag_id = self.store.tag_for_template(template_id)
        data = build_template_data(values)
        openids = self.tags.list_member_openids(tag_id)
        logger.info("Broadcasting template %s to tag %s (%d subscriber(s))", template_id, tag_id, len(openids))

        failed: List[str] = []
        for openid in openids:
            try:
                self.messages.send_template(openid, template_id, url, data)
            except WeChatError as exc:
                logger.warning("Template %s not delivered to %s: %s", template_id, openid, exc)
                failed.append(openid)

        logger.info(
            "Broadcast of template %s finished: %d sent, %d failed",
            template_id,
            len(openids) - len(failed),
            len(failed),
        )
        return failed
