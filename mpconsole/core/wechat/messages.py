"""WeChat template message delivery."""
from __future__ import annotations
import logging
from typing import Any, Dict

from .pipeline import PlatformRequest, RequestPipeline
from .validation import SuccessPolicy, require_semantic_success

logger = logging.getLogger(__name__)


def _decode_send_result(body: str) -> bool:
    require_semantic_success(body, SuccessPolicy.EXPLICIT_ZERO)
    return True


class MessageService:
    """Service for sending template messages to single subscribers."""

    def __init__(self, pipeline: RequestPipeline):
        self.pipeline = pipeline

    def send_template(self, openid: str, template_id: str, url: str, data: Dict[str, Any]) -> bool:
        """Send one template message.

        Args:
            openid: Recipient
            template_id: Template to render
            url: Link opened when the message is tapped (may be empty)
            data: Template fields, already shaped as ``{"key": {"value": ...}}``

        Returns:
            True when the platform accepted the message

        Raises:
            PlatformError: If the platform did not answer with errcode 0
            TransportError: If every attempt failed at the transport level
        """
        payload = {
            "touser": openid,
            "template_id": template_id,
            "url": url,
            "data": data,
        }
        result = self.pipeline.execute(
            lambda: PlatformRequest.post("/cgi-bin/message/template/send", payload),
            _decode_send_result,
            operation="send_template",
        )
        logger.debug("Template %s sent to %s", template_id, openid)
        return result
