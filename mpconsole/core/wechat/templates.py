"""WeChat message template operations."""
from __future__ import annotations
import logging
from typing import List

from .models import Template, decode_list
from .pipeline import PlatformRequest, RequestPipeline
from .validation import validate

logger = logging.getLogger(__name__)


def _decode_templates(body: str) -> List[Template]:
    return decode_list(validate(body, "template_list"), "template_list", Template.from_dict)


class TemplateService:
    """Service for reading the account's private templates."""

    def __init__(self, pipeline: RequestPipeline):
        self.pipeline = pipeline

    def list_templates(self) -> List[Template]:
        """Return every private template added to the account."""
        templates = self.pipeline.execute(
            lambda: PlatformRequest.get("/cgi-bin/template/get_all_private_template"),
            _decode_templates,
            operation="list_templates",
        )
        logger.info("Listed %d template(s)", len(templates))
        return templates
