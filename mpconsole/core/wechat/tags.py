"""WeChat user tag management operations."""
from __future__ import annotations
import logging
from typing import List, Optional

from .models import Tag, chunked, decode_list, decode_openid_page
from .pipeline import PlatformRequest, RequestPipeline
from .validation import SuccessPolicy, require_semantic_success, validate

logger = logging.getLogger(__name__)

# Platform limit for batchtagging / batchuntagging
MEMBERSHIP_BATCH_SIZE = 50


def _decode_tags(body: str) -> List[Tag]:
    return decode_list(validate(body, "tags"), "tags", Tag.from_dict)


def _decode_created_tag(body: str) -> Optional[Tag]:
    document = require_semantic_success(body, SuccessPolicy.ABSENT)
    echoed = document.get("tag") if isinstance(document, dict) else None
    if isinstance(echoed, dict) and "id" in echoed:
        return Tag.from_dict(echoed, "tag")
    return None


def _decode_mutation(body: str) -> bool:
    require_semantic_success(body, SuccessPolicy.EXPLICIT_ZERO)
    return True


class TagService:
    """Service for managing WeChat user tags and tag membership."""

    def __init__(self, pipeline: RequestPipeline):
        """Initialize tag service.

        Args:
            pipeline: Request pipeline shared by all operations
        """
        self.pipeline = pipeline

    def list_tags(self) -> List[Tag]:
        """Return every tag defined on the account."""
        tags = self.pipeline.execute(
            lambda: PlatformRequest.get("/cgi-bin/tags/get"),
            _decode_tags,
            operation="list_tags",
        )
        logger.info("Listed %d tag(s)", len(tags))
        return tags

    def create_tag(self, name: str) -> Optional[Tag]:
        """Create a tag.

        Success is the absence of ``errcode`` in the response (the platform
        answers with the created tag on success).

        Args:
            name: Tag name

        Returns:
            Created tag when the platform echoes it, otherwise None

        Raises:
            ValueError: If name is empty
            PlatformError: If the platform returned an errcode
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Tag name must not be empty")
        tag = self.pipeline.execute(
            lambda: PlatformRequest.post("/cgi-bin/tags/create", {"tag": {"name": name}}),
            _decode_created_tag,
            operation="create_tag",
        )
        logger.info("Created tag '%s' (id=%s)", name, tag.id if tag else "?")
        return tag

    def delete_tag(self, tag_id: int) -> bool:
        """Delete a tag; requires an explicit ``errcode`` of 0."""
        result = self.pipeline.execute(
            lambda: PlatformRequest.post("/cgi-bin/tags/delete", {"tag": {"id": int(tag_id)}}),
            _decode_mutation,
            operation="delete_tag",
        )
        logger.info("Deleted tag %s", tag_id)
        return result

    def add_members(self, tag_id: int, openids: List[str]) -> bool:
        """Tag subscribers (sent in batches of 50)."""
        return self._edit_members("/cgi-bin/tags/members/batchtagging", "add_tag_members", tag_id, openids)

    def remove_members(self, tag_id: int, openids: List[str]) -> bool:
        """Untag subscribers (sent in batches of 50)."""
        return self._edit_members("/cgi-bin/tags/members/batchuntagging", "remove_tag_members", tag_id, openids)

    def list_member_openids(self, tag_id: int) -> List[str]:
        """Return the openids of every subscriber carrying a tag.

        Pages are followed through ``next_openid``. A transport failure does
        not force a token refresh for this operation.
        """
        openids: List[str] = []
        cursor = ""
        while True:
            page, next_cursor = self.pipeline.execute(
                lambda cursor=cursor: PlatformRequest.post(
                    "/cgi-bin/user/tag/get", {"tagid": int(tag_id), "next_openid": cursor}
                ),
                decode_openid_page,
                refresh_on_failure=False,
                operation="list_tag_members",
            )
            openids.extend(page)
            if not page or not next_cursor or next_cursor == cursor:
                break
            cursor = next_cursor
        logger.info("Tag %s has %d member(s)", tag_id, len(openids))
        return openids

    def _edit_members(self, path: str, operation: str, tag_id: int, openids: List[str]) -> bool:
        for batch in chunked(openids, MEMBERSHIP_BATCH_SIZE):
            self.pipeline.execute(
                lambda batch=batch: PlatformRequest.post(path, {"tagid": int(tag_id), "openid_list": batch}),
                _decode_mutation,
                operation=operation,
            )
        logger.info("%s: tag %s, %d openid(s)", operation, tag_id, len(openids))
        return True
