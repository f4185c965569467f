"""WeChat subscriber enumeration operations."""
from __future__ import annotations
import logging
from typing import List

from .models import UserInfo, chunked, decode_list, decode_openid_page
from .pipeline import PlatformRequest, RequestPipeline
from .validation import validate

logger = logging.getLogger(__name__)

# Platform limit for user/info/batchget
USER_INFO_BATCH_SIZE = 100
DEFAULT_LANG = "zh_CN"


def _decode_user_infos(body: str) -> List[UserInfo]:
    return decode_list(validate(body, "user_info_list"), "user_info_list", UserInfo.from_dict)


class UserService:
    """Service for listing subscribers and their profiles."""

    def __init__(self, pipeline: RequestPipeline):
        """Initialize user service.

        Args:
            pipeline: Request pipeline shared by all operations
        """
        self.pipeline = pipeline

    def list_openids(self) -> List[str]:
        """Return the openid of every subscriber, following ``next_openid`` pages."""
        openids: List[str] = []
        cursor = ""
        while True:
            params = {"next_openid": cursor} if cursor else {}
            page, next_cursor = self.pipeline.execute(
                lambda params=params: PlatformRequest.get("/cgi-bin/user/get", **params),
                decode_openid_page,
                operation="list_openids",
            )
            openids.extend(page)
            if not page or not next_cursor or next_cursor == cursor:
                break
            cursor = next_cursor
        logger.info("Listed %d subscriber openid(s)", len(openids))
        return openids

    def batch_get_user_info(self, openids: List[str], lang: str = DEFAULT_LANG) -> List[UserInfo]:
        """Fetch subscriber profiles, 100 openids per platform call.

        Args:
            openids: Subscriber identifiers
            lang: Profile language

        Returns:
            Profiles in the order returned by the platform
        """
        users: List[UserInfo] = []
        for batch in chunked(openids, USER_INFO_BATCH_SIZE):
            user_list = [{"openid": openid, "lang": lang} for openid in batch]
            users.extend(
                self.pipeline.execute(
                    lambda user_list=user_list: PlatformRequest.post(
                        "/cgi-bin/user/info/batchget", {"user_list": user_list}
                    ),
                    _decode_user_infos,
                    operation="batch_get_user_info",
                )
            )
        logger.info("Fetched %d subscriber profile(s)", len(users))
        return users

    def list_all_user_info(self) -> List[UserInfo]:
        """Return the profile of every subscriber."""
        return self.batch_get_user_info(self.list_openids())
