"""Bounded-retry request pipeline for the WeChat platform API.

Every domain operation is a (build_request, decode) pair handed to
``RequestPipeline.execute``. The pipeline attaches the current access token,
sends the request and decides whether to retry:

- transport failures (network error, timeout, non-200) are retried within
  the retry budget, forcing a token refresh before the next attempt;
- anything raised by ``decode`` (invalid JSON, missing field, platform
  errcode) propagates to the caller immediately and is never retried.
"""
from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, TypeVar

import requests

from .credentials import CredentialRefresher, DEFAULT_BASE_URL, DEFAULT_RETRY_BUDGET, REQUEST_TIMEOUT
from .exceptions import InvalidJsonError, RetryExhaustedError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

JSON_CONTENT_TYPE = "application/json;charset=utf-8"


@dataclass
class PlatformRequest:
    """One outbound call, without the access token.

    Attributes:
        method: "GET" or "POST"
        path: API path (e.g. "/cgi-bin/tags/get")
        params: Extra query parameters
        body: JSON payload for POST requests
    """
    method: str
    path: str
    params: Dict[str, Any] = field(default_factory=dict)
    body: Optional[Any] = None

    @classmethod
    def get(cls, path: str, **params: Any) -> "PlatformRequest":
        return cls("GET", path, dict(params))

    @classmethod
    def post(cls, path: str, body: Any) -> "PlatformRequest":
        return cls("POST", path, {}, body)


class RequestPipeline:
    """Executes platform operations with bounded retry and token renewal.

    Usage:
        pipeline = RequestPipeline(refresher)
        tags = pipeline.execute(
            lambda: PlatformRequest.get("/cgi-bin/tags/get"),
            decode_tags,
            operation="list_tags",
        )
    """

    def __init__(
        self,
        refresher: CredentialRefresher,
        base_url: str = DEFAULT_BASE_URL,
        retry_budget: int = DEFAULT_RETRY_BUDGET,
        timeout: float = REQUEST_TIMEOUT,
    ):
        """Initialize the pipeline.

        Args:
            refresher: Source of the current access token
            base_url: Platform base URL
            retry_budget: Maximum attempts per invocation
            timeout: Per-call timeout in seconds
        """
        self.refresher = refresher
        self.base_url = base_url.rstrip("/")
        self.retry_budget = max(1, int(retry_budget))
        self.timeout = timeout

    def execute(
        self,
        build_request: Callable[[], PlatformRequest],
        decode: Callable[[str], T],
        *,
        refresh_on_failure: bool = True,
        operation: str = "",
    ) -> T:
        """Run one platform operation.

        Args:
            build_request: Called on every attempt to build the request
            decode: Validates the raw body and returns the decoded value
            refresh_on_failure: Force a token refresh between attempts after a
                transport failure
            operation: Name used in logs and errors

        Returns:
            Whatever ``decode`` returns for the first transport success

        Raises:
            RetryExhaustedError: If every attempt failed at the transport level
            WeChatError: Any semantic failure raised by ``decode``
        """
        operation = operation or "platform_call"
        for attempt in range(1, self.retry_budget + 1):
            token = self.refresher.get_or_refresh()
            if not token:
                logger.warning("%s: no access token available (attempt %d)", operation, attempt)
            request = build_request()
            try:
                body = self._send(request, token or "", operation)
            except TransportError as exc:
                logger.warning("%s: attempt %d/%d failed: %s", operation, attempt, self.retry_budget, exc)
                if refresh_on_failure and attempt < self.retry_budget:
                    self.refresher.refresh()
                continue
            return decode(body)

        logger.error("%s: giving up after %d attempt(s)", operation, self.retry_budget)
        raise RetryExhaustedError(operation, self.retry_budget)

    def _send(self, request: PlatformRequest, token: str, operation: str) -> str:
        """Send one request and return the body of a 200 response.

        Raises:
            TransportError: On network error, timeout or non-200 status
            InvalidJsonError: If the body is not UTF-8
        """
        url = f"{self.base_url}{request.path}"
        params = dict(request.params)
        params["access_token"] = token

        try:
            if request.method.upper() == "GET":
                resp = requests.get(url, params=params, timeout=self.timeout)
            else:
                payload = json.dumps(request.body, ensure_ascii=False).encode("utf-8")
                resp = requests.post(
                    url,
                    params=params,
                    data=payload,
                    headers={"Content-Type": JSON_CONTENT_TYPE},
                    timeout=self.timeout,
                )
        except requests.RequestException as exc:
            raise TransportError(operation, str(exc)) from exc

        logger.debug("%s: %s %s -> %s", operation, request.method, request.path, resp.status_code)
        if resp.status_code != 200:
            raise TransportError(operation, "unexpected status", resp.status_code)
        # The platform answers in UTF-8 whatever Content-Type says
        try:
            return resp.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidJsonError(f"response is not valid UTF-8: {exc}") from exc
