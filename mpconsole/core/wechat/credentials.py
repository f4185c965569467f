"""Access token lifecycle for the WeChat platform API.

Handles storage, on-demand and scheduled renewal of the single access token
shared by every outbound call.

Usage:
    store = CredentialStore()
    refresher = CredentialRefresher(store, app_id, app_secret)
    scheduler = RefreshScheduler(refresher)
    scheduler.start()
    token = refresher.get_or_refresh()
"""
from __future__ import annotations
import logging
import threading
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.weixin.qq.com"
REQUEST_TIMEOUT = 5
DEFAULT_RETRY_BUDGET = 3
REFRESH_INTERVAL = 30 * 60
TOKEN_PATH = "/cgi-bin/token"
GRANT_TYPE = "client_credential"


class CredentialStore:
    """Holds the current access token (last write wins).

    Safe for concurrent readers overlapping a writer: a read returns either
    the previous or the new token, never a partial value.
    """

    def __init__(self, token: Optional[str] = None):
        self._lock = threading.Lock()
        self._token = token or None

    def get(self) -> Optional[str]:
        with self._lock:
            return self._token

    def set(self, token: str) -> None:
        with self._lock:
            self._token = token

    def clear(self) -> None:
        with self._lock:
            self._token = None

    @property
    def has_credential(self) -> bool:
        return bool(self.get())


class CredentialRefresher:
    """Fetches access tokens from the token endpoint and publishes them.

    All refreshes are serialised by one lock. ``get_or_refresh`` re-checks the
    store once it holds the lock, so callers that pile up on an empty store
    share a single token fetch.
    """

    def __init__(
        self,
        store: CredentialStore,
        app_id: str,
        app_secret: str,
        base_url: str = DEFAULT_BASE_URL,
        retry_budget: int = DEFAULT_RETRY_BUDGET,
        timeout: float = REQUEST_TIMEOUT,
    ):
        """Initialize the refresher.

        Args:
            store: Store the fresh token is written to
            app_id: Official account application identifier
            app_secret: Official account application secret
            base_url: Platform base URL
            retry_budget: Maximum attempts per refresh
            timeout: Per-call timeout in seconds
        """
        self.store = store
        self.app_id = app_id
        self.app_secret = app_secret
        self.base_url = base_url.rstrip("/")
        self.retry_budget = max(1, int(retry_budget))
        self.timeout = timeout
        self._refresh_lock = threading.Lock()

    def refresh(self) -> bool:
        """Fetch a new token and write it to the store.

        Returns:
            True if the store was updated, False if every attempt failed (the
            previous token, possibly none, is left in place)
        """
        with self._refresh_lock:
            return self._refresh_locked()

    def get_or_refresh(self) -> Optional[str]:
        """Return the current token, refreshing synchronously when there is none."""
        token = self.store.get()
        if token:
            return token
        with self._refresh_lock:
            token = self.store.get()
            if token:
                return token
            self._refresh_locked()
        return self.store.get()

    def _refresh_locked(self) -> bool:
        for attempt in range(1, self.retry_budget + 1):
            token = self._request_token(attempt)
            if token:
                self.store.set(token)
                logger.info("Access token refreshed (length=%d, attempt=%d)", len(token), attempt)
                return True
        logger.error("Access token refresh failed after %d attempt(s)", self.retry_budget)
        return False

    def _request_token(self, attempt: int) -> Optional[str]:
        """Run one token request; return the token or None on any failure."""
        url = f"{self.base_url}{TOKEN_PATH}"
        params = {
            "grant_type": GRANT_TYPE,
            "appid": self.app_id,
            "secret": self.app_secret,
        }
        try:
            resp = requests.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Token request failed (attempt %d): %s", attempt, exc)
            return None

        if resp.status_code != 200:
            logger.warning("Token request returned status %s (attempt %d)", resp.status_code, attempt)
            return None

        try:
            payload = resp.json()
        except ValueError:
            logger.warning("Token response is not valid JSON (attempt %d)", attempt)
            return None

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            errcode = payload.get("errcode") if isinstance(payload, dict) else None
            logger.warning("Token response has no access_token (attempt %d, errcode=%s)", attempt, errcode)
            return None
        return token


class RefreshScheduler:
    """Background thread refreshing the token immediately and then on a fixed interval.

    Individual failures are logged and left for the next tick. ``stop()``
    ends the loop, which otherwise runs for the lifetime of the process.
    """

    def __init__(self, refresher: CredentialRefresher, interval: float = REFRESH_INTERVAL):
        self.refresher = refresher
        self.interval = interval
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        """Start the refresh loop (no-op if already running)."""
        with self._lock:
            if self.is_running:
                return
            # Each loop owns its stop event; a loop left over from a timed-out stop() stays stopped
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop_event,), name="wechat-token-refresh", daemon=True
            )
            self._thread.start()
        logger.info("Token refresh scheduler started (interval=%ss)", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to exit and wait for the thread."""
        with self._lock:
            if self._stop_event is not None:
                self._stop_event.set()
            thread = self._thread
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("Token refresh scheduler stopped")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                if not self.refresher.refresh():
                    logger.warning("Scheduled token refresh failed; retrying in %ss", self.interval)
            except Exception:
                logger.exception("Unexpected error during scheduled token refresh")
            stop_event.wait(self.interval)
