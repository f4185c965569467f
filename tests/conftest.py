"""Pytest shared fixtures: stubbed platform API and Flask test client."""
import json
import os
import pathlib
import sys
import tempfile
import threading
from types import SimpleNamespace
from typing import Optional
from urllib.parse import urlparse

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("APP_ID", "wx-test-app")
os.environ.setdefault("APP_SECRET", "test-app-secret")
os.environ.setdefault("OPERATOR_TOKEN", "operator-test-token")
os.environ.setdefault("WECHAT_API_BASE_URL", "https://api.test")
os.environ.setdefault("TOKEN_REFRESH_ENABLED", "false")
os.environ.setdefault("MAPPING_FILE_PATH", str(pathlib.Path(tempfile.mkdtemp()) / "data.json"))

import pytest
import requests

from mpconsole.config.settings import AppConfig
from mpconsole.core.wechat import CredentialRefresher, CredentialStore, RequestPipeline
from mpconsole.flask_app import create_app

BASE_URL = "https://api.test"
OPERATOR_TOKEN = "operator-test-token"
TOKEN_PATH = "/cgi-bin/token"


# ─────────────────────────────────────────────────────────────────────────────
# Platform Stub
# ─────────────────────────────────────────────────────────────────────────────
class StubResponse:
    """Response whose ``text`` is decoded the way requests does for a charset-less text/plain body."""

    def __init__(
        self,
        payload=None,
        status_code: int = 200,
        text: Optional[str] = None,
        content: Optional[bytes] = None,
    ):
        self.status_code = status_code
        if content is None:
            content = (text if text is not None else json.dumps(payload, ensure_ascii=False)).encode("utf-8")
        self.content = content
        self.text = content.decode("iso-8859-1")

    def json(self):
        return json.loads(self.content.decode("utf-8"))


class FakePlatform:
    """Records outbound calls and answers them from per-path queues.

    A queued entry may be a dict (JSON payload), a StubResponse, an exception
    instance (raised) or a callable ``(params, body) -> entry``. The last entry
    of a queue is reused once the others have been consumed.
    """

    def __init__(self):
        self.calls = []
        self.routes = {}
        self._lock = threading.Lock()
        self.on(TOKEN_PATH, {"access_token": "token-1", "expires_in": 7200})

    def on(self, path: str, *responses):
        self.routes[path] = list(responses)
        return self

    def calls_to(self, path: str):
        return [call for call in self.calls if call.path == path]

    def get(self, url, params=None, timeout=None, **kwargs):
        return self._dispatch("GET", url, params, None, None, kwargs.get("headers"), timeout)

    def post(self, url, params=None, data=None, headers=None, timeout=None, **kwargs):
        body = json.loads(data.decode("utf-8")) if data else None
        return self._dispatch("POST", url, params, body, data, headers, timeout)

    def _dispatch(self, method, url, params, body, raw, headers, timeout):
        path = urlparse(url).path
        with self._lock:
            self.calls.append(
                SimpleNamespace(
                    method=method,
                    path=path,
                    params=dict(params or {}),
                    body=body,
                    raw=raw,
                    headers=headers or {},
                    timeout=timeout,
                )
            )
            queue = self.routes.get(path)
            if not queue:
                raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
            response = queue.pop(0) if len(queue) > 1 else queue[0]

        if callable(response):
            response = response(params or {}, body)
        if isinstance(response, Exception):
            raise response
        if hasattr(response, "status_code"):
            return response
        return StubResponse(response)


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Prevent unit tests from reaching the live platform API."""

    def _stub_get(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP GET in unit test: {url}")

    def _stub_post(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP POST in unit test: {url}")

    monkeypatch.setattr(requests, "get", _stub_get)
    monkeypatch.setattr(requests, "post", _stub_post)


@pytest.fixture()
def platform(monkeypatch):
    """Stubbed platform API answering the token endpoint by default."""
    fake = FakePlatform()
    monkeypatch.setattr(requests, "get", fake.get)
    monkeypatch.setattr(requests, "post", fake.post)
    return fake


@pytest.fixture()
def pipeline(platform):
    """Request pipeline wired to the stubbed platform (retry budget 3)."""
    store = CredentialStore()
    refresher = CredentialRefresher(store, "wx-test-app", "test-app-secret", base_url=BASE_URL)
    return RequestPipeline(refresher, base_url=BASE_URL)


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
def make_config(**overrides) -> AppConfig:
    base = dict(
        app_id="wx-test-app",
        app_secret="test-app-secret",
        operator_token=OPERATOR_TOKEN,
        platform_base_url=BASE_URL,
        retry_budget=3,
        request_timeout=5.0,
        refresh_interval=1800.0,
        token_refresh_enabled=False,
        mapping_file_path="data.json",
    )
    base.update(overrides)
    return AppConfig(**base)


@pytest.fixture()
def app(tmp_path):
    flask_app = create_app(make_config(mapping_file_path=str(tmp_path / "data.json")))
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app, platform):
    """Flask test client with the platform API stubbed."""
    with app.test_client() as client:
        yield client


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {OPERATOR_TOKEN}"}


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires live platform credentials)"
    )
