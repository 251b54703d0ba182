"""Shared test fixtures for moncash.

Provides a scriptable fake gateway served through
:class:`httpx.MockTransport`, a controllable clock for token-expiry
tests, and isolation of the ``MONCASH_*`` environment. These fixtures are
automatically discovered by pytest and available to all test modules.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Union

import httpx
import pytest

from moncash.output import reset_output
from moncash.sdk import MoncashClient


API_URL = "https://gateway.test/Api"
GATEWAY_URL = "https://gateway.test/Moncash-middleware"
TOKEN_PATH = "/oauth/token"

Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], Any]]


def json_response(data: Any, status_code: int = 200) -> httpx.Response:
    """Build an httpx.Response with a JSON body."""
    return httpx.Response(status_code, json=data)


def token_response(access_token: str = "test-access-token", expires_in: Any = 59) -> httpx.Response:
    """Build a token endpoint response."""
    return json_response({"access_token": access_token, "expires_in": expires_in, "token_type": "bearer"})


class FakeGateway:
    """Scriptable stand-in for the gateway API.

    Each path holds a queue of replies: an :class:`httpx.Response`, an
    exception to raise, or a callable taking the request (sync or async).
    Replies are consumed in order; the last one repeats. The token endpoint
    hands out ``token-1``, ``token-2``, ... unless scripted.
    """

    def __init__(self) -> None:
        self.replies: dict[str, list[Reply]] = defaultdict(list)
        self.requests: list[httpx.Request] = []
        self._tokens_issued = 0

    def add(self, path: str, *replies: Reply) -> None:
        self.replies[path].extend(replies)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if _api_path(r) == path]

    def handler(self, request: httpx.Request) -> Any:
        self.requests.append(request)
        path = _api_path(request)
        queue = self.replies.get(path)

        if not queue:
            if path == TOKEN_PATH:
                self._tokens_issued += 1
                return token_response(f"token-{self._tokens_issued}")
            return json_response({"message": f"no reply scripted for {path}"}, 500)

        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            # a fresh copy, so repeated replies don't share stream state
            return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)
        return reply(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def _api_path(request: httpx.Request) -> str:
    path = request.url.path
    prefix = httpx.URL(API_URL).path
    return path[len(prefix):] if path.startswith(prefix) else path


class FakeClock:
    """Manually advanced replacement for :func:`time.monotonic`."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test."""
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear MONCASH_* variables so the developer's shell never leaks in."""
    for var in [
        "MONCASH_CLIENT_ID",
        "MONCASH_CLIENT_SECRET",
        "MONCASH_MODE",
        "MONCASH_BASE_URL",
        "MONCASH_GATEWAY_URL",
        "MONCASH_TIMEOUT",
        "MONCASH_MAX_RETRIES",
        "MONCASH_TOKEN_MIN_TTL",
        "MONCASH_TOKEN_MARGIN",
    ]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_client(gateway: FakeGateway) -> Callable[..., MoncashClient]:
    """Factory for MoncashClient instances wired to the fake gateway."""

    def _make(**kwargs: Any) -> MoncashClient:
        kwargs.setdefault("client_id", "client-id")
        kwargs.setdefault("client_secret", "client-secret")
        kwargs.setdefault("base_url", API_URL)
        kwargs.setdefault("gateway_url", GATEWAY_URL)
        kwargs.setdefault("transport", gateway.transport)
        return MoncashClient(**kwargs)

    return _make
