"""Tests for the client-credentials token exchange."""

from __future__ import annotations

import asyncio
import base64
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest

from moncash.auth.acquirer import TOKEN_PATH, TokenAcquirer
from moncash.auth.token_cache import TokenCache
from moncash.exceptions import AuthError, GatewayError, TimeoutError_
from moncash.models import ClientCredentials


API_URL = "https://gateway.test/Api"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _acquire(handler, cache: TokenCache | None = None, timeout: float = 30.0) -> tuple[str, TokenCache]:
    """Run one acquisition against *handler* and return the token and cache."""
    cache = cache or TokenCache()

    async def _run() -> str:
        async with httpx.AsyncClient(base_url=API_URL, transport=httpx.MockTransport(handler)) as http:
            acquirer = TokenAcquirer(
                http,
                ClientCredentials(client_id="my-client", client_secret="my-secret"),
                cache,
                timeout=timeout,
            )
            return await acquirer.acquire()

    return asyncio.run(_run()), cache


def _respond(data: Any, status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=data)

    return handler


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------


class TestTokenRequest:
    def test_posts_client_credentials_grant(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"access_token": "abc", "expires_in": 59})

        _acquire(handler)

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == f"{API_URL}{TOKEN_PATH}"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert request.headers["accept"] == "application/json"

        form = parse_qs(request.content.decode())
        assert form == {"grant_type": ["client_credentials"], "scope": ["read,write"]}

    def test_basic_authorization_header(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"access_token": "abc", "expires_in": 59})

        _acquire(handler)

        scheme, _, encoded = seen[0].headers["authorization"].partition(" ")
        assert scheme == "Basic"
        assert base64.b64decode(encoded) == b"my-client:my-secret"


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


class TestSuccessfulAcquisition:
    def test_returns_and_caches_token(self) -> None:
        token, cache = _acquire(_respond({"access_token": "fresh", "expires_in": 3600}))
        assert token == "fresh"
        assert cache.get() == "fresh"

    def test_expiry_from_expires_in(self, clock) -> None:
        cache = TokenCache(clock=clock)
        _acquire(_respond({"access_token": "fresh", "expires_in": 3600}), cache=cache)
        assert cache.token.expires_at == clock.now + 3600

    @pytest.mark.parametrize("expires_in", [None, "soon", {"x": 1}])
    def test_unusable_expires_in_falls_back_to_floor(self, clock, expires_in: Any) -> None:
        cache = TokenCache(minimum_ttl=30, safety_margin=10, clock=clock)
        body: dict[str, Any] = {"access_token": "fresh"}
        if expires_in is not None:
            body["expires_in"] = expires_in
        _acquire(_respond(body), cache=cache)
        assert cache.token.expires_at == clock.now + 30
        assert cache.is_valid()

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity", '"nan"', "1e400", "1" + "0" * 400])
    def test_non_finite_expires_in_falls_back_to_floor(self, clock, literal: str) -> None:
        content = f'{{"access_token": "fresh", "expires_in": {literal}}}'.encode()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=content, headers={"Content-Type": "application/json"})

        cache = TokenCache(minimum_ttl=30, safety_margin=10, clock=clock)
        _acquire(handler, cache=cache)
        assert cache.token.expires_at == clock.now + 30
        assert cache.is_valid()

    def test_numeric_string_expires_in(self, clock) -> None:
        cache = TokenCache(clock=clock)
        _acquire(_respond({"access_token": "fresh", "expires_in": "120"}), cache=cache)
        assert cache.token.expires_at == clock.now + 120

    def test_replaces_previous_token(self) -> None:
        cache = TokenCache()
        cache.set("old", 3600)
        _acquire(_respond({"access_token": "new", "expires_in": 3600}), cache=cache)
        assert cache.get() == "new"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailedAcquisition:
    def test_error_status_raises_auth_error_with_body(self) -> None:
        body = {"error": "unauthorized", "error_description": "Bad credentials"}
        with pytest.raises(AuthError) as exc_info:
            _acquire(_respond(body, status_code=401))

        exc = exc_info.value
        assert exc.status_code == 401
        assert exc.raw_body == body
        assert "401" in str(exc)
        assert "Bad credentials" in str(exc)

    def test_unparseable_error_body_does_not_mask_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="<html>Service Unavailable</html>")

        with pytest.raises(AuthError) as exc_info:
            _acquire(handler)

        assert exc_info.value.status_code == 503
        assert exc_info.value.raw_body == "<html>Service Unavailable</html>"

    def test_empty_error_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400)

        with pytest.raises(AuthError) as exc_info:
            _acquire(handler)

        assert exc_info.value.status_code == 400
        assert exc_info.value.raw_body is None

    @pytest.mark.parametrize(
        "body",
        [
            {"expires_in": 59},
            {"access_token": "", "expires_in": 59},
            {"access_token": None},
            {"access_token": 1234},
            ["not", "an", "object"],
        ],
    )
    def test_success_without_usable_token_is_auth_error(self, body: Any) -> None:
        cache = TokenCache()
        with pytest.raises(AuthError):
            _acquire(_respond(body), cache=cache)
        assert cache.token is None

    def test_failure_leaves_previous_token_untouched(self) -> None:
        cache = TokenCache()
        cache.set("old", 3600)
        with pytest.raises(AuthError):
            _acquire(_respond({"error": "nope"}, status_code=500), cache=cache)
        assert cache.get() == "old"

    def test_timeout_raises_timeout_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(TimeoutError_):
            _acquire(handler)

    def test_transport_failure_raises_gateway_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GatewayError) as exc_info:
            _acquire(handler)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_does_not_retry(self) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(500, json={"message": "boom"})

        with pytest.raises(AuthError):
            _acquire(handler)
        assert len(calls) == 1
