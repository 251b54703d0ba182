"""OAuth2 client-credentials token exchange.

This module provides :class:`TokenAcquirer`, which performs the
non-interactive Client Credentials grant (:rfc:`6749` section 4.4)
against the gateway's ``/oauth/token`` endpoint and stores the result in
a :class:`~moncash.auth.token_cache.TokenCache`.

The merchant authenticates with HTTP Basic credentials built by
:mod:`moncash.auth.credentials`; the form body asks for the
``read,write`` scope.

The acquirer never retries. Retrying after a rejected token is the
dispatcher's job, one layer up.

See Also:
    :class:`moncash.client.dispatcher.RequestDispatcher`, the only caller.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any

import httpx

from moncash.auth.credentials import basic_auth_header
from moncash.auth.token_cache import TokenCache
from moncash.client.response import extract_response_data, gateway_message
from moncash.exceptions import AuthError, GatewayError, TimeoutError_
from moncash.models import ClientCredentials

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth/token"
TOKEN_SCOPE = "read,write"


class TokenAcquirer:
    """Exchange client credentials for a bearer token.

    Args:
        http: The client used for the exchange. Its ``base_url`` must point
            at the gateway API root.
        credentials: The merchant's client id and secret.
        cache: Receives every token successfully acquired.
        timeout: Deadline in seconds for the whole exchange.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        credentials: ClientCredentials,
        cache: TokenCache,
        timeout: float = 30.0,
    ) -> None:
        self._http = http
        self._credentials = credentials
        self._cache = cache
        self._timeout = timeout

    async def acquire(self) -> str:
        """Fetch a fresh access token, cache it, and return it.

        Returns:
            The new access token.

        Raises:
            AuthError: If the endpoint answers a non-2xx status, or a 2xx
                without a usable ``access_token``.
            TimeoutError_: If the exchange exceeds the deadline.
            GatewayError: If no response was received at all.
        """
        token_data = await self._fetch_token()

        access_token = token_data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise AuthError(
                "Token response missing 'access_token' field",
                status_code=200,
                raw_body=token_data,
            )

        self._cache.set(access_token, _lifetime(token_data.get("expires_in")))
        logger.debug("Acquired access token (expires_in=%s)", token_data.get("expires_in"))
        return access_token

    async def _fetch_token(self) -> dict[str, Any]:
        """POST to the token endpoint and return the parsed JSON body."""
        logger.debug("Requesting access token from %s", TOKEN_PATH)
        try:
            response = await asyncio.wait_for(
                self._http.post(
                    TOKEN_PATH,
                    data={"grant_type": "client_credentials", "scope": TOKEN_SCOPE},
                    headers={
                        "Authorization": basic_auth_header(
                            self._credentials.client_id, self._credentials.client_secret
                        ),
                        "Accept": "application/json",
                    },
                    timeout=self._timeout,
                ),
                timeout=self._timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise TimeoutError_(
                f"Token request timed out after {self._timeout}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise GatewayError(f"Token request failed: {exc}") from exc

        body = extract_response_data(response)
        if not response.is_success:
            detail = gateway_message(body)
            message = f"Token request failed with status {response.status_code}"
            if detail:
                message = f"{message}: {detail}"
            raise AuthError(message, status_code=response.status_code, raw_body=body)

        if not isinstance(body, dict):
            raise AuthError(
                "Token response is not a JSON object",
                status_code=response.status_code,
                raw_body=body,
            )
        return body


def _lifetime(expires_in: Any) -> float:
    """Coerce ``expires_in`` to seconds; unusable values count as zero so the floor applies.

    ``NaN`` and infinities count as unusable: JSON decoding accepts both,
    and either would leave the token never valid or never expiring.
    """
    try:
        seconds = float(expires_in)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return seconds if math.isfinite(seconds) else 0.0
