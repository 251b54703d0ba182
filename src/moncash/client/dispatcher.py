"""Authenticated request dispatch with timeout and 401 recovery.

:class:`RequestDispatcher` turns one logical gateway call into one or
more HTTP attempts:

1. Obtain a bearer token -- from the :class:`~moncash.auth.token_cache.TokenCache`
   when it holds a valid one, otherwise through the
   :class:`~moncash.auth.acquirer.TokenAcquirer`.
2. Send the request with the token, bounded by the configured timeout.
3. Return the parsed body on any 2xx status.
4. Otherwise ask :func:`~moncash.client.classifier.classify` what to do:
   invalidate the token and try again (HTTP 401 under the retry ceiling),
   or raise the classified error.

A timeout never touches the token cache; only an explicit 401 clears it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx

from moncash.auth.token_cache import TokenCache
from moncash.client.classifier import HttpOutcome, RequestAttempt, Retry, classify
from moncash.client.response import extract_response_data
from moncash.exceptions import TimeoutError_

if TYPE_CHECKING:
    from moncash.auth.acquirer import TokenAcquirer

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3


class RequestDispatcher:
    """Send authenticated JSON requests to the gateway.

    Args:
        http: Client whose ``base_url`` points at the gateway API root.
        cache: The client's token slot.
        acquirer: Fills *cache* when it holds no valid token.
        timeout: Deadline in seconds for each attempt.
        max_retries: How many times a 401 may trigger a token refresh and
            resend before :class:`~moncash.exceptions.AuthError` is raised.

    Example::

        dispatcher = RequestDispatcher(http, cache, acquirer)
        body = await dispatcher.dispatch("/v1/RetrieveOrderPayment", body={"orderId": "42"})
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        cache: TokenCache,
        acquirer: TokenAcquirer,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self._http = http
        self._cache = cache
        self._acquirer = acquirer
        self.timeout = timeout
        self.max_retries = max_retries

    async def dispatch(
        self,
        endpoint: str,
        method: str = "POST",
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Perform one logical call and return the parsed response body.

        Args:
            endpoint: Path relative to the API root, e.g. ``"/v1/CreatePayment"``.
            method: HTTP method.
            body: JSON-serialisable request body, if any.

        Returns:
            The JSON-decoded body of the first 2xx response (raw text if it
            is not JSON, ``None`` if it is empty).

        Raises:
            AuthError: Token exchange failed, or 401 persisted past
                ``max_retries``.
            NotFoundError: An order or transaction lookup answered 404.
            TimeoutError_: An attempt exceeded ``timeout``.
            GatewayError: Any other non-2xx status or transport failure.
        """
        attempt = RequestAttempt(endpoint=endpoint, method=method.upper(), body=body)

        while True:
            token = await self._get_token()
            outcome = await self._send(attempt, token)

            if outcome.ok:
                return outcome.body

            if outcome.status_code == 401:
                self._invalidate(token)

            decision = classify(outcome, attempt, self.max_retries)
            if isinstance(decision, Retry):
                logger.debug(
                    "HTTP 401 from %s, refreshing token (retry %d/%d)",
                    endpoint,
                    decision.attempt.attempt,
                    self.max_retries,
                )
                attempt = decision.attempt
                continue

            if outcome.status_code == 401:
                logger.warning(
                    "HTTP 401 from %s after %d retries, giving up", endpoint, self.max_retries
                )
            if outcome.error is not None:
                raise decision from outcome.error
            raise decision

    async def _get_token(self) -> str:
        """Return a valid token within ``timeout`` seconds.

        The deadline covers the wait for the cache lock as well as the
        exchange itself, so callers queued behind a hung token endpoint
        fail together instead of one ``timeout`` after another.
        """
        try:
            return await asyncio.wait_for(self._locked_token(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.debug("No access token within %ss", self.timeout)
            raise TimeoutError_(f"Token request timed out after {self.timeout}s") from exc

    async def _locked_token(self) -> str:
        """Read the cache under its lock, acquiring a token on a miss.

        Callers queued on the lock re-check the cache once they hold it, so
        a burst of requests against an empty slot costs one token exchange.
        """
        async with self._cache.lock:
            token = self._cache.get()
            if token is None:
                token = await self._acquirer.acquire()
            return token

    def _invalidate(self, token: str) -> None:
        """Clear the cache unless another request already replaced *token*."""
        current = self._cache.token
        if current is None or current.access_token == token:
            self._cache.invalidate()

    async def _send(self, attempt: RequestAttempt, token: str) -> HttpOutcome:
        """Issue one HTTP attempt and capture what happened."""
        kwargs: dict[str, Any] = {
            "method": attempt.method,
            "url": attempt.endpoint,
            "headers": {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            "timeout": self.timeout,
        }
        if attempt.body is not None:
            kwargs["json"] = attempt.body

        logger.debug(
            "%s %s (attempt %d)", attempt.method, attempt.endpoint, attempt.attempt + 1
        )
        try:
            response = await asyncio.wait_for(
                self._http.request(**kwargs), timeout=self.timeout
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            logger.debug("%s %s timed out after %ss", attempt.method, attempt.endpoint, self.timeout)
            return HttpOutcome.from_timeout(exc)
        except httpx.HTTPError as exc:
            logger.debug("%s %s failed: %s", attempt.method, attempt.endpoint, exc)
            return HttpOutcome.from_transport_error(exc)

        logger.debug("%s %s -> HTTP %d", attempt.method, attempt.endpoint, response.status_code)
        return HttpOutcome.from_response(response.status_code, extract_response_data(response))
