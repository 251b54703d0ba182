"""In-memory access-token cache with expiry tracking.

A :class:`TokenCache` owns the single token slot of one client. It is a
small state machine -- empty, valid, stale -- driven only by :meth:`set`
and :meth:`invalidate`; reading never changes it.

Timing uses a monotonic clock so wall-clock adjustments cannot revive an
expired token. The clock is injectable to keep tests deterministic.

The cache also carries an :class:`asyncio.Lock`. Callers that need a
token hold the lock across the whole *check, acquire, store* sequence so
concurrent requests observing an empty slot trigger one token exchange
instead of one each.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional

DEFAULT_MINIMUM_TTL = 30.0
DEFAULT_SAFETY_MARGIN = 10.0


@dataclass(frozen=True)
class CachedToken:
    """A bearer token and the monotonic instant it expires at."""

    access_token: str
    expires_at: float


class TokenCache:
    """Single-slot bearer token store.

    Args:
        minimum_ttl: Floor, in seconds, applied to the lifetime passed to
            :meth:`set`. Guards against a gateway reporting a tiny lifetime.
        safety_margin: Seconds subtracted from the expiry when deciding
            validity.
        clock: Zero-argument callable returning the current time in
            seconds. Defaults to :func:`time.monotonic`.
    """

    def __init__(
        self,
        minimum_ttl: float = DEFAULT_MINIMUM_TTL,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.minimum_ttl = minimum_ttl
        self.safety_margin = safety_margin
        self._clock = clock
        self._token: Optional[CachedToken] = None
        self._lock: Optional[asyncio.Lock] = None

    @property
    def lock(self) -> asyncio.Lock:
        """Lock serialising token acquisition. Created on first use."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @property
    def token(self) -> Optional[CachedToken]:
        """The raw slot contents, valid or not."""
        return self._token

    def is_valid(self) -> bool:
        """Return ``True`` if a token is cached and not within the safety margin of expiry."""
        if self._token is None:
            return False
        return self._clock() < self._token.expires_at - self.safety_margin

    def get(self) -> Optional[str]:
        """Return the cached access token if it is still valid, else ``None``."""
        token = self._token
        if token is None or not self.is_valid():
            return None
        return token.access_token

    def set(self, access_token: str, expires_in: float) -> None:
        """Store *access_token*, expiring ``max(expires_in, minimum_ttl)`` seconds from now."""
        lifetime = max(float(expires_in), self.minimum_ttl)
        self._token = CachedToken(access_token=access_token, expires_at=self._clock() + lifetime)

    def invalidate(self) -> None:
        """Clear the slot. Safe to call when it is already empty."""
        self._token = None
