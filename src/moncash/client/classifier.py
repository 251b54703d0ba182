"""Retry and error classification for failed gateway calls.

:func:`classify` is a pure decision function. Given what happened to one
attempt and how many attempts came before it, it answers either
:class:`Retry` -- refresh the token and send the request again -- or the
:class:`~moncash.exceptions.MoncashError` to raise.

Only HTTP 401 is ever retried, and only up to ``max_retries`` times. A
timed-out request is never retried: whether the gateway applied a payment
or transfer before the deadline is unknown, and resending it could
duplicate the effect.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional, Union

from moncash.client.response import gateway_message
from moncash.exceptions import (
    AuthError,
    GatewayError,
    MoncashError,
    NotFoundError,
    ResourceKind,
    TimeoutError_,
)

ORDER_LOOKUP_PATH = "/v1/RetrieveOrderPayment"
TRANSACTION_LOOKUP_PATH = "/v1/RetrieveTransactionPayment"

# endpoint -> (resource kind, request body key holding the looked-up id)
_LOOKUPS: dict[str, tuple[ResourceKind, str]] = {
    ORDER_LOOKUP_PATH: (ResourceKind.ORDER, "orderId"),
    TRANSACTION_LOOKUP_PATH: (ResourceKind.PAYMENT, "transactionId"),
}


@dataclass(frozen=True)
class RequestAttempt:
    """One try at a logical operation. ``attempt`` counts from 0."""

    endpoint: str
    method: str = "POST"
    body: Optional[dict[str, Any]] = None
    attempt: int = 0

    def next(self) -> RequestAttempt:
        return replace(self, attempt=self.attempt + 1)


@dataclass(frozen=True)
class HttpOutcome:
    """What came back from one attempt.

    Exactly one of the following holds:

    * ``status_code`` is set -- a response arrived; ``body`` is its parsed
      content (or raw text, or ``None``).
    * ``timed_out`` is ``True`` -- the deadline expired first.
    * ``error`` is set -- the transport failed before any response.
    """

    status_code: Optional[int] = None
    body: Any = None
    timed_out: bool = False
    error: Optional[BaseException] = None

    @classmethod
    def from_response(cls, status_code: int, body: Any) -> HttpOutcome:
        return cls(status_code=status_code, body=body)

    @classmethod
    def from_timeout(cls, error: Optional[BaseException] = None) -> HttpOutcome:
        return cls(timed_out=True, error=error)

    @classmethod
    def from_transport_error(cls, error: BaseException) -> HttpOutcome:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300


@dataclass(frozen=True)
class Retry:
    """Decision to invalidate the token and send ``attempt`` again."""

    attempt: RequestAttempt


def classify(
    outcome: HttpOutcome,
    attempt: RequestAttempt,
    max_retries: int,
) -> Union[Retry, MoncashError]:
    """Decide what to do about a failed attempt.

    Args:
        outcome: The non-2xx response, timeout, or transport failure.
        attempt: The attempt that produced *outcome*.
        max_retries: How many 401-triggered retries are allowed in total.

    Returns:
        :class:`Retry` carrying the next attempt, or the error to raise.
    """
    if outcome.timed_out:
        return TimeoutError_(f"Request to {attempt.endpoint} timed out")

    if outcome.status_code is None:
        cause = outcome.error
        return GatewayError(
            f"Request to {attempt.endpoint} failed: {cause}",
            raw_body=cause,
        )

    status = outcome.status_code
    body = outcome.body

    if status == 401:
        if attempt.attempt < max_retries:
            return Retry(attempt.next())
        return AuthError(
            _message(status, body, prefix="Authentication failed"),
            status_code=status,
            raw_body=body,
        )

    if status == 404 and attempt.endpoint in _LOOKUPS:
        kind, key = _LOOKUPS[attempt.endpoint]
        resource_id = str((attempt.body or {}).get(key, ""))
        return NotFoundError(kind, resource_id, status_code=status, raw_body=body)

    return GatewayError(_message(status, body), status_code=status, raw_body=body)


def _message(status: int, body: Any, prefix: Optional[str] = None) -> str:
    head = f"HTTP {status}" if prefix is None else f"{prefix} (HTTP {status})"
    detail = gateway_message(body)
    return f"{head}: {detail}" if detail else head
