"""Exception hierarchy for moncash.

All exceptions inherit from :class:`MoncashError`, which carries the
human-readable message, the HTTP status code and raw response payload
when one was received, and an ``exit_code`` mapped to a constant from
:mod:`moncash.exit_codes`.

The classified errors form a closed set. Every class is tagged with an
:class:`ErrorKind` member so callers can branch on ``exc.kind`` instead
of chains of ``isinstance`` checks::

    MoncashError
    +-- ValidationError   (kind=VALIDATION,  exit 2)
    +-- AuthError         (kind=AUTH_FAILED, exit 3)
    +-- NotFoundError     (kind=NOT_FOUND,   exit 4)
    +-- GatewayError      (kind=GENERIC,     exit 5)
    +-- TimeoutError_     (kind=TIMEOUT,     exit 6)
    +-- ConfigError       (kind=CONFIG,      exit 1)

``ConfigError`` is raised while building a client from configuration and
never comes out of a request.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from moncash.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GATEWAY_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_TIMEOUT,
)


class ErrorKind(str, enum.Enum):
    """Tag identifying which branch of the taxonomy an error belongs to."""

    VALIDATION = "validation"
    AUTH_FAILED = "auth_failed"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    GENERIC = "generic"
    CONFIG = "config"


class ResourceKind(str, enum.Enum):
    """The kind of gateway resource a :class:`NotFoundError` refers to."""

    ORDER = "order"
    PAYMENT = "payment"


class MoncashError(Exception):
    """Base exception for all moncash errors.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the response that caused the error,
            or ``None`` when no response was received.
        raw_body: Parsed JSON (or raw text) of that response, kept for
            diagnostics.
        exit_code: Optional override for the class-level exit code.
    """

    kind: ErrorKind = ErrorKind.GENERIC
    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        raw_body: Any = None,
        exit_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.raw_body = raw_body
        if exit_code is not None:
            self.exit_code = exit_code

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.message!r}, "
            f"status_code={self.status_code!r})"
        )


class ValidationError(MoncashError):
    """Raised for bad caller input. Never reaches the network."""

    kind = ErrorKind.VALIDATION
    exit_code = EXIT_INVALID_USAGE


class AuthError(MoncashError):
    """Raised when the token exchange fails or 401s outlast the retry ceiling."""

    kind = ErrorKind.AUTH_FAILED
    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(MoncashError):
    """Raised when an order or payment lookup answers HTTP 404.

    Args:
        resource_kind: Which kind of resource was looked up.
        resource_id: The identifier the caller passed in.
    """

    kind = ErrorKind.NOT_FOUND
    exit_code = EXIT_NOT_FOUND

    def __init__(
        self,
        resource_kind: ResourceKind,
        resource_id: str,
        status_code: Optional[int] = 404,
        raw_body: Any = None,
    ):
        super().__init__(
            f"{resource_kind.value.capitalize()} not found: {resource_id}",
            status_code=status_code,
            raw_body=raw_body,
        )
        self.resource_kind = resource_kind
        self.resource_id = resource_id


class GatewayError(MoncashError):
    """Raised for any other non-2xx response or a transport failure.

    ``status_code`` is ``None`` when the request never got a response
    (DNS failure, connection refused, ...). The underlying exception is
    chained as ``__cause__``.
    """

    kind = ErrorKind.GENERIC
    exit_code = EXIT_GATEWAY_ERROR


class TimeoutError_(MoncashError):
    """Raised when a request exceeds its deadline.

    Named with a trailing underscore to avoid shadowing the built-in
    ``TimeoutError``. Never retried automatically: whether the gateway
    applied the operation is unknown.
    """

    kind = ErrorKind.TIMEOUT
    exit_code = EXIT_TIMEOUT


class ConfigError(MoncashError):
    """Raised for configuration problems (missing credentials, bad values)."""

    kind = ErrorKind.CONFIG
    exit_code = EXIT_GENERIC_FAILURE
