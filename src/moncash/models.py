"""Canonical Pydantic models shared across all moncash modules.

The models fall into two groups:

**Configuration models** -- supplied when a client is built:
    :class:`Mode`, :class:`ClientCredentials`, :class:`RequestConfig`,
    :class:`TokenSettings`, and :class:`ClientConfig`.

**Response models** -- the bodies the gateway returns from the payment
endpoints:
    :class:`PaymentToken`, :class:`CreatePaymentResponse`,
    :class:`Payment`, :class:`PaymentResponse`, :class:`Transfer`, and
    :class:`TransferResponse`.

Response models use ``extra="allow"`` so fields the gateway adds later are
preserved in ``model_extra`` rather than rejected, and every field beyond
the identifying ones is optional.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# --- Environment ---


_API_URLS = {
    "live": "https://moncashbutton.digicelgroup.com/Api",
    "sandbox": "https://sandbox.moncashbutton.digicelgroup.com/Api",
}

_GATEWAY_URLS = {
    "live": "https://moncashbutton.digicelgroup.com/Moncash-middleware",
    "sandbox": "https://sandbox.moncashbutton.digicelgroup.com/Moncash-middleware",
}


class Mode(str, enum.Enum):
    """Which gateway environment a client talks to."""

    LIVE = "live"
    SANDBOX = "sandbox"

    @property
    def api_url(self) -> str:
        """Base URL of the REST API for this environment."""
        return _API_URLS[self.value]

    @property
    def gateway_url(self) -> str:
        """Base URL of the hosted payment pages for this environment."""
        return _GATEWAY_URLS[self.value]


# --- Configuration ---


class ClientCredentials(BaseModel):
    """The merchant's client identifier and secret.

    The secret is kept out of ``repr`` so that logging a config object
    never leaks it.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str = Field(repr=False)


class RequestConfig(BaseModel):
    """HTTP request settings applied to every gateway call."""

    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    max_retries: int = Field(
        default=3, ge=0, description="Max token-refresh retries after an HTTP 401"
    )


class TokenSettings(BaseModel):
    """Lifetime rules for the cached access token.

    ``minimum_ttl`` is a floor applied to the lifetime the gateway reports;
    ``safety_margin`` is subtracted from the expiry when judging validity.
    The margin must be strictly smaller than the floor so a freshly
    acquired token is always usable.
    """

    minimum_ttl: float = Field(
        default=30.0, gt=0, description="Lower bound on a token's lifetime in seconds"
    )
    safety_margin: float = Field(
        default=10.0, ge=0, description="Seconds before expiry a token stops being used"
    )

    @model_validator(mode="after")
    def _margin_below_floor(self) -> TokenSettings:
        if self.safety_margin >= self.minimum_ttl:
            raise ValueError(
                f"safety_margin ({self.safety_margin}) must be smaller than "
                f"minimum_ttl ({self.minimum_ttl})"
            )
        return self


class ClientConfig(BaseModel):
    """Everything needed to build a :class:`~moncash.sdk.MoncashClient`.

    Loaded from the environment by
    :func:`~moncash.config.load_client_config`, or constructed directly.
    ``base_url`` and ``gateway_url`` override the URLs implied by ``mode``
    (useful against a local stub of the gateway).

    Example::

        ClientConfig(
            client_id="abc",
            client_secret="s3cret",
            mode=Mode.LIVE,
            request=RequestConfig(timeout=10),
        )
    """

    client_id: str
    client_secret: str = Field(repr=False)
    mode: Mode = Mode.SANDBOX
    base_url: Optional[str] = None
    gateway_url: Optional[str] = None
    request: RequestConfig = Field(default_factory=RequestConfig)
    token: TokenSettings = Field(default_factory=TokenSettings)


# --- Gateway responses ---


class PaymentToken(BaseModel):
    """Token identifying a payment the customer has yet to approve."""

    model_config = ConfigDict(extra="allow")

    token: str
    created: Optional[str] = None
    expired: Optional[str] = None


class CreatePaymentResponse(BaseModel):
    """Body of ``POST /v1/CreatePayment``."""

    model_config = ConfigDict(extra="allow")

    payment_token: PaymentToken
    status: Optional[Any] = None
    timestamp: Optional[Any] = None
    mode: Optional[str] = None


class Payment(BaseModel):
    """A payment as reported by the order and transaction lookups."""

    model_config = ConfigDict(extra="allow")

    reference: Optional[str] = None
    transaction_id: Optional[str] = None
    cost: Optional[float] = None
    message: Optional[str] = None
    payer: Optional[str] = None

    @property
    def successful(self) -> bool:
        """Whether the gateway reported this payment as ``successful``."""
        return (self.message or "").lower() == "successful"


class PaymentResponse(BaseModel):
    """Body of ``POST /v1/RetrieveOrderPayment`` and ``/v1/RetrieveTransactionPayment``."""

    model_config = ConfigDict(extra="allow")

    payment: Payment
    status: Optional[Any] = None
    timestamp: Optional[Any] = None


class Transfer(BaseModel):
    """A completed transfer to a customer's wallet."""

    model_config = ConfigDict(extra="allow")

    transaction_id: Optional[str] = None
    amount: Optional[float] = None
    receiver: Optional[str] = None
    message: Optional[str] = None
    desc: Optional[str] = None


class TransferResponse(BaseModel):
    """Body of ``POST /v1/TransFer``."""

    model_config = ConfigDict(extra="allow")

    transfer: Transfer
    status: Optional[Any] = None
    timestamp: Optional[Any] = None
