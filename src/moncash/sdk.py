"""The MonCash client -- the public entry point of the library.

:class:`MoncashClient` exposes the four gateway operations as coroutine
methods. Each validates its input before touching the network, shapes
the JSON body, and hands the call to the
:class:`~moncash.client.dispatcher.RequestDispatcher`, which handles the
token, the timeout and the 401 retry.

Example::

    async with MoncashClient("client-id", "secret", mode=Mode.SANDBOX) as moncash:
        created = await moncash.create_payment(250, "ORD-1001")
        print(moncash.payment_url(created.payment_token.token))

        paid = await moncash.get_order("ORD-1001")
        if paid.payment.successful:
            ...
"""

from __future__ import annotations

import math
from typing import Any, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from moncash.auth.acquirer import TokenAcquirer
from moncash.auth.token_cache import TokenCache
from moncash.client.classifier import ORDER_LOOKUP_PATH, TRANSACTION_LOOKUP_PATH
from moncash.client.dispatcher import RequestDispatcher
from moncash.exceptions import ConfigError, GatewayError, ValidationError
from moncash.models import (
    ClientConfig,
    ClientCredentials,
    CreatePaymentResponse,
    Mode,
    PaymentResponse,
    RequestConfig,
    TokenSettings,
    TransferResponse,
)

CREATE_PAYMENT_PATH = "/v1/CreatePayment"
TRANSFER_PATH = "/v1/TransFer"
REDIRECT_PATH = "/Payment/Redirect"

Amount = Union[int, float]


class MoncashClient:
    """Asynchronous client for the MonCash payment gateway.

    Owns one :class:`httpx.AsyncClient` and one token slot for its whole
    lifetime. Use it as an async context manager, or call :meth:`aclose`
    when done.

    Args:
        client_id: Merchant client identifier.
        client_secret: Merchant client secret. Never logged.
        mode: Gateway environment, :attr:`Mode.SANDBOX` by default.
        max_retries: Token refreshes allowed after an HTTP 401 per call.
        timeout: Deadline in seconds for each HTTP attempt.
        token_settings: Token lifetime floor and safety margin.
        base_url: Override for the API root implied by *mode*.
        gateway_url: Override for the payment-page root implied by *mode*.
        transport: Custom httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        mode: Union[Mode, str] = Mode.SANDBOX,
        max_retries: int = 3,
        timeout: float = 30.0,
        token_settings: Optional[TokenSettings] = None,
        base_url: Optional[str] = None,
        gateway_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        try:
            request = RequestConfig(timeout=timeout, max_retries=max_retries)
            settings = token_settings or TokenSettings()
            self._credentials = ClientCredentials(
                client_id=client_id, client_secret=client_secret
            )
            self._mode = Mode(mode)
        except (PydanticValidationError, ValueError) as exc:
            raise ConfigError(f"Invalid client configuration: {exc}") from exc

        self._api_url = (base_url or self._mode.api_url).rstrip("/")
        self._gateway_url = (gateway_url or self._mode.gateway_url).rstrip("/")

        self._http = httpx.AsyncClient(
            base_url=self._api_url,
            timeout=request.timeout,
            transport=transport,
        )
        self._cache = TokenCache(
            minimum_ttl=settings.minimum_ttl,
            safety_margin=settings.safety_margin,
        )
        self._acquirer = TokenAcquirer(
            self._http, self._credentials, self._cache, timeout=request.timeout
        )
        self._dispatcher = RequestDispatcher(
            self._http,
            self._cache,
            self._acquirer,
            timeout=request.timeout,
            max_retries=request.max_retries,
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> MoncashClient:
        """Build a client from a :class:`~moncash.models.ClientConfig`."""
        return cls(
            client_id=config.client_id,
            client_secret=config.client_secret,
            mode=config.mode,
            max_retries=config.request.max_retries,
            timeout=config.request.timeout,
            token_settings=config.token,
            base_url=config.base_url,
            gateway_url=config.gateway_url,
            transport=transport,
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> MoncashClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def token_cache(self) -> TokenCache:
        """The client's token slot, exposed for inspection."""
        return self._cache

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    async def create_payment(self, amount: Amount, order_id: str) -> CreatePaymentResponse:
        """Create a payment the customer then approves on the gateway's page.

        Args:
            amount: Amount to charge, strictly positive.
            order_id: Merchant order reference, non-empty.

        Returns:
            The created payment's token. Pass ``payment_token.token`` to
            :meth:`payment_url` to get the page to send the customer to.

        Raises:
            ValidationError: If *amount* or *order_id* is invalid.
        """
        _require_amount(amount)
        _require_id(order_id, "order_id")
        data = await self._dispatcher.dispatch(
            CREATE_PAYMENT_PATH, body={"amount": amount, "orderId": order_id}
        )
        return _parse(CreatePaymentResponse, data, CREATE_PAYMENT_PATH)

    async def get_order(self, order_id: str) -> PaymentResponse:
        """Look up the payment made for a merchant order.

        Raises:
            ValidationError: If *order_id* is empty.
            NotFoundError: With ``resource_kind=ORDER`` if no payment exists
                for *order_id*.
        """
        _require_id(order_id, "order_id")
        data = await self._dispatcher.dispatch(ORDER_LOOKUP_PATH, body={"orderId": order_id})
        return _parse(PaymentResponse, data, ORDER_LOOKUP_PATH)

    async def get_transaction(self, transaction_id: str) -> PaymentResponse:
        """Look up a payment by its gateway transaction id.

        Raises:
            ValidationError: If *transaction_id* is empty.
            NotFoundError: With ``resource_kind=PAYMENT`` if the transaction
                does not exist.
        """
        _require_id(transaction_id, "transaction_id")
        data = await self._dispatcher.dispatch(
            TRANSACTION_LOOKUP_PATH, body={"transactionId": transaction_id}
        )
        return _parse(PaymentResponse, data, TRANSACTION_LOOKUP_PATH)

    async def transfer(self, amount: Amount, receiver: str, description: str) -> TransferResponse:
        """Send money from the merchant account to a customer wallet.

        Args:
            amount: Amount to send, strictly positive.
            receiver: The receiving wallet's phone number, non-empty.
            description: Free-text note attached to the transfer.

        Raises:
            ValidationError: If *amount* or *receiver* is invalid.
        """
        _require_amount(amount)
        _require_id(receiver, "receiver")
        if not isinstance(description, str):
            raise ValidationError("description must be a string")
        data = await self._dispatcher.dispatch(
            TRANSFER_PATH,
            body={"amount": amount, "receiver": receiver, "description": description},
        )
        return _parse(TransferResponse, data, TRANSFER_PATH)

    def payment_url(self, payment_token: str) -> str:
        """Return the gateway page where the customer approves a created payment."""
        _require_id(payment_token, "payment_token")
        return f"{self._gateway_url}{REDIRECT_PATH}?token={quote(payment_token, safe='')}"


# ------------------------------------------------------------------ #
# Validation helpers
# ------------------------------------------------------------------ #


def _require_amount(amount: Any) -> None:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError(f"amount must be a number, got {type(amount).__name__}")
    try:
        finite = math.isfinite(amount)
    except OverflowError as exc:
        raise ValidationError("amount is too large") from exc
    if not finite or amount <= 0:
        raise ValidationError(f"amount must be greater than 0, got {amount}")


def _require_id(value: Any, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be a non-empty string")


def _parse(model: Any, data: Any, endpoint: str) -> Any:
    """Validate a 2xx body against *model*; a malformed body is a gateway error."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise GatewayError(
            f"Unexpected response body from {endpoint}",
            status_code=200,
            raw_body=data,
        ) from exc
