"""moncash -- asynchronous client for the MonCash payment gateway.

The library wraps the gateway's REST API behind four coroutine methods on
:class:`MoncashClient` and takes care of the parts every integration gets
wrong: access-token caching, refreshing a rejected token, bounding each
request with a timeout, and turning failures into typed exceptions.

Typical use::

    from moncash import MoncashClient, Mode, NotFoundError

    async with MoncashClient(client_id, client_secret, mode=Mode.LIVE) as moncash:
        try:
            result = await moncash.get_order("ORD-1001")
        except NotFoundError:
            ...

Modules:
    sdk: :class:`MoncashClient`, the public entry point.
    models: Pydantic configuration and response models.
    exceptions: Typed error taxonomy with exit-code mapping.
    config: Environment-based configuration and credential sources.
    auth: Credential encoding, token cache and token exchange.
    client: Request dispatch and retry/error classification.
    app: The ``moncash`` command line.
"""

__version__ = "0.3.0"

from moncash.exceptions import (  # noqa: E402
    AuthError,
    ConfigError,
    ErrorKind,
    GatewayError,
    MoncashError,
    NotFoundError,
    ResourceKind,
    TimeoutError_,
    ValidationError,
)
from moncash.models import (  # noqa: E402
    ClientConfig,
    CreatePaymentResponse,
    Mode,
    Payment,
    PaymentResponse,
    PaymentToken,
    RequestConfig,
    TokenSettings,
    Transfer,
    TransferResponse,
)
from moncash.sdk import MoncashClient  # noqa: E402

__all__ = [
    "__version__",
    "MoncashClient",
    "Mode",
    "ClientConfig",
    "RequestConfig",
    "TokenSettings",
    "PaymentToken",
    "CreatePaymentResponse",
    "Payment",
    "PaymentResponse",
    "Transfer",
    "TransferResponse",
    "MoncashError",
    "ErrorKind",
    "ResourceKind",
    "ValidationError",
    "AuthError",
    "NotFoundError",
    "GatewayError",
    "TimeoutError_",
    "ConfigError",
]
