"""Authentication for the gateway API.

Three pieces, leaves first:

- :mod:`~moncash.auth.credentials` -- Basic header for the token exchange.
- :mod:`~moncash.auth.token_cache` -- the client's single bearer-token slot.
- :mod:`~moncash.auth.acquirer` -- the client-credentials exchange that
  fills the slot.
"""

from moncash.auth.acquirer import TokenAcquirer
from moncash.auth.credentials import basic_auth_header, encode_credentials
from moncash.auth.token_cache import CachedToken, TokenCache

__all__ = [
    "encode_credentials",
    "basic_auth_header",
    "CachedToken",
    "TokenCache",
    "TokenAcquirer",
]
