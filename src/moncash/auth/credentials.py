"""HTTP Basic credential encoding for the token exchange.

The gateway's token endpoint authenticates the merchant with an
``Authorization: Basic <encoded>`` header per :rfc:`7617`, where
``<encoded>`` is the standard padded Base64 of ``"client_id:client_secret"``.
The UTF-8 bytes are encoded, so non-ASCII secrets produce the same value
on every platform.

No shape validation happens here: a malformed credential simply encodes
to something the gateway rejects, which surfaces later as an
:class:`~moncash.exceptions.AuthError`.
"""

from __future__ import annotations

import base64


def encode_credentials(client_id: str, client_secret: str) -> str:
    """Return the Base64 encoding of ``"<client_id>:<client_secret>"``."""
    raw = f"{client_id}:{client_secret}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """Return the full ``Authorization`` header value, e.g. ``"Basic YWJjOmRlZg=="``."""
    return f"Basic {encode_credentials(client_id, client_secret)}"
