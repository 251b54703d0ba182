"""Helpers for reading gateway response bodies.

The gateway usually answers JSON, but error pages from proxies in front
of it may be HTML or plain text. These helpers never raise on a body they
cannot parse, so a parse failure can not mask the status code that
actually matters.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

_MESSAGE_KEYS = ("message", "error_description", "error", "detail")


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first. If that fails (e.g. the
    response is HTML or plain text), returns the raw text. Returns
    ``None`` for responses with no content.

    Args:
        response: The :class:`httpx.Response` to extract data from.

    Returns:
        A JSON-decoded object (``dict``, ``list``, etc.), a ``str`` of raw
        text, or ``None`` if the body is empty.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        pass

    return response.text


def gateway_message(body: Any) -> Optional[str]:
    """Return the gateway's own error message from a parsed body, if it has one.

    Looks for ``message``, ``error_description``, ``error`` and ``detail``
    in that order. A non-empty string body is returned truncated to 200
    characters.
    """
    if isinstance(body, dict):
        for key in _MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
        return None
    if isinstance(body, str) and body.strip():
        return body.strip()[:200]
    return None
