"""Request pipeline for gateway calls.

Classes:
    :class:`RequestDispatcher` -- sends authenticated requests with a
    timeout and refreshes the token after an HTTP 401.

Functions:
    :func:`classify` -- decides between retrying a failed attempt and the
    typed error to raise.
"""

from moncash.client.classifier import HttpOutcome, RequestAttempt, Retry, classify
from moncash.client.dispatcher import RequestDispatcher

__all__ = ["RequestDispatcher", "RequestAttempt", "HttpOutcome", "Retry", "classify"]
