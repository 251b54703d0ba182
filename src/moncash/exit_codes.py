"""Numeric process exit codes used by the ``moncash`` command line.

Each constant maps to one error category and is referenced by the
corresponding :class:`~moncash.exceptions.MoncashError` subclass.
Shell scripts driving the CLI can inspect the exit code to tell a
rejected credential from a missing order without parsing stderr.

Example::

    $ moncash order ORD-42
    $ echo $?
    4   # EXIT_NOT_FOUND -- the gateway has no payment for that order
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (bad configuration included)."""

EXIT_INVALID_USAGE = 2
"""Caller input was rejected before any request was sent."""

EXIT_AUTH_FAILURE = 3
"""Token exchange failed or the gateway kept answering HTTP 401."""

EXIT_NOT_FOUND = 4
"""The order or payment looked up does not exist (HTTP 404)."""

EXIT_GATEWAY_ERROR = 5
"""The gateway answered with another non-2xx status, or never answered."""

EXIT_TIMEOUT = 6
"""The request exceeded its deadline; its effect on the gateway is unknown."""
