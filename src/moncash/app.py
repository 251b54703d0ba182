"""Typer application and CLI entry point for moncash.

The ``moncash`` console script is a thin shell over
:class:`~moncash.sdk.MoncashClient`, handy for checking credentials and
looking up payments from a terminal::

    export MONCASH_CLIENT_ID=... MONCASH_CLIENT_SECRET=file:~/.moncash-secret
    moncash create-payment 250 ORD-1001
    moncash --json order ORD-1001
    moncash transfer 100 50937000000 "refund ORD-1001"

Credentials and defaults come from :mod:`moncash.config`. Errors print to
stderr and exit with the ``exit_code`` of the raised
:class:`~moncash.exceptions.MoncashError`.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable, Optional

import typer

from moncash import __version__
from moncash.config import load_client_config
from moncash.exceptions import MoncashError
from moncash.exit_codes import EXIT_GENERIC_FAILURE
from moncash.models import ClientConfig, Mode
from moncash.output import OutputFormat, OutputManager, get_output, set_output
from moncash.sdk import MoncashClient


app = typer.Typer(
    name="moncash",
    help="Create, look up and transfer MonCash payments.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"moncash {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    mode: Optional[Mode] = typer.Option(
        None, "--mode", "-m", help="Gateway environment (overrides MONCASH_MODE)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Per-request timeout in seconds."
    ),
    max_retries: Optional[int] = typer.Option(
        None, "--max-retries", help="Token refreshes allowed after HTTP 401."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests to stderr."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~moncash.output.OutputManager`, turns on
    debug logging for ``--verbose``, and stores the connection overrides
    in ``ctx.obj`` for the sub-commands.
    """
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
        # httpx logs every request at INFO; ours already do at DEBUG.
        logging.getLogger("httpx").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj["mode"] = mode
    ctx.obj["timeout"] = timeout
    ctx.obj["max_retries"] = max_retries


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("create-payment")
def create_payment_command(
    ctx: typer.Context,
    amount: float = typer.Argument(help="Amount to charge."),
    order_id: str = typer.Argument(help="Merchant order reference."),
) -> None:
    """Create a payment and print the page the customer must visit."""

    async def _call(client: MoncashClient) -> Any:
        created = await client.create_payment(_as_number(amount), order_id)
        get_output().info(f"Redirect: {client.payment_url(created.payment_token.token)}")
        return created

    _execute(ctx, _call)


@app.command("order")
def order_command(
    ctx: typer.Context,
    order_id: str = typer.Argument(help="Merchant order reference."),
) -> None:
    """Look up the payment made for an order."""
    _execute(ctx, lambda client: client.get_order(order_id))


@app.command("transaction")
def transaction_command(
    ctx: typer.Context,
    transaction_id: str = typer.Argument(help="Gateway transaction id."),
) -> None:
    """Look up a payment by transaction id."""
    _execute(ctx, lambda client: client.get_transaction(transaction_id))


@app.command("transfer")
def transfer_command(
    ctx: typer.Context,
    amount: float = typer.Argument(help="Amount to send."),
    receiver: str = typer.Argument(help="Receiving wallet phone number."),
    description: str = typer.Argument("", help="Note attached to the transfer."),
) -> None:
    """Send money to a customer wallet."""
    _execute(ctx, lambda client: client.transfer(_as_number(amount), receiver, description))


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _make_client(config: ClientConfig) -> MoncashClient:
    return MoncashClient.from_config(config)


def _execute(
    ctx: typer.Context,
    call: Callable[[MoncashClient], Awaitable[Any]],
) -> None:
    """Build a client from config + CLI overrides, run *call*, print the result."""
    output = get_output()
    obj = ctx.obj or {}

    async def _run() -> Any:
        config = load_client_config(
            mode=obj.get("mode"),
            timeout=obj.get("timeout"),
            max_retries=obj.get("max_retries"),
        )
        async with _make_client(config) as client:
            return await call(client)

    try:
        result = asyncio.run(_run())
    except MoncashError as exc:
        output.error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    output.format_response(result.model_dump(mode="json"))


def _as_number(value: float) -> Any:
    """Send whole amounts as integers (``250`` rather than ``250.0``)."""
    return int(value) if float(value).is_integer() else value


def main() -> None:
    """CLI entry point invoked by the ``moncash`` console script."""
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except MoncashError as exc:
        get_output().error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:  # noqa: BLE001
        get_output().error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
