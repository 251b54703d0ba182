"""Terminal rendering for the ``moncash`` command line.

Gateway responses are the only thing written to stdout, so
``moncash --json order ORD-1 | jq .payment`` works. Status lines and
errors go to stderr.

Colour follows the usual terminal conventions: it is off when
``NO_COLOR`` is set, when ``TERM=dumb``, or with ``--no-color``. In
``auto`` mode a response is syntax-highlighted on an interactive
terminal and flattened to ``key<TAB>value`` lines otherwise.

The library never prints; it logs through :mod:`logging`. Only
:mod:`moncash.app` installs an :class:`OutputManager` via
:func:`set_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Iterator, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax


class OutputFormat(str, Enum):
    """How a gateway response is rendered on stdout."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Writes gateway responses to stdout and status lines to stderr.

    Args:
        format: Rendering for responses. ``AUTO`` picks ``RICH`` on a
            colour-capable terminal and ``PLAIN`` otherwise.
        no_color: Never emit colour or Rich markup.
        quiet: Drop status lines. Errors are always shown.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        if format == OutputFormat.AUTO:
            format = OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
        self._format = format
        self._console = Console(file=sys.stdout, no_color=self._no_color, force_terminal=True)
        self._err_console = Console(file=sys.stderr, no_color=self._no_color)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # --- stdout ---

    def format_response(self, data: Any) -> None:
        """Render a decoded gateway response in the active format."""
        if self._format == OutputFormat.PLAIN:
            for line in _flatten(data):
                _write(sys.stdout, line)
            return

        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._format == OutputFormat.RICH:
            self._console.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            _write(sys.stdout, text)

    # --- stderr ---

    def info(self, message: str) -> None:
        """Status line, e.g. the payment page to open. Hidden by ``--quiet``."""
        if not self._quiet:
            self._notice(message)

    def error(self, message: str) -> None:
        self._notice(message, label="Error:", style="bold red")

    def _notice(self, message: str, label: str = "", style: str = "") -> None:
        if self._no_color or not style:
            _write(sys.stderr, f"{label} {message}" if label else message)
        else:
            self._err_console.print(f"[{style}]{label}[/{style}] {escape(message)}", highlight=False)


def _flatten(data: Any, prefix: str = "") -> Iterator[str]:
    """Yield ``dotted.key<TAB>value`` lines for nested mappings."""
    if not isinstance(data, dict):
        yield str(data)
        return
    for key, value in data.items():
        if isinstance(value, dict):
            yield from _flatten(value, prefix=f"{prefix}{key}.")
        else:
            yield f"{prefix}{key}\t{value}"


def _write(stream: Any, text: str) -> None:
    print(text, file=stream, flush=True)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value, even empty) or ``TERM=dumb`` turns colour off."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# --- process-wide instance, installed by the CLI callback ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed instance. Used by tests."""
    global _output
    _output = None
