"""Shared CLI utilities for annotext commands.

Provides the common Typer options and the standardised output / error
helpers, so every command reports errors and prints JSON the same way::

    import typer
    from annotext.cli import JsonOption, error_exit, json_print

    app = typer.Typer()

    @app.callback(invoke_without_command=True)
    def main(json_output: bool = JsonOption) -> None:
        ...
"""

from __future__ import annotations

import json
import logging
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

JsonOption: bool = typer.Option(False, "--json", help="Output as JSON.")

VerboseOption: bool = typer.Option(
    False, "--verbose", "-v", help="Log attribution decisions to stderr."
)

# ---------------------------------------------------------------------------
# Standardised output helpers
# ---------------------------------------------------------------------------

_err_console = Console(stderr=True)


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        _err_console.print(f"[red bold]error:[/red bold] {msg}")
    raise typer.Exit(code=code)


def json_text(data: dict[str, Any] | list[Any]) -> str:
    """Serialise *data* the way --json prints it, with a trailing newline."""
    return json.dumps(data, indent=2) + "\n"


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))


def setup_logging(verbose: bool) -> None:
    """Route the ``annotext`` loggers to stderr through rich.

    Without *verbose* only warnings are shown.
    """
    logger = logging.getLogger("annotext")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=_err_console, show_path=False))
