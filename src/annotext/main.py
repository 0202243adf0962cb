"""main.py - Umbrella CLI entry point for annotext.

Lazily imports and registers the subcommand typer apps so that a missing
optional dependency in one command doesn't prevent the entire CLI from
loading.  Every module is registered as a flat ``app.command()`` entry.
"""

import importlib
import sys
from collections.abc import Callable

import typer

app = typer.Typer(
    help="Attribute source comments to code constructs and extract translator annotations.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Typical workflow:[/bold]
  annotext extract src/              Table of every attributed marker call
  annotext extract --json src/       Same, as JSON
  annotext signature "int f(int x)"  Check how a doc signature parses

[dim]Settings are read from annotext.toml when present.
Run 'annotext <cmd> --help' for details.[/dim]""",
)

# ---------------------------------------------------------------------------
# Subcommand registry
# ---------------------------------------------------------------------------

_SINGLE_COMMANDS: list[tuple[str, str, str]] = [
    ("extract", "annotext.extract", "Extract translator annotations from C++ sources."),
    ("signature", "annotext.signature_cli", "Parse a method or signal signature."),
]


def _make_stub_cmd(mod_name: str, err: ImportError) -> Callable[[], None]:
    """Create a stub command function that reports a missing dependency."""

    def _stub() -> None:
        print(f"Error: could not load '{mod_name}': {err}", file=sys.stderr)
        raise typer.Exit(code=1)

    return _stub


for _name, _module, _help in _SINGLE_COMMANDS:
    try:
        _mod = importlib.import_module(_module)
        _epilog = getattr(_mod.app.info, "epilog", None)
        if not isinstance(_epilog, str):
            _epilog = None
        app.command(name=_name, help=_help, epilog=_epilog)(_mod.main)
    except ImportError as _exc:
        app.command(name=_name, help=f"[unavailable] {_help}")(_make_stub_cmd(_module, _exc))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
