"""signature_cli.py - Parse a documentation signature from the command line.

Handy for checking what a ``\\qmlmethod`` topic will produce::

    annotext signature "void Item::grabToImage(callback, size targetSize = undefined)"
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from annotext.cli import JsonOption, error_exit, json_print
from annotext.errors import SignatureParseError
from annotext.signature import Signature, parse_signature

out_console = Console()


def signature_to_dict(sig: Signature) -> dict:
    return {
        "name": sig.name,
        "qualified_name": sig.qualified_name,
        "return_type": sig.return_type,
        "qualifiers": list(sig.qualifiers),
        "parameters": [
            {"type": p.type, "name": p.name, "default": p.default} for p in sig.parameters
        ],
    }


app = typer.Typer(
    help="Parse a method or signal signature.",
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def main(
    text: str = typer.Argument(..., help="Signature text, e.g. 'int Foo::bar(int x = 0)'."),
    json_output: bool = JsonOption,
) -> None:
    """Parse a method or signal signature and show its parts."""
    try:
        sig = parse_signature(text)
    except SignatureParseError as exc:
        error_exit(str(exc), json_mode=json_output)

    if json_output:
        json_print(signature_to_dict(sig))
        return

    out_console.print(f"[bold]{sig.qualified_name}[/bold] returns {sig.return_type or '(nothing)'}")
    table = Table(show_lines=False, pad_edge=False)
    table.add_column("#", justify="right")
    table.add_column("Type")
    table.add_column("Name", style="bold")
    table.add_column("Default", style="dim")
    for i, param in enumerate(sig.parameters):
        table.add_row(str(i), param.type, param.name, param.default)
    out_console.print(table)
