"""
eval-nix command line interface.

Evaluates a Nix file with ``nix-instantiate --eval`` and prints the parsed
result as JSON: ``{"Ok": <value>}`` on success, ``{"Err": {...}}`` otherwise.

    eval-nix ./default.nix hello --arg system='"x86_64-linux"'
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from evalnix._version import get_version
from evalnix.core.environment import load_settings
from evalnix.core.instantiate import exec_nix_instantiate

app = typer.Typer(
    help="Evaluate a Nix expression and print its value as JSON.",
    add_completion=False,
)

err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print the version and exit."""
    if value:
        typer.echo(f"eval-nix {get_version()}")
        raise typer.Exit()


def _parse_expr_args(raw: list[str]) -> list[tuple[str, str]]:
    """Split NAME=VALUE pairs given with --arg."""
    pairs: list[tuple[str, str]] = []
    for item in raw:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"expected NAME=VALUE, got {item!r}", param_hint="--arg")
        pairs.append((name, value))
    return pairs


@app.command()
def evaluate(
    path: Annotated[
        Path, typer.Argument(help="Nix file or directory to evaluate (default: current)")
    ] = Path("."),
    attribute: Annotated[
        str | None, typer.Argument(help="Attribute to select with -A")
    ] = None,
    arg: Annotated[
        list[str] | None,
        typer.Option("--arg", "-a", help="Bind NAME to VALUE (repeatable), as NAME=VALUE"),
    ] = None,
    strict: Annotated[
        bool, typer.Option("--strict", help="Reject stray text, duplicate keys, trailing tokens")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable debug logging")] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """Evaluate PATH (optionally ATTRIBUTE of it) and print the value as JSON."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    expr_args = _parse_expr_args(arg or [])
    settings = load_settings()
    if strict:
        settings = settings.model_copy(update={"strict": True})

    result = exec_nix_instantiate(path, attribute, expr_args, settings=settings)
    typer.echo(json.dumps(result.to_dict()))

    if result.error is not None:
        err_console.print(f"[red]✗[/red] {result.error.kind}: {escape(result.error.message)}")
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
