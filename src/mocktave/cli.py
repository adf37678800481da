"""mocktave CLI — Typer-based entry point.

Commands
--------
eval        Run an Octave script and print the resulting workspace.
decode      Decode an existing text dump (file or stdin) without running Octave.
call        Call one Octave function with arguments from the command line.
"""

from __future__ import annotations

import json
import logging
import math
import sys
from pathlib import Path
from typing import Any, Optional

import typer

from mocktave.call import call
from mocktave.dump.workspace import Workspace, decode
from mocktave.errors import InterpreterError
from mocktave.interpreter.session import Interpreter
from mocktave.types import Error, OctaveType

app = typer.Typer(
    name="mocktave",
    help="Run GNU Octave out-of-process and decode its workspace.",
    add_completion=False,
)


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(name)-30s  %(levelname)-7s  %(message)s",
    )


def _jsonable(obj: Any) -> Any:
    """Make decoded values strict JSON; non-finite floats become Octave spellings."""
    if isinstance(obj, float) and not math.isfinite(obj):
        return "NaN" if math.isnan(obj) else ("Inf" if obj > 0 else "-Inf")
    if isinstance(obj, complex):
        return [_jsonable(obj.real), _jsonable(obj.imag)]
    if isinstance(obj, list):
        return [_jsonable(item) for item in obj]
    if isinstance(obj, dict):
        return {key: _jsonable(value) for key, value in obj.items()}
    return obj


def _echo_values(values: dict[str, OctaveType], as_json: bool) -> None:
    if as_json:
        payload = {name: _jsonable(value.to_python()) for name, value in sorted(values.items())}
        typer.echo(json.dumps(payload, indent=2, allow_nan=False))
        return
    if not values:
        typer.echo("No variables decoded.")
        return
    for name, value in sorted(values.items()):
        typer.echo(f"{name} = {value}")


def _echo_workspace(workspace: Workspace, as_json: bool) -> None:
    _echo_values(dict(workspace.items()), as_json)


def _parse_argument(text: str) -> float | str:
    try:
        return float(text)
    except ValueError:
        return text


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("eval")
def eval_command(
    script: Optional[str] = typer.Argument(None, help="Octave code to run."),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read the script from a file."),
    as_json: bool = typer.Option(False, "--json", help="Print variables as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Run an Octave script and print every variable it leaves behind."""
    _setup_logging(verbose)
    if file is not None:
        script = file.read_text(encoding="utf-8")
    if not script:
        typer.echo("Provide a script or --file.", err=True)
        raise typer.Exit(1)

    try:
        with Interpreter() as octave:
            result = octave.run(script)
    except InterpreterError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(2)

    if not result.ok:
        typer.echo(result.stderr.rstrip(), err=True)
    _echo_workspace(decode(result.stdout), as_json)
    if not result.ok:
        raise typer.Exit(1)


@app.command("decode")
def decode_command(
    path: str = typer.Argument("-", help="Dump file to decode, '-' for stdin."),
    as_json: bool = typer.Option(False, "--json", help="Print variables as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Decode a text dump produced by save("-", "*")."""
    _setup_logging(verbose)
    if path == "-":
        text = sys.stdin.read()
    else:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1)
    _echo_workspace(decode(text), as_json)


@app.command("call")
def call_command(
    name: str = typer.Argument(..., help="Octave function name."),
    args: Optional[list[str]] = typer.Argument(None, help="Arguments; numbers become scalars, the rest strings."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Call an Octave function and print its result."""
    _setup_logging(verbose)
    values = [_parse_argument(arg) for arg in args or []]

    try:
        with Interpreter() as octave:
            value = call(octave, name, *values)
    except InterpreterError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(2)

    _echo_values({name: value}, as_json)
    if isinstance(value, Error):
        raise typer.Exit(1)


def main() -> int:
    """Entry point for the ``mocktave`` console script."""
    app()
    return 0
