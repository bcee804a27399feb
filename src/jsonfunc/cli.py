"""jsonfunc command line: inspect and exercise handlers during development.

Commands:
    check  Build a handler and show how each parameter is bound.
    call   Post a request to a handler in-process and print the response.

Targets are given as ``module:attribute`` (``attribute`` may be dotted).
"""

from __future__ import annotations

import importlib
import json
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from jsonfunc import __version__
from jsonfunc.core.config import LogConfig
from jsonfunc.core.logging import configure_logging
from jsonfunc.exceptions import ShapeError
from jsonfunc.handler import HandlerMode, JsonHandler, describe_bindings
from jsonfunc.typeinfo import type_name

app = typer.Typer(
    name="jsonfunc",
    help="Serve plain Python functions over a JSON call protocol",
    add_completion=False,
)

console = Console()


def load_callable(ref: str) -> Any:
    """Import ``module:attribute`` and return the attribute.

    Raises:
        typer.BadParameter: If the reference is malformed or cannot be imported.
    """
    module_name, sep, attr_path = ref.partition(":")
    if not sep or not module_name or not attr_path:
        raise typer.BadParameter(f"expected module:attribute, got {ref!r}")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"cannot import {module_name}: {exc}") from exc
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise typer.BadParameter(f"{module_name} has no attribute {attr_path}") from exc
    return obj


def _build_handler(target: str, injectors: list[str] | None) -> JsonHandler:
    try:
        func = load_callable(target)
        injector_funcs = [load_callable(ref) for ref in injectors or []]
    except typer.BadParameter as exc:
        console.print(f"[red]Cannot load target:[/red] {escape(exc.message)}")
        raise typer.Exit(2) from None
    try:
        return JsonHandler(func, *injector_funcs)
    except ShapeError as exc:
        console.print(f"[red]Invalid handler:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from None


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"jsonfunc v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            "-L",
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="JSONFUNC_LOG_LEVEL",
        ),
    ] = "WARNING",
    log_format: Annotated[
        str,
        typer.Option(
            "--log-format",
            help="Log format (console, json)",
            envvar="JSONFUNC_LOG_FORMAT",
        ),
    ] = "console",
) -> None:
    """Configure logging before any command runs."""
    try:
        log_config = LogConfig.model_validate(
            {"level": log_level.upper(), "format": log_format.lower()}
        )
    except ValueError as exc:
        console.print(f"[red]Logging configuration error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from None
    configure_logging(**log_config.model_dump())


@app.command()
def check(
    target: Annotated[str, typer.Argument(help="Target function as module:attribute")],
    injector: Annotated[
        list[str] | None,
        typer.Option("--injector", "-i", help="Injector as module:attribute (repeatable)"),
    ] = None,
) -> None:
    """Validate a handler and show how each parameter is bound.

    Exit codes:
      0: Handler is valid
      1: Shape or injector mismatch
      2: Target or injector cannot be imported
    """
    handler = _build_handler(target, injector)

    table = Table(title=escape(handler.descriptor.signature()))
    table.add_column("#", justify="right")
    table.add_column("Parameter", style="cyan")
    table.add_column("Type")
    table.add_column("Source")
    for position, name, tp, source in describe_bindings(handler):
        table.add_row(str(position), name, escape(tp), source)
    console.print(table)

    results = ", ".join(type_name(tp) for tp in handler.descriptor.result_types)
    console.print(f"Results: {escape(f'[{results}]')} + outcome")
    if handler.mode is HandlerMode.INJECTOR_AS_TARGET:
        console.print("Mode: injector served directly (request body ignored)")
    console.print("[green]✓[/green] Handler is valid")


@app.command()
def call(
    target: Annotated[str, typer.Argument(help="Target function as module:attribute")],
    params: Annotated[
        str,
        typer.Option("--params", "-p", help="JSON array of body parameters"),
    ] = "[]",
    injector: Annotated[
        list[str] | None,
        typer.Option("--injector", "-i", help="Injector as module:attribute (repeatable)"),
    ] = None,
) -> None:
    """Call a handler in-process and print the status code and response body."""
    # Deferred: the test client pulls in httpx, only needed by this command
    from starlette.testclient import TestClient

    try:
        decoded = json.loads(params)
    except json.JSONDecodeError as exc:
        console.print(f"[red]--params is not valid JSON:[/red] {escape(str(exc))}")
        raise typer.Exit(2) from None

    handler = _build_handler(target, injector)
    client = TestClient(handler)
    response = client.post("/", json={"params": decoded})
    console.print(f"Status: {response.status_code}")
    console.print_json(response.text)


__all__ = ["app", "load_callable"]
