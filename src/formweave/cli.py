"""
formweave command line.

    formweave run survey.py            serve in a browser until Ctrl+C
    formweave once survey.py           serve until one submission, print JSON
    formweave serve                    start the multi-app host
    formweave load survey.py           hand a file to the running host
    formweave apps                     list apps on the running host
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from formweave._version import __version__
from formweave.core.errors import (
    FormweaveError,
    LoadError,
    PortExhaustion,
    ServiceUnavailable,
    TimeoutExceeded,
)
from formweave.runtime.app import App
from formweave.runtime.config import WeaveConfig
from formweave.runtime.loader import load_app
from formweave.runtime.logging import setup_logging
from formweave.runtime.oneshot import OutputMode, emit_result

# Exit codes for ``once``
EXIT_TIMEOUT = 1
EXIT_USAGE = 2

app = typer.Typer(
    help="""formweave: interactive web forms from a single Python function.

Describe a form as a definition function, then serve it with 'run',
collect one answer with 'once', or hand it to a long-running host.
""",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def _config() -> WeaveConfig:
    config = WeaveConfig.from_env()
    setup_logging(config.log_level, config.log_dir)
    return config


def _load_app(file: Path) -> App:
    try:
        return load_app(file)
    except LoadError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=EXIT_USAGE)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"formweave {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """formweave command line."""


@app.command()
def run(
    file: Annotated[Path, typer.Argument(help="Definition file creating an App")],
    host: Annotated[str | None, typer.Option("--host", help="Bind host")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="First port to try")] = None,
    no_browser: Annotated[
        bool, typer.Option("--no-browser", help="Do not open a browser")
    ] = False,
) -> None:
    """Serve a definition file in the browser until interrupted."""
    config = _config()
    weave_app = _load_app(file)
    try:
        weave_app.run(
            host=host,
            port=port,
            open_browser=False if no_browser else None,
            config=config,
        )
    except PortExhaustion as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def once(
    file: Annotated[Path, typer.Argument(help="Definition file creating an App")],
    output: Annotated[
        OutputMode, typer.Option("--output", "-o", help="Where to write the result")
    ] = OutputMode.STDOUT,
    output_file: Annotated[
        Path | None, typer.Option("--output-file", help="Result file for --output file")
    ] = None,
    timeout: Annotated[
        float | None, typer.Option("--timeout", "-t", help="Seconds to wait for a submission")
    ] = None,
    host: Annotated[str | None, typer.Option("--host", help="Bind host")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="First port to try")] = None,
    no_browser: Annotated[
        bool, typer.Option("--no-browser", help="Do not open a browser")
    ] = False,
) -> None:
    """Serve until one submission, then write the values as JSON.

    Exits 0 after a submission, 1 on timeout and 2 when the file cannot be
    loaded or the options do not fit together.
    """
    if output is OutputMode.FILE and output_file is None:
        err_console.print("[red]Error:[/red] --output file requires --output-file")
        raise typer.Exit(code=EXIT_USAGE)

    config = _config()
    weave_app = _load_app(file)
    try:
        result = weave_app.run_once(
            host=host,
            port=port,
            timeout=timeout,
            open_browser=False if no_browser else None,
            config=config,
        )
    except TimeoutExceeded as e:
        err_console.print(f"[red]Timed out:[/red] {e}")
        raise typer.Exit(code=EXIT_TIMEOUT)
    except PortExhaustion as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=EXIT_TIMEOUT)

    written = emit_result(result, output=output, output_file=output_file, stream=sys.stdout)
    if written is not None:
        err_console.print(f"[green]Result written to[/green] {written}")


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind host")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="First port to try")] = None,
) -> None:
    """Start the multi-app host. Blocks until interrupted."""
    from formweave.runtime.host import run_host

    config = _config()
    try:
        run_host(host=host, port=port, config=config)
    except PortExhaustion as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def load(
    file: Annotated[Path, typer.Argument(help="Definition file creating an App")],
    name: Annotated[str | None, typer.Option("--name", "-n", help="Display name")] = None,
) -> None:
    """Load a definition file into the running host."""
    from formweave.runtime.client import ServiceClient

    config = _config()
    try:
        with ServiceClient.discover(config) as client:
            loaded = client.load_app(file, name=name)
    except ServiceUnavailable as e:
        err_console.print(f"[red]Host unavailable:[/red] {e}")
        raise typer.Exit(code=1)
    except LoadError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=EXIT_USAGE)

    console.print(f"[green]Loaded[/green] {loaded['name']} ({loaded['id']})")
    console.print(f"  {loaded['full_url']}")


@app.command(name="apps")
def list_apps() -> None:
    """List the apps served by the running host."""
    from formweave.runtime.client import ServiceClient

    config = _config()
    try:
        with ServiceClient.discover(config) as client:
            apps = client.list_apps()
            base_url = client.base_url
    except ServiceUnavailable as e:
        err_console.print(f"[red]Host unavailable:[/red] {e}")
        raise typer.Exit(code=1)

    if not apps:
        console.print("[dim]No apps loaded.[/dim]")
        return

    table = Table(title="Hosted apps")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("URL")
    table.add_column("Sessions", justify="right")
    for entry in apps:
        table.add_row(
            entry["id"],
            entry["name"],
            f"{base_url}{entry['url']}",
            str(entry["sessions"]),
        )
    console.print(table)


@app.command()
def version() -> None:
    """Show the installed version."""
    typer.echo(f"formweave {__version__}")


def main() -> None:
    """Console script entry point."""
    try:
        app(standalone_mode=True)
    except FormweaveError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
