"""CLI entry point for pipefmt.

Invoked as::

    pipefmt [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m pipefmt.cli.main

Commands
--------
fmt         Format a file through its configured pipeline
check       Report which configured formatters are installed
version     Show version information
"""
from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from pipefmt.config import FormatterConfig, check_executables, config_from_dict, find_config, load_config
from pipefmt.diagnostics import Diagnostics, Notice
from pipefmt.errors import ConfigError, InvalidRangeError
from pipefmt.orchestrator import FormatMode, Formatter, RequestState
from pipefmt.splice import FormatRange
from pipefmt.store import FileStore

console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config_or_exit(config_path: str | None, target: str) -> FormatterConfig:
    """Load the configuration given on the command line, or search for one."""
    path: Path | None = Path(config_path) if config_path else find_config(target)
    if path is None:
        err_console.print("[yellow]Warning:[/yellow] No pipefmt.yaml found; nothing is configured.")
        return config_from_dict({})
    try:
        return load_config(path)
    except ConfigError as exc:
        err_console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(1)


def _open_store(path: str) -> FileStore:
    """Open a file for formatting, exiting on error."""
    try:
        return FileStore(path)
    except FileNotFoundError:
        err_console.print(f"[red]Error:[/red] File not found: {path}")
        sys.exit(1)
    except (OSError, UnicodeDecodeError) as exc:
        err_console.print(f"[red]Error:[/red] Cannot read {path}: {exc}")
        sys.exit(1)


def _level_color(level_name: str) -> str:
    """Map a NoticeLevel name to a Rich color string."""
    colors = {
        "ERROR": "red",
        "WARNING": "yellow",
        "INFO": "blue",
    }
    return colors.get(level_name, "white")


def _print_notice(notice: Notice) -> None:
    color = _level_color(notice.level.name)
    err_console.print(f"[{color}]{notice.level.name}[/{color}] {notice.message}", highlight=False)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="pipefmt")
def cli() -> None:
    """Run external formatter pipelines over files, embedded languages included."""


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from pipefmt import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]pipefmt[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# fmt command
# ---------------------------------------------------------------------------


@cli.command(name="fmt")
@click.argument("file", type=click.Path(exists=False))
@click.option(
    "--mode",
    type=click.Choice([m.value for m in FormatMode], case_sensitive=False),
    default=FormatMode.BASIC.value,
    help="basic: the file's own pipeline; injections: embedded regions only; all: both",
)
@click.option("--range", "line_range", default=None, help="Restrict formatting to lines START:END")
@click.option("--filetype", "-f", default=None, help="Override the filetype guessed from the suffix")
@click.option("--config", "config_path", default=None, help="Path to a pipefmt.yaml file")
@click.option("--check", is_flag=True, default=False, help="Check if the file is already formatted")
@click.option("--in-place", is_flag=True, default=False, help="Rewrite the file in place")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log every stage")
def fmt_command(
    file: str,
    mode: str,
    line_range: str | None,
    filetype: str | None,
    config_path: str | None,
    check: bool,
    in_place: bool,
    verbose: bool,
) -> None:
    """Format FILE with its configured formatter pipeline.

    Without --check or --in-place, prints the formatted output to stdout.

    Examples:

    \b
        pipefmt fmt main.py
        pipefmt fmt README.md --mode all --in-place
        pipefmt fmt main.py --range 10:40 --check
    """
    _configure_logging(verbose)
    store = _open_store(file)
    config = _load_config_or_exit(config_path, file)

    diagnostics = Diagnostics(listener=_print_notice)
    formatter = Formatter(config, diagnostics=diagnostics)

    try:
        region = FormatRange.parse(line_range) if line_range else None
        request = formatter.create_request(store, range=region, filetype=filetype)
    except (ValueError, InvalidRangeError) as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    if in_place:
        result = asyncio.run(formatter.format(request, mode))
        if result.state is RequestState.ABORTED:
            console.print(f"[yellow]NOT WRITTEN[/yellow] {file}")
        elif result.edited:
            console.print(f"[green]Formatted[/green] {file}")
        else:
            console.print(f"[green]OK[/green] {file} — already formatted")
        sys.exit(1 if diagnostics.has_errors or result.state is RequestState.ABORTED else 0)

    output = asyncio.run(formatter.compute(request, mode))

    if check:
        if output == list(request.input):
            console.print(f"[green]OK[/green] {file} — already formatted")
            sys.exit(0)
        console.print(f"[yellow]NEEDS FORMATTING[/yellow] {file}")
        sys.exit(1)

    syntax = Syntax("\n".join(output), request.filetype or "text", line_numbers=True)
    console.print(syntax)
    if diagnostics.has_errors:
        sys.exit(1)


# ---------------------------------------------------------------------------
# check command
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.option("--config", "config_path", default=None, help="Path to a pipefmt.yaml file")
def check_command(config_path: str | None) -> None:
    """Report which configured formatter executables are installed."""
    config = _load_config_or_exit(config_path, str(Path.cwd()))

    if config.source:
        console.print(f"[bold]Configuration:[/bold] {config.source}")

    statuses = check_executables(config)
    if not statuses:
        console.print("[yellow]No formatters configured.[/yellow]")
        return

    table = Table(title="Formatters", show_lines=False)
    table.add_column("Executable", style="bold")
    table.add_column("Status", min_width=10)
    table.add_column("Filetypes")

    for status in statuses:
        state = "[green]found[/green]" if status.found else "[yellow]not found[/yellow]"
        table.add_row(status.exe, state, ", ".join(status.filetypes))

    console.print(table)
    missing = sum(1 for s in statuses if not s.found)
    console.print(
        f"\n[bold]Summary:[/bold] {len(statuses) - missing} found, {missing} missing"
    )


if __name__ == "__main__":
    cli()
