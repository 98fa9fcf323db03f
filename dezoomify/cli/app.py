"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Prompt

from dezoomify import __version__
from dezoomify.core.selector import interactive_chooser
from dezoomify.core.session import DezoomSession
from dezoomify.dezoomers import all_dezoomers
from dezoomify.exceptions import DezoomifyError
from dezoomify.media.fetcher import Fetcher
from dezoomify.storage.config_manager import ConfigManager
from dezoomify.utils.formatting import parse_header

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_dezoomers,
    print_summary_panel,
)
from .progress_manager import ProgressManager

console = Console()
err_console = Console(stderr=True)

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("dezoomify")

app = typer.Typer(
    name="dezoomify",
    help="Download the tiles of a zoomable image and assemble them into a single file.",
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "dezoomify"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _parse_headers(headers: list[str] | None) -> dict[str, str]:
    parsed = {}
    for header in headers or []:
        try:
            name, value = parse_header(header)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--header") from e
        parsed[name] = value
    return parsed


@app.command()
def main(
    input_uri: str | None = typer.Argument(None, help="Input URL or local file name."),
    outfile: str | None = typer.Argument(
        None, help="File to which the resulting image should be saved."
    ),
    dezoomer: str | None = typer.Option(
        None, "-d", "--dezoomer", help="Name of the dezoomer to use (default: auto)."
    ),
    largest: bool | None = typer.Option(
        None,
        "--largest/--no-largest",
        "-l/-L",
        help="If several zoom levels are available, select the largest one.",
    ),
    max_width: int | None = typer.Option(
        None,
        "-w",
        "--max-width",
        help="Select the largest zoom level whose width is below this value.",
    ),
    max_height: int | None = typer.Option(
        None,
        "-h",
        "--max-height",
        help="Select the largest zoom level whose height is below this value.",
    ),
    num_threads: int | None = typer.Option(
        None,
        "-n",
        "--num-threads",
        help="At most this number of tiles are downloaded at the same time "
        "(default: number of CPUs).",
    ),
    retries: int | None = typer.Option(
        None, "--retries", help="Number of retries for failed network requests."
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Timeout of a single request, in seconds."
    ),
    header: list[str] | None = typer.Option(  # noqa: B008
        None, "-H", "--header", help="Extra request header, as 'Name: value'."
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Show debug messages.",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    list_dezoomers: bool = typer.Option(
        False, "--list-dezoomers", help="List the available dezoomers and exit."
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the effective configuration and exit."
    ),
    init_config: bool = typer.Option(
        False, "--init-config", help="Write a default configuration file and exit."
    ),
):
    """Download a zoomable image."""
    if version:
        console.print(f"[bold]dezoomify[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    if verbose:
        logging.getLogger("dezoomify").setLevel("DEBUG")

    if list_dezoomers:
        print_dezoomers(all_dezoomers(include_auto=True), console)
        raise typer.Exit()

    config_manager = ConfigManager(CONFIG_FILE)

    if init_config:
        if CONFIG_FILE.exists() and not typer.confirm(
            "Configuration file already exists. Overwrite it?"
        ):
            raise typer.Abort()
        try:
            config_manager.save_new_config()
        except DezoomifyError as e:
            err_console.print(format_error_with_suggestions(e))
            raise typer.Exit(code=1) from e
        console.print(f"[green]✓ Configuration saved to '{CONFIG_FILE}'[/green]")
        raise typer.Exit()

    cli_options = {
        key: value
        for key, value in {
            "input_uri": input_uri,
            "outfile": outfile,
            "dezoomer": dezoomer,
            "largest": largest,
            "max_width": max_width,
            "max_height": max_height,
            "num_threads": num_threads,
            "retries": retries,
            "timeout": timeout,
            "headers": _parse_headers(header) or None,
        }.items()
        if value is not None
    }

    try:
        config = config_manager.load_config(cli_options)
    except DezoomifyError as e:
        err_console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    if show_config:
        print_config(CONFIG_FILE, config)
        raise typer.Exit()

    uri = config.input_uri or typer.prompt("Enter an URL or a path to a tiles.yaml file")
    chooser = interactive_chooser(
        ask=lambda question: Prompt.ask(question, console=console),
        say=console.print,
    )

    async def _dezoomify_async():
        async with Fetcher(
            headers=config.headers,
            max_workers=config.num_threads,
            timeout=config.timeout,
            max_attempts=config.retries + 1,
            base_delay=config.retry_delay,
        ) as fetcher:
            with ProgressManager(console) as progress:
                session = DezoomSession(config, fetcher, progress, chooser)
                report = await session.run(uri)
                progress.finish(report.result.summary())
        return report

    try:
        report = asyncio.run(_dezoomify_async())
    except DezoomifyError as e:
        err_console.print(format_error_with_suggestions(e))
        log.debug("Full traceback:", exc_info=True)
        raise typer.Exit(code=1) from e

    print_summary_panel(
        report.result, report.level, report.saved_to, report.duration_s
    )
