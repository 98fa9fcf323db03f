"""
Rich renderables for errors, dezoomer listings, configuration and run summaries.
"""

from collections.abc import Sequence
from pathlib import Path

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from dezoomify import exceptions as exc
from dezoomify.core.orchestrator import DezoomResult
from dezoomify.dezoomers.base import Dezoomer, ZoomLevel
from dezoomify.models.config import DezoomConfig
from dezoomify.utils.formatting import (
    format_duration,
    format_megapixels,
    format_size,
)

# Looked up along the exception's MRO, so subclasses share their parent's hints
_HINTS: dict[type[Exception], list[str]] = {
    exc.NoCompatibleDezoomer: [
        "Point to the image metadata itself (info.json, ImageProperties.xml, "
        "tiles.yaml).",
        "Force a protocol with --dezoomer.",
    ],
    exc.NoSuchDezoomer: ["Run `dezoomify --list-dezoomers` to see the available names."],
    exc.DezoomerError: ["Force another protocol with --dezoomer."],
    exc.TooManyProbeSteps: ["Raise max_probe_steps in the configuration file."],
    exc.NetworkError: [
        "The server may require headers: try -H 'Referer: <page url>'.",
        "Increase --retries or --timeout.",
    ],
    exc.LocalFileError: ["Check that the file exists and is readable."],
    exc.NoTileDownloaded: [
        "The tile server may be rejecting requests: add headers with -H.",
        "Lower the number of parallel downloads with -n.",
    ],
    exc.NoLevels: ["The image description was found but lists no zoom level."],
    exc.ImageEncodeError: [
        "Use an extension Pillow can write (.jpg, .png, .tiff).",
        "JPEG is limited to 65535 pixels per side: use .png for larger images.",
    ],
    exc.ConfigurationError: ["Fix or delete the configuration file."],
}
_DEFAULT_HINTS = ["Run the command again with -v for detailed logs."]


def _hints_for(error: Exception) -> list[str]:
    for cls in type(error).__mro__:
        if cls in _HINTS:
            return _HINTS[cls]
    return _DEFAULT_HINTS


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Renders an error and what the user can try next."""
    parts = [
        Text.assemble((f"{type(error).__name__}: ", "bold red"), str(error)),
        Text(""),
        Text("What to try", style="bold yellow"),
        Text("\n".join(f"• {hint}" for hint in _hints_for(error))),
    ]
    if context:
        parts.append(Text(f"\nContext: {context}", style="dim"))

    return Panel(
        Group(*parts),
        title="[bold red]dezoomify failed[/bold red]",
        border_style="red",
        expand=False,
    )


def print_dezoomers(dezoomers: Sequence[Dezoomer], console: Console | None = None):
    """Lists the available dezoomers."""
    console = console or Console()
    table = Table(title="Available dezoomers", box=box.ROUNDED)
    table.add_column("Name", style="bold magenta", no_wrap=True)
    table.add_column("Description")
    for dezoomer in dezoomers:
        doc = (type(dezoomer).__doc__ or "").strip().splitlines()
        table.add_row(dezoomer.name, doc[0] if doc else "")
    console.print(table)


def print_config(config_path: Path, config: DezoomConfig):
    """Shows every effective setting, with the file it was read from."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column()
    for key, value in config.model_dump(exclude={"config_path", "headers"}).items():
        table.add_row(key, "-" if value is None else str(value))
    for name, value in config.headers.items():
        table.add_row(f"header {name}", value)

    source = config_path if config_path.is_file() else f"{config_path} (not found)"
    Console().print(
        Panel(
            table,
            title="Configuration",
            subtitle=f"[dim]{source}[/dim]",
            border_style="cyan",
            expand=False,
        )
    )


def print_summary_panel(
    result: DezoomResult, level: ZoomLevel, saved_to: Path, duration_s: float
):
    """Displays the final summary of the run."""
    console = Console()

    stats = result.stats
    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=16)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("Zoom level:", level.name)
    stats_table.add_row(
        "✓ Tiles:", f"[bold green]{stats.succeeded}[/bold green] / {stats.total}"
    )
    if stats.failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.failed}[/bold red]")

    image_size = result.canvas.size
    stats_table.add_row("", "")
    stats_table.add_row(
        "Image size:",
        f"[cyan]{image_size.size_str()}[/cyan] "
        f"[dim]({format_megapixels(image_size.x, image_size.y)})[/dim]",
    )
    stats_table.add_row(
        "Downloaded:", f"[cyan]{format_size(stats.bytes_downloaded)}[/cyan]"
    )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")
    stats_table.add_row("Saved to:", f"[dim]{saved_to}[/dim]")

    if result.is_partial:
        title = f"⚠ [bold]{result.summary()}[/bold]"
        border_color = "yellow"
    else:
        title = "🖼 [bold]Downloaded all tiles.[/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
