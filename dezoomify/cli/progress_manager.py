"""
Manages a Rich progress bar that follows tile downloads.
"""

import logging
import threading

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
)

from dezoomify.models.geometry import Vec2d

log = logging.getLogger("dezoomify")


class ProgressManager:
    """
    Displays `[ETA] bar done/total message` while tiles are downloaded.

    Used as the progress observer of the tile downloader; notifications may
    come from any thread.
    """

    def __init__(self, console: Console, disable: bool = False):
        self.console = console
        self.progress = Progress(
            TextColumn("[dim]ETA[/dim]"),
            TimeRemainingColumn(),
            BarColumn(bar_width=40, complete_style="cyan", finished_style="blue"),
            MofNCompleteColumn(),
            TextColumn("{task.description}"),
            console=console,
            transient=False,
            disable=disable,
        )
        self._task_id: TaskID | None = None
        self._failed = 0
        self._started = False
        self._lock = threading.Lock()

    def start(self, total: int) -> None:
        with self._lock:
            if not self._started:
                self.progress.start()
                self._started = True
            self._task_id = self.progress.add_task("Downloading tiles", total=total)

    def advance(self, completed: int, position: Vec2d, success: bool) -> None:
        with self._lock:
            if not success:
                self._failed += 1
            if self._task_id is None:
                return
            self.progress.update(
                self._task_id,
                completed=completed,
                description=f"Downloading tile at {position}",
            )

    def finish(self, message: str) -> None:
        with self._lock:
            if self._task_id is not None:
                style = "green" if self._failed == 0 else "yellow"
                self.progress.update(
                    self._task_id, description=f"[{style}]{message}[/{style}]"
                )

    @property
    def failed(self) -> int:
        return self._failed

    def __enter__(self) -> "ProgressManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._started:
            self.progress.stop()
