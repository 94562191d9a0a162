"""CLI progress display for transfers.

This module provides a Rich-based progress bar that the transfer engines
drive through plain ``progress_callback(bytes_done, total)`` functions.
"""

from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TransferSpeedColumn,
)


class TransferProgressDisplay:
    """Rich-based progress display for one or more sequential transfers.

    A single task is reused: each new file resets its description, total
    and completed byte count.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the progress display.

        Args:
            console: Console to render on (shared with normal output so
                messages print above the bar)
        """
        self._console = console
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def make_callback(self, name: str) -> Callable[[int, int], None]:
        """Start tracking a new file and return its progress callback.

        Args:
            name: File name shown next to the bar

        Returns:
            Callback function(bytes_done, total_bytes)
        """
        if self._progress is not None and self._task is not None:
            self._progress.update(
                self._task, description=escape(name), total=None, completed=0
            )

        def _callback(bytes_done: int, total_bytes: int) -> None:
            if self._progress is None or self._task is None:
                return
            self._progress.update(
                self._task, total=total_bytes, completed=bytes_done
            )

        return _callback

    def __enter__(self) -> "TransferProgressDisplay":
        """Enter context manager - start progress display."""
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeElapsedColumn(),
            console=self._console,
            transient=True,
            refresh_per_second=4,
        )
        self._progress.__enter__()
        self._task = self._progress.add_task("Preparing...", total=None)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - stop progress display."""
        if self._progress is not None:
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None
            self._task = None
