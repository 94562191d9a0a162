"""User-facing output for the CLI.

Normal messages go to stdout and errors to stderr. All printing
uses rich consoles with soft wrapping so keys and paths are never broken
across lines.
"""

from rich.console import Console


class OutputFormatter:
    """Formats messages for the terminal."""

    def __init__(self, quiet: bool = False, no_color: bool = False):
        """Initialize the formatter.

        Args:
            quiet: Suppress informational messages and progress
            no_color: Disable colors
        """
        self.quiet = quiet
        self.console = Console(no_color=no_color, highlight=False)
        self.err_console = Console(stderr=True, no_color=no_color, highlight=False)

    def print(self, message: str = "") -> None:
        """Print a plain line, regardless of quiet mode."""
        self.console.print(message, markup=False, soft_wrap=True)

    def info(self, message: str) -> None:
        if not self.quiet:
            self.console.print(message, markup=False, soft_wrap=True)

    def success(self, message: str) -> None:
        if not self.quiet:
            self.console.print(
                f"✓ {message}", style="green", markup=False, soft_wrap=True
            )

    def error(self, message: str) -> None:
        self.err_console.print(
            f"Error: {message}", style="bold red", markup=False, soft_wrap=True
        )

