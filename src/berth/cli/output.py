"""Console output for the CLI.

stdout carries only command results (for ``create``, the container ID),
so it can be captured by scripts.  Everything else goes to stderr.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from ..operations import OperationReporter


class Output:
    """Result and diagnostic consoles shared by all commands."""

    def __init__(self) -> None:
        self.console = Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def result(self, text: str) -> None:
        """Print a command result on stdout, verbatim."""
        self.console.print(text, markup=False, soft_wrap=True)

    def reporter(self) -> OperationReporter:
        """Diagnostic reporter bound to stderr."""
        return OperationReporter(self.err_console)

    def error(self, msg: str) -> None:
        self.err_console.print(f"[bold red]Error:[/bold red] {escape(msg)}")

    def hint(self, msg: str) -> None:
        self.err_console.print(f"[dim]Hint:[/dim] {msg}")


out = Output()
