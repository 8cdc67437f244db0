# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Operation errors and the diagnostic progress reporter.

Every failure raised by the creation workflow derives from
:class:`OperationError`, so callers (the CLI in particular) can catch a
single type and report it.

:class:`OperationReporter` owns the *diagnostic* channel.  Everything
that is not the final container ID (pull progress, "Unable to find
image" notices, engine warnings) goes through it, which keeps stdout
clean for scripts that capture the ID.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape


class OperationError(Exception):
    """Base class for errors raised by berth operations."""


class OperationReporter:
    """Writes human-readable status lines to the diagnostic channel."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True, highlight=False)

    def info(self, msg: str) -> None:
        self.console.print(escape(msg))

    def dim(self, msg: str) -> None:
        self.console.print(f"[dim]{escape(msg)}[/dim]")

    def warning(self, msg: str) -> None:
        self.console.print(f"[yellow]WARNING:[/yellow] {escape(msg)}")

    def progress(self, record: dict[str, Any]) -> None:
        """Render one decoded pull progress record.

        Layer records look like ``{"id": "a1b2", "status": "Downloading",
        "progress": "[==>  ] 1MB/5MB"}``; top-level records have no ``id``.
        """
        status = record.get("status")
        if not status:
            return
        parts = [f"{record['id']}:"] if record.get("id") else []
        parts.append(str(status))
        if record.get("progress"):
            parts.append(str(record["progress"]))
        self.dim(" ".join(parts))
