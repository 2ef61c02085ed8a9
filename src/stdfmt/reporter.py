# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""Console rendering of per-file events."""

import asyncio
from pathlib import Path
from typing import Optional

from rich.console import Console

from .models import Event, FailedEvent, ProcessedEvent, RunSummary, SkippedEvent

STYLE_NAME = "black and isort"


class Reporter:
    """Renders events as they arrive on a queue.

    Check mode lists only files that need formatting; write mode lists every
    file with its runtime, dimmed when nothing had to change.
    """

    def __init__(
        self,
        root: Path,
        check: bool,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None
    ):
        self.root = Path(root).resolve()
        self.check = check
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.err_console = err_console or Console(stderr=True, highlight=False, soft_wrap=True)

    def display_path(self, path: Path) -> str:
        """Path relative to the root when possible."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return str(path)

    def start(self) -> None:
        if self.check:
            self.console.print("Checking formatting...", markup=False)

    def render(self, event: Event) -> None:
        name = self.display_path(event.file)
        if isinstance(event, ProcessedEvent):
            if self.check:
                if not event.formatted:
                    self.console.print(name, markup=False)
            else:
                self.console.print(
                    f"{name} {event.runtime_ms}ms",
                    style="grey50" if event.formatted else None,
                    markup=False
                )
        elif isinstance(event, FailedEvent):
            self.err_console.print(f"{name}: {event.error.message}", style="red", markup=False)
        elif isinstance(event, SkippedEvent):
            self.err_console.print(f"{name}: skipped ({event.reason})", style="yellow", markup=False)

    async def consume(self, queue: asyncio.Queue) -> None:
        """Render events until a None sentinel arrives."""
        while True:
            event = await queue.get()
            try:
                if event is None:
                    return
                self.render(event)
            finally:
                queue.task_done()

    def finish(self, summary: RunSummary) -> None:
        """Closing lines for a check run."""
        if not self.check:
            return
        if summary.succeeded(check=True):
            self.console.print(f"All matched files use {STYLE_NAME} code style!", markup=False)
            return
        if not summary.all_formatted:
            self.console.print("Code style issues found in the above file(s).", markup=False)
        if summary.failures:
            self.console.print("Error occurred when checking code style in the above file(s).", markup=False)
