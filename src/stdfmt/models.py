# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""
Data types shared by the selection and processing pipeline.

Tasks and results are immutable; each is created once per file and
consumed by the next stage.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, Sequence, Union

from returns.result import Result

from .errors import StdfmtError, VcsError


@dataclass(frozen=True)
class FileTask:
    """A file (or the stdin buffer) selected for formatting."""
    path: Path
    original_content: str
    is_stdin: bool = False


@dataclass(frozen=True, order=True)
class ChangeRange:
    """Changed lines, 1-indexed and inclusive, in the current file content."""
    start_line: int
    end_line: int

    def __post_init__(self):
        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(
                f"Invalid change range [{self.start_line}, {self.end_line}]"
            )

    def __contains__(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


@dataclass(frozen=True)
class FormatResult:
    """Formatter output for one task."""
    formatted_content: str
    already_formatted: bool
    runtime_ms: int


# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class ProcessedEvent:
    """A file went through the formatter.

    ``formatted`` is True when the file already matched the code style,
    i.e. it did not need reformatting.
    """
    file: Path
    formatted: bool
    runtime_ms: int
    check: bool
    written: bool = False


@dataclass(frozen=True)
class FailedEvent:
    """A file could not be read, formatted, diffed or written."""
    file: Path
    error: StdfmtError


@dataclass(frozen=True)
class SkippedEvent:
    """A file was left alone (binary content)."""
    file: Path
    reason: str


Event = Union[ProcessedEvent, FailedEvent, SkippedEvent]


@dataclass
class RunSummary:
    """Outcome of a batch, built after every worker has finished."""
    processed: list[ProcessedEvent] = field(default_factory=list)
    failures: list[FailedEvent] = field(default_factory=list)
    skipped: list[SkippedEvent] = field(default_factory=list)

    @classmethod
    def from_events(cls, events: Sequence[Event]) -> 'RunSummary':
        """Fold a flat sequence of events into a summary."""
        summary = cls()
        for event in events:
            if isinstance(event, ProcessedEvent):
                summary.processed.append(event)
            elif isinstance(event, FailedEvent):
                summary.failures.append(event)
            else:
                summary.skipped.append(event)
        summary.processed.sort(key=lambda e: e.file)
        summary.failures.sort(key=lambda e: e.file)
        summary.skipped.sort(key=lambda e: e.file)
        return summary

    @property
    def all_formatted(self) -> bool:
        return all(event.formatted for event in self.processed)

    @property
    def unformatted(self) -> list[Path]:
        return [event.file for event in self.processed if not event.formatted]

    def succeeded(self, check: bool) -> bool:
        """Unformatted files only count against a check run."""
        if self.failures:
            return False
        return self.all_formatted or not check


class ChangeSource(Protocol):
    """Version-control queries used for --since/--changed/--staged."""

    async def list_changed_files(self, since: str | None) -> Result[list[Path], VcsError]:
        """Files differing from ``since`` (or HEAD when None)."""
        ...

    async def get_changed_ranges(
        self,
        path: Path,
        since: str | None = None
    ) -> Result[list[ChangeRange], VcsError]:
        """Added or modified line ranges of ``path``."""
        ...
