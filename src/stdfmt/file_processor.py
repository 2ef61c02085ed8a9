# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""File processing logic: read, format, narrow to changed lines, write."""

import asyncio
import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Optional

from returns.result import Failure

from .async_file_io import atomic_write_async_safe, buffered_read_safe
from .errors import FileError
from .formatter import format_safe
from .models import ChangeRange, Event, FailedEvent, FileTask, ProcessedEvent, SkippedEvent
from .range_filter import apply_ranges
from .worker_context import WorkerContext, WorkItem

logger = logging.getLogger(__name__)

WHOLE_FILE: Optional[list[ChangeRange]] = None


class FileProcessor:
    """Handles processing of individual files.

    Every failure is converted to a FailedEvent for that file only; nothing
    raised here should stop the rest of the batch.
    """

    def __init__(self, context: WorkerContext):
        self.context = context
        self.config = context.config

    async def process(self, item: WorkItem, worker_id: int = 0) -> Optional[Event]:
        """
        Run one file through the pipeline and publish its event.

        Returns:
            The published event, or None when the file has no changed lines
            under --changed and is therefore not part of this run
        """
        wait_ms = item.wait_ms()
        event = await self._process(item.path)
        if event is not None:
            await self.context.publish(event, worker_id, wait_ms)
        return event

    async def _process(self, path: Path) -> Optional[Event]:
        read_result = await buffered_read_safe(path)
        if isinstance(read_result, Failure):
            error = read_result.failure()
            if isinstance(error, FileError) and error.binary:
                logger.debug("skipping binary file %s: %s", path, error.original_error)
                return SkippedEvent(file=path, reason=error.message)
            return FailedEvent(file=path, error=error)
        task = FileTask(path=path, original_content=read_result.unwrap())

        ranges = WHOLE_FILE
        if self.config.changed:
            ranges_result = await self._changed_ranges(path)
            if isinstance(ranges_result, FailedEvent):
                return ranges_result
            ranges = ranges_result
            if ranges is not None and not ranges:
                logger.debug("no changed lines in %s", path)
                return None

        options = self.config.options.for_path(path)
        start = time.perf_counter()
        format_result = await asyncio.to_thread(format_safe, task.original_content, options)
        if isinstance(format_result, Failure):
            return FailedEvent(file=path, error=format_result.failure())
        formatted = format_result.unwrap()
        output = formatted.formatted_content

        if ranges is not None:
            narrowed = apply_ranges(task.original_content, output, ranges)
            if narrowed is None:
                logger.debug("line count changed in %s, using full output", path)
                if self.context.logger:
                    self.context.logger.append_notes(path, ["line count changed; full formatter output used"])
            else:
                output = narrowed
        runtime_ms = int((time.perf_counter() - start) * 1000)

        # ``formatted`` reports the whole file, even when only ranges are rewritten
        event = ProcessedEvent(
            file=path,
            formatted=formatted.already_formatted,
            runtime_ms=runtime_ms,
            check=self.config.check
        )
        if self.config.check or output == task.original_content:
            return event

        write_result = await atomic_write_async_safe(path, output)
        if isinstance(write_result, Failure):
            return FailedEvent(file=path, error=write_result.failure())
        return replace(event, written=True)

    async def _changed_ranges(self, path: Path) -> Optional[list[ChangeRange]] | FailedEvent:
        """Changed ranges for ``path``; None means the whole file."""
        source = self.context.change_source
        if source is None:
            return WHOLE_FILE

        result = await source.get_changed_ranges(path, self.config.since)
        if isinstance(result, Failure):
            error = result.failure()
            if error.untracked:
                # No committed baseline: every line is new
                return WHOLE_FILE
            return FailedEvent(file=path, error=error)
        return result.unwrap()
