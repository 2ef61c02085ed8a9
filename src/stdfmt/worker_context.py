# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""Shared context for worker pool operations."""

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import RunConfig
from .logging_jsonl import JsonlLogger
from .models import ChangeSource, Event, FailedEvent, ProcessedEvent, SkippedEvent


@dataclass
class WorkItem:
    """Item queued for worker processing."""
    path: Path
    index: int
    total: int
    queue_time: float = 0.0  # Time when queued (for wait time tracking)

    def wait_ms(self, now: Optional[float] = None) -> int:
        """Milliseconds spent in the queue; 0 if never queued."""
        if not self.queue_time:
            return 0
        now = time.time() if now is None else now
        return max(int((now - self.queue_time) * 1000), 0)


@dataclass
class WorkerContext:
    """Read-only context shared by all workers in the pool.

    Workers never write to shared state here; events go out through
    ``event_queue`` and per-file outcomes are returned to the pool.
    """

    # Configuration
    config: RunConfig
    root: Path

    # Collaborators
    change_source: Optional[ChangeSource] = None
    logger: Optional[JsonlLogger] = None

    # Reporter communication
    event_queue: Optional[asyncio.Queue] = None

    # Lifecycle management
    shutdown_event: Optional[asyncio.Event] = None

    def __post_init__(self):
        """Initialize event if not provided."""
        if self.shutdown_event is None:
            self.shutdown_event = asyncio.Event()

    def should_shutdown(self) -> bool:
        """Check if workers should shutdown."""
        return self.shutdown_event is not None and self.shutdown_event.is_set()

    async def publish(self, event: Event, worker_id: int = 0, wait_ms: int = 0) -> None:
        """Send an event to the reporter and the event log.

        Args:
            event: Event for one file
            worker_id: Worker identifier
            wait_ms: Time the file waited in the pool queue
        """
        if self.event_queue is not None:
            await self.event_queue.put(event)

        if self.logger:
            record = _log_record(event, worker_id)
            record['wait_ms'] = wait_ms
            self.logger.write(record)


def _log_record(event: Event, worker_id: int) -> dict:
    if isinstance(event, ProcessedEvent):
        return {
            'ev': 'file_processed',
            'worker_id': worker_id,
            'path': str(event.file),
            'formatted': event.formatted,
            'written': event.written,
            'check': event.check,
            'time_ms': event.runtime_ms
        }
    if isinstance(event, FailedEvent):
        return {
            'ev': 'file_failed',
            'worker_id': worker_id,
            'path': str(event.file),
            'error': event.error.message,
            'error_type': type(event.error).__name__
        }
    assert isinstance(event, SkippedEvent)
    return {
        'ev': 'file_skipped',
        'worker_id': worker_id,
        'path': str(event.file),
        'reason': event.reason
    }
