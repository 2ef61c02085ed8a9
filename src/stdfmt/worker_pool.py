# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""Worker pool for parallel file processing."""

import asyncio
import logging
import time
from typing import List, Optional

from .errors import StdfmtError
from .file_processor import FileProcessor
from .models import Event, FailedEvent
from .worker_context import WorkerContext, WorkItem

logger = logging.getLogger(__name__)


class WorkerPool:
    """Manages a pool of async workers for parallel file processing.

    Each worker keeps the events it produced; ``shutdown`` joins the
    workers and returns all of them, so no state is shared between
    workers while they run.
    """

    def __init__(
        self,
        num_workers: Optional[int] = None,
        queue_size: int = 10
    ):
        """Initialize worker pool.

        Args:
            num_workers: Number of worker tasks (default: 1)
            queue_size: Maximum items in queue (default: 10)
        """
        if num_workers is None:
            num_workers = 1
        if num_workers < 1:
            raise ValueError("num_workers must be at least 1")

        self.num_workers = num_workers
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.workers: List[asyncio.Task] = []
        self.context: Optional[WorkerContext] = None
        self.processor: Optional[FileProcessor] = None
        self._running = False

    async def start(self, context: WorkerContext, processor: Optional[FileProcessor] = None) -> None:
        """Start the worker pool.

        Args:
            context: Shared worker context
            processor: File processor (default: one built from ``context``)
        """
        if self._running:
            raise RuntimeError("Worker pool already running")

        self.context = context
        self.processor = processor or FileProcessor(context)
        self._running = True
        for i in range(self.num_workers):
            worker_id = i + 1
            self.workers.append(asyncio.create_task(
                self._worker(worker_id),
                name=f"worker-{worker_id}"
            ))

        if context.logger:
            context.logger.write({
                'ev': 'worker_pool_started',
                'num_workers': self.num_workers,
                'queue_size': self.queue.maxsize
            })

    async def submit(self, item: WorkItem) -> None:
        """Submit a work item to the pool.

        Raises:
            RuntimeError: If pool not started
        """
        if not self._running:
            raise RuntimeError("Worker pool not started")

        item.queue_time = time.time()
        await self.queue.put(item)

    async def shutdown(self) -> List[Event]:
        """Finish queued work, stop the workers and collect their events.

        Returns:
            Every event produced, in no particular order
        """
        if not self._running:
            return []

        # One sentinel per worker, queued behind the real work
        for _ in range(self.num_workers):
            await self.queue.put(None)

        results = await asyncio.gather(*self.workers)
        self.workers = []
        self._running = False
        return [event for worker_events in results for event in worker_events]

    async def cancel(self) -> None:
        """Stop workers without waiting for queued work."""
        if self.context is not None and self.context.shutdown_event is not None:
            self.context.shutdown_event.set()
        for worker in self.workers:
            worker.cancel()
        await asyncio.gather(*self.workers, return_exceptions=True)
        self.workers = []
        self._running = False

    async def _worker(self, worker_id: int) -> List[Event]:
        """Process items until a sentinel arrives."""
        assert self.processor is not None and self.context is not None
        events: List[Event] = []

        while True:
            item = await self.queue.get()
            try:
                if item is None:
                    break
                if self.context.should_shutdown():
                    continue
                try:
                    event = await self.processor.process(item, worker_id)
                except Exception as e:
                    logger.exception("worker %d failed on %s", worker_id, item.path)
                    event = FailedEvent(
                        file=item.path,
                        error=StdfmtError(message=f"Unexpected error: {e}")
                    )
                    await self.context.publish(event, worker_id, item.wait_ms())
                if event is not None:
                    events.append(event)
                logger.debug(
                    "worker %d finished %s (%d/%d)",
                    worker_id, item.path, item.index, item.total
                )
            finally:
                self.queue.task_done()

        return events

    async def __aenter__(self) -> 'WorkerPool':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._running:
            await self.cancel()
