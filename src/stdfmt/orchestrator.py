# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""
Batch orchestration.

Selects files, fans them out over a worker pool, and folds the per-file
events into a RunSummary once every worker has finished. Setup failures
(bad revision, empty selection) are returned before any file is touched;
per-file failures only ever show up as events.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional, Sequence

from returns.result import Failure, Result, Success

from .config import RunConfig
from .errors import StdfmtError
from .logging_jsonl import JsonlLogger
from .models import ChangeSource, RunSummary
from .selector import select_files
from .vcs import GitChangeSource
from .worker_context import WorkerContext, WorkItem
from .worker_pool import WorkerPool

logger = logging.getLogger(__name__)


def default_change_source(root: Path, config: RunConfig) -> Optional[ChangeSource]:
    """A git change source when the configuration needs one."""
    if not config.uses_git:
        return None
    return GitChangeSource(root, staged=config.staged)


async def process_paths(
    paths: Sequence[Path],
    context: WorkerContext,
) -> RunSummary:
    """Run already-selected files through a worker pool.

    Returns:
        Summary folded from the events of every worker
    """
    pool = WorkerPool(num_workers=min(context.config.workers, max(len(paths), 1)))
    async with pool:
        await pool.start(context)
        total = len(paths)
        for index, path in enumerate(paths, start=1):
            await pool.submit(WorkItem(path=path, index=index, total=total))
        events = await pool.shutdown()
    return RunSummary.from_events(events)


async def run(
    root: Path,
    config: RunConfig,
    *,
    change_source: Optional[ChangeSource] = None,
    event_queue: Optional[asyncio.Queue] = None,
    event_logger: Optional[JsonlLogger] = None,
) -> Result[RunSummary, StdfmtError]:
    """
    Format (or check) every selected file under ``root``.

    Args:
        root: Directory patterns are resolved against
        config: Validated run configuration
        change_source: git queries (default: GitChangeSource when needed)
        event_queue: Receives one event per file as it completes
        event_logger: Optional JSON Lines event log

    Returns:
        Result[RunSummary, StdfmtError]: Summary, or the setup error that
        stopped the run before any file was processed
    """
    root = Path(root).resolve()
    if change_source is None:
        change_source = default_change_source(root, config)

    selection = await select_files(root, config, change_source)
    if isinstance(selection, Failure):
        return selection
    paths = selection.unwrap()

    if event_logger:
        event_logger.write({
            'ev': 'run_start',
            'root': str(root),
            'files': len(paths),
            'check': config.check,
            'changed': config.changed,
            'since': config.since,
            'staged': config.staged
        })

    context = WorkerContext(
        config=config,
        root=root,
        change_source=change_source,
        logger=event_logger,
        event_queue=event_queue
    )

    start = time.perf_counter()
    summary = await process_paths(paths, context)
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.debug(
        "processed %d, failed %d, skipped %d in %dms",
        len(summary.processed), len(summary.failures), len(summary.skipped), elapsed_ms
    )

    if event_logger:
        event_logger.write({
            'ev': 'run_end',
            'processed': len(summary.processed),
            'unformatted': len(summary.unformatted),
            'failed': len(summary.failures),
            'skipped': len(summary.skipped),
            'time_ms': elapsed_ms
        })

    return Success(summary)
