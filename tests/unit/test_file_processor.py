# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""Unit tests for single-file processing."""

import asyncio
import json
import time
from pathlib import Path

import pytest

from stdfmt.config import RunConfig
from stdfmt.errors import FileError, FormatterError, VcsError
from stdfmt.file_processor import FileProcessor
from stdfmt.formatter import FormatOptions
from stdfmt.logging_jsonl import JsonlLogger
from stdfmt.models import ChangeRange, FailedEvent, ProcessedEvent, SkippedEvent
from stdfmt.worker_context import WorkerContext, WorkItem
from tests.fakes import (
    CLEAN_SOURCE,
    INVALID_SOURCE,
    MESSY_SOURCE,
    SCATTERED_FORMATTED,
    SCATTERED_SOURCE,
    FakeChangeSource,
)


def make_processor(root: Path, change_source=None, **config) -> FileProcessor:
    context = WorkerContext(
        config=RunConfig(workers=1, **config),
        root=root,
        change_source=change_source,
        event_queue=asyncio.Queue()
    )
    return FileProcessor(context)


async def process(processor: FileProcessor, path: Path):
    return await processor.process(WorkItem(path=path, index=1, total=1), worker_id=1)


class TestWholeFile:
    """Test processing without line restriction."""

    @pytest.mark.asyncio
    async def test_unformatted_file_rewritten(self, tmp_path):
        path = tmp_path / "messy.py"
        path.write_text(MESSY_SOURCE)
        processor = make_processor(tmp_path)

        event = await process(processor, path)

        assert isinstance(event, ProcessedEvent)
        assert not event.formatted
        assert event.written
        assert not event.check
        assert path.read_text() == 'import os\nimport sys\n\nx = {"a": 1}\n'
        assert processor.context.event_queue.get_nowait() is event

    @pytest.mark.asyncio
    async def test_formatted_file_not_written(self, tmp_path):
        path = tmp_path / "clean.py"
        path.write_text(CLEAN_SOURCE)
        before = path.stat().st_mtime_ns

        event = await process(make_processor(tmp_path), path)

        assert event.formatted
        assert not event.written
        assert path.stat().st_mtime_ns == before

    @pytest.mark.asyncio
    async def test_check_mode_never_writes(self, tmp_path):
        """
        Given an unformatted file
        When processed in check mode
        Then it is reported as unformatted and its bytes are unchanged
        """
        path = tmp_path / "messy.py"
        path.write_text(MESSY_SOURCE)

        event = await process(make_processor(tmp_path, check=True), path)

        assert isinstance(event, ProcessedEvent)
        assert event.check
        assert not event.formatted
        assert not event.written
        assert path.read_text() == MESSY_SOURCE

    @pytest.mark.asyncio
    async def test_syntax_error_fails_file(self, tmp_path):
        path = tmp_path / "bad.py"
        path.write_text(INVALID_SOURCE)

        event = await process(make_processor(tmp_path), path)

        assert isinstance(event, FailedEvent)
        assert isinstance(event.error, FormatterError)
        assert event.error.path == path
        assert path.read_text() == INVALID_SOURCE

    @pytest.mark.asyncio
    async def test_binary_file_skipped(self, tmp_path):
        path = tmp_path / "blob.py"
        path.write_bytes(b"\x00\xff\x00")

        event = await process(make_processor(tmp_path), path)

        assert isinstance(event, SkippedEvent)
        assert event.reason.startswith("Not a text file")

    @pytest.mark.asyncio
    async def test_missing_file_fails(self, tmp_path):
        path = tmp_path / "gone.py"

        event = await process(make_processor(tmp_path), path)

        assert isinstance(event, FailedEvent)
        assert isinstance(event.error, FileError)
        assert event.error.not_found

    @pytest.mark.asyncio
    async def test_stub_inferred_from_suffix(self, tmp_path):
        path = tmp_path / "types.pyi"
        path.write_text("class A:\n    def f(self) -> int:\n        ...\n")

        await process(make_processor(tmp_path), path)

        assert path.read_text() == "class A:\n    def f(self) -> int: ...\n"

    @pytest.mark.asyncio
    async def test_line_length_option(self, tmp_path):
        path = tmp_path / "long.py"
        path.write_text("result = some_function(argument_one, argument_two)\n")

        await process(make_processor(tmp_path, options=FormatOptions(line_length=30)), path)

        assert all(len(line) <= 30 for line in path.read_text().splitlines())


class TestChangedLines:
    """Test processing restricted to changed lines."""

    @pytest.mark.asyncio
    async def test_only_changed_line_formatted(self, tmp_path):
        """
        Given a file where lines 2-4 need formatting
        When only line 3 is reported as changed
        Then only line 3 is rewritten
        """
        path = tmp_path / "scattered.py"
        path.write_text(SCATTERED_SOURCE)
        source = FakeChangeSource(ranges={path: [ChangeRange(3, 3)]})

        event = await process(make_processor(tmp_path, source, changed=True), path)

        assert event.written
        assert path.read_text() == "a = 1\nb = [1,2]\nc = {\"k\": 1}\nd = [3,4]\n"

    @pytest.mark.asyncio
    async def test_since_forwarded(self, tmp_path):
        path = tmp_path / "scattered.py"
        path.write_text(SCATTERED_SOURCE)
        source = FakeChangeSource(ranges={path: [ChangeRange(1, 4)]})

        await process(make_processor(tmp_path, source, changed=True, since="v1.0"), path)

        assert source.range_calls == [(path, "v1.0")]
        assert path.read_text() == SCATTERED_FORMATTED

    @pytest.mark.asyncio
    async def test_clean_changed_lines_not_written(self, tmp_path):
        """
        Given a file whose only changed line is already formatted
        When processed under --changed
        Then nothing is written, yet the event reports the file as unformatted
        """
        path = tmp_path / "scattered.py"
        path.write_text(SCATTERED_SOURCE)
        source = FakeChangeSource(ranges={path: [ChangeRange(1, 1)]})

        event = await process(make_processor(tmp_path, source, changed=True), path)

        assert not event.formatted
        assert not event.written
        assert path.read_text() == SCATTERED_SOURCE

    @pytest.mark.asyncio
    async def test_check_mode_never_writes_changed_lines(self, tmp_path):
        path = tmp_path / "scattered.py"
        path.write_text(SCATTERED_SOURCE)
        source = FakeChangeSource(ranges={path: [ChangeRange(2, 2)]})

        event = await process(make_processor(tmp_path, source, changed=True, check=True), path)

        assert event.check
        assert not event.formatted
        assert not event.written
        assert path.read_text() == SCATTERED_SOURCE

    @pytest.mark.asyncio
    async def test_changed_lines_in_clean_file(self, tmp_path):
        path = tmp_path / "clean.py"
        path.write_text(CLEAN_SOURCE)
        source = FakeChangeSource(ranges={path: [ChangeRange(5, 6)]})

        event = await process(make_processor(tmp_path, source, changed=True, check=True), path)

        assert event.formatted

    @pytest.mark.asyncio
    async def test_no_changed_lines_produces_no_event(self, tmp_path):
        path = tmp_path / "scattered.py"
        path.write_text(SCATTERED_SOURCE)
        processor = make_processor(tmp_path, FakeChangeSource(), changed=True)

        event = await process(processor, path)

        assert event is None
        assert processor.context.event_queue.empty()
        assert path.read_text() == SCATTERED_SOURCE

    @pytest.mark.asyncio
    async def test_line_count_change_uses_full_output(self, tmp_path):
        path = tmp_path / "messy.py"
        path.write_text(MESSY_SOURCE)
        source = FakeChangeSource(ranges={path: [ChangeRange(3, 3)]})

        await process(make_processor(tmp_path, source, changed=True), path)

        assert path.read_text() == 'import os\nimport sys\n\nx = {"a": 1}\n'

    @pytest.mark.asyncio
    async def test_untracked_file_formatted_whole(self, tmp_path):
        path = tmp_path / "new.py"
        path.write_text(SCATTERED_SOURCE)
        source = FakeChangeSource(untracked=[path])

        event = await process(make_processor(tmp_path, source, changed=True), path)

        assert event.written
        assert path.read_text() == SCATTERED_FORMATTED

    @pytest.mark.asyncio
    async def test_diff_error_fails_file(self, tmp_path):
        path = tmp_path / "scattered.py"
        path.write_text(SCATTERED_SOURCE)
        source = FakeChangeSource(error=VcsError(message="fatal: bad object"))

        event = await process(make_processor(tmp_path, source, changed=True), path)

        assert isinstance(event, FailedEvent)
        assert event.error.message == "fatal: bad object"
        assert path.read_text() == SCATTERED_SOURCE

    @pytest.mark.asyncio
    async def test_changed_without_source_formats_whole_file(self, tmp_path):
        path = tmp_path / "scattered.py"
        path.write_text(SCATTERED_SOURCE)

        await process(make_processor(tmp_path, None, changed=True), path)

        assert path.read_text() == SCATTERED_FORMATTED

    @pytest.mark.asyncio
    async def test_line_count_change_noted_in_event_log(self, tmp_path):
        path = tmp_path / "messy.py"
        path.write_text(MESSY_SOURCE)
        log_path = tmp_path / "events.jsonl"
        logger = JsonlLogger(log_path)
        processor = make_processor(tmp_path, FakeChangeSource(ranges={path: [ChangeRange(1, 1)]}), changed=True)
        processor.context.logger = logger

        await process(processor, path)
        logger.close()

        records = [json.loads(line) for line in log_path.read_text().splitlines()]
        assert records[0] == {"file": str(path), "notes": ["line count changed; full formatter output used"]}
        assert records[1]['ev'] == 'file_processed'

    @pytest.mark.asyncio
    async def test_queue_wait_recorded_in_event_log(self, tmp_path):
        path = tmp_path / "clean.py"
        path.write_text(CLEAN_SOURCE)
        log_path = tmp_path / "events.jsonl"
        logger = JsonlLogger(log_path)
        processor = make_processor(tmp_path)
        processor.context.logger = logger
        item = WorkItem(path=path, index=1, total=1, queue_time=time.time() - 0.5)

        await processor.process(item, worker_id=1)
        logger.close()

        record = json.loads(log_path.read_text().splitlines()[0])
        assert record['ev'] == 'file_processed'
        assert record['wait_ms'] >= 500
