# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""
git-backed change queries.

Answers two questions for the selector and the file processor: which files
changed since a revision, and which lines of a file changed. git runs as a
subprocess with an argument list (never through a shell); failures come
back as VcsError values.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from returns.result import Failure, Result, Success

from .errors import PathsEither, VcsError
from .models import ChangeRange

logger = logging.getLogger(__name__)

# Added, copied, modified, renamed, type-changed, unmerged, broken pairs.
# Deleted files are left out since there is nothing to format.
DIFF_FILTER = "ACMRTUB"

HUNK_HEADER = re.compile(r'^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@', re.MULTILINE)


@dataclass(frozen=True)
class GitOutput:
    """Completed git invocation."""
    command: str
    exit_code: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class Hunk:
    """One ``@@ -old_start,old_len +new_start,new_len @@`` header."""
    old_start: int
    old_len: int
    new_start: int
    new_len: int


def parse_hunks(diff_text: str) -> list[Hunk]:
    """Hunk headers of a unified diff, in file order."""
    return [
        Hunk(
            old_start=int(match.group(1)),
            old_len=int(match.group(2)) if match.group(2) is not None else 1,
            new_start=int(match.group(3)),
            new_len=int(match.group(4)) if match.group(4) is not None else 1
        )
        for match in HUNK_HEADER.finditer(diff_text)
    ]


def parse_hunk_ranges(diff_text: str) -> list[ChangeRange]:
    """
    Extract changed line ranges from unified diff hunk headers.

    Only the "new file" side of each ``@@ -a,b +c,d @@`` header is used.
    With ``-U0`` there are no context lines, so each hunk covers exactly the
    added or modified lines. A hunk with ``d == 0`` is a pure deletion and
    yields nothing.

    Returns:
        Ascending, non-overlapping ranges
    """
    ranges = [
        ChangeRange(hunk.new_start, hunk.new_start + hunk.new_len - 1)
        for hunk in parse_hunks(diff_text)
        if hunk.new_len > 0
    ]
    return _merge(sorted(ranges))


def map_line(line: int, hunks: Sequence[Hunk]) -> list[int]:
    """
    Where ``line`` of the old side of a ``-U0`` diff ended up on the new side.

    A line untouched by every hunk maps to exactly one line. A line inside a
    hunk was rewritten, so it maps to all of that hunk's new lines (none
    when the hunk deleted it).
    """
    offset = 0
    for hunk in hunks:
        if hunk.old_len == 0:
            # Pure insertion after old_start
            if line <= hunk.old_start:
                break
            offset += hunk.new_len
            continue
        if line < hunk.old_start:
            break
        if line < hunk.old_start + hunk.old_len:
            return list(range(hunk.new_start, hunk.new_start + hunk.new_len))
        offset += hunk.new_len - hunk.old_len
    return [line + offset]


def map_ranges(ranges: Sequence[ChangeRange], diff_text: str) -> list[ChangeRange]:
    """Carry ``ranges`` across the ``-U0`` diff in ``diff_text``."""
    hunks = parse_hunks(diff_text)
    if not hunks:
        return list(ranges)

    mapped = [
        ChangeRange(new_line, new_line)
        for change in ranges
        for line in range(change.start_line, change.end_line + 1)
        for new_line in map_line(line, hunks)
    ]
    return _merge(sorted(mapped))


def _merge(ranges: Sequence[ChangeRange]) -> list[ChangeRange]:
    merged: list[ChangeRange] = []
    for change in ranges:
        if merged and change.start_line <= merged[-1].end_line + 1:
            last = merged.pop()
            change = ChangeRange(last.start_line, max(last.end_line, change.end_line))
        merged.append(change)
    return merged


class GitChangeSource:
    """Change queries against the repository containing ``cwd``.

    In staged mode diffs are taken against the index (``--cached``),
    untracked files are never reported, and line ranges are carried over to
    the working tree copy, which is the one that gets formatted.
    """

    def __init__(self, cwd: Path, staged: bool = False, git: str = "git"):
        self.cwd = Path(cwd)
        self.staged = staged
        self.git = git
        self._toplevel: Optional[Path] = None

    async def _run(self, *args: str) -> Result[GitOutput, VcsError]:
        command = [self.git, *args]
        logger.debug("running %s", " ".join(command))
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd
            )
            stdout, stderr = await process.communicate()
        except (FileNotFoundError, PermissionError) as e:
            return Failure(VcsError(
                message=f"Unable to run {self.git}: {e}",
                command=" ".join(command)
            ))

        return Success(GitOutput(
            command=" ".join(command),
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode('utf-8', errors='replace'),
            stderr=stderr.decode('utf-8', errors='replace')
        ))

    async def _run_checked(self, *args: str) -> Result[GitOutput, VcsError]:
        result = await self._run(*args)
        if isinstance(result, Failure):
            return result
        output = result.unwrap()
        if output.exit_code != 0:
            return Failure(VcsError(
                message=_first_line(output.stderr) or f"{output.command} failed",
                command=output.command,
                exit_code=output.exit_code,
                stderr=output.stderr
            ))
        return Success(output)

    async def toplevel(self) -> Result[Path, VcsError]:
        """Root of the working tree."""
        if self._toplevel is not None:
            return Success(self._toplevel)

        result = await self._run_checked("rev-parse", "--show-toplevel")
        if isinstance(result, Failure):
            error = result.failure()
            return Failure(VcsError(
                message=f"Not a git repository: {self.cwd}",
                command=error.command,
                exit_code=error.exit_code,
                stderr=error.stderr
            ))
        self._toplevel = Path(result.unwrap().stdout.strip()).resolve()
        return Success(self._toplevel)

    async def resolve_revision(self, revision: str) -> Result[str, VcsError]:
        """Commit id for ``revision``."""
        result = await self._run_checked("rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}")
        if isinstance(result, Failure):
            error = result.failure()
            return Failure(VcsError(
                message=f"Unknown revision: {revision}",
                command=error.command,
                exit_code=error.exit_code,
                stderr=error.stderr
            ))
        return Success(result.unwrap().stdout.strip())

    async def list_changed_files(self, since: Optional[str]) -> PathsEither:
        """
        Files that differ between ``since`` (HEAD when None) and the
        working tree, or the index in staged mode.

        Returns:
            Result[list[Path], VcsError]: Absolute paths, sorted
        """
        top_result = await self.toplevel()
        if isinstance(top_result, Failure):
            return top_result
        top = top_result.unwrap()

        revision_result = await self.resolve_revision(since or "HEAD")
        if isinstance(revision_result, Failure):
            return revision_result
        revision = revision_result.unwrap()

        args = ["diff", "--name-only", "-z", f"--diff-filter={DIFF_FILTER}"]
        if self.staged:
            args.append("--cached")
        diff_result = await self._run_checked(*args, revision, "--")
        if isinstance(diff_result, Failure):
            return diff_result
        names = set(_split_z(diff_result.unwrap().stdout))

        if not self.staged:
            untracked_result = await self._run_checked(
                "ls-files", "-z", "--others", "--exclude-standard", "--full-name", "--", ":/"
            )
            if isinstance(untracked_result, Failure):
                return untracked_result
            names.update(_split_z(untracked_result.unwrap().stdout))

        return Success(sorted(top / name for name in names))

    async def is_tracked(self, path: Path) -> Result[bool, VcsError]:
        """True if ``path`` is in the index."""
        result = await self._run("ls-files", "--error-unmatch", "--", str(path))
        if isinstance(result, Failure):
            return result
        return Success(result.unwrap().exit_code == 0)

    async def get_changed_ranges(
        self,
        path: Path,
        since: Optional[str] = None
    ) -> Result[list[ChangeRange], VcsError]:
        """
        Line ranges added or modified in ``path`` relative to ``since``
        (HEAD when None), or to the index in staged mode.

        Returns:
            Result[list[ChangeRange], VcsError]: Ranges, or an error with
            ``untracked=True`` when git has no baseline for the file
        """
        tracked = await self.is_tracked(path)
        if isinstance(tracked, Failure):
            return tracked
        if not tracked.unwrap():
            return Failure(VcsError(
                message=f"Not tracked by git: {path}",
                path=path,
                untracked=True
            ))

        args = ["diff", "-U0", "--no-color", "--no-ext-diff"]
        if self.staged:
            args.append("--cached")
        result = await self._run_checked(*args, since or "HEAD", "--", str(path))
        if isinstance(result, Failure):
            error = result.failure()
            return Failure(VcsError(
                message=error.message,
                command=error.command,
                exit_code=error.exit_code,
                stderr=error.stderr,
                path=path
            ))

        ranges = parse_hunk_ranges(result.unwrap().stdout)
        if not self.staged or not ranges:
            return Success(ranges)

        # Staged hunks number the index copy; the working tree is what gets formatted
        worktree = await self._run_checked("diff", "-U0", "--no-color", "--no-ext-diff", "--", str(path))
        if isinstance(worktree, Failure):
            error = worktree.failure()
            return Failure(VcsError(
                message=error.message,
                command=error.command,
                exit_code=error.exit_code,
                stderr=error.stderr,
                path=path
            ))
        return Success(map_ranges(ranges, worktree.unwrap().stdout))


def _split_z(output: str) -> list[str]:
    return [name for name in output.split('\0') if name]


def _first_line(text: str) -> str:
    return text.strip().splitlines()[0] if text.strip() else ""
