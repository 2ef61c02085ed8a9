# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""
File selection: glob patterns, or files git reports as changed.

The result is always deduplicated, limited to supported extensions,
outside ignored directories, and sorted, so repeated runs over the same
tree see the same sequence.
"""

import fnmatch
import glob
import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Sequence

from returns.result import Failure, Result, Success

from .config import DEFAULT_PATTERNS, IGNORED_DIRECTORIES, SUPPORTED_EXTENSIONS, RunConfig
from .errors import StdfmtError, no_files_found
from .models import ChangeSource

logger = logging.getLogger(__name__)


def is_supported(path: Path, extensions: Sequence[str] = SUPPORTED_EXTENSIONS) -> bool:
    """True for files with an allow-listed extension."""
    return path.suffix.lower() in extensions


def _relative(path: Path, root: Path) -> Optional[str]:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return None


def _local_parts(path: Path, root: Path) -> tuple[str, ...]:
    """Parts of ``path`` below ``root``, or below its common ancestor with ``root``."""
    relative = _relative(path, root)
    if relative is not None:
        return Path(relative).parts
    base = Path(os.path.commonpath([path, root]))
    return path.relative_to(base).parts


def is_ignored(path: Path, root: Path, exclude: Sequence[str] = ()) -> bool:
    """
    True if ``path`` lies in an always-ignored directory or matches one of
    the ``exclude`` globs (matched against the root-relative POSIX path).

    Directories above the repository never count, so a checkout that
    itself sits under e.g. ``build/`` is still formatted.
    """
    parts = _local_parts(path, root)
    relative = _relative(path, root)
    if any(part in IGNORED_DIRECTORIES for part in parts[:-1]):
        return True
    if relative is None:
        return False
    return any(
        fnmatch.fnmatch(relative, pattern) or fnmatch.fnmatch(path.name, pattern)
        for pattern in exclude
    )


def expand_patterns(root: Path, patterns: Iterable[str]) -> list[Path]:
    """
    Expand glob patterns relative to ``root``.

    A pattern naming a directory selects every supported file beneath it;
    ``**`` matches across directories.
    """
    found: list[Path] = []
    for pattern in patterns:
        candidate = Path(pattern) if Path(pattern).is_absolute() else root / pattern
        if candidate.is_dir():
            for ext in SUPPORTED_EXTENSIONS:
                found.extend(candidate.rglob(f"*{ext}"))
            continue
        if candidate.is_file():
            found.append(candidate)
            continue
        for match in glob.glob(pattern, root_dir=root, recursive=True):
            found.append(root / match)
    return found


def filter_candidates(
    candidates: Iterable[Path],
    root: Path,
    exclude: Sequence[str] = ()
) -> list[Path]:
    """Deduplicate, keep supported existing files, drop ignored ones, sort."""
    selected = set()
    for path in candidates:
        path = path.resolve()
        if not is_supported(path) or not path.is_file():
            continue
        if is_ignored(path, root, exclude):
            logger.debug("ignoring %s", path)
            continue
        selected.add(path)
    return sorted(selected)


def _matches_any(path: Path, root: Path, patterns: Sequence[str]) -> bool:
    relative = _relative(path, root)
    if relative is None:
        return False
    return any(
        relative == pattern.rstrip("/")
        or relative.startswith(pattern.rstrip("/") + "/")
        or fnmatch.fnmatch(relative, pattern)
        for pattern in patterns
    )


async def select_files(
    root: Path,
    config: RunConfig,
    change_source: Optional[ChangeSource] = None
) -> Result[list[Path], StdfmtError]:
    """
    Resolve the ordered set of files to process.

    Resolution order: ``since`` → files changed since that revision;
    ``changed``/``staged`` → files changed against HEAD (or the index);
    otherwise the glob patterns (default: every supported file). Patterns
    given alongside a git selection narrow it down.

    Returns:
        Result[list[Path], StdfmtError]: Absolute paths, or VcsError /
        NoMatchError
    """
    root = root.resolve()

    if config.uses_git:
        if change_source is None:
            raise ValueError("git selection requires a change source")
        changed = await change_source.list_changed_files(config.since)
        if isinstance(changed, Failure):
            return changed
        candidates = changed.unwrap()
        if config.patterns:
            candidates = [p for p in candidates if _matches_any(p, root, config.patterns)]
    else:
        candidates = expand_patterns(root, config.patterns or DEFAULT_PATTERNS)

    files = filter_candidates(candidates, root, config.exclude)
    logger.debug("selected %d file(s)", len(files))
    if not files:
        return Failure(no_files_found(config.patterns))
    return Success(files)
