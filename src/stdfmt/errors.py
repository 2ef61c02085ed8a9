# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""
Error types for functional error handling using Either.

This module defines all error types used throughout stdfmt.
Functions return Result[Value, Error] types - errors are values, not
exceptions, until the CLI maps them to exit codes.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

# Note: In dry-python/returns, Result is actually an Either type
# Result[Value, Error] is Right-biased Either with Value on success
from returns.result import Result


FileOperation = Literal["read", "write", "stat"]


# =============================================================================
# Base Error Types
# =============================================================================

@dataclass(frozen=True)
class StdfmtError:
    """Base error type for all stdfmt errors."""
    message: str

    def __str__(self) -> str:
        return self.message


# =============================================================================
# File Operation Errors
# =============================================================================

@dataclass(frozen=True)
class FileError(StdfmtError):
    """File operation error (read or write of a single file)."""
    path: Path
    operation: FileOperation
    original_error: str | None = None
    permission_error: bool = False
    not_found: bool = False
    binary: bool = False


# =============================================================================
# Version Control Errors
# =============================================================================

@dataclass(frozen=True)
class VcsError(StdfmtError):
    """git failed to resolve a revision, a diff, or the repository."""
    command: str = ""
    exit_code: int | None = None
    stderr: str = ""
    path: Path | None = None
    untracked: bool = False


# =============================================================================
# Selection Errors
# =============================================================================

@dataclass(frozen=True)
class NoMatchError(StdfmtError):
    """File selection resolved to an empty set."""
    patterns: tuple[str, ...] = ()


# =============================================================================
# Formatter Errors
# =============================================================================

@dataclass(frozen=True)
class FormatterError(StdfmtError):
    """black or isort rejected the input."""
    path: Path | None = None
    parser: str | None = None
    original_error: str | None = None


# =============================================================================
# Configuration Errors
# =============================================================================

@dataclass(frozen=True)
class ConfigError(StdfmtError):
    """Configuration error."""
    key: str | None = None
    invalid_value: str | None = None


@dataclass(frozen=True)
class ConflictingFlagsError(ConfigError):
    """Flags that cannot be combined (stdin with --changed/--since/--staged)."""
    flags: tuple[str, ...] = ()


# =============================================================================
# Type Aliases for Common Either Types
# =============================================================================

# File operations return Either[FileError, T]
FileEither = Result[str, FileError]

# git operations return Either[VcsError, T]
PathsEither = Result[list[Path], VcsError]


# =============================================================================
# Error Helpers
# =============================================================================

def file_not_found(path: Path, operation: FileOperation = "read") -> FileError:
    """Create a file not found error."""
    return FileError(
        message=f"File not found: {path}",
        path=path,
        operation=operation,
        not_found=True
    )


def permission_denied(path: Path, operation: FileOperation) -> FileError:
    """Create a permission denied error."""
    return FileError(
        message=f"Permission denied: {operation} {path}",
        path=path,
        operation=operation,
        permission_error=True
    )


def binary_file(path: Path, reason: str) -> FileError:
    """Create an error for content that does not decode as text."""
    return FileError(
        message=f"Not a text file: {path}",
        path=path,
        operation="read",
        original_error=reason,
        binary=True
    )


def no_files_found(patterns: tuple[str, ...] = ()) -> NoMatchError:
    """Create the error reported when selection is empty."""
    return NoMatchError(message="No files found", patterns=patterns)


def conflicting_flags(*flags: str) -> ConflictingFlagsError:
    """Create an error for flags that do not support stdin."""
    joined = ", ".join(flags)
    noun = "flag does" if len(flags) == 1 else "flags do"
    return ConflictingFlagsError(
        message=f"{joined} {noun} not support stdin",
        flags=tuple(flags)
    )
