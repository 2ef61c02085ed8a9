# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""
Asynchronous file I/O operations with functional error handling.

Files are read and written as bytes so that line terminators survive a
round trip untouched. All functions return Result types - no exceptions
propagate.
"""

import os
import stat
import tempfile
from pathlib import Path
from typing import Optional, Union

import aiofiles
import aiofiles.os
from returns.result import Failure, Result, Success

from .errors import FileEither, FileError, binary_file, file_not_found, permission_denied


async def _buffered_read_internal(path: Path, buffer_size: int = 8192) -> bytes:
    """
    Internal read function that may raise exceptions.

    Raises:
        FileNotFoundError: If file doesn't exist
        PermissionError: If file isn't readable
    """
    chunks = []
    async with aiofiles.open(path, mode='rb') as f:
        while True:
            chunk = await f.read(buffer_size)
            if not chunk:
                break
            chunks.append(chunk)

    return b''.join(chunks)


async def buffered_read_safe(
    path: Union[str, Path],
    buffer_size: int = 8192,
    encoding: str = 'utf-8'
) -> FileEither:
    """
    Read a text file with explicit error handling.

    Content containing NUL bytes or failing to decode is reported as a
    binary FileError so callers can skip it.

    Returns:
        Result[str, FileError]: File contents or specific error
    """
    path = Path(path)

    try:
        raw = await _buffered_read_internal(path, buffer_size)
    except FileNotFoundError:
        return Failure(file_not_found(path))
    except PermissionError:
        return Failure(permission_denied(path, "read"))
    except IsADirectoryError as e:
        return Failure(FileError(
            message=f"Is a directory: {path}",
            path=path,
            operation="read",
            original_error=str(e)
        ))
    except OSError as e:
        return Failure(FileError(
            message=f"Failed to read {path}: {e}",
            path=path,
            operation="read",
            original_error=str(e)
        ))

    if b'\x00' in raw:
        return Failure(binary_file(path, "NUL byte in content"))
    try:
        return Success(raw.decode(encoding))
    except UnicodeDecodeError as e:
        return Failure(binary_file(path, str(e)))


async def _buffered_write_internal(
    path: Path,
    content: str,
    buffer_size: int = 8192,
    encoding: str = 'utf-8'
) -> None:
    """
    Internal write function that may raise exceptions.

    Raises:
        PermissionError: If file isn't writable
        OSError: If disk is full or other OS error
    """
    data = content.encode(encoding)
    async with aiofiles.open(path, mode='wb') as f:
        # Write in chunks for large content
        for i in range(0, len(data), buffer_size):
            await f.write(data[i:i + buffer_size])
        await f.flush()


async def buffered_write_safe(
    path: Union[str, Path],
    content: str,
    buffer_size: int = 8192,
    encoding: str = 'utf-8'
) -> Result[None, FileError]:
    """
    Write file with explicit error handling.

    Returns:
        Result[None, FileError]: Success or specific error
    """
    path = Path(path)

    try:
        await _buffered_write_internal(path, content, buffer_size, encoding)
        return Success(None)
    except PermissionError:
        return Failure(permission_denied(path, "write"))
    except OSError as e:
        return Failure(FileError(
            message=f"OS error writing {path}: {e}",
            path=path,
            operation="write",
            original_error=str(e)
        ))


async def atomic_write_async_safe(
    path: Union[str, Path],
    content: str,
    mode: Optional[int] = None,
    encoding: str = 'utf-8'
) -> Result[None, FileError]:
    """
    Atomically replace a file using temp file + rename.

    Args:
        path: Path to file to write
        content: Content to write
        mode: Unix file permissions; defaults to those of the existing file
            (0o644 for a new one)
        encoding: Text encoding

    Returns:
        Result[None, FileError]: Success or error
    """
    path = Path(path)
    temp_path = None

    try:
        if mode is None:
            try:
                mode = stat.S_IMODE((await aiofiles.os.stat(path)).st_mode)
            except FileNotFoundError:
                mode = 0o644

        # Create temp file in same directory for atomic rename
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=path.parent,
            prefix=f'.{path.name}.',
            suffix='.tmp'
        )
        temp_path = Path(temp_path_str)

        # Close the file descriptor - aiofiles will reopen
        os.close(temp_fd)

        write_result = await buffered_write_safe(temp_path, content, encoding=encoding)
        if isinstance(write_result, Failure):
            return write_result

        os.chmod(temp_path, mode)
        await aiofiles.os.replace(temp_path, path)
        temp_path = None
        return Success(None)

    except PermissionError:
        return Failure(permission_denied(path, "write"))
    except OSError as e:
        return Failure(FileError(
            message=f"OS error during atomic write to {path}: {e}",
            path=path,
            operation="write",
            original_error=str(e)
        ))
    finally:
        # Clean up temp file on error
        if temp_path is not None and temp_path.exists():
            try:
                await aiofiles.os.remove(temp_path)
            except OSError:
                pass
