# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""
Adapter around the external formatting engines.

Source text is passed through isort (imports, ``black`` profile) and then
black. Both engines are pure functions over in-memory strings, so calls for
different files may run concurrently.
"""

import time
from pathlib import Path
from typing import Literal, Optional

import black
import isort
from isort.exceptions import FileSkipped
from pydantic import BaseModel, ConfigDict, Field
from returns.result import Failure, Result, Success

from .errors import FormatterError
from .models import FormatResult

Parser = Literal["python", "pyi"]

PARSERS: tuple[str, ...] = ("python", "pyi")


class FormatOptions(BaseModel):
    """Options understood by the formatter."""

    model_config = ConfigDict(frozen=True)

    parser: Optional[Parser] = Field(default=None, description="Grammar to use; inferred from filepath when unset")
    filepath: Optional[str] = Field(default=None, description="Logical path used for grammar inference")
    line_length: int = Field(default=88, ge=1, description="Maximum line length")

    def for_path(self, path: Path | str) -> 'FormatOptions':
        """Copy of these options bound to a file path."""
        return self.model_copy(update={"filepath": str(path)})


def infer_parser(options: FormatOptions) -> Parser:
    """Pick the grammar: explicit parser first, then the file suffix."""
    if options.parser is not None:
        return options.parser
    if options.filepath and options.filepath.endswith(".pyi"):
        return "pyi"
    return "python"


def format_source(text: str, options: FormatOptions | None = None) -> str:
    """Return ``text`` in canonical form.

    Raises whatever black or isort raise for input they cannot parse.
    """
    options = options or FormatOptions()
    is_pyi = infer_parser(options) == "pyi"

    try:
        sorted_text = isort.code(
            text,
            profile="black",
            line_length=options.line_length,
            extension="pyi" if is_pyi else "py",
        )
    except FileSkipped:
        # isort: skip_file
        sorted_text = text

    mode = black.Mode(line_length=options.line_length, is_pyi=is_pyi)
    return black.format_str(sorted_text, mode=mode)


def check_source(text: str, options: FormatOptions | None = None) -> bool:
    """True when ``text`` is already in canonical form."""
    return format_source(text, options) == text


def format_safe(text: str, options: FormatOptions | None = None) -> Result[FormatResult, FormatterError]:
    """
    Format with explicit error handling and timing.

    Returns:
        Result[FormatResult, FormatterError]: Formatted text or the reason
        the engines rejected it
    """
    options = options or FormatOptions()
    start = time.perf_counter()
    try:
        formatted = format_source(text, options)
    except Exception as e:
        return Failure(FormatterError(
            message=_first_line(str(e)) or type(e).__name__,
            path=Path(options.filepath) if options.filepath else None,
            parser=infer_parser(options),
            original_error=str(e)
        ))
    runtime_ms = int((time.perf_counter() - start) * 1000)

    return Success(FormatResult(
        formatted_content=formatted,
        already_formatted=formatted == text,
        runtime_ms=runtime_ms
    ))


def _first_line(message: str) -> str:
    return message.strip().splitlines()[0] if message.strip() else ""
