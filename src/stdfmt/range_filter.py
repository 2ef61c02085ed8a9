# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""Restrict a formatted rewrite to the lines git reports as changed."""

from typing import Optional, Sequence

from .models import ChangeRange


def split_lines(text: str) -> list[str]:
    """Split ``text`` the way git numbers lines: on ``\\n`` only.

    Every line keeps its own terminator (``\\n``, ``\\r\\n``, or nothing
    for an unterminated last line).
    """
    pieces = text.split("\n")
    lines = [piece + "\n" for piece in pieces[:-1]]
    if pieces[-1]:
        lines.append(pieces[-1])
    return lines


def line_ending(line: str) -> str:
    """Terminator of a line produced by ``split_lines``."""
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith("\n"):
        return "\n"
    return ""


def in_ranges(line: int, ranges: Sequence[ChangeRange]) -> bool:
    """True if the 1-indexed ``line`` lies inside any range."""
    return any(line in change for change in ranges)


def apply_ranges(
    original: str,
    formatted: str,
    ranges: Sequence[ChangeRange]
) -> Optional[str]:
    """Merge ``formatted`` into ``original`` only inside ``ranges``.

    Lines outside every range are kept byte-identical to ``original``.
    A line taken from ``formatted`` keeps the terminator of the original
    line it replaces, so mixed line endings survive.

    Returns:
        The merged text, or None when the two inputs have different line
        counts; a structural rewrite cannot be applied line by line and the
        caller uses ``formatted`` as is.
    """
    original_lines = split_lines(original)
    formatted_lines = split_lines(formatted)
    if len(original_lines) != len(formatted_lines):
        return None

    merged = []
    for number, (old, new) in enumerate(zip(original_lines, formatted_lines), start=1):
        if in_ranges(number, ranges):
            body = new[:len(new) - len(line_ending(new))]
            merged.append(body + line_ending(old))
        else:
            merged.append(old)
    return "".join(merged)
