# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""stdfmt - format Python sources with black and isort.

Formats whole files, files changed since a git revision, or only the lines
changed in the working tree or the index.
"""

__version__ = "0.1.0"

from .formatter import FormatOptions, check_source, format_source  # noqa: E402
from .orchestrator import run  # noqa: E402

__all__ = ["__version__", "FormatOptions", "check_source", "format_source", "run"]
