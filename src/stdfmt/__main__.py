# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""Allow ``python -m stdfmt``."""

from .cli import main

if __name__ == "__main__":
    main()
