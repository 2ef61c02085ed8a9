# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""Unit tests for stdfmt components.

All tests in this package should run quickly, avoid the network, and use
fakes for git unless marked ``requires_git``.
"""
