# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""stdfmt test suite.

Tests are organized into unit tests (fast, isolated) and integration tests
(slower, running git and the CLI as subprocesses).

Test Organization:
    - unit/: Fast, isolated unit tests using fakes
    - integration/: End-to-end tests against real git repositories
    - conftest.py: Shared pytest fixtures and configuration
    - fakes.py: In-memory ChangeSource

Running Tests:
    # All tests
    pytest

    # Unit tests only (fast)
    pytest tests/unit/
"""
