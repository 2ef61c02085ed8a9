"""Shared pytest configuration and fixtures for the stdfmt test suite.

This module provides common fixtures, configuration, and utilities used across
all test modules. Fixtures defined here are automatically available to all tests
without explicit imports.
"""

import logging
import shutil
import sys
from pathlib import Path

import pytest

# Add src to path for imports during testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tests.fakes import CLEAN_SOURCE, MESSY_SOURCE, SCATTERED_SOURCE, git


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (runs git or the CLI as a subprocess)"
    )
    config.addinivalue_line(
        "markers", "requires_git: mark test as requiring a git executable"
    )


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch) -> None:
    """Clear environment variables that change stdfmt defaults."""
    for var in (
        "DEBUG",
        "STDFMT_DEBUG",
        "STDFMT_WORKERS",
        "STDFMT_LINE_LENGTH",
        "STDFMT_LOG_LEVEL",
        "STDFMT_EXCLUDE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore root logger handlers and level changed by setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# ============================================================================
# File System Fixtures
# ============================================================================

@pytest.fixture
def py_project(tmp_path: Path) -> Path:
    """Create a small project tree.

    Creates:
        - src/clean.py (already formatted)
        - src/messy.py (needs formatting)
        - src/types.pyi (stub, needs formatting)
        - node_modules/vendor.py (always ignored)
        - README.md (unsupported extension)

    Returns:
        Path to the project root.
    """
    (tmp_path / "src").mkdir()
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "src" / "clean.py").write_text(CLEAN_SOURCE)
    (tmp_path / "src" / "messy.py").write_text(MESSY_SOURCE)
    (tmp_path / "src" / "types.pyi").write_text("def f(x:int)->int: ...\n")
    (tmp_path / "node_modules" / "vendor.py").write_text(MESSY_SOURCE)
    (tmp_path / "README.md").write_text("# readme\n")
    return tmp_path.resolve()


# ============================================================================
# git Fixtures
# ============================================================================

@pytest.fixture
def git_available() -> bool:
    """Check if git is available on the system."""
    return shutil.which("git") is not None


@pytest.fixture
def skip_if_no_git(git_available: bool) -> None:
    """Skip test if git is not available."""
    if not git_available:
        pytest.skip("git not available")


@pytest.fixture
def git_repo(tmp_path: Path, skip_if_no_git: None) -> Path:
    """Create a git repository with one commit.

    Committed files:
        - pkg/committed.py (SCATTERED_SOURCE, unformatted)
        - pkg/clean.py (CLEAN_SOURCE)

    Returns:
        Path to the repository root.
    """
    repo = tmp_path.resolve() / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "user.email", "dev@example.com")
    git(repo, "config", "user.name", "Dev")
    git(repo, "config", "commit.gpgsign", "false")
    (repo / "pkg").mkdir()
    (repo / "pkg" / "committed.py").write_text(SCATTERED_SOURCE)
    (repo / "pkg" / "clean.py").write_text(CLEAN_SOURCE)
    git(repo, "add", ".")
    git(repo, "commit", "-q", "-m", "initial")
    return repo

