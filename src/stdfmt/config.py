# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""
Configuration for stdfmt.

``StdfmtSettings`` reads defaults from the environment (``STDFMT_*``) and an
optional ``.stdfmt.env`` file. ``RunConfig`` is the validated, immutable set
of options for one invocation, built once before any file is touched.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from returns.result import Failure, Result, Success

from .errors import ConfigError
from .formatter import FormatOptions

# Extensions the formatter understands
SUPPORTED_EXTENSIONS: tuple[str, ...] = (".py", ".pyi")

# Directories never descended into during glob expansion
IGNORED_DIRECTORIES: frozenset[str] = frozenset({
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    ".tox",
    ".nox",
    "__pycache__",
    "node_modules",
    "build",
    "dist",
    ".eggs",
    ".mypy_cache",
    ".pytest_cache",
})

DEFAULT_PATTERNS: tuple[str, ...] = tuple(f"**/*{ext}" for ext in SUPPORTED_EXTENSIONS)


def default_workers() -> int:
    """Worker count bounded by available parallelism."""
    return os.cpu_count() or 1


class StdfmtSettings(BaseSettings):
    """Environment-level defaults."""

    debug: bool = Field(
        default=False,
        validation_alias=AliasChoices("STDFMT_DEBUG", "DEBUG"),
        description="Print full diagnostics for internal errors"
    )
    workers: int = Field(default_factory=default_workers, ge=1, description="Number of concurrent workers")
    line_length: int = Field(default=88, ge=1, description="Maximum line length")
    log_level: str = Field(default="WARNING", description="Logging level")
    exclude: list[str] = Field(default_factory=list, description="Glob patterns to leave alone")

    model_config = SettingsConfigDict(
        env_prefix="STDFMT_",
        env_file=".stdfmt.env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("debug", mode="before")
    @classmethod
    def _any_value_enables_debug(cls, value: object) -> object:
        # Any non-empty value other than an explicit false enables debug
        if isinstance(value, str):
            return value.strip().lower() not in ("", "0", "false", "no", "off")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown logging level {value!r}")
        return level


class RunConfig(BaseModel):
    """Every option recognized by a run, validated up front."""

    model_config = ConfigDict(frozen=True)

    patterns: tuple[str, ...] = ()
    since: Optional[str] = None
    changed: bool = False
    staged: bool = False
    check: bool = False
    workers: int = Field(default_factory=default_workers, ge=1)
    exclude: tuple[str, ...] = ()
    options: FormatOptions = Field(default_factory=FormatOptions)

    @model_validator(mode="after")
    def _check_since(self) -> RunConfig:
        if self.since is not None and not self.since.strip():
            raise ValueError("--since requires a revision")
        return self

    @property
    def uses_git(self) -> bool:
        return self.since is not None or self.changed or self.staged


def build_run_config(
    settings: StdfmtSettings,
    *,
    parser: Optional[str] = None,
    line_length: Optional[int] = None,
    exclude: Optional[list[str]] = None,
    **overrides: object
) -> Result[RunConfig, ConfigError]:
    """Merge settings with command-line overrides into a RunConfig.

    ``None`` overrides fall back to the settings value; excludes add up.
    """
    values: dict[str, object] = {
        "workers": settings.workers,
        "exclude": tuple(settings.exclude) + tuple(exclude or ()),
    }
    for key, value in overrides.items():
        if value is not None:
            values[key] = tuple(value) if isinstance(value, list) else value

    try:
        options = FormatOptions(parser=parser, line_length=line_length or settings.line_length)
        return Success(RunConfig(options=options, **values))
    except ValidationError as e:
        return Failure(_config_error(e))


def _config_error(exc: ValidationError) -> ConfigError:
    """Reduce a pydantic validation error to a one-line ConfigError."""
    error = exc.errors()[0]
    key = ".".join(str(part) for part in error.get("loc", ())) or None
    if key:
        flag = "--" + key.rsplit(".", 1)[-1].replace("_", "-")
        return ConfigError(
            message=f"Invalid value for {flag}: {error['msg']}",
            key=key,
            invalid_value=str(error.get("input"))
        )
    return ConfigError(message=str(error["msg"]).removeprefix("Value error, "))
