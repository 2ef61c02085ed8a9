# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""Logging setup and initialization for stdfmt."""

import logging
from pathlib import Path
from typing import Optional

from .config import StdfmtSettings
from .logging_jsonl import JsonlLogger

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(settings: StdfmtSettings) -> None:
    """Configure stdlib logging on stderr.

    Debug mode forces DEBUG; otherwise ``settings.log_level`` applies.
    """
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    # black's blib2to3 driver is chatty at DEBUG
    logging.getLogger("blib2to3").setLevel(logging.WARNING)


def setup_event_logger(log_path: Optional[Path]) -> Optional[JsonlLogger]:
    """
    Initialize the JSON Lines event log.

    Args:
        log_path: Path for the event log (None to disable)

    Returns:
        A fresh logger, or None when no path was given
    """
    if log_path is None:
        return None
    logger = JsonlLogger(log_path)
    logger.start_fresh()
    return logger
