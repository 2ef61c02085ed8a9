# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""JSON Lines event log.

One JSON object per line, appended as events happen, so a partially
completed run still leaves a readable log behind.
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Union


class JsonlLogger:
    """Append-only JSON Lines writer."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._file: Optional[TextIO] = None
        self._lock = threading.Lock()

    def start_fresh(self) -> None:
        """Create (or truncate) the log file, creating parent directories."""
        self.close()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("", encoding="utf-8")

    def write(self, record: Dict[str, Any]) -> None:
        """Append one record and flush it."""
        line = json.dumps(record, ensure_ascii=False, default=str)
        with self._lock:
            if self._file is None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._file = open(self.path, "a", encoding="utf-8")
            self._file.write(line + "\n")
            self._file.flush()

    def append_notes(self, file: Union[str, Path], notes: List[str]) -> None:
        """Record free-form notes about a file; no-op for an empty list."""
        if not notes:
            return
        self.write({"file": str(file), "notes": list(notes)})

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None

    def __enter__(self) -> "JsonlLogger":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
