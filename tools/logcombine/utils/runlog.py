"""
Run logging for logcombine diagnostics.

stdout carries the merged log, so progress and failure details go to a
separate append-only file instead. The file is optional: when
LOGCOMBINE_LOG_FILE is not set the logger does nothing.

Design Decisions:
    - One line per event, human-readable and grep-friendly
    - Append-only writes so consecutive runs share one file
    - UTC timestamps for consistency across machines
    - A lock serializes writes because scanner threads log concurrently

Log Line Format:
    <timestamp> [run=<id>] [stage=<stage>] <LEVEL> <message>
"""

from __future__ import annotations

import datetime
import threading
import uuid
from pathlib import Path
from typing import Optional


class RunLogger:
    """
    Minimal append-only run logger.

    Attributes:
        run_id: Short identifier shared by every line of one run.
        path: The log file, or None when run logging is disabled.

    Example:
        >>> logger = RunLogger(Path("/tmp/logcombine.log"))
        >>> logger.info("enumerate", "Found 12 sources")
        # Writes: 2026-01-15T12:00:00Z [run=3f2a9c1e] [stage=enumerate] INFO Found 12 sources
    """

    def __init__(self, path: Optional[Path] = None, run_id: Optional[str] = None) -> None:
        self.run_id = run_id or uuid.uuid4().hex[:8]
        self.path = path
        self._lock = threading.Lock()
        if self.path is not None:
            # Ensure the directory exists before the first write
            self.path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def enabled(self) -> bool:
        return self.path is not None

    def _ts(self) -> str:
        """Return an ISO 8601 UTC timestamp such as 2026-01-15T12:00:00Z."""
        return (
            datetime.datetime.now(datetime.timezone.utc)
            .isoformat(timespec="seconds")
            .replace("+00:00", "Z")
        )

    def log(self, stage: str, level: str, message: str) -> None:
        """
        Append one structured line to the run log.

        Args:
            stage: Part of the run emitting the line (e.g. "scan").
            level: Severity (INFO, WARN, ERROR).
            message: Human-readable message.
        """
        if self.path is None:
            return

        line = (
            f"{self._ts()} "
            f"[run={self.run_id}] "
            f"[stage={stage}] "
            f"{level.upper()} {message}\n"
        )
        with self._lock:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line)

    def info(self, stage: str, message: str) -> None:
        self.log(stage, "INFO", message)

    def warn(self, stage: str, message: str) -> None:
        self.log(stage, "WARN", message)

    def error(self, stage: str, message: str) -> None:
        self.log(stage, "ERROR", message)
