from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from webvisionsheet.models.error_record import ErrorRecord

"""Per-row failure log.

A run keeps its row failures in memory and writes them once, at the end, as
JSON Lines under ``<workspace>/logs/errors-YYYYMMDD-HHMMSS.log`` (UTC). The
name is chosen on the first write and kept, so a second flush in the same run
extends the same file. Clean runs leave no file behind.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
FILE_STAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Collects ErrorRecords during a run; ``flush()`` writes them out."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self.logs_dir = LOGS_DIR if logs_dir is None else logs_dir
        self._pending: list[ErrorRecord] = []
        self._target: Path | None = None

    @property
    def file_path(self) -> Path:
        """Log file of this run; creates the logs directory on first access."""
        if self._target is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            name = "errors-" + datetime.now(UTC).strftime(FILE_STAMP_FMT) + ".log"
            self._target = self.logs_dir / name
        return self._target

    @property
    def records(self) -> list[ErrorRecord]:
        """Records not yet flushed."""
        return list(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Write pending records and empty the buffer.

        Returns the log file, or None if this run never had anything to write.
        """
        if not self._pending:
            return self._target
        target = self.file_path
        lines = "".join(r.to_json_line() + "\n" for r in self._pending)
        with target.open("a", encoding="utf-8") as fh:
            fh.write(lines)
        self._pending.clear()
        return target
