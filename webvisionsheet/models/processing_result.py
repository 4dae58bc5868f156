from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

"""Run result and progress event models.

RunResult is returned once per pipeline run (the run completed, possibly with
some rows marked as failed in place). ProgressEvent is emitted at least once
per data row to the injected progress sink.
"""


@dataclass(frozen=True)
class ProgressEvent:
    """Progress notification for one data row.

    In-memory only; the pipeline never waits on the consumer.
    """
    current_row_index: int  # 0-based among data rows (header excluded)
    total_rows: int  # Data rows, header excluded
    message: str  # Human readable, names the URL or the skip reason


@dataclass(frozen=True)
class RunResult:
    """Aggregated outcome of one enrichment run.

    ``logs`` is the ordered, human readable run log; per-row failures appear
    there and inside the output workbook, never as exceptions.
    """
    output_path: Path
    logs: list[str] = field(default_factory=list)
    total_rows: int = 0  # Data rows in the input
    processed_rows: int = 0  # Rows whose snapshot + extraction succeeded
    failed_rows: int = 0  # Rows with error text in their result cells
    skipped_rows: int = 0  # Rows with an empty URL cell
    start_time: datetime | None = None
    end_time: datetime | None = None
    elapsed_seconds: float = 0.0

    @property
    def has_failures(self) -> bool:
        return self.failed_rows > 0
