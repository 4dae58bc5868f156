from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""RowRecord domain model and RowStatus enum.

A RowRecord is the transient outcome of one data row: which URL was visited,
the extracted values or the error that replaced them. Its values are written
into the workbook as soon as the row finishes; the record itself only feeds
the run counters and the error log.
"""

__all__ = [
    "RowStatus",
    "RowRecord",
]


class RowStatus(Enum):
    """Outcome of one data row.

    - SKIPPED: URL cell empty; nothing attempted, nothing written
    - SUCCESS: snapshot and extraction both succeeded
    - FAILED: snapshot or extraction failed; error text written to every result cell
    """
    SKIPPED = "skipped"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class RowRecord:
    """Outcome of processing a single worksheet row."""
    row_number: int  # 1-based worksheet row (2 = first data row)
    url: str  # Coerced, stripped URL cell ("" when skipped)
    status: RowStatus
    values: dict[str, str] = field(default_factory=dict)  # column_name -> written value
    error: str | None = None  # Failure reason (FAILED only)
    error_type: str | None = None  # UPPER_SNAKE classification (FAILED only)
