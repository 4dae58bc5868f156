from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""One failed row, as written to the JSON Lines error log.

The key set is fixed: timestamp, file, row, url, error_type, message.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """A row that ended with error text in its result cells.

    Attributes:
        timestamp: When the failure was recorded, ISO8601 UTC ending in 'Z'
        file: Input workbook name (no directory)
        row: 1-based worksheet row, -1 when the failure is not tied to a row
        url: The row's website URL after trimming, "" when unknown
        error_type: NAVIGATION_ERROR, CAPTURE_TIMEOUT, EXTRACTION_ERROR or
            UNEXPECTED_ERROR
        message: Failure text, the same text that follows "Error: " in the cells
    """
    timestamp: str
    file: str
    row: int
    url: str
    error_type: str
    message: str

    @classmethod
    def create(cls, file: str, row: int, url: str, error_type: str, message: str) -> ErrorRecord:
        """Stamp a new record with the current UTC time."""
        now = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return cls(now, file, row, url, error_type, message)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
