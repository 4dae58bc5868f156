from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

"""CellValue tagged variant for workbook cells.

Workbook libraries hand back an untyped union of scalars, dates and rich text
objects. CellValue pins that down to one of five kinds and owns the single
coercion rule used everywhere a cell has to be read as text (URL lookup,
header matching, workbook dumps):

- empty / missing      -> ""
- date, datetime, time -> ISO-8601 via isoformat()
- plain scalar         -> str(value)
- rich text            -> concatenated text runs, "[Complex Value]" on failure
- anything else        -> "" unless it exposes a string ``text`` attribute
"""

__all__ = [
    "CellKind",
    "CellValue",
    "COMPLEX_VALUE_MARKER",
]

COMPLEX_VALUE_MARKER = "[Complex Value]"


class CellKind(Enum):
    """Kind tag for CellValue."""
    EMPTY = "empty"
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    RICH_TEXT = "rich_text"


@dataclass(frozen=True)
class CellValue:
    """One workbook cell, tagged by kind.

    ``value`` holds the payload for the kind:
    TEXT -> str, NUMBER -> int/float/bool/Decimal, DATE -> date/datetime/time,
    RICH_TEXT -> tuple of text runs (str or objects with a ``text`` attribute),
    EMPTY -> None.
    """
    kind: CellKind
    value: Any = None

    @classmethod
    def empty(cls) -> CellValue:
        return cls(CellKind.EMPTY)

    @classmethod
    def from_raw(cls, raw: Any) -> CellValue:
        """Classify a raw value returned by openpyxl (or pandas)."""
        if raw is None:
            return cls.empty()
        if isinstance(raw, str):
            return cls(CellKind.TEXT, raw)
        if isinstance(raw, (datetime, date, time)):
            return cls(CellKind.DATE, raw)
        if isinstance(raw, (bool, int, float, Decimal)):
            return cls(CellKind.NUMBER, raw)
        # openpyxl CellRichText is a list subclass of str / TextBlock runs
        if isinstance(raw, (list, tuple)):
            return cls(CellKind.RICH_TEXT, tuple(raw))
        text = getattr(raw, "text", None)
        if isinstance(text, str):
            return cls(CellKind.TEXT, text)
        return cls.empty()

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    def to_display_string(self) -> str:
        if self.kind is CellKind.EMPTY:
            return ""
        if self.kind is CellKind.DATE:
            return self.value.isoformat()
        if self.kind is CellKind.RICH_TEXT:
            try:
                return "".join(
                    run if isinstance(run, str) else run.text for run in self.value
                )
            except (AttributeError, TypeError):
                return COMPLEX_VALUE_MARKER
        return str(self.value)

    def __str__(self) -> str:
        return self.to_display_string()
