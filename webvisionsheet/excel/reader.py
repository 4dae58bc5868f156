from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

"""Read-only workbook inspection (pandas).

Used before a run to show what the input looks like: sheet names, the header
of the first sheet (the one that gets enriched) and how many data rows it
holds. Row 1 is the header, rows 2+ are data.
"""


class SheetHeaderError(Exception):
    """Raised when the first sheet has no header row."""


@dataclass
class WorkbookInfo:
    sheet_names: list[str]
    columns: list[str]  # First-sheet header, empty cells skipped
    total_rows: int  # Data rows, header excluded
    sample_rows: list[dict[str, Any]] = field(default_factory=list)


def read_workbook_info(path: Path, sample_size: int = 3) -> WorkbookInfo:
    """Summarize an input workbook.

    Parameters
    ----------
    path: Excel file path
    sample_size: number of leading data rows returned as column -> value dicts
    """
    xls = pd.ExcelFile(path)
    sheet_names = [str(name) for name in xls.sheet_names]
    if not sheet_names:
        raise SheetHeaderError(f"workbook has no sheets: {path}")
    # ヘッダなしで生読み (1行目をヘッダとして扱う)
    df = xls.parse(sheet_names[0], header=None)
    if df.shape[0] < 1:
        raise SheetHeaderError(f"sheet '{sheet_names[0]}' has no header row")

    header_series = df.iloc[0]
    columns = [str(c).strip() for c in header_series.tolist() if not pd.isna(c)]
    data_part = df.iloc[1:]

    sample_rows: list[dict[str, Any]] = []
    for _, raw in data_part.head(sample_size).iterrows():
        row_dict: dict[str, Any] = {}
        for col, val in zip(header_series.tolist(), raw.tolist(), strict=False):
            if pd.isna(col):
                continue
            row_dict[str(col).strip()] = None if pd.isna(val) else val
        sample_rows.append(row_dict)

    return WorkbookInfo(
        sheet_names=sheet_names,
        columns=columns,
        total_rows=int(data_part.shape[0]),
        sample_rows=sample_rows,
    )
