#!/usr/bin/env python3
"""Print every cell of a workbook's first sheet as text.

Cells go through the same coercion as the enrichment pipeline (CellValue), so
the output shows exactly what the pipeline sees, e.g. the URL it would open
for a rich text or date cell.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from webvisionsheet.excel.store import TabularDocument, WorkbookError


def dump(path: Path, limit: int | None = None) -> None:
    document = TabularDocument.load(path)
    try:
        print(f"sheet={document.sheet_name} rows={document.row_count} columns={document.column_count}")
        last_row = document.row_count if limit is None else min(document.row_count, limit + 1)
        for row in range(1, last_row + 1):
            values = [
                document.get_cell(row, col).to_display_string()
                for col in range(1, document.column_count + 1)
            ]
            print(f"{row:>5}: " + " | ".join(values))
    finally:
        document.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Dump the first sheet of a workbook")
    parser.add_argument("path", type=Path, help="Workbook (.xlsx)")
    parser.add_argument("--limit", type=int, help="Maximum number of data rows to print")
    args = parser.parse_args(argv)
    try:
        dump(args.path, args.limit)
    except WorkbookError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
