#!/usr/bin/env python3
"""Sample input workbook generator.

Writes a small workbook for manual runs of the enrichment CLI:
- Row 1: Header row (Company, Website, Country)
- Row 2+: Data rows, some with an empty Website cell to exercise skipping

A second sheet ("Notes") is added so that runs can be checked to carry
untouched sheets through to the enriched copy.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd
from openpyxl import load_workbook
from openpyxl.styles import Font

SAMPLE_COMPANIES = [
    ("Python Software Foundation", "https://www.python.org", "US"),
    ("Mozilla", "https://www.mozilla.org", "US"),
    ("Wikimedia", "wikimedia.org", "US"),
    ("Example Domain", "https://example.com", ""),
    ("No Website Ltd", "", "GB"),
]


def build_frame(rows: int) -> pd.DataFrame:
    """Repeat the sample companies until ``rows`` data rows exist."""
    records = [SAMPLE_COMPANIES[i % len(SAMPLE_COMPANIES)] for i in range(rows)]
    df = pd.DataFrame(records, columns=["Company", "Website", "Country"])
    # Empty strings would be written as "" cells; None leaves them blank
    return df.replace({"": None})


def write_workbook(df: pd.DataFrame, output: Path) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Companies", index=False)
        pd.DataFrame({"Note": ["Generated by gen_sample_workbook.py"]}).to_excel(
            writer, sheet_name="Notes", index=False
        )

    # Bold header and a readable Website column width
    wb = load_workbook(output)
    ws = wb["Companies"]
    for cell in ws[1]:
        cell.font = Font(bold=True)
    ws.column_dimensions["B"].width = 36
    wb.save(output)
    wb.close()
    return output


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate a sample input workbook")
    parser.add_argument("--rows", type=int, default=len(SAMPLE_COMPANIES), help="Number of data rows")
    parser.add_argument(
        "--output", type=Path, default=Path("data/companies.xlsx"), help="Output workbook path"
    )
    args = parser.parse_args(argv)

    if args.rows < 0:
        print("--rows must be >= 0", file=sys.stderr)
        return 1

    path = write_workbook(build_frame(args.rows), args.output)
    print(f"wrote {args.rows} rows to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
