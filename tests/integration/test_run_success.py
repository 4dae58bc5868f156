from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pandas as pd  # type: ignore
import pytest

from conftest import FakeExtractionProvider, FakeSnapshotProvider
from webvisionsheet.cli.__main__ import main as cli_main

"""Integration test: full CLI run over a real workbook.

Builds the input with pandas (two sheets), runs the CLI with the browser and
the model replaced by fakes, then reads the enriched workbook back with
pandas and checks it against the SUMMARY line.
"""


def _make_excel_file(path: Path) -> Path:
    companies = pd.DataFrame(
        {
            "Company": ["Acme", "Beta", "Gamma", "Delta"],
            "Website": ["https://acme.example", "beta.example", None, "https://delta.example"],
            "Founded": [1999, 2005, 2010, 2021],
        }
    )
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        companies.to_excel(writer, sheet_name="Companies", index=False)
        pd.DataFrame({"Note": ["untouched"]}).to_excel(writer, sheet_name="Notes", index=False)
    return path


@pytest.mark.parametrize("fail_url, expected_code", [(None, 0), ("beta.example", 2)])
def test_cli_end_to_end(write_config, temp_workdir: Path, capsys, unreachable, fail_url, expected_code):
    _make_excel_file(temp_workdir / "data" / "companies.xlsx")
    snapshot = FakeSnapshotProvider(failures={fail_url: unreachable} if fail_url else None)
    client_cls = MagicMock()
    client_cls.return_value.__enter__.return_value = FakeExtractionProvider()

    with patch("webvisionsheet.cli.__main__.PlaywrightSnapshotProvider", return_value=snapshot), \
         patch("webvisionsheet.cli.__main__.VisionExtractionClient", client_cls):
        code = cli_main(["--output-name", "enriched.xlsx"])

    out = capsys.readouterr().out
    assert code == expected_code

    output = temp_workdir / "workspace" / "enriched.xlsx"
    df = pd.read_excel(output, sheet_name=None)
    companies = df["Companies"]
    assert list(companies.columns) == ["Company", "Website", "Founded", "Summary", "Email"]
    assert len(companies) == 4
    assert companies.loc[0, "Summary"] == "Summary of https://acme.example"
    assert pd.isna(companies.loc[2, "Summary"])
    assert df["Notes"].loc[0, "Note"] == "untouched"

    if fail_url:
        assert companies.loc[1, "Summary"].startswith("Error: ")
        assert companies.loc[1, "Email"] == companies.loc[1, "Summary"]
        assert "SUMMARY rows=4 processed=2 failed=1 skipped=1 " in out
    else:
        assert companies.loc[1, "Email"] == "Email of beta.example"
        assert "SUMMARY rows=4 processed=3 failed=0 skipped=1 " in out

    screenshots = sorted(p.name for p in (temp_workdir / "workspace" / "screenshots").iterdir())
    expected = ["screenshot-row-2.png", "screenshot-row-5.png"] + ([] if fail_url else ["screenshot-row-3.png"])
    assert screenshots == sorted(expected)
