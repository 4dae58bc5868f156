from __future__ import annotations

from pathlib import Path

from webvisionsheet.excel.reader import read_workbook_info


def test_read_workbook_info_first_sheet(make_workbook):
    path = make_workbook(
        [
            ["Company", "Website"],
            ["A", "https://a.example"],
            ["B", None],
            ["C", "c.example"],
            ["D", "d.example"],
        ],
        extra_sheets={"Notes": [["x"]]},
    )
    info = read_workbook_info(path, sample_size=2)
    assert info.sheet_names == ["Companies", "Notes"]
    assert info.columns == ["Company", "Website"]
    assert info.total_rows == 4
    assert info.sample_rows == [
        {"Company": "A", "Website": "https://a.example"},
        {"Company": "B", "Website": None},
    ]


def test_read_workbook_info_header_only(make_workbook):
    path: Path = make_workbook([["Company", "Website"]])
    info = read_workbook_info(path)
    assert info.total_rows == 0
    assert info.sample_rows == []
