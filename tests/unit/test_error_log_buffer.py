from __future__ import annotations

import json
import re
from pathlib import Path

from webvisionsheet.logging.error_log import ErrorLogBuffer, ErrorRecord


def test_flush_writes_json_lines(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path / "logs")
    buf.append(ErrorRecord.create("companies.xlsx", 3, "https://a.example", "NAVIGATION_ERROR", "net::ERR"))
    buf.append(ErrorRecord.create("companies.xlsx", 5, "https://b.example", "EXTRACTION_ERROR", "bad json"))
    path = buf.flush()
    assert path is not None
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(l)["row"] for l in lines] == [3, 5]
    assert len(buf.records) == 0


def test_flush_empty_buffer_creates_no_file(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_repeated_flush_appends_to_same_file(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path / "logs")
    buf.append(ErrorRecord.create("f.xlsx", 2, "u", "UNEXPECTED_ERROR", "m1"))
    first = buf.flush()
    buf.append(ErrorRecord.create("f.xlsx", 4, "u", "UNEXPECTED_ERROR", "m2"))
    second = buf.flush()
    assert first == second
    assert len(second.read_text(encoding="utf-8").splitlines()) == 2


def test_error_record_keys_and_timestamp():
    rec = ErrorRecord.create("f.xlsx", -1, "", "UNEXPECTED_ERROR", "unknown row")
    data = json.loads(rec.to_json_line())
    assert set(data) == {"timestamp", "file", "row", "url", "error_type", "message"}
    assert data["timestamp"].endswith("Z")
    assert data["row"] == -1
