# Shared pytest fixtures
from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import pytest
from openpyxl import Workbook

from webvisionsheet.browser.snapshot import NavigationError
from webvisionsheet.logging.init import reset_logging
from webvisionsheet.models.config_models import FieldDefinition


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()
    # handlers may hold a captured stdout that is closed after the test
    app_logger = logging.getLogger("webvisionsheet")
    for handler in app_logger.handlers[:]:
        app_logger.removeHandler(handler)
    app_logger.setLevel(logging.NOTSET)


@pytest.fixture()
def sample_config_yaml() -> str:
    return """input_file: ./data/companies.xlsx
workspace_path: ./workspace
website_column: Website
fields:
  - column_name: Summary
    instruction: One sentence describing the company.
  - column_name: Email
    instruction: Contact email shown on the page.
extraction:
  api_url: http://llm.local/v1/chat/completions
  model: test-vision
browser:
  headless: true
  network_idle_timeout_ms: 0
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "webvisionsheet.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def build_workbook(path: Path, rows: Sequence[Sequence[object]], extra_sheets: Mapping[str, Sequence[Sequence[object]]] | None = None) -> Path:
    """Write ``rows`` (header first) into the first sheet of a new workbook."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Companies"
    for row in rows:
        ws.append(list(row))
    for name, sheet_rows in (extra_sheets or {}).items():
        extra = wb.create_sheet(name)
        for row in sheet_rows:
            extra.append(list(row))
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    wb.close()
    return path


@pytest.fixture()
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    def _make(rows: Sequence[Sequence[object]], name: str = "companies.xlsx", **kwargs) -> Path:
        return build_workbook(tmp_path / name, rows, **kwargs)
    return _make


class FakeSnapshotProvider:
    """Writes a placeholder PNG instead of driving a browser."""

    def __init__(self, failures: Mapping[str, Exception] | None = None) -> None:
        self.failures = dict(failures or {})
        self.captured: list[tuple[str, Path]] = []
        self.ready_calls = 0
        self.release_calls = 0

    def ensure_ready(self) -> object:
        self.ready_calls += 1
        return self

    def capture(self, url: str, output_path: Path) -> Path:
        self.captured.append((url, output_path))
        if url in self.failures:
            raise self.failures[url]
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(b"\x89PNG\r\n\x1a\n")
        return output_path

    def release(self) -> None:
        self.release_calls += 1


class FakeExtractionProvider:
    """Answers every field with ``<column> of <url>``."""

    def __init__(self, failures: Mapping[str, Exception] | None = None, answers: Mapping[str, dict[str, str]] | None = None) -> None:
        self.failures = dict(failures or {})
        self.answers = dict(answers or {})
        self.calls: list[tuple[Path, dict[str, str], tuple[FieldDefinition, ...]]] = []

    def extract(self, image_path: Path, context: Mapping[str, str], fields: Sequence[FieldDefinition]) -> dict[str, str]:
        url = context["url"]
        self.calls.append((image_path, dict(context), tuple(fields)))
        if url in self.failures:
            raise self.failures[url]
        if url in self.answers:
            return dict(self.answers[url])
        return {f.column_name: f"{f.column_name} of {url}" for f in fields}


@pytest.fixture()
def fake_snapshot() -> FakeSnapshotProvider:
    return FakeSnapshotProvider()


@pytest.fixture()
def fake_extraction() -> FakeExtractionProvider:
    return FakeExtractionProvider()


@pytest.fixture()
def fields() -> tuple[FieldDefinition, ...]:
    return (
        FieldDefinition("Summary", "One sentence describing the company."),
        FieldDefinition("Email", "Contact email shown on the page."),
    )


@pytest.fixture()
def unreachable() -> NavigationError:
    return NavigationError("navigation to https://down.example failed: net::ERR_NAME_NOT_RESOLVED")
