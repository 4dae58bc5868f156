from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import openpyxl

from conftest import FakeExtractionProvider, FakeSnapshotProvider, build_workbook
from webvisionsheet.cli.__main__ import EXIT_FATAL, EXIT_SUCCESS_ALL, main as cli_main


def _input(temp_workdir: Path, rows=None) -> Path:
    rows = rows or [["Company", "Website"], ["Acme", "https://acme.example"], ["Blank", None], ["Beta", "beta.example"]]
    return build_workbook(temp_workdir / "data" / "companies.xlsx", rows)


def _run_cli(argv, snapshot=None, extraction=None):
    client_cls = MagicMock()
    client_cls.return_value.__enter__.return_value = extraction or FakeExtractionProvider()
    with patch("webvisionsheet.cli.__main__.PlaywrightSnapshotProvider", return_value=snapshot or FakeSnapshotProvider()), \
         patch("webvisionsheet.cli.__main__.VisionExtractionClient", client_cls):
        code = cli_main(argv)
    return code, client_cls


def test_cli_success(write_config, temp_workdir: Path, capsys):
    _input(temp_workdir)
    code, _ = _run_cli(["--output-name", "enriched.xlsx"])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert "SUMMARY rows=3 processed=2 failed=0 skipped=1 " in out
    output = temp_workdir / "workspace" / "enriched.xlsx"
    assert output.exists()
    wb = openpyxl.load_workbook(output)
    assert [c.value for c in wb.worksheets[0][1]] == ["Company", "Website", "Summary", "Email"]
    wb.close()


def test_cli_config_missing(temp_workdir: Path, capsys):
    code = cli_main(["--config", "config/missing.yml"])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR config: config file not found" in out


def test_cli_input_missing(write_config, temp_workdir: Path, capsys):
    code = cli_main([])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR input file not found:" in out


def test_cli_inspect_data(write_config, temp_workdir: Path, capsys):
    _input(temp_workdir)
    with patch("webvisionsheet.cli.__main__.PlaywrightSnapshotProvider") as provider_cls:
        code = cli_main(["--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    assert "columns=['Company', 'Website'] rows=3" in out
    provider_cls.assert_not_called()


def test_cli_env_overrides_extraction_settings(write_config, temp_workdir: Path, monkeypatch):
    _input(temp_workdir)
    monkeypatch.delenv("LLM_API_URL", raising=False)
    monkeypatch.setenv("LLM_MODEL", "env-model")
    monkeypatch.setenv("LLM_API_KEY", "placeholder")
    (temp_workdir / ".env").write_text("LLM_API_KEY=sk-from-dotenv\n", encoding="utf-8")

    code, client_cls = _run_cli([])

    assert code == EXIT_SUCCESS_ALL
    extraction_cfg = client_cls.call_args.args[0]
    assert extraction_cfg.model == "env-model"
    assert extraction_cfg.api_key == "sk-from-dotenv"
    assert extraction_cfg.api_url == "http://llm.local/v1/chat/completions"


def test_cli_debug_mode(write_config, temp_workdir: Path, capsys):
    _input(temp_workdir)
    code, _ = _run_cli(["--debug"])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert "DEBUG debug mode enabled" in out
