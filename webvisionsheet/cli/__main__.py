from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from webvisionsheet.ai.extraction import VisionExtractionClient
from webvisionsheet.ai.usage import UsageLedger
from webvisionsheet.browser.snapshot import PlaywrightSnapshotProvider
from webvisionsheet.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from webvisionsheet.logging.error_log import ErrorLogBuffer
from webvisionsheet.logging.init import log_summary, set_debug, setup_logging
from webvisionsheet.models.config_models import ExtractionConfig, RunConfig
from webvisionsheet.models.processing_result import ProgressEvent
from webvisionsheet.services.job import run_job
from webvisionsheet.services.progress import ProgressTracker
from webvisionsheet.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env (overrides the process environment)
- Load and validate the YAML config
- Either inspect the input workbook (--inspect-data) or run the job
- Print the SUMMARY line and map the outcome to an exit code
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True lets .env values win over variables already set, so the
    extraction credentials in .env take precedence.
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Enrich a spreadsheet with fields extracted from website screenshots"
    )
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to the YAML config")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print input sheets, columns & first rows then exit")
    p.add_argument("--output-name", help="Output file name inside the workspace (overrides config)")
    return p.parse_args(argv)


def _resolve_extraction_config(cfg: ExtractionConfig) -> ExtractionConfig:
    """Apply environment overrides to the extraction settings.

    Precedence: LLM_API_KEY / LLM_API_URL / LLM_MODEL (after .env load),
    then the config file's extraction section.
    """
    return dataclasses.replace(
        cfg,
        api_key=os.getenv("LLM_API_KEY") or cfg.api_key,
        api_url=os.getenv("LLM_API_URL") or cfg.api_url,
        model=os.getenv("LLM_MODEL") or cfg.model,
    )


def _inspect_data(cfg: RunConfig) -> int:
    from webvisionsheet.excel.reader import SheetHeaderError, read_workbook_info

    path = Path(cfg.input_file)
    try:
        info = read_workbook_info(path)
    except (OSError, ValueError, SheetHeaderError) as e:
        print(f"inspect: cannot read {path}: {e}")
        return EXIT_FATAL
    print(f"FILE: {path.name}")
    print(f"  sheets={info.sheet_names}")
    print(f"  columns={info.columns} rows={info.total_rows}")
    if cfg.website_column not in info.columns:
        print(f"  website column '{cfg.website_column}' NOT FOUND")
    # Timestamp の repr は冗長なので isoformat で表示
    safe_rows = [
        {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in r.items()}
        for r in info.sample_rows
    ]
    print("  sample_rows=", safe_rows)
    return 0


class ConsoleJobListener:
    """Job listener for the terminal: tqdm bar plus log lines."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger
        self.tracker = ProgressTracker(description="Processing rows")

    def on_progress(self, event: ProgressEvent) -> None:
        self.tracker.emit(event)
        self._logger.debug(event.message)

    def on_complete(self, output_path: Path) -> None:
        self.tracker.finish()
        self.tracker.close()
        self._logger.info(f"enriched file: {output_path}")

    def on_failure(self, message: str) -> None:
        self.tracker.close()
        self._logger.error(f"processing: {message}")


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで main([]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.output_name:
        cfg = dataclasses.replace(cfg, output_file_name=args.output_name)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    input_path = Path(cfg.input_file)
    if not input_path.exists():
        logger.error(f"input file not found: {input_path}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg)

    logger.info(f"Processing {input_path} -> {cfg.workspace}")

    listener = ConsoleJobListener(logger)
    extraction_cfg = _resolve_extraction_config(cfg.extraction)
    usage_ledger = UsageLedger(cfg.logs_dir / "usage.jsonl")
    snapshot_provider = PlaywrightSnapshotProvider(cfg.browser)
    try:
        with VisionExtractionClient(extraction_cfg, usage_meter=usage_ledger) as extraction_client:
            result = run_job(
                cfg,
                snapshot_provider,
                extraction_client,
                listener=listener,
                error_log=ErrorLogBuffer(cfg.logs_dir),
            )
    except Exception:
        # on_failure already logged the reason
        logger.debug("run aborted", exc_info=True)
        return EXIT_FATAL

    for line in result.logs:
        logger.debug(line)

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " prefix itself
    log_summary(summary_line[len("SUMMARY "):])

    if result.has_failures:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
