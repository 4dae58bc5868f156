from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from ..ai.extraction import ExtractionProvider
from ..browser.snapshot import SnapshotProvider
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import RunConfig
from ..models.processing_result import ProgressEvent, RunResult
from .pipeline import run_pipeline

logger = logging.getLogger(__name__)

"""Job runner around the row pipeline.

A job is one run driven by a RunConfig: it prepares the workspace, picks the
output file name, acquires the browser, runs the pipeline and reports the
outcome to a JobListener. Exactly one of ``on_complete`` / ``on_failure`` is
delivered per job; ``on_progress`` may fire many times before that. The
browser is released when the job ends, whatever the outcome.
"""


class JobListener(Protocol):
    def on_progress(self, event: ProgressEvent) -> None:
        ...

    def on_complete(self, output_path: Path) -> None:
        ...

    def on_failure(self, message: str) -> None:
        ...


class _ListenerProgressSink:
    """Adapts JobListener.on_progress to the pipeline's ProgressSink."""

    def __init__(self, listener: JobListener) -> None:
        self._listener = listener

    def emit(self, event: ProgressEvent) -> None:
        self._listener.on_progress(event)


def resolve_output_path(config: RunConfig, now: datetime | None = None) -> Path:
    """``<workspace>/<output_file_name>`` or ``<workspace>/enriched-<timestamp>-<input name>``."""
    if config.output_file_name:
        return config.workspace / config.output_file_name
    now = now or datetime.now(UTC)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"
    return config.workspace / f"enriched-{stamp}-{Path(config.input_file).name}"


def run_job(
    config: RunConfig,
    snapshot_provider: SnapshotProvider,
    extraction_provider: ExtractionProvider,
    listener: JobListener | None = None,
    error_log: ErrorLogBuffer | None = None,
    now: datetime | None = None,
) -> RunResult:
    """Run one enrichment job.

    Raises:
        Exception: whatever aborted the run (PipelineError for fatal pipeline
            errors, SnapshotError when the browser cannot start), after
            ``on_failure`` was delivered.
    """
    input_path = Path(config.input_file)
    output_path = resolve_output_path(config, now)
    snapshot_dir = config.snapshot_dir
    if error_log is None:
        error_log = ErrorLogBuffer(config.logs_dir)

    logger.info("input=%s", input_path)
    logger.info("output=%s", output_path)
    logger.info("screenshots=%s website_column=%s fields=%d",
                snapshot_dir, config.website_column, len(config.fields))

    try:
        snapshot_dir.mkdir(parents=True, exist_ok=True)
        snapshot_provider.ensure_ready()
        result = run_pipeline(
            input_path,
            config.website_column,
            config.fields,
            output_path,
            snapshot_dir,
            snapshot_provider,
            extraction_provider,
            progress_sink=_ListenerProgressSink(listener) if listener is not None else None,
            error_log=error_log,
        )
    except Exception as e:
        message = str(e) or type(e).__name__
        logger.error("processing failed: %s", message)
        _notify(listener, "on_failure", message)
        raise
    finally:
        snapshot_provider.release()

    _notify(listener, "on_complete", result.output_path)
    return result


def _notify(listener: JobListener | None, method: str, payload: object) -> None:
    if listener is None:
        return
    try:
        getattr(listener, method)(payload)
    except Exception as e:
        logger.debug("listener %s raised (ignored): %s", method, e)
