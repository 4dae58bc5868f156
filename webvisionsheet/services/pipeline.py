from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from ..ai.extraction import ExtractionError, ExtractionProvider
from ..browser.snapshot import CaptureTimeout, SnapshotError, SnapshotProvider
from ..excel.store import TabularDocument, WorkbookError
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.config_models import FieldDefinition
from ..models.processing_result import ProgressEvent, RunResult
from ..models.row_record import RowRecord, RowStatus
from .progress import ProgressSink

logger = logging.getLogger(__name__)

"""Row processing pipeline.

Turns an input workbook into an enriched copy, one data row at a time:

1. Load the workbook and resolve the URL column (exact header match)
2. Append one header cell per field definition, remember field -> column
3. For every data row: screenshot the URL, extract all fields in one call,
   write the values (or the error text) into the row, save the workbook
4. Save once more and return the output path with the ordered run log

A failing row never aborts the run: its result cells receive
``Error: <message>`` and processing moves on. Only pre-flight problems
(unreadable input, missing column) and failing saves are fatal.
"""

ROW_ERROR_PREFIX = "Error: "


class PipelineError(Exception):
    """Base exception for fatal pipeline errors."""
    pass


class WorkbookLoadError(PipelineError):
    """The input workbook could not be read."""


class ColumnNotFound(PipelineError):
    """The URL column is missing from the header row."""


class PersistenceError(PipelineError):
    """The output workbook could not be written."""


def snapshot_file_name(row_number: int) -> str:
    return f"screenshot-row-{row_number}.png"


def classify_error(exc: BaseException) -> str:
    """UPPER_SNAKE error type for the error log."""
    if isinstance(exc, CaptureTimeout):
        return "CAPTURE_TIMEOUT"
    if isinstance(exc, SnapshotError):
        return "NAVIGATION_ERROR"
    if isinstance(exc, ExtractionError):
        return "EXTRACTION_ERROR"
    return "UNEXPECTED_ERROR"


def run_pipeline(
    input_path: Path,
    website_column: str,
    fields: Sequence[FieldDefinition],
    output_path: Path,
    snapshot_dir: Path,
    snapshot_provider: SnapshotProvider,
    extraction_provider: ExtractionProvider,
    progress_sink: ProgressSink | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> RunResult:
    """Enrich ``input_path`` into ``output_path``.

    The snapshot provider must already be usable; the pipeline neither starts
    nor releases it.

    Args:
        input_path: Source workbook (.xlsx), first sheet is processed
        website_column: Header of the URL column (exact match)
        fields: Ordered field definitions, one output column each
        output_path: Enriched workbook, rewritten after every processed row
        snapshot_dir: Directory receiving screenshot-row-<n>.png files
        snapshot_provider: Screenshot capability
        extraction_provider: Vision extraction capability
        progress_sink: Optional receiver of ProgressEvent (failures ignored)
        error_log: Optional buffer receiving one ErrorRecord per failed row

    Returns:
        RunResult with the output path, ordered log and row counters

    Raises:
        WorkbookLoadError: input cannot be read
        ColumnNotFound: ``website_column`` is not in the header row
        PersistenceError: the output workbook cannot be saved
    """
    start_time = datetime.now(UTC)
    fields = tuple(fields)
    logs: list[str] = []

    try:
        document = TabularDocument.load(input_path)
    except WorkbookError as e:
        raise WorkbookLoadError(str(e)) from e

    try:
        website_col = document.find_column(website_column)
        if website_col is None:
            raise ColumnNotFound(
                f'Website column "{website_column}" not found in {input_path.name} '
                f"(header: {document.header_columns()})"
            )
        logs.append(f'Found website column "{website_column}" at index {website_col}')

        duplicates = sorted(name for name, n in Counter(f.column_name for f in fields).items() if n > 1)
        if duplicates:
            logger.warning("duplicate field column names %s; each copy gets the same value", duplicates)

        result_columns = _append_result_columns(document, fields, logs)

        if document.row_count <= 1:
            logs.append("No data rows found in the workbook.")
            _persist(document, output_path)
            logs.append(f"Saved file with headers (no data rows) to {output_path}")
            return _build_result(output_path, logs, 0, [], start_time)

        last_row = document.row_count
        total_rows = last_row - 1
        logs.append(f"Starting to process {total_rows} rows...")
        logger.info("processing %d rows from %s", total_rows, input_path.name)

        records: list[RowRecord] = []
        for row_number in range(2, last_row + 1):
            record = _process_row(
                document,
                row_number,
                total_rows,
                website_col,
                fields,
                result_columns,
                snapshot_dir,
                snapshot_provider,
                extraction_provider,
                progress_sink,
                logs,
            )
            records.append(record)
            if record.status is RowStatus.SKIPPED:
                continue

            if record.status is RowStatus.FAILED and error_log is not None:
                error_log.append(
                    ErrorRecord.create(
                        file=input_path.name,
                        row=row_number,
                        url=record.url,
                        error_type=record.error_type or "UNEXPECTED_ERROR",
                        message=record.error or "",
                    )
                )

            # Crash safety: the output never lags more than one row behind
            _persist(document, output_path)
            logs.append(f"Row {row_number}: Saved intermediate progress to {output_path}")

        logs.append("All rows processed, saving final enriched file...")
        _persist(document, output_path)
        logs.append(f"Enriched file saved to {output_path}")
        return _build_result(output_path, logs, total_rows, records, start_time)
    finally:
        document.close()
        if error_log is not None:
            try:
                error_log.flush()
            except OSError as e:
                # Don't fail the run if the error log cannot be written
                logger.warning("error log flush failed: %s", e)


def _append_result_columns(
    document: TabularDocument, fields: tuple[FieldDefinition, ...], logs: list[str]
) -> list[int]:
    """Append one header cell per field; return column indices parallel to ``fields``."""
    columns: list[int] = []
    for f in fields:
        col = document.append_header_column(f.column_name)
        columns.append(col)
        logs.append(f'Added new column: "{f.column_name}" at column index {col}')
    return columns


def _process_row(
    document: TabularDocument,
    row_number: int,
    total_rows: int,
    website_col: int,
    fields: tuple[FieldDefinition, ...],
    result_columns: list[int],
    snapshot_dir: Path,
    snapshot_provider: SnapshotProvider,
    extraction_provider: ExtractionProvider,
    progress_sink: ProgressSink | None,
    logs: list[str],
) -> RowRecord:
    """Process one data row; never raises for snapshot / extraction failures."""
    row_index = row_number - 2
    url = document.get_cell(row_number, website_col).to_display_string().strip()

    if not url:
        logs.append(f"Row {row_number}: empty website URL, skipping")
        _emit(
            progress_sink,
            ProgressEvent(row_index, total_rows, f"Skipping row {row_index + 1} of {total_rows}: empty URL"),
        )
        return RowRecord(row_number=row_number, url="", status=RowStatus.SKIPPED)

    _emit(
        progress_sink,
        ProgressEvent(row_index, total_rows, f"Processing row {row_index + 1} of {total_rows}: {url}"),
    )
    logs.append(f'Row {row_number}: Processing website "{url}"...')

    try:
        snapshot_path = snapshot_dir / snapshot_file_name(row_number)
        logs.append(f'Row {row_number}: Taking screenshot of "{url}"...')
        snapshot_provider.capture(url, snapshot_path)
        logs.append(f'Row {row_number}: Screenshot saved to "{snapshot_path}"')

        result = extraction_provider.extract(snapshot_path, {"url": url}, fields)

        values: dict[str, str] = {}
        for f, col in zip(fields, result_columns, strict=True):
            value = result.get(f.column_name, "")
            if value is None:
                value = ""
            document.set_cell(row_number, col, value)
            values[f.column_name] = value
            logs.append(f'Row {row_number}: AI generated result for "{f.column_name}"')
        logs.append(f"Row {row_number}: Processing completed")
        return RowRecord(row_number=row_number, url=url, status=RowStatus.SUCCESS, values=values)

    except Exception as e:
        message = str(e) or type(e).__name__
        error_type = classify_error(e)
        logs.append(f"Row {row_number}: Error processing - {message}")
        logger.warning("row %d (%s) failed [%s]: %s", row_number, url, error_type, message)
        cell_text = f"{ROW_ERROR_PREFIX}{message}"
        for col in result_columns:
            document.set_cell(row_number, col, cell_text)
        return RowRecord(
            row_number=row_number,
            url=url,
            status=RowStatus.FAILED,
            error=message,
            error_type=error_type,
        )


def _emit(sink: ProgressSink | None, event: ProgressEvent) -> None:
    if sink is None:
        return
    try:
        sink.emit(event)
    except Exception as e:
        logger.debug("progress sink raised (ignored): %s", e)


def _persist(document: TabularDocument, output_path: Path) -> None:
    try:
        document.save(output_path)
    except Exception as e:
        raise PersistenceError(f"failed to save {output_path}: {e}") from e


def _build_result(
    output_path: Path,
    logs: list[str],
    total_rows: int,
    records: list[RowRecord],
    start_time: datetime,
) -> RunResult:
    end_time = datetime.now(UTC)
    return RunResult(
        output_path=output_path,
        logs=logs,
        total_rows=total_rows,
        processed_rows=sum(1 for r in records if r.status is RowStatus.SUCCESS),
        failed_rows=sum(1 for r in records if r.status is RowStatus.FAILED),
        skipped_rows=sum(1 for r in records if r.status is RowStatus.SKIPPED),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
    )
