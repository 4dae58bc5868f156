from __future__ import annotations

from ..models.processing_result import RunResult

"""Summary line rendering.

Format:
SUMMARY rows={total} processed={ok} failed={failed} skipped={skipped}
elapsed_sec={elapsed} output={path}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.2f}".rstrip("0").rstrip(".")


def render_summary_line(result: RunResult) -> str:
    """Render the SUMMARY line for a completed run.

    Examples:
        >>> from pathlib import Path
        >>> result = RunResult(
        ...     output_path=Path("out.xlsx"), total_rows=5, processed_rows=4,
        ...     failed_rows=1, skipped_rows=0, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY rows=5 processed=4 failed=1 skipped=0 elapsed_sec=2 output=out.xlsx'
    """
    return (
        f"SUMMARY rows={result.total_rows} "
        f"processed={result.processed_rows} "
        f"failed={result.failed_rows} "
        f"skipped={result.skipped_rows} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"output={result.output_path}"
    )
