from __future__ import annotations

import sys
from collections.abc import Callable
from typing import Any, Protocol

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.processing_result import ProgressEvent

"""Progress sinks.

The pipeline reports one ProgressEvent per data row to an injected sink and
never waits for it or lets its failures through. Two sinks are provided:

- ProgressTracker: tqdm bar on a TTY, silent otherwise (CI, pipes)
- CallbackProgressSink: forwards events to an arbitrary callable
"""

__all__ = [
    "ProgressSink",
    "ProgressTracker",
    "CallbackProgressSink",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and a progress bar should be drawn."""
    return sys.stdout.isatty()


class ProgressSink(Protocol):
    def emit(self, event: ProgressEvent) -> None:
        ...


class ProgressTracker:
    """Row progress bar using tqdm.

    The bar is created on the first event, once the total row count is known.
    In non-TTY environments no bar is drawn to avoid ANSI control sequence
    spam; events are still recorded in ``last_event``.
    """

    def __init__(self, *, description: str = "Processing rows") -> None:
        self.description = description
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = None
        self.last_event: ProgressEvent | None = None
        self.events_seen = 0

    def emit(self, event: ProgressEvent) -> None:
        self.last_event = event
        self.events_seen += 1
        if not self.enabled:
            return
        if self.pbar is None:
            self.pbar = tqdm(
                total=event.total_rows,
                desc=self.description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        # Event marks the start of a row: rows before it are done
        advance = event.current_row_index - self.pbar.n
        if advance > 0:
            self.pbar.update(advance)
        self.pbar.set_postfix_str(event.message[-40:], refresh=True)

    def finish(self) -> None:
        """Move the bar to 100% (run completed)."""
        if self.pbar is not None and self.pbar.total:
            remaining = self.pbar.total - self.pbar.n
            if remaining > 0:
                self.pbar.update(remaining)

    def close(self) -> None:
        """Close the progress bar."""
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class CallbackProgressSink:
    """Forward progress events to a callable (UI bridges, tests)."""

    def __init__(self, callback: Callable[[ProgressEvent], None]) -> None:
        self._callback = callback

    def emit(self, event: ProgressEvent) -> None:
        self._callback(event)
