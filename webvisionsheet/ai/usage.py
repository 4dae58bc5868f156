from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

"""Usage metering for extraction calls.

Every successful extraction reports its token usage as a UsageRecord. The
UsageLedger appends them as JSON Lines so a run's model consumption can be
audited afterwards.
"""

__all__ = [
    "UsageRecord",
    "UsageLedger",
]


@dataclass(frozen=True)
class UsageRecord:
    timestamp: str  # ISO8601 UTC
    url: str
    model: str
    prompt_tokens: int
    completion_tokens: int

    @staticmethod
    def create(url: str, model: str, prompt_tokens: int, completion_tokens: int) -> UsageRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return UsageRecord(
            timestamp=ts,
            url=url,
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class UsageLedger:
    """Callable usage meter appending records to a JSON Lines file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def __call__(self, record: UsageRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(record), ensure_ascii=False) + "\n")
