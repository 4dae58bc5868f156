from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

"""Config dataclasses for the website screenshot enrichment tool.

These are the typed forms of config/webvisionsheet.yml after it passed schema
validation in webvisionsheet.config.loader.
"""


@dataclass(frozen=True)
class FieldDefinition:
    """One named extraction instruction, producing one output column.

    Identity is ``column_name``. Uniqueness inside a run is not enforced.
    """
    column_name: str  # Header of the appended output column
    instruction: str  # Prompt text sent to the model for this field


@dataclass(frozen=True)
class BrowserConfig:
    """Playwright launch and navigation settings."""
    headless: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080
    navigation_timeout_ms: int = 60000  # page.goto upper bound
    network_idle_timeout_ms: int = 15000  # quiescence wait after load; timeout tolerated


@dataclass(frozen=True)
class ExtractionConfig:
    """Vision model endpoint settings.

    Environment variables (LLM_API_KEY / LLM_API_URL / LLM_MODEL) take
    precedence over these values; see the CLI.
    """
    api_url: str | None = None  # Full chat-completions URL
    api_key: str | None = None
    model: str = "gpt-4o-mini"
    timeout_seconds: float = 120.0
    max_tokens: int = 1000


@dataclass(frozen=True)
class RunConfig:
    """Root configuration for one enrichment run."""
    input_file: str  # Source workbook (.xlsx)
    workspace_path: str  # Output workbook, screenshots/ and logs/ live here
    website_column: str  # Header of the URL column (exact match)
    fields: tuple[FieldDefinition, ...]  # Ordered; one output column each
    output_file_name: str | None = None  # Default: enriched-<timestamp>-<input name>
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    browser: BrowserConfig = field(default_factory=BrowserConfig)

    @property
    def workspace(self) -> Path:
        return Path(self.workspace_path)

    @property
    def snapshot_dir(self) -> Path:
        return self.workspace / "screenshots"

    @property
    def logs_dir(self) -> Path:
        return self.workspace / "logs"
