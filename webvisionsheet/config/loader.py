from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from webvisionsheet.models.config_models import (
    BrowserConfig,
    ExtractionConfig,
    FieldDefinition,
    RunConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (default config/webvisionsheet.yml)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults for the optional extraction / browser sections
- Build the typed RunConfig
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/webvisionsheet.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the config
            data fails validation (missing keys, wrong types, extra keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_extraction(raw: dict[str, Any] | None) -> ExtractionConfig:
    raw = raw or {}
    defaults = ExtractionConfig()
    return ExtractionConfig(
        api_url=raw.get("api_url"),
        api_key=raw.get("api_key"),
        model=raw.get("model", defaults.model),
        timeout_seconds=float(raw.get("timeout_seconds", defaults.timeout_seconds)),
        max_tokens=raw.get("max_tokens", defaults.max_tokens),
    )


def _build_browser(raw: dict[str, Any] | None) -> BrowserConfig:
    raw = raw or {}
    defaults = BrowserConfig()
    return BrowserConfig(
        headless=raw.get("headless", defaults.headless),
        viewport_width=raw.get("viewport_width", defaults.viewport_width),
        viewport_height=raw.get("viewport_height", defaults.viewport_height),
        navigation_timeout_ms=raw.get("navigation_timeout_ms", defaults.navigation_timeout_ms),
        network_idle_timeout_ms=raw.get("network_idle_timeout_ms", defaults.network_idle_timeout_ms),
    )


def load_config(path: Path) -> RunConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    fields = tuple(
        FieldDefinition(column_name=f["column_name"], instruction=f["instruction"])
        for f in data["fields"]
    )
    return RunConfig(
        input_file=data["input_file"],
        workspace_path=data["workspace_path"],
        website_column=data["website_column"],
        fields=fields,
        output_file_name=data.get("output_file_name"),
        extraction=_build_extraction(data.get("extraction")),
        browser=_build_browser(data.get("browser")),
    )
