from __future__ import annotations

import json

import jsonschema
import pytest

from webvisionsheet.config.loader import SCHEMA_PATH

"""Config JSON schema contract test."""


def _schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def _valid() -> dict:
    return {
        "input_file": "data/companies.xlsx",
        "workspace_path": "workspace",
        "website_column": "Website",
        "fields": [{"column_name": "Summary", "instruction": "Describe the company"}],
        "extraction": {"api_url": "http://llm.local/v1/chat/completions", "model": "m", "max_tokens": 10},
        "browser": {"headless": False, "viewport_width": 800},
    }


def test_schema_is_valid_draft():
    schema = _schema()
    jsonschema.Draft202012Validator.check_schema(schema)


def test_schema_accepts_valid_config():
    jsonschema.validate(_valid(), _schema())


@pytest.mark.parametrize(
    "mutate",
    [
        lambda c: c.pop("website_column"),
        lambda c: c.update(fields=[]),
        lambda c: c["fields"][0].pop("instruction"),
        lambda c: c["fields"][0].update(extra="x"),
        lambda c: c["browser"].update(viewport_width=0),
        lambda c: c["extraction"].update(unknown=True),
        lambda c: c.update(sheet_name="Companies"),
    ],
)
def test_schema_rejects_invalid_config(mutate):
    cfg = _valid()
    mutate(cfg)
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(cfg, _schema())
