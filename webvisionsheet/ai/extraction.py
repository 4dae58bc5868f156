from __future__ import annotations

import base64
import json
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

import httpx
import jsonschema
from jsonschema.exceptions import ValidationError

from webvisionsheet.ai.usage import UsageRecord
from webvisionsheet.models.config_models import ExtractionConfig, FieldDefinition

"""Extraction provider: structured fields from a screenshot via a vision model.

Talks to an OpenAI-compatible ``/chat/completions`` endpoint (hosted or a
local server). One request per screenshot carries every field definition;
the model is asked for a single JSON object keyed by column name. The answer
is validated against a schema generated from the field list, so a reply that
misses a field is an ExtractionError rather than a partial result.
"""

__all__ = [
    "ExtractionError",
    "ExtractionProvider",
    "VisionExtractionClient",
    "build_messages",
    "response_schema",
    "parse_extraction_response",
]

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You extract structured information from screenshots of web pages. "
    "Answer with a single JSON object and nothing else."
)

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class ExtractionError(Exception):
    """The extraction call failed or its answer had an unexpected shape."""


class ExtractionProvider(Protocol):
    def extract(
        self,
        image_path: Path,
        context: Mapping[str, str],
        fields: Sequence[FieldDefinition],
    ) -> dict[str, str]:
        ...


def _field_names(fields: Sequence[FieldDefinition]) -> list[str]:
    # dict.fromkeys keeps first-seen order while dropping repeated names
    return list(dict.fromkeys(f.column_name for f in fields))


def build_messages(
    image_b64: str, url: str, fields: Sequence[FieldDefinition], media_type: str = "image/png"
) -> list[dict[str, Any]]:
    """Chat messages for one screenshot and all requested fields."""
    lines = [
        f"Website: {url}",
        "",
        "Extract the following fields from the screenshot of this website.",
        "Return a JSON object with exactly these keys, each mapped to a string value.",
        "Use an empty string when the information is not visible on the page.",
        "",
    ]
    for f in fields:
        lines.append(f"- {json.dumps(f.column_name, ensure_ascii=False)}: {f.instruction}")
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "\n".join(lines)},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{media_type};base64,{image_b64}"},
                },
            ],
        },
    ]


def response_schema(fields: Sequence[FieldDefinition]) -> dict[str, Any]:
    """JSON schema the model answer must satisfy."""
    names = _field_names(fields)
    scalar = {"type": ["string", "number", "boolean", "null"]}
    return {
        "type": "object",
        "properties": {name: scalar for name in names},
        "required": names,
    }


def _to_cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def parse_extraction_response(data: Any, fields: Sequence[FieldDefinition]) -> dict[str, str]:
    """Turn a chat-completions response body into column_name -> text.

    Raises:
        ExtractionError: no message content, content is not JSON, or the JSON
            does not provide every requested field as a scalar
    """
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ExtractionError(f"response has no message content: {e!r}") from e
    if not isinstance(content, str) or not content.strip():
        raise ExtractionError("response message content is empty")

    text = content.strip()
    fenced = _CODE_FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"model response is not valid JSON: {e}") from e

    try:
        jsonschema.validate(parsed, response_schema(fields))
    except ValidationError as e:
        raise ExtractionError(f"model response does not match requested fields: {e.message}") from e

    return {name: _to_cell_text(parsed[name]) for name in _field_names(fields)}


class VisionExtractionClient:
    """Sync HTTP client for an OpenAI-compatible vision endpoint."""

    def __init__(
        self,
        config: ExtractionConfig,
        usage_meter: Callable[[UsageRecord], None] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        self._usage_meter = usage_meter
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        self._client = httpx.Client(
            timeout=httpx.Timeout(config.timeout_seconds, connect=10.0),
            headers=headers,
            transport=transport,
        )
        if not config.api_url:
            logger.warning("extraction api_url not set; extraction calls will fail")
        elif not config.api_key:
            logger.debug("extraction api_key not set; sending unauthenticated requests")

    def extract(
        self,
        image_path: Path,
        context: Mapping[str, str],
        fields: Sequence[FieldDefinition],
    ) -> dict[str, str]:
        if not self.config.api_url:
            raise ExtractionError("extraction service not configured (api_url missing)")
        url = context.get("url", "")

        try:
            image_b64 = base64.b64encode(Path(image_path).read_bytes()).decode("ascii")
        except OSError as e:
            raise ExtractionError(f"cannot read screenshot {image_path}: {e}") from e

        payload = {
            "model": self.config.model,
            "messages": build_messages(image_b64, url, fields),
            "response_format": {"type": "json_object"},
            "max_tokens": self.config.max_tokens,
            "temperature": 0,
        }

        logger.debug("extraction request url=%s fields=%d model=%s", url, len(fields), self.config.model)
        try:
            response = self._client.post(self.config.api_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExtractionError(
                f"extraction request failed with status {e.response.status_code}: {e.response.text[:500]}"
            ) from e
        except httpx.RequestError as e:
            raise ExtractionError(f"extraction request error: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ExtractionError(f"extraction response is not JSON: {e}") from e

        values = parse_extraction_response(data, fields)
        self._meter(url, data)
        return values

    def _meter(self, url: str, data: Any) -> None:
        if self._usage_meter is None:
            return
        try:
            usage = data.get("usage") or {}
            record = UsageRecord.create(
                url=url,
                model=str(data.get("model") or self.config.model),
                prompt_tokens=int(usage.get("prompt_tokens", 0)),
                completion_tokens=int(usage.get("completion_tokens", 0)),
            )
            self._usage_meter(record)
        except Exception as e:
            # metering must never fail an extraction that already succeeded
            logger.warning("usage metering failed for %s: %s", url, e)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> VisionExtractionClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
