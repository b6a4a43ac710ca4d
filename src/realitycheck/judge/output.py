"""Unwrapping of the judge CLI output envelopes."""

from __future__ import annotations

import json
import re

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)


class JudgeOutputError(ValueError):
    """Raised when judge stdout cannot be decoded into a JSON payload."""


def extract_verdict_payload(stdout_text: str) -> object:
    """Return the verdict candidate from raw judge stdout.

    Accepted envelopes, checked in order:

    - `{"structured_output": {...}}` from schema-constrained print mode,
    - `{"result": ...}` where the result is an object or JSON text,
    - `{"content": [{"type": "text", "text": "..."}]}`; the first text block
      is re-parsed as JSON,
    - a bare verdict object.
    """

    text = stdout_text.strip()
    if not text:
        raise JudgeOutputError("Judge produced no output")
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as error:
        raise JudgeOutputError(f"Failed to parse judge response as JSON: {error}") from error

    if not isinstance(parsed, dict):
        return parsed

    structured = parsed.get("structured_output")
    if isinstance(structured, dict):
        return structured

    if "result" in parsed:
        result = parsed["result"]
        if isinstance(result, str):
            return _decode_embedded(result)
        return result

    content = parsed.get("content")
    if isinstance(content, list):
        for block in content:
            if (
                isinstance(block, dict)
                and block.get("type") == "text"
                and isinstance(block.get("text"), str)
            ):
                return _decode_embedded(block["text"])
        return parsed

    return parsed


def _decode_embedded(text: str) -> object:
    """Decode JSON carried inside a text field; fall back to the raw text."""

    stripped = text.strip()
    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        pass

    fenced = _FENCED_JSON.search(stripped)
    if fenced is not None:
        try:
            return json.loads(fenced.group(1))
        except json.JSONDecodeError:
            pass

    start = stripped.find("{")
    end = stripped.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(stripped[start : end + 1])
        except json.JSONDecodeError:
            pass
    return text
