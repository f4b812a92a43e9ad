# src/core/json_extract.py — v1
"""Best-effort JSON object extraction from raw completion text.

Completions often wrap the JSON object in prose or markdown fences. The
object is taken from the first '{' to the last '}' and parsed. Callers get
either Parsed or Malformed and must handle both.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Parsed:
    """Successfully extracted JSON object."""

    data: dict[str, Any]

    def get_list(self, key: str) -> list[Any] | None:
        """Return data[key] if it is a list, else None."""
        value = self.data.get(key)
        return value if isinstance(value, list) else None


@dataclass(frozen=True)
class Malformed:
    """Completion text that did not contain a usable JSON object."""

    raw: str
    reason: str = field(default="")


ExtractionResult = Union[Parsed, Malformed]


def extract_json(raw: str | None) -> ExtractionResult:
    """Extract the outermost JSON object from ``raw``.

    Args:
        raw: Raw completion text (may be None or empty).

    Returns:
        Parsed with the decoded object, or Malformed with the failure reason.
    """
    text = raw or ""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end < start:
        return Malformed(raw=text, reason="no JSON object found")

    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        return Malformed(raw=text, reason=f"invalid JSON: {e.msg}")

    if not isinstance(data, dict):
        return Malformed(raw=text, reason="top-level JSON value is not an object")
    return Parsed(data=data)


def as_float(value: Any, default: float) -> float:
    """Coerce a loosely typed numeric field, falling back to ``default``.

    Zero and missing values fall back as well, matching how completion
    output omits or zeroes confidence when unsure.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or not number:
        return default
    return number
