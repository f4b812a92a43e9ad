# tests/unit/core/test_unit_json_extract.py — v1
"""Tests for core/json_extract.py — Parsed/Malformed boundary."""

from __future__ import annotations

from kbroute.core.json_extract import Malformed, Parsed, as_float, extract_json


class TestExtractJson:
    def test_plain_object(self):
        result = extract_json('{"categories": ["a"]}')
        assert isinstance(result, Parsed)
        assert result.get_list("categories") == ["a"]

    def test_wrapped_in_prose_and_fences(self):
        raw = 'Sure! ```json\n{"confidence": 0.9}\n``` hope this helps'
        result = extract_json(raw)
        assert isinstance(result, Parsed)
        assert result.data == {"confidence": 0.9}

    def test_no_object(self):
        result = extract_json("I cannot answer that")
        assert isinstance(result, Malformed)
        assert "no JSON" in result.reason

    def test_none_input(self):
        assert isinstance(extract_json(None), Malformed)

    def test_invalid_json(self):
        result = extract_json('{"categories": [1, 2,}')
        assert isinstance(result, Malformed)
        assert result.reason.startswith("invalid JSON")

    def test_first_brace_to_last_brace(self):
        # Two objects are not a single JSON value.
        assert isinstance(extract_json('{"a": 1} and {"b": 2}'), Malformed)

    def test_get_list_rejects_non_list(self):
        result = extract_json('{"categories": "ssm"}')
        assert isinstance(result, Parsed)
        assert result.get_list("categories") is None


class TestAsFloat:
    def test_numeric(self):
        assert as_float(0.85, 0.5) == 0.85
        assert as_float("0.3", 0.5) == 0.3

    def test_missing_or_invalid(self):
        assert as_float(None, 0.5) == 0.5
        assert as_float("high", 0.5) == 0.5
        assert as_float(float("nan"), 0.5) == 0.5

    def test_zero_falls_back(self):
        assert as_float(0, 0.7) == 0.7
