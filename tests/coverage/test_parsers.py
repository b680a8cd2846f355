"""Tests for coverage/parsers - Istanbul document loading."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from covmerge.core.errors import CoverageError, ErrorCode
from covmerge.coverage.parsers import IstanbulParser, load_document


class TestLoadDocument:
    """Tests for load_document."""

    def test_loads_records_in_document_order(
        self, write_coverage: Callable[..., Path], make_record: Callable[..., dict[str, Any]]
    ) -> None:
        path = write_coverage("coverage-final.json", make_record("b.js", {1: 1}), make_record("a.js", {2: 0}))
        records = load_document(path)
        assert list(records) == ["b.js", "a.js"]
        assert records["a.js"].s == {"0": 0}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CoverageError) as exc_info:
            load_document(tmp_path / "missing.json")
        assert exc_info.value.code == ErrorCode.COVERAGE_LOAD_ERROR
        assert "missing.json" in exc_info.value.message

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(CoverageError) as exc_info:
            load_document(path)
        assert exc_info.value.code == ErrorCode.COVERAGE_INVALID_JSON

    def test_top_level_must_be_object(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[]")
        with pytest.raises(CoverageError) as exc_info:
            load_document(path)
        assert exc_info.value.code == ErrorCode.COVERAGE_LOAD_ERROR

    def test_invalid_record_names_key(self, tmp_path: Path) -> None:
        path = tmp_path / "rec.json"
        path.write_text(json.dumps({"src/x.js": {"path": "src/x.js"}}))
        with pytest.raises(CoverageError) as exc_info:
            load_document(path)
        assert "src/x.js" in exc_info.value.message
        assert str(path) in exc_info.value.message


class TestIstanbulParser:
    """Tests for IstanbulParser.parse_data."""

    def test_parse_data_empty_document(self) -> None:
        assert IstanbulParser().parse_data({}) == {}

    def test_parse_data_uses_source_in_errors(self) -> None:
        with pytest.raises(CoverageError) as exc_info:
            IstanbulParser().parse_data("nope", source="inline")
        assert "inline" in exc_info.value.message
