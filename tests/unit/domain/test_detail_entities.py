"""Tests for detail record entities and the error taxonomy."""

from __future__ import annotations

import json

import pytest

from codeseek.domain.entities import (
    BatchStats,
    DetailRecord,
    ExtractionError,
    ExtractionNetworkError,
    ExtractionParseError,
    ExtractionTimeoutError,
    ExtractionValidationError,
    SearchResultStub,
    SourceStats,
)
from codeseek.domain.entities.errors import classify, suggestions_for


class TestDetailRecordSerialization:
    def test_to_dict_uses_camel_case_keys(self, detail_record: DetailRecord) -> None:
        data = detail_record.to_dict()
        assert data["coverImage"] == detail_record.cover_image
        assert data["releaseDate"] == "2023-01-15"
        assert data["sourceType"] == "javbus"
        assert "cover_image" not in data

    def test_to_dict_omits_none(self) -> None:
        data = DetailRecord(title="x").to_dict()
        assert "rating" not in data
        assert "extractionError" not in data

    def test_nested_items_are_camel_cased(self, detail_record: DetailRecord) -> None:
        data = detail_record.to_dict()
        assert data["actresses"][0] == {
            "name": "Actress One",
            "profileUrl": "https://www.javbus.com/star/abc",
        }
        assert data["magnetLinks"][0]["seeders"] == 5

    def test_json_roundtrip_restores_equal_record(self, detail_record: DetailRecord) -> None:
        payload = json.dumps(detail_record.to_dict())
        assert DetailRecord.from_dict(json.loads(payload)) == detail_record

    def test_from_dict_ignores_unknown_keys(self) -> None:
        record = DetailRecord.from_dict({"title": "t", "fromCache": True, "bogus": 1})
        assert record.title == "t"

    def test_is_error(self) -> None:
        assert DetailRecord(extraction_status="error").is_error
        assert not DetailRecord(extraction_status="partial").is_error


class TestSearchResultStub:
    def test_from_dict_fills_blanks(self) -> None:
        stub = SearchResultStub.from_dict({"url": "https://a.com/x", "keyword": ""})
        assert stub.id == ""
        assert stub.title == ""
        assert stub.keyword is None


class TestBatchStats:
    def test_to_dict_shape(self) -> None:
        stats = BatchStats(
            total=2,
            successful=1,
            failed=1,
            items_per_second=1.5,
            by_source={"javbus": SourceStats(total=2, successful=1, failed=1)},
        )
        data = stats.to_dict()
        assert data["bySource"]["javbus"] == {"total": 2, "successful": 1, "failed": 1}
        assert data["performance"] == {"itemsPerSecond": 1.5}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrorTaxonomy:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (ExtractionValidationError("bad"), ("ValidationError", "validation", False)),
            (ExtractionTimeoutError("slow"), ("TimeoutError", "timeout", True)),
            (ExtractionNetworkError("down"), ("NetworkError", "network", True)),
            (ExtractionParseError("odd"), ("ParseError", "parsing", False)),
            (RuntimeError("boom"), ("InternalError", "internal", False)),
        ],
    )
    def test_classify(self, exc: Exception, expected: tuple[str, str, bool]) -> None:
        assert classify(exc) == expected

    def test_status_codes(self) -> None:
        assert ExtractionValidationError.status_code == 400
        assert ExtractionTimeoutError.status_code == 408
        assert ExtractionError.status_code == 500

    def test_suggestions_for_known_type(self) -> None:
        assert "Increase the extraction timeout" in suggestions_for("TimeoutError")

    def test_suggestions_for_unknown_type_use_defaults(self) -> None:
        assert suggestions_for("Whatever") == [
            "Retry later",
            "Contact support if the problem persists",
        ]

    def test_instance_suggestions(self) -> None:
        assert ExtractionParseError("x").suggestions() == suggestions_for("ParseError")
