"""Tests for rule text transforms."""

from __future__ import annotations

from codeseek.domain.entities import TextTransform
from codeseek.infrastructure.rules.transforms import apply_transforms


class TestApplyTransforms:
    def test_chain_runs_in_order(self) -> None:
        result = apply_transforms(
            "  watch  ssis-001  now ",
            [
                TextTransform.replace(r"\s+", " "),
                TextTransform.trim(),
                TextTransform.extract(r"([a-z]+-\d+)"),
                TextTransform.uppercase(),
            ],
        )
        assert result == "SSIS-001"

    def test_lowercase(self) -> None:
        assert apply_transforms("ABC", [TextTransform.lowercase()]) == "abc"

    def test_extract_without_match_keeps_text(self) -> None:
        assert apply_transforms("no digits", [TextTransform.extract(r"(\d+)")]) == "no digits"

    def test_extract_missing_group_keeps_text(self) -> None:
        assert apply_transforms("abc 12", [TextTransform.extract(r"(\d+)", group=3)]) == "abc 12"

    def test_extract_group(self) -> None:
        t = TextTransform.extract(r"(\d{4})-(\d{2})", group=2)
        assert apply_transforms("2023-04", [t]) == "04"

    def test_invalid_pattern_is_skipped(self) -> None:
        assert apply_transforms("a(b", [TextTransform.replace("(", "x")]) == "a(b"

    def test_no_transforms(self) -> None:
        assert apply_transforms(" raw ", ()) == " raw "
