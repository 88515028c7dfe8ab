"""Tests for column width and row height heuristics."""

import pytest

from table_to_xlsx.services.size_estimator import (
    estimate_column_widths,
    estimate_row_height,
    estimate_row_heights,
)
from table_to_xlsx.table_document import GridSlot, SlotKind, StyleRecord


def _slot(content: str, font_size: int | None = None) -> GridSlot:
    style = StyleRecord(font_size=font_size) if font_size else None
    return GridSlot(kind=SlotKind.AUTHORED, content=content, style=style)


class TestEstimateColumnWidths:
    """Tests for content-based column widths."""

    def test_longest_content_plus_padding(self) -> None:
        widths = estimate_column_widths([["Name", "Age"], ["Alexander", "7"]], 2)
        assert widths == [11, 5]

    def test_empty_values_are_skipped(self) -> None:
        assert estimate_column_widths([["", None]], 2) == [2, 2]

    def test_extra_values_beyond_count_are_ignored(self) -> None:
        assert estimate_column_widths([["a", "bbbbbb"]], 1) == [3]

    def test_sample_rows_limits_scan(self) -> None:
        values = [["ab"], ["a" * 40]]
        assert estimate_column_widths(values, 1, sample_rows=1) == [4]

    def test_clamp(self) -> None:
        values = [["x", "y" * 80]]
        assert estimate_column_widths(values, 2, clamp=(10, 50)) == [10, 50]

    def test_non_string_values_are_stringified(self) -> None:
        assert estimate_column_widths([[12345]], 1) == [7]


class TestEstimateRowHeight:
    """Tests for row height estimation."""

    def test_minimum_height(self) -> None:
        assert estimate_row_height([_slot("short")], 11) == pytest.approx(15.0)

    def test_wrapped_content_grows_height(self) -> None:
        # 65 characters at 30 per line needs 3 lines of 11 * 1.2
        height = estimate_row_height([_slot("x" * 65)], 11)
        assert height == pytest.approx(3 * 11 * 1.2)

    def test_largest_font_sets_line_height(self) -> None:
        height = estimate_row_height([_slot("a"), _slot("b", font_size=20)], 11)
        assert height == pytest.approx(24.0)

    def test_font_only_mode_counts_every_slot(self) -> None:
        row = [GridSlot(), _slot("x" * 200)]
        # Content length is ignored; 12pt default gives 14.4, below the minimum
        assert estimate_row_height(row, 12, chars_per_line=None) == pytest.approx(15.0)
        assert estimate_row_height(row, 20, chars_per_line=None) == pytest.approx(24.0)

    def test_empty_slots_do_not_raise_height(self) -> None:
        row = [GridSlot(style=StyleRecord(font_size=40))]
        assert estimate_row_height(row, 11) == pytest.approx(15.0)

    def test_estimate_row_heights(self) -> None:
        heights = estimate_row_heights([[_slot("a")], [_slot("b", font_size=30)]], 11)
        assert heights == [pytest.approx(15.0), pytest.approx(36.0)]
