"""Tests for inline style and class-name interpretation."""

from typing import Any

import pytest

from table_to_xlsx.services.style_interpreter import (
    normalize_color,
    parse_cell_style,
    parse_class_names,
    parse_inline_style,
    parse_leading_int,
)
from table_to_xlsx.table_document import StyleRecord


class TestNormalizeColor:
    """Tests for CSS color normalization."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("#ff0000", "FF0000"),
            ("#F0F", "FF00FF"),
            ("#ff000080", "FF0000"),
            ("red", "FF0000"),
            ("Grey", "808080"),
            ("  blue ", "0000FF"),
        ],
    )
    def test_recognized_forms(self, value: str, expected: str) -> None:
        assert normalize_color(value) == expected

    @pytest.mark.parametrize("value", ["#12", "#ggg", "chartreuse", "", "transparent"])
    def test_unrecognized_becomes_black(self, value: str) -> None:
        assert normalize_color(value) == "000000"

    def test_rgb_function(self) -> None:
        assert normalize_color("rgb(255, 128, 0)") == "FF8000"

    def test_rgba_drops_alpha(self) -> None:
        assert normalize_color("rgba(0, 0, 255, 0.5)") == "0000FF"

    def test_rgb_percentages_and_clamping(self) -> None:
        assert normalize_color("rgb(100%, 0%, 300)") == "FF00FF"

    def test_rgb_space_separated(self) -> None:
        assert normalize_color("rgb(16 32 48)") == "102030"

    def test_rgb_malformed(self) -> None:
        assert normalize_color("rgb(1, 2)") == "000000"
        assert normalize_color("rgb(a, b, c)") == "000000"


class TestParseLeadingInt:
    """Tests for integer prefix parsing."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("14px", 14), ("2", 2), (" 3em", 3), ("abc", None), (None, None), ("-1", -1)],
    )
    def test_values(self, value: str | None, expected: int | None) -> None:
        assert parse_leading_int(value) == expected


class TestParseInlineStyle:
    """Tests for inline style declarations."""

    def _parse(self, style: str) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        parse_inline_style(style, fields)
        return fields

    def test_all_recognized_properties(self) -> None:
        fields = self._parse(
            "background-color: #eee; text-align: right; font-size: 14px; "
            "font-weight: bold; color: blue; border-color: red; border-style: medium"
        )
        assert fields == {
            "background_color": "EEEEEE",
            "text_align": "right",
            "font_size": 14,
            "font_weight": "bold",
            "color": "0000FF",
            "border_color": "FF0000",
            "border_style": "medium",
        }

    def test_property_names_are_case_insensitive(self) -> None:
        assert self._parse("Font-Weight: bold") == {"font_weight": "bold"}

    def test_numeric_font_weights(self) -> None:
        assert self._parse("font-weight: 700") == {"font_weight": "bold"}
        assert self._parse("font-weight: 400") == {"font_weight": "normal"}

    def test_unknown_values_are_ignored(self) -> None:
        assert self._parse("text-align: justify; font-weight: 900") == {}

    def test_unknown_properties_and_malformed_declarations(self) -> None:
        assert self._parse("padding: 4px; nonsense; ;margin:0") == {}

    def test_border_none(self) -> None:
        assert self._parse("border: none") == {"border_style": "none"}

    def test_border_shorthand_pixels_and_color(self) -> None:
        fields = self._parse("border: 2px solid red")
        assert fields == {"border_style": "medium", "border_color": "FF0000"}

    @pytest.mark.parametrize(
        ("width", "style"), [("1px", "thin"), ("3px", "medium"), ("5px", "thick")]
    )
    def test_border_pixel_widths(self, width: str, style: str) -> None:
        assert self._parse(f"border: {width}")["border_style"] == style

    def test_border_line_style_does_not_set_color(self) -> None:
        assert self._parse("border: 1px solid") == {"border_style": "thin"}

    def test_border_shorthand_hex_color(self) -> None:
        assert self._parse("border: thick #00ff00")["border_color"] == "00FF00"


class TestParseClassNames:
    """Tests for utility class names."""

    def test_list_of_classes(self) -> None:
        fields: dict[str, Any] = {}
        parse_class_names(["text-right", "bold"], fields)
        assert fields == {"text_align": "right", "font_weight": "bold"}

    def test_string_of_classes(self) -> None:
        fields: dict[str, Any] = {}
        parse_class_names("border-none  font-normal", fields)
        assert fields == {"border_style": "none", "font_weight": "normal"}

    def test_unknown_class_has_no_effect(self) -> None:
        fields: dict[str, Any] = {}
        parse_class_names(["highlight", "col-3"], fields)
        assert fields == {}


class TestParseCellStyle:
    """Tests for building a cell's style record."""

    def test_no_attributes_gives_none(self) -> None:
        assert parse_cell_style(None, None) is None

    def test_only_unknown_input_gives_none(self) -> None:
        assert parse_cell_style("padding: 2px", ["zebra"]) is None

    def test_classes_override_inline_styles(self) -> None:
        style = parse_cell_style("text-align: left", ["text-center"])
        assert style == StyleRecord(text_align="center")

    def test_border_none_disables_border(self) -> None:
        style = parse_cell_style("border: none")
        assert style is not None
        assert not style.has_border
