"""Inline style and class-name interpretation for table cells.

Only a fixed allow-list of CSS properties and utility class names is
recognized; everything else is ignored. Nothing in this module raises.
"""

from __future__ import annotations

import re
from typing import Any

from table_to_xlsx.table_document import StyleRecord

DEFAULT_COLOR = "000000"

NAMED_COLORS: dict[str, str] = {
    "red": "FF0000",
    "green": "00FF00",
    "blue": "0000FF",
    "yellow": "FFFF00",
    "black": "000000",
    "white": "FFFFFF",
    "gray": "808080",
    "grey": "808080",
    "orange": "FFA500",
    "purple": "800080",
    "pink": "FFC0CB",
    "brown": "A52A2A",
    "cyan": "00FFFF",
    "magenta": "FF00FF",
}

TEXT_ALIGNMENTS = frozenset({"left", "center", "right"})
BORDER_STYLES = frozenset({"thin", "medium", "thick", "none"})
# CSS line styles carry no color and have no xlsx counterpart here.
CSS_LINE_STYLES = frozenset(
    {"solid", "dashed", "dotted", "double", "groove", "ridge", "inset", "outset", "hidden"}
)

_CLASS_DIRECTIVES: dict[str, tuple[str, str]] = {
    "text-left": ("text_align", "left"),
    "text-center": ("text_align", "center"),
    "text-right": ("text_align", "right"),
    "font-bold": ("font_weight", "bold"),
    "bold": ("font_weight", "bold"),
    "font-normal": ("font_weight", "normal"),
    "border-none": ("border_style", "none"),
}

_HEX_6_OR_8 = re.compile(r"^(?:[0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$")
_HEX_3 = re.compile(r"^[0-9A-Fa-f]{3}$")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_ALPHA = re.compile(r"^[A-Za-z]+$")
_RGB_FUNC = re.compile(r"^rgba?\((.*)\)$", re.IGNORECASE)


def parse_leading_int(value: str | None) -> int | None:
    """Parse the integer prefix of ``value`` (``"14px"`` -> 14), else None."""
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def normalize_color(value: str) -> str:
    """Normalize a CSS color to uppercase hex without ``#``.

    Handles ``#RRGGBB``, ``#RGB``, ``#RRGGBBAA``, ``rgb()``/``rgba()`` and a
    small table of named colors. Alpha is dropped, as openpyxl would read an
    8-digit value as ARGB. Anything unrecognized becomes black.
    """
    color = value.strip()
    if color.startswith("#"):
        digits = color[1:]
        if _HEX_6_OR_8.match(digits):
            return digits[:6].upper()
        if _HEX_3.match(digits):
            return "".join(ch * 2 for ch in digits).upper()
        return DEFAULT_COLOR

    rgb = _RGB_FUNC.match(color)
    if rgb:
        return _rgb_to_hex(rgb.group(1))

    return NAMED_COLORS.get(color.lower(), DEFAULT_COLOR)


def _rgb_to_hex(arguments: str) -> str:
    # Alpha, when present, is dropped: fills and fonts are written opaque.
    parts = [p for p in re.split(r"[\s,/]+", arguments.strip()) if p]
    if len(parts) < 3:
        return DEFAULT_COLOR
    channels = []
    for part in parts[:3]:
        try:
            if part.endswith("%"):
                channel = round(float(part[:-1]) * 255 / 100)
            else:
                channel = round(float(part))
        except ValueError:
            return DEFAULT_COLOR
        channels.append(min(max(channel, 0), 255))
    return "".join(f"{c:02X}" for c in channels)


def _pixel_border_style(pixels: int) -> str:
    if pixels <= 1:
        return "thin"
    if pixels <= 3:
        return "medium"
    return "thick"


def _apply_border_shorthand(value: str, fields: dict[str, Any]) -> None:
    if value == "none":
        fields["border_style"] = "none"
        return
    for part in value.split():
        if part in BORDER_STYLES:
            fields["border_style"] = part
        elif part.lower() in CSS_LINE_STYLES:
            continue
        elif part.startswith("#") or _ALPHA.match(part):
            fields["border_color"] = normalize_color(part)
        elif part.endswith("px"):
            pixels = parse_leading_int(part)
            if pixels is not None:
                fields["border_style"] = _pixel_border_style(pixels)


def _apply_declaration(prop: str, value: str, fields: dict[str, Any]) -> None:
    if prop == "background-color":
        fields["background_color"] = normalize_color(value)
    elif prop == "text-align":
        if value in TEXT_ALIGNMENTS:
            fields["text_align"] = value
    elif prop == "font-size":
        size = parse_leading_int(value)
        if size is not None:
            fields["font_size"] = size
    elif prop == "font-weight":
        if value in ("bold", "700"):
            fields["font_weight"] = "bold"
        elif value in ("normal", "400"):
            fields["font_weight"] = "normal"
    elif prop == "color":
        fields["color"] = normalize_color(value)
    elif prop == "border":
        _apply_border_shorthand(value, fields)
    elif prop == "border-color":
        fields["border_color"] = normalize_color(value)
    elif prop == "border-style":
        if value in BORDER_STYLES:
            fields["border_style"] = value


def parse_inline_style(style_attr: str | None, fields: dict[str, Any]) -> None:
    """Apply the recognized declarations of a ``style`` attribute to ``fields``."""
    if not style_attr:
        return
    for declaration in style_attr.split(";"):
        if not declaration.strip() or ":" not in declaration:
            continue
        prop, value = declaration.split(":", 1)
        _apply_declaration(prop.strip().lower(), value.strip(), fields)


def parse_class_names(class_attr: str | list[str] | None, fields: dict[str, Any]) -> None:
    """Apply recognized utility classes to ``fields``.

    BeautifulSoup hands ``class`` over as a list; plain strings are split on
    whitespace.
    """
    if not class_attr:
        return
    names = class_attr.split() if isinstance(class_attr, str) else class_attr
    for name in names:
        directive = _CLASS_DIRECTIVES.get(name.strip().lower())
        if directive:
            key, value = directive
            fields[key] = value


def parse_cell_style(
    style_attr: str | None,
    class_attr: str | list[str] | None = None,
) -> StyleRecord | None:
    """Build the style record of a cell from its ``style`` and ``class``.

    Classes are applied after inline styles and win on conflict.

    Args:
        style_attr: Raw ``style`` attribute value.
        class_attr: Raw ``class`` attribute value or class list.

    Returns:
        The style record, or None when nothing was recognized.
    """
    fields: dict[str, Any] = {}
    parse_inline_style(style_attr, fields)
    parse_class_names(class_attr, fields)
    return StyleRecord(**fields) if fields else None
