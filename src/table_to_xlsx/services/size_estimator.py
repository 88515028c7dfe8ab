"""Column width and row height heuristics.

Widths are measured in characters (openpyxl ``column_dimensions[...].width``),
heights in points (``row_dimensions[...].height``).
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from table_to_xlsx.table_document import GridSlot

LINE_HEIGHT_FACTOR = 1.2
WIDTH_PADDING = 2


def estimate_column_widths(
    values: Iterable[Sequence[object]],
    column_count: int,
    sample_rows: int | None = None,
    clamp: tuple[int, int] | None = None,
) -> list[int]:
    """Estimate a width for each column from its longest content.

    Args:
        values: Row-major cell values.
        column_count: Number of columns to size.
        sample_rows: Only look at the first N rows when set.
        clamp: Optional ``(min, max)`` bounds applied to every width.

    Returns:
        One width per column: longest stringified value + 2.
    """
    longest = [0] * column_count
    for row_index, row in enumerate(values):
        if sample_rows is not None and row_index >= sample_rows:
            break
        for col, value in enumerate(row[:column_count]):
            if value is None or value == "":
                continue
            longest[col] = max(longest[col], len(str(value)))

    widths = [length + WIDTH_PADDING for length in longest]
    if clamp is not None:
        low, high = clamp
        widths = [min(max(width, low), high) for width in widths]
    return widths


def estimate_row_height(
    row: Sequence[GridSlot],
    default_font_size: int,
    min_height: float = 15.0,
    chars_per_line: int | None = 30,
) -> float:
    """Estimate the height of one row.

    The largest font in the row sets the line height (font size x 1.2).
    With ``chars_per_line`` set, each non-empty cell also needs one line per
    ``chars_per_line`` characters of content; without it only the font size
    is considered and every slot counts, including placeholders.
    """
    height = min_height
    for slot in row:
        font_size = (
            slot.style.font_size
            if slot.style is not None and slot.style.font_size
            else default_font_size
        )
        line_height = font_size * LINE_HEIGHT_FACTOR
        if chars_per_line is None:
            height = max(height, line_height)
            continue
        if not slot.content:
            continue
        lines = math.ceil(len(slot.content) / chars_per_line)
        height = max(height, line_height, lines * line_height)
    return max(height, min_height)


def estimate_row_heights(
    rows: Iterable[Sequence[GridSlot]],
    default_font_size: int,
    min_height: float = 15.0,
    chars_per_line: int | None = 30,
) -> list[float]:
    """Estimate every row's height; see ``estimate_row_height``."""
    return [
        estimate_row_height(row, default_font_size, min_height, chars_per_line)
        for row in rows
    ]
