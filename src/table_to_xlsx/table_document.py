"""Dataclasses representing a parsed HTML table and its spreadsheet grid."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from openpyxl.utils import get_column_letter

TextAlign = Literal["left", "center", "right"]
FontWeight = Literal["normal", "bold"]
BorderStyle = Literal["thin", "medium", "thick", "none"]


@dataclass(frozen=True)
class StyleRecord:
    """Normalized per-cell style. Unset fields fall back to sheet defaults."""

    background_color: str | None = None
    text_align: TextAlign | None = None
    font_size: int | None = None
    font_weight: FontWeight | None = None
    color: str | None = None
    border_color: str | None = None
    border_style: BorderStyle | None = None

    @property
    def is_bold(self) -> bool:
        return self.font_weight == "bold"

    @property
    def has_border(self) -> bool:
        return self.border_style != "none"


@dataclass(frozen=True)
class TableCell:
    """An authored <th>/<td> cell, transcribed 1:1 from the markup."""

    content: str
    colspan: int = 1
    rowspan: int = 1
    is_header: bool = False
    style: StyleRecord | None = None

    @property
    def is_spanning(self) -> bool:
        return self.colspan > 1 or self.rowspan > 1


@dataclass
class TableRow:
    """Authored cells of one <tr>, in source order."""

    cells: list[TableCell] = field(default_factory=list)


@dataclass
class TableData:
    """A parsed table.

    ``max_cols`` is the largest authored-cell count of any row, not the
    span-expanded width.
    """

    rows: list[TableRow]
    max_cols: int

    @property
    def row_count(self) -> int:
        return len(self.rows)


class SlotKind(str, Enum):
    """State of one grid position."""

    EMPTY = "empty"
    PLACEHOLDER = "placeholder"
    AUTHORED = "authored"


@dataclass(frozen=True)
class GridSlot:
    """One position of the dense grid."""

    kind: SlotKind = SlotKind.EMPTY
    content: str = ""
    style: StyleRecord | None = None
    is_header: bool = False

    @property
    def occupied(self) -> bool:
        return self.kind is not SlotKind.EMPTY


EMPTY_SLOT = GridSlot()


@dataclass(frozen=True)
class MergeRegion:
    """Inclusive, 0-based rectangle of cells merged into one."""

    start_row: int
    start_col: int
    end_row: int
    end_col: int

    def shifted(self, rows: int) -> MergeRegion:
        """Return the region moved down by ``rows``."""
        return MergeRegion(
            self.start_row + rows, self.start_col, self.end_row + rows, self.end_col
        )

    def to_range(self) -> str:
        """Return the region as an A1-style range string, e.g. ``A1:C2``."""
        start = f"{get_column_letter(self.start_col + 1)}{self.start_row + 1}"
        end = f"{get_column_letter(self.end_col + 1)}{self.end_row + 1}"
        return f"{start}:{end}"


@dataclass
class Grid:
    """A table laid out on spreadsheet coordinates."""

    rows: list[list[GridSlot]]
    width: int
    merges: list[MergeRegion] = field(default_factory=list)
    title_rows: int = 0

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def values(self) -> list[list[str]]:
        """Plain content matrix, placeholders and empty slots as ``""``."""
        return [[slot.content for slot in row] for row in self.rows]


@dataclass(frozen=True)
class TitleConfig:
    """Title rows prepended above the table, each merged across the sheet."""

    num_of_rows: int
    titles: tuple[str, ...] | list[str] = ()

    def title_at(self, index: int) -> str:
        return self.titles[index] if index < len(self.titles) else ""


@dataclass
class StreamOptions:
    """Callbacks and chunking for the streaming conversion paths.

    ``chunk_size`` defaults to the configured ``default_chunk_size`` when None.
    """

    chunk_size: int | None = None
    on_chunk: Callable[[int, int], None] | None = None
    on_complete: Callable[[int, str | None], None] | None = None
    on_error: Callable[[Exception], None] | None = None
