"""Grid layout: place authored cells on a dense row/column grid.

Cells are placed left to right with a cursor that skips slots already
occupied by spans from earlier rows. Spanning cells emit a merge region, clipped to
the grid, and fill the rest of their rectangle with placeholder slots.

Layout is row-sequential and only carries forward the placeholders that
rowspans push into later rows, so ``iter_grid_rows`` can lay out arbitrarily
tall tables without materializing the whole grid.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from table_to_xlsx.table_document import (
    EMPTY_SLOT,
    Grid,
    GridSlot,
    MergeRegion,
    SlotKind,
    StyleRecord,
    TableCell,
    TableData,
    TitleConfig,
)
from table_to_xlsx.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class LaidOutRow:
    """One grid row plus the merges anchored in it."""

    index: int
    slots: list[GridSlot]
    merges: list[MergeRegion] = field(default_factory=list)
    dropped_cells: int = 0

    def values(self) -> list[str]:
        return [slot.content for slot in self.slots]


def _placeholder(cell: TableCell) -> GridSlot:
    return GridSlot(
        kind=SlotKind.PLACEHOLDER,
        content="",
        style=cell.style,
        is_header=cell.is_header,
    )


def iter_grid_rows(
    table: TableData,
    width: int | None = None,
    merge_row_limit: int | None = None,
) -> Iterator[LaidOutRow]:
    """Lay out ``table`` one row at a time.

    Args:
        table: Parsed table.
        width: Grid width; defaults to ``table.max_cols``. Never widened.
        merge_row_limit: When set, only spans anchored in rows below this
            index produce merge regions. Placeholders are still written.

    Yields:
        Laid-out rows in order.
    """
    width = table.max_cols if width is None else width
    row_count = table.row_count
    # row index -> {column -> placeholder} pushed down by earlier rowspans
    carried: dict[int, dict[int, GridSlot]] = {}

    for row_index, row in enumerate(table.rows):
        slots = [EMPTY_SLOT] * width
        for col, slot in carried.pop(row_index, {}).items():
            slots[col] = slot

        laid_out = LaidOutRow(index=row_index, slots=slots)
        cursor = 0
        for cell in row.cells:
            while cursor < width and slots[cursor].occupied:
                cursor += 1
            if cursor >= width:
                laid_out.dropped_cells += 1
                continue

            slots[cursor] = GridSlot(
                kind=SlotKind.AUTHORED,
                content=cell.content,
                style=cell.style,
                is_header=cell.is_header,
            )

            if cell.is_spanning:
                # Clipped to the grid; a span left with one slot is not merged
                last_col = min(cursor + cell.colspan, width)
                last_row = min(row_index + cell.rowspan, row_count)
                region = MergeRegion(
                    start_row=row_index,
                    start_col=cursor,
                    end_row=last_row - 1,
                    end_col=last_col - 1,
                )
                if (merge_row_limit is None or row_index < merge_row_limit) and (
                    region.end_row > region.start_row or region.end_col > region.start_col
                ):
                    laid_out.merges.append(region)
                placeholder = _placeholder(cell)
                for col in range(cursor + 1, last_col):
                    slots[col] = placeholder
                for target_row in range(row_index + 1, last_row):
                    pending = carried.setdefault(target_row, {})
                    for col in range(cursor, last_col):
                        pending[col] = placeholder

            cursor += cell.colspan

        if laid_out.dropped_cells:
            logger.debug(
                "Dropped cells beyond grid width",
                row=row_index,
                dropped=laid_out.dropped_cells,
                width=width,
            )
        yield laid_out


def layout_grid(
    table: TableData,
    width: int | None = None,
    merge_row_limit: int | None = None,
) -> Grid:
    """Lay out the whole table into a dense grid.

    Args:
        table: Parsed table.
        width: Grid width; defaults to ``table.max_cols``.
        merge_row_limit: See ``iter_grid_rows``.

    Returns:
        The grid and its merge regions, in row-major anchor order.
    """
    width = table.max_cols if width is None else width
    rows: list[list[GridSlot]] = []
    merges: list[MergeRegion] = []
    for laid_out in iter_grid_rows(table, width, merge_row_limit):
        rows.append(laid_out.slots)
        merges.extend(laid_out.merges)
    return Grid(rows=rows, width=width, merges=merges)


def build_title_rows(
    title_config: TitleConfig,
    width: int,
    style: StyleRecord,
) -> tuple[list[list[GridSlot]], list[MergeRegion]]:
    """Build the title rows placed above a table.

    Each title occupies the first column and the rest of its row is covered
    by placeholders; rows wider than one column are merged end to end.

    Returns:
        The title rows and their merge regions.
    """
    rows: list[list[GridSlot]] = []
    merges: list[MergeRegion] = []
    for index in range(max(title_config.num_of_rows, 0)):
        title = GridSlot(
            kind=SlotKind.AUTHORED,
            content=ILLEGAL_CHARACTERS_RE.sub("", title_config.title_at(index)),
            style=style,
        )
        filler = GridSlot(kind=SlotKind.PLACEHOLDER, style=style)
        rows.append([title] + [filler] * (width - 1))
        if width > 1:
            merges.append(MergeRegion(index, 0, index, width - 1))
    return rows, merges


def prepend_title_rows(grid: Grid, title_config: TitleConfig, style: StyleRecord) -> Grid:
    """Return ``grid`` with title rows above it and its merges shifted down."""
    width = max(grid.width, 1)
    title_rows, title_merges = build_title_rows(title_config, width, style)
    count = len(title_rows)
    body = [row + [EMPTY_SLOT] * (width - len(row)) for row in grid.rows]
    return Grid(
        rows=title_rows + body,
        width=width,
        merges=title_merges + [region.shifted(count) for region in grid.merges],
        title_rows=count,
    )


def effective_column_count(table: TableData) -> int:
    """Return the span-expanded column count of ``table``.

    Unlike ``max_cols``, this accounts for colspans and for cells pushed right
    by rowspans from earlier rows.
    """
    occupied: dict[int, set[int]] = {}
    width = 0
    for row_index, row in enumerate(table.rows):
        taken = occupied.pop(row_index, set())
        cursor = 0
        for cell in row.cells:
            while cursor in taken:
                cursor += 1
            for dr in range(cell.rowspan):
                target = taken if dr == 0 else occupied.setdefault(row_index + dr, set())
                target.update(range(cursor, cursor + cell.colspan))
            cursor += cell.colspan
            width = max(width, cursor)
    return width
