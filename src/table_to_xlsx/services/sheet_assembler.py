"""Spreadsheet assembly with openpyxl.

Turns a laid-out grid into a single-sheet workbook: values, merges, per-cell
styles, column widths and row heights. Three fidelity modes exist:

- ``FULL``: every row styled, every merge, unclamped widths, content-aware
  row heights.
- ``STREAM``: every row styled, every merge, sampled and clamped widths,
  font-size-only row heights.
- ``LARGE``: rows are appended as they are laid out, only the first few rows
  are styled, merges come only from the leading rows, sampled widths and no
  row heights.
"""

from __future__ import annotations

import io
from collections.abc import Iterable, Sequence
from enum import Enum
from pathlib import Path
from typing import NamedTuple

from openpyxl import Workbook
from openpyxl.cell.cell import TYPE_STRING, Cell
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from table_to_xlsx.config import Settings, settings as default_settings
from table_to_xlsx.services.grid_layout import LaidOutRow, build_title_rows
from table_to_xlsx.services.size_estimator import (
    estimate_column_widths,
    estimate_row_heights,
)
from table_to_xlsx.table_document import (
    Grid,
    GridSlot,
    MergeRegion,
    SlotKind,
    StyleRecord,
    TitleConfig,
)
from table_to_xlsx.utils.exceptions import WorkbookWriteError
from table_to_xlsx.utils.logging import ProgressTracker, get_logger, timed_operation

logger = get_logger(__name__)

DEFAULT_FILL = "FFFFFF"
HEADER_BAND_ROWS = 2
PROGRESS_LOG_INTERVAL = 10000


class AssemblyMode(str, Enum):
    """Fidelity mode of sheet assembly."""

    FULL = "full"
    STREAM = "stream"
    LARGE = "large"


class CellFormat(NamedTuple):
    """openpyxl style objects applied to one cell."""

    font: Font
    alignment: Alignment
    fill: PatternFill
    border: Border | None


def slot_value(slot: GridSlot) -> str | None:
    """Worksheet value of a slot; placeholders and empty text are left blank."""
    if slot.kind is SlotKind.AUTHORED and slot.content:
        return slot.content
    return None


def text_cell(ws: Worksheet, value: str | None) -> Cell | None:
    """A detached string cell for ``ws.append``; text starting with ``=`` stays text."""
    if value is None:
        return None
    cell = Cell(ws, value=value)
    cell.data_type = TYPE_STRING
    return cell


class SheetAssembler:
    """Builds openpyxl workbooks from laid-out grids."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings
        self._format_cache: dict[tuple[StyleRecord | None, bool], CellFormat] = {}

    # ------------------------------------------------------------------ #
    # Styling
    # ------------------------------------------------------------------ #

    @property
    def title_style(self) -> StyleRecord:
        """Style of title rows: accent fill, white bold text, larger font."""
        return StyleRecord(
            background_color=self._settings.title_fill_color,
            color="FFFFFF",
            font_weight="bold",
            font_size=self._settings.title_font_size,
        )

    def cell_format(self, style: StyleRecord | None, header_band: bool = False) -> CellFormat:
        """Resolve a style record to openpyxl style objects.

        Defaults: centered, wrapped text, white fill, thin borders. A
        ``border_style`` of ``none`` produces no border at all. Header-band
        cells get the header fill and bold text unless the style sets them.
        """
        key = (style, header_band)
        cached = self._format_cache.get(key)
        if cached is not None:
            return cached

        s = style or StyleRecord()
        bold = s.is_bold
        fill_color = s.background_color
        if header_band:
            if s.font_weight is None:
                bold = True
            if fill_color is None:
                fill_color = self._settings.header_fill_color

        font = Font(
            bold=bold,
            size=s.font_size or self._settings.default_font_size,
            color=s.color,
        )
        alignment = Alignment(
            horizontal=s.text_align or "center",
            vertical="center",
            wrap_text=True,
        )
        fill = PatternFill(fill_type="solid", fgColor=fill_color or DEFAULT_FILL)
        border = None
        if s.has_border:
            side = Side(style=s.border_style or "thin", color=s.border_color)
            border = Border(left=side, right=side, top=side, bottom=side)

        resolved = CellFormat(font=font, alignment=alignment, fill=fill, border=border)
        self._format_cache[key] = resolved
        return resolved

    def is_header_band(self, row_index: int, slot: GridSlot, title_rows: int) -> bool:
        """Whether a cell is banded as a header row.

        Banding only applies below title rows. By default it follows the
        cell's own header flag; ``positional_header_banding`` marks the two
        rows after the titles instead.
        """
        if title_rows <= 0 or row_index < title_rows:
            return False
        if self._settings.positional_header_banding:
            return row_index < title_rows + HEADER_BAND_ROWS
        return slot.is_header

    def _style_rows(
        self,
        ws: Worksheet,
        rows: Sequence[Sequence[GridSlot]],
        title_rows: int,
        width: int,
    ) -> int:
        if not rows or width <= 0:
            return 0
        styled = 0
        sheet_rows = ws.iter_rows(min_row=1, max_row=len(rows), max_col=width)
        for row_index, (slots, cells) in enumerate(zip(rows, sheet_rows, strict=True)):
            for slot, cell in zip(slots, cells, strict=True):
                fmt = self.cell_format(
                    slot.style, self.is_header_band(row_index, slot, title_rows)
                )
                cell.font = fmt.font
                cell.alignment = fmt.alignment
                cell.fill = fmt.fill
                if fmt.border is not None:
                    cell.border = fmt.border
                styled += 1
        return styled

    # ------------------------------------------------------------------ #
    # Sheet parts
    # ------------------------------------------------------------------ #

    def _new_sheet(self) -> tuple[Workbook, Worksheet]:
        workbook = Workbook()
        ws = workbook.active
        ws.title = self._settings.sheet_name
        return workbook, ws

    @staticmethod
    def _apply_merges(ws: Worksheet, merges: Iterable[MergeRegion]) -> int:
        applied = 0
        for region in merges:
            ws.merge_cells(
                start_row=region.start_row + 1,
                start_column=region.start_col + 1,
                end_row=region.end_row + 1,
                end_column=region.end_col + 1,
            )
            applied += 1
        return applied

    @staticmethod
    def _apply_column_widths(ws: Worksheet, widths: Sequence[int]) -> None:
        for col, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(col)].width = width

    @staticmethod
    def _apply_row_heights(ws: Worksheet, heights: Sequence[float]) -> None:
        for row, height in enumerate(heights, start=1):
            ws.row_dimensions[row].height = height

    def _column_widths(self, values: list[list[str]], width: int, sampled: bool) -> list[int]:
        if not sampled:
            return estimate_column_widths(values, width)
        return estimate_column_widths(
            values,
            width,
            sample_rows=self._settings.width_sample_rows,
            clamp=(self._settings.min_column_width, self._settings.max_column_width),
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def build(self, grid: Grid, mode: AssemblyMode = AssemblyMode.FULL) -> Workbook:
        """Build a fully materialized grid into a workbook.

        Args:
            grid: Laid-out grid, title rows included.
            mode: ``FULL`` or ``STREAM``; use ``build_large`` for ``LARGE``.

        Returns:
            The workbook, not yet serialized.
        """
        if mode is AssemblyMode.LARGE:
            raise ValueError("Use build_large() for the large-table mode")

        workbook, ws = self._new_sheet()
        with timed_operation(logger, f"sheet_assembly_{mode.value}") as metrics:
            for row_index, row in enumerate(grid.rows, start=1):
                for col_index, slot in enumerate(row, start=1):
                    value = slot_value(slot)
                    if value is not None:
                        cell = ws.cell(row=row_index, column=col_index, value=value)
                        cell.data_type = TYPE_STRING

            metrics.merges_applied = self._apply_merges(ws, grid.merges)
            metrics.cells_written = self._style_rows(
                ws, grid.rows, grid.title_rows, grid.width
            )
            metrics.rows_processed = grid.row_count

            values = grid.values()
            self._apply_column_widths(
                ws,
                self._column_widths(values, grid.width, sampled=mode is AssemblyMode.STREAM),
            )
            if mode is AssemblyMode.FULL:
                heights = estimate_row_heights(
                    grid.rows,
                    self._settings.default_font_size,
                    self._settings.min_row_height,
                    self._settings.chars_per_line,
                )
            else:
                heights = estimate_row_heights(
                    grid.rows,
                    self._settings.stream_default_font_size,
                    self._settings.min_row_height,
                    chars_per_line=None,
                )
            self._apply_row_heights(ws, heights)

        return workbook

    def build_large(
        self,
        rows: Iterable[LaidOutRow],
        width: int,
        total_rows: int,
        title_config: TitleConfig | None = None,
    ) -> Workbook:
        """Build a workbook from rows laid out on the fly.

        Only the first ``large_table_styled_rows`` sheet rows are styled and
        only the leading rows' slots and a width sample are retained. Merge
        limiting is the caller's choice of ``merge_row_limit`` when laying
        out ``rows``. Row heights are left at the sheet default.

        Args:
            rows: Laid-out table rows, in order.
            width: Grid width.
            total_rows: Number of table rows, for progress logging.
            title_config: Optional title rows placed above the table.

        Returns:
            The workbook, not yet serialized.
        """
        workbook, ws = self._new_sheet()
        styled_limit = self._settings.large_table_styled_rows
        sample_limit = self._settings.width_sample_rows

        title_slots: list[list[GridSlot]] = []
        merges: list[MergeRegion] = []
        if title_config is not None:
            width = max(width, 1)
            title_slots, merges = build_title_rows(title_config, width, self.title_style)
        title_count = len(title_slots)

        styled_slots: list[list[GridSlot]] = []
        sample: list[list[str]] = []

        def keep(slots: list[GridSlot]) -> None:
            if len(styled_slots) < styled_limit:
                styled_slots.append(slots)
            if len(sample) < sample_limit:
                sample.append([slot.content for slot in slots])

        with timed_operation(logger, "sheet_assembly_large") as metrics:
            for slots in title_slots:
                ws.append([text_cell(ws, slot_value(slot)) for slot in slots])
                keep(slots)

            tracker = ProgressTracker(
                logger, "Writing large table", total_rows, PROGRESS_LOG_INTERVAL
            )
            for laid_out in rows:
                slots = laid_out.slots
                if len(slots) < width:
                    slots = slots + [GridSlot()] * (width - len(slots))
                ws.append([text_cell(ws, slot_value(slot)) for slot in slots])
                keep(slots)
                merges.extend(region.shifted(title_count) for region in laid_out.merges)
                tracker.update()
            if tracker.current:
                tracker.complete()

            metrics.rows_processed = tracker.current
            metrics.merges_applied = self._apply_merges(ws, merges)
            metrics.cells_written = self._style_rows(ws, styled_slots, title_count, width)
            self._apply_column_widths(ws, self._column_widths(sample, width, sampled=True))

        logger.info("Skipped row height estimation for large table", rows=total_rows)
        return workbook


def save_workbook(workbook: Workbook, output_path: str | Path | None = None) -> Path | bytes:
    """Serialize ``workbook`` to ``output_path`` or to bytes.

    Args:
        workbook: Workbook to serialize.
        output_path: Target file; when None the xlsx bytes are returned.

    Returns:
        The written path, or the workbook bytes.

    Raises:
        WorkbookWriteError: If the file cannot be written.
    """
    if output_path is None:
        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    path = Path(output_path)
    try:
        workbook.save(path)
    except OSError as e:
        raise WorkbookWriteError(
            f"Could not write workbook: {e}", output_path=str(path)
        ) from e
    logger.info("Workbook written", output_path=str(path))
    return path
