"""Layout-and-assembly pipeline shared by every conversion entry point."""

from __future__ import annotations

import time
from pathlib import Path

from table_to_xlsx.config import Settings, settings as default_settings
from table_to_xlsx.services.grid_layout import (
    effective_column_count,
    iter_grid_rows,
    layout_grid,
    prepend_title_rows,
)
from table_to_xlsx.services.sheet_assembler import (
    AssemblyMode,
    SheetAssembler,
    save_workbook,
)
from table_to_xlsx.table_document import TableData, TitleConfig
from table_to_xlsx.utils.logging import get_logger

logger = get_logger(__name__)


class ConversionPipeline:
    """Lays out a parsed table and renders it to an xlsx file or buffer.

    One instance serves one conversion; it holds no state between calls
    beyond its settings and the assembler's style cache.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings
        self._assembler = SheetAssembler(self._settings)

    def grid_width(self, table: TableData) -> int:
        """Width of the grid for ``table``.

        The widest authored row by default; the span-expanded width when
        ``span_aware_width`` is enabled.
        """
        if self._settings.span_aware_width:
            return max(table.max_cols, effective_column_count(table))
        return table.max_cols

    def is_large(self, table: TableData) -> bool:
        return table.row_count > self._settings.large_table_threshold

    def render(
        self,
        table: TableData,
        output_path: str | Path | None = None,
        title_config: TitleConfig | None = None,
        mode: AssemblyMode = AssemblyMode.FULL,
    ) -> Path | bytes:
        """Render ``table`` to a workbook.

        Tables above ``large_table_threshold`` rows always take the
        ``LARGE`` path, whatever ``mode`` asks for.

        Args:
            table: Parsed table.
            output_path: Target file; when None the xlsx bytes are returned.
            title_config: Optional title rows.
            mode: ``FULL`` or ``STREAM`` for tables below the threshold.

        Returns:
            The written path, or the workbook bytes.
        """
        started = time.perf_counter()
        if table.row_count > self._settings.max_rows_warning:
            logger.warning(
                "Large table detected; conversion may take a while and use "
                "significant memory",
                rows=table.row_count,
            )

        width = self.grid_width(table)
        if self.is_large(table):
            mode = AssemblyMode.LARGE
            logger.info(
                "Using reduced-fidelity path for large table",
                rows=table.row_count,
                threshold=self._settings.large_table_threshold,
            )
            rows = iter_grid_rows(
                table, width, merge_row_limit=self._settings.large_table_merge_rows
            )
            workbook = self._assembler.build_large(
                rows, width, table.row_count, title_config
            )
        else:
            grid = layout_grid(table, width)
            if title_config is not None:
                grid = prepend_title_rows(grid, title_config, self._assembler.title_style)
            workbook = self._assembler.build(grid, mode)

        result = save_workbook(workbook, output_path)
        ws = workbook.active
        logger.log_conversion_result(
            mode=mode.value,
            rows=ws.max_row,
            columns=width,
            merges=len(ws.merged_cells.ranges),
            duration_seconds=time.perf_counter() - started,
            output_path=str(result) if isinstance(result, Path) else None,
        )
        return result
