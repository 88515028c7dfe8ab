"""Incremental table building: header first, then rows, then finalize."""

from __future__ import annotations

from pathlib import Path

from table_to_xlsx.config import Settings, settings as default_settings
from table_to_xlsx.services.pipeline import ConversionPipeline
from table_to_xlsx.services.sheet_assembler import AssemblyMode
from table_to_xlsx.services.table_parser import parse_row_fragments
from table_to_xlsx.table_document import StreamOptions, TableData, TableRow
from table_to_xlsx.utils.exceptions import (
    ConversionError,
    HeaderAlreadyProcessedError,
    HeaderNotProcessedError,
    NoHeaderDataError,
    StreamStateError,
    TTXError,
    ValidationError,
)
from table_to_xlsx.utils.logging import get_logger

logger = get_logger(__name__)


def resolve_chunk_size(options: StreamOptions, settings: Settings) -> int:
    """Chunk size from ``options``, falling back to the configured default.

    Raises:
        ValidationError: If the requested chunk size is below 1.
    """
    if options.chunk_size is None:
        return settings.default_chunk_size
    if options.chunk_size < 1:
        raise ValidationError(
            f"chunk_size must be at least 1, got {options.chunk_size}", field="chunk_size"
        )
    return options.chunk_size


class StreamProcessor:
    """Accumulates a table from markup fragments and renders it on finalize.

    The processor is a single-writer state machine: ``write_header`` exactly
    once, any number of ``write_row``/``write_chunk`` calls, then one
    ``finalize``. It is not thread-safe.

    Attributes:
        header_processed: Whether ``write_header`` has run.
        row_count: Number of data rows accumulated so far.
        rows: Header rows followed by data rows.
        max_cols: Widest row seen, in authored cells.
        chunk_number: Number of ``on_chunk`` notifications fired.
        finalized: Whether ``finalize`` has completed.
    """

    def __init__(
        self,
        output_path: str | Path | None = None,
        options: StreamOptions | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or default_settings
        self.output_path = output_path
        self.options = options or StreamOptions()
        self.chunk_size = resolve_chunk_size(self.options, self._settings)

        self.header_processed = False
        self.row_count = 0
        self.rows: list[TableRow] = []
        self.max_cols = 0
        self.chunk_number = 0
        self.finalized = False

    def _ensure_open(self) -> None:
        if self.finalized:
            raise StreamStateError(
                "Stream already finalized", processed_rows=self.row_count
            )

    def _add_row(self, row: TableRow) -> None:
        self.rows.append(row)
        self.max_cols = max(self.max_cols, len(row.cells))

    def _add_data_rows(self, rows: list[TableRow]) -> None:
        for row in rows:
            self._add_row(row)
            self.row_count += 1
            if self.row_count % self.chunk_size == 0:
                self.chunk_number += 1
                logger.debug(
                    "Stream chunk accumulated",
                    chunk=self.chunk_number,
                    rows=self.row_count,
                )
                if self.options.on_chunk is not None:
                    self.options.on_chunk(self.chunk_number, self.row_count)

    def write_header(self, html: str) -> None:
        """Record the header rows; every cell becomes a header cell.

        Raises:
            HeaderAlreadyProcessedError: If a header was already written.
        """
        self._ensure_open()
        if self.header_processed:
            raise HeaderAlreadyProcessedError()

        for row in parse_row_fragments(html, is_header=True):
            self._add_row(row)
        self.header_processed = True
        logger.debug("Stream header processed", header_rows=len(self.rows))

    def write_row(self, html: str) -> None:
        """Append the data row(s) in ``html``.

        Raises:
            HeaderNotProcessedError: If no header has been written yet.
        """
        self._ensure_open()
        if not self.header_processed:
            raise HeaderNotProcessedError()
        self._add_data_rows(parse_row_fragments(html, is_header=False))

    def write_chunk(self, html: str) -> None:
        """Append every data row in a markup chunk.

        Raises:
            HeaderNotProcessedError: If no header has been written yet.
        """
        self._ensure_open()
        if not self.header_processed:
            raise HeaderNotProcessedError()
        rows = parse_row_fragments(html, is_header=False)
        self._add_data_rows(rows)
        logger.debug("Stream chunk written", rows_in_chunk=len(rows), total=self.row_count)

    def get_processed_rows(self) -> int:
        return self.row_count

    def finalize(self) -> Path | bytes:
        """Render the accumulated table.

        Failures are reported to ``on_error`` before being raised. Unexpected
        failures are raised as ``ConversionError``.

        Returns:
            The written path, or the workbook bytes.

        Raises:
            NoHeaderDataError: If no header was written.
            StreamStateError: If the stream was already finalized.
        """
        try:
            self._ensure_open()
            if not self.header_processed:
                raise NoHeaderDataError()

            table = TableData(rows=self.rows, max_cols=self.max_cols)
            result = ConversionPipeline(self._settings).render(
                table, self.output_path, mode=AssemblyMode.STREAM
            )
            self.finalized = True
            if self.options.on_complete is not None:
                self.options.on_complete(
                    len(self.rows), str(result) if isinstance(result, Path) else None
                )
            return result
        except Exception as e:
            logger.error(
                "Stream finalize failed",
                error=str(e),
                processed_rows=self.row_count,
            )
            if self.options.on_error is not None:
                self.options.on_error(e)
            if isinstance(e, TTXError):
                raise
            raise ConversionError(
                f"Failed to convert HTML to Excel with streaming: {e}",
                stage="finalize",
            ) from e
