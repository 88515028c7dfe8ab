"""HTML table to xlsx conversion entry points.

``TableToXlsxConverter`` is the per-call object behind the module-level
functions; the functions build a fresh converter for every call, so no state
is shared between conversions.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import cast

from table_to_xlsx.config import Settings, settings as default_settings
from table_to_xlsx.services.pipeline import ConversionPipeline
from table_to_xlsx.services.sheet_assembler import AssemblyMode
from table_to_xlsx.services.stream_processor import StreamProcessor, resolve_chunk_size
from table_to_xlsx.services.table_parser import (
    find_table,
    parse_row,
    parse_table,
    split_header_rows,
)
from table_to_xlsx.table_document import StreamOptions, TableData, TableRow, TitleConfig
from table_to_xlsx.utils.exceptions import ConversionError, TTXError, ValidationError
from table_to_xlsx.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


def _new_conversion_id() -> str:
    return uuid.uuid4().hex[:12]


def _check_title_config(title_config: TitleConfig | None) -> None:
    if title_config is not None and title_config.num_of_rows < 0:
        raise ValidationError(
            f"num_of_rows must not be negative, got {title_config.num_of_rows}",
            field="title_config.num_of_rows",
        )


class TableToXlsxConverter:
    """Converts the first table of an HTML document into an xlsx workbook."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings

    def convert(
        self,
        html: str,
        title_config: TitleConfig | None = None,
        output_path: str | Path | None = None,
    ) -> Path | bytes:
        """Convert ``html`` in one pass.

        Args:
            html: HTML text containing a <table>.
            title_config: Optional title rows above the table.
            output_path: Target file; when None the xlsx bytes are returned.

        Returns:
            The written path, or the workbook bytes.

        Raises:
            NoTableFoundError: If the document contains no table.
            WorkbookWriteError: If the file cannot be written.
            ValidationError: If ``title_config`` is malformed.
            ConversionError: For any other failure.
        """
        _check_title_config(title_config)
        with LogContext(conversion_id=_new_conversion_id()):
            logger.info("Starting conversion", html_length=len(html))
            try:
                table = parse_table(html)
                return ConversionPipeline(self._settings).render(
                    table, output_path, title_config, AssemblyMode.FULL
                )
            except TTXError as e:
                logger.error("Conversion failed", error=str(e), error_code=e.error_code.value)
                raise
            except Exception as e:
                logger.error("Conversion failed unexpectedly", error=str(e), exc_info=True)
                raise ConversionError(
                    f"Failed to convert HTML to Excel: {e}", stage="convert"
                ) from e

    def convert_to_file(
        self,
        html: str,
        output_path: str | Path,
        title_config: TitleConfig | None = None,
    ) -> Path:
        return cast(Path, self.convert(html, title_config, output_path))

    def convert_to_buffer(self, html: str, title_config: TitleConfig | None = None) -> bytes:
        return cast(bytes, self.convert(html, title_config))

    def _parse_in_chunks(self, html: str, options: StreamOptions) -> TableData:
        """Parse the table body ``chunk_size`` rows at a time.

        Header rows are the <thead> rows, or the first row when there is no
        <thead>. ``on_chunk`` fires once per body chunk with the number of
        rows parsed so far, header rows included.
        """
        chunk_size = resolve_chunk_size(options, self._settings)
        table = find_table(html)
        header_tags, body_tags = split_header_rows(table)

        rows: list[TableRow] = [
            row for row in (parse_row(tr, is_header=True) for tr in header_tags) if row.cells
        ]
        chunk_number = 0
        for start in range(0, len(body_tags), chunk_size):
            for tr in body_tags[start : start + chunk_size]:
                row = parse_row(tr, is_header=False)
                if row.cells:
                    rows.append(row)
            chunk_number += 1
            logger.debug("Parsed stream chunk", chunk=chunk_number, rows=len(rows))
            if options.on_chunk is not None:
                options.on_chunk(chunk_number, len(rows))

        max_cols = max((len(row.cells) for row in rows), default=0)
        return TableData(rows=rows, max_cols=max_cols)

    def convert_stream(
        self,
        html: str,
        output_path: str | Path | None = None,
        options: StreamOptions | None = None,
    ) -> Path | bytes:
        """Convert ``html`` with chunked parsing and the streaming sheet profile.

        Failures are reported to ``on_error`` before being raised.

        Args:
            html: HTML text containing a <table>.
            output_path: Target file; when None the xlsx bytes are returned.
            options: Chunk size and progress callbacks.

        Returns:
            The written path, or the workbook bytes.
        """
        options = options or StreamOptions()
        with LogContext(conversion_id=_new_conversion_id(), mode="stream"):
            logger.info("Starting streaming conversion", html_length=len(html))
            try:
                table = self._parse_in_chunks(html, options)
                result = ConversionPipeline(self._settings).render(
                    table, output_path, mode=AssemblyMode.STREAM
                )
                if options.on_complete is not None:
                    options.on_complete(
                        table.row_count, str(result) if isinstance(result, Path) else None
                    )
                return result
            except Exception as e:
                logger.error("Streaming conversion failed", error=str(e))
                if options.on_error is not None:
                    options.on_error(e)
                if isinstance(e, TTXError):
                    raise
                raise ConversionError(
                    f"Failed to convert HTML to Excel with streaming: {e}",
                    stage="stream",
                ) from e

    def create_stream_processor(
        self,
        output_path: str | Path | None = None,
        options: StreamOptions | None = None,
    ) -> StreamProcessor:
        return StreamProcessor(output_path, options, self._settings)


def convert(
    html: str,
    title_config: TitleConfig | None = None,
    output_path: str | Path | None = None,
    settings: Settings | None = None,
) -> Path | bytes:
    """Convert the first table in ``html``; see ``TableToXlsxConverter.convert``."""
    return TableToXlsxConverter(settings).convert(html, title_config, output_path)


def convert_to_file(
    html: str,
    output_path: str | Path,
    title_config: TitleConfig | None = None,
    settings: Settings | None = None,
) -> Path:
    """Convert ``html`` and write the workbook to ``output_path``."""
    return TableToXlsxConverter(settings).convert_to_file(html, output_path, title_config)


def convert_to_buffer(
    html: str,
    title_config: TitleConfig | None = None,
    settings: Settings | None = None,
) -> bytes:
    """Convert ``html`` and return the xlsx bytes."""
    return TableToXlsxConverter(settings).convert_to_buffer(html, title_config)


def convert_stream(
    html: str,
    output_path: str | Path | None = None,
    options: StreamOptions | None = None,
    settings: Settings | None = None,
) -> Path | bytes:
    """Convert ``html`` with chunked parsing; see ``TableToXlsxConverter.convert_stream``."""
    return TableToXlsxConverter(settings).convert_stream(html, output_path, options)


def create_stream_processor(
    output_path: str | Path | None = None,
    options: StreamOptions | None = None,
    settings: Settings | None = None,
) -> StreamProcessor:
    """Create a processor for building a table from fragments."""
    return TableToXlsxConverter(settings).create_stream_processor(output_path, options)
