"""HTML table parsing.

Transcribes the authored markup of an HTML table into ``TableData`` using
BeautifulSoup. No span resolution happens here; see ``grid_layout``.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from table_to_xlsx.services.style_interpreter import (
    parse_cell_style,
    parse_leading_int,
)
from table_to_xlsx.table_document import TableCell, TableData, TableRow
from table_to_xlsx.utils.exceptions import NoTableFoundError
from table_to_xlsx.utils.logging import get_logger

logger = get_logger(__name__)

HTML_PARSER = "html.parser"
CELL_TAGS = ["th", "td"]


def clean_text(text: str) -> str:
    """Trim ``text`` and drop control characters that worksheets cannot hold."""
    return ILLEGAL_CHARACTERS_RE.sub("", text).strip()


def parse_span(value: str | list[str] | None) -> int:
    """Parse a colspan/rowspan attribute; absent, non-numeric or < 1 gives 1."""
    if isinstance(value, list):
        value = value[0] if value else None
    span = parse_leading_int(value)
    if span is None or span < 1:
        return 1
    return span


def parse_cell(tag: Tag, is_header: bool | None = None) -> TableCell:
    """Transcribe one <th>/<td> element.

    Args:
        tag: The cell element.
        is_header: Force the header flag; by default it follows the tag name.
    """
    if is_header is None:
        is_header = tag.name == "th"
    return TableCell(
        content=clean_text(tag.get_text()),
        colspan=parse_span(tag.get("colspan")),
        rowspan=parse_span(tag.get("rowspan")),
        is_header=is_header,
        style=parse_cell_style(tag.get("style"), tag.get("class")),
    )


def parse_row(tr: Tag, is_header: bool | None = None) -> TableRow:
    """Transcribe the direct cell children of a <tr>."""
    cells = [parse_cell(cell, is_header) for cell in tr.find_all(CELL_TAGS, recursive=False)]
    return TableRow(cells=cells)


def table_rows(table: Tag) -> list[Tag]:
    """Return the <tr> elements owned by ``table``, excluding nested tables' rows."""
    return [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]


def split_header_rows(table: Tag) -> tuple[list[Tag], list[Tag]]:
    """Split a table's rows into header rows and body rows.

    Header rows are the rows inside <thead> when present, otherwise the
    first row.
    """
    rows = table_rows(table)
    thead_rows = [tr for tr in rows if tr.find_parent("thead") is not None]
    if thead_rows:
        header_ids = {id(tr) for tr in thead_rows}
        return thead_rows, [tr for tr in rows if id(tr) not in header_ids]
    return rows[:1], rows[1:]


def find_table(html: str) -> Tag:
    """Return the first <table> of ``html``.

    Raises:
        NoTableFoundError: If the document contains no table.
    """
    soup = BeautifulSoup(html, HTML_PARSER)
    table = soup.find("table")
    if not isinstance(table, Tag):
        raise NoTableFoundError(html_length=len(html))
    return table


def parse_table(html: str) -> TableData:
    """Parse the first table of an HTML document.

    Every <tr> of the table becomes one row, including rows without cells.

    Args:
        html: HTML text containing at least one <table>.

    Returns:
        The transcribed table.

    Raises:
        NoTableFoundError: If the document contains no table.
    """
    table = find_table(html)
    rows = [parse_row(tr) for tr in table_rows(table)]
    max_cols = max((len(row.cells) for row in rows), default=0)
    logger.debug("Parsed table", rows=len(rows), max_cols=max_cols)
    return TableData(rows=rows, max_cols=max_cols)


def parse_row_fragments(html: str, is_header: bool | None = None) -> list[TableRow]:
    """Parse a markup fragment holding one or more <tr> elements.

    The fragment may or may not be wrapped in <table>/<thead>/<tbody>.
    Rows without cells are skipped.

    Args:
        html: Markup fragment.
        is_header: Force the header flag of every cell.
    """
    soup = BeautifulSoup(html, HTML_PARSER)
    rows = [parse_row(tr, is_header) for tr in soup.find_all("tr")]
    return [row for row in rows if row.cells]
