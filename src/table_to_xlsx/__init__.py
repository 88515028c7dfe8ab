"""Table to XLSX - HTML table to Excel workbook conversion.

The HTTP service lives in ``table_to_xlsx.api``; importing the package itself
does not touch logging configuration.
"""

from table_to_xlsx.converter import (
    TableToXlsxConverter,
    convert,
    convert_stream,
    convert_to_buffer,
    convert_to_file,
    create_stream_processor,
)
from table_to_xlsx.services.stream_processor import StreamProcessor
from table_to_xlsx.table_document import StreamOptions, TitleConfig

__all__ = [
    "StreamOptions",
    "StreamProcessor",
    "TableToXlsxConverter",
    "TitleConfig",
    "convert",
    "convert_stream",
    "convert_to_buffer",
    "convert_to_file",
    "create_stream_processor",
]
__version__ = "0.1.0"


def main() -> None:
    """Run the FastAPI server using uvicorn."""
    import uvicorn

    from table_to_xlsx.config import settings

    uvicorn.run(
        "table_to_xlsx.api:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
