"""Services for HTML table to xlsx conversion."""

from table_to_xlsx.services.pipeline import ConversionPipeline
from table_to_xlsx.services.sheet_assembler import AssemblyMode, SheetAssembler
from table_to_xlsx.services.stream_processor import StreamProcessor

__all__ = ["AssemblyMode", "ConversionPipeline", "SheetAssembler", "StreamProcessor"]
