"""Utilities package for table-to-xlsx.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from table_to_xlsx.utils.exceptions import (
    ConversionError,
    ErrorCode,
    HeaderAlreadyProcessedError,
    HeaderNotProcessedError,
    InputError,
    InputTooLargeError,
    NoHeaderDataError,
    NoTableFoundError,
    StreamStateError,
    TTXError,
    ValidationError,
    WorkbookWriteError,
)
from table_to_xlsx.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Exceptions
    "ConversionError",
    "ErrorCode",
    "HeaderAlreadyProcessedError",
    "HeaderNotProcessedError",
    "InputError",
    "InputTooLargeError",
    "NoHeaderDataError",
    "NoTableFoundError",
    "StreamStateError",
    "TTXError",
    "ValidationError",
    "WorkbookWriteError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
