"""Exceptions raised by table-to-xlsx.

Every error carries an ``ErrorCode`` and the HTTP status the API answers
with, plus a ``details`` dict that ends up in logs and error responses.

    TTXError
    ├── InputError
    │   ├── NoTableFoundError
    │   ├── InputTooLargeError
    │   └── ValidationError
    ├── StreamStateError
    │   ├── HeaderNotProcessedError
    │   ├── HeaderAlreadyProcessedError
    │   └── NoHeaderDataError
    ├── WorkbookWriteError
    └── ConversionError
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes.

    E1xxx input shape, E2xxx stream processor state, E3xxx workbook output,
    E9xxx internal.
    """

    NO_TABLE_FOUND = "E1001"
    INPUT_TOO_LARGE = "E1002"
    INVALID_INPUT = "E1003"

    STREAM_STATE_ERROR = "E2001"
    HEADER_NOT_PROCESSED = "E2002"
    HEADER_ALREADY_PROCESSED = "E2003"
    NO_HEADER_DATA = "E2004"

    WORKBOOK_WRITE_FAILED = "E3001"

    INTERNAL_ERROR = "E9001"
    CONVERSION_FAILED = "E9002"


def _details(details: dict[str, Any] | None, **fields: Any) -> dict[str, Any]:
    """Copy ``details`` and add every field that is not None."""
    merged = dict(details or {})
    merged.update({key: value for key, value in fields.items() if value is not None})
    return merged


class TTXError(Exception):
    """Base class for all table-to-xlsx errors.

    Attributes:
        message: Human-readable description.
        error_code: Code from ``ErrorCode``.
        details: Structured context for logs and API responses.
        http_status: Status code the API answers with.
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def get_http_status(self) -> int:
        return self.http_status

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"


class InputError(TTXError):
    """The caller's HTML or options cannot be converted."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_INPUT,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)


class NoTableFoundError(InputError):
    """The HTML contains no <table> element."""

    http_status: int = 422

    def __init__(
        self,
        message: str = "No table found in HTML",
        html_length: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message, ErrorCode.NO_TABLE_FOUND, _details(details, html_length=html_length)
        )


class InputTooLargeError(InputError):
    """The HTML payload is larger than ``max_html_size_mb``."""

    http_status: int = 413

    def __init__(
        self,
        size: int,
        max_size: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"HTML size ({size} bytes) exceeds maximum allowed size ({max_size} bytes)",
            ErrorCode.INPUT_TOO_LARGE,
            _details(details, size_bytes=size, max_size_bytes=max_size),
        )
        self.size = size
        self.max_size = max_size


class ValidationError(InputError):
    """An option such as ``chunk_size`` or ``title_config`` is out of range."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.INVALID_INPUT, _details(details, field=field))
        self.field = field


class StreamStateError(TTXError):
    """A stream processor call arrived in the wrong order.

    Subclasses fix the message and code; ``processed_rows`` records how many
    data rows had been accumulated when the call was rejected.
    """

    http_status: int = 409
    default_message: str = "Invalid stream processor state"
    default_code: ErrorCode = ErrorCode.STREAM_STATE_ERROR

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        processed_rows: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message or self.default_message,
            error_code or self.default_code,
            _details(details, processed_rows=processed_rows),
        )
        self.processed_rows = processed_rows


class HeaderNotProcessedError(StreamStateError):
    default_message = "Header must be processed before writing rows"
    default_code = ErrorCode.HEADER_NOT_PROCESSED


class HeaderAlreadyProcessedError(StreamStateError):
    default_message = "Header already processed"
    default_code = ErrorCode.HEADER_ALREADY_PROCESSED


class NoHeaderDataError(StreamStateError):
    default_message = "No header data processed"
    default_code = ErrorCode.NO_HEADER_DATA


class WorkbookWriteError(TTXError):
    """The workbook could not be serialized or written to disk."""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        output_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.WORKBOOK_WRITE_FAILED,
            _details(details, output_path=output_path),
        )
        self.output_path = output_path


class ConversionError(TTXError):
    """Wraps an unexpected failure from a collaborator during conversion.

    Raised with ``from`` so the original exception stays on ``__cause__``.
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONVERSION_FAILED, _details(details, stage=stage))
        self.stage = stage
