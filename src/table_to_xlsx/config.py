"""Configuration management for table-to-xlsx.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
TTX_ prefix, or via a .env file in the project root.

Environment Variables:
    TTX_LARGE_TABLE_THRESHOLD: Row count above which the reduced-fidelity
        path is used (default: 10000)
    TTX_MAX_ROWS_WARNING: Row count above which a memory warning is logged
        (default: 100000)
    TTX_DEFAULT_CHUNK_SIZE: Rows per streaming progress callback (default: 1000)
    TTX_LARGE_TABLE_STYLED_ROWS: Rows styled on the large-table path (default: 10)
    TTX_LARGE_TABLE_MERGE_ROWS: Rows whose merges are kept on the large-table
        path (default: 100)
    TTX_WIDTH_SAMPLE_ROWS: Rows sampled for column widths (default: 1000)
    TTX_MIN_COLUMN_WIDTH: Lower clamp for sampled column widths (default: 10)
    TTX_MAX_COLUMN_WIDTH: Upper clamp for sampled column widths (default: 50)
    TTX_MIN_ROW_HEIGHT: Minimum row height in points (default: 15)
    TTX_CHARS_PER_LINE: Characters per wrapped line for height estimates
        (default: 30)
    TTX_DEFAULT_FONT_SIZE: Default cell font size in points (default: 11)
    TTX_STREAM_DEFAULT_FONT_SIZE: Default font size used for streaming row
        heights (default: 12)
    TTX_TITLE_FONT_SIZE: Font size of title rows (default: 14)
    TTX_SHEET_NAME: Worksheet title (default: Sheet1)
    TTX_SPAN_AWARE_WIDTH: Widen the grid to the span-expanded column count
        (default: false)
    TTX_POSITIONAL_HEADER_BANDING: Band header rows by position after the
        title rows instead of by <th> (default: false)
    TTX_TITLE_FILL_COLOR: Fill color of title rows (default: 4472C4)
    TTX_HEADER_FILL_COLOR: Fill color of banded header rows (default: D9D9D9)
    TTX_MAX_HTML_SIZE_MB: Maximum HTML body accepted by the API (default: 50)
    TTX_LOG_LEVEL: Logging level (default: INFO)
    TTX_DEBUG: Enable debug mode (default: false)
    TTX_SERVER_HOST: Server bind host (default: 0.0.0.0)
    TTX_SERVER_PORT: Server bind port (default: 8000)
"""

import logging
import re
from typing import Any

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_HEX_COLOR = re.compile(r"^[0-9A-Fa-f]{6}$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables prefixed with TTX_
    or via a .env file.

    Example .env file:
        TTX_LARGE_TABLE_THRESHOLD=20000
        TTX_LOG_LEVEL=DEBUG
        TTX_SPAN_AWARE_WIDTH=true
    """

    model_config = SettingsConfigDict(
        env_prefix="TTX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Large Table Settings
    # =========================================================================

    large_table_threshold: int = 10000
    """Tables with more rows than this use the reduced-fidelity path."""

    max_rows_warning: int = 100000
    """Tables with more rows than this log a memory warning."""

    large_table_styled_rows: int = 10
    """Number of leading rows that receive styling on the large-table path."""

    large_table_merge_rows: int = 100
    """Only spans starting in the first N rows are merged on the large-table path."""

    width_sample_rows: int = 1000
    """Rows sampled when estimating column widths on the sampled paths."""

    # =========================================================================
    # Streaming Settings
    # =========================================================================

    default_chunk_size: int = 1000
    """Accumulated rows between two streaming progress callbacks."""

    # =========================================================================
    # Layout Settings
    # =========================================================================

    min_column_width: int = 10
    """Lower clamp (characters) for sampled column widths."""

    max_column_width: int = 50
    """Upper clamp (characters) for sampled column widths."""

    min_row_height: float = 15.0
    """Minimum row height in points."""

    chars_per_line: int = 30
    """Characters assumed per wrapped line when estimating row heights."""

    default_font_size: int = 11
    """Font size (points) used when a cell does not set one."""

    stream_default_font_size: int = 12
    """Baseline font size for the simplified streaming row heights."""

    title_font_size: int = 14
    """Font size (points) of title rows."""

    sheet_name: str = "Sheet1"
    """Title of the single worksheet."""

    span_aware_width: bool = False
    """Use the span-expanded column count instead of the widest authored row."""

    positional_header_banding: bool = False
    """Band rows [titles, titles + 2) as headers instead of using <th> cells."""

    title_fill_color: str = "4472C4"
    """Fill color (hex, no #) of title rows."""

    header_fill_color: str = "D9D9D9"
    """Fill color (hex, no #) of banded header rows."""

    # =========================================================================
    # API Settings
    # =========================================================================

    max_html_size_mb: int = 50
    """Maximum HTML payload accepted by the HTTP API in megabytes."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional logging and error details."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    server_host: str = "0.0.0.0"
    """Host address for the server to bind to."""

    server_port: int = 8000
    """Port for the server to listen on."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator(
        "large_table_threshold",
        "max_rows_warning",
        "default_chunk_size",
        "width_sample_rows",
        "chars_per_line",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate counts that must be at least 1."""
        if v < 1:
            raise ValueError(f"Value must be at least 1, got {v}")
        return v

    @field_validator("large_table_styled_rows", "large_table_merge_rows")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Validate row limits are not negative."""
        if v < 0:
            raise ValueError(f"Row limit must not be negative, got {v}")
        return v

    @field_validator("default_font_size", "stream_default_font_size", "title_font_size")
    @classmethod
    def validate_font_size(cls, v: int) -> int:
        """Validate font sizes are in the range Excel accepts."""
        if not 1 <= v <= 409:
            raise ValueError(f"Font size must be between 1 and 409, got {v}")
        return v

    @field_validator("title_fill_color", "header_fill_color")
    @classmethod
    def validate_fill_color(cls, v: str) -> str:
        """Validate fill colors are 6-digit hex without a leading #."""
        stripped = v.strip().lstrip("#")
        if not _HEX_COLOR.match(stripped):
            raise ValueError(f"Fill color must be 6-digit hex, got {v}")
        return stripped.upper()

    @field_validator("sheet_name")
    @classmethod
    def validate_sheet_name(cls, v: str) -> str:
        """Validate the sheet title against Excel's naming rules."""
        if not v.strip():
            raise ValueError("sheet_name must be a non-empty string")
        if len(v) > 31:
            raise ValueError(f"sheet_name must be at most 31 characters, got {len(v)}")
        if any(ch in v for ch in "[]:*?/\\"):
            raise ValueError(f"sheet_name contains invalid characters: {v}")
        return v

    @field_validator("max_html_size_mb")
    @classmethod
    def validate_html_size(cls, v: int) -> int:
        """Validate the HTML payload limit is positive and reasonable."""
        if not 1 <= v <= 1024:
            raise ValueError(f"max_html_size_mb must be between 1 and 1024, got {v}")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    @model_validator(mode="after")
    def validate_column_widths(self) -> "Settings":
        """Validate the column width clamp is a proper range."""
        if self.min_column_width < 1:
            raise ValueError(
                f"min_column_width must be at least 1, got {self.min_column_width}"
            )
        if self.min_column_width > self.max_column_width:
            raise ValueError(
                f"min_column_width ({self.min_column_width}) must not exceed "
                f"max_column_width ({self.max_column_width})"
            )
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_html_size_bytes(self) -> int:
        """Get the maximum HTML payload size in bytes."""
        return self.max_html_size_mb * 1024 * 1024

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary suitable for logging.

        Returns:
            Dictionary representation of all settings.
        """
        return self.model_dump()


def validate_settings_on_startup(s: Settings) -> None:
    """Validate settings on application startup.

    Logs warnings for combinations that are legal but likely unintended.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if s.large_table_threshold > s.max_rows_warning:
        logger.warning(
            "large_table_threshold is above max_rows_warning; very large tables "
            "will be fully styled before the reduced-fidelity path applies."
        )

    if s.large_table_styled_rows > s.large_table_threshold:
        logger.warning(
            "large_table_styled_rows exceeds large_table_threshold; every row of "
            "a large table will be styled."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"large_table_threshold={s.large_table_threshold}, "
        f"span_aware_width={s.span_aware_width}"
    )


# Create the global settings instance
settings = Settings()
