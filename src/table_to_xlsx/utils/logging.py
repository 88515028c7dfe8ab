"""Structured logging for table-to-xlsx.

Records are written as ``message | key=value, ...`` and prefixed with the
active request and conversion IDs, so every line of one conversion can be
correlated across the parser, layout and assembly stages.

    logger = get_logger(__name__)

    with LogContext(conversion_id="a1b2c3", mode="stream"):
        logger.info("Parsed table", rows=1200, max_cols=6)
"""

import logging
import time
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
_conversion_id_var: ContextVar[str | None] = ContextVar("conversion_id", default=None)
_extra_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "extra_context", default=None
)


def get_request_id() -> str | None:
    return _request_id_var.get()


def set_request_id(request_id: str | None) -> None:
    _request_id_var.set(request_id)


def get_conversion_id() -> str | None:
    return _conversion_id_var.get()


def set_conversion_id(conversion_id: str | None) -> None:
    _conversion_id_var.set(conversion_id)


def get_extra_context() -> dict[str, Any]:
    """Key/value pairs added by the enclosing ``LogContext`` blocks."""
    return _extra_context_var.get() or {}


def set_extra_context(context: dict[str, Any]) -> None:
    _extra_context_var.set(context)


def clear_context() -> None:
    """Reset request ID, conversion ID and extra context."""
    for var in (_request_id_var, _conversion_id_var, _extra_context_var):
        var.set(None)


def _context_prefix() -> str:
    pairs: list[tuple[str, Any]] = [
        ("request_id", get_request_id()),
        ("conversion_id", get_conversion_id()),
    ]
    pairs.extend(get_extra_context().items())
    rendered = " ".join(f"{key}={value}" for key, value in pairs if value is not None)
    return f"[{rendered}] " if rendered else ""


@dataclass
class PerformanceMetrics:
    """Timing and counters for one conversion stage.

    Attributes:
        operation: Stage name, e.g. ``sheet_assembly_full``.
        start_time: When the stage started.
        end_time: When the stage finished; None while running.
        duration_seconds: Wall time of the stage.
        rows_processed: Table rows handled.
        cells_written: Worksheet cells written.
        merges_applied: Merge regions applied.
        custom_metrics: Stage-specific extras.
    """

    operation: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    duration_seconds: float = 0.0
    rows_processed: int = 0
    cells_written: int = 0
    merges_applied: int = 0
    custom_metrics: dict[str, Any] = field(default_factory=dict)

    def finish(self) -> None:
        self.end_time = datetime.now(UTC)
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Operation, duration and the counters that are non-zero."""
        result: dict[str, Any] = {
            "operation": self.operation,
            "duration_seconds": self.duration_seconds,
        }
        counters = {
            "rows_processed": self.rows_processed,
            "cells_written": self.cells_written,
            "merges_applied": self.merges_applied,
        }
        result.update({name: value for name, value in counters.items() if value > 0})
        if self.custom_metrics:
            result["custom_metrics"] = self.custom_metrics
        return result


class StructuredLogFormatter(logging.Formatter):
    """Formatter that prefixes each record with the active log context."""

    def format(self, record: logging.LogRecord) -> str:
        prefix = _context_prefix()
        if not prefix:
            return super().format(record)

        original_msg = record.msg
        record.msg = f"{prefix}{original_msg}"
        try:
            return super().format(record)
        finally:
            record.msg = original_msg


class StructuredLogger:
    """Wrapper around ``logging.Logger`` that accepts key/value fields.

    Besides the usual level methods it has helpers for stage timings,
    progress of large tables and the final conversion summary.
    """

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _build_message(self, message: str, **kwargs: Any) -> str:
        if not kwargs:
            return message
        fields = ", ".join(f"{key}={value}" for key, value in kwargs.items())
        return f"{message} | {fields}"

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(self._build_message(message, **kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(self._build_message(message, **kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(self._build_message(message, **kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._logger.error(self._build_message(message, **kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        self._logger.exception(self._build_message(message, **kwargs))

    def log_performance(self, metrics: PerformanceMetrics) -> None:
        self.info(f"Performance: {metrics.operation}", **metrics.to_dict())

    def log_progress(
        self,
        stage: str,
        current: int,
        total: int,
        details: str | None = None,
    ) -> None:
        """Log ``current`` of ``total`` items done for ``stage``."""
        percentage = current / total * 100 if total > 0 else 0
        fields: dict[str, Any] = {
            "current": current,
            "total": total,
            "percentage": f"{percentage:.1f}%",
        }
        if details:
            fields["details"] = details
        self.info(f"Progress: {stage}", **fields)

    def log_conversion_result(
        self,
        mode: str,
        rows: int,
        columns: int,
        merges: int,
        duration_seconds: float,
        output_path: str | None = None,
    ) -> None:
        """Log the summary line for a finished conversion.

        Args:
            mode: Assembly mode used (full, stream or large).
            rows: Rows written to the sheet, including title rows.
            columns: Sheet width in columns.
            merges: Merge regions applied.
            duration_seconds: Total processing time.
            output_path: File written, or None for in-memory output.
        """
        self.info(
            "Conversion completed",
            mode=mode,
            rows=rows,
            columns=columns,
            merges=merges,
            duration_seconds=f"{duration_seconds:.2f}",
            output=output_path or "buffer",
        )


class LogContext:
    """Temporarily add fields to every log line in a block.

    ``conversion_id`` and ``request_id`` go to their own context variables;
    any other keyword is merged into the extra context. Previous values are
    restored on exit, so blocks nest.
    """

    def __init__(self, **kwargs: Any) -> None:
        self._fields = kwargs
        self._saved: tuple[dict[str, Any], str | None, str | None] | None = None

    def __enter__(self) -> "LogContext":
        previous_extra = get_extra_context()
        self._saved = (previous_extra, get_conversion_id(), get_request_id())

        fields = dict(self._fields)
        conversion_id = fields.pop("conversion_id", None)
        request_id = fields.pop("request_id", None)
        if conversion_id is not None:
            set_conversion_id(conversion_id)
        if request_id is not None:
            set_request_id(request_id)
        set_extra_context({**previous_extra, **fields})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._saved is None:
            return
        extra, conversion_id, request_id = self._saved
        set_extra_context(extra)
        set_conversion_id(conversion_id)
        set_request_id(request_id)


@contextmanager
def timed_operation(
    logger: StructuredLogger,
    operation: str,
) -> Generator[PerformanceMetrics, None, None]:
    """Time a block and log its metrics, also when the block raises.

    The yielded ``PerformanceMetrics`` can be filled in with counters.
    """
    metrics = PerformanceMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_performance(metrics)


def configure_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
    use_structured_formatter: bool = True,
) -> None:
    """Replace the root handlers with a single stream handler.

    Args:
        level: Level as an int or a name such as "INFO".
        format_string: Record format; ``DEFAULT_FORMAT`` when None.
        use_structured_formatter: Prefix records with the log context.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    formatter_class = (
        StructuredLogFormatter if use_structured_formatter else logging.Formatter
    )
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter_class(format_string or DEFAULT_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)


class ProgressTracker:
    """Logs progress every ``log_interval`` items and when ``total`` is reached.

    Used while writing the rows of large tables:

        tracker = ProgressTracker(logger, "Writing rows", total=50000,
                                  log_interval=10000)
        for row in rows:
            write(row)
            tracker.update()
        tracker.complete()
    """

    def __init__(
        self,
        logger: StructuredLogger,
        stage: str,
        total: int,
        log_interval: int = 1,
    ) -> None:
        self._logger = logger
        self._stage = stage
        self._total = total
        self._log_interval = max(log_interval, 1)
        self._current = 0
        self._started = time.perf_counter()

    @property
    def current(self) -> int:
        return self._current

    def update(self, increment: int = 1, details: str | None = None) -> None:
        self._current += increment
        if self._current % self._log_interval == 0 or self._current == self._total:
            self._logger.log_progress(self._stage, self._current, self._total, details)

    def complete(self) -> float:
        """Log the stage as done and return its duration in seconds."""
        duration = time.perf_counter() - self._started
        self._logger.info(
            f"Completed: {self._stage}",
            total_items=self._total,
            duration_seconds=f"{duration:.2f}",
        )
        return duration
