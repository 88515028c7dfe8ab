"""Tests for the structured logging utilities."""

import logging
from unittest.mock import MagicMock, patch

from table_to_xlsx.utils.logging import (
    LogContext,
    PerformanceMetrics,
    ProgressTracker,
    StructuredLogFormatter,
    StructuredLogger,
    clear_context,
    configure_logging,
    get_conversion_id,
    get_extra_context,
    get_logger,
    get_request_id,
    set_conversion_id,
    set_extra_context,
    set_request_id,
    timed_operation,
)


def _record(message: str = "Test message") -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=message,
        args=(),
        exc_info=None,
    )


class TestContextVariables:
    """Tests for context variable management."""

    def setup_method(self) -> None:
        """Clear context before each test."""
        clear_context()

    def teardown_method(self) -> None:
        """Clear context after each test."""
        clear_context()

    def test_request_id_default_none(self) -> None:
        assert get_request_id() is None

    def test_set_and_get_request_id(self) -> None:
        set_request_id("req-123")
        assert get_request_id() == "req-123"

    def test_set_and_get_conversion_id(self) -> None:
        set_conversion_id("conv-456")
        assert get_conversion_id() == "conv-456"

    def test_extra_context_default_empty(self) -> None:
        assert get_extra_context() == {}

    def test_clear_context(self) -> None:
        """Clear context should reset all context variables."""
        set_request_id("req-123")
        set_conversion_id("conv-456")
        set_extra_context({"mode": "stream"})

        clear_context()

        assert get_request_id() is None
        assert get_conversion_id() is None
        assert get_extra_context() == {}


class TestPerformanceMetrics:
    """Tests for PerformanceMetrics dataclass."""

    def test_finish_calculates_duration(self) -> None:
        metrics = PerformanceMetrics(operation="layout")
        metrics.finish()
        assert metrics.end_time is not None
        assert metrics.duration_seconds >= 0

    def test_to_dict_excludes_zero_values(self) -> None:
        metrics = PerformanceMetrics(operation="layout")
        assert metrics.to_dict() == {"operation": "layout", "duration_seconds": 0.0}

    def test_to_dict_with_counts(self) -> None:
        metrics = PerformanceMetrics(
            operation="sheet_assembly_full",
            rows_processed=3,
            cells_written=9,
            merges_applied=2,
            custom_metrics={"mode": "full"},
        )
        result = metrics.to_dict()
        assert result["rows_processed"] == 3
        assert result["cells_written"] == 9
        assert result["merges_applied"] == 2
        assert result["custom_metrics"] == {"mode": "full"}


class TestStructuredLogger:
    """Tests for StructuredLogger class."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.logger = get_logger("test_logger")

    def test_get_logger_returns_structured_logger(self) -> None:
        assert isinstance(get_logger(__name__), StructuredLogger)

    def test_build_message_with_kwargs(self) -> None:
        msg = self.logger._build_message("Parsed table", rows=3, max_cols=2)
        assert msg == "Parsed table | rows=3, max_cols=2"

    def test_build_message_without_kwargs(self) -> None:
        assert self.logger._build_message("Parsed table") == "Parsed table"

    @patch.object(logging.Logger, "info")
    def test_info_logging(self, mock_info: MagicMock) -> None:
        self.logger.info("Test info", status="ok")
        mock_info.assert_called_once()
        assert "status=ok" in mock_info.call_args[0][0]

    @patch.object(logging.Logger, "error")
    def test_error_logging_passes_exc_info(self, mock_error: MagicMock) -> None:
        self.logger.error("Test error", exc_info=True)
        mock_error.assert_called_once()
        assert mock_error.call_args.kwargs["exc_info"] is True

    @patch.object(logging.Logger, "info")
    def test_log_progress(self, mock_info: MagicMock) -> None:
        self.logger.log_progress("Writing large table", current=5000, total=20000)
        call_args = mock_info.call_args[0][0]
        assert "Progress: Writing large table" in call_args
        assert "current=5000" in call_args
        assert "25.0%" in call_args

    @patch.object(logging.Logger, "info")
    def test_log_conversion_result_buffer(self, mock_info: MagicMock) -> None:
        self.logger.log_conversion_result(
            mode="full", rows=4, columns=3, merges=2, duration_seconds=0.123
        )
        call_args = mock_info.call_args[0][0]
        assert call_args.startswith("Conversion completed")
        assert "mode=full" in call_args
        assert "merges=2" in call_args
        assert "duration_seconds=0.12" in call_args
        assert "output=buffer" in call_args

    @patch.object(logging.Logger, "info")
    def test_log_conversion_result_file(self, mock_info: MagicMock) -> None:
        self.logger.log_conversion_result(
            mode="stream",
            rows=10,
            columns=2,
            merges=0,
            duration_seconds=1.0,
            output_path="/tmp/out.xlsx",
        )
        assert "output=/tmp/out.xlsx" in mock_info.call_args[0][0]


class TestLogContext:
    """Tests for LogContext context manager."""

    def setup_method(self) -> None:
        clear_context()

    def teardown_method(self) -> None:
        clear_context()

    def test_context_sets_values(self) -> None:
        with LogContext(conversion_id="conv-1", mode="large"):
            assert get_conversion_id() == "conv-1"
            assert get_extra_context() == {"mode": "large"}

    def test_context_restores_values(self) -> None:
        set_conversion_id("original")
        set_extra_context({"original": "value"})

        with LogContext(conversion_id="new", mode="stream"):
            assert get_conversion_id() == "new"

        assert get_conversion_id() == "original"
        assert get_extra_context() == {"original": "value"}

    def test_context_with_request_id(self) -> None:
        with LogContext(request_id="req-456", conversion_id="conv-789"):
            assert get_request_id() == "req-456"

        assert get_request_id() is None
        assert get_conversion_id() is None

    def test_nested_contexts(self) -> None:
        with LogContext(conversion_id="outer"):
            with LogContext(conversion_id="inner"):
                assert get_conversion_id() == "inner"
            assert get_conversion_id() == "outer"


class TestTimedOperation:
    """Tests for timed_operation context manager."""

    @patch.object(StructuredLogger, "log_performance")
    def test_timed_operation_logs_metrics(self, mock_log: MagicMock) -> None:
        logger = get_logger("test")
        with timed_operation(logger, "sheet_assembly_full") as metrics:
            metrics.merges_applied = 4

        mock_log.assert_called_once()
        logged = mock_log.call_args[0][0]
        assert logged.operation == "sheet_assembly_full"
        assert logged.merges_applied == 4
        assert logged.end_time is not None

    @patch.object(StructuredLogger, "log_performance")
    def test_timed_operation_logs_on_error(self, mock_log: MagicMock) -> None:
        logger = get_logger("test")
        try:
            with timed_operation(logger, "failing"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        mock_log.assert_called_once()


class TestProgressTracker:
    """Tests for ProgressTracker class."""

    @patch.object(StructuredLogger, "log_progress")
    def test_update_with_interval(self, mock_log: MagicMock) -> None:
        tracker = ProgressTracker(get_logger("test"), "Writing", total=10, log_interval=5)
        for _ in range(4):
            tracker.update()
        assert mock_log.call_count == 0
        tracker.update()
        assert mock_log.call_count == 1
        assert tracker.current == 5

    @patch.object(StructuredLogger, "log_progress")
    def test_update_logs_at_total(self, mock_log: MagicMock) -> None:
        tracker = ProgressTracker(get_logger("test"), "Writing", total=3, log_interval=100)
        for _ in range(3):
            tracker.update()
        mock_log.assert_called_once()

    @patch.object(StructuredLogger, "info")
    def test_complete_returns_duration(self, mock_info: MagicMock) -> None:
        tracker = ProgressTracker(get_logger("test"), "Writing", total=10)
        assert tracker.complete() >= 0
        mock_info.assert_called_once()


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_with_string_level(self) -> None:
        configure_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_with_structured_formatter(self) -> None:
        configure_logging(level=logging.INFO, use_structured_formatter=True)
        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, StructuredLogFormatter)

    def test_configure_without_structured_formatter(self) -> None:
        configure_logging(level=logging.INFO, use_structured_formatter=False)
        handler = logging.getLogger().handlers[0]
        assert not isinstance(handler.formatter, StructuredLogFormatter)


class TestStructuredLogFormatter:
    """Tests for StructuredLogFormatter class."""

    def setup_method(self) -> None:
        clear_context()

    def teardown_method(self) -> None:
        clear_context()

    def test_format_without_context(self) -> None:
        formatter = StructuredLogFormatter("%(message)s")
        assert formatter.format(_record()) == "Test message"

    def test_format_with_ids_and_extra(self) -> None:
        set_request_id("req-123")
        set_conversion_id("conv-9")
        set_extra_context({"mode": "stream"})
        formatter = StructuredLogFormatter("%(message)s")
        result = formatter.format(_record())
        assert result == "[request_id=req-123 conversion_id=conv-9 mode=stream] Test message"

    def test_format_restores_record_message(self) -> None:
        set_request_id("req-123")
        record = _record()
        StructuredLogFormatter("%(message)s").format(record)
        assert record.msg == "Test message"
