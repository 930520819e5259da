"""
Tests for logging_manager module.

Covers DoctorLogger file output, the null logger used when no logger is
configured, and the shared CLI error handler.
"""
import pytest
from unittest.mock import MagicMock

import click

from dbdoctor.core.exceptions import NoSuchTableError
from dbdoctor.core.logging_manager import (
    DoctorLogger,
    NullLogger,
    handle_cli_error,
    safe_logger,
)


class TestDoctorLogger:
    """Tests for DoctorLogger file handling."""

    def test_creates_log_directory(self, tmp_path):
        """DoctorLogger should create its log directory on demand."""
        log_dir = tmp_path / "nested" / "logs"
        DoctorLogger(log_dir, "health")
        assert log_dir.is_dir()

    def test_operation_goes_to_component_log(self, tmp_path):
        """log_operation should write JSON details to <component>.log."""
        logger = DoctorLogger(tmp_path, "health")
        logger.log_operation("health_run_start", {"mode": "check"})

        content = (tmp_path / "health.log").read_text(encoding="utf-8")
        assert "OPERATION - health_run_start" in content
        assert '"mode": "check"' in content

    def test_error_goes_to_error_log(self, tmp_path):
        """log_error should write to errors.log, including context."""
        logger = DoctorLogger(tmp_path, "health")
        logger.log_error(NoSuchTableError("gone"), {"table": "tx_missing"})

        content = (tmp_path / "errors.log").read_text(encoding="utf-8")
        assert "NoSuchTableError: gone" in content
        assert "table=tx_missing" in content

    def test_cli_error_message(self, tmp_path):
        """log_cli_error should return a short message without traceback."""
        logger = DoctorLogger(tmp_path, "health")
        message = logger.log_cli_error(ValueError("bad"))
        assert message == "❌ ValueError: bad"


class TestNullLogger:
    """Tests for NullLogger class."""

    def test_all_methods_are_no_ops(self):
        """NullLogger should accept every logging call silently."""
        logger = NullLogger()
        logger.log_operation("op", {"key": "value"})
        logger.log_error(ValueError("x"), {"key": "value"})
        logger.log_debug("debug")
        logger.log_info("info", {"key": "value"})
        logger.log_warning("warning")

    def test_cli_error_is_formatted(self):
        """NullLogger.log_cli_error should still format the error."""
        result = NullLogger().log_cli_error(ValueError("test error"))
        assert "ValueError" in result
        assert "test error" in result


class TestSafeLogger:
    """Tests for safe_logger function."""

    def test_returns_given_logger(self):
        """safe_logger should return the same logger when not None."""
        mock_logger = MagicMock(spec=DoctorLogger)
        assert safe_logger(mock_logger) is mock_logger

    def test_returns_shared_null_logger(self):
        """safe_logger should return one NullLogger instance for None."""
        first = safe_logger(None)
        assert isinstance(first, NullLogger)
        assert safe_logger(None) is first

    def test_forwards_calls(self):
        """Calls through safe_logger should reach the real logger."""
        mock_logger = MagicMock(spec=DoctorLogger)
        safe_logger(mock_logger).log_info("message")
        mock_logger.log_info.assert_called_once_with("message")


class TestHandleCliError:
    """Tests for handle_cli_error."""

    def _context(self, logger=None, verbose=False):
        ctx = click.Context(click.Command("health"))
        ctx.obj = {"logger": logger, "verbose": verbose}
        return ctx

    def test_exits_with_given_code(self, capsys):
        """handle_cli_error should print the message and exit."""
        ctx = self._context()
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(ctx, ValueError("boom"), "health", exit_code=4)

        assert exc_info.value.code == 4
        assert "ValueError: boom" in capsys.readouterr().err

    def test_logs_operation_context(self):
        """handle_cli_error should pass operation and extra context to the logger."""
        mock_logger = MagicMock(spec=DoctorLogger)
        mock_logger.log_cli_error.return_value = "❌ ValueError: boom"
        ctx = self._context(logger=mock_logger)

        with pytest.raises(SystemExit):
            handle_cli_error(ctx, ValueError("boom"), "health", {"mode": "check"})

        context = mock_logger.log_cli_error.call_args[0][1]
        assert context == {"operation": "health", "mode": "check"}
