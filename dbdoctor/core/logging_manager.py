#!/usr/bin/env python3
"""
logging_manager.py
--------------------
File logging for health check runs.

Every run writes two rotating files below the log directory:

    <component>.log   run and check events, executed statements (DEBUG+)
    errors.log        failures with context and traceback (ERROR+)

Events are logged as "<KIND> - <event>: <json details>" lines so a run can
be followed with grep. Warnings are mirrored to stderr.

Code that may run without a configured logger takes an Optional logger
and wraps it with safe_logger(), which substitutes a NullLogger.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import logging
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import click


FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s"
CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def format_cli_error(error: Exception) -> str:
    """Short terminal form of an error."""
    return f"❌ {type(error).__name__}: {error}"


def _event_line(kind: str, event: str, details: Optional[Dict[str, Any]]) -> str:
    if not details:
        return f"{kind} - {event}"
    return f"{kind} - {event}: {json.dumps(details, default=str, sort_keys=True)}"


class DoctorLogger:
    """
    Rotating file logger of one dbdoctor component.

    Attributes:
        log_dir: Directory holding the log files
        component_name: Prefix of the component log file and logger names
        main_logger: Logger behind <component>.log
        error_logger: Logger behind errors.log
    """

    def __init__(
        self,
        log_dir: Path,
        component_name: str = "dbdoctor",
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
        console_level: int = logging.WARNING,
    ) -> None:
        """
        Args:
            log_dir: Directory for log files, created if missing
            component_name: Component name, e.g. 'dbdoctor' or 'health'
            max_bytes: File size triggering rotation (default: 10MB)
            backup_count: Rotated files kept per log (default: 5)
            console_level: Minimum level mirrored to stderr
        """
        self.log_dir = Path(log_dir)
        self.component_name = component_name
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.main_logger = self._build(
            "events",
            self.log_dir / f"{component_name}.log",
            logging.DEBUG,
            max_bytes,
            backup_count,
        )
        self.error_logger = self._build(
            "errors",
            self.log_dir / "errors.log",
            logging.ERROR,
            max_bytes,
            backup_count,
        )

        console = logging.StreamHandler(sys.stderr)
        console.setLevel(console_level)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        self.main_logger.addHandler(console)

    def _build(
        self, suffix: str, path: Path, level: int, max_bytes: int, backup_count: int
    ) -> logging.Logger:
        logger = logging.getLogger(f"{self.component_name}.{suffix}")
        logger.setLevel(level)
        logger.propagate = False
        # Loggers are process-wide; drop handlers of an earlier instance
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        handler = RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        return logger

    # ═══════════════════════════════════════════════════════════════════════
    # EVENTS
    # ═══════════════════════════════════════════════════════════════════════

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Log a run or check event, e.g. "health_check_completed".

        Args:
            operation: Event name
            details: JSON-serializable details
        """
        self.main_logger.info(_event_line("OPERATION", operation, details or {}), stacklevel=2)

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.main_logger.debug(_event_line("DEBUG", message, details), stacklevel=2)

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.main_logger.info(_event_line("INFO", message, details), stacklevel=2)

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.main_logger.warning(_event_line("WARNING", message, details), stacklevel=2)

    # ═══════════════════════════════════════════════════════════════════════
    # ERRORS
    # ═══════════════════════════════════════════════════════════════════════

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Log an error with its context and the active traceback to errors.log.

        Args:
            error: Exception that occurred
            context: Where it happened, e.g. {"check": "PagesBrokenTree"}
        """
        lines = [f"ERROR - {type(error).__name__}: {error}"]
        if context:
            lines.append("Context: " + ", ".join(f"{key}={value}" for key, value in context.items()))
        if sys.exc_info()[0] is not None:
            lines.append("Traceback:\n" + traceback.format_exc())
        self.error_logger.error("\n".join(lines), stacklevel=2)

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        """
        Log an error ending a CLI command and return its terminal form.

        Args:
            error: Exception to report
            context: Command context, defaults to {"source": "cli"}
            show_traceback: Append the traceback to the returned message

        Returns:
            Message for stderr, e.g. '❌ SchemaMismatchError: ...'
        """
        self.log_error(error, context or {"source": "cli"})
        message = format_cli_error(error)
        if show_traceback:
            message += "\n\n" + traceback.format_exc()
        return message


def handle_cli_error(
    ctx: "click.Context",
    error: Exception,
    operation: str,
    additional_context: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """
    Report a failed command and exit.

    The full error goes to the log files of the logger stored in ctx.obj,
    the short form to stderr; with --verbose the traceback is printed too.

    Args:
        ctx: Click context, ctx.obj may hold "logger" and "verbose"
        error: Exception that ended the command
        operation: Command name
        additional_context: Extra context such as mode and dump file
        exit_code: Process exit code (default: 1)
    """
    obj = ctx.obj or {}
    context: Dict[str, Any] = {"operation": operation}
    context.update(additional_context or {})

    message = safe_logger(obj.get("logger")).log_cli_error(
        error, context, show_traceback=bool(obj.get("verbose", False))
    )
    click.echo(message, err=True)
    sys.exit(exit_code)


class NullLogger:
    """Stands in for DoctorLogger when no logger is configured; logs nothing."""

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        return format_cli_error(error)


_null_logger = NullLogger()


def safe_logger(logger: Optional[DoctorLogger]) -> DoctorLogger:
    """
    Return the logger, or the shared NullLogger for None.

    Usage:
        safe_logger(logger).log_info("message")
    """
    return logger if logger is not None else _null_logger  # type: ignore[return-value]
