"""Tests for database decorators."""
import pytest
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from dbdoctor.core.exceptions import DatabaseError, NoSuchRecordError
from dbdoctor.core.logging_manager import DoctorLogger
from dbdoctor.database.decorators import handle_db_errors, log_database_operation


class _Gateway:
    def __init__(self, logger=None):
        self.logger = logger

    @log_database_operation("touch_row")
    def touch(self, uid):
        return f"touched {uid}"

    @log_database_operation("touch_row")
    def fail(self, uid):
        raise ValueError(f"cannot touch {uid}")


class TestLogDatabaseOperation:
    """Tests for log_database_operation decorator."""

    def test_logs_start_and_completion(self):
        """Successful calls should log start and completion at debug level."""
        mock_logger = MagicMock(spec=DoctorLogger)
        result = _Gateway(mock_logger).touch(3)

        assert result == "touched 3"
        messages = [call[0][0] for call in mock_logger.log_debug.call_args_list]
        assert messages == ["touch_row_started", "touch_row_completed"]
        assert mock_logger.log_debug.call_args_list[0][0][1] == {"uid": 3}
        assert mock_logger.log_debug.call_args_list[1][0][1]["success"] is True

    def test_logs_and_reraises_errors(self):
        """Failures should be logged with operation name and arguments, then re-raised."""
        mock_logger = MagicMock(spec=DoctorLogger)

        with pytest.raises(ValueError):
            _Gateway(mock_logger).fail(uid=3)

        mock_logger.log_error.assert_called_once()
        context = mock_logger.log_error.call_args[0][1]
        assert context["operation"] == "touch_row"
        assert context["uid"] == 3

    def test_works_without_logger(self):
        """A gateway without logger should still run the operation."""
        assert _Gateway().touch(1) == "touched 1"


class TestHandleDbErrors:
    """Tests for handle_db_errors decorator."""

    def test_integrity_error_becomes_database_error(self):
        """IntegrityError should be converted to DatabaseError."""

        @handle_db_errors
        def insert():
            raise IntegrityError("statement", {}, Exception("duplicate"))

        with pytest.raises(DatabaseError) as exc_info:
            insert()
        assert "Data integrity violation" in str(exc_info.value)

    def test_sqlalchemy_error_becomes_database_error(self):
        """Other SQLAlchemy errors should be converted to DatabaseError."""

        @handle_db_errors
        def query():
            raise SQLAlchemyError("connection failed")

        with pytest.raises(DatabaseError) as exc_info:
            query()
        assert "Database operation query failed" in str(exc_info.value)

    def test_own_errors_propagate_unchanged(self):
        """dbdoctor's own errors should pass through untouched."""

        @handle_db_errors
        def lookup():
            raise NoSuchRecordError("not there")

        with pytest.raises(NoSuchRecordError):
            lookup()
