#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the dbdoctor project.

This module defines a hierarchy of exceptions used throughout the project
to handle specific error conditions in different subsystems.

Exception Hierarchy:
    Exception (built-in)
    └── DoctorError - Base for everything raised by dbdoctor
        ├── DatabaseError - Base for all database-related errors
        │   ├── NoSuchRecordError - Row lookup by uid found nothing
        │   ├── NoSuchTableError - Table is unknown to the database
        │   └── UnexpectedAffectedRowsError - Update/delete touched != 1 row
        ├── HealthCheckError - Health check failures
        │   ├── PrerequisiteViolationError - Earlier check left work undone
        │   └── CheckOrderError - Check catalogue ordering is inconsistent
        ├── ValidationError - Configuration validation failures
        │   ├── SchemaConfigError - Schema metadata file is invalid
        │   └── SchemaMismatchError - Schema metadata disagrees with database
        └── SqlDumpFileError - SQL dump file cannot be used

Usage:
    from dbdoctor.core.exceptions import NoSuchRecordError

    try:
        parent = store.get_record("pages", ["uid", "deleted"], pid)
    except NoSuchRecordError:
        ...
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Optional


class DoctorError(Exception):
    """
    Base exception for all dbdoctor errors.

    The CLI catches this class to report any expected failure with a clean
    message and the ERROR exit code. Anything else is a bug and propagates.
    """

    pass


class DatabaseError(DoctorError):
    """
    Base exception for database-related errors.

    Raised when database operations fail due to connection issues,
    query errors, integrity violations, or other database problems.

    This is the parent class for all database-specific exceptions.
    Catch this to handle any database error, or catch specific
    subclasses for more granular error handling.

    Examples:
        >>> raise DatabaseError("Connection to database failed")
        >>> raise DatabaseError("Database operation failed: no such column")

    See Also:
        NoSuchRecordError, NoSuchTableError, UnexpectedAffectedRowsError
    """

    pass


class NoSuchRecordError(DatabaseError):
    """
    Exception for a row that does not exist.

    Raised by RowStore.get_record() when no row with the requested uid
    exists. Checks dealing with dangling pointers catch this on purpose;
    checks relying on an earlier check turn it into a
    PrerequisiteViolationError.

    Examples:
        >>> raise NoSuchRecordError('Record with uid "42" in table "pages" not found')
    """

    pass


class NoSuchTableError(DatabaseError):
    """
    Exception for a table that does not exist in the database.

    Examples:
        >>> raise NoSuchTableError('Table "tx_missing" not found in database')
    """

    pass


class UnexpectedAffectedRowsError(DatabaseError):
    """
    Exception for a write statement that did not touch exactly one row.

    Every repair statement targets a single row by uid. Affecting zero
    rows means the row vanished between detection and repair, affecting
    more means the uid is not unique. Both are fatal.

    Attributes:
        sql: Rendered statement that was executed
        affected: Number of rows reported by the database
    """

    def __init__(self, message: str, sql: str = "", affected: int = 0) -> None:
        super().__init__(message)
        self.sql = sql
        self.affected = affected


class HealthCheckError(DoctorError):
    """
    Exception for health check failures.

    Raised when a check cannot continue:
    - A workspace-aware row was handed to a repair without its workspace id
    - A row carries a workspace state the repair does not know
    - The check catalogue is inconsistent

    Examples:
        >>> raise HealthCheckError('Unexpected workspace state "7" on "tt_content" uid "3"')
    """

    pass


class PrerequisiteViolationError(HealthCheckError):
    """
    Exception for a violation an earlier check should already have fixed.

    Checks run in a fixed order and later checks rely on invariants
    established by earlier ones. A check that meets such a violation halts,
    names the earlier check and asks to start over.

    Attributes:
        check: Name of the check that detected the violation
        prerequisite: Name of the check expected to have fixed it
    """

    def __init__(
        self, message: str, check: str = "", prerequisite: Optional[str] = None
    ) -> None:
        self.check = check
        self.prerequisite = prerequisite
        parts = [message]
        if prerequisite:
            parts.append(f'This should have been fixed by check "{prerequisite}".')
        parts.append("Please run the checks again from the top.")
        super().__init__(" ".join(parts))


class CheckOrderError(HealthCheckError):
    """
    Exception for an inconsistent check catalogue.

    Raised when a check declares a prerequisite that is not registered,
    or that is registered after the check itself.
    """

    pass


class ValidationError(DoctorError):
    """
    Exception for configuration validation failures.

    Raised when user supplied configuration does not meet requirements.

    Examples:
        >>> raise ValidationError("--file must be an absolute path")
    """

    pass


class SchemaConfigError(ValidationError):
    """
    Exception for an invalid schema metadata file.

    Raised when the YAML file cannot be parsed, its root is not a mapping,
    a table declares an unknown capability key, or an inline relation
    lacks foreign_table / foreign_field.

    Examples:
        >>> raise SchemaConfigError('Table "pages": unknown key "deletd"')
    """

    pass


class SchemaMismatchError(ValidationError):
    """
    Exception for schema metadata naming tables or fields the database lacks.

    Attributes:
        missing: List of "table" or "table.field" strings not found
    """

    def __init__(self, missing: list) -> None:
        self.missing = list(missing)
        super().__init__(
            "Schema metadata does not match database, missing: "
            + ", ".join(self.missing)
        )


class SqlDumpFileError(DoctorError):
    """
    Exception for an unusable SQL dump file.

    Raised when the path is relative, the file exists already, or its
    directory does not exist.

    Examples:
        >>> raise SqlDumpFileError('File "/tmp/dump.sql" exists already')
    """

    pass
