#!/usr/bin/env python3
"""
row_store.py
-----------------
Row-level database access for health checks.

RowStore is the only component talking to the database. Tables are
reflected on first use, so no ORM models are needed: the checks work on
whatever tables the schema metadata names. Reads return plain dicts,
writes target exactly one row by uid and return the statement rendered
with literal values, ready to be shown to the user or written to an
SQL dump file.

Key Features:
    - Cached table reflection and table/field existence lookups
    - get_record() raising NoSuchRecordError / NoSuchTableError
    - select_rows() with a SQLAlchemy where clause built by the caller
    - update_record() / delete_record() with simulate support, one
      transaction per statement, and exact affected-row verification

Usage:
    engine = create_engine("sqlite:///site.db")
    store = RowStore(engine, logger)

    pages = store.table("pages")
    rows = store.select_rows(
        "pages", ["uid", "pid"], where=pages.c.deleted == 0
    )
    sql = store.update_record(False, "pages", 12, {"deleted": 1})
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Any, Dict, Iterable, List, Optional, Sequence

# --- Third party imports ---
from sqlalchemy import (
    Column,
    MetaData,
    Table,
    create_engine,
    delete,
    func,
    inspect,
    select,
    update,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.exc import NoSuchTableError as SANoSuchTableError
from sqlalchemy.sql.elements import ColumnElement

# --- Local imports ---
from dbdoctor.core.exceptions import (
    DatabaseError,
    NoSuchRecordError,
    NoSuchTableError,
    UnexpectedAffectedRowsError,
)
from dbdoctor.core.logging_manager import DoctorLogger
from .decorators import handle_db_errors, log_database_operation


Row = Dict[str, Any]


def _safe_url(db_url: str) -> str:
    """Database URL with the password masked, for logging."""
    try:
        return make_url(db_url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<invalid url>"


class RowStore:
    """
    Gateway for reading and writing single rows of reflected tables.

    Attributes:
        engine: SQLAlchemy engine
        logger: Optional logger for operation tracking
    """

    def __init__(self, engine: Engine, logger: Optional[DoctorLogger] = None) -> None:
        self.engine = engine
        self.logger = logger
        self._metadata = MetaData()
        self._tables: Dict[str, Table] = {}
        self._table_exists: Dict[str, bool] = {}
        self._fields: Dict[str, set] = {}

    @classmethod
    def from_url(cls, db_url: str, logger: Optional[DoctorLogger] = None) -> "RowStore":
        """
        Create the engine for a database URL and wrap it.

        Args:
            db_url: SQLAlchemy database URL
            logger: Optional logger

        Returns:
            RowStore

        Raises:
            DatabaseError: If the engine cannot be created or connected
        """
        try:
            if logger:
                logger.log_operation("database_init_start", {"db_url": _safe_url(db_url)})

            engine = create_engine(db_url, echo=False, future=True, pool_pre_ping=True)
            with engine.connect():
                pass

            if logger:
                logger.log_operation("database_init_complete", {"success": True})
            return cls(engine, logger)

        except SQLAlchemyError as e:
            if logger:
                logger.log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

    # ═══════════════════════════════════════════════════════════════════════
    # TABLES AND FIELDS
    # ═══════════════════════════════════════════════════════════════════════

    @handle_db_errors
    def table_exists(self, table: str) -> bool:
        if table not in self._table_exists:
            self._table_exists[table] = inspect(self.engine).has_table(table)
        return self._table_exists[table]

    def field_exists(self, table: str, field: str) -> bool:
        if not self.table_exists(table):
            return False
        return field in self._field_names(table)

    @handle_db_errors
    def table(self, name: str) -> Table:
        """
        Return the reflected table.

        Raises:
            NoSuchTableError: If the table does not exist in the database
        """
        if name not in self._tables:
            if not self.table_exists(name):
                raise NoSuchTableError(f'Table "{name}" not found in database')
            try:
                self._tables[name] = Table(name, self._metadata, autoload_with=self.engine)
            except SANoSuchTableError as e:
                raise NoSuchTableError(f'Table "{name}" not found in database') from e
        return self._tables[name]

    def column(self, table: str, field: str) -> Column:
        """Shortcut for building where clauses: store.column("pages", "pid") > 0."""
        return self.table(table).c[field]

    def _field_names(self, table: str) -> set:
        if table not in self._fields:
            self._fields[table] = {column.name for column in self.table(table).columns}
        return self._fields[table]

    # ═══════════════════════════════════════════════════════════════════════
    # READ
    # ═══════════════════════════════════════════════════════════════════════

    @handle_db_errors
    def get_record(self, table: str, fields: Sequence[str], uid: int) -> Row:
        """
        Fetch a single row by uid.

        Args:
            table: Table name
            fields: Columns to fetch
            uid: Primary key

        Returns:
            Dict of column name to value

        Raises:
            NoSuchTableError: If the table does not exist
            NoSuchRecordError: If no row with this uid exists
        """
        reflected = self.table(table)
        statement = select(*[reflected.c[name] for name in self._unique(fields)]).where(
            reflected.c.uid == int(uid)
        )
        with self.engine.connect() as connection:
            row = connection.execute(statement).mappings().first()
        if row is None:
            raise NoSuchRecordError(
                f'Record with uid "{uid}" in table "{table}" not found'
            )
        return dict(row)

    @handle_db_errors
    def select_rows(
        self,
        table: str,
        fields: Sequence[str],
        where: Optional[ColumnElement] = None,
        order_by: Sequence[str] = ("uid",),
    ) -> List[Row]:
        """
        Fetch all rows matching a where clause.

        Args:
            table: Table name
            fields: Columns to fetch
            where: Optional SQLAlchemy boolean clause on this table's columns
            order_by: Columns to order by

        Returns:
            List of row dicts
        """
        reflected = self.table(table)
        statement = select(*[reflected.c[name] for name in self._unique(fields)])
        if where is not None:
            statement = statement.where(where)
        statement = statement.order_by(*[reflected.c[name] for name in order_by])
        with self.engine.connect() as connection:
            return [dict(row) for row in connection.execute(statement).mappings()]

    @handle_db_errors
    def count_rows(self, table: str, where: Optional[ColumnElement] = None) -> int:
        reflected = self.table(table)
        statement = select(func.count()).select_from(reflected)
        if where is not None:
            statement = statement.where(where)
        with self.engine.connect() as connection:
            return int(connection.execute(statement).scalar_one())

    # ═══════════════════════════════════════════════════════════════════════
    # WRITE
    # ═══════════════════════════════════════════════════════════════════════

    @handle_db_errors
    @log_database_operation("update_record")
    def update_record(
        self, simulate: bool, table: str, uid: int, values: Dict[str, Any]
    ) -> str:
        """
        Update fields of a single row.

        Args:
            simulate: Only render the statement, do not execute it
            table: Table name
            uid: Primary key of the row
            values: Field name to new value

        Returns:
            Rendered SQL statement

        Raises:
            UnexpectedAffectedRowsError: If not exactly one row was updated
        """
        reflected = self.table(table)
        statement = update(reflected).where(reflected.c.uid == int(uid)).values(**values)
        return self._execute_single(simulate, statement, table, uid)

    @handle_db_errors
    @log_database_operation("delete_record")
    def delete_record(self, simulate: bool, table: str, uid: int) -> str:
        """
        Delete a single row.

        Args:
            simulate: Only render the statement, do not execute it
            table: Table name
            uid: Primary key of the row

        Returns:
            Rendered SQL statement

        Raises:
            UnexpectedAffectedRowsError: If not exactly one row was deleted
        """
        reflected = self.table(table)
        statement = delete(reflected).where(reflected.c.uid == int(uid))
        return self._execute_single(simulate, statement, table, uid)

    def _execute_single(self, simulate: bool, statement, table: str, uid: int) -> str:
        sql = self.render(statement)
        if simulate:
            return sql
        with self.engine.begin() as connection:
            affected = connection.execute(statement).rowcount
            if affected != 1:
                raise UnexpectedAffectedRowsError(
                    f'Statement on table "{table}" uid "{uid}" affected {affected} rows, '
                    f"expected exactly 1: {sql}",
                    sql=sql,
                    affected=affected,
                )
        return sql

    def render(self, statement) -> str:
        """Render a statement with literal values for display and SQL dumps."""
        compiled = statement.compile(
            dialect=self.engine.dialect, compile_kwargs={"literal_binds": True}
        )
        return " ".join(str(compiled).split()) + ";"

    @staticmethod
    def _unique(fields: Iterable[str]) -> List[str]:
        return list(dict.fromkeys(name for name in fields if name))
