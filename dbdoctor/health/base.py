#!/usr/bin/env python3
"""
base.py
-------------------
Scaffolding shared by all health checks.

A health check finds rows violating one referential invariant (detect)
and knows how to fix them (repair). HealthCheck.handle() drives both
according to the run mode:

    CHECK        detect, report, never change anything
    EXECUTE      detect, repair once, detect again
    INTERACTIVE  detect, then loop on a single-letter prompt until the
                 affected set is empty or the user aborts

The interactive loop is a small state machine (InteractiveState) reading
answers through ConsoleIO, so it runs unchanged against a scripted reader
in tests.

Repairs go through the helpers at the bottom of this module. Every
statement they produce is echoed, and, when actually executed, appended
to the SQL dump file and logged.

Usage:
    class PagesPidNegative(HealthCheck):
        title = "Scan for records with negative pid"
        tags = (ActionTag.REMOVE,)

        def detect(self) -> AffectedRecords:
            ...

        def repair(self, io, simulate, affected):
            self.delete_records(io, simulate, affected)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Any, Dict, List, Optional, Sequence, Tuple

# --- Third party imports ---
from sqlalchemy import and_
from sqlalchemy.sql.elements import ColumnElement

# --- Local imports ---
from dbdoctor.core.console import ConsoleIO
from dbdoctor.core.exceptions import NoSuchRecordError, PrerequisiteViolationError
from dbdoctor.core.logging_manager import DoctorLogger, safe_logger
from dbdoctor.database.repair_policy import RepairAction, TablePolicy
from dbdoctor.database.rootline import RootlineResolver
from dbdoctor.database.row_store import RowStore
from dbdoctor.database.schema import SchemaRegistry
from dbdoctor.renderers import AffectedPagesRenderer, RecordsRenderer
from .sql_log import SqlDumpFile


Row = Dict[str, Any]
AffectedRecords = Dict[str, List[Row]]

PROMPT = "Handle records [e,s,a,r,p,d,h,?]?"

HELP = [
    "    e - EXECUTE suggested changes!",
    "    s - SIMULATE suggested changes, no execution",
    "    a - ABORT now",
    "    r - RELOAD this check",
    "    p - SHOW records by page",
    "    d - SHOW record details",
    "    h - HELP",
    "    ? - HELP",
]


def where_all(*clauses: Optional[ColumnElement]) -> Optional[ColumnElement]:
    """AND all given clauses, skipping None. Returns None if nothing is left."""
    present = [clause for clause in clauses if clause is not None]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return and_(*present)


class CheckMode(Enum):
    CHECK = "check"
    EXECUTE = "execute"
    INTERACTIVE = "interactive"


class HealthResult(IntFlag):
    """Check and run results. Run results are the OR of all check results."""

    OK = 0
    BROKEN = 1
    ABORTED = 2
    ERROR = 4


class ActionTag(Enum):
    """Kind of change a check may apply, shown in its header."""

    REMOVE = "remove"
    SOFT_DELETE = "soft-delete"
    WORKSPACE_REMOVE = "workspace-remove"
    UPDATE = "update-fields"
    RISKY = "risky"


class InteractiveState(Enum):
    SCANNING = "scanning"
    PROMPTING = "prompting"
    EXECUTING = "executing"
    ABORTED = "aborted"
    DONE = "done"


@dataclass
class CheckOutcome:
    """
    Result of one handle() call.

    Attributes:
        result: HealthResult of the check
        affected: Affected records found by the last detection
        changed: True if at least one statement was executed for real
    """

    result: HealthResult
    affected: AffectedRecords = field(default_factory=dict)
    changed: bool = False


class HealthCheck(ABC):
    """
    Base class of all health checks.

    Subclasses set the class attributes below and implement detect() and
    repair(). affected_pages() and record_details() may be overridden to
    show check specific columns.

    Attributes:
        title: Section title printed before the check runs
        tags: ActionTag values describing the changes repair() may apply
        description: Lines explaining what the check finds and does
        requires: Names of checks that must run before this one
    """

    title: str = ""
    tags: Tuple[ActionTag, ...] = ()
    description: List[str] = []
    requires: Tuple[str, ...] = ()

    def __init__(
        self,
        store: RowStore,
        schema: SchemaRegistry,
        logger: Optional[DoctorLogger] = None,
    ) -> None:
        self.store = store
        self.schema = schema
        self.logger = safe_logger(logger)
        self._sql_log = SqlDumpFile()
        self._changed = False
        self._rootline: Optional[RootlineResolver] = None

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def rootline(self) -> RootlineResolver:
        if self._rootline is None:
            self._rootline = RootlineResolver(self.store, self.schema)
        return self._rootline

    def policy(self, table: str) -> TablePolicy:
        return TablePolicy.for_table(self.schema, table)

    def not_deleted(self, table: str) -> Optional[ColumnElement]:
        """Clause excluding soft-deleted rows, None for tables without soft-delete."""
        field = self.schema.soft_delete_field(table)
        if not field:
            return None
        return self.store.column(table, field) == 0

    def is_deleted(self, row: Row, table: str) -> bool:
        field = self.schema.soft_delete_field(table)
        return bool(field) and int(row.get(field) or 0) == 1

    def fetch(
        self, table: str, fields: Sequence[Optional[str]], *clauses: Optional[ColumnElement]
    ) -> List[Row]:
        """
        Select rows matching all given clauses, ordered by uid.

        None entries in fields and clauses are skipped, so optional
        capability fields can be passed unconditionally.
        """
        return self.store.select_rows(
            table, [name for name in fields if name], where=where_all(*clauses)
        )

    def lookup(self, table: str, fields: Sequence[Optional[str]], uid: int) -> Optional[Row]:
        """Fetch one row by uid, None if it does not exist."""
        try:
            return self.store.get_record(table, [name for name in fields if name], uid)
        except NoSuchRecordError:
            return None

    # ═══════════════════════════════════════════════════════════════════════
    # CHECK IMPLEMENTATION
    # ═══════════════════════════════════════════════════════════════════════

    @abstractmethod
    def detect(self) -> AffectedRecords:
        """
        Find rows violating the check's invariant.

        Returns:
            Table name -> affected rows; tables without findings are absent
        """

    @abstractmethod
    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        """
        Fix affected rows.

        Args:
            io: Console for statement and summary output
            simulate: Render statements only, do not execute them
            affected: Result of a detect() call made just before
        """

    def affected_pages(self, io: ConsoleIO, affected: AffectedRecords) -> None:
        self.output_affected_pages(io, affected)

    def record_details(self, io: ConsoleIO, affected: AffectedRecords) -> None:
        self.output_record_details(io, affected)

    # ═══════════════════════════════════════════════════════════════════════
    # MODES
    # ═══════════════════════════════════════════════════════════════════════

    def header(self, io: ConsoleIO) -> None:
        io.section(self.title)
        io.text(f"Class: {self.name}")
        if self.tags:
            io.text("Actions: " + ", ".join(tag.value for tag in self.tags))
        if self.description:
            io.text(self.description)

    def handle(
        self,
        io: ConsoleIO,
        mode: CheckMode,
        sql_log: Optional[SqlDumpFile] = None,
    ) -> CheckOutcome:
        """
        Run the check in one of the three modes.

        Args:
            io: Console used for all output and prompting
            mode: CheckMode
            sql_log: Dump file receiving executed statements

        Returns:
            CheckOutcome

        Raises:
            PrerequisiteViolationError: If an earlier check left work undone
            UnexpectedAffectedRowsError: If a repair statement misbehaved
        """
        self._sql_log = sql_log or SqlDumpFile()
        self._changed = False
        if self._rootline is not None:
            self._rootline.clear_cache()
        self.logger.log_operation("health_check_start", {"check": self.name, "mode": mode.value})

        try:
            if mode is CheckMode.CHECK:
                outcome = self._check(io)
            elif mode is CheckMode.EXECUTE:
                outcome = self._execute(io)
            else:
                outcome = self._interactive(io)
        except PrerequisiteViolationError as e:
            self.logger.log_error(e, {"check": self.name, "prerequisite": e.prerequisite})
            raise

        self.logger.log_operation(
            "health_check_completed",
            {
                "check": self.name,
                "mode": mode.value,
                "result": outcome.result.name,
                "tables": {table: len(rows) for table, rows in outcome.affected.items()},
                "changed": outcome.changed,
            },
        )
        return outcome

    def _scan(self, io: ConsoleIO) -> AffectedRecords:
        affected = self.detect()
        self.output_main_summary(io, affected)
        return affected

    def _check(self, io: ConsoleIO) -> CheckOutcome:
        affected = self._scan(io)
        result = HealthResult.BROKEN if affected else HealthResult.OK
        return CheckOutcome(result, affected, False)

    def _execute(self, io: ConsoleIO) -> CheckOutcome:
        affected = self._scan(io)
        if not affected:
            return CheckOutcome(HealthResult.OK, affected, False)
        self.repair(io, False, affected)
        affected = self._scan(io)
        result = HealthResult.BROKEN if affected else HealthResult.OK
        return CheckOutcome(result, affected, self._changed)

    def _interactive(self, io: ConsoleIO) -> CheckOutcome:
        state = InteractiveState.SCANNING
        affected: AffectedRecords = {}
        simulate = True

        while True:
            if state is InteractiveState.SCANNING:
                affected = self._scan(io)
                state = InteractiveState.PROMPTING if affected else InteractiveState.DONE

            elif state is InteractiveState.PROMPTING:
                answer = io.ask(PROMPT, "?").lower()
                if answer in ("e", "s"):
                    simulate = answer == "s"
                    state = InteractiveState.EXECUTING
                elif answer == "a":
                    state = InteractiveState.ABORTED
                elif answer == "r":
                    state = InteractiveState.SCANNING
                elif answer == "p":
                    self.output_main_summary(io, affected)
                    self.affected_pages(io, affected)
                elif answer == "d":
                    self.output_main_summary(io, affected)
                    self.record_details(io, affected)
                else:
                    io.text(HELP)

            elif state is InteractiveState.EXECUTING:
                # Rows may have changed while the prompt was waiting
                affected = self.detect()
                self.repair(io, simulate, affected)
                state = InteractiveState.SCANNING

            elif state is InteractiveState.ABORTED:
                return CheckOutcome(HealthResult.ABORTED, affected, self._changed)

            else:
                return CheckOutcome(HealthResult.OK, affected, self._changed)

    # ═══════════════════════════════════════════════════════════════════════
    # OUTPUT
    # ═══════════════════════════════════════════════════════════════════════

    @staticmethod
    def output_main_summary(io: ConsoleIO, affected: AffectedRecords) -> None:
        if not affected:
            io.success("No affected records found")
            return
        lines = [f"Found affected records in {len(affected)} tables:"]
        lines.extend(f'"{table}": {len(rows)} records' for table, rows in affected.items())
        io.warning(lines)

    def output_affected_pages(self, io: ConsoleIO, affected: AffectedRecords) -> None:
        renderer = AffectedPagesRenderer(self.schema, self.rootline)
        io.note("Found records per page:")
        io.table(renderer.get_header(affected), renderer.get_rows(affected))

    def output_record_details(
        self,
        io: ConsoleIO,
        affected: AffectedRecords,
        with_reason: bool = False,
        extra_fields: Sequence[str] = (),
    ) -> None:
        renderer = RecordsRenderer(self.store, self.schema)
        for table, rows in affected.items():
            io.note(f'Table "{table}":')
            io.table(
                renderer.get_header(table, with_reason, extra_fields),
                renderer.get_rows(table, rows, with_reason, extra_fields),
            )

    @staticmethod
    def _before(io: ConsoleIO, simulate: bool, verb: str, table: str) -> None:
        prefix = "[SIMULATE] " if simulate else ""
        io.note(f"{prefix}{verb} records on table: {table}")

    @staticmethod
    def _after(io: ConsoleIO, simulate: bool, verb: str, table: str, count: int) -> None:
        message = f'{verb} "{count}" records from "{table}" table'
        if simulate:
            io.note(f"[SIMULATE] {message}")
        else:
            io.warning(message)

    def _output_sql(self, io: ConsoleIO, simulate: bool, sql: str) -> None:
        if not simulate:
            self._changed = True
            self._sql_log.write(self.name, sql)
            self.logger.log_debug("sql_executed", {"check": self.name, "sql": sql})
        io.text(sql)

    # ═══════════════════════════════════════════════════════════════════════
    # REPAIR HELPERS
    # ═══════════════════════════════════════════════════════════════════════

    def delete_record(self, io: ConsoleIO, simulate: bool, table: str, uid: int) -> None:
        self._output_sql(io, simulate, self.store.delete_record(simulate, table, uid))

    def update_record(
        self, io: ConsoleIO, simulate: bool, table: str, uid: int, values: Dict[str, Any]
    ) -> None:
        self._output_sql(io, simulate, self.store.update_record(simulate, table, uid, values))

    def delete_records(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            self.delete_records_of_table(io, simulate, table, rows)

    def delete_records_of_table(
        self, io: ConsoleIO, simulate: bool, table: str, rows: Sequence[Row]
    ) -> None:
        """Hard delete rows of one table, with a summary before and after."""
        self._before(io, simulate, "Delete", table)
        for row in rows:
            self.delete_record(io, simulate, table, int(row["uid"]))
        self._after(io, simulate, "Deleted", table, len(rows))

    def update_records_of_table(
        self,
        io: ConsoleIO,
        simulate: bool,
        table: str,
        rows: Sequence[Row],
        values: Dict[str, Any],
    ) -> None:
        """Set the same field values on all given rows of one table."""
        self._before(io, simulate, "Update", table)
        for row in rows:
            self.update_record(io, simulate, table, int(row["uid"]), values)
        self._after(io, simulate, "Updated", table, len(rows))

    def soft_or_hard_delete_records(
        self, io: ConsoleIO, simulate: bool, affected: AffectedRecords
    ) -> None:
        for table, rows in affected.items():
            self.soft_or_hard_delete_records_of_table(io, simulate, table, rows)

    def soft_or_hard_delete_records_of_table(
        self, io: ConsoleIO, simulate: bool, table: str, rows: Sequence[Row]
    ) -> None:
        """
        Soft-delete or remove rows of one table.

        Workspace overlay rows and rows of tables without soft-delete field
        are removed, all others get their soft-delete field set.

        Args:
            io: Console
            simulate: Render statements only
            table: Table name
            rows: Affected rows, carrying the workspace id for workspace
                aware tables

        Raises:
            HealthCheckError: If a row of a workspace aware table lacks its
                workspace id
        """
        policy = self.policy(table)
        self._before(io, simulate, "Handle", table)
        update_count = 0
        delete_count = 0
        for row in rows:
            uid = int(row["uid"])
            if policy.action_for(row) is RepairAction.SOFT_DELETE:
                self.update_record(io, simulate, table, uid, policy.soft_delete_values())
                update_count += 1
            else:
                self.delete_record(io, simulate, table, uid)
                delete_count += 1
        if update_count:
            self._after(io, simulate, "Updated", table, update_count)
        if delete_count:
            self._after(io, simulate, "Deleted", table, delete_count)

    # ═══════════════════════════════════════════════════════════════════════
    # ERRORS
    # ═══════════════════════════════════════════════════════════════════════

    def prerequisite_violation(
        self, message: str, prerequisite: Optional[str] = None
    ) -> PrerequisiteViolationError:
        """
        Build the fatal error for a violation an earlier check should have fixed.

        Usage:
            raise self.prerequisite_violation(
                'Record "3" has pid "12" which does not exist.', "ContentPidMissing"
            )
        """
        return PrerequisiteViolationError(message, check=self.name, prerequisite=prerequisite)
