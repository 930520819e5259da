#!/usr/bin/env python3
"""
runner.py
-------------------
Runs the check catalogue in order and aggregates the results.

The runner verifies the schema metadata against the database first, then
hands every check the same store, schema, console and SQL dump file. Check
results are OR-ed into the run result; an ABORTED check stops the run.

Usage:
    runner = HealthRunner(store, schema, ConsoleIO(), logger, sql_log)
    report = runner.run(CheckMode.CHECK)
    sys.exit(int(report.result))
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field
from typing import Dict, Optional

# --- Local imports ---
from dbdoctor.core.console import ConsoleIO
from dbdoctor.core.exceptions import SchemaMismatchError
from dbdoctor.core.logging_manager import DoctorLogger, safe_logger
from dbdoctor.database.row_store import RowStore
from dbdoctor.database.schema import SchemaRegistry
from .base import CheckMode, CheckOutcome, HealthResult
from .registry import CheckRegistry
from .sql_log import SqlDumpFile


@dataclass
class HealthReport:
    """
    Aggregated result of a run.

    Attributes:
        result: OR of all check results
        outcomes: Check name -> CheckOutcome, in run order
    """

    result: HealthResult = HealthResult.OK
    outcomes: Dict[str, CheckOutcome] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return any(outcome.changed for outcome in self.outcomes.values())

    def summary(self) -> Dict[str, Dict[str, int]]:
        """Check name -> table -> number of affected rows, for checks with findings."""
        return {
            name: {table: len(rows) for table, rows in outcome.affected.items()}
            for name, outcome in self.outcomes.items()
            if outcome.affected
        }


class HealthRunner:
    """
    Sequential orchestrator of all registered checks.

    Attributes:
        store: Row store shared by all checks
        schema: Schema registry shared by all checks
        io: Console
        logger: Logger
        sql_log: SQL dump file receiving executed statements
        registry: Checks to run
    """

    def __init__(
        self,
        store: RowStore,
        schema: SchemaRegistry,
        io: ConsoleIO,
        logger: Optional[DoctorLogger] = None,
        sql_log: Optional[SqlDumpFile] = None,
        registry: Optional[CheckRegistry] = None,
    ) -> None:
        self.store = store
        self.schema = schema
        self.io = io
        self.logger = safe_logger(logger)
        self.sql_log = sql_log or SqlDumpFile()
        self.registry = registry or CheckRegistry.default()

    def verify_schema(self) -> None:
        """
        Raises:
            SchemaMismatchError: If declared tables or fields are missing
        """
        missing = self.schema.verify(self.store)
        if missing:
            raise SchemaMismatchError(missing)

    def run(self, mode: CheckMode) -> HealthReport:
        """
        Run all checks in order.

        Args:
            mode: CheckMode applied to every check

        Returns:
            HealthReport

        Raises:
            SchemaMismatchError: If the schema does not match the database
            PrerequisiteViolationError: If a check met a violation an
                earlier check should have fixed
            UnexpectedAffectedRowsError: If a repair statement misbehaved
        """
        self.verify_schema()
        self.logger.log_operation(
            "health_run_start", {"mode": mode.value, "checks": len(self.registry)}
        )

        report = HealthReport()
        for check_class in self.registry:
            check = check_class(self.store, self.schema, self.logger)
            check.header(self.io)
            outcome = check.handle(self.io, mode, self.sql_log)
            report.outcomes[check.name] = outcome
            report.result |= outcome.result
            if outcome.result & HealthResult.ABORTED:
                self.logger.log_info("health_run_aborted", {"check": check.name})
                break

        if report.changed:
            self.io.note(
                [
                    "Records have been changed. Caches and indexes built from these tables",
                    "may be outdated now and should be rebuilt.",
                ]
            )

        self.logger.log_operation(
            "health_run_completed",
            {"mode": mode.value, "result": int(report.result), "summary": report.summary()},
        )
        return report
