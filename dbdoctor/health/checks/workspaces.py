#!/usr/bin/env python3
"""
workspaces.py
-------------------
Checks on workspace overlay rows and on the delete flag.

Overlay rows carry a workspace id and a workspace state. They are never
soft-deleted: discarding an overlay removes the row. These checks run
first because every later check relies on overlay rows being sane.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import List

# --- Local imports ---
from dbdoctor.core.console import ConsoleIO
from dbdoctor.core.exceptions import NoSuchTableError
from dbdoctor.database.schema import Capability
from ..base import ActionTag, AffectedRecords, HealthCheck


class WorkspacesNotLoadedRecordsDangling(HealthCheck):
    title = "Scan for workspace records when workspaces are disabled"
    tags = (ActionTag.WORKSPACE_REMOVE,)
    description = [
        "With workspaces disabled there must be no workspace overlay rows (workspace id != 0).",
        "This check removes all of them. Think twice: if workspaces are in use, enable them",
        "in the schema file first, otherwise all existing overlay rows are lost!",
    ]

    def detect(self) -> AffectedRecords:
        if self.schema.workspaces_enabled:
            return {}
        affected: AffectedRecords = {}
        for table in self.schema.tables_with(Capability.WORKSPACE):
            wsid = self.schema.workspace_id_field(table)
            rows = self.fetch(table, ["uid", "pid", wsid], self.store.column(table, wsid) != 0)
            if rows:
                affected[table] = rows
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class WorkspacesRecordsOfDeletedWorkspaces(HealthCheck):
    title = "Scan for workspace records of deleted workspaces"
    tags = (ActionTag.WORKSPACE_REMOVE,)
    description = [
        "Deleting a workspace discards all its overlay rows. When this goes wrong, overlay",
        "rows of workspaces that are soft-deleted or gone are left behind. They are removed.",
    ]
    requires = ("WorkspacesNotLoadedRecordsDangling",)

    def detect(self) -> AffectedRecords:
        if not self.schema.workspaces_enabled:
            return {}
        allowed = self._allowed_workspaces()
        affected: AffectedRecords = {}
        for table in self.schema.tables_with(Capability.WORKSPACE):
            wsid = self.schema.workspace_id_field(table)
            rows = self.fetch(
                table, ["uid", "pid", wsid], self.store.column(table, wsid).notin_(allowed)
            )
            if rows:
                affected[table] = rows
        return affected

    def _allowed_workspaces(self) -> List[int]:
        """Live (0) plus all workspaces that exist and are not soft-deleted."""
        table = self.schema.workspace_table
        try:
            rows = self.fetch(table, ["uid"], self.not_deleted(table))
        except NoSuchTableError:
            rows = []
        return [0] + [int(row["uid"]) for row in rows]

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class DeleteFlagZeroOrOne(HealthCheck):
    title = 'Scan for rows with delete field not "0" or "1"'
    tags = (ActionTag.SOFT_DELETE,)
    description = [
        "Soft-delete fields must be either zero (0) or one (1): readers test for equality with zero.",
        "This scan finds rows with a different value and sets them to one.",
    ]

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        for table in self.schema.tables_with(Capability.SOFT_DELETE):
            field = self.schema.soft_delete_field(table)
            rows = self.fetch(
                table, ["uid", "pid", field], self.store.column(table, field).notin_([0, 1])
            )
            if rows:
                affected[table] = rows
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            field = self.schema.soft_delete_field(table)
            self.update_records_of_table(io, simulate, table, rows, {field: 1})


class WorkspacesSoftDeletedRecords(HealthCheck):
    title = "Scan for soft-deleted workspace records"
    tags = (ActionTag.WORKSPACE_REMOVE,)
    description = [
        "Workspace overlay rows are not soft-delete aware: discarding a change removes the row.",
        "This check finds overlay rows having the delete flag set and removes them.",
    ]
    requires = ("DeleteFlagZeroOrOne",)

    def detect(self) -> AffectedRecords:
        if not self.schema.workspaces_enabled:
            return {}
        affected: AffectedRecords = {}
        for table in self.schema.tables_with(Capability.WORKSPACE):
            delete_field = self.schema.soft_delete_field(table)
            if not delete_field:
                continue
            wsid = self.schema.workspace_id_field(table)
            rows = self.fetch(
                table,
                ["uid", "pid", wsid, delete_field],
                self.store.column(table, wsid) != 0,
                self.store.column(table, delete_field) == 1,
            )
            if rows:
                affected[table] = rows
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class WorkspacesPidNegative(HealthCheck):
    title = "Scan for records with negative pid"
    tags = (ActionTag.REMOVE,)
    description = [
        "Records must have a pid equal or greater than zero (0). Old overlay rows",
        "were placed on pid -1, this check removes leftovers.",
    ]

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        for table in self.schema.tables():
            rows = self.fetch(table, ["uid", "pid"], self.store.column(table, "pid") < 0)
            if rows:
                affected[table] = rows
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class WorkspacesStateNotZeroInLive(HealthCheck):
    title = "Scan for live records with workspace state not zero"
    tags = (ActionTag.REMOVE, ActionTag.SOFT_DELETE, ActionTag.UPDATE)
    description = [
        "Live rows (workspace id 0) must have workspace state zero (0).",
        "Rows that are soft-deleted already are removed. Rows with a negative state are shown",
        "to visitors, their state is reset to zero. All others are soft-deleted with state",
        "reset to zero, or removed if the table has no soft-delete field.",
    ]
    requires = ("WorkspacesSoftDeletedRecords",)

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        for table in self.schema.tables_with(Capability.WORKSPACE):
            wsid = self.schema.workspace_id_field(table)
            state = self.schema.workspace_state_field(table)
            rows = self.fetch(
                table,
                ["uid", "pid", wsid, state, self.schema.soft_delete_field(table)],
                self.store.column(table, wsid) == 0,
                self.store.column(table, state) != 0,
            )
            if rows:
                affected[table] = rows
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            delete_field = self.schema.soft_delete_field(table)
            state = self.schema.workspace_state_field(table)
            self._before(io, simulate, "Handle", table)
            update_count = 0
            delete_count = 0
            for row in rows:
                uid = int(row["uid"])
                if self.is_deleted(row, table):
                    self.delete_record(io, simulate, table, uid)
                    delete_count += 1
                elif int(row[state]) < 0:
                    self.update_record(io, simulate, table, uid, {state: 0})
                    update_count += 1
                elif delete_field:
                    self.update_record(io, simulate, table, uid, {delete_field: 1, state: 0})
                    update_count += 1
                else:
                    self.delete_record(io, simulate, table, uid)
                    delete_count += 1
            if update_count:
                self._after(io, simulate, "Updated", table, update_count)
            if delete_count:
                self._after(io, simulate, "Deleted", table, delete_count)


class WorkspacesStateThree(HealthCheck):
    title = "Scan for records with workspace state 3"
    tags = (ActionTag.WORKSPACE_REMOVE,)
    description = [
        "Workspace state 3 (move placeholder pointer) is obsolete. It used to be paired",
        "with a state 4 row. Left over rows with state 3 are removed.",
    ]

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        for table in self.schema.tables_with(Capability.WORKSPACE):
            wsid = self.schema.workspace_id_field(table)
            state = self.schema.workspace_state_field(table)
            rows = self.fetch(
                table, ["uid", "pid", wsid, state], self.store.column(table, state) == 3
            )
            if rows:
                affected[table] = rows
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)
