#!/usr/bin/env python3
"""
tables.py
-------------------
Generic checks over all declared tables except the hierarchy table:
rows on missing or deleted nodes and broken translation parents.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Any, Dict

# --- Third party imports ---
from sqlalchemy import or_

# --- Local imports ---
from dbdoctor.core.console import ConsoleIO
from dbdoctor.database.repair_policy import RepairAction
from dbdoctor.database.schema import Capability
from ..base import ActionTag, AffectedRecords, HealthCheck, Row


class TablesPidMissing(HealthCheck):
    title = "Scan for records on not existing pages"
    tags = (ActionTag.REMOVE,)
    description = [
        "Records have a pid pointing to a single hierarchy node. That node must exist.",
        "Records on nodes that do not exist anymore are removed, soft-deleted ones too.",
    ]
    requires = ("PagesBrokenTree",)

    def detect(self) -> AffectedRecords:
        hierarchy = self.schema.hierarchy_table
        ignore = (hierarchy, self.schema.workspace_table)
        affected: AffectedRecords = {}
        for table in self.schema.tables(ignore=ignore):
            rows = self.fetch(table, ["uid", "pid"], self.store.column(table, "pid") != 0)
            missing = [row for row in rows if self.lookup(hierarchy, ["uid"], int(row["pid"])) is None]
            if missing:
                affected[table] = missing
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class TablesPidDeleted(HealthCheck):
    title = "Scan for not-deleted records on pages set to deleted"
    tags = (ActionTag.SOFT_DELETE, ActionTag.REMOVE, ActionTag.WORKSPACE_REMOVE)
    description = [
        "This check finds records that are not soft-deleted while the hierarchy node they",
        "are located on is. Affected records are soft-deleted if possible, or removed.",
    ]
    requires = ("TablesPidMissing",)

    def detect(self) -> AffectedRecords:
        hierarchy = self.schema.hierarchy_table
        node_delete = self.schema.soft_delete_field(hierarchy)
        if not node_delete:
            return {}
        ignore = (hierarchy, self.schema.content_table)
        affected: AffectedRecords = {}
        for table in self.schema.tables(ignore=ignore):
            rows = self.fetch(
                table,
                ["uid", "pid", self.schema.workspace_id_field(table)],
                self.not_deleted(table),
                self.store.column(table, "pid") > 0,
            )
            for row in rows:
                node = self.lookup(hierarchy, ["uid", node_delete], int(row["pid"]))
                if node is None:
                    raise self.prerequisite_violation(
                        f'Record "{row["uid"]}" of table "{table}" has pid "{row["pid"]}", '
                        "but that page does not exist.",
                        "TablesPidMissing",
                    )
                if self.is_deleted(node, hierarchy):
                    affected.setdefault(table, []).append(row)
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.soft_or_hard_delete_records(io, simulate, affected)


class TablesTranslatedParentSelf(HealthCheck):
    title = "Scan for record translations pointing to self"
    tags = (ActionTag.SOFT_DELETE, ActionTag.WORKSPACE_REMOVE, ActionTag.RISKY)
    description = [
        "The translation parent of a localized record should point to the default language",
        "record. This check finds records that are not soft-deleted and point to their own uid.",
        "They are soft-deleted in live and removed if they are workspace overlay records.",
        "This change is risky: depending on configuration such records may still be shown",
        "in the frontend and will disappear.",
    ]

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        hierarchy = (self.schema.hierarchy_table,)
        for table in self.schema.tables_with(Capability.TRANSLATION_PARENT, ignore=hierarchy):
            language = self.schema.language_field(table)
            parent = self.schema.translation_parent_field(table)
            rows = self.fetch(
                table,
                ["uid", "pid", language, parent, self.schema.workspace_id_field(table)],
                self.not_deleted(table),
                self.store.column(table, language) > 0,
                self.store.column(table, "uid") == self.store.column(table, parent),
            )
            if rows:
                affected[table] = rows
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.soft_or_hard_delete_records(io, simulate, affected)


class TablesTranslatedLanguageParentMissing(HealthCheck):
    title = "Scan for record translations with missing parent"
    tags = (ActionTag.REMOVE,)
    description = [
        "The translation parent field of a localized record points to a default language",
        "record. This check verifies that record exists. Translations without parent,",
        "soft-deleted ones included, are removed.",
    ]
    requires = ("TablesTranslatedParentSelf",)

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        hierarchy = (self.schema.hierarchy_table,)
        for table in self.schema.tables_with(Capability.TRANSLATION_PARENT, ignore=hierarchy):
            language = self.schema.language_field(table)
            parent = self.schema.translation_parent_field(table)
            rows = self.fetch(
                table,
                ["uid", "pid", language, parent],
                self.store.column(table, language) > 0,
                self.store.column(table, parent) > 0,
            )
            missing = [row for row in rows if self.lookup(table, ["uid"], int(row[parent])) is None]
            if missing:
                affected[table] = missing
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class TablesTranslatedLanguageParentDeleted(HealthCheck):
    title = "Scan for not-deleted record translations with deleted parent"
    tags = (ActionTag.SOFT_DELETE, ActionTag.WORKSPACE_REMOVE)
    description = [
        "This check finds localized records that are not soft-deleted while their translation",
        "parent is. They are soft-deleted in live and removed if in workspaces.",
    ]
    requires = ("TablesTranslatedLanguageParentMissing",)

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        hierarchy = (self.schema.hierarchy_table,)
        for table in self.schema.tables_with(Capability.TRANSLATION_PARENT, ignore=hierarchy):
            delete_field = self.schema.soft_delete_field(table)
            if not delete_field:
                continue
            language = self.schema.language_field(table)
            parent = self.schema.translation_parent_field(table)
            rows = self.fetch(
                table,
                ["uid", "pid", language, parent, self.schema.workspace_id_field(table)],
                self.not_deleted(table),
                self.store.column(table, language) > 0,
                self.store.column(table, parent) > 0,
            )
            for row in rows:
                parent_row = self.lookup(table, ["uid", "pid", delete_field], int(row[parent]))
                if parent_row is None:
                    raise self.prerequisite_violation(
                        f'Record "{row["uid"]}" of table "{table}" has {parent} "{row[parent]}", '
                        "but that record does not exist.",
                        "TablesTranslatedLanguageParentMissing",
                    )
                if self.is_deleted(parent_row, table):
                    affected.setdefault(table, []).append(row)
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.soft_or_hard_delete_records(io, simulate, affected)


class TablesTranslatedLanguageParentDifferentPid(HealthCheck):
    title = "Scan for record translations on wrong pid"
    tags = (ActionTag.UPDATE, ActionTag.SOFT_DELETE, ActionTag.REMOVE, ActionTag.WORKSPACE_REMOVE)
    description = [
        "Localized records must be located on the same pid as their translation parent.",
        "If a translation of the same parent in the same language exists on the target pid",
        "already, the affected record is soft-deleted (and moved) or removed. Otherwise it is",
        "moved and hidden, so it does not show up in the frontend unexpectedly. Tables without",
        "hidden field get the record soft-deleted (and moved) or removed.",
    ]
    requires = ("TablesTranslatedLanguageParentMissing",)

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        hierarchy = (self.schema.hierarchy_table,)
        for table in self.schema.tables_with(Capability.TRANSLATION_PARENT, ignore=hierarchy):
            language = self.schema.language_field(table)
            parent = self.schema.translation_parent_field(table)
            rows = self.fetch(
                table,
                ["uid", "pid", language, parent, self.schema.workspace_id_field(table)],
                self.not_deleted(table),
                self.store.column(table, language) > 0,
                self.store.column(table, parent) > 0,
            )
            for row in rows:
                parent_row = self.lookup(table, ["uid", "pid"], int(row[parent]))
                if parent_row is None:
                    raise self.prerequisite_violation(
                        f'Record "{row["uid"]}" of table "{table}" has {parent} "{row[parent]}", '
                        "but that record does not exist.",
                        "TablesTranslatedLanguageParentMissing",
                    )
                if int(parent_row["pid"]) != int(row["pid"]):
                    row["_parent_pid"] = int(parent_row["pid"])
                    affected.setdefault(table, []).append(row)
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            policy = self.policy(table)
            self._before(io, simulate, "Handle", table)
            update_count = 0
            delete_count = 0
            for row in rows:
                uid = int(row["uid"])
                values: Dict[str, Any] = {"pid": row["_parent_pid"]}
                if not self._has_translation_on_target(table, row) and policy.hidden_aware:
                    values[policy.hidden_field] = 1
                elif policy.action_for(row) is RepairAction.SOFT_DELETE:
                    values.update(policy.soft_delete_values())
                else:
                    self.delete_record(io, simulate, table, uid)
                    delete_count += 1
                    continue
                self.update_record(io, simulate, table, uid, values)
                update_count += 1
            if update_count:
                self._after(io, simulate, "Updated", table, update_count)
            if delete_count:
                self._after(io, simulate, "Deleted", table, delete_count)

    def _has_translation_on_target(self, table: str, row: Row) -> bool:
        """True if a translation of the same parent and language exists on the target pid."""
        language = self.schema.language_field(table)
        parent = self.schema.translation_parent_field(table)
        wsid = self.schema.workspace_id_field(table)
        workspace_clause = None
        if wsid:
            live = self.store.column(table, wsid) == 0
            row_workspace = int(row[wsid] or 0)
            if row_workspace > 0:
                workspace_clause = or_(live, self.store.column(table, wsid) == row_workspace)
            else:
                workspace_clause = live
        existing = self.fetch(
            table,
            ["uid"],
            self.not_deleted(table),
            self.store.column(table, "pid") == row["_parent_pid"],
            self.store.column(table, language) == int(row[language]),
            self.store.column(table, parent) == int(row[parent]),
            workspace_clause,
        )
        return bool(existing)
