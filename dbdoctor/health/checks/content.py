#!/usr/bin/env python3
"""
content.py
-------------------
Stricter checks on the content table.

Content rows are placed on hierarchy nodes and translated in "connected"
mode: a localized row points to its default language row through the
translation parent field, and to the row it was translated from through
the translation source field. The checks below fix, in this order, rows
on missing or deleted nodes, localized rows whose parent is missing or
deleted or on another node, duplicate translations and broken
translation sources.

Every check does nothing when the schema names no content table or the
content table lacks the fields the check needs.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Dict, List, Optional, Tuple

# --- Local imports ---
from dbdoctor.core.console import ConsoleIO
from dbdoctor.core.exceptions import HealthCheckError
from ..base import ActionTag, AffectedRecords, HealthCheck, Row


# Workspace states of overlay rows
STATE_DEFAULT = 0
STATE_NEW = 1
STATE_DELETE_PLACEHOLDER = 2
STATE_MOVE_POINTER = 4


class _ContentCheck(HealthCheck):
    """Field lookups shared by the content table checks."""

    def content_table(self) -> Optional[str]:
        return self.schema.content_table

    def translation_fields(self) -> Optional[Tuple[str, str, str]]:
        table = self.content_table()
        if table is None:
            return None
        language = self.schema.language_field(table)
        parent = self.schema.translation_parent_field(table)
        if not language or not parent:
            return None
        return table, language, parent

    def source_fields(self) -> Optional[Tuple[str, str, str, str]]:
        fields = self.translation_fields()
        if fields is None:
            return None
        table, language, parent = fields
        source = self.schema.translation_source_field(table)
        if not source:
            return None
        return table, language, parent, source

    def localized(self, table: str, language: str, parent: str) -> list:
        """Clauses selecting translations in connected mode."""
        return [
            self.store.column(table, language) > 0,
            self.store.column(table, parent) > 0,
        ]

    def deleted_only(self, table: str):
        field = self.schema.soft_delete_field(table)
        return self.store.column(table, field) == 1


# ═══════════════════════════════════════════════════════════════════════════
# PID
# ═══════════════════════════════════════════════════════════════════════════


class ContentPidMissing(_ContentCheck):
    title = "Scan for content on not existing pages"
    tags = (ActionTag.REMOVE,)
    description = [
        "Content rows must be located on a hierarchy node that exists. Otherwise they are",
        "not editable and not shown. Rows on missing nodes are removed, soft-deleted ones too.",
    ]
    requires = ("PagesBrokenTree",)

    def detect(self) -> AffectedRecords:
        table = self.content_table()
        if table is None:
            return {}
        hierarchy = self.schema.hierarchy_table
        rows = self.fetch(table, ["uid", "pid"], self.store.column(table, "pid") != 0)
        affected = [row for row in rows if self.lookup(hierarchy, ["uid"], int(row["pid"])) is None]
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class ContentPidDeleted(_ContentCheck):
    title = "Scan for content on soft-deleted pages"
    tags = (ActionTag.SOFT_DELETE, ActionTag.WORKSPACE_REMOVE)
    description = [
        "Content rows that are not soft-deleted must be located on a hierarchy node that is",
        "not soft-deleted either. Affected rows are soft-deleted in live and removed if they",
        "are workspace overlay rows.",
    ]
    requires = ("ContentPidMissing",)

    def detect(self) -> AffectedRecords:
        table = self.content_table()
        if table is None:
            return {}
        hierarchy = self.schema.hierarchy_table
        node_delete = self.schema.soft_delete_field(hierarchy)
        if not node_delete:
            return {}
        rows = self.fetch(
            table,
            ["uid", "pid", self.schema.soft_delete_field(table), self.schema.workspace_id_field(table)],
            self.not_deleted(table),
            self.store.column(table, "pid") > 0,
        )
        affected = []
        for row in rows:
            node = self.lookup(hierarchy, ["uid", node_delete], int(row["pid"]))
            if node is None:
                raise self.prerequisite_violation(
                    f'Record "{row["uid"]}" of table "{table}" has pid "{row["pid"]}", '
                    "but that page does not exist.",
                    "ContentPidMissing",
                )
            if self.is_deleted(node, hierarchy):
                affected.append(row)
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.soft_or_hard_delete_records(io, simulate, affected)


# ═══════════════════════════════════════════════════════════════════════════
# LOCALIZED PARENT
# ═══════════════════════════════════════════════════════════════════════════


class ContentDeletedLocalizedParentExists(_ContentCheck):
    title = "Scan for soft-deleted localized content with missing parent"
    tags = (ActionTag.REMOVE,)
    description = [
        "Soft-deleted localized content rows whose translation parent does not exist",
        "can never be restored. They are removed.",
    ]
    requires = ("ContentPidDeleted",)

    def detect(self) -> AffectedRecords:
        fields = self.translation_fields()
        if fields is None:
            return {}
        table, language, parent = fields
        if not self.schema.soft_delete_field(table):
            return {}
        rows = self.fetch(
            table,
            ["uid", "pid", language, parent],
            self.deleted_only(table),
            *self.localized(table, language, parent),
        )
        affected = [row for row in rows if self.lookup(table, ["uid"], int(row[parent])) is None]
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class ContentLocalizedParentExists(_ContentCheck):
    title = "Scan for localized content with missing parent"
    tags = (ActionTag.REMOVE,)
    description = [
        "Localized content rows in connected mode need their translation parent to exist.",
        "Rows pointing to a missing parent are not shown in the page module and are removed.",
    ]
    requires = ("ContentDeletedLocalizedParentExists",)

    def detect(self) -> AffectedRecords:
        fields = self.translation_fields()
        if fields is None:
            return {}
        table, language, parent = fields
        rows = self.fetch(
            table,
            ["uid", "pid", language, parent],
            self.not_deleted(table),
            *self.localized(table, language, parent),
        )
        affected = [row for row in rows if self.lookup(table, ["uid"], int(row[parent])) is None]
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class ContentLocalizedParentSoftDeleted(_ContentCheck):
    title = "Scan for localized content with soft-deleted parent"
    tags = (ActionTag.SOFT_DELETE, ActionTag.WORKSPACE_REMOVE)
    description = [
        "Localized content rows that are not soft-deleted while their translation parent is",
        "are soft-deleted in live and removed if they are workspace overlay rows.",
    ]
    requires = ("ContentLocalizedParentExists",)

    def detect(self) -> AffectedRecords:
        fields = self.translation_fields()
        if fields is None:
            return {}
        table, language, parent = fields
        delete_field = self.schema.soft_delete_field(table)
        if not delete_field:
            return {}
        rows = self.fetch(
            table,
            ["uid", "pid", language, parent, self.schema.workspace_id_field(table)],
            self.not_deleted(table),
            *self.localized(table, language, parent),
        )
        affected = []
        for row in rows:
            parent_row = self.lookup(table, ["uid", delete_field], int(row[parent]))
            if parent_row is None:
                raise self.prerequisite_violation(
                    f'Record "{row["uid"]}" of table "{table}" has {parent} "{row[parent]}", '
                    "but that record does not exist.",
                    "ContentLocalizedParentExists",
                )
            if self.is_deleted(parent_row, table):
                affected.append(row)
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.soft_or_hard_delete_records(io, simulate, affected)


class ContentDeletedLocalizedParentDifferentPid(_ContentCheck):
    title = "Scan for soft-deleted localized content on a different page than its parent"
    tags = (ActionTag.REMOVE,)
    description = [
        "Soft-deleted localized content rows must be located on the same page as their",
        "translation parent. Affected rows can not be restored sensibly and are removed.",
    ]
    requires = ("ContentDeletedLocalizedParentExists",)

    def detect(self) -> AffectedRecords:
        fields = self.translation_fields()
        if fields is None:
            return {}
        table, language, parent = fields
        if not self.schema.soft_delete_field(table):
            return {}
        rows = self.fetch(
            table,
            ["uid", "pid", language, parent],
            self.deleted_only(table),
            *self.localized(table, language, parent),
        )
        affected = []
        for row in rows:
            parent_row = self.lookup(table, ["uid", "pid"], int(row[parent]))
            if parent_row is None:
                raise self.prerequisite_violation(
                    f'Record "{row["uid"]}" of table "{table}" has {parent} "{row[parent]}", '
                    "but that record does not exist.",
                    "ContentDeletedLocalizedParentExists",
                )
            if int(row["pid"]) != int(parent_row["pid"]):
                affected.append(row)
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class ContentLocalizedParentDifferentPid(_ContentCheck):
    title = "Scan for localized content on a different page than its parent"
    tags = (ActionTag.UPDATE, ActionTag.WORKSPACE_REMOVE)
    description = [
        "Localized content rows must be located on the same page as their translation parent.",
        "Live rows and changed overlay rows are moved to the parent's page. New and moved",
        "overlay rows are removed. Delete placeholders are moved, or removed when the parent",
        "has a move placeholder in the same workspace.",
    ]
    requires = ("ContentLocalizedParentExists",)

    def detect(self) -> AffectedRecords:
        fields = self.translation_fields()
        if fields is None:
            return {}
        table, language, parent = fields
        rows = self.fetch(
            table,
            [
                "uid",
                "pid",
                language,
                parent,
                self.schema.workspace_id_field(table),
                self.schema.workspace_state_field(table),
            ],
            self.not_deleted(table),
            *self.localized(table, language, parent),
        )
        affected = []
        for row in rows:
            parent_row = self.lookup(table, ["uid", "pid"], int(row[parent]))
            if parent_row is None:
                raise self.prerequisite_violation(
                    f'Record "{row["uid"]}" of table "{table}" has {parent} "{row[parent]}", '
                    "but that record does not exist.",
                    "ContentLocalizedParentExists",
                )
            if int(row["pid"]) != int(parent_row["pid"]):
                row["_parent_pid"] = int(parent_row["pid"])
                affected.append(row)
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            wsid = self.schema.workspace_id_field(table)
            state = self.schema.workspace_state_field(table)
            self._before(io, simulate, "Handle", table)
            update_count = 0
            delete_count = 0
            for row in rows:
                uid = int(row["uid"])
                if self._should_move(table, row, wsid, state):
                    self.update_record(io, simulate, table, uid, {"pid": row["_parent_pid"]})
                    update_count += 1
                else:
                    self.delete_record(io, simulate, table, uid)
                    delete_count += 1
            if update_count:
                self._after(io, simulate, "Updated", table, update_count)
            if delete_count:
                self._after(io, simulate, "Deleted", table, delete_count)

    def _should_move(self, table: str, row: Row, wsid: Optional[str], state: Optional[str]) -> bool:
        """
        True if the row is moved to its parent's page, False if it is removed.

        Raises:
            HealthCheckError: On a workspace state this repair does not know
        """
        if not wsid or int(row[wsid]) == 0:
            return True
        row_state = int(row[state])
        if row_state == STATE_DEFAULT:
            return True
        if row_state in (STATE_NEW, STATE_MOVE_POINTER):
            return False
        if row_state == STATE_DELETE_PLACEHOLDER:
            return not self._has_default_language_move_placeholder(table, row, wsid, state)
        raise HealthCheckError(
            f'Unexpected workspace state "{row_state}" on record "{row["uid"]}" of table "{table}"'
        )

    def _has_default_language_move_placeholder(
        self, table: str, row: Row, wsid: str, state: str
    ) -> bool:
        language = self.schema.language_field(table)
        parent = self.schema.translation_parent_field(table)
        origin = self.schema.workspace_origin_field(table)
        placeholders = self.fetch(
            table,
            ["uid"],
            self.store.column(table, language) == 0,
            self.store.column(table, wsid) == int(row[wsid]),
            self.store.column(table, state) == STATE_MOVE_POINTER,
            self.store.column(table, origin) == int(row[parent]),
        )
        return bool(placeholders)


class ContentLocalizedDuplicates(_ContentCheck):
    title = "Scan for duplicate localized content"
    tags = (ActionTag.SOFT_DELETE,)
    description = [
        "There must be only one localized content row per translation parent and language.",
        "Having more leads to various issues in frontend and backend. This check keeps the",
        "row with the lowest uid and soft-deletes the others.",
    ]
    requires = ("ContentLocalizedParentDifferentPid",)

    def detect(self) -> AffectedRecords:
        fields = self.translation_fields()
        if fields is None:
            return {}
        table, language, parent = fields
        wsid = self.schema.workspace_id_field(table)
        rows = self.fetch(
            table,
            ["uid", "pid", language, parent, wsid],
            self.not_deleted(table),
            self.store.column(table, wsid) == 0 if wsid else None,
            *self.localized(table, language, parent),
        )
        groups: Dict[Tuple[int, int], List[Row]] = {}
        for row in rows:
            groups.setdefault((int(row[language]), int(row[parent])), []).append(row)
        affected = []
        for localizations in groups.values():
            # Rows arrive ordered by uid, the first one is kept
            affected.extend(localizations[1:])
        affected.sort(key=lambda row: int(row["uid"]))
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.soft_or_hard_delete_records(io, simulate, affected)


# ═══════════════════════════════════════════════════════════════════════════
# LOCALIZATION SOURCE
# ═══════════════════════════════════════════════════════════════════════════


class ContentLocalizationSourceExists(_ContentCheck):
    title = "Scan for localized content with missing localization source"
    tags = (ActionTag.UPDATE,)
    description = [
        "The translation source of a localized content row must exist. Broken sources are",
        "set to the translation parent, or to zero if there is none.",
    ]
    requires = ("LanguageLessThanOneHasZeroLanguageSource", "ContentLocalizedDuplicates")

    def detect(self) -> AffectedRecords:
        fields = self.source_fields()
        if fields is None:
            return {}
        table, language, parent, source = fields
        rows = self.fetch(
            table,
            ["uid", "pid", language, parent, source],
            self.store.column(table, language) > 0,
            self.store.column(table, source) > 0,
        )
        affected = [row for row in rows if self.lookup(table, ["uid"], int(row[source])) is None]
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            parent = self.schema.translation_parent_field(table)
            source = self.schema.translation_source_field(table)
            self._before(io, simulate, "Update", table)
            for row in rows:
                new_source = max(int(row[parent]), 0)
                self.update_record(io, simulate, table, int(row["uid"]), {source: new_source})
            self._after(io, simulate, "Updated", table, len(rows))


class ContentLocalizationSourceSetWithParent(_ContentCheck):
    title = "Scan for localized content with parent but without localization source"
    tags = (ActionTag.UPDATE,)
    description = [
        "When the translation parent of a localized content row is set, its translation",
        "source must be set, too. Affected rows get the translation parent as source.",
    ]
    requires = ("ContentLocalizationSourceExists",)

    def detect(self) -> AffectedRecords:
        fields = self.source_fields()
        if fields is None:
            return {}
        table, language, parent, source = fields
        rows = self.fetch(
            table,
            ["uid", "pid", language, parent, source],
            self.store.column(table, source) == 0,
            *self.localized(table, language, parent),
        )
        return {table: rows} if rows else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            parent = self.schema.translation_parent_field(table)
            source = self.schema.translation_source_field(table)
            self._before(io, simulate, "Update", table)
            for row in rows:
                self.update_record(io, simulate, table, int(row["uid"]), {source: int(row[parent])})
            self._after(io, simulate, "Updated", table, len(rows))


class ContentLocalizationSourceLogicWithParent(_ContentCheck):
    title = "Scan for localized content with localization source not matching parent"
    tags = (ActionTag.UPDATE,)
    description = [
        "A localized content row may be translated from another translation instead of the",
        "default language row, but that source must belong to the same translation parent.",
        "Rows whose source belongs to another parent get the translation parent as source.",
    ]
    requires = ("ContentLocalizationSourceExists",)

    def detect(self) -> AffectedRecords:
        fields = self.source_fields()
        if fields is None:
            return {}
        table, language, parent, source = fields
        rows = self.fetch(
            table,
            ["uid", "pid", language, parent, source],
            self.store.column(table, source) > 0,
            self.store.column(table, source) != self.store.column(table, parent),
            *self.localized(table, language, parent),
        )
        affected = []
        for row in rows:
            source_row = self.lookup(table, ["uid", parent], int(row[source]))
            if source_row is None:
                raise self.prerequisite_violation(
                    f'Record "{row["uid"]}" of table "{table}" has {source} "{row[source]}", '
                    "but that record does not exist.",
                    "ContentLocalizationSourceExists",
                )
            if int(source_row[parent]) != int(row[parent]):
                affected.append(row)
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            parent = self.schema.translation_parent_field(table)
            source = self.schema.translation_source_field(table)
            self._before(io, simulate, "Update", table)
            for row in rows:
                self.update_record(io, simulate, table, int(row["uid"]), {source: int(row[parent])})
            self._after(io, simulate, "Updated", table, len(rows))
