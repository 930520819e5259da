#!/usr/bin/env python3
"""
inline.py
-------------------
Checks on inline children: rows owned by a parent row through a
parent-uid field, optionally together with a field naming the parent table.

Each check comes in two flavours. The "ForeignTableField" flavour handles
relations whose child rows name their parent table themselves, so one
child table may hang below parents in several tables. The
"NoForeignTableField" flavour handles relations with a fixed parent table.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Iterator, List, Optional, Set, Tuple

# --- Local imports ---
from dbdoctor.core.console import ConsoleIO
from dbdoctor.database.schema import InlineRelation
from dbdoctor.renderers import REASON_KEY
from ..base import ActionTag, AffectedRecords, HealthCheck, Row


class _InlineCheck(HealthCheck):
    """Relation iteration and row bookkeeping shared by all inline checks."""

    with_table_field: bool = True

    def relations(self) -> Iterator[InlineRelation]:
        return self.schema.inline_children(with_table_field=self.with_table_field)

    @staticmethod
    def parent_table_of(relation: InlineRelation, row: Row) -> str:
        if relation.parent_table_field:
            return str(row.get(relation.parent_table_field) or "")
        return relation.parent_table

    def usable_parent_table(self, table: str) -> bool:
        """Parent table is declared in the schema and exists in the database."""
        return bool(table) and self.schema.has_table(table) and self.store.table_exists(table)

    @staticmethod
    def relation_fields(relation: InlineRelation) -> List[str]:
        fields = [relation.parent_uid_field]
        if relation.parent_table_field:
            fields.append(relation.parent_table_field)
        return fields

    @staticmethod
    def add(
        affected: AffectedRecords,
        seen: Set[Tuple[str, int]],
        table: str,
        row: Row,
        relation: InlineRelation,
    ) -> None:
        """Add a row once, even if several relations flag it."""
        key = (table, int(row["uid"]))
        if key in seen:
            return
        seen.add(key)
        row["_relation_fields"] = _InlineCheck.relation_fields(relation)
        affected.setdefault(table, []).append(row)

    @staticmethod
    def details_fields(rows: List[Row]) -> List[str]:
        """Relation fields of all rows, in first-seen order."""
        fields: List[str] = []
        for row in rows:
            for name in row.get("_relation_fields", []):
                if name not in fields:
                    fields.append(name)
        return fields

    def record_details(self, io: ConsoleIO, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            self.output_record_details(
                io,
                {table: rows},
                with_reason=True,
                extra_fields=self.details_fields(rows),
            )


# ═══════════════════════════════════════════════════════════════════════════
# PARENT MISSING
# ═══════════════════════════════════════════════════════════════════════════


class _ParentMissing(_InlineCheck):
    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        seen: Set[Tuple[str, int]] = set()
        for relation in self.relations():
            child = relation.child_table
            fields = ["uid", "pid"] + self.relation_fields(relation)
            if relation.parent_table_field:
                rows = self.fetch(child, fields)
            elif self.store.table_exists(relation.parent_table):
                rows = self.fetch(
                    child, fields, self.store.column(child, relation.parent_uid_field) > 0
                )
            else:
                continue
            for row in rows:
                reason = self._broken_reason(relation, row)
                if reason:
                    row[REASON_KEY] = reason
                    self.add(affected, seen, child, row, relation)
        return affected

    def _broken_reason(self, relation: InlineRelation, row: Row) -> Optional[str]:
        parent_table = self.parent_table_of(relation, row)
        parent_uid = int(row[relation.parent_uid_field] or 0)
        if parent_uid <= 0 or not self.usable_parent_table(parent_table):
            return "Invalid parent"
        if self.lookup(parent_table, ["uid"], parent_uid) is None:
            return "Missing parent"
        return None

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class InlineForeignFieldChildrenParentMissing(_ParentMissing):
    title = "Scan for inline foreign field records with missing parent"
    tags = (ActionTag.REMOVE,)
    description = [
        "Inline children name their parent table and point to a parent uid. That parent",
        "must exist. Children with an invalid or missing parent are removed.",
    ]
    with_table_field = True


class InlineForeignFieldNoForeignTableFieldChildrenParentMissing(_ParentMissing):
    title = "Scan for inline foreign field records without table field with missing parent"
    tags = (ActionTag.REMOVE,)
    description = [
        "Inline children of relations with a fixed parent table point to a parent uid.",
        "That parent must exist. Children with a missing parent are removed.",
    ]
    with_table_field = False
    requires = ("InlineForeignFieldChildrenParentMissing",)


# ═══════════════════════════════════════════════════════════════════════════
# PARENT DIFFERENT PID
# ═══════════════════════════════════════════════════════════════════════════


class _ParentDifferentPid(_InlineCheck):
    """
    Children must be stored on the pid of their parent.

    Children of hierarchy rows are stored on the hierarchy row itself, so
    their pid must equal the parent uid. Translated children of hierarchy
    rows are skipped.
    """

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        seen: Set[Tuple[str, int]] = set()
        for relation in self.relations():
            child = relation.child_table
            if not relation.parent_table_field and not self.usable_parent_table(relation.parent_table):
                continue
            child_language = self.schema.language_field(child)
            rows = self.fetch(
                child,
                ["uid", "pid", child_language] + self.relation_fields(relation),
                self.store.column(child, relation.parent_uid_field) > 0,
            )
            for row in rows:
                target = self._target_pid(relation, row, child_language)
                if target is None or target == int(row["pid"]):
                    continue
                row[REASON_KEY] = f"Parent record pid {target}"
                row["_target_pid"] = target
                self.add(affected, seen, child, row, relation)
        return affected

    def _target_pid(
        self, relation: InlineRelation, row: Row, child_language: Optional[str]
    ) -> Optional[int]:
        parent_table = self.parent_table_of(relation, row)
        if not self.usable_parent_table(parent_table):
            return None
        parent_uid = int(row[relation.parent_uid_field])
        if parent_table == self.schema.hierarchy_table:
            if child_language and int(row[child_language] or 0) != 0:
                return None
            return parent_uid
        parent_row = self.lookup(parent_table, ["uid", "pid"], parent_uid)
        # Missing parents are left to the parent missing checks
        if parent_row is None:
            return None
        return int(parent_row["pid"])

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            self._before(io, simulate, "Update", table)
            for row in rows:
                self.update_record(io, simulate, table, int(row["uid"]), {"pid": row["_target_pid"]})
            self._after(io, simulate, "Updated", table, len(rows))


class InlineForeignFieldChildrenParentDifferentPid(_ParentDifferentPid):
    title = "Scan for inline foreign field records on a different pid than their parent"
    tags = (ActionTag.UPDATE,)
    description = [
        "Inline children must be located on the same pid as their parent. Default language",
        "children of hierarchy rows must be located on the parent row itself. Affected",
        "children are moved to the pid of their parent.",
    ]
    with_table_field = True
    requires = ("InlineForeignFieldChildrenParentMissing",)


class InlineForeignFieldNoForeignTableFieldChildrenParentDifferentPid(_ParentDifferentPid):
    title = "Scan for inline foreign field records without table field on a different pid than their parent"
    tags = (ActionTag.UPDATE,)
    description = [
        "Inline children of relations with a fixed parent table must be located on the same",
        "pid as their parent. Affected children are moved to the pid of their parent.",
    ]
    with_table_field = False
    requires = ("InlineForeignFieldNoForeignTableFieldChildrenParentMissing",)


# ═══════════════════════════════════════════════════════════════════════════
# PARENT DELETED
# ═══════════════════════════════════════════════════════════════════════════


class _ParentDeleted(_InlineCheck):
    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        seen: Set[Tuple[str, int]] = set()
        for relation in self.relations():
            child = relation.child_table
            if not self.schema.soft_delete_field(child):
                continue
            if not relation.parent_table_field and not self._soft_delete_parent(relation.parent_table):
                continue
            rows = self.fetch(
                child,
                ["uid", "pid", self.schema.workspace_id_field(child)] + self.relation_fields(relation),
                self.not_deleted(child),
                self.store.column(child, relation.parent_uid_field) > 0,
            )
            for row in rows:
                parent_table = self.parent_table_of(relation, row)
                if not self._soft_delete_parent(parent_table):
                    continue
                parent_delete = self.schema.soft_delete_field(parent_table)
                parent_row = self.lookup(
                    parent_table, ["uid", parent_delete], int(row[relation.parent_uid_field])
                )
                # Missing parents are left to the parent missing checks
                if parent_row is not None and self.is_deleted(parent_row, parent_table):
                    row[REASON_KEY] = "Parent deleted"
                    self.add(affected, seen, child, row, relation)
        return affected

    def _soft_delete_parent(self, table: str) -> bool:
        return self.usable_parent_table(table) and bool(self.schema.soft_delete_field(table))

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.soft_or_hard_delete_records(io, simulate, affected)


class InlineForeignFieldChildrenParentDeleted(_ParentDeleted):
    title = "Scan for inline foreign field records with deleted parent"
    tags = (ActionTag.SOFT_DELETE, ActionTag.WORKSPACE_REMOVE)
    description = [
        "Inline children that are not soft-deleted while their parent is are soft-deleted",
        "in live and removed if they are workspace overlay rows.",
    ]
    with_table_field = True
    requires = ("InlineForeignFieldChildrenParentMissing",)


class InlineForeignFieldNoForeignTableFieldChildrenParentDeleted(_ParentDeleted):
    title = "Scan for inline foreign field records without table field with deleted parent"
    tags = (ActionTag.SOFT_DELETE, ActionTag.WORKSPACE_REMOVE)
    description = [
        "Inline children of relations with a fixed parent table that are not soft-deleted",
        "while their parent is are soft-deleted in live and removed if they are overlay rows.",
    ]
    with_table_field = False
    requires = ("InlineForeignFieldNoForeignTableFieldChildrenParentMissing",)


# ═══════════════════════════════════════════════════════════════════════════
# LANGUAGE DIFFERENT
# ═══════════════════════════════════════════════════════════════════════════


class _ParentLanguageDifferent(_InlineCheck):
    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        seen: Set[Tuple[str, int]] = set()
        for relation in self.relations():
            child = relation.child_table
            child_language = self.schema.language_field(child)
            if not child_language:
                continue
            if not relation.parent_table_field and not self._language_parent(relation.parent_table):
                continue
            child_parent = self.schema.translation_parent_field(child)
            rows = self.fetch(
                child,
                ["uid", "pid", child_language, child_parent, self.schema.workspace_id_field(child)]
                + self.relation_fields(relation),
                self.not_deleted(child),
                self.store.column(child, relation.parent_uid_field) > 0,
            )
            for row in rows:
                language = int(row[child_language])
                # "All languages" children and translated children follow other rules
                if language < 0 or (child_parent and int(row[child_parent] or 0) > 0):
                    continue
                parent_table = self.parent_table_of(relation, row)
                if not self._language_parent(parent_table):
                    continue
                parent_language_field = self.schema.language_field(parent_table)
                parent_row = self.lookup(
                    parent_table,
                    ["uid", parent_language_field],
                    int(row[relation.parent_uid_field]),
                )
                if parent_row is None:
                    continue
                parent_language = int(parent_row[parent_language_field])
                if parent_language >= 0 and parent_language != language:
                    row[REASON_KEY] = f"Parent record language {parent_language}"
                    row["_parent_language"] = parent_language
                    self.add(affected, seen, child, row, relation)
        return affected

    def _language_parent(self, table: str) -> bool:
        return self.usable_parent_table(table) and bool(self.schema.language_field(table))

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            language = self.schema.language_field(table)
            self._before(io, simulate, "Update", table)
            for row in rows:
                self.update_record(
                    io, simulate, table, int(row["uid"]), {language: row["_parent_language"]}
                )
            self._after(io, simulate, "Updated", table, len(rows))


class InlineForeignFieldChildrenParentLanguageDifferent(_ParentLanguageDifferent):
    title = "Scan for inline foreign field records with different language than their parent"
    tags = (ActionTag.UPDATE,)
    description = [
        "Inline children must have the same language as their parent. Children in",
        '"all languages" and translated children are skipped. The language of affected',
        "children is set to the language of their parent.",
    ]
    with_table_field = True
    requires = ("InlineForeignFieldChildrenParentDeleted",)


class InlineForeignFieldNoForeignTableFieldChildrenParentLanguageDifferent(_ParentLanguageDifferent):
    title = "Scan for inline foreign field records without table field with different language than their parent"
    tags = (ActionTag.UPDATE,)
    description = [
        "Inline children of relations with a fixed parent table must have the same language",
        "as their parent. The language of affected children is set to the language of their parent.",
    ]
    with_table_field = False
    requires = ("InlineForeignFieldNoForeignTableFieldChildrenParentDeleted",)
