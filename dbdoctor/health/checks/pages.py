#!/usr/bin/env python3
"""
pages.py
-------------------
Integrity of the hierarchy table: tree connectivity and page translations.

All checks here work on the table the schema names as hierarchy table and
do nothing if that table lacks the language fields a check needs.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Optional, Tuple

# --- Local imports ---
from dbdoctor.core.console import ConsoleIO
from dbdoctor.database.page_tree import find_unreachable, load_tree_rows
from ..base import ActionTag, AffectedRecords, HealthCheck


class _PageTranslationCheck(HealthCheck):
    """Shared field lookup of the translation checks on the hierarchy table."""

    def translation_fields(self) -> Optional[Tuple[str, str, str]]:
        table = self.schema.hierarchy_table
        language = self.schema.language_field(table)
        parent = self.schema.translation_parent_field(table)
        if not language or not parent:
            return None
        return table, language, parent


class PagesBrokenTree(HealthCheck):
    title = "Check page tree integrity"
    tags = (ActionTag.REMOVE,)
    description = [
        "This check finds hierarchy rows whose pid chain does not lead to the tree root,",
        "either because a node on the way does not exist or because the chain loops.",
        "Such nodes are never shown in the backend and are removed.",
    ]

    def detect(self) -> AffectedRecords:
        unreachable = find_unreachable(load_tree_rows(self.store, self.schema))
        if not unreachable:
            return {}
        return {self.schema.hierarchy_table: unreachable}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class PagesTranslatedLanguageParentMissing(_PageTranslationCheck):
    title = "Check pages with missing language parent"
    tags = (ActionTag.REMOVE,)
    description = [
        "This check finds translated hierarchy rows (language > 0) whose default language",
        "row (translation parent) does not exist. They are never shown and are removed.",
    ]
    requires = ("PagesBrokenTree",)

    def detect(self) -> AffectedRecords:
        fields = self.translation_fields()
        if fields is None:
            return {}
        table, language, parent = fields
        rows = self.fetch(
            table, ["uid", "pid", language, parent], self.store.column(table, language) > 0
        )
        affected = [row for row in rows if self.lookup(table, ["uid"], int(row[parent])) is None]
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)


class PagesTranslatedLanguageParentDeleted(_PageTranslationCheck):
    title = "Check not deleted pages with deleted language parent"
    tags = (ActionTag.SOFT_DELETE, ActionTag.WORKSPACE_REMOVE)
    description = [
        "This check finds translated hierarchy rows that are not soft-deleted while their",
        "default language row is. They are soft-deleted in live and removed if they are",
        "workspace overlay rows.",
    ]
    requires = ("PagesTranslatedLanguageParentMissing",)

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
            self.store.column(table, language) > 0,
        )
        affected = []
        for row in rows:
            parent_row = self.lookup(table, ["uid", delete_field], int(row[parent]))
            if parent_row is None:
                raise self.prerequisite_violation(
                    f'Record "{row["uid"]}" of table "{table}" has {parent} "{row[parent]}", '
                    "but that record does not exist.",
                    "PagesTranslatedLanguageParentMissing",
                )
            if self.is_deleted(parent_row, table):
                affected.append(row)
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.soft_or_hard_delete_records(io, simulate, affected)


class PagesTranslatedLanguageParentSelf(_PageTranslationCheck):
    title = "Check localized pages having language parent set to self"
    tags = (ActionTag.SOFT_DELETE, ActionTag.WORKSPACE_REMOVE)
    description = [
        "This check finds not deleted, translated hierarchy rows pointing to their own uid",
        "as translation parent. Such pages are not listed in the backend and are most likely",
        "not rendered. They are soft-deleted in live and removed if they are overlay rows.",
    ]

    def detect(self) -> AffectedRecords:
        fields = self.translation_fields()
        if fields is None:
            return {}
        table, language, parent = fields
        rows = self.fetch(
            table,
            ["uid", "pid", language, parent, self.schema.workspace_id_field(table)],
            self.not_deleted(table),
            self.store.column(table, language) > 0,
            self.store.column(table, "uid") == self.store.column(table, parent),
        )
        return {table: rows} if rows else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.soft_or_hard_delete_records(io, simulate, affected)


class PagesTranslatedLanguageParentDifferentPid(_PageTranslationCheck):
    title = "Check pages with different pid than their language parent"
    tags = (ActionTag.REMOVE,)
    description = [
        "This check finds translated hierarchy rows that are located on a different pid",
        "than their default language row. They are shown at a wrong place and are removed.",
    ]
    requires = ("PagesTranslatedLanguageParentMissing",)

    def detect(self) -> AffectedRecords:
        fields = self.translation_fields()
        if fields is None:
            return {}
        table, language, parent = fields
        rows = self.fetch(
            table, ["uid", "pid", language, parent], self.store.column(table, language) > 0
        )
        affected = []
        for row in rows:
            parent_row = self.lookup(table, ["uid", "pid"], int(row[parent]))
            if parent_row is None:
                raise self.prerequisite_violation(
                    f'Record "{row["uid"]}" of table "{table}" with {language} "{row[language]}" '
                    f'has {parent} "{row[parent]}", but that record does not exist.',
                    "PagesTranslatedLanguageParentMissing",
                )
            if int(row["pid"]) != int(parent_row["pid"]):
                affected.append(row)
        return {table: affected} if affected else {}

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        self.delete_records(io, simulate, affected)
