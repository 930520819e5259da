#!/usr/bin/env python3
"""
languages.py
-------------------
Consistency of language, translation parent and translation source fields.
"""
# --- Annotations ---
from __future__ import annotations

# --- Local imports ---
from dbdoctor.core.console import ConsoleIO
from dbdoctor.database.schema import Capability
from ..base import ActionTag, AffectedRecords, HealthCheck, Row


class LanguageLessThanOneHasZeroLanguageParent(HealthCheck):
    title = "Scan for records in default language not having language parent zero"
    tags = (ActionTag.UPDATE,)
    description = [
        'Records in default or "all" language (language field 0 or -1) must have their',
        "translation parent field set to zero (0). This check finds and updates violating rows.",
    ]

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        for table in self.schema.tables_with(Capability.TRANSLATION_PARENT):
            language = self.schema.language_field(table)
            parent = self.schema.translation_parent_field(table)
            rows = self.fetch(
                table,
                ["uid", "pid", language, parent],
                self.store.column(table, language) <= 0,
                self.store.column(table, parent) != 0,
            )
            if rows:
                affected[table] = rows
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            parent = self.schema.translation_parent_field(table)
            self.update_records_of_table(io, simulate, table, rows, {parent: 0})


class LanguageLessThanOneHasZeroLanguageSource(HealthCheck):
    title = "Scan for records in default language not having language source zero"
    tags = (ActionTag.UPDATE,)
    description = [
        'Records in default or "all" language (language field 0 or -1) must have their',
        "translation source field set to zero (0). This check finds and updates violating rows.",
    ]

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        for table in self.schema.tables_with(Capability.TRANSLATION_SOURCE):
            language = self.schema.language_field(table)
            source = self.schema.translation_source_field(table)
            rows = self.fetch(
                table,
                ["uid", "pid", language, source],
                self.store.column(table, language) <= 0,
                self.store.column(table, source) != 0,
            )
            if rows:
                affected[table] = rows
        return affected

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            source = self.schema.translation_source_field(table)
            self.update_records_of_table(io, simulate, table, rows, {source: 0})


class TranslatedParentInvalidPointer(HealthCheck):
    title = "Scan for record translations pointing to non default language parent"
    tags = (ActionTag.UPDATE,)
    description = [
        "The translation parent of a localized row must be a default language row. Rows",
        "pointing to another translation are redirected along the chain of translation",
        "parents to its default language row. Rows caught in a loop of translations are",
        "pointed to themselves, TablesTranslatedParentSelf takes care of them later.",
    ]
    requires = ("LanguageLessThanOneHasZeroLanguageParent",)

    def detect(self) -> AffectedRecords:
        affected: AffectedRecords = {}
        hierarchy = (self.schema.hierarchy_table,)
        for table in self.schema.tables_with(Capability.TRANSLATION_PARENT, ignore=hierarchy):
            language = self.schema.language_field(table)
            parent = self.schema.translation_parent_field(table)
            candidates = self.fetch(
                table,
                ["uid", "pid", language, parent],
                self.not_deleted(table),
                self.store.column(table, language) > 0,
                self.store.column(table, parent) > 0,
                # Self pointers are handled by TablesTranslatedParentSelf
                self.store.column(table, "uid") != self.store.column(table, parent),
            )
            for row in candidates:
                parent_row = self.lookup(table, ["uid", language, parent], int(row[parent]))
                # Missing parents are handled by TablesTranslatedLanguageParentMissing
                if parent_row is None or int(parent_row[language]) == 0:
                    continue
                target = self._resolve_parent(table, int(row["uid"]), parent_row)
                row["_update_values"] = {parent: target}
                affected.setdefault(table, []).append(row)
        return affected

    def _resolve_parent(self, table: str, uid: int, parent_row: Row) -> int:
        """
        Follow translation parents until a default language row is reached.

        Args:
            table: Table name
            uid: Uid of the row being redirected
            parent_row: Its current translation parent, a translated row

        Returns:
            Uid of the default language row; the first missing uid on the
            chain; 0 if the chain ends in an unconnected translation; the
            row's own uid if the chain loops.
        """
        language = self.schema.language_field(table)
        parent = self.schema.translation_parent_field(table)
        visited = {uid, int(parent_row["uid"])}
        current = parent_row
        while True:
            pointer = int(current[parent] or 0)
            if pointer <= 0:
                return 0
            if pointer in visited:
                return uid
            current = self.lookup(table, ["uid", language, parent], pointer)
            if current is None or int(current[language]) == 0:
                return pointer
            visited.add(pointer)

    def repair(self, io: ConsoleIO, simulate: bool, affected: AffectedRecords) -> None:
        for table, rows in affected.items():
            self._before(io, simulate, "Update", table)
            for row in rows:
                self.update_record(io, simulate, table, int(row["uid"]), row["_update_values"])
            self._after(io, simulate, "Updated", table, len(rows))
