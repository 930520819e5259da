#!/usr/bin/env python3
"""
records.py
-----------------
Detail tables of affected records.

Rows are re-read from the database so the table shows the current state,
then pointer fields are annotated: a pid or translation parent pointing to
a missing or soft-deleted row shows "[12|missing]" / "[12|deleted]", the
workspace id shows "[0]Live" or the workspace title, timestamps are
rendered as dates.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

# --- Local imports ---
from dbdoctor.core.exceptions import NoSuchRecordError, NoSuchTableError
from dbdoctor.database.row_store import RowStore
from dbdoctor.database.schema import SchemaRegistry


REASON_KEY = "_reason"


class RecordsRenderer:
    """
    Renders detail rows of affected records.

    Attributes:
        store: Row store used to re-read rows and resolve pointers
        schema: Schema registry
    """

    def __init__(self, store: RowStore, schema: SchemaRegistry) -> None:
        self.store = store
        self.schema = schema
        self._workspace_cache: Dict[int, str] = {}

    def get_header(
        self,
        table: str,
        with_reason: bool = False,
        extra_fields: Sequence[str] = (),
    ) -> List[str]:
        fields = self._relevant_fields(table, extra_fields)
        return (["reason"] + fields) if with_reason else fields

    def get_rows(
        self,
        table: str,
        rows: Sequence[Dict[str, Any]],
        with_reason: bool = False,
        extra_fields: Sequence[str] = (),
    ) -> List[List[str]]:
        """
        Render affected rows of one table.

        Args:
            table: Table name
            rows: Affected rows, only "uid" and the reason key are used
            with_reason: Prepend the reason column
            extra_fields: Additional database fields to show

        Returns:
            Cell values per row, matching get_header()
        """
        fields = self._relevant_fields(table, extra_fields)
        rendered = []
        for incoming in rows:
            try:
                record = self.store.get_record(table, fields, int(incoming["uid"]))
            except NoSuchRecordError:
                record = {name: "" for name in fields}
                record["uid"] = f"[{incoming['uid']}|missing]"
            else:
                record = self._timestamp(table, record)
                record = self._workspace(table, record)
                record = self._pid(record)
                record = self._pointer(table, record, self.schema.translation_parent_field(table))
                record = self._pointer(table, record, self.schema.translation_source_field(table))
            cells = [self._cell(record.get(name)) for name in fields]
            if with_reason:
                cells.insert(0, str(incoming.get(REASON_KEY, "")))
            rendered.append(cells)
        return rendered

    def _relevant_fields(self, table: str, extra_fields: Sequence[str]) -> List[str]:
        candidates = ["uid", "pid"]
        candidates.extend(extra_fields)
        candidates.extend(
            [
                self.schema.soft_delete_field(table),
                self.schema.hidden_field(table),
                self.schema.timestamp_field(table),
                self.schema.language_field(table),
                self.schema.translation_parent_field(table),
                self.schema.translation_source_field(table),
                self.schema.workspace_id_field(table),
                self.schema.type_field(table),
            ]
        )
        candidates.extend(self.schema.label_fields(table))
        fields: List[str] = []
        for name in candidates:
            if name and name not in fields and self.store.field_exists(table, name):
                fields.append(name)
        return fields

    def _timestamp(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        field = self.schema.timestamp_field(table)
        if field and int(record.get(field) or 0) > 0:
            moment = datetime.fromtimestamp(int(record[field]), tz=timezone.utc)
            record[field] = moment.strftime("%Y-%m-%d %H:%M") + " UTC"
        return record

    def _workspace(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        field = self.schema.workspace_id_field(table)
        if not field:
            return record
        workspace_id = int(record.get(field) or 0)
        if workspace_id == 0:
            record[field] = "[0]Live"
            return record
        if workspace_id not in self._workspace_cache:
            self._workspace_cache[workspace_id] = self._workspace_label(workspace_id)
        record[field] = self._workspace_cache[workspace_id]
        return record

    def _workspace_label(self, workspace_id: int) -> str:
        table = self.schema.workspace_table
        delete_field = self.schema.soft_delete_field(table)
        title_fields = self.schema.label_fields(table) or ["title"]
        try:
            workspace = self.store.get_record(table, [title_fields[0], delete_field], workspace_id)
        except NoSuchRecordError:
            return f"[{workspace_id}|missing]"
        except NoSuchTableError:
            return f"[{workspace_id}|no {table} table]"
        deleted = "|deleted" if delete_field and workspace[delete_field] else ""
        return f"[{workspace_id}{deleted}]{workspace[title_fields[0]]}"

    def _pid(self, record: Dict[str, Any]) -> Dict[str, Any]:
        pid = int(record["pid"])
        if pid <= 0:
            return record
        record["pid"] = self._pointer_status(self.schema.hierarchy_table, pid)
        return record

    def _pointer(self, table: str, record: Dict[str, Any], field: Optional[str]) -> Dict[str, Any]:
        if not field or field not in record:
            return record
        target = int(record[field] or 0)
        if target > 0:
            record[field] = self._pointer_status(table, target)
        return record

    def _pointer_status(self, table: str, uid: int) -> str:
        delete_field = self.schema.soft_delete_field(table)
        try:
            target = self.store.get_record(table, ["uid", delete_field], uid)
        except NoSuchRecordError:
            return f"[{uid}|missing]"
        if delete_field and target[delete_field]:
            return f"[{uid}|deleted]"
        return str(uid)

    @staticmethod
    def _cell(value: Any) -> str:
        if value is None:
            return ""
        return str(value)
