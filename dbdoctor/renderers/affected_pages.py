#!/usr/bin/env python3
"""
affected_pages.py
-----------------
Per-page aggregation of affected records.

Each output row counts the affected records living on one hierarchy node
and spells out that node's rootline, one segment per column:

    records  segment 1   segment 2           segment 3
    3        [0]Root     [1]Home             [7|deleted]News
    1        [99|missing]  [4]Orphan
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Any, Dict, List

# --- Local imports ---
from dbdoctor.database.rootline import RootlineEntry, RootlineResolver
from dbdoctor.database.schema import SchemaRegistry


class AffectedPagesRenderer:
    """Renders affected records grouped by the node they live on."""

    def __init__(self, schema: SchemaRegistry, rootline: RootlineResolver) -> None:
        self.schema = schema
        self.rootline = rootline

    def get_header(self, affected: Dict[str, List[Dict[str, Any]]]) -> List[str]:
        longest = 0
        for pid in self._affected_pids(affected):
            longest = max(longest, len(self.rootline.get_rootline(pid)))
        return ["records"] + [f"segment {index}" for index in range(1, longest + 1)]

    def get_rows(self, affected: Dict[str, List[Dict[str, Any]]]) -> List[List[str]]:
        rows = []
        for pid, count in self._affected_pids(affected).items():
            row = [str(count)]
            row.extend(self._segment(entry) for entry in self.rootline.get_rootline(pid))
            rows.append(row)
        return rows

    @staticmethod
    def _segment(entry: RootlineEntry) -> str:
        params = [str(entry.uid)]
        if entry.is_missing:
            params.append("missing")
            return "[" + "|".join(params) + "]"
        if entry.deleted:
            params.append("deleted")
        if entry.workspace_id > 0:
            params.append(f"ws-{entry.workspace_id}")
        return "[" + "|".join(params) + "]" + entry.title

    def _affected_pids(self, affected: Dict[str, List[Dict[str, Any]]]) -> Dict[int, int]:
        """Node uid -> number of affected records on it, in first-seen order."""
        counts: Dict[int, int] = {}
        for table, rows in affected.items():
            field = "uid" if table == self.schema.hierarchy_table else "pid"
            for row in rows:
                pid = int(row[field])
                counts[pid] = counts.get(pid, 0) + 1
        return counts
