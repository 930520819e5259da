#!/usr/bin/env python3
"""
page_tree.py
-----------------
Connectivity of the hierarchy table.

find_unreachable() answers "which nodes can not be reached from the root"
for a whole table at once. It grows the set of connected uids until a
pass adds nothing; whatever is left points into a missing node or into a
cycle that never touches the root.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Any, Dict, Iterable, List

# --- Local imports ---
from .row_store import RowStore
from .schema import SchemaRegistry


def find_unreachable(rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Return rows not reachable from the root through their pid chain.

    Rows with pid 0 are connected whether or not a node 0 exists. Input
    order is kept in the result.

    Args:
        rows: Row dicts carrying at least "uid" and "pid"

    Returns:
        Unreachable rows
    """
    connected = {0}
    unknown: List[Dict[str, Any]] = []
    for row in rows:
        if int(row["pid"]) == 0:
            connected.add(int(row["uid"]))
        else:
            unknown.append(row)

    while unknown:
        remaining = []
        for row in unknown:
            if int(row["pid"]) in connected:
                connected.add(int(row["uid"]))
            else:
                remaining.append(row)
        if len(remaining) == len(unknown):
            break
        unknown = remaining

    return unknown


def load_tree_rows(store: RowStore, schema: SchemaRegistry) -> List[Dict[str, Any]]:
    """
    Fetch uid and pid of every hierarchy node, soft-deleted ones included.

    The workspace id is added for workspace-aware hierarchy tables, repairs
    need it to pick between soft and hard delete.
    """
    table = schema.hierarchy_table
    return store.select_rows(table, ["uid", "pid", schema.workspace_id_field(table)])
