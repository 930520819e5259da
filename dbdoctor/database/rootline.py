#!/usr/bin/env python3
"""
rootline.py
-----------------
Path-to-root resolution for hierarchy nodes.

A rootline is the ordered list of nodes from the virtual root (uid 0)
down to a given node. Broken trees are common in the databases dbdoctor
looks at, so resolution never trusts the data: a pid pointing nowhere ends
the rootline with a synthetic "missing" entry, and a pid chain that comes
back to an already visited node ends it the same way. The first entry of
every rootline is therefore either the root or a missing entry.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass
from typing import Dict, List, Optional

# --- Local imports ---
from dbdoctor.core.exceptions import NoSuchRecordError
from .row_store import RowStore
from .schema import SchemaRegistry


MISSING_TITLE = "RECORD DOES NOT EXIST"
LOOP_TITLE = "RECORD LOOP DETECTED"


@dataclass(frozen=True)
class RootlineEntry:
    """
    One node of a rootline.

    Attributes:
        uid: Node uid, for missing entries the uid that failed to resolve
        pid: Parent uid
        is_missing: Synthetic entry marking a broken link
        deleted: Node is soft-deleted (always True for missing entries)
        workspace_id: Workspace overlay id, 0 for live
        title: Node title
    """

    uid: int
    pid: int
    is_missing: bool = False
    deleted: bool = False
    workspace_id: int = 0
    title: str = ""

    @property
    def is_root(self) -> bool:
        return self.uid == 0 and not self.is_missing


class RootlineResolver:
    """
    Resolves rootlines with a per-node cache.

    Attributes:
        store: Row store used for node lookups
        schema: Schema registry naming the hierarchy table and its fields
        root_title: Title of the virtual root entry
        max_depth: Upper bound of nodes walked for a single rootline
    """

    def __init__(
        self,
        store: RowStore,
        schema: SchemaRegistry,
        root_title: str = "Root",
        max_depth: int = 1000,
    ) -> None:
        self.store = store
        self.schema = schema
        self.root_title = root_title
        self.max_depth = max_depth
        self._cache: Dict[int, RootlineEntry] = {}

    def get_rootline(self, uid: int) -> List[RootlineEntry]:
        """
        Resolve the path from the root down to a node.

        Args:
            uid: Node to start from

        Returns:
            Entries ordered from outermost (root or missing) to uid
        """
        rootline: List[RootlineEntry] = []
        visited = set()
        current = int(uid)

        while True:
            if current == 0:
                rootline.insert(0, self._root_entry())
                return rootline
            if current in visited or len(visited) >= self.max_depth:
                rootline.insert(0, self._missing_entry(current, LOOP_TITLE))
                return rootline
            visited.add(current)

            node = self._get_node(current)
            if node is None:
                rootline.insert(0, self._missing_entry(current, MISSING_TITLE))
                return rootline
            rootline.insert(0, node)
            current = node.pid

    def is_in_rootline(self, uid: int) -> bool:
        """True if the node is connected to the root."""
        return self.get_rootline(uid)[0].is_root

    def clear_cache(self) -> None:
        self._cache.clear()

    def _get_node(self, uid: int) -> Optional[RootlineEntry]:
        if uid in self._cache:
            return self._cache[uid]

        table = self.schema.hierarchy_table
        delete_field = self.schema.soft_delete_field(table)
        workspace_field = self.schema.workspace_id_field(table)
        labels = self.schema.label_fields(table)
        title_field = labels[0] if labels else None
        try:
            row = self.store.get_record(
                table, ["uid", "pid", delete_field, workspace_field, title_field], uid
            )
        except NoSuchRecordError:
            return None

        entry = RootlineEntry(
            uid=int(row["uid"]),
            pid=int(row["pid"]),
            deleted=bool(row[delete_field]) if delete_field else False,
            workspace_id=int(row[workspace_field] or 0) if workspace_field else 0,
            title=str(row[title_field] or "") if title_field else "",
        )
        self._cache[uid] = entry
        return entry

    def _root_entry(self) -> RootlineEntry:
        return RootlineEntry(uid=0, pid=0, title=self.root_title)

    @staticmethod
    def _missing_entry(uid: int, title: str) -> RootlineEntry:
        return RootlineEntry(uid=uid, pid=0, is_missing=True, deleted=True, title=title)
