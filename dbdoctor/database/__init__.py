#!/usr/bin/env python3
"""
dbdoctor Database Package
-------------------------
Database access and graph helpers shared by all health checks.

- row_store: Row-level reads and single-row writes on reflected tables
- schema: Per-table metadata (soft-delete, language, workspace fields)
- rootline: Path-to-root resolution of hierarchy nodes
- page_tree: Reachability of the whole hierarchy table
- repair_policy: Soft or hard delete decision
"""

from .row_store import RowStore
from .schema import Capability, InlineRelation, SchemaRegistry, TableSchema
from .rootline import RootlineEntry, RootlineResolver
from .page_tree import find_unreachable, load_tree_rows
from .repair_policy import RepairAction, TablePolicy, choose_repair_action
from .decorators import handle_db_errors, log_database_operation

__all__ = [
    "RowStore",
    "Capability",
    "InlineRelation",
    "SchemaRegistry",
    "TableSchema",
    "RootlineEntry",
    "RootlineResolver",
    "find_unreachable",
    "load_tree_rows",
    "RepairAction",
    "TablePolicy",
    "choose_repair_action",
    "handle_db_errors",
    "log_database_operation",
]
