#!/usr/bin/env python3
"""
repair_policy.py
-----------------
Soft or hard delete: the decision shared by most repairs.

    1. Rows of a workspace overlay (workspace id > 0) are removed.
    2. Otherwise rows of soft-delete aware tables get their delete flag set.
    3. Everything else is removed.

choose_repair_action() is the decision itself. TablePolicy binds it to a
table's fields once so repair loops only hand in rows.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

# --- Local imports ---
from dbdoctor.core.exceptions import HealthCheckError
from .schema import SchemaRegistry


class RepairAction(Enum):
    HARD_DELETE = "hard_delete"
    SOFT_DELETE = "soft_delete"


def choose_repair_action(
    soft_delete_aware: bool, workspace_aware: bool, workspace_id: int
) -> RepairAction:
    """
    Pick the repair action for one row.

    Args:
        soft_delete_aware: Table has a soft-delete field
        workspace_aware: Table carries a workspace id field
        workspace_id: Workspace id of the row, ignored for tables that
            are not workspace aware

    Returns:
        RepairAction
    """
    if workspace_aware and workspace_id > 0:
        return RepairAction.HARD_DELETE
    if soft_delete_aware:
        return RepairAction.SOFT_DELETE
    return RepairAction.HARD_DELETE


@dataclass(frozen=True)
class TablePolicy:
    """
    Repair-relevant fields of one table.

    Attributes:
        table: Table name
        delete_field: Soft-delete field or None
        hidden_field: Hidden field or None
        workspace_id_field: Workspace id field or None
    """

    table: str
    delete_field: Optional[str] = None
    hidden_field: Optional[str] = None
    workspace_id_field: Optional[str] = None

    @classmethod
    def for_table(cls, schema: SchemaRegistry, table: str) -> "TablePolicy":
        return cls(
            table=table,
            delete_field=schema.soft_delete_field(table),
            hidden_field=schema.hidden_field(table),
            workspace_id_field=schema.workspace_id_field(table),
        )

    @property
    def soft_delete_aware(self) -> bool:
        return self.delete_field is not None

    @property
    def hidden_aware(self) -> bool:
        return self.hidden_field is not None

    @property
    def workspace_aware(self) -> bool:
        return self.workspace_id_field is not None

    def workspace_id(self, row: Dict[str, Any]) -> int:
        """
        Workspace id of a row, 0 for tables without workspaces.

        Raises:
            HealthCheckError: If the table is workspace aware but the row
                was fetched without its workspace id
        """
        if not self.workspace_aware:
            return 0
        if self.workspace_id_field not in row:
            raise HealthCheckError(
                f'Rows of workspace aware table "{self.table}" must carry '
                f'"{self.workspace_id_field}" to be soft or hard deleted'
            )
        return int(row[self.workspace_id_field] or 0)

    def action_for(self, row: Dict[str, Any]) -> RepairAction:
        return choose_repair_action(
            self.soft_delete_aware, self.workspace_aware, self.workspace_id(row)
        )

    def soft_delete_values(self) -> Dict[str, int]:
        if not self.delete_field:
            return {}
        return {self.delete_field: 1}
