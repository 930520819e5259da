"""Tests for the soft or hard delete decision."""
import itertools

import pytest

from dbdoctor.core.exceptions import HealthCheckError
from dbdoctor.database.repair_policy import RepairAction, TablePolicy, choose_repair_action


EXPECTED = {
    # (soft_delete_aware, workspace_aware, workspace_id > 0) -> action
    (False, False, False): RepairAction.HARD_DELETE,
    (False, False, True): RepairAction.HARD_DELETE,
    (False, True, False): RepairAction.HARD_DELETE,
    (False, True, True): RepairAction.HARD_DELETE,
    (True, False, False): RepairAction.SOFT_DELETE,
    (True, False, True): RepairAction.SOFT_DELETE,
    (True, True, False): RepairAction.SOFT_DELETE,
    (True, True, True): RepairAction.HARD_DELETE,
}


class TestChooseRepairAction:
    """Tests for choose_repair_action()."""

    @pytest.mark.parametrize(
        "soft_delete_aware,workspace_aware,in_workspace",
        list(itertools.product([False, True], repeat=3)),
    )
    def test_all_combinations(self, soft_delete_aware, workspace_aware, in_workspace):
        """Each input combination maps to exactly one action, on every call."""
        workspace_id = 3 if in_workspace else 0
        expected = EXPECTED[(soft_delete_aware, workspace_aware, in_workspace)]
        for _ in range(2):
            assert choose_repair_action(soft_delete_aware, workspace_aware, workspace_id) is expected


class TestTablePolicy:
    """Tests for TablePolicy bound to schema fields."""

    def test_for_table_reads_schema(self, schema):
        """for_table() should pick the table's delete, hidden and workspace fields."""
        policy = TablePolicy.for_table(schema, "tx_hotel")
        assert policy.delete_field == "deleted"
        assert policy.hidden_field == "hidden"
        assert policy.workspace_id_field == "t3ver_wsid"

    def test_live_row_soft_deleted(self, schema):
        """Live rows of soft-delete aware tables are soft-deleted."""
        policy = TablePolicy.for_table(schema, "tx_hotel")
        assert policy.action_for({"uid": 1, "t3ver_wsid": 0}) is RepairAction.SOFT_DELETE
        assert policy.soft_delete_values() == {"deleted": 1}

    def test_overlay_row_hard_deleted(self, schema):
        """Workspace overlay rows are removed even though the table has soft-delete."""
        policy = TablePolicy.for_table(schema, "tx_hotel")
        assert policy.action_for({"uid": 1, "t3ver_wsid": 2}) is RepairAction.HARD_DELETE

    def test_table_without_soft_delete(self, schema):
        """Rows of tables without soft-delete field are removed."""
        policy = TablePolicy.for_table(schema, "tx_note")
        assert policy.action_for({"uid": 1}) is RepairAction.HARD_DELETE
        assert policy.soft_delete_values() == {}

    def test_missing_workspace_id_raises(self, schema):
        """Rows of workspace aware tables must carry their workspace id."""
        policy = TablePolicy.for_table(schema, "tx_hotel")
        with pytest.raises(HealthCheckError):
            policy.action_for({"uid": 1})
