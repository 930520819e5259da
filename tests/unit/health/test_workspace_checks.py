"""Tests for workspace and delete flag checks."""
from dbdoctor.database.schema import SchemaRegistry
from dbdoctor.health.checks import (
    DeleteFlagZeroOrOne,
    WorkspacesNotLoadedRecordsDangling,
    WorkspacesPidNegative,
    WorkspacesRecordsOfDeletedWorkspaces,
    WorkspacesSoftDeletedRecords,
    WorkspacesStateNotZeroInLive,
    WorkspacesStateThree,
)


def _uids(affected, table):
    return [row["uid"] for row in affected.get(table, [])]


def _fix(check, console):
    """Repair what the check finds and return the next detection."""
    check.repair(console, False, check.detect())
    return check.detect()


class TestWorkspacesNotLoadedRecordsDangling:
    """Overlay rows with workspaces disabled."""

    def test_removes_overlays_when_disabled(self, store, schema_data, console, insert, rows):
        """All overlay rows are removed when workspaces are disabled."""
        schema_data["workspaces"]["enabled"] = False
        schema = SchemaRegistry.from_dict(schema_data)
        insert("pages", uid=5, pid=0, t3ver_wsid=1)
        insert("tx_hotel", uid=1, pid=5)
        insert("tx_hotel", uid=2, pid=5, t3ver_wsid=3)
        check = WorkspacesNotLoadedRecordsDangling(store, schema)

        affected = check.detect()

        assert list(affected) == ["pages", "tx_hotel"]
        assert _uids(affected, "tx_hotel") == [2]
        assert _fix(check, console) == {}
        assert [row["uid"] for row in rows("tx_hotel")] == [1]

    def test_ignored_when_enabled(self, store, schema, insert):
        """With workspaces enabled overlay rows are fine."""
        insert("tx_hotel", uid=2, pid=0, t3ver_wsid=3)
        assert WorkspacesNotLoadedRecordsDangling(store, schema).detect() == {}


class TestWorkspacesRecordsOfDeletedWorkspaces:
    """Overlay rows of deleted or missing workspaces."""

    def test_finds_deleted_and_missing_workspaces(self, store, schema, console, insert):
        """Rows of soft-deleted and of unknown workspaces are removed."""
        insert("sys_workspace", uid=1, title="Draft")
        insert("sys_workspace", uid=2, title="Old", deleted=1)
        for uid, wsid in ((1, 0), (2, 1), (3, 2), (4, 5)):
            insert("tx_hotel", uid=uid, pid=0, t3ver_wsid=wsid)
        check = WorkspacesRecordsOfDeletedWorkspaces(store, schema)

        assert _uids(check.detect(), "tx_hotel") == [3, 4]
        assert _fix(check, console) == {}


class TestDeleteFlagZeroOrOne:
    """Delete flags with values other than 0 and 1."""

    def test_sets_flag_to_one(self, store, schema, console, insert, row):
        """Odd delete flag values are normalized to 1."""
        insert("tx_attachment", uid=1, pid=0, deleted=2)
        insert("tx_attachment", uid=2, pid=0, deleted=1)
        check = DeleteFlagZeroOrOne(store, schema)

        assert _uids(check.detect(), "tx_attachment") == [1]
        assert _fix(check, console) == {}
        assert row("tx_attachment", 1)["deleted"] == 1


class TestWorkspacesSoftDeletedRecords:
    """Soft-deleted overlay rows."""

    def test_removes_soft_deleted_overlays(self, store, schema, console, insert, row):
        """Soft-deleted overlay rows are removed, soft-deleted live rows stay."""
        insert("sys_workspace", uid=1, title="Draft")
        insert("tt_content", uid=1, pid=0, deleted=1)
        insert("tt_content", uid=2, pid=0, deleted=1, t3ver_wsid=1)
        check = WorkspacesSoftDeletedRecords(store, schema)

        assert _uids(check.detect(), "tt_content") == [2]
        assert _fix(check, console) == {}
        assert row("tt_content", 1) is not None


class TestWorkspacesPidNegative:
    """Rows with negative pid."""

    def test_removes_rows_in_any_table(self, store, schema, console, insert):
        """Negative pid rows are removed from every declared table."""
        insert("tx_note", uid=1, pid=-1)
        insert("tt_content", uid=1, pid=-1)
        check = WorkspacesPidNegative(store, schema)

        assert list(check.detect()) == ["tt_content", "tx_note"]
        assert _fix(check, console) == {}


class TestWorkspacesStateNotZeroInLive:
    """Live rows with a workspace state."""

    def test_three_way_repair(self, store, schema, console, insert, row):
        """Deleted rows are removed, negative states reset, others soft-deleted."""
        insert("tt_content", uid=1, pid=0, t3ver_state=1, deleted=1)
        insert("tt_content", uid=2, pid=0, t3ver_state=-1)
        insert("tt_content", uid=3, pid=0, t3ver_state=2)
        check = WorkspacesStateNotZeroInLive(store, schema)

        assert _uids(check.detect(), "tt_content") == [1, 2, 3]
        assert _fix(check, console) == {}
        assert row("tt_content", 1) is None
        assert row("tt_content", 2)["deleted"] == 0
        assert row("tt_content", 3)["deleted"] == 1
        assert row("tt_content", 3)["t3ver_state"] == 0


class TestWorkspacesStateThree:
    """Obsolete move placeholder pointers."""

    def test_removes_state_three(self, store, schema, console, insert, row):
        """Rows with workspace state 3 are removed."""
        insert("sys_workspace", uid=1, title="Draft")
        insert("tx_hotel", uid=1, pid=0, t3ver_wsid=1, t3ver_state=3)
        insert("tx_hotel", uid=2, pid=0, t3ver_wsid=1, t3ver_state=4)
        check = WorkspacesStateThree(store, schema)

        assert _uids(check.detect(), "tx_hotel") == [1]
        assert _fix(check, console) == {}
        assert row("tx_hotel", 2) is not None
