"""Tests for content table checks."""
import pytest

from dbdoctor.core.exceptions import HealthCheckError, PrerequisiteViolationError
from dbdoctor.health.checks import (
    ContentDeletedLocalizedParentDifferentPid,
    ContentDeletedLocalizedParentExists,
    ContentLocalizationSourceExists,
    ContentLocalizationSourceLogicWithParent,
    ContentLocalizationSourceSetWithParent,
    ContentLocalizedDuplicates,
    ContentLocalizedParentDifferentPid,
    ContentLocalizedParentExists,
    ContentLocalizedParentSoftDeleted,
    ContentPidDeleted,
    ContentPidMissing,
)
from dbdoctor.database.schema import SchemaRegistry


def _uids(affected):
    return [row["uid"] for row in affected.get("tt_content", [])]


def _fix(check, console):
    check.repair(console, False, check.detect())
    return check.detect()


@pytest.fixture
def site(insert):
    """Two live pages and a workspace."""
    insert("sys_workspace", uid=1, title="Draft")
    insert("pages", uid=1, pid=0, title="Home")
    insert("pages", uid=2, pid=1, title="About")


class TestPidChecks:
    """Content on missing or deleted pages."""

    def test_content_on_missing_page_removed(self, store, schema, console, insert, row, site):
        """Content on a page that does not exist is removed, deleted or not."""
        insert("tt_content", uid=1, pid=1)
        insert("tt_content", uid=2, pid=5)
        insert("tt_content", uid=3, pid=5, deleted=1)
        check = ContentPidMissing(store, schema)

        assert _uids(check.detect()) == [2, 3]
        assert _fix(check, console) == {}
        assert row("tt_content", 1) is not None

    def test_content_on_deleted_page(self, store, schema, console, insert, row, site):
        """Live content is soft-deleted, overlay content removed."""
        insert("pages", uid=3, pid=1, deleted=1)
        insert("tt_content", uid=1, pid=3)
        insert("tt_content", uid=2, pid=3, t3ver_wsid=1)
        insert("tt_content", uid=3, pid=2)
        check = ContentPidDeleted(store, schema)

        assert _uids(check.detect()) == [1, 2]
        assert _fix(check, console) == {}
        assert row("tt_content", 1)["deleted"] == 1
        assert row("tt_content", 2) is None

    def test_missing_page_is_prerequisite_violation(self, store, schema, insert, site):
        """Content on a missing page means ContentPidMissing did not run."""
        insert("tt_content", uid=1, pid=5)
        with pytest.raises(PrerequisiteViolationError) as exc_info:
            ContentPidDeleted(store, schema).detect()
        assert exc_info.value.prerequisite == "ContentPidMissing"

    def test_no_content_table(self, store, schema_data, insert):
        """Without content table the content checks find nothing."""
        schema_data["content"] = None
        schema = SchemaRegistry.from_dict(schema_data)
        insert("tt_content", uid=1, pid=5)
        assert ContentPidMissing(store, schema).detect() == {}


class TestLocalizedParent:
    """Localized content and its translation parent."""

    def test_deleted_translation_of_missing_parent_removed(self, store, schema, console, insert, site):
        """Soft-deleted translations of a missing parent are removed."""
        insert("tt_content", uid=2, pid=1, deleted=1, sys_language_uid=1, l18n_parent=40)
        insert("tt_content", uid=3, pid=1, sys_language_uid=1, l18n_parent=40)
        check = ContentDeletedLocalizedParentExists(store, schema)

        assert _uids(check.detect()) == [2]
        assert _fix(check, console) == {}

    def test_translation_of_missing_parent_removed(self, store, schema, console, insert, site):
        """Live translations of a missing parent are removed."""
        insert("tt_content", uid=3, pid=1, sys_language_uid=1, l18n_parent=40)
        check = ContentLocalizedParentExists(store, schema)

        assert _uids(check.detect()) == [3]
        assert _fix(check, console) == {}

    def test_translation_of_deleted_parent_soft_deleted(self, store, schema, console, insert, row, site):
        """A translation of a soft-deleted parent is soft-deleted, not removed."""
        insert("tt_content", uid=1, pid=1, deleted=1)
        insert("tt_content", uid=2, pid=1, sys_language_uid=1, l18n_parent=1)
        check = ContentLocalizedParentSoftDeleted(store, schema)

        assert _uids(check.detect()) == [2]
        assert _fix(check, console) == {}
        assert row("tt_content", 2)["deleted"] == 1

    def test_overlay_translation_of_deleted_parent_removed(self, store, schema, console, insert, row, site):
        """The same translation in a workspace is removed."""
        insert("tt_content", uid=1, pid=1, deleted=1)
        insert("tt_content", uid=2, pid=1, sys_language_uid=1, l18n_parent=1, t3ver_wsid=1)
        check = ContentLocalizedParentSoftDeleted(store, schema)

        assert _fix(check, console) == {}
        assert row("tt_content", 2) is None

    def test_deleted_translation_on_other_page_removed(self, store, schema, console, insert, site):
        """Soft-deleted translations on another page than their parent are removed."""
        insert("tt_content", uid=1, pid=1)
        insert("tt_content", uid=2, pid=2, deleted=1, sys_language_uid=1, l18n_parent=1)
        check = ContentDeletedLocalizedParentDifferentPid(store, schema)

        assert _uids(check.detect()) == [2]
        assert _fix(check, console) == {}


class TestContentLocalizedParentDifferentPid:
    """Live translations on another page than their parent."""

    def test_live_translation_moved(self, store, schema, console, insert, row, site):
        """Live translations are moved to the parent's page."""
        insert("tt_content", uid=1, pid=1)
        insert("tt_content", uid=2, pid=2, sys_language_uid=1, l18n_parent=1)
        check = ContentLocalizedParentDifferentPid(store, schema)

        assert _uids(check.detect()) == [2]
        assert _fix(check, console) == {}
        assert row("tt_content", 2)["pid"] == 1

    def test_workspace_states(self, store, schema, console, insert, row, site):
        """New overlays are removed, changed overlays and delete placeholders moved."""
        insert("tt_content", uid=1, pid=1)
        insert("tt_content", uid=2, pid=2, sys_language_uid=1, l18n_parent=1, t3ver_wsid=1, t3ver_state=1)
        insert("tt_content", uid=3, pid=2, sys_language_uid=2, l18n_parent=1, t3ver_wsid=1, t3ver_state=0)
        insert("tt_content", uid=4, pid=2, sys_language_uid=3, l18n_parent=1, t3ver_wsid=1, t3ver_state=2)
        check = ContentLocalizedParentDifferentPid(store, schema)

        assert _fix(check, console) == {}
        assert row("tt_content", 2) is None
        assert row("tt_content", 3)["pid"] == 1
        assert row("tt_content", 4)["pid"] == 1

    def test_delete_placeholder_with_move_placeholder_removed(self, store, schema, console, insert, row, site):
        """A delete placeholder is removed when its parent was moved in the same workspace."""
        insert("tt_content", uid=1, pid=1)
        insert("tt_content", uid=5, pid=2, t3ver_wsid=1, t3ver_state=4, t3ver_oid=1)
        insert("tt_content", uid=6, pid=2, sys_language_uid=1, l18n_parent=1, t3ver_wsid=1, t3ver_state=2)
        check = ContentLocalizedParentDifferentPid(store, schema)

        check.repair(console, False, check.detect())
        assert row("tt_content", 6) is None

    def test_unknown_state_raises(self, store, schema, console, insert, site):
        """Workspace states the repair does not know are fatal."""
        insert("tt_content", uid=1, pid=1)
        insert("tt_content", uid=2, pid=2, sys_language_uid=1, l18n_parent=1, t3ver_wsid=1, t3ver_state=7)
        check = ContentLocalizedParentDifferentPid(store, schema)

        with pytest.raises(HealthCheckError):
            check.repair(console, False, check.detect())


class TestContentLocalizedDuplicates:
    """Several translations of one parent into one language."""

    def test_keeps_lowest_uid(self, store, schema, console, insert, row, site):
        """The first translation stays, later duplicates are soft-deleted."""
        insert("tt_content", uid=1, pid=1)
        insert("tt_content", uid=2, pid=1, sys_language_uid=1, l18n_parent=1)
        insert("tt_content", uid=3, pid=1, sys_language_uid=1, l18n_parent=1)
        insert("tt_content", uid=4, pid=1, sys_language_uid=2, l18n_parent=1)
        check = ContentLocalizedDuplicates(store, schema)

        assert _uids(check.detect()) == [3]
        assert _fix(check, console) == {}
        assert row("tt_content", 2)["deleted"] == 0
        assert row("tt_content", 3)["deleted"] == 1


class TestLocalizationSource:
    """Translation source consistency."""

    def test_missing_source_replaced(self, store, schema, console, insert, row, site):
        """A missing source becomes the parent, or zero without parent."""
        insert("tt_content", uid=1, pid=1)
        insert("tt_content", uid=2, pid=1, sys_language_uid=1, l18n_parent=1, l10n_source=50)
        insert("tt_content", uid=3, pid=1, sys_language_uid=1, l18n_parent=0, l10n_source=50)
        check = ContentLocalizationSourceExists(store, schema)

        assert _uids(check.detect()) == [2, 3]
        assert _fix(check, console) == {}
        assert row("tt_content", 2)["l10n_source"] == 1
        assert row("tt_content", 3)["l10n_source"] == 0

    def test_source_set_from_parent(self, store, schema, console, insert, row, site):
        """A translation with parent but without source gets the parent as source."""
        insert("tt_content", uid=1, pid=1)
        insert("tt_content", uid=2, pid=1, sys_language_uid=1, l18n_parent=1, l10n_source=0)
        check = ContentLocalizationSourceSetWithParent(store, schema)

        assert _uids(check.detect()) == [2]
        assert _fix(check, console) == {}
        assert row("tt_content", 2)["l10n_source"] == 1

    def test_source_of_other_parent_replaced(self, store, schema, console, insert, row, site):
        """A source belonging to another parent is replaced by the parent."""
        insert("tt_content", uid=1, pid=1)
        insert("tt_content", uid=5, pid=1)
        insert("tt_content", uid=2, pid=1, sys_language_uid=1, l18n_parent=1, l10n_source=1)
        insert("tt_content", uid=3, pid=1, sys_language_uid=2, l18n_parent=1, l10n_source=2)
        insert("tt_content", uid=6, pid=1, sys_language_uid=1, l18n_parent=5, l10n_source=5)
        insert("tt_content", uid=4, pid=1, sys_language_uid=2, l18n_parent=1, l10n_source=6)
        check = ContentLocalizationSourceLogicWithParent(store, schema)

        assert _uids(check.detect()) == [4]
        assert _fix(check, console) == {}
        assert row("tt_content", 3)["l10n_source"] == 2
        assert row("tt_content", 4)["l10n_source"] == 1
