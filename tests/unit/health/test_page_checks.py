"""Tests for hierarchy table checks."""
import pytest

from dbdoctor.core.exceptions import PrerequisiteViolationError
from dbdoctor.health.checks import (
    PagesBrokenTree,
    PagesTranslatedLanguageParentDeleted,
    PagesTranslatedLanguageParentDifferentPid,
    PagesTranslatedLanguageParentMissing,
    PagesTranslatedLanguageParentSelf,
)


def _uids(affected):
    return [row["uid"] for row in affected.get("pages", [])]


class TestPagesBrokenTree:
    """Nodes not connected to the root."""

    def test_broken_subtree_removed(self, store, schema, console, insert, rows):
        """A node on a missing parent and its child are removed, the rest stays."""
        for uid, pid in ((1, 0), (2, 1), (3, 1), (4, 99), (5, 4)):
            insert("pages", uid=uid, pid=pid)
        check = PagesBrokenTree(store, schema)

        affected = check.detect()
        assert _uids(affected) == [4, 5]

        check.repair(console, False, affected)
        assert check.detect() == {}
        assert [row["uid"] for row in rows("pages")] == [1, 2, 3]

    def test_loop_removed(self, store, schema, insert):
        """Nodes looping among themselves are unreachable."""
        insert("pages", uid=1, pid=2)
        insert("pages", uid=2, pid=1)
        assert _uids(PagesBrokenTree(store, schema).detect()) == [1, 2]


class TestPagesTranslatedLanguageParentMissing:
    """Page translations without default language page."""

    def test_missing_parent_removed(self, store, schema, console, insert, row):
        """A translation pointing to a page that does not exist is removed."""
        insert("pages", uid=1, pid=0)
        insert("pages", uid=2, pid=0, sys_language_uid=2, l10n_parent=10)
        insert("pages", uid=3, pid=0, sys_language_uid=1, l10n_parent=1)
        check = PagesTranslatedLanguageParentMissing(store, schema)

        affected = check.detect()
        assert _uids(affected) == [2]

        check.repair(console, False, affected)
        assert check.detect() == {}
        assert row("pages", 2) is None
        assert row("pages", 3) is not None

    def test_zero_parent_counts_as_missing(self, store, schema, insert):
        """A translation with parent zero has no default language page."""
        insert("pages", uid=2, pid=0, sys_language_uid=1, l10n_parent=0)
        assert _uids(PagesTranslatedLanguageParentMissing(store, schema).detect()) == [2]


class TestPagesTranslatedLanguageParentDeleted:
    """Page translations whose default language page is soft-deleted."""

    def test_live_soft_deleted_overlay_removed(self, store, schema, console, insert, row):
        """Live translations are soft-deleted, overlay translations removed."""
        insert("sys_workspace", uid=1, title="Draft")
        insert("pages", uid=1, pid=0, deleted=1)
        insert("pages", uid=2, pid=0, sys_language_uid=1, l10n_parent=1)
        insert("pages", uid=3, pid=0, sys_language_uid=1, l10n_parent=1, t3ver_wsid=1)
        check = PagesTranslatedLanguageParentDeleted(store, schema)

        affected = check.detect()
        assert _uids(affected) == [2, 3]

        check.repair(console, False, affected)
        assert check.detect() == {}
        assert row("pages", 2)["deleted"] == 1
        assert row("pages", 3) is None

    def test_missing_parent_is_prerequisite_violation(self, store, schema, insert):
        """A missing parent here means the missing parent check did not run."""
        insert("pages", uid=2, pid=0, sys_language_uid=1, l10n_parent=10)

        with pytest.raises(PrerequisiteViolationError) as exc_info:
            PagesTranslatedLanguageParentDeleted(store, schema).detect()
        assert exc_info.value.prerequisite == "PagesTranslatedLanguageParentMissing"


class TestPagesTranslatedLanguageParentSelf:
    """Page translations pointing to themselves."""

    def test_self_pointer_soft_deleted(self, store, schema, console, insert, row):
        """A translation being its own parent is soft-deleted."""
        insert("pages", uid=2, pid=0, sys_language_uid=1, l10n_parent=2)
        check = PagesTranslatedLanguageParentSelf(store, schema)

        assert _uids(check.detect()) == [2]
        check.repair(console, False, check.detect())
        assert check.detect() == {}
        assert row("pages", 2)["deleted"] == 1


class TestPagesTranslatedLanguageParentDifferentPid:
    """Page translations placed elsewhere than their default language page."""

    def test_misplaced_translation_removed(self, store, schema, console, insert, row):
        """A translation on another pid than its parent is removed."""
        insert("pages", uid=1, pid=0)
        insert("pages", uid=10, pid=0)
        insert("pages", uid=2, pid=10, sys_language_uid=1, l10n_parent=1)
        insert("pages", uid=3, pid=0, sys_language_uid=1, l10n_parent=1)
        check = PagesTranslatedLanguageParentDifferentPid(store, schema)

        assert _uids(check.detect()) == [2]
        check.repair(console, False, check.detect())
        assert check.detect() == {}
        assert row("pages", 3) is not None
