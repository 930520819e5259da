#!/usr/bin/env python3
"""
registry.py
-------------------
Ordered catalogue of health checks.

Checks rely on invariants established by earlier checks: a check looking
at soft-deleted translation parents assumes missing parents have been
removed already. Each check names those earlier checks in its `requires`
attribute. CheckRegistry validates the declared order once, when it is
built, so a misplaced check fails loudly instead of raising a
prerequisite violation in the middle of a repair run.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Dict, Iterator, List, Sequence, Type

# --- Local imports ---
from dbdoctor.core.exceptions import CheckOrderError
from .base import HealthCheck
from . import checks


DEFAULT_CHECKS: List[Type[HealthCheck]] = [
    checks.WorkspacesNotLoadedRecordsDangling,
    checks.WorkspacesRecordsOfDeletedWorkspaces,
    checks.DeleteFlagZeroOrOne,
    checks.WorkspacesSoftDeletedRecords,
    checks.WorkspacesPidNegative,
    checks.WorkspacesStateNotZeroInLive,
    checks.WorkspacesStateThree,
    checks.LanguageLessThanOneHasZeroLanguageParent,
    checks.LanguageLessThanOneHasZeroLanguageSource,
    checks.PagesBrokenTree,
    checks.PagesTranslatedLanguageParentMissing,
    checks.PagesTranslatedLanguageParentDeleted,
    checks.PagesTranslatedLanguageParentSelf,
    checks.PagesTranslatedLanguageParentDifferentPid,
    checks.TranslatedParentInvalidPointer,
    checks.ContentPidMissing,
    checks.ContentPidDeleted,
    checks.ContentDeletedLocalizedParentExists,
    checks.ContentLocalizedParentExists,
    checks.ContentLocalizedParentSoftDeleted,
    checks.ContentDeletedLocalizedParentDifferentPid,
    checks.ContentLocalizedParentDifferentPid,
    checks.ContentLocalizedDuplicates,
    checks.ContentLocalizationSourceExists,
    checks.ContentLocalizationSourceSetWithParent,
    checks.ContentLocalizationSourceLogicWithParent,
    checks.TablesPidMissing,
    checks.TablesPidDeleted,
    checks.TablesTranslatedParentSelf,
    checks.TablesTranslatedLanguageParentMissing,
    checks.TablesTranslatedLanguageParentDeleted,
    checks.TablesTranslatedLanguageParentDifferentPid,
    checks.InlineForeignFieldChildrenParentMissing,
    checks.InlineForeignFieldNoForeignTableFieldChildrenParentMissing,
    checks.InlineForeignFieldChildrenParentDifferentPid,
    checks.InlineForeignFieldNoForeignTableFieldChildrenParentDifferentPid,
    checks.InlineForeignFieldChildrenParentDeleted,
    checks.InlineForeignFieldNoForeignTableFieldChildrenParentDeleted,
    checks.InlineForeignFieldChildrenParentLanguageDifferent,
    checks.InlineForeignFieldNoForeignTableFieldChildrenParentLanguageDifferent,
]


class CheckRegistry:
    """
    Validated, ordered list of check classes.

    Attributes:
        check_classes: Check classes in run order
    """

    def __init__(self, check_classes: Sequence[Type[HealthCheck]]) -> None:
        self.check_classes: List[Type[HealthCheck]] = list(check_classes)
        self._validate()

    @classmethod
    def default(cls) -> "CheckRegistry":
        return cls(DEFAULT_CHECKS)

    def _validate(self) -> None:
        """
        Verify names are unique and every prerequisite runs earlier.

        Raises:
            CheckOrderError: On duplicates, unknown or late prerequisites
        """
        positions: Dict[str, int] = {}
        for index, check_class in enumerate(self.check_classes):
            name = check_class.__name__
            if name in positions:
                raise CheckOrderError(f'Check "{name}" is registered twice')
            positions[name] = index

        for index, check_class in enumerate(self.check_classes):
            for prerequisite in check_class.requires:
                if prerequisite not in positions:
                    raise CheckOrderError(
                        f'Check "{check_class.__name__}" requires unknown check "{prerequisite}"'
                    )
                if positions[prerequisite] >= index:
                    raise CheckOrderError(
                        f'Check "{check_class.__name__}" requires "{prerequisite}", '
                        "which is registered after it"
                    )

    def __iter__(self) -> Iterator[Type[HealthCheck]]:
        return iter(self.check_classes)

    def __len__(self) -> int:
        return len(self.check_classes)

    def names(self) -> List[str]:
        return [check_class.__name__ for check_class in self.check_classes]

    def dependents(self, name: str) -> List[str]:
        """Names of checks directly requiring the given check."""
        return [
            check_class.__name__
            for check_class in self.check_classes
            if name in check_class.requires
        ]
