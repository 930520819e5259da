"""
dbdoctor Health Checks
----------------------
One class per referential invariant, grouped by subject:

- workspaces: Workspace overlay rows and the delete flag
- languages: Language, translation parent and source fields
- pages: Hierarchy table connectivity and page translations
- content: Content table placement and translations
- tables: Generic pid and translation checks on all tables
- inline: Inline children and their parents

The order the checks run in is defined by CheckRegistry.default().
"""

from .workspaces import (
    DeleteFlagZeroOrOne,
    WorkspacesNotLoadedRecordsDangling,
    WorkspacesPidNegative,
    WorkspacesRecordsOfDeletedWorkspaces,
    WorkspacesSoftDeletedRecords,
    WorkspacesStateNotZeroInLive,
    WorkspacesStateThree,
)
from .languages import (
    LanguageLessThanOneHasZeroLanguageParent,
    LanguageLessThanOneHasZeroLanguageSource,
    TranslatedParentInvalidPointer,
)
from .pages import (
    PagesBrokenTree,
    PagesTranslatedLanguageParentDeleted,
    PagesTranslatedLanguageParentDifferentPid,
    PagesTranslatedLanguageParentMissing,
    PagesTranslatedLanguageParentSelf,
)
from .content import (
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
from .tables import (
    TablesPidDeleted,
    TablesPidMissing,
    TablesTranslatedLanguageParentDeleted,
    TablesTranslatedLanguageParentDifferentPid,
    TablesTranslatedLanguageParentMissing,
    TablesTranslatedParentSelf,
)
from .inline import (
    InlineForeignFieldChildrenParentDeleted,
    InlineForeignFieldChildrenParentDifferentPid,
    InlineForeignFieldChildrenParentLanguageDifferent,
    InlineForeignFieldChildrenParentMissing,
    InlineForeignFieldNoForeignTableFieldChildrenParentDeleted,
    InlineForeignFieldNoForeignTableFieldChildrenParentDifferentPid,
    InlineForeignFieldNoForeignTableFieldChildrenParentLanguageDifferent,
    InlineForeignFieldNoForeignTableFieldChildrenParentMissing,
)

__all__ = [
    "WorkspacesNotLoadedRecordsDangling",
    "WorkspacesRecordsOfDeletedWorkspaces",
    "DeleteFlagZeroOrOne",
    "WorkspacesSoftDeletedRecords",
    "WorkspacesPidNegative",
    "WorkspacesStateNotZeroInLive",
    "WorkspacesStateThree",
    "LanguageLessThanOneHasZeroLanguageParent",
    "LanguageLessThanOneHasZeroLanguageSource",
    "PagesBrokenTree",
    "PagesTranslatedLanguageParentMissing",
    "PagesTranslatedLanguageParentDeleted",
    "PagesTranslatedLanguageParentSelf",
    "PagesTranslatedLanguageParentDifferentPid",
    "TranslatedParentInvalidPointer",
    "ContentPidMissing",
    "ContentPidDeleted",
    "ContentDeletedLocalizedParentExists",
    "ContentLocalizedParentExists",
    "ContentLocalizedParentSoftDeleted",
    "ContentDeletedLocalizedParentDifferentPid",
    "ContentLocalizedParentDifferentPid",
    "ContentLocalizedDuplicates",
    "ContentLocalizationSourceExists",
    "ContentLocalizationSourceSetWithParent",
    "ContentLocalizationSourceLogicWithParent",
    "TablesPidMissing",
    "TablesPidDeleted",
    "TablesTranslatedParentSelf",
    "TablesTranslatedLanguageParentMissing",
    "TablesTranslatedLanguageParentDeleted",
    "TablesTranslatedLanguageParentDifferentPid",
    "InlineForeignFieldChildrenParentMissing",
    "InlineForeignFieldNoForeignTableFieldChildrenParentMissing",
    "InlineForeignFieldChildrenParentDifferentPid",
    "InlineForeignFieldNoForeignTableFieldChildrenParentDifferentPid",
    "InlineForeignFieldChildrenParentDeleted",
    "InlineForeignFieldNoForeignTableFieldChildrenParentDeleted",
    "InlineForeignFieldChildrenParentLanguageDifferent",
    "InlineForeignFieldNoForeignTableFieldChildrenParentLanguageDifferent",
]
