#!/usr/bin/env python3
"""
schema.py
-----------------
Per-table schema metadata: which tables exist for the checks, and which
of their fields carry soft-delete, hidden, language, translation and
workspace semantics.

The registry is built once from a YAML file (or a plain dict in tests) and
handed to every check, resolver and renderer. Nothing reads it through a
global.

File format:
    hierarchy: pages            # tree table, rows are nodes
    content: tt_content         # table receiving the per-page content checks
    workspaces:
      enabled: true
      table: sys_workspace
      id_field: t3ver_wsid
      state_field: t3ver_state
      origin_field: t3ver_oid
    tables:
      pages:
        delete: deleted
        hidden: hidden
        language: sys_language_uid
        translation_parent: l10n_parent
        translation_source: l10n_source
        versioning: true
        label: title
        timestamp: tstamp
        type: doktype
      tx_hotel:
        delete: deleted
        inline:
          offers:
            foreign_table: tx_offer
            foreign_field: parentid
            foreign_table_field: parenttable

Usage:
    schema = SchemaRegistry.from_file(DEFAULT_SCHEMA_PATH)
    for table in schema.tables_with(Capability.SOFT_DELETE):
        field = schema.soft_delete_field(table)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple

# --- Third party imports ---
import yaml

# --- Local imports ---
from dbdoctor.core.exceptions import SchemaConfigError

if TYPE_CHECKING:
    from .row_store import RowStore


class Capability(Enum):
    """Table capabilities a check can ask for."""

    SOFT_DELETE = "delete"
    HIDDEN = "hidden"
    LANGUAGE = "language"
    TRANSLATION_PARENT = "translation_parent"
    TRANSLATION_SOURCE = "translation_source"
    WORKSPACE = "versioning"


@dataclass(frozen=True)
class InlineRelation:
    """
    A parent/child composition declared by an inline column.

    Attributes:
        child_table: Table holding the children
        parent_table: Table declaring the inline column
        parent_uid_field: Child field pointing to the parent uid
        parent_table_field: Child field naming the parent table, if any
    """

    child_table: str
    parent_table: str
    parent_uid_field: str
    parent_table_field: Optional[str] = None


@dataclass(frozen=True)
class TableSchema:
    """Capability fields of one table; None means 'not supported'."""

    name: str
    delete: Optional[str] = None
    hidden: Optional[str] = None
    language: Optional[str] = None
    translation_parent: Optional[str] = None
    translation_source: Optional[str] = None
    versioning: bool = False
    label: Optional[str] = None
    label_alt: Tuple[str, ...] = ()
    timestamp: Optional[str] = None
    type: Optional[str] = None
    inline: Tuple[Tuple[str, Dict[str, str]], ...] = field(default=())


_TABLE_KEYS = {
    "delete",
    "hidden",
    "language",
    "translation_parent",
    "translation_source",
    "versioning",
    "label",
    "label_alt",
    "timestamp",
    "type",
    "inline",
}

_WORKSPACE_DEFAULTS = {
    "enabled": True,
    "table": "sys_workspace",
    "id_field": "t3ver_wsid",
    "state_field": "t3ver_state",
    "origin_field": "t3ver_oid",
}


class SchemaRegistry:
    """
    Read-only lookup of per-table metadata.

    Attributes:
        hierarchy_table: Name of the tree table
        content_table: Name of the per-page content table, or None
        workspaces_enabled: Whether workspace overlays are supported at all
        workspace_table: Table listing the existing workspaces
    """

    def __init__(
        self,
        tables: List[TableSchema],
        hierarchy_table: str = "pages",
        content_table: Optional[str] = "tt_content",
        workspaces: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._tables: Dict[str, TableSchema] = {table.name: table for table in tables}
        settings = dict(_WORKSPACE_DEFAULTS)
        settings.update(workspaces or {})

        if hierarchy_table not in self._tables:
            raise SchemaConfigError(
                f'Hierarchy table "{hierarchy_table}" is not declared in tables'
            )
        if content_table is not None and content_table not in self._tables:
            raise SchemaConfigError(
                f'Content table "{content_table}" is not declared in tables'
            )

        self.hierarchy_table = hierarchy_table
        self.content_table = content_table
        self.workspaces_enabled = bool(settings["enabled"])
        self.workspace_table: str = settings["table"]
        self._workspace_id_field: str = settings["id_field"]
        self._workspace_state_field: str = settings["state_field"]
        self._workspace_origin_field: str = settings["origin_field"]

    # ═══════════════════════════════════════════════════════════════════════
    # CONSTRUCTION
    # ═══════════════════════════════════════════════════════════════════════

    @classmethod
    def from_file(cls, path: Path) -> "SchemaRegistry":
        """
        Load the registry from a YAML file.

        Args:
            path: Schema metadata file

        Returns:
            SchemaRegistry

        Raises:
            SchemaConfigError: If the file cannot be read or is invalid
        """
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except OSError as e:
            raise SchemaConfigError(f'Cannot read schema file "{path}": {e}') from e
        except yaml.YAMLError as e:
            raise SchemaConfigError(f'Invalid YAML in schema file "{path}": {e}') from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Any) -> "SchemaRegistry":
        """
        Build the registry from already parsed data.

        Raises:
            SchemaConfigError: If the structure is invalid
        """
        if not isinstance(data, dict):
            raise SchemaConfigError("Schema root must be a mapping")
        raw_tables = data.get("tables")
        if not isinstance(raw_tables, dict) or not raw_tables:
            raise SchemaConfigError('Schema needs a non-empty "tables" mapping')

        tables = [
            cls._parse_table(name, config or {}) for name, config in raw_tables.items()
        ]

        workspaces = data.get("workspaces") or {}
        if not isinstance(workspaces, dict):
            raise SchemaConfigError('"workspaces" must be a mapping')
        unknown = set(workspaces) - set(_WORKSPACE_DEFAULTS)
        if unknown:
            raise SchemaConfigError(
                f'"workspaces": unknown key(s) {", ".join(sorted(unknown))}'
            )

        return cls(
            tables,
            hierarchy_table=data.get("hierarchy", "pages"),
            content_table=data.get("content", "tt_content"),
            workspaces=workspaces,
        )

    @staticmethod
    def _parse_table(name: str, config: Dict[str, Any]) -> TableSchema:
        if not isinstance(config, dict):
            raise SchemaConfigError(f'Table "{name}": configuration must be a mapping')
        unknown = set(config) - _TABLE_KEYS
        if unknown:
            raise SchemaConfigError(
                f'Table "{name}": unknown key(s) {", ".join(sorted(unknown))}'
            )
        if (config.get("translation_parent") or config.get("translation_source")) and not config.get("language"):
            raise SchemaConfigError(
                f'Table "{name}": translation fields need a "language" field'
            )

        inline = []
        for column, relation in (config.get("inline") or {}).items():
            if not isinstance(relation, dict) or not relation.get("foreign_table") or not relation.get("foreign_field"):
                raise SchemaConfigError(
                    f'Table "{name}": inline column "{column}" needs foreign_table and foreign_field'
                )
            inline.append((column, dict(relation)))

        label_alt = config.get("label_alt") or ()
        if isinstance(label_alt, str):
            label_alt = tuple(part.strip() for part in label_alt.split(",") if part.strip())

        return TableSchema(
            name=name,
            delete=config.get("delete"),
            hidden=config.get("hidden"),
            language=config.get("language"),
            translation_parent=config.get("translation_parent"),
            translation_source=config.get("translation_source"),
            versioning=bool(config.get("versioning", False)),
            label=config.get("label"),
            label_alt=tuple(label_alt),
            timestamp=config.get("timestamp"),
            type=config.get("type"),
            inline=tuple(inline),
        )

    # ═══════════════════════════════════════════════════════════════════════
    # TABLES
    # ═══════════════════════════════════════════════════════════════════════

    def tables(self, ignore: Tuple[str, ...] = ()) -> Iterator[str]:
        """Yield all table names in declaration order."""
        for name in self._tables:
            if name not in ignore:
                yield name

    def has_table(self, table: str) -> bool:
        return table in self._tables

    def tables_with(
        self, capability: Capability, ignore: Tuple[str, ...] = ()
    ) -> Iterator[str]:
        """
        Yield tables supporting a capability.

        Args:
            capability: Capability to filter by
            ignore: Table names to skip

        Yields:
            Table names in declaration order
        """
        for name, table in self._tables.items():
            if name in ignore:
                continue
            if getattr(table, capability.value):
                yield name

    def _table(self, table: str) -> Optional[TableSchema]:
        return self._tables.get(table)

    # ═══════════════════════════════════════════════════════════════════════
    # FIELD LOOKUPS
    # ═══════════════════════════════════════════════════════════════════════

    def soft_delete_field(self, table: str) -> Optional[str]:
        schema = self._table(table)
        return schema.delete if schema else None

    def hidden_field(self, table: str) -> Optional[str]:
        schema = self._table(table)
        return schema.hidden if schema else None

    def language_field(self, table: str) -> Optional[str]:
        schema = self._table(table)
        return schema.language if schema else None

    def translation_parent_field(self, table: str) -> Optional[str]:
        schema = self._table(table)
        return schema.translation_parent if schema else None

    def translation_source_field(self, table: str) -> Optional[str]:
        schema = self._table(table)
        return schema.translation_source if schema else None

    def workspace_id_field(self, table: str) -> Optional[str]:
        schema = self._table(table)
        return self._workspace_id_field if schema and schema.versioning else None

    def workspace_state_field(self, table: str) -> Optional[str]:
        schema = self._table(table)
        return self._workspace_state_field if schema and schema.versioning else None

    def workspace_origin_field(self, table: str) -> Optional[str]:
        schema = self._table(table)
        return self._workspace_origin_field if schema and schema.versioning else None

    def label_fields(self, table: str) -> List[str]:
        """Label field followed by alternative label fields, without duplicates."""
        schema = self._table(table)
        if not schema:
            return []
        fields: List[str] = []
        for name in (schema.label,) + schema.label_alt:
            if name and name not in fields:
                fields.append(name)
        return fields

    def timestamp_field(self, table: str) -> Optional[str]:
        schema = self._table(table)
        return schema.timestamp if schema else None

    def type_field(self, table: str) -> Optional[str]:
        schema = self._table(table)
        return schema.type if schema else None

    # ═══════════════════════════════════════════════════════════════════════
    # INLINE RELATIONS
    # ═══════════════════════════════════════════════════════════════════════

    def inline_children(
        self, with_table_field: Optional[bool] = None
    ) -> Iterator[InlineRelation]:
        """
        Yield inline parent/child relations.

        Relations naming a parent table field are polymorphic: the child row
        itself says which table its parent lives in. Those are yielded once
        per child table, the first declaration wins. Relations without that
        field are yielded once per (child, parent, field) combination.

        Args:
            with_table_field: True for polymorphic relations only, False for
                fixed-parent relations only, None for both

        Yields:
            InlineRelation instances
        """
        seen_polymorphic = set()
        seen_fixed = set()
        for parent_name, table in self._tables.items():
            for _column, relation in table.inline:
                child = relation["foreign_table"]
                uid_field = relation["foreign_field"]
                table_field = relation.get("foreign_table_field") or None
                if table_field:
                    if with_table_field is False or child in seen_polymorphic:
                        continue
                    seen_polymorphic.add(child)
                    yield InlineRelation(child, parent_name, uid_field, table_field)
                else:
                    key = (child, parent_name, uid_field)
                    if with_table_field is True or key in seen_fixed:
                        continue
                    seen_fixed.add(key)
                    yield InlineRelation(child, parent_name, uid_field)

    # ═══════════════════════════════════════════════════════════════════════
    # VERIFICATION
    # ═══════════════════════════════════════════════════════════════════════

    def verify(self, store: "RowStore") -> List[str]:
        """
        List declared tables and fields the database does not have.

        Args:
            store: Row store to check against

        Returns:
            Sorted list of "table" and "table.field" entries, empty if all exist
        """
        missing: List[str] = []
        expected: Dict[str, List[str]] = {}
        for name in self._tables:
            fields = ["uid", "pid"]
            fields.extend(
                value
                for value in (
                    self.soft_delete_field(name),
                    self.hidden_field(name),
                    self.language_field(name),
                    self.translation_parent_field(name),
                    self.translation_source_field(name),
                    self.workspace_id_field(name),
                    self.workspace_state_field(name),
                    self.workspace_origin_field(name),
                    self.timestamp_field(name),
                    self.type_field(name),
                )
                if value
            )
            fields.extend(self.label_fields(name))
            expected[name] = fields
        for relation in self.inline_children():
            fields = expected.setdefault(relation.child_table, ["uid", "pid"])
            fields.append(relation.parent_uid_field)
            if relation.parent_table_field:
                fields.append(relation.parent_table_field)
        if self.workspaces_enabled:
            expected.setdefault(self.workspace_table, ["uid"])

        for table, fields in expected.items():
            if not store.table_exists(table):
                missing.append(table)
                continue
            for name in dict.fromkeys(fields):
                if not store.field_exists(table, name):
                    missing.append(f"{table}.{name}")
        return sorted(missing)
