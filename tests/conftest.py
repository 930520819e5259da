"""
conftest.py
-----------
Shared pytest fixtures for dbdoctor tests.

Provides fixtures for:
- A sqlite database with the reference tables
- The matching SchemaRegistry and a RowStore on top of it
- ConsoleIO instances with captured output and scripted answers
- Helpers inserting and reading rows
"""
import copy
import pytest
from io import StringIO
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, insert as sa_insert, select

from dbdoctor.core.console import ConsoleIO
from dbdoctor.database import RowStore, SchemaRegistry


# ----- Reference schema -----

SCHEMA_DATA: Dict[str, Any] = {
    "hierarchy": "pages",
    "content": "tt_content",
    "workspaces": {
        "enabled": True,
        "table": "sys_workspace",
        "id_field": "t3ver_wsid",
        "state_field": "t3ver_state",
        "origin_field": "t3ver_oid",
    },
    "tables": {
        "pages": {
            "delete": "deleted",
            "hidden": "hidden",
            "language": "sys_language_uid",
            "translation_parent": "l10n_parent",
            "translation_source": "l10n_source",
            "versioning": True,
            "label": "title",
            "timestamp": "tstamp",
        },
        "tt_content": {
            "delete": "deleted",
            "hidden": "hidden",
            "language": "sys_language_uid",
            "translation_parent": "l18n_parent",
            "translation_source": "l10n_source",
            "versioning": True,
            "label": "header",
            "timestamp": "tstamp",
        },
        "sys_workspace": {
            "delete": "deleted",
            "label": "title",
        },
        "tx_hotel": {
            "delete": "deleted",
            "hidden": "hidden",
            "language": "sys_language_uid",
            "translation_parent": "l10n_parent",
            "versioning": True,
            "label": "title",
            "inline": {
                "offers": {
                    "foreign_table": "tx_offer",
                    "foreign_field": "parentid",
                    "foreign_table_field": "parenttable",
                },
                "attachments": {
                    "foreign_table": "tx_attachment",
                    "foreign_field": "hotel",
                },
            },
        },
        "tx_offer": {
            "delete": "deleted",
            "language": "sys_language_uid",
            "translation_parent": "l10n_parent",
            "versioning": True,
            "label": "title",
        },
        "tx_attachment": {
            "delete": "deleted",
            "language": "sys_language_uid",
            "label": "title",
        },
        "tx_note": {
            "label": "title",
        },
    },
}


def _int(name: str) -> Column:
    return Column(name, Integer, nullable=False, default=0)


def _str(name: str) -> Column:
    return Column(name, String(255), nullable=False, default="")


def _workspace_columns() -> List[Column]:
    return [_int("t3ver_wsid"), _int("t3ver_state"), _int("t3ver_oid")]


def build_metadata() -> MetaData:
    """Table definitions matching SCHEMA_DATA."""
    metadata = MetaData()
    Table(
        "pages", metadata,
        Column("uid", Integer, primary_key=True), _int("pid"),
        _int("deleted"), _int("hidden"), _int("sys_language_uid"),
        _int("l10n_parent"), _int("l10n_source"), _int("tstamp"), _str("title"),
        *_workspace_columns(),
    )
    Table(
        "tt_content", metadata,
        Column("uid", Integer, primary_key=True), _int("pid"),
        _int("deleted"), _int("hidden"), _int("sys_language_uid"),
        _int("l18n_parent"), _int("l10n_source"), _int("tstamp"), _str("header"),
        *_workspace_columns(),
    )
    Table(
        "sys_workspace", metadata,
        Column("uid", Integer, primary_key=True), _int("pid"), _int("deleted"), _str("title"),
    )
    Table(
        "tx_hotel", metadata,
        Column("uid", Integer, primary_key=True), _int("pid"),
        _int("deleted"), _int("hidden"), _int("sys_language_uid"), _int("l10n_parent"),
        _str("title"), *_workspace_columns(),
    )
    Table(
        "tx_offer", metadata,
        Column("uid", Integer, primary_key=True), _int("pid"),
        _int("deleted"), _int("sys_language_uid"), _int("l10n_parent"),
        _int("parentid"), _str("parenttable"), _str("title"), *_workspace_columns(),
    )
    Table(
        "tx_attachment", metadata,
        Column("uid", Integer, primary_key=True), _int("pid"),
        _int("deleted"), _int("sys_language_uid"), _int("hotel"), _str("title"),
    )
    Table(
        "tx_note", metadata,
        Column("uid", Integer, primary_key=True), _int("pid"), _str("title"),
    )
    return metadata


# ----- Path Fixtures -----

@pytest.fixture
def tmp_dir():
    """Create a temporary directory for test file operations."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ----- Database Fixtures -----

@pytest.fixture
def db_url(tmp_path):
    """URL of a sqlite database file holding the reference tables."""
    url = f"sqlite:///{tmp_path / 'site.db'}"
    engine = create_engine(url)
    build_metadata().create_all(engine)
    engine.dispose()
    return url


@pytest.fixture
def engine(db_url):
    """Engine on the reference database."""
    engine = create_engine(db_url, future=True)
    yield engine
    engine.dispose()


@pytest.fixture
def schema_data():
    """Copy of the reference schema data, safe to modify."""
    return copy.deepcopy(SCHEMA_DATA)


@pytest.fixture
def schema(schema_data):
    """SchemaRegistry describing the reference tables."""
    return SchemaRegistry.from_dict(schema_data)


@pytest.fixture
def store(engine):
    """RowStore without logger."""
    return RowStore(engine)


@pytest.fixture
def insert(engine):
    """
    Insert one row, columns not given fall back to 0 or "".

    Usage:
        insert("pages", uid=1, pid=0, title="Home")
    """
    metadata = build_metadata()

    def _insert(table: str, **values: Any) -> int:
        with engine.begin() as connection:
            connection.execute(sa_insert(metadata.tables[table]).values(**values))
        return int(values.get("uid", 0))

    return _insert


@pytest.fixture
def rows(engine):
    """Read all rows of a table as dicts, ordered by uid."""
    metadata = build_metadata()

    def _rows(table: str) -> List[Dict[str, Any]]:
        reflected = metadata.tables[table]
        with engine.connect() as connection:
            result = connection.execute(select(reflected).order_by(reflected.c.uid))
            return [dict(row) for row in result.mappings()]

    return _rows


@pytest.fixture
def row(rows):
    """Read one row by uid, None if it does not exist."""

    def _row(table: str, uid: int) -> Optional[Dict[str, Any]]:
        for candidate in rows(table):
            if candidate["uid"] == uid:
                return candidate
        return None

    return _row


# ----- Console Fixtures -----

@pytest.fixture
def make_console():
    """
    Build a ConsoleIO writing to a StringIO and answering from a script.

    An unexpected prompt fails the test instead of blocking.
    """

    def _make(answers=()) -> ConsoleIO:
        pending = list(answers)

        def reader(question: str, default: str) -> str:
            if not pending:
                raise AssertionError(f"Unexpected prompt: {question}")
            return pending.pop(0)

        return ConsoleIO(reader=reader, stream=StringIO(), color=False)

    return _make


@pytest.fixture
def console(make_console):
    """ConsoleIO with captured output and no scripted answers."""
    return make_console()
