#!/usr/bin/env python3
"""
conftest.py
----------------
Shared fixtures for CLI integration tests.

Provides a sqlite site database seeded with a few broken relations, the
matching schema YAML file and a helper invoking the CLI against both.

Fixtures:
    schema_file: YAML schema file describing the reference tables
    broken_site: Database with a consistent tree plus broken records
    run_cli: Invoke the dbdoctor CLI with database, schema and log options
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import List

# --- Third-party imports ---
import pytest
import yaml
from click.testing import CliRunner

# --- Local imports ---
from dbdoctor.cli import cli


# ==================== Files ====================

@pytest.fixture
def schema_file(tmp_path, schema_data):
    """Schema YAML file written from the reference schema data."""
    path = tmp_path / "schema.yaml"
    path.write_text(yaml.safe_dump(schema_data, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def log_dir(tmp_path):
    path = tmp_path / "logs"
    path.mkdir()
    return path


# ==================== Populated Database ====================

@pytest.fixture
def broken_site(insert):
    """
    Create a small site with two kinds of broken records.

    Contains:
    - pages 1 (root) and 2, both connected
    - page 4 hanging below missing page 99
    - content 1 on page 2, content 2 on missing page 50
    """
    insert("sys_workspace", uid=1, title="Draft")
    insert("pages", uid=1, pid=0, title="Home")
    insert("pages", uid=2, pid=1, title="About")
    insert("pages", uid=4, pid=99, title="Orphan")
    insert("tt_content", uid=1, pid=2, header="Welcome")
    insert("tt_content", uid=2, pid=50, header="Lost")


# ==================== CLI ====================

@pytest.fixture
def run_cli(db_url, schema_file, log_dir):
    """Invoke the CLI with database, schema and log directory preset."""
    runner = CliRunner()

    def _run(args: List[str], **kwargs):
        base_args = [
            "--db-url", db_url,
            "--schema", str(schema_file),
            "--log-dir", str(log_dir),
        ]
        return runner.invoke(cli, base_args + args, obj={}, **kwargs)

    return _run
