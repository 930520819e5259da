#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants and configuration for the dbdoctor project.

This module defines the project paths as Path objects for consistent path
handling across the codebase. Paths are relative to the project root
directory, except the bundled configuration which lives inside the package.

The project structure:
    ROOT/
    ├── dbdoctor/          # Package code
    │   └── configs/       # Bundled schema metadata (schema.yaml)
    ├── logs/              # Application logs
    └── tests/             # Test suite

All paths are resolved at import time. Nothing is created here; directories
are made on demand by the components that write into them.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path


def _get_project_root() -> Path:
    """
    Determine project root directory.

    Assumes this file is at ROOT/dbdoctor/core/paths.py and navigates up
    the directory tree to find ROOT.

    Returns:
        Path object for project root
    """
    current_file = Path(__file__).resolve()

    # Navigate up: paths.py -> core/ -> dbdoctor/ -> ROOT/
    return current_file.parent.parent.parent


# ----- Project directory -----
ROOT: Path = _get_project_root()
PACKAGE_DIR = ROOT / "dbdoctor"

# ---- Configuration ----
CONFIG_DIR = PACKAGE_DIR / "configs"
DEFAULT_SCHEMA_PATH = CONFIG_DIR / "schema.yaml"

# ---- Database ----
DEFAULT_DB_URL = f"sqlite:///{ROOT / 'dbdoctor.db'}"

# ---- Logs ----
LOG_DIR = ROOT / "logs"
