#!/usr/bin/env python3
"""
sql_log.py
-----------------
Audit file receiving every executed repair statement.

The file is only created once the first statement is written, so a run
that changes nothing leaves nothing behind. Statements of each check are
preceded by a "# Triggered by <check>" line.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path
from typing import Optional, Set, Union

# --- Local imports ---
from dbdoctor.core.exceptions import SqlDumpFileError


class SqlDumpFile:
    """
    Lazily written SQL dump file.

    Attributes:
        path: Target file, None when dumping is disabled
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self.path: Optional[Path] = Path(path) if path else None
        self._headers_written: Set[str] = set()
        self._created = False
        if self.path is not None:
            self._validate(self.path)

    @staticmethod
    def _validate(path: Path) -> None:
        if not path.is_absolute():
            raise SqlDumpFileError(f'SQL dump file "{path}" must be an absolute path')
        if path.exists():
            raise SqlDumpFileError(f'SQL dump file "{path}" exists already')
        if not path.parent.is_dir():
            raise SqlDumpFileError(f'Directory of SQL dump file "{path}" does not exist')

    @property
    def enabled(self) -> bool:
        return self.path is not None

    def write(self, check_name: str, sql: str) -> None:
        """
        Append one executed statement.

        Args:
            check_name: Check that executed the statement
            sql: Rendered statement
        """
        if self.path is None:
            return
        try:
            with open(self.path, "a", encoding="utf-8") as handle:
                self._created = True
                if check_name not in self._headers_written:
                    handle.write(f"# Triggered by {check_name}\n")
                    self._headers_written.add(check_name)
                handle.write(sql + "\n")
        except OSError as e:
            raise SqlDumpFileError(f'Cannot write SQL dump file "{self.path}": {e}') from e

    def close(self) -> None:
        """Remove the file again if it ended up empty."""
        if self.path is None or not self._created:
            return
        if self.path.exists() and self.path.stat().st_size == 0:
            self.path.unlink()
