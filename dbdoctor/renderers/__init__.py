"""Tabular views of affected records for interactive runs."""

from .affected_pages import AffectedPagesRenderer
from .records import REASON_KEY, RecordsRenderer

__all__ = ["AffectedPagesRenderer", "RecordsRenderer", "REASON_KEY"]
