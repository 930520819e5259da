#!/usr/bin/env python3
"""
dbdoctor Health Package
-----------------------
Health check scaffolding, catalogue and orchestration.

- base: HealthCheck contract, run modes and repair helpers
- checks: The individual checks
- registry: Ordered, validated check catalogue
- runner: Runs the catalogue and aggregates results
- sql_log: SQL dump file of executed statements
"""

from .base import (
    ActionTag,
    AffectedRecords,
    CheckMode,
    CheckOutcome,
    HealthCheck,
    HealthResult,
    InteractiveState,
)
from .registry import CheckRegistry
from .runner import HealthReport, HealthRunner
from .sql_log import SqlDumpFile

__all__ = [
    "ActionTag",
    "AffectedRecords",
    "CheckMode",
    "CheckOutcome",
    "HealthCheck",
    "HealthResult",
    "InteractiveState",
    "CheckRegistry",
    "HealthReport",
    "HealthRunner",
    "SqlDumpFile",
]
