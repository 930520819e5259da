#!/usr/bin/env python3
"""
dbdoctor CLI
-------------------

Command-line interface of the referential integrity doctor.

This module provides the main CLI group and the shared context setup
for all commands.

Command Structure:
    - health: Run the check catalogue (check, execute or interactive)
    - checks: List the check catalogue in run order
    - schema: Verify the schema metadata against the database

Usage:
    # Report only
    dbdoctor --db-url sqlite:////srv/site.db health --mode check

    # Repair everything, recording each statement
    dbdoctor health --mode execute --file /tmp/dbdoctor.sql

    # Get help for a specific command
    dbdoctor health --help
"""
# --- Standard library imports ---
import logging
from pathlib import Path

# --- Third party imports ---
import click

# --- Local imports ---
from dbdoctor.core.cli_options import (
    db_url_option,
    log_dir_option,
    schema_option,
    verbose_option,
)
from dbdoctor.core.logging_manager import DoctorLogger
from dbdoctor.database import RowStore, SchemaRegistry


@click.group()
@db_url_option
@schema_option
@log_dir_option
@verbose_option
@click.pass_context
def cli(ctx, db_url, schema_path, log_dir, verbose):
    """dbdoctor: find and repair broken record relations."""
    ctx.ensure_object(dict)
    ctx.obj["db_url"] = db_url
    ctx.obj["schema_path"] = Path(schema_path)
    ctx.obj["log_dir"] = Path(log_dir)
    ctx.obj["verbose"] = verbose
    ctx.obj["logger"] = DoctorLogger(
        Path(log_dir),
        component_name="dbdoctor",
        console_level=logging.INFO if verbose else logging.WARNING,
    )


def get_schema(ctx) -> SchemaRegistry:
    """Get or load the schema registry from context."""
    if "schema" not in ctx.obj:
        ctx.obj["schema"] = SchemaRegistry.from_file(ctx.obj["schema_path"])
    return ctx.obj["schema"]


def get_store(ctx) -> RowStore:
    """Get or create the row store from context."""
    if "store" not in ctx.obj:
        ctx.obj["store"] = RowStore.from_url(ctx.obj["db_url"], ctx.obj.get("logger"))
    return ctx.obj["store"]


# Import and register command modules
# These imports must come after CLI group definition
from .health import health  # noqa: E402
from .maintenance import checks, schema  # noqa: E402

cli.add_command(health)
cli.add_command(checks)
cli.add_command(schema)


if __name__ == "__main__":
    cli(obj={})
