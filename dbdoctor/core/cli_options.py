#!/usr/bin/env python3
"""
cli_options.py
-------------------
Reusable Click option decorators for consistent CLI interfaces.

Usage:
    from dbdoctor.core.cli_options import mode_option, file_option

    @cli.command()
    @mode_option
    @file_option
    def health(ctx, mode, file):
        pass
"""
import click
from dbdoctor.core.paths import DEFAULT_DB_URL, DEFAULT_SCHEMA_PATH, LOG_DIR


# ═══════════════════════════════════════════════════════════════════════════
# LOGGING OPTIONS
# ═══════════════════════════════════════════════════════════════════════════

verbose_option = click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks"
)

log_dir_option = click.option(
    "--log-dir",
    type=click.Path(file_okay=False),
    default=str(LOG_DIR),
    help="Directory for log files"
)


# ═══════════════════════════════════════════════════════════════════════════
# DATABASE OPTIONS
# ═══════════════════════════════════════════════════════════════════════════

db_url_option = click.option(
    "--db-url",
    default=DEFAULT_DB_URL,
    show_default=True,
    help="SQLAlchemy database URL"
)

schema_option = click.option(
    "--schema",
    "schema_path",
    type=click.Path(exists=True, dir_okay=False),
    default=str(DEFAULT_SCHEMA_PATH),
    help="YAML file describing per-table metadata"
)


# ═══════════════════════════════════════════════════════════════════════════
# HEALTH OPTIONS
# ═══════════════════════════════════════════════════════════════════════════

mode_option = click.option(
    "-m", "--mode",
    type=click.Choice(["interactive", "check", "execute"], case_sensitive=False),
    default="interactive",
    show_default=True,
    help=(
        "interactive: ask before changing records; "
        "check: report only, change nothing; "
        "execute: repair all findings without asking"
    )
)

file_option = click.option(
    "-f", "--file",
    "sql_file",
    type=click.Path(dir_okay=False),
    default=None,
    help=(
        "Absolute path of a not yet existing file that receives every executed "
        "statement. Not allowed with --mode check, mandatory with --mode execute"
    )
)
