"""
Health Commands
----------------------------------

Run the check catalogue against a database.

Commands:
    - health: Check, repair or interactively repair broken relations

Exit codes:
    0 all checks OK, 1 broken records left, 2 aborted by the user,
    4 error. Codes of several checks are OR-ed.
"""
# --- Standard library imports ---
from typing import Optional

# --- Third party imports ---
import click

# --- Local imports ---
from dbdoctor.core.cli_options import file_option, mode_option
from dbdoctor.core.console import ConsoleIO
from dbdoctor.core.exceptions import DoctorError, ValidationError
from dbdoctor.core.logging_manager import handle_cli_error
from dbdoctor.health import CheckMode, HealthResult, HealthRunner, SqlDumpFile
from . import get_schema, get_store


def open_sql_log(mode: CheckMode, sql_file: Optional[str]) -> SqlDumpFile:
    """
    Validate the --file option against the mode and build the dump file.

    Raises:
        ValidationError: If --file is given in check mode or missing in execute mode
        SqlDumpFileError: If the path is relative or the file exists already
    """
    if mode is CheckMode.CHECK and sql_file:
        raise ValidationError("Option --file is not allowed with --mode check")
    if mode is CheckMode.EXECUTE and not sql_file:
        raise ValidationError("Option --file is mandatory with --mode execute")
    return SqlDumpFile(sql_file)


def result_label(result: HealthResult) -> str:
    names = [
        flag.name
        for flag in (HealthResult.BROKEN, HealthResult.ABORTED, HealthResult.ERROR)
        if result & flag
    ]
    return ", ".join(names) if names else "OK"


@click.command()
@mode_option
@file_option
@click.pass_context
def health(ctx, mode, sql_file):
    """Find and repair broken record relations."""
    check_mode = CheckMode(mode.lower())
    logger = ctx.obj.get("logger")
    sql_log: Optional[SqlDumpFile] = None
    context = {"mode": check_mode.value, "file": sql_file}

    try:
        sql_log = open_sql_log(check_mode, sql_file)
        runner = HealthRunner(get_store(ctx), get_schema(ctx), ConsoleIO(), logger, sql_log)
        report = runner.run(check_mode)
    except DoctorError as e:
        handle_cli_error(ctx, e, "health", context, exit_code=int(HealthResult.ERROR))
    finally:
        if sql_log is not None:
            sql_log.close()

    click.echo(f"\nResult: {result_label(report.result)}")
    ctx.exit(int(report.result))
