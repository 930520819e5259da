"""
Maintenance Commands
----------------------------------

Inspection commands that never change the database.

Commands:
    - checks: List the check catalogue in run order
    - schema: Verify the schema metadata against the database
"""
# --- Standard library imports ---
import sys

# --- Third party imports ---
import click

# --- Local imports ---
from dbdoctor.core.exceptions import DoctorError
from dbdoctor.core.logging_manager import handle_cli_error
from dbdoctor.health import CheckRegistry
from . import get_schema, get_store


@click.command()
@click.option("--details", is_flag=True, help="Show descriptions and prerequisites")
@click.pass_context
def checks(ctx, details):
    """List all checks in the order they run."""
    try:
        registry = CheckRegistry.default()
    except DoctorError as e:
        handle_cli_error(ctx, e, "checks")

    click.echo(f"\n{len(registry)} checks:")
    for index, check_class in enumerate(registry, start=1):
        tags = ", ".join(tag.value for tag in check_class.tags)
        click.echo(f"  {index:>2}. {check_class.__name__} [{tags}]")
        if details:
            click.echo(f"      {check_class.title}")
            for line in check_class.description:
                click.echo(f"      {line}")
            if check_class.requires:
                click.echo(f"      Requires: {', '.join(check_class.requires)}")
            dependents = registry.dependents(check_class.__name__)
            if dependents:
                click.echo(f"      Required by: {', '.join(dependents)}")


@click.command()
@click.pass_context
def schema(ctx):
    """Verify declared tables and fields exist in the database."""
    try:
        registry = get_schema(ctx)
        missing = registry.verify(get_store(ctx))
    except DoctorError as e:
        handle_cli_error(ctx, e, "schema")

    if missing:
        click.echo(f"\n⚠️  Schema metadata names {len(missing)} missing tables or fields:")
        for entry in missing:
            click.echo(f"  • {entry}")
        sys.exit(1)

    click.echo("\n✅ Schema metadata matches the database")
    store = get_store(ctx)
    try:
        for table in registry.tables():
            click.echo(f"  • {table}: {store.count_rows(table)} rows")
    except DoctorError as e:
        handle_cli_error(ctx, e, "schema")
