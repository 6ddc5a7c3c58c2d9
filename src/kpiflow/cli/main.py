"""Main CLI entry point."""

import logging

import click
from kpiflow.database.factories import create_sqlite_database

# Import and register all commands at module level
from kpiflow.cli.commands import (
    init_kpis,
    kpi,
    connection,
    import_cmd,
    sample,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides KPIFLOW_DB_PATH environment variable)",
    envvar="KPIFLOW_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity (overrides KPIFLOW_LOG_LEVEL environment variable)",
    envvar="KPIFLOW_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Kpiflow - KPI ingestion for real-estate funds.

    Map spreadsheet columns to KPI definitions and import monthly actual,
    forecast and budget figures for a deal from CSV or Excel files.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
init_kpis.register_commands(cli)
kpi.register_commands(cli)
connection.register_commands(cli)
import_cmd.register_commands(cli)
sample.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
