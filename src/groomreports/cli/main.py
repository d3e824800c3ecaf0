"""Main CLI entry point."""

import logging

import click
from groomreports.database.factories import create_sqlite_database

# Import and register all commands at module level
from groomreports.cli.commands import (
    load,
    report,
    drill,
    warnings,
    view,
    definitions,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides GROOMREPORTS_DB_PATH environment variable)",
    envvar="GROOMREPORTS_DB_PATH",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Groomreports - Reporting and analytics for a grooming business.

    Load raw appointments, transactions, clients, staff, inventory and
    messages from a JSON export, then compute reconciled KPIs, charts and
    grouped tables, and drill into the records behind any figure.
    """
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
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
load.register_commands(cli)
report.register_commands(cli)
drill.register_commands(cli)
warnings.register_commands(cli)
view.register_commands(cli)
definitions.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
