"""Raw record loading command."""

import json

import click
from groomreports.cli.error_handling import domain_errors
from groomreports.domain.dataset import DatasetService


@click.command("load")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def load_records(ctx, file: str):
    """Load raw records from a JSON export.

    FILE is a JSON object whose keys are collection names (appointments,
    transactions, clients, staff, inventory, messages) and whose values are
    lists of records. Collections present in the file replace the stored
    ones; collections not mentioned are kept.

    Examples:
        groomreports load export.json
    """
    db = ctx.obj["db"]
    service = DatasetService(db)

    try:
        with open(file, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        click.echo(f"Error: Could not read '{file}': {e}", err=True)
        ctx.exit(1)

    if not isinstance(data, dict):
        click.echo("Error: Expected a JSON object of collections", err=True)
        ctx.exit(1)

    with domain_errors(ctx):
        revision = service.load_collections(data)

    click.echo(f"Loaded revision {revision}:")
    for name, count in service.record_counts().items():
        marker = "" if name in data else "  (kept)"
        click.echo(f"  {name:<15} {count:>6}{marker}")

    dataset = service.get_dataset()
    if dataset.warnings:
        click.echo(
            f"{len(dataset.warnings)} normalization warning(s); run 'groomreports warnings' for details."
        )


def register_commands(cli):
    """Register load commands with main CLI."""
    cli.add_command(load_records, name="load")
