"""Normalization warning commands."""

import click
from groomreports.domain.dataset import DatasetService
from groomreports.domain.entities import RecordType


@click.command("warnings")
@click.option(
    "--type",
    "record_type",
    type=click.Choice([record_type.value for record_type in RecordType]),
    help="Only show warnings for one collection",
)
@click.pass_context
def list_warnings(ctx, record_type: str | None):
    """Show records that were repaired or dropped during normalization."""
    db = ctx.obj["db"]
    service = DatasetService(db)

    dataset = service.get_dataset()
    warnings = [
        warning
        for warning in dataset.warnings
        if record_type is None or warning.record_type.value == record_type
    ]
    if not warnings:
        click.echo("No normalization warnings.")
        return

    click.echo(f"\nNormalization warnings (dataset version {dataset.version}):")
    click.echo("-" * 80)
    for warning in warnings:
        record_id = warning.record_id or "?"
        click.echo(f"{warning.record_type.value:<13} {record_id:<16} {warning.message}")


def register_commands(cli):
    """Register warning commands with main CLI."""
    cli.add_command(list_warnings, name="warnings")
