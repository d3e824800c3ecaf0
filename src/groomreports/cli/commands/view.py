"""Saved view commands."""

import click
from groomreports.cli.date_filters import build_filter_state, filter_options
from groomreports.cli.error_handling import domain_errors
from groomreports.domain.filters import filter_state_to_dict
from groomreports.domain.saved_views import SavedViewService


@click.group()
def view_group():
    """Manage saved report views."""
    pass


@view_group.command("save")
@click.argument("name", metavar="NAME")
@click.argument("report_id", metavar="REPORT_ID")
@filter_options
@click.option("--overwrite", is_flag=True, help="Replace an existing view with the same name")
@click.pass_context
def save_view(ctx, name: str, report_id: str, overwrite: bool, **filter_opts):
    """Save filter options as a named view.

    Only the options given are stored; report defaults still fill the rest
    when the view is used.

    Examples:
        groomreports view save "Jan payroll" payroll --start-date 2024-01-01 --end-date 2024-01-31
        groomreports view save "Card sales" sales-summary --payment-method card --group-by week
    """
    db = ctx.obj["db"]
    service = SavedViewService(db)

    state = build_filter_state(ctx, **filter_opts)
    with domain_errors(ctx):
        view_id = service.save_view(name, report_id, state, overwrite=overwrite)
    click.echo(f"Saved view '{name.strip()}' for {report_id} (ID: {view_id})")


@view_group.command("list")
@click.option("--report", "report_id", help="Only list views of one report")
@click.pass_context
def list_views(ctx, report_id: str | None):
    """List saved views."""
    db = ctx.obj["db"]
    service = SavedViewService(db)

    with domain_errors(ctx):
        views = service.list_views(report_id)
    if not views:
        click.echo("No saved views found.")
        return

    click.echo("\nSaved views:")
    click.echo("-" * 80)
    for view in views:
        click.echo(f"ID: {view.id:3d} | {view.name:30s} | {view.report_id.value}")


@view_group.command("show")
@click.argument("name", metavar="NAME")
@click.pass_context
def show_view(ctx, name: str):
    """Show the filters stored in a saved view."""
    db = ctx.obj["db"]
    service = SavedViewService(db)

    with domain_errors(ctx):
        view = service.get_view(name)

    click.echo(f"\nView: {view.name} (ID: {view.id})")
    click.echo(f"  Report: {view.report_id.value}")
    click.echo(f"  Updated: {view.updated_at:%Y-%m-%d %H:%M}")
    filters = filter_state_to_dict(view.filters)
    if not filters:
        click.echo("  Filters: report defaults")
    for key, value in filters.items():
        if isinstance(value, list):
            value = ", ".join(str(item) for item in value)
        click.echo(f"  {key.replace('_', ' ').capitalize()}: {value}")


@view_group.command("delete")
@click.argument("name", metavar="NAME")
@click.pass_context
def delete_view(ctx, name: str):
    """Delete a saved view."""
    db = ctx.obj["db"]
    service = SavedViewService(db)

    with domain_errors(ctx):
        service.delete_view(name)
    click.echo(f"Deleted view '{name}'")


def register_commands(cli):
    """Register saved view commands with main CLI."""
    cli.add_command(view_group, name="view")
