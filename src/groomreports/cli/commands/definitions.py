"""Metric definition commands."""

import click
from groomreports.cli.error_handling import domain_errors
from groomreports.domain.metrics import METRICS, get_metric
from groomreports.domain.reports import get_report


@click.command("definitions")
@click.argument("report_id", required=False, metavar="[REPORT_ID]")
@click.pass_context
def list_definitions(ctx, report_id: str | None):
    """Explain the metrics behind a report.

    Without REPORT_ID, every metric is listed.

    Examples:
        groomreports definitions
        groomreports definitions true-profit
    """
    with domain_errors(ctx):
        if report_id is None:
            title = "All metrics"
            definitions = list(METRICS.values())
        else:
            report = get_report(report_id)
            title = report.title
            definitions = [get_metric(metric_id) for metric_id in report.metric_ids()]

    click.echo(f"\nMetric definitions: {title}")
    click.echo("-" * 80)
    for definition in definitions:
        click.echo(f"{definition.label} ({definition.id.value})")
        click.echo(f"  {definition.definition}")
        click.echo(f"  Formula: {definition.formula}")


def register_commands(cli):
    """Register definition commands with main CLI."""
    cli.add_command(list_definitions, name="definitions")
