"""Report commands."""

import click
from groomreports.cli.date_filters import build_filter_state, filter_options, resolve_cli_today
from groomreports.cli.error_handling import domain_errors
from groomreports.domain.analytics import AnalyticsService
from groomreports.domain.dataset import DatasetService
from groomreports.domain.entities import ReportData
from groomreports.domain.errors import ValidationError, empty_dataset
from groomreports.domain.filters import resolve_report_filters
from groomreports.domain.metrics import format_delta, format_metric
from groomreports.domain.reports import REPORTS, get_report
from groomreports.domain.saved_views import SavedViewService


def load_report_inputs(ctx, report_id: str, view_name: str | None, today: str | None, **filter_opts):
    """Resolve filters and load the dataset for a report command.

    Returns:
        (report definition, normalized dataset, resolved filters)
    """
    db = ctx.obj["db"]
    anchor = resolve_cli_today(ctx, today)

    with domain_errors(ctx):
        report = get_report(report_id)
        base = None
        if view_name:
            base = SavedViewService(db).get_view(view_name).filters
        state = build_filter_state(ctx, base=base, **filter_opts)
        resolved = resolve_report_filters(report.id, state, today=anchor)
        dataset_service = DatasetService(db)
        if not dataset_service.has_records():
            raise ValidationError(empty_dataset())
        dataset = dataset_service.get_dataset()
    return report, dataset, resolved


def _render_report(data: ReportData, show_charts: bool) -> None:
    resolved = data.filters
    click.echo(f"\n{data.title}")
    window = f"{resolved.current} ({resolved.date_preset.value})"
    if resolved.prior is not None:
        window += f"  vs {resolved.prior}"
    click.echo(window)
    click.echo("-" * 80)

    for kpi in data.kpis:
        value = format_metric(kpi.value, kpi.format)
        click.echo(f"{kpi.label:<40} {value:>16}  {format_delta(kpi)}")

    if show_charts:
        for chart in data.charts:
            click.echo(f"\n{chart.title} (by {chart.granularity.value})")
            for point in chart.points:
                line = f"  {point.label:<12} {format_metric(point.value, chart.format):>16}"
                if point.previous_value is not None:
                    line += f"  prior {format_metric(point.previous_value, chart.format)}"
                click.echo(line)

    table = data.table
    click.echo(f"\nBy {table.group_by.value}:")
    if not table.rows:
        click.echo("  No records in this period.")
    else:
        header = f"{'':<24}" + "".join(f" {column.label[:16]:>16}" for column in table.columns)
        click.echo(header)
        for row in table.rows:
            cells = "".join(
                f" {format_metric(row.values[column.id], column.format):>16}" for column in table.columns
            )
            click.echo(f"{row.label[:24]:<24}{cells}")

    if data.insights:
        click.echo("\nInsights:")
        for insight in data.insights:
            click.echo(f"  [{insight.severity}] {insight.title}: {insight.description}")
            if insight.action:
                click.echo(f"      {insight.action}")


@click.command("reports")
def list_reports():
    """List available reports."""
    click.echo("\nReports:")
    click.echo("-" * 80)
    for report in REPORTS.values():
        click.echo(f"{report.id.value:<24} {report.title:<28} {report.description}")


@click.command("report")
@click.argument("report_id", metavar="REPORT_ID")
@filter_options
@click.option("--view", "view_name", help="Start from a saved view's filters")
@click.option("--today", help="Anchor date for presets (defaults to today in the business time zone)")
@click.option("--charts", "show_charts", is_flag=True, help="Show chart series")
@click.pass_context
def show_report(ctx, report_id: str, view_name: str | None, today: str | None, show_charts: bool, **filter_opts):
    """Compute and display a report.

    Examples:
        groomreports report sales-summary
        groomreports report true-profit --preset last-month --compare
        groomreports report sales-summary --start-date 2024-01-01 --end-date 2024-01-31 --group-by groomer
    """
    report, dataset, resolved = load_report_inputs(ctx, report_id, view_name, today, **filter_opts)

    with domain_errors(ctx):
        data = AnalyticsService().get_report_data(report.id, dataset, resolved)

    _render_report(data, show_charts)


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(list_reports, name="reports")
    cli.add_command(show_report, name="report")
