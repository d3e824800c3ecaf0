"""Drill-down commands."""

import click
from groomreports.cli.commands.report import load_report_inputs
from groomreports.cli.date_filters import filter_options
from groomreports.cli.error_handling import domain_errors
from groomreports.domain.analytics import compute_report_data
from groomreports.domain.drill import DrillResult, resolve_drill
from groomreports.domain.entities import RecordType
from groomreports.domain.metrics import format_metric, get_metric
from groomreports.utils.amount_parser import cents_to_decimal


def _money(cents: int) -> str:
    return f"${cents_to_decimal(cents):,.2f}"


def _render_records(result: DrillResult, limit: int) -> None:
    for record_type in result.request.record_types:
        records = result.records(record_type)
        click.echo(f"\n{record_type.value.capitalize()} ({len(records)}):")
        for record in records[:limit]:
            if record_type == RecordType.TRANSACTIONS:
                click.echo(
                    f"  {record.id:<12} {record.date} {record.payment_method.value:<6} "
                    f"{record.status.value:<9} net {_money(record.subtotal_cents - record.discount_cents - record.refund_cents):>12}"
                    f"  total {_money(record.total_cents):>12}  tip {_money(record.tip_cents):>10}"
                )
            elif record_type == RecordType.APPOINTMENTS:
                service = record.main_service.name if record.main_service else ""
                click.echo(
                    f"  {record.id:<12} {record.date} {record.status.value:<10} "
                    f"{record.client_name[:18]:<18} {service[:20]:<20} {_money(record.total_price_cents):>10}"
                )
            elif record_type == RecordType.INVENTORY:
                click.echo(
                    f"  {record.id:<12} {record.name[:30]:<30} on hand {record.quantity_on_hand:>5}"
                    f"  reorder at {record.reorder_threshold:>5}"
                )
            elif record_type == RecordType.MESSAGES:
                click.echo(f"  {record.id:<12} {record.date} {record.channel:<8} {record.client_id or ''}")
            else:
                click.echo(f"  {record.id:<12} {getattr(record, 'name', '')}")
        if len(records) > limit:
            click.echo(f"  ... and {len(records) - limit} more")


@click.command("drill")
@click.argument("report_id", metavar="REPORT_ID")
@click.option("--metric", "metric_id", help="Drill into a KPI by metric ID")
@click.option("--row", "row_key", help="Drill into a table row by group key")
@filter_options
@click.option("--view", "view_name", help="Start from a saved view's filters")
@click.option("--today", help="Anchor date for presets (defaults to today in the business time zone)")
@click.option("--limit", type=int, default=50, show_default=True, help="Records to list per type")
@click.pass_context
def drill(
    ctx,
    report_id: str,
    metric_id: str | None,
    row_key: str | None,
    view_name: str | None,
    today: str | None,
    limit: int,
    **filter_opts,
):
    """Show the records behind a KPI or table row.

    Examples:
        groomreports drill sales-summary --metric net-sales
        groomreports drill staff-performance --row g1 --preset last-month
    """
    if (metric_id is None) == (row_key is None):
        click.echo("Error: Specify exactly one of --metric or --row.", err=True)
        ctx.exit(1)

    report, dataset, resolved = load_report_inputs(ctx, report_id, view_name, today, **filter_opts)

    with domain_errors(ctx):
        data = compute_report_data(report.id, dataset, resolved)
        if metric_id is not None:
            definition = get_metric(metric_id)
            kpi = data.kpi(definition.id)
            if kpi is None:
                click.echo(f"Error: Report '{report.id.value}' has no KPI '{definition.id.value}'", err=True)
                ctx.exit(1)
            request, shown = kpi.drill, kpi.value
        else:
            row = next((row for row in data.table.rows if row.key == row_key), None)
            if row is None:
                click.echo(f"Error: No '{data.table.group_by.value}' row '{row_key}' in this period", err=True)
                ctx.exit(1)
            request = row.drill
            definition = get_metric(request.metric)
            shown = request.value

        result = resolve_drill(request, dataset)

    click.echo(f"\n{request.title} ({resolved.current})")
    click.echo("-" * 80)
    _render_records(result, limit)

    recomputed = result.metric_value(definition.id)
    status = "matches" if recomputed == shown else "DOES NOT MATCH"
    click.echo(
        f"\n{definition.label} over these records: {format_metric(recomputed, definition.format)}"
        f" ({status} displayed {format_metric(shown, definition.format)})"
    )


def register_commands(cli):
    """Register drill commands with main CLI."""
    cli.add_command(drill, name="drill")
