"""CLI helpers for turning filter options into a FilterState."""

from dataclasses import replace
from datetime import date
from typing import Optional

import click

from groomreports.domain.entities import (
    AppointmentStatus,
    DatePreset,
    FilterState,
    GroupBy,
    PaymentMethod,
    WeightCategory,
)
from groomreports.utils.date_parser import parse_date


def _choices(enum_type) -> click.Choice:
    return click.Choice([member.value for member in enum_type])


def filter_options(func):
    """Attach the shared report filter options to a command."""
    options = [
        click.option("--preset", type=_choices(DatePreset), help="Date range preset"),
        click.option("--start-date", help="Start date (YYYY-MM-DD); implies a custom range"),
        click.option("--end-date", help="End date (YYYY-MM-DD); implies a custom range"),
        click.option("--compare/--no-compare", default=None, help="Compare with the prior period"),
        click.option("--group-by", type=_choices(GroupBy), help="Table grouping"),
        click.option("--column", "columns", multiple=True, help="Visible table column (repeatable)"),
        click.option("--groomer", "groomers", multiple=True, help="Groomer (staff) ID (repeatable)"),
        click.option("--client", "clients", multiple=True, help="Client ID (repeatable)"),
        click.option("--service", "services", multiple=True, help="Service ID (repeatable)"),
        click.option(
            "--payment-method",
            "payment_methods",
            multiple=True,
            type=_choices(PaymentMethod),
            help="Payment method (repeatable)",
        ),
        click.option(
            "--weight-category",
            "weight_categories",
            multiple=True,
            type=_choices(WeightCategory),
            help="Pet weight category (repeatable)",
        ),
        click.option(
            "--status",
            "statuses",
            multiple=True,
            type=_choices(AppointmentStatus),
            help="Appointment status (repeatable)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _parse_cli_date(ctx, value: Optional[str], label: str) -> Optional[date]:
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def build_filter_state(
    ctx,
    *,
    preset: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    compare: Optional[bool] = None,
    group_by: Optional[str] = None,
    columns: tuple[str, ...] = (),
    groomers: tuple[str, ...] = (),
    clients: tuple[str, ...] = (),
    services: tuple[str, ...] = (),
    payment_methods: tuple[str, ...] = (),
    weight_categories: tuple[str, ...] = (),
    statuses: tuple[str, ...] = (),
    base: Optional[FilterState] = None,
) -> FilterState:
    """Build a filter state from CLI options, layered over ``base`` (e.g. a saved view).

    Options left unset keep the base value, so report defaults can still fill them.
    """
    if preset and preset != DatePreset.CUSTOM.value and (start_date or end_date):
        click.echo(
            "Error: --preset cannot be combined with --start-date or --end-date (use --preset custom).",
            err=True,
        )
        ctx.exit(1)

    start = _parse_cli_date(ctx, start_date, "start date")
    end = _parse_cli_date(ctx, end_date, "end date")

    state = base or FilterState()
    updates = {}
    if preset:
        updates["date_preset"] = DatePreset(preset)
    if start is not None or end is not None:
        updates["start_date"] = start
        updates["end_date"] = end
        if not preset:
            updates["date_preset"] = DatePreset.CUSTOM
    if compare is not None:
        updates["compare"] = compare
    if group_by:
        updates["group_by"] = GroupBy(group_by)
    if columns:
        updates["visible_columns"] = tuple(columns)
    if groomers:
        updates["groomer_ids"] = tuple(groomers)
    if clients:
        updates["client_ids"] = tuple(clients)
    if services:
        updates["service_ids"] = tuple(services)
    if payment_methods:
        updates["payment_methods"] = tuple(PaymentMethod(value) for value in payment_methods)
    if weight_categories:
        updates["weight_categories"] = tuple(WeightCategory(value) for value in weight_categories)
    if statuses:
        updates["appointment_statuses"] = tuple(AppointmentStatus(value) for value in statuses)
    return replace(state, **updates) if updates else state


def resolve_cli_today(ctx, today: Optional[str]) -> Optional[date]:
    """Parse the --today override used to anchor presets."""
    return _parse_cli_date(ctx, today, "--today date")
