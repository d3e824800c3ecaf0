"""Filter resolution: user selections to concrete date windows."""

from dataclasses import fields, replace
from datetime import date, timedelta
from typing import Any, Iterable, Mapping, Optional, Union

from dateutil.relativedelta import relativedelta

from groomreports.domain.entities import (
    AppointmentStatus,
    DatePreset,
    DateWindow,
    FilterState,
    GroupBy,
    PaymentMethod,
    ReportId,
    ResolvedFilters,
    WeightCategory,
)
from groomreports.domain.errors import ValidationError, invalid_custom_range
from groomreports.domain.reports import get_report
from groomreports.utils.business_time import business_today
from groomreports.utils.date_parser import parse_date, week_start

DEFAULT_PRESET = DatePreset.LAST_30

# Sub-filter fields and the enum (or str) their members parse into.
LIST_FIELDS = {
    "visible_columns": str,
    "groomer_ids": str,
    "client_ids": str,
    "service_ids": str,
    "payment_methods": PaymentMethod,
    "weight_categories": WeightCategory,
    "appointment_statuses": AppointmentStatus,
}


def apply_report_defaults(report_id: Union[ReportId, str], state: FilterState) -> FilterState:
    """Fill unset filter fields from a report's default overrides.

    User selections win; defaults only fill fields that are ``None``. A state
    with explicit dates but no preset becomes a custom range first. Applying
    this twice yields the same state.

    Args:
        report_id: Report whose defaults apply
        state: Filter selections made by the user

    Returns:
        Filter state with the report defaults merged in

    Raises:
        UnknownReportError: If the report id is not registered
    """
    report = get_report(report_id)

    if state.date_preset is None and (state.start_date is not None or state.end_date is not None):
        state = replace(state, date_preset=DatePreset.CUSTOM)

    overrides = {
        f.name: getattr(report.defaults, f.name)
        for f in fields(FilterState)
        if getattr(state, f.name) is None and getattr(report.defaults, f.name) is not None
    }
    return replace(state, **overrides) if overrides else state


def preset_window(preset: DatePreset, today: date) -> DateWindow:
    """Return the date window a non-custom preset covers, anchored on ``today``.

    Raises:
        ValidationError: If called with the custom preset
    """
    if preset == DatePreset.TODAY:
        return DateWindow(today, today)
    if preset == DatePreset.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return DateWindow(yesterday, yesterday)
    if preset == DatePreset.LAST_7:
        return DateWindow(today - timedelta(days=6), today)
    if preset == DatePreset.THIS_WEEK:
        return DateWindow(week_start(today), today)
    if preset == DatePreset.LAST_30:
        return DateWindow(today - timedelta(days=29), today)
    if preset == DatePreset.LAST_90:
        return DateWindow(today - timedelta(days=89), today)
    if preset == DatePreset.MONTH_TO_DATE:
        return DateWindow(today.replace(day=1), today)
    if preset == DatePreset.LAST_MONTH:
        end = today.replace(day=1) - timedelta(days=1)
        return DateWindow(end.replace(day=1), end)
    if preset == DatePreset.QUARTER:
        return DateWindow(today.replace(day=1) - relativedelta(months=2), today)
    if preset == DatePreset.YEAR_TO_DATE:
        return DateWindow(date(today.year, 1, 1), today)
    raise ValidationError("Custom date ranges have no preset window")


def prior_window(window: DateWindow) -> DateWindow:
    """Return the window of equal length ending the day before ``window`` starts."""
    return window.shift(-window.days)


def _canonical(values: Optional[Iterable[Any]]) -> tuple:
    if not values:
        return ()
    return tuple(sorted(set(values), key=lambda value: getattr(value, "value", value)))


def resolve_filters(state: FilterState, today: Optional[date] = None) -> ResolvedFilters:
    """Resolve a filter state into explicit current and prior windows.

    Args:
        state: Filter state, usually after ``apply_report_defaults``
        today: Anchor date for presets (defaults to today in the business
            time zone)

    Returns:
        ResolvedFilters

    Raises:
        ValidationError: If a custom range is missing a bound or is inverted
    """
    preset = state.date_preset or DEFAULT_PRESET

    if preset == DatePreset.CUSTOM:
        if state.start_date is None or state.end_date is None or state.start_date > state.end_date:
            raise ValidationError(invalid_custom_range(state.start_date, state.end_date))
        current = DateWindow(state.start_date, state.end_date)
    else:
        current = preset_window(preset, today or business_today())

    compare = bool(state.compare)
    return ResolvedFilters(
        date_preset=preset,
        current=current,
        prior=prior_window(current) if compare else None,
        compare=compare,
        group_by=state.group_by,
        visible_columns=tuple(state.visible_columns) if state.visible_columns else None,
        groomer_ids=_canonical(state.groomer_ids),
        client_ids=_canonical(state.client_ids),
        service_ids=_canonical(state.service_ids),
        payment_methods=_canonical(state.payment_methods),
        weight_categories=_canonical(state.weight_categories),
        appointment_statuses=_canonical(state.appointment_statuses),
    )


def resolve_report_filters(
    report_id: Union[ReportId, str], state: FilterState, today: Optional[date] = None
) -> ResolvedFilters:
    """Apply a report's defaults and resolve the result."""
    return resolve_filters(apply_report_defaults(report_id, state), today=today)


def filter_state_to_dict(state: FilterState) -> dict[str, Any]:
    """Convert a filter state to a JSON-safe dict, omitting unset fields."""
    data: dict[str, Any] = {}
    for f in fields(FilterState):
        value = getattr(state, f.name)
        if value is None:
            continue
        if isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, tuple):
            value = [getattr(item, "value", item) for item in value]
        elif hasattr(value, "value"):
            value = value.value
        data[f.name] = value
    return data


def _enum(enum_type, value, field_name: str):
    try:
        return enum_type(value)
    except ValueError:
        raise ValidationError(f"Invalid {field_name.replace('_', ' ')} '{value}'")


def filter_state_from_dict(data: Mapping[str, Any]) -> FilterState:
    """Rebuild a filter state from ``filter_state_to_dict`` output.

    Unknown keys are ignored.

    Raises:
        ValidationError: If a value cannot be parsed
    """
    values: dict[str, Any] = {}

    if data.get("date_preset") is not None:
        values["date_preset"] = _enum(DatePreset, data["date_preset"], "date_preset")
    for name in ("start_date", "end_date"):
        if data.get(name) is not None:
            try:
                values[name] = parse_date(data[name])
            except ValueError as e:
                raise ValidationError(str(e))
    if data.get("compare") is not None:
        values["compare"] = bool(data["compare"])
    if data.get("group_by") is not None:
        values["group_by"] = _enum(GroupBy, data["group_by"], "group_by")

    for name, member_type in LIST_FIELDS.items():
        items = data.get(name)
        if items is None:
            continue
        if isinstance(items, str):
            items = [items]
        if member_type is str:
            values[name] = tuple(str(item) for item in items)
        else:
            values[name] = tuple(_enum(member_type, item, name) for item in items)

    return FilterState(**values)
