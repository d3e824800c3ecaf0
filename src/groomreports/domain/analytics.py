"""Report computation: KPIs, charts, grouped tables and insights."""

import logging
import time
from datetime import date, timedelta
from typing import Optional, Union

from groomreports.domain.entities import (
    KPI,
    ChartData,
    ChartPoint,
    DateWindow,
    DrillRequest,
    Granularity,
    GroupBy,
    MetricId,
    NormalizedDataset,
    RecordType,
    ReportData,
    ReportId,
    ResolvedFilters,
    Scope,
    TableColumn,
    TableData,
    TableRow,
)
from groomreports.domain.errors import ValidationError, unknown_column, unsupported_group_by
from groomreports.domain.insights import generate_insights
from groomreports.domain.metrics import MetricContext, MetricDefinition, build_context, get_metric
from groomreports.domain.reports import ReportDefinition, get_report
from groomreports.domain.scope import DatasetIndex
from groomreports.utils.date_parser import month_key, week_start

logger = logging.getLogger(__name__)

DAILY_MAX_DAYS = 31
WEEKLY_MAX_DAYS = 182


def choose_granularity(window: DateWindow) -> Granularity:
    """Pick the chart bucket size for a window length."""
    if window.days <= DAILY_MAX_DAYS:
        return Granularity.DAY
    if window.days <= WEEKLY_MAX_DAYS:
        return Granularity.WEEK
    return Granularity.MONTH


def _next_bucket_start(day: date, granularity: Granularity) -> date:
    if granularity == Granularity.DAY:
        return day + timedelta(days=1)
    if granularity == Granularity.WEEK:
        return week_start(day) + timedelta(days=7)
    first = day.replace(day=1)
    return (first + timedelta(days=32)).replace(day=1)


def bucket_windows(window: DateWindow, granularity: Granularity) -> list[tuple[str, DateWindow]]:
    """Split a window into contiguous buckets clipped to the window.

    Returns:
        (label, bucket window) pairs covering every day of ``window`` once
    """
    buckets = []
    start = window.start
    while start <= window.end:
        end = min(_next_bucket_start(start, granularity) - timedelta(days=1), window.end)
        if granularity == Granularity.MONTH:
            label = month_key(start)
        else:
            label = start.isoformat()
        buckets.append((label, DateWindow(start, end)))
        start = end + timedelta(days=1)
    return buckets


class _Evaluator:
    """Runs metric reducers, selecting each scope's records only once."""

    def __init__(self, dataset: NormalizedDataset):
        self.index = DatasetIndex(dataset)
        self._contexts: dict[Scope, MetricContext] = {}

    def context(self, scope: Scope) -> MetricContext:
        if scope not in self._contexts:
            self._contexts[scope] = build_context(self.index, scope)
        return self._contexts[scope]

    def value(self, definition: MetricDefinition, scope: Scope):
        return definition.reducer(self.context(scope))


def _trend(delta) -> str:
    if delta > 0:
        return "up"
    if delta < 0:
        return "down"
    return "flat"


def _build_kpis(
    report: ReportDefinition, evaluator: _Evaluator, resolved: ResolvedFilters
) -> tuple[KPI, ...]:
    current_scope = resolved.scope()
    prior_scope = resolved.scope(resolved.prior) if resolved.compare and resolved.prior else None

    kpis = []
    for metric_id in report.kpis:
        definition = get_metric(metric_id)
        value = evaluator.value(definition, current_scope)
        previous = delta = delta_percent = trend = None
        if prior_scope is not None:
            previous = evaluator.value(definition, prior_scope)
            delta = value - previous
            delta_percent = delta / abs(previous) if previous else 0.0
            trend = _trend(delta)
        kpis.append(
            KPI(
                id=definition.id,
                label=definition.label,
                value=value,
                format=definition.format,
                previous=previous,
                delta=delta,
                delta_percent=delta_percent,
                trend=trend,
                drill=DrillRequest(
                    title=definition.label,
                    record_types=definition.drill_types,
                    scope=current_scope,
                    metric=definition.id,
                    value=value,
                ),
            )
        )
    return tuple(kpis)


def _build_charts(
    report: ReportDefinition, evaluator: _Evaluator, resolved: ResolvedFilters
) -> tuple[ChartData, ...]:
    current_scope = resolved.scope()
    granularity = choose_granularity(resolved.current)
    buckets = bucket_windows(resolved.current, granularity)
    offset = -resolved.current.days

    charts = []
    for chart in report.charts:
        definition = get_metric(chart.metric)
        points = []
        for label, bucket in buckets:
            scope = current_scope.with_window(bucket)
            value = evaluator.value(definition, scope)
            previous_value = None
            if resolved.compare:
                previous_value = evaluator.value(definition, current_scope.with_window(bucket.shift(offset)))
            points.append(
                ChartPoint(
                    label=label,
                    window=bucket,
                    value=value,
                    previous_value=previous_value,
                    drill=DrillRequest(
                        title=f"{definition.label}: {label}",
                        record_types=definition.drill_types,
                        scope=scope,
                        metric=definition.id,
                        value=value,
                    ),
                )
            )
        charts.append(
            ChartData(
                id=chart.id,
                title=chart.title,
                metric=definition.id,
                format=definition.format,
                granularity=granularity,
                points=tuple(points),
            )
        )
    return tuple(charts)


def _table_columns(report: ReportDefinition, resolved: ResolvedFilters) -> tuple[MetricId, ...]:
    if not resolved.visible_columns:
        return report.columns
    offered = {metric_id.value: metric_id for metric_id in report.columns}
    columns = []
    for column in resolved.visible_columns:
        key = getattr(column, "value", column)
        if key not in offered:
            raise ValidationError(unknown_column(report.id.value, str(key)))
        if offered[key] not in columns:
            columns.append(offered[key])
    return tuple(columns)


def _table_group_by(report: ReportDefinition, resolved: ResolvedFilters) -> GroupBy:
    group_by = resolved.group_by or report.default_group_by
    if group_by not in report.group_by_options:
        raise ValidationError(
            unsupported_group_by(report.id.value, getattr(group_by, "value", str(group_by)), report.group_by_options)
        )
    return group_by


def _build_table(
    report: ReportDefinition,
    evaluator: _Evaluator,
    resolved: ResolvedFilters,
    group_by: GroupBy,
    columns: tuple[MetricId, ...],
) -> TableData:
    current_scope = resolved.scope()
    definitions = [get_metric(metric_id) for metric_id in columns]
    sort_definition = get_metric(report.sort_metric)

    record_types: list[RecordType] = []
    for definition in definitions + [sort_definition]:
        for record_type in definition.drill_types:
            if record_type not in record_types:
                record_types.append(record_type)

    context = evaluator.context(current_scope)
    sources = {
        RecordType.TRANSACTIONS: context.transactions,
        RecordType.APPOINTMENTS: context.appointments,
        RecordType.MESSAGES: context.messages,
    }
    keys = set()
    for record_type in record_types:
        for record in sources.get(record_type, ()):
            key = evaluator.index.group_key(record, group_by)
            if key is not None:
                keys.add(key)

    rows = []
    for key in keys:
        scope = current_scope.with_group(group_by, key)
        values = {definition.id: evaluator.value(definition, scope) for definition in definitions}
        sort_value = evaluator.value(sort_definition, scope)
        label = evaluator.index.group_label(group_by, key)
        rows.append(
            (
                sort_value,
                TableRow(
                    key=key,
                    label=label,
                    values=values,
                    drill=DrillRequest(
                        title=label,
                        record_types=tuple(record_types),
                        scope=scope,
                        metric=sort_definition.id,
                        value=sort_value,
                    ),
                ),
            )
        )
    rows.sort(key=lambda pair: (-pair[0], pair[1].key))

    return TableData(
        group_by=group_by,
        columns=tuple(TableColumn(d.id, d.label, d.format) for d in definitions),
        rows=tuple(row for _, row in rows),
        group_by_options=report.group_by_options,
    )


def compute_report_data(
    report_id: Union[ReportId, str], dataset: NormalizedDataset, resolved: ResolvedFilters
) -> ReportData:
    """Compute KPIs, charts, table and insights for one report.

    The output depends only on the arguments.

    Args:
        report_id: Report to compute
        dataset: Normalized dataset
        resolved: Resolved filters

    Returns:
        ReportData

    Raises:
        UnknownReportError: If the report id is not registered
        ValidationError: If the group-by or a visible column is not offered
            by the report
    """
    report = get_report(report_id)
    group_by = _table_group_by(report, resolved)
    columns = _table_columns(report, resolved)

    evaluator = _Evaluator(dataset)
    kpis = _build_kpis(report, evaluator, resolved)
    return ReportData(
        report_id=report.id,
        title=report.title,
        filters=resolved,
        kpis=kpis,
        charts=_build_charts(report, evaluator, resolved),
        table=_build_table(report, evaluator, resolved, group_by, columns),
        insights=generate_insights(kpis, resolved.scope()),
    )


class AnalyticsService:
    """Memoizes computed reports by dataset version, report and filters."""

    def __init__(self):
        self._cache: dict[tuple[int, ReportId, ResolvedFilters], ReportData] = {}
        self._latest_version: Optional[int] = None
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._cache)

    def _evict_older(self, version: int) -> None:
        if self._latest_version is not None and version <= self._latest_version:
            return
        stale = [key for key in self._cache if key[0] < version]
        for key in stale:
            del self._cache[key]
        if stale:
            logger.debug("Evicted %d cached report(s) older than version %d", len(stale), version)
        self._latest_version = version

    def get_report_data(
        self,
        report_id: Union[ReportId, str],
        dataset: NormalizedDataset,
        resolved: ResolvedFilters,
    ) -> ReportData:
        """Return cached report data, computing it on a cache miss."""
        report = get_report(report_id)
        self._evict_older(dataset.version)

        key = (dataset.version, report.id, resolved)
        cached = self._cache.get(key)
        if cached is not None:
            self.hits += 1
            logger.debug("Cache hit for %s (version %d)", report.id.value, dataset.version)
            return cached

        self.misses += 1
        started = time.perf_counter()
        data = compute_report_data(report.id, dataset, resolved)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Computed %s for %s in %.1f ms (version %d)",
            report.id.value,
            resolved.current,
            elapsed_ms,
            dataset.version,
        )
        self._cache[key] = data
        return data

    def clear(self) -> None:
        self._cache.clear()
        self._latest_version = None
