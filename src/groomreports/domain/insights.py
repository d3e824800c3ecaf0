"""Narrative insights derived from computed KPIs."""

from dataclasses import replace
from typing import Iterable, Optional

from groomreports.domain.entities import (
    KPI,
    AppointmentStatus,
    DrillRequest,
    Insight,
    MetricId,
    RecordType,
    Scope,
)
from groomreports.domain.metrics import get_metric

MAX_INSIGHTS = 3
SEVERITY_RANK = {"critical": 0, "warning": 1, "info": 2}

NO_SHOW_SPIKE_THRESHOLD = 0.15
NO_SHOW_SPIKE_MIN_COUNT = 5
NO_SHOW_RATE_THRESHOLD = 0.10
MARGIN_DROP_POINTS = -0.05
REBOOK_DROP_POINTS = -0.10
KPI_SWING_THRESHOLD = 0.15


def _kpi_map(kpis: Iterable[KPI]) -> dict[MetricId, KPI]:
    return {kpi.id: kpi for kpi in kpis}


def _against_polarity(kpi: KPI) -> Optional[float]:
    """Return the relative move of a KPI in its unfavourable direction, if any."""
    if kpi.delta_percent is None or kpi.previous in (None, 0):
        return None
    move = kpi.delta_percent if not get_metric(kpi.id).higher_is_better else -kpi.delta_percent
    return move if move > 0 else None


def generate_insights(kpis: Iterable[KPI], scope: Scope) -> tuple[Insight, ...]:
    """Build at most three insights from threshold checks over KPIs.

    Args:
        kpis: KPIs of one computed report
        scope: Current-period scope, used for insight drills

    Returns:
        Insights ordered by severity, then id
    """
    by_id = _kpi_map(kpis)
    insights: list[Insight] = []
    covered: set[MetricId] = set()

    no_shows = by_id.get(MetricId.NO_SHOWS)
    if (
        no_shows is not None
        and no_shows.previous
        and no_shows.delta_percent is not None
        and no_shows.delta_percent > NO_SHOW_SPIKE_THRESHOLD
        and no_shows.value >= NO_SHOW_SPIKE_MIN_COUNT
    ):
        covered.add(MetricId.NO_SHOWS)
        insights.append(
            Insight(
                id="no-show-spike",
                title="No-show spike",
                description=f"No-shows are up {no_shows.delta_percent * 100:.0f}% vs prior period.",
                severity="critical",
                metric=MetricId.NO_SHOWS,
                delta=no_shows.delta_percent,
                action="Review reminder timing and confirmation messages.",
                drill=DrillRequest(
                    title="No-show appointments",
                    record_types=(RecordType.APPOINTMENTS,),
                    scope=replace(scope, appointment_statuses=(AppointmentStatus.NO_SHOW,)),
                ),
            )
        )

    no_show_rate = by_id.get(MetricId.NO_SHOW_RATE)
    if no_show_rate is not None and no_show_rate.value > NO_SHOW_RATE_THRESHOLD:
        covered.add(MetricId.NO_SHOW_RATE)
        insights.append(
            Insight(
                id="high-no-show-rate",
                title="High no-show rate",
                description=f"{no_show_rate.value * 100:.1f}% of booked appointments were no-shows.",
                severity="warning",
                metric=MetricId.NO_SHOW_RATE,
                delta=no_show_rate.delta,
                action="Require deposits or confirmations for repeat no-shows.",
                drill=DrillRequest(
                    title="No-show appointments",
                    record_types=(RecordType.APPOINTMENTS,),
                    scope=replace(scope, appointment_statuses=(AppointmentStatus.NO_SHOW,)),
                ),
            )
        )

    margin = by_id.get(MetricId.CONTRIBUTION_MARGIN_PERCENT)
    if margin is not None and margin.delta is not None and margin.delta < MARGIN_DROP_POINTS:
        covered.add(MetricId.CONTRIBUTION_MARGIN_PERCENT)
        insights.append(
            Insight(
                id="margin-drop",
                title="Margin drop",
                description="Contribution margin declined by more than 5 points.",
                severity="warning",
                metric=margin.id,
                delta=margin.delta,
                action="Investigate labor and COGS drivers.",
                drill=margin.drill,
            )
        )

    rebook = by_id.get(MetricId.REBOOK_30D)
    if rebook is not None and rebook.delta is not None and rebook.delta < REBOOK_DROP_POINTS:
        covered.add(MetricId.REBOOK_30D)
        insights.append(
            Insight(
                id="rebook-weakness",
                title="Rebooking weakness",
                description="Rebooking within 30 days dropped by more than 10 points.",
                severity="warning",
                metric=rebook.id,
                delta=rebook.delta,
                action="Add rebooking prompts at checkout.",
                drill=rebook.drill,
            )
        )

    below_reorder = by_id.get(MetricId.ITEMS_BELOW_REORDER)
    if below_reorder is not None and below_reorder.value > 0:
        covered.add(MetricId.ITEMS_BELOW_REORDER)
        count = int(below_reorder.value)
        insights.append(
            Insight(
                id="inventory-risk",
                title="Inventory risk",
                description=f"{count} item{'s' if count != 1 else ''} below reorder level.",
                severity="warning",
                metric=below_reorder.id,
                action="Review reorder points and create a purchase order.",
                drill=DrillRequest(
                    title="Items below reorder level",
                    record_types=(RecordType.INVENTORY,),
                    scope=replace(scope, below_reorder_only=True),
                ),
            )
        )

    for kpi in by_id.values():
        if kpi.id in covered:
            continue
        move = _against_polarity(kpi)
        if move is None or move < KPI_SWING_THRESHOLD:
            continue
        direction = "down" if kpi.delta_percent < 0 else "up"
        insights.append(
            Insight(
                id=f"{kpi.id.value}-{direction}",
                title=f"{kpi.label} {direction}",
                description=f"{kpi.label} is {direction} {abs(kpi.delta_percent) * 100:.0f}% vs prior period.",
                severity="info",
                metric=kpi.id,
                delta=kpi.delta_percent,
                drill=kpi.drill,
            )
        )

    insights.sort(key=lambda insight: (SEVERITY_RANK[insight.severity], insight.id))
    return tuple(insights[:MAX_INSIGHTS])
