"""Report definitions.

A report is configuration only: the metric ids it shows as KPIs, charts and
table columns, the dimensions its table may be grouped by, and the filter
defaults it applies. All arithmetic lives in the metric registry.
"""

from dataclasses import dataclass
from typing import Union

from groomreports.domain.entities import DatePreset, FilterState, GroupBy, MetricId, ReportId
from groomreports.domain.errors import UnknownReportError, unknown_report

M = MetricId
G = GroupBy

TIME_GROUPS = (G.DAY, G.WEEK, G.MONTH)


@dataclass(frozen=True)
class ChartDefinition:
    id: str
    title: str
    metric: MetricId


@dataclass(frozen=True)
class ReportDefinition:
    id: ReportId
    title: str
    description: str
    kpis: tuple[MetricId, ...]
    charts: tuple[ChartDefinition, ...]
    columns: tuple[MetricId, ...]
    group_by_options: tuple[GroupBy, ...]
    default_group_by: GroupBy
    sort_metric: MetricId
    defaults: FilterState = FilterState()

    def metric_ids(self) -> tuple[MetricId, ...]:
        """Every metric the report displays, KPIs first, without repeats."""
        ordered = self.kpis + tuple(chart.metric for chart in self.charts) + self.columns
        return tuple(dict.fromkeys(ordered))


def _chart(metric: MetricId, title: str) -> ChartDefinition:
    return ChartDefinition(id=f"{metric.value}-trend", title=title, metric=metric)


REPORTS: dict[ReportId, ReportDefinition] = {
    report.id: report
    for report in (
        ReportDefinition(
            id=ReportId.OWNER_OVERVIEW,
            title="Owner Overview",
            description="Headline sales, margin and appointment health.",
            kpis=(
                M.NET_SALES,
                M.TOTAL_COLLECTED,
                M.CONTRIBUTION_MARGIN,
                M.CONTRIBUTION_MARGIN_PERCENT,
                M.APPOINTMENTS_COMPLETED,
                M.AVG_TICKET,
                M.NO_SHOW_RATE,
                M.REBOOK_30D,
            ),
            charts=(_chart(M.NET_SALES, "Net Sales"), _chart(M.APPOINTMENTS_COMPLETED, "Completed Appointments")),
            columns=(M.NET_SALES, M.TRANSACTION_COUNT, M.AVG_TICKET),
            group_by_options=TIME_GROUPS + (G.GROOMER, G.SERVICE, G.PAYMENT_METHOD),
            default_group_by=G.SERVICE,
            sort_metric=M.NET_SALES,
            defaults=FilterState(compare=True),
        ),
        ReportDefinition(
            id=ReportId.TRUE_PROFIT,
            title="True Profit & Margin",
            description="Net sales after COGS, labor and processing fees.",
            kpis=(
                M.NET_SALES,
                M.ESTIMATED_COGS,
                M.DIRECT_LABOR,
                M.PROCESSING_FEES,
                M.CONTRIBUTION_MARGIN,
                M.CONTRIBUTION_MARGIN_PERCENT,
                M.GROSS_MARGIN_PERCENT,
            ),
            charts=(_chart(M.CONTRIBUTION_MARGIN, "Contribution Margin"), _chart(M.NET_SALES, "Net Sales")),
            columns=(M.NET_SALES, M.ESTIMATED_COGS, M.DIRECT_LABOR, M.PROCESSING_FEES, M.CONTRIBUTION_MARGIN),
            group_by_options=(G.GROOMER, G.SERVICE) + TIME_GROUPS,
            default_group_by=G.GROOMER,
            sort_metric=M.CONTRIBUTION_MARGIN,
            defaults=FilterState(compare=True),
        ),
        ReportDefinition(
            id=ReportId.SALES_SUMMARY,
            title="Sales Summary",
            description="Gross to net sales with taxes, tips and collections.",
            kpis=(
                M.GROSS_SALES,
                M.DISCOUNTS,
                M.REFUNDS,
                M.NET_SALES,
                M.TAXES,
                M.TIPS,
                M.TOTAL_COLLECTED,
                M.TRANSACTION_COUNT,
            ),
            charts=(_chart(M.NET_SALES, "Net Sales"), _chart(M.GROSS_SALES, "Gross Sales")),
            columns=(M.GROSS_SALES, M.DISCOUNTS, M.REFUNDS, M.NET_SALES, M.TAXES, M.TIPS, M.TOTAL_COLLECTED),
            group_by_options=TIME_GROUPS
            + (G.PAYMENT_METHOD, G.TRANSACTION_TYPE, G.SERVICE, G.GROOMER, G.CLIENT),
            default_group_by=G.DAY,
            sort_metric=M.NET_SALES,
        ),
        ReportDefinition(
            id=ReportId.FINANCE_RECON,
            title="Finance & Reconciliation",
            description="Collections, processing fees and expected deposits.",
            kpis=(
                M.TOTAL_COLLECTED,
                M.PROCESSING_FEES,
                M.NET_DEPOSITS,
                M.REFUNDS,
                M.TAXES,
                M.TIPS,
                M.ADDITIONAL_FEES,
            ),
            charts=(_chart(M.TOTAL_COLLECTED, "Total Collected"),),
            columns=(M.TRANSACTION_COUNT, M.TOTAL_COLLECTED, M.PROCESSING_FEES, M.NET_DEPOSITS),
            group_by_options=(G.PAYMENT_METHOD, G.TRANSACTION_TYPE) + TIME_GROUPS,
            default_group_by=G.PAYMENT_METHOD,
            sort_metric=M.TOTAL_COLLECTED,
        ),
        ReportDefinition(
            id=ReportId.APPOINTMENTS_CAPACITY,
            title="Appointments & Capacity",
            description="Booked volume against bookable groomer time.",
            kpis=(
                M.APPOINTMENTS_BOOKED,
                M.APPOINTMENTS_COMPLETED,
                M.SERVICE_MINUTES,
                M.UTILIZATION,
                M.REVENUE_PER_HOUR,
                M.AVG_LEAD_TIME,
            ),
            charts=(_chart(M.APPOINTMENTS_BOOKED, "Appointments Booked"), _chart(M.SERVICE_MINUTES, "Service Minutes")),
            columns=(
                M.APPOINTMENTS_BOOKED,
                M.APPOINTMENTS_COMPLETED,
                M.SERVICE_MINUTES,
                M.UTILIZATION,
                M.REVENUE_PER_HOUR,
            ),
            group_by_options=(G.GROOMER, G.SERVICE, G.WEIGHT_CATEGORY) + TIME_GROUPS,
            default_group_by=G.GROOMER,
            sort_metric=M.APPOINTMENTS_BOOKED,
        ),
        ReportDefinition(
            id=ReportId.NO_SHOWS,
            title="No-Shows & Cancellations",
            description="Missed appointments and the revenue they cost.",
            kpis=(M.NO_SHOWS, M.NO_SHOW_RATE, M.APPOINTMENTS_CANCELLED, M.LOST_REVENUE, M.APPOINTMENTS_BOOKED),
            charts=(_chart(M.NO_SHOWS, "No-Shows"),),
            columns=(M.APPOINTMENTS_BOOKED, M.NO_SHOWS, M.APPOINTMENTS_CANCELLED, M.NO_SHOW_RATE, M.LOST_REVENUE),
            group_by_options=(G.GROOMER, G.CLIENT, G.SERVICE, G.WEIGHT_CATEGORY) + TIME_GROUPS,
            default_group_by=G.GROOMER,
            sort_metric=M.NO_SHOWS,
            defaults=FilterState(compare=True),
        ),
        ReportDefinition(
            id=ReportId.RETENTION,
            title="Retention & Rebooking",
            description="New and returning clients and how quickly they rebook.",
            kpis=(
                M.NEW_CLIENTS,
                M.RETURNING_CLIENTS,
                M.REBOOK_30D,
                M.AVG_DAYS_TO_RETURN,
                M.APPOINTMENTS_COMPLETED,
            ),
            charts=(_chart(M.APPOINTMENTS_COMPLETED, "Completed Appointments"),),
            columns=(M.APPOINTMENTS_COMPLETED, M.NEW_CLIENTS, M.RETURNING_CLIENTS, M.REBOOK_30D),
            group_by_options=(G.GROOMER, G.SERVICE, G.WEIGHT_CATEGORY, G.WEEK, G.MONTH),
            default_group_by=G.GROOMER,
            sort_metric=M.APPOINTMENTS_COMPLETED,
            defaults=FilterState(date_preset=DatePreset.LAST_90, compare=True),
        ),
        ReportDefinition(
            id=ReportId.STAFF_PERFORMANCE,
            title="Staff Performance",
            description="Sales, productivity and add-ons per groomer.",
            kpis=(
                M.NET_SALES,
                M.APPOINTMENTS_COMPLETED,
                M.SERVICE_MINUTES,
                M.REVENUE_PER_HOUR,
                M.UPSELL_RATE,
                M.TIPS,
            ),
            charts=(_chart(M.NET_SALES, "Net Sales"),),
            columns=(
                M.NET_SALES,
                M.APPOINTMENTS_COMPLETED,
                M.SERVICE_MINUTES,
                M.REVENUE_PER_HOUR,
                M.UPSELL_RATE,
                M.TIPS,
            ),
            group_by_options=(G.GROOMER,),
            default_group_by=G.GROOMER,
            sort_metric=M.NET_SALES,
        ),
        ReportDefinition(
            id=ReportId.PAYROLL,
            title="Payroll / Compensation",
            description="Hourly wages and tips owed to groomers.",
            kpis=(M.DIRECT_LABOR, M.TIPS, M.TIP_FEE_COST, M.NET_TO_STAFF, M.SERVICE_MINUTES),
            charts=(_chart(M.DIRECT_LABOR, "Direct Labor"),),
            columns=(M.SERVICE_MINUTES, M.DIRECT_LABOR, M.TIPS, M.NET_TO_STAFF),
            group_by_options=(G.GROOMER,) + TIME_GROUPS,
            default_group_by=G.GROOMER,
            sort_metric=M.DIRECT_LABOR,
            defaults=FilterState(date_preset=DatePreset.MONTH_TO_DATE),
        ),
        ReportDefinition(
            id=ReportId.SERVICE_MIX,
            title="Service Mix & Pricing",
            description="Which services and pet sizes drive revenue.",
            kpis=(M.SERVICE_SALES, M.RETAIL_SALES, M.UPSELL_RATE, M.AVG_TICKET, M.APPOINTMENTS_COMPLETED),
            charts=(_chart(M.SERVICE_SALES, "Service Sales"),),
            columns=(M.NET_SALES, M.SERVICE_SALES, M.RETAIL_SALES, M.APPOINTMENTS_COMPLETED, M.AVG_TICKET),
            group_by_options=(G.SERVICE, G.WEIGHT_CATEGORY, G.TRANSACTION_TYPE),
            default_group_by=G.SERVICE,
            sort_metric=M.NET_SALES,
        ),
        ReportDefinition(
            id=ReportId.INVENTORY,
            title="Inventory Usage & Reorder",
            description="Stock on hand, reorder risk and retail movement.",
            kpis=(
                M.ITEMS_BELOW_REORDER,
                M.INVENTORY_COST_VALUE,
                M.RETAIL_STOCK_VALUE,
                M.RETAIL_SALES,
                M.ESTIMATED_COGS,
            ),
            charts=(_chart(M.RETAIL_SALES, "Retail Sales"),),
            columns=(M.RETAIL_SALES, M.ESTIMATED_COGS, M.TRANSACTION_COUNT),
            group_by_options=TIME_GROUPS,
            default_group_by=G.WEEK,
            sort_metric=M.RETAIL_SALES,
        ),
        ReportDefinition(
            id=ReportId.MARKETING_MESSAGING,
            title="Marketing & Messaging",
            description="Client messaging volume against bookings.",
            kpis=(M.MESSAGES_SENT, M.CLIENTS_MESSAGED, M.APPOINTMENTS_BOOKED, M.NEW_CLIENTS),
            charts=(_chart(M.MESSAGES_SENT, "Messages Sent"),),
            columns=(M.MESSAGES_SENT, M.APPOINTMENTS_BOOKED, M.NEW_CLIENTS),
            group_by_options=TIME_GROUPS + (G.CLIENT,),
            default_group_by=G.WEEK,
            sort_metric=M.MESSAGES_SENT,
        ),
        ReportDefinition(
            id=ReportId.TIPS,
            title="Tips & Gratuities",
            description="Tips collected, card fees on tips and net payout.",
            kpis=(M.TIPS, M.TIP_PERCENT, M.TIP_FEE_COST, M.NET_TO_STAFF),
            charts=(_chart(M.TIPS, "Tips"),),
            columns=(M.TIPS, M.TIP_PERCENT, M.TIP_FEE_COST, M.NET_TO_STAFF),
            group_by_options=(G.GROOMER, G.PAYMENT_METHOD) + TIME_GROUPS,
            default_group_by=G.GROOMER,
            sort_metric=M.TIPS,
        ),
        ReportDefinition(
            id=ReportId.TAXES,
            title="Taxes Summary",
            description="Tax collected and the sales it applies to.",
            kpis=(M.TAXES, M.TAXABLE_SALES, M.NONTAXABLE_SALES, M.NET_SALES, M.TOTAL_COLLECTED),
            charts=(_chart(M.TAXES, "Taxes"),),
            columns=(M.TAXABLE_SALES, M.NONTAXABLE_SALES, M.TAXES),
            group_by_options=TIME_GROUPS + (G.TRANSACTION_TYPE, G.PAYMENT_METHOD),
            default_group_by=G.MONTH,
            sort_metric=M.TAXES,
        ),
    )
}


def get_report(report_id: Union[ReportId, str]) -> ReportDefinition:
    """Look up a report definition.

    Raises:
        UnknownReportError: If the report id is not registered
    """
    try:
        return REPORTS[ReportId(report_id)]
    except (ValueError, KeyError):
        raise UnknownReportError(unknown_report(str(getattr(report_id, "value", report_id))))
