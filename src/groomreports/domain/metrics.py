"""Metric registry.

Every figure a report shows is produced by exactly one reducer in this
module, looked up by ``MetricId``. Reports never restate a formula; they
reference the registry, which is what keeps the same metric identical
across reports. Money reducers return integer cents; ratio reducers return
a fraction (0.25 for 25%) and resolve a zero denominator to 0.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from groomreports.domain.entities import (
    KPI,
    Appointment,
    AppointmentStatus,
    InventoryCategory,
    InventoryItem,
    LineItemKind,
    Message,
    MetricFormat,
    MetricId,
    PaymentMethod,
    RecordType,
    Scope,
    Transaction,
    TransactionType,
)
from groomreports.domain.errors import ValidationError, unknown_metric
from groomreports.domain.scope import (
    DatasetIndex,
    select_appointments,
    select_inventory,
    select_messages,
    select_staff,
    select_transactions,
)
from groomreports.utils.amount_parser import cents_to_decimal, round_cents

Number = Union[int, float]

CARD_FEE_RATE = Decimal("0.029")
CARD_FEE_FIXED_CENTS = 30
SERVICE_COGS_RATE = Decimal("0.15")
BOOKABLE_MINUTES_PER_DAY = 8 * 60
REBOOK_WINDOW_DAYS = 30


@dataclass(frozen=True)
class MetricContext:
    """Records a reducer runs over."""

    index: DatasetIndex
    scope: Scope
    transactions: tuple[Transaction, ...] = ()
    appointments: tuple[Appointment, ...] = ()
    inventory: tuple[InventoryItem, ...] = ()
    messages: tuple[Message, ...] = ()


def build_context(index: DatasetIndex, scope: Scope) -> MetricContext:
    """Select every record collection for ``scope``."""
    return MetricContext(
        index=index,
        scope=scope,
        transactions=select_transactions(index, scope),
        appointments=select_appointments(index, scope),
        inventory=select_inventory(index, scope),
        messages=select_messages(index, scope),
    )


@dataclass(frozen=True)
class MetricDefinition:
    id: MetricId
    label: str
    definition: str
    formula: str
    format: MetricFormat
    drill_types: tuple[RecordType, ...]
    reducer: Callable[[MetricContext], Number]
    higher_is_better: bool = True


# Shared formulas


def _ratio(numerator: Number, denominator: Number) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def _money_ratio(numerator_cents: int, denominator: Number) -> int:
    if not denominator:
        return 0
    return round_cents(Decimal(numerator_cents) / Decimal(denominator))


def _mean(values: list[int]) -> float:
    if not values:
        return 0.0
    return round(sum(values) / len(values), 2)


def gross_sales_cents(transactions: Iterable[Transaction]) -> int:
    return sum(t.subtotal_cents for t in transactions)


def discounts_cents(transactions: Iterable[Transaction]) -> int:
    return sum(t.discount_cents for t in transactions)


def refunds_cents(transactions: Iterable[Transaction]) -> int:
    return sum(t.refund_cents for t in transactions)


def net_sales_cents(transactions: Iterable[Transaction]) -> int:
    """Net sales: subtotal minus discount minus refund, summed over transactions."""
    return sum(t.subtotal_cents - t.discount_cents - t.refund_cents for t in transactions)


def taxes_cents(transactions: Iterable[Transaction]) -> int:
    return sum(t.tax_cents for t in transactions)


def tips_cents(transactions: Iterable[Transaction]) -> int:
    return sum(t.tip_cents for t in transactions)


def total_collected_cents(transactions: Iterable[Transaction]) -> int:
    """Total collected: charged total plus tip, less refunds."""
    return sum(t.total_cents + t.tip_cents - t.refund_cents for t in transactions)


def processing_fee_cents(transaction: Transaction) -> int:
    """Card processing fee for one transaction (2.9% + 30 cents, rounded per transaction)."""
    if transaction.payment_method != PaymentMethod.CARD:
        return 0
    charged = transaction.total_cents + transaction.tip_cents
    return round_cents(Decimal(charged) * CARD_FEE_RATE) + CARD_FEE_FIXED_CENTS


def tip_fee_cents(transaction: Transaction) -> int:
    if transaction.payment_method != PaymentMethod.CARD:
        return 0
    return round_cents(Decimal(transaction.tip_cents) * CARD_FEE_RATE)


def service_revenue_cents(transaction: Transaction) -> int:
    if not transaction.items:
        if transaction.type == TransactionType.APPOINTMENT_SALE:
            return transaction.subtotal_cents
        return 0
    return sum(item.total_cents for item in transaction.items if item.kind == LineItemKind.SERVICE)


def retail_revenue_cents(transaction: Transaction) -> int:
    return sum(item.total_cents for item in transaction.items if item.kind == LineItemKind.RETAIL)


def cogs_cents(index: DatasetIndex, transaction: Transaction) -> int:
    """Estimated cost of goods: 15% of service lines plus retail units at inventory cost."""
    cost = round_cents(Decimal(service_revenue_cents(transaction)) * SERVICE_COGS_RATE)
    for item in transaction.items:
        if item.kind != LineItemKind.RETAIL:
            continue
        stock = index.inventory_for_item(item.id, item.name)
        if stock is not None:
            cost += item.quantity * stock.unit_cost_cents
    return cost


def labor_cents(index: DatasetIndex, appointment: Appointment) -> int:
    """Direct labor for a completed appointment at the groomer's hourly rate."""
    if appointment.status != AppointmentStatus.COMPLETED:
        return 0
    groomer = index.staff_by_id.get(appointment.groomer_id) if appointment.groomer_id else None
    if groomer is None or not groomer.hourly_rate_cents:
        return 0
    return round_cents(Decimal(groomer.hourly_rate_cents) * appointment.duration_minutes / 60)


def _with_status(appointments: Iterable[Appointment], status: AppointmentStatus) -> list[Appointment]:
    return [a for a in appointments if a.status == status]


def _service_minutes(ctx: MetricContext) -> int:
    return sum(a.duration_minutes for a in _with_status(ctx.appointments, AppointmentStatus.COMPLETED))


def _processing_fees(ctx: MetricContext) -> int:
    return sum(processing_fee_cents(t) for t in ctx.transactions)


def _cogs(ctx: MetricContext) -> int:
    return sum(cogs_cents(ctx.index, t) for t in ctx.transactions)


def _labor(ctx: MetricContext) -> int:
    return sum(labor_cents(ctx.index, a) for a in ctx.appointments)


def _contribution_margin(ctx: MetricContext) -> int:
    return net_sales_cents(ctx.transactions) - _cogs(ctx) - _labor(ctx) - _processing_fees(ctx)


def _lead_time(ctx: MetricContext) -> float:
    return _mean(
        [max(0, (a.date - a.created_at.date()).days) for a in ctx.appointments if a.created_at is not None]
    )


def _visiting_clients(ctx: MetricContext) -> set[str]:
    return {
        a.client_id
        for a in ctx.appointments
        if a.client_id and a.status != AppointmentStatus.CANCELLED
    }


def _new_clients(ctx: MetricContext) -> set[str]:
    return {
        a.client_id
        for a in ctx.appointments
        if a.client_id
        and a.status != AppointmentStatus.CANCELLED
        and ctx.index.first_visit(a.client_id) == a.date
    }


def _return_gaps(ctx: MetricContext) -> list[int]:
    gaps = []
    for appointment in _with_status(ctx.appointments, AppointmentStatus.COMPLETED):
        following = ctx.index.next_visit(appointment)
        if following is not None:
            gaps.append((following.date - appointment.date).days)
    return gaps


def _rebook_rate(ctx: MetricContext) -> float:
    completed = _with_status(ctx.appointments, AppointmentStatus.COMPLETED)
    rebooked = [gap for gap in _return_gaps(ctx) if gap <= REBOOK_WINDOW_DAYS]
    return _ratio(len(rebooked), len(completed))


def _utilization(ctx: MetricContext) -> float:
    groomers = len(select_staff(ctx.index, ctx.scope))
    capacity = groomers * ctx.scope.window.days * BOOKABLE_MINUTES_PER_DAY
    return _ratio(_service_minutes(ctx), capacity)


def _upsell_rate(ctx: MetricContext) -> float:
    completed = _with_status(ctx.appointments, AppointmentStatus.COMPLETED)
    return _ratio(sum(1 for a in completed if a.has_addon), len(completed))


def _taxable_sales(ctx: MetricContext, taxed: bool) -> int:
    return sum(
        t.subtotal_cents - t.discount_cents
        for t in ctx.transactions
        if (t.tax_cents > 0) == taxed
    )


TX = (RecordType.TRANSACTIONS,)
APPT = (RecordType.APPOINTMENTS,)
BOTH = (RecordType.TRANSACTIONS, RecordType.APPOINTMENTS)


def _metric(
    metric_id: MetricId,
    label: str,
    definition: str,
    formula: str,
    format: MetricFormat,
    drill_types: tuple[RecordType, ...],
    reducer: Callable[[MetricContext], Number],
    higher_is_better: bool = True,
) -> MetricDefinition:
    return MetricDefinition(
        id=metric_id,
        label=label,
        definition=definition,
        formula=formula,
        format=format,
        drill_types=drill_types,
        reducer=reducer,
        higher_is_better=higher_is_better,
    )


METRICS: dict[MetricId, MetricDefinition] = {
    definition.id: definition
    for definition in (
        # Sales
        _metric(
            MetricId.GROSS_SALES,
            "Gross Sales",
            "Service and product sales before discounts, refunds, taxes and tips.",
            "Sum of transaction subtotals.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: gross_sales_cents(ctx.transactions),
        ),
        _metric(
            MetricId.DISCOUNTS,
            "Discounts",
            "Discounts applied to invoices.",
            "Sum of transaction discounts.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: discounts_cents(ctx.transactions),
            higher_is_better=False,
        ),
        _metric(
            MetricId.REFUNDS,
            "Refunds",
            "Value refunded to clients.",
            "Sum of transaction refund amounts.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: refunds_cents(ctx.transactions),
            higher_is_better=False,
        ),
        _metric(
            MetricId.NET_SALES,
            "Net Sales",
            "Sales after discounts and refunds, excluding taxes and tips.",
            "Gross Sales - Discounts - Refunds.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: net_sales_cents(ctx.transactions),
        ),
        _metric(
            MetricId.TAXES,
            "Taxes Collected",
            "Taxes collected on transactions.",
            "Sum of transaction tax amounts.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: taxes_cents(ctx.transactions),
        ),
        _metric(
            MetricId.TIPS,
            "Tips Collected",
            "Tips collected from clients.",
            "Sum of transaction tip amounts.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: tips_cents(ctx.transactions),
        ),
        _metric(
            MetricId.ADDITIONAL_FEES,
            "Additional Fees",
            "Surcharges added to invoices.",
            "Sum of transaction additional fees.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: sum(t.additional_fees_cents for t in ctx.transactions),
        ),
        _metric(
            MetricId.TOTAL_COLLECTED,
            "Total Collected",
            "Amount collected from clients, including taxes and tips.",
            "Sum of totals + Tips - Refunds.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: total_collected_cents(ctx.transactions),
        ),
        _metric(
            MetricId.TRANSACTION_COUNT,
            "Transactions",
            "Number of non-voided transactions.",
            "Count of transactions.",
            MetricFormat.INT,
            TX,
            lambda ctx: len(ctx.transactions),
        ),
        _metric(
            MetricId.SERVICE_SALES,
            "Service Sales",
            "Revenue from grooming services.",
            "Sum of service line totals.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: sum(service_revenue_cents(t) for t in ctx.transactions),
        ),
        _metric(
            MetricId.RETAIL_SALES,
            "Retail Sales",
            "Revenue from retail products.",
            "Sum of retail line totals.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: sum(retail_revenue_cents(t) for t in ctx.transactions),
        ),
        _metric(
            MetricId.AVG_TICKET,
            "Avg Ticket",
            "Average net sales per transaction.",
            "Net Sales / Transactions.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: _money_ratio(net_sales_cents(ctx.transactions), len(ctx.transactions)),
        ),
        # Costs and margins
        _metric(
            MetricId.PROCESSING_FEES,
            "Processing Fees",
            "Estimated card processing fees.",
            "Per card transaction: 2.9% of total + tip, plus $0.30.",
            MetricFormat.MONEY,
            TX,
            _processing_fees,
            higher_is_better=False,
        ),
        _metric(
            MetricId.NET_DEPOSITS,
            "Net Deposits",
            "Amount expected to reach the bank after processing fees.",
            "Total Collected - Processing Fees.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: total_collected_cents(ctx.transactions) - _processing_fees(ctx),
        ),
        _metric(
            MetricId.ESTIMATED_COGS,
            "Estimated COGS",
            "Estimated cost of goods and supplies used.",
            "15% of service sales + retail units x unit cost.",
            MetricFormat.MONEY,
            TX,
            _cogs,
            higher_is_better=False,
        ),
        _metric(
            MetricId.DIRECT_LABOR,
            "Direct Labor",
            "Groomer wages for completed appointments.",
            "Hourly rate x completed service minutes.",
            MetricFormat.MONEY,
            APPT,
            _labor,
            higher_is_better=False,
        ),
        _metric(
            MetricId.CONTRIBUTION_MARGIN,
            "Contribution Margin $",
            "Revenue after direct costs such as COGS, labor and processing fees.",
            "Net Sales - COGS - Labor - Fees.",
            MetricFormat.MONEY,
            BOTH,
            _contribution_margin,
        ),
        _metric(
            MetricId.CONTRIBUTION_MARGIN_PERCENT,
            "Contribution Margin %",
            "Contribution margin as a percentage of net sales.",
            "Contribution Margin / Net Sales.",
            MetricFormat.PERCENT,
            BOTH,
            lambda ctx: _ratio(_contribution_margin(ctx), net_sales_cents(ctx.transactions)),
        ),
        _metric(
            MetricId.GROSS_MARGIN_PERCENT,
            "Gross Margin %",
            "Gross margin as a percentage of net sales.",
            "(Net Sales - COGS) / Net Sales.",
            MetricFormat.PERCENT,
            TX,
            lambda ctx: _ratio(net_sales_cents(ctx.transactions) - _cogs(ctx), net_sales_cents(ctx.transactions)),
        ),
        # Tips and taxes
        _metric(
            MetricId.TAXABLE_SALES,
            "Taxable Sales",
            "Discounted sales on transactions that carried tax.",
            "Sum of Subtotal - Discount where tax > 0.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: _taxable_sales(ctx, taxed=True),
        ),
        _metric(
            MetricId.NONTAXABLE_SALES,
            "Non-taxable Sales",
            "Discounted sales on transactions without tax.",
            "Sum of Subtotal - Discount where tax = 0.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: _taxable_sales(ctx, taxed=False),
        ),
        _metric(
            MetricId.TIP_PERCENT,
            "Tip %",
            "Tips relative to discounted sales.",
            "Tips / (Gross Sales - Discounts).",
            MetricFormat.PERCENT,
            TX,
            lambda ctx: _ratio(
                tips_cents(ctx.transactions),
                gross_sales_cents(ctx.transactions) - discounts_cents(ctx.transactions),
            ),
        ),
        _metric(
            MetricId.TIP_FEE_COST,
            "Tip Fee Cost",
            "Card fees attributable to tips.",
            "2.9% of card tips.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: sum(tip_fee_cents(t) for t in ctx.transactions),
            higher_is_better=False,
        ),
        _metric(
            MetricId.NET_TO_STAFF,
            "Net Tips to Staff",
            "Tips paid out after card fees.",
            "Tips - Tip Fee Cost.",
            MetricFormat.MONEY,
            TX,
            lambda ctx: tips_cents(ctx.transactions) - sum(tip_fee_cents(t) for t in ctx.transactions),
        ),
        # Appointments
        _metric(
            MetricId.APPOINTMENTS_BOOKED,
            "Appointments Booked",
            "Appointments on the calendar in the period, any status.",
            "Count of appointments.",
            MetricFormat.INT,
            APPT,
            lambda ctx: len(ctx.appointments),
        ),
        _metric(
            MetricId.APPOINTMENTS_COMPLETED,
            "Appointments Completed",
            "Appointments marked completed.",
            "Count of completed appointments.",
            MetricFormat.INT,
            APPT,
            lambda ctx: len(_with_status(ctx.appointments, AppointmentStatus.COMPLETED)),
        ),
        _metric(
            MetricId.APPOINTMENTS_CANCELLED,
            "Cancellations",
            "Appointments cancelled.",
            "Count of cancelled appointments.",
            MetricFormat.INT,
            APPT,
            lambda ctx: len(_with_status(ctx.appointments, AppointmentStatus.CANCELLED)),
            higher_is_better=False,
        ),
        _metric(
            MetricId.NO_SHOWS,
            "No-Shows",
            "Appointments where the client did not arrive.",
            "Count of no-show appointments.",
            MetricFormat.INT,
            APPT,
            lambda ctx: len(_with_status(ctx.appointments, AppointmentStatus.NO_SHOW)),
            higher_is_better=False,
        ),
        _metric(
            MetricId.NO_SHOW_RATE,
            "No-Show Rate",
            "Share of booked appointments that were no-shows.",
            "No-Shows / Appointments Booked.",
            MetricFormat.PERCENT,
            APPT,
            lambda ctx: _ratio(len(_with_status(ctx.appointments, AppointmentStatus.NO_SHOW)), len(ctx.appointments)),
            higher_is_better=False,
        ),
        _metric(
            MetricId.LOST_REVENUE,
            "Lost Revenue",
            "Booked value of no-show and cancelled appointments.",
            "Sum of appointment totals where status is no-show or cancelled.",
            MetricFormat.MONEY,
            APPT,
            lambda ctx: sum(
                a.total_price_cents
                for a in ctx.appointments
                if a.status in (AppointmentStatus.NO_SHOW, AppointmentStatus.CANCELLED)
            ),
            higher_is_better=False,
        ),
        _metric(
            MetricId.AVG_LEAD_TIME,
            "Avg Lead Time",
            "Days between booking and the appointment.",
            "Mean of appointment date - created date.",
            MetricFormat.DAYS,
            APPT,
            _lead_time,
        ),
        _metric(
            MetricId.SERVICE_MINUTES,
            "Service Minutes",
            "Minutes spent on completed appointments.",
            "Sum of completed appointment durations.",
            MetricFormat.MINUTES,
            APPT,
            _service_minutes,
        ),
        _metric(
            MetricId.REVENUE_PER_HOUR,
            "Revenue per Groomer Hour",
            "Net sales earned per hour of completed grooming.",
            "Net Sales / (Service Minutes / 60).",
            MetricFormat.MONEY,
            BOTH,
            lambda ctx: _money_ratio(net_sales_cents(ctx.transactions) * 60, _service_minutes(ctx)),
        ),
        _metric(
            MetricId.UTILIZATION,
            "Utilization",
            "Share of bookable groomer time spent on completed appointments.",
            "Service Minutes / (active groomers x days x 480).",
            MetricFormat.PERCENT,
            APPT,
            _utilization,
        ),
        _metric(
            MetricId.UPSELL_RATE,
            "Add-on Rate",
            "Share of completed appointments with at least one add-on.",
            "Completed with add-on / Completed.",
            MetricFormat.PERCENT,
            APPT,
            _upsell_rate,
        ),
        # Clients
        _metric(
            MetricId.NEW_CLIENTS,
            "New Clients",
            "Clients whose first visit falls in the period.",
            "Distinct clients visiting on their first visit date.",
            MetricFormat.INT,
            APPT,
            lambda ctx: len(_new_clients(ctx)),
        ),
        _metric(
            MetricId.RETURNING_CLIENTS,
            "Returning Clients",
            "Clients who visited before the period and came back.",
            "Distinct visiting clients - New Clients.",
            MetricFormat.INT,
            APPT,
            lambda ctx: len(_visiting_clients(ctx) - _new_clients(ctx)),
        ),
        _metric(
            MetricId.REBOOK_30D,
            "Rebook Rate (30d)",
            "Share of completed appointments followed by another visit within 30 days.",
            "Completed with next visit <= 30 days / Completed.",
            MetricFormat.PERCENT,
            APPT,
            _rebook_rate,
        ),
        _metric(
            MetricId.AVG_DAYS_TO_RETURN,
            "Avg Days to Return",
            "Average gap between a completed visit and the client's next visit.",
            "Mean of next visit date - visit date.",
            MetricFormat.DAYS,
            APPT,
            lambda ctx: _mean(_return_gaps(ctx)),
            higher_is_better=False,
        ),
        # Inventory and messages
        _metric(
            MetricId.ITEMS_BELOW_REORDER,
            "Items Below Reorder",
            "Inventory items under their reorder threshold.",
            "Count of items where quantity < reorder level.",
            MetricFormat.INT,
            (RecordType.INVENTORY,),
            lambda ctx: sum(1 for item in ctx.inventory if item.below_reorder),
            higher_is_better=False,
        ),
        _metric(
            MetricId.INVENTORY_COST_VALUE,
            "Inventory Value (Cost)",
            "Value of stock on hand at unit cost.",
            "Sum of quantity x unit cost.",
            MetricFormat.MONEY,
            (RecordType.INVENTORY,),
            lambda ctx: sum(item.quantity_on_hand * item.unit_cost_cents for item in ctx.inventory),
        ),
        _metric(
            MetricId.RETAIL_STOCK_VALUE,
            "Retail Stock Value",
            "Retail stock on hand at selling price.",
            "Sum of quantity x price for retail items.",
            MetricFormat.MONEY,
            (RecordType.INVENTORY,),
            lambda ctx: sum(
                item.quantity_on_hand * item.unit_price_cents
                for item in ctx.inventory
                if item.category == InventoryCategory.RETAIL
            ),
        ),
        _metric(
            MetricId.MESSAGES_SENT,
            "Messages Sent",
            "Messages sent to clients.",
            "Count of messages.",
            MetricFormat.INT,
            (RecordType.MESSAGES,),
            lambda ctx: len(ctx.messages),
        ),
        _metric(
            MetricId.CLIENTS_MESSAGED,
            "Clients Messaged",
            "Distinct clients who received a message.",
            "Count of distinct message recipients.",
            MetricFormat.INT,
            (RecordType.MESSAGES,),
            lambda ctx: len({m.client_id for m in ctx.messages if m.client_id}),
        ),
    )
}


def get_metric(metric_id: Union[MetricId, str]) -> MetricDefinition:
    """Look up a metric definition.

    Raises:
        ValidationError: If the metric id is not registered
    """
    try:
        return METRICS[MetricId(metric_id)]
    except (ValueError, KeyError):
        raise ValidationError(unknown_metric(str(getattr(metric_id, "value", metric_id))))


def compute_metric(metric_id: Union[MetricId, str], context: MetricContext) -> Number:
    """Run the registered reducer for ``metric_id`` over ``context``."""
    return get_metric(metric_id).reducer(context)


def format_metric(value: Optional[Number], format: MetricFormat) -> str:
    """Render a metric value for display. Money is the only place cents become dollars."""
    if value is None:
        return "-"
    if format == MetricFormat.MONEY:
        amount = cents_to_decimal(int(value))
        sign = "-" if amount < 0 else ""
        return f"{sign}${abs(amount):,.2f}"
    if format == MetricFormat.PERCENT:
        return f"{value * 100:.1f}%"
    if format == MetricFormat.MINUTES:
        return f"{int(value):,} min"
    if format == MetricFormat.DAYS:
        return f"{value:.1f} days"
    return f"{int(value):,}"


def format_delta(kpi: KPI) -> str:
    """Render a KPI's change against the prior period."""
    if kpi.delta is None:
        return ""
    if kpi.format == MetricFormat.PERCENT:
        return f"{kpi.delta * 100:+.1f} pts"
    percent = f" ({kpi.delta_percent * 100:+.1f}%)" if kpi.delta_percent is not None else ""
    if kpi.format == MetricFormat.MONEY:
        amount = cents_to_decimal(int(kpi.delta))
        sign = "-" if amount < 0 else "+"
        return f"{sign}${abs(amount):,.2f}{percent}"
    return f"{kpi.delta:+,}{percent}"
