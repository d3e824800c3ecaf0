"""Domain model entities for groomreports.

These are pure data classes representing the canonical, cents-denominated
form of the business records plus the filter, scope and report output
types built on top of them. Collections are tuples so every entity (and the
dataset holding them) is immutable once produced.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Union


class WeightCategory(str, Enum):
    """Pet weight bucket."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    GIANT = "giant"


def get_weight_category(weight: Union[Decimal, float, int]) -> WeightCategory:
    """Bucket a pet weight in pounds."""
    if weight <= 25:
        return WeightCategory.SMALL
    if weight <= 50:
        return WeightCategory.MEDIUM
    if weight <= 80:
        return WeightCategory.LARGE
    return WeightCategory.GIANT


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class ServiceRole(str, Enum):
    MAIN = "main"
    ADDON = "addon"


class LineItemKind(str, Enum):
    SERVICE = "service"
    RETAIL = "retail"
    FEE = "fee"


class TransactionStatus(str, Enum):
    COMPLETED = "completed"
    REFUNDED = "refunded"
    VOIDED = "voided"


class TransactionType(str, Enum):
    APPOINTMENT_SALE = "appointment-sale"
    RETAIL_SALE = "retail-sale"
    STANDALONE = "standalone"


class PaymentMethod(str, Enum):
    CARD = "card"
    CASH = "cash"
    OTHER = "other"


class InventoryCategory(str, Enum):
    RETAIL = "retail"
    SUPPLY = "supply"


class RecordType(str, Enum):
    """Record collections a drill can surface."""

    APPOINTMENTS = "appointments"
    TRANSACTIONS = "transactions"
    CLIENTS = "clients"
    STAFF = "staff"
    INVENTORY = "inventory"
    MESSAGES = "messages"


class DatePreset(str, Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7 = "last-7"
    THIS_WEEK = "this-week"
    LAST_30 = "last-30"
    LAST_90 = "last-90"
    MONTH_TO_DATE = "month-to-date"
    LAST_MONTH = "last-month"
    QUARTER = "quarter"
    YEAR_TO_DATE = "year-to-date"
    CUSTOM = "custom"


class GroupBy(str, Enum):
    """Table grouping dimensions."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    GROOMER = "groomer"
    SERVICE = "service"
    CLIENT = "client"
    PAYMENT_METHOD = "payment-method"
    WEIGHT_CATEGORY = "weight-category"
    TRANSACTION_TYPE = "transaction-type"


class Granularity(str, Enum):
    """Chart bucket size."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class MetricFormat(str, Enum):
    MONEY = "money"
    PERCENT = "percent"
    INT = "int"
    MINUTES = "minutes"
    DAYS = "days"


class MetricId(str, Enum):
    """Closed set of metrics known to the registry."""

    GROSS_SALES = "gross-sales"
    DISCOUNTS = "discounts"
    REFUNDS = "refunds"
    NET_SALES = "net-sales"
    TAXES = "taxes"
    TIPS = "tips"
    ADDITIONAL_FEES = "additional-fees"
    TOTAL_COLLECTED = "total-collected"
    TRANSACTION_COUNT = "transaction-count"
    PROCESSING_FEES = "processing-fees"
    NET_DEPOSITS = "net-deposits"
    ESTIMATED_COGS = "estimated-cogs"
    DIRECT_LABOR = "direct-labor"
    CONTRIBUTION_MARGIN = "contribution-margin"
    CONTRIBUTION_MARGIN_PERCENT = "contribution-margin-percent"
    GROSS_MARGIN_PERCENT = "gross-margin-percent"
    AVG_TICKET = "avg-ticket"
    SERVICE_SALES = "service-sales"
    RETAIL_SALES = "retail-sales"
    TAXABLE_SALES = "taxable-sales"
    NONTAXABLE_SALES = "nontaxable-sales"
    TIP_PERCENT = "tip-percent"
    TIP_FEE_COST = "tip-fee-cost"
    NET_TO_STAFF = "net-to-staff"
    APPOINTMENTS_BOOKED = "appointments-booked"
    APPOINTMENTS_COMPLETED = "appointments-completed"
    APPOINTMENTS_CANCELLED = "appointments-cancelled"
    NO_SHOWS = "no-shows"
    NO_SHOW_RATE = "no-show-rate"
    LOST_REVENUE = "lost-revenue"
    AVG_LEAD_TIME = "avg-lead-time"
    SERVICE_MINUTES = "service-minutes"
    REVENUE_PER_HOUR = "revenue-per-hour"
    UTILIZATION = "utilization"
    UPSELL_RATE = "upsell-rate"
    NEW_CLIENTS = "new-clients"
    RETURNING_CLIENTS = "returning-clients"
    REBOOK_30D = "rebook-30d"
    AVG_DAYS_TO_RETURN = "avg-days-to-return"
    ITEMS_BELOW_REORDER = "items-below-reorder"
    INVENTORY_COST_VALUE = "inventory-cost-value"
    RETAIL_STOCK_VALUE = "retail-stock-value"
    MESSAGES_SENT = "messages-sent"
    CLIENTS_MESSAGED = "clients-messaged"


class ReportId(str, Enum):
    """Closed set of report definitions."""

    OWNER_OVERVIEW = "owner-overview"
    TRUE_PROFIT = "true-profit"
    SALES_SUMMARY = "sales-summary"
    FINANCE_RECON = "finance-recon"
    APPOINTMENTS_CAPACITY = "appointments-capacity"
    NO_SHOWS = "no-shows"
    RETENTION = "retention"
    STAFF_PERFORMANCE = "staff-performance"
    PAYROLL = "payroll"
    SERVICE_MIX = "service-mix"
    INVENTORY = "inventory"
    MARKETING_MESSAGING = "marketing-messaging"
    TIPS = "tips"
    TAXES = "taxes"


# Normalized records


@dataclass(frozen=True)
class PetRef:
    """Pet attributes carried on appointments and clients."""

    id: str
    name: str
    weight: Optional[Decimal] = None
    weight_category: Optional[WeightCategory] = None


@dataclass(frozen=True)
class AppointmentService:
    """Service line on an appointment."""

    service_id: str
    name: str
    price_cents: int
    role: ServiceRole


@dataclass(frozen=True)
class Appointment:
    """Appointment domain entity."""

    id: str
    client_id: str
    client_name: str
    pet: PetRef
    groomer_id: Optional[str]
    groomer_name: str
    groomer_eligible: bool
    date: date
    start_time: Optional[time]
    end_time: Optional[time]
    duration_minutes: int
    services: tuple[AppointmentService, ...]
    total_price_cents: int
    status: AppointmentStatus
    created_at: Optional[datetime]
    week_start: date
    month_key: str

    @property
    def main_service(self) -> Optional[AppointmentService]:
        for service in self.services:
            if service.role == ServiceRole.MAIN:
                return service
        return self.services[0] if self.services else None

    @property
    def has_addon(self) -> bool:
        return any(service.role == ServiceRole.ADDON for service in self.services)


@dataclass(frozen=True)
class TransactionItem:
    """Line item on a point-of-sale transaction."""

    id: str
    name: str
    kind: LineItemKind
    quantity: int
    unit_price_cents: int
    total_cents: int


@dataclass(frozen=True)
class Transaction:
    """Point-of-sale transaction domain entity.

    ``total_cents`` is tip-exclusive and always equals
    ``subtotal - discount + additional_fees + tax``.
    """

    id: str
    appointment_id: Optional[str]
    date: date
    client_id: Optional[str]
    client_name: str
    items: tuple[TransactionItem, ...]
    subtotal_cents: int
    discount_cents: int
    additional_fees_cents: int
    tax_cents: int
    total_cents: int
    tip_cents: int
    refund_cents: int
    payment_method: PaymentMethod
    status: TransactionStatus
    type: TransactionType
    groomer_id: Optional[str]
    week_start: date
    month_key: str


@dataclass(frozen=True)
class Client:
    """Client domain entity."""

    id: str
    name: str
    email: Optional[str]
    phone: Optional[str]
    pets: tuple[PetRef, ...] = ()


@dataclass(frozen=True)
class Staff:
    """Staff member domain entity."""

    id: str
    name: str
    role: str
    email: Optional[str]
    phone: Optional[str]
    active: bool
    groomer_eligible: bool
    hourly_rate_cents: Optional[int] = None


@dataclass(frozen=True)
class InventoryItem:
    """Inventory item domain entity."""

    id: str
    name: str
    category: InventoryCategory
    sku: str
    quantity_on_hand: int
    unit_price_cents: int
    unit_cost_cents: int
    reorder_threshold: int

    @property
    def below_reorder(self) -> bool:
        return self.quantity_on_hand < self.reorder_threshold


@dataclass(frozen=True)
class Message:
    """Client message; content is opaque to analytics."""

    id: str
    client_id: Optional[str]
    sent_at: datetime
    date: date
    channel: str
    content: str = ""


@dataclass(frozen=True)
class NormalizationWarning:
    """Non-fatal problem found while normalizing a raw record."""

    record_type: RecordType
    record_id: Optional[str]
    message: str

    def __str__(self) -> str:
        record_id = self.record_id if self.record_id is not None else "?"
        return f"{self.record_type.value} {record_id}: {self.message}"


@dataclass(frozen=True)
class NormalizedDataset:
    """Immutable aggregate of all normalized collections for one cycle."""

    version: int
    appointments: tuple[Appointment, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    clients: tuple[Client, ...] = ()
    staff: tuple[Staff, ...] = ()
    inventory: tuple[InventoryItem, ...] = ()
    messages: tuple[Message, ...] = ()
    warnings: tuple[NormalizationWarning, ...] = ()


# Filters and scope


@dataclass(frozen=True)
class DateWindow:
    """Inclusive calendar date window."""

    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def shift(self, days: int) -> "DateWindow":
        return DateWindow(self.start + timedelta(days=days), self.end + timedelta(days=days))

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


@dataclass(frozen=True)
class FilterState:
    """User-facing filter selections. ``None`` means not set by the user."""

    date_preset: Optional[DatePreset] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    compare: Optional[bool] = None
    group_by: Optional[GroupBy] = None
    visible_columns: Optional[tuple[str, ...]] = None
    groomer_ids: Optional[tuple[str, ...]] = None
    client_ids: Optional[tuple[str, ...]] = None
    service_ids: Optional[tuple[str, ...]] = None
    payment_methods: Optional[tuple[PaymentMethod, ...]] = None
    weight_categories: Optional[tuple[WeightCategory, ...]] = None
    appointment_statuses: Optional[tuple[AppointmentStatus, ...]] = None


@dataclass(frozen=True)
class Scope:
    """Exact record-selection criteria shared by a displayed value and its drill.

    Empty tuples mean "no restriction". ``group_by``/``group_key`` narrow the
    selection to one table row.
    """

    window: DateWindow
    groomer_ids: tuple[str, ...] = ()
    client_ids: tuple[str, ...] = ()
    service_ids: tuple[str, ...] = ()
    payment_methods: tuple[PaymentMethod, ...] = ()
    weight_categories: tuple[WeightCategory, ...] = ()
    appointment_statuses: tuple[AppointmentStatus, ...] = ()
    group_by: Optional[GroupBy] = None
    group_key: Optional[str] = None
    below_reorder_only: bool = False

    def with_window(self, window: DateWindow) -> "Scope":
        return replace(self, window=window)

    def with_group(self, group_by: GroupBy, group_key: str) -> "Scope":
        return replace(self, group_by=group_by, group_key=group_key)


@dataclass(frozen=True)
class ResolvedFilters:
    """Fully concrete filter specification with explicit date windows."""

    date_preset: DatePreset
    current: DateWindow
    prior: Optional[DateWindow]
    compare: bool
    group_by: Optional[GroupBy] = None
    visible_columns: Optional[tuple[str, ...]] = None
    groomer_ids: tuple[str, ...] = ()
    client_ids: tuple[str, ...] = ()
    service_ids: tuple[str, ...] = ()
    payment_methods: tuple[PaymentMethod, ...] = ()
    weight_categories: tuple[WeightCategory, ...] = ()
    appointment_statuses: tuple[AppointmentStatus, ...] = ()

    def scope(self, window: Optional[DateWindow] = None) -> Scope:
        """Build the record scope for ``window`` (the current window by default)."""
        return Scope(
            window=window or self.current,
            groomer_ids=self.groomer_ids,
            client_ids=self.client_ids,
            service_ids=self.service_ids,
            payment_methods=self.payment_methods,
            weight_categories=self.weight_categories,
            appointment_statuses=self.appointment_statuses,
        )


# Report output


@dataclass(frozen=True)
class DrillRequest:
    """Request to map a displayed aggregate back to its records."""

    title: str
    record_types: tuple[RecordType, ...]
    scope: Scope
    metric: Optional[MetricId] = None
    value: Optional[Union[int, float]] = None


@dataclass(frozen=True)
class KPI:
    """Single computed business metric with optional trend."""

    id: MetricId
    label: str
    value: Union[int, float]
    format: MetricFormat
    previous: Optional[Union[int, float]] = None
    delta: Optional[Union[int, float]] = None
    delta_percent: Optional[float] = None
    trend: Optional[str] = None
    drill: Optional[DrillRequest] = None


@dataclass(frozen=True)
class ChartPoint:
    label: str
    window: DateWindow
    value: Union[int, float]
    previous_value: Optional[Union[int, float]] = None
    drill: Optional[DrillRequest] = None


@dataclass(frozen=True)
class ChartData:
    id: str
    title: str
    metric: MetricId
    format: MetricFormat
    granularity: Granularity
    points: tuple[ChartPoint, ...]


@dataclass(frozen=True)
class TableColumn:
    id: MetricId
    label: str
    format: MetricFormat


@dataclass(frozen=True)
class TableRow:
    key: str
    label: str
    values: Mapping[MetricId, Union[int, float]]
    drill: DrillRequest


@dataclass(frozen=True)
class TableData:
    group_by: GroupBy
    columns: tuple[TableColumn, ...]
    rows: tuple[TableRow, ...]
    group_by_options: tuple[GroupBy, ...] = ()


@dataclass(frozen=True)
class Insight:
    id: str
    title: str
    description: str
    severity: str
    metric: Optional[MetricId] = None
    delta: Optional[float] = None
    action: Optional[str] = None
    drill: Optional[DrillRequest] = None


@dataclass(frozen=True)
class ReportData:
    """Computed presentation data for one report."""

    report_id: ReportId
    title: str
    filters: ResolvedFilters
    kpis: tuple[KPI, ...]
    charts: tuple[ChartData, ...]
    table: TableData
    insights: tuple[Insight, ...] = ()

    def kpi(self, metric: MetricId) -> Optional[KPI]:
        for kpi in self.kpis:
            if kpi.id == metric:
                return kpi
        return None


# Persistence shell


@dataclass(frozen=True)
class SavedView:
    """Named filter selection for a report."""

    id: int
    name: str
    report_id: ReportId
    filters: FilterState
    created_at: datetime
    updated_at: datetime
    extra: Mapping[str, Any] = field(default_factory=dict)
