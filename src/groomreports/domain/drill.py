"""Drill-down resolution: from a displayed value back to its records."""

from dataclasses import dataclass
from typing import Optional, Union

from groomreports.domain.entities import (
    Appointment,
    Client,
    DrillRequest,
    InventoryItem,
    Message,
    MetricId,
    NormalizedDataset,
    RecordType,
    Scope,
    Staff,
    Transaction,
)
from groomreports.domain.metrics import MetricContext, get_metric
from groomreports.domain.scope import (
    DatasetIndex,
    select_appointments,
    select_clients,
    select_inventory,
    select_messages,
    select_staff,
    select_transactions,
)


@dataclass(frozen=True)
class DrillResult:
    """Records behind a drill. Collections that were not requested are None."""

    request: DrillRequest
    index: DatasetIndex
    appointments: Optional[tuple[Appointment, ...]] = None
    transactions: Optional[tuple[Transaction, ...]] = None
    clients: Optional[tuple[Client, ...]] = None
    staff: Optional[tuple[Staff, ...]] = None
    inventory: Optional[tuple[InventoryItem, ...]] = None
    messages: Optional[tuple[Message, ...]] = None

    @property
    def scope(self) -> Scope:
        return self.request.scope

    def records(self, record_type: RecordType) -> tuple:
        return getattr(self, record_type.value) or ()

    def count(self) -> int:
        return sum(len(self.records(record_type)) for record_type in self.request.record_types)

    def metric_value(self, metric_id: Union[MetricId, str]):
        """Recompute a registry metric over the returned records only."""
        definition = get_metric(metric_id)
        context = MetricContext(
            index=self.index,
            scope=self.scope,
            transactions=self.transactions or (),
            appointments=self.appointments or (),
            inventory=self.inventory or (),
            messages=self.messages or (),
        )
        return definition.reducer(context)


def resolve_drill(request: DrillRequest, dataset: NormalizedDataset) -> DrillResult:
    """Return the records a drill request identifies.

    Only the requested record types are selected, and they are selected with
    the same scope functions the analytics engine uses, so recomputing the
    triggering metric over the result reproduces the displayed value.

    Args:
        request: Drill request attached to a KPI, chart point, row or insight
        dataset: The dataset the value was computed from

    Returns:
        DrillResult
    """
    index = DatasetIndex(dataset)
    scope = request.scope
    wanted = set(request.record_types)

    appointments = select_appointments(index, scope) if RecordType.APPOINTMENTS in wanted else None
    transactions = select_transactions(index, scope) if RecordType.TRANSACTIONS in wanted else None

    clients = None
    if RecordType.CLIENTS in wanted:
        clients = select_clients(index, scope, appointments=appointments, transactions=transactions)

    return DrillResult(
        request=request,
        index=index,
        appointments=appointments,
        transactions=transactions,
        clients=clients,
        staff=select_staff(index, scope) if RecordType.STAFF in wanted else None,
        inventory=select_inventory(index, scope) if RecordType.INVENTORY in wanted else None,
        messages=select_messages(index, scope) if RecordType.MESSAGES in wanted else None,
    )
