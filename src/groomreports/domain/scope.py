"""Record selection shared by the analytics engine and the drill resolver.

A value shown in a report and the drill behind it both go through the
functions in this module with the same ``Scope``, so the records summed
into a KPI, chart point or table row are exactly the records a drill
returns.
"""

from typing import Optional, Union

from groomreports.domain.entities import (
    Appointment,
    AppointmentStatus,
    Client,
    GroupBy,
    InventoryItem,
    Message,
    NormalizedDataset,
    Scope,
    Staff,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from groomreports.utils.date_parser import month_key, week_start

UNASSIGNED = "unassigned"
WALK_IN = "walk-in"
UNKNOWN = "unknown"
UNPAID = "unpaid"
RETAIL = "retail"
OTHER = "other"

# Dimensions a message can be grouped by; other dimensions exclude messages.
MESSAGE_GROUPS = (GroupBy.DAY, GroupBy.WEEK, GroupBy.MONTH, GroupBy.CLIENT)


class DatasetIndex:
    """Lookup tables over a normalized dataset.

    Built once per computation so cross-record lookups (transaction to
    appointment, appointment to payment) stay constant time.
    """

    def __init__(self, dataset: NormalizedDataset):
        self.dataset = dataset
        self.appointments_by_id = {appointment.id: appointment for appointment in dataset.appointments}
        self.staff_by_id: dict[str, Staff] = {member.id: member for member in dataset.staff}
        self.clients_by_id: dict[str, Client] = {client.id: client for client in dataset.clients}
        self.inventory_by_id = {item.id: item for item in dataset.inventory}
        self.inventory_by_name = {item.name.lower(): item for item in dataset.inventory if item.name}

        self.payment_by_appointment: dict[str, Transaction] = {}
        for transaction in dataset.transactions:
            if (
                transaction.type == TransactionType.APPOINTMENT_SALE
                and transaction.status != TransactionStatus.VOIDED
                and transaction.appointment_id not in self.payment_by_appointment
            ):
                self.payment_by_appointment[transaction.appointment_id] = transaction

        self.visits_by_client: dict[str, list[Appointment]] = {}
        for appointment in sorted(dataset.appointments, key=lambda a: (a.date, a.id)):
            if appointment.status == AppointmentStatus.CANCELLED or not appointment.client_id:
                continue
            self.visits_by_client.setdefault(appointment.client_id, []).append(appointment)

    def linked_appointment(self, transaction: Transaction) -> Optional[Appointment]:
        if transaction.type != TransactionType.APPOINTMENT_SALE:
            return None
        return self.appointments_by_id.get(transaction.appointment_id)

    def first_visit(self, client_id: str):
        visits = self.visits_by_client.get(client_id)
        return visits[0].date if visits else None

    def next_visit(self, appointment: Appointment) -> Optional[Appointment]:
        """Return the client's next non-cancelled visit after ``appointment``."""
        for visit in self.visits_by_client.get(appointment.client_id, ()):
            if visit.date > appointment.date:
                return visit
        return None

    def inventory_for_item(self, item_id: str, name: str) -> Optional[InventoryItem]:
        return self.inventory_by_id.get(item_id) or self.inventory_by_name.get(name.lower())

    def group_key(
        self, record: Union[Transaction, Appointment, Message], group_by: GroupBy
    ) -> Optional[str]:
        """Return the group key of a record, or None if the record has no such dimension."""
        if group_by == GroupBy.DAY:
            return record.date.isoformat()
        if isinstance(record, Message):
            if group_by == GroupBy.WEEK:
                return week_start(record.date).isoformat()
            if group_by == GroupBy.MONTH:
                return month_key(record.date)
            if group_by == GroupBy.CLIENT:
                return record.client_id or WALK_IN
            return None
        if group_by == GroupBy.WEEK:
            return record.week_start.isoformat()
        if group_by == GroupBy.MONTH:
            return record.month_key
        if group_by == GroupBy.GROOMER:
            return record.groomer_id or UNASSIGNED
        if group_by == GroupBy.CLIENT:
            return record.client_id or WALK_IN
        if isinstance(record, Transaction):
            return self._transaction_key(record, group_by)
        return self._appointment_key(record, group_by)

    def _transaction_key(self, transaction: Transaction, group_by: GroupBy) -> str:
        appointment = self.linked_appointment(transaction)
        if group_by == GroupBy.SERVICE:
            if appointment is not None and appointment.main_service is not None:
                return appointment.main_service.service_id
            return RETAIL if transaction.type == TransactionType.RETAIL_SALE else OTHER
        if group_by == GroupBy.PAYMENT_METHOD:
            return transaction.payment_method.value
        if group_by == GroupBy.WEIGHT_CATEGORY:
            if appointment is not None and appointment.pet.weight_category is not None:
                return appointment.pet.weight_category.value
            return UNKNOWN
        return transaction.type.value

    def _appointment_key(self, appointment: Appointment, group_by: GroupBy) -> str:
        if group_by == GroupBy.SERVICE:
            main = appointment.main_service
            return main.service_id if main is not None else OTHER
        if group_by == GroupBy.PAYMENT_METHOD:
            payment = self.payment_by_appointment.get(appointment.id)
            return payment.payment_method.value if payment is not None else UNPAID
        if group_by == GroupBy.WEIGHT_CATEGORY:
            category = appointment.pet.weight_category
            return category.value if category is not None else UNKNOWN
        return TransactionType.APPOINTMENT_SALE.value

    def group_label(self, group_by: GroupBy, key: str) -> str:
        """Return a display label for a group key."""
        if group_by == GroupBy.GROOMER and key in self.staff_by_id:
            return self.staff_by_id[key].name or key
        if group_by == GroupBy.CLIENT and key in self.clients_by_id:
            return self.clients_by_id[key].name or key
        if group_by == GroupBy.SERVICE:
            for appointment in self.dataset.appointments:
                for service in appointment.services:
                    if service.service_id == key and service.name:
                        return service.name
        return key


def _matches_group(index: DatasetIndex, record, scope: Scope) -> bool:
    if scope.group_by is None or scope.group_key is None:
        return True
    return index.group_key(record, scope.group_by) == scope.group_key


def transaction_in_scope(index: DatasetIndex, transaction: Transaction, scope: Scope) -> bool:
    """Return True if a transaction belongs to ``scope``. Voided sales never do."""
    if transaction.status == TransactionStatus.VOIDED:
        return False
    if not scope.window.contains(transaction.date):
        return False
    if scope.groomer_ids and transaction.groomer_id not in scope.groomer_ids:
        return False
    if scope.client_ids and transaction.client_id not in scope.client_ids:
        return False
    if scope.payment_methods and transaction.payment_method not in scope.payment_methods:
        return False
    if scope.service_ids and index.group_key(transaction, GroupBy.SERVICE) not in scope.service_ids:
        return False
    if scope.weight_categories:
        categories = {category.value for category in scope.weight_categories}
        if index.group_key(transaction, GroupBy.WEIGHT_CATEGORY) not in categories:
            return False
    return _matches_group(index, transaction, scope)


def appointment_in_scope(index: DatasetIndex, appointment: Appointment, scope: Scope) -> bool:
    """Return True if an appointment belongs to ``scope``."""
    if not scope.window.contains(appointment.date):
        return False
    if scope.groomer_ids and appointment.groomer_id not in scope.groomer_ids:
        return False
    if scope.client_ids and appointment.client_id not in scope.client_ids:
        return False
    if scope.appointment_statuses and appointment.status not in scope.appointment_statuses:
        return False
    if scope.payment_methods:
        methods = {method.value for method in scope.payment_methods}
        if index.group_key(appointment, GroupBy.PAYMENT_METHOD) not in methods:
            return False
    if scope.service_ids and index.group_key(appointment, GroupBy.SERVICE) not in scope.service_ids:
        return False
    if scope.weight_categories and appointment.pet.weight_category not in scope.weight_categories:
        return False
    return _matches_group(index, appointment, scope)


def select_transactions(index: DatasetIndex, scope: Scope) -> tuple[Transaction, ...]:
    return tuple(t for t in index.dataset.transactions if transaction_in_scope(index, t, scope))


def select_appointments(index: DatasetIndex, scope: Scope) -> tuple[Appointment, ...]:
    return tuple(a for a in index.dataset.appointments if appointment_in_scope(index, a, scope))


def select_messages(index: DatasetIndex, scope: Scope) -> tuple[Message, ...]:
    """Select messages by window, client filter and group."""
    messages = []
    for message in index.dataset.messages:
        if not scope.window.contains(message.date):
            continue
        if scope.client_ids and message.client_id not in scope.client_ids:
            continue
        if scope.group_by is not None and scope.group_key is not None:
            if index.group_key(message, scope.group_by) != scope.group_key:
                continue
        messages.append(message)
    return tuple(messages)


def select_inventory(index: DatasetIndex, scope: Scope) -> tuple[InventoryItem, ...]:
    """Inventory is a point-in-time snapshot; only the below-reorder flag narrows it."""
    if scope.below_reorder_only:
        return tuple(item for item in index.dataset.inventory if item.below_reorder)
    return index.dataset.inventory


def select_clients(
    index: DatasetIndex,
    scope: Scope,
    appointments: Optional[tuple[Appointment, ...]] = None,
    transactions: Optional[tuple[Transaction, ...]] = None,
) -> tuple[Client, ...]:
    """Select clients referenced by in-scope appointments or transactions."""
    if appointments is None:
        appointments = select_appointments(index, scope)
    if transactions is None:
        transactions = select_transactions(index, scope)
    referenced = {a.client_id for a in appointments} | {t.client_id for t in transactions}
    return tuple(client for client in index.dataset.clients if client.id in referenced)


def select_staff(index: DatasetIndex, scope: Scope) -> tuple[Staff, ...]:
    """Select the groomers a scope's appointments are booked against."""
    groomer_ids = set(scope.groomer_ids)
    if scope.group_by == GroupBy.GROOMER and scope.group_key is not None:
        groomer_ids = {scope.group_key}
    return tuple(
        member
        for member in index.dataset.staff
        if member.active and member.groomer_eligible and (not groomer_ids or member.id in groomer_ids)
    )
