"""Tests for raw record normalization."""

import copy
from datetime import date, datetime, time
from decimal import Decimal

import pytest

from groomreports.domain.entities import (
    AppointmentStatus,
    InventoryCategory,
    LineItemKind,
    PaymentMethod,
    RecordType,
    ServiceRole,
    TransactionStatus,
    TransactionType,
    WeightCategory,
    get_weight_category,
)
from groomreports.domain.normalization import NormalizationService, fingerprint, normalize


def _by_id(records):
    return {record.id: record for record in records}


def _warnings_for(dataset, record_type, record_id):
    return [
        w.message
        for w in dataset.warnings
        if w.record_type == record_type and w.record_id == record_id
    ]


def _transaction(**overrides):
    raw = {
        "id": "t1",
        "date": "2024-01-10",
        "subtotal": 50.0,
        "discount": 0,
        "additionalFees": 0,
        "tipAmount": 0,
        "paymentMethod": "card",
        "status": "completed",
    }
    raw.update(overrides)
    return raw


class TestSampleExport:
    """Normalization of the shared sample export."""

    def test_collection_sizes(self, dataset):
        assert len(dataset.staff) == 3
        assert len(dataset.clients) == 3
        assert len(dataset.appointments) == 5
        assert len(dataset.transactions) == 6
        assert len(dataset.inventory) == 2
        assert len(dataset.messages) == 3

    def test_only_warning_is_dangling_appointment(self, dataset):
        """The sample has exactly one repair: t4 points at a missing appointment."""
        assert len(dataset.warnings) == 1
        warning = dataset.warnings[0]
        assert warning.record_type == RecordType.TRANSACTIONS
        assert warning.record_id == "t4"
        assert "a-missing" in warning.message
        assert str(warning).startswith("transactions t4: ")

    def test_staff(self, dataset):
        staff = _by_id(dataset.staff)
        assert staff["g1"].hourly_rate_cents == 2000
        assert staff["g2"].hourly_rate_cents == 2500
        assert staff["g1"].active and staff["g1"].groomer_eligible
        assert not staff["s3"].groomer_eligible
        assert staff["s3"].hourly_rate_cents is None

    def test_appointment_fields(self, dataset):
        appointments = _by_id(dataset.appointments)
        a1 = appointments["a1"]
        assert a1.duration_minutes == 90
        assert a1.start_time == time(9, 0)
        assert a1.total_price_cents == 5000
        assert a1.groomer_eligible
        assert a1.pet.weight == Decimal("30")
        assert a1.pet.weight_category == WeightCategory.MEDIUM
        assert a1.created_at == datetime(2024, 1, 3, 10, 0)
        assert a1.week_start == date(2024, 1, 8)
        assert a1.month_key == "2024-01"

    def test_status_aliases(self, dataset):
        """'paid' is a completed visit."""
        appointments = _by_id(dataset.appointments)
        assert appointments["a2"].status == AppointmentStatus.COMPLETED
        assert appointments["a3"].status == AppointmentStatus.NO_SHOW
        assert appointments["a4"].status == AppointmentStatus.CANCELLED

    def test_service_roles(self, dataset):
        a2 = _by_id(dataset.appointments)["a2"]
        assert [s.role for s in a2.services] == [ServiceRole.MAIN, ServiceRole.ADDON]
        assert a2.main_service.service_id == "s-bath"
        assert a2.has_addon
        assert not _by_id(dataset.appointments)["a1"].has_addon

    def test_weight_category_without_weight(self, dataset):
        a4 = _by_id(dataset.appointments)["a4"]
        assert a4.pet.weight is None
        assert a4.pet.weight_category == WeightCategory.GIANT

    def test_derived_tax_and_tip_exclusive_total(self, dataset):
        """Raw totals include the tip; normalized totals do not."""
        t1 = _by_id(dataset.transactions)["t1"]
        assert t1.tax_cents == 0
        assert t1.total_cents == 4700
        assert t1.tip_cents == 1000
        assert t1.type == TransactionType.APPOINTMENT_SALE
        assert t1.groomer_id == "g1"

    def test_explicit_tax(self, dataset):
        t2 = _by_id(dataset.transactions)["t2"]
        assert t2.tax_cents == 320
        assert t2.total_cents == 4320
        assert t2.payment_method == PaymentMethod.CASH

    def test_retail_sale(self, dataset):
        t3 = _by_id(dataset.transactions)["t3"]
        assert t3.type == TransactionType.RETAIL_SALE
        assert t3.items[0].kind == LineItemKind.RETAIL
        assert t3.items[0].quantity == 2
        assert t3.groomer_id is None

    def test_refund_defaults_to_discounted_subtotal(self, dataset):
        t4 = _by_id(dataset.transactions)["t4"]
        assert t4.status == TransactionStatus.REFUNDED
        assert t4.refund_cents == 2000
        assert t4.type == TransactionType.STANDALONE

    def test_inventory(self, dataset):
        inventory = _by_id(dataset.inventory)
        assert inventory["inv1"].below_reorder
        assert not inventory["inv2"].below_reorder
        assert inventory["inv2"].category == InventoryCategory.SUPPLY

    def test_message_dates(self, dataset):
        messages = _by_id(dataset.messages)
        assert messages["m1"].date == date(2024, 1, 5)
        assert messages["m2"].date == date(2024, 1, 6)
        assert messages["m2"].channel == "email"

    def test_input_not_mutated(self, raw_collections):
        before = copy.deepcopy(raw_collections)
        normalize(
            raw_collections["appointments"],
            raw_collections["transactions"],
            raw_collections["clients"],
            raw_collections["staff"],
            raw_collections["inventory"],
            raw_collections["messages"],
        )
        assert raw_collections == before


class TestTransactionRepairs:
    """Repairs applied to individual transactions."""

    def test_mismatched_total_warns_and_recomputes(self):
        dataset = normalize(raw_transactions=[_transaction(tax=4.0, total=60.0)])
        transaction = dataset.transactions[0]
        assert transaction.total_cents == 5400
        messages = _warnings_for(dataset, RecordType.TRANSACTIONS, "t1")
        assert len(messages) == 1
        assert "does not match recomputed 5400" in messages[0]

    def test_any_nonzero_discrepancy_warns(self):
        """A one cent difference is still reported."""
        dataset = normalize(raw_transactions=[_transaction(tax=4.0, total=54.01)])
        assert len(dataset.warnings) == 1

    def test_negative_derived_tax_clamped(self):
        dataset = normalize(raw_transactions=[_transaction(total=45.0)])
        transaction = dataset.transactions[0]
        assert transaction.tax_cents == 0
        assert transaction.total_cents == 5000
        messages = _warnings_for(dataset, RecordType.TRANSACTIONS, "t1")
        assert any("negative" in message for message in messages)

    def test_subtotal_defaults_to_item_sum(self):
        raw = _transaction(
            items=[
                {"id": "i1", "type": "service", "quantity": 1, "price": 30.0},
                {"id": "i2", "type": "product", "quantity": 2, "price": 7.5},
            ]
        )
        del raw["subtotal"]
        transaction = normalize(raw_transactions=[raw]).transactions[0]
        assert transaction.subtotal_cents == 4500
        assert transaction.items[1].total_cents == 1500
        assert transaction.type == TransactionType.STANDALONE

    def test_explicit_refund_amount(self):
        raw = _transaction(status="refunded", refundAmount=12.5)
        assert normalize(raw_transactions=[raw]).transactions[0].refund_cents == 1250

    @pytest.mark.parametrize(
        "raw_method,expected",
        [("card", PaymentMethod.CARD), ("Credit", PaymentMethod.CARD), ("cash", PaymentMethod.CASH), ("check", PaymentMethod.OTHER)],
    )
    def test_payment_methods(self, raw_method, expected):
        raw = _transaction(paymentMethod=raw_method)
        assert normalize(raw_transactions=[raw]).transactions[0].payment_method == expected

    def test_void_alias(self):
        raw = _transaction(status="void")
        assert normalize(raw_transactions=[raw]).transactions[0].status == TransactionStatus.VOIDED

    def test_snake_case_keys(self):
        raw = {"id": "t9", "date": "2024-01-10", "subtotal": 10, "tip_amount": 2, "payment_method": "cash"}
        transaction = normalize(raw_transactions=[raw]).transactions[0]
        assert transaction.tip_cents == 200
        assert transaction.payment_method == PaymentMethod.CASH

    def test_fractional_item_quantity(self):
        raw = _transaction(
            subtotal=25.0,
            items=[{"id": "i1", "name": "Shampoo", "type": "product", "quantity": "2.5", "price": 10.0, "total": 25.0}],
        )
        dataset = normalize(raw_transactions=[raw])

        assert dataset.transactions[0].items[0].quantity == 2
        assert "fractional item quantity '2.5' truncated to 2" in _warnings_for(
            dataset, RecordType.TRANSACTIONS, "t1"
        )

    def test_whole_quantity_written_as_decimal(self):
        raw = _transaction(items=[{"id": "i1", "name": "Bath", "quantity": 1.0, "price": 50.0}])
        dataset = normalize(raw_transactions=[raw])
        assert dataset.transactions[0].items[0].quantity == 1
        assert _warnings_for(dataset, RecordType.TRANSACTIONS, "t1") == []


class TestDroppedRecords:
    """Records that cannot be normalized are dropped with a warning."""

    def test_missing_id(self):
        dataset = normalize(raw_clients=[{"name": "No Id"}])
        assert dataset.clients == ()
        assert "has no id" in dataset.warnings[0].message

    def test_duplicate_id(self):
        dataset = normalize(raw_clients=[{"id": "c1", "name": "First"}, {"id": "c1", "name": "Second"}])
        assert len(dataset.clients) == 1
        assert dataset.clients[0].name == "First"
        assert dataset.warnings[0].message == "duplicate id; dropped"

    def test_unparseable_date(self):
        dataset = normalize(raw_transactions=[_transaction(date="not a date")])
        assert dataset.transactions == ()
        assert dataset.warnings[0].message.endswith("; dropped")

    def test_relative_date(self):
        """Stored records never resolve dates against the clock."""
        dataset = normalize(
            raw_transactions=[_transaction(date="today")],
            raw_appointments=[{"id": "a1", "clientId": "c1", "date": "yesterday", "status": "completed"}],
        )
        assert dataset.transactions == ()
        assert dataset.appointments == ()
        assert "Relative date 'today'" in _warnings_for(dataset, RecordType.TRANSACTIONS, "t1")[0]
        assert _warnings_for(dataset, RecordType.APPOINTMENTS, "a1")

    def test_non_mapping_record(self):
        dataset = normalize(raw_staff=["oops"])
        assert dataset.staff == ()
        assert dataset.warnings[0].record_id is None

    def test_message_without_timestamp(self):
        dataset = normalize(raw_messages=[{"id": "m1", "clientId": "c1"}])
        assert dataset.messages == ()
        assert "sent-at" in dataset.warnings[0].message


class TestAppointmentRepairs:
    """Repairs applied to appointments."""

    def test_unknown_groomer(self):
        raw = {"id": "a1", "date": "2024-01-10", "groomerId": "ghost", "status": "completed"}
        dataset = normalize(raw_appointments=[raw])
        appointment = dataset.appointments[0]
        assert appointment.groomer_id == "ghost"
        assert not appointment.groomer_eligible
        assert "not found in staff" in dataset.warnings[0].message

    def test_end_before_start(self):
        raw = {"id": "a1", "date": "2024-01-10", "startTime": "11:00", "endTime": "10:00"}
        dataset = normalize(raw_appointments=[raw])
        assert dataset.appointments[0].duration_minutes == 0
        assert len(dataset.warnings) == 1

    def test_service_sum_wins_over_total_price(self):
        raw = {
            "id": "a1",
            "date": "2024-01-10",
            "services": [{"serviceId": "s1", "price": 40}, {"serviceId": "s2", "price": 15, "type": "add-on"}],
            "totalPrice": 50,
        }
        dataset = normalize(raw_appointments=[raw])
        assert dataset.appointments[0].total_price_cents == 5500
        assert "service sum 5500" in dataset.warnings[0].message

    def test_unknown_status(self):
        raw = {"id": "a1", "date": "2024-01-10", "status": "rescheduled"}
        dataset = normalize(raw_appointments=[raw])
        assert dataset.appointments[0].status == AppointmentStatus.SCHEDULED
        assert len(dataset.warnings) == 1


@pytest.mark.parametrize(
    "weight,expected",
    [
        (10, WeightCategory.SMALL),
        (25, WeightCategory.SMALL),
        (Decimal("25.5"), WeightCategory.MEDIUM),
        (50, WeightCategory.MEDIUM),
        (80, WeightCategory.LARGE),
        (81, WeightCategory.GIANT),
    ],
)
def test_weight_categories(weight, expected):
    assert get_weight_category(weight) == expected


def test_empty_input():
    dataset = normalize()
    assert dataset.transactions == ()
    assert dataset.warnings == ()


def test_versions_increase_without_explicit_version():
    first = normalize()
    second = normalize()
    assert second.version > first.version
    assert normalize(version=42).version == 42


class TestNormalizationService:
    """Dataset versioning by content fingerprint."""

    def test_unchanged_input_reuses_dataset(self, raw_collections):
        service = NormalizationService()
        first = service.load(raw_collections)
        second = service.load(copy.deepcopy(raw_collections))
        assert second is first
        assert first.version == 1

    def test_changed_input_bumps_version(self, raw_collections):
        service = NormalizationService()
        first = service.load(raw_collections)
        changed = copy.deepcopy(raw_collections)
        changed["messages"].append({"id": "m4", "clientId": "c3", "sentAt": "2024-01-20T10:00:00"})
        second = service.load(changed)
        assert second.version == first.version + 1
        assert len(second.messages) == 4

    def test_external_revision_ahead_wins(self, raw_collections):
        service = NormalizationService()
        assert service.load(raw_collections, revision=7).version == 7

    def test_fingerprint_ignores_key_order(self):
        a = {"clients": [{"id": "c1", "name": "Dana"}]}
        b = {"clients": [{"name": "Dana", "id": "c1"}]}
        assert fingerprint(a) == fingerprint(b)
        assert fingerprint(a) != fingerprint({"clients": [{"id": "c1", "name": "Evan"}]})
