"""Tests for filter defaults and resolution."""

from datetime import date

import pytest

from groomreports.domain.entities import (
    AppointmentStatus,
    DatePreset,
    DateWindow,
    FilterState,
    GroupBy,
    PaymentMethod,
    ReportId,
    WeightCategory,
)
from groomreports.domain.errors import UnknownReportError, ValidationError
from groomreports.domain.filters import (
    apply_report_defaults,
    filter_state_from_dict,
    filter_state_to_dict,
    preset_window,
    prior_window,
    resolve_filters,
    resolve_report_filters,
)

# Friday
TODAY = date(2024, 3, 15)


class TestPresetWindows:
    """Windows covered by each preset, anchored on a fixed day."""

    @pytest.mark.parametrize(
        "preset,start,end",
        [
            (DatePreset.TODAY, date(2024, 3, 15), date(2024, 3, 15)),
            (DatePreset.YESTERDAY, date(2024, 3, 14), date(2024, 3, 14)),
            (DatePreset.LAST_7, date(2024, 3, 9), date(2024, 3, 15)),
            (DatePreset.THIS_WEEK, date(2024, 3, 11), date(2024, 3, 15)),
            (DatePreset.LAST_30, date(2024, 2, 15), date(2024, 3, 15)),
            (DatePreset.LAST_90, date(2023, 12, 17), date(2024, 3, 15)),
            (DatePreset.MONTH_TO_DATE, date(2024, 3, 1), date(2024, 3, 15)),
            (DatePreset.LAST_MONTH, date(2024, 2, 1), date(2024, 2, 29)),
            (DatePreset.QUARTER, date(2024, 1, 1), date(2024, 3, 15)),
            (DatePreset.YEAR_TO_DATE, date(2024, 1, 1), date(2024, 3, 15)),
        ],
    )
    def test_preset(self, preset, start, end):
        assert preset_window(preset, TODAY) == DateWindow(start, end)

    def test_window_lengths(self):
        assert preset_window(DatePreset.LAST_7, TODAY).days == 7
        assert preset_window(DatePreset.LAST_30, TODAY).days == 30
        assert preset_window(DatePreset.LAST_90, TODAY).days == 90

    def test_last_month_in_january(self):
        assert preset_window(DatePreset.LAST_MONTH, date(2024, 1, 10)) == DateWindow(
            date(2023, 12, 1), date(2023, 12, 31)
        )

    def test_custom_has_no_preset_window(self):
        with pytest.raises(ValidationError):
            preset_window(DatePreset.CUSTOM, TODAY)


class TestPriorWindow:
    """The prior window has equal length and ends the day before."""

    def test_month(self):
        current = DateWindow(date(2024, 1, 1), date(2024, 1, 31))
        assert prior_window(current) == DateWindow(date(2023, 12, 1), date(2023, 12, 31))

    def test_single_day(self):
        current = DateWindow(date(2024, 3, 1), date(2024, 3, 1))
        assert prior_window(current) == DateWindow(date(2024, 2, 29), date(2024, 2, 29))

    def test_lengths_match(self):
        current = DateWindow(date(2024, 2, 10), date(2024, 3, 15))
        prior = prior_window(current)
        assert prior.days == current.days
        assert (current.start - prior.end).days == 1


class TestResolveFilters:
    """Test cases for resolve_filters."""

    def test_default_preset_is_last_30(self):
        resolved = resolve_filters(FilterState(), today=TODAY)
        assert resolved.date_preset == DatePreset.LAST_30
        assert resolved.current == DateWindow(date(2024, 2, 15), date(2024, 3, 15))
        assert not resolved.compare
        assert resolved.prior is None

    def test_compare_derives_prior(self):
        resolved = resolve_filters(FilterState(date_preset=DatePreset.LAST_7, compare=True), today=TODAY)
        assert resolved.prior == DateWindow(date(2024, 3, 2), date(2024, 3, 8))

    def test_custom_range(self):
        state = FilterState(
            date_preset=DatePreset.CUSTOM, start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)
        )
        resolved = resolve_filters(state)
        assert resolved.current == DateWindow(date(2024, 1, 1), date(2024, 1, 31))

    def test_custom_single_day(self):
        state = FilterState(date_preset=DatePreset.CUSTOM, start_date=date(2024, 1, 5), end_date=date(2024, 1, 5))
        assert resolve_filters(state).current.days == 1

    def test_custom_inverted_range(self):
        state = FilterState(
            date_preset=DatePreset.CUSTOM, start_date=date(2024, 2, 1), end_date=date(2024, 1, 1)
        )
        with pytest.raises(ValidationError, match="must be on or before"):
            resolve_filters(state)

    @pytest.mark.parametrize(
        "start,end",
        [(None, date(2024, 1, 31)), (date(2024, 1, 1), None), (None, None)],
    )
    def test_custom_missing_bound(self, start, end):
        state = FilterState(date_preset=DatePreset.CUSTOM, start_date=start, end_date=end)
        with pytest.raises(ValidationError, match="requires both"):
            resolve_filters(state)

    def test_sub_filters_are_canonical(self):
        """Order and duplicates do not change the resolved filters."""
        a = resolve_filters(
            FilterState(groomer_ids=("g2", "g1", "g2"), payment_methods=(PaymentMethod.CASH, PaymentMethod.CARD)),
            today=TODAY,
        )
        b = resolve_filters(
            FilterState(groomer_ids=("g1", "g2"), payment_methods=(PaymentMethod.CARD, PaymentMethod.CASH)),
            today=TODAY,
        )
        assert a == b
        assert hash(a) == hash(b)
        assert a.groomer_ids == ("g1", "g2")

    def test_scope_carries_sub_filters(self):
        resolved = resolve_filters(FilterState(client_ids=("c1",)), today=TODAY)
        scope = resolved.scope()
        assert scope.window == resolved.current
        assert scope.client_ids == ("c1",)
        assert scope.group_by is None


class TestApplyReportDefaults:
    """Test cases for apply_report_defaults."""

    def test_fills_unset_fields(self):
        state = apply_report_defaults(ReportId.RETENTION, FilterState())
        assert state.date_preset == DatePreset.LAST_90
        assert state.compare is True

    def test_user_selection_wins(self):
        state = apply_report_defaults(ReportId.RETENTION, FilterState(date_preset=DatePreset.LAST_7, compare=False))
        assert state.date_preset == DatePreset.LAST_7
        assert state.compare is False

    def test_dates_without_preset_become_custom(self):
        state = apply_report_defaults(
            ReportId.RETENTION, FilterState(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))
        )
        assert state.date_preset == DatePreset.CUSTOM

    @pytest.mark.parametrize("report_id", list(ReportId))
    def test_idempotent(self, report_id):
        for state in (
            FilterState(),
            FilterState(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)),
            FilterState(compare=False, group_by=GroupBy.WEEK),
        ):
            once = apply_report_defaults(report_id, state)
            assert apply_report_defaults(report_id, once) == once

    def test_unknown_report(self):
        with pytest.raises(UnknownReportError):
            apply_report_defaults("profit-and-loss", FilterState())

    def test_resolve_report_filters(self):
        resolved = resolve_report_filters(ReportId.PAYROLL, FilterState(), today=TODAY)
        assert resolved.date_preset == DatePreset.MONTH_TO_DATE
        assert resolved.current == DateWindow(date(2024, 3, 1), TODAY)


class TestFilterStateDict:
    """Serialization used for saved views."""

    def test_round_trip(self):
        state = FilterState(
            date_preset=DatePreset.CUSTOM,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 31),
            compare=True,
            group_by=GroupBy.GROOMER,
            visible_columns=("net-sales",),
            groomer_ids=("g1",),
            payment_methods=(PaymentMethod.CARD,),
            weight_categories=(WeightCategory.SMALL,),
            appointment_statuses=(AppointmentStatus.NO_SHOW,),
        )
        data = filter_state_to_dict(state)
        assert data["start_date"] == "2024-01-01"
        assert data["payment_methods"] == ["card"]
        assert "client_ids" not in data
        assert filter_state_from_dict(data) == state

    def test_empty_state(self):
        assert filter_state_to_dict(FilterState()) == {}
        assert filter_state_from_dict({}) == FilterState()

    def test_invalid_values(self):
        with pytest.raises(ValidationError, match="Invalid date preset"):
            filter_state_from_dict({"date_preset": "fortnight"})
        with pytest.raises(ValidationError):
            filter_state_from_dict({"payment_methods": ["bitcoin"]})
        with pytest.raises(ValidationError):
            filter_state_from_dict({"start_date": "not a date"})
