"""Tests for CLI filter option helpers."""

from datetime import date

import click
import pytest

from groomreports.cli.date_filters import build_filter_state, resolve_cli_today
from groomreports.domain.entities import (
    AppointmentStatus,
    DatePreset,
    FilterState,
    GroupBy,
    PaymentMethod,
)


def _ctx() -> click.Context:
    return click.Context(click.Command("test"))


def test_build_filter_state_rejects_preset_with_dates(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        build_filter_state(_ctx(), preset="last-7", start_date="2024-01-01")

    assert excinfo.value.exit_code == 1
    err = capsys.readouterr().err
    assert "cannot be combined" in err


def test_build_filter_state_rejects_bad_date(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        build_filter_state(_ctx(), start_date="first of never", end_date="2024-01-31")

    assert excinfo.value.exit_code == 1
    assert "Invalid start date" in capsys.readouterr().err


def test_build_filter_state_dates_imply_custom():
    state = build_filter_state(_ctx(), start_date="2024-01-02", end_date="2024-01-05")

    assert state.date_preset == DatePreset.CUSTOM
    assert state.start_date == date(2024, 1, 2)
    assert state.end_date == date(2024, 1, 5)


def test_build_filter_state_explicit_custom_preset():
    state = build_filter_state(_ctx(), preset="custom", start_date="2024-01-02", end_date="2024-01-05")
    assert state.date_preset == DatePreset.CUSTOM


def test_build_filter_state_leaves_unset_options_unset():
    """Unset options stay None so report defaults can fill them."""
    assert build_filter_state(_ctx()) == FilterState()


def test_build_filter_state_sub_filters():
    state = build_filter_state(
        _ctx(),
        compare=False,
        group_by="groomer",
        columns=("net-sales", "tips"),
        groomers=("g1",),
        payment_methods=("card", "cash"),
        statuses=("no-show",),
    )

    assert state.compare is False
    assert state.group_by == GroupBy.GROOMER
    assert state.visible_columns == ("net-sales", "tips")
    assert state.groomer_ids == ("g1",)
    assert state.payment_methods == (PaymentMethod.CARD, PaymentMethod.CASH)
    assert state.appointment_statuses == (AppointmentStatus.NO_SHOW,)
    assert state.client_ids is None


def test_build_filter_state_layers_over_base():
    """Options given on the command line override a saved view; others are kept."""
    base = FilterState(date_preset=DatePreset.LAST_MONTH, groomer_ids=("g1",), compare=True)

    state = build_filter_state(_ctx(), groomers=("g2",), base=base)

    assert state.date_preset == DatePreset.LAST_MONTH
    assert state.groomer_ids == ("g2",)
    assert state.compare is True


def test_build_filter_state_dates_override_base_preset():
    base = FilterState(date_preset=DatePreset.LAST_MONTH)

    state = build_filter_state(_ctx(), start_date="2024-01-01", end_date="2024-01-31", base=base)

    assert state.date_preset == DatePreset.CUSTOM


def test_resolve_cli_today():
    assert resolve_cli_today(_ctx(), "2024-03-15") == date(2024, 3, 15)
    assert resolve_cli_today(_ctx(), None) is None


def test_resolve_cli_today_rejects_junk(capsys):
    with pytest.raises(click.exceptions.Exit):
        resolve_cli_today(_ctx(), "someday")

    assert "Invalid --today date" in capsys.readouterr().err
