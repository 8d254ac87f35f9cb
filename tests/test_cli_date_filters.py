"""Tests for CLI date range resolution."""

from datetime import date

import click
import pytest

from cashrecon.cli.date_filters import (
    PERIOD_FLAGS,
    period_flags_from,
    period_options,
    resolve_cli_date_range,
)
from cashrecon.utils.date_parser import get_date_range


def _ctx() -> click.Context:
    return click.Context(click.Command("report"))


def _resolve(**kwargs):
    kwargs.setdefault("start_date", None)
    kwargs.setdefault("end_date", None)
    kwargs.setdefault("period_flags", {})
    return resolve_cli_date_range(_ctx(), **kwargs)


def test_conflicting_periods_exit(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        _resolve(period_flags={"this-quarter": True, "last-year": True})

    assert excinfo.value.exit_code == 1
    assert "Only one period option" in capsys.readouterr().err


def test_period_with_explicit_end_date_exits(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        _resolve(end_date="2024-10-31", period_flags={"last-month": True})

    assert excinfo.value.exit_code == 1
    assert "cannot be combined" in capsys.readouterr().err


def test_period_flag_selects_range():
    assert _resolve(period_flags={"last-quarter": True, "this-year": False}) == get_date_range(
        "last-quarter"
    )


def test_explicit_dates_with_open_end():
    assert _resolve(start_date="2024-10-01") == (date(2024, 10, 1), None)


def test_default_range_only_when_nothing_given():
    fallback = (date(2024, 1, 1), date(2024, 3, 31))

    assert _resolve(default_range=fallback) == fallback
    assert _resolve(start_date="2024-02-01", default_range=fallback) == (date(2024, 2, 1), None)


def test_invalid_end_date(capsys):
    with pytest.raises(click.exceptions.Exit):
        _resolve(end_date="someday soon")
    assert "Invalid end date" in capsys.readouterr().err


def test_period_flags_from_pops_every_flag():
    kwargs = {"this_month": True, "last_year": False, "account": "Main"}

    flags = period_flags_from(kwargs)

    assert set(flags) == set(PERIOD_FLAGS)
    assert flags["this-month"] is True
    assert flags["last-quarter"] is False
    assert kwargs == {"account": "Main"}


def test_period_options_registers_flags():
    @click.command()
    @period_options
    def cmd(**kwargs):
        pass

    names = {param.name for param in cmd.params}
    assert {"start_date", "end_date", "this_quarter", "last_year"} <= names
