"""Unit tests for money and date helpers"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from nexus_gateway.utils.date_utils import (
    add_working_days,
    ensure_utc,
    start_of_day_utc,
    start_of_month_utc,
    to_london,
)
from nexus_gateway.utils.money import format_gbp, from_pence, to_pence


@pytest.mark.parametrize(
    "amount,pence",
    [(Decimal("10.50"), 1050), ("0.005", 1), (12, 1200), (0.1, 10)],
)
def test_to_pence(amount, pence: int):
    assert to_pence(amount) == pence


def test_from_pence():
    assert from_pence(12345) == Decimal("123.45")


@pytest.mark.parametrize(
    "pence,text",
    [(100_000_000, "£1,000,000"), (2_500_050, "£25,000.50"), (5, "£0.05")],
)
def test_format_gbp(pence: int, text: str):
    assert format_gbp(pence) == text


def test_ensure_utc_on_naive_value():
    naive = datetime(2026, 1, 14, 12, 0)
    assert ensure_utc(naive) == datetime(2026, 1, 14, 12, 0, tzinfo=timezone.utc)


def test_to_london_in_summer():
    assert to_london(datetime(2026, 7, 1, 12, 0, tzinfo=timezone.utc)).hour == 13


def test_add_working_days_from_friday():
    assert add_working_days(date(2026, 1, 16), 1) == date(2026, 1, 19)


def test_period_starts():
    now = datetime(2026, 1, 14, 15, 30, tzinfo=timezone.utc)
    assert start_of_day_utc(now) == datetime(2026, 1, 14, tzinfo=timezone.utc)
    assert start_of_month_utc(now) == datetime(2026, 1, 1, tzinfo=timezone.utc)
