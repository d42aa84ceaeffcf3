from __future__ import annotations

from datetime import date

import pytest

from settlement.billing.payout import calculate_contractor_payout, closing_period, month_bounds
from settlement.core.enums import BusinessType
from settlement.core.exceptions import ValidationError


def test_individual_payout_withholds_and_charges_transfer_fee():
    payout = calculate_contractor_payout(BusinessType.INDIVIDUAL, 1_000_000)
    assert payout.withholding_tax == 102_100
    assert payout.transfer_fee == 550
    assert payout.net_amount == 1_000_000 - 102_100 - 550


def test_corporation_payout_is_not_withheld():
    payout = calculate_contractor_payout(BusinessType.CORPORATION, 2_000_000)
    assert payout.withholding_tax == 0
    assert payout.transfer_fee == 0
    assert payout.net_amount == 2_000_000


def test_small_individual_payout_never_goes_negative():
    payout = calculate_contractor_payout(BusinessType.INDIVIDUAL, 300, transfer_fee=550)
    assert payout.net_amount == 0


def test_closing_period_runs_21st_to_20th():
    period = closing_period(2026, 3)
    assert period.start == date(2026, 2, 21)
    assert period.end == date(2026, 3, 20)
    assert period.scheduled_pay_date == date(2026, 3, 31)


def test_closing_period_wraps_year():
    period = closing_period(2026, 1)
    assert period.start == date(2025, 12, 21)
    assert period.scheduled_pay_date == date(2026, 1, 31)


def test_closing_period_leap_february():
    assert closing_period(2028, 2).scheduled_pay_date == date(2028, 2, 29)


def test_month_bounds_december():
    assert month_bounds(2026, 12) == (date(2026, 12, 1), date(2027, 1, 1))


@pytest.mark.parametrize("month", [0, 13])
def test_invalid_month_is_rejected(month):
    with pytest.raises(ValidationError):
        closing_period(2026, month)
    with pytest.raises(ValidationError):
        month_bounds(2026, month)
