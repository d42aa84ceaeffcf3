"""Contractor payout arithmetic and the 20th-of-month closing calendar."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

from settlement.billing.withholding import calculate_withholding, ensure_amount
from settlement.core.enums import BusinessType
from settlement.core.exceptions import ValidationError

DEFAULT_TRANSFER_FEE_JPY = 550
CLOSING_DAY = 20


@dataclass(frozen=True)
class PayoutAmounts:
    gross_amount: int
    withholding_tax: int
    transfer_fee: int
    net_amount: int


@dataclass(frozen=True)
class ClosingPeriod:
    start: date
    end: date
    scheduled_pay_date: date


def calculate_contractor_payout(
    business_type: BusinessType,
    total_billed: int,
    transfer_fee: int = DEFAULT_TRANSFER_FEE_JPY,
) -> PayoutAmounts:
    gross = ensure_amount(total_billed, field="total_billed")
    if business_type is BusinessType.CORPORATION:
        return PayoutAmounts(gross_amount=gross, withholding_tax=0, transfer_fee=0, net_amount=gross)

    withholding = calculate_withholding(gross)
    return PayoutAmounts(
        gross_amount=gross,
        withholding_tax=withholding,
        transfer_fee=transfer_fee,
        net_amount=max(0, gross - withholding - transfer_fee),
    )


def closing_period(year: int, month: int) -> ClosingPeriod:
    """21st of the previous month through the 20th, paid on the last day of ``month``."""
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12.")
    prev_year, prev_month = (year - 1, 12) if month == 1 else (year, month - 1)
    last_day = calendar.monthrange(year, month)[1]
    return ClosingPeriod(
        start=date(prev_year, prev_month, CLOSING_DAY + 1),
        end=date(year, month, CLOSING_DAY),
        scheduled_pay_date=date(year, month, last_day),
    )


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First day of ``month`` and first day of the following month."""
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12.")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end
