"""Client-organization monthly billing.

Two charges are billed to organizations on the 20th-of-month cycle. The
monthly invoice lists each completed project with its client-side support
fee and a 30% system fee. The statement bills the period's contractor
invoices back to the organization with a 30% operator fee on top.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from settlement.billing.payout import ClosingPeriod
from settlement.billing.support_fee import calculate_support_fee
from settlement.billing.withholding import ensure_amount
from settlement.core.exceptions import InvalidAmountError, ValidationError

SYSTEM_FEE_PERCENT = 30
OPERATOR_FEE_RATE = Decimal("0.3")
MONTHLY_INVOICE_DUE_DAY = 10
STATEMENT_DUE_DAY = 5


@dataclass(frozen=True)
class OrgProjectCharge:
    contract_amount: int
    support_fee: int
    system_fee: int

    @property
    def total_amount(self) -> int:
        return self.contract_amount + self.support_fee + self.system_fee


@dataclass(frozen=True)
class OrgInvoiceAmounts:
    contractors_total: int
    operator_fee: int
    total_amount: int


def _round_half_up(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


def org_project_charge(
    contract_amount: int,
    client_support_enabled: bool,
    support_fee_percent: int | float | Decimal | None,
) -> OrgProjectCharge:
    """Charge for one completed project. Contractor-side support is never billed here."""
    amount = ensure_amount(contract_amount, field="contract_amount")
    support_fee = calculate_support_fee(amount, support_fee_percent) if client_support_enabled else 0
    return OrgProjectCharge(
        contract_amount=amount,
        support_fee=support_fee,
        system_fee=calculate_support_fee(amount, SYSTEM_FEE_PERCENT),
    )


def calculate_org_invoice(contractors_total: int | float | Decimal) -> OrgInvoiceAmounts:
    """Operator fee on the period's contractor invoices.

    The total is rounded to whole yen and clamped at zero before the fee
    is applied.
    """
    if isinstance(contractors_total, bool) or not isinstance(contractors_total, (int, float, Decimal)):
        raise InvalidAmountError(f"contractors_total must be a number, got {contractors_total!r}.")
    if isinstance(contractors_total, float) and not math.isfinite(contractors_total):
        raise InvalidAmountError("contractors_total must be finite.")
    total = Decimal(str(contractors_total))
    if not total.is_finite():
        raise InvalidAmountError("contractors_total must be finite.")

    base = max(0, _round_half_up(total))
    fee = _round_half_up(Decimal(base) * OPERATOR_FEE_RATE)
    return OrgInvoiceAmounts(contractors_total=base, operator_fee=fee, total_amount=base + fee)


def _next_month_day(year: int, month: int, day: int) -> date:
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12.")
    return date(year + 1, 1, day) if month == 12 else date(year, month + 1, day)


def monthly_invoice_due_date(year: int, month: int) -> date:
    return _next_month_day(year, month, MONTHLY_INVOICE_DUE_DAY)


def statement_due_date(year: int, month: int) -> date:
    return _next_month_day(year, month, STATEMENT_DUE_DAY)


def billing_period_label(year: int, month: int, period: ClosingPeriod) -> str:
    """E.g. ``2026-10 (closing 09/21 to 10/20)``."""
    return f"{year}-{month:02d} (closing {period.start:%m/%d} to {period.end:%m/%d})"
