"""Platform support-fee resolution.

The fee is charged once, to whichever side opted into support, and only on
the invoice direction matching that side's relationship to the operator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from settlement.billing.withholding import ensure_amount
from settlement.core.enums import InvoiceDirection, SupportAppliedTo
from settlement.core.exceptions import ValidationError

DEFAULT_SUPPORT_FEE_PERCENT = 8


@dataclass(frozen=True)
class SupportFeeResolution:
    base_amount: int
    system_fee: int
    support_fee: int
    applied_to: SupportAppliedTo


def _to_percent(value: int | float | Decimal | None) -> Decimal:
    if value is None:
        return Decimal(DEFAULT_SUPPORT_FEE_PERCENT)
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(f"support_fee_percent must be a number, got {value!r}.")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError("support_fee_percent must be finite.")
    percent = Decimal(str(value))
    if not percent.is_finite() or percent < 0 or percent > 100:
        raise ValidationError("support_fee_percent must be between 0 and 100.")
    return percent


def calculate_support_fee(contract_amount: int, support_fee_percent: int | float | Decimal | None) -> int:
    """Percent of the contract amount, rounded half up to whole yen."""
    amount = ensure_amount(contract_amount, field="contract_amount")
    fee = Decimal(amount) * _to_percent(support_fee_percent) / Decimal(100)
    return int(fee.to_integral_value(rounding=ROUND_HALF_UP))


def resolve_support_fee(
    direction: InvoiceDirection,
    contractor_support_enabled: bool,
    client_support_enabled: bool,
    contract_amount: int,
    support_fee_percent: int | float | Decimal | None = DEFAULT_SUPPORT_FEE_PERCENT,
) -> SupportFeeResolution:
    amount = ensure_amount(contract_amount, field="contract_amount")
    support_fee = calculate_support_fee(amount, support_fee_percent)

    if direction is InvoiceDirection.CONTRACTOR_TO_OPERATOR:
        if contractor_support_enabled:
            return SupportFeeResolution(
                base_amount=max(0, amount - support_fee),
                system_fee=0,
                support_fee=support_fee,
                applied_to=SupportAppliedTo.CONTRACTOR,
            )
    elif direction is InvoiceDirection.OPERATOR_TO_CLIENT:
        if client_support_enabled:
            return SupportFeeResolution(
                base_amount=amount,
                system_fee=support_fee,
                support_fee=support_fee,
                applied_to=SupportAppliedTo.CLIENT,
            )
    else:
        raise ValidationError(f"Unsupported invoice direction: {direction!r}")

    return SupportFeeResolution(
        base_amount=amount,
        system_fee=0,
        support_fee=0,
        applied_to=SupportAppliedTo.NONE,
    )
