"""Invoice amount composition.

Combines the contract amount, the resolved support fee and withholding tax
into the amounts recorded on an invoice. Everything here is pure; persisting
the result is up to ``InvoiceService``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any

from settlement.billing.support_fee import (
    DEFAULT_SUPPORT_FEE_PERCENT,
    calculate_support_fee,
    resolve_support_fee,
)
from settlement.billing.withholding import calculate_withholding, ensure_amount
from settlement.core.enums import InvoiceDirection, SupportAppliedTo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvoiceAmounts:
    base_amount: int
    system_fee: int
    total_amount: int
    withholding: int
    final_amount: int
    memo: str | None
    applied_to: SupportAppliedTo
    support_fee: int
    support_fee_percent: float

    @property
    def fee_amount(self) -> int:
        return self.system_fee

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["applied_to"] = self.applied_to.value
        payload["fee_amount"] = self.system_fee
        return payload


@dataclass(frozen=True)
class BatchTotals:
    total_contract_amount: int
    total_support_fee: int
    total_subtotal: int
    total_withholding: int
    total_final_amount: int
    contract_count: int


def format_percent(percent: int | float | Decimal) -> str:
    """Render 8.0 as "8" and 7.5 as "7.5"."""
    value = Decimal(str(percent))
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def build_memo(applied_to: SupportAppliedTo, percent: int | float | Decimal) -> str | None:
    if applied_to is SupportAppliedTo.CONTRACTOR:
        return f"contractor support deduction {format_percent(percent)}%"
    if applied_to is SupportAppliedTo.CLIENT:
        return f"client support fee {format_percent(percent)}%"
    return None


def compose_invoice(
    contract_amount: int,
    direction: InvoiceDirection,
    contractor_support_enabled: bool = False,
    client_support_enabled: bool = False,
    support_fee_percent: int | float | Decimal | None = DEFAULT_SUPPORT_FEE_PERCENT,
) -> InvoiceAmounts:
    """Compose base, fee, total, withholding and final amounts for one invoice.

    ``final_amount`` is not clamped: a negative value is returned as-is and
    logged so the caller can surface it.
    """
    percent = DEFAULT_SUPPORT_FEE_PERCENT if support_fee_percent is None else support_fee_percent
    resolution = resolve_support_fee(
        direction=direction,
        contractor_support_enabled=contractor_support_enabled,
        client_support_enabled=client_support_enabled,
        contract_amount=contract_amount,
        support_fee_percent=percent,
    )
    total_amount = resolution.base_amount + resolution.system_fee
    withholding = calculate_withholding(total_amount)
    final_amount = total_amount - withholding

    if final_amount < 0:
        logger.warning(
            "invoice.final_amount.negative",
            extra={
                "event": "invoice.final_amount.negative",
                "total_amount": total_amount,
                "withholding": withholding,
                "final_amount": final_amount,
            },
        )

    return InvoiceAmounts(
        base_amount=resolution.base_amount,
        system_fee=resolution.system_fee,
        total_amount=total_amount,
        withholding=withholding,
        final_amount=final_amount,
        memo=build_memo(resolution.applied_to, percent),
        applied_to=resolution.applied_to,
        support_fee=resolution.support_fee,
        support_fee_percent=float(percent),
    )


def _field(item: Mapping[str, Any] | Any, name: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def compose_batch(
    contracts: Iterable[Mapping[str, Any] | Any],
    support_fee_percent: int | float | Decimal | None = DEFAULT_SUPPORT_FEE_PERCENT,
) -> BatchTotals:
    """Total several contractor contracts and withhold once on the summed subtotal.

    Each item provides ``bid_amount`` and ``support_enabled`` (contractor side),
    either as a mapping or as attributes.
    """
    total_contract = 0
    total_fee = 0
    total_subtotal = 0
    count = 0
    for contract in contracts:
        amount = ensure_amount(_field(contract, "bid_amount", 0) or 0, field="bid_amount")
        fee = calculate_support_fee(amount, support_fee_percent) if _field(contract, "support_enabled", False) else 0
        total_contract += amount
        total_fee += fee
        total_subtotal += amount - fee
        count += 1

    # A batch where fees exceed contract amounts cannot be taxed on a negative base.
    withholding = calculate_withholding(max(0, total_subtotal))
    return BatchTotals(
        total_contract_amount=total_contract,
        total_support_fee=total_fee,
        total_subtotal=total_subtotal,
        total_withholding=withholding,
        total_final_amount=total_subtotal - withholding,
        contract_count=count,
    )


def validate_invoice_amounts(
    recorded: Mapping[str, int],
    contract_amount: int,
    direction: InvoiceDirection,
    contractor_support_enabled: bool,
    client_support_enabled: bool,
    support_fee_percent: int | float | Decimal | None,
) -> list[str]:
    """Recompute the amounts and describe every recorded field that disagrees.

    ``recorded`` carries ``base_amount``, ``system_fee``, ``total_amount``,
    ``withholding`` and ``final_amount``. An empty list means consistent.
    """
    errors: list[str] = []
    expected = compose_invoice(
        contract_amount=contract_amount,
        direction=direction,
        contractor_support_enabled=contractor_support_enabled,
        client_support_enabled=client_support_enabled,
        support_fee_percent=support_fee_percent,
    )

    for name in ("base_amount", "system_fee", "total_amount", "withholding", "final_amount"):
        actual = recorded.get(name)
        wanted = getattr(expected, name)
        if actual != wanted:
            errors.append(f"{name} is incorrect: expected {wanted}, got {actual}")

    base = recorded.get("base_amount") or 0
    fee = recorded.get("system_fee") or 0
    total = recorded.get("total_amount") or 0
    withholding = recorded.get("withholding") or 0
    if fee < 0:
        errors.append("system_fee must not be negative")
    if total != base + fee:
        errors.append("total_amount must equal base_amount + system_fee")
    if withholding < 0 or (total > 0 and withholding >= total):
        errors.append("withholding must be >= 0 and below total_amount")
    if recorded.get("final_amount") != total - withholding:
        errors.append("final_amount must equal total_amount - withholding")
    return errors
