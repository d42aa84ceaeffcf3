"""Japanese withholding tax for payments to individual contractors.

Two brackets: 10.21% up to 1,000,000 yen, and 20.42% on the portion above
it plus a fixed 102,100 yen. Results are floored to whole yen. Arithmetic is
done in ``Decimal`` so that values like ``920000 * 0.1021`` floor exactly.
"""

from __future__ import annotations

import math
from decimal import Decimal, ROUND_FLOOR

from settlement.core.exceptions import InvalidAmountError

WITHHOLDING_THRESHOLD = 1_000_000
LOWER_RATE = Decimal("0.1021")
UPPER_RATE = Decimal("0.2042")
UPPER_BASE_TAX = Decimal("102100")


def ensure_amount(value: int | float | Decimal, field: str = "amount") -> int:
    """Validate a yen amount and return it as ``int``.

    Rejects booleans, negatives, NaN/inf and fractional yen.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidAmountError(f"{field} must be a number, got {value!r}.")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidAmountError(f"{field} must be finite.")
    if isinstance(value, Decimal) and not value.is_finite():
        raise InvalidAmountError(f"{field} must be finite.")
    if value < 0:
        raise InvalidAmountError(f"{field} must be >= 0.")
    if value != int(value):
        raise InvalidAmountError(f"{field} must be a whole number of yen.")
    return int(value)


def calculate_withholding(amount: int) -> int:
    """Return the withholding tax on ``amount`` (the pre-withholding subtotal)."""
    subtotal = ensure_amount(amount)
    if subtotal <= WITHHOLDING_THRESHOLD:
        tax = Decimal(subtotal) * LOWER_RATE
    else:
        tax = Decimal(subtotal - WITHHOLDING_THRESHOLD) * UPPER_RATE + UPPER_BASE_TAX
    return int(tax.to_integral_value(rounding=ROUND_FLOOR))
