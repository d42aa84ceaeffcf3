"""Identifier generation helpers."""

from __future__ import annotations

import uuid
from datetime import date

from settlement.core.enums import InvoiceDirection

INVOICE_NUMBER_PREFIXES = {
    InvoiceDirection.CONTRACTOR_TO_OPERATOR: "CINV",
    InvoiceDirection.OPERATOR_TO_CLIENT: "INV-OP",
}


def new_invoice_number(direction: InvoiceDirection, on: date | None = None) -> str:
    """Create a display number such as ``CINV-2026-3F9A1C07``."""
    year = (on or date.today()).year
    return f"{INVOICE_NUMBER_PREFIXES[direction]}-{year}-{uuid.uuid4().hex[:8].upper()}"


def org_invoice_number(org_id: int, year: int, month: int) -> str:
    """Monthly organization invoice number, e.g. ``INV-202610-00000012``."""
    return f"INV-{year}{month:02d}-{org_id:08d}"
