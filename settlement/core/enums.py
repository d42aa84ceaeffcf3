"""Enums for the settlement service.

Values are the lowercase strings stored in the database and returned by the API.
"""

from enum import Enum


class InvoiceStatus(Enum):
    """Status of invoices. Transitions only move forward."""

    DRAFT = "draft"
    ISSUED = "issued"
    PAID = "paid"


class InvoiceDirection(Enum):
    """Which way the settlement flows relative to the platform operator."""

    CONTRACTOR_TO_OPERATOR = "to_operator"
    OPERATOR_TO_CLIENT = "from_operator"


class InvoiceType(Enum):
    """Invoice type requested at creation time."""

    COMPLETION = "completion"
    CLIENT = "client"


class SupportAppliedTo(Enum):
    """Party charged the platform support fee on a given invoice."""

    CONTRACTOR = "contractor"
    CLIENT = "client"
    NONE = "none"


class BusinessType(Enum):
    """Contractor business type; corporations are exempt from withholding."""

    INDIVIDUAL = "individual"
    CORPORATION = "corporation"


class MembershipRole(Enum):
    ORG_ADMIN = "OrgAdmin"
    CONTRACTOR = "Contractor"
    ADMIN = "Admin"


class PayoutStatus(Enum):
    SCHEDULED = "scheduled"
    PAID = "paid"


def direction_for_type(invoice_type: str | InvoiceType) -> InvoiceDirection:
    """Map a creation type onto its settlement direction."""
    value = invoice_type.value if isinstance(invoice_type, InvoiceType) else str(invoice_type)
    if value == InvoiceType.COMPLETION.value:
        return InvoiceDirection.CONTRACTOR_TO_OPERATOR
    return InvoiceDirection.OPERATOR_TO_CLIENT
