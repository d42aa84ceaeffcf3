"""Pydantic schema package for API contracts."""

from settlement.schemas.billing import (
    CloseContractorsResponse,
    ClosingPeriodResponse,
    GenerateOrgInvoicesResponse,
    MonthlyStatementResponse,
    MonthlySummaryResponse,
    OrgInvoicePeriodRequest,
    OrgStatementRequest,
    OrgStatementResponse,
    OrgSummaryResponse,
    PayoutResponse,
    PreviewRequest,
    PreviewResponse,
    QuoteRequest,
    QuoteResponse,
)
from settlement.schemas.invoices import (
    InvoiceCreateRequest,
    InvoiceCreateResponse,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceVerificationResponse,
)
from settlement.schemas.settings import SettingsResponse, SettingsUpdateRequest

__all__ = [
    "CloseContractorsResponse",
    "ClosingPeriodResponse",
    "GenerateOrgInvoicesResponse",
    "InvoiceCreateRequest",
    "InvoiceCreateResponse",
    "InvoiceListResponse",
    "InvoiceResponse",
    "InvoiceVerificationResponse",
    "MonthlyStatementResponse",
    "MonthlySummaryResponse",
    "OrgInvoicePeriodRequest",
    "OrgStatementRequest",
    "OrgStatementResponse",
    "OrgSummaryResponse",
    "PayoutResponse",
    "PreviewRequest",
    "PreviewResponse",
    "QuoteRequest",
    "QuoteResponse",
    "SettingsResponse",
    "SettingsUpdateRequest",
]
