"""Billing calculation and summary schemas."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class QuoteRequest(BaseModel):
    contract_amount: int = Field(ge=0)
    type: Literal["completion", "client"] = "completion"
    contractor_support_enabled: bool = False
    client_support_enabled: bool = False
    support_fee_percent: float | None = Field(default=None, ge=0, le=100)


class QuoteResponse(BaseModel):
    base_amount: int
    system_fee: int
    fee_amount: int
    total_amount: int
    withholding: int
    final_amount: int
    memo: str | None = None
    applied_to: str
    support_fee: int
    support_fee_percent: float


class PreviewContract(BaseModel):
    bid_amount: int = Field(ge=0)
    support_enabled: bool = False


class PreviewRequest(BaseModel):
    contracts: list[PreviewContract] = Field(min_length=1, max_length=500)
    support_fee_percent: float | None = Field(default=None, ge=0, le=100)


class PreviewResponse(BaseModel):
    total_contract_amount: int
    total_support_fee: int
    total_subtotal: int
    total_withholding: int
    total_final_amount: int
    contract_count: int


class PayoutResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    contractor_id: int
    period_start: date
    period_end: date
    scheduled_pay_date: date
    gross_amount: int
    tax_withholding: int
    transfer_fee: int
    net_amount: int
    status: str


class ClosingPeriodResponse(BaseModel):
    start: date
    end: date
    pay_date: date


class CloseContractorsResponse(BaseModel):
    period: ClosingPeriodResponse
    created: int
    payouts: list[PayoutResponse]


class MonthlyInvoiceRow(BaseModel):
    id: int
    invoice_number: str
    issue_date: date | None = None
    project_id: int
    org_id: int
    base_amount: int
    fee_amount: int
    subtotal: int
    withholding: int
    final_amount: int
    status: str


class ContractorMonthlySummary(BaseModel):
    contractor_id: int
    contractor_name: str | None = None
    contractor_email: str | None = None
    invoice_count: int
    total_base_amount: int
    total_fee_amount: int
    total_subtotal: int
    total_withholding: int
    total_final_amount: int
    invoices: list[MonthlyInvoiceRow]


class MonthlySummaryResponse(BaseModel):
    year: int
    month: int
    summaries: list[ContractorMonthlySummary]
    total_contractors: int
    total_invoices: int
    grand_total: int


class BillingPeriodResponse(BaseModel):
    year: int
    month: int
    start_date: date
    end_date: date
    label: str


class OrgProjectCharge(BaseModel):
    project_id: int
    project_title: str
    contract_id: int
    contract_amount: int
    completion_date: date
    support_enabled: bool
    support_fee: int
    system_fee: int


class OrgMonthlySummary(BaseModel):
    org_id: int
    org_name: str
    org_address: str | None = None
    org_email: str | None = None
    projects: list[OrgProjectCharge]
    total_contract_amount: int
    total_support_fee: int
    total_system_fee: int
    total_billing_amount: int


class OrgSummaryResponse(BaseModel):
    billing_period: BillingPeriodResponse
    support_fee_percent: float
    total_organizations: int
    total_projects: int
    grand_total_amount: int
    grand_total_support_fee: int
    grand_total_system_fee: int
    organizations: list[OrgMonthlySummary]


class OrgInvoicePeriodRequest(BaseModel):
    year: int = Field(ge=2000, le=2100)
    month: int = Field(ge=1, le=12)


class CreatedOrgInvoice(BaseModel):
    org_id: int
    org_name: str
    invoice_id: int
    invoice_number: str
    total_amount: int
    project_count: int


class OrgInvoiceError(BaseModel):
    org_id: int
    org_name: str
    error: str
    invoice_id: int | None = None


class GenerateOrgInvoicesResponse(BaseModel):
    billing_period: str
    total_organizations: int
    created_invoices: list[CreatedOrgInvoice]
    errors: list[OrgInvoiceError]


class OrgStatementRequest(OrgInvoicePeriodRequest):
    org_id: int = Field(gt=0)


class MonthlyStatementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    org_id: int
    period_start: date
    period_end: date
    due_date: date
    contractors_total: int
    operator_fee: int
    total_amount: int
    status: str


class OrgStatementResponse(BaseModel):
    created: bool
    statement: MonthlyStatementResponse
