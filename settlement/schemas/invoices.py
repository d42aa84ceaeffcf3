"""Invoice request/response schemas for API contracts."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class InvoiceCreateRequest(BaseModel):
    contract_id: int = Field(ge=1)
    type: Literal["completion", "client"] = "completion"


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: str
    contract_id: int
    project_id: int
    org_id: int
    contractor_id: int
    direction: str
    base_amount: int
    system_fee: int
    fee_amount: int
    total_amount: int
    withholding_amount: int
    final_amount: int
    support_fee_percent: float
    support_applied_to: str
    memo: str | None = None
    status: str
    issue_date: date | None = None
    due_date: date | None = None
    paid_at: datetime | None = None
    created_at: datetime | None = None


class InvoiceCreateResponse(BaseModel):
    invoice: InvoiceResponse
    already_exists: bool


class InvoiceListResponse(BaseModel):
    items: list[InvoiceResponse]


class InvoiceVerificationResponse(BaseModel):
    invoice_id: int
    valid: bool
    errors: list[str]
