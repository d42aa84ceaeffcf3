"""Billing calculation and monthly closing endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from settlement.api.v1._errors import raise_http
from settlement.billing.composer import compose_batch
from settlement.core.dependencies import get_db_session
from settlement.core.exceptions import SettlementException
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
from settlement.services.billing_summary_service import BillingSummaryService
from settlement.services.invoice_service import quote_invoice
from settlement.services.settings_service import SettingsService

router = APIRouter(prefix="/billing", tags=["billing"])


def _percent_or_current(percent: float | None, db: Session) -> float:
    if percent is not None:
        return percent
    return SettingsService(db=db).get_support_fee_percent()


@router.post("/quote", response_model=QuoteResponse)
def quote(payload: QuoteRequest, db: Session = Depends(get_db_session)) -> QuoteResponse:
    try:
        amounts = quote_invoice(
            contract_amount=payload.contract_amount,
            invoice_type=payload.type,
            contractor_support_enabled=payload.contractor_support_enabled,
            client_support_enabled=payload.client_support_enabled,
            support_fee_percent=_percent_or_current(payload.support_fee_percent, db),
        )
    except SettlementException as exc:
        raise_http(exc)
    return QuoteResponse(**amounts.as_dict())


@router.post("/preview", response_model=PreviewResponse)
def preview(payload: PreviewRequest, db: Session = Depends(get_db_session)) -> PreviewResponse:
    try:
        totals = compose_batch(
            [item.model_dump() for item in payload.contracts],
            support_fee_percent=_percent_or_current(payload.support_fee_percent, db),
        )
    except SettlementException as exc:
        raise_http(exc)
    return PreviewResponse(
        total_contract_amount=totals.total_contract_amount,
        total_support_fee=totals.total_support_fee,
        total_subtotal=totals.total_subtotal,
        total_withholding=totals.total_withholding,
        total_final_amount=totals.total_final_amount,
        contract_count=totals.contract_count,
    )


@router.get("/monthly-summary", response_model=MonthlySummaryResponse)
def monthly_summary(
    year: int = Query(ge=2000, le=2100),
    month: int = Query(ge=1, le=12),
    db: Session = Depends(get_db_session),
) -> MonthlySummaryResponse:
    return MonthlySummaryResponse(**BillingSummaryService(db=db).monthly_contractor_summary(year, month))


@router.post("/close-contractors", response_model=CloseContractorsResponse)
def close_contractors(
    year: int = Query(ge=2000, le=2100),
    month: int = Query(ge=1, le=12),
    db: Session = Depends(get_db_session),
) -> CloseContractorsResponse:
    try:
        result = BillingSummaryService(db=db).close_contractor_payouts(year, month)
    except SettlementException as exc:
        raise_http(exc)
    period = result["period"]
    return CloseContractorsResponse(
        period=ClosingPeriodResponse(start=period.start, end=period.end, pay_date=period.scheduled_pay_date),
        created=result["created"],
        payouts=[PayoutResponse.model_validate(row) for row in result["payouts"]],
    )


@router.get("/org-summary", response_model=OrgSummaryResponse)
def org_summary(
    year: int = Query(ge=2000, le=2100),
    month: int = Query(ge=1, le=12),
    db: Session = Depends(get_db_session),
) -> OrgSummaryResponse:
    try:
        summary = BillingSummaryService(db=db).org_monthly_summary(year, month)
    except SettlementException as exc:
        raise_http(exc)
    return OrgSummaryResponse(**summary)


@router.post("/org-invoices", response_model=GenerateOrgInvoicesResponse, status_code=status.HTTP_201_CREATED)
def generate_org_invoices(
    payload: OrgInvoicePeriodRequest,
    db: Session = Depends(get_db_session),
) -> GenerateOrgInvoicesResponse:
    try:
        result = BillingSummaryService(db=db).generate_org_invoices(payload.year, payload.month)
    except SettlementException as exc:
        raise_http(exc)
    return GenerateOrgInvoicesResponse(**result)


@router.post("/org-statements", response_model=OrgStatementResponse, status_code=status.HTTP_201_CREATED)
def issue_org_statement(
    payload: OrgStatementRequest,
    response: Response,
    db: Session = Depends(get_db_session),
) -> OrgStatementResponse:
    try:
        result = BillingSummaryService(db=db).issue_org_statement(payload.org_id, payload.year, payload.month)
    except SettlementException as exc:
        raise_http(exc)
    if not result["created"]:
        response.status_code = status.HTTP_200_OK
    return OrgStatementResponse(
        created=result["created"],
        statement=MonthlyStatementResponse.model_validate(result["statement"]),
    )
