"""Invoice lifecycle endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from settlement.api.v1._errors import raise_http
from settlement.core.dependencies import get_db_session
from settlement.core.exceptions import SettlementException
from settlement.database.models import Organization, Project, User
from settlement.schemas.invoices import (
    InvoiceCreateRequest,
    InvoiceCreateResponse,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceVerificationResponse,
)
from settlement.services.invoice_pdf import build_invoice_document, render_invoice_pdf
from settlement.services.invoice_service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("", response_model=InvoiceCreateResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreateRequest,
    response: Response,
    db: Session = Depends(get_db_session),
) -> InvoiceCreateResponse:
    try:
        result = InvoiceService(db=db).create_invoice(contract_id=payload.contract_id, invoice_type=payload.type)
    except SettlementException as exc:
        raise_http(exc)
    if result.already_exists:
        response.status_code = status.HTTP_200_OK
    return InvoiceCreateResponse(
        invoice=InvoiceResponse.model_validate(result.invoice),
        already_exists=result.already_exists,
    )


@router.get("", response_model=InvoiceListResponse)
def list_invoices(
    org_id: int | None = Query(default=None, ge=1),
    contractor_id: int | None = Query(default=None, ge=1),
    invoice_status: str | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db_session),
) -> InvoiceListResponse:
    rows = InvoiceService(db=db).list_invoices(
        org_id=org_id,
        contractor_id=contractor_id,
        status=invoice_status,
        limit=limit,
        offset=offset,
    )
    return InvoiceListResponse(items=[InvoiceResponse.model_validate(row) for row in rows])


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(invoice_id: int, db: Session = Depends(get_db_session)) -> InvoiceResponse:
    try:
        invoice = InvoiceService(db=db).require_invoice(invoice_id)
    except SettlementException as exc:
        raise_http(exc)
    return InvoiceResponse.model_validate(invoice)


@router.post("/{invoice_id}/issue", response_model=InvoiceResponse)
def issue_invoice(invoice_id: int, db: Session = Depends(get_db_session)) -> InvoiceResponse:
    try:
        invoice = InvoiceService(db=db).issue_invoice(invoice_id)
    except SettlementException as exc:
        raise_http(exc)
    return InvoiceResponse.model_validate(invoice)


@router.post("/{invoice_id}/pay", response_model=InvoiceResponse)
def pay_invoice(invoice_id: int, db: Session = Depends(get_db_session)) -> InvoiceResponse:
    try:
        invoice = InvoiceService(db=db).pay_invoice(invoice_id)
    except SettlementException as exc:
        raise_http(exc)
    return InvoiceResponse.model_validate(invoice)


@router.get("/{invoice_id}/verify", response_model=InvoiceVerificationResponse)
def verify_invoice(invoice_id: int, db: Session = Depends(get_db_session)) -> InvoiceVerificationResponse:
    try:
        errors = InvoiceService(db=db).verify_invoice(invoice_id)
    except SettlementException as exc:
        raise_http(exc)
    return InvoiceVerificationResponse(invoice_id=invoice_id, valid=not errors, errors=errors)


@router.get("/{invoice_id}/pdf")
def invoice_pdf(invoice_id: int, db: Session = Depends(get_db_session)) -> Response:
    try:
        invoice = InvoiceService(db=db).require_invoice(invoice_id)
    except SettlementException as exc:
        raise_http(exc)

    document = build_invoice_document(
        invoice,
        organization=db.query(Organization).filter(Organization.id == invoice.org_id).first(),
        contractor=db.query(User).filter(User.id == invoice.contractor_id).first(),
        project=db.query(Project).filter(Project.id == invoice.project_id).first(),
    )
    return Response(
        content=render_invoice_pdf(document),
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="invoice_{invoice.invoice_number}.pdf"'},
    )
