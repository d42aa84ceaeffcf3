"""Invoice service: creation, issuance and payment of settlement invoices."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy.exc import IntegrityError

from settlement.billing.composer import InvoiceAmounts, compose_invoice, validate_invoice_amounts
from settlement.core.config import get_config
from settlement.core.enums import (
    InvoiceDirection,
    InvoiceStatus,
    InvoiceType,
    SupportAppliedTo,
    direction_for_type,
)
from settlement.core.exceptions import NotFoundError, ValidationError
from settlement.database.models import Contract, Invoice, Project
from settlement.orchestration.state_machine import INVOICE_STATE_MACHINE
from settlement.services.base_service import BaseService
from settlement.services.notification_service import NotificationService
from settlement.services.settings_service import SettingsService
from settlement.utils.ids import new_invoice_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvoiceCreateResult:
    invoice: Invoice
    already_exists: bool


class InvoiceService(BaseService):
    """Service for the invoice lifecycle: draft -> issued -> paid.

    At most one invoice exists per contract. The ``contract_id`` unique
    constraint backs the existence check so concurrent creates cannot both
    insert.
    """

    def _due_date(self, issue_date: date) -> date:
        return issue_date + timedelta(days=get_config().INVOICE_DUE_DAYS)

    def get_invoice(self, invoice_id: int) -> Invoice | None:
        return self.db.query(Invoice).filter(Invoice.id == invoice_id).first()

    def require_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found.")
        return invoice

    def get_by_contract(self, contract_id: int) -> Invoice | None:
        return self.db.query(Invoice).filter(Invoice.contract_id == contract_id).first()

    def list_invoices(
        self,
        org_id: int | None = None,
        contractor_id: int | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Invoice]:
        query = self.db.query(Invoice)
        if org_id is not None:
            query = query.filter(Invoice.org_id == org_id)
        if contractor_id is not None:
            query = query.filter(Invoice.contractor_id == contractor_id)
        if status is not None:
            query = query.filter(Invoice.status == status)
        return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).offset(offset).limit(limit).all()

    def _load_contract(self, contract_id: int) -> tuple[Contract, Project]:
        contract = self.db.query(Contract).filter(Contract.id == contract_id).first()
        if contract is None:
            raise NotFoundError(f"Contract {contract_id} not found.")
        project = self.db.query(Project).filter(Project.id == contract.project_id).first()
        if project is None:
            raise NotFoundError(f"Project {contract.project_id} not found.")
        return contract, project

    def create_invoice(
        self,
        contract_id: int,
        invoice_type: str | InvoiceType = InvoiceType.COMPLETION,
        today: date | None = None,
    ) -> InvoiceCreateResult:
        """Create the invoice for a contract, or return the one that already exists.

        Completion invoices (contractor -> operator) are issued immediately;
        every other type starts as a draft.
        """
        type_value = invoice_type.value if isinstance(invoice_type, InvoiceType) else str(invoice_type)
        if type_value not in {item.value for item in InvoiceType}:
            raise ValidationError(f"Unknown invoice type: {type_value}")

        existing = self.get_by_contract(contract_id)
        if existing is not None:
            return InvoiceCreateResult(invoice=existing, already_exists=True)

        contract, project = self._load_contract(contract_id)
        direction = direction_for_type(type_value)
        percent = SettingsService(self.db).get_support_fee_percent()
        amounts = compose_invoice(
            contract_amount=contract.bid_amount or 0,
            direction=direction,
            contractor_support_enabled=bool(contract.support_enabled),
            client_support_enabled=bool(project.support_enabled),
            support_fee_percent=percent,
        )

        issue_day = today or date.today()
        auto_issue = direction is InvoiceDirection.CONTRACTOR_TO_OPERATOR
        invoice = Invoice(
            invoice_number=new_invoice_number(direction, on=issue_day),
            contract_id=contract.id,
            project_id=project.id,
            org_id=contract.org_id or project.org_id,
            contractor_id=contract.contractor_id,
            direction=direction.value,
            base_amount=amounts.base_amount,
            system_fee=amounts.system_fee,
            total_amount=amounts.total_amount,
            withholding_amount=amounts.withholding,
            final_amount=amounts.final_amount,
            support_fee_percent=amounts.support_fee_percent,
            support_applied_to=amounts.applied_to.value,
            memo=amounts.memo,
            status=InvoiceStatus.ISSUED.value if auto_issue else InvoiceStatus.DRAFT.value,
            issue_date=issue_day if auto_issue else None,
            due_date=self._due_date(issue_day) if auto_issue else None,
        )
        self.db.add(invoice)
        try:
            self.commit()
        except IntegrityError:
            # Lost the race on uq_invoices_contract_id. commit() has rolled back.
            existing = self.get_by_contract(contract_id)
            if existing is None:
                raise
            logger.info(
                "invoice.create.race_resolved",
                extra={"event": "invoice.create.race_resolved", "contract_id": contract_id},
            )
            return InvoiceCreateResult(invoice=existing, already_exists=True)
        self.db.refresh(invoice)

        logger.info(
            "invoice.created",
            extra={
                "event": "invoice.created",
                "invoice_id": invoice.id,
                "contract_id": contract_id,
                "direction": invoice.direction,
                "status": invoice.status,
                "total_amount": invoice.total_amount,
                "final_amount": invoice.final_amount,
            },
        )
        notifications = NotificationService(self.db)
        notifications.invoice_created(invoice)
        if auto_issue:
            notifications.invoice_issued(invoice)
        return InvoiceCreateResult(invoice=invoice, already_exists=False)

    def issue_invoice(self, invoice_id: int, today: date | None = None) -> Invoice:
        invoice = self.require_invoice(invoice_id)
        INVOICE_STATE_MACHINE.assert_transition(invoice.status, InvoiceStatus.ISSUED.value)

        invoice.status = InvoiceStatus.ISSUED.value
        if invoice.issue_date is None:
            invoice.issue_date = today or date.today()
        if invoice.due_date is None:
            invoice.due_date = self._due_date(invoice.issue_date)
        invoice.updated_at = self._utcnow_naive()
        self.commit()
        self.db.refresh(invoice)

        logger.info("invoice.issued", extra={"event": "invoice.issued", "invoice_id": invoice.id})
        NotificationService(self.db).invoice_issued(invoice)
        return invoice

    def pay_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.require_invoice(invoice_id)
        INVOICE_STATE_MACHINE.assert_transition(invoice.status, InvoiceStatus.PAID.value)

        invoice.status = InvoiceStatus.PAID.value
        invoice.paid_at = self._utcnow_naive()
        invoice.updated_at = invoice.paid_at
        self.commit()
        self.db.refresh(invoice)
        logger.info("invoice.paid", extra={"event": "invoice.paid", "invoice_id": invoice.id})
        return invoice

    def verify_invoice(self, invoice_id: int) -> list[str]:
        """Recompute a stored invoice from its contract and its baked-in percent."""
        invoice = self.require_invoice(invoice_id)
        contract = self.db.query(Contract).filter(Contract.id == invoice.contract_id).first()
        if contract is None:
            raise NotFoundError(f"Contract {invoice.contract_id} not found.")

        applied_to = SupportAppliedTo(invoice.support_applied_to)
        return validate_invoice_amounts(
            recorded={
                "base_amount": invoice.base_amount,
                "system_fee": invoice.system_fee,
                "total_amount": invoice.total_amount,
                "withholding": invoice.withholding_amount,
                "final_amount": invoice.final_amount,
            },
            contract_amount=contract.bid_amount or 0,
            direction=InvoiceDirection(invoice.direction),
            contractor_support_enabled=applied_to is SupportAppliedTo.CONTRACTOR,
            client_support_enabled=applied_to is SupportAppliedTo.CLIENT,
            support_fee_percent=invoice.support_fee_percent,
        )


def quote_invoice(
    contract_amount: int,
    invoice_type: str | InvoiceType,
    contractor_support_enabled: bool,
    client_support_enabled: bool,
    support_fee_percent: float,
) -> InvoiceAmounts:
    """Compose amounts for an invoice type without touching the database."""
    type_value = invoice_type.value if isinstance(invoice_type, InvoiceType) else str(invoice_type)
    return compose_invoice(
        contract_amount=contract_amount,
        direction=direction_for_type(type_value),
        contractor_support_enabled=contractor_support_enabled,
        client_support_enabled=client_support_enabled,
        support_fee_percent=support_fee_percent,
    )
