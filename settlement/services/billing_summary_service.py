"""Monthly summaries, payout closing and organization billing."""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date
from typing import Any

from sqlalchemy.exc import IntegrityError

from settlement.billing.org_billing import (
    billing_period_label,
    calculate_org_invoice,
    monthly_invoice_due_date,
    org_project_charge,
    statement_due_date,
)
from settlement.billing.payout import calculate_contractor_payout, closing_period, month_bounds
from settlement.core.config import get_config
from settlement.core.enums import BusinessType, InvoiceDirection, InvoiceStatus, PayoutStatus
from settlement.core.exceptions import NotFoundError, ValidationError
from settlement.database.models import (
    Contract,
    Invoice,
    MonthlyStatement,
    Organization,
    OrgMonthlyInvoice,
    Payout,
    Project,
    User,
)
from settlement.services.base_service import BaseService
from settlement.services.notification_service import NotificationService
from settlement.services.settings_service import SettingsService
from settlement.utils.ids import org_invoice_number

logger = logging.getLogger(__name__)


class BillingSummaryService(BaseService):
    def _contractor_invoices(self, start, end, inclusive_end: bool, org_id: int | None = None) -> list[Invoice]:
        query = self.db.query(Invoice).filter(
            Invoice.direction == InvoiceDirection.CONTRACTOR_TO_OPERATOR.value,
            Invoice.issue_date.isnot(None),
            Invoice.issue_date >= start,
        )
        query = query.filter(Invoice.issue_date <= end) if inclusive_end else query.filter(Invoice.issue_date < end)
        if org_id is not None:
            query = query.filter(Invoice.org_id == org_id)
        return query.order_by(Invoice.contractor_id, Invoice.issue_date, Invoice.id).all()

    def monthly_contractor_summary(self, year: int, month: int) -> dict[str, Any]:
        """Aggregate contractor invoices issued in the calendar month, per contractor."""
        start, end = month_bounds(year, month)
        invoices = self._contractor_invoices(start, end, inclusive_end=False)

        contractor_ids = sorted({inv.contractor_id for inv in invoices})
        contractors = {
            user.id: user for user in self.db.query(User).filter(User.id.in_(contractor_ids)).all()
        } if contractor_ids else {}

        summaries: "OrderedDict[int, dict[str, Any]]" = OrderedDict()
        for invoice in invoices:
            user = contractors.get(invoice.contractor_id)
            summary = summaries.setdefault(
                invoice.contractor_id,
                {
                    "contractor_id": invoice.contractor_id,
                    "contractor_name": user.display_name if user else None,
                    "contractor_email": user.email if user else None,
                    "invoice_count": 0,
                    "total_base_amount": 0,
                    "total_fee_amount": 0,
                    "total_subtotal": 0,
                    "total_withholding": 0,
                    "total_final_amount": 0,
                    "invoices": [],
                },
            )
            summary["invoice_count"] += 1
            summary["total_base_amount"] += invoice.base_amount
            summary["total_fee_amount"] += invoice.system_fee
            summary["total_subtotal"] += invoice.total_amount
            summary["total_withholding"] += invoice.withholding_amount
            summary["total_final_amount"] += invoice.final_amount
            summary["invoices"].append(
                {
                    "id": invoice.id,
                    "invoice_number": invoice.invoice_number,
                    "issue_date": invoice.issue_date,
                    "project_id": invoice.project_id,
                    "org_id": invoice.org_id,
                    "base_amount": invoice.base_amount,
                    "fee_amount": invoice.system_fee,
                    "subtotal": invoice.total_amount,
                    "withholding": invoice.withholding_amount,
                    "final_amount": invoice.final_amount,
                    "status": invoice.status,
                }
            )

        rows = list(summaries.values())
        return {
            "year": year,
            "month": month,
            "summaries": rows,
            "total_contractors": len(rows),
            "total_invoices": sum(row["invoice_count"] for row in rows),
            "grand_total": sum(row["total_final_amount"] for row in rows),
        }

    def close_contractor_payouts(self, year: int, month: int) -> dict[str, Any]:
        """Create scheduled payouts for the closing period ending on the 20th.

        Contractors that already have a payout for the period are returned
        unchanged, so running the close twice is harmless.
        """
        period = closing_period(year, month)
        invoices = self._contractor_invoices(period.start, period.end, inclusive_end=True)

        totals: "OrderedDict[int, int]" = OrderedDict()
        for invoice in invoices:
            totals[invoice.contractor_id] = totals.get(invoice.contractor_id, 0) + (invoice.total_amount or 0)

        corporate_ids = {
            user.id
            for user in self.db.query(User).filter(User.id.in_(list(totals))).all()
            if user.company_number
        } if totals else set()

        transfer_fee = get_config().TRANSFER_FEE_JPY
        payouts: list[Payout] = []
        created = 0
        for contractor_id, total in totals.items():
            existing = (
                self.db.query(Payout)
                .filter(Payout.contractor_id == contractor_id, Payout.period_start == period.start)
                .first()
            )
            if existing is not None:
                payouts.append(existing)
                continue

            business_type = BusinessType.CORPORATION if contractor_id in corporate_ids else BusinessType.INDIVIDUAL
            amounts = calculate_contractor_payout(business_type, max(0, total), transfer_fee=transfer_fee)
            payout = Payout(
                contractor_id=contractor_id,
                period_start=period.start,
                period_end=period.end,
                scheduled_pay_date=period.scheduled_pay_date,
                gross_amount=amounts.gross_amount,
                tax_withholding=amounts.withholding_tax,
                transfer_fee=amounts.transfer_fee,
                net_amount=amounts.net_amount,
                status=PayoutStatus.SCHEDULED.value,
            )
            self.db.add(payout)
            payouts.append(payout)
            created += 1

        self.commit()
        for payout in payouts:
            self.db.refresh(payout)

        logger.info(
            "billing.payouts.closed",
            extra={
                "event": "billing.payouts.closed",
                "period_start": period.start.isoformat(),
                "period_end": period.end.isoformat(),
                "created": created,
                "total": len(payouts),
            },
        )
        return {"period": period, "payouts": payouts, "created": created}

    def org_monthly_summary(self, year: int, month: int) -> dict[str, Any]:
        """Per-organization charges for projects completed in the closing period.

        A project counts as completed once its contractor completion invoice
        is issued inside the 21st-to-20th window.
        """
        period = closing_period(year, month)
        percent = SettingsService(self.db).get_support_fee_percent()
        rows = (
            self.db.query(Invoice, Contract, Project, Organization)
            .join(Contract, Invoice.contract_id == Contract.id)
            .join(Project, Invoice.project_id == Project.id)
            .join(Organization, Invoice.org_id == Organization.id)
            .filter(
                Invoice.direction == InvoiceDirection.CONTRACTOR_TO_OPERATOR.value,
                Invoice.issue_date.isnot(None),
                Invoice.issue_date >= period.start,
                Invoice.issue_date <= period.end,
            )
            .order_by(Invoice.issue_date, Invoice.id)
            .all()
        )

        organizations: "OrderedDict[int, dict[str, Any]]" = OrderedDict()
        for invoice, contract, project, organization in rows:
            charge = org_project_charge(contract.bid_amount or 0, bool(project.support_enabled), percent)
            summary = organizations.setdefault(
                organization.id,
                {
                    "org_id": organization.id,
                    "org_name": organization.name,
                    "org_address": organization.address,
                    "org_email": organization.email,
                    "projects": [],
                    "total_contract_amount": 0,
                    "total_support_fee": 0,
                    "total_system_fee": 0,
                    "total_billing_amount": 0,
                },
            )
            summary["projects"].append(
                {
                    "project_id": project.id,
                    "project_title": project.title,
                    "contract_id": contract.id,
                    "contract_amount": charge.contract_amount,
                    "completion_date": invoice.issue_date,
                    "support_enabled": bool(project.support_enabled),
                    "support_fee": charge.support_fee,
                    "system_fee": charge.system_fee,
                }
            )
            summary["total_contract_amount"] += charge.contract_amount
            summary["total_support_fee"] += charge.support_fee
            summary["total_system_fee"] += charge.system_fee
            summary["total_billing_amount"] += charge.total_amount

        ranked = sorted(organizations.values(), key=lambda row: row["total_billing_amount"], reverse=True)
        return {
            "billing_period": {
                "year": year,
                "month": month,
                "start_date": period.start,
                "end_date": period.end,
                "label": billing_period_label(year, month, period),
            },
            "support_fee_percent": percent,
            "total_organizations": len(ranked),
            "total_projects": len(rows),
            "grand_total_amount": sum(row["total_billing_amount"] for row in ranked),
            "grand_total_support_fee": sum(row["total_support_fee"] for row in ranked),
            "grand_total_system_fee": sum(row["total_system_fee"] for row in ranked),
            "organizations": ranked,
        }

    def generate_org_invoices(self, year: int, month: int, today: date | None = None) -> dict[str, Any]:
        """Issue one monthly invoice per organization with completed projects.

        Organizations already invoiced for the month are reported under
        ``errors`` with the existing invoice id and left untouched.
        """
        summary = self.org_monthly_summary(year, month)
        if not summary["organizations"]:
            raise ValidationError("No completed projects in the billing period.")

        label = summary["billing_period"]["label"]
        issue_day = today or date.today()
        due_day = monthly_invoice_due_date(year, month)
        notifications = NotificationService(self.db)
        created: list[dict[str, Any]] = []
        errors: list[dict[str, Any]] = []

        for org in summary["organizations"]:
            existing = self._org_invoice(org["org_id"], year, month)
            if existing is not None:
                errors.append(
                    {
                        "org_id": org["org_id"],
                        "org_name": org["org_name"],
                        "error": "An invoice for this period already exists.",
                        "invoice_id": existing.id,
                    }
                )
                continue

            project_count = len(org["projects"])
            invoice = OrgMonthlyInvoice(
                invoice_number=org_invoice_number(org["org_id"], year, month),
                org_id=org["org_id"],
                billing_year=year,
                billing_month=month,
                billing_period=label,
                base_amount=org["total_contract_amount"],
                support_fee=org["total_support_fee"],
                system_fee=org["total_system_fee"],
                total_amount=org["total_billing_amount"],
                project_list=[
                    {**project, "completion_date": project["completion_date"].isoformat()}
                    for project in org["projects"]
                ],
                status=InvoiceStatus.ISSUED.value,
                issue_date=issue_day,
                due_date=due_day,
                memo=f"{label} completed {project_count} projects",
            )
            self.db.add(invoice)
            try:
                self.commit()
            except IntegrityError:
                existing = self._org_invoice(org["org_id"], year, month)
                errors.append(
                    {
                        "org_id": org["org_id"],
                        "org_name": org["org_name"],
                        "error": "An invoice for this period already exists.",
                        "invoice_id": existing.id if existing else None,
                    }
                )
                continue
            self.db.refresh(invoice)

            created.append(
                {
                    "org_id": org["org_id"],
                    "org_name": org["org_name"],
                    "invoice_id": invoice.id,
                    "invoice_number": invoice.invoice_number,
                    "total_amount": invoice.total_amount,
                    "project_count": project_count,
                }
            )
            notifications.notify_org_admins(
                org["org_id"],
                title="Monthly invoice issued",
                message=f"The invoice for {label} was issued. Total: {invoice.total_amount:,} JPY",
                type="monthly_invoice_issued",
                data={
                    "invoice_id": invoice.id,
                    "billing_year": year,
                    "billing_month": month,
                    "total_amount": invoice.total_amount,
                },
            )

        logger.info(
            "billing.org_invoices.generated",
            extra={
                "event": "billing.org_invoices.generated",
                "year": year,
                "month": month,
                "created": len(created),
                "skipped": len(errors),
            },
        )
        return {
            "billing_period": label,
            "total_organizations": len(summary["organizations"]),
            "created_invoices": created,
            "errors": errors,
        }

    def _org_invoice(self, org_id: int, year: int, month: int) -> OrgMonthlyInvoice | None:
        return (
            self.db.query(OrgMonthlyInvoice)
            .filter(
                OrgMonthlyInvoice.org_id == org_id,
                OrgMonthlyInvoice.billing_year == year,
                OrgMonthlyInvoice.billing_month == month,
            )
            .first()
        )

    def issue_org_statement(self, org_id: int, year: int, month: int) -> dict[str, Any]:
        """Bill the period's contractor invoices back to ``org_id`` with the operator fee.

        Returns ``{"statement": MonthlyStatement, "created": bool}``; an
        existing statement for the period is returned as is.
        """
        if self.db.get(Organization, org_id) is None:
            raise NotFoundError(f"Organization {org_id} not found.")
        period = closing_period(year, month)

        existing = self._statement(org_id, period.start)
        if existing is not None:
            return {"statement": existing, "created": False}

        invoices = self._contractor_invoices(period.start, period.end, inclusive_end=True, org_id=org_id)
        amounts = calculate_org_invoice(sum(invoice.total_amount or 0 for invoice in invoices))
        statement = MonthlyStatement(
            org_id=org_id,
            period_start=period.start,
            period_end=period.end,
            due_date=statement_due_date(year, month),
            contractors_total=amounts.contractors_total,
            operator_fee=amounts.operator_fee,
            total_amount=amounts.total_amount,
            status=InvoiceStatus.ISSUED.value,
        )
        self.db.add(statement)
        try:
            self.commit()
        except IntegrityError:
            existing = self._statement(org_id, period.start)
            if existing is None:
                raise
            return {"statement": existing, "created": False}
        self.db.refresh(statement)

        logger.info(
            "billing.org_statement.issued",
            extra={
                "event": "billing.org_statement.issued",
                "org_id": org_id,
                "period_start": period.start.isoformat(),
                "invoice_count": len(invoices),
                "total_amount": statement.total_amount,
            },
        )
        return {"statement": statement, "created": True}

    def _statement(self, org_id: int, period_start: date) -> MonthlyStatement | None:
        return (
            self.db.query(MonthlyStatement)
            .filter(MonthlyStatement.org_id == org_id, MonthlyStatement.period_start == period_start)
            .first()
        )
