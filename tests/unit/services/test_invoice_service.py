from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from settlement.core.enums import InvoiceDirection, InvoiceStatus
from settlement.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from settlement.database.models import Invoice, Notification
import settlement.services.notification_service as notification_module
from settlement.services.invoice_service import InvoiceService, quote_invoice
from settlement.services.settings_service import SettingsService


def test_completion_invoice_is_issued_on_creation(session, seed_contract):
    seeded = seed_contract(session, contractor_support=True)
    service = InvoiceService(db=session)

    result = service.create_invoice(seeded["contract"].id, "completion", today=date(2026, 10, 19))
    invoice = result.invoice

    assert result.already_exists is False
    assert invoice.direction == InvoiceDirection.CONTRACTOR_TO_OPERATOR.value
    assert invoice.status == InvoiceStatus.ISSUED.value
    assert invoice.issue_date == date(2026, 10, 19)
    assert invoice.due_date == date(2026, 11, 18)
    assert invoice.invoice_number.startswith("CINV-2026-")
    assert invoice.base_amount == 920_000
    assert invoice.system_fee == 0
    assert invoice.total_amount == 920_000
    assert invoice.withholding_amount == 93_932
    assert invoice.final_amount == 826_068
    assert invoice.support_applied_to == "contractor"
    assert invoice.memo == "contractor support deduction 8%"


def test_client_invoice_starts_as_draft(session, seed_contract):
    seeded = seed_contract(session, client_support=True)
    result = InvoiceService(db=session).create_invoice(seeded["contract"].id, "client")
    invoice = result.invoice

    assert invoice.direction == InvoiceDirection.OPERATOR_TO_CLIENT.value
    assert invoice.status == InvoiceStatus.DRAFT.value
    assert invoice.issue_date is None
    assert invoice.invoice_number.startswith("INV-OP-")
    assert invoice.total_amount == 1_080_000
    assert invoice.withholding_amount == 118_436
    assert invoice.final_amount == 961_564


def test_create_twice_returns_same_invoice(session, seed_contract):
    seeded = seed_contract(session)
    service = InvoiceService(db=session)

    first = service.create_invoice(seeded["contract"].id, "completion")
    second = service.create_invoice(seeded["contract"].id, "completion")

    assert first.already_exists is False
    assert second.already_exists is True
    assert second.invoice.id == first.invoice.id
    assert session.query(Invoice).filter(Invoice.contract_id == seeded["contract"].id).count() == 1


def test_create_rejects_unknown_type_and_missing_contract(session, seed_contract):
    seed_contract(session)
    service = InvoiceService(db=session)
    with pytest.raises(ValidationError):
        service.create_invoice(1, "refund")
    with pytest.raises(NotFoundError):
        service.create_invoice(9999, "completion")


def test_issue_on_issued_invoice_does_not_touch_issue_date(session, seed_contract):
    seeded = seed_contract(session)
    service = InvoiceService(db=session)
    invoice = service.create_invoice(seeded["contract"].id, "completion", today=date(2026, 10, 1)).invoice

    with pytest.raises(InvalidTransitionError):
        service.issue_invoice(invoice.id, today=date(2026, 10, 19))

    reloaded = service.require_invoice(invoice.id)
    assert reloaded.status == InvoiceStatus.ISSUED.value
    assert reloaded.issue_date == date(2026, 10, 1)


def test_draft_issue_then_pay(session, seed_contract):
    seeded = seed_contract(session)
    service = InvoiceService(db=session)
    invoice = service.create_invoice(seeded["contract"].id, "client").invoice

    with pytest.raises(InvalidTransitionError):
        service.pay_invoice(invoice.id)

    issued = service.issue_invoice(invoice.id, today=date(2026, 10, 19))
    assert issued.status == InvoiceStatus.ISSUED.value
    assert issued.issue_date == date(2026, 10, 19)
    assert issued.due_date == date(2026, 11, 18)

    paid = service.pay_invoice(invoice.id)
    assert paid.status == InvoiceStatus.PAID.value
    assert paid.paid_at is not None

    with pytest.raises(InvalidTransitionError):
        service.pay_invoice(invoice.id)


def test_percent_is_baked_in_at_creation(session, seed_contract):
    seeded = seed_contract(session, client_support=True, support_fee_percent=10)
    service = InvoiceService(db=session)
    invoice = service.create_invoice(seeded["contract"].id, "client").invoice
    assert invoice.system_fee == 100_000
    assert invoice.support_fee_percent == 10

    SettingsService(db=session).update_support_fee_percent(5)
    reloaded = service.require_invoice(invoice.id)
    assert reloaded.system_fee == 100_000
    assert reloaded.support_fee_percent == 10
    assert service.verify_invoice(invoice.id) == []


def test_verify_detects_tampered_amounts(session, seed_contract):
    seeded = seed_contract(session)
    service = InvoiceService(db=session)
    invoice = service.create_invoice(seeded["contract"].id, "completion").invoice
    invoice.final_amount += 1
    session.commit()

    errors = service.verify_invoice(invoice.id)
    assert "final_amount is incorrect: expected 897900, got 897901" in errors


def test_notifications_follow_lifecycle(session, seed_contract):
    seeded = seed_contract(session)
    service = InvoiceService(db=session)
    invoice = service.create_invoice(seeded["contract"].id, "client").invoice

    contractor_rows = session.query(Notification).filter(Notification.user_id == seeded["contractor"].id).all()
    assert [row.type for row in contractor_rows] == ["invoice"]
    assert session.query(Notification).filter(Notification.user_id == seeded["admin"].id).count() == 0

    service.issue_invoice(invoice.id)
    admin_rows = session.query(Notification).filter(Notification.user_id == seeded["admin"].id).all()
    assert [row.type for row in admin_rows] == ["invoice_issued"]
    assert admin_rows[0].data["invoice_id"] == invoice.id


def test_failed_notification_keeps_invoice(session, seed_contract, monkeypatch):
    def _broken(**_kwargs):
        raise SQLAlchemyError("notifications table unavailable")

    monkeypatch.setattr(notification_module, "Notification", _broken)
    seeded = seed_contract(session)
    result = InvoiceService(db=session).create_invoice(seeded["contract"].id, "completion")

    assert result.invoice.id is not None
    assert session.query(Invoice).count() == 1


def test_unreadable_memberships_do_not_fail_create_or_issue(session, seed_contract):
    completion = seed_contract(session)
    client = seed_contract(session)
    session.execute(text("DROP TABLE memberships"))
    session.commit()
    service = InvoiceService(db=session)

    issued_on_create = service.create_invoice(completion["contract"].id, "completion").invoice
    assert issued_on_create.status == InvoiceStatus.ISSUED.value

    draft = service.create_invoice(client["contract"].id, "client").invoice
    issued = service.issue_invoice(draft.id, today=date(2026, 10, 19))
    assert issued.status == InvoiceStatus.ISSUED.value
    assert session.query(Invoice).filter(Invoice.status == InvoiceStatus.ISSUED.value).count() == 2
    assert session.query(Notification).filter(Notification.type == "invoice_issued").count() == 0


def test_concurrent_create_returns_the_winning_invoice(session, seed_contract, monkeypatch):
    seeded = seed_contract(session)
    service = InvoiceService(db=session)
    first = service.create_invoice(seeded["contract"].id, "completion").invoice

    real_lookup = service.get_by_contract
    calls = []

    def _miss_first_lookup(contract_id):
        # The pre-insert check runs before the other writer commits.
        calls.append(contract_id)
        return None if len(calls) == 1 else real_lookup(contract_id)

    monkeypatch.setattr(service, "get_by_contract", _miss_first_lookup)
    second = service.create_invoice(seeded["contract"].id, "completion")

    assert len(calls) == 2
    assert second.already_exists is True
    assert second.invoice.id == first.id
    assert session.query(Invoice).filter(Invoice.contract_id == seeded["contract"].id).count() == 1


def test_list_invoices_filters(session, seed_contract):
    first = seed_contract(session)
    second = seed_contract(session)
    service = InvoiceService(db=session)
    service.create_invoice(first["contract"].id, "completion")
    service.create_invoice(second["contract"].id, "client")

    assert len(service.list_invoices()) == 2
    drafts = service.list_invoices(status=InvoiceStatus.DRAFT.value)
    assert [row.contract_id for row in drafts] == [second["contract"].id]
    by_org = service.list_invoices(org_id=first["organization"].id)
    assert [row.contract_id for row in by_org] == [first["contract"].id]


def test_quote_invoice_maps_type_to_direction():
    amounts = quote_invoice(1_000_000, "client", False, True, 8)
    assert amounts.total_amount == 1_080_000
    amounts = quote_invoice(1_000_000, "completion", False, True, 8)
    assert amounts.system_fee == 0
