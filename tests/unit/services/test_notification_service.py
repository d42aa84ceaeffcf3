from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from settlement.database.models import Notification
from settlement.services.notification_service import NotificationService


def test_notify_dedups_recipients_and_skips_missing(session, seed_contract):
    seeded = seed_contract(session)
    contractor_id = seeded["contractor"].id

    stored = NotificationService(db=session).notify(
        [contractor_id, contractor_id, None],
        title="  Invoice created  ",
        message="body\x00",
        type="invoice",
    )

    assert stored == 1
    row = session.query(Notification).one()
    assert row.title == "Invoice created"
    assert row.message == "body"
    assert row.is_read is False


def test_notify_with_no_recipients_is_noop(session):
    assert NotificationService(db=session).notify([], "t", "m", "invoice") == 0


def test_org_admin_ids_only_returns_admins(session, seed_contract):
    seeded = seed_contract(session)
    ids = NotificationService(db=session).org_admin_ids(seeded["organization"].id)
    assert ids == [seeded["admin"].id]


def test_failed_commit_is_swallowed(session, seed_contract, monkeypatch):
    seeded = seed_contract(session)

    def _fail():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(session, "commit", _fail)
    stored = NotificationService(db=session).notify([seeded["contractor"].id], "t", "m", "invoice")
    monkeypatch.undo()

    assert stored == 0
    assert session.query(Notification).count() == 0


def test_notify_org_admins_reaches_each_admin(session, seed_contract):
    seeded = seed_contract(session)
    stored = NotificationService(db=session).notify_org_admins(
        seeded["organization"].id, "t", "m", "monthly_invoice_issued", {"invoice_id": 1}
    )
    assert stored == 1
    row = session.query(Notification).one()
    assert row.user_id == seeded["admin"].id
    assert row.data == {"invoice_id": 1}


def test_failed_admin_lookup_is_swallowed(session, seed_contract, monkeypatch):
    seeded = seed_contract(session)
    service = NotificationService(db=session)

    def _fail(_org_id):
        raise SQLAlchemyError("memberships unavailable")

    monkeypatch.setattr(service, "org_admin_ids", _fail)

    assert service.notify_org_admins(seeded["organization"].id, "t", "m", "invoice_issued") == 0
    assert session.query(Notification).count() == 0
