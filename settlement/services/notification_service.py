"""Fire-and-forget notifications for invoice events.

A failed notification is logged and swallowed; it never undoes the invoice
write that triggered it.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError

from settlement.core.enums import MembershipRole
from settlement.database.models import Invoice, Membership, Notification
from settlement.services.base_service import BaseService

logger = logging.getLogger(__name__)

MAX_MESSAGE_LEN = 2000


def _clean(value: str, max_len: int) -> str:
    return str(value).replace("\x00", "").strip()[:max_len]


class NotificationService(BaseService):
    def org_admin_ids(self, org_id: int) -> list[int]:
        rows = (
            self.db.query(Membership.user_id)
            .filter(Membership.org_id == org_id, Membership.role == MembershipRole.ORG_ADMIN.value)
            .all()
        )
        return [row.user_id for row in rows]

    def notify(
        self,
        user_ids: list[int],
        title: str,
        message: str,
        type: str,
        data: dict[str, Any] | None = None,
    ) -> int:
        """Insert one notification per recipient. Returns how many were stored."""
        return self._deliver(lambda: user_ids, title, message, type, data)

    def notify_org_admins(
        self,
        org_id: int,
        title: str,
        message: str,
        type: str,
        data: dict[str, Any] | None = None,
    ) -> int:
        return self._deliver(lambda: self.org_admin_ids(org_id), title, message, type, data)

    def _deliver(
        self,
        resolve_recipients: Callable[[], list[int]],
        title: str,
        message: str,
        type: str,
        data: dict[str, Any] | None,
    ) -> int:
        # Recipient lookup runs under the same guard as the insert.
        recipients: list[int] = []
        try:
            recipients = [uid for uid in dict.fromkeys(resolve_recipients()) if uid is not None]
            if not recipients:
                return 0
            for user_id in recipients:
                self.db.add(
                    Notification(
                        user_id=user_id,
                        title=_clean(title, 200),
                        message=_clean(message, MAX_MESSAGE_LEN),
                        type=type,
                        data=data,
                    )
                )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "notification.create.failed",
                extra={"event": "notification.create.failed", "type": type, "recipients": recipients},
            )
            return 0
        return len(recipients)

    def invoice_created(self, invoice: Invoice) -> int:
        return self.notify(
            [invoice.contractor_id],
            title="Invoice created",
            message=f"Invoice {invoice.invoice_number} was created for contract {invoice.contract_id}.",
            type="invoice",
            data={"invoice_id": invoice.id, "contract_id": invoice.contract_id},
        )

    def invoice_issued(self, invoice: Invoice) -> int:
        return self.notify_org_admins(
            invoice.org_id,
            title="Invoice issued",
            message=f"Invoice {invoice.invoice_number} was issued. Please arrange payment by {invoice.due_date}.",
            type="invoice_issued",
            data={"invoice_id": invoice.id, "project_id": invoice.project_id},
        )
