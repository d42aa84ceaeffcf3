"""Base class for services bound to a SQLAlchemy session."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session

import settlement.database.db as db_module


class BaseService:
    def __init__(self, db: Session | None = None) -> None:
        # Routes pass the request session; scripts may let the service open one.
        self.db = db if db is not None else db_module.SessionLocal()

    def _utcnow_naive(self) -> datetime:
        """Current UTC time without tzinfo, matching the naive DateTime columns."""
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def commit(self) -> None:
        """Commit, rolling the session back if the commit fails."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
