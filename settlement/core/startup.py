"""Process startup: logging setup and fail-fast checks."""

from __future__ import annotations

import logging

from settlement.core.config import get_config
from settlement.core.logging_config import configure_logging
from settlement.database.db import get_active_database_url, verify_database_connection

logger = logging.getLogger(__name__)


def validate_startup_config() -> None:
    """Check the database is reachable; raise only when connectivity is required."""
    cfg = get_config()
    scheme = get_active_database_url().split("://", 1)[0]

    if not verify_database_connection():
        if cfg.DB_CONNECTIVITY_REQUIRED:
            raise RuntimeError("Database connectivity check failed.")
        logger.warning(
            "startup.database.unreachable",
            extra={"event": "startup.database.unreachable", "database_url_scheme": scheme},
        )

    if cfg.is_production and scheme == "sqlite":
        logger.warning("startup.database.sqlite_in_production", extra={"event": "startup.database.sqlite_in_production"})

    logger.info(
        "startup.ready",
        extra={
            "event": "startup.ready",
            "env": cfg.ENV,
            "database_url_scheme": scheme,
            "default_support_fee_percent": cfg.DEFAULT_SUPPORT_FEE_PERCENT,
            "invoice_due_days": cfg.INVOICE_DUE_DAYS,
        },
    )


def bootstrap() -> None:
    configure_logging()
    validate_startup_config()
