"""Global system settings (support fee percent)."""

from __future__ import annotations

import logging
import math

from settlement.core.config import get_config
from settlement.core.exceptions import ValidationError
from settlement.database.models import SystemSettings
from settlement.services.base_service import BaseService

logger = logging.getLogger(__name__)

GLOBAL_SETTINGS_ID = "global"


class SettingsService(BaseService):
    """Read and upsert the single global settings row."""

    def get_settings(self) -> SystemSettings | None:
        return self.db.query(SystemSettings).filter(SystemSettings.id == GLOBAL_SETTINGS_ID).first()

    def get_support_fee_percent(self) -> float:
        """Percent in effect right now; falls back to the configured default when no row exists."""
        settings = self.get_settings()
        if settings is None or settings.support_fee_percent is None:
            return get_config().DEFAULT_SUPPORT_FEE_PERCENT
        return float(settings.support_fee_percent)

    def as_dict(self) -> dict:
        return {"id": GLOBAL_SETTINGS_ID, "support_fee_percent": self.get_support_fee_percent()}

    def update_support_fee_percent(self, value: float | int) -> SystemSettings:
        try:
            percent = float(value)
        except (TypeError, ValueError) as exc:
            raise ValidationError("support_fee_percent must be a number between 0 and 100.") from exc
        if not math.isfinite(percent) or percent < 0 or percent > 100:
            raise ValidationError("support_fee_percent must be a number between 0 and 100.")

        settings = self.get_settings()
        if settings is None:
            settings = SystemSettings(id=GLOBAL_SETTINGS_ID)
            self.db.add(settings)
        # Stored as a whole percent.
        settings.support_fee_percent = int(percent + 0.5)
        settings.updated_at = self._utcnow_naive()
        self.commit()
        self.db.refresh(settings)
        logger.info(
            "settings.support_fee_percent.updated",
            extra={
                "event": "settings.support_fee_percent.updated",
                "support_fee_percent": settings.support_fee_percent,
            },
        )
        return settings
