"""System settings schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SettingsResponse(BaseModel):
    id: str = "global"
    support_fee_percent: float


class SettingsUpdateRequest(BaseModel):
    support_fee_percent: float = Field(ge=0, le=100, allow_inf_nan=False)
