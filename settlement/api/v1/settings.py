"""System settings endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from settlement.api.v1._errors import raise_http
from settlement.core.dependencies import get_db_session
from settlement.core.exceptions import SettlementException
from settlement.schemas.settings import SettingsResponse, SettingsUpdateRequest
from settlement.services.settings_service import SettingsService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=SettingsResponse)
def get_settings(db: Session = Depends(get_db_session)) -> SettingsResponse:
    return SettingsResponse(**SettingsService(db=db).as_dict())


@router.put("", response_model=SettingsResponse)
def update_settings(payload: SettingsUpdateRequest, db: Session = Depends(get_db_session)) -> SettingsResponse:
    try:
        settings = SettingsService(db=db).update_support_fee_percent(payload.support_fee_percent)
    except SettlementException as exc:
        raise_http(exc)
    return SettingsResponse(id=settings.id, support_fee_percent=settings.support_fee_percent)
