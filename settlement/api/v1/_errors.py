"""Shared mapping from service exceptions to HTTP errors."""

from __future__ import annotations

from fastapi import HTTPException, status

from settlement.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    SettlementException,
    ValidationError,
)


def map_domain_error(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND, str(exc)
    if isinstance(exc, InvalidTransitionError):
        return status.HTTP_409_CONFLICT, str(exc)
    if isinstance(exc, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc)
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error."


def raise_http(exc: SettlementException) -> None:
    code, detail = map_domain_error(exc)
    raise HTTPException(status_code=code, detail=detail) from exc
