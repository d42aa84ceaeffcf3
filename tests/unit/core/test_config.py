from __future__ import annotations

import pytest

from settlement.core.config import _build_config
from settlement.core.exceptions import ConfigurationError


def test_defaults(monkeypatch):
    for key in ("DATABASE_URL", "DEFAULT_SUPPORT_FEE_PERCENT", "INVOICE_DUE_DAYS", "TRANSFER_FEE_JPY", "DB_CONNECTIVITY_REQUIRED"):
        monkeypatch.delenv(key, raising=False)
    cfg = _build_config("development")
    assert cfg.DEFAULT_SUPPORT_FEE_PERCENT == 8.0
    assert cfg.INVOICE_DUE_DAYS == 30
    assert cfg.TRANSFER_FEE_JPY == 550
    assert cfg.DATABASE_URL.startswith("sqlite")
    assert cfg.DB_CONNECTIVITY_REQUIRED is False


def test_production_requires_db_and_disables_debug(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.delenv("DB_CONNECTIVITY_REQUIRED", raising=False)
    cfg = _build_config("production")
    assert cfg.DEBUG is False
    assert cfg.DB_CONNECTIVITY_REQUIRED is True


@pytest.mark.parametrize(
    "key, value",
    [
        ("DEFAULT_SUPPORT_FEE_PERCENT", "120"),
        ("DATABASE_URL", "mysql://db/settlement"),
        ("LOG_LEVEL", "chatty"),
        ("TRANSFER_FEE_JPY", "-1"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigurationError):
        _build_config("development")
