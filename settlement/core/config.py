"""Environment-driven configuration for the settlement service."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from settlement.core.exceptions import ConfigurationError

load_dotenv()

_ALLOWED_DB_SCHEMES = {"sqlite", "postgresql", "postgresql+psycopg2", "postgresql+psycopg"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}.") from exc


@dataclass(frozen=True)
class Config:
    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    # Billing
    DEFAULT_SUPPORT_FEE_PERCENT: float
    INVOICE_DUE_DAYS: int
    TRANSFER_FEE_JPY: int
    # Printed as the operator party on invoices
    OPERATOR_NAME: str
    OPERATOR_EMAIL: str
    OPERATOR_ADDRESS: str
    # HTTP
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    # Logging
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    production = resolved_env == "production"

    config = Config(
        APP_NAME="settlement",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=False if production else _env_bool("DEBUG"),
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./settlement.db"),
        DB_CONNECTIVITY_REQUIRED=_env_bool("DB_CONNECTIVITY_REQUIRED", default=production),
        DEFAULT_SUPPORT_FEE_PERCENT=_env_number("DEFAULT_SUPPORT_FEE_PERCENT", "8", float),
        INVOICE_DUE_DAYS=_env_number("INVOICE_DUE_DAYS", "30", int),
        TRANSFER_FEE_JPY=_env_number("TRANSFER_FEE_JPY", "550", int),
        OPERATOR_NAME=os.getenv("OPERATOR_NAME", "Platform Operator"),
        OPERATOR_EMAIL=os.getenv("OPERATOR_EMAIL", "billing@example.com"),
        OPERATOR_ADDRESS=os.getenv("OPERATOR_ADDRESS", "Tokyo, Japan"),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=_env_number("API_PORT", "8000", int),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1").rstrip("/"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
    )
    _validate_config(config)
    return config


def _validate_config(config: Config) -> None:
    parsed = urlparse(config.DATABASE_URL)
    if parsed.scheme not in _ALLOWED_DB_SCHEMES:
        raise ConfigurationError("DATABASE_URL must be a sqlite:// or postgresql:// URL.")
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing a hostname.")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL still uses placeholder credentials.")

    percent = config.DEFAULT_SUPPORT_FEE_PERCENT
    if not math.isfinite(percent) or not 0 <= percent <= 100:
        raise ConfigurationError("DEFAULT_SUPPORT_FEE_PERCENT must be between 0 and 100.")
    if config.INVOICE_DUE_DAYS < 0:
        raise ConfigurationError("INVOICE_DUE_DAYS must be >= 0.")
    if config.TRANSFER_FEE_JPY < 0:
        raise ConfigurationError("TRANSFER_FEE_JPY must be >= 0.")
    if config.LOG_LEVEL not in _LOG_LEVELS:
        raise ConfigurationError(f"LOG_LEVEL must be one of {', '.join(sorted(_LOG_LEVELS))}.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Validated configuration, cached per environment name."""
    return _build_config(env)
