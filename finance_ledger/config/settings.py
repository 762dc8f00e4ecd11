"""
Configuration Management for Finance Ledger

Settings are read from environment variables (and .env) with pydantic-settings.

DESIGN DECISION: Every tunable lives in this module, grouped by env
prefix, so the active storage backend and ledger behaviour can be read
off one file.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Entity store backend selection."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        extra="ignore"
    )

    backend: Literal["json", "memory", "google_sheets"] = Field(
        default="json",
        description="Which entity store implementation to use"
    )
    data_path: str = Field(
        default="ledger_data.json",
        description="Path of the JSON document used by the json backend"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets entity store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    worksheet_name: str = Field(
        default="LedgerStore",
        description="Name of the worksheet holding the key/value rows"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class LedgerSettings(BaseSettings):
    """Ledger behaviour settings."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore"
    )

    default_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency code used when none has been stored"
    )
    default_account_name: str = Field(
        default="Cash Wallet",
        min_length=1,
        description="Name of the wallet account seeded into an empty ledger"
    )
    # Deleting a transfer only refunds the source account unless this is set
    reverse_transfer_destination: bool = Field(
        default=False,
        description="Also debit the destination account when a transfer is deleted"
    )
    auto_snapshot_limit: int = Field(
        default=7,
        ge=1,
        le=100,
        description="How many automatic backup snapshots to keep"
    )

    @field_validator('default_currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()


class AppSettings(BaseSettings):
    """Process-level settings: the activity log level."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    log_level: str = Field(
        default="INFO",
        description="Minimum level for activity log output"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Each section is built on access, so a missing Google Sheets setup
    only fails when that backend is actually used.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Google Sheets is only checked when it is the selected backend.
    """
    results = {}

    settings = get_settings()

    checks = {
        "storage": lambda: settings.storage,
        "ledger": lambda: settings.ledger,
        "app": lambda: settings.app,
    }

    try:
        backend = settings.storage.backend
    except Exception:
        backend = None
    if backend == "google_sheets":
        checks["google_sheets"] = lambda: settings.google_sheets

    for name, load in checks.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
