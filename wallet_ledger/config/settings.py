"""
Configuration Management for the Wallet Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The ledger has two knobs that matter operationally: where collections are
stored, and how long a pending confirmation may hold a tentative mutation
before it is rolled back.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Collection storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WALLET_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path(".wallet"),
        description="Directory holding one JSON file per collection"
    )
    key_prefix: str = Field(
        default="wallet_",
        description="Prefix for collection keys (matches the localStorage keys)"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for each storage read or write"
    )

    @field_validator("key_prefix")
    @classmethod
    def validate_key_prefix(cls, v: str) -> str:
        """Keys become file names, so no path separators."""
        if "/" in v or "\\" in v:
            raise ValueError("key_prefix must not contain path separators")
        return v


class LedgerSettings(BaseSettings):
    """
    Ledger behaviour settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="WALLET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Confirmation step
    confirmation_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="How long a pending confirmation may run before rollback"
    )
    confirmation_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        le=60,
        description="Simulated processing delay of the PIN confirmation"
    )

    # Categories stamped on generated transactions
    default_funding_category: str = Field(
        default="Funding",
        description="Category for wallet funding when none is given"
    )
    default_transfer_category: str = Field(
        default="Transfer",
        description="Category for transfers when none is given"
    )
    goal_category: str = Field(
        default="Savings Goal",
        description="Category for goal allocations and withdrawals"
    )

    # Audit
    max_audit_events: int = Field(
        default=1000,
        ge=10,
        description="Audit log entries kept in storage (oldest dropped first)"
    )

    currency_code: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="ISO currency code used when formatting amounts"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()


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
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    return results
