"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from wallet_ledger.config import (
    LedgerSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for the pydantic-settings classes."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("WALLET_CONFIRMATION_TIMEOUT_SECONDS", raising=False)
        ledger = LedgerSettings()
        assert ledger.confirmation_timeout_seconds == 30
        assert ledger.default_funding_category == "Funding"
        assert ledger.goal_category == "Savings Goal"
        assert StorageSettings().key_prefix == "wallet_"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WALLET_CONFIRMATION_TIMEOUT_SECONDS", "5")
        monkeypatch.setenv("WALLET_STORAGE_DATA_DIR", str(tmp_path))
        settings = get_settings()
        assert settings.ledger.confirmation_timeout_seconds == 5
        assert settings.storage.data_dir == Path(tmp_path)

    def test_key_prefix_cannot_be_a_path(self):
        with pytest.raises(ValidationError):
            StorageSettings(key_prefix="../evil_")

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_validate_all_settings_reports_bad_values(self, monkeypatch):
        assert validate_all_settings() == {"storage": True, "ledger": True}

        monkeypatch.setenv("WALLET_STORAGE_RETRY_ATTEMPTS", "50")
        results = validate_all_settings()
        assert results["storage"] is False
        assert "storage_error" in results
        assert results["ledger"] is True
