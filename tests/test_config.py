# tests/test_config.py
"""
Tests for environment-aware settings validation.
"""

import pytest
from pydantic import ValidationError

from fund_positions.config import Settings


class TestDatabaseConfig:
    """Tests for Settings.validate_database_config."""

    def test_test_environment_defaults_to_memory_sqlite(self):
        settings = Settings(environment="test", database_url=None)

        assert settings.database_url == "sqlite:///:memory:"
        assert settings.is_sqlite
        assert settings.is_test

    def test_development_requires_url(self):
        with pytest.raises(ValidationError, match="DATABASE_URL is required"):
            Settings(environment="development", database_url=None)

    def test_development_warns_on_sqlite(self):
        with pytest.warns(UserWarning, match="SQLite"):
            Settings(environment="development", database_url="sqlite:///ledger.db")

    def test_production_requires_postgres(self):
        with pytest.raises(ValidationError, match="requires PostgreSQL"):
            Settings(environment="production", database_url="sqlite:///ledger.db")

    def test_production_accepts_postgres(self):
        settings = Settings(
            environment="production",
            database_url="postgresql://funds:secret@db:5432/funds",
        )

        assert settings.is_production
        assert not settings.is_sqlite


class TestDefaults:
    """Defaults that other modules rely on."""

    def test_startup_wait_defaults(self):
        settings = Settings(environment="test")

        assert settings.db_connect_retries == 10
        assert settings.db_connect_retry_interval == 2.0

    def test_invalid_log_format_rejected(self):
        with pytest.raises(ValidationError):
            Settings(environment="test", log_format="xml")
