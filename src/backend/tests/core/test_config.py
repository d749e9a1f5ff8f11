"""
Tests for application settings.
"""

import pytest
from pydantic import ValidationError


@pytest.mark.unit
class TestSettings:
    """Test Settings loading and derived properties."""

    def test_ip_hash_salt_is_required(self, monkeypatch) -> None:
        from core.config import Settings

        monkeypatch.setenv("IP_HASH_SALT", "")

        with pytest.raises(ValidationError, match="IP_HASH_SALT must be set"):
            Settings(_env_file=None)

    def test_postgres_password_is_required(self, monkeypatch) -> None:
        from core.config import Settings

        monkeypatch.setenv("POSTGRES_PASSWORD", "")

        with pytest.raises(ValidationError, match="POSTGRES_PASSWORD must be set"):
            Settings(_env_file=None)

    def test_postgres_url(self, monkeypatch) -> None:
        from core.config import Settings

        monkeypatch.setenv("POSTGRES_SSL", "true")
        monkeypatch.setenv("POSTGRES_HOST", "db.internal")

        settings = Settings(_env_file=None)

        assert settings.POSTGRES_URL.startswith("postgresql+asyncpg://")
        assert "@db.internal:5432/" in settings.POSTGRES_URL
        assert settings.POSTGRES_URL.endswith("?ssl=require")

    def test_comma_separated_lists(self, monkeypatch) -> None:
        from core.config import Settings

        monkeypatch.setenv("TRUSTED_PROXIES", "10.0.0.0/8, 192.168.1.1 ,")
        monkeypatch.setenv("CONTENT_DENYLIST_EXTRA", "foo,bar")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test,http://b.test")

        settings = Settings(_env_file=None)

        assert settings.trusted_proxies_list == ["10.0.0.0/8", "192.168.1.1"]
        assert settings.denylist_extra_list == ["foo", "bar"]
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_cors_origins_json(self, monkeypatch) -> None:
        from core.config import Settings

        monkeypatch.setenv("CORS_ORIGINS", '["https://hottakes.test"]')

        assert Settings(_env_file=None).cors_origins_list == ["https://hottakes.test"]

    def test_defaults(self) -> None:
        from core.config import Settings

        settings = Settings(_env_file=None)

        assert settings.AUTO_HIDE_REPORT_THRESHOLD == 10
        assert settings.CONTROVERSY_MIN_VOTES == 50
        assert settings.RATE_LIMIT_BACKEND == "memory"
