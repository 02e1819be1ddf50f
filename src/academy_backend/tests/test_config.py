"""
Tests for environment-driven settings.
"""

from academy_backend.settings import BackendSettings, settings


class TestSettings:

    def test_singleton(self):
        assert BackendSettings() is settings

    def test_defaults(self, monkeypatch):
        for name in ["CONFLICT_RETRY_ATTEMPTS", "AUTO_ENROLL_ON_COMPLETION", "IDENTITY_HEADER", "PAYMENT_WEBHOOK_SECRET", "DEBUG_MODE"]:
            monkeypatch.delenv(name, raising=False)

        settings.reload()

        assert settings.CONFLICT_RETRY_ATTEMPTS == 3
        assert settings.AUTO_ENROLL_ON_COMPLETION is True
        assert settings.IDENTITY_HEADER == "X-User-Id"
        assert settings.PAYMENT_WEBHOOK_SECRET is None
        assert settings.is_production is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CONFLICT_RETRY_ATTEMPTS", "0")
        monkeypatch.setenv("AUTO_ENROLL_ON_COMPLETION", "false")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
        monkeypatch.setenv("DEBUG_MODE", "production")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings.reload()

        assert settings.CONFLICT_RETRY_ATTEMPTS == 1
        assert settings.AUTO_ENROLL_ON_COMPLETION is False
        assert settings.CORS_ORIGINS == ["https://a.example", "https://b.example"]
        assert settings.is_production is True
        assert settings.LOG_LEVEL == "DEBUG"

    def test_postgres_url_from_parts(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("POSTGRES_URL", "db:5432")
        monkeypatch.setenv("POSTGRES_USER", "academy")
        monkeypatch.setenv("POSTGRES_PASSWORD", "secret")
        monkeypatch.setenv("POSTGRES_DB", "academy")

        settings.reload()

        assert settings.DATABASE_URL == "postgresql://academy:secret@db:5432/academy"
