"""Tests for centralized Settings and the get_settings cache."""

from __future__ import annotations

from pathlib import Path

import pytest

from product_orders.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Clear get_settings lru_cache before each test."""
    get_settings.cache_clear()


class TestSettingsDefaults:
    def test_settings_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is False
        assert s.http_port == 8000
        assert s.database_path == Path("data/product_orders.db")
        assert s.notifications_enabled is True
        assert s.sentry_dsn.get_secret_value() == ""

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRODUCTION", "true")
        monkeypatch.setenv("HTTP_PORT", "9090")
        monkeypatch.setenv("DATABASE_PATH", "/var/lib/orders.db")
        monkeypatch.setenv("NOTIFICATIONS_ENABLED", "false")
        monkeypatch.setenv("SENTRY_DSN", "https://key@o0.ingest.sentry.io/1")

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is True
        assert s.http_port == 9090
        assert s.database_path == Path("/var/lib/orders.db")
        assert s.notifications_enabled is False
        assert s.sentry_dsn.get_secret_value() == "https://key@o0.ingest.sentry.io/1"

    def test_secret_not_in_repr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SENTRY_DSN", "https://secret-key@o0.ingest.sentry.io/1")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert "secret-key" not in repr(s)


class TestGetSettings:
    def test_get_settings_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Calling get_settings() twice returns the exact same object."""
        monkeypatch.delenv("PRODUCTION", raising=False)

        assert get_settings() is get_settings()

    def test_invalid_environment_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HTTP_PORT", "not-a-port")

        with pytest.raises(SystemExit) as exc_info:
            get_settings()

        assert exc_info.value.code == 1
