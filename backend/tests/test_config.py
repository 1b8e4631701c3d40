"""Settings parsing from the environment."""
from __future__ import annotations

import pytest

from app.core.config import Settings


def test_cors_lists_accept_comma_separated_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CORS_ALLOWLIST", "https://a.example, https://b.example")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://c.example,,")

    config = Settings()  # type: ignore[call-arg]

    assert config.cors_allowlist == ["https://a.example", "https://b.example"]
    assert config.cors_allow_origins == ["https://c.example"]


def test_cors_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CORS_ALLOWLIST", raising=False)
    monkeypatch.delenv("CORS_ALLOW_ORIGINS", raising=False)

    config = Settings()  # type: ignore[call-arg]

    assert config.cors_allowlist == ["http://localhost:3000"]
    assert "http://localhost:5173" in config.cors_allow_origins


def test_jwt_secret_falls_back_to_secret_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SECRET_KEY", "only-secret")
    monkeypatch.setenv("JWT_SECRET_KEY", "")

    config = Settings()  # type: ignore[call-arg]

    assert config.jwt_secret_key == "only-secret"
