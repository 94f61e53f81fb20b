from __future__ import annotations

import pydantic
import pytest

from estate_identity.config import IdentitySettings


def test_health_reports_memory_store(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["store"] == "memory"


def test_unknown_route_uses_message_body(client):
    response = client.post("/api/auth/logout", json={})

    assert response.status_code == 404
    assert "message" in response.json()


def test_error_bodies_never_carry_tracebacks(client, monkeypatch):
    from estate_identity.db.repositories import user_repo

    async def broken(*args, **kwargs):
        raise RuntimeError("secret dsn postgresql://user:pw@db")

    monkeypatch.setattr(user_repo, "find_user", broken)

    response = client.post("/api/auth/check-user", json={"type": "email", "value": "a@example.com"})

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}


def test_production_refuses_fixed_otp():
    with pytest.raises(pydantic.ValidationError, match="OTP_PROVIDER=fixed"):
        IdentitySettings(app_env="production", otp_provider="fixed")


def test_msg91_requires_auth_key():
    with pytest.raises(pydantic.ValidationError, match="MSG91_AUTH_KEY"):
        IdentitySettings(otp_provider="msg91", msg91_auth_key="")


def test_cors_origins_parsed_from_json():
    settings = IdentitySettings(cors_origins='["https://estate.example"]')

    assert settings.cors_origins == ["https://estate.example"]


def test_default_bcrypt_cost_is_twelve(monkeypatch):
    monkeypatch.delenv("BCRYPT_ROUNDS", raising=False)

    assert IdentitySettings(_env_file=None).bcrypt_rounds == 12
