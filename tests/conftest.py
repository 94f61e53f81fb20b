from __future__ import annotations

import os

# Настройки читаются при первом get_settings(): окружение задаётся до импорта приложения
os.environ["APP_ENV"] = "test"
os.environ["IDENTITY_STORE"] = "memory"
os.environ["EVENTS_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["OTP_PROVIDER"] = "fixed"
os.environ["OTP_FIXED_CODE"] = "123456"

import pytest
from fastapi.testclient import TestClient

from estate_identity import memory_store
from estate_identity.main import app

memory_store.activate_identity_memory_store()

OTP = "123456"


@pytest.fixture(autouse=True)
def clean_store():
    memory_store.reset()
    yield
    memory_store.reset()


@pytest.fixture
def client() -> TestClient:
    # без контекст-менеджера lifespan не запускается: хранилище уже in-memory
    return TestClient(app)


@pytest.fixture
def signup_payload() -> dict:
    return {
        "firstName": "John",
        "lastName": "Doe",
        "username": "johndoe",
        "email": "john@example.com",
        "mobileNumber": "+911234567890",
        "password": "password123",
    }


@pytest.fixture
def signup(client):
    def _signup(**overrides) -> dict:
        body = {
            "firstName": "Test",
            "lastName": "User",
            "username": "testuser",
            "email": "test@example.com",
            "mobileNumber": "+911234567890",
            "password": "password123",
        }
        body.update(overrides)
        response = client.post("/api/auth/signup", json=body)
        assert response.status_code == 201, response.json()
        return response.json()["user"]

    return _signup


@pytest.fixture
def verify_email(client):
    def _verify(email: str) -> dict:
        response = client.post(
            "/api/auth/login", json={"type": "email-otp", "email": email, "otp": OTP}
        )
        assert response.status_code == 200, response.json()
        return response.json()["user"]

    return _verify


@pytest.fixture
def verify_mobile(client):
    def _verify(mobile: str) -> dict:
        response = client.post(
            "/api/auth/login", json={"type": "mobile-otp", "mobile": mobile, "otp": OTP}
        )
        assert response.status_code == 200, response.json()
        return response.json()["user"]

    return _verify
