from __future__ import annotations

import pytest

from estate_identity.db.repositories import user_repo

CHECK_UNIQUE = "/api/auth/check-unique"


@pytest.mark.parametrize(
    "body",
    [{}, {"field": "email"}, {"value": "a@example.com"}, {"field": "username", "value": "  "}],
)
def test_check_unique_requires_field_and_value(client, body):
    response = client.post(CHECK_UNIQUE, json=body)

    assert response.status_code == 400
    assert response.json() == {"message": "Field and value are required"}


def test_check_unique_rejects_unknown_field(client):
    response = client.post(CHECK_UNIQUE, json={"field": "phone", "value": "+911234567890"})

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid field"}


@pytest.mark.parametrize("field", [1, False, ["email"]])
def test_check_unique_rejects_non_string_field(client, field):
    response = client.post(CHECK_UNIQUE, json={"field": field, "value": "johndoe"})

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid field"}


@pytest.mark.parametrize("value", ["not-an-email", "john..doe@example.com", "john@exa_mple.com"])
def test_check_unique_invalid_email_format(client, value):
    response = client.post(CHECK_UNIQUE, json={"field": "email", "value": value})

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid email format", "isUnique": False}


@pytest.mark.parametrize("value", ["911234567890", "+91123", "+91 abc"])
def test_check_unique_invalid_mobile_format(client, value):
    response = client.post(CHECK_UNIQUE, json={"field": "mobile", "value": value})

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid mobile number format", "isUnique": False}


def test_free_username_is_unique(client):
    response = client.post(CHECK_UNIQUE, json={"field": "username", "value": "newcomer"})

    assert response.status_code == 200
    assert response.json() == {"isUnique": True}


def test_unverified_username_still_blocks(client, signup):
    signup(username="johndoe")

    response = client.post(CHECK_UNIQUE, json={"field": "username", "value": "johndoe"})

    assert response.json() == {"isUnique": False}


def test_username_is_case_sensitive(client, signup):
    signup(username="johndoe")

    response = client.post(CHECK_UNIQUE, json={"field": "username", "value": "JohnDoe"})

    assert response.json() == {"isUnique": True}


def test_email_unique_only_against_verified_rows(client, signup, verify_email):
    signup(username="existing", email="existing@example.com")
    body = {"field": "email", "value": "existing@example.com"}

    unverified = client.post(CHECK_UNIQUE, json=body)
    verify_email("existing@example.com")
    verified = client.post(CHECK_UNIQUE, json=body)

    assert unverified.json() == {"isUnique": True}
    assert verified.json() == {"isUnique": False}


def test_email_value_is_trimmed(client, signup, verify_email):
    signup(email="existing@example.com")
    verify_email("existing@example.com")

    response = client.post(CHECK_UNIQUE, json={"field": "email", "value": "  existing@example.com "})

    assert response.json() == {"isUnique": False}


def test_mobile_unique_only_against_verified_rows(client, signup, verify_mobile):
    signup(mobileNumber="+911234567890")
    body = {"field": "mobile", "value": "+911234567890"}

    unverified = client.post(CHECK_UNIQUE, json=body)
    verify_mobile("+911234567890")
    verified = client.post(CHECK_UNIQUE, json=body)

    assert unverified.json() == {"isUnique": True}
    assert verified.json() == {"isUnique": False}


def test_check_unique_store_failure_echoes_error(client, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("relation users does not exist")

    monkeypatch.setattr(user_repo, "find_user", broken)

    response = client.post(CHECK_UNIQUE, json={"field": "username", "value": "johndoe"})

    assert response.status_code == 500
    assert response.json() == {
        "message": "Internal server error",
        "error": "relation users does not exist",
    }
