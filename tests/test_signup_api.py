from __future__ import annotations

import pytest

from estate_identity.db.repositories import user_repo

SIGNUP = "/api/auth/signup"


def test_signup_creates_buyer_without_password(client, signup_payload):
    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    user = body["user"]
    assert user["role"] == "BUYER"
    assert user["companyName"] is None
    assert user["name"] == "John Doe"
    assert user["username"] == "johndoe"
    assert user["phone"] == "+911234567890"
    assert user["emailVerifiedAt"] is None
    assert user["mobileVerifiedAt"] is None
    assert user["image"] is None
    assert "password" not in user
    assert "passwordHash" not in user
    assert "password_hash" not in user


def test_signup_agent_keeps_company_and_image(client, signup_payload):
    signup_payload.update(isAgent=True, companyName="Acme Realty", imageLink="https://cdn.example.com/a.png")

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["role"] == "AGENT"
    assert user["companyName"] == "Acme Realty"
    assert user["image"] == "https://cdn.example.com/a.png"


def test_signup_buyer_drops_company_name(client, signup_payload):
    signup_payload.update(isAgent=False, companyName="Ignored Inc")

    response = client.post(SIGNUP, json=signup_payload)

    assert response.json()["user"]["companyName"] is None


@pytest.mark.parametrize("company", ["", "   ", None])
def test_signup_agent_requires_company_name(client, signup_payload, company):
    signup_payload.update(isAgent=True, companyName=company)

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 400
    assert response.json() == {"message": "Company name is required for agents"}


@pytest.mark.parametrize(
    "field", ["firstName", "lastName", "username", "email", "mobileNumber", "password"]
)
def test_signup_missing_required_field(client, signup_payload, field):
    del signup_payload[field]

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 400
    assert response.json() == {"message": "All required fields must be provided"}


def test_signup_blank_required_field(client, signup_payload):
    signup_payload["lastName"] = "   "

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 400
    assert response.json()["message"] == "All required fields must be provided"


def test_signup_short_username(client, signup_payload):
    signup_payload["username"] = "ab"

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 400
    assert response.json() == {"message": "Username must be at least 3 characters long"}


def test_signup_username_length_counted_after_trim(client, signup_payload):
    signup_payload["username"] = "  ab  "

    response = client.post(SIGNUP, json=signup_payload)

    assert response.json()["message"] == "Username must be at least 3 characters long"


@pytest.mark.parametrize(
    "email",
    [
        "plainaddress",
        "a@b",
        "a@@b.com",
        "@example.com",
        "a b@example.com",
        "john..doe@example.com",
        ".john@example.com",
        "jo<hn>@example.com",
        "john@exa_mple.com",
        "john@-example-.com",
    ],
)
def test_signup_invalid_email(client, signup_payload, email):
    signup_payload["email"] = email

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid email format"}


def test_signup_stores_trimmed_email(client, signup_payload):
    signup_payload["email"] = "  john@example.com  "

    response = client.post(SIGNUP, json=signup_payload)

    assert response.json()["user"]["email"] == "john@example.com"


@pytest.mark.parametrize("mobile", ["+91123", "+0000000000", "1234567890", "+1234567890123456"])
def test_signup_invalid_mobile(client, signup_payload, mobile):
    signup_payload["mobileNumber"] = mobile

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 400
    assert response.json() == {"message": "Please enter a valid mobile number"}


def test_signup_keeps_phone_formatting(client, signup_payload):
    signup_payload["mobileNumber"] = "+91 (123) 456-7890"

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 201
    assert response.json()["user"]["phone"] == "+91 (123) 456-7890"


def test_signup_rejects_existing_username_even_unverified(client, signup, signup_payload):
    signup(username="johndoe", email="other@example.com")

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 409
    assert response.json()["message"] == "Username already exists"


def test_signup_allows_email_held_by_unverified_row(client, signup, signup_payload):
    first = signup(username="first", email="john@example.com")

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 201
    assert response.json()["user"]["id"] != first["id"]


def test_signup_rejects_email_held_by_verified_row(client, signup, verify_email, signup_payload):
    signup(username="first", email="john@example.com", mobileNumber="+15550001111")
    verify_email("john@example.com")

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 409
    assert response.json()["message"] == "Email already exists"


def test_signup_rejects_mobile_held_by_verified_row(client, signup, verify_mobile, signup_payload):
    signup(username="first", email="first@example.com", mobileNumber="+911234567890")
    verify_mobile("+911234567890")

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 409
    assert response.json()["message"] == "Mobile number already exists"


def test_signup_conflict_checks_run_in_order(client, signup, verify_email, signup_payload):
    signup(username="johndoe", email="john@example.com")
    verify_email("john@example.com")

    response = client.post(SIGNUP, json=signup_payload)

    assert response.json()["message"] == "Username already exists"


def test_signup_store_failure_is_internal_error(client, signup_payload, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(user_repo, "create_user", broken)

    response = client.post(SIGNUP, json=signup_payload)

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}


@pytest.mark.parametrize("method", ["get", "put", "delete", "patch"])
def test_signup_rejects_other_methods(client, method):
    response = getattr(client, method)(SIGNUP)

    assert response.status_code == 405
    assert response.json() == {"message": "Method not allowed"}


def test_signup_rejects_non_json_body(client):
    response = client.post(SIGNUP, content="not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid request body"}
