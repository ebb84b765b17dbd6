# tests/routes/test_auth_routes.py
"""
Tests for authentication routes.

Covers registration per role, login with and without a role, the profile
endpoints and token verification.
"""

from fastapi.testclient import TestClient
import pytest

from servicehub.auth import create_access_token, verify_password
from servicehub.models.user import User

CUSTOMER_PAYLOAD = {
    "name": "New Customer",
    "email": "New.Customer@Example.com",
    "password": "Secret123",
    "phone_number": "5551112222",
    "role": "customer",
    "address": "1 Main St",
    "city": "Springfield",
    "pincode": "560002",
}

PROVIDER_PAYLOAD = {
    "name": "New Provider",
    "email": "new.provider@example.com",
    "password": "Secret123",
    "phone_number": "5553334444",
    "role": "provider",
    "service_type": "Electrical",
    "location": "Downtown",
    "hourly_rate": 30,
    "skills": "wiring, lighting ,",
}


class TestRegister:
    def test_register_customer(self, client: TestClient, db):
        response = client.post("/api/v1/auth/register", json=CUSTOMER_PAYLOAD)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User registered successfully"
        assert body["token"]
        assert body["user"]["email"] == "new.customer@example.com"
        assert body["user"]["role"] == "customer"
        assert "hashed_password" not in body["user"]
        assert "password" not in body["user"]

        user = db.query(User).filter(User.email == "new.customer@example.com").first()
        assert user is not None
        assert verify_password("Secret123", user.hashed_password)

    def test_register_provider_splits_skills(self, client: TestClient):
        response = client.post("/api/v1/auth/register", json=PROVIDER_PAYLOAD)

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["service_type"] == "Electrical"
        assert user["skills"] == ["wiring", "lighting"]
        assert user["hourly_rate"] == 30.0
        assert user["rating"] == 0.0

    def test_register_duplicate_email(self, client: TestClient, test_customer: User):
        payload = {**CUSTOMER_PAYLOAD, "email": test_customer.email}

        response = client.post("/api/v1/auth/register", json=payload)

        assert response.status_code == 409
        assert response.json()["detail"] == "User with this email already exists"

    def test_register_customer_missing_address(self, client: TestClient):
        payload = {k: v for k, v in CUSTOMER_PAYLOAD.items() if k != "address"}

        response = client.post("/api/v1/auth/register", json=payload)

        assert response.status_code == 400
        assert "address" in response.json()["detail"]

    def test_register_provider_missing_hourly_rate(self, client: TestClient):
        payload = {k: v for k, v in PROVIDER_PAYLOAD.items() if k != "hourly_rate"}

        response = client.post("/api/v1/auth/register", json=payload)

        assert response.status_code == 400
        assert "hourly_rate" in response.json()["detail"]

    def test_register_admin_role_rejected(self, client: TestClient):
        payload = {**CUSTOMER_PAYLOAD, "role": "admin"}

        response = client.post("/api/v1/auth/register", json=payload)

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    @pytest.mark.parametrize("password", ["", "12345"])
    def test_register_short_password(self, client: TestClient, password: str):
        payload = {**CUSTOMER_PAYLOAD, "password": password}

        response = client.post("/api/v1/auth/register", json=payload)

        assert response.status_code == 400


class TestLogin:
    def test_login_success(self, client: TestClient, test_customer: User, test_password: str):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": test_customer.email.upper(), "password": test_password},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["user"]["id"] == test_customer.id

        verify = client.get(
            "/api/v1/auth/verify", headers={"Authorization": f"Bearer {body['token']}"}
        )
        assert verify.status_code == 200

    def test_login_wrong_password(self, client: TestClient, test_customer: User):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": test_customer.email, "password": "WrongPassword!"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_login_unknown_email(self, client: TestClient, test_password: str):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": test_password},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_login_role_mismatch(self, client: TestClient, test_customer: User, test_password: str):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": test_customer.email, "password": test_password, "role": "provider"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_login_matching_role(self, client: TestClient, test_provider: User, test_password: str):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": test_provider.email, "password": test_password, "role": "provider"},
        )

        assert response.status_code == 200

    def test_login_deactivated(self, client: TestClient, db, test_customer: User, test_password: str):
        test_customer.is_active = False
        db.commit()

        response = client.post(
            "/api/v1/auth/login",
            json={"email": test_customer.email, "password": test_password},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Account is deactivated"


class TestProfile:
    def test_profile_requires_auth(self, client: TestClient):
        response = client.get("/api/v1/auth/profile")

        assert response.status_code == 401
        assert response.headers.get("www-authenticate") == "Bearer"

    def test_profile_invalid_token(self, client: TestClient):
        response = client.get("/api/v1/auth/profile", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401

    def test_profile_token_for_missing_user(self, client: TestClient, db):
        token = create_access_token(data={"sub": "ghost@example.com"})

        response = client.get("/api/v1/auth/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_get_profile(self, client: TestClient, test_customer: User, auth_headers_customer):
        response = client.get("/api/v1/auth/profile", headers=auth_headers_customer)

        assert response.status_code == 200
        assert response.json()["email"] == test_customer.email

    def test_update_customer_profile(self, client: TestClient, auth_headers_customer):
        response = client.put(
            "/api/v1/auth/profile",
            json={"name": "Renamed", "city": "Capital City", "hourly_rate": 99},
            headers=auth_headers_customer,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Renamed"
        assert body["city"] == "Capital City"
        # Provider-only fields are ignored for customers
        assert body["hourly_rate"] is None

    def test_update_profile_email_conflict(
        self, client: TestClient, test_provider: User, auth_headers_customer
    ):
        response = client.put(
            "/api/v1/auth/profile",
            json={"email": test_provider.email},
            headers=auth_headers_customer,
        )

        assert response.status_code == 409

    def test_token_survives_email_change(
        self, client: TestClient, test_customer: User, auth_headers_customer
    ):
        updated = client.put(
            "/api/v1/auth/profile",
            json={"email": "renamed.customer@example.com"},
            headers=auth_headers_customer,
        )
        response = client.get("/api/v1/auth/profile", headers=auth_headers_customer)

        assert updated.status_code == 200
        assert response.status_code == 200
        assert response.json()["id"] == test_customer.id
        assert response.json()["email"] == "renamed.customer@example.com"

    def test_token_with_only_email_claim(self, client: TestClient, test_customer: User):
        token = create_access_token(data={"sub": test_customer.email})

        response = client.get("/api/v1/auth/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["id"] == test_customer.id

    def test_token_for_deleted_user_id(self, client: TestClient, test_customer: User):
        # user_id wins over sub, so a stale id is rejected even with a valid email
        token = create_access_token(
            data={"sub": test_customer.email, "user_id": "01HZZZZZZZZZZZZZZZZZZZZZZZ"}
        )

        response = client.get("/api/v1/auth/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_update_provider_profile(self, client: TestClient, auth_headers_provider):
        response = client.put(
            "/api/v1/auth/profile",
            json={"hourly_rate": 55, "skills": ["drains"], "experience": 8},
            headers=auth_headers_provider,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["hourly_rate"] == 55.0
        assert body["skills"] == ["drains"]
        assert body["experience"] == 8

    def test_logout(self, client: TestClient, auth_headers_customer):
        response = client.post("/api/v1/auth/logout", headers=auth_headers_customer)

        assert response.status_code == 200
        assert response.json() == {"message": "Logout successful"}

    def test_verify(self, client: TestClient, test_provider: User, auth_headers_provider):
        response = client.get("/api/v1/auth/verify", headers=auth_headers_provider)

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["user"]["id"] == test_provider.id
