"""Integration tests for authentication flow

Tests cover:
- Login endpoint with valid/invalid credentials
- Business scoping of logins (same email in two businesses)
- JWT token issuance and use against protected endpoints
- Audit entries for successful and failed logins
- Disabled accounts
"""

import os
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from auth.jwt import decode_token
from conftest import TEST_PASSWORD, create_user, token_for
from models import AuditLog, Business, User


pytestmark = pytest.mark.integration


def login(client: TestClient, email: str, password: str = TEST_PASSWORD, business_slug: str = "acme-brand"):
    return client.post(
        "/api/v1/auth/login",
        json={"business_slug": business_slug, "email": email, "password": password},
    )


class TestLoginEndpoint:
    """Test POST /api/v1/auth/login"""

    def test_login_with_valid_credentials(self, client: TestClient, admin_user: User):
        response = login(client, "admin@acme-brand.com")

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 3600

        payload = decode_token(data["access_token"])
        assert payload["sub"] == str(admin_user.id)
        assert payload["business_id"] == str(admin_user.business_id)
        assert payload["role"] == "ADMIN"

    def test_login_sets_last_login(self, client: TestClient, db_session: Session, admin_user: User):
        assert admin_user.last_login_at is None

        login(client, "admin@acme-brand.com")

        db_session.refresh(admin_user)
        assert admin_user.last_login_at is not None

    def test_login_case_insensitive_email_and_slug(self, client: TestClient, admin_user: User):
        response = login(client, "ADMIN@Acme-Brand.com", business_slug="ACME-BRAND")
        assert response.status_code == 200

    def test_login_with_wrong_password(self, client: TestClient, admin_user: User):
        response = login(client, "admin@acme-brand.com", password="WrongP@ss456")

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "UNAUTHORIZED"
        assert body["message"] == "Invalid email or password"

    def test_unknown_user_gets_same_message(self, client: TestClient, business: Business):
        response = login(client, "nobody@acme-brand.com")

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    def test_unknown_business(self, client: TestClient, admin_user: User, db_session: Session):
        response = login(client, "admin@acme-brand.com", business_slug="no-such-brand")

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"
        assert db_session.query(AuditLog).count() == 0

    def test_inactive_business_cannot_log_in(self, client: TestClient, db_session: Session, admin_user: User, business: Business):
        business.is_active = False
        db_session.commit()

        assert login(client, "admin@acme-brand.com").status_code == 401

    def test_login_with_disabled_user(self, client: TestClient, db_session: Session, business: Business):
        create_user(db_session, business, "disabled@acme-brand.com", "EDITOR", status="DISABLED")

        response = login(client, "disabled@acme-brand.com")

        assert response.status_code == 401
        assert response.json()["message"] == "Account is disabled"

    def test_user_cannot_log_in_to_another_business(self, client: TestClient, admin_user: User, other_business: Business):
        response = login(client, "admin@acme-brand.com", business_slug="globex")
        assert response.status_code == 401

    def test_same_email_in_two_businesses(self, client: TestClient, db_session: Session, admin_user: User, other_business: Business):
        other = create_user(db_session, other_business, "admin@acme-brand.com", "VIEWER")

        response = login(client, "admin@acme-brand.com", business_slug="globex")

        assert response.status_code == 200
        payload = decode_token(response.json()["access_token"])
        assert payload["sub"] == str(other.id)
        assert payload["business_id"] == str(other_business.id)

    @pytest.mark.parametrize("body", [
        {"email": "admin@acme-brand.com", "password": TEST_PASSWORD},
        {"business_slug": "acme-brand", "email": "not-an-email", "password": TEST_PASSWORD},
        {"business_slug": "acme-brand", "email": "admin@acme-brand.com", "password": ""},
    ])
    def test_malformed_login_requests(self, client: TestClient, body):
        response = client.post("/api/v1/auth/login", json=body)

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestLoginAudit:
    """Login attempts are written to audit_log"""

    def test_successful_login_is_audited(self, client: TestClient, db_session: Session, admin_user: User):
        login(client, "admin@acme-brand.com")

        entry = db_session.query(AuditLog).filter(AuditLog.action == "LOGIN_SUCCESS").one()
        assert entry.business_id == admin_user.business_id
        assert entry.actor_id == admin_user.id
        assert entry.metadata_json == {"email": "admin@acme-brand.com"}

    def test_failed_login_is_audited(self, client: TestClient, db_session: Session, admin_user: User):
        login(client, "admin@acme-brand.com", password="WrongP@ss456")

        entry = db_session.query(AuditLog).filter(AuditLog.action == "LOGIN_FAILED").one()
        assert entry.business_id == admin_user.business_id
        assert entry.actor_id is None
        assert entry.metadata_json["reason"] == "invalid_credentials"

    def test_disabled_login_is_audited(self, client: TestClient, db_session: Session, business: Business):
        user = create_user(db_session, business, "disabled@acme-brand.com", "EDITOR", status="DISABLED")

        login(client, "disabled@acme-brand.com")

        entry = db_session.query(AuditLog).filter(AuditLog.action == "LOGIN_FAILED").one()
        assert entry.actor_id == user.id
        assert entry.metadata_json["reason"] == "account_disabled"


class TestAuthenticatedRequests:
    """Test GET /api/v1/auth/me with issued tokens"""

    def test_token_from_login_authenticates(self, client: TestClient, admin_user: User):
        token = login(client, "admin@acme-brand.com").json()["access_token"]

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["id"] == str(admin_user.id)
        assert user["email"] == "admin@acme-brand.com"
        assert user["role"] == "ADMIN"
        assert "password_hash" not in user

    def test_me_without_token(self, client: TestClient):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "UNAUTHORIZED"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_expired_token(self, client: TestClient, admin_user: User):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "sub": str(admin_user.id),
                "business_id": str(admin_user.business_id),
                "role": "ADMIN",
                "email": admin_user.email,
                "iat": int(past.timestamp()),
                "exp": int((past + timedelta(hours=1)).timestamp()),
                "iss": "ordira-api",
                "aud": "ordira-app",
            },
            os.environ["JWT_SECRET"],
            algorithm="HS256",
        )

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"] == "TOKEN_EXPIRED"

    def test_disabled_user_token_is_rejected(self, client: TestClient, db_session: Session, admin_user: User):
        token = token_for(admin_user)
        admin_user.status = "DISABLED"
        db_session.commit()

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["error"] == "FORBIDDEN"

    def test_deleted_user_token_is_rejected(self, client: TestClient, db_session: Session, editor_user: User):
        token = token_for(editor_user)
        db_session.delete(editor_user)
        db_session.commit()

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "User not found"
