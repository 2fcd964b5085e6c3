"""Tests for authentication and the authorization guard.

Covers:
- Registration, login, logout, /me
- authorize(): anonymous, admin-only, owner-of-record checks
- Anonymous callers: 401 on authenticated ops, 403 on admin ops
- Non-admin callers: 403 on every admin op
- Security headers and JSON error pages
"""

import pytest

from sitewizard.decorators import (
    ADMIN,
    ANY_AUTHENTICATED,
    OWNER_OF_RECORD,
    Identity,
    authorize,
    authorize_owner_or_admin,
)
from sitewizard.errors import AuthenticationError, AuthorizationError
from sitewizard.extensions import db
from sitewizard.models.audit import AuditEvent
from sitewizard.models.user import User


def _login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


class _Record:
    def __init__(self, client_email):
        self.client_email = client_email


CLIENT = Identity(user_id="u-1", email="joe@joespizza.com", role="client")
ADMIN_ID = Identity(user_id="u-2", email="admin@sitewizard.local", role="admin")


class TestAuthorize:
    """Unit tests for the capability check."""

    def test_anonymous_is_unauthenticated(self):
        with pytest.raises(AuthenticationError):
            authorize(None, ANY_AUTHENTICATED)

    def test_any_authenticated_passes(self):
        assert authorize(CLIENT, ANY_AUTHENTICATED) is CLIENT

    def test_admin_required(self):
        with pytest.raises(AuthorizationError):
            authorize(CLIENT, ADMIN)
        assert authorize(ADMIN_ID, ADMIN) is ADMIN_ID

    def test_owner_match_is_case_insensitive(self):
        record = _Record("  JOE@JoesPizza.com ")
        assert authorize(CLIENT, OWNER_OF_RECORD, record) is CLIENT

    def test_non_owner_forbidden(self):
        with pytest.raises(AuthorizationError):
            authorize(CLIENT, OWNER_OF_RECORD, _Record("sam@otherbiz.com"))

    def test_owner_check_applies_to_admins_too(self):
        with pytest.raises(AuthorizationError):
            authorize(ADMIN_ID, OWNER_OF_RECORD, _Record("joe@joespizza.com"))

    def test_owner_or_admin(self):
        record = _Record("sam@otherbiz.com")
        assert authorize_owner_or_admin(ADMIN_ID, record) is ADMIN_ID
        with pytest.raises(AuthorizationError):
            authorize_owner_or_admin(CLIENT, record)


class TestAuthRoutes:
    """Tests for /api/auth/*."""

    def test_register_creates_client_and_logs_in(self, client, app):
        resp = client.post("/api/auth/register", json={
            "email": "New@Example.com",
            "password": "securepass123",
            "full_name": "New User",
        })
        assert resp.status_code == 201
        assert resp.get_json()["role"] == "client"

        me = client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.get_json()["email"] == "new@example.com"

        with app.app_context():
            user = User.query.filter_by(email="new@example.com").first()
            assert user is not None
            assert user.is_admin is False
            assert AuditEvent.query.filter_by(action="user.registered").count() == 1

    def test_register_rejects_short_password(self, client):
        resp = client.post("/api/auth/register", json={
            "email": "x@example.com", "password": "short",
        })
        assert resp.status_code == 400
        assert "8 characters" in resp.get_json()["error"]

    def test_register_rejects_duplicate_email(self, client, seed_data):
        resp = client.post("/api/auth/register", json={
            "email": "joe@joespizza.com", "password": "securepass123",
        })
        assert resp.status_code == 400
        assert "already exists" in resp.get_json()["error"]

    def test_login_success(self, client, seed_data):
        resp = _login(client, "joe@joespizza.com", "clientpass")
        assert resp.status_code == 200
        assert resp.get_json()["email"] == "joe@joespizza.com"

    def test_login_wrong_password(self, client, seed_data):
        resp = _login(client, "joe@joespizza.com", "nope")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid email or password."

    def test_login_deactivated_account(self, client, seed_data, app):
        with app.app_context():
            user = db.session.get(User, seed_data["stranger_id"])
            user.is_active = False
            db.session.commit()

        resp = _login(client, "sam@otherbiz.com", "otherpass")
        assert resp.status_code == 401

    def test_me_requires_login(self, client):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Unauthorized"}

    def test_logout(self, client, seed_data):
        _login(client, "joe@joespizza.com", "clientpass")
        resp = client.post("/api/auth/logout")
        assert resp.status_code == 200
        assert client.get("/api/auth/me").status_code == 401


class TestOperationGuards:
    """Role checks at the operation boundary."""

    ADMIN_OPS = [
        ("/api/intakes/deploy-staging", {"intake_id": "x"}),
        ("/api/intakes/mark-live", {"intake_id": "x", "live_url": "https://x.com"}),
        ("/api/revisions/status", {"revision_id": "x", "status": "completed"}),
    ]

    def test_admin_ops_forbidden_for_clients(self, client, seed_data):
        _login(client, "joe@joespizza.com", "clientpass")
        for path, body in self.ADMIN_OPS:
            resp = client.post(path, json=body)
            assert resp.status_code == 403, path
            assert resp.get_json()["error"] == "Forbidden: Admin access required"

    def test_admin_ops_forbidden_for_anonymous(self, client, seed_data):
        for path, body in self.ADMIN_OPS:
            resp = client.post(path, json=body)
            assert resp.status_code == 403, path

    def test_authenticated_ops_require_login(self, client, seed_data):
        resp = client.post("/api/orders", json={
            "cart": [{"price": 10, "quantity": 1}],
            "returnOrigin": "https://shop.example.com",
        })
        assert resp.status_code == 401

        resp = client.post("/api/intakes/approve", json={"intake_id": seed_data["intake_id"]})
        assert resp.status_code == 401


class TestAppShell:
    """JSON error pages and security headers."""

    def test_security_headers(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.headers.get("X-Content-Type-Options") == "nosniff"
        assert resp.headers.get("X-Frame-Options") == "DENY"
        assert resp.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"

    def test_unknown_route_is_json_404(self, client):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Not found"}

    def test_wrong_method_is_json_405(self, client):
        resp = client.delete("/api/orders")
        assert resp.status_code == 405
