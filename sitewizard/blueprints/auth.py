"""Auth blueprint — /api/auth/*

JSON session login for the dashboard. Anyone may register as a client;
admins are created with ``flask seed-admin``.

Route Map:
  POST /api/auth/register — create a client account and log in
  POST /api/auth/login    — start a session
  POST /api/auth/logout   — end the session
  GET  /api/auth/me       — current user
"""

import logging

from flask import Blueprint, jsonify
from flask_login import login_user, logout_user
from werkzeug.security import check_password_hash, generate_password_hash

from sitewizard import repositories
from sitewizard.decorators import Identity, api_operation, json_body
from sitewizard.errors import AuthenticationError, ValidationError
from sitewizard.extensions import db, limiter
from sitewizard.models.user import User
from sitewizard.services.audit_service import log_event
from sitewizard.services.intake_service import EMAIL_RE

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


# ──────────────────────────────────────────────
# POST /api/auth/register
# ──────────────────────────────────────────────

@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per minute")
@api_operation("Registration failed", capability=None)
def register(identity):
    data = json_body()
    email = (data.get("email") or "").lower().strip()
    password = data.get("password") or ""
    full_name = (data.get("full_name") or "").strip()

    errors = []
    if not email or not EMAIL_RE.match(email):
        errors.append("A valid email is required.")
    if not password:
        errors.append("Password is required.")
    elif len(password) < 8:
        errors.append("Password must be at least 8 characters.")
    if email and repositories.find_user_by_email(email):
        errors.append("An account with this email already exists.")
    if errors:
        raise ValidationError(" ".join(errors))

    user = User(
        email=email,
        password_hash=generate_password_hash(password),
        full_name=full_name or None,
    )
    db.session.add(user)
    db.session.flush()

    log_event(
        "user.registered",
        actor=Identity(user_id=user.id, email=user.email, role=user.role),
        email=email,
    )
    db.session.commit()

    login_user(user)
    return jsonify(user.to_dict()), 201


# ──────────────────────────────────────────────
# POST /api/auth/login
# ──────────────────────────────────────────────

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
@api_operation("Login failed", capability=None)
def login(identity):
    data = json_body()
    email = (data.get("email") or "").lower().strip()
    password = data.get("password") or ""

    user = repositories.find_user_by_email(email)
    if (
        user is None
        or not user.is_active
        or not check_password_hash(user.password_hash, password)
    ):
        logger.info(f"Failed login attempt for {email}")
        raise AuthenticationError("Invalid email or password.")

    login_user(user, remember=bool(data.get("remember")))
    return jsonify(user.to_dict())


# ──────────────────────────────────────────────
# POST /api/auth/logout, GET /api/auth/me
# ──────────────────────────────────────────────

@auth_bp.route("/logout", methods=["POST"])
@api_operation("Logout failed")
def logout(identity):
    logout_user()
    return jsonify({"success": True})


@auth_bp.route("/me")
@api_operation("Failed to load user")
def me(identity):
    user = db.session.get(User, identity.user_id)
    return jsonify(user.to_dict())
