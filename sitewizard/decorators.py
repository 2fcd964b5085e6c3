"""
Access control and the JSON operation boundary.

- Identity: the caller, resolved once per request from Flask-Login and
  passed explicitly into every service call.
- authorize(): the capability check (any-authenticated, owner-of-record,
  admin). Pure; raises AuthenticationError / AuthorizationError.
- api_operation: route decorator that resolves the identity, applies the
  role-level check, and maps every failure to a JSON error body.
"""

import logging
from dataclasses import dataclass
from functools import wraps

from flask import jsonify, request
from flask_login import current_user

from sitewizard.errors import (
    AuthenticationError,
    AuthorizationError,
    ServiceError,
    UnexpectedError,
    ValidationError,
)
from sitewizard.extensions import db

logger = logging.getLogger(__name__)

ANY_AUTHENTICATED = "any-authenticated"
OWNER_OF_RECORD = "owner-of-record"
ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str
    role: str

    @property
    def is_admin(self):
        return self.role == "admin"


def resolve_identity():
    """Return the Identity of the logged-in user, or None."""
    if not current_user or not current_user.is_authenticated:
        return None
    return Identity(
        user_id=current_user.id,
        email=current_user.email,
        role=current_user.role,
    )


def emails_match(a, b):
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


def authorize(identity, capability, record=None):
    """Check that ``identity`` holds ``capability``.

    Args:
        identity: Identity or None.
        capability: ANY_AUTHENTICATED, OWNER_OF_RECORD or ADMIN.
        record: For OWNER_OF_RECORD, any object with a ``client_email``.

    Returns:
        The identity, unchanged.

    Raises:
        AuthenticationError: No identity.
        AuthorizationError: Not an admin, or not the record's owner.
    """
    if identity is None:
        raise AuthenticationError("Unauthorized")

    if capability == ADMIN:
        if not identity.is_admin:
            raise AuthorizationError("Forbidden: Admin access required")
    elif capability == OWNER_OF_RECORD:
        if record is None or not emails_match(identity.email, record.client_email):
            raise AuthorizationError("Not authorized to access this record")

    return identity


def authorize_owner_or_admin(identity, record):
    """Admins may act on any record; everyone else must own it."""
    if identity is not None and identity.is_admin:
        return identity
    return authorize(identity, OWNER_OF_RECORD, record)


def json_body():
    """Parsed JSON object from the request, or {} when the body is empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _error_response(error, failure_message, identity):
    """Build the JSON failure body.

    Server-side failures carry the operation's failure message; the
    collaborator's own text goes in "details" for admin callers only.
    """
    if error.status_code >= 500:
        body = {"error": failure_message}
        details = error.details or error.message
        if details and identity is not None and identity.is_admin:
            body["details"] = details
        return jsonify(body), error.status_code
    return jsonify(error.to_dict()), error.status_code


def api_operation(failure_message, capability=ANY_AUTHENTICATED):
    """Wrap a JSON route as one operation.

    The wrapped view receives ``identity`` as a keyword argument. Role-level
    checks run here before the view body; ownership checks need the record,
    so OWNER_OF_RECORD views only require a login here and call authorize()
    once the record is loaded.

    Admin-only operations answer 403 (not 401) to anonymous callers.
    """

    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            identity = resolve_identity()
            try:
                if capability == ADMIN:
                    if identity is None or not identity.is_admin:
                        raise AuthorizationError("Forbidden: Admin access required")
                elif capability is not None:
                    authorize(identity, ANY_AUTHENTICATED)
                return f(*args, identity=identity, **kwargs)
            except ServiceError as e:
                db.session.rollback()
                if e.status_code >= 500:
                    logger.error(f"{failure_message}: {e.details or e.message}")
                else:
                    logger.info(f"{request.path} -> {e.status_code}: {e.message}")
                return _error_response(e, failure_message, identity)
            except Exception as e:
                db.session.rollback()
                logger.error(f"{failure_message}: {e}", exc_info=True)
                return _error_response(
                    UnexpectedError(failure_message, details=str(e)),
                    failure_message,
                    identity,
                )

        return decorated

    return decorator
