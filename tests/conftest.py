"""Shared test fixtures for the SiteWizard portal test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, CSRF off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: admin, two client users, a subscription and an intake in review
"""

from datetime import datetime, timedelta, timezone

import pytest
from werkzeug.security import generate_password_hash

from sitewizard import create_app
from sitewizard.extensions import db as _db
from sitewizard.models.intake import WebsiteIntake
from sitewizard.models.subscription import ClientSubscription
from sitewizard.models.user import User


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def seed_data(app, db_session):
    """Seed an admin, the owning client, an unrelated client, a trial
    subscription and one intake waiting for client review.

    Returns plain IDs alongside the objects so tests can re-load records
    inside their own app context.
    """
    with app.app_context():
        admin = User(
            email="admin@sitewizard.local",
            password_hash=generate_password_hash("admin123"),
            full_name="Admin User",
            is_admin=True,
        )
        owner = User(
            email="joe@joespizza.com",
            password_hash=generate_password_hash("clientpass"),
            full_name="Joe Owner",
        )
        stranger = User(
            email="sam@otherbiz.com",
            password_hash=generate_password_hash("otherpass"),
            full_name="Sam Stranger",
        )
        _db.session.add_all([admin, owner, stranger])
        _db.session.flush()

        now = datetime.now(timezone.utc)
        subscription = ClientSubscription(
            client_email="joe@joespizza.com",
            package_id="pkg_starter",
            status="trial",
            trial_started=now,
            trial_ends=now + timedelta(days=14),
            next_payment_date=now + timedelta(days=14),
            payment_method_added=True,
            payment_failed=False,
        )
        _db.session.add(subscription)
        _db.session.flush()

        intake = WebsiteIntake(
            company_name="Joe's Pizza & Co.",
            contact_person="Joe Owner",
            client_email="joe@joespizza.com",
            phone="555-0100",
            style_preference="modern",
            business_goals=["More online orders", "Show the menu"],
            website_status="review",
            confirmed=False,
            subscription_id=subscription.id,
        )
        _db.session.add(intake)
        _db.session.commit()

        return {
            "admin": admin,
            "admin_id": admin.id,
            "owner_id": owner.id,
            "stranger_id": stranger.id,
            "subscription_id": subscription.id,
            "intake": intake,
            "intake_id": intake.id,
        }
