import os
import logging

import click
from flask import Flask, jsonify
from werkzeug.security import generate_password_hash

from sitewizard.config import config_by_name
from sitewizard.extensions import db, migrate, login_manager, csrf, limiter


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from sitewizard import models  # noqa: F401

    # --- Register blueprints ---
    from sitewizard.blueprints.auth import auth_bp
    from sitewizard.blueprints.intakes import intakes_bp
    from sitewizard.blueprints.revisions import revisions_bp
    from sitewizard.blueprints.subscriptions import subscriptions_bp
    from sitewizard.blueprints.orders import orders_bp
    from sitewizard.blueprints.webhooks import webhooks_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(intakes_bp)
    app.register_blueprint(revisions_bp)
    app.register_blueprint(subscriptions_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(webhooks_bp)

    # JSON API: session cookie is SameSite=Lax and every body is JSON, so
    # form-token CSRF does not apply. Webhooks need the raw body.
    for bp in (auth_bp, intakes_bp, revisions_bp, subscriptions_bp, orders_bp, webhooks_bp):
        csrf.exempt(bp)

    # --- Health check ---
    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    # --- Error handlers ---
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({"error": "Too many requests"}), 429

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({"error": "Internal server error"}), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        # Strict Transport Security (only in production)
        if not app.debug and not app.testing:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-admin")
    @click.option("--email", default="admin@sitewizard.local", help="Admin email")
    @click.option("--password", default="admin123", help="Admin password")
    def seed_admin(email, password):
        """Create (or promote) an admin user.

        Usage:
            flask seed-admin
            flask seed-admin --email admin@example.com --password s3cret
        """
        from sitewizard import repositories
        from sitewizard.models.user import User

        email = email.lower().strip()
        existing = repositories.find_user_by_email(email)
        if existing:
            if existing.is_admin:
                click.echo(f"Admin user already exists: {email}")
                return
            existing.is_admin = True
            db.session.commit()
            click.echo(f"Promoted existing user to admin: {email}")
            return

        admin = User(
            email=email,
            password_hash=generate_password_hash(password),
            full_name="Admin",
            is_admin=True,
        )
        db.session.add(admin)
        db.session.commit()
        click.echo(f"Created admin user: {email}")

    @app.cli.command("deliver-notifications")
    @click.option("--limit", default=50, show_default=True, help="Maximum emails to attempt.")
    def deliver_notifications(limit):
        """Retry queued or failed notification emails.

        Usage:
            flask deliver-notifications
            flask deliver-notifications --limit 200
        """
        from sitewizard.services.notification_service import deliver_pending

        sent, attempted = deliver_pending(limit=limit)
        click.echo(f"Delivered {sent} of {attempted} notification(s).")

    @app.cli.command("expire-trials")
    @click.option("--dry-run", is_flag=True, help="Only report; this is currently the only mode.")
    def expire_trials(dry_run):
        """List trials whose trial period has ended.

        Subscriptions are never changed here: what happens to an unpaid
        trial is still a billing-policy decision.

        Usage:
            flask expire-trials --dry-run
        """
        from sitewizard.services.subscription_service import expired_trials

        if not dry_run:
            click.echo("Only --dry-run is supported; reporting without changes.")

        trials = expired_trials()
        if not trials:
            click.echo("No expired trials.")
            return

        for subscription in trials:
            click.echo(
                f"  {subscription.client_email}  package={subscription.package_id}  "
                f"trial_ends={subscription.trial_ends.isoformat()}  "
                f"payment_failed={bool(subscription.payment_failed)}"
            )
        click.echo(f"{len(trials)} expired trial(s).")
