import logging

from flask import Flask, jsonify
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from routes import (
    health_bp,
    admin_bp,
    schedule_bp,
    templates_bp,
    settings_bp,
    checkin_bp,
    booking_bp,
    audit_bp,
)

from models import db
from utils.auth_context import load_current_user


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(schedule_bp)
    app.register_blueprint(templates_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(checkin_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    @app.errorhandler(HTTPException)
    def _http_error(e):
        return jsonify(error=e.description or e.name), e.code

    @app.errorhandler(Exception)
    def _unhandled(e):
        db.session.rollback()
        app.logger.exception("Unhandled error: %s", e)
        return jsonify(error="Internal server error"), 500

    register_cli(app)

    return app

#-------------------------
import click
from models.studio import Studio
from models.user import User
from security.session import create_session, revoke_all_sessions
from services.class_generator import (
    generate_class_instances,
    generate_for_all_studios,
    preview_class_instances,
)

def register_cli(app):
    def _checked_weeks(weeks):
        limit = app.config["MAX_WEEKS_AHEAD"]
        if weeks is not None and weeks > limit:
            print(f"--weeks must be between 1 and {limit}")
            return None
        return weeks or app.config["DEFAULT_WEEKS_AHEAD"]

    @app.cli.command("generate-classes")
    @click.argument("studio_id", type=int)
    @click.option("--weeks", default=None, type=click.IntRange(min=1), help="Weeks ahead to generate.")
    @click.option("--dry-run", is_flag=True, help="List the instances without inserting them.")
    def generate_classes(studio_id, weeks, dry_run):
        """Materialize class instances for one studio."""
        weeks = _checked_weeks(weeks)
        if weeks is None:
            return
        if not db.session.get(Studio, studio_id):
            print("Studio not found")
            return

        if dry_run:
            rows = preview_class_instances(studio_id, weeks)
            for row in rows:
                print(f"{row['date']} {row['start_time']}-{row['end_time']} template={row['template_id']}")
            print(f"{len(rows)} instance(s) would be generated")
            return

        count = generate_class_instances(studio_id, weeks)
        print(f"Generated {count} instance(s) for studio {studio_id}")

    @app.cli.command("generate-all-classes")
    @click.option("--weeks", default=None, type=click.IntRange(min=1), help="Weeks ahead to generate.")
    def generate_all_classes(weeks):
        """Nightly job: materialize class instances for every studio."""
        weeks = _checked_weeks(weeks)
        if weeks is None:
            return
        results = generate_for_all_studios(weeks)
        for studio_id, count in sorted(results.items()):
            print(f"studio {studio_id}: {count}")
        print(f"Generated {sum(results.values())} instance(s) across {len(results)} studio(s)")

    @app.cli.command("issue-token")
    @click.argument("email")
    def issue_token(email):
        """Issue a bearer session token for a user (bootstrap / ops)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            print("User not found")
            return
        print(create_session(user.id, source="cli"))

    @app.cli.command("revoke-sessions")
    @click.argument("email")
    def revoke_sessions(email):
        """Revoke every live session of a user."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            print("User not found")
            return
        count = revoke_all_sessions(user.id)
        print(f"Revoked {count} session(s) for {user.email}")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
