from datetime import datetime
from models.db import db

SESSION_SOURCES = ("provider", "cli")


class Session(db.Model):
    __tablename__ = "sessions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # only the SHA-256 of the bearer token is stored
    token_hash = db.Column(db.String(128), unique=True, nullable=False, index=True)
    # provider: exchanged after sign-in with the auth provider; cli: issued by an operator
    source = db.Column(db.String(20), nullable=False, default="provider")

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    # staff devices sit on the check-in screen for a whole class, touched on every request
    last_seen_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=False)

    revoked = db.Column(db.Boolean, default=False, nullable=False)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
