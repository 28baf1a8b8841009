from datetime import datetime
from models.db import db

MEMBER_ROLES = ("member", "teacher", "admin", "owner")


class Studio(db.Model):
    __tablename__ = "studios"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    slug = db.Column(db.String(120), unique=True, nullable=False, index=True)
    timezone = db.Column(db.String(64), nullable=False, default="America/New_York")
    email = db.Column(db.String(255), nullable=True)
    location = db.Column(db.String(255), nullable=True)

    # free-form studio settings, e.g. {"closureDates": ["2026-12-25"]}
    settings = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    memberships = db.relationship("Membership", back_populates="studio", lazy=True)


class Membership(db.Model):
    __tablename__ = "memberships"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    studio_id = db.Column(db.Integer, db.ForeignKey("studios.id"), nullable=False, index=True)

    role = db.Column(db.String(20), nullable=False, default="member")  # member, teacher, admin, owner
    status = db.Column(db.String(20), nullable=False, default="active")  # active, suspended, cancelled
    notes = db.Column(db.Text, nullable=True)

    joined_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user = db.relationship("User", back_populates="memberships")
    studio = db.relationship("Studio", back_populates="memberships")

    __table_args__ = (
        db.UniqueConstraint("user_id", "studio_id", name="uq_membership_user_studio"),
    )
