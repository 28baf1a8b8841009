from datetime import datetime
from models.db import db


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    studio_id = db.Column(db.Integer, db.ForeignKey("studios.id"), nullable=True, index=True)

    type = db.Column(db.String(40), nullable=False)  # e.g. class_cancelled, class_restored
    title = db.Column(db.String(160), nullable=True)
    body = db.Column(db.Text, nullable=True)
    data = db.Column(db.JSON, nullable=True)  # deep link info

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    sent_at = db.Column(db.DateTime, nullable=True)
    read_at = db.Column(db.DateTime, nullable=True)
