from datetime import datetime
from models.db import db

ACTIVE_BOOKING_STATUSES = ("booked", "confirmed")


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    class_instance_id = db.Column(db.Integer, db.ForeignKey("class_instances.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default="booked")
    # status values: booked, confirmed, waitlisted, cancelled, no_show

    # 1-based queue position while status is waitlisted, NULL otherwise
    waitlist_position = db.Column(db.Integer, nullable=True)

    booked_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    class_instance = db.relationship("ClassInstance")
    user = db.relationship("User")
