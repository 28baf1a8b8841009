from models.db import db


class Attendance(db.Model):
    __tablename__ = "attendance"

    id = db.Column(db.Integer, primary_key=True)
    class_instance_id = db.Column(db.Integer, db.ForeignKey("class_instances.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    checked_in = db.Column(db.Boolean, default=False, nullable=False)
    # attendee added at the door without a booking
    walk_in = db.Column(db.Boolean, default=False, nullable=False)

    checked_in_at = db.Column(db.DateTime, nullable=True)
    checked_in_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        db.UniqueConstraint("class_instance_id", "user_id", name="uq_attendance_instance_user"),
    )
