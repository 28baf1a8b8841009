from models.db import db

RECURRENCES = ("once", "weekly", "biweekly", "monthly")


class ClassTemplate(db.Model):
    __tablename__ = "class_templates"

    id = db.Column(db.Integer, primary_key=True)
    studio_id = db.Column(db.Integer, db.ForeignKey("studios.id"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    location = db.Column(db.String(255), nullable=True)

    day_of_week = db.Column(db.Integer, nullable=True)  # 0=Sunday .. 6=Saturday
    start_time = db.Column(db.String(8), nullable=False)  # HH:MM or HH:MM:SS
    duration_min = db.Column(db.Integer, nullable=False)
    max_capacity = db.Column(db.Integer, nullable=True)

    recurrence = db.Column(db.String(20), nullable=False, default="weekly")
    # inactive templates are never expanded by the generator (one-off classes)
    active = db.Column(db.Boolean, default=True, nullable=False)

    teacher = db.relationship("User", foreign_keys=[teacher_id])

    __table_args__ = (
        db.CheckConstraint("day_of_week IS NULL OR (day_of_week BETWEEN 0 AND 6)", name="ck_template_day_of_week"),
        db.CheckConstraint("duration_min BETWEEN 15 AND 240", name="ck_template_duration"),
    )
