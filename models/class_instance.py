from models.db import db

INSTANCE_STATUSES = ("scheduled", "in_progress", "completed", "cancelled")


class ClassInstance(db.Model):
    __tablename__ = "class_instances"

    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(db.Integer, db.ForeignKey("class_templates.id"), nullable=True, index=True)
    studio_id = db.Column(db.Integer, db.ForeignKey("studios.id"), nullable=False, index=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # zero-padded YYYY-MM-DD, compared lexicographically
    date = db.Column(db.String(10), nullable=False, index=True)
    start_time = db.Column(db.String(8), nullable=False)
    end_time = db.Column(db.String(8), nullable=False)

    status = db.Column(db.String(20), nullable=False, default="scheduled")
    # copied from the template at creation, editable afterwards
    max_capacity = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    feed_enabled = db.Column(db.Boolean, default=True, nullable=False)

    template = db.relationship("ClassTemplate")
    studio = db.relationship("Studio")
    teacher = db.relationship("User", foreign_keys=[teacher_id])

    __table_args__ = (
        # sole dedup key for generated instances
        db.UniqueConstraint("template_id", "date", name="uq_instance_template_date"),
    )
