from flask import Blueprint, request, jsonify, g

from models import db
from models.class_template import ClassTemplate, RECURRENCES
from routes.schedule import is_int, is_valid_time
from security.rbac import require_admin, require_member
from utils.audit import log_event

# Mounted at /api/studios: class template CRUD
templates_bp = Blueprint("templates", __name__, url_prefix="/api/studios")

TEMPLATE_FIELDS = (
    "name", "description", "teacher_id", "day_of_week", "start_time",
    "duration_min", "max_capacity", "location", "recurrence", "active",
)


def template_to_dict(t: ClassTemplate) -> dict:
    return {
        "id": t.id,
        "studio_id": t.studio_id,
        "name": t.name,
        "description": t.description,
        "teacher_id": t.teacher_id,
        "day_of_week": t.day_of_week,
        "start_time": t.start_time,
        "duration_min": t.duration_min,
        "max_capacity": t.max_capacity,
        "location": t.location,
        "recurrence": t.recurrence,
        "active": t.active,
        "teacher": (
            {"id": t.teacher.id, "name": t.teacher.name, "avatar_url": t.teacher.avatar_url}
            if t.teacher else None
        ),
    }


def _validate(fields: dict):
    """Returns an error message, or None when the provided fields are valid."""
    if "name" in fields and (not isinstance(fields["name"], str) or not fields["name"].strip()):
        return "name is required"
    if "start_time" in fields and not is_valid_time(fields["start_time"]):
        return "start_time must be HH:MM or HH:MM:SS"
    if "duration_min" in fields:
        dur = fields["duration_min"]
        if not is_int(dur) or not 15 <= dur <= 240:
            return "duration_min must be between 15 and 240"
    if fields.get("day_of_week") is not None:
        dow = fields["day_of_week"]
        if not is_int(dow) or not 0 <= dow <= 6:
            return "day_of_week must be between 0 and 6"
    if fields.get("recurrence") is not None and fields["recurrence"] not in RECURRENCES:
        return f"recurrence must be one of: {', '.join(RECURRENCES)}"
    if fields.get("max_capacity") is not None:
        cap = fields["max_capacity"]
        if not is_int(cap) or cap <= 0:
            return "max_capacity must be a positive integer"
    if fields.get("teacher_id") is not None and not is_int(fields["teacher_id"]):
        return "teacher_id must be an integer"
    if "active" in fields and not isinstance(fields["active"], bool):
        return "active must be a boolean"
    return None


@templates_bp.get("/<int:studio_id>/templates")
@require_member
def list_templates(studio_id: int):
    q = ClassTemplate.query.filter_by(studio_id=studio_id)
    # ?active=false lists inactive (one-off and retired) templates too
    if request.args.get("active") != "false":
        q = q.filter_by(active=True)

    rows = q.order_by(ClassTemplate.name.asc()).all()
    return jsonify(templates=[template_to_dict(t) for t in rows]), 200


@templates_bp.post("/<int:studio_id>/templates")
@require_admin
def create_template(studio_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}

    if "name" not in data:
        return jsonify(error="name is required"), 400
    if "start_time" not in data:
        return jsonify(error="start_time is required"), 400
    if "duration_min" not in data:
        return jsonify(error="duration_min must be between 15 and 240"), 400

    fields = {k: data[k] for k in TEMPLATE_FIELDS if k in data}
    error = _validate(fields)
    if error:
        return jsonify(error=error), 400

    template = ClassTemplate(
        studio_id=studio_id,
        name=fields["name"].strip(),
        description=fields.get("description"),
        teacher_id=fields.get("teacher_id"),
        day_of_week=fields.get("day_of_week"),
        start_time=fields["start_time"],
        duration_min=fields["duration_min"],
        max_capacity=fields.get("max_capacity"),
        location=fields.get("location"),
        recurrence=fields.get("recurrence") or "weekly",
        active=fields.get("active", True),
    )
    db.session.add(template)
    db.session.commit()

    log_event("TEMPLATE_CREATE", user_id=g.user.id, studio_id=studio_id, entity="class_template", entity_id=template.id)
    return jsonify(template=template_to_dict(template)), 201


@templates_bp.put("/<int:studio_id>/templates/<int:template_id>")
@require_admin
def update_template(studio_id: int, template_id: int):
    template = ClassTemplate.query.filter_by(id=template_id, studio_id=studio_id).first()
    if not template:
        return jsonify(error="Template not found"), 404

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}

    updates = {k: data[k] for k in TEMPLATE_FIELDS if k in data}
    if not updates:
        return jsonify(error="No valid fields to update"), 400

    error = _validate(updates)
    if error:
        return jsonify(error=error), 400
    if "recurrence" in updates and updates["recurrence"] is None:
        return jsonify(error=f"recurrence must be one of: {', '.join(RECURRENCES)}"), 400

    for field, value in updates.items():
        setattr(template, field, value.strip() if field == "name" else value)
    db.session.commit()

    log_event(
        "TEMPLATE_UPDATE",
        user_id=g.user.id,
        studio_id=studio_id,
        entity="class_template",
        entity_id=template.id,
        metadata={"fields": sorted(updates)},
    )
    return jsonify(template=template_to_dict(template)), 200


@templates_bp.delete("/<int:studio_id>/templates/<int:template_id>")
@require_admin
def delete_template(studio_id: int, template_id: int):
    template = ClassTemplate.query.filter_by(id=template_id, studio_id=studio_id).first()
    if not template:
        return jsonify(error="Template not found"), 404

    # soft delete: generated instances stay, no new ones are produced
    template.active = False
    db.session.commit()

    log_event("TEMPLATE_DEACTIVATE", user_id=g.user.id, studio_id=studio_id, entity="class_template", entity_id=template.id)
    return jsonify(success=True), 200
