import re
from datetime import date

from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy import func

from models import db
from models.booking import Booking
from models.class_instance import ClassInstance, INSTANCE_STATUSES
from models.class_template import ClassTemplate
from security.rbac import require_admin, require_member, require_owner
from services.class_generator import (
    calculate_end_time,
    generate_class_instances,
    js_weekday,
)
from utils.audit import log_event
from utils.notifications import fan_out_push, notify_users

# Mounted at /api/studios: generation, one-off classes, modification, schedule view
schedule_bp = Blueprint("schedule", __name__, url_prefix="/api/studios")

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")

RESTORE_NOTIFY_STATUSES = ("booked", "confirmed", "cancelled")


def is_valid_date(value) -> bool:
    if not isinstance(value, str) or not DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_time(value) -> bool:
    return isinstance(value, str) and TIME_RE.match(value) is not None


def is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_weeks_ahead(data: dict) -> int:
    """
    weeksAhead from a request body. Missing, non-numeric or non-positive
    values fall back to the default; values above MAX_WEEKS_AHEAD raise
    ValueError so the caller can answer 400.
    """
    default = current_app.config.get("DEFAULT_WEEKS_AHEAD", 4)
    limit = current_app.config.get("MAX_WEEKS_AHEAD", 52)
    raw = data.get("weeksAhead")
    if isinstance(raw, bool):
        return default
    try:
        weeks = int(raw)
    except (TypeError, ValueError, OverflowError):
        return default
    if weeks <= 0:
        return default
    if weeks > limit:
        raise ValueError(f"weeksAhead must be between 1 and {limit}")
    return weeks


def instance_to_dict(inst: ClassInstance) -> dict:
    return {
        "id": inst.id,
        "template_id": inst.template_id,
        "studio_id": inst.studio_id,
        "teacher_id": inst.teacher_id,
        "date": inst.date,
        "start_time": inst.start_time,
        "end_time": inst.end_time,
        "status": inst.status,
        "max_capacity": inst.max_capacity,
        "notes": inst.notes,
        "feed_enabled": inst.feed_enabled,
    }


def normalize_booking_count(row: dict) -> dict:
    """Flatten the embedded aggregate ``bookings: [{count: N}]`` into ``booking_count: N``."""
    raw = row.pop("bookings", None)
    count = 0
    if isinstance(raw, list) and raw and isinstance(raw[0], dict):
        count = raw[0].get("count") or 0
    elif is_int(raw):
        count = raw
    row["booking_count"] = int(count)
    return row


def _notify_cancelled(cls: ClassInstance, notes=None) -> int:
    user_ids = [
        b.user_id
        for b in Booking.query.filter(
            Booking.class_instance_id == cls.id,
            Booking.status != "cancelled",
        ).all()
    ]
    return notify_users(
        cls.studio_id,
        user_ids,
        "class_cancelled",
        "Class Cancelled",
        f"Class cancelled: {notes}" if notes else "A class you booked has been cancelled.",
        {"classInstanceId": cls.id},
    )


def _notify_restored(cls: ClassInstance) -> list:
    user_ids = [
        b.user_id
        for b in Booking.query.filter(
            Booking.class_instance_id == cls.id,
            Booking.status.in_(RESTORE_NOTIFY_STATUSES),
        ).all()
    ]
    notify_users(
        cls.studio_id,
        user_ids,
        "class_restored",
        "Class Restored",
        "A cancelled class is back on the schedule.",
        {"classInstanceId": cls.id},
    )
    return user_ids


def _push_restored(cls: ClassInstance, user_ids: list):
    fan_out_push(
        user_ids,
        "Class Restored",
        "A cancelled class is back on the schedule.",
        {"classInstanceId": cls.id},
    )


# ---------- OWNER: manual generation ----------
@schedule_bp.post("/<int:studio_id>/generate-classes")
@require_owner
def generate_classes(studio_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}
    try:
        weeks_ahead = parse_weeks_ahead(data)
    except ValueError as e:
        return jsonify(error=str(e)), 400

    count = generate_class_instances(studio_id, weeks_ahead)

    log_event(
        "CLASSES_GENERATE",
        user_id=g.user.id,
        studio_id=studio_id,
        entity="studio",
        entity_id=studio_id,
        metadata={"generated": count, "weeks_ahead": weeks_ahead, "trigger": "owner"},
    )
    return jsonify(generated=count, studioId=studio_id), 200


# ---------- ADMIN: one-off class ----------
@schedule_bp.post("/<int:studio_id>/classes")
@require_admin
def create_one_off_class(studio_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}

    name = data.get("name")
    date_str = data.get("date")
    start_time = data.get("start_time")
    duration_min = data.get("duration_min")

    if not isinstance(name, str) or not name.strip():
        return jsonify(error="name is required"), 400
    if not is_valid_date(date_str):
        return jsonify(error="date is required (YYYY-MM-DD)"), 400
    if not is_valid_time(start_time):
        return jsonify(error="start_time is required (HH:MM)"), 400
    if not is_int(duration_min) or not 15 <= duration_min <= 240:
        return jsonify(error="duration_min must be between 15 and 240"), 400

    capacity = data.get("capacity")
    if capacity is not None and (not is_int(capacity) or capacity <= 0):
        return jsonify(error="capacity must be a positive integer"), 400
    teacher_id = data.get("teacher_id")
    if teacher_id is not None and not is_int(teacher_id):
        return jsonify(error="teacher_id must be an integer"), 400
    feed_enabled = data.get("feed_enabled", True)
    if not isinstance(feed_enabled, bool):
        return jsonify(error="feed_enabled must be a boolean"), 400

    template = ClassTemplate(
        studio_id=studio_id,
        name=name.strip(),
        description=data.get("description"),
        teacher_id=teacher_id,
        day_of_week=js_weekday(date.fromisoformat(date_str)),
        start_time=start_time,
        duration_min=duration_min,
        max_capacity=capacity,
        recurrence="once",
        active=False,
    )
    db.session.add(template)
    db.session.flush()

    inst = ClassInstance(
        template_id=template.id,
        studio_id=studio_id,
        teacher_id=teacher_id,
        date=date_str,
        start_time=start_time,
        end_time=calculate_end_time(start_time, duration_min),
        status="scheduled",
        max_capacity=capacity,
        notes=data.get("notes"),
        feed_enabled=feed_enabled,
    )
    db.session.add(inst)
    db.session.commit()

    log_event("CLASS_CREATE_ONE_OFF", user_id=g.user.id, studio_id=studio_id, entity="class_instance", entity_id=inst.id)
    return jsonify(instance_to_dict(inst)), 201


# ---------- ADMIN: modify an instance ----------
@schedule_bp.put("/<int:studio_id>/classes/<int:class_id>")
@require_admin
def update_class(studio_id: int, class_id: int):
    cls = ClassInstance.query.filter_by(id=class_id, studio_id=studio_id).first()
    if not cls:
        return jsonify(error="Class instance not found"), 404

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}

    updates = {}
    for field in ("teacher_id", "max_capacity", "start_time", "notes"):
        if field in data:
            updates[field] = data[field]
    if "status" in data:
        if data["status"] not in INSTANCE_STATUSES:
            return jsonify(error=f"Invalid status. Must be one of: {', '.join(INSTANCE_STATUSES)}"), 400
        updates["status"] = data["status"]

    if not updates:
        return jsonify(error="No valid fields to update"), 400

    if "start_time" in updates and not is_valid_time(updates["start_time"]):
        return jsonify(error="start_time must be HH:MM or HH:MM:SS"), 400
    if updates.get("max_capacity") is not None and (not is_int(updates["max_capacity"]) or updates["max_capacity"] <= 0):
        return jsonify(error="max_capacity must be a positive integer"), 400
    if updates.get("teacher_id") is not None and not is_int(updates["teacher_id"]):
        return jsonify(error="teacher_id must be an integer"), 400

    previous_status = cls.status
    for field, value in updates.items():
        setattr(cls, field, value)

    new_status = updates.get("status")
    cancelled_now = new_status == "cancelled" and previous_status != "cancelled"
    restored_now = new_status == "scheduled" and previous_status == "cancelled"

    notified = 0
    restored_users = []
    if cancelled_now:
        notified = _notify_cancelled(cls, data.get("notes"))
    elif restored_now:
        restored_users = _notify_restored(cls)
        notified = len(set(restored_users))
    db.session.commit()

    if restored_now:
        _push_restored(cls, restored_users)

    log_event(
        "CLASS_UPDATE",
        user_id=g.user.id,
        studio_id=studio_id,
        entity="class_instance",
        entity_id=cls.id,
        metadata={"fields": sorted(updates), "status_from": previous_status, "notified": notified},
    )
    return jsonify(instance_to_dict(cls)), 200


# ---------- ADMIN: restore a cancelled instance ----------
@schedule_bp.post("/<int:studio_id>/classes/<int:class_id>/restore")
@require_admin
def restore_class(studio_id: int, class_id: int):
    cls = ClassInstance.query.filter_by(id=class_id, studio_id=studio_id).first()
    if not cls:
        return jsonify(error="Class instance not found"), 404
    if cls.status != "cancelled":
        return jsonify(error="Only cancelled classes can be restored"), 400

    cls.status = "scheduled"
    user_ids = _notify_restored(cls)
    db.session.commit()

    _push_restored(cls, user_ids)

    log_event(
        "CLASS_RESTORE",
        user_id=g.user.id,
        studio_id=studio_id,
        entity="class_instance",
        entity_id=cls.id,
        metadata={"notified": len(set(user_ids))},
    )
    return jsonify(instance_to_dict(cls)), 200


# ---------- MEMBERS: schedule view ----------
@schedule_bp.get("/<int:studio_id>/schedule")
@require_member
def view_schedule(studio_id: int):
    from_str = request.args.get("from")
    to_str = request.args.get("to")

    if not from_str or not to_str:
        return jsonify(error="from and to are required (YYYY-MM-DD)"), 400
    if not is_valid_date(from_str) or not is_valid_date(to_str):
        return jsonify(error="Invalid date. Use YYYY-MM-DD"), 400
    if from_str > to_str:
        return jsonify(error="from must be on or before to"), 400

    teacher_id = request.args.get("teacher", type=int)
    template_id = request.args.get("template", type=int)

    days = None
    day_param = request.args.get("day")
    if day_param:
        try:
            days = {int(d) for d in day_param.split(",") if d.strip()}
        except ValueError:
            return jsonify(error="day must be a comma-separated list of 0-6"), 400
        if any(d < 0 or d > 6 for d in days):
            return jsonify(error="day must be a comma-separated list of 0-6"), 400

    q = ClassInstance.query.filter(
        ClassInstance.studio_id == studio_id,
        ClassInstance.date >= from_str,
        ClassInstance.date <= to_str,
    )
    if teacher_id:
        q = q.filter(ClassInstance.teacher_id == teacher_id)
    if template_id:
        q = q.filter(ClassInstance.template_id == template_id)

    rows = q.order_by(ClassInstance.date.asc(), ClassInstance.start_time.asc()).all()

    # weekday can't be extracted portably in SQL, filter after fetch
    if days is not None:
        rows = [r for r in rows if js_weekday(date.fromisoformat(r.date)) in days]

    counts = {}
    if rows:
        counts = dict(
            db.session.query(Booking.class_instance_id, func.count(Booking.id))
            .filter(
                Booking.class_instance_id.in_([r.id for r in rows]),
                Booking.status != "cancelled",
            )
            .group_by(Booking.class_instance_id)
            .all()
        )

    out = []
    for inst in rows:
        row = instance_to_dict(inst)
        tpl = inst.template
        teacher = inst.teacher
        row["template"] = (
            {"id": tpl.id, "name": tpl.name, "description": tpl.description, "recurrence": tpl.recurrence}
            if tpl else None
        )
        row["teacher"] = (
            {"id": teacher.id, "name": teacher.name, "avatar_url": teacher.avatar_url}
            if teacher else None
        )
        row["bookings"] = [{"count": counts.get(inst.id, 0)}]
        out.append(normalize_booking_count(row))

    return jsonify(out), 200
