from flask import Blueprint, request, jsonify, g

from routes.schedule import is_int
from security.rbac import require_class_staff
from services.checkin import Roster
from utils.audit import log_event

# Mounted at /api/classes: roster, batch check-in, walk-in, complete
checkin_bp = Blueprint("checkin", __name__, url_prefix="/api/classes")


@checkin_bp.get("/<int:class_id>/roster")
@require_class_staff
def roster(class_id: int):
    return jsonify(Roster.load(g.class_instance).to_list()), 200


# ---------- STAFF: batch check-in ----------
@checkin_bp.post("/<int:class_id>/checkin")
@require_class_staff
def batch_checkin(class_id: int):
    data = request.get_json(silent=True) or {}
    attendees = data.get("attendees") if isinstance(data, dict) else None

    if not isinstance(attendees, list) or not attendees:
        return jsonify(error="attendees must be a non-empty array"), 400
    for entry in attendees:
        if (
            not isinstance(entry, dict)
            or not is_int(entry.get("userId"))
            or not isinstance(entry.get("checkedIn"), bool)
            or ("walkIn" in entry and not isinstance(entry["walkIn"], bool))
        ):
            return jsonify(error="Each attendee must have userId and checkedIn (boolean)"), 400

    cls = g.class_instance
    if cls.status in ("completed", "cancelled"):
        return jsonify(error=f"Class is {cls.status}"), 400

    r = Roster.load(cls)
    unknown = []
    for entry in attendees:
        if r.set_checked_in(entry["userId"], entry["checkedIn"], entry.get("walkIn")) is None:
            unknown.append(entry["userId"])
    if unknown:
        return jsonify(error="Unknown user(s)", missing=sorted(set(unknown))), 400

    processed = r.save_all(g.user.id)

    log_event(
        "CLASS_CHECKIN",
        user_id=g.user.id,
        studio_id=cls.studio_id,
        entity="class_instance",
        entity_id=cls.id,
        metadata={"processed": processed},
    )
    return jsonify(ok=True, processed=processed, status=cls.status), 200


# ---------- STAFF: walk-in ----------
@checkin_bp.post("/<int:class_id>/walkin")
@require_class_staff
def walk_in(class_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}
    user_id = data.get("userId")
    email = (data.get("email") or "").strip().lower() if isinstance(data.get("email"), str) else ""

    if user_id is None and not email:
        return jsonify(error="Provide userId or email to look up a user"), 400
    if user_id is not None and not is_int(user_id):
        return jsonify(error="userId must be an integer"), 400

    cls = g.class_instance
    if cls.status in ("completed", "cancelled"):
        return jsonify(error=f"Class is {cls.status}"), 400

    r = Roster.load(cls)
    entry = r.add_walk_in(email=email, user_id=user_id)
    if entry is None:
        return jsonify(error="No user found with that email. Add them as a studio member first."), 400

    r.save_all(g.user.id)

    log_event(
        "CLASS_WALK_IN",
        user_id=g.user.id,
        studio_id=cls.studio_id,
        entity="class_instance",
        entity_id=cls.id,
        metadata={"attendee_id": entry.user_id},
    )
    return jsonify(ok=True, userId=entry.user_id), 201


# ---------- STAFF: complete class ----------
@checkin_bp.post("/<int:class_id>/complete")
@require_class_staff
def complete(class_id: int):
    cls = g.class_instance
    if cls.status in ("completed", "cancelled"):
        return jsonify(error=f"Class is {cls.status} and cannot be completed"), 400

    no_shows = Roster.load(cls).complete(g.user.id)

    log_event(
        "CLASS_COMPLETE",
        user_id=g.user.id,
        studio_id=cls.studio_id,
        entity="class_instance",
        entity_id=cls.id,
        metadata={"no_shows": no_shows},
    )
    return jsonify(ok=True, no_shows=no_shows), 200
