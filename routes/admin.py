from flask import Blueprint, jsonify, request

from routes.schedule import is_int, parse_weeks_ahead
from security.rbac import require_platform_admin
from services.class_generator import generate_class_instances
from utils.audit import log_event

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.post("/generate-classes")
@require_platform_admin
def generate_classes():
    """Platform-level trigger (cron or operator) for one studio."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}

    studio_id = data.get("studioId")
    if studio_id is None or studio_id == "":
        return jsonify(error="studioId is required"), 400
    if isinstance(studio_id, str) and studio_id.strip().isdigit():
        studio_id = int(studio_id)
    if not is_int(studio_id):
        return jsonify(error="studioId must be an integer"), 400

    try:
        weeks_ahead = parse_weeks_ahead(data)
    except ValueError as e:
        return jsonify(error=str(e)), 400

    # an unknown studio has no active templates and simply generates nothing
    count = generate_class_instances(studio_id, weeks_ahead)

    log_event(
        "CLASSES_GENERATE",
        studio_id=studio_id,
        entity="studio",
        entity_id=studio_id,
        metadata={"generated": count, "weeks_ahead": weeks_ahead, "trigger": "platform"},
    )
    return jsonify(generated=count, studioId=studio_id), 200
