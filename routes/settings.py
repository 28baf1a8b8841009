from flask import Blueprint, request, jsonify, g

from models import db
from models.studio import Studio
from routes.schedule import is_valid_date
from security.rbac import require_member, require_owner
from services.class_generator import ClosureSet
from utils.audit import log_event

settings_bp = Blueprint("settings", __name__, url_prefix="/api/studios")


@settings_bp.get("/<int:studio_id>/settings/closures")
@require_member
def get_closures(studio_id: int):
    studio = db.session.get(Studio, studio_id)
    if not studio:
        return jsonify(error="Studio not found"), 404
    return jsonify(closureDates=sorted(ClosureSet.from_settings(studio.settings))), 200


@settings_bp.put("/<int:studio_id>/settings/closures")
@require_owner
def update_closures(studio_id: int):
    studio = db.session.get(Studio, studio_id)
    if not studio:
        return jsonify(error="Studio not found"), 404

    data = request.get_json(silent=True) or {}
    dates = data.get("closureDates") if isinstance(data, dict) else None
    if not isinstance(dates, list):
        return jsonify(error="closureDates must be a list of YYYY-MM-DD dates"), 400

    invalid = [d for d in dates if not is_valid_date(d)]
    if invalid:
        return jsonify(error="Invalid date. Use YYYY-MM-DD", invalid=invalid), 400

    closures = sorted(set(dates))
    # reassign so the JSON column is flagged as modified
    studio.settings = {**(studio.settings or {}), "closureDates": closures}
    db.session.commit()

    # already generated instances on these dates are left untouched
    log_event(
        "STUDIO_CLOSURES_UPDATE",
        user_id=g.user.id,
        studio_id=studio_id,
        entity="studio",
        entity_id=studio_id,
        metadata={"count": len(closures)},
    )
    return jsonify(closureDates=closures), 200
