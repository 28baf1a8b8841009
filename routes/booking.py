from datetime import datetime

from flask import Blueprint, request, jsonify, g, Response

from models import db
from models.booking import ACTIVE_BOOKING_STATUSES, Booking
from models.class_instance import ClassInstance
from security.rbac import require_member
from services.waitlist import add_to_waitlist, compact_positions, has_free_spot, promote_from_waitlist
from utils.audit import log_event
from utils.auth_context import login_required
from utils.calendar import build_booking_calendar

booking_bp = Blueprint("booking", __name__)


# ---------- MEMBERS: book a class ----------
@booking_bp.post("/api/studios/<int:studio_id>/classes/<int:class_id>/book")
@require_member
def create_booking(studio_id: int, class_id: int):
    cls = ClassInstance.query.filter_by(id=class_id, studio_id=studio_id).first()
    if not cls:
        return jsonify(error="Class instance not found"), 404
    if cls.status != "scheduled":
        return jsonify(error="Class is not available for booking"), 400

    existing = (
        Booking.query
        .filter(
            Booking.class_instance_id == cls.id,
            Booking.user_id == g.user.id,
            Booking.status.notin_(("cancelled", "no_show")),
        )
        .first()
    )
    if existing and existing.status == "waitlisted":
        return jsonify(error="You are already on the waitlist for this class"), 409
    if existing:
        return jsonify(error="You already have a booking for this class"), 409

    if not has_free_spot(cls):
        booking = add_to_waitlist(cls, g.user.id)
        db.session.commit()
        log_event("BOOKING_WAITLIST", user_id=g.user.id, studio_id=studio_id, entity="booking", entity_id=booking.id, metadata={"class_instance_id": cls.id, "position": booking.waitlist_position})
        return jsonify(
            id=booking.id,
            status=booking.status,
            waitlist_position=booking.waitlist_position,
            message=f"Class is full. You are #{booking.waitlist_position} on the waitlist.",
        ), 202

    booking = Booking(class_instance_id=cls.id, user_id=g.user.id, status="booked")
    db.session.add(booking)
    db.session.commit()

    log_event("BOOKING_CREATE", user_id=g.user.id, studio_id=studio_id, entity="booking", entity_id=booking.id, metadata={"class_instance_id": cls.id})
    return jsonify(id=booking.id, status=booking.status), 201


# ---------- MEMBERS: cancel own booking ----------
@booking_bp.post("/api/bookings/<int:booking_id>/cancel")
@login_required
def cancel_booking(booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking or booking.user_id != g.user.id:
        return jsonify(error="Booking not found"), 404

    if booking.status not in ("booked", "confirmed", "waitlisted"):
        return jsonify(error="Booking not cancellable"), 400

    was_active = booking.status in ACTIVE_BOOKING_STATUSES
    booking.status = "cancelled"
    booking.waitlist_position = None
    booking.cancelled_at = datetime.utcnow()
    db.session.flush()

    instance = booking.class_instance
    promoted = promote_from_waitlist(instance) if was_active else None
    if not was_active:
        compact_positions(instance)
    db.session.commit()

    log_event("BOOKING_CANCEL", user_id=g.user.id, studio_id=instance.studio_id, entity="booking", entity_id=booking.id)
    if promoted:
        log_event("BOOKING_PROMOTE", user_id=promoted.user_id, studio_id=instance.studio_id, entity="booking", entity_id=promoted.id)
    return jsonify(message="Cancelled"), 200


# ---------- MEMBERS: view my bookings ----------
@booking_bp.get("/api/bookings/me")
@login_required
def my_bookings():
    status = request.args.get("status")
    q = Booking.query.filter_by(user_id=g.user.id)
    if status:
        q = q.filter_by(status=status)

    rows = q.order_by(Booking.booked_at.desc()).limit(200).all()
    return jsonify([
        {
            "id": b.id,
            "status": b.status,
            "waitlist_position": b.waitlist_position,
            "booked_at": b.booked_at.isoformat(),
            "cancelled_at": b.cancelled_at.isoformat() if b.cancelled_at else None,
            "class": {
                "id": b.class_instance.id,
                "studio_id": b.class_instance.studio_id,
                "date": b.class_instance.date,
                "start_time": b.class_instance.start_time,
                "end_time": b.class_instance.end_time,
                "status": b.class_instance.status,
            },
        }
        for b in rows
    ]), 200


# ---------- MEMBERS: calendar file for a booking ----------
@booking_bp.get("/api/bookings/<int:booking_id>/calendar.ics")
@login_required
def booking_calendar(booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking or booking.user_id != g.user.id:
        return jsonify(error="Booking not found"), 404

    ics = build_booking_calendar(booking)
    return Response(
        ics,
        status=200,
        mimetype="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="booking-{booking.id}.ics"'},
    )
