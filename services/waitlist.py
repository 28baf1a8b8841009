"""
Class waitlist.

Members who book a full class are queued as ``waitlisted`` bookings with a
1-based ``waitlist_position``. When an active booking is cancelled the
lowest position is promoted to ``booked`` and the remaining queue is
compacted. Functions here only stage changes; the caller commits.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func

from models import db
from models.booking import ACTIVE_BOOKING_STATUSES, Booking
from models.class_instance import ClassInstance
from utils.notifications import notify_users

logger = logging.getLogger(__name__)


def active_booking_count(instance: ClassInstance) -> int:
    count = (
        db.session.query(func.count(Booking.id))
        .filter(
            Booking.class_instance_id == instance.id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
        .scalar()
    )
    return count or 0


def has_free_spot(instance: ClassInstance) -> bool:
    if instance.max_capacity is None:
        return True
    return active_booking_count(instance) < instance.max_capacity


def waitlisted(instance: ClassInstance) -> List[Booking]:
    return (
        Booking.query
        .filter_by(class_instance_id=instance.id, status="waitlisted")
        .order_by(Booking.waitlist_position.asc(), Booking.id.asc())
        .all()
    )


def add_to_waitlist(instance: ClassInstance, user_id: int) -> Booking:
    position = len(waitlisted(instance)) + 1
    booking = Booking(
        class_instance_id=instance.id,
        user_id=user_id,
        status="waitlisted",
        waitlist_position=position,
    )
    db.session.add(booking)
    return booking


def compact_positions(instance: ClassInstance):
    for idx, booking in enumerate(waitlisted(instance), start=1):
        booking.waitlist_position = idx


def promote_from_waitlist(instance: ClassInstance) -> Optional[Booking]:
    """
    Move the first queued member into a free spot. Returns the promoted
    booking, or None when the class is still full or nobody is waiting.
    """
    if instance.status != "scheduled" or not has_free_spot(instance):
        return None

    queue = waitlisted(instance)
    if not queue:
        return None

    booking = queue[0]
    booking.status = "booked"
    booking.waitlist_position = None
    booking.booked_at = datetime.utcnow()
    db.session.flush()
    compact_positions(instance)

    notify_users(
        instance.studio_id,
        [booking.user_id],
        "waitlist_promoted",
        "You're In!",
        "A spot opened up in a class you were waitlisted for.",
        {"classInstanceId": instance.id},
    )
    logger.info("Promoted booking %s from the waitlist of class %s", booking.id, instance.id)
    return booking
