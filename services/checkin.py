"""
Check-in roster reconciliation.

A roster is everyone expected at one class instance: holders of an active
booking plus walk-ins added at the door. Staff mutate it optimistically
(toggle, walk-in) and the pending changes are kept in a diff buffer keyed by
user id until ``save_all`` flushes them to the attendance table in one
transaction. ``complete`` flushes, derives no-shows from the checked-in set
and closes the class.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from models import db
from models.attendance import Attendance
from models.booking import ACTIVE_BOOKING_STATUSES, Booking
from models.class_instance import ClassInstance
from models.studio import Membership
from models.user import User
from utils.notifications import notify_users

logger = logging.getLogger(__name__)

ROSTER_BOOKING_STATUSES = ("booked", "confirmed", "waitlisted")


class RosterEntry:
    def __init__(self, user, booking=None, checked_in=False, walk_in=False, notes=None):
        self.user_id = user.id
        self.name = user.name
        self.avatar_url = user.avatar_url
        self.booking_id = booking.id if booking else None
        self.booking_status = booking.status if booking else None
        self.checked_in = checked_in
        self.walk_in = walk_in
        self.notes = notes


class Roster:
    def __init__(self, instance: ClassInstance, entries: Optional[List[RosterEntry]] = None):
        self.instance = instance
        self.entries: List[RosterEntry] = entries or []
        # user_id -> {"checked_in": bool, "walk_in": bool}
        self.pending: Dict[int, Dict[str, bool]] = {}

    @classmethod
    def load(cls, instance: ClassInstance) -> "Roster":
        bookings = (
            Booking.query
            .filter(
                Booking.class_instance_id == instance.id,
                Booking.status.in_(ROSTER_BOOKING_STATUSES),
            )
            .order_by(Booking.booked_at.asc(), Booking.id.asc())
            .all()
        )
        attendance = {
            a.user_id: a
            for a in Attendance.query.filter_by(class_instance_id=instance.id).all()
        }

        booked_ids = [b.user_id for b in bookings]
        notes = {}
        if booked_ids:
            notes = {
                m.user_id: m.notes
                for m in Membership.query.filter(
                    Membership.studio_id == instance.studio_id,
                    Membership.user_id.in_(booked_ids),
                ).all()
            }

        entries = []
        seen = set()
        for b in bookings:
            if b.user_id in seen:
                continue
            seen.add(b.user_id)
            att = attendance.get(b.user_id)
            entries.append(RosterEntry(
                b.user,
                booking=b,
                checked_in=att.checked_in if att else False,
                walk_in=att.walk_in if att else False,
                notes=notes.get(b.user_id),
            ))

        walk_in_ids = [uid for uid, a in attendance.items() if a.walk_in and uid not in seen]
        if walk_in_ids:
            users = {u.id: u for u in User.query.filter(User.id.in_(walk_in_ids)).all()}
            for uid in walk_in_ids:
                user = users.get(uid)
                if user:
                    entries.append(RosterEntry(user, checked_in=attendance[uid].checked_in, walk_in=True))

        return cls(instance, entries)

    def get(self, user_id) -> Optional[RosterEntry]:
        for entry in self.entries:
            if entry.user_id == user_id:
                return entry
        return None

    def is_dirty(self, user_id) -> bool:
        return user_id in self.pending

    @property
    def dirty_count(self) -> int:
        return len(self.pending)

    def _mark_dirty(self, entry: RosterEntry):
        self.pending[entry.user_id] = {"checked_in": entry.checked_in, "walk_in": entry.walk_in}

    def toggle(self, user_id) -> RosterEntry:
        """Flip check-in locally. Nothing is written until save_all()."""
        entry = self.get(user_id)
        if entry is None:
            raise KeyError(user_id)
        entry.checked_in = not entry.checked_in
        self._mark_dirty(entry)
        return entry

    def set_checked_in(self, user_id, checked_in: bool, walk_in: Optional[bool] = None) -> Optional[RosterEntry]:
        entry = self.get(user_id)
        if entry is None:
            user = db.session.get(User, user_id)
            if user is None:
                return None
            entry = RosterEntry(user)
            self.entries.append(entry)
        entry.checked_in = checked_in
        if walk_in is not None:
            entry.walk_in = walk_in
        self._mark_dirty(entry)
        return entry

    def add_walk_in(self, email: Optional[str] = None, user_id=None) -> Optional[RosterEntry]:
        """
        Check in someone at the door. Returns None when the user can't be
        resolved. Someone already on the roster is flipped to checked-in +
        walk-in instead of being added twice.
        """
        if user_id is not None:
            user = db.session.get(User, user_id)
        else:
            user = User.query.filter_by(email=(email or "").strip().lower()).first()
        if user is None:
            return None

        entry = self.get(user.id)
        if entry is None:
            entry = RosterEntry(user)
            self.entries.append(entry)
        entry.checked_in = True
        entry.walk_in = True
        self._mark_dirty(entry)
        return entry

    def save_all(self, staff_user_id, now: Optional[datetime] = None, commit: bool = True) -> int:
        """
        Upsert one attendance row per dirty entry. On failure the transaction
        is rolled back and every entry stays dirty.
        """
        if not self.pending:
            return 0

        now = now or datetime.utcnow()
        existing = {
            a.user_id: a
            for a in Attendance.query.filter(
                Attendance.class_instance_id == self.instance.id,
                Attendance.user_id.in_(list(self.pending)),
            ).all()
        }

        try:
            for user_id, patch in self.pending.items():
                row = existing.get(user_id)
                if row is None:
                    row = Attendance(class_instance_id=self.instance.id, user_id=user_id)
                    db.session.add(row)
                row.checked_in = patch["checked_in"]
                row.walk_in = patch["walk_in"]
                row.checked_in_at = now if patch["checked_in"] else None
                row.checked_in_by = staff_user_id if patch["checked_in"] else None

            # first check-in starts the class
            if self.instance.status == "scheduled" and any(p["checked_in"] for p in self.pending.values()):
                self.instance.status = "in_progress"

            if commit:
                db.session.commit()
            else:
                db.session.flush()
        except Exception:
            db.session.rollback()
            raise

        saved = self.dirty_count
        self.pending.clear()
        return saved

    def complete(self, staff_user_id, now: Optional[datetime] = None) -> int:
        """
        Flush pending check-ins, mark every active booking whose holder is not
        checked in as no_show, then close the class with the feed enabled.
        All three steps share one transaction. Returns the no-show count.
        """
        if self.instance.status in ("completed", "cancelled"):
            raise ValueError(f"Class is {self.instance.status} and cannot be completed")

        snapshot = dict(self.pending)
        try:
            self.save_all(staff_user_id, now=now, commit=False)

            # stored rows are authoritative once pending changes are flushed
            attendees = [
                a.user_id
                for a in Attendance.query.filter_by(class_instance_id=self.instance.id, checked_in=True)
                .order_by(Attendance.id)
                .all()
            ]
            checked_in_ids = set(attendees)
            active = (
                Booking.query
                .filter(
                    Booking.class_instance_id == self.instance.id,
                    Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                )
                .all()
            )
            no_shows = [b for b in active if b.user_id not in checked_in_ids]
            for b in no_shows:
                b.status = "no_show"

            self.instance.status = "completed"
            self.instance.feed_enabled = True

            notify_users(
                self.instance.studio_id,
                attendees,
                "class_completed",
                "Class Complete!",
                "Great work! Check out the class feed.",
                {"classInstanceId": self.instance.id},
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            self.pending = snapshot
            raise

        for b in no_shows:
            entry = self.get(b.user_id)
            if entry:
                entry.booking_status = "no_show"

        logger.info("Class %s completed with %s no-shows", self.instance.id, len(no_shows))
        return len(no_shows)

    def to_list(self) -> List[dict]:
        return [
            {
                "user": {"id": e.user_id, "name": e.name, "avatar_url": e.avatar_url},
                "booking": (
                    {"id": e.booking_id, "status": e.booking_status}
                    if e.booking_id is not None else None
                ),
                "attendance": {"checked_in": e.checked_in, "walk_in": e.walk_in},
                "membership_notes": e.notes,
                "dirty": self.is_dirty(e.user_id),
            }
            for e in self.entries
        ]
