from flask import current_app

from models import db
from models.notification import Notification
from utils.push import send_push_notification


def _unique(user_ids):
    seen = set()
    out = []
    for uid in user_ids:
        if uid not in seen:
            seen.add(uid)
            out.append(uid)
    return out


def notify_users(studio_id, user_ids, type_: str, title: str, body: str, data=None):
    """
    Record one in-app notification per user as a single batch.
    Caller commits. Returns the number of records added.
    """
    rows = [
        Notification(
            user_id=uid,
            studio_id=studio_id,
            type=type_,
            title=title,
            body=body,
            data=data,
        )
        for uid in _unique(user_ids)
    ]
    if rows:
        db.session.add_all(rows)
    return len(rows)


def fan_out_push(user_ids, title: str, body: str, data=None) -> int:
    """
    Best-effort push delivery. A failed delivery never fails the caller:
    errors are logged and skipped. Returns how many users were reached.
    """
    delivered = 0
    for uid in _unique(user_ids):
        try:
            ok, error = send_push_notification(uid, title, body, data)
        except Exception as exc:
            ok, error = False, str(exc)
        if ok:
            delivered += 1
        else:
            current_app.logger.warning("Push to user %s not delivered: %s", uid, error)
    return delivered
