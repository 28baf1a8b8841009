import pytest

from models import db
from models.audit_log import AuditLog
from models.booking import Booking
from models.notification import Notification


@pytest.fixture
def member(make_user, add_member, studio):
    user = make_user(name="Mia Member")
    add_member(user, studio)
    return user


def _book_url(studio, inst):
    return f"/api/studios/{studio.id}/classes/{inst.id}/book"


def test_book_class(client, studio, member, auth_header, make_template, make_instance):
    inst = make_instance(make_template())

    resp = client.post(_book_url(studio, inst), headers=auth_header(member))

    assert resp.status_code == 201
    assert resp.get_json()["status"] == "booked"
    assert Booking.query.filter_by(user_id=member.id).count() == 1


def test_double_booking_conflicts(client, studio, member, auth_header, make_template, make_instance):
    inst = make_instance(make_template())
    headers = auth_header(member)

    client.post(_book_url(studio, inst), headers=headers)
    resp = client.post(_book_url(studio, inst), headers=headers)

    assert resp.status_code == 409


def _member(make_user, add_member, studio, name):
    user = make_user(name=name)
    add_member(user, studio)
    return user


def test_full_class_joins_waitlist(client, studio, member, make_user, add_member, auth_header, make_template, make_instance, book):
    inst = make_instance(make_template(max_capacity=1))
    book(make_user(), inst)
    second = _member(make_user, add_member, studio, "Sam Second")

    first_resp = client.post(_book_url(studio, inst), headers=auth_header(member))
    second_resp = client.post(_book_url(studio, inst), headers=auth_header(second))

    assert first_resp.status_code == 202
    body = first_resp.get_json()
    assert body["status"] == "waitlisted"
    assert body["waitlist_position"] == 1
    assert body["message"] == "Class is full. You are #1 on the waitlist."
    assert second_resp.get_json()["waitlist_position"] == 2


def test_already_waitlisted_conflicts(client, studio, member, make_user, auth_header, make_template, make_instance, book):
    inst = make_instance(make_template(max_capacity=1))
    book(make_user(), inst)
    headers = auth_header(member)

    client.post(_book_url(studio, inst), headers=headers)
    resp = client.post(_book_url(studio, inst), headers=headers)

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "You are already on the waitlist for this class"
    assert Booking.query.filter_by(user_id=member.id).count() == 1


def test_cancel_promotes_first_waitlisted(client, studio, member, make_user, add_member, auth_header, make_template, make_instance):
    inst = make_instance(make_template(max_capacity=1))
    holder = _member(make_user, add_member, studio, "Hana Holder")
    second = _member(make_user, add_member, studio, "Sam Second")

    held = client.post(_book_url(studio, inst), headers=auth_header(holder)).get_json()
    first = client.post(_book_url(studio, inst), headers=auth_header(member)).get_json()
    later = client.post(_book_url(studio, inst), headers=auth_header(second)).get_json()

    resp = client.post(f"/api/bookings/{held['id']}/cancel", headers=auth_header(holder))

    assert resp.status_code == 200
    promoted = db.session.get(Booking, first["id"])
    assert promoted.status == "booked"
    assert promoted.waitlist_position is None
    assert db.session.get(Booking, later["id"]).waitlist_position == 1
    note = Notification.query.filter_by(type="waitlist_promoted").one()
    assert note.user_id == member.id


def test_cancel_waitlisted_compacts_queue(client, studio, member, make_user, add_member, auth_header, make_template, make_instance, book):
    inst = make_instance(make_template(max_capacity=1))
    holder = make_user()
    book(holder, inst)
    second = _member(make_user, add_member, studio, "Sam Second")

    first = client.post(_book_url(studio, inst), headers=auth_header(member)).get_json()
    later = client.post(_book_url(studio, inst), headers=auth_header(second)).get_json()

    resp = client.post(f"/api/bookings/{first['id']}/cancel", headers=auth_header(member))

    assert resp.status_code == 200
    assert db.session.get(Booking, first["id"]).waitlist_position is None
    moved = db.session.get(Booking, later["id"])
    assert moved.status == "waitlisted"
    assert moved.waitlist_position == 1
    assert Notification.query.filter_by(type="waitlist_promoted").count() == 0


def test_cannot_book_cancelled_class(client, studio, member, auth_header, make_template, make_instance):
    inst = make_instance(make_template(), status="cancelled")

    resp = client.post(_book_url(studio, inst), headers=auth_header(member))

    assert resp.status_code == 400


def test_cancel_own_booking(client, member, auth_header, make_template, make_instance, book):
    booking = book(member, make_instance(make_template()))

    resp = client.post(f"/api/bookings/{booking.id}/cancel", headers=auth_header(member))

    assert resp.status_code == 200
    row = db.session.get(Booking, booking.id)
    assert row.status == "cancelled"
    assert row.cancelled_at is not None

    again = client.post(f"/api/bookings/{booking.id}/cancel", headers=auth_header(member))
    assert again.status_code == 400


def test_cannot_cancel_someone_elses_booking(client, member, make_user, auth_header, make_template, make_instance, book):
    booking = book(make_user(), make_instance(make_template()))

    resp = client.post(f"/api/bookings/{booking.id}/cancel", headers=auth_header(member))

    assert resp.status_code == 404


def test_my_bookings(client, member, auth_header, make_template, make_instance, book):
    book(member, make_instance(make_template(), date="2026-03-10"))

    resp = client.get("/api/bookings/me", headers=auth_header(member))

    assert resp.status_code == 200
    rows = resp.get_json()
    assert len(rows) == 1
    assert rows[0]["class"]["date"] == "2026-03-10"


def test_calendar_download(client, member, auth_header, make_template, make_instance, book):
    booking = book(member, make_instance(make_template()))

    resp = client.get(f"/api/bookings/{booking.id}/calendar.ics", headers=auth_header(member))

    assert resp.status_code == 200
    assert resp.mimetype == "text/calendar"
    body = resp.get_data(as_text=True)
    assert body.startswith("BEGIN:VCALENDAR\r\n")
    assert f"UID:booking-{booking.id}@" in body


def test_calendar_requires_login(client, member, make_template, make_instance, book):
    booking = book(member, make_instance(make_template()))

    resp = client.get(f"/api/bookings/{booking.id}/calendar.ics")

    assert resp.status_code == 401


def test_booking_is_audited(client, studio, owner, member, auth_header, make_template, make_instance):
    inst = make_instance(make_template())
    client.post(_book_url(studio, inst), headers=auth_header(member))

    assert AuditLog.query.filter_by(action="BOOKING_CREATE", studio_id=studio.id).count() == 1

    resp = client.get(f"/api/studios/{studio.id}/audit-logs", query_string={"action": "BOOKING_CREATE"},
                      headers=auth_header(owner))

    assert resp.status_code == 200
    rows = resp.get_json()
    assert len(rows) == 1
    assert rows[0]["user_id"] == member.id


def test_audit_logs_owner_only(client, studio, member, auth_header):
    resp = client.get(f"/api/studios/{studio.id}/audit-logs", headers=auth_header(member))
    assert resp.status_code == 403
