from datetime import datetime

import pytest

from models import db
from utils.calendar import (
    build_booking_calendar,
    escape_text,
    fold_line,
    generate_ical_event,
    to_ical_local,
)

NOW = datetime(2026, 3, 1, 12, 0, 0)


def _event(**kwargs):
    fields = dict(
        uid=42,
        summary="Wheel Throwing",
        date="2026-03-10",
        start_time="18:00",
        duration_minutes=90,
        timezone="America/New_York",
        now=NOW,
        prodid="-//Test//Studio//EN",
        uid_domain="example.test",
    )
    fields.update(kwargs)
    return generate_ical_event(**fields)


def test_local_time_format():
    assert to_ical_local("2026-03-10", "18:00") == "20260310T180000"
    assert to_ical_local("2026-03-10", "09:05:30") == "20260310T090530"


def test_escape_text():
    assert escape_text("a,b;c\\d\nnext") == "a\\,b\\;c\\\\d\\nnext"


def test_short_lines_are_not_folded():
    assert fold_line("SUMMARY:Yoga") == "SUMMARY:Yoga"


def test_long_lines_fold_at_75_octets():
    line = "DESCRIPTION:" + "x" * 200
    parts = fold_line(line).split("\r\n")

    assert len(parts[0].encode("utf-8")) == 75
    assert all(p.startswith(" ") for p in parts[1:])
    assert all(len(p.encode("utf-8")) <= 75 for p in parts)
    assert "".join(p[1:] if i else p for i, p in enumerate(parts)) == line


def test_folding_never_splits_multibyte_characters():
    line = "SUMMARY:" + "é" * 80
    for part in fold_line(line).split("\r\n"):
        assert len(part.encode("utf-8")) <= 75
        part.encode("utf-8").decode("utf-8")


def test_event_structure():
    ics = _event(location="12 Clay St", organizer_name="Kiln, Co", organizer_email="hi@kiln.example")

    assert ics.endswith("\r\n")
    lines = ics.split("\r\n")
    assert lines[0] == "BEGIN:VCALENDAR"
    assert "METHOD:REQUEST" in lines
    assert "UID:booking-42@example.test" in lines
    assert "DTSTAMP:20260301T120000Z" in lines
    assert "DTSTART;TZID=America/New_York:20260310T180000" in lines
    assert "DTEND;TZID=America/New_York:20260310T193000" in lines
    assert "ORGANIZER;CN=Kiln\\, Co:mailto:hi@kiln.example" in lines
    assert "STATUS:CONFIRMED" in lines


def test_cancel_keeps_uid_and_flips_status():
    request = _event()
    cancel = _event(method="CANCEL", now=datetime(2026, 3, 2, 9, 0, 0))

    uid = [line for line in request.split("\r\n") if line.startswith("UID:")]
    assert uid == [line for line in cancel.split("\r\n") if line.startswith("UID:")]
    assert "METHOD:CANCEL" in cancel
    assert "STATUS:CANCELLED" in cancel


def test_invalid_method():
    with pytest.raises(ValueError):
        _event(method="PUBLISH")


def test_booking_calendar_uses_template_and_studio(app, studio, owner, make_user, make_template, make_instance, book):
    tpl = make_template(teacher_id=owner.id, location="Studio B")
    inst = make_instance(tpl)
    booking = book(make_user(), inst)

    ics = build_booking_calendar(booking, now=NOW)

    assert f"UID:booking-{booking.id}@studiocoop" in ics
    assert "SUMMARY:Wheel Throwing" in ics
    assert "LOCATION:Studio B" in ics
    assert "DESCRIPTION:Class with Olive Owner" in ics
    assert "METHOD:REQUEST" in ics


def test_booking_calendar_cancelled_class(app, studio, make_user, make_template, make_instance, book):
    inst = make_instance(make_template())
    booking = book(make_user(), inst)
    inst.status = "cancelled"
    db.session.commit()

    ics = build_booking_calendar(booking, now=NOW)

    assert "METHOD:CANCEL" in ics
    assert "LOCATION:12 Clay St" in ics
