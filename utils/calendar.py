"""
iCal (.ics) generation for booking confirmations, updates and cancellations.

Output follows RFC 5545: CRLF line endings, content lines folded at 75
octets, escaped TEXT values and wall-clock start/end qualified with the
studio's TZID. The UID is derived from the booking id, so every version of a
booking's event (confirm, update, cancel) refers to the same calendar entry;
only DTSTAMP and METHOD change between versions.
"""
from datetime import datetime

from flask import current_app

from services.class_generator import calculate_end_time

MAX_LINE_OCTETS = 75


def to_ical_utc(d: datetime) -> str:
    return d.strftime("%Y%m%dT%H%M%SZ")


def to_ical_local(date_str: str, time_str: str) -> str:
    parts = (time_str.split(":") + ["00", "00", "00"])[:3]
    h, m, s = (p.zfill(2) for p in parts)
    return f"{date_str.replace('-', '')}T{h}{m}{s}"


def fold_line(line: str) -> str:
    """Split a content line into chunks of at most 75 octets (UTF-8)."""
    encoded = line.encode("utf-8")
    if len(encoded) <= MAX_LINE_OCTETS:
        return line

    chunks = []
    current = ""
    limit = MAX_LINE_OCTETS
    for ch in line:
        if len((current + ch).encode("utf-8")) > limit:
            chunks.append(current)
            current = ""
            # continuation lines lose one octet to the leading space
            limit = MAX_LINE_OCTETS - 1
        current += ch
    chunks.append(current)
    return "\r\n ".join(chunks)


def escape_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def generate_ical_event(
    uid,
    summary: str,
    date: str,
    start_time: str,
    duration_minutes: int,
    timezone: str,
    location=None,
    description=None,
    organizer_name=None,
    organizer_email=None,
    method: str = "REQUEST",
    now=None,
    prodid=None,
    uid_domain=None,
) -> str:
    if method not in ("REQUEST", "CANCEL"):
        raise ValueError("method must be REQUEST or CANCEL")

    prodid = prodid or current_app.config.get("ICAL_PRODID", "-//Studio Co-op//Booking Engine//EN")
    uid_domain = uid_domain or current_app.config.get("ICAL_UID_DOMAIN", "studiocoop")
    dt_stamp = to_ical_utc(now or datetime.utcnow())

    local_start = to_ical_local(date, start_time)
    local_end = to_ical_local(date, calculate_end_time(start_time, duration_minutes))

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{prodid}",
        "CALSCALE:GREGORIAN",
        f"METHOD:{method}",
        "BEGIN:VEVENT",
        f"UID:booking-{uid}@{uid_domain}",
        f"DTSTAMP:{dt_stamp}",
        f"DTSTART;TZID={timezone}:{local_start}",
        f"DTEND;TZID={timezone}:{local_end}",
        f"SUMMARY:{escape_text(summary)}",
    ]

    if location:
        lines.append(f"LOCATION:{escape_text(location)}")
    if description:
        lines.append(f"DESCRIPTION:{escape_text(description)}")
    if organizer_email:
        cn = f"CN={escape_text(organizer_name)}:" if organizer_name else ""
        lines.append(f"ORGANIZER;{cn}mailto:{organizer_email}")

    lines.append("STATUS:CANCELLED" if method == "CANCEL" else "STATUS:CONFIRMED")
    lines += ["END:VEVENT", "END:VCALENDAR"]

    return "\r\n".join(fold_line(line) for line in lines) + "\r\n"


def build_booking_calendar(booking, now=None) -> str:
    """Calendar entry for a booking; CANCEL once the booking or its class is cancelled."""
    cls = booking.class_instance
    template = cls.template
    studio = cls.studio

    cancelled = booking.status == "cancelled" or cls.status == "cancelled"
    teacher = cls.teacher
    location = (template.location if template else None) or studio.location

    if template:
        duration = template.duration_min
    else:
        start_h, start_m = (int(p) for p in cls.start_time.split(":")[:2])
        end_h, end_m = (int(p) for p in cls.end_time.split(":")[:2])
        duration = ((end_h * 60 + end_m) - (start_h * 60 + start_m)) % (24 * 60)

    return generate_ical_event(
        uid=booking.id,
        summary=template.name if template else "Class",
        date=cls.date,
        start_time=cls.start_time,
        duration_minutes=duration,
        timezone=studio.timezone,
        location=location,
        description=f"Class with {teacher.name}" if teacher else None,
        organizer_name=studio.name,
        organizer_email=studio.email,
        method="CANCEL" if cancelled else "REQUEST",
        now=now,
    )
