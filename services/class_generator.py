"""
Class instance generator.

Expands a studio's active class templates into dated class instances over a
lookahead window. Called by the daily cron (``flask generate-classes``), by
the platform admin endpoint, or manually by studio owners.

All calendar arithmetic is done on whole UTC days and dates are exchanged as
zero-padded ``YYYY-MM-DD`` strings, so no timezone conversion (and no DST
discontinuity) is ever involved.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from dateutil.relativedelta import relativedelta
from sqlalchemy import func

from models import db
from models.class_instance import ClassInstance
from models.class_template import ClassTemplate
from models.studio import Studio

logger = logging.getLogger(__name__)

DEFAULT_WEEKS_AHEAD = 4


class ClosureSet(frozenset):
    """Studio-wide blackout dates (``YYYY-MM-DD`` strings)."""

    @classmethod
    def from_settings(cls, settings: Optional[dict]) -> "ClosureSet":
        raw = (settings or {}).get("closureDates")
        if not isinstance(raw, list):
            return cls()
        return cls(d for d in raw if isinstance(d, str))


# ---------- date helpers ----------

def to_date_string(d: date) -> str:
    return d.isoformat()


def parse_date_string(value: str) -> date:
    return date.fromisoformat(value)


def utc_today() -> date:
    return datetime.utcnow().date()


def js_weekday(d: date) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    return d.isoweekday() % 7


def calculate_end_time(start_time: str, duration_min: int) -> str:
    """Add ``duration_min`` to ``HH:MM[:SS]``, wrapping past midnight."""
    parts = start_time.split(":")
    total = int(parts[0]) * 60 + int(parts[1]) + int(duration_min)
    end_h = (total // 60) % 24
    end_m = total % 60
    return f"{end_h:02d}:{end_m:02d}:00"


def next_day_of_week(from_date: date, target_day: int) -> date:
    """First date on or after ``from_date`` falling on ``target_day`` (0=Sunday)."""
    days_until = (target_day - js_weekday(from_date) + 7) % 7
    return from_date + timedelta(days=days_until)


def months_in_range(from_date: date, to_date: date) -> List[Tuple[int, int]]:
    result = []
    cur = from_date.replace(day=1)
    while cur <= to_date:
        result.append((cur.year, cur.month))
        cur += relativedelta(months=1)
    return result


def dedup_key(template_id, date_str: str) -> str:
    return f"{template_id}|{date_str}"


def calculate_dates(
    template_id,
    day_of_week: int,
    recurrence: str,
    from_date: date,
    to_date: date,
    closure_dates: Iterable[str],
    existing_keys: Set[str],
) -> List[str]:
    """
    Dates a recurring template should produce inside ``[from_date, to_date]``.

    Closure dates and ``template|date`` keys already present are skipped.
    ``once`` is handled by the caller; any unknown cadence yields nothing.
    """
    closures = closure_dates if isinstance(closure_dates, (set, frozenset)) else set(closure_dates)
    from_str = to_date_string(from_date)
    to_str = to_date_string(to_date)
    dates: List[str] = []

    def is_new(date_str: str) -> bool:
        return date_str not in closures and dedup_key(template_id, date_str) not in existing_keys

    if recurrence == "weekly":
        cur = next_day_of_week(from_date, day_of_week)
        while to_date_string(cur) <= to_str:
            d = to_date_string(cur)
            if is_new(d):
                dates.append(d)
            cur += timedelta(days=7)

    elif recurrence == "biweekly":
        # parity is anchored to the first occurrence in the window
        cur = next_day_of_week(from_date, day_of_week)
        phase = 0
        while to_date_string(cur) <= to_str:
            if phase % 2 == 0:
                d = to_date_string(cur)
                if is_new(d):
                    dates.append(d)
            cur += timedelta(days=7)
            phase += 1

    elif recurrence == "monthly":
        for year, month in months_in_range(from_date, to_date):
            occurrence = to_date_string(next_day_of_week(date(year, month, 1), day_of_week))
            # a first-weekday that already passed this month is not back-filled
            if from_str <= occurrence <= to_str and is_new(occurrence):
                dates.append(occurrence)

    return dates


def build_instance_row(template: ClassTemplate, studio_id, date_str: str) -> Dict:
    return {
        "template_id": template.id,
        "studio_id": studio_id,
        "teacher_id": template.teacher_id,
        "date": date_str,
        "start_time": template.start_time,
        "end_time": calculate_end_time(template.start_time, template.duration_min),
        "status": "scheduled",
        "max_capacity": template.max_capacity,
        "feed_enabled": True,
    }


def plan_instances(
    templates: Iterable[ClassTemplate],
    studio_id,
    today: date,
    end_date: date,
    closures: ClosureSet,
    existing_keys: Set[str],
    has_any_instance: Callable[[int], bool],
) -> List[Dict]:
    """Compute insertable instance rows for ``templates`` without touching the store."""
    rows: List[Dict] = []
    end_str = to_date_string(end_date)

    for template in templates:
        if template.day_of_week is None:
            continue

        if template.recurrence == "once":
            # a once template's single instance may lie outside the window
            if has_any_instance(template.id):
                continue
            occurrence = to_date_string(next_day_of_week(today, template.day_of_week))
            dates = [occurrence] if occurrence <= end_str and occurrence not in closures else []
        else:
            dates = calculate_dates(
                template.id,
                template.day_of_week,
                template.recurrence,
                today,
                end_date,
                closures,
                existing_keys,
            )

        for date_str in dates:
            rows.append(build_instance_row(template, studio_id, date_str))

    return rows


# ---------- store access ----------

def _template_has_instances(template_id: int) -> bool:
    count = (
        db.session.query(func.count(ClassInstance.id))
        .filter(ClassInstance.template_id == template_id)
        .scalar()
    )
    return (count or 0) > 0


def _insert_ignoring_conflicts(rows: List[Dict]) -> int:
    """INSERT ... ON CONFLICT (template_id, date) DO NOTHING; returns rows inserted."""
    dialect = db.session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"Unsupported database dialect for class generation: {dialect}")

    table = ClassInstance.__table__
    stmt = (
        insert(table)
        .values(rows)
        .on_conflict_do_nothing(index_elements=["template_id", "date"])
        .returning(table.c.id)
    )
    inserted = db.session.execute(stmt).scalars().all()
    db.session.commit()
    return len(inserted)


def _load_plan_inputs(studio_id, weeks_ahead: int, today: Optional[date]):
    studio = db.session.get(Studio, studio_id)
    closures = ClosureSet.from_settings(studio.settings if studio else None)

    templates = (
        ClassTemplate.query
        .filter_by(studio_id=studio_id, active=True)
        .order_by(ClassTemplate.id.asc())
        .all()
    )
    if not templates:
        return None

    start = today or utc_today()
    end_date = start + timedelta(days=weeks_ahead * 7)

    existing = (
        db.session.query(ClassInstance.template_id, ClassInstance.date)
        .filter(
            ClassInstance.studio_id == studio_id,
            ClassInstance.date >= to_date_string(start),
            ClassInstance.date <= to_date_string(end_date),
            ClassInstance.template_id.in_([t.id for t in templates]),
        )
        .all()
    )
    existing_keys = {dedup_key(template_id, d) for template_id, d in existing}

    return templates, start, end_date, closures, existing_keys


def preview_class_instances(
    studio_id,
    weeks_ahead: int = DEFAULT_WEEKS_AHEAD,
    today: Optional[date] = None,
) -> List[Dict]:
    """Rows the generator would insert right now (nothing is written)."""
    inputs = _load_plan_inputs(studio_id, weeks_ahead, today)
    if inputs is None:
        return []
    templates, start, end_date, closures, existing_keys = inputs
    return plan_instances(templates, studio_id, start, end_date, closures, existing_keys, _template_has_instances)


def generate_class_instances(
    studio_id,
    weeks_ahead: int = DEFAULT_WEEKS_AHEAD,
    today: Optional[date] = None,
) -> int:
    """
    Generate class instances from every active template of a studio.

    Args:
        studio_id: Studio whose templates are expanded
        weeks_ahead: Lookahead window in weeks
        today: Window start (defaults to the current UTC date)

    Returns:
        Number of instances actually inserted. Running twice over the same
        window with unchanged templates returns 0 the second time.
    """
    inputs = _load_plan_inputs(studio_id, weeks_ahead, today)
    if inputs is None:
        logger.info("No active templates for studio %s", studio_id)
        return 0

    templates, start, end_date, closures, existing_keys = inputs
    rows = plan_instances(templates, studio_id, start, end_date, closures, existing_keys, _template_has_instances)
    if not rows:
        return 0

    created = _insert_ignoring_conflicts(rows)
    logger.info(
        "Generated %s of %s planned instances for studio %s (%s to %s)",
        created, len(rows), studio_id, start.isoformat(), end_date.isoformat(),
    )
    return created


def generate_for_all_studios(weeks_ahead: int = DEFAULT_WEEKS_AHEAD) -> Dict[int, int]:
    """Cron helper: run the generator for every studio with an active template."""
    studio_ids = [
        row[0]
        for row in db.session.query(ClassTemplate.studio_id)
        .filter(ClassTemplate.active.is_(True))
        .distinct()
        .order_by(ClassTemplate.studio_id)
        .all()
    ]
    results = {}
    for studio_id in studio_ids:
        results[studio_id] = generate_class_instances(studio_id, weeks_ahead)
    return results
