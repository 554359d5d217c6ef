from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo


@dataclass(frozen=True, slots=True)
class CivilTime:
    day_of_week: int  # 0=Sunday ... 6=Saturday
    hour: int
    minute: int


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def day_of_week(dt: datetime) -> int:
    # datetime.weekday() is Monday=0; shift so Sunday=0
    return (dt.weekday() + 1) % 7


def current_civil_time(zone_name: str, now: datetime | None = None) -> CivilTime:
    """Wall-clock fields a person in ``zone_name`` would read at ``now``."""
    local = (now or utc_now()).astimezone(ZoneInfo(zone_name))
    return CivilTime(day_of_week=day_of_week(local), hour=local.hour, minute=local.minute)


def _resolve_local(zone: ZoneInfo, day: date, hour: int, minute: int) -> datetime:
    """
    Attach ``zone`` to a civil date/time using the offset in force on that
    date. Both candidate offsets (fold=0, fold=1) are tried and the first whose
    UTC round trip lands back on the same civil hour and minute wins. A time
    skipped by a spring-forward gap has no such offset; it is shifted forward
    by the length of the gap (02:30 becomes 03:30).
    """
    naive = datetime.combine(day, time(hour, minute))
    for fold in (0, 1):
        candidate = naive.replace(tzinfo=zone, fold=fold)
        back = candidate.astimezone(timezone.utc).astimezone(zone)
        if (back.hour, back.minute) == (hour, minute):
            return candidate.astimezone(timezone.utc)
    return naive.replace(tzinfo=zone, fold=0).astimezone(timezone.utc)


def next_occurrence(
    zone_name: str,
    target_dow: int,
    target_hour: int,
    target_minute: int,
    from_instant: datetime | None = None,
) -> datetime:
    """
    Earliest instant strictly after ``from_instant`` whose civil time in
    ``zone_name`` is the target weekday/hour/minute. Returned in UTC.
    """
    zone = ZoneInfo(zone_name)
    start = from_instant or utc_now()
    local = start.astimezone(zone)

    days_ahead = (target_dow - day_of_week(local)) % 7
    target_day = local.date() + timedelta(days=days_ahead)
    candidate = _resolve_local(zone, target_day, target_hour, target_minute)

    if candidate <= start:
        candidate = _resolve_local(zone, target_day + timedelta(days=7), target_hour, target_minute)
    return candidate
