import logging
from datetime import datetime

from .clock import CivilTime, current_civil_time, utc_now
from .schemas import PoolSettings, WeekMeta
from .weeks import WeekRepository

logger = logging.getLogger(__name__)


def weekly_guard(settings: PoolSettings, civil: CivilTime) -> bool:
    """
    True once the civil time has reached the configured weekday/time within
    the current Sunday-based week. Days before the reveal day never pass.
    """
    if not settings.auto_reveal or not settings.has_schedule:
        return False
    if civil.day_of_week == settings.reveal_dow:
        return civil.hour > settings.reveal_hour or (
            civil.hour == settings.reveal_hour and civil.minute >= settings.reveal_minute
        )
    return civil.day_of_week > settings.reveal_dow


def deadline_guard(settings: PoolSettings, meta: WeekMeta, now: datetime) -> bool:
    if not settings.auto_reveal or meta.reveal_after is None:
        return False
    return now >= meta.reveal_after


def should_auto_reveal(
    mode: str,
    zone_name: str,
    settings: PoolSettings,
    meta: WeekMeta,
    now: datetime,
) -> bool:
    if meta.revealed:
        return False
    if mode == "deadline":
        return deadline_guard(settings, meta, now)
    return weekly_guard(settings, current_civil_time(zone_name, now))


async def check_auto_reveal(repo: WeekRepository, now: datetime | None = None) -> bool:
    """
    Reveal the current week if its guard holds. Only the current week is
    checked. Returns True when this call performed the transition.
    """
    now = now or utc_now()
    settings = await repo.get_settings()
    meta = await repo.get_week_meta(settings.current_week, now)

    if not should_auto_reveal(repo.config.reveal_mode, repo.config.timezone, settings, meta, now):
        return False

    _, changed = await repo.reveal_week(settings.current_week, now)
    if changed:
        logger.info("Auto-reveal fired for week %s", settings.current_week)
    return changed
