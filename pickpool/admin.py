import hmac
import logging
from datetime import datetime

from .clock import utc_now
from .config import PoolConfig
from .errors import AuthError, CapacityError, ConfigurationError, NotFoundError, ValidationError
from .schemas import AdminActionIn, PickEntry, PoolSettings, WeekIndexEntry
from .weeks import WeekRepository

logger = logging.getLogger(__name__)


def is_admin_key(config: PoolConfig, supplied: str | None) -> bool:
    if not config.admin_key or not supplied:
        return False
    return hmac.compare_digest(supplied.encode(), config.admin_key.encode())


def require_admin_key(config: PoolConfig, supplied: str | None) -> None:
    if not config.admin_key:
        raise ConfigurationError("Admin secret not configured")
    if not is_admin_key(config, supplied):
        logger.warning("Rejected admin request with %s key", "a wrong" if supplied else "no")
        raise AuthError("Unauthorized")


def picks_doc(picks: dict[str, PickEntry]) -> dict:
    return {name: entry.to_doc() for name, entry in picks.items()}


def schedule_doc(settings: PoolSettings) -> dict:
    return {
        "enabled": settings.auto_reveal,
        "revealDow": settings.reveal_dow,
        "revealHour": settings.reveal_hour,
        "revealMinute": settings.reveal_minute,
    }


def _upsert_active(weeks: list[WeekIndexEntry], week: int, tournament: str) -> list[WeekIndexEntry]:
    entry = next((e for e in weeks if e.week == week), None)
    if entry is None:
        weeks.append(WeekIndexEntry(week=week, tournament=tournament, status="active"))
    else:
        entry.tournament = tournament
        entry.status = "active"
    return sorted(weeks, key=lambda e: e.week)


async def reveal(repo: WeekRepository, body: AdminActionIn, now: datetime):
    settings = await repo.get_settings()
    meta, _ = await repo.reveal_week(settings.current_week, now)
    picks = await repo.get_picks(settings.current_week)
    return {
        "success": True,
        "action": "reveal",
        "week": meta.week,
        "tournament": meta.tournament,
        "picks": picks_doc(picks),
    }


async def advance_week(repo: WeekRepository, body: AdminActionIn, now: datetime):
    settings = await repo.get_settings()
    previous = settings.current_week
    next_week = previous + 1

    # checked before anything is written
    if next_week > repo.config.season_length:
        raise CapacityError(f"No more tournaments. Season has {repo.config.season_length} weeks.")

    await repo.reveal_week(previous, now)

    meta = repo.new_week_meta(next_week, settings, now)
    await repo.put_week_meta(meta)
    await repo.get_picks(next_week)

    weeks = await repo.get_weeks()
    await repo.put_weeks(_upsert_active(weeks, next_week, meta.tournament))

    settings.current_week = next_week
    await repo.put_settings(settings)

    logger.info("Advanced from week %s to week %s (%s)", previous, next_week, meta.tournament)
    return {
        "success": True,
        "action": "advanceWeek",
        "previousWeek": previous,
        "currentWeek": next_week,
        "tournament": meta.tournament,
    }


async def view_all(repo: WeekRepository, body: AdminActionIn, now: datetime):
    settings = await repo.get_settings()
    week = body.week_number or settings.current_week
    if week < 1:
        raise ValidationError("Invalid week number")

    meta = await repo.find_week_meta(week)
    if meta is None:
        raise NotFoundError(f"Week {week} not found")
    picks = await repo.find_picks(week) or {}

    return {
        "success": True,
        "action": "viewAll",
        "week": meta.week,
        "tournament": meta.tournament,
        "locked": meta.locked,
        "revealed": meta.revealed,
        "revealedAt": meta.to_doc()["revealedAt"],
        "picks": picks_doc(picks),
    }


async def set_week(repo: WeekRepository, body: AdminActionIn, now: datetime):
    """
    Point the pool at an arbitrary week, bypassing sequential advancement.
    The target week's metadata is rewritten fresh; its picks are kept.
    """
    week = body.week_number
    if week is None or week < 1:
        raise ValidationError("weekNumber must be a positive integer")

    settings = await repo.get_settings()
    tournament = (body.tournament or "").strip() or None

    meta = repo.new_week_meta(week, settings, now, tournament=tournament)
    await repo.put_week_meta(meta)
    await repo.get_picks(week)

    weeks = await repo.get_weeks()
    for entry in weeks:
        if entry.week < week:
            entry.status = "revealed"
    await repo.put_weeks(_upsert_active(weeks, week, meta.tournament))

    previous = settings.current_week
    settings.current_week = week
    await repo.put_settings(settings)

    logger.info("Current week set from %s to %s (%s)", previous, week, meta.tournament)
    return {
        "success": True,
        "action": "setWeek",
        "previousWeek": previous,
        "currentWeek": week,
        "tournament": meta.tournament,
    }


async def set_auto_reveal(repo: WeekRepository, body: AdminActionIn, now: datetime):
    settings = await repo.get_settings()
    settings.auto_reveal = (not settings.auto_reveal) if body.enabled is None else body.enabled

    schedule = {
        "reveal_dow": body.reveal_dow,
        "reveal_hour": body.reveal_hour,
        "reveal_minute": body.reveal_minute,
    }
    rescheduled = False
    for field, value in schedule.items():
        if value is not None:
            setattr(settings, field, value)
            rescheduled = True
    await repo.put_settings(settings)

    if rescheduled:
        meta = await repo.get_week_meta(settings.current_week, now)
        if not meta.revealed:
            meta.reveal_after = repo.scheduled_reveal(settings, now)
            await repo.put_week_meta(meta)

    logger.info("Auto-reveal %s", "enabled" if settings.auto_reveal else "disabled")
    return {
        "success": True,
        "action": "setAutoReveal",
        "autoReveal": schedule_doc(settings),
    }


ACTIONS = {
    "reveal": reveal,
    "advanceWeek": advance_week,
    "viewAll": view_all,
    "setWeek": set_week,
    "setAutoReveal": set_auto_reveal,
}


async def run_action(repo: WeekRepository, body: AdminActionIn, now: datetime | None = None) -> dict:
    handler = ACTIONS.get(body.action or "")
    if handler is None:
        raise ValidationError(f"Unknown action: {body.action}. Valid: {', '.join(ACTIONS)}")
    return await handler(repo, body, now or utc_now())
