import logging
from datetime import datetime

from .clock import utc_now
from .errors import LockedError, ValidationError
from .schemas import PickEntry
from .weeks import WeekRepository

logger = logging.getLogger(__name__)


async def submit_pick(
    repo: WeekRepository,
    name: str | None,
    pick_text: str | None,
    now: datetime | None = None,
):
    """Record ``name``'s pick for the current week, replacing any earlier one."""
    members = repo.config.members
    if not name or name not in members:
        raise ValidationError(f"Invalid name. Must be one of: {', '.join(members)}")
    if not isinstance(pick_text, str) or not pick_text.strip():
        raise ValidationError("Golfer pick is required")

    now = now or utc_now()
    settings = await repo.get_settings()
    week = settings.current_week
    meta = await repo.get_week_meta(week, now)

    if meta.locked:
        raise LockedError(f"Week {week} ({meta.tournament}) is locked. No more picks allowed.")

    pick = pick_text.strip()
    picks = await repo.get_picks(week)
    picks[name] = PickEntry(pick=pick, submitted_at=now)
    await repo.put_picks(week, picks)

    logger.info("Pick recorded for %s in week %s", name, week)
    return {
        "success": True,
        "week": week,
        "tournament": meta.tournament,
        "name": name,
        "pick": pick,
    }
