import logging
from datetime import datetime

from .clock import next_occurrence, utc_now
from .config import PoolConfig
from .schemas import PickEntry, PoolSettings, WeekIndexEntry, WeekMeta
from .store import KeyValueStore

logger = logging.getLogger(__name__)

SETTINGS_KEY = "global:settings"
WEEKS_KEY = "global:weeks"


def meta_key(week: int) -> str:
    return f"week:{week}:meta"


def picks_key(week: int) -> str:
    return f"week:{week}:picks"


def apply_reveal(meta: WeekMeta, now: datetime) -> bool:
    """Lock and reveal ``meta`` in place. Returns False if it was already revealed."""
    if meta.revealed:
        return False
    meta.locked = True
    meta.revealed = True
    meta.revealed_at = now
    return True


class WeekRepository:
    """
    Get-or-create accessors over the key-value store. Each getter persists a
    default on first call and returns the stored value afterwards. Writes are
    per key; there is no cross-key transaction.
    """

    def __init__(self, store: KeyValueStore, config: PoolConfig) -> None:
        self.store = store
        self.config = config

    # --- settings ---

    def default_settings(self) -> PoolSettings:
        return PoolSettings(
            current_week=1,
            auto_reveal=True,
            reveal_dow=self.config.reveal_dow,
            reveal_hour=self.config.reveal_hour,
            reveal_minute=self.config.reveal_minute,
        )

    async def get_settings(self) -> PoolSettings:
        doc = await self.store.get(SETTINGS_KEY)
        if doc is not None:
            return PoolSettings.model_validate(doc)

        settings = self.default_settings()
        await self.put_settings(settings)
        return settings

    async def put_settings(self, settings: PoolSettings) -> None:
        await self.store.put(SETTINGS_KEY, settings.to_doc())

    # --- week index ---

    async def get_weeks(self) -> list[WeekIndexEntry]:
        doc = await self.store.get(WEEKS_KEY)
        if doc is not None:
            return [WeekIndexEntry.model_validate(e) for e in doc]

        weeks = [WeekIndexEntry(week=1, tournament=self.config.tournament_for(1), status="active")]
        await self.put_weeks(weeks)
        return weeks

    async def put_weeks(self, weeks: list[WeekIndexEntry]) -> None:
        await self.store.put(WEEKS_KEY, [e.to_doc() for e in weeks])

    async def mark_index_status(self, week: int, status: str) -> None:
        weeks = await self.get_weeks()
        entry = next((e for e in weeks if e.week == week), None)
        if entry is None or entry.status == status:
            return
        entry.status = status
        await self.put_weeks(weeks)

    # --- week meta ---

    def new_week_meta(
        self,
        week: int,
        settings: PoolSettings,
        now: datetime,
        tournament: str | None = None,
    ) -> WeekMeta:
        return WeekMeta(
            week=week,
            tournament=tournament or self.config.tournament_for(week),
            locked=False,
            revealed=False,
            revealed_at=None,
            reveal_after=self.scheduled_reveal(settings, now),
            created_at=now,
        )

    def scheduled_reveal(self, settings: PoolSettings, now: datetime) -> datetime | None:
        if not settings.has_schedule:
            return None
        return next_occurrence(
            self.config.timezone,
            settings.reveal_dow,
            settings.reveal_hour,
            settings.reveal_minute,
            now,
        )

    async def find_week_meta(self, week: int) -> WeekMeta | None:
        doc = await self.store.get(meta_key(week))
        return None if doc is None else WeekMeta.model_validate(doc)

    async def get_week_meta(self, week: int, now: datetime | None = None) -> WeekMeta:
        meta = await self.find_week_meta(week)
        if meta is not None:
            return meta

        settings = await self.get_settings()
        meta = self.new_week_meta(week, settings, now or utc_now())
        await self.put_week_meta(meta)
        return meta

    async def put_week_meta(self, meta: WeekMeta) -> None:
        await self.store.put(meta_key(meta.week), meta.to_doc())

    # --- picks ---

    async def find_picks(self, week: int) -> dict[str, PickEntry] | None:
        doc = await self.store.get(picks_key(week))
        if doc is None:
            return None
        return {name: PickEntry.model_validate(entry) for name, entry in doc.items()}

    async def get_picks(self, week: int) -> dict[str, PickEntry]:
        picks = await self.find_picks(week)
        if picks is not None:
            return picks

        await self.put_picks(week, {})
        return {}

    async def put_picks(self, week: int, picks: dict[str, PickEntry]) -> None:
        await self.store.put(picks_key(week), {name: p.to_doc() for name, p in picks.items()})

    # --- lifecycle ---

    async def ensure_initialized(self, now: datetime | None = None) -> PoolSettings:
        """
        Bootstrap settings, the week index and the current week's documents.
        Safe to call on every request; after the first call it only reads.
        """
        now = now or utc_now()
        fresh = await self.store.get(SETTINGS_KEY) is None

        settings = await self.get_settings()
        await self.get_weeks()
        await self.get_week_meta(settings.current_week, now)
        await self.get_picks(settings.current_week)

        if fresh:
            logger.info("Pool bootstrapped at week %s", settings.current_week)
        return settings

    async def reveal_week(self, week: int, now: datetime | None = None) -> tuple[WeekMeta, bool]:
        """
        Lock and reveal ``week`` and mark its index entry revealed.
        Idempotent: an already revealed week is left untouched.
        """
        now = now or utc_now()
        meta = await self.get_week_meta(week, now)
        changed = apply_reveal(meta, now)
        if changed:
            await self.put_week_meta(meta)
            logger.info("Week %s (%s) revealed", week, meta.tournament)
        await self.mark_index_status(week, "revealed")
        return meta, changed
