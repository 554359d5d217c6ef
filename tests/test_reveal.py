from dataclasses import replace

import pytest

from pickpool.clock import CivilTime
from pickpool.reveal import check_auto_reveal, deadline_guard, weekly_guard
from pickpool.schemas import PoolSettings
from pickpool.weeks import WeekRepository
from tests.conftest import (
    MONDAY_NOON,
    THURSDAY_NOON,
    WEDNESDAY_2059,
    WEDNESDAY_2100,
    WEDNESDAY_2101,
)

WEDNESDAY_9PM = PoolSettings(current_week=1, auto_reveal=True, reveal_dow=3, reveal_hour=21, reveal_minute=0)


@pytest.mark.parametrize(
    "civil, expected",
    [
        (CivilTime(3, 20, 59), False),
        (CivilTime(3, 21, 0), True),
        (CivilTime(3, 21, 1), True),
        (CivilTime(3, 23, 0), True),
        (CivilTime(3, 9, 30), False),
        (CivilTime(4, 0, 0), True),
        (CivilTime(6, 12, 0), True),
        (CivilTime(2, 23, 59), False),
        (CivilTime(0, 22, 0), False),
    ],
)
def test_weekly_guard(civil, expected):
    assert weekly_guard(WEDNESDAY_9PM, civil) is expected


def test_weekly_guard_minute_comparison():
    settings = WEDNESDAY_9PM.model_copy(update={"reveal_minute": 30})
    assert weekly_guard(settings, CivilTime(3, 21, 29)) is False
    assert weekly_guard(settings, CivilTime(3, 21, 30)) is True
    assert weekly_guard(settings, CivilTime(3, 22, 0)) is True


def test_weekly_guard_off_when_disabled():
    settings = WEDNESDAY_9PM.model_copy(update={"auto_reveal": False})
    assert weekly_guard(settings, CivilTime(5, 12, 0)) is False


def test_weekly_guard_off_without_schedule():
    settings = PoolSettings(current_week=1, auto_reveal=True)
    assert weekly_guard(settings, CivilTime(5, 12, 0)) is False


async def test_deadline_guard(repo):
    meta = await repo.get_week_meta(1, MONDAY_NOON)
    assert deadline_guard(WEDNESDAY_9PM, meta, WEDNESDAY_2059) is False
    assert deadline_guard(WEDNESDAY_9PM, meta, WEDNESDAY_2100) is True
    assert deadline_guard(WEDNESDAY_9PM.model_copy(update={"auto_reveal": False}), meta, THURSDAY_NOON) is False


async def test_no_reveal_before_reveal_day(repo):
    await repo.ensure_initialized(MONDAY_NOON)
    assert await check_auto_reveal(repo, MONDAY_NOON) is False
    meta = await repo.get_week_meta(1)
    assert not meta.locked and not meta.revealed


async def test_auto_reveal_fires_once(repo):
    await repo.ensure_initialized(MONDAY_NOON)

    assert await check_auto_reveal(repo, WEDNESDAY_2100) is True
    assert await check_auto_reveal(repo, WEDNESDAY_2101) is False

    meta = await repo.get_week_meta(1)
    assert meta.locked and meta.revealed
    assert meta.revealed_at == WEDNESDAY_2100
    assert (await repo.get_weeks())[0].status == "revealed"


async def test_auto_reveal_respects_disabled_flag(repo):
    settings = await repo.ensure_initialized(MONDAY_NOON)
    settings.auto_reveal = False
    await repo.put_settings(settings)

    assert await check_auto_reveal(repo, THURSDAY_NOON) is False
    assert (await repo.get_week_meta(1)).revealed is False


async def test_deadline_mode_uses_reveal_after(store, config):
    repo = WeekRepository(store, replace(config, reveal_mode="deadline"))
    await repo.ensure_initialized(MONDAY_NOON)

    assert await check_auto_reveal(repo, WEDNESDAY_2059) is False
    assert await check_auto_reveal(repo, WEDNESDAY_2100) is True
    assert (await repo.get_week_meta(1)).revealed_at == WEDNESDAY_2100


async def test_only_current_week_is_checked(repo):
    await repo.ensure_initialized(MONDAY_NOON)
    await repo.get_week_meta(2, MONDAY_NOON)

    await check_auto_reveal(repo, THURSDAY_NOON)

    assert (await repo.get_week_meta(1)).revealed is True
    assert (await repo.get_week_meta(2)).revealed is False
