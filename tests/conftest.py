from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from pickpool.config import PoolConfig
from pickpool.main import create_app
from pickpool.store import MemoryKeyValueStore
from pickpool.weeks import WeekRepository

UTC = timezone.utc

# America/New_York, March 2026 (EST until Sunday March 8)
MONDAY_NOON = datetime(2026, 3, 2, 17, 0, tzinfo=UTC)         # Mon 12:00 EST
WEDNESDAY_2059 = datetime(2026, 3, 5, 1, 59, tzinfo=UTC)      # Wed 20:59 EST
WEDNESDAY_2100 = datetime(2026, 3, 5, 2, 0, tzinfo=UTC)       # Wed 21:00 EST
WEDNESDAY_2101 = datetime(2026, 3, 5, 2, 1, tzinfo=UTC)       # Wed 21:01 EST
THURSDAY_NOON = datetime(2026, 3, 5, 17, 0, tzinfo=UTC)       # Thu 12:00 EST
NEXT_WEDNESDAY_2100 = datetime(2026, 3, 12, 1, 0, tzinfo=UTC)  # Wed 21:00 EDT


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def config():
    return PoolConfig(
        admin_key="secret",
        database_url="memory://",
        members=("Alice", "Bob"),
        tournaments=("T1", "T2"),
    )


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def repo(store, config):
    return WeekRepository(store, config)


@pytest.fixture
def clock():
    return FakeClock(MONDAY_NOON)


@pytest.fixture
def client(config, store, clock):
    app = create_app(config, store)
    app.state.clock = clock
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": "secret"}
