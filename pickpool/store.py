import json
import logging
from typing import Any, Protocol

from .database import Database
from .models import KeyValueEntry

logger = logging.getLogger(__name__)

MEMORY_URL = "memory://"


class KeyValueStore(Protocol):
    """String-keyed get/put of JSON-serializable values. No multi-key transactions."""

    async def get(self, key: str) -> Any | None: ...

    async def put(self, key: str, value: Any) -> None: ...

    async def init_models(self) -> None: ...

    async def close(self) -> None: ...


class SqlKeyValueStore:
    def __init__(self, database: Database) -> None:
        self.database = database

    async def init_models(self) -> None:
        await self.database.init_models()

    async def close(self) -> None:
        await self.database.close()

    async def get(self, key: str) -> Any | None:
        async with self.database.SessionLocal() as s:
            row = await s.get(KeyValueEntry, key)
            if row is None:
                return None
            return json.loads(row.value)

    async def put(self, key: str, value: Any) -> None:
        payload = json.dumps(value)
        async with self.database.SessionLocal() as s:
            async with s.begin():
                await s.merge(KeyValueEntry(key=key, value=payload))


class MemoryKeyValueStore:
    """
    In-process store. Values go through JSON on the way in and out so callers
    never share mutable state with the store.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def init_models(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    async def put(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def keys(self) -> list[str]:
        return sorted(self._data)


def create_store(database_url: str) -> SqlKeyValueStore | MemoryKeyValueStore:
    if database_url == MEMORY_URL:
        logger.warning("Using in-memory store; data is lost on restart")
        return MemoryKeyValueStore()
    return SqlKeyValueStore(Database(database_url))
