"""Typed key-value access over a single Redis hash."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from redis.asyncio import Redis

from rainwake.storage.redis_client import RedisKeys, get_redis

_TRUE = "true"
_FALSE = "false"


def _encode(value: int | float | bool | str) -> str:
    if isinstance(value, bool):
        return _TRUE if value else _FALSE
    if isinstance(value, float):
        return repr(value)
    return str(value)


class Editor:
    """Collects writes for one atomic edit."""

    def __init__(self):
        self.updates: dict[str, str] = {}
        self.removals: set[str] = set()

    def set(self, key: str, value: int | float | bool | str) -> None:
        self.removals.discard(key)
        self.updates[key] = _encode(value)

    def remove(self, key: str) -> None:
        self.updates.pop(key, None)
        self.removals.add(key)


class KeyValueStore:
    """Durable key-value store with typed accessors.

    Every key lives in one Redis hash, so single-key reads and writes are
    atomic and `edit()` applies a group of writes in one MULTI/EXEC.
    """

    def __init__(self, redis: Redis | None = None, key: str = RedisKeys.PREFERENCES):
        self._redis = redis
        self._key = key

    @property
    def redis(self) -> Redis:
        return self._redis or get_redis()

    async def snapshot(self) -> dict[str, str]:
        """Read every field at once."""
        return await self.redis.hgetall(self._key)

    async def get_str(self, field: str) -> str | None:
        return await self.redis.hget(self._key, field)

    async def get_int(self, field: str) -> int | None:
        return parse_int(await self.get_str(field))

    # Epoch millis; Python ints are unbounded
    get_long = get_int

    async def get_bool(self, field: str) -> bool | None:
        return parse_bool(await self.get_str(field))

    async def get_float(self, field: str) -> float | None:
        return parse_float(await self.get_str(field))

    async def set(self, field: str, value: int | float | bool | str) -> None:
        await self.redis.hset(self._key, field, _encode(value))

    async def remove(self, *fields: str) -> None:
        if fields:
            await self.redis.hdel(self._key, *fields)

    @asynccontextmanager
    async def edit(self) -> AsyncIterator[Editor]:
        """Apply all writes made on the editor together, or none on error.

        Usage:
            async with store.edit() as e:
                e.set("a", 1)
                e.remove("b")
        """
        editor = Editor()
        yield editor

        if not editor.updates and not editor.removals:
            return
        async with self.redis.pipeline(transaction=True) as pipe:
            if editor.updates:
                pipe.hset(self._key, mapping=editor.updates)
            if editor.removals:
                pipe.hdel(self._key, *editor.removals)
            await pipe.execute()


def parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def parse_float(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def parse_bool(raw: str | None) -> bool | None:
    if raw is None:
        return None
    if raw == _TRUE:
        return True
    if raw == _FALSE:
        return False
    return None
