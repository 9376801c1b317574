"""Persistent counters and the OVAL id generator built on them.

Counter values live in a ``CounterStore``; ``MemoryCounterStore`` keeps them
in a dictionary, a database-backed store offers the same two coroutines.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

log = logging.getLogger(__name__)


def _check_counter(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"counter must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"counter must not be negative, got {value}")
    return value


class CounterStore(Protocol):
    """Where counter values are persisted."""

    async def get_id_counter(self, counter_id: str) -> Optional[int]:
        ...

    async def set_id_counter(self, counter_id: str, counter_value: int) -> None:
        ...


class MemoryCounterStore:
    """A counter store held in memory."""

    def __init__(self) -> None:
        self._values: dict[str, int] = {}

    async def get_id_counter(self, counter_id: str) -> Optional[int]:
        return self._values.get(counter_id)

    async def set_id_counter(self, counter_id: str, counter_value: int) -> None:
        self._values[counter_id] = _check_counter(counter_value)


class PersistentIdCounter:
    """A counter that is loaded from and written back to a store.

    The stored value wins over ``initial_counter``; when nothing is stored
    yet, ``initial_counter`` is written on first use.
    """

    def __init__(self, store: CounterStore, counter_id: str, initial_counter: int = 0) -> None:
        log.debug("new counter %s starting at %d", counter_id, initial_counter)
        self._store = store
        self.counter_id = counter_id
        self._current = _check_counter(initial_counter)
        self._loaded = False
        self._lock = asyncio.Lock()

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        stored = await self._store.get_id_counter(self.counter_id)
        if stored is None:
            await self._store.set_id_counter(self.counter_id, self._current)
        else:
            self._current = _check_counter(stored)
        self._loaded = True

    async def get_current_counter(self) -> int:
        async with self._lock:
            await self._ensure_loaded()
            return self._current

    async def set_current_counter(self, counter: int) -> None:
        _check_counter(counter)
        async with self._lock:
            await self._store.set_id_counter(self.counter_id, counter)
            self._current = counter
            self._loaded = True

    async def generate_unique_id(self, prefix: str) -> str:
        """Advance the counter, persist it and return ``prefix`` followed by it."""
        async with self._lock:
            await self._ensure_loaded()
            following = self._current + 1
            await self._store.set_id_counter(self.counter_id, following)
            self._current = following
            return f"{prefix}{following}"


class DatabaseIdGenerator:
    """Hands out OVAL ids, giving the same key the same id each time."""

    def __init__(self, store: CounterStore, counter_id: str, initial_counter: int = 0) -> None:
        log.info("new id generator on counter %s starting at %d", counter_id, initial_counter)
        self._counter = PersistentIdCounter(store, counter_id, initial_counter)
        self._object_ids: dict[str, str] = {}
        self._state_ids: dict[str, str] = {}
        self._test_ids: dict[str, str] = {}
        self._definition_ids: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def _get_or_create(self, known: dict[str, str], key: str, prefix: str) -> str:
        async with self._lock:
            existing = known.get(key)
            if existing is not None:
                return existing
            created = await self._counter.generate_unique_id(prefix)
            known[key] = created
            log.debug("assigned %s to %s", created, key)
            return created

    async def get_current_counter(self) -> int:
        return await self._counter.get_current_counter()

    async def set_current_counter(self, counter: int) -> None:
        await self._counter.set_current_counter(counter)

    async def get_or_create_object_id(self, object_name: str, prefix: str) -> str:
        return await self._get_or_create(self._object_ids, object_name, prefix)

    async def get_or_create_state_id(self, evr: str, prefix: str) -> str:
        return await self._get_or_create(self._state_ids, evr, prefix)

    async def get_or_create_test_id(self, test_key: str, prefix: str) -> str:
        return await self._get_or_create(self._test_ids, test_key, prefix)

    async def get_or_create_definition_id(self, definition_key: str, prefix: str) -> str:
        return await self._get_or_create(self._definition_ids, definition_key, prefix)