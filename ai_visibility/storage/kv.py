"""Embedded key-value store for JSON documents.

All persisted state (configuration, result lists, crawl log, snapshot log,
query definitions) lives under string keys as JSON values in a single
``kv_entries`` table. Four operations cover every caller:

  - flat ``get`` / ``set`` / ``delete``
  - ``append_to_list`` : append, sort, cap (crawl log)
  - ``upsert_in_list`` : replace matching entry in place or append (snapshot log)
  - ``clear``

Every mutation notifies subscribers with the changed key, so consumers
refresh explicitly instead of listening for ambient broadcast events.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ai_visibility.models.kv_entry import KvEntry

logger = logging.getLogger(__name__)

ChangeListener = Callable[[str], None]


class KeyValueStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._listeners: list[ChangeListener] = []

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, key: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(key)
            except Exception as e:
                # A broken consumer must not fail the write that already committed
                logger.warning("Store listener %r failed for key %s: %s", listener, key, e)

    # ------------------------------------------------------------------
    # Flat get / set
    # ------------------------------------------------------------------

    async def get(self, key: str, default: Any = None) -> Any:
        async with self._session_factory() as session:
            result = await session.execute(select(KvEntry.value).where(KvEntry.key == key))
            value = result.scalar_one_or_none()
        return default if value is None else value

    async def set(self, key: str, value: Any) -> None:
        async with self._session_factory() as session:
            entry = await session.get(KvEntry, key)
            if entry is None:
                session.add(KvEntry(key=key, value=value))
            else:
                entry.value = value
            await session.commit()
        self._notify(key)

    async def delete(self, key: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(KvEntry).where(KvEntry.key == key))
            await session.commit()
        removed = bool(result.rowcount)
        if removed:
            self._notify(key)
        return removed

    async def clear(self) -> None:
        async with self._session_factory() as session:
            keys = (await session.execute(select(KvEntry.key))).scalars().all()
            await session.execute(delete(KvEntry))
            await session.commit()
        for key in keys:
            self._notify(key)

    # ------------------------------------------------------------------
    # List documents
    # ------------------------------------------------------------------

    async def get_list(self, key: str) -> list[Any]:
        value = await self.get(key, default=[])
        if not isinstance(value, list):
            logger.warning("Key %s holds %s, expected list; treating as empty", key, type(value).__name__)
            return []
        return value

    async def append_to_list(
        self,
        key: str,
        item: Any,
        *,
        sort_key: Callable[[Any], Any] | None = None,
        reverse: bool = True,
        max_items: int | None = None,
    ) -> list[Any]:
        """Append *item* (never merging), optionally sort and cap; returns the stored list."""
        items = await self.get_list(key)
        items.append(item)
        return await self._store_list(key, items, sort_key=sort_key, reverse=reverse, max_items=max_items)

    async def upsert_in_list(
        self,
        key: str,
        item: Any,
        *,
        match: Callable[[Any], bool],
        sort_key: Callable[[Any], Any] | None = None,
        reverse: bool = True,
        max_items: int | None = None,
    ) -> list[Any]:
        """Replace the first entry for which *match* is true, or append; returns the stored list."""
        items = await self.get_list(key)
        for index, existing in enumerate(items):
            if match(existing):
                items[index] = item
                break
        else:
            items.append(item)
        return await self._store_list(key, items, sort_key=sort_key, reverse=reverse, max_items=max_items)

    async def _store_list(
        self,
        key: str,
        items: list[Any],
        *,
        sort_key: Callable[[Any], Any] | None,
        reverse: bool,
        max_items: int | None,
    ) -> list[Any]:
        if sort_key is not None:
            items.sort(key=sort_key, reverse=reverse)
        if max_items is not None:
            items = items[:max_items]
        await self.set(key, items)
        return items


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so stored and fresh timestamps compare."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def timestamp_of(item: dict) -> datetime:
    """Sort key for stored list entries carrying an ISO ``timestamp``."""
    return as_utc(datetime.fromisoformat(item["timestamp"]))
