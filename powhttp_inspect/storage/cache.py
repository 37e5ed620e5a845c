"""
In-memory LRU cache of captured entries.

Shared between concurrent fingerprint calls, so every operation holds the lock.
Entries are immutable pydantic models and are handed out without copying.
"""

from __future__ import annotations

import threading
from collections import OrderedDict

from powhttp_inspect.exceptions import FetchError
from powhttp_inspect.schemas.entries import SessionEntry
from powhttp_inspect.storage.protocol import EntryStore


class EntryCache:
    """Thread-safe least-recently-used cache keyed by entry id."""

    def __init__(self, max_items: int = 512) -> None:
        if max_items <= 0:
            raise ValueError('max_items must be positive')
        self.max_items = max_items
        self._entries: OrderedDict[str, SessionEntry] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, entry_id: str) -> SessionEntry | None:
        """Return the cached entry (marking it recently used), or None on a miss."""
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is not None:
                self._entries.move_to_end(entry_id)
            return entry

    def put(self, entry_id: str, entry: SessionEntry) -> None:
        with self._lock:
            self._entries[entry_id] = entry
            self._entries.move_to_end(entry_id)
            while len(self._entries) > self.max_items:
                self._entries.popitem(last=False)

    async def get_or_fetch(self, store: EntryStore, session_id: str, entry_id: str) -> SessionEntry:
        """
        Return the cached entry, fetching and caching it on a miss.

        Raises:
            EntryNotFoundError: If the store has no such entry
            FetchError: If the store fails (non-FetchError failures are wrapped)
        """
        entry = self.get(entry_id)
        if entry is not None:
            return entry

        try:
            entry = await store.get_entry(session_id, entry_id)
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(f'fetching entry {entry_id!r}: {e}') from e

        self.put(entry_id, entry)
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        with self._lock:
            return entry_id in self._entries
