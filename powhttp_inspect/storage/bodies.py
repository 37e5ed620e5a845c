"""Request / response bodies of captured entries, for schema validation and inference."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from powhttp_inspect.schemas.entries import decode_body
from powhttp_inspect.storage.cache import EntryCache
from powhttp_inspect.storage.protocol import EntryStore

BodyTarget = Literal['request', 'response', 'both']


async def collect_bodies(
    store: EntryStore,
    cache: EntryCache,
    session_id: str,
    entry_ids: Sequence[str],
    target: BodyTarget = 'response',
) -> list[tuple[str, bytes | None]]:
    """
    Decoded bodies of the given entries, labelled ``<entry_id>:<request|response>``.

    Missing or undecodable bodies are None.

    Raises:
        EntryNotFoundError: If an entry does not exist
        FetchError: If an entry cannot be fetched
    """
    bodies: list[tuple[str, bytes | None]] = []
    for entry_id in entry_ids:
        entry = await cache.get_or_fetch(store, session_id, entry_id)
        if target in ('request', 'both'):
            bodies.append((f'{entry_id}:request', decode_body(entry.request.body)))
        if target in ('response', 'both'):
            response_body = entry.response.body if entry.response is not None else None
            bodies.append((f'{entry_id}:response', decode_body(response_body)))
    return bodies
