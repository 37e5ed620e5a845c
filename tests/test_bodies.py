"""Tests for collecting entry bodies."""

from __future__ import annotations

import asyncio

import pytest
from factories import FakeStore, make_entry

from powhttp_inspect.exceptions import EntryNotFoundError
from powhttp_inspect.storage.bodies import collect_bodies
from powhttp_inspect.storage.cache import EntryCache


@pytest.fixture
def body_store() -> FakeStore:
    return FakeStore(
        [
            make_entry('e1', request_body='{"q": 1}', response_body='{"ok": true}'),
            make_entry('e2', response_body='{"ok": false}'),
        ]
    )


def test_response_bodies_by_default(body_store: FakeStore) -> None:
    bodies = asyncio.run(collect_bodies(body_store, EntryCache(), 'active', ['e1', 'e2']))

    assert bodies == [('e1:response', b'{"ok": true}'), ('e2:response', b'{"ok": false}')]


def test_both_targets(body_store: FakeStore) -> None:
    bodies = asyncio.run(collect_bodies(body_store, EntryCache(), 'active', ['e1', 'e2'], 'both'))

    assert bodies == [
        ('e1:request', b'{"q": 1}'),
        ('e1:response', b'{"ok": true}'),
        ('e2:request', None),
        ('e2:response', b'{"ok": false}'),
    ]


def test_entries_are_cached(body_store: FakeStore) -> None:
    cache = EntryCache()

    asyncio.run(collect_bodies(body_store, cache, 'active', ['e1'], 'request'))
    asyncio.run(collect_bodies(body_store, cache, 'active', ['e1'], 'response'))

    assert body_store.entry_calls == [('active', 'e1')]


def test_missing_entry_propagates(body_store: FakeStore) -> None:
    with pytest.raises(EntryNotFoundError):
        asyncio.run(collect_bodies(body_store, EntryCache(), 'active', ['e1', 'nope']))


def test_undecodable_body_is_none() -> None:
    entry = make_entry('e1', response_body='{}')
    broken = entry.model_copy(update={'response': entry.response.model_copy(update={'body': 'not base64!'})})
    store = FakeStore([broken])

    assert asyncio.run(collect_bodies(store, EntryCache(), 'active', ['e1'])) == [('e1:response', None)]
