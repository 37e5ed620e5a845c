"""Shared fixtures: a browser request and a scraper request for the same endpoint."""

from __future__ import annotations

import pytest
from factories import CLIENT_HELLO, SERVER_HELLO, FakeStore, make_entry

from powhttp_inspect.schemas.entries import SessionEntry

BROWSER_HEADERS = (
    (':method', 'GET'),
    (':authority', 'example.com'),
    (':scheme', 'https'),
    (':path', '/api/items?page=1'),
    ('user-agent', 'Mozilla/5.0'),
    ('accept', 'application/json'),
    ('accept-language', 'en-US'),
    ('date', 'Mon, 01 Jan 2024 00:00:00 GMT'),
)

SCRAPER_HEADERS = (
    (':method', 'GET'),
    (':path', '/api/items?page=1'),
    (':authority', 'example.com'),
    (':scheme', 'https'),
    ('accept', 'application/json'),
    ('user-agent', 'Python/3.9'),
    ('date', 'Mon, 01 Jan 2024 00:00:05 GMT'),
    ('x-debug', '1'),
)


@pytest.fixture
def browser_entry() -> SessionEntry:
    return make_entry(
        'browser',
        url='https://example.com/api/items?page=1&_=111',
        headers=BROWSER_HEADERS,
        http_version='HTTP/2',
        http2=('conn-browser', 1),
        connection_id='conn-browser',
        ja3='abc123',
        ja4='t13d1516h2_8daaf6152771_b0da82dd1658',
        response_body=b'{"items": []}',
    )


@pytest.fixture
def scraper_entry() -> SessionEntry:
    return make_entry(
        'scraper',
        url='https://example.com/api/items?page=1&_=222',
        headers=SCRAPER_HEADERS,
        http_version='HTTP/2',
        http2=('conn-scraper', 3),
        connection_id='conn-scraper',
        ja3='xyz789',
        ja4='t13d1516h2_8daaf6152771_b0da82dd1658',
        response_body=b'{"items": []}',
    )


@pytest.fixture
def store(browser_entry: SessionEntry, scraper_entry: SessionEntry) -> FakeStore:
    return FakeStore(
        entries=[browser_entry, scraper_entry],
        tls={
            'conn-browser': [CLIENT_HELLO, SERVER_HELLO],
            'conn-scraper': [CLIENT_HELLO, SERVER_HELLO],
        },
        http2={
            ('conn-browser', 1): [{'type': 'HEADERS'}, {'type': 'DATA'}, {'type': 'DATA'}],
            ('conn-scraper', 3): [{'type': 'HEADERS'}, {'type': 'DATA'}],
        },
    )
