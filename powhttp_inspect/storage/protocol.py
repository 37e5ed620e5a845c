"""
Entry store protocol.

Defines the interface the fingerprint engine fetches captured data through.
The capture-service HTTP client is the production implementation; tests use
in-memory stores.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from powhttp_inspect.schemas.entries import SessionEntry


@runtime_checkable
class EntryStore(Protocol):
    """Protocol for sources of captured entries and their side channels."""

    async def get_entry(self, session_id: str, entry_id: str) -> SessionEntry:
        """
        Fetch a captured entry.

        Args:
            session_id: Capture session ("active" for the live session)
            entry_id: Entry id within the session

        Returns:
            The captured entry

        Raises:
            EntryNotFoundError: If the session has no such entry
            FetchError: If the store cannot be reached or answers with an error
        """
        ...

    async def get_tls_connection(self, connection_id: str) -> Sequence[Any]:
        """
        Fetch the TLS events recorded on a connection.

        Events are raw records (or already-parsed TLSEvent models); the
        summarizer decodes them one at a time and skips the ones it can't read.

        Raises:
            FetchError: If the events cannot be fetched
        """
        ...

    async def get_http2_stream(self, connection_id: str, stream_id: int) -> Sequence[Any]:
        """
        Fetch the raw frame records of an HTTP/2 stream.

        Records are JSON objects (or their encoded bytes) with a ``type`` member.

        Raises:
            FetchError: If the frames cannot be fetched
        """
        ...
