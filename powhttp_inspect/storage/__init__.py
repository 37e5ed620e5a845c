"""Entry sources and caching."""

from powhttp_inspect.storage.cache import EntryCache
from powhttp_inspect.storage.client import PowHTTPClient
from powhttp_inspect.storage.protocol import EntryStore

__all__ = ['EntryCache', 'EntryStore', 'PowHTTPClient']
