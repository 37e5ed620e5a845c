"""
TLS handshake event models.

The capture service records every TLS record seen on a connection as a typed
event tree. Only the handshake messages the summarizer reads are modelled in
detail; every other message keeps its ``type`` and drops its payload.

Wire shape (snake_case, unlike entries)::

    {
      "side": "client",
      "msg": {
        "type": "handshake",
        "content": {
          "type": "server_hello",
          "content": {"version": {"value": 771, "name": "TLS 1.2"}, "cipher_suite": {...}, ...}
        }
      }
    }
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pydantic

__all__ = [
    'TLSClientHello',
    'TLSEvent',
    'TLSExtension',
    'TLSHandshake',
    'TLSMessage',
    'TLSNamedValue',
    'TLSServerHello',
]

ALPN_EXTENSION = 'application_layer_protocol_negotiation'


class TLSModel(pydantic.BaseModel):
    """Base for TLS event payloads (snake_case on the wire)."""

    model_config = pydantic.ConfigDict(extra='ignore', frozen=True)


class TLSNamedValue(TLSModel):
    """A numeric protocol code point with its display name."""

    value: int | None = None
    name: str = ''


class TLSExtension(TLSModel):
    value: int | None = None
    name: str = ''
    protocols: Sequence[str] = ()  # ALPN only


def _alpn(extensions: Sequence[TLSExtension]) -> str:
    for extension in extensions:
        if extension.name == ALPN_EXTENSION and extension.protocols:
            return extension.protocols[0]
    return ''


class TLSClientHello(TLSModel):
    version: TLSNamedValue | None = None
    cipher_suites: Sequence[TLSNamedValue] = ()
    extensions: Sequence[TLSExtension] = ()

    @property
    def alpn(self) -> str:
        """First offered application protocol, or ''."""
        return _alpn(self.extensions)


class TLSServerHello(TLSModel):
    version: TLSNamedValue | None = None
    cipher_suite: TLSNamedValue | None = None
    extensions: Sequence[TLSExtension] = ()

    @property
    def alpn(self) -> str:
        """Negotiated application protocol, or ''."""
        return _alpn(self.extensions)


class TLSHandshake(TLSModel):
    """
    One handshake message.

    ``type`` is kept for every message (certificate, finished, ...); the payload
    is only parsed for ClientHello and ServerHello.
    """

    type: str = ''
    client_hello: TLSClientHello | None = None
    server_hello: TLSServerHello | None = None

    @pydantic.model_validator(mode='before')
    @classmethod
    def _unwrap_content(cls, data: Any) -> Any:
        if not isinstance(data, dict) or 'content' not in data:
            return data
        kind = data.get('type') or ''
        if kind in ('client_hello', 'server_hello'):
            return {'type': kind, kind: data['content']}
        return {'type': kind}


class TLSMessage(TLSModel):
    type: str = ''  # "handshake" | "change_cipher_spec" | ...
    handshake: TLSHandshake | None = None

    @pydantic.model_validator(mode='before')
    @classmethod
    def _unwrap_content(cls, data: Any) -> Any:
        if not isinstance(data, dict) or 'content' not in data:
            return data
        if data.get('type') == 'handshake':
            return {'type': 'handshake', 'handshake': data['content']}
        return {'type': data.get('type') or ''}


class TLSEvent(TLSModel):
    """A single TLS record observed on a connection."""

    side: str = ''  # "client" | "server"
    msg: TLSMessage | None = None

    @property
    def client_hello(self) -> TLSClientHello | None:
        if self.msg is None or self.msg.handshake is None:
            return None
        return self.msg.handshake.client_hello

    @property
    def server_hello(self) -> TLSServerHello | None:
        if self.msg is None or self.msg.handshake is None:
            return None
        return self.msg.handshake.server_hello
