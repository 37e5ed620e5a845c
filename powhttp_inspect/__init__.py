"""
powhttp-inspect - fingerprint, diff and schema tooling for captured HTTP sessions.

Answers "what changed between two captured entries, and which of those changes
plausibly affect anti-bot detection?" and describes captured bodies with JSON Schema.
"""

from __future__ import annotations

__version__ = '0.1.0'
