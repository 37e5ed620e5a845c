"""Configuration for powhttp-inspect."""

from __future__ import annotations

from powhttp_inspect.config.base import InspectSettings, get_settings, lazy_settings, settings
from powhttp_inspect.config.logging import configure_logging

__all__ = ['InspectSettings', 'configure_logging', 'get_settings', 'lazy_settings', 'settings']
