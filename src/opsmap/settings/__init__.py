"""Optional JSON settings for the map board."""

from .loader import load_settings
from .schema import DEFAULT_SETTINGS, SETTINGS_SCHEMA, merge_with_defaults

__all__ = [
    "DEFAULT_SETTINGS",
    "SETTINGS_SCHEMA",
    "load_settings",
    "merge_with_defaults",
]
