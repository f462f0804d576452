"""Read the board settings file.

Settings are read-only: the board never writes preferences back.
"""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any

from jsonschema import ValidationError

from ..errors import SettingsLoadError, SettingsValidationError
from .schema import DEFAULT_SETTINGS, merge_with_defaults

_LOGGER = logging.getLogger(__name__)


def load_settings(path: Path | str | None = None) -> dict[str, Any]:
    """Return the settings stored at *path* merged over the defaults.

    ``None`` or a missing file yields the defaults.
    """

    if path is None:
        return deepcopy(DEFAULT_SETTINGS)
    path = Path(path)
    if not path.exists():
        _LOGGER.debug("Settings file %s not found; using defaults", path)
        return deepcopy(DEFAULT_SETTINGS)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SettingsLoadError(f"Unable to read settings from {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise SettingsValidationError(f"Settings in {path} must be a JSON object")
    try:
        return merge_with_defaults(payload)
    except ValidationError as exc:
        raise SettingsValidationError(f"Invalid settings in {path}: {exc.message}") from exc


__all__ = ["load_settings"]
