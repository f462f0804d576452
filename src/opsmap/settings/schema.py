"""Schema helpers for the optional board settings file."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from .. import config

_LAYER_NAMES = list(config.DEFAULT_VISIBILITY)

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "opsmap/settings.schema.json",
    "type": "object",
    "properties": {
        "content_base_url": {"type": "string"},
        "initial_style": {"type": "string", "enum": list(config.STYLE_PATHS)},
        "initial_visibility": {
            "type": "object",
            "properties": {name: {"type": "boolean"} for name in _LAYER_NAMES},
            "required": _LAYER_NAMES,
            "additionalProperties": False,
        },
        "center": {
            "type": "array",
            "prefixItems": [
                {"type": "number", "minimum": -180, "maximum": 180},
                {"type": "number", "minimum": -90, "maximum": 90},
            ],
            "minItems": 2,
            "maxItems": 2,
        },
        "zoom": {"type": "number", "minimum": 0, "maximum": 24},
        "fetch_timeout": {"type": "number", "exclusiveMinimum": 0},
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "content_base_url": config.DEFAULT_CONTENT_BASE_URL,
    "initial_style": config.DEFAULT_STYLE,
    "initial_visibility": dict(config.DEFAULT_VISIBILITY),
    "center": list(config.DEFAULT_CENTER),
    "zoom": config.DEFAULT_ZOOM,
    "fetch_timeout": config.FETCH_TIMEOUT_SEC,
}

_validator = Draft202012Validator(SETTINGS_SCHEMA)


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result.

    ``initial_visibility`` may be partial in *data*; the missing layers keep
    their default visibility.
    """

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key == "initial_visibility" and isinstance(value, dict):
                merged[key].update(value)
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults"]
