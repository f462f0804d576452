"""Registry of the basemap styles the board can switch between."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping

from . import config
from .errors import UnknownStyleKey


class StyleKey(str, Enum):
    """Selector for a basemap style descriptor."""

    TERRAIN = "terrain"
    DARK = "dark"


@dataclass(frozen=True)
class StyleDescriptorRef:
    """Opaque reference to a style document handed to the engine."""

    key: StyleKey
    url: str


class StyleRegistry:
    """Map a :class:`StyleKey` to the url of its style document."""

    def __init__(
        self,
        paths: Mapping[str, str] | None = None,
        *,
        base_url: str = config.DEFAULT_CONTENT_BASE_URL,
    ) -> None:
        source = paths if paths is not None else config.STYLE_PATHS
        refs: dict[StyleKey, StyleDescriptorRef] = {}
        for raw_key, path in source.items():
            key = StyleKey(raw_key)
            refs[key] = StyleDescriptorRef(key, join_url(base_url, path))
        self._refs = MappingProxyType(refs)

    # ------------------------------------------------------------------
    def resolve(self, key: StyleKey | str) -> StyleDescriptorRef:
        """Return the descriptor for *key* or raise :class:`UnknownStyleKey`."""

        try:
            style_key = StyleKey(key)
        except ValueError:
            raise UnknownStyleKey(f"Unknown basemap style: {key!r}") from None
        ref = self._refs.get(style_key)
        if ref is None:
            raise UnknownStyleKey(f"Basemap style {style_key.value!r} is not configured")
        return ref

    # ------------------------------------------------------------------
    def keys(self) -> tuple[StyleKey, ...]:
        return tuple(self._refs)

    def __iter__(self) -> Iterator[StyleDescriptorRef]:
        return iter(self._refs.values())

    def __contains__(self, key: object) -> bool:
        try:
            return StyleKey(key) in self._refs  # type: ignore[arg-type]
        except ValueError:
            return False


def join_url(base: str, path: str) -> str:
    """Join a content *base* (url or directory) with an absolute-style *path*."""

    if not base:
        return path
    return base.rstrip("/") + "/" + path.lstrip("/")


__all__ = ["StyleDescriptorRef", "StyleKey", "StyleRegistry", "join_url"]
