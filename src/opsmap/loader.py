"""Fetch and decode the geometry collection behind each logical layer.

:class:`GeometryReader` performs one blocking fetch-and-decode; it reads
``http(s)`` endpoints with :mod:`requests` and everything else from the local
content directory.  :class:`DataLoader` runs those reads on a small worker
pool and hands out one :class:`~concurrent.futures.Future` per layer per
composition pass.
"""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict
from urllib.parse import unquote, urlparse

import requests

from . import config
from .catalog import LayerCatalog, LogicalLayer, coerce_layer
from .errors import DecodeFailed, FetchFailed
from .styles import join_url

GeometryCollection = Dict[str, Any]

_LOGGER = logging.getLogger(__name__)


class GeometryReader:
    """Retrieve one GeoJSON ``FeatureCollection`` per call.

    Parameters
    ----------
    base_url:
        Prefix for the catalog endpoints.  Either an ``http(s)`` url, a
        ``file://`` url or a plain directory.  An empty value resolves
        endpoints against the current working directory.
    timeout:
        Socket timeout for HTTP requests.  No retry is attempted.
    """

    def __init__(
        self,
        base_url: str = config.DEFAULT_CONTENT_BASE_URL,
        *,
        timeout: float = config.FETCH_TIMEOUT_SEC,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._session = session

    # ------------------------------------------------------------------
    def url_for(self, endpoint: str) -> str:
        return join_url(self._base_url, endpoint)

    # ------------------------------------------------------------------
    def read(self, layer: LogicalLayer, endpoint: str) -> GeometryCollection:
        """Fetch and decode the collection for *layer*."""

        url = self.url_for(endpoint)
        payload = self._fetch(layer, url)
        return decode_collection(layer, payload)

    # ------------------------------------------------------------------
    def _fetch(self, layer: LogicalLayer, url: str) -> bytes:
        scheme = urlparse(url).scheme.lower()
        if scheme in {"http", "https"}:
            getter = self._session.get if self._session is not None else requests.get
            try:
                response = getter(url, timeout=self._timeout)
                response.raise_for_status()
            except requests.RequestException as exc:
                raise FetchFailed(layer.value, f"request to {url} failed: {exc}") from exc
            return response.content

        path = _local_path(url)
        if path is None:
            raise FetchFailed(layer.value, f"unsupported url scheme {scheme!r} in {url}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FetchFailed(layer.value, f"unable to read {path}: {exc}") from exc


def _local_path(url: str) -> Path | None:
    parsed = urlparse(url)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    if parsed.scheme and len(parsed.scheme) > 1:
        # Anything other than a Windows drive letter is not a local path.
        return None
    path = Path(url)
    if path.is_absolute() and not path.exists():
        # Catalog endpoints look like ``/data/x.geojson``; without a base they
        # are relative to the working directory, like a web root.
        path = Path(url.lstrip("/"))
    return path


def decode_collection(layer: LogicalLayer, payload: bytes | str) -> GeometryCollection:
    """Decode *payload* into a GeoJSON ``FeatureCollection`` mapping.

    Only the envelope is checked; the features themselves are treated as
    already validated.
    """

    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
        raise DecodeFailed(layer.value, f"payload is not valid JSON: {exc}") from exc

    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise DecodeFailed(layer.value, "payload is not a GeoJSON FeatureCollection")
    if not isinstance(data.get("features"), list):
        raise DecodeFailed(layer.value, "FeatureCollection has no feature list")
    return data


class DataLoader:
    """Issue background reads, at most one in flight per layer per pass."""

    def __init__(
        self,
        catalog: LayerCatalog,
        reader: GeometryReader | None = None,
        *,
        max_workers: int = config.FETCH_WORKERS,
    ) -> None:
        self._catalog = catalog
        self._reader = reader or GeometryReader()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="opsmap-loader")
        self._in_flight: dict[LogicalLayer, Future] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    def begin_pass(self) -> None:
        """Start a new composition pass, cancelling leftovers of the last one."""

        self.cancel_pending()

    # ------------------------------------------------------------------
    def load(self, name: LogicalLayer | str) -> "Future[GeometryCollection]":
        """Return the future for *name*, submitting a read when none is pending."""

        layer = coerce_layer(name)
        with self._lock:
            future = self._in_flight.get(layer)
            if future is not None:
                return future
            endpoint = self._catalog.entry(layer).endpoint
            _LOGGER.debug("Fetching %s from %s", layer.value, self._reader.url_for(endpoint))
            future = self._executor.submit(self._reader.read, layer, endpoint)
            self._in_flight[layer] = future
            return future

    # ------------------------------------------------------------------
    def cancel_pending(self) -> None:
        """Cancel reads that have not started and forget the current pass."""

        with self._lock:
            futures = list(self._in_flight.values())
            self._in_flight.clear()
        for future in futures:
            future.cancel()

    # ------------------------------------------------------------------
    def shutdown(self) -> None:
        self.cancel_pending()
        self._executor.shutdown(wait=False, cancel_futures=True)


__all__ = ["DataLoader", "GeometryCollection", "GeometryReader", "decode_collection"]
