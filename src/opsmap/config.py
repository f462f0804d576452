"""Default configuration values for opsmap."""

from __future__ import annotations

from typing import Final

# The board opens centred on Haiti.  ``DEFAULT_CENTER`` follows the GeoJSON
# ``(lng, lat)`` convention used everywhere else in the package.
DEFAULT_CENTER: Final[tuple[float, float]] = (-72.5, 18.9)
DEFAULT_ZOOM: Final[float] = 7.0

# Content endpoints are relative to the configured base url (or directory).
DEFAULT_CONTENT_BASE_URL: Final[str] = ""
STYLE_PATHS: Final[dict[str, str]] = {
    "terrain": "/styles/opentopo.json",
    "dark": "/styles/carto-dark.json",
}
DEFAULT_STYLE: Final[str] = "terrain"

DEPARTMENTS_ENDPOINT: Final[str] = "/data/haiti-departments.min.geojson"
COMMUNES_ENDPOINT: Final[str] = "/data/haiti-communes.min.geojson"
SECTIONS_ENDPOINT: Final[str] = "/data/haiti-sections.sample.geojson"

# Communes start hidden: their dashed outlines are noisy at the opening zoom.
DEFAULT_VISIBILITY: Final[dict[str, bool]] = {
    "departments": True,
    "communes": False,
    "sections": True,
}

# A single best-effort request per layer; there is no retry.
FETCH_TIMEOUT_SEC: Final[float] = 15.0
FETCH_WORKERS: Final[int] = 3

# ---------------------------------------------------------------------------
# Surface controls and hover popup
# ---------------------------------------------------------------------------

NAVIGATION_CONTROL: Final[dict] = {"type": "navigation", "visualizePitch": True}
NAVIGATION_CONTROL_POSITION: Final[str] = "top-right"
SCALE_CONTROL: Final[dict] = {"type": "scale", "maxWidth": 120, "unit": "metric"}

POPUP_OPTIONS: Final[dict] = {"closeButton": False, "closeOnClick": False}
UNNAMED_FEATURE_LABEL: Final[str] = "Unnamed"
POPUP_LABEL_TEMPLATE: Final[str] = (
    '<div style="font:600 12px Inter,system-ui;color:#111;background:#facc15;'
    'padding:4px 6px;border-radius:6px;">{label}</div>'
)
HOVER_CURSOR: Final[str] = "pointer"
