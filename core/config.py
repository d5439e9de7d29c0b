"""
Map/runtime settings read from env (optionally via .env).

- INCIDENTS_FILE: JSON snapshot used when Snowflake is not configured (default data/incidents.json).
- BOUNDARIES_FILE: district boundary GeoJSON (default data/districts.geojson; missing file = no highlighting).
- MAP_CENTER: "lat,lon" initial center (default 22.904047,78.360745).
- MAP_ZOOM: initial zoom (default 6).
- MAP_MAX_ZOOM: highest zoom the viewport fit may choose (default 18).
- BOUNDS_PADDING: "x,y" pixel padding around fitted bounds (default 50,50).
- CLUSTER_RADIUS_PX: marker cluster radius in screen pixels (default 80).
"""

import os

DEFAULT_INCIDENTS_FILE = os.path.join("data", "incidents.json")
DEFAULT_BOUNDARIES_FILE = os.path.join("data", "districts.geojson")
DEFAULT_CENTER = (22.904047, 78.360745)  # lat, lon
DEFAULT_ZOOM = 6
DEFAULT_MAX_ZOOM = 18
DEFAULT_PADDING = (50, 50)
DEFAULT_CLUSTER_RADIUS_PX = 80
DEFAULT_MAP_SIZE = (1024, 768)  # width, height in pixels


def _parse_pair(s: str | None) -> tuple[float, float] | None:
    if not s or not s.strip():
        return None
    parts = [p.strip() for p in s.split(",") if p.strip()]
    if len(parts) != 2:
        return None
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        return None


def _float_env(name: str, default: float, lo: float, hi: float) -> float:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    try:
        return max(lo, min(hi, float(v.strip())))
    except ValueError:
        return default


def incidents_file() -> str:
    return os.environ.get("INCIDENTS_FILE", "").strip() or DEFAULT_INCIDENTS_FILE


def boundaries_file() -> str:
    return os.environ.get("BOUNDARIES_FILE", "").strip() or DEFAULT_BOUNDARIES_FILE


def map_center() -> tuple[float, float]:
    return _parse_pair(os.environ.get("MAP_CENTER")) or DEFAULT_CENTER


def map_zoom() -> float:
    return _float_env("MAP_ZOOM", DEFAULT_ZOOM, 0, DEFAULT_MAX_ZOOM)


def map_max_zoom() -> int:
    return int(_float_env("MAP_MAX_ZOOM", DEFAULT_MAX_ZOOM, 0, 24))


def bounds_padding() -> tuple[float, float]:
    pair = _parse_pair(os.environ.get("BOUNDS_PADDING"))
    if pair is None or pair[0] < 0 or pair[1] < 0:
        return DEFAULT_PADDING
    return pair


def cluster_radius_px() -> float:
    return _float_env("CLUSTER_RADIUS_PX", DEFAULT_CLUSTER_RADIUS_PX, 0, 1000)
