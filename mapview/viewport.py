"""
Viewport resolution: which region the map should show after a render.

A highlighted district boundary wins over the cluster bounds. An invalid (empty)
region resolves to NO_CHANGE so the map keeps whatever it was showing.
Padding is in screen pixels, (horizontal, vertical), applied on every side.
"""

import math
from dataclasses import dataclass
from typing import Optional, Union

from core.config import DEFAULT_MAX_ZOOM
from clustering.bounds import Bounds
from clustering.markers import ClusterResult
from clustering.projection import project, unproject


@dataclass(frozen=True)
class Padding:
    x: float
    y: float

    def __post_init__(self):
        if self.x < 0 or self.y < 0:
            raise ValueError(f"padding must be non-negative, got ({self.x}, {self.y})")

    @classmethod
    def of(cls, value) -> "Padding":
        if isinstance(value, Padding):
            return value
        x, y = value
        return cls(float(x), float(y))


class NoChange:
    """Keep the current map region."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "NO_CHANGE"

    def __bool__(self):
        return False


NO_CHANGE = NoChange()


@dataclass(frozen=True)
class Viewport:
    bounds: Bounds
    padding: Padding
    zoom: Optional[int] = None
    source: str = "clusters"  # or "boundary"

    def region(self, zoom: Optional[float] = None) -> Bounds:
        """Bounds grown by the pixel padding at `zoom` (defaults to the fitted zoom)."""
        z = self.zoom if zoom is None else zoom
        if z is None:
            z = 0
        x0, y0 = project(self.bounds.min_lon, self.bounds.max_lat, z)  # north-west
        x1, y1 = project(self.bounds.max_lon, self.bounds.min_lat, z)  # south-east
        west, north = unproject(x0 - self.padding.x, y0 - self.padding.y, z)
        east, south = unproject(x1 + self.padding.x, y1 + self.padding.y, z)
        return Bounds(west, south, east, north)

    def to_dict(self):
        d = {
            "bounds": self.bounds.to_dict(),
            "padding": [self.padding.x, self.padding.y],
            "source": self.source,
        }
        if self.zoom is not None:
            d["zoom"] = self.zoom
            d["region"] = self.region().to_dict()
        return d


def fit_zoom(bounds: Bounds, padding, map_size: tuple, max_zoom: int = DEFAULT_MAX_ZOOM) -> int:
    """Largest integer zoom at which `bounds` plus padding fits a map of `map_size` (width, height) pixels."""
    padding = Padding.of(padding)
    avail_w = map_size[0] - 2 * padding.x
    avail_h = map_size[1] - 2 * padding.y
    if avail_w <= 0 or avail_h <= 0:
        return 0
    x0, y0 = project(bounds.min_lon, bounds.max_lat, 0)
    x1, y1 = project(bounds.max_lon, bounds.min_lat, 0)
    w, h = x1 - x0, y1 - y0
    if w <= 0 and h <= 0:
        return max_zoom
    scale = min(avail_w / w if w > 0 else math.inf, avail_h / h if h > 0 else math.inf)
    zoom = math.floor(math.log2(scale))
    return max(0, min(max_zoom, zoom))


def resolve_viewport(
    target: Union[ClusterResult, Bounds, None],
    padding,
    *,
    boundary: Optional[Bounds] = None,
    map_size: Optional[tuple] = None,
    max_zoom: int = DEFAULT_MAX_ZOOM,
) -> Union[Viewport, NoChange]:
    padding = Padding.of(padding)
    if boundary is not None and boundary.is_valid():
        bounds, source = boundary, "boundary"
    else:
        bounds = target.bounds if isinstance(target, ClusterResult) else target
        source = "clusters"
    if bounds is None or not bounds.is_valid():
        return NO_CHANGE
    zoom = fit_zoom(bounds, padding, map_size, max_zoom) if map_size is not None else None
    return Viewport(bounds=bounds, padding=padding, zoom=zoom, source=source)
