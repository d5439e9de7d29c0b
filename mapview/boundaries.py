"""
District boundary layer: GeoJSON features with per-feature bounds and styling.

Feature names come from NAME_2, then name (the same keys the boundary tooltips
show). Highlighting compares that name to the selected district value exactly,
the same identity the district dropdown uses.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Optional

from core.errors import BoundaryLoadError
from clustering.bounds import Bounds

logger = logging.getLogger("incident_map.mapview.boundaries")

NAME_PROPERTIES = ("NAME_2", "name")
UNKNOWN_NAME = "Unknown"

DEFAULT_STYLE = {"color": "#ff6600", "weight": 2.5, "fillColor": "#ffe0b3", "fillOpacity": 0.3}
HIGHLIGHT_STYLE = {"color": "yellow", "weight": 3}
DIMMED_STYLE = {"color": "red", "weight": 1}


def _walk_coords(coords, b: Bounds) -> Bounds:
    if not isinstance(coords, (list, tuple)) or not coords:
        return b
    if isinstance(coords[0], (int, float)):
        if len(coords) >= 2:
            return b.extend(float(coords[0]), float(coords[1]))
        return b
    for c in coords:
        b = _walk_coords(c, b)
    return b


def geometry_bounds(geometry: Optional[dict]) -> Bounds:
    """Bounds of any GeoJSON geometry (GeometryCollection included); invalid if it has no coordinates."""
    if not isinstance(geometry, dict):
        return Bounds.empty()
    if geometry.get("type") == "GeometryCollection":
        b = Bounds.empty()
        for g in geometry.get("geometries") or []:
            b = b.union(geometry_bounds(g))
        return b
    return _walk_coords(geometry.get("coordinates"), Bounds.empty())


@dataclass
class BoundaryFeature:
    name: str
    bounds: Bounds
    properties: dict = field(default_factory=dict)
    style: dict = field(default_factory=lambda: dict(DEFAULT_STYLE))

    def to_dict(self):
        return {"name": self.name, "bounds": self.bounds.to_dict(), "style": dict(self.style)}


class BoundaryLayer:
    def __init__(self, features: Optional[list] = None):
        self.features: list[BoundaryFeature] = list(features or [])
        self.highlighted: Optional[str] = None

    @classmethod
    def from_geojson(cls, data: dict, name_properties: tuple = NAME_PROPERTIES) -> "BoundaryLayer":
        if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
            raise BoundaryLoadError("boundary data is not a GeoJSON FeatureCollection")
        features = []
        for feat in data.get("features") or []:
            if not isinstance(feat, dict):
                continue
            props = feat.get("properties") or {}
            name = next((props[k] for k in name_properties if props.get(k)), UNKNOWN_NAME)
            features.append(BoundaryFeature(
                name=str(name),
                bounds=geometry_bounds(feat.get("geometry")),
                properties=dict(props),
            ))
        return cls(features)

    def copy(self) -> "BoundaryLayer":
        """Same features with default styling and no highlight."""
        return BoundaryLayer([
            BoundaryFeature(name=f.name, bounds=f.bounds, properties=dict(f.properties)) for f in self.features
        ])

    def __len__(self):
        return len(self.features)

    def names(self) -> list[str]:
        return [f.name for f in self.features]

    def find(self, name: Optional[str]) -> list[BoundaryFeature]:
        if not name:
            return []
        return [f for f in self.features if f.name == name]

    def bounds_of(self, name: Optional[str]) -> Bounds:
        b = Bounds.empty()
        for f in self.find(name):
            b = b.union(f.bounds)
        return b

    def highlight(self, district: Optional[str]) -> list[BoundaryFeature]:
        """Restyle every feature for the selected district (None = default styling); returns the matches."""
        self.highlighted = district or None
        if not self.highlighted:
            for f in self.features:
                f.style = dict(DEFAULT_STYLE)
            return []
        matched = []
        for f in self.features:
            if f.name == self.highlighted:
                f.style = {**DEFAULT_STYLE, **HIGHLIGHT_STYLE}
                matched.append(f)
            else:
                f.style = {**DEFAULT_STYLE, **DIMMED_STYLE}
        if not matched:
            logger.info("no boundary feature named %r", self.highlighted)
        return matched

    def styles(self) -> dict:
        return {f.name: dict(f.style) for f in self.features}


def load_boundaries(path: str, name_properties: tuple = NAME_PROPERTIES) -> BoundaryLayer:
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as e:
        raise BoundaryLoadError(f"cannot read boundaries from {path}: {e}") from e
    layer = BoundaryLayer.from_geojson(data, name_properties=name_properties)
    logger.info("boundaries loaded path=%s features=%d", path, len(layer))
    return layer
