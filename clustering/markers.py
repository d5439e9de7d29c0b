"""
Marker clustering: incidents whose markers would overlap on screen at the current
zoom are merged into one cluster. Works in projected pixel space, so clusters split
apart as the map zooms in. Recomputed from scratch on every call.

Greedy grid pass (as the map's marker-cluster plugin does): each marker joins the
nearest existing cluster anchor within radius_px, looking only at the 3x3
neighbouring grid cells; otherwise it starts a new cluster anchored at itself.
"""

import logging
import math
from html import escape
from dataclasses import dataclass, field
from typing import Iterable, Optional

from core.config import cluster_radius_px
from core.models import Incident
from clustering.bounds import Bounds
from clustering.projection import project

logger = logging.getLogger("incident_map.clustering.markers")

MARKER_STYLE = {
    "radius": 8,
    "fillColor": "#ff0000",
    "color": "#000",
    "weight": 1,
    "opacity": 1,
    "fillOpacity": 0.8,
}
NO_DATA = "N/A"
UNKNOWN = "Unknown"


@dataclass(frozen=True)
class MarkerCluster:
    members: tuple
    bounds: Bounds

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def center(self) -> tuple:
        """Mean member position (lon, lat)."""
        n = len(self.members)
        return (
            sum(m.position[0] for m in self.members) / n,
            sum(m.position[1] for m in self.members) / n,
        )

    def to_dict(self):
        lon, lat = self.center
        return {
            "count": self.count,
            "center": {"lon": round(lon, 6), "lat": round(lat, 6)},
            "bounds": self.bounds.to_dict(),
            "markers": [marker_dict(m) for m in self.members],
        }


@dataclass
class ClusterResult:
    clusters: list = field(default_factory=list)
    bounds: Bounds = field(default_factory=Bounds.empty)
    zoom: float = 0

    def to_dict(self):
        return {
            "zoom": self.zoom,
            "bounds": self.bounds.to_dict(),
            "clusters": [c.to_dict() for c in self.clusters],
        }


@dataclass
class _Anchor:
    x: float
    y: float
    members: list


def positioned(incidents: Iterable[Incident]) -> list[Incident]:
    return [
        inc for inc in incidents
        if inc.position is not None and all(math.isfinite(c) for c in inc.position)
    ]


def cluster_incidents(
    incidents: Iterable[Incident],
    zoom: float,
    *,
    radius_px: Optional[float] = None,
) -> ClusterResult:
    """Group positioned incidents into screen-space clusters at `zoom`; bounds cover every position."""
    radius = radius_px if radius_px is not None else cluster_radius_px()
    points = positioned(incidents)
    anchors: list[_Anchor] = []
    grid: dict[tuple[int, int], list[_Anchor]] = {}

    for inc in points:
        x, y = project(inc.position[0], inc.position[1], zoom)
        if radius <= 0:
            anchors.append(_Anchor(x, y, [inc]))
            continue
        cx, cy = int(x // radius), int(y // radius)
        best: Optional[_Anchor] = None
        best_d2 = radius * radius
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for anchor in grid.get((cx + dx, cy + dy), ()):
                    d2 = (anchor.x - x) ** 2 + (anchor.y - y) ** 2
                    if d2 <= best_d2:
                        best, best_d2 = anchor, d2
        if best is not None:
            best.members.append(inc)
        else:
            anchor = _Anchor(x, y, [inc])
            anchors.append(anchor)
            grid.setdefault((cx, cy), []).append(anchor)

    clusters = [
        MarkerCluster(members=tuple(a.members), bounds=Bounds.from_positions(m.position for m in a.members))
        for a in anchors
    ]
    bounds = Bounds.from_positions(inc.position for inc in points)
    logger.debug("clustered markers=%d clusters=%d zoom=%s radius_px=%s", len(points), len(clusters), zoom, radius)
    return ClusterResult(clusters=clusters, bounds=bounds, zoom=zoom)


def marker_popup(incident: Incident) -> str:
    return (
        f"<b>ID:</b> {escape(incident.id or NO_DATA)}<br>"
        f"<b>Datetime:</b> {escape(incident.datetime or NO_DATA)}<br>"
        f"<b>District:</b> {escape(incident.district or NO_DATA)}<br>"
        f"<b>Complaint:</b> {escape(incident.complaint or NO_DATA)}<br>"
        f"<b>Call Type:</b> {escape(incident.call_type or NO_DATA)}<br>"
        f"<b>Address:</b> {escape(incident.address or NO_DATA)}"
    )


def marker_tooltip(incident: Incident) -> str:
    return incident.id or UNKNOWN


def marker_dict(incident: Incident) -> dict:
    d = incident.to_dict()
    d["popup"] = marker_popup(incident)
    d["tooltip"] = marker_tooltip(incident)
    return d
