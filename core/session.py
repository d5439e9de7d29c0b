"""
Filter session: owns the snapshot and the active predicate, and drives one render
per selection change:

    filter -> cluster (positioned matches) -> viewport -> boundary highlight

Renders are synchronous and serialized under a lock, so a later selection is never
overwritten by an earlier one. The snapshot is loaded once and never changes.
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Union

from core import config
from core.errors import DataFetchFailure
from core.filtering import AttributeIndex
from core.models import FILTER_FIELDS, FilterPredicate, Incident, Vocabularies
from core.vocabulary import build_vocabularies
from clustering.markers import ClusterResult, cluster_incidents
from mapview.boundaries import BoundaryLayer
from mapview.viewport import NO_CHANGE, NoChange, Padding, Viewport, resolve_viewport

logger = logging.getLogger("incident_map.core.session")

CHANGE_KINDS = FILTER_FIELDS  # district | complaint | call_type


@dataclass(frozen=True)
class FilterChanged:
    """One dropdown change; empty value clears that constraint."""
    kind: str
    value: Optional[str] = None

    def __post_init__(self):
        if self.kind not in CHANGE_KINDS:
            raise ValueError(f"unknown filter kind: {self.kind}")


def apply_change(predicate: FilterPredicate, change: FilterChanged) -> FilterPredicate:
    return predicate.with_value(change.kind, change.value)


@dataclass
class RenderResult:
    predicate: FilterPredicate
    matching: list = field(default_factory=list)
    clusters: ClusterResult = field(default_factory=ClusterResult)
    viewport: Union[Viewport, NoChange] = NO_CHANGE
    highlighted_district: Optional[str] = None
    boundary_styles: dict = field(default_factory=dict)
    revision: int = 0

    @property
    def visible_clusters(self) -> list:
        return self.clusters.clusters

    def to_dict(self):
        return {
            "revision": self.revision,
            "predicate": self.predicate.to_dict(),
            "matching_count": len(self.matching),
            "positioned_count": sum(c.count for c in self.clusters.clusters),
            "clusters": self.clusters.to_dict(),
            "viewport": self.viewport.to_dict() if isinstance(self.viewport, Viewport) else None,
            "no_change": self.viewport is NO_CHANGE,
            "highlighted_district": self.highlighted_district,
            "boundary_styles": self.boundary_styles,
        }


class FilterSession:
    def __init__(
        self,
        *,
        boundaries: Optional[BoundaryLayer] = None,
        padding=None,
        zoom: Optional[float] = None,
        map_size: Optional[tuple] = None,
        max_zoom: Optional[int] = None,
        radius_px: Optional[float] = None,
        on_error: Optional[Callable[[DataFetchFailure], None]] = None,
    ):
        self.boundaries = boundaries if boundaries is not None else BoundaryLayer()
        self.padding = Padding.of(padding if padding is not None else config.bounds_padding())
        self.zoom = zoom if zoom is not None else config.map_zoom()
        self.map_size = map_size or config.DEFAULT_MAP_SIZE
        self.max_zoom = max_zoom if max_zoom is not None else config.map_max_zoom()
        self.radius_px = radius_px
        self.on_error = on_error

        self._lock = threading.Lock()
        self._loaded = False
        self._index = AttributeIndex(())
        self._vocabularies = Vocabularies()
        self._predicate = FilterPredicate()
        self._revision = 0
        self.fetch_error: Optional[DataFetchFailure] = None
        self.viewport: Optional[Viewport] = None  # last region shown; untouched on NO_CHANGE
        self.last_result: Optional[RenderResult] = None

    # -- snapshot ---------------------------------------------------------------

    def load(self, fetch: Callable[[], Iterable]) -> RenderResult:
        """Fetch the snapshot once. A DataFetchFailure is reported once and leaves an empty snapshot."""
        if self._loaded:
            raise RuntimeError("snapshot already loaded for this session")
        self._loaded = True
        try:
            rows = list(fetch())
        except DataFetchFailure as e:
            logger.error("incident snapshot fetch failed: %s", e)
            self.fetch_error = e
            rows = []
            if self.on_error is not None:
                self.on_error(e)
        self._set_snapshot(rows)
        return self.render()

    def load_incidents(self, incidents: Iterable) -> RenderResult:
        """Load an already-fetched snapshot (rows or Incident objects)."""
        return self.load(lambda: incidents)

    def _set_snapshot(self, rows: list) -> None:
        snapshot = []
        skipped = 0
        for r in rows:
            if isinstance(r, Incident):
                snapshot.append(r)
            elif isinstance(r, dict):
                snapshot.append(Incident.from_row(r))
            else:
                skipped += 1
        if skipped:
            logger.warning("skipped %d snapshot rows that are not incident objects", skipped)
        counts = Counter(i.id for i in snapshot if i.id is not None)
        duplicates = sorted(iid for iid, n in counts.items() if n > 1)
        if duplicates:
            logger.warning("snapshot has duplicate incident ids: %s", ", ".join(duplicates[:10]))
        self._index = AttributeIndex(snapshot)
        self._vocabularies = build_vocabularies(snapshot)
        logger.info(
            "snapshot loaded incidents=%d positioned=%d districts=%d complaints=%d call_types=%d",
            len(snapshot), sum(1 for i in snapshot if i.position is not None),
            len(self._vocabularies.district), len(self._vocabularies.complaint), len(self._vocabularies.call_type),
        )

    @property
    def snapshot(self) -> tuple:
        return self._index.snapshot

    # -- exposed interface ------------------------------------------------------

    def get_vocabularies(self) -> Vocabularies:
        return self._vocabularies

    def get_active_predicate(self) -> FilterPredicate:
        return self._predicate

    def set_filter(self, partial: Optional[dict] = None, **fields) -> RenderResult:
        """Replace the named fields (empty = unconstrained), keep the rest, re-render."""
        changes = dict(partial or {})
        changes.update(fields)
        with self._lock:
            self._predicate = self._predicate.merged(changes)
            return self._render_locked()

    def dispatch(self, change: FilterChanged) -> RenderResult:
        with self._lock:
            self._predicate = apply_change(self._predicate, change)
            return self._render_locked()

    def set_zoom(self, zoom: float) -> RenderResult:
        """Re-cluster at a user zoom; the predicate and viewport stay as they are."""
        with self._lock:
            self.zoom = max(0, min(self.max_zoom, zoom))
            matching = self.last_result.matching if self.last_result else self._index.lookup(self._predicate)
            clusters = cluster_incidents(matching, self.zoom, radius_px=self.radius_px)
            self._revision += 1
            result = RenderResult(
                predicate=self._predicate,
                matching=matching,
                clusters=clusters,
                viewport=NO_CHANGE,
                highlighted_district=self.boundaries.highlighted,
                boundary_styles=self.boundaries.styles(),
                revision=self._revision,
            )
            self.last_result = result
            return result

    def render(self) -> RenderResult:
        with self._lock:
            return self._render_locked()

    # -- render pipeline --------------------------------------------------------

    def _render_locked(self) -> RenderResult:
        predicate = self._predicate
        matching = self._index.lookup(predicate)
        clusters = cluster_incidents(matching, self.zoom, radius_px=self.radius_px)

        district = predicate.district
        boundary_bounds = self.boundaries.bounds_of(district) if district else None
        viewport = resolve_viewport(
            clusters,
            self.padding,
            boundary=boundary_bounds,
            map_size=self.map_size,
            max_zoom=self.max_zoom,
        )
        if isinstance(viewport, Viewport):
            self.viewport = viewport
            if viewport.zoom is not None and viewport.zoom != self.zoom:
                # the map re-clusters once it settles at the fitted zoom
                self.zoom = viewport.zoom
                clusters = cluster_incidents(matching, self.zoom, radius_px=self.radius_px)

        self.boundaries.highlight(district)
        self._revision += 1
        result = RenderResult(
            predicate=predicate,
            matching=matching,
            clusters=clusters,
            viewport=viewport,
            highlighted_district=district,
            boundary_styles=self.boundaries.styles(),
            revision=self._revision,
        )
        self.last_result = result
        logger.debug(
            "render rev=%d predicate=%s matching=%d clusters=%d viewport=%s",
            self._revision, predicate.to_dict(), len(matching), len(clusters.clusters),
            viewport.source if isinstance(viewport, Viewport) else "no_change",
        )
        return result
