"""Map view: viewport resolution and district boundary highlighting."""

from mapview.viewport import NO_CHANGE, NoChange, Padding, Viewport, fit_zoom, resolve_viewport
from mapview.boundaries import BoundaryFeature, BoundaryLayer, load_boundaries

__all__ = [
    "NO_CHANGE",
    "NoChange",
    "Padding",
    "Viewport",
    "fit_zoom",
    "resolve_viewport",
    "BoundaryFeature",
    "BoundaryLayer",
    "load_boundaries",
]
