"""Errors surfaced by the incident map. Everything else is absorbed by total filter/cluster/viewport semantics."""

from typing import Optional


class DataFetchFailure(Exception):
    """Incident snapshot could not be retrieved (network, HTTP status, storage or payload error)."""

    def __init__(self, message: str, source: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.source = source
        self.status_code = status_code


class BoundaryLoadError(Exception):
    """Boundary GeoJSON could not be read or has no usable features."""
