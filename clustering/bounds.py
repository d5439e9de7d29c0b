"""Lon/lat bounding regions. An empty region is explicitly invalid, never a (0, 0) box."""

import math
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class Bounds:
    min_lon: float = math.inf
    min_lat: float = math.inf
    max_lon: float = -math.inf
    max_lat: float = -math.inf

    @classmethod
    def empty(cls) -> "Bounds":
        return cls()

    @classmethod
    def from_positions(cls, positions: Iterable[Optional[tuple]]) -> "Bounds":
        b = cls.empty()
        for pos in positions:
            if pos is not None:
                b = b.extend(pos[0], pos[1])
        return b

    def is_valid(self) -> bool:
        return self.min_lon <= self.max_lon and self.min_lat <= self.max_lat

    def extend(self, lon: float, lat: float) -> "Bounds":
        return Bounds(
            min(self.min_lon, lon),
            min(self.min_lat, lat),
            max(self.max_lon, lon),
            max(self.max_lat, lat),
        )

    def union(self, other: "Bounds") -> "Bounds":
        if not other.is_valid():
            return self
        if not self.is_valid():
            return other
        return Bounds(
            min(self.min_lon, other.min_lon),
            min(self.min_lat, other.min_lat),
            max(self.max_lon, other.max_lon),
            max(self.max_lat, other.max_lat),
        )

    def contains(self, lon: float, lat: float) -> bool:
        return self.is_valid() and self.min_lon <= lon <= self.max_lon and self.min_lat <= lat <= self.max_lat

    @property
    def center(self) -> Optional[tuple]:
        if not self.is_valid():
            return None
        return ((self.min_lon + self.max_lon) / 2, (self.min_lat + self.max_lat) / 2)

    def to_dict(self) -> Optional[dict]:
        """None for an invalid region."""
        if not self.is_valid():
            return None
        return {
            "min_lon": round(self.min_lon, 6),
            "min_lat": round(self.min_lat, 6),
            "max_lon": round(self.max_lon, 6),
            "max_lat": round(self.max_lat, 6),
        }
