"""Incident snapshot models: read-only records and the attribute predicate used to narrow them."""

import math
from dataclasses import dataclass, field, replace
from typing import Optional

# Predicate/incident attribute names, in dropdown order
FILTER_FIELDS = ("district", "complaint", "call_type")


def _clean(value) -> Optional[str]:
    """Empty/absent categorical values collapse to None."""
    if value is None:
        return None
    value = str(value)
    return value if value else None


def _coord(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        coord = float(value)
    except (TypeError, ValueError):
        return None
    # NaN and infinities cannot be placed on the map
    return coord if math.isfinite(coord) else None


@dataclass(frozen=True)
class Incident:
    id: Optional[str] = None
    datetime: Optional[str] = None  # free-form, never parsed
    complaint: Optional[str] = None
    call_type: Optional[str] = None
    district: Optional[str] = None
    address: Optional[str] = None
    position: Optional[tuple] = None  # (lon, lat) or None, never half-set

    @property
    def lon(self) -> Optional[float]:
        return self.position[0] if self.position else None

    @property
    def lat(self) -> Optional[float]:
        return self.position[1] if self.position else None

    def attribute(self, name: str) -> Optional[str]:
        if name not in FILTER_FIELDS:
            raise ValueError(f"unknown incident attribute: {name}")
        return getattr(self, name)

    @classmethod
    def from_row(cls, row: dict) -> "Incident":
        """Build from a storage/API row (id, datetime, complaint, address, district, call_type, lon, lat)."""
        lon = _coord(row.get("lon"))
        lat = _coord(row.get("lat"))
        position = (lon, lat) if lon is not None and lat is not None else None
        call_type = row.get("call_type")
        if call_type is None:
            call_type = row.get("callType")
        incident_id = row.get("id")
        return cls(
            id=str(incident_id) if incident_id is not None else None,
            datetime=_clean(row.get("datetime")),
            complaint=_clean(row.get("complaint")),
            call_type=_clean(call_type),
            district=_clean(row.get("district")),
            address=_clean(row.get("address")),
            position=position,
        )

    def to_dict(self):
        return {
            "id": self.id,
            "datetime": self.datetime,
            "complaint": self.complaint,
            "address": self.address,
            "district": self.district,
            "call_type": self.call_type,
            "lon": self.lon,
            "lat": self.lat,
        }


@dataclass(frozen=True)
class FilterPredicate:
    """Exact-match constraints; a None field means no constraint on that attribute."""
    district: Optional[str] = None
    complaint: Optional[str] = None
    call_type: Optional[str] = None

    def __post_init__(self):
        for name in FILTER_FIELDS:
            object.__setattr__(self, name, _clean(getattr(self, name)))

    @classmethod
    def from_mapping(cls, data: Optional[dict]) -> "FilterPredicate":
        data = dict(data or {})
        if "callType" in data and "call_type" not in data:
            data["call_type"] = data.pop("callType")
        unknown = set(data) - set(FILTER_FIELDS) - {"callType"}
        if unknown:
            raise ValueError(f"unknown filter fields: {sorted(unknown)}")
        return cls(**{name: data.get(name) for name in FILTER_FIELDS})

    def constraints(self) -> dict:
        """Present fields only, in dropdown order."""
        return {name: getattr(self, name) for name in FILTER_FIELDS if getattr(self, name) is not None}

    def is_empty(self) -> bool:
        return not self.constraints()

    def with_value(self, name: str, value: Optional[str]) -> "FilterPredicate":
        if name not in FILTER_FIELDS:
            raise ValueError(f"unknown filter field: {name}")
        return replace(self, **{name: value})

    def merged(self, partial: dict) -> "FilterPredicate":
        """Replace the fields named in `partial`, keep the others."""
        pred = self
        for name, value in FilterPredicate._normalize_keys(partial).items():
            pred = pred.with_value(name, value)
        return pred

    def matches(self, incident: Incident) -> bool:
        return all(incident.attribute(name) == value for name, value in self.constraints().items())

    def to_dict(self):
        return self.constraints()

    @staticmethod
    def _normalize_keys(partial: dict) -> dict:
        out = {}
        for key, value in (partial or {}).items():
            out["call_type" if key == "callType" else key] = value
        return out


@dataclass
class Vocabularies:
    district: list = field(default_factory=list)
    complaint: list = field(default_factory=list)
    call_type: list = field(default_factory=list)

    def get(self, name: str) -> list:
        if name not in FILTER_FIELDS:
            raise ValueError(f"unknown vocabulary: {name}")
        return getattr(self, name)

    def to_dict(self):
        return {"district": list(self.district), "complaint": list(self.complaint), "call_type": list(self.call_type)}
