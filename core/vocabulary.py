"""Dropdown vocabularies derived from the snapshot itself."""

from typing import Iterable

from core.models import FILTER_FIELDS, Incident, Vocabularies


def distinct_sorted(values: Iterable) -> list[str]:
    """Distinct truthy values, ascending."""
    return sorted({v for v in values if v})


def build_vocabularies(snapshot: Iterable[Incident]) -> Vocabularies:
    snapshot = list(snapshot)
    return Vocabularies(**{
        name: distinct_sorted(inc.attribute(name) for inc in snapshot)
        for name in FILTER_FIELDS
    })
