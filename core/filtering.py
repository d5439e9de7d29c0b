"""Exact-match attribute filtering over an incident snapshot.

apply_filter is a plain linear scan. AttributeIndex is the optional per-snapshot
index (value -> snapshot positions); it is built once per snapshot load and gives
the same results in the same order.
"""

import logging
from typing import Iterable, Optional

from core.models import FILTER_FIELDS, FilterPredicate, Incident

logger = logging.getLogger("incident_map.core.filtering")


def apply_filter(snapshot: Iterable[Incident], predicate: Optional[FilterPredicate] = None) -> list[Incident]:
    """Stable filter: keep incidents whose attributes equal every present predicate field."""
    snapshot = list(snapshot)
    if predicate is None or predicate.is_empty():
        return snapshot
    return [inc for inc in snapshot if predicate.matches(inc)]


class AttributeIndex:
    def __init__(self, snapshot: Iterable[Incident]):
        self._snapshot = tuple(snapshot)
        self._index: dict[str, dict[str, set[int]]] = {name: {} for name in FILTER_FIELDS}
        for pos, inc in enumerate(self._snapshot):
            for name in FILTER_FIELDS:
                value = inc.attribute(name)
                if value:
                    self._index[name].setdefault(value, set()).add(pos)
        logger.debug("attribute index built incidents=%d keys=%s",
                     len(self._snapshot), {n: len(v) for n, v in self._index.items()})

    @property
    def snapshot(self) -> tuple:
        return self._snapshot

    def positions(self, name: str, value: str) -> set[int]:
        return self._index[name].get(value, set())

    def lookup(self, predicate: Optional[FilterPredicate] = None) -> list[Incident]:
        if predicate is None or predicate.is_empty():
            return list(self._snapshot)
        hits: Optional[set[int]] = None
        # Smallest posting set first
        sets = sorted((self.positions(n, v) for n, v in predicate.constraints().items()), key=len)
        for s in sets:
            hits = set(s) if hits is None else hits & s
            if not hits:
                return []
        return [self._snapshot[pos] for pos in sorted(hits)]
