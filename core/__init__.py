"""Core incident snapshot models, attribute filtering and vocabularies."""

from core.models import Incident, FilterPredicate, Vocabularies, FILTER_FIELDS
from core.filtering import apply_filter, AttributeIndex
from core.vocabulary import build_vocabularies
from core.errors import DataFetchFailure, BoundaryLoadError

__all__ = [
    "Incident",
    "FilterPredicate",
    "Vocabularies",
    "FILTER_FIELDS",
    "apply_filter",
    "AttributeIndex",
    "build_vocabularies",
    "DataFetchFailure",
    "BoundaryLoadError",
]
