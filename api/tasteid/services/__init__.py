"""Service layer for TasteID computation, matching, and search."""

from . import (
    archetype_classifier,
    cognitive_mapper,
    compatibility_service,
    review_aggregator,
    similarity_service,
    taste_scoring,
    taste_store,
    tasteid_service,
)

__all__ = [
    "archetype_classifier",
    "cognitive_mapper",
    "compatibility_service",
    "review_aggregator",
    "similarity_service",
    "taste_scoring",
    "taste_store",
    "tasteid_service",
]
