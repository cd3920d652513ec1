"""SQLAlchemy ORM models for the TasteID engine."""

from tasteid.models.catalog import Album, Review
from tasteid.models.taste import MatchType, RatingSkew, ReviewDepth, TasteID, TasteIDSnapshot, TasteMatch

__all__ = [
    "Album",
    "MatchType",
    "RatingSkew",
    "Review",
    "ReviewDepth",
    "TasteID",
    "TasteIDSnapshot",
    "TasteMatch",
]
