"""Review aggregation into the feature set every score is computed from.

Invariants:
- Each review contributes one unit split evenly across its album's distinct genres.
- Artist counts are keyed by the casefolded name; the display spelling comes
  from the most recent review of that artist.
- Malformed album metadata raises ComputationFailure instead of being skipped.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Sequence

from slugify import slugify

from tasteid.core.config import settings
from tasteid.core.errors import ComputationFailure, InsufficientData
from tasteid.services.taste_store import ReviewRecord, TasteStore
from tasteid.utils.datetime import as_naive_utc, decade_label, release_year

logger = logging.getLogger("tasteid.services.review_aggregator")


@dataclass(frozen=True, slots=True)
class ReviewFeatures:
    """Per-review features after normalization."""

    album_id: str
    rating: float
    genres: tuple[str, ...]
    artist_key: str
    artist_name: str
    release_year: int | None
    word_count: int
    text_length: int
    created_at: datetime


@dataclass(slots=True)
class FeatureSet:
    """Aggregate genre, decade, artist and rating signals for one user."""

    user_id: str
    reviews: list[ReviewFeatures] = field(default_factory=list)
    genre_counts: dict[str, float] = field(default_factory=dict)
    decade_counts: dict[str, float] = field(default_factory=dict)
    artist_counts: dict[str, int] = field(default_factory=dict)
    artist_names: dict[str, str] = field(default_factory=dict)
    genre_last_seen: dict[str, datetime] = field(default_factory=dict)
    artist_last_seen: dict[str, datetime] = field(default_factory=dict)

    @property
    def review_count(self) -> int:
        return len(self.reviews)

    @property
    def ratings(self) -> list[float]:
        return [review.rating for review in self.reviews]

    @property
    def word_counts(self) -> list[int]:
        return [review.word_count for review in self.reviews]


def normalize_genre(value: str) -> str:
    """Collapse spelling variants ("Hip Hop", "hip-hop") into one key."""
    return slugify(value or "")


def normalize_artist(value: str) -> str:
    return " ".join((value or "").split()).casefold()


def normalize_distribution(counts: Mapping[str, float]) -> dict[str, float]:
    """Scale non-negative weights so they sum to 1; empty input stays empty."""
    total = sum(counts.values())
    if total <= 0:
        return {}
    return {key: value / total for key, value in sorted(counts.items())}


def word_count(text: str | None) -> int:
    if not text:
        return 0
    return len(text.split())


def normalize_rating(record: ReviewRecord) -> float:
    """Return the rating on the 0..10 scale, rescaling quick-rate stars."""
    try:
        rating = float(record.rating)
    except (TypeError, ValueError) as exc:
        raise ComputationFailure(f"Review of album {record.album_id} has a non-numeric rating") from exc
    if record.quick_rate:
        if not 1 <= rating <= settings.quick_rate_scale:
            raise ComputationFailure(f"Quick rating {rating} for album {record.album_id} is out of range")
        return rating * settings.rating_scale / settings.quick_rate_scale
    if not 0 <= rating <= settings.rating_scale:
        raise ComputationFailure(f"Rating {rating} for album {record.album_id} is out of range")
    return rating


def _review_features(record: ReviewRecord) -> ReviewFeatures:
    artist_key = normalize_artist(record.artist_name)
    if not artist_key:
        raise ComputationFailure(f"Album {record.album_id} has no artist name")
    try:
        year = release_year(record.release_date)
    except ValueError as exc:
        raise ComputationFailure(f"Album {record.album_id}: {exc}") from exc
    if not isinstance(record.genres, (list, tuple)):
        raise ComputationFailure(f"Album {record.album_id} has malformed genre tags")
    genres: list[str] = []
    for raw in record.genres:
        if not isinstance(raw, str):
            raise ComputationFailure(f"Album {record.album_id} has a non-text genre tag")
        genre = normalize_genre(raw)
        if genre and genre not in genres:
            genres.append(genre)
    return ReviewFeatures(
        album_id=record.album_id,
        rating=normalize_rating(record),
        genres=tuple(genres),
        artist_key=artist_key,
        artist_name=" ".join(record.artist_name.split()),
        release_year=year,
        word_count=word_count(record.text),
        text_length=len(record.text or ""),
        created_at=as_naive_utc(record.created_at),
    )


def _touch(last_seen: dict[str, datetime], key: str, when: datetime) -> bool:
    previous = last_seen.get(key)
    if previous is None or when > previous:
        last_seen[key] = when
        return True
    return False


def build_feature_set(user_id: str, records: Sequence[ReviewRecord]) -> FeatureSet:
    """Aggregate reviews into a FeatureSet, failing closed below the minimum count."""
    if len(records) < settings.min_reviews:
        raise InsufficientData(len(records), settings.min_reviews)

    features = FeatureSet(user_id=user_id)
    genre_counts: Counter[str] = Counter()
    decade_counts: Counter[str] = Counter()
    artist_counts: Counter[str] = Counter()

    # Oldest first so equal timestamps resolve the same way on every run.
    ordered = sorted(records, key=lambda record: (as_naive_utc(record.created_at), record.album_id))
    for record in ordered:
        review = _review_features(record)
        features.reviews.append(review)

        if review.genres:
            share = 1.0 / len(review.genres)
            for genre in review.genres:
                genre_counts[genre] += share
                _touch(features.genre_last_seen, genre, review.created_at)

        if review.release_year is not None:
            decade_counts[decade_label(review.release_year)] += 1

        artist_counts[review.artist_key] += 1
        if _touch(features.artist_last_seen, review.artist_key, review.created_at):
            features.artist_names[review.artist_key] = review.artist_name

    features.genre_counts = dict(sorted(genre_counts.items()))
    features.decade_counts = dict(sorted(decade_counts.items()))
    features.artist_counts = dict(sorted(artist_counts.items()))
    return features


async def load_feature_set(store: TasteStore, user_id: str) -> FeatureSet:
    """Read a user's reviews from the store and aggregate them."""
    records = await store.get_reviews(user_id)
    logger.debug("Loaded %d reviews for %s", len(records), user_id)
    return build_feature_set(user_id, records)


def rank_keys(
    counts: Mapping[str, float],
    last_seen: Mapping[str, datetime],
    limit: int,
) -> list[str]:
    """Rank keys by weight desc, then most recent rating, then name."""
    ranked = sorted(counts)
    ranked.sort(key=lambda key: last_seen.get(key, datetime.min), reverse=True)
    ranked.sort(key=lambda key: round(counts[key], 9), reverse=True)
    return ranked[:limit]

