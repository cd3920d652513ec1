"""TasteID assembly: aggregate, score, classify, map, and persist.

Invariants:
- Computed vectors depend only on the review set; the clock is used for
  timestamps and nothing else.
- The TasteID upsert and its snapshot commit together or not at all.
"""

from __future__ import annotations

import enum
import logging
from collections import defaultdict
from datetime import datetime
from typing import Any

from tasteid.core.config import settings
from tasteid.core.errors import ComputationFailure, NotFound, TasteIDError
from tasteid.models.taste import RatingSkew, TasteID, TasteIDSnapshot
from tasteid.services import archetype_classifier, cognitive_mapper, taste_scoring
from tasteid.services.review_aggregator import (
    FeatureSet,
    ReviewFeatures,
    load_feature_set,
    normalize_distribution,
    rank_keys,
)
from tasteid.services.taste_store import TasteStore
from tasteid.utils.datetime import utcnow

logger = logging.getLogger("tasteid.services.tasteid")

CRITICAL_EAR = "Critical Ear"
MUSIC_OPTIMIST = "Music Optimist"
GENRE_EXPLORER = "Genre Explorer"
DISCOGRAPHY_COMPLETIONIST = "Discography Completionist"
EMOTIONAL_LISTENER = "Emotional Listener"

GENRE_EXPLORER_MIN_ADVENTURENESS = 0.6
COMPLETIONIST_MIN_REVIEWS = 3
EMOTIONAL_MIN_STDDEV = 2.5


def _artist_dna(features: FeatureSet) -> list[dict[str, Any]]:
    ratings: dict[str, list[float]] = defaultdict(list)
    for review in features.reviews:
        ratings[review.artist_key].append(review.rating)
    ranked = rank_keys(features.artist_counts, features.artist_last_seen, settings.artist_dna_limit)
    if not ranked:
        return []
    top_count = features.artist_counts[ranked[0]]
    return [
        {
            "artist_name": features.artist_names[key],
            "weight": round(features.artist_counts[key] / top_count, 6),
            "avg_rating": round(taste_scoring.mean(ratings[key]), 6),
            "review_count": features.artist_counts[key],
        }
        for key in ranked
    ]


def _most_recent_first(features: FeatureSet) -> list[ReviewFeatures]:
    return sorted(features.reviews, key=lambda review: (review.created_at, review.album_id), reverse=True)


def _signature_albums(features: FeatureSet) -> list[str]:
    """Highly rated albums the user wrote about, best rated then most recent."""
    picked: list[str] = []
    candidates = [
        review
        for review in _most_recent_first(features)
        if review.rating >= settings.loved_album_min_rating
        and review.text_length > settings.signature_album_min_text
    ]
    candidates.sort(key=lambda review: review.rating, reverse=True)
    for review in candidates:
        if review.album_id not in picked:
            picked.append(review.album_id)
        if len(picked) >= settings.signature_album_limit:
            break
    return picked


def _loved_albums(features: FeatureSet) -> list[str]:
    loved: list[str] = []
    for review in _most_recent_first(features):
        if review.rating >= settings.loved_album_min_rating and review.album_id not in loved:
            loved.append(review.album_id)
        if len(loved) >= settings.loved_album_limit:
            break
    return loved


def signature_patterns(
    features: FeatureSet,
    skew: RatingSkew,
    adventureness: float,
    rating_std_dev: float,
) -> list[str]:
    """Behavioral pattern labels shown alongside the archetype."""
    patterns: list[str] = []
    if skew is RatingSkew.HARSH:
        patterns.append(CRITICAL_EAR)
    elif skew is RatingSkew.LENIENT:
        patterns.append(MUSIC_OPTIMIST)
    if adventureness >= GENRE_EXPLORER_MIN_ADVENTURENESS:
        patterns.append(GENRE_EXPLORER)
    if any(count >= COMPLETIONIST_MIN_REVIEWS for count in features.artist_counts.values()):
        patterns.append(DISCOGRAPHY_COMPLETIONIST)
    if rating_std_dev >= EMOTIONAL_MIN_STDDEV:
        patterns.append(EMOTIONAL_LISTENER)
    return patterns


def assemble(features: FeatureSet) -> dict[str, Any]:
    """Compose every calculator output into TasteID column values."""
    ratings = features.ratings
    average_rating, rating_std_dev = taste_scoring.rating_stats(ratings)
    avg_review_length = taste_scoring.mean(features.word_counts)

    genre_vector = normalize_distribution(features.genre_counts)
    decade_preferences = normalize_distribution(features.decade_counts)
    adventureness = taste_scoring.adventureness(features.genre_counts)
    polarity = taste_scoring.polarity(ratings)
    skew = taste_scoring.rating_skew(average_rating)
    depth = taste_scoring.review_depth(avg_review_length)

    vector = archetype_classifier.build_feature_vector(features, genre_vector, adventureness, polarity)
    archetype = archetype_classifier.classify(vector)
    cognitive = cognitive_mapper.map_cognitive_state(genre_vector)

    top_artist_keys = rank_keys(features.artist_counts, features.artist_last_seen, settings.top_artists_limit)
    return {
        "primary_archetype": archetype.primary.value,
        "secondary_archetype": archetype.secondary.value if archetype.secondary else None,
        "archetype_confidence": archetype.confidence,
        "genre_vector": genre_vector,
        "decade_preferences": decade_preferences,
        "top_genres": rank_keys(features.genre_counts, features.genre_last_seen, settings.top_genres_limit),
        "top_artists": [features.artist_names[key] for key in top_artist_keys],
        "artist_dna": _artist_dna(features),
        "signature_albums": _signature_albums(features),
        "loved_albums": _loved_albums(features),
        "signature_patterns": signature_patterns(features, skew, adventureness, rating_std_dev),
        "adventureness_score": round(adventureness, 6),
        "polarity_score": round(polarity, 6),
        "rating_skew": skew,
        "review_depth": depth,
        "average_rating": round(average_rating, 6),
        "rating_std_dev": round(rating_std_dev, 6),
        "avg_review_length": round(avg_review_length, 2),
        "review_count": features.review_count,
        "network_activations": cognitive.as_payload(),
        "dominant_network": cognitive.dominant.value,
        "music_mode": cognitive.mode.value,
    }


def snapshot_payload(values: dict[str, Any]) -> dict[str, Any]:
    """JSON-safe copy of computed values for the append-only history."""
    payload: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, datetime):
            payload[key] = value.isoformat()
        elif isinstance(value, enum.Enum):
            payload[key] = value.value
        else:
            payload[key] = value
    return payload


async def compute_taste_id(store: TasteStore, user_id: str, *, now: datetime | None = None) -> TasteID:
    """Recompute and persist a user's TasteID plus a history snapshot."""
    try:
        features = await load_feature_set(store, user_id)
        computed = assemble(features)
    except ComputationFailure as exc:
        logger.error("TasteID aggregation failed for %s: %s", user_id, exc.message)
        raise
    except TasteIDError:
        raise
    except (ArithmeticError, KeyError, TypeError, ValueError) as exc:
        logger.exception("TasteID aggregation failed for %s", user_id)
        raise ComputationFailure(f"Could not compute TasteID for {user_id}") from exc

    values = {**computed, "last_computed_at": now or utcnow()}
    try:
        taste = await store.upsert_taste_id(user_id, values)
        await store.append_snapshot(taste, snapshot_payload(values))
        await store.commit()
    except Exception:
        await store.rollback()
        raise
    logger.info(
        "Computed TasteID for %s: %s (%.2f confidence, %d reviews)",
        user_id,
        taste.primary_archetype,
        taste.archetype_confidence,
        taste.review_count,
    )
    return taste


async def get_taste_id(store: TasteStore, user_id: str) -> TasteID:
    taste = await store.get_taste_id(user_id)
    if taste is None:
        raise NotFound([user_id])
    return taste


async def get_taste_history(store: TasteStore, user_id: str, *, limit: int = 12) -> list[TasteIDSnapshot]:
    """Return a user's snapshots, newest first."""
    taste = await get_taste_id(store, user_id)
    return await store.list_snapshots(taste.id, max(1, limit))
