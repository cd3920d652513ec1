"""Pairwise taste compatibility with a staleness-bounded match cache.

Invariants:
- Matches are stored once per pair, under (user1_id, user2_id) with
  user1_id < user2_id; canonical_pair is the only place that orders ids.
- Scoring reads persisted TasteIDs only, never raw reviews.
- A cached match is served unchanged until it is older than the staleness window.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any

from tasteid.core.config import settings
from tasteid.core.errors import InvalidComparison, NotFound
from tasteid.models.taste import MatchType, TasteID, TasteMatch
from tasteid.services.taste_scoring import clamp01, cosine_similarity
from tasteid.services.taste_store import TasteStore
from tasteid.utils.datetime import as_naive_utc, utcnow

logger = logging.getLogger("tasteid.services.compatibility")

MATCH_TYPE_DESCRIPTIONS: dict[MatchType, str] = {
    MatchType.TASTE_TWIN: "Taste twins with almost identical preferences.",
    MatchType.COMPLEMENTARY: "Complementary tastes that could introduce each other to new music.",
    MatchType.EXPLORER_GUIDE: "One explores far more widely, a natural source of recommendations.",
    MatchType.GENRE_BUDDY: "Shares key genre interests.",
}


@dataclass(slots=True)
class MatchScores:
    """Sub-scores and shared sets for one canonical pair."""

    overall_score: float
    genre_overlap: float
    artist_overlap: float
    rating_alignment: float
    match_type: MatchType
    shared_genres: list[str] = field(default_factory=list)
    shared_artists: list[str] = field(default_factory=list)
    shared_albums: list[str] = field(default_factory=list)

    def as_values(self) -> dict[str, Any]:
        return asdict(self)


def canonical_pair(user_a: str, user_b: str) -> tuple[str, str]:
    """Order two user ids so (A, B) and (B, A) map to the same stored row."""
    if not isinstance(user_a, str) or not isinstance(user_b, str):
        raise InvalidComparison("User ids must be strings")
    if not user_a.strip() or not user_b.strip():
        raise InvalidComparison("Both user ids are required to compare TasteIDs")
    if user_a == user_b:
        raise InvalidComparison("Cannot compare a TasteID with itself")
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def _casefolded(values: list[str]) -> set[str]:
    return {value.casefold() for value in values}


def artist_overlap(left: list[str], right: list[str]) -> float:
    """Jaccard similarity of two case-normalized artist lists."""
    left_set, right_set = _casefolded(left), _casefolded(right)
    union = left_set | right_set
    if not union:
        return 0.0
    return len(left_set & right_set) / len(union)


def rating_alignment(left_average: float, right_average: float) -> float:
    """1 for identical average ratings, falling linearly to 0 at the configured span."""
    return clamp01(1.0 - abs(left_average - right_average) / settings.rating_alignment_span)


def overall_score(genre: float, artist: float, rating: float, shared_album_count: int) -> float:
    album_factor = min(shared_album_count / max(settings.shared_album_target, 1), 1.0)
    score = 100.0 * (
        settings.match_weight_genre * genre
        + settings.match_weight_artist * artist
        + settings.match_weight_rating * rating
        + settings.match_weight_albums * album_factor
    )
    return round(max(0.0, min(100.0, score)), 2)


def classify_match(
    genre: float,
    artist: float,
    rating: float,
    adventureness_gap: float,
    shared_genre_count: int,
) -> MatchType:
    """Rule-based match type from the sub-score pattern, checked in order."""
    twin_genre, twin_artist, twin_rating = settings.taste_twin_thresholds
    if genre >= twin_genre and artist >= twin_artist and rating >= twin_rating:
        return MatchType.TASTE_TWIN
    if genre >= settings.explorer_genre_min and adventureness_gap >= settings.explorer_adventureness_gap:
        return MatchType.EXPLORER_GUIDE
    if (
        genre < settings.complementary_genre_max
        and artist < settings.complementary_artist_max
        and shared_genre_count == 0
    ):
        return MatchType.COMPLEMENTARY
    return MatchType.GENRE_BUDDY


def score_pair(first: TasteID, second: TasteID) -> MatchScores:
    """Score two TasteIDs; every numeric output is symmetric in its arguments."""
    genre = round(cosine_similarity(first.genre_vector or {}, second.genre_vector or {}), 6)
    artist = round(artist_overlap(first.top_artists or [], second.top_artists or []), 6)
    rating = round(rating_alignment(first.average_rating, second.average_rating), 6)

    second_genres = set(second.top_genres or [])
    shared_genres = [genre_key for genre_key in first.top_genres or [] if genre_key in second_genres]
    second_artists = _casefolded(second.top_artists or [])
    shared_artists = [name for name in first.top_artists or [] if name.casefold() in second_artists]
    second_albums = set(second.loved_albums or [])
    shared_albums = sorted(album for album in set(first.loved_albums or []) if album in second_albums)

    gap = abs((first.adventureness_score or 0.0) - (second.adventureness_score or 0.0))
    return MatchScores(
        overall_score=overall_score(genre, artist, rating, len(shared_albums)),
        genre_overlap=genre,
        artist_overlap=artist,
        rating_alignment=rating,
        match_type=classify_match(genre, artist, rating, gap, len(shared_genres)),
        shared_genres=shared_genres,
        shared_artists=shared_artists,
        shared_albums=shared_albums[: settings.shared_album_target],
    )


def is_stale(updated_at: datetime | None, now: datetime) -> bool:
    if updated_at is None:
        return True
    window = timedelta(hours=settings.match_staleness_hours)
    return as_naive_utc(now) - as_naive_utc(updated_at) > window


async def compare_taste_ids(
    store: TasteStore,
    user_a: str,
    user_b: str,
    *,
    now: datetime | None = None,
    force_refresh: bool = False,
) -> TasteMatch:
    """Return the cached match for a pair, recomputing it once stale."""
    user1_id, user2_id = canonical_pair(user_a, user_b)
    first = await store.get_taste_id(user1_id)
    second = await store.get_taste_id(user2_id)
    missing = [user_id for user_id, taste in ((user1_id, first), (user2_id, second)) if taste is None]
    if missing:
        raise NotFound(missing)

    now = now or utcnow()
    cached = await store.get_taste_match(user1_id, user2_id)
    if cached is not None and not force_refresh and not is_stale(cached.updated_at, now):
        logger.debug("Serving cached match for %s/%s", user1_id, user2_id)
        return cached

    scores = score_pair(first, second)
    try:
        match = await store.upsert_taste_match(user1_id, user2_id, {**scores.as_values(), "updated_at": now})
        await store.commit()
    except Exception:
        await store.rollback()
        raise
    logger.info(
        "Computed %s match for %s/%s (score %.1f)",
        match.match_type.value,
        user1_id,
        user2_id,
        match.overall_score,
    )
    return match
