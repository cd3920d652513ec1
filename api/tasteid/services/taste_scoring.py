"""Pure score calculators over an aggregated feature set."""

from __future__ import annotations

import math
from typing import Iterable, Mapping

from tasteid.core.config import settings
from tasteid.models.taste import RatingSkew, ReviewDepth


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def mean(values: Iterable[float]) -> float:
    vals = list(values)
    if not vals:
        return 0.0
    return sum(vals) / len(vals)


def population_stddev(values: Iterable[float]) -> float:
    vals = list(values)
    if not vals:
        return 0.0
    mu = mean(vals)
    return math.sqrt(sum((value - mu) ** 2 for value in vals) / len(vals))


def rating_stats(ratings: Iterable[float]) -> tuple[float, float]:
    """Population mean and standard deviation."""
    vals = list(ratings)
    return mean(vals), population_stddev(vals)


def decade_focus(decade_counts: Mapping[str, float]) -> float:
    """Share of dated reviews falling in the single most common decade."""
    total = sum(decade_counts.values())
    if total <= 0:
        return 0.0
    return max(decade_counts.values()) / total


def adventureness(genre_counts: Mapping[str, float]) -> float:
    """Normalized Shannon entropy of the genre count distribution.

    The entropy is divided by ln(max(distinct genres, reference breadth)) so an
    even split over two genres still reads as narrow; one genre scores 0.
    Takes raw counts, not the normalized genre vector.
    """
    weights = [value for value in genre_counts.values() if value > 0]
    if len(weights) <= 1:
        return 0.0
    total = sum(weights)
    entropy = -sum((value / total) * math.log(value / total) for value in weights)
    breadth = max(len(weights), settings.adventureness_reference_genres)
    return clamp01(entropy / math.log(breadth))


def polarity(ratings: Iterable[float]) -> float:
    """Mean absolute deviation from the platform mean, in platform std devs."""
    vals = list(ratings)
    if not vals:
        return 0.0
    deviation = mean(abs(rating - settings.platform_mean_rating) for rating in vals)
    score = deviation / settings.platform_rating_stddev
    return max(0.0, min(settings.polarity_cap, score))


def rating_skew(average_rating: float) -> RatingSkew:
    if average_rating < settings.harsh_rating_threshold:
        return RatingSkew.HARSH
    if average_rating > settings.lenient_rating_threshold:
        return RatingSkew.LENIENT
    return RatingSkew.BALANCED


def review_depth(avg_words: float) -> ReviewDepth:
    if avg_words < settings.terse_review_words:
        return ReviewDepth.TERSE
    if avg_words > settings.elaborate_review_words:
        return ReviewDepth.ELABORATE
    return ReviewDepth.MODERATE


def cosine_similarity(left: Mapping[str, float], right: Mapping[str, float]) -> float:
    """Cosine similarity of two sparse vectors; 0 when either is empty."""
    keys = sorted(set(left) | set(right))
    dot = sum(left.get(key, 0.0) * right.get(key, 0.0) for key in keys)
    left_norm = math.sqrt(sum(value * value for value in left.values()))
    right_norm = math.sqrt(sum(value * value for value in right.values()))
    if left_norm == 0 or right_norm == 0:
        return 0.0
    return clamp01(dot / (left_norm * right_norm))
