"""Pure score calculators: entropy, polarity, skew, depth, cosine."""

from __future__ import annotations

import math

import pytest

from tasteid.models.taste import RatingSkew, ReviewDepth
from tasteid.services import taste_scoring


def test_adventureness_is_zero_for_a_single_genre_or_none():
    assert taste_scoring.adventureness({}) == 0.0
    assert taste_scoring.adventureness({"rock": 12.0}) == 0.0


def test_adventureness_reads_even_spread_over_reference_breadth_as_maximal():
    counts = {f"genre-{index}": 1.0 for index in range(8)}
    assert taste_scoring.adventureness(counts) == pytest.approx(1.0)


def test_adventureness_for_two_even_genres_is_narrow():
    assert taste_scoring.adventureness({"jazz": 3.0, "rock": 3.0}) == pytest.approx(math.log(2) / math.log(8))


def test_adventureness_grows_with_breadth():
    narrow = taste_scoring.adventureness({"jazz": 9.0, "rock": 1.0})
    wide = taste_scoring.adventureness({"jazz": 3.0, "rock": 3.0, "soul": 2.0, "pop": 2.0})
    assert 0.0 < narrow < wide <= 1.0


def test_polarity_measures_distance_from_platform_mean():
    assert taste_scoring.polarity([6.5, 6.5, 6.5]) == 0.0
    assert taste_scoring.polarity([10.0, 3.0]) == pytest.approx(1.75)
    assert taste_scoring.polarity([0.0, 0.0, 0.0]) == pytest.approx(3.0)
    assert taste_scoring.polarity([]) == 0.0


@pytest.mark.parametrize(
    ("average", "expected"),
    [
        (4.99, RatingSkew.HARSH),
        (5.0, RatingSkew.BALANCED),
        (7.5, RatingSkew.BALANCED),
        (7.51, RatingSkew.LENIENT),
    ],
)
def test_rating_skew_thresholds_are_exclusive(average, expected):
    assert taste_scoring.rating_skew(average) is expected


@pytest.mark.parametrize(
    ("words", "expected"),
    [
        (0, ReviewDepth.TERSE),
        (14.9, ReviewDepth.TERSE),
        (15, ReviewDepth.MODERATE),
        (60, ReviewDepth.MODERATE),
        (60.5, ReviewDepth.ELABORATE),
    ],
)
def test_review_depth_thresholds(words, expected):
    assert taste_scoring.review_depth(words) is expected


def test_population_stddev():
    assert taste_scoring.population_stddev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
    assert taste_scoring.population_stddev([]) == 0.0


def test_cosine_similarity_bounds_and_symmetry():
    left = {"jazz": 0.7, "rock": 0.2, "soul": 0.1}
    right = {"rock": 0.5, "pop": 0.5}
    assert taste_scoring.cosine_similarity(left, left) == pytest.approx(1.0)
    assert taste_scoring.cosine_similarity({"jazz": 1.0}, {"rock": 1.0}) == 0.0
    assert taste_scoring.cosine_similarity({}, right) == 0.0
    assert taste_scoring.cosine_similarity(left, right) == taste_scoring.cosine_similarity(right, left)
    assert 0.0 < taste_scoring.cosine_similarity(left, right) < 1.0
