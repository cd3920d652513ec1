"""Rule-based archetype classification against constant signature vectors.

Invariants:
- Every Archetype has exactly one entry in ARCHETYPE_SIGNATURES.
- Scores are cosine similarities of non-negative vectors, so they sit in [0, 1].
- Exact ties resolve to the lexicographically smallest archetype id.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Mapping

from tasteid.core.config import settings
from tasteid.services.review_aggregator import FeatureSet
from tasteid.services.taste_scoring import clamp01, decade_focus, mean


class GenreFamily(str, enum.Enum):
    """Broad genre families that genre archetypes and network weights key on."""
    HIP_HOP = "hip_hop"
    JAZZ = "jazz"
    ROCK = "rock"
    ELECTRONIC = "electronic"
    SOUL = "soul"
    METAL = "metal"
    INDIE = "indie"
    POP = "pop"
    COUNTRY = "country"
    CLASSICAL = "classical"


# Genre keys are stored slugified, so the lists use slug spellings.
FAMILY_GENRES: dict[GenreFamily, frozenset[str]] = {
    GenreFamily.HIP_HOP: frozenset(
        {"hip-hop", "rap", "trap", "southern-hip-hop", "east-coast-hip-hop", "west-coast-hip-hop"}
    ),
    GenreFamily.JAZZ: frozenset({"jazz", "jazz-fusion", "bebop", "modal-jazz", "free-jazz", "contemporary-jazz"}),
    GenreFamily.ROCK: frozenset(
        {"rock", "classic-rock", "hard-rock", "alternative-rock", "indie-rock", "punk-rock"}
    ),
    GenreFamily.ELECTRONIC: frozenset(
        {"electronic", "house", "techno", "ambient", "edm", "drum-and-bass", "dubstep"}
    ),
    GenreFamily.SOUL: frozenset({"soul", "r-b", "neo-soul", "motown", "funk", "gospel"}),
    GenreFamily.METAL: frozenset(
        {"metal", "heavy-metal", "death-metal", "black-metal", "thrash-metal", "metalcore"}
    ),
    GenreFamily.INDIE: frozenset({"indie", "indie-pop", "indie-folk", "lo-fi", "bedroom-pop", "art-pop"}),
    GenreFamily.POP: frozenset({"pop", "synth-pop", "dance-pop", "electropop", "k-pop", "j-pop"}),
    GenreFamily.COUNTRY: frozenset(
        {"country", "americana", "bluegrass", "folk", "country-rock", "outlaw-country"}
    ),
    GenreFamily.CLASSICAL: frozenset(
        {"classical", "orchestral", "chamber-music", "opera", "contemporary-classical", "baroque"}
    ),
}

# Substring fallback for tags outside the lists; earlier families win.
FAMILY_KEYWORDS: tuple[tuple[GenreFamily, tuple[str, ...]], ...] = (
    (GenreFamily.METAL, ("metal", "grindcore", "doom")),
    (GenreFamily.HIP_HOP, ("hip-hop", "rap", "drill", "grime")),
    (GenreFamily.JAZZ, ("jazz", "bop", "swing")),
    (GenreFamily.CLASSICAL, ("classical", "orchestr", "symphon", "opera", "baroque")),
    (GenreFamily.ELECTRONIC, ("electro", "house", "techno", "ambient", "trance", "dub", "garage", "idm")),
    (GenreFamily.SOUL, ("soul", "funk", "gospel", "r-b", "motown", "disco")),
    (GenreFamily.COUNTRY, ("country", "folk", "americana", "bluegrass")),
    (GenreFamily.INDIE, ("indie", "lo-fi", "shoegaze", "dream-pop")),
    (GenreFamily.ROCK, ("rock", "punk", "grunge", "emo")),
    (GenreFamily.POP, ("pop",)),
)


class Dimension(str, enum.Enum):
    """Axes shared by the user feature vector and archetype signatures."""
    HIP_HOP = "hip_hop_affinity"
    JAZZ = "jazz_affinity"
    ROCK = "rock_affinity"
    ELECTRONIC = "electronic_affinity"
    SOUL = "soul_affinity"
    METAL = "metal_affinity"
    INDIE = "indie_affinity"
    POP = "pop_affinity"
    COUNTRY = "country_affinity"
    CLASSICAL = "classical_affinity"
    EXPLORATION = "exploration"
    FOCUS = "focus"
    POLARITY = "polarity"
    HARSHNESS = "harshness"
    LENIENCY = "leniency"
    DEPTH = "depth"
    ERA_FOCUS = "era_focus"


FAMILY_DIMENSIONS: dict[GenreFamily, Dimension] = {family: Dimension[family.name] for family in GenreFamily}


class Archetype(str, enum.Enum):
    """Fixed set of taste personality classes."""
    HIP_HOP_HEAD = "hip-hop-head"
    JAZZ_EXPLORER = "jazz-explorer"
    ROCK_PURIST = "rock-purist"
    ELECTRONIC_PIONEER = "electronic-pioneer"
    SOUL_SEARCHER = "soul-searcher"
    METAL_MAVEN = "metal-maven"
    INDIE_DEVOTEE = "indie-devotee"
    POP_CONNOISSEUR = "pop-connoisseur"
    COUNTRY_SOUL = "country-soul"
    CLASSICAL_MIND = "classical-mind"
    GENRE_FLUID = "genre-fluid"
    THE_CRITIC = "the-critic"
    THE_ENTHUSIAST = "the-enthusiast"
    ESSAY_WRITER = "essay-writer"
    DECADE_DIVER = "decade-diver"


@dataclass(frozen=True, slots=True)
class ArchetypeSignature:
    """Display copy plus the signature vector an archetype is matched against."""

    name: str
    description: str
    icon: str
    weights: Mapping[Dimension, float]
    family: GenreFamily | None = None

    @property
    def behavioral(self) -> bool:
        return self.family is None


def _genre_signature(family: GenreFamily) -> dict[Dimension, float]:
    return {FAMILY_DIMENSIONS[family]: 1.0, Dimension.FOCUS: 0.5}


ARCHETYPE_SIGNATURES: dict[Archetype, ArchetypeSignature] = {
    Archetype.HIP_HOP_HEAD: ArchetypeSignature(
        "Hip-Hop Head", "Lives and breathes hip-hop culture", "🎤",
        _genre_signature(GenreFamily.HIP_HOP), GenreFamily.HIP_HOP,
    ),
    Archetype.JAZZ_EXPLORER: ArchetypeSignature(
        "Jazz Explorer", "Drawn to improvisation and complexity", "🎷",
        _genre_signature(GenreFamily.JAZZ), GenreFamily.JAZZ,
    ),
    Archetype.ROCK_PURIST: ArchetypeSignature(
        "Rock Purist", "Guitar-driven music runs through their veins", "🎸",
        _genre_signature(GenreFamily.ROCK), GenreFamily.ROCK,
    ),
    Archetype.ELECTRONIC_PIONEER: ArchetypeSignature(
        "Electronic Pioneer", "Synths, beats, and futuristic sounds", "🎹",
        _genre_signature(GenreFamily.ELECTRONIC), GenreFamily.ELECTRONIC,
    ),
    Archetype.SOUL_SEARCHER: ArchetypeSignature(
        "Soul Searcher", "Connects with music on an emotional level", "💜",
        _genre_signature(GenreFamily.SOUL), GenreFamily.SOUL,
    ),
    Archetype.METAL_MAVEN: ArchetypeSignature(
        "Metal Maven", "Heavy riffs and intense energy", "🤘",
        _genre_signature(GenreFamily.METAL), GenreFamily.METAL,
    ),
    Archetype.INDIE_DEVOTEE: ArchetypeSignature(
        "Indie Devotee", "Champions the underground and obscure", "🎧",
        _genre_signature(GenreFamily.INDIE), GenreFamily.INDIE,
    ),
    Archetype.POP_CONNOISSEUR: ArchetypeSignature(
        "Pop Connoisseur", "Appreciates craft in mainstream music", "⭐",
        _genre_signature(GenreFamily.POP), GenreFamily.POP,
    ),
    Archetype.COUNTRY_SOUL: ArchetypeSignature(
        "Country Soul", "Stories, twang, and heartland vibes", "🤠",
        _genre_signature(GenreFamily.COUNTRY), GenreFamily.COUNTRY,
    ),
    Archetype.CLASSICAL_MIND: ArchetypeSignature(
        "Classical Mind", "Appreciates composition and orchestration", "🎻",
        _genre_signature(GenreFamily.CLASSICAL), GenreFamily.CLASSICAL,
    ),
    Archetype.GENRE_FLUID: ArchetypeSignature(
        "Genre Fluid", "Refuses to be boxed in and listens to everything", "🌈",
        {Dimension.EXPLORATION: 1.0},
    ),
    Archetype.THE_CRITIC: ArchetypeSignature(
        "The Critic", "High standards, few 10s given", "🧐",
        {Dimension.HARSHNESS: 1.0, Dimension.POLARITY: 0.4},
    ),
    Archetype.THE_ENTHUSIAST: ArchetypeSignature(
        "The Enthusiast", "Finds joy in almost everything", "🎉",
        {Dimension.LENIENCY: 1.0, Dimension.POLARITY: 0.2},
    ),
    Archetype.ESSAY_WRITER: ArchetypeSignature(
        "Essay Writer", "Reviews are mini dissertations", "📝",
        {Dimension.DEPTH: 1.0},
    ),
    Archetype.DECADE_DIVER: ArchetypeSignature(
        "Decade Diver", "Obsessed with a specific era of music", "⏰",
        {Dimension.ERA_FOCUS: 1.0, Dimension.FOCUS: 0.3},
    ),
}


@dataclass(frozen=True, slots=True)
class ArchetypeResult:
    primary: Archetype
    secondary: Archetype | None
    confidence: float
    scores: dict[Archetype, float] = field(default_factory=dict)


def genre_family(genre: str) -> GenreFamily | None:
    """Resolve a normalized genre key to its family, or None when unclassified."""
    for family, genres in FAMILY_GENRES.items():
        if genre in genres:
            return family
    for family, keywords in FAMILY_KEYWORDS:
        if any(keyword in genre for keyword in keywords):
            return family
    return None


def family_affinities(genre_vector: Mapping[str, float]) -> dict[GenreFamily, float]:
    """Sum genre-vector weight per family; unclassified genres are dropped."""
    totals = {family: 0.0 for family in GenreFamily}
    for genre, weight in sorted(genre_vector.items()):
        family = genre_family(genre)
        if family is not None:
            totals[family] += weight
    return totals


def _skew_strength(delta: float) -> float:
    return clamp01(delta / (1.5 * settings.platform_rating_stddev))


def build_feature_vector(
    features: FeatureSet,
    genre_vector: Mapping[str, float],
    adventureness_score: float,
    polarity_score: float,
) -> dict[Dimension, float]:
    """Project the aggregated signals onto the classifier dimensions."""
    vector = {dimension: 0.0 for dimension in Dimension}
    for family, affinity in family_affinities(genre_vector).items():
        vector[FAMILY_DIMENSIONS[family]] = affinity

    average = mean(features.ratings)
    vector[Dimension.EXPLORATION] = clamp01(adventureness_score)
    # Without any genre tags there is nothing to be focused on.
    vector[Dimension.FOCUS] = clamp01(1.0 - adventureness_score) if genre_vector else 0.0
    vector[Dimension.POLARITY] = clamp01(polarity_score / settings.polarity_cap)
    vector[Dimension.HARSHNESS] = _skew_strength(settings.platform_mean_rating - average)
    vector[Dimension.LENIENCY] = _skew_strength(average - settings.platform_mean_rating)
    vector[Dimension.DEPTH] = clamp01(mean(features.word_counts) / (2 * settings.elaborate_review_words))
    floor = settings.era_focus_floor
    era_share = decade_focus(features.decade_counts)
    vector[Dimension.ERA_FOCUS] = clamp01((era_share - floor) / (1.0 - floor)) if floor < 1 else 0.0
    return vector


def signature_similarity(vector: Mapping[Dimension, float], signature: ArchetypeSignature) -> float:
    dot = sum(vector.get(dimension, 0.0) * weight for dimension, weight in signature.weights.items())
    user_norm = math.sqrt(sum(value * value for value in vector.values()))
    signature_norm = math.sqrt(sum(weight * weight for weight in signature.weights.values()))
    if user_norm == 0 or signature_norm == 0:
        return 0.0
    return clamp01(dot / (user_norm * signature_norm))


def classify(vector: Mapping[Dimension, float]) -> ArchetypeResult:
    """Pick the closest archetype, an optional runner-up, and a confidence.

    Confidence is the best score scaled by its relative lead over the
    runner-up: best * (0.5 + 0.5 * (best - second) / best).
    """
    scores = {
        archetype: signature_similarity(vector, signature)
        for archetype, signature in ARCHETYPE_SIGNATURES.items()
    }
    ranked = sorted(scores.items(), key=lambda item: (-round(item[1], 12), item[0].value))
    best_archetype, best = ranked[0]
    if best <= 0:
        return ArchetypeResult(primary=Archetype.GENRE_FLUID, secondary=None, confidence=0.0, scores=scores)

    second_archetype, second = ranked[1]
    separation = clamp01((best - second) / best)
    confidence = clamp01(best * (0.5 + 0.5 * separation))

    secondary: Archetype | None = None
    if second > 0 and (best - second) <= settings.archetype_secondary_margin * best:
        secondary = second_archetype
    return ArchetypeResult(
        primary=best_archetype,
        secondary=secondary,
        confidence=round(confidence, 6),
        scores=scores,
    )


def archetype_info(archetype_id: str) -> dict[str, object]:
    """Display info for an archetype id, with a readable fallback for unknown ids."""
    try:
        archetype = Archetype(archetype_id)
    except ValueError:
        return {
            "id": archetype_id,
            "name": " ".join(part.capitalize() for part in archetype_id.split("-") if part),
            "description": "Unique taste profile",
            "icon": "🎵",
            "behavioral": False,
            "family": None,
        }
    signature = ARCHETYPE_SIGNATURES[archetype]
    return {
        "id": archetype.value,
        "name": signature.name,
        "description": signature.description,
        "icon": signature.icon,
        "behavioral": signature.behavioral,
        "family": signature.family.value if signature.family else None,
    }
