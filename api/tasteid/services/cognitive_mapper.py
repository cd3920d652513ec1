"""BrainID: projection of the genre vector onto seven cognitive networks.

The weight table is hand-authored and constant. Each genre family spreads one
unit across the networks; unclassified genres use a flat row.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Mapping

from tasteid.services.archetype_classifier import GenreFamily, genre_family


class Network(str, enum.Enum):
    """Cognitive networks in tie-break priority order."""
    DEFAULT_MODE = "default_mode"
    FRONTOPARIETAL = "frontoparietal"
    DORSAL_ATTENTION = "dorsal_attention"
    VENTRAL_ATTENTION = "ventral_attention"
    LIMBIC = "limbic"
    SOMATOMOTOR = "somatomotor"
    VISUAL = "visual"


class MusicMode(str, enum.Enum):
    """Listening mode each network is displayed as."""
    COMFORT = "comfort"
    DISCOVERY = "discovery"
    DEEP_DIVE = "deep_dive"
    REACTIVE = "reactive"
    EMOTIONAL = "emotional"
    SOCIAL = "social"
    AESTHETIC = "aesthetic"


NETWORK_ABBREVIATIONS: dict[Network, str] = {
    Network.DEFAULT_MODE: "DMN",
    Network.FRONTOPARIETAL: "FP",
    Network.DORSAL_ATTENTION: "DA",
    Network.VENTRAL_ATTENTION: "VA",
    Network.LIMBIC: "LIM",
    Network.SOMATOMOTOR: "SMN",
    Network.VISUAL: "VIS",
}

NETWORK_MODES: dict[Network, MusicMode] = {
    Network.DEFAULT_MODE: MusicMode.COMFORT,
    Network.FRONTOPARIETAL: MusicMode.DISCOVERY,
    Network.DORSAL_ATTENTION: MusicMode.DEEP_DIVE,
    Network.VENTRAL_ATTENTION: MusicMode.REACTIVE,
    Network.LIMBIC: MusicMode.EMOTIONAL,
    Network.SOMATOMOTOR: MusicMode.SOCIAL,
    Network.VISUAL: MusicMode.AESTHETIC,
}

MODE_DESCRIPTIONS: dict[MusicMode, str] = {
    MusicMode.COMFORT: "Returns to familiar favorites that shaped their taste",
    MusicMode.DISCOVERY: "Explores new artists and genres",
    MusicMode.DEEP_DIVE: "Goes deep into artist catalogs",
    MusicMode.REACTIVE: "Engages with new releases and trends",
    MusicMode.EMOTIONAL: "Rates from strong emotional reactions",
    MusicMode.SOCIAL: "Listening is shaped by movement and community",
    MusicMode.AESTHETIC: "Drawn to presentation, texture and atmosphere",
}

# Columns follow Network order: DMN, FP, DA, VA, LIM, SMN, VIS.
_FAMILY_ROWS: dict[GenreFamily | None, tuple[float, ...]] = {
    GenreFamily.HIP_HOP: (0.10, 0.10, 0.15, 0.20, 0.10, 0.30, 0.05),
    GenreFamily.JAZZ: (0.10, 0.35, 0.25, 0.05, 0.10, 0.05, 0.10),
    GenreFamily.ROCK: (0.20, 0.05, 0.10, 0.15, 0.20, 0.25, 0.05),
    GenreFamily.ELECTRONIC: (0.05, 0.15, 0.10, 0.15, 0.05, 0.30, 0.20),
    GenreFamily.SOUL: (0.20, 0.05, 0.05, 0.05, 0.45, 0.15, 0.05),
    GenreFamily.METAL: (0.05, 0.10, 0.20, 0.20, 0.25, 0.15, 0.05),
    GenreFamily.INDIE: (0.20, 0.25, 0.10, 0.05, 0.15, 0.05, 0.20),
    GenreFamily.POP: (0.30, 0.05, 0.05, 0.30, 0.10, 0.15, 0.05),
    GenreFamily.COUNTRY: (0.40, 0.05, 0.10, 0.05, 0.25, 0.10, 0.05),
    GenreFamily.CLASSICAL: (0.15, 0.25, 0.30, 0.05, 0.10, 0.00, 0.15),
    None: (1 / 7,) * 7,
}

NETWORK_WEIGHTS: dict[GenreFamily | None, dict[Network, float]] = {
    family: dict(zip(Network, row)) for family, row in _FAMILY_ROWS.items()
}


@dataclass(frozen=True, slots=True)
class CognitiveProfile:
    activations: dict[Network, float]
    dominant: Network
    mode: MusicMode

    def as_payload(self) -> dict[str, float]:
        return {network.value: value for network, value in self.activations.items()}


def project(genre_vector: Mapping[str, float]) -> dict[Network, float]:
    """Project genre weights through the table and rescale to percentages."""
    raw = {network: 0.0 for network in Network}
    for genre, weight in sorted(genre_vector.items()):
        row = NETWORK_WEIGHTS[genre_family(genre)]
        for network, share in row.items():
            raw[network] += weight * share
    total = sum(raw.values())
    if total <= 0:
        return {network: round(100.0 / len(Network), 4) for network in Network}
    return {network: round(value * 100.0 / total, 4) for network, value in raw.items()}


def dominant_network(activations: Mapping[Network, float]) -> Network:
    """Argmax activation; ties go to the earlier network in priority order."""
    best = Network.DEFAULT_MODE
    for network in Network:
        if activations.get(network, 0.0) > activations.get(best, 0.0):
            best = network
    return best


def map_cognitive_state(genre_vector: Mapping[str, float]) -> CognitiveProfile:
    activations = project(genre_vector)
    dominant = dominant_network(activations)
    return CognitiveProfile(activations=activations, dominant=dominant, mode=NETWORK_MODES[dominant])
