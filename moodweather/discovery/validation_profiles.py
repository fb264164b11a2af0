"""
Validation profiles: rule tables for the audio-feature validator.

A profile is chosen from the requested genres; each profile is a list of
ProfileRule rows. A row fires when its target precondition holds and the
track's features violate it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Tuple

from ..models.track_models import AudioFeatures, TargetFeatures


class ValidationProfile(Enum):
    ELECTRONIC = "electronic"
    ACOUSTIC = "acoustic"
    ROCK = "rock"
    GENERAL = "general"


# Checked in order; the first profile with a matching keyword wins
PROFILE_KEYWORDS: List[Tuple[ValidationProfile, Tuple[str, ...]]] = [
    (ValidationProfile.ELECTRONIC, ("electro", "house", "electronic", "dance", "edm", "techno")),
    (ValidationProfile.ACOUSTIC, ("acoustic", "folk", "singer-songwriter")),
    (ValidationProfile.ROCK, ("rock", "metal", "punk")),
]


@dataclass(frozen=True)
class ProfileRule:
    """One tolerance rule: precondition on the target, violation test, penalty."""
    name: str
    when: Callable[[TargetFeatures], bool]
    violated: Callable[[AudioFeatures, TargetFeatures], bool]
    message: Callable[[AudioFeatures, TargetFeatures], str]
    penalty: int


def _always(target: TargetFeatures) -> bool:
    return True


ELECTRONIC_RULES: Tuple[ProfileRule, ...] = (
    ProfileRule(
        "energy_low",
        lambda t: t.energy > 0.7,
        lambda f, t: f.energy < 0.5,
        lambda f, t: f"Energy too low: {f.energy} (expected > 0.5)",
        50,
    ),
    ProfileRule(
        "energy_high",
        lambda t: t.energy < 0.3,
        lambda f, t: f.energy > 0.6,
        lambda f, t: f"Energy too high: {f.energy} (expected < 0.6)",
        30,
    ),
    ProfileRule(
        "valence_low",
        lambda t: t.valence > 0.7,
        lambda f, t: f.valence < 0.4,
        lambda f, t: f"Valence too low: {f.valence} (expected > 0.4)",
        30,
    ),
    ProfileRule(
        "valence_high",
        lambda t: t.valence < 0.3,
        lambda f, t: f.valence > 0.6,
        lambda f, t: f"Valence too high: {f.valence} (expected < 0.6)",
        25,
    ),
    ProfileRule(
        "danceability_low",
        lambda t: t.danceability is not None and t.danceability > 0.6,
        lambda f, t: f.danceability is not None and f.danceability < 0.4,
        lambda f, t: f"Danceability too low: {f.danceability} (expected > 0.4)",
        40,
    ),
    ProfileRule(
        "tempo_mismatch",
        lambda t: t.tempo > 120,
        lambda f, t: abs(f.tempo - t.tempo) > 40,
        lambda f, t: f"Tempo mismatch: {f.tempo} BPM (expected ~{t.tempo} BPM)",
        25,
    ),
    ProfileRule(
        "too_acoustic",
        _always,
        lambda f, t: f.acousticness > 0.7,
        lambda f, t: f"Too acoustic: {f.acousticness} (expected < 0.7)",
        35,
    ),
)

ACOUSTIC_RULES: Tuple[ProfileRule, ...] = (
    ProfileRule(
        "acousticness_low",
        _always,
        lambda f, t: f.acousticness < 0.3,
        lambda f, t: f"Acousticness too low: {f.acousticness}",
        25,
    ),
    ProfileRule(
        "too_electronic",
        _always,
        lambda f, t: f.energy > 0.8 and f.danceability is not None and f.danceability > 0.8,
        lambda f, t: "Too electronic for acoustic genre",
        25,
    ),
)

ROCK_RULES: Tuple[ProfileRule, ...] = (
    ProfileRule(
        "energy_low",
        lambda t: t.energy > 0.6,
        lambda f, t: f.energy < 0.4,
        lambda f, t: f"Energy too low for rock: {f.energy}",
        25,
    ),
    ProfileRule(
        "too_acoustic",
        _always,
        lambda f, t: f.acousticness > 0.8,
        lambda f, t: "Too acoustic for rock genre",
        25,
    ),
)

GENERAL_RULES: Tuple[ProfileRule, ...] = (
    ProfileRule(
        "energy_mismatch",
        _always,
        lambda f, t: abs(f.energy - t.energy) > 0.5,
        lambda f, t: f"Energy mismatch: {f.energy} vs {t.energy}",
        20,
    ),
    ProfileRule(
        "valence_mismatch",
        _always,
        lambda f, t: abs(f.valence - t.valence) > 0.5,
        lambda f, t: f"Valence mismatch: {f.valence} vs {t.valence}",
        15,
    ),
)

PROFILE_RULES: Dict[ValidationProfile, Tuple[ProfileRule, ...]] = {
    ValidationProfile.ELECTRONIC: ELECTRONIC_RULES,
    ValidationProfile.ACOUSTIC: ACOUSTIC_RULES,
    ValidationProfile.ROCK: ROCK_RULES,
    ValidationProfile.GENERAL: GENERAL_RULES,
}

# Profiles where a mismatch only costs points; validity comes from the score
SCORE_GATED_PROFILES: FrozenSet[ValidationProfile] = frozenset({ValidationProfile.GENERAL})


@dataclass(frozen=True)
class Denylist:
    """
    Known-mismatched artists and title keywords.

    A pragmatic patch list for search results that slip through the
    electronic profile; replace it rather than editing the rules.
    """
    artists: Tuple[str, ...] = ()
    title_keywords: Tuple[str, ...] = ()
    profiles: FrozenSet[ValidationProfile] = field(
        default_factory=lambda: frozenset({ValidationProfile.ELECTRONIC})
    )

    @classmethod
    def default(cls) -> "Denylist":
        return cls(
            artists=(
                "cigarettes after sex", "lana del rey", "billie eilish", "the 1975",
                "arctic monkeys", "radiohead", "clairo", "rex orange county",
                "boy pablo", "cuco", "mac demarco", "tame impala",
            ),
            title_keywords=("cry", "apocalypse", "sad", "lonely", "empty", "nothing"),
        )
