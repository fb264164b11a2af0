"""
Pipeline Result Models

Results passed between the validator, selector and playlist assembler.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .track_models import CandidateTrack, TargetFeatures, Track, WeatherContext


@dataclass
class ValidationResult:
    """Outcome of validating one track against the target features."""
    is_valid: bool = True
    score: int = 100
    mismatches: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    def fail(self, message: str, penalty: int = 0) -> None:
        """Record a failing rule, deducting `penalty` points."""
        self.is_valid = False
        self.mismatches.append(message)
        self.score = max(0, self.score - penalty)

    def deduct(self, message: str, penalty: int) -> None:
        """Record a mismatch that costs points without failing outright."""
        self.mismatches.append(message)
        self.score = max(0, self.score - penalty)

    @property
    def summary(self) -> str:
        return self.reason or ", ".join(self.mismatches)


@dataclass
class ValidationStats:
    total_tracks: int = 0
    valid_count: int = 0
    average_score: float = 0.0


@dataclass
class ValidationReport:
    """Aggregated validation of a candidate pool."""
    valid_tracks: List[CandidateTrack] = field(default_factory=list)
    invalid_tracks: List[Tuple[CandidateTrack, str]] = field(default_factory=list)
    stats: ValidationStats = field(default_factory=ValidationStats)


@dataclass
class CacheEntry:
    """Cached search pool for one fingerprint."""
    tracks: Tuple[Track, ...]
    timestamp: float
    use_count: int = 0


@dataclass
class SelectionOptions:
    """Knobs for the track selector."""
    max_per_artist: int = 3
    min_popularity: int = 15
    target_count: int = 25
    include_excluded_language: bool = False
    weather_preference: Optional[WeatherContext] = None


class AssemblyStatus(Enum):
    SUCCESS = "success"
    INSUFFICIENT = "insufficient"


@dataclass
class AssemblyResult:
    """
    Terminal state of one playlist assembly.

    INSUFFICIENT is an expected, recoverable outcome: the caller should
    retry with different mood, weather or language settings.
    """
    status: AssemblyStatus
    tracks: List[Track] = field(default_factory=list)
    target_features: Optional[TargetFeatures] = None
    message: Optional[str] = None
    tier_log: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.tracks)

    @property
    def is_success(self) -> bool:
        return self.status is AssemblyStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "status": self.status.value,
            "count": self.count,
            "tiers": list(self.tier_log),
        }
        if self.target_features is not None:
            data["target_features"] = self.target_features.to_dict()
        data["tracks"] = [track.to_response() for track in self.tracks]
        if not self.is_success:
            data["message"] = self.message
        return data
