"""
Audio-Feature Validator

Checks candidate tracks against the target features using genre-aware
tolerance rules. Electronic briefs are validated strictly, acoustic and
rock briefs with a few hard rules, everything else with a lenient
score-based profile.
"""

from typing import Dict, List, Optional, Sequence

import structlog

from ..models.config_models import ValidationConfig
from ..models.pipeline_models import ValidationReport, ValidationResult, ValidationStats
from ..models.track_models import CandidateTrack, TargetFeatures, Track
from .validation_profiles import (
    PROFILE_KEYWORDS,
    PROFILE_RULES,
    SCORE_GATED_PROFILES,
    Denylist,
    ProfileRule,
    ValidationProfile,
)

logger = structlog.get_logger(__name__)

NO_FEATURES_REASON = "No audio features available"


class AudioFeatureValidator:
    """Validates tracks against target features with per-profile rules."""

    def __init__(
        self,
        config: Optional[ValidationConfig] = None,
        denylist: Optional[Denylist] = None,
        profile_rules: Optional[Dict[ValidationProfile, Sequence[ProfileRule]]] = None
    ):
        """
        Initialize validator.

        Args:
            config: Validation thresholds
            denylist: Replacement denylist (defaults to Denylist.default())
            profile_rules: Replacement rule table keyed by ValidationProfile
        """
        self.config = config or ValidationConfig()
        self.denylist = denylist if denylist is not None else Denylist.default()
        self.profile_rules = profile_rules or PROFILE_RULES
        self.logger = logger.bind(component="AudioFeatureValidator")

    def detect_profile(self, genres: Sequence[str]) -> ValidationProfile:
        """Pick a rule profile by substring matching the joined genre list."""
        genre_string = " ".join(genres).lower()
        for profile, keywords in PROFILE_KEYWORDS:
            if any(keyword in genre_string for keyword in keywords):
                return profile
        return ValidationProfile.GENERAL

    def is_denylisted(self, track: Track, genres: Sequence[str]) -> bool:
        if not self.config.use_denylist:
            return False
        return self._denylist_hit(track, self.detect_profile(genres)) is not None

    def validate(
        self,
        candidate: CandidateTrack,
        target: TargetFeatures,
        genres: Sequence[str],
        profile: Optional[ValidationProfile] = None
    ) -> ValidationResult:
        """
        Validate one candidate.

        Tracks without features are always invalid with score 0. Score is
        reported even for invalid tracks.
        """
        profile = profile or self.detect_profile(genres)

        if candidate.features is None:
            return ValidationResult(is_valid=False, score=0, reason=NO_FEATURES_REASON)

        if self.config.use_denylist:
            hit = self._denylist_hit(candidate.track, profile)
            if hit:
                self.logger.debug("Denylisted track", track=candidate.track.name, match=hit)
                return ValidationResult(
                    is_valid=False,
                    score=0,
                    mismatches=[f"Denylist match: {hit}"],
                    reason=f"Denylisted for {profile.value} profile"
                )

        result = ValidationResult()
        features = candidate.features
        score_gated = profile in SCORE_GATED_PROFILES

        for rule in self.profile_rules[profile]:
            if not rule.when(target) or not rule.violated(features, target):
                continue
            message = rule.message(features, target)
            if score_gated:
                result.deduct(message, rule.penalty)
            else:
                result.fail(message, rule.penalty)

        if score_gated:
            result.is_valid = result.score >= self.config.general_min_score

        return result

    def validate_tracks(
        self,
        candidates: List[CandidateTrack],
        target: TargetFeatures,
        genres: Sequence[str]
    ) -> ValidationReport:
        """Partition candidates into valid and invalid with summary stats."""
        profile = self.detect_profile(genres)
        report = ValidationReport()
        total_score = 0

        for candidate in candidates:
            result = self.validate(candidate, target, genres, profile=profile)
            total_score += result.score
            if result.is_valid:
                report.valid_tracks.append(candidate)
            else:
                report.invalid_tracks.append((candidate, result.summary))

        report.stats = ValidationStats(
            total_tracks=len(candidates),
            valid_count=len(report.valid_tracks),
            average_score=total_score / len(candidates) if candidates else 0.0
        )

        self.logger.info(
            "Validation completed",
            profile=profile.value,
            total=report.stats.total_tracks,
            valid=report.stats.valid_count,
            average_score=round(report.stats.average_score, 1)
        )
        return report

    def _denylist_hit(self, track: Track, profile: ValidationProfile) -> Optional[str]:
        if profile not in self.denylist.profiles:
            return None

        artist = track.primary_artist.lower()
        for name in self.denylist.artists:
            if name in artist:
                return name

        title = track.name.lower()
        for keyword in self.denylist.title_keywords:
            if keyword in title:
                return keyword
        return None
