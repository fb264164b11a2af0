"""
Playlist Assembly Orchestrator

Runs one playlist request through the pipeline:

    START -> SEARCH -> VALIDATE -> SELECT -> SUCCESS | INSUFFICIENT

Search and feature failures degrade the pool instead of aborting. The
only user-visible failure is INSUFFICIENT, returned as a result rather
than raised.
"""

import random
import time
from typing import List, Optional, Sequence

import structlog

from ..discovery.feature_validator import AudioFeatureValidator
from ..discovery.search_engine import SearchStrategyEngine
from ..discovery.smart_shuffle import spread_artists
from ..discovery.track_selector import TrackSelector
from ..models.config_models import AssemblyConfig
from ..models.pipeline_models import AssemblyResult, AssemblyStatus
from ..models.track_models import (
    AudioFeatures,
    CandidateTrack,
    SearchRequest,
    TargetFeatures,
    Track,
    WeatherContext,
)
from ..utils.logging_config import log_performance

logger = structlog.get_logger(__name__)


class PlaylistAssembler:
    """
    Top-level discovery pipeline.

    Composes the search engine, validator and selector, adding the
    fallback tiers needed to reach the minimum playlist size.
    """

    def __init__(
        self,
        client,
        engine: SearchStrategyEngine,
        validator: AudioFeatureValidator,
        selector: TrackSelector,
        config: Optional[AssemblyConfig] = None,
        rng: Optional[random.Random] = None
    ):
        self.client = client
        self.engine = engine
        self.validator = validator
        self.selector = selector
        self.config = config or AssemblyConfig()
        self.rng = rng or random.Random()
        self.logger = logger.bind(component="PlaylistAssembler")

    async def assemble(
        self,
        target_features: TargetFeatures,
        genres: Sequence[str],
        weather_context: Optional[WeatherContext] = None,
        include_excluded_language: bool = False,
        target_count: Optional[int] = None,
        previous_tracks: Optional[Sequence[Track]] = None
    ) -> AssemblyResult:
        """
        Assemble a playlist.

        Args:
            target_features: Desired audio characteristics
            genres: Requested genres, most important first
            weather_context: Optional ambient weather
            include_excluded_language: Keep excluded-language tracks
            target_count: Desired playlist length (config default when None)
            previous_tracks: Last playlist served, pushed back on cache hits

        Returns:
            SUCCESS with tracks, or INSUFFICIENT with the partial tracks

        Raises:
            ValueError: If target_count is not positive
        """
        target_count = self.config.target_count if target_count is None else target_count
        if target_count <= 0:
            raise ValueError("target_count must be positive")

        started = time.perf_counter()
        genres = list(genres)
        tier_log: List[str] = []

        pool = await self._search(
            SearchRequest(
                genres=genres,
                target_features=target_features,
                include_excluded_language=include_excluded_language,
                weather_context=weather_context,
                limit=self.config.search_limit
            ),
            previous_tracks
        )

        candidates = await self._attach_features(pool)
        options = self.selector.options_from_config(target_count, include_excluded_language, weather_context)

        with_features = [candidate for candidate in candidates if candidate.has_features]
        report = self.validator.validate_tracks(with_features, target_features, genres)
        validated = [candidate.track for candidate in report.valid_tracks]

        # Fallback tiers never see denylisted tracks, with or without features
        denylisted = {track.id for track in pool if self.validator.is_denylisted(track, genres)}
        fallback_pool = [track for track in pool if track.id not in denylisted]
        fallback_candidates = [candidate for candidate in candidates if candidate.id not in denylisted]
        if denylisted:
            self.logger.info("Denylisted tracks withheld from fallback tiers", count=len(denylisted))

        supplement = self.selector.popular_without_features(
            fallback_candidates,
            self.config.supplement_limit,
            options,
            min_popularity=self.config.supplement_min_popularity
        )
        tier_log.append("validated")
        if supplement:
            tier_log.append("featureless_supplement")

        selected = self.selector.select(validated + supplement, options)
        tier_log.append("selector")

        if len(selected) < target_count:
            added = self.selector.popular_without_features(
                fallback_candidates,
                target_count - len(selected),
                options,
                exclude_ids=[track.id for track in selected]
            )
            selected += self._record_tier(tier_log, "popular_without_features", added)

        if len(selected) < target_count:
            added = self.selector.emergency_low_floor(fallback_pool, selected, target_count - len(selected), options)
            selected += self._record_tier(tier_log, "emergency_low_floor", added)

        if len(selected) < target_count:
            added = self.selector.ultimate_most_popular(fallback_pool, selected, target_count - len(selected), options)
            selected += self._record_tier(tier_log, "ultimate_most_popular", added)

        tracks = spread_artists(selected, self.rng)
        duration = time.perf_counter() - started
        log_performance("playlist_assembly", duration, tracks=len(tracks), pool=len(pool))

        if len(tracks) < self.config.minimum_tracks:
            self.logger.warning(
                "Not enough tracks for a playlist",
                count=len(tracks),
                minimum=self.config.minimum_tracks,
                tiers=tier_log
            )
            return AssemblyResult(
                status=AssemblyStatus.INSUFFICIENT,
                tracks=tracks,
                target_features=target_features,
                message=(
                    f"Only {len(tracks)} matching tracks found (need {self.config.minimum_tracks}). "
                    "Try a different mood or allow tracks in every language."
                ),
                tier_log=tier_log
            )

        self.logger.info(
            "Playlist assembled",
            count=len(tracks),
            valid=report.stats.valid_count,
            supplement=len(supplement),
            tiers=tier_log,
            duration=round(duration, 3)
        )
        return AssemblyResult(
            status=AssemblyStatus.SUCCESS,
            tracks=tracks,
            target_features=target_features,
            tier_log=tier_log
        )

    @staticmethod
    def _record_tier(tier_log: List[str], tier: str, added: List[Track]) -> List[Track]:
        """Log a fallback tier only when it contributed tracks."""
        if added:
            tier_log.append(tier)
        return added

    async def _search(self, request: SearchRequest, previous_tracks) -> List[Track]:
        try:
            return await self.engine.search(request, previous_tracks)
        except Exception as e:
            self.logger.error(
                "Search stage failed, continuing with empty pool",
                error=str(e),
                error_type=type(e).__name__
            )
            return []

    async def _attach_features(self, pool: List[Track]) -> List[CandidateTrack]:
        """Fetch audio features per chunk; a failed chunk leaves its tracks featureless."""
        features: List[Optional[AudioFeatures]] = []
        batch_size = self.config.feature_batch_size

        for start in range(0, len(pool), batch_size):
            chunk = pool[start:start + batch_size]
            try:
                fetched = await self.client.get_batch_audio_features([track.id for track in chunk])
            except Exception as e:
                self.logger.warning(
                    "Audio feature batch failed",
                    chunk_start=start,
                    chunk_size=len(chunk),
                    error=str(e)
                )
                fetched = []
            fetched = list(fetched)[:len(chunk)]
            features.extend(fetched + [None] * (len(chunk) - len(fetched)))

        candidates = [CandidateTrack(track=track, features=feature) for track, feature in zip(pool, features)]
        self.logger.info(
            "Audio features attached",
            pool=len(pool),
            with_features=sum(1 for candidate in candidates if candidate.has_features)
        )
        return candidates
