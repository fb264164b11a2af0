"""
Target feature derivation.

Converts the mood translator's output into TargetFeatures and applies
weather and time-of-day adjustments.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import structlog

from ..models.track_models import TargetFeatures, WeatherCondition, WeatherContext

logger = structlog.get_logger(__name__)

ENERGY_LEVELS = {
    "low": {"energy": 0.3, "tempo": 90.0, "acousticness": 0.7},
    "medium": {"energy": 0.6, "tempo": 120.0},
    "high": {"energy": 0.8, "tempo": 140.0, "acousticness": 0.3},
}

VALENCE_LEVELS = {
    "negative": {"valence": 0.3, "instrumentalness": 0.3},
    "neutral": {"valence": 0.5},
    "positive": {"valence": 0.7},
}

WEATHER_TEMPO_SHIFT = {
    WeatherCondition.CLEAR: 10,
    WeatherCondition.CLEAR_NIGHT: -15,
    WeatherCondition.RAINY: -20,
    WeatherCondition.STORMY: 5,
    WeatherCondition.CLOUDY: -10,
    WeatherCondition.CLOUDY_NIGHT: -10,
}

TIME_TEMPO_SHIFT = {"night": -15, "morning": 10, "afternoon": 0, "evening": -5}

WEATHER_ACOUSTIC_SHIFT = {
    WeatherCondition.RAINY: 0.2,
    WeatherCondition.CLOUDY_NIGHT: 0.2,
    WeatherCondition.CLEAR: -0.1,
    WeatherCondition.CLEAR_NIGHT: 0.15,
}

INSTRUMENTAL_CONDITIONS = (WeatherCondition.FOGGY, WeatherCondition.CLOUDY_NIGHT)


@dataclass(frozen=True)
class TimeEffect:
    time_of_day: str
    energy_modifier: float
    valence_modifier: float


def time_of_day_effect(hour: int) -> TimeEffect:
    """Mood modifiers for the hour of day (local time)."""
    if 6 <= hour < 12:
        return TimeEffect("morning", 0.2, 0.1)
    if 12 <= hour < 17:
        return TimeEffect("afternoon", 0.1, 0.2)
    if 17 <= hour < 21:
        return TimeEffect("evening", -0.1, 0.1)
    return TimeEffect("night", -0.3, -0.1)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def calculate_target_features(analysis: Dict[str, Any]) -> TargetFeatures:
    """
    Derive target features from a mood analysis.

    Args:
        analysis: Translator output with `energy_level` (low/medium/high),
            `valence` (negative/neutral/positive) and `mood_score` (1-10)

    Returns:
        Fully populated TargetFeatures
    """
    values: Dict[str, float] = {
        "energy": 0.5,
        "valence": 0.5,
        "tempo": 120.0,
        "acousticness": 0.5,
        "instrumentalness": 0.1,
    }
    values.update(ENERGY_LEVELS.get(str(analysis.get("energy_level", "")).lower(), {}))
    values.update(VALENCE_LEVELS.get(str(analysis.get("valence", "")).lower(), {}))

    mood_score = analysis.get("mood_score") or 5
    if mood_score <= 3:
        values["valence"] = max(0.1, values["valence"] - 0.2)
        values["energy"] = max(0.2, values["energy"] - 0.1)
    elif mood_score >= 8:
        values["valence"] = min(0.9, values["valence"] + 0.1)
        values["energy"] = min(0.9, values["energy"] + 0.1)

    target = TargetFeatures(**{key: round(value, 3) for key, value in values.items()})
    logger.debug("Target features calculated", **target.to_dict())
    return target


def adjust_for_weather(
    target: TargetFeatures,
    weather: Optional[WeatherContext],
    now: Optional[datetime] = None,
    energy_modifier: float = 0.0,
    valence_modifier: float = 0.0
) -> TargetFeatures:
    """
    Shift target features for the weather and time of day.

    Energy and valence take the translator's environmental modifiers;
    tempo, acousticness and instrumentalness follow the condition and the
    hour. Without weather the target is returned unchanged.
    """
    if weather is None:
        return target

    now = now or datetime.now()
    time_effect = time_of_day_effect(now.hour)

    tempo = target.tempo + WEATHER_TEMPO_SHIFT.get(weather.condition, 0)
    tempo += TIME_TEMPO_SHIFT[time_effect.time_of_day]

    acousticness = target.acousticness + WEATHER_ACOUSTIC_SHIFT.get(weather.condition, 0.0)

    instrumentalness = target.instrumentalness
    if time_effect.time_of_day == "night":
        instrumentalness += 0.1
    if weather.condition in INSTRUMENTAL_CONDITIONS:
        instrumentalness += 0.15

    adjusted = target.with_changes(
        energy=round(_clamp(target.energy + energy_modifier, 0.1, 0.9), 3),
        valence=round(_clamp(target.valence + valence_modifier, 0.1, 0.9), 3),
        tempo=_clamp(tempo, 60.0, 180.0),
        acousticness=round(_clamp(acousticness, 0.1, 0.9), 3),
        instrumentalness=round(_clamp(instrumentalness, 0.0, 0.8), 3)
    )

    logger.debug(
        "Target features adjusted for weather",
        condition=weather.condition.value,
        time_of_day=time_effect.time_of_day,
        **adjusted.to_dict()
    )
    return adjusted
