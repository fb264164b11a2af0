"""
Track Data Models

Immutable catalog records (tracks, albums, audio features) and the
request-side feature targets used by the discovery pipeline.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Artist:
    """Catalog artist reference."""
    name: str
    id: Optional[str] = None


@dataclass(frozen=True)
class AlbumImage:
    """One artwork variant; the catalog lists variants largest first."""
    url: str
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True)
class Album:
    """Album name plus its artwork variants."""
    name: str
    images: Tuple[AlbumImage, ...] = ()

    @property
    def cover_url(self) -> Optional[str]:
        return self.images[0].url if self.images else None


@dataclass(frozen=True)
class Track:
    """
    Catalog track record.

    Identity is `id`. Records are never mutated after parsing; derived data
    (quality scores, validation results, audio features) is carried next to
    the track, not inside it.
    """
    id: str
    name: str
    artists: Tuple[Artist, ...]
    album: Album
    duration_ms: int = 0
    popularity: int = 0
    preview_url: Optional[str] = None
    external_url: Optional[str] = None
    uri: Optional[str] = None

    @property
    def primary_artist(self) -> str:
        """Name of the first credited artist, empty when there is none."""
        return self.artists[0].name if self.artists else ""

    @property
    def text_blob(self) -> str:
        """Track, primary artist and album text used for language checks."""
        return f"{self.name} {self.primary_artist} {self.album.name}"

    @property
    def duration_minutes(self) -> float:
        return self.duration_ms / 60000.0

    @classmethod
    def from_spotify(cls, data: Dict[str, Any]) -> "Track":
        """
        Create a Track from a Spotify track object.

        Args:
            data: Track object as returned by the search or tracks endpoints

        Returns:
            Parsed Track
        """
        album_data = data.get("album") or {}
        images = tuple(
            AlbumImage(
                url=image["url"],
                width=image.get("width"),
                height=image.get("height")
            )
            for image in album_data.get("images") or []
            if image and image.get("url")
        )
        artists = tuple(
            Artist(name=artist.get("name", ""), id=artist.get("id"))
            for artist in data.get("artists") or []
        )

        return cls(
            id=data["id"],
            name=data.get("name") or "",
            artists=artists,
            album=Album(name=album_data.get("name") or "", images=images),
            duration_ms=data.get("duration_ms") or 0,
            popularity=data.get("popularity") or 0,
            preview_url=data.get("preview_url"),
            external_url=(data.get("external_urls") or {}).get("spotify"),
            uri=data.get("uri") or f"spotify:track:{data['id']}"
        )

    def to_response(self) -> Dict[str, Any]:
        """Flat representation returned to HTTP callers."""
        return {
            "id": self.id,
            "name": self.name,
            "artist": self.primary_artist,
            "album": self.album.name,
            "image": self.album.cover_url,
            "spotify_url": self.external_url,
            "preview_url": self.preview_url,
            "duration": self.duration_ms,
            "popularity": self.popularity,
        }


@dataclass(frozen=True)
class AudioFeatures:
    """Measured audio features for one track."""
    energy: float
    valence: float
    tempo: float
    acousticness: float = 0.0
    instrumentalness: float = 0.0
    danceability: Optional[float] = None
    speechiness: Optional[float] = None
    liveness: Optional[float] = None
    loudness: Optional[float] = None
    track_id: Optional[str] = None

    @classmethod
    def from_spotify(cls, data: Dict[str, Any]) -> "AudioFeatures":
        """Create AudioFeatures from a Spotify audio-features object."""
        return cls(
            energy=data.get("energy") or 0.0,
            valence=data.get("valence") or 0.0,
            tempo=data.get("tempo") or 0.0,
            acousticness=data.get("acousticness") or 0.0,
            instrumentalness=data.get("instrumentalness") or 0.0,
            danceability=data.get("danceability"),
            speechiness=data.get("speechiness"),
            liveness=data.get("liveness"),
            loudness=data.get("loudness"),
            track_id=data.get("id")
        )


@dataclass(frozen=True)
class CandidateTrack:
    """A track paired with its (optional) audio features."""
    track: Track
    features: Optional[AudioFeatures] = None

    @property
    def id(self) -> str:
        return self.track.id

    @property
    def has_features(self) -> bool:
        return self.features is not None


@dataclass(frozen=True)
class TargetFeatures:
    """
    Desired centre point of the playlist's audio characteristics.

    Same shape as AudioFeatures but always fully populated.
    """
    energy: float = 0.5
    valence: float = 0.5
    tempo: float = 120.0
    acousticness: float = 0.5
    instrumentalness: float = 0.1
    danceability: Optional[float] = None

    def with_changes(self, **changes: Any) -> "TargetFeatures":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "energy": self.energy,
            "valence": self.valence,
            "tempo": self.tempo,
            "acousticness": self.acousticness,
            "instrumentalness": self.instrumentalness,
        }
        if self.danceability is not None:
            data["danceability"] = self.danceability
        return data


class WeatherCondition(Enum):
    """Coarse weather conditions reported by the weather proxy."""
    CLEAR = "clear"
    CLEAR_NIGHT = "clear-night"
    CLOUDY = "cloudy"
    CLOUDY_NIGHT = "cloudy-night"
    RAINY = "rainy"
    STORMY = "stormy"
    SNOWY = "snowy"
    DRIZZLE = "drizzle"
    FOGGY = "foggy"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "WeatherCondition":
        """Parse a condition string, falling back to UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.debug("Unknown weather condition", condition=value)
            return cls.UNKNOWN


@dataclass(frozen=True)
class WeatherContext:
    """Ambient weather at the listener's location."""
    condition: WeatherCondition = WeatherCondition.UNKNOWN
    temperature: float = 20.0
    description: str = ""
    humidity: float = 0.0
    wind_speed: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeatherContext":
        return cls(
            condition=WeatherCondition.parse(data.get("condition")),
            temperature=float(data.get("temperature", 20.0)),
            description=data.get("description") or "",
            humidity=float(data.get("humidity", 0.0)),
            wind_speed=float(data.get("wind_speed", data.get("windSpeed", 0.0)))
        )


@dataclass
class SearchRequest:
    """Input to the search strategy engine."""
    genres: List[str]
    target_features: TargetFeatures = field(default_factory=TargetFeatures)
    include_excluded_language: bool = False
    weather_context: Optional[WeatherContext] = None
    limit: int = 50
