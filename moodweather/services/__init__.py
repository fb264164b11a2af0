"""
Playlist services: target derivation, assembly and publishing.
"""

from .feature_targets import adjust_for_weather, calculate_target_features, time_of_day_effect
from .playlist_assembler import PlaylistAssembler
from .playlist_publisher import PlaylistPublisher, build_description, friendly_error_message

__all__ = [
    # Target features
    "adjust_for_weather",
    "calculate_target_features",
    "time_of_day_effect",

    # Assembly and publishing
    "PlaylistAssembler",
    "PlaylistPublisher",
    "build_description",
    "friendly_error_message",
]
