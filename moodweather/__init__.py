"""
moodweather - Mood and Weather Driven Playlist Discovery

Turns a mood analysis and the current weather into target audio
characteristics, searches the Spotify catalog with several tiered
strategies, and assembles a diversified, de-duplicated playlist.
"""

__version__ = "0.1.0"
__author__ = "moodweather team"
