"""
Playback Module
===============

Headless preview playback of captured frames.
"""

from rolling_clip.playback.cursor import PlaybackCursor


__all__ = [
    "PlaybackCursor",
]
