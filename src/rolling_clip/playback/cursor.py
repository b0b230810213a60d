"""
Playback Cursor
===============

Headless preview playback over a snapshot of the ring buffer.

The cursor owns an extracted, ordered copy of the frames and steps
through them on its own clock, independent of the capture cadence.
Rendering the current frame is left to the host UI.
"""

import logging
from typing import List, Optional, Tuple

from rolling_clip.capture.buffer import FrameRingBuffer
from rolling_clip.capture.frame import PixelFrame


logger = logging.getLogger(__name__)


class PlaybackCursor:
    """
    Loops over a frame snapshot at a playback frame rate.

    Attributes:
        frame_rate: Playback frames per second (values < 1 act as 1)
        playing: Whether update() advances frames
        index: Index of the displayed frame, -1 when nothing is loaded
    """

    def __init__(self, frame_rate: int = 30, playing: bool = True) -> None:
        self.frame_rate = frame_rate
        self.playing = playing
        self.index: int = -1

        self._frames: List[PixelFrame] = []
        self._time_remaining: float = 0.0

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def target_frame_duration(self) -> float:
        return 1.0 / max(1, self.frame_rate)

    @property
    def current(self) -> Optional[PixelFrame]:
        """The displayed frame, or None when nothing is loaded."""
        if self.index < 0 or not self._frames:
            return None
        return self._frames[self.index]

    def load(self, buffer: FrameRingBuffer, max_count: Optional[int] = None) -> int:
        """
        Take a fresh snapshot from the buffer and show its first frame.

        Returns:
            Number of frames loaded.
        """
        self._frames = buffer.extract(max_count)
        self._time_remaining = 0.0
        self.index = 0 if self._frames else -1
        logger.debug(f"Playback loaded {len(self._frames)} frames")
        return len(self._frames)

    def next_frame(self) -> None:
        """Show the next frame, wrapping to the first."""
        if self.index < 0 or not self._frames:
            return
        self.index = (self.index + 1) % len(self._frames)

    def previous_frame(self) -> None:
        """Show the previous frame, wrapping to the last."""
        if self.index < 0 or not self._frames:
            return
        self.index = (self.index - 1) % len(self._frames)

    def update(self, delta_seconds: float) -> int:
        """
        Advance the playback clock.

        Remaining time is clamped to one frame before the delta is
        applied, so time spent paused or unloaded is never banked.

        Returns:
            Number of frames advanced.
        """
        if not self._frames or not self.playing:
            return 0

        duration = self.target_frame_duration
        self._time_remaining = min(self._time_remaining, duration)
        self._time_remaining -= delta_seconds

        advanced = 0
        while self._time_remaining <= 0:
            self.next_frame()
            self._time_remaining += duration
            advanced += 1
        return advanced

    def fit_size(self, box_width: float, box_height: float) -> Tuple[float, float]:
        """
        Largest size with the current frame's aspect ratio inside a box.

        Returns:
            (width, height); (0, 0) when no frame is shown.
        """
        frame = self.current
        if frame is None or frame.is_empty or box_width <= 0 or box_height <= 0:
            return 0.0, 0.0

        aspect = frame.width / frame.height
        if aspect > box_width / box_height:
            return float(box_width), box_width / aspect
        return box_height * aspect, float(box_height)
