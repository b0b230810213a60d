"""
Capture Recorder
================

Fixed-cadence capture driven by the render loop.

The render loop calls tick() once per rendered frame with the elapsed
wall time. Elapsed time accumulates until it reaches one capture period,
then exactly one frame is captured and the remainder is carried forward
(modulo the period) so the average capture rate tracks the target even
when the render rate jitters.

Design Rules:
    - Single-threaded, never blocks
    - Settings are plain attributes, validated when used
    - At most one capture per tick
"""

import logging
import math
from typing import Optional

from rolling_clip.capture.buffer import FrameRingBuffer
from rolling_clip.capture.frame import FilterMode
from rolling_clip.capture.source import FrameSource


logger = logging.getLogger(__name__)


class CaptureRecorder:
    """
    Render-loop hook that feeds a FrameRingBuffer.

    Attributes:
        source: Frame source read on every capture
        buffer: Ring buffer receiving the frames
        frame_rate: Captures per second (> 0)
        max_frames: Ring capacity; applied on the next tick
        downscale: Capture scale, clamped to (0, 1]
        filter_mode: Resampling policy for the downscale
        recording: Whether ticks capture at all

    Example:
        recorder = CaptureRecorder(source, frame_rate=30, max_frames=150)
        recorder.recording = True

        while running:
            render()
            recorder.tick(delta_seconds)
    """

    def __init__(
        self,
        source: FrameSource,
        buffer: Optional[FrameRingBuffer] = None,
        frame_rate: int = 30,
        max_frames: int = 150,
        downscale: float = 0.5,
        filter_mode: FilterMode = FilterMode.NEAREST,
        recording: bool = False,
    ) -> None:
        self.source = source
        self.buffer = buffer if buffer is not None else FrameRingBuffer(max_frames)
        self.frame_rate = frame_rate
        self.max_frames = max_frames
        self.downscale = downscale
        self.filter_mode = filter_mode
        self.recording = recording

        self._elapsed: float = 0.0
        self._ticks: int = 0
        self._captures: int = 0

    @property
    def target_frame_duration(self) -> float:
        """Seconds between captures."""
        if self.frame_rate <= 0:
            raise ValueError(f"frame_rate must be > 0, got {self.frame_rate}")
        return 1.0 / self.frame_rate

    @property
    def elapsed(self) -> float:
        """Time accumulated towards the next capture."""
        return self._elapsed

    def tick(self, delta_seconds: float) -> bool:
        """
        Advance the capture clock by one rendered frame.

        Args:
            delta_seconds: Unscaled wall time since the previous tick

        Returns:
            True if a frame was captured on this tick.
        """
        self._ticks += 1
        if not self.recording:
            return False

        if self.buffer.capacity != max(1, self.max_frames):
            self.buffer.set_capacity(self.max_frames)

        duration = self.target_frame_duration
        self._elapsed += max(0.0, delta_seconds)
        if self._elapsed < duration:
            return False

        self.buffer.capture(
            self.source,
            downscale_factor=self._clamped_downscale(),
            filter_mode=self.filter_mode,
        )
        self._elapsed = math.fmod(self._elapsed, duration)
        self._captures += 1
        return True

    def clear(self) -> int:
        """
        Drop all captured frames and reset the capture clock.

        Returns:
            Number of frames cleared.
        """
        self._elapsed = 0.0
        cleared = self.buffer.clear()
        logger.info(f"Cleared {cleared} captured frames")
        return cleared

    def _clamped_downscale(self) -> float:
        scale = min(1.0, float(self.downscale))
        if scale <= 0.0:
            logger.warning(f"Downscale {self.downscale} out of range, using minimum size")
        return scale

    def metrics(self) -> dict:
        """Export recorder metrics as dict."""
        return {
            "recording": self.recording,
            "frame_rate": self.frame_rate,
            "max_frames": self.max_frames,
            "downscale": self.downscale,
            "filter_mode": FilterMode(self.filter_mode).value,
            "ticks": self._ticks,
            "captures": self._captures,
        }
