"""
Capture Module
==============

Frame capture and rolling-window storage.

This module provides the capture side of rolling_clip:
    - PixelFrame: Owned RGBA pixel storage for one frame
    - FrameRingBuffer: Fixed-capacity ring with chronological extraction
    - CaptureRecorder: Fixed-cadence capture driven by the render loop
    - FrameSource: Protocol for the host's "current rendered image"

Example:
    from rolling_clip.capture import CaptureRecorder, SyntheticFrameSource

    recorder = CaptureRecorder(SyntheticFrameSource(), frame_rate=30)
    recorder.recording = True

    for _ in range(120):
        recorder.tick(1 / 60)

    frames = recorder.buffer.extract()
"""

from rolling_clip.capture.frame import FilterMode, PixelFrame
from rolling_clip.capture.buffer import FrameRingBuffer, copy_chronological
from rolling_clip.capture.source import FrameSource, SolidFrameSource, SyntheticFrameSource
from rolling_clip.capture.recorder import CaptureRecorder


__all__ = [
    "FilterMode",
    "PixelFrame",
    "FrameRingBuffer",
    "copy_chronological",
    "FrameSource",
    "SolidFrameSource",
    "SyntheticFrameSource",
    "CaptureRecorder",
]
