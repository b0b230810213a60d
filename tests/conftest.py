"""
Test Configuration
==================

Pytest fixtures and helpers for rolling_clip.
"""

import numpy as np
import pytest

from rolling_clip.capture import FrameRingBuffer, PixelFrame


class TaggedFrameSource:
    """
    Source whose every frame is a flat color encoding a sequence tag.

    The first read() returns tag 1, the next tag 2, and so on. The tag
    (mod 256) is stored in the red channel so frames can be identified
    after capture, copying and capacity changes.
    """

    def __init__(self, width: int = 8, height: int = 8) -> None:
        self.width = width
        self.height = height
        self.next_tag = 1

    def read(self) -> np.ndarray:
        frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        frame[:, :, 0] = self.next_tag % 256
        frame[:, :, 1] = 255 - self.next_tag % 256
        self.next_tag += 1
        return frame


class ArraySource:
    """Source that returns a fixed array."""

    def __init__(self, array: np.ndarray) -> None:
        self.array = array

    def read(self) -> np.ndarray:
        return self.array


def tag_of(frame: PixelFrame) -> int:
    """Sequence tag of a frame captured from TaggedFrameSource."""
    return int(frame.pixels[0, 0, 0])


def tags(frames) -> list:
    return [tag_of(frame) for frame in frames]


def solid_frame(width: int, height: int, color) -> PixelFrame:
    """Opaque single-color frame."""
    rgb = np.zeros((height, width, 3), dtype=np.uint8)
    rgb[:, :] = color
    return PixelFrame.from_array(rgb)


@pytest.fixture
def tagged_source():
    """Fresh TaggedFrameSource starting at tag 1."""
    return TaggedFrameSource()


@pytest.fixture
def filled_buffer(tagged_source):
    """Capacity-4 buffer after capturing tags 1..5 (holds 2..5)."""
    buffer = FrameRingBuffer(capacity=4)
    for _ in range(5):
        buffer.capture(tagged_source, downscale_factor=1.0)
    return buffer


@pytest.fixture
def gradient_frame():
    """64x64 frame with 4096 distinct colors."""
    ys, xs = np.mgrid[0:64, 0:64]
    rgb = np.stack(
        [xs * 4, ys * 4, (xs + ys) * 2],
        axis=2,
    ).astype(np.uint8)
    return PixelFrame.from_array(rgb)
