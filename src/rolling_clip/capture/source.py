"""
Frame Sources
=============

Protocol for whatever supplies "the current rendered image", plus a
deterministic synthetic implementation.

Design Rules:
    - A source returns an (H, W, 3|4) uint8 array on every read()
    - The ring buffer never holds on to the returned array
    - The synthetic source is deterministic (driven by its own tick count)
"""

import logging
from typing import Protocol

import numpy as np


logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """
    Protocol for frame producers.

    Implemented by the rendering hook of the host application, and by
    SyntheticFrameSource for tests, the demo script and the service.
    """

    def read(self) -> np.ndarray:
        """
        Return the current rendered image.

        Returns:
            (H, W, 3) RGB or (H, W, 4) RGBA uint8 array
        """
        ...


class SyntheticFrameSource:
    """
    Deterministic moving-gradient source.

    Each read() renders a horizontal hue sweep plus a square that moves
    one step per read, so consecutive captures are distinguishable.

    Attributes:
        width: Rendered width in pixels
        height: Rendered height in pixels
        reads: Number of frames produced so far
    """

    def __init__(self, width: int = 320, height: int = 180, step: int = 4) -> None:
        self.width = width
        self.height = height
        self.step = step
        self.reads = 0

        xs = np.linspace(0, 255, num=max(width, 1), dtype=np.float32)
        ys = np.linspace(0, 255, num=max(height, 1), dtype=np.float32)
        self._red = np.broadcast_to(xs[None, :], (height, width))
        self._green = np.broadcast_to(ys[:, None], (height, width))

        logger.info(f"SyntheticFrameSource initialized: {width}x{height}")

    def read(self) -> np.ndarray:
        """Render the next frame."""
        frame = np.empty((self.height, self.width, 3), dtype=np.uint8)
        frame[:, :, 0] = self._red.astype(np.uint8)
        frame[:, :, 1] = self._green.astype(np.uint8)
        frame[:, :, 2] = (self.reads * 16) % 256

        size = max(1, min(self.width, self.height) // 4)
        if self.width > 0 and self.height > 0:
            x = (self.reads * self.step) % max(1, self.width - size + 1)
            y = (self.height - size) // 2
            frame[y:y + size, x:x + size] = 255

        self.reads += 1
        return frame


class SolidFrameSource:
    """Source that always returns a single flat color."""

    def __init__(self, width: int, height: int, color=(255, 0, 0)) -> None:
        self.width = width
        self.height = height
        self.color = tuple(color)

    def read(self) -> np.ndarray:
        frame = np.empty((self.height, self.width, 3), dtype=np.uint8)
        frame[:, :] = self.color
        return frame
