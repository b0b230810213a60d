"""
Pixel Frame
===========

Owned RGBA pixel storage for a single captured frame.

Design Rules:
    - Pixels are (height, width, 4) uint8 RGBA, row-major, top row first
    - A frame with zero width or height is empty and holds no buffer
    - Storage is only reallocated when dimensions actually change
    - No resampling or color logic lives here
"""

from enum import Enum
from typing import Optional

import cv2
import numpy as np


CHANNELS = 4


class FilterMode(str, Enum):
    """
    Pixel filtering policy used when downscaling captured frames.

    Attributes:
        NEAREST: Point sampling, keeps hard pixel edges
        LINEAR: Bilinear interpolation
    """

    NEAREST = "nearest"
    LINEAR = "linear"

    @property
    def interpolation(self) -> int:
        """OpenCV interpolation flag for this policy."""
        if self is FilterMode.LINEAR:
            return cv2.INTER_LINEAR
        return cv2.INTER_NEAREST


class PixelFrame:
    """
    A frame's dimensions plus its raw pixel storage.

    Frames live in ring buffer slots and are reused across captures
    whenever the requested size and filter policy still match.

    Attributes:
        width: Frame width in pixels
        height: Frame height in pixels
        filter_mode: Filter policy the pixels were sampled with
        pixels: RGBA array (height, width, 4), or None when empty
    """

    __slots__ = ("width", "height", "filter_mode", "pixels")

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        filter_mode: FilterMode = FilterMode.NEAREST,
        pixels: Optional[np.ndarray] = None,
    ) -> None:
        self.width = width
        self.height = height
        self.filter_mode = filter_mode
        self.pixels = pixels

        if pixels is None and width > 0 and height > 0:
            self.pixels = np.zeros((height, width, CHANNELS), dtype=np.uint8)
        elif pixels is not None and pixels.shape != (height, width, CHANNELS):
            raise ValueError(
                f"pixel buffer shape {pixels.shape} does not match "
                f"{width}x{height}x{CHANNELS}"
            )

    @classmethod
    def allocate(
        cls,
        width: int,
        height: int,
        filter_mode: FilterMode = FilterMode.NEAREST,
    ) -> "PixelFrame":
        """Allocate a zero-filled frame of the given size."""
        return cls(width, height, filter_mode)

    @classmethod
    def from_array(
        cls,
        array: np.ndarray,
        filter_mode: FilterMode = FilterMode.NEAREST,
    ) -> "PixelFrame":
        """
        Wrap a copy of an image array as a frame.

        Args:
            array: (H, W, 3) RGB or (H, W, 4) RGBA uint8 image
            filter_mode: Filter policy to record on the frame

        Returns:
            PixelFrame owning an RGBA copy of the array
        """
        rgba = to_rgba(array)
        height, width = rgba.shape[:2]
        return cls(width, height, filter_mode, rgba.copy())

    @property
    def is_empty(self) -> bool:
        """Whether the frame holds no pixels."""
        return self.width <= 0 or self.height <= 0 or self.pixels is None

    @property
    def nbytes(self) -> int:
        """Size of the owned pixel storage in bytes."""
        return 0 if self.pixels is None else int(self.pixels.nbytes)

    def matches(self, width: int, height: int, filter_mode: FilterMode) -> bool:
        """
        Check whether this slot can be reused for a capture.

        Returns:
            True if storage exists with the same size and filter policy.
        """
        return (
            self.pixels is not None
            and self.width == width
            and self.height == height
            and self.filter_mode == filter_mode
        )

    def resize(self, width: int, height: int, filter_mode: FilterMode) -> bool:
        """
        Refit the frame to a new size and filter policy.

        Returns:
            True if the pixel storage was reallocated.
        """
        self.filter_mode = filter_mode
        if self.pixels is not None and self.width == width and self.height == height:
            return False
        self.width = width
        self.height = height
        if width > 0 and height > 0:
            self.pixels = np.zeros((height, width, CHANNELS), dtype=np.uint8)
        else:
            self.pixels = None
        return True

    def release(self) -> None:
        """Drop pixel storage, leaving an empty frame."""
        self.width = 0
        self.height = 0
        self.pixels = None

    def copy(self) -> "PixelFrame":
        """Deep copy, safe to mutate independently of this frame."""
        pixels = None if self.pixels is None else self.pixels.copy()
        return PixelFrame(self.width, self.height, self.filter_mode, pixels)

    def rgb(self) -> np.ndarray:
        """View of the RGB channels, shape (height, width, 3)."""
        if self.pixels is None:
            return np.zeros((0, 0, 3), dtype=np.uint8)
        return self.pixels[:, :, :3]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelFrame):
            return NotImplemented
        if (self.width, self.height) != (other.width, other.height):
            return False
        if self.pixels is None or other.pixels is None:
            return self.pixels is None and other.pixels is None
        return bool(np.array_equal(self.pixels, other.pixels))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixels."""
        return (
            f"PixelFrame(width={self.width}, height={self.height}, "
            f"filter_mode={self.filter_mode.value})"
        )


def to_rgba(array: np.ndarray) -> np.ndarray:
    """
    Normalize an RGB or RGBA image to RGBA uint8.

    RGB input gains a fully opaque alpha channel. RGBA input is
    returned as-is (not copied).
    """
    if array.dtype != np.uint8:
        raise ValueError(f"expected uint8 pixels, got {array.dtype}")
    if array.ndim != 3 or array.shape[2] not in (3, CHANNELS):
        raise ValueError(f"expected (H, W, 3|4) image, got shape {array.shape}")
    if array.shape[2] == CHANNELS:
        return array
    rgba = np.empty(array.shape[:2] + (CHANNELS,), dtype=np.uint8)
    rgba[:, :, :3] = array
    rgba[:, :, 3] = 255
    return rgba
