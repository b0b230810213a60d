"""
Palette Builder
===============

Global color quantization shared by every frame of a clip.

A single palette is derived from a deterministic sample of the clip's
frames using median cut, then every frame is mapped onto it with a
nearest-color lookup.

Design Rules:
    - Deterministic: same frames + max_colors -> byte-identical palette
    - No randomness, no reliance on unordered iteration
    - At most 255 quantized colors; the next index is reserved as the
      background color used to pad smaller frames
    - Clips with few distinct colors are reproduced exactly
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from rolling_clip.capture.frame import PixelFrame


logger = logging.getLogger(__name__)


MAX_TABLE_SIZE = 256

# Perceptual weights for R, G, B in the nearest-color distance
CHANNEL_WEIGHTS = np.array([2, 4, 3], dtype=np.int64)

# Upper bound on (unique colors x palette size) distance cells per chunk
_LOOKUP_CHUNK_CELLS = 1 << 22


@dataclass(frozen=True, eq=False)
class Palette:
    """
    Shared color table for an encoded clip.

    Attributes:
        colors: (n, 3) uint8 RGB colors, 1 <= n <= 255
    """

    colors: np.ndarray

    def __post_init__(self) -> None:
        if self.colors.ndim != 2 or self.colors.shape[1] != 3:
            raise ValueError(f"palette colors must be (n, 3), got {self.colors.shape}")
        if not 1 <= len(self.colors) < MAX_TABLE_SIZE:
            raise ValueError(
                f"palette must hold 1..{MAX_TABLE_SIZE - 1} colors, got {len(self.colors)}"
            )

    @property
    def size(self) -> int:
        """Number of quantized colors (excluding the background index)."""
        return len(self.colors)

    @property
    def background_index(self) -> int:
        """Reserved index used for canvas padding."""
        return len(self.colors)

    @property
    def table_bits(self) -> int:
        """Bits per index in the color table (table holds 2**bits entries)."""
        return max(1, math.ceil(math.log2(self.size + 1)))

    def color_table(self) -> bytes:
        """
        Color table bytes, padded with black to a power of two entries.

        The background index falls in the padding, so it is black.
        """
        table = np.zeros((1 << self.table_bits, 3), dtype=np.uint8)
        table[:self.size] = self.colors
        return table.tobytes()

    def index_of(self, rgb: np.ndarray) -> np.ndarray:
        """
        Map RGB pixels to their nearest palette indices.

        Distance is weighted squared Euclidean; ties go to the lowest index.

        Args:
            rgb: Array of shape (..., 3), uint8

        Returns:
            uint8 array of shape rgb.shape[:-1]
        """
        flat = np.ascontiguousarray(rgb, dtype=np.uint8).reshape(-1, 3)
        if flat.shape[0] == 0:
            return np.zeros(rgb.shape[:-1], dtype=np.uint8)

        keys = _pack(flat)
        unique_keys, inverse = np.unique(keys, return_inverse=True)
        unique_colors = _unpack(unique_keys).astype(np.int64)
        palette = self.colors.astype(np.int64)

        nearest = np.empty(len(unique_keys), dtype=np.uint8)
        chunk = max(1, _LOOKUP_CHUNK_CELLS // len(palette))
        for start in range(0, len(unique_colors), chunk):
            block = unique_colors[start:start + chunk]
            diff = block[:, None, :] - palette[None, :, :]
            distance = (diff * diff * CHANNEL_WEIGHTS).sum(axis=2)
            nearest[start:start + chunk] = np.argmin(distance, axis=1)

        return nearest[inverse.reshape(-1)].reshape(rgb.shape[:-1])


class PaletteBuilder:
    """
    Median-cut palette construction over a sample of frames.

    Attributes:
        sample_frames: Maximum number of frames sampled (evenly spaced)
        max_samples_per_frame: Maximum pixels sampled per frame (strided)

    Example:
        builder = PaletteBuilder(sample_frames=20)
        palette = builder.build(frames, max_colors=256)
        indices = palette.index_of(frames[0].rgb())
    """

    def __init__(
        self,
        sample_frames: int = 20,
        max_samples_per_frame: int = 16384,
    ) -> None:
        self.sample_frames = max(1, sample_frames)
        self.max_samples_per_frame = max(1, max_samples_per_frame)

    def build(
        self,
        frames: Sequence[PixelFrame],
        max_colors: int = 256,
        frame_count: Optional[int] = None,
    ) -> Palette:
        """
        Build a shared palette for the given frames.

        Args:
            frames: Ordered frames of the clip
            max_colors: Color table size including the reserved
                background entry, clamped to [2, 256]
            frame_count: Use only the first frame_count frames

        Returns:
            Palette with at most max_colors - 1 colors
        """
        max_colors = min(MAX_TABLE_SIZE, max(2, int(max_colors)))
        color_budget = max_colors - 1

        if frame_count is not None:
            frames = frames[:max(0, frame_count)]

        samples = self._sample_pixels(frames)
        if samples.shape[0] == 0:
            logger.debug("No pixels to sample, using single-color palette")
            return Palette(np.zeros((1, 3), dtype=np.uint8))

        unique_keys, counts = np.unique(_pack(samples), return_counts=True)
        if len(unique_keys) <= color_budget:
            colors = _unpack(unique_keys)
        else:
            colors = median_cut(_unpack(unique_keys), counts, color_budget)

        logger.debug(
            f"Palette built: {len(colors)} colors from {samples.shape[0]} samples "
            f"({len(unique_keys)} distinct)"
        )
        return Palette(colors)

    def _sample_pixels(self, frames: Sequence[PixelFrame]) -> np.ndarray:
        """Deterministically sample RGB pixels from a subset of frames."""
        usable = [frame for frame in frames if not frame.is_empty]
        if not usable:
            return np.zeros((0, 3), dtype=np.uint8)

        if len(usable) > self.sample_frames:
            picks = np.linspace(0, len(usable) - 1, num=self.sample_frames)
            indices = sorted(set(int(i) for i in np.round(picks)))
            usable = [usable[i] for i in indices]

        chunks = []
        for frame in usable:
            pixels = frame.rgb().reshape(-1, 3)
            stride = max(1, math.ceil(pixels.shape[0] / self.max_samples_per_frame))
            chunks.append(pixels[::stride])
        return np.concatenate(chunks, axis=0)


def median_cut(colors: np.ndarray, counts: np.ndarray, max_colors: int) -> np.ndarray:
    """
    Reduce weighted colors to at most max_colors representatives.

    Repeatedly splits the box with the largest (channel range x population)
    at the weighted median of its widest channel. Boxes are kept in a list
    and ties resolve to the earliest box, so the result is deterministic.

    Args:
        colors: (n, 3) uint8 distinct colors, sorted
        counts: (n,) occurrence count per color
        max_colors: Target number of colors

    Returns:
        (m, 3) uint8 array of distinct representative colors, m <= max_colors
    """
    values = colors.astype(np.int64)
    weights = counts.astype(np.int64)
    boxes: List[np.ndarray] = [np.arange(len(values))]
    stats: List[Tuple[int, int]] = [_box_stats(values, weights, boxes[0])]

    while len(boxes) < max_colors:
        best = -1
        best_score = 0
        for i, (score, _) in enumerate(stats):
            if score > best_score:
                best, best_score = i, score
        if best < 0:
            break

        members = boxes[best]
        channel = stats[best][1]
        order = np.argsort(values[members, channel], kind="stable")
        members = members[order]

        cumulative = np.cumsum(weights[members])
        # Low half ends with the member that reaches half the weight
        split = int(np.searchsorted(cumulative, cumulative[-1] / 2.0)) + 1
        split = min(max(split, 1), len(members) - 1)

        low, high = members[:split], members[split:]
        boxes[best:best + 1] = [low, high]
        stats[best:best + 1] = [
            _box_stats(values, weights, low),
            _box_stats(values, weights, high),
        ]

    representatives = []
    for members in boxes:
        w = weights[members]
        mean = (values[members] * w[:, None]).sum(axis=0) / w.sum()
        representatives.append(np.clip(np.round(mean), 0, 255))

    result = np.array(representatives, dtype=np.uint8)
    return _unpack(np.unique(_pack(result)))


def _box_stats(values: np.ndarray, weights: np.ndarray, members: np.ndarray) -> Tuple[int, int]:
    """Split score and widest channel of a box; unsplittable boxes score 0."""
    if len(members) < 2:
        return 0, 0
    box = values[members]
    ranges = box.max(axis=0) - box.min(axis=0)
    channel = int(np.argmax(ranges))
    return int(ranges[channel]) * int(weights[members].sum()), channel


def _pack(rgb: np.ndarray) -> np.ndarray:
    rgb = rgb.astype(np.int64)
    return (rgb[:, 0] << 16) | (rgb[:, 1] << 8) | rgb[:, 2]


def _unpack(keys: np.ndarray) -> np.ndarray:
    keys = np.asarray(keys, dtype=np.int64)
    return np.stack(
        [(keys >> 16) & 0xFF, (keys >> 8) & 0xFF, keys & 0xFF],
        axis=1,
    ).astype(np.uint8)
