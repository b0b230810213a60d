"""
Canvas Layout
=============

Common canvas sizing for clips whose frames differ in size.

Frames are never stretched: the canvas is the maximum width and height
seen across the clip, and each frame is centered on it with the
remaining area filled by the background index.
"""

from typing import Sequence, Tuple

import numpy as np

from rolling_clip.capture.frame import PixelFrame


def canvas_size(frames: Sequence[PixelFrame]) -> Tuple[int, int]:
    """
    Compute the (width, height) canvas that fits every frame.

    Returns (1, 1) for an empty clip so the container stays valid.
    """
    width = max((frame.width for frame in frames), default=0)
    height = max((frame.height for frame in frames), default=0)
    return max(1, width), max(1, height)


def center_offset(frame_size: Tuple[int, int], canvas: Tuple[int, int]) -> Tuple[int, int]:
    """Top-left (x, y) position that centers a frame on the canvas."""
    return (canvas[0] - frame_size[0]) // 2, (canvas[1] - frame_size[1]) // 2


def center_on_canvas(
    indices: np.ndarray,
    canvas: Tuple[int, int],
    fill: int,
) -> np.ndarray:
    """
    Place an index image at the center of a filled canvas.

    Args:
        indices: (h, w) uint8 palette indices
        canvas: (width, height) of the target canvas
        fill: Palette index for the uncovered area

    Returns:
        (height, width) uint8 array; the input itself if it already
        matches the canvas.

    Raises:
        ValueError: If the frame is larger than the canvas
    """
    height, width = indices.shape
    if (width, height) == canvas:
        return indices
    if width > canvas[0] or height > canvas[1]:
        raise ValueError(
            f"frame {width}x{height} does not fit canvas {canvas[0]}x{canvas[1]}"
        )

    x, y = center_offset((width, height), canvas)
    out = np.full((canvas[1], canvas[0]), fill, dtype=np.uint8)
    out[y:y + height, x:x + width] = indices
    return out
