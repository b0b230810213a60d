"""
Frame Ring Buffer
=================

Fixed-capacity circular store of recently captured frames.

This module provides the FrameRingBuffer class, which sits between the
render loop (producer) and the preview/export consumers.

Design Rules:
    - Fixed number of slots, overwritten oldest-first once full
    - Slots are reused when size and filter policy still match
    - Readout is always chronological (oldest -> newest)
    - Consumers only ever receive copies, never live slots
    - Capacity changes keep the most recent frames, never fail
"""

import logging
from typing import List, MutableSequence, Optional, Sequence

import cv2
import numpy as np

from rolling_clip.capture.frame import FilterMode, PixelFrame, to_rgba
from rolling_clip.capture.source import FrameSource


logger = logging.getLogger(__name__)


def copy_chronological(
    source: Sequence,
    write_index: int,
    valid_count: int,
    destination: MutableSequence,
) -> int:
    """
    Copy the most recent entries of a ring into a destination, oldest first.

    The valid run ends physically one before ``write_index`` and wraps at
    most once, so it is read as two contiguous chunks: the chunk ending at
    the last written slot fills the tail of the destination, and the wrap
    chunk ending at the top of the ring fills the head.

    Args:
        source: Physical ring storage of length L
        write_index: Next slot to be overwritten
        valid_count: Number of valid entries in the ring (<= L)
        destination: Output sequence; its length bounds the copy

    Returns:
        Number of entries written, min(len(destination), valid_count).
    """
    length = len(source)
    n = min(len(destination), valid_count, length)
    if n <= 0:
        return 0

    last = (write_index - 1) % length

    first_size = min(n, last + 1)
    destination[n - first_size:n] = source[last + 1 - first_size:last + 1]

    wrap_size = n - first_size
    if wrap_size > 0:
        destination[0:wrap_size] = source[length - wrap_size:length]

    return n


class FrameRingBuffer:
    """
    Circular frame store with chronological extraction.

    Attributes:
        capacity: Number of slots
        count: Number of valid frames (0 <= count <= capacity)
        write_index: Slot the next capture overwrites

    Example:
        buffer = FrameRingBuffer(capacity=150)

        # Render loop
        buffer.capture(source, downscale_factor=0.5)

        # Preview or export
        frames = buffer.extract()
    """

    def __init__(self, capacity: int = 150) -> None:
        """
        Initialize ring buffer.

        Args:
            capacity: Maximum frames to keep. Values below 1 clamp to 1.
        """
        self._capacity = max(1, int(capacity))
        self._slots: List[Optional[PixelFrame]] = [None] * self._capacity
        self._write_index: int = 0
        self._count: int = 0
        self._total_captured: int = 0
        self._reallocations: int = 0

    @property
    def capacity(self) -> int:
        """Number of slots."""
        return self._capacity

    @property
    def count(self) -> int:
        """Number of valid frames currently held."""
        return self._count

    @property
    def write_index(self) -> int:
        """Slot that the next capture overwrites."""
        return self._write_index

    @property
    def is_empty(self) -> bool:
        return self._count == 0

    @property
    def is_full(self) -> bool:
        return self._count >= self._capacity

    @property
    def total_captured(self) -> int:
        """Total frames ever captured into this buffer."""
        return self._total_captured

    def capture(
        self,
        frame_source: FrameSource,
        downscale_factor: float = 1.0,
        filter_mode: FilterMode = FilterMode.NEAREST,
    ) -> None:
        """
        Pull one frame from the source into the slot at write_index.

        The target size is max(1, round(source * downscale)) per axis with
        the factor clamped to [0, 1]; a zero-area source ends up as a blank
        1x1 frame instead of being rejected.

        Args:
            frame_source: Producer of the current rendered image
            downscale_factor: Scale applied to the source size
            filter_mode: Resampling policy for the downscale
        """
        assert frame_source is not None, "capture requires a frame source"

        filter_mode = FilterMode(filter_mode)
        image = to_rgba(np.asarray(frame_source.read()))
        source_height, source_width = image.shape[:2]

        scale = min(1.0, max(0.0, float(downscale_factor)))
        target_width = max(1, int(round(source_width * scale)))
        target_height = max(1, int(round(source_height * scale)))

        slot = self._slots[self._write_index]
        if slot is None or not slot.matches(target_width, target_height, filter_mode):
            if slot is None:
                slot = PixelFrame.allocate(target_width, target_height, filter_mode)
                self._slots[self._write_index] = slot
                self._reallocations += 1
            elif slot.resize(target_width, target_height, filter_mode):
                self._reallocations += 1

        if source_width == 0 or source_height == 0:
            slot.pixels.fill(0)
        elif (source_width, source_height) == (target_width, target_height):
            np.copyto(slot.pixels, image)
        else:
            slot.pixels[...] = cv2.resize(
                np.ascontiguousarray(image),
                (target_width, target_height),
                interpolation=filter_mode.interpolation,
            )

        self._write_index = (self._write_index + 1) % self._capacity
        self._count = min(self._capacity, self._count + 1)
        self._total_captured += 1

    def set_capacity(self, new_capacity: int) -> None:
        """
        Change the number of slots, keeping the most recent frames.

        Up to min(count, new_capacity) frames are moved, in chronological
        order, into the new slots starting at index 0. Older frames that
        no longer fit release their storage.

        Args:
            new_capacity: New slot count. Values below 1 clamp to 1.
        """
        new_capacity = max(1, int(new_capacity))
        if new_capacity == self._capacity:
            return

        new_slots: List[Optional[PixelFrame]] = [None] * new_capacity
        kept = [None] * min(self._count, new_capacity)
        copied = copy_chronological(self._slots, self._write_index, self._count, kept)
        new_slots[:copied] = kept

        kept_ids = {id(frame) for frame in kept}
        for frame in self._slots:
            if frame is not None and id(frame) not in kept_ids:
                frame.release()

        logger.info(
            f"Ring buffer capacity {self._capacity} -> {new_capacity}, "
            f"kept {copied} of {self._count} frames"
        )

        self._slots = new_slots
        self._capacity = new_capacity
        self._write_index = copied % new_capacity
        self._count = copied

    def copy_frames_to(
        self,
        destination: MutableSequence,
        max_count: Optional[int] = None,
    ) -> int:
        """
        Copy the most recent frames into a caller-owned sequence.

        Frames are written oldest-first as deep copies.

        Args:
            destination: Sequence to fill; its length bounds the copy
            max_count: Optional further limit on frames copied

        Returns:
            Number of frames actually written (never more than count).
        """
        limit = self._count if max_count is None else min(self._count, max(0, max_count))
        view = [None] * min(len(destination), limit)
        copied = copy_chronological(self._slots, self._write_index, self._count, view)
        for i in range(copied):
            destination[i] = view[i].copy()
        return copied

    def extract(self, max_count: Optional[int] = None) -> List[PixelFrame]:
        """
        Snapshot the most recent frames, oldest first.

        Args:
            max_count: Maximum frames to return. None = all valid frames.

        Returns:
            List of min(max_count or count, count) independent frame copies.
        """
        limit = self._count if max_count is None else max_count
        frames: List[Optional[PixelFrame]] = [None] * max(0, min(limit, self._count))
        copied = self.copy_frames_to(frames)
        return frames[:copied]

    def clear(self) -> int:
        """
        Release all frames and reset the cursors.

        Returns:
            Number of frames cleared.
        """
        cleared = self._count
        for frame in self._slots:
            if frame is not None:
                frame.release()
        self._slots = [None] * self._capacity
        self._write_index = 0
        self._count = 0
        return cleared

    def memory_bytes(self) -> int:
        """Total pixel storage currently held by the slots."""
        return sum(frame.nbytes for frame in self._slots if frame is not None)

    def metrics(self) -> dict:
        """
        Get buffer metrics for observability.

        Returns:
            Dict with count, capacity, write_index, total_captured,
            reallocations and memory_bytes
        """
        return {
            "count": self._count,
            "capacity": self._capacity,
            "write_index": self._write_index,
            "total_captured": self._total_captured,
            "reallocations": self._reallocations,
            "memory_bytes": self.memory_bytes(),
        }
