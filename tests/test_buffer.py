"""
Tests for Frame Ring Buffer
===========================

Tests for chronological extraction, capacity changes and capture sizing.
"""

import numpy as np
import pytest

from conftest import ArraySource, TaggedFrameSource, tags
from rolling_clip.capture import FilterMode, FrameRingBuffer, copy_chronological


def capture_many(buffer, source, n):
    for _ in range(n):
        buffer.capture(source, downscale_factor=1.0)


class TestCopyChronological:
    """Tests for the two-chunk ring copy."""

    def test_wrapped_ring_partial_destination(self):
        # Slots hold a, b, c, d; write_index 2 means b is newest, c oldest
        source = ["a", "b", "c", "d"]
        destination = [None] * 3

        assert copy_chronological(source, 2, 4, destination) == 3
        assert destination == ["d", "a", "b"]

    def test_wrapped_ring_full_destination(self):
        destination = [None] * 4
        copy_chronological(["a", "b", "c", "d"], 2, 4, destination)

        assert destination == ["c", "d", "a", "b"]

    def test_unwrapped_ring(self):
        destination = [None] * 4
        copy_chronological(["a", "b", "c", "d"], 0, 4, destination)

        assert destination == ["a", "b", "c", "d"]

    def test_partially_filled_ring(self):
        destination = [None] * 5
        copied = copy_chronological(["a", "b", None, None], 2, 2, destination)

        assert copied == 2
        assert destination[:2] == ["a", "b"]

    def test_empty_destination(self):
        assert copy_chronological(["a", "b"], 1, 2, []) == 0

    def test_empty_ring(self):
        destination = [None] * 2
        assert copy_chronological(["a", "b"], 0, 0, destination) == 0
        assert destination == [None, None]


class TestFrameRingBuffer:
    """Tests for FrameRingBuffer ordering."""

    def test_overwrites_oldest(self, filled_buffer):
        assert filled_buffer.count == 4
        assert filled_buffer.write_index == 1
        assert tags(filled_buffer.extract()) == [2, 3, 4, 5]

    def test_shrink_keeps_most_recent(self, filled_buffer, tagged_source):
        filled_buffer.set_capacity(2)

        assert filled_buffer.capacity == 2
        assert filled_buffer.count == 2
        assert filled_buffer.write_index == 0
        assert tags(filled_buffer.extract()) == [4, 5]

        # tagged_source is the fixture instance that filled the buffer
        filled_buffer.capture(tagged_source)
        assert tags(filled_buffer.extract()) == [5, 6]

    @pytest.mark.parametrize("captured", [4, 5, 6, 7, 9, 12])
    def test_full_ring_returns_last_capacity_frames(self, captured):
        buffer = FrameRingBuffer(capacity=4)
        capture_many(buffer, TaggedFrameSource(), captured)

        assert tags(buffer.extract()) == list(range(captured - 3, captured + 1))

    def test_partial_ring_returns_all_in_order(self):
        buffer = FrameRingBuffer(capacity=8)
        capture_many(buffer, TaggedFrameSource(), 3)

        assert buffer.count == 3
        assert not buffer.is_full
        assert tags(buffer.extract()) == [1, 2, 3]

    def test_max_count_returns_newest(self, filled_buffer):
        assert tags(filled_buffer.extract(2)) == [4, 5]
        assert filled_buffer.extract(0) == []

    def test_max_count_larger_than_count(self, filled_buffer):
        frames = filled_buffer.extract(100)
        assert len(frames) == filled_buffer.count

    def test_extract_is_idempotent(self, filled_buffer):
        first = filled_buffer.extract()
        second = filled_buffer.extract()

        assert first == second
        assert filled_buffer.count == 4

    def test_extract_returns_copies(self, filled_buffer):
        frames = filled_buffer.extract()
        frames[0].pixels[:] = 0

        assert tags(filled_buffer.extract()) == [2, 3, 4, 5]

    def test_copy_frames_to_bounded_by_destination(self, filled_buffer):
        destination = [None] * 3
        assert filled_buffer.copy_frames_to(destination) == 3
        assert tags(destination) == [3, 4, 5]

    def test_clear(self, filled_buffer):
        assert filled_buffer.clear() == 4

        assert filled_buffer.is_empty
        assert filled_buffer.write_index == 0
        assert filled_buffer.extract() == []
        assert filled_buffer.memory_bytes() == 0


class TestSetCapacity:
    """Tests for resizing the ring."""

    def test_grow_keeps_everything(self):
        buffer = FrameRingBuffer(capacity=3)
        source = TaggedFrameSource()
        capture_many(buffer, source, 5)

        buffer.set_capacity(6)

        assert buffer.count == 3
        assert buffer.write_index == 3
        assert tags(buffer.extract()) == [3, 4, 5]

        buffer.capture(source)
        assert tags(buffer.extract()) == [3, 4, 5, 6]

    def test_shrink_partial_ring(self):
        buffer = FrameRingBuffer(capacity=5)
        capture_many(buffer, TaggedFrameSource(), 2)

        buffer.set_capacity(3)

        assert buffer.count == 2
        assert buffer.write_index == 2
        assert tags(buffer.extract()) == [1, 2]

    def test_shrink_to_exact_count_wraps_write_index(self):
        buffer = FrameRingBuffer(capacity=4)
        source = TaggedFrameSource()
        capture_many(buffer, source, 6)

        buffer.set_capacity(3)

        assert buffer.count == 3
        assert buffer.write_index == 0
        assert tags(buffer.extract()) == [4, 5, 6]

        buffer.capture(source)
        assert tags(buffer.extract()) == [5, 6, 7]

    def test_same_capacity_is_noop(self, filled_buffer):
        filled_buffer.set_capacity(4)

        assert filled_buffer.write_index == 1
        assert tags(filled_buffer.extract()) == [2, 3, 4, 5]

    def test_capacity_clamped_to_one(self):
        buffer = FrameRingBuffer(capacity=0)
        assert buffer.capacity == 1

        buffer.set_capacity(-3)
        assert buffer.capacity == 1

    def test_discarded_frames_release_storage(self, filled_buffer):
        before = filled_buffer.memory_bytes()
        filled_buffer.set_capacity(1)

        assert filled_buffer.memory_bytes() == before // 4


class TestCapture:
    """Tests for capture sizing and slot reuse."""

    def test_rgb_source_stored_opaque(self):
        buffer = FrameRingBuffer(capacity=2)
        buffer.capture(TaggedFrameSource(4, 2))
        frame = buffer.extract()[0]

        assert (frame.width, frame.height) == (4, 2)
        assert (frame.pixels[:, :, 3] == 255).all()

    def test_downscale(self):
        buffer = FrameRingBuffer(capacity=1)
        buffer.capture(TaggedFrameSource(100, 50), downscale_factor=0.5)
        frame = buffer.extract()[0]

        assert (frame.width, frame.height) == (50, 25)

    def test_downscale_above_one_is_clamped(self):
        buffer = FrameRingBuffer(capacity=1)
        buffer.capture(TaggedFrameSource(10, 6), downscale_factor=2.0)
        frame = buffer.extract()[0]

        assert (frame.width, frame.height) == (10, 6)

    @pytest.mark.parametrize("factor", [0.0, -1.0, 0.001])
    def test_tiny_downscale_yields_one_pixel(self, factor):
        buffer = FrameRingBuffer(capacity=1)
        buffer.capture(TaggedFrameSource(10, 6), downscale_factor=factor)
        frame = buffer.extract()[0]

        assert (frame.width, frame.height) == (1, 1)

    def test_zero_area_source(self):
        buffer = FrameRingBuffer(capacity=1)
        buffer.capture(ArraySource(np.zeros((0, 0, 3), dtype=np.uint8)))
        frame = buffer.extract()[0]

        assert (frame.width, frame.height) == (1, 1)
        assert not frame.pixels.any()

    def test_missing_source_is_a_programming_error(self):
        buffer = FrameRingBuffer(capacity=1)
        with pytest.raises(AssertionError):
            buffer.capture(None)

    def test_filter_modes(self):
        row = np.zeros((1, 2, 3), dtype=np.uint8)
        row[0, 1] = 255
        source = ArraySource(row)

        nearest = FrameRingBuffer(capacity=1)
        nearest.capture(source, downscale_factor=0.5, filter_mode=FilterMode.NEAREST)
        linear = FrameRingBuffer(capacity=1)
        linear.capture(source, downscale_factor=0.5, filter_mode=FilterMode.LINEAR)

        assert nearest.extract()[0].pixels[0, 0, 0] in (0, 255)
        assert 100 < linear.extract()[0].pixels[0, 0, 0] < 160

    def test_slot_reuse(self):
        buffer = FrameRingBuffer(capacity=1)
        source = TaggedFrameSource(8, 8)

        buffer.capture(source)
        buffer.capture(source)
        assert buffer.metrics()["reallocations"] == 1

        storage = buffer._slots[0].pixels
        buffer.capture(source, filter_mode=FilterMode.LINEAR)
        assert buffer.metrics()["reallocations"] == 1
        assert buffer._slots[0].pixels is storage
        assert buffer.extract()[0].filter_mode == FilterMode.LINEAR

        buffer.capture(source, downscale_factor=0.5, filter_mode=FilterMode.LINEAR)
        assert buffer.metrics()["reallocations"] == 2
        assert buffer._slots[0].pixels.shape == (4, 4, 4)

    def test_mixed_sizes_in_ring(self):
        buffer = FrameRingBuffer(capacity=3)
        buffer.capture(TaggedFrameSource(8, 8), downscale_factor=1.0)
        buffer.capture(TaggedFrameSource(8, 8), downscale_factor=0.5)

        sizes = [(f.width, f.height) for f in buffer.extract()]
        assert sizes == [(8, 8), (4, 4)]

    def test_metrics(self, filled_buffer):
        metrics = filled_buffer.metrics()

        assert metrics["count"] == 4
        assert metrics["capacity"] == 4
        assert metrics["total_captured"] == 5
        assert metrics["memory_bytes"] == 4 * 8 * 8 * 4
