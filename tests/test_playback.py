"""
Tests for Playback Cursor
=========================
"""

import pytest

from conftest import TaggedFrameSource, tag_of
from rolling_clip.capture import FrameRingBuffer
from rolling_clip.playback import PlaybackCursor


@pytest.fixture
def cursor(filled_buffer):
    """4 fps cursor over tags 2..5."""
    cursor = PlaybackCursor(frame_rate=4)
    cursor.load(filled_buffer)
    return cursor


class TestNavigation:
    """Tests for manual stepping."""

    def test_load_shows_oldest(self, cursor):
        assert cursor.frame_count == 4
        assert cursor.index == 0
        assert tag_of(cursor.current) == 2

    def test_next_wraps(self, cursor):
        for _ in range(4):
            cursor.next_frame()
        assert cursor.index == 0

    def test_previous_wraps(self, cursor):
        cursor.previous_frame()
        assert tag_of(cursor.current) == 5

    def test_load_max_count(self, filled_buffer):
        cursor = PlaybackCursor()
        assert cursor.load(filled_buffer, max_count=2) == 2
        assert tag_of(cursor.current) == 4

    def test_empty_buffer(self):
        cursor = PlaybackCursor()
        cursor.load(FrameRingBuffer(capacity=2))

        assert cursor.index == -1
        assert cursor.current is None
        cursor.next_frame()
        assert cursor.index == -1
        assert cursor.update(1.0) == 0

    def test_snapshot_is_independent(self, cursor, filled_buffer):
        filled_buffer.clear()
        assert tag_of(cursor.current) == 2


class TestUpdate:
    """Tests for the playback clock."""

    def test_first_update_advances(self, cursor):
        assert cursor.update(0.1) == 1
        assert cursor.index == 1

    def test_advances_once_per_period(self, cursor):
        cursor.update(0.1)
        assert cursor.update(0.1) == 0
        assert cursor.update(0.1) == 1
        assert cursor.index == 2

    def test_paused(self, cursor):
        cursor.playing = False
        assert cursor.update(5.0) == 0
        assert cursor.index == 0

    def test_long_delta_advances_many(self, cursor):
        # Four full periods plus the frame due immediately
        assert cursor.update(1.0) == 5
        assert cursor.index == 1


class TestFitSize:
    """Tests for aspect-preserving layout."""

    def test_wide_frame_in_square_box(self):
        buffer = FrameRingBuffer(capacity=1)
        buffer.capture(TaggedFrameSource(200, 100))
        cursor = PlaybackCursor()
        cursor.load(buffer)

        assert cursor.fit_size(100, 100) == (100.0, 50.0)
        assert cursor.fit_size(400, 100) == (200.0, 100.0)

    def test_nothing_loaded(self):
        assert PlaybackCursor().fit_size(100, 100) == (0.0, 0.0)
