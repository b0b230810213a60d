"""
Tests for Capture Recorder
==========================

Tests for fixed-cadence capture with carry-over timing.
"""

import random

import pytest

from conftest import TaggedFrameSource, tags
from rolling_clip.capture import CaptureRecorder, FrameRingBuffer


@pytest.fixture
def recorder():
    """Recording at 4 fps (0.25 s period), full-size capture."""
    return CaptureRecorder(
        TaggedFrameSource(16, 8),
        frame_rate=4,
        max_frames=10,
        downscale=1.0,
        recording=True,
    )


class TestTick:
    """Tests for tick timing."""

    def test_not_recording_never_captures(self, recorder):
        recorder.recording = False

        assert recorder.tick(10.0) is False
        assert recorder.buffer.count == 0

    def test_captures_once_period_elapses(self, recorder):
        assert recorder.tick(0.125) is False
        assert recorder.tick(0.125) is True
        assert recorder.buffer.count == 1
        assert recorder.elapsed == pytest.approx(0.0)

    def test_remainder_carries_over(self, recorder):
        assert recorder.tick(0.375) is True
        assert recorder.elapsed == pytest.approx(0.125)

        assert recorder.tick(0.125) is True
        assert recorder.buffer.count == 2

    def test_at_most_one_capture_per_tick(self, recorder):
        assert recorder.tick(1.0) is True
        assert recorder.buffer.count == 1
        assert recorder.elapsed < recorder.target_frame_duration

    def test_average_rate_tracks_target_under_jitter(self):
        recorder = CaptureRecorder(
            TaggedFrameSource(4, 4),
            frame_rate=30,
            max_frames=1000,
            downscale=1.0,
            recording=True,
        )
        jitter = random.Random(7)
        simulated = 0.0
        while simulated < 10.0:
            delta = (1.0 / 60) * jitter.uniform(0.5, 1.5)
            recorder.tick(delta)
            simulated += delta

        assert abs(recorder.buffer.total_captured - 300) <= 2

    def test_long_recording_keeps_newest(self):
        recorder = CaptureRecorder(
            TaggedFrameSource(4, 4),
            frame_rate=4,
            max_frames=4,
            downscale=1.0,
            recording=True,
        )
        for _ in range(300):
            recorder.tick(0.25)

        assert recorder.buffer.total_captured == 300
        assert tags(recorder.buffer.extract()) == [t % 256 for t in range(297, 301)]

    def test_invalid_frame_rate(self, recorder):
        recorder.frame_rate = 0

        with pytest.raises(ValueError):
            recorder.tick(0.1)

    def test_negative_delta_ignored(self, recorder):
        recorder.tick(-5.0)
        assert recorder.elapsed == 0.0


class TestSettings:
    """Tests for settings applied at tick time."""

    def test_max_frames_applied_on_next_tick(self, recorder):
        for _ in range(4):
            recorder.tick(0.25)

        recorder.max_frames = 2
        assert recorder.buffer.capacity == 10

        recorder.tick(0.25)

        assert recorder.buffer.capacity == 2
        assert tags(recorder.buffer.extract()) == [4, 5]

    def test_downscale(self):
        recorder = CaptureRecorder(
            TaggedFrameSource(64, 32),
            frame_rate=10,
            downscale=0.5,
            recording=True,
        )
        recorder.tick(0.1)
        frame = recorder.buffer.extract()[0]

        assert (frame.width, frame.height) == (32, 16)

    def test_uses_supplied_buffer(self):
        buffer = FrameRingBuffer(capacity=3)
        recorder = CaptureRecorder(TaggedFrameSource(), buffer=buffer, max_frames=3)

        assert recorder.buffer is buffer

    def test_clear_resets_clock_and_frames(self, recorder):
        recorder.tick(0.25)
        recorder.tick(0.125)

        assert recorder.clear() == 1
        assert recorder.elapsed == 0.0
        assert recorder.buffer.is_empty

    def test_metrics(self, recorder):
        recorder.tick(0.25)
        metrics = recorder.metrics()

        assert metrics["recording"] is True
        assert metrics["ticks"] == 1
        assert metrics["captures"] == 1
        assert metrics["filter_mode"] == "nearest"
