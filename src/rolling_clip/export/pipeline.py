"""
Export Pipeline
===============

Snapshot -> palette -> encode -> write, off the capture path.

This module provides the ExportPipeline class, which turns the current
contents of a FrameRingBuffer into a GIF file on a worker thread.

Design Rules:
    - The buffer is read exactly once, synchronously, when export is
      requested; frames captured afterwards are not included
    - The worker only touches its own snapshot, so capture never waits
    - One export per pipeline at a time; extra requests are REJECTED
      with ExportBusyError (never queued)
    - Failures surface through the returned future and never leave a
      partial file behind
"""

import asyncio
import logging
import random
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Union

from rolling_clip.capture.buffer import FrameRingBuffer
from rolling_clip.capture.frame import PixelFrame
from rolling_clip.encoding.gif_encoder import GifEncoder, frame_delay_cs
from rolling_clip.encoding.palette import PaletteBuilder
from rolling_clip.errors import ExportBusyError, ExportError
from rolling_clip.export.paths import generate_clip_path


logger = logging.getLogger(__name__)


class ExportPipeline:
    """
    Background GIF export for a frame ring buffer.

    Attributes:
        output_dir: Base directory for clips
        app_name: Filename prefix
        max_colors: Color table size passed to the encoder

    Example:
        pipeline = ExportPipeline(output_dir="./output", app_name="My Game")

        # From synchronous code (render loop, CLI)
        future = pipeline.export_async(buffer, playback_frame_rate=30)
        path = future.result()

        # From asyncio code
        path = await pipeline.export(buffer, playback_frame_rate=30)
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        app_name: str = "rolling_clip",
        max_colors: int = 256,
        palette_builder: Optional[PaletteBuilder] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        subfolder: Optional[str] = "Clips",
        max_path_attempts: int = 100,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.app_name = app_name
        self.max_colors = max_colors
        self.palette_builder = palette_builder or PaletteBuilder()
        self.subfolder = subfolder
        self.max_path_attempts = max_path_attempts
        self._rng = rng

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="clip-export",
        )

        self._lock = threading.Lock()
        self._busy: bool = False
        self._exports_completed: int = 0
        self._exports_failed: int = 0
        self._last_export_path: Optional[Path] = None
        self._last_export_ms: Optional[float] = None

    @property
    def busy(self) -> bool:
        """Whether an export is currently in flight."""
        return self._busy

    def export_async(
        self,
        buffer: FrameRingBuffer,
        playback_frame_rate: int,
    ) -> "Future[Path]":
        """
        Snapshot the buffer now and encode it on the worker thread.

        Args:
            buffer: Ring buffer to export; only read during this call
            playback_frame_rate: Playback rate of the clip (> 0)

        Returns:
            Future resolving to the written path, or raising
            ExportIoError / InvalidStateError.

        Raises:
            ExportBusyError: If an export is already in flight
            ValueError: If playback_frame_rate is not positive
        """
        frame_delay_cs(playback_frame_rate)

        with self._lock:
            if self._busy:
                raise ExportBusyError("An export is already in progress")
            self._busy = True

        try:
            frames = buffer.extract()
            logger.info(f"Export requested: {len(frames)} frames at {playback_frame_rate} fps")
            return self._executor.submit(self._run, frames, playback_frame_rate)
        except BaseException:
            with self._lock:
                self._busy = False
            raise

    async def export(self, buffer: FrameRingBuffer, playback_frame_rate: int) -> Path:
        """Asyncio wrapper around export_async()."""
        return await asyncio.wrap_future(self.export_async(buffer, playback_frame_rate))

    def export_snapshot(
        self,
        frames: Sequence[PixelFrame],
        playback_frame_rate: int,
    ) -> Path:
        """
        Encode an already-extracted list of frames on the calling thread.

        A zero-frame snapshot produces a minimal valid container.

        Returns:
            Path of the written file.
        """
        path = generate_clip_path(
            self.output_dir,
            self.app_name,
            extension="gif",
            subfolder=self.subfolder,
            max_attempts=self.max_path_attempts,
            rng=self._rng,
        )

        encoder = GifEncoder(
            repeat=0,
            max_colors=self.max_colors,
            palette_builder=self.palette_builder,
        )
        encoder.set_frame_rate(playback_frame_rate)

        with encoder:
            encoder.start(path)
            if frames:
                encoder.build_palette(frames)
                for frame in frames:
                    encoder.add_frame(frame)
            return encoder.finish()

    def _run(self, frames: List[PixelFrame], playback_frame_rate: int) -> Path:
        start = time.perf_counter()
        try:
            path = self.export_snapshot(frames, playback_frame_rate)
        except ExportError as e:
            with self._lock:
                self._exports_failed += 1
            logger.error(f"Export failed: {e}")
            raise
        except Exception as e:
            with self._lock:
                self._exports_failed += 1
            logger.exception(f"Unexpected export error: {e}")
            raise
        finally:
            with self._lock:
                self._busy = False

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        with self._lock:
            self._exports_completed += 1
            self._last_export_path = path
            self._last_export_ms = elapsed_ms
        logger.info(f"Gif export finished in {elapsed_ms:.0f} ms: {path} ({len(frames)} frames)")
        return path

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker if this pipeline created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def metrics(self) -> dict:
        """
        Get export metrics for observability.

        Returns:
            Dict with busy flag, completed/failed counts and last export
        """
        with self._lock:
            return {
                "busy": self._busy,
                "exports_completed": self._exports_completed,
                "exports_failed": self._exports_failed,
                "last_export_path": str(self._last_export_path) if self._last_export_path else None,
                "last_export_ms": round(self._last_export_ms, 1) if self._last_export_ms is not None else None,
            }
