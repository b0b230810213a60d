"""
GIF Encoder
===========

Streaming GIF89a writer with a single global palette.

Lifecycle:
    IDLE -> STARTED -> PALETTE_READY -> ENCODING -> FINISHED

    start()          opens <path>.part for writing
    build_palette()  sizes the canvas, quantizes, writes the header
    add_frame()      quantizes, centers, LZW-compresses one frame
    finish()         writes the trailer and renames <path>.part to <path>

Any I/O failure moves the encoder to FAILED, removes the partial file and
raises ExportIoError. Calls out of sequence raise InvalidStateError.

Example:
    encoder = GifEncoder(repeat=0)
    encoder.set_frame_rate(30)
    encoder.start("clip.gif")
    encoder.build_palette(frames)
    for frame in frames:
        encoder.add_frame(frame)
    encoder.finish()
"""

import logging
import os
import struct
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional, Sequence, Tuple, Union

from rolling_clip.capture.frame import PixelFrame
from rolling_clip.encoding.canvas import canvas_size, center_on_canvas
from rolling_clip.encoding.lzw import lzw_encode, pack_sub_blocks
from rolling_clip.encoding.palette import Palette, PaletteBuilder
from rolling_clip.errors import ExportIoError, InvalidStateError


logger = logging.getLogger(__name__)


HEADER = b"GIF89a"
TRAILER = b"\x3b"
PART_SUFFIX = ".part"


class EncoderState(str, Enum):
    """Encoder lifecycle states."""

    IDLE = "IDLE"
    STARTED = "STARTED"
    PALETTE_READY = "PALETTE_READY"
    ENCODING = "ENCODING"
    FINISHED = "FINISHED"
    FAILED = "FAILED"


def frame_delay_cs(fps: int) -> int:
    """Per-frame delay in centiseconds for a playback rate, at least 1."""
    if fps <= 0:
        raise ValueError(f"fps must be > 0, got {fps}")
    return max(1, int(round(100 / fps)))


class GifEncoder:
    """
    Animated GIF encoder.

    Attributes:
        repeat: Loop count for the NETSCAPE2.0 extension (0 = forever,
            None = no loop extension)
        max_colors: Color table size including the background entry
        delay_cs: Per-frame delay in centiseconds
        state: Current lifecycle state
        palette: Global palette, available after build_palette()
        canvas: (width, height) shared by all frames
    """

    def __init__(
        self,
        repeat: Optional[int] = 0,
        max_colors: int = 256,
        palette_builder: Optional[PaletteBuilder] = None,
    ) -> None:
        self.repeat = repeat
        self.max_colors = max_colors
        self.palette_builder = palette_builder or PaletteBuilder()
        self.delay_cs: int = frame_delay_cs(30)

        self.state = EncoderState.IDLE
        self.palette: Optional[Palette] = None
        self.canvas: Tuple[int, int] = (1, 1)
        self.frames_written: int = 0

        self._path: Optional[Path] = None
        self._part_path: Optional[Path] = None
        self._file: Optional[BinaryIO] = None

    @property
    def path(self) -> Optional[Path]:
        """Final output path, set by start()."""
        return self._path

    def set_frame_rate(self, fps: int) -> None:
        """
        Set playback rate; stored as round(100 / fps) centiseconds.

        Raises:
            ValueError: If fps is not positive
        """
        self.delay_cs = frame_delay_cs(fps)

    def start(self, path: Union[str, Path]) -> None:
        """
        Open output storage.

        Raises:
            InvalidStateError: If the encoder was already started
            ExportIoError: If the destination cannot be created
        """
        self._require(EncoderState.IDLE, "start")

        self._path = Path(path)
        self._part_path = self._path.with_name(self._path.name + PART_SUFFIX)
        try:
            self._file = open(self._part_path, "wb")
        except OSError as e:
            self.state = EncoderState.FAILED
            raise ExportIoError(f"Cannot create {self._part_path}: {e}") from e

        self.state = EncoderState.STARTED
        logger.debug(f"GIF encoder started: {self._path}")

    def build_palette(
        self,
        frames: Sequence[PixelFrame],
        frame_count: Optional[int] = None,
    ) -> Palette:
        """
        Build the global palette and write the file header.

        The canvas is sized to the largest width and height across
        the frames; smaller frames are centered when added.

        Args:
            frames: All frames of the clip, in order
            frame_count: Use only the first frame_count frames

        Returns:
            The palette every subsequent frame is mapped onto.
        """
        self._require(EncoderState.STARTED, "build_palette")

        if frame_count is not None:
            frames = frames[:max(0, frame_count)]

        self.canvas = canvas_size(frames)
        self.palette = self.palette_builder.build(frames, max_colors=self.max_colors)

        self._write(self._screen_header(self.canvas, self.palette))
        self.state = EncoderState.PALETTE_READY
        return self.palette

    def add_frame(self, frame: PixelFrame) -> None:
        """
        Quantize, compress and append one frame.

        Raises:
            InvalidStateError: Before build_palette() or after finish()
            ValueError: If the frame is larger than the canvas
            ExportIoError: If writing fails
        """
        if self.state not in (EncoderState.PALETTE_READY, EncoderState.ENCODING):
            raise InvalidStateError(
                f"add_frame requires a built palette (state={self.state.value})"
            )

        # Empty frames map to a (0, 0) index image and become pure background
        indices = center_on_canvas(
            self.palette.index_of(frame.rgb()),
            self.canvas,
            self.palette.background_index,
        )

        min_code_size = max(2, self.palette.table_bits)
        compressed = lzw_encode(indices.tobytes(), min_code_size)

        width, height = self.canvas
        record = bytearray()
        # Graphic control extension: no disposal, no transparency
        record += b"\x21\xf9\x04\x00" + struct.pack("<H", self.delay_cs) + b"\x00\x00"
        # Image descriptor: full canvas, global color table
        record += b"\x2c" + struct.pack("<HHHH", 0, 0, width, height) + b"\x00"
        record.append(min_code_size)
        record += pack_sub_blocks(compressed)

        self._write(bytes(record))
        self.state = EncoderState.ENCODING
        self.frames_written += 1

    def finish(self) -> Path:
        """
        Write the trailer, close storage and publish the file.

        Finishing without any palette (zero frames) writes a minimal
        valid container with a 1x1 screen and no images.

        Returns:
            Path of the completed file.

        Raises:
            InvalidStateError: If not started, already finished or failed
            ExportIoError: If writing or renaming fails
        """
        if self.state not in (
            EncoderState.STARTED,
            EncoderState.PALETTE_READY,
            EncoderState.ENCODING,
        ):
            raise InvalidStateError(f"finish not allowed in state {self.state.value}")

        if self.state == EncoderState.STARTED:
            empty = PaletteBuilder().build([])
            self._write(self._screen_header((1, 1), empty, loop=False))

        self._write(TRAILER)

        try:
            self._file.close()
            self._file = None
            os.replace(self._part_path, self._path)
        except OSError as e:
            self._discard()
            raise ExportIoError(f"Cannot finalize {self._path}: {e}") from e

        self.state = EncoderState.FINISHED
        logger.debug(f"GIF encoder finished: {self._path} ({self.frames_written} frames)")
        return self._path

    def abort(self) -> None:
        """Close and delete any partial output. Safe to call repeatedly."""
        if self.state in (EncoderState.FINISHED, EncoderState.IDLE):
            return
        self._discard()

    def __enter__(self) -> "GifEncoder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort()

    def _require(self, state: EncoderState, operation: str) -> None:
        if self.state != state:
            raise InvalidStateError(
                f"{operation} requires state {state.value} (state={self.state.value})"
            )

    def _write(self, data: bytes) -> None:
        try:
            self._file.write(data)
        except OSError as e:
            self._discard()
            raise ExportIoError(f"Write to {self._part_path} failed: {e}") from e

    def _discard(self) -> None:
        """Enter FAILED and remove the partial file."""
        self.state = EncoderState.FAILED
        if self._file is not None:
            try:
                self._file.close()
            except OSError as e:
                logger.warning(f"Error closing partial file {self._part_path}: {e}")
            self._file = None
        if self._part_path is not None:
            try:
                self._part_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove partial file {self._part_path}: {e}")

    def _screen_header(
        self,
        canvas: Tuple[int, int],
        palette: Palette,
        loop: bool = True,
    ) -> bytes:
        """Header, logical screen descriptor, color table and loop extension."""
        bits = palette.table_bits
        packed = 0x80 | ((bits - 1) << 4) | (bits - 1)

        out = bytearray(HEADER)
        out += struct.pack("<HH", canvas[0], canvas[1])
        out += bytes((packed, palette.background_index, 0))
        out += palette.color_table()

        if loop and self.repeat is not None:
            out += b"\x21\xff\x0bNETSCAPE2.0\x03\x01"
            out += struct.pack("<H", max(0, self.repeat)) + b"\x00"
        return bytes(out)
