"""
Encoding Module
===============

Palette quantization and GIF89a encoding.

Components:
    - Palette, PaletteBuilder: Deterministic median-cut global palette
    - lzw_encode / lzw_decode: GIF variable-width LZW codec
    - GifEncoder: Stateful streaming GIF writer
"""

from rolling_clip.encoding.palette import Palette, PaletteBuilder, median_cut
from rolling_clip.encoding.lzw import lzw_decode, lzw_encode, pack_sub_blocks, unpack_sub_blocks
from rolling_clip.encoding.canvas import canvas_size, center_on_canvas
from rolling_clip.encoding.gif_encoder import EncoderState, GifEncoder, frame_delay_cs


__all__ = [
    "Palette",
    "PaletteBuilder",
    "median_cut",
    "lzw_encode",
    "lzw_decode",
    "pack_sub_blocks",
    "unpack_sub_blocks",
    "canvas_size",
    "center_on_canvas",
    "EncoderState",
    "GifEncoder",
    "frame_delay_cs",
]
