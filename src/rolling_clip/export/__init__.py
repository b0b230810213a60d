"""
Export Module
=============

Background clip export.

Components:
    - ExportPipeline: Snapshot + off-thread GIF encode with reject-if-busy
    - generate_clip_path: Collision-free ``{app}_{random}.gif`` paths
"""

from rolling_clip.export.paths import clip_stem, generate_clip_path
from rolling_clip.export.pipeline import ExportPipeline


__all__ = [
    "ExportPipeline",
    "clip_stem",
    "generate_clip_path",
]
