"""
rolling_clip
============

Rolling capture of rendered frames with animated GIF export.

This package keeps a fixed-size window of recently rendered frames and
turns that window into a palette-quantized, LZW-compressed GIF89a file
on a background thread, without stalling the render loop.

Components:
    - capture: Pixel frames, ring buffer, fixed-cadence recorder
    - encoding: Median-cut palette, LZW codec, GIF encoder
    - export: Background export pipeline and output paths
    - playback: Headless preview cursor

Example:
    from rolling_clip.capture import CaptureRecorder, SyntheticFrameSource
    from rolling_clip.export import ExportPipeline

    recorder = CaptureRecorder(SyntheticFrameSource(), recording=True)
    for _ in range(300):
        recorder.tick(1 / 60)

    pipeline = ExportPipeline(output_dir="./output", app_name="Demo")
    path = pipeline.export_async(recorder.buffer, 30).result()
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
