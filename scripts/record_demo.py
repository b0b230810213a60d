#!/usr/bin/env python3
"""
Record Demo Script
==================

Standalone script that records a synthetic clip and exports it as a GIF.

This script:
    1. Drives a CaptureRecorder with a simulated, jittery render loop
    2. Exports the captured window on the background pipeline
    3. Reports a final summary

Usage:
    python scripts/record_demo.py --seconds 5 --fps 30
    python scripts/record_demo.py --max-frames 60 --downscale 0.25 --filter linear
"""

import argparse
import logging
import os
import random
import sys
import time

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from rolling_clip.capture import CaptureRecorder, FilterMode, SyntheticFrameSource
from rolling_clip.errors import ExportError
from rolling_clip.export import ExportPipeline


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def run_demo(
    seconds: float,
    render_rate: int,
    frame_rate: int,
    max_frames: int,
    downscale: float,
    filter_mode: str,
    output_dir: str,
    app_name: str,
) -> dict:
    """
    Record and export one clip.

    Returns:
        Summary dict
    """
    logger.info("=" * 60)
    logger.info("Rolling Clip Demo")
    logger.info("=" * 60)
    logger.info(f"Simulated seconds: {seconds}")
    logger.info(f"Render rate: {render_rate} Hz (with jitter)")
    logger.info(f"Capture rate: {frame_rate} fps, capacity {max_frames}")
    logger.info(f"Downscale: {downscale} ({filter_mode})")
    logger.info("=" * 60)

    recorder = CaptureRecorder(
        SyntheticFrameSource(width=320, height=180),
        frame_rate=frame_rate,
        max_frames=max_frames,
        downscale=downscale,
        filter_mode=FilterMode(filter_mode),
        recording=True,
    )

    # Fixed seed so repeated runs render the same clip
    jitter = random.Random(0)
    base_delta = 1.0 / render_rate
    simulated = 0.0
    while simulated < seconds:
        delta = base_delta * jitter.uniform(0.5, 1.5)
        recorder.tick(delta)
        simulated += delta

    logger.info(f"Captured {recorder.metrics()['captures']} frames, buffer holds {recorder.buffer.count}")

    pipeline = ExportPipeline(output_dir=output_dir, app_name=app_name)
    start_time = time.time()
    try:
        path = pipeline.export_async(recorder.buffer, frame_rate).result()
    except ExportError as e:
        logger.error(f"❌ Export failed: {e}")
        return {"path": None, "frames": recorder.buffer.count}
    finally:
        pipeline.shutdown()

    elapsed = time.time() - start_time
    size_kb = os.path.getsize(path) / 1024

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Output: {path}")
    logger.info(f"Frames: {recorder.buffer.count}")
    logger.info(f"File size: {size_kb:.1f} KiB")
    logger.info(f"Export time: {elapsed:.2f} seconds")
    logger.info("=" * 60)

    return {
        "path": str(path),
        "frames": recorder.buffer.count,
        "export_seconds": elapsed,
        "size_kb": size_kb,
    }


def main():
    parser = argparse.ArgumentParser(
        description="Record a synthetic clip and export it as a GIF"
    )
    parser.add_argument("--seconds", type=float, default=5.0, help="Simulated recording time")
    parser.add_argument("--render-rate", type=int, default=60, help="Simulated render loop rate")
    parser.add_argument("--fps", type=int, default=30, help="Capture and playback frame rate")
    parser.add_argument("--max-frames", type=int, default=150, help="Ring buffer capacity")
    parser.add_argument("--downscale", type=float, default=0.5, help="Capture scale factor")
    parser.add_argument(
        "--filter",
        choices=[mode.value for mode in FilterMode],
        default=FilterMode.NEAREST.value,
        help="Downscale filter",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=os.environ.get("ROLLING_CLIP_OUTPUT_DIR", "./output"),
        help="Base output directory",
    )
    parser.add_argument("--app-name", type=str, default="Rolling Clip Demo", help="Filename prefix")

    args = parser.parse_args()

    result = run_demo(
        seconds=args.seconds,
        render_rate=args.render_rate,
        frame_rate=args.fps,
        max_frames=args.max_frames,
        downscale=args.downscale,
        filter_mode=args.filter,
        output_dir=args.output_dir,
        app_name=args.app_name,
    )

    sys.exit(0 if result["path"] else 1)


if __name__ == "__main__":
    main()
