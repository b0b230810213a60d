"""
rolling_clip Service
====================

FastAPI control surface for a rolling capture buffer.

A background render loop ticks a CaptureRecorder against a synthetic
frame source; clients start and stop recording and request GIF exports
of the current window.

Endpoints:
    GET  /                  - Service information
    GET  /health            - Liveness probe
    GET  /metrics           - Buffer, recorder and export metrics
    POST /recording/start   - Begin capturing frames
    POST /recording/stop    - Stop capturing (buffer is kept)
    POST /frames/clear      - Drop all captured frames
    POST /export            - Export the current window as a GIF
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from rolling_clip.config import settings
from rolling_clip.capture import CaptureRecorder, FrameRingBuffer, SyntheticFrameSource
from rolling_clip.encoding import PaletteBuilder
from rolling_clip.errors import ExportBusyError, ExportError, ExportIoError
from rolling_clip.export import ExportPipeline


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_shutdown_flag: bool = False

_recorder: Optional[CaptureRecorder] = None
_pipeline: Optional[ExportPipeline] = None
_render_task: Optional[asyncio.Task] = None

_startup_time: float = 0.0
_tick_error_count: int = 0


def get_recorder() -> Optional[CaptureRecorder]:
    return _recorder

def get_pipeline() -> Optional[ExportPipeline]:
    return _pipeline


# =============================================================================
# Render Loop
# =============================================================================

async def render_loop() -> None:
    """Tick the recorder at the configured render rate."""
    global _tick_error_count

    if _recorder is None:
        logger.error("Render loop started before recorder was initialized")
        return

    interval = 1.0 / settings.source.render_rate
    last = time.perf_counter()
    logger.info(f"Render loop started at {settings.source.render_rate} Hz")

    while not _shutdown_flag:
        try:
            await asyncio.sleep(interval)
            now = time.perf_counter()
            _recorder.tick(now - last)
            last = now
        except asyncio.CancelledError:
            logger.info("Render loop cancelled")
            break
        except Exception as e:
            _tick_error_count += 1
            logger.error(f"Render tick error: {e}")
            last = time.perf_counter()

    logger.info("Render loop stopped")


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _shutdown_flag, _recorder, _pipeline, _render_task, _startup_time

    _shutdown_flag = False
    _startup_time = time.time()
    logger.info(f"Starting {settings.app.name} {settings.app.version}")

    source = SyntheticFrameSource(
        width=settings.source.width,
        height=settings.source.height,
    )
    _recorder = CaptureRecorder(
        source,
        buffer=FrameRingBuffer(settings.capture.max_frames),
        frame_rate=settings.capture.frame_rate,
        max_frames=settings.capture.max_frames,
        downscale=settings.capture.downscale,
        filter_mode=settings.capture.filter_mode,
        recording=settings.capture.recording_on_start,
    )
    _pipeline = ExportPipeline(
        output_dir=settings.export.output_dir,
        app_name=settings.app.name,
        max_colors=settings.export.max_colors,
        palette_builder=PaletteBuilder(
            sample_frames=settings.export.sample_frames,
            max_samples_per_frame=settings.export.max_samples_per_frame,
        ),
        subfolder=settings.export.subfolder,
        max_path_attempts=settings.export.max_path_attempts,
    )
    _render_task = asyncio.create_task(render_loop(), name="render_loop")

    yield

    logger.info("Shutting down gracefully...")
    _shutdown_flag = True

    if _render_task:
        _render_task.cancel()
        try:
            await _render_task
        except asyncio.CancelledError:
            pass

    if _pipeline:
        _pipeline.shutdown(wait=True)

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="rolling_clip",
    description="Rolling frame capture with GIF export",
    version=settings.app.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "rolling_clip",
        "name": settings.app.name,
        "version": settings.app.version,
        "status": "running",
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe - always 200 while the process is running."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    recorder = get_recorder()
    pipeline = get_pipeline()

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "tick_errors": _tick_error_count,
        "recorder": recorder.metrics() if recorder else {},
        "buffer": recorder.buffer.metrics() if recorder else {},
        "export": pipeline.metrics() if pipeline else {},
    })


@app.post("/recording/start")
async def start_recording() -> JSONResponse:
    """Begin capturing frames on the render loop."""
    recorder = get_recorder()
    if recorder is None:
        return JSONResponse({"error": "Recorder not initialized"}, status_code=503)
    recorder.recording = True
    logger.info("Recording started")
    return JSONResponse({"recording": True, "frames": recorder.buffer.count})


@app.post("/recording/stop")
async def stop_recording() -> JSONResponse:
    """Stop capturing; captured frames are kept."""
    recorder = get_recorder()
    if recorder is None:
        return JSONResponse({"error": "Recorder not initialized"}, status_code=503)
    recorder.recording = False
    logger.info("Recording stopped")
    return JSONResponse({"recording": False, "frames": recorder.buffer.count})


@app.post("/frames/clear")
async def clear_frames() -> JSONResponse:
    """Drop all captured frames."""
    recorder = get_recorder()
    if recorder is None:
        return JSONResponse({"error": "Recorder not initialized"}, status_code=503)
    cleared = recorder.clear()
    return JSONResponse({"cleared": cleared})


@app.post("/export")
async def export_clip(fps: Optional[int] = None) -> JSONResponse:
    """
    Export the current window as a GIF.

    Returns 409 if an export is already running and 500 if the
    file could not be written.
    """
    recorder = get_recorder()
    pipeline = get_pipeline()
    if recorder is None or pipeline is None:
        return JSONResponse({"error": "Service not initialized"}, status_code=503)

    playback_fps = fps if fps is not None else settings.export.playback_frame_rate
    frame_count = recorder.buffer.count

    try:
        path = await pipeline.export(recorder.buffer, playback_fps)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=422)
    except ExportBusyError as e:
        return JSONResponse({"error": str(e)}, status_code=409)
    except ExportIoError as e:
        logger.error(f"Export I/O failure: {e}")
        return JSONResponse({"error": str(e)}, status_code=500)
    except ExportError as e:
        logger.error(f"Export failure: {e}")
        return JSONResponse({"error": str(e)}, status_code=500)

    return JSONResponse({
        "path": str(path),
        "frames": frame_count,
        "playback_frame_rate": playback_fps,
    })


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "rolling_clip.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
