"""
rolling_clip Configuration
==========================

This module handles configuration loading for capture and export.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    ROLLING_CLIP_APP_NAME        -> app.name
    ROLLING_CLIP_FRAME_RATE      -> capture.frame_rate
    ROLLING_CLIP_MAX_FRAMES      -> capture.max_frames
    ROLLING_CLIP_DOWNSCALE       -> capture.downscale
    ROLLING_CLIP_FILTER_MODE     -> capture.filter_mode
    ROLLING_CLIP_OUTPUT_DIR      -> export.output_dir
    ROLLING_CLIP_PLAYBACK_FPS    -> export.playback_frame_rate
    ROLLING_CLIP_MAX_COLORS      -> export.max_colors
    ROLLING_CLIP_LOG_LEVEL       -> logging.level
    PORT                         -> server.port

Note:
    Capture values are only range-checked here where a value can never be
    meaningful. Soft limits (downscale in (0, 1], capacity >= 1) are
    clamped by the components when the value is used.

Example:
    from rolling_clip.config import settings

    print(settings.capture.frame_rate)
    print(settings.export.output_dir)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from rolling_clip.capture.frame import FilterMode


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Application identification."""

    name: str = Field(default="rolling_clip", description="Application name, used in clip filenames")
    version: str = Field(default="v0.1.0", description="Application version")


class CaptureConfig(BaseModel):
    """Capture cadence and storage configuration."""

    frame_rate: int = Field(
        default=30,
        description="Frames captured per second (must be > 0 when recording)",
    )
    max_frames: int = Field(
        default=150,
        description="Ring buffer capacity; max_frames / frame_rate = clip length",
    )
    downscale: float = Field(
        default=0.5,
        description="Capture scale factor, clamped to (0, 1] at use",
    )
    filter_mode: FilterMode = Field(
        default=FilterMode.NEAREST,
        description="Resampling policy: 'nearest' or 'linear'",
    )
    recording_on_start: bool = Field(
        default=False,
        description="Start recording as soon as the service starts",
    )


class ExportConfig(BaseModel):
    """Clip export configuration."""

    output_dir: str = Field(
        default="./output",
        description="Application-writable base directory for clips",
    )
    subfolder: str = Field(default="Clips", description="Directory under output_dir")
    playback_frame_rate: int = Field(
        default=30,
        gt=0,
        description="Playback rate written into exported clips",
    )
    max_colors: int = Field(
        default=256,
        ge=2,
        le=256,
        description="Color table size including the background entry",
    )
    sample_frames: int = Field(
        default=20,
        ge=1,
        description="Frames sampled when building the palette",
    )
    max_samples_per_frame: int = Field(
        default=16384,
        ge=1,
        description="Pixels sampled per frame when building the palette",
    )
    max_path_attempts: int = Field(
        default=100,
        ge=1,
        description="Random filename attempts before giving up",
    )


class SourceConfig(BaseModel):
    """Synthetic frame source used by the service and demo script."""

    width: int = Field(default=320, ge=0, description="Rendered width")
    height: int = Field(default=180, ge=0, description="Rendered height")
    render_rate: int = Field(
        default=60,
        gt=0,
        description="Render loop ticks per second",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for rolling_clip.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    if env_name := os.environ.get("ROLLING_CLIP_APP_NAME"):
        config_data.setdefault("app", {})["name"] = env_name

    # Capture settings
    if env_rate := os.environ.get("ROLLING_CLIP_FRAME_RATE"):
        config_data.setdefault("capture", {})["frame_rate"] = int(env_rate)
    if env_frames := os.environ.get("ROLLING_CLIP_MAX_FRAMES"):
        config_data.setdefault("capture", {})["max_frames"] = int(env_frames)
    if env_scale := os.environ.get("ROLLING_CLIP_DOWNSCALE"):
        config_data.setdefault("capture", {})["downscale"] = float(env_scale)
    if env_filter := os.environ.get("ROLLING_CLIP_FILTER_MODE"):
        config_data.setdefault("capture", {})["filter_mode"] = env_filter.lower()

    # Export settings
    if env_dir := os.environ.get("ROLLING_CLIP_OUTPUT_DIR"):
        config_data.setdefault("export", {})["output_dir"] = env_dir
    if env_fps := os.environ.get("ROLLING_CLIP_PLAYBACK_FPS"):
        config_data.setdefault("export", {})["playback_frame_rate"] = int(env_fps)
    if env_colors := os.environ.get("ROLLING_CLIP_MAX_COLORS"):
        config_data.setdefault("export", {})["max_colors"] = int(env_colors)

    # Server settings
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("ROLLING_CLIP_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
