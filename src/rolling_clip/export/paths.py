"""
Output Paths
============

Collision-free clip filenames of the form
``{app_name}_{10 random alphanumerics}.{extension}``.
"""

import logging
import random
import string
from pathlib import Path
from typing import Optional, Union

from rolling_clip.errors import ExportIoError


logger = logging.getLogger(__name__)


RANDOM_CHARACTERS = string.ascii_lowercase + string.ascii_uppercase + string.digits
RANDOM_LENGTH = 10


def clip_stem(app_name: str) -> str:
    """Filename prefix for an application name (spaces become underscores)."""
    return app_name.strip().replace(" ", "_") or "clip"


def generate_clip_path(
    output_dir: Union[str, Path],
    app_name: str,
    extension: str = "gif",
    subfolder: Optional[str] = "Clips",
    max_attempts: int = 100,
    rng: Optional[random.Random] = None,
) -> Path:
    """
    Pick an unused output path for a new clip.

    The target directory is created if needed. A candidate is rejected
    if either it or its in-progress ``.part`` sibling already exists.

    Args:
        output_dir: Application-writable base directory
        app_name: Application name used as the filename prefix
        extension: File extension, with or without the leading dot
        subfolder: Directory under output_dir (None = output_dir itself)
        max_attempts: Candidates tried before giving up
        rng: Random source; defaults to the module-level generator

    Returns:
        A path that did not exist when checked.

    Raises:
        ExportIoError: If the directory cannot be created or every
            candidate collided
    """
    folder = Path(output_dir)
    if subfolder:
        folder = folder / subfolder
    try:
        folder.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportIoError(f"Cannot create output directory {folder}: {e}") from e

    rng = rng or random
    suffix = extension if extension.startswith(".") else f".{extension}"
    stem = clip_stem(app_name)

    for attempt in range(max(1, max_attempts)):
        token = "".join(rng.choice(RANDOM_CHARACTERS) for _ in range(RANDOM_LENGTH))
        candidate = folder / f"{stem}_{token}{suffix}"
        part = candidate.with_name(candidate.name + ".part")
        if not candidate.exists() and not part.exists():
            return candidate
        logger.debug(f"Output path collision on attempt {attempt + 1}: {candidate.name}")

    raise ExportIoError(
        f"No free output path in {folder} after {max_attempts} attempts"
    )
