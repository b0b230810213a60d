"""
Tests for Output Paths
======================

Tests for collision-free clip filename generation.
"""

import random
import re

import pytest

from rolling_clip.errors import ExportIoError
from rolling_clip.export import clip_stem, generate_clip_path


class FirstChoice:
    """Random stand-in that always picks the first candidate."""

    def choice(self, seq):
        return seq[0]


class TestClipStem:
    """Tests for clip_stem."""

    def test_spaces_become_underscores(self):
        assert clip_stem("My Cool Game") == "My_Cool_Game"

    def test_blank_name_falls_back(self):
        assert clip_stem("   ") == "clip"


class TestGenerateClipPath:
    """Tests for generate_clip_path."""

    def test_format_and_directory(self, tmp_path):
        path = generate_clip_path(tmp_path, "My Game", rng=random.Random(1))

        assert path.parent == tmp_path / "Clips"
        assert path.parent.is_dir()
        assert re.fullmatch(r"My_Game_[A-Za-z0-9]{10}\.gif", path.name)
        assert not path.exists()

    def test_extension_with_dot(self, tmp_path):
        path = generate_clip_path(tmp_path, "App", extension=".png", subfolder=None)

        assert path.parent == tmp_path
        assert path.suffix == ".png"

    def test_same_seed_same_name(self, tmp_path):
        first = generate_clip_path(tmp_path, "App", rng=random.Random(42))
        second = generate_clip_path(tmp_path, "App", rng=random.Random(42))

        assert first == second

    def test_collision_retries(self, tmp_path):
        taken = generate_clip_path(tmp_path, "App", rng=random.Random(42))
        taken.write_bytes(b"GIF89a")

        path = generate_clip_path(tmp_path, "App", max_attempts=2, rng=random.Random(42))

        assert path != taken
        assert path.parent == taken.parent

    def test_part_file_counts_as_collision(self, tmp_path):
        taken = generate_clip_path(tmp_path, "App", rng=random.Random(42))
        taken.with_name(taken.name + ".part").write_bytes(b"")

        path = generate_clip_path(tmp_path, "App", rng=random.Random(42))

        assert path != taken

    def test_exhausted_attempts(self, tmp_path):
        (tmp_path / "Clips").mkdir()
        (tmp_path / "Clips" / "App_aaaaaaaaaa.gif").write_bytes(b"")

        with pytest.raises(ExportIoError):
            generate_clip_path(tmp_path, "App", max_attempts=3, rng=FirstChoice())

    def test_unwritable_base(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_bytes(b"")

        with pytest.raises(ExportIoError):
            generate_clip_path(blocker, "App")
