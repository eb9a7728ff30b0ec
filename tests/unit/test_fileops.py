"""Unit tests for atomic file writes."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from balfolk_dj.utils.fileops import atomic_write_text


class TestAtomicWriteText:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        atomic_write_text(target, "hello world")
        assert target.read_text() == "hello world"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "tree.json"
        atomic_write_text(target, "[]")
        assert target.read_text() == "[]"

    def test_overwrites_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("old")
        atomic_write_text(target, "new")
        assert target.read_text() == "new"

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        atomic_write_text(target, "content")
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]

    def test_failed_write_keeps_previous_file(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("previous")

        with patch("balfolk_dj.utils.fileops.os.fsync", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                atomic_write_text(target, "replacement")

        assert target.read_text() == "previous"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]
