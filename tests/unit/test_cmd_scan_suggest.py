"""Unit tests for the scan and suggest commands."""

from __future__ import annotations

import re
from pathlib import Path

from click.testing import CliRunner

from balfolk_dj.cli import cli
from balfolk_dj.selection.weighted import MSG_NO_TRACKS


def _invoke(config: Path, *args: str):
    return CliRunner().invoke(cli, ["-c", str(config), *args], standalone_mode=False)


def _text(result) -> str:
    return " ".join(result.output.split())


class TestScan:
    def test_counts(self, sample_config: Path) -> None:
        result = _invoke(sample_config, "scan")
        assert result.exit_code == 0, result.output
        assert "Found 5 tracks" in _text(result)
        assert "4 assigned, 1 unassigned" in _text(result)

    def test_unassigned_listing(self, sample_config: Path) -> None:
        result = _invoke(sample_config, "scan", "--unassigned")
        assert result.exit_code == 0
        assert "Tarantella" in _text(result)
        assert "Not In Tree" in _text(result)

    def test_by_dance_table(self, sample_config: Path) -> None:
        result = _invoke(sample_config, "scan", "--by-dance")
        assert result.exit_code == 0
        assert "Tracks per dance" in _text(result)
        assert "Couple/Mazurka" in _text(result)

    def test_music_dir_override(self, sample_config: Path, temp_dir: Path) -> None:
        empty = temp_dir / "empty"
        empty.mkdir()
        result = CliRunner().invoke(
            cli, ["-c", str(sample_config), "-m", str(empty), "scan"], standalone_mode=False
        )
        assert result.exit_code == 0
        assert "No tracks found in the music directory" in _text(result)

    def test_missing_music_dir(self, temp_dir: Path) -> None:
        config = temp_dir / "no-music.toml"
        config.write_text(f'[paths]\ndata_dir = "{temp_dir / "data"}"\n')
        result = _invoke(config, "scan")
        assert result.exit_code == 1
        assert "No music directory configured" in _text(result)


class TestSuggest:
    def test_prints_requested_count(self, sample_config: Path) -> None:
        result = _invoke(sample_config, "suggest", "-n", "3", "--seed", "4")
        assert result.exit_code == 0, result.output
        assert "[1/3]" in _text(result)
        assert "[3/3]" in _text(result)

    def test_seed_is_repeatable(self, sample_config: Path) -> None:
        first = _invoke(sample_config, "suggest", "-n", "5", "--seed", "11")
        second = _invoke(sample_config, "suggest", "-n", "5", "--seed", "11")
        assert first.output == second.output

    def test_no_duplicates_stops_when_exhausted(self, sample_config: Path) -> None:
        result = _invoke(sample_config, "suggest", "-n", "10", "--no-duplicates", "--seed", "2")
        assert result.exit_code == 0
        text = _text(result)
        assert len(re.findall(r"\[\d+/10\]", text)) == 4
        assert MSG_NO_TRACKS in text

    def test_from_branch(self, sample_config: Path) -> None:
        result = _invoke(sample_config, "suggest", "--from", "Bourrée", "--seed", "1")
        assert result.exit_code == 0
        assert "Shillelagh" in _text(result)

    def test_from_branch_without_tracks(self, sample_config: Path) -> None:
        result = _invoke(sample_config, "suggest", "--from", "Chain")
        assert result.exit_code == 0
        assert MSG_NO_TRACKS in _text(result)

    def test_unknown_branch(self, sample_config: Path) -> None:
        result = _invoke(sample_config, "suggest", "--from", "Tango")
        assert result.exit_code == 1
        assert "Dance tree node not found" in _text(result)
