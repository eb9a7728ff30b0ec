"""Unit tests for the init-config command."""

from __future__ import annotations

import tomllib
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from balfolk_dj.commands.init_config import _load_example_config, cli


class TestLoadExampleConfig:
    def test_loads_non_empty_content(self) -> None:
        content = _load_example_config()
        assert len(content) > 0

    def test_contains_all_sections(self) -> None:
        content = _load_example_config()
        for section in ("[paths]", "[queue]", "[player]", "[display]"):
            assert section in content, f"Missing section {section}"

    def test_is_valid_toml(self) -> None:
        tomllib.loads(_load_example_config())


class TestInitConfigCommand:
    def test_creates_config_file(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["--output", "test-config.toml"], standalone_mode=False)
            assert result.exception is None
            assert Path("test-config.toml").exists()
            content = Path("test-config.toml").read_text()
            assert "[queue]" in content

    def test_created_file_matches_example(self) -> None:
        example = _load_example_config()
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(cli, ["--output", "test-config.toml"], standalone_mode=False)
            content = Path("test-config.toml").read_text()
            assert content == example

    def test_fails_if_exists_without_force(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("test-config.toml").write_text("existing")
            result = runner.invoke(cli, ["--output", "test-config.toml"], standalone_mode=False)
            assert isinstance(result.exception, SystemExit)
            assert result.exception.code == 1
            assert Path("test-config.toml").read_text() == "existing"

    def test_force_overwrites_existing(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("test-config.toml").write_text("old content")
            result = runner.invoke(
                cli, ["--output", "test-config.toml", "--force"], standalone_mode=False
            )
            assert result.exception is None
            content = Path("test-config.toml").read_text()
            assert "[paths]" in content
            assert "old content" not in content

    def test_creates_parent_directories(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(
                cli, ["--output", "nested/dir/config.toml"], standalone_mode=False
            )
            assert result.exception is None
            assert Path("nested/dir/config.toml").exists()

    def test_default_location(self, temp_dir: Path) -> None:
        target = temp_dir / "home" / "config.toml"
        runner = CliRunner()
        with patch(
            "balfolk_dj.commands.init_config.get_default_config_path", return_value=target
        ):
            result = runner.invoke(cli, [], standalone_mode=False)
        assert result.exception is None
        assert target.exists()
