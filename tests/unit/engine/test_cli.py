"""Unit tests for the AquaSculpt CLI."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import click.testing
import pytest
import yaml

from aquasculpt.cli import cli


@pytest.fixture
def runner() -> click.testing.CliRunner:
    """Create a Click CliRunner for isolated CLI testing."""
    return click.testing.CliRunner()


@pytest.fixture
def mock_pipeline(tmp_path: Path):
    """Mock load_config, build_stages, build_observers and SculptPipeline.

    Yields a dict with the mocks for introspection.
    """
    mock_config = MagicMock()
    mock_config.output_dir = str(tmp_path / "output")

    mock_stages = [MagicMock() for _ in range(5)]
    mock_pipeline_instance = MagicMock()

    with (
        patch("aquasculpt.cli.load_config", return_value=mock_config) as mock_lc,
        patch("aquasculpt.cli.build_stages", return_value=mock_stages) as mock_bs,
        patch("aquasculpt.cli.build_observers", return_value=[]) as mock_bo,
        patch(
            "aquasculpt.cli.SculptPipeline", return_value=mock_pipeline_instance
        ) as mock_sp,
    ):
        yield {
            "load_config": mock_lc,
            "build_stages": mock_bs,
            "build_observers": mock_bo,
            "SculptPipeline": mock_sp,
            "pipeline_instance": mock_pipeline_instance,
            "config": mock_config,
        }


class TestCLIHelp:
    """Tests for CLI help and argument discovery."""

    def test_group_help_lists_commands(self, runner: click.testing.CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("generate", "init-config", "inspect"):
            assert command in result.output

    def test_generate_help_shows_options(self, runner: click.testing.CliRunner) -> None:
        result = runner.invoke(cli, ["generate", "--help"])
        assert result.exit_code == 0
        for option in ("--config", "--set", "--seed", "--format", "--preview", "--strict"):
            assert option in result.output


class TestGenerate:
    """Tests for the generate command wiring."""

    def test_success_exit_zero(
        self, runner: click.testing.CliRunner, mock_pipeline: dict
    ) -> None:
        result = runner.invoke(cli, ["generate"])
        assert result.exit_code == 0
        mock_pipeline["pipeline_instance"].run.assert_called_once()

    def test_failure_exit_one(
        self, runner: click.testing.CliRunner, mock_pipeline: dict
    ) -> None:
        mock_pipeline["pipeline_instance"].run.side_effect = RuntimeError("boom")
        result = runner.invoke(cli, ["generate"])
        assert result.exit_code == 1

    def test_flags_become_overrides(
        self, runner: click.testing.CliRunner, mock_pipeline: dict, tmp_path: Path
    ) -> None:
        runner.invoke(
            cli,
            [
                "generate",
                "--set",
                "body.length=1.2",
                "--set",
                "head.eye_style=googly",
                "--seed",
                "4",
                "--strict",
                "-o",
                str(tmp_path / "o"),
            ],
        )
        overrides = mock_pipeline["load_config"].call_args.kwargs["cli_overrides"]
        assert overrides == {
            "body.length": "1.2",
            "head.eye_style": "googly",
            "seed": 4,
            "strict": True,
            "output_dir": str(tmp_path / "o"),
        }

    def test_format_selects_exporters(
        self, runner: click.testing.CliRunner, mock_pipeline: dict
    ) -> None:
        runner.invoke(cli, ["generate", "--format", "both", "--preview"])
        kwargs = mock_pipeline["build_observers"].call_args.kwargs
        assert kwargs["formats"] == ("h5", "obj")
        assert kwargs["preview"] is True
        assert kwargs["total_stages"] == 5

    def test_malformed_set_rejected(
        self, runner: click.testing.CliRunner, mock_pipeline: dict
    ) -> None:
        result = runner.invoke(cli, ["generate", "--set", "body.length"])
        assert result.exit_code == 2
        assert "key=val" in result.output
        mock_pipeline["SculptPipeline"].assert_not_called()

    def test_config_error_reported(self, runner: click.testing.CliRunner) -> None:
        result = runner.invoke(cli, ["generate", "--set", "tentacle.length=2"])
        assert result.exit_code == 1
        assert "Unknown config section" in result.output


@pytest.mark.slow
class TestGenerateEndToEnd:
    """Runs the real pipeline into a temporary directory."""

    def test_generate_and_inspect(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        out = tmp_path / "run"
        result = runner.invoke(
            cli, ["generate", "-o", str(out), "--seed", "2", "--format", "both"]
        )
        assert result.exit_code == 0, result.output
        for name in ("config.yaml", "timing.txt", "mesh.h5", "mesh.obj"):
            assert (out / name).exists()

        result = runner.invoke(cli, ["inspect", str(out / "mesh.h5")])
        assert result.exit_code == 0
        assert "vertices:    501" in result.output
        assert "BODY" in result.output
        assert "finite:      True" in result.output

    def test_inspect_rejects_non_mesh_file(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        bogus = tmp_path / "bogus.h5"
        bogus.write_text("not hdf5")
        result = runner.invoke(cli, ["inspect", str(bogus)])
        assert result.exit_code == 1
        assert "Cannot read mesh" in result.output


class TestInitConfig:
    """Tests for the init-config command."""

    def test_writes_default_template(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        path = tmp_path / "fish.yaml"
        result = runner.invoke(cli, ["init-config", "-o", str(path)])
        assert result.exit_code == 0
        data = yaml.safe_load(path.read_text())
        assert data["body"]["length"] == 0.8
        assert data["head"]["eye_style"] == "bubbly"

    def test_refuses_to_overwrite(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        path = tmp_path / "fish.yaml"
        path.write_text("keep me")
        result = runner.invoke(cli, ["init-config", "-o", str(path)])
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert path.read_text() == "keep me"

    def test_force_overwrites(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        path = tmp_path / "fish.yaml"
        path.write_text("old")
        result = runner.invoke(cli, ["init-config", "-o", str(path), "--force"])
        assert result.exit_code == 0
        assert "body:" in path.read_text()
