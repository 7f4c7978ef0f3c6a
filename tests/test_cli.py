"""
Tests for the command-line interface.
"""

import asyncio
import json

from click.testing import CliRunner
from PIL import Image

from mapsweep.api import sweep_viewport
from mapsweep.cli import main
from mapsweep.store.tiles import DirectoryTileStore

from conftest import FakeViewport


def test_grid_command():
    """The grid command prints the composite size for given steps."""
    runner = CliRunner()
    result = runner.invoke(main, ['grid', '--h-steps', '4', '--v-steps', '2'])

    assert result.exit_code == 0, result.output
    assert "5120 x 2000" in result.output
    assert "15" in result.output


def test_grid_command_rejects_bad_fraction():
    runner = CliRunner()
    result = runner.invoke(main, ['grid', '--h-steps', '1', '--v-steps', '1', '--step-fraction', '1.5'])

    assert result.exit_code != 0


def test_stitch_command(tmp_path, fast_config):
    """Re-stitching a capture directory writes stitched.png."""
    viewport = FakeViewport(x_bounds=(0, 2), y_bounds=(0, 1))
    asyncio.run(sweep_viewport(viewport, DirectoryTileStore(tmp_path), fast_config))

    runner = CliRunner()
    result = runner.invoke(main, ['stitch', str(tmp_path)])

    assert result.exit_code == 0, result.output
    with Image.open(tmp_path / "stitched.png") as image:
        assert image.size == (2 * 30 + 40, 15 + 20)


def test_stitch_command_custom_output(tmp_path, fast_config):
    viewport = FakeViewport(x_bounds=(0, 1), y_bounds=(0, 0))
    asyncio.run(sweep_viewport(viewport, DirectoryTileStore(tmp_path / "caps"), fast_config))
    output = tmp_path / "out.png"

    runner = CliRunner()
    result = runner.invoke(main, ['stitch', str(tmp_path / "caps"), '-o', str(output)])

    assert result.exit_code == 0, result.output
    assert output.exists()


def test_stitch_command_without_manifest(tmp_path):
    runner = CliRunner()
    result = runner.invoke(main, ['stitch', str(tmp_path)])

    assert result.exit_code != 0
    assert "Failed to stitch" in result.output


def test_capture_command_rejects_bad_config(tmp_path):
    """Configuration errors stop before any browser is launched."""
    runner = CliRunner()
    result = runner.invoke(main, ['capture', 'https://example.com/map/', '--step-fraction', '0',
                                  '-o', str(tmp_path)])

    assert result.exit_code != 0
    assert "Invalid configuration" in result.output


def test_capture_command_rejects_badly_typed_config_file(tmp_path):
    config_file = tmp_path / "sweep.json"
    config_file.write_text(json.dumps({'viewportSize': {'width': 'abc', 'height': 800}}))

    runner = CliRunner()
    result = runner.invoke(main, ['capture', 'https://example.com/map/', '--config', str(config_file),
                                  '-o', str(tmp_path / "out")])

    assert result.exit_code != 0
    assert "Invalid configuration" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
