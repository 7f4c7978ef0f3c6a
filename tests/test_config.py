"""
Tests for sweep configuration.
"""

import json

import pytest

from mapsweep.config import BrowserConfig, SweepConfig, load_config, round_half_up
from mapsweep.errors import ConfigError


def test_defaults():
    """Defaults match the tuned capture settings."""
    config = SweepConfig().validate()

    assert (config.viewport_width, config.viewport_height) == (1280, 800)
    assert (config.step_x, config.step_y) == (960, 600)
    assert config.overlap_fraction == pytest.approx(0.25)
    assert config.identical_run_threshold == 3
    assert config.capture_retry_count == 3
    assert config.edge_scan_iteration_cap == 2000


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_from_dict_camel_case():
    """The external option names are accepted."""
    config = SweepConfig.from_dict({
        'viewportSize': {'width': 1920, 'height': 1080},
        'stepFraction': 0.5,
        'settleDelayMs': 250,
        'identicalRunThreshold': 4,
        'captureRetryCount': 5,
        'edgeScanIterationCap': 100,
    })

    assert (config.viewport_width, config.viewport_height) == (1920, 1080)
    assert (config.step_x, config.step_y) == (960, 540)
    assert config.settle_delay_ms == 250
    assert config.identical_run_threshold == 4
    assert config.capture_retry_count == 5
    assert config.edge_scan_iteration_cap == 100


def test_from_dict_snake_case():
    config = SweepConfig.from_dict({'step_fraction': 1.0, 'alignment_cycles': 0})

    assert config.step_x == 1280
    assert config.alignment_cycles == 0


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ConfigError, match="stepFractoin"):
        SweepConfig.from_dict({'stepFractoin': 0.5})


def test_from_dict_rejects_bad_viewport():
    with pytest.raises(ConfigError):
        SweepConfig.from_dict({'viewportSize': {'width': 100}})


def test_from_dict_coerces_numeric_strings():
    """Values read from loosely typed sources are converted to the field type."""
    config = SweepConfig.from_dict({
        'viewportSize': {'width': "640", 'height': 480.0},
        'stepFraction': "0.5",
        'captureRetryCount': 4.0,
    })

    assert (config.viewport_width, config.viewport_height) == (640, 480)
    assert isinstance(config.viewport_height, int)
    assert config.step_fraction == 0.5
    assert config.capture_retry_count == 4
    assert isinstance(config.capture_retry_count, int)


@pytest.mark.parametrize("data", [
    {'stepFraction': "three quarters"},
    {'viewportSize': {'width': "abc", 'height': 800}},
    {'settleDelayMs': 2.5},
    {'identicalRunThreshold': True},
    {'edgeScanIterationCap': None},
    {'captureTimeoutS': [30]},
    {'panTimeoutS': "inf"},
])
def test_from_dict_rejects_bad_types(data):
    with pytest.raises(ConfigError):
        SweepConfig.from_dict(data)


@pytest.mark.parametrize("overrides", [
    {'step_fraction': 0},
    {'step_fraction': 1.2},
    {'viewport_width': 0},
    {'identical_run_threshold': 0},
    {'capture_retry_count': 0},
    {'edge_scan_iteration_cap': 0},
    {'alignment_cycles': -1},
    {'settle_delay_ms': -5},
    {'capture_timeout_s': -1.0},
])
def test_validate_rejects_out_of_range(overrides):
    with pytest.raises(ConfigError):
        SweepConfig(**overrides).validate()


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        SweepConfig(step_fraction=2).validate()


def test_tiny_viewport_still_moves():
    """The step never rounds down to zero pixels."""
    config = SweepConfig(viewport_width=1, viewport_height=1, step_fraction=0.1).validate()
    assert (config.step_x, config.step_y) == (1, 1)


def test_load_config(tmp_path):
    path = tmp_path / "sweep.json"
    path.write_text(json.dumps({'stepFraction': 0.8, 'settleDelayMs': 0}))

    config = load_config(path)

    assert config.step_fraction == 0.8
    assert config.settle_delay_ms == 0


def test_load_config_invalid_json(tmp_path):
    path = tmp_path / "sweep.json"
    path.write_text("{not json")

    with pytest.raises(ConfigError):
        load_config(path)


def test_load_config_requires_object(tmp_path):
    path = tmp_path / "sweep.json"
    path.write_text("[1, 2]")

    with pytest.raises(ConfigError):
        load_config(path)


def test_browser_config_validation():
    assert BrowserConfig(url="https://example.com").validate().canvas_selector == "canvas"
    with pytest.raises(ConfigError):
        BrowserConfig(url="https://example.com", drag_substeps=0).validate()
