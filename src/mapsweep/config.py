"""
Sweep and browser configuration.

Key requirements:
- Every tunable of the pan/capture loop lives here, with the defaults the
  capture script was tuned with (1280x800 viewport, 0.75 step, 700ms settle)
- Accept both snake_case keys and the camelCase option names
  (viewportSize, stepFraction, settleDelayMs, ...)
- Reject out-of-range values before a browser is ever launched
"""

from dataclasses import dataclass, fields, asdict
from pathlib import Path
import json
import math

from .errors import ConfigError


# camelCase option name -> SweepConfig field
CAMEL_CASE_KEYS = {
    'stepFraction': 'step_fraction',
    'settleDelayMs': 'settle_delay_ms',
    'identicalRunThreshold': 'identical_run_threshold',
    'captureRetryCount': 'capture_retry_count',
    'captureRetryDelayMs': 'capture_retry_delay_ms',
    'edgeScanIterationCap': 'edge_scan_iteration_cap',
    'rehomeDelayMs': 'rehome_delay_ms',
    'alignmentCycles': 'alignment_cycles',
    'alignmentDelayMs': 'alignment_delay_ms',
    'panTimeoutS': 'pan_timeout_s',
    'captureTimeoutS': 'capture_timeout_s',
}


def round_half_up(value: float) -> int:
    """Round like the browser's Math.round for positive values."""
    return int(value + 0.5)


def _coerce(key: str, value, kind: type):
    """Convert a loaded option value to its field type (int or float)."""
    if isinstance(value, bool) or value is None:
        raise ConfigError(f"{key} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be a number, got {value!r}") from e
    if not math.isfinite(number):
        raise ConfigError(f"{key} must be finite, got {value!r}")

    if kind is int:
        if not number.is_integer():
            raise ConfigError(f"{key} must be a whole number, got {value!r}")
        return int(number)
    return number


@dataclass
class SweepConfig:
    """Tunables for edge scanning, sweeping and stitching."""
    viewport_width: int = 1280
    viewport_height: int = 800
    step_fraction: float = 0.75  # 0.75 gives 25% overlap
    settle_delay_ms: int = 700
    identical_run_threshold: int = 3
    capture_retry_count: int = 3
    capture_retry_delay_ms: int = 300
    edge_scan_iteration_cap: int = 2000
    rehome_delay_ms: int = 100
    alignment_cycles: int = 3
    alignment_delay_ms: int = 50
    pan_timeout_s: float = 30.0
    capture_timeout_s: float = 30.0

    @property
    def step_x(self) -> int:
        """Horizontal pan distance in pixels."""
        return max(1, round_half_up(self.viewport_width * self.step_fraction))

    @property
    def step_y(self) -> int:
        """Vertical pan distance in pixels."""
        return max(1, round_half_up(self.viewport_height * self.step_fraction))

    @property
    def overlap_fraction(self) -> float:
        return 1.0 - self.step_fraction

    def validate(self) -> 'SweepConfig':
        """Check value ranges, returning self so calls can be chained."""
        if self.viewport_width <= 0 or self.viewport_height <= 0:
            raise ConfigError(
                f"Viewport size must be positive, got "
                f"{self.viewport_width}x{self.viewport_height}"
            )
        if not 0 < self.step_fraction <= 1:
            raise ConfigError(f"step_fraction must be in (0, 1], got {self.step_fraction}")
        if self.identical_run_threshold < 1:
            raise ConfigError("identical_run_threshold must be at least 1")
        if self.capture_retry_count < 1:
            raise ConfigError("capture_retry_count must be at least 1")
        if self.edge_scan_iteration_cap < 1:
            raise ConfigError("edge_scan_iteration_cap must be at least 1")
        if self.alignment_cycles < 0:
            raise ConfigError("alignment_cycles cannot be negative")

        for name in ('settle_delay_ms', 'capture_retry_delay_ms', 'rehome_delay_ms',
                     'alignment_delay_ms', 'pan_timeout_s', 'capture_timeout_s'):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} cannot be negative")

        return self

    @classmethod
    def from_dict(cls, data: dict) -> 'SweepConfig':
        """
        Build a config from a plain dict.

        viewportSize may be given as {"width": ..., "height": ...}.
        Unknown keys are rejected so typos don't silently fall back to defaults.
        """
        kinds = {f.name: f.type for f in fields(cls)}
        values = {}

        for key, value in data.items():
            if key == 'viewportSize':
                if not isinstance(value, dict) or 'width' not in value or 'height' not in value:
                    raise ConfigError("viewportSize must have width and height")
                values['viewport_width'] = _coerce('viewportSize.width', value['width'], int)
                values['viewport_height'] = _coerce('viewportSize.height', value['height'], int)
                continue

            name = CAMEL_CASE_KEYS.get(key, key)
            if name not in kinds:
                raise ConfigError(f"Unknown sweep option: {key}")
            values[name] = _coerce(key, value, kinds[name])

        return cls(**values).validate()

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BrowserConfig:
    """Settings for the pyppeteer-driven map page."""
    url: str
    headless: bool = True
    canvas_selector: str = 'canvas'
    drag_pause_ms: int = 200
    drag_substeps: int = 8
    navigation_timeout_s: float = 60.0
    canvas_timeout_s: float = 30.0
    executable_path: str | None = None

    def validate(self) -> 'BrowserConfig':
        if not self.url:
            raise ConfigError("A map URL is required")
        if self.drag_substeps < 1:
            raise ConfigError("drag_substeps must be at least 1")
        if self.drag_pause_ms < 0:
            raise ConfigError("drag_pause_ms cannot be negative")
        return self


def load_config(path: Path) -> SweepConfig:
    """Load a SweepConfig from a JSON file."""
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    return SweepConfig.from_dict(data)
