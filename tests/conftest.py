"""
Shared fakes for mapsweep tests.

FakeViewport models content as a grid of positions measured in pan steps.
Each position renders to its own PNG, and panning clamps at the configured
bounds the way a real map stops moving at its edge.
"""

import io

import pytest
from PIL import Image

from mapsweep.config import SweepConfig
from mapsweep.errors import PanError, RenderUnavailableError


def render_png(col: int, row: int, size: tuple[int, int] = (40, 20)) -> bytes:
    """A solid PNG whose colour encodes the position."""
    image = Image.new('RGB', size, (col % 256, row % 256, 200))
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()


class FakeViewport:
    """Pannable content clamped to [x_min, x_max] x [y_min, y_max] in steps."""

    def __init__(
        self,
        x_bounds: tuple[int | None, int | None] = (0, 4),
        y_bounds: tuple[int | None, int | None] = (0, 2),
        step_x: int = 30,
        step_y: int = 15,
        start: tuple[int, int] = (0, 0),
        size: tuple[int, int] = (40, 20),
    ):
        self.x_bounds = x_bounds
        self.y_bounds = y_bounds
        self.step_x = step_x
        self.step_y = step_y
        self.col, self.row = start
        self.size = size
        self.pans: list[tuple[int, int]] = []
        self.captures: list[tuple[int, int]] = []
        self.capture_failures = 0  # fail this many captures, then recover
        self.fail_after: int | None = None  # fail every capture after this many
        self.pan_failures = 0

    @staticmethod
    def _clamp(value: int, bounds: tuple[int | None, int | None]) -> int:
        low, high = bounds
        if low is not None:
            value = max(low, value)
        if high is not None:
            value = min(high, value)
        return value

    @property
    def position(self) -> tuple[int, int]:
        return self.col, self.row

    async def pan(self, dx: int, dy: int) -> None:
        if self.pan_failures > 0:
            self.pan_failures -= 1
            raise PanError("surface unreachable")
        self.pans.append((dx, dy))
        self.col = self._clamp(self.col + round(dx / self.step_x), self.x_bounds)
        self.row = self._clamp(self.row + round(dy / self.step_y), self.y_bounds)

    async def capture_frame(self) -> bytes:
        if self.capture_failures > 0:
            self.capture_failures -= 1
            raise RenderUnavailableError("canvas.toDataURL returned null")
        if self.fail_after is not None and len(self.captures) >= self.fail_after:
            raise RenderUnavailableError("renderer gone")
        self.captures.append(self.position)
        return render_png(self.col, self.row, self.size)


def gradient_content(width: int = 100, height: int = 50) -> Image.Image:
    """Content where every pixel is distinct along each axis."""
    image = Image.new('RGBA', (width, height))
    image.putdata([(x % 256, (5 * y) % 256, 7, 255) for y in range(height) for x in range(width)])
    return image


class ContentViewport:
    """A window onto a real image. pan moves the view, clamped to the content."""

    def __init__(self, content: Image.Image, size: tuple[int, int] = (40, 20), start: tuple[int, int] = (0, 0)):
        self.content = content
        self.width, self.height = size
        self.x, self.y = start

    async def pan(self, dx: int, dy: int) -> None:
        self.x = max(0, min(self.content.width - self.width, self.x + dx))
        self.y = max(0, min(self.content.height - self.height, self.y + dy))

    async def capture_frame(self) -> bytes:
        view = self.content.crop((self.x, self.y, self.x + self.width, self.y + self.height))
        buffer = io.BytesIO()
        view.save(buffer, format='PNG')
        return buffer.getvalue()


class ScriptedViewport:
    """Each pan advances through a fixed list of frames, sticking on the last."""

    def __init__(self, frames: list[bytes]):
        self.frames = frames
        self.index = 0
        self.pan_count = 0

    async def pan(self, dx: int, dy: int) -> None:
        self.pan_count += 1
        self.index = min(self.index + 1, len(self.frames) - 1)

    async def capture_frame(self) -> bytes:
        return self.frames[self.index]


@pytest.fixture
def fast_config():
    """A small viewport with every delay switched off."""
    return SweepConfig(
        viewport_width=40,
        viewport_height=20,
        step_fraction=0.75,
        settle_delay_ms=0,
        capture_retry_delay_ms=0,
        rehome_delay_ms=0,
        alignment_delay_ms=0,
        edge_scan_iteration_cap=50,
        pan_timeout_s=5.0,
        capture_timeout_s=5.0,
    )


@pytest.fixture
def fake_viewport():
    return FakeViewport()
