"""
Edge scanning: find how far the content extends along one axis.

The viewport position is never observable, so the edge is inferred: pan a
fixed step, let the renderer settle, capture, and compare fingerprints.
Once the same fingerprint comes back identical_run_threshold times in a row,
panning has stopped changing the picture and the edge is declared.

Drag direction is ambiguous for some renderers (dragging left may pan the
view right), so each axis is resolved with two branches: the preferred
direction first, then the opposite one. Each branch yields a ScanAttempt
rather than raising, which keeps the fallback visible at the call site.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from ..capture.frames import FrameCapture
from ..capture.viewport import PanDelta
from ..config import SweepConfig
from ..errors import AxisUnresolvedError, EdgeNotFoundError
from ..store.tiles import TileStore

logger = logging.getLogger(__name__)


class Axis(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @property
    def short(self) -> str:
        return self.value[0]


class Direction(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.POSITIVE else -1

    @property
    def opposite(self) -> 'Direction':
        return Direction.NEGATIVE if self is Direction.POSITIVE else Direction.POSITIVE


def axis_delta(axis: Axis, direction: Direction, step_x: int, step_y: int) -> PanDelta:
    """One pan step along an axis."""
    if axis is Axis.HORIZONTAL:
        return PanDelta(direction.sign * step_x, 0)
    return PanDelta(0, direction.sign * step_y)


def scan_scope(axis: Axis, direction: Direction) -> str:
    """Tile store scope for diagnostic captures, e.g. 'h_positive'."""
    return f"{axis.short}_{direction.value}"


@dataclass(frozen=True)
class EdgeScanResult:
    """Outcome of a scan that reached an edge."""
    steps_to_edge: int  # pans that changed the picture
    last_fingerprint: str
    axis: Axis
    direction: Direction
    iterations: int  # pans issued, including the identical run


@dataclass(frozen=True)
class ScanAttempt:
    """One branch of an axis resolution: a result or a typed failure."""
    axis: Axis
    direction: Direction
    result: EdgeScanResult | None = None
    error: EdgeNotFoundError | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @property
    def steps_taken(self) -> int:
        """Dead-reckoned displacement in steps, whether or not the edge was found."""
        if self.result is not None:
            return self.result.steps_to_edge
        return self.error.steps_taken if self.error else 0


@dataclass
class AxisResolution:
    """All attempts made on one axis; the last one succeeded."""
    axis: Axis
    attempts: list[ScanAttempt] = field(default_factory=list)

    @property
    def result(self) -> EdgeScanResult:
        return self.attempts[-1].result

    @property
    def direction(self) -> Direction:
        return self.attempts[-1].direction

    @property
    def used_fallback(self) -> bool:
        return len(self.attempts) > 1

    @property
    def net_steps(self) -> int:
        """Signed displacement from the starting point, in steps."""
        return sum(a.direction.sign * a.steps_taken for a in self.attempts)


class EdgeScanner:
    """Pan along an axis until captured frames stop changing."""

    def __init__(self, capture: FrameCapture, store: TileStore, config: SweepConfig):
        self.capture = capture
        self.store = store
        self.config = config

    async def scan_axis(
        self,
        axis: Axis,
        direction: Direction,
        initial_fingerprint: str,
    ) -> EdgeScanResult:
        """
        Scan until identical_run_threshold identical frames in a row.

        Every frame is stored under the scan's scope for diagnostics.

        Raises:
            EdgeNotFoundError: if edge_scan_iteration_cap pans never settle
            CaptureError, PanError: if the renderer fails past its retries
        """
        delta = axis_delta(axis, direction, self.config.step_x, self.config.step_y)
        scope = scan_scope(axis, direction)
        threshold = self.config.identical_run_threshold
        cap = self.config.edge_scan_iteration_cap

        identical = 0
        last_fingerprint = initial_fingerprint

        for i in range(cap):
            await self.capture.pan(delta)
            await self.capture.settle()
            frame = await self.capture.capture()

            if frame.fingerprint == last_fingerprint:
                identical += 1
            else:
                identical = 0
                last_fingerprint = frame.fingerprint

            if axis is Axis.HORIZONTAL:
                self.store.put(0, i, frame, scope=scope)
            else:
                self.store.put(i, 0, frame, scope=scope)

            logger.debug(f"{scope} step {i} hash={frame.fingerprint} identical={identical}")

            if identical >= threshold:
                iterations = i + 1
                logger.info(f"Edge detected ({axis.value} {direction.value}) after {iterations} pans")
                return EdgeScanResult(
                    steps_to_edge=iterations - identical,
                    last_fingerprint=last_fingerprint,
                    axis=axis,
                    direction=direction,
                    iterations=iterations,
                )

        raise EdgeNotFoundError(axis, direction, steps_taken=cap - identical, iterations=cap)

    async def attempt(
        self,
        axis: Axis,
        direction: Direction,
        initial_fingerprint: str,
    ) -> ScanAttempt:
        """Run scan_axis, turning an iteration-cap failure into a value."""
        try:
            result = await self.scan_axis(axis, direction, initial_fingerprint)
        except EdgeNotFoundError as e:
            return ScanAttempt(axis, direction, error=e)
        return ScanAttempt(axis, direction, result=result)

    async def resolve_axis(
        self,
        axis: Axis,
        first: Direction = Direction.POSITIVE,
    ) -> AxisResolution:
        """
        Find the edge on an axis, falling back to the opposite direction once.

        Raises:
            AxisUnresolvedError: if both directions hit the iteration cap
        """
        resolution = AxisResolution(axis)

        for direction in (first, first.opposite):
            start = await self.capture.capture()
            attempt = await self.attempt(axis, direction, start.fingerprint)
            resolution.attempts.append(attempt)

            if attempt.ok:
                return resolution

            logger.warning(f"{axis.value} {direction.value} scan found no edge: {attempt.error}")

        raise AxisUnresolvedError(axis, [a.error for a in resolution.attempts])
