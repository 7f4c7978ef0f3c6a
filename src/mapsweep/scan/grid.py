"""
Grid derivation and raster sweep.

Key requirements:
- columns/rows = steps to edge + 1 on each axis
- Re-home by reversing the dead-reckoned displacement of both edge scans
  (vertical first, then horizontal), then run the overshoot-and-reverse
  alignment cycles
- Sweep row-major, column ascending: the stitcher's overwrite order
  depends on it
- Any cell that can't be captured aborts the sweep with IncompleteGridError

Re-homing cannot observe the viewport position, so drift from imprecise
drags shifts the sweep's starting corner without raising anything.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator

from ..capture.frames import FrameCapture, ViewportFrame
from ..config import SweepConfig, round_half_up
from ..errors import CaptureError, IncompleteGridError, PanError
from ..store.tiles import TileStore
from .edge import Axis, AxisResolution, Direction, EdgeScanner, axis_delta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridSpec:
    """Tile grid derived from the edge scans. Immutable for the run."""
    columns: int
    rows: int
    tile_width: int
    tile_height: int
    effective_step_x: int
    effective_step_y: int
    column_direction: Direction = Direction.POSITIVE
    row_direction: Direction = Direction.POSITIVE

    @property
    def cell_count(self) -> int:
        return self.columns * self.rows

    @property
    def composite_size(self) -> tuple[int, int]:
        """(width, height) of the stitched image."""
        return (
            (self.columns - 1) * self.effective_step_x + self.tile_width,
            (self.rows - 1) * self.effective_step_y + self.tile_height,
        )

    def offset(self, row: int, column: int) -> tuple[int, int]:
        """
        Pixel position of a tile's top-left corner in the composite.

        Cells are numbered in capture order. A negative sweep direction
        walks back toward the content origin, so along that axis the
        first cell captured is the last one laid out.
        """
        x = column if self.column_direction is Direction.POSITIVE else self.columns - 1 - column
        y = row if self.row_direction is Direction.POSITIVE else self.rows - 1 - row
        return x * self.effective_step_x, y * self.effective_step_y

    def cells(self) -> Iterator[tuple[int, int]]:
        """(row, column) pairs in row-major, column-ascending order."""
        for row in range(self.rows):
            for column in range(self.columns):
                yield row, column

    def to_dict(self) -> dict:
        return {
            'columns': self.columns,
            'rows': self.rows,
            'tileWidth': self.tile_width,
            'tileHeight': self.tile_height,
            'effectiveStepX': self.effective_step_x,
            'effectiveStepY': self.effective_step_y,
            'columnDirection': self.column_direction.value,
            'rowDirection': self.row_direction.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GridSpec':
        """Inverse of to_dict. Raises ValueError on missing or bad fields."""
        try:
            return cls(
                columns=int(data['columns']),
                rows=int(data['rows']),
                tile_width=int(data['tileWidth']),
                tile_height=int(data['tileHeight']),
                effective_step_x=int(data['effectiveStepX']),
                effective_step_y=int(data['effectiveStepY']),
                column_direction=Direction(data.get('columnDirection', 'positive')),
                row_direction=Direction(data.get('rowDirection', 'positive')),
            )
        except KeyError as e:
            raise ValueError(f"Missing required grid field: {e.args[0]}") from e


@dataclass(frozen=True)
class Tile:
    """A frame captured at one grid cell."""
    row: int
    column: int
    frame: ViewportFrame = field(compare=False)


def build_grid(
    horizontal_steps: int,
    vertical_steps: int,
    tile_width: int,
    tile_height: int,
    overlap_fraction: float,
    column_direction: Direction = Direction.POSITIVE,
    row_direction: Direction = Direction.POSITIVE,
) -> GridSpec:
    """Turn edge-scan step counts into a grid."""
    step_fraction = round(1.0 - overlap_fraction, 9)
    return GridSpec(
        columns=max(0, horizontal_steps) + 1,
        rows=max(0, vertical_steps) + 1,
        tile_width=tile_width,
        tile_height=tile_height,
        effective_step_x=max(1, round_half_up(tile_width * step_fraction)),
        effective_step_y=max(1, round_half_up(tile_height * step_fraction)),
        column_direction=column_direction,
        row_direction=row_direction,
    )


class GridTraverser:
    """Owns the viewport from the first edge scan to the last tile."""

    def __init__(self, capture: FrameCapture, store: TileStore, config: SweepConfig):
        self.capture = capture
        self.store = store
        self.config = config
        self.scanner = EdgeScanner(capture, store, config)

    async def _pan_steps(
        self,
        axis: Axis,
        direction: Direction,
        count: int,
        delay_ms: int,
        step_x: int | None = None,
        step_y: int | None = None,
    ) -> None:
        delta = axis_delta(
            axis,
            direction,
            step_x if step_x is not None else self.config.step_x,
            step_y if step_y is not None else self.config.step_y,
        )
        for _ in range(count):
            await self.capture.pan(delta)
            await self.capture.settle(delay_ms)

    async def discover(self) -> tuple[AxisResolution, AxisResolution]:
        """Resolve the horizontal axis, then the vertical one."""
        logger.info("Scanning for horizontal edge...")
        horizontal = await self.scanner.resolve_axis(Axis.HORIZONTAL)
        logger.info("Scanning for vertical edge...")
        vertical = await self.scanner.resolve_axis(Axis.VERTICAL)
        return horizontal, vertical

    def grid_for(self, horizontal: AxisResolution, vertical: AxisResolution) -> GridSpec:
        return build_grid(
            horizontal.result.steps_to_edge,
            vertical.result.steps_to_edge,
            self.config.viewport_width,
            self.config.viewport_height,
            self.config.overlap_fraction,
            column_direction=horizontal.direction,
            row_direction=vertical.direction,
        )

    async def rehome(self, horizontal: AxisResolution, vertical: AxisResolution) -> None:
        """Reverse the net displacement of both scans, vertical first."""
        for resolution in (vertical, horizontal):
            net = resolution.net_steps
            if net == 0:
                continue
            back = Direction.NEGATIVE if net > 0 else Direction.POSITIVE
            logger.info(f"Re-homing {resolution.axis.value}: {abs(net)} steps {back.value}")
            await self._pan_steps(resolution.axis, back, abs(net), self.config.rehome_delay_ms)

    async def align(self, grid: GridSpec) -> None:
        """
        Overshoot along the sweep path, then reverse back to the corner.

        A start pinned against the content edge absorbs leftover drift on
        the way back. The cycle count is an empirical correction, not a
        derived value.
        """
        cycles = self.config.alignment_cycles
        if cycles == 0:
            return

        delay = self.config.alignment_delay_ms
        directions = {Axis.HORIZONTAL: grid.column_direction, Axis.VERTICAL: grid.row_direction}

        for axis, direction in directions.items():
            await self._pan_steps(axis, direction, cycles, delay)
        for axis, direction in directions.items():
            await self._pan_steps(axis, direction.opposite, cycles, delay)

    async def sweep(self, grid: GridSpec) -> list[Tile]:
        """
        Capture one tile per cell, row-major, handing each to the store.

        Returns the tiles in capture order.

        Raises:
            IncompleteGridError: if a capture or pan fails past its retries
        """
        tiles: list[Tile] = []
        steps = {'step_x': grid.effective_step_x, 'step_y': grid.effective_step_y}

        for row in range(grid.rows):
            for column in range(grid.columns):
                try:
                    await self.capture.settle()
                    frame = await self.capture.capture()
                    self.store.put(row, column, frame)
                    tiles.append(Tile(row, column, frame))
                    logger.debug(f"Saved tile r{row} c{column}")

                    if column < grid.columns - 1:
                        await self._pan_steps(Axis.HORIZONTAL, grid.column_direction, 1, 0, **steps)
                except (CaptureError, PanError) as e:
                    raise IncompleteGridError(row, column, len(tiles), e) from e

            try:
                await self._pan_steps(
                    Axis.HORIZONTAL,
                    grid.column_direction.opposite,
                    grid.columns - 1,
                    self.config.rehome_delay_ms,
                    **steps,
                )
                if row < grid.rows - 1:
                    await self._pan_steps(Axis.VERTICAL, grid.row_direction, 1, 0, **steps)
            except PanError as e:
                raise IncompleteGridError(row, grid.columns - 1, len(tiles), e) from e

        logger.info(f"Sweep finished: {len(tiles)} tiles")
        return tiles

    async def run(self) -> tuple[GridSpec, list[Tile], AxisResolution, AxisResolution]:
        """Discover, re-home, align and sweep."""
        horizontal, vertical = await self.discover()
        grid = self.grid_for(horizontal, vertical)
        logger.info(f"Estimated grid: {grid.columns} cols x {grid.rows} rows")

        await self.rehome(horizontal, vertical)
        await self.align(grid)
        tiles = await self.sweep(grid)
        return grid, tiles, horizontal, vertical
