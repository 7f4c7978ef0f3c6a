"""Edge scanning and raster sweep."""

from .edge import (
    Axis,
    AxisResolution,
    Direction,
    EdgeScanner,
    EdgeScanResult,
    ScanAttempt,
    axis_delta,
    scan_scope,
)
from .grid import GridSpec, GridTraverser, Tile, build_grid

__all__ = [
    'Axis',
    'AxisResolution',
    'Direction',
    'EdgeScanner',
    'EdgeScanResult',
    'ScanAttempt',
    'axis_delta',
    'scan_scope',
    'GridSpec',
    'GridTraverser',
    'Tile',
    'build_grid',
]
