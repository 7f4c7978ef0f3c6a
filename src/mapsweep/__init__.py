"""
mapsweep - Reconstruct large web map canvases by panning and stitching.

Usage:
    from mapsweep import sweep_viewport, MemoryTileStore, SweepConfig

    result = await sweep_viewport(controller, MemoryTileStore(), SweepConfig())
    result.composite.save("stitched.png")
"""

__version__ = "0.1.0"

# Public API exports
from .api import (
    SweepResult,
    capture_map,
    stitch_directory,
    sweep_viewport,
)
from .capture import FrameCapture, PanDelta, PyppeteerViewport, ViewportFrame
from .config import BrowserConfig, SweepConfig, load_config
from .errors import (
    AxisUnresolvedError,
    CaptureError,
    ConfigError,
    DragInterruptedError,
    EdgeNotFoundError,
    IncompleteGridError,
    MapSweepError,
    MissingTileError,
    PanError,
    RenderUnavailableError,
)
from .scan import Axis, Direction, EdgeScanResult, GridSpec, Tile, build_grid
from .stitch import stitch
from .store import DirectoryTileStore, MemoryTileStore

__all__ = [
    # Version
    "__version__",
    # Main functions
    "sweep_viewport",
    "capture_map",
    "stitch_directory",
    "stitch",
    "build_grid",
    "load_config",
    # Types
    "SweepResult",
    "SweepConfig",
    "BrowserConfig",
    "FrameCapture",
    "PanDelta",
    "PyppeteerViewport",
    "ViewportFrame",
    "Axis",
    "Direction",
    "EdgeScanResult",
    "GridSpec",
    "Tile",
    "DirectoryTileStore",
    "MemoryTileStore",
    # Exceptions
    "MapSweepError",
    "ConfigError",
    "PanError",
    "DragInterruptedError",
    "RenderUnavailableError",
    "CaptureError",
    "EdgeNotFoundError",
    "AxisUnresolvedError",
    "IncompleteGridError",
    "MissingTileError",
]
