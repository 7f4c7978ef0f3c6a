"""
Public API for mapsweep.

This is the primary interface for programmatic use. The CLI and any other
driver should use these functions rather than wiring the scanner, traverser
and stitcher together themselves.

Example usage:
    from mapsweep.api import capture_map
    from mapsweep.config import BrowserConfig, SweepConfig

    result = asyncio.run(capture_map(
        BrowserConfig(url="https://example.com/map/"),
        SweepConfig(),
        Path("captures"),
    ))
    print(f"Stitched {result.tile_count} tiles into {result.composite.size}")
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from PIL import Image

from .capture.frames import FrameCapture
from .capture.viewport import PyppeteerViewport, ViewportController
from .config import BrowserConfig, SweepConfig
from .scan.edge import AxisResolution
from .scan.grid import GridSpec, GridTraverser, Tile
from .stitch.compositor import stitch
from .store.tiles import DirectoryTileStore, TileStore

logger = logging.getLogger(__name__)

STITCHED_NAME = 'stitched.png'


# ============================================================================
# Public Data Classes
# ============================================================================


@dataclass
class SweepResult:
    """Everything a completed sweep produced."""

    grid: GridSpec
    tiles: list[Tile]
    horizontal: AxisResolution
    vertical: AxisResolution
    composite: Image.Image
    output_path: Path | None = None

    @property
    def tile_count(self) -> int:
        return len(self.tiles)

    @property
    def used_fallback(self) -> bool:
        return self.horizontal.used_fallback or self.vertical.used_fallback


# ============================================================================
# Main Public API Functions
# ============================================================================


async def sweep_viewport(
    controller: ViewportController,
    store: TileStore,
    config: SweepConfig | None = None,
) -> SweepResult:
    """
    Scan, sweep and stitch whatever the controller is showing.

    Either a complete grid is captured and stitched, or an error is raised
    and no composite exists.

    Raises:
        AxisUnresolvedError: if an axis has no edge in either direction
        CaptureError: if an edge-scan capture fails past its retries
        IncompleteGridError: if the raster sweep could not capture a cell
        MissingTileError: if the store lost a tile between sweep and stitch
    """
    config = (config or SweepConfig()).validate()
    capture = FrameCapture(controller, config)
    traverser = GridTraverser(capture, store, config)

    grid, tiles, horizontal, vertical = await traverser.run()

    if isinstance(store, DirectoryTileStore):
        store.write_manifest(grid.to_dict(), metadata={
            'capturedAt': datetime.now(timezone.utc).isoformat(),
            'horizontalFallback': horizontal.used_fallback,
            'verticalFallback': vertical.used_fallback,
            'sweep': config.to_dict(),
        })

    logger.info("Stitching captured tiles...")
    composite = stitch(grid, lambda row, column: store.get(row, column))

    return SweepResult(
        grid=grid,
        tiles=tiles,
        horizontal=horizontal,
        vertical=vertical,
        composite=composite,
    )


async def capture_map(
    browser_config: BrowserConfig,
    sweep_config: SweepConfig,
    output_dir: Path,
) -> SweepResult:
    """
    Open a map in Chromium, sweep it and save the stitched PNG.

    Tiles, scan diagnostics and manifest.json land in output_dir alongside
    stitched.png.
    """
    output_dir = Path(output_dir)
    store = DirectoryTileStore(output_dir)

    logger.info(f"Navigating to {browser_config.url}")
    async with PyppeteerViewport(
        browser_config,
        sweep_config.viewport_width,
        sweep_config.viewport_height,
    ) as viewport:
        logger.info(f"Canvas found on {viewport.title or browser_config.url}")
        result = await sweep_viewport(viewport, store, sweep_config)

    result.output_path = output_dir / STITCHED_NAME
    result.composite.save(result.output_path)
    logger.info(f"Saved stitched image to {result.output_path}")
    return result


def stitch_directory(directory: Path) -> tuple[GridSpec, Image.Image]:
    """
    Re-stitch a capture directory from its manifest.

    Raises:
        FileNotFoundError: if the directory has no manifest.json
        ValueError: if the manifest is malformed
        MissingTileError: if a grid tile file is missing
    """
    store = DirectoryTileStore(Path(directory))
    manifest = store.read_manifest()
    grid = GridSpec.from_dict(manifest['grid'])
    return grid, stitch(grid, lambda row, column: store.get(row, column))
