"""
Compose grid tiles into one image.

Key requirements:
- Canvas is (columns-1)*step_x + tile_width by (rows-1)*step_y + tile_height
- Tiles drawn row-major, column ascending at (column*step_x, row*step_y);
  an axis swept in the negative direction is laid out mirrored so the
  composite always reads in content order
- Overlaps are last-writer-wins: no blending, no seam search
- Every cell must have a tile; a gap fails before any canvas is allocated
"""

import logging
from typing import Callable

from PIL import Image

from ..capture.frames import ViewportFrame
from ..errors import MissingTileError
from ..scan.grid import GridSpec

logger = logging.getLogger(__name__)

TileSupplier = Callable[[int, int], ViewportFrame | None]


def composite_size(grid: GridSpec) -> tuple[int, int]:
    """(width, height) of the stitched image for a grid."""
    return grid.composite_size


def collect_tiles(grid: GridSpec, tile_supplier: TileSupplier) -> dict[tuple[int, int], ViewportFrame]:
    """
    Fetch every cell's frame.

    Raises:
        MissingTileError: listing every cell the supplier had nothing for
    """
    frames: dict[tuple[int, int], ViewportFrame] = {}
    missing: list[tuple[int, int]] = []

    for row, column in grid.cells():
        frame = tile_supplier(row, column)
        if frame is None:
            missing.append((row, column))
        else:
            frames[(row, column)] = frame

    if missing:
        raise MissingTileError(missing)
    return frames


def stitch(grid: GridSpec, tile_supplier: TileSupplier) -> Image.Image:
    """Stitch a complete grid into an RGBA image."""
    frames = collect_tiles(grid, tile_supplier)

    width, height = grid.composite_size
    logger.info(f"Stitched size: {width} x {height}")
    canvas = Image.new('RGBA', (width, height), (0, 0, 0, 0))
    tile_size = (grid.tile_width, grid.tile_height)

    for row, column in grid.cells():
        image = frames[(row, column)].to_image()
        if image.size != tile_size:
            logger.debug(f"Resizing r{row} c{column} from {image.size} to {tile_size}")
            image = image.resize(tile_size)
        # No mask: overlapping pixels are replaced outright
        canvas.paste(image, grid.offset(row, column))

    return canvas
