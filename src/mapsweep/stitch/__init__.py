"""Tile compositing."""

from .compositor import TileSupplier, collect_tiles, composite_size, stitch

__all__ = [
    'TileSupplier',
    'collect_tiles',
    'composite_size',
    'stitch',
]
