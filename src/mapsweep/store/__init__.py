"""Tile stores for grid tiles and scan diagnostics."""

from .tiles import (
    GRID_SCOPE,
    DirectoryTileStore,
    MemoryTileStore,
    TileStore,
)

__all__ = [
    'GRID_SCOPE',
    'DirectoryTileStore',
    'MemoryTileStore',
    'TileStore',
]
