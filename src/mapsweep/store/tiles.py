"""
Tile stores: where captured frames go.

Key requirements:
- Grid tiles keyed by (row, column) under the "grid" scope
- Edge-scan captures kept for diagnostics under their own scope
  (h_positive, v_negative, ...) so they never mix with grid tiles
- get() returns None for an absent coordinate; callers decide if that's fatal
- DirectoryTileStore writes a manifest.json so a capture directory can be
  re-stitched without the browser
"""

import json
import logging
from pathlib import Path
from typing import Protocol

from ..capture.frames import ViewportFrame

logger = logging.getLogger(__name__)

GRID_SCOPE = 'grid'
MANIFEST_NAME = 'manifest.json'
MANIFEST_VERSION = '1.0'


class TileStore(Protocol):
    """Save and load frames by grid coordinate."""

    def put(self, row: int, column: int, frame: ViewportFrame, scope: str = GRID_SCOPE) -> None:
        ...

    def get(self, row: int, column: int, scope: str = GRID_SCOPE) -> ViewportFrame | None:
        ...


class MemoryTileStore:
    """Dict-backed store, for tests and in-process runs."""

    def __init__(self):
        self.frames: dict[tuple[str, int, int], ViewportFrame] = {}

    def put(self, row: int, column: int, frame: ViewportFrame, scope: str = GRID_SCOPE) -> None:
        self.frames[(scope, row, column)] = frame

    def get(self, row: int, column: int, scope: str = GRID_SCOPE) -> ViewportFrame | None:
        return self.frames.get((scope, row, column))

    def keys(self, scope: str = GRID_SCOPE) -> list[tuple[int, int]]:
        """(row, column) pairs stored under a scope, in insertion order."""
        return [(r, c) for (s, r, c) in self.frames if s == scope]

    def __len__(self) -> int:
        return len(self.frames)


class DirectoryTileStore:
    """
    Store frames as PNG files in a directory.

    Layout:
        tile_r{row}_c{column}.png        grid tiles
        {scope}_r{row}_c{column}.png     edge-scan diagnostics
        manifest.json                    grid description
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, row: int, column: int, scope: str = GRID_SCOPE) -> Path:
        prefix = 'tile' if scope == GRID_SCOPE else scope
        return self.directory / f"{prefix}_r{row}_c{column}.png"

    def put(self, row: int, column: int, frame: ViewportFrame, scope: str = GRID_SCOPE) -> None:
        path = self.path_for(row, column, scope)
        path.write_bytes(frame.data)
        logger.debug(f"Saved {path.name}")

    def get(self, row: int, column: int, scope: str = GRID_SCOPE) -> ViewportFrame | None:
        path = self.path_for(row, column, scope)
        if not path.exists():
            return None
        return ViewportFrame.from_bytes(path.read_bytes())

    def write_manifest(self, grid: dict, metadata: dict | None = None) -> Path:
        """Write the grid description next to the tiles."""
        manifest = {
            'version': MANIFEST_VERSION,
            'grid': grid,
            'metadata': metadata or {},
        }
        path = self.directory / MANIFEST_NAME
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(manifest, f, indent=2)
        return path

    def read_manifest(self) -> dict:
        """
        Load manifest.json.

        Raises:
            FileNotFoundError: if the directory has no manifest
            ValueError: if the manifest version is unsupported
        """
        path = self.directory / MANIFEST_NAME
        if not path.exists():
            raise FileNotFoundError(f"No {MANIFEST_NAME} in {self.directory}")

        with open(path, 'r', encoding='utf-8') as f:
            manifest = json.load(f)

        version = manifest.get('version')
        if version != MANIFEST_VERSION:
            raise ValueError(f"Unsupported manifest version: {version}")
        if 'grid' not in manifest:
            raise ValueError("Missing required field: grid")

        return manifest
