"""
Exception taxonomy for map sweeps.

Transient renderer failures (PanError, RenderUnavailableError) are retried
by the frame capture layer, except a DragInterruptedError, which may have
moved the view. Everything else is escalated to the phase that
owns the viewport, which either falls back or aborts the run.
"""


class MapSweepError(Exception):
    """Base class for all sweep failures."""
    pass


class ConfigError(MapSweepError, ValueError):
    """Raised when a sweep or browser configuration is invalid."""
    pass


class PanError(MapSweepError):
    """Raised when the viewport cannot be panned."""
    pass


class DragInterruptedError(PanError):
    """Raised when a drag fails after the pointer went down.

    Part of the move may already have landed, so it is never retried.
    """
    pass


class RenderUnavailableError(MapSweepError):
    """Raised when the renderer has no usable image to hand back."""
    pass


class CaptureError(MapSweepError):
    """Raised when a frame could not be captured after all retries."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class EdgeNotFoundError(MapSweepError):
    """Raised when an edge scan hits its iteration cap."""

    def __init__(self, axis, direction, steps_taken: int, iterations: int):
        super().__init__(
            f"No edge found scanning {axis.value} {direction.value} "
            f"after {iterations} iterations"
        )
        self.axis = axis
        self.direction = direction
        self.steps_taken = steps_taken
        self.iterations = iterations


class AxisUnresolvedError(EdgeNotFoundError):
    """Raised when neither scan direction found an edge on an axis."""

    def __init__(self, axis, failures: list[EdgeNotFoundError]):
        last = failures[-1]
        super().__init__(axis, last.direction, last.steps_taken, last.iterations)
        self.failures = failures
        self.args = (
            f"No edge found on {axis.value} axis in either direction",
        )


class IncompleteGridError(MapSweepError):
    """Raised when a cell of the raster sweep could not be captured."""

    def __init__(self, row: int, column: int, captured: int, cause: Exception):
        super().__init__(
            f"Sweep failed at r{row} c{column} after {captured} tiles: {cause}"
        )
        self.row = row
        self.column = column
        self.captured = captured


class MissingTileError(MapSweepError):
    """Raised when stitching finds grid cells without a tile."""

    def __init__(self, missing: list[tuple[int, int]]):
        preview = ', '.join(f"r{r} c{c}" for r, c in missing[:5])
        more = f" (+{len(missing) - 5} more)" if len(missing) > 5 else ""
        super().__init__(f"Missing {len(missing)} tiles: {preview}{more}")
        self.missing = missing
