"""
Frame capture with retries.

Key requirements:
- The only code that calls the controller's capture primitive
- Fingerprint every frame (MD5 of the PNG bytes) as a cheap equality proxy
- Retry transient render failures a bounded number of times with a short
  fixed delay, then raise CaptureError
- Bound every controller call with a timeout so no step can hang the sweep
"""

import asyncio
import hashlib
import io
import logging
from dataclasses import dataclass, field

from PIL import Image

from ..config import SweepConfig
from ..errors import CaptureError, DragInterruptedError, PanError, RenderUnavailableError
from .viewport import PanDelta, ViewportController

logger = logging.getLogger(__name__)


def fingerprint(data: bytes) -> str:
    """Hex MD5 of a frame buffer."""
    return hashlib.md5(data).hexdigest()


@dataclass(frozen=True)
class ViewportFrame:
    """One still image of the viewport. Immutable once captured."""
    data: bytes = field(repr=False)
    fingerprint: str

    @classmethod
    def from_bytes(cls, data: bytes) -> 'ViewportFrame':
        return cls(data=bytes(data), fingerprint=fingerprint(data))

    def to_image(self) -> Image.Image:
        """Decode the frame into an RGBA Pillow image."""
        image = Image.open(io.BytesIO(self.data))
        image.load()
        if image.mode != 'RGBA':
            image = image.convert('RGBA')
        return image


class FrameCapture:
    """Capture frames and issue pans against a viewport controller."""

    def __init__(self, controller: ViewportController, config: SweepConfig):
        self.controller = controller
        self.config = config

    async def capture(self) -> ViewportFrame:
        """
        Capture the current view.

        Raises:
            CaptureError: if every attempt failed or returned an empty image
        """
        attempts = self.config.capture_retry_count
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                data = await asyncio.wait_for(
                    self.controller.capture_frame(),
                    timeout=self.config.capture_timeout_s,
                )
                if not data:
                    raise RenderUnavailableError("Renderer returned an empty image")
                return ViewportFrame.from_bytes(data)
            except (RenderUnavailableError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning(f"Capture attempt {attempt}/{attempts} failed: {str(e) or 'timed out'}")

            if attempt < attempts:
                await asyncio.sleep(self.config.capture_retry_delay_ms / 1000)

        raise CaptureError(
            f"Failed to capture frame after {attempts} attempts",
            attempts=attempts,
        ) from last_error

    async def pan(self, delta: PanDelta) -> None:
        """
        Move the viewport by a relative delta.

        PanError from the controller means the move never reached the
        surface, so it is retried. A timeout or DragInterruptedError is not
        retried because the drag may still have landed.
        """
        attempts = self.config.capture_retry_count

        for attempt in range(1, attempts + 1):
            try:
                await asyncio.wait_for(
                    self.controller.pan(delta.dx, delta.dy),
                    timeout=self.config.pan_timeout_s,
                )
                return
            except asyncio.TimeoutError as e:
                raise PanError(
                    f"Pan ({delta.dx}, {delta.dy}) timed out after {self.config.pan_timeout_s}s"
                ) from e
            except DragInterruptedError:
                raise
            except PanError as e:
                if attempt == attempts:
                    raise
                logger.warning(f"Pan attempt {attempt}/{attempts} failed: {e}")
                await asyncio.sleep(self.config.capture_retry_delay_ms / 1000)

    async def settle(self, delay_ms: int | None = None) -> None:
        """Wait for the renderer to finish drawing after a pan."""
        if delay_ms is None:
            delay_ms = self.config.settle_delay_ms
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)
