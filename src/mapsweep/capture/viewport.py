"""
Viewport controllers: the renderer surface the sweep drives.

A controller knows two things: how to nudge the view by a relative pixel
offset, and how to hand back a PNG of what is currently drawn. Its true
position is never reported, so everything above this layer reasons in
relative deltas only.

PyppeteerViewport drives a map canvas in headless Chromium:
1. Navigate and wait for the canvas element
2. Pan by dragging from the canvas centre in small interpolated moves
3. Capture via canvas.toDataURL() so browser chrome never leaks in
"""

import asyncio
import base64
import re
from dataclasses import dataclass
from typing import Protocol

from pyppeteer import launch
from pyppeteer.browser import Browser
from pyppeteer.errors import PyppeteerError
from pyppeteer.page import Page

from ..config import BrowserConfig
from ..errors import DragInterruptedError, PanError, RenderUnavailableError


@dataclass(frozen=True)
class PanDelta:
    """A relative view displacement in pixels. Positive dx shows content further right."""
    dx: int
    dy: int

    def reversed(self) -> 'PanDelta':
        return PanDelta(-self.dx, -self.dy)


class ViewportController(Protocol):
    """Anything that can be panned and photographed."""

    async def pan(self, dx: int, dy: int) -> None:
        """Move the view by (dx, dy). Raises PanError if the surface is unreachable."""
        ...

    async def capture_frame(self) -> bytes:
        """Return PNG bytes of the current view. Raises RenderUnavailableError."""
        ...


DATA_URL_PATTERN = re.compile(r'^data:[^;,]+;base64,(.*)$', re.DOTALL)


def decode_data_url(data_url: str) -> bytes:
    """Decode a base64 data URL into raw bytes."""
    match = DATA_URL_PATTERN.match(data_url or '')
    if not match:
        raise RenderUnavailableError("Invalid data URL")
    try:
        return base64.b64decode(match.group(1), validate=True)
    except ValueError as e:
        raise RenderUnavailableError(f"Invalid base64 in data URL: {e}") from e


# Returns null when the canvas is missing or tainted (toDataURL throws)
CANVAS_CAPTURE_SCRIPT = """
(selector) => {
    const c = document.querySelector(selector);
    if (!c) return null;
    try {
        return c.toDataURL('image/png');
    } catch (e) {
        return null;
    }
}
"""

CANVAS_BOX_SCRIPT = """
(selector) => {
    const c = document.querySelector(selector);
    if (!c) return null;
    const r = c.getBoundingClientRect();
    return { x: r.left, y: r.top, w: r.width, h: r.height };
}
"""


class PyppeteerViewport:
    """
    Viewport controller backed by a Chromium page.

    Use as an async context manager:

        async with PyppeteerViewport(browser_config, 1280, 800) as viewport:
            await viewport.pan(960, 0)
            png = await viewport.capture_frame()
    """

    def __init__(self, config: BrowserConfig, width: int, height: int):
        self.config = config.validate()
        self.width = width
        self.height = height
        self.browser: Browser | None = None
        self.page: Page | None = None
        self.title = ""

    async def __aenter__(self) -> 'PyppeteerViewport':
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> None:
        """Launch the browser, load the map and wait for its canvas."""
        launch_options = {
            'headless': self.config.headless,
            'args': [
                '--no-sandbox',
                '--disable-setuid-sandbox',
                '--disable-dev-shm-usage',
            ],
            'handleSIGINT': False,
            'handleSIGTERM': False,
            'handleSIGHUP': False,
        }
        if self.config.executable_path:
            launch_options['executablePath'] = self.config.executable_path

        self.browser = await launch(**launch_options)
        self.page = await self.browser.newPage()
        await self.page.setViewport({'width': self.width, 'height': self.height})

        await self.page.goto(self.config.url, {
            'waitUntil': 'networkidle2',
            'timeout': int(self.config.navigation_timeout_s * 1000),
        })
        self.title = await self.page.title()

        await self.page.waitForSelector(
            self.config.canvas_selector,
            {'timeout': int(self.config.canvas_timeout_s * 1000)},
        )

    async def close(self) -> None:
        if self.browser:
            await self.browser.close()
        self.browser = None
        self.page = None

    def _require_page(self) -> Page:
        if self.page is None:
            raise RenderUnavailableError("Viewport is not open")
        return self.page

    async def pan(self, dx: int, dy: int) -> None:
        """
        Move the view by (dx, dy) by dragging the content the opposite way.

        Failures before the pointer goes down raise PanError and are safe to
        retry. Once it is down the button is always released, and a failure
        raises DragInterruptedError since the map may already have moved.
        """
        if self.page is None:
            raise PanError("Viewport is not open")

        try:
            box = await self.page.evaluate(CANVAS_BOX_SCRIPT, self.config.canvas_selector)
        except PyppeteerError as e:
            raise PanError(f"Canvas lookup failed: {e}") from e
        if not box:
            raise PanError(f"No element matches {self.config.canvas_selector!r}")

        start_x = round(box['x'] + box['w'] / 2)
        start_y = round(box['y'] + box['h'] / 2)
        steps = self.config.drag_substeps
        mouse = self.page.mouse

        try:
            await mouse.move(start_x, start_y)
            await mouse.down()
        except PyppeteerError as e:
            raise PanError(f"Drag could not start: {e}") from e

        try:
            try:
                await asyncio.sleep(self.config.drag_pause_ms / 1000)
                for i in range(1, steps + 1):
                    await mouse.move(
                        start_x - round(dx * i / steps),
                        start_y - round(dy * i / steps),
                    )
                    await asyncio.sleep(0.01)
            finally:
                await mouse.up()
        except PyppeteerError as e:
            raise DragInterruptedError(f"Drag interrupted: {e}") from e

    async def capture_frame(self) -> bytes:
        page = self._require_page()
        try:
            data_url = await page.evaluate(CANVAS_CAPTURE_SCRIPT, self.config.canvas_selector)
        except PyppeteerError as e:
            raise RenderUnavailableError(f"Canvas evaluation failed: {e}") from e

        if not data_url:
            raise RenderUnavailableError("canvas.toDataURL returned null")
        return decode_data_url(data_url)
