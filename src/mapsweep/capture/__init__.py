"""
Capture module for mapsweep.

Provides frame fingerprinting, retrying capture and the viewport
controllers the sweep drives.
"""

from .frames import FrameCapture, ViewportFrame, fingerprint
from .viewport import (
    PanDelta,
    PyppeteerViewport,
    ViewportController,
    decode_data_url,
)

__all__ = [
    'FrameCapture',
    'ViewportFrame',
    'fingerprint',
    'PanDelta',
    'PyppeteerViewport',
    'ViewportController',
    'decode_data_url',
]
