"""Abstract base class for drawing surfaces.

A drawing surface owns the pixels a session streams to its tabs. The
session only ever reads the whole buffer (``get_image_data``) when asked
to draw; writing (``put_image_data``) is there for callers that render
elsewhere and want to push a finished frame into the surface.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

BYTES_PER_PIXEL = 4


def frame_size(width: int, height: int) -> int:
    """Byte length of an RGBA8 frame of the given dimensions."""
    return width * height * BYTES_PER_PIXEL


class DrawingSurface(ABC):
    """Abstract interface for an RGBA8 pixel buffer.

    Pixels are row-major, four bytes per pixel in R, G, B, A order, with
    the origin at the top-left corner -- the layout the browser's
    ``ImageData`` expects.

    Example usage::

        surface = ArraySurface(640, 480)
        surface.pixels[10:20, 10:20] = (255, 0, 0, 255)
        session.draw(surface)
    """

    @property
    @abstractmethod
    def width(self) -> int:
        """Width of the surface in pixels."""
        ...

    @property
    @abstractmethod
    def height(self) -> int:
        """Height of the surface in pixels."""
        ...

    @abstractmethod
    def get_image_data(self) -> bytes:
        """Return the current pixels as ``width*height*4`` RGBA bytes."""
        ...

    @abstractmethod
    def put_image_data(self, data: bytes | bytearray | memoryview) -> None:
        """Replace the pixels with an RGBA buffer of the same dimensions.

        Raises:
            SurfaceError: If the buffer length does not match the surface.
        """
        ...

    @property
    def frame_size(self) -> int:
        return frame_size(self.width, self.height)

    def _check_length(self, data: bytes | bytearray | memoryview) -> None:
        length = memoryview(data).nbytes
        if length != self.frame_size:
            raise SurfaceError(
                f"Expected {self.frame_size} bytes for a {self.width}x{self.height} "
                f"RGBA frame, got {length}"
            )


class SurfaceError(Exception):
    """Raised when pixel data cannot be read from or written to a surface."""
