"""Concrete drawing surfaces backed by numpy arrays and PIL images."""

from __future__ import annotations

import logging

import numpy as np
from PIL import Image

from tabwindow.surface.base import BYTES_PER_PIXEL, DrawingSurface, SurfaceError

logger = logging.getLogger(__name__)


class ArraySurface(DrawingSurface):
    """Surface over a ``(height, width, 4)`` uint8 numpy array.

    The array is used without copying, so callers can draw straight into
    ``pixels`` with numpy slicing and the next ``get_image_data`` sees it.
    """

    def __init__(self, width: int, height: int, pixels: np.ndarray | None = None) -> None:
        if width <= 0 or height <= 0:
            raise SurfaceError(f"Surface dimensions must be positive, got {width}x{height}")
        if pixels is None:
            pixels = np.zeros((height, width, BYTES_PER_PIXEL), dtype=np.uint8)
        elif pixels.shape != (height, width, BYTES_PER_PIXEL) or pixels.dtype != np.uint8:
            raise SurfaceError(
                f"Expected a ({height}, {width}, 4) uint8 array, "
                f"got {pixels.shape} {pixels.dtype}"
            )
        self._width = width
        self._height = height
        self._pixels = pixels

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> ArraySurface:
        """Wrap an existing RGBA array, taking the dimensions from its shape."""
        if pixels.ndim != 3 or pixels.shape[2] != BYTES_PER_PIXEL:
            raise SurfaceError(f"Expected an (height, width, 4) array, got shape {pixels.shape}")
        height, width = pixels.shape[:2]
        return cls(width, height, pixels)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def pixels(self) -> np.ndarray:
        """The backing array; writes are visible to the next draw."""
        return self._pixels

    def get_image_data(self) -> bytes:
        return np.ascontiguousarray(self._pixels).tobytes()

    def put_image_data(self, data: bytes | bytearray | memoryview) -> None:
        self._check_length(data)
        incoming = np.frombuffer(data, dtype=np.uint8)
        self._pixels[...] = incoming.reshape(self._height, self._width, BYTES_PER_PIXEL)

    def fill(self, color: tuple[int, int, int, int]) -> None:
        """Set every pixel to one RGBA color."""
        self._pixels[...] = color


class ImageSurface(DrawingSurface):
    """Surface over a PIL image.

    Non-RGBA images are converted on read; writes are pasted back into the
    wrapped image, so the caller's ``Image`` object stays the source of truth.
    """

    def __init__(self, image: Image.Image) -> None:
        self._image = image

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def image(self) -> Image.Image:
        return self._image

    def get_image_data(self) -> bytes:
        image = self._image
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return image.tobytes()

    def put_image_data(self, data: bytes | bytearray | memoryview) -> None:
        self._check_length(data)
        frame = Image.frombytes("RGBA", self._image.size, bytes(data))
        if self._image.mode != "RGBA":
            frame = frame.convert(self._image.mode)
        self._image.paste(frame)
