"""Conversions between caller-supplied pixel sources and RGBA bytes.

Shared by the session when binding a surface at creation time and when
``draw`` is handed something other than the bound surface.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
from PIL import Image

from tabwindow.surface.array import ArraySurface, ImageSurface
from tabwindow.surface.base import DrawingSurface, SurfaceError

logger = logging.getLogger(__name__)

PixelSource = DrawingSurface | np.ndarray | Image.Image | bytes | bytearray | memoryview


def has_image_data(obj: Any) -> bool:
    """Whether ``obj`` can be asked for its pixels like a DrawingSurface."""
    return callable(getattr(obj, "get_image_data", None))


def adapt_surface(obj: Any) -> DrawingSurface | None:
    """Turn a caller-supplied surface into something the session can read.

    Returns None when ``obj`` offers no way to read pixels; the caller is
    then expected to create its own surface.
    """
    if obj is None:
        return None
    if isinstance(obj, DrawingSurface) or has_image_data(obj):
        return obj
    if isinstance(obj, np.ndarray):
        return ArraySurface.from_array(obj)
    if isinstance(obj, Image.Image):
        return ImageSurface(obj)
    logger.debug("Object of type %s exposes no pixel access", type(obj).__name__)
    return None


def surface_size(obj: Any) -> tuple[int, int] | None:
    """Best-effort ``(width, height)`` of a surface-like object."""
    if isinstance(obj, np.ndarray) and obj.ndim >= 2:
        return int(obj.shape[1]), int(obj.shape[0])
    width = getattr(obj, "width", None)
    height = getattr(obj, "height", None)
    if isinstance(width, int) and isinstance(height, int) and width > 0 and height > 0:
        return width, height
    return None


def to_rgba_bytes(source: PixelSource) -> bytes:
    """Read the RGBA bytes out of any supported pixel source.

    The length is not checked here; each channel drops frames that do
    not match the session's dimensions.

    Raises:
        SurfaceError: If ``source`` is not a supported pixel source.
    """
    if has_image_data(source):
        return bytes(source.get_image_data())
    if isinstance(source, np.ndarray):
        if source.dtype != np.uint8:
            raise SurfaceError(f"Pixel arrays must be uint8, got {source.dtype}")
        return np.ascontiguousarray(source).tobytes()
    if isinstance(source, Image.Image):
        return ImageSurface(source).get_image_data()
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    raise SurfaceError(f"Cannot read pixels from {type(source).__name__}")
