"""Drawing surfaces: the RGBA pixel buffers a session streams to its tabs."""

from tabwindow.surface.array import ArraySurface, ImageSurface
from tabwindow.surface.base import DrawingSurface, SurfaceError, frame_size
from tabwindow.surface.convert import adapt_surface, to_rgba_bytes

__all__ = [
    "ArraySurface",
    "DrawingSurface",
    "ImageSurface",
    "SurfaceError",
    "adapt_surface",
    "frame_size",
    "to_rgba_bytes",
]
