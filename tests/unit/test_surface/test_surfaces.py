"""Tests for drawing surfaces and pixel source conversion."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from tabwindow.surface.array import ArraySurface, ImageSurface
from tabwindow.surface.base import SurfaceError, frame_size
from tabwindow.surface.convert import adapt_surface, surface_size, to_rgba_bytes


class TestArraySurface:
    def test_starts_transparent_black(self) -> None:
        surface = ArraySurface(4, 3)
        assert surface.frame_size == 48
        assert surface.get_image_data() == bytes(48)

    def test_writes_to_pixels_are_visible(self) -> None:
        surface = ArraySurface(2, 2)
        surface.pixels[0, 1] = (1, 2, 3, 4)
        data = surface.get_image_data()
        # row-major: pixel (x=1, y=0) is the second pixel
        assert data[4:8] == bytes([1, 2, 3, 4])

    def test_put_image_data(self) -> None:
        surface = ArraySurface(2, 1)
        surface.put_image_data(bytes([9, 8, 7, 6, 5, 4, 3, 2]))
        assert surface.pixels[0, 1].tolist() == [5, 4, 3, 2]

    def test_put_wrong_length(self) -> None:
        surface = ArraySurface(2, 2)
        with pytest.raises(SurfaceError, match="Expected 16 bytes"):
            surface.put_image_data(bytes(15))

    def test_fill(self) -> None:
        surface = ArraySurface(2, 2)
        surface.fill((255, 0, 0, 255))
        assert surface.get_image_data() == bytes([255, 0, 0, 255]) * 4

    def test_from_array_shares_memory(self) -> None:
        pixels = np.zeros((3, 5, 4), dtype=np.uint8)
        surface = ArraySurface.from_array(pixels)
        assert (surface.width, surface.height) == (5, 3)
        pixels[...] = 1
        assert surface.get_image_data() == bytes([1]) * 60

    @pytest.mark.parametrize(
        "pixels",
        [
            np.zeros((3, 5), dtype=np.uint8),
            np.zeros((3, 5, 3), dtype=np.uint8),
        ],
    )
    def test_from_array_rejects_bad_shape(self, pixels: np.ndarray) -> None:
        with pytest.raises(SurfaceError):
            ArraySurface.from_array(pixels)

    def test_rejects_bad_dtype(self) -> None:
        with pytest.raises(SurfaceError):
            ArraySurface(2, 2, np.zeros((2, 2, 4), dtype=np.float32))

    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(SurfaceError):
            ArraySurface(0, 2)


class TestImageSurface:
    def test_rgb_image_converted(self) -> None:
        image = Image.new("RGB", (2, 1), (10, 20, 30))
        surface = ImageSurface(image)
        assert surface.get_image_data() == bytes([10, 20, 30, 255]) * 2

    def test_put_image_data_writes_back(self) -> None:
        image = Image.new("RGBA", (1, 1))
        surface = ImageSurface(image)
        surface.put_image_data(bytes([1, 2, 3, 4]))
        assert image.getpixel((0, 0)) == (1, 2, 3, 4)


class TestConversions:
    def test_frame_size(self) -> None:
        assert frame_size(1280, 720) == 1280 * 720 * 4

    def test_adapt_surface(self) -> None:
        existing = ArraySurface(2, 2)
        assert adapt_surface(existing) is existing
        assert isinstance(adapt_surface(np.zeros((2, 2, 4), dtype=np.uint8)), ArraySurface)
        assert isinstance(adapt_surface(Image.new("RGBA", (2, 2))), ImageSurface)
        assert adapt_surface(None) is None
        assert adapt_surface(object()) is None

    def test_adapt_duck_typed_surface(self) -> None:
        class Context:
            def get_image_data(self) -> bytes:
                return bytes(4)

        ctx = Context()
        assert adapt_surface(ctx) is ctx

    def test_surface_size(self) -> None:
        assert surface_size(np.zeros((3, 5, 4), dtype=np.uint8)) == (5, 3)
        assert surface_size(Image.new("RGBA", (7, 2))) == (7, 2)
        assert surface_size(object()) is None

    def test_to_rgba_bytes(self) -> None:
        assert to_rgba_bytes(b"\x01\x02") == b"\x01\x02"
        assert to_rgba_bytes(bytearray(b"\x03")) == b"\x03"
        assert to_rgba_bytes(memoryview(b"\x04")) == b"\x04"
        assert to_rgba_bytes(np.ones((1, 1, 4), dtype=np.uint8)) == bytes([1]) * 4
        assert to_rgba_bytes(Image.new("RGB", (1, 1), (5, 6, 7))) == bytes([5, 6, 7, 255])
        assert to_rgba_bytes(ArraySurface(1, 1)) == bytes(4)

    def test_to_rgba_bytes_non_contiguous(self) -> None:
        pixels = np.arange(2 * 2 * 4, dtype=np.uint8).reshape(2, 2, 4)
        flipped = pixels[:, ::-1]
        assert to_rgba_bytes(flipped) == flipped.copy().tobytes()

    def test_to_rgba_bytes_rejects_unknown(self) -> None:
        with pytest.raises(SurfaceError):
            to_rgba_bytes("pixels")  # type: ignore[arg-type]
        with pytest.raises(SurfaceError):
            to_rgba_bytes(np.zeros((1, 1, 4), dtype=np.float64))
