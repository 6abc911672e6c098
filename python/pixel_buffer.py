#!/usr/bin/env python3
import numpy as np
from PIL import Image

BYTES_PER_PIXEL = 3


class InvalidArgument(ValueError):
    pass


class PixelBuffer:
    """Packed 24-bit RGB pixels addressed as ``data[y * stride + x * 3 + c]``.

    ``data`` is borrowed, not copied: any writable, contiguous buffer works
    and is blurred in place. ``stride`` may exceed ``width * 3``; the trailing
    bytes of each row are padding and are never read or written as pixels.
    """

    def __init__(self, data, width, height, stride=None):
        if stride is None:
            stride = width * BYTES_PER_PIXEL
        if width <= 0 or height <= 0:
            raise InvalidArgument(f"Bitmap size must be positive, got {width}x{height}")
        if stride < width * BYTES_PER_PIXEL:
            raise InvalidArgument(f"Stride {stride} is too small for {width} pixels per row")

        if not isinstance(data, bytearray):
            try:
                view = memoryview(data)
            except TypeError:
                raise InvalidArgument(f"Pixel data must support the buffer protocol, got {type(data).__name__}")
            if view.readonly:
                raise InvalidArgument("Pixel data must be writable")
            if not view.c_contiguous:
                raise InvalidArgument("Pixel data must be contiguous")
            data = view.cast("B")
        if len(data) != stride * height:
            raise InvalidArgument(f"Expected {stride * height} bytes, got {len(data)}")

        self.data = data
        self.width = width
        self.height = height
        self.stride = stride

    @classmethod
    def from_array(cls, array, alignment=1):
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] != BYTES_PER_PIXEL:
            raise InvalidArgument(f"Expected an (height, width, 3) array, got shape {array.shape}")
        height, width, _ = array.shape
        row_bytes = width * BYTES_PER_PIXEL
        stride = (row_bytes + alignment - 1) // alignment * alignment

        buffer = cls(bytearray(stride * height), width, height, stride)
        buffer.pixels()[:] = array.astype(np.uint8, copy=False)
        return buffer

    @classmethod
    def from_image(cls, image, alignment=4):
        return cls.from_array(np.asarray(image.convert("RGB")), alignment=alignment)

    def offset(self, x, y, channel=0):
        if not (0 <= x < self.width and 0 <= y < self.height and 0 <= channel < BYTES_PER_PIXEL):
            raise IndexError(f"Pixel ({x}, {y}, {channel}) is outside {self.width}x{self.height}")
        return y * self.stride + x * BYTES_PER_PIXEL + channel

    def get_pixel(self, x, y):
        start = self.offset(x, y)
        return tuple(self.data[start:start + BYTES_PER_PIXEL])

    def set_pixel(self, x, y, rgb):
        start = self.offset(x, y)
        self.data[start:start + BYTES_PER_PIXEL] = bytes(rgb)

    def pixels(self, data=None):
        # Same addressing as offset(), expressed as numpy strides
        return np.ndarray(
            shape=(self.height, self.width, BYTES_PER_PIXEL),
            dtype=np.uint8,
            buffer=self.data if data is None else data,
            strides=(self.stride, BYTES_PER_PIXEL, 1),
        )

    def to_array(self):
        return np.array(self.pixels())

    def to_image(self):
        return Image.fromarray(self.to_array())

    def __repr__(self):
        return f"PixelBuffer(width={self.width}, height={self.height}, stride={self.stride})"
