#!/usr/bin/env python3
import os
import time
import logging
import threading
import numpy as np
from dataclasses import dataclass
from functools import partial
from typing import Optional
from concurrent.futures import Future, ThreadPoolExecutor

from circular_kernel import build_circular_mask, format_mask
from pixel_buffer import InvalidArgument, PixelBuffer

logger = logging.getLogger(__name__)


@dataclass
class BlurConfig:
    """Execution options shared by both blur engines.

    ``num_workers`` of ``None`` uses one thread per CPU; ``1`` blurs the rows
    sequentially in the calling thread.
    ``clamp_vertical=False`` keeps the fast engine's vertical window at
    ``min(y, y + radius)``, which leaves the row itself out of its window.
    ``single_precision=True`` reproduces float32 rounding. The fast engine
    sums ``value / count`` in float32. The exact engine compares float32
    distances when building its mask and rounds its mean to float32 before
    truncation.
    """
    num_workers: Optional[int] = None
    clamp_vertical: bool = True
    single_precision: bool = False

    def __post_init__(self):
        if self.num_workers is not None and self.num_workers < 1:
            raise InvalidArgument(f"Worker count must be positive, got {self.num_workers}")

    def resolved_workers(self) -> int:
        if self.num_workers is None:
            return os.cpu_count() or 1
        return self.num_workers


def truncate_to_byte(values):
    # Toward zero, never rounded
    return np.clip(np.trunc(values), 0, 255).astype(np.uint8)


def blur_exact_row(pixels, mask, radius, row, out_row, single_precision=False):
    height, width, channels = pixels.shape
    sums = np.zeros((width, channels), dtype=np.int64)
    counts = np.zeros(width, dtype=np.int64)

    for dx in range(-radius, radius + 1):
        # Output columns whose neighbour at x + dx lies inside the image
        start_x = max(0, -dx)
        end_x = min(width, width - dx)
        for dy in range(-radius, radius + 1):
            if not mask[dx + radius, dy + radius]:
                continue
            y = row + dy
            if y < 0 or y >= height:
                continue
            sums[start_x:end_x] += pixels[y, start_x + dx:end_x + dx]
            counts[start_x:end_x] += 1

    means = sums / counts[:, None]
    if single_precision:
        means = means.astype(np.float32)
    out_row[:] = truncate_to_byte(means)


def blur_fast_row(pixels, radius, row, out_row, clamp_vertical=True, single_precision=False):
    height, width, channels = pixels.shape
    min_y = max(0, row - radius)
    max_y = min(height if clamp_vertical else row, row + radius)
    if max_y <= min_y:
        out_row[:] = 0
        return

    columns = np.arange(width)
    min_x = np.maximum(0, columns - radius)
    max_x = np.minimum(width, columns + radius)
    counts = (max_x - min_x) * (max_y - min_y)

    if single_precision:
        divisor = counts.astype(np.float32)[:, None]
        sums = np.zeros((width, channels), dtype=np.float32)
    else:
        sums = np.zeros((width, channels), dtype=np.int64)

    # k-th column of every pixel's window, x outer and y inner
    for k in range(2 * radius):
        x = min_x + k
        active = x < max_x
        cols = x[active]
        if single_precision:
            for y in range(min_y, max_y):
                sums[active] += pixels[y, cols] / divisor[active]
        else:
            sums[active] += pixels[min_y:max_y, cols].sum(axis=0, dtype=np.int64)

    if single_precision:
        out_row[:] = truncate_to_byte(sums)
    else:
        out_row[:] = truncate_to_byte(sums / counts[:, None])


def validate_arguments(buffer, radius):
    if buffer is None:
        raise InvalidArgument("Pixel buffer must not be None")
    if not isinstance(buffer, PixelBuffer):
        raise InvalidArgument(f"Expected a PixelBuffer, got {type(buffer).__name__}")
    if isinstance(radius, bool) or not isinstance(radius, (int, np.integer)):
        raise InvalidArgument(f"Pixel radius must be an integer, got {radius!r}")
    if radius <= 0:
        raise InvalidArgument("Pixel radius must be positive")
    if radius >= buffer.width:
        raise InvalidArgument("Pixel radius must be less than bitmap width")
    if radius >= buffer.height:
        raise InvalidArgument("Pixel radius must be less than bitmap height")


def _blur_rows(buffer, radius, fast, config):
    radius = int(radius)
    height = buffer.height
    num_workers = config.resolved_workers()

    pixels = buffer.pixels()
    output = bytearray(buffer.data)
    out_pixels = buffer.pixels(output)

    if fast:
        blur_row = partial(blur_fast_row, pixels, radius,
                           clamp_vertical=config.clamp_vertical,
                           single_precision=config.single_precision)
    else:
        mask = build_circular_mask(radius, config.single_precision)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Circular mask for radius %d:\n%s", radius, format_mask(mask))
        blur_row = partial(blur_exact_row, pixels, mask, radius,
                           single_precision=config.single_precision)

    logger.debug("Blurring %dx%d bitmap, radius %d, %s mode, %d workers",
                 buffer.width, height, radius, "fast" if fast else "exact", num_workers)
    start_time = time.time()

    if num_workers == 1:
        for row in range(height):
            blur_row(row, out_pixels[row])
    else:
        with ThreadPoolExecutor(max_workers=num_workers) as executor:
            futures = [executor.submit(blur_row, row, out_pixels[row]) for row in range(height)]
            try:
                for future in futures:
                    future.result()
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    # Publish every row at once
    memoryview(buffer.data)[:] = output
    logger.debug("Blur took %.2fms", (time.time() - start_time) * 1000)
    return buffer


def apply_blur(buffer, radius, fast=True, config=None):
    validate_arguments(buffer, radius)
    return _blur_rows(buffer, radius, fast, config or BlurConfig())


def apply_blur_async(buffer, radius, fast=True, config=None) -> Future:
    """Validate now, blur on a background thread.

    The returned future resolves to ``buffer`` once every row has been
    rewritten, or carries the exception of the first failing row, in which
    case the buffer is left untouched.
    """
    validate_arguments(buffer, radius)
    config = config or BlurConfig()
    future = Future()
    future.set_running_or_notify_cancel()

    def run():
        try:
            result = _blur_rows(buffer, radius, fast, config)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    threading.Thread(target=run, name="blur-dispatch", daemon=True).start()
    return future
