#!/usr/bin/env python3
import math
import numpy as np

def within_circle(dx, dy, radius, single_precision=False):
    distance = math.sqrt(dx * dx + dy * dy)
    if single_precision:
        # float32 rounds sqrt(r^2 + 1) down to r for large radii
        distance = np.float32(distance)
    return bool(distance <= radius)

def build_circular_mask(radius, single_precision=False):
    if radius < 0:
        raise ValueError(f"Mask radius must not be negative, got {radius}")

    size = 2 * radius + 1
    mask = np.zeros((size, size), dtype=bool)

    # mask[dx + radius, dy + radius]
    for i in range(size):
        for j in range(size):
            mask[i, j] = within_circle(i - radius, j - radius, radius, single_precision)

    mask.flags.writeable = False
    return mask

def format_mask(mask):
    lines = []
    for i in range(mask.shape[0]):
        lines.append("".join(" *" if cell else "  " for cell in mask[i]))
    return "\n".join(lines)
