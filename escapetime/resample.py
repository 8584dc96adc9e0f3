"""Box-filter downsampling of oversampled colour buffers."""

from __future__ import annotations

import numpy as np


def downsample(buffer: np.ndarray, factor: int) -> np.ndarray:
    """Average each ``factor`` x ``factor`` block of ``buffer`` into one pixel.

    Channel averages are truncated toward zero. ``factor == 1`` returns a copy.
    """

    if factor == 1:
        return buffer.copy()

    height, width, channels = buffer.shape
    if height % factor or width % factor:
        raise ValueError(f"buffer of {width}x{height} is not divisible by {factor}.")

    blocks = buffer.reshape(height // factor, factor, width // factor, factor, channels)
    totals = blocks.astype(np.uint32).sum(axis=(1, 3))
    return (totals // (factor * factor)).astype(buffer.dtype)
