"""Mapping between oversampled pixel indices and the complex plane."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

SPAN = 4.0


@dataclass(frozen=True)
class SamplingMetadata:
    """Metadata describing the sampling grid of a render."""

    width: int
    height: int
    scale: float
    re_min: float
    im_min: float
    re_max: float
    im_max: float


def plane_scale(width: int, height: int, zoom: float) -> float:
    """Plane units covered by one pixel; the short side spans ``SPAN / zoom``."""

    return SPAN / min(width, height) / zoom


def pixel_to_complex(
    x: int,
    y: int,
    width: int,
    height: int,
    target: tuple[float, float],
    zoom: float,
) -> tuple[float, float]:
    """Map pixel ``(x, y)`` of a ``width`` x ``height`` grid to a plane point.

    Pixel ``(width // 2, height // 2)`` lands exactly on ``target``.
    """

    scale = plane_scale(width, height, zoom)
    re = float(x - width // 2) * scale + target[0]
    im = float(y - height // 2) * scale + target[1]
    return re, im


def column_points(
    x: int,
    width: int,
    height: int,
    target: tuple[float, float],
    zoom: float,
) -> tuple[float, np.ndarray]:
    """Return the real part of column ``x`` and the imaginary part of each row."""

    scale = plane_scale(width, height, zoom)
    re = float(x - width // 2) * scale + target[0]
    rows = np.arange(height, dtype=np.int64) - height // 2
    im = rows.astype(np.float64) * np.float64(scale) + np.float64(target[1])
    return re, im


def sampling_metadata(
    width: int,
    height: int,
    target: tuple[float, float],
    zoom: float,
) -> SamplingMetadata:
    re_min, im_min = pixel_to_complex(0, 0, width, height, target, zoom)
    re_max, im_max = pixel_to_complex(width - 1, height - 1, width, height, target, zoom)
    return SamplingMetadata(
        width=width,
        height=height,
        scale=plane_scale(width, height, zoom),
        re_min=re_min,
        im_min=im_min,
        re_max=re_max,
        im_max=im_max,
    )
