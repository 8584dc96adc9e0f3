"""Cyclic anchor palettes for escape-index colouring."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable

import numpy as np
from matplotlib import colormaps

from .errors import RenderConfigError
from .escape import EscapeResult, Inside

PALETTE_SCALE = 0.1
INSIDE_COLOUR = (0, 0, 0)

_HEX_COLOUR = re.compile(r"[0-9a-fA-F]{6}")

DEFAULT_ANCHORS = (
    (0, 7, 100),
    (32, 107, 203),
    (237, 255, 255),
    (255, 170, 0),
    (0, 2, 0),
)


def _hex_rgb(code: str) -> tuple[int, int, int]:
    hex_color = code.strip().lstrip("#")
    if not _HEX_COLOUR.fullmatch(hex_color):
        raise RenderConfigError(f"anchor colour {code!r} must be in the form #RRGGBB.")
    return tuple(int(hex_color[i:i + 2], 16) for i in (0, 2, 4))


@dataclass(frozen=True)
class Palette:
    """An ordered, cyclic sequence of RGB anchors.

    An escape index ``v`` is scaled by ``scale`` and wrapped into
    ``[0, len(anchors))``; the colour is the truncated linear blend of the two
    anchors either side of that position. A single anchor gives a solid colour.
    """

    anchors: tuple[tuple[int, int, int], ...] = DEFAULT_ANCHORS
    scale: float = PALETTE_SCALE

    def __post_init__(self) -> None:
        anchors = tuple(tuple(int(channel) for channel in anchor) for anchor in self.anchors)
        if not anchors:
            raise RenderConfigError("palette needs at least one anchor colour.")
        for anchor in anchors:
            if len(anchor) != 3 or not all(0 <= channel <= 255 for channel in anchor):
                raise RenderConfigError(f"anchor {anchor} is not an RGB triple in [0, 255].")
        if not math.isfinite(self.scale) or self.scale <= 0:
            raise RenderConfigError("palette scale must be a positive finite number.")
        object.__setattr__(self, "anchors", anchors)

    @classmethod
    def from_hex(cls, codes: Iterable[str], scale: float = PALETTE_SCALE) -> "Palette":
        return cls(tuple(_hex_rgb(code) for code in codes), scale)

    @classmethod
    def from_colormap(cls, name: str, count: int = 16, scale: float = PALETTE_SCALE) -> "Palette":
        """Sample ``count`` evenly spaced anchors from a matplotlib colormap."""

        if count < 1:
            raise RenderConfigError("a colormap palette needs at least one anchor.")
        try:
            cmap = colormaps[name]
        except KeyError as exc:
            raise RenderConfigError(f"unknown matplotlib colormap {name!r}.") from exc
        rgba = np.asarray(cmap(np.linspace(0.0, 1.0, count, endpoint=False)))
        rgb = np.uint8(np.clip(rgba[:, :3] * 255, 0, 255))
        return cls(tuple(tuple(int(channel) for channel in row) for row in rgb), scale)

    def hex_anchors(self) -> list[str]:
        return [f"#{r:02x}{g:02x}{b:02x}" for r, g, b in self.anchors]

    def colourize(self, escaped: np.ndarray, index: np.ndarray) -> np.ndarray:
        """Colour an array of escape data; returns ``uint8`` RGB with a trailing axis of 3."""

        escaped = np.asarray(escaped, dtype=bool)
        table = np.asarray(self.anchors, dtype=np.float64)
        length = len(table)

        t = np.mod(np.asarray(index, dtype=np.float64) * self.scale, length)
        lower = np.floor(t)
        frac = (t - lower)[..., np.newaxis]
        a = table[lower.astype(np.int64) % length]
        b = table[np.ceil(t).astype(np.int64) % length]

        rgb = np.clip(np.trunc(a + (b - a) * frac), 0, 255).astype(np.uint8)
        rgb[~escaped] = INSIDE_COLOUR
        return rgb

    def colour(self, result: EscapeResult) -> tuple[int, int, int]:
        if isinstance(result, Inside):
            return INSIDE_COLOUR
        rgb = self.colourize(np.array([True]), np.array([result.index]))[0]
        return tuple(int(channel) for channel in rgb)


DEFAULT_PALETTE = Palette()
