"""Public API for escape-time fractal rendering."""

from .errors import RenderConfigError
from .escape import (
    DEFAULT_ESCAPE,
    INSIDE,
    EscapeConfig,
    EscapeResult,
    Inside,
    Outside,
    escape_field,
    escape_time,
)
from .palette import DEFAULT_PALETTE, INSIDE_COLOUR, Palette
from .plane import SamplingMetadata, column_points, pixel_to_complex, plane_scale, sampling_metadata
from .renderer import RenderParameters, RenderResult, render, render_field, validate_params
from .resample import downsample

__all__ = [
    "DEFAULT_ESCAPE",
    "DEFAULT_PALETTE",
    "INSIDE",
    "INSIDE_COLOUR",
    "EscapeConfig",
    "EscapeResult",
    "Inside",
    "Outside",
    "Palette",
    "RenderConfigError",
    "RenderParameters",
    "RenderResult",
    "SamplingMetadata",
    "column_points",
    "downsample",
    "escape_field",
    "escape_time",
    "pixel_to_complex",
    "plane_scale",
    "render",
    "render_field",
    "sampling_metadata",
    "validate_params",
]
