"""Parallel rendering of escape-time fields."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import RenderConfigError
from .escape import DEFAULT_ESCAPE, EscapeConfig, escape_field
from .palette import DEFAULT_PALETTE, Palette
from .plane import SamplingMetadata, column_points, plane_scale, sampling_metadata
from .resample import downsample

COLUMNS_PER_TASK = 8


@dataclass(frozen=True)
class RenderParameters:
    """Parameters that describe a single render of the Mandelbrot or a Julia set."""

    width: int
    height: int
    supersample: int = 1
    max_iterations: int = 100
    target: tuple[float, float] = (0.0, 0.0)
    zoom: float = 1.0
    julia_seed: Optional[tuple[float, float]] = None

    @property
    def oversampled_size(self) -> tuple[int, int]:
        return self.width * self.supersample, self.height * self.supersample

    @property
    def family(self) -> str:
        return "mandelbrot" if self.julia_seed is None else "julia"


@dataclass(frozen=True)
class RenderResult:
    """Container for a finished render."""

    image: np.ndarray
    params: RenderParameters
    metadata: SamplingMetadata
    inside_fraction: float


def _finite_pair(pair) -> bool:
    return len(pair) == 2 and all(math.isfinite(value) for value in pair)


def validate_params(params: RenderParameters, config: EscapeConfig = DEFAULT_ESCAPE) -> None:
    """Reject configurations that cannot produce a meaningful image."""

    if params.width < 1 or params.height < 1:
        raise RenderConfigError(f"resolution must be positive, got {params.width}x{params.height}.")
    if params.supersample < 1:
        raise RenderConfigError(f"supersample factor must be at least 1, got {params.supersample}.")
    if params.max_iterations < 1:
        raise RenderConfigError(f"max_iterations must be positive, got {params.max_iterations}.")
    if not math.isfinite(params.zoom) or params.zoom <= 0:
        raise RenderConfigError(f"zoom must be a positive finite number, got {params.zoom}.")
    if not _finite_pair(params.target):
        raise RenderConfigError(f"target must be a finite (re, im) pair, got {params.target}.")
    if params.julia_seed is not None and not _finite_pair(params.julia_seed):
        raise RenderConfigError(f"julia seed must be a finite (re, im) pair, got {params.julia_seed}.")
    width, height = params.oversampled_size
    if not math.isfinite(plane_scale(width, height, params.zoom)):
        raise RenderConfigError(f"zoom {params.zoom} is too small to map pixels to the plane.")
    if not config.bailout >= 2:
        raise RenderConfigError(f"bailout radius must be at least 2, got {config.bailout}.")
    if not config.degree > 1:
        raise RenderConfigError(f"polynomial degree must be greater than 1, got {config.degree}.")


def _render_columns(
    buffer: np.ndarray,
    start: int,
    stop: int,
    params: RenderParameters,
    palette: Palette,
    config: EscapeConfig,
    device: Optional[str],
) -> int:
    """Evaluate and colour columns ``start:stop``; returns how many samples stayed inside."""

    width, height = params.oversampled_size
    re = np.empty((height, stop - start), dtype=np.float64)
    im = np.empty((height, stop - start), dtype=np.float64)
    for offset, x in enumerate(range(start, stop)):
        re[:, offset], im[:, offset] = column_points(x, width, height, params.target, params.zoom)

    if params.julia_seed is None:
        escaped, index = escape_field(0.0, 0.0, re, im, params.max_iterations, config, device=device)
    else:
        seed_re, seed_im = params.julia_seed
        escaped, index = escape_field(re, im, seed_re, seed_im, params.max_iterations, config, device=device)

    buffer[:, start:stop] = palette.colourize(escaped, index)
    return int(np.count_nonzero(~escaped))


def render_field(
    params: RenderParameters,
    palette: Palette = DEFAULT_PALETTE,
    config: EscapeConfig = DEFAULT_ESCAPE,
    *,
    workers: Optional[int] = None,
    columns_per_task: int = COLUMNS_PER_TASK,
    device: Optional[str] = None,
) -> tuple[np.ndarray, int]:
    """Populate the oversampled colour buffer.

    Every task owns a disjoint band of ``columns_per_task`` columns. All tasks
    are submitted before any is awaited and the buffer is returned only after
    every one of them has finished; the first task failure is re-raised.
    Returns the buffer and the number of samples classified inside.
    """

    validate_params(params, config)
    if columns_per_task < 1:
        raise RenderConfigError(f"columns_per_task must be at least 1, got {columns_per_task}.")

    width, height = params.oversampled_size
    buffer = np.zeros((height, width, 3), dtype=np.uint8)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(
                _render_columns,
                buffer,
                start,
                min(start + columns_per_task, width),
                params,
                palette,
                config,
                device,
            )
            for start in range(0, width, columns_per_task)
        ]
        wait(futures)
        inside = sum(future.result() for future in futures)

    return buffer, inside


def render(
    params: RenderParameters,
    palette: Palette = DEFAULT_PALETTE,
    config: EscapeConfig = DEFAULT_ESCAPE,
    *,
    workers: Optional[int] = None,
    columns_per_task: int = COLUMNS_PER_TASK,
    device: Optional[str] = None,
) -> RenderResult:
    """Render the final, downsampled image described by ``params``."""

    buffer, inside = render_field(
        params,
        palette,
        config,
        workers=workers,
        columns_per_task=columns_per_task,
        device=device,
    )
    width, height = params.oversampled_size
    return RenderResult(
        image=downsample(buffer, params.supersample),
        params=params,
        metadata=sampling_metadata(width, height, params.target, params.zoom),
        inside_fraction=inside / (width * height),
    )
