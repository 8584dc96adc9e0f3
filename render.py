import os
import sys
import warnings
from dataclasses import dataclass
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf
import numpy as np

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

import PIL.Image
import PIL.PngImagePlugin

from escapetime import (
    EscapeConfig,
    Palette,
    RenderConfigError,
    RenderParameters,
    pixel_to_complex,
    render,
    validate_params,
)

log("TensorFlow version: %s" % tf.__version__)

from argparse import ArgumentParser

DEFAULT_MAX_ITERATIONS = 100
DEFAULT_SUPERSAMPLE = 1


@dataclass
class OutputConfig:
    output_dir: Path
    output_path: Path | None


def build_parser():
    parser = ArgumentParser(description='Render an escape-time image of the Mandelbrot set or a Julia set.')

    parser.add_argument('width', type=int, help='width of the output image in pixels')
    parser.add_argument('height', type=int, help='height of the output image in pixels')
    parser.add_argument('max_iterations', nargs='?', default=None, metavar='MAX_ITERATIONS',
                        help=f'maximum number of map updates per sample (default {DEFAULT_MAX_ITERATIONS})')

    parser.add_argument('--supersample', dest='supersample', default=None, metavar='N',
                        help=f'render N x N samples per output pixel and average them (default {DEFAULT_SUPERSAMPLE})')

    parser.add_argument('--target', type=float, nargs=2, default=(0.0, 0.0), metavar=('RE', 'IM'),
                        help='point of the complex plane at the centre of the image')

    parser.add_argument('--zoom', type=float, default=1.0,
                        help='magnification; at zoom 1 the shorter image side spans 4 units')

    julia = parser.add_mutually_exclusive_group()
    julia.add_argument('--julia', type=float, nargs=2, metavar=('RE', 'IM'),
                       help='render the Julia set of this seed instead of the Mandelbrot set')
    julia.add_argument('--julia-pixel', type=int, nargs=2, metavar=('X', 'Y'),
                       help='render the Julia set seeded by this pixel of the Mandelbrot view, framed at the origin')

    parser.add_argument('--anchors', nargs='+', metavar='HEX',
                        help='palette anchor colours as #RRGGBB, cycled in order')
    parser.add_argument('--colormap', type=str, metavar='COLORMAP',
                        help='sample the palette anchors from a matplotlib colormap (e.g. "twilight_shifted")')
    parser.add_argument('--colormap-anchors', type=int, default=16, metavar='K',
                        help='number of anchors sampled from --colormap')
    parser.add_argument('--palette-scale', type=float, default=0.1,
                        help='escape index multiplier; smaller values widen the colour bands')

    parser.add_argument('--bailout', type=float, default=1000.0,
                        help='escape radius, at least 2; large radii smooth the colouring more accurately')
    parser.add_argument('--no-smooth', dest='smooth', action='store_false',
                        help='colour by whole iteration counts instead of the continuous escape index')

    parser.add_argument('--workers', type=int, default=None,
                        help='number of worker threads (default: chosen by the thread pool)')

    parser.add_argument('--output-dir', type=str, default='images',
                        help='directory that receives <n>.png, using the first unused n')
    parser.add_argument('--output', type=str,
                        help='explicit destination file; overrides --output-dir')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow diagnostics.')

    return parser


def _int_or_default(value, name, default):
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        print(f"Invalid {name} '{value}', defaulting to {default}.")
        return default
    return parsed


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    output_path: Path | None = None
    if opt.output:
        output_path = Path(opt.output).expanduser()
        if output_path.exists() and output_path.is_dir():
            parser.error("--output must point to a file, not a directory.")
        if not output_path.suffix:
            output_path = output_path.with_suffix(".png")
        elif output_path.suffix.lower() != ".png":
            parser.error("--output must end with .png.")
        output_path = output_path.resolve()
    return OutputConfig(output_dir=Path(opt.output_dir).expanduser().resolve(), output_path=output_path)


def next_free_path(directory: Path, suffix: str = "png") -> Path:
    """Return ``directory/<n>.<suffix>`` for the lowest ``n`` not already taken."""

    n = 0
    while (directory / f"{n}.{suffix}").exists():
        n += 1
    return directory / f"{n}.{suffix}"


def describe_render(params: RenderParameters, palette: Palette, config: EscapeConfig) -> str:
    seed = "n/a" if params.julia_seed is None else f"({params.julia_seed[0]!r}, {params.julia_seed[1]!r})"
    return "\n".join([
        f"Target: ({params.target[0]!r}, {params.target[1]!r})",
        f"Zoom: {params.zoom!r}",
        f"Julia seed: {seed}",
        f"Palette: {', '.join(palette.hex_anchors())} (scale {palette.scale!r})",
        f"Max iterations: {params.max_iterations}",
        f"Supersampling: {params.supersample}",
        f"Bailout: {config.bailout!r}, smoothing {'on' if config.smooth else 'off'}",
    ])


def write_png(image: np.ndarray, output_path: Path, description: str) -> None:
    """Write ``image`` as a PNG carrying ``description`` in a text chunk."""

    info = PIL.PngImagePlugin.PngInfo()
    info.add_text("Description", description)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    PIL.Image.fromarray(image).save(str(output_path), format="PNG", pnginfo=info)


def build_palette(opt, parser: ArgumentParser) -> Palette:
    if opt.anchors and opt.colormap:
        parser.error("--anchors and --colormap cannot be combined.")
    try:
        if opt.anchors:
            return Palette.from_hex(opt.anchors, opt.palette_scale)
        if opt.colormap:
            return Palette.from_colormap(opt.colormap, opt.colormap_anchors, opt.palette_scale)
        return Palette(scale=opt.palette_scale)
    except RenderConfigError as exc:
        parser.error(str(exc))


def build_params(opt, parser: ArgumentParser) -> RenderParameters:
    max_iterations = _int_or_default(opt.max_iterations, "max_iterations", DEFAULT_MAX_ITERATIONS)
    supersample = _int_or_default(opt.supersample, "supersample", DEFAULT_SUPERSAMPLE)
    target = tuple(opt.target)
    zoom = opt.zoom
    julia_seed = tuple(opt.julia) if opt.julia else None

    if opt.julia_pixel:
        view = RenderParameters(width=opt.width, height=opt.height, target=target, zoom=zoom)
        try:
            validate_params(view)
        except RenderConfigError as exc:
            parser.error(str(exc))
        x, y = opt.julia_pixel
        julia_seed = pixel_to_complex(x, y, opt.width, opt.height, target, zoom)
        target, zoom = (0.0, 0.0), 1.0

    return RenderParameters(
        width=opt.width,
        height=opt.height,
        supersample=supersample,
        max_iterations=max_iterations,
        target=target,
        zoom=zoom,
        julia_seed=julia_seed,
    )


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = VERBOSE or bool(opt.verbose)

    output_config = resolve_output_config(opt, parser)
    palette = build_palette(opt, parser)
    params = build_params(opt, parser)
    config = EscapeConfig(bailout=opt.bailout, smooth=opt.smooth)

    log("Rendering %s at %dx%d (supersample %d, %d iterations)" % (
        params.family, params.width, params.height, params.supersample, params.max_iterations))

    try:
        result = render(params, palette, config, workers=opt.workers)
    except RenderConfigError as exc:
        parser.error(str(exc))

    metadata = result.metadata
    log("Plane window: re [%.6g, %.6g], im [%.6g, %.6g]" % (
        metadata.re_min, metadata.re_max, metadata.im_min, metadata.im_max))
    log("Inside fraction: %.4f" % result.inside_fraction)

    output_path = output_config.output_path
    if output_path is None:
        output_config.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = next_free_path(output_config.output_dir)

    write_png(result.image, output_path, describe_render(params, palette, config))
    print(f"Saved {output_path}")


if __name__ == '__main__':
    main()
