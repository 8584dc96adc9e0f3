import numpy as np
import pytest

import escapetime.renderer
from escapetime import (
    EscapeConfig,
    Palette,
    RenderConfigError,
    RenderParameters,
    downsample,
    escape_time,
    pixel_to_complex,
    render,
    render_field,
)


def _params(**overrides):
    values = dict(width=24, height=16, max_iterations=80)
    values.update(overrides)
    return RenderParameters(**values)


def test_mandelbrot_centre_is_black():
    result = render(_params())
    assert result.image.shape == (16, 24, 3)
    assert result.image.dtype == np.uint8
    assert tuple(result.image[8, 12]) == (0, 0, 0)
    assert 0.0 < result.inside_fraction < 1.0


def test_params_defaults_and_derived_values():
    params = RenderParameters(width=10, height=4, supersample=3)
    assert params.max_iterations == 100
    assert params.target == (0.0, 0.0)
    assert params.zoom == 1.0
    assert params.oversampled_size == (30, 12)
    assert params.family == "mandelbrot"
    assert RenderParameters(width=1, height=1, julia_seed=(0.1, 0.2)).family == "julia"


def test_pixels_match_scalar_pipeline():
    params = _params(target=(-0.5, 0.1), zoom=1.5, julia_seed=(-0.4, 0.6))
    palette = Palette()
    result = render(params, palette)

    for x, y in [(0, 0), (3, 7), (12, 8), (23, 15), (17, 2)]:
        z0 = pixel_to_complex(x, y, params.width, params.height, params.target, params.zoom)
        expected = palette.colour(escape_time(z0, params.julia_seed, params.max_iterations))
        diff = np.abs(result.image[y, x].astype(int) - np.array(expected))
        assert diff.max() <= 1


def test_julia_unit_disc_is_inside_for_zero_seed():
    params = RenderParameters(width=16, height=16, max_iterations=50, julia_seed=(0.0, 0.0))
    image = render(params).image
    # scale is 0.25, so pixels within 2 steps of the centre lie inside |z| < 1
    assert not image[6:11, 6:11].any()
    assert image[0, 0].any()


def test_supersample_one_is_the_field():
    params = _params()
    buffer, _ = render_field(params)
    assert np.array_equal(render(params).image, buffer)


def test_supersampled_image_is_the_downsampled_field():
    params = _params(width=12, height=8, supersample=2)
    buffer, inside = render_field(params)
    result = render(params)

    assert buffer.shape == (16, 24, 3)
    assert result.image.shape == (8, 12, 3)
    assert np.array_equal(result.image, downsample(buffer, 2))
    assert result.inside_fraction == pytest.approx(inside / (16 * 24))


def test_output_does_not_depend_on_worker_count():
    params = _params(target=(-0.74, 0.12), zoom=8.0, supersample=2, max_iterations=200)
    single = render(params, workers=1).image
    many = render(params, workers=6).image
    assert np.array_equal(single, many)


def test_every_column_band_is_written():
    params = _params(width=13, height=5, target=(3.0, 3.0))
    buffer, inside = render_field(params, Palette(((255, 255, 255),)), columns_per_task=4)
    assert inside == 0
    assert (buffer == 255).all()


def test_metadata_describes_the_oversampled_grid():
    params = _params(supersample=2, target=(0.5, -0.5), zoom=2.0)
    metadata = render(params).metadata
    assert (metadata.width, metadata.height) == (48, 32)
    assert (metadata.re_min, metadata.im_min) == pixel_to_complex(0, 0, 48, 32, (0.5, -0.5), 2.0)


@pytest.mark.parametrize(
    "overrides",
    [
        dict(zoom=0.0),
        dict(zoom=-1.0),
        dict(zoom=float("nan")),
        dict(zoom=1e-320),
        dict(width=0),
        dict(height=-4),
        dict(supersample=0),
        dict(max_iterations=0),
        dict(target=(float("inf"), 0.0)),
        dict(julia_seed=(0.0, float("nan"))),
    ],
)
def test_invalid_configuration_is_rejected_before_dispatch(monkeypatch, overrides):
    def fail(*args, **kwargs):
        raise AssertionError("work dispatched for an invalid configuration")

    monkeypatch.setattr(escapetime.renderer, "escape_field", fail)
    with pytest.raises(RenderConfigError):
        render(_params(**overrides))


def test_small_bailout_is_rejected():
    with pytest.raises(RenderConfigError):
        render(_params(), config=EscapeConfig(bailout=1.5))


@pytest.mark.parametrize("degree", [1.0, 0.5, float("nan")])
def test_degenerate_degree_is_rejected(degree):
    with pytest.raises(RenderConfigError):
        render(_params(), config=EscapeConfig(degree=degree))


def test_invalid_band_width_is_rejected():
    with pytest.raises(RenderConfigError):
        render_field(_params(), columns_per_task=0)


def test_worker_failure_aborts_the_render(monkeypatch):
    def fail(*args, **kwargs):
        raise RuntimeError("worker failed")

    monkeypatch.setattr(escapetime.renderer, "escape_field", fail)
    with pytest.raises(RuntimeError, match="worker failed"):
        render(_params())
