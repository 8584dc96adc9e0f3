import math

import numpy as np
import pytest

from escapetime import INSIDE, EscapeConfig, Inside, Outside, escape_field, escape_time

ORIGIN = (0.0, 0.0)
ROUGH = EscapeConfig(smooth=False)


def test_origin_never_escapes():
    assert escape_time(ORIGIN, ORIGIN, 10_000) == INSIDE
    assert isinstance(escape_time(ORIGIN, (-1.0, 0.0), 500), Inside)


def test_escape_counts_updates_until_bailout():
    # 0 -> 1 -> 2 -> 5; |5|**2 is the first value above 2**2
    assert escape_time(ORIGIN, (1.0, 0.0), 100, EscapeConfig(bailout=2.0, smooth=False)) == Outside(3.0)
    # 0 -> 2 -> 6 -> 38 -> 1446
    assert escape_time(ORIGIN, (2.0, 0.0), 100, ROUGH) == Outside(4.0)


def test_smooth_index_formula():
    result = escape_time(ORIGIN, (2.0, 0.0), 100)
    expected = 4 - math.log(math.log(1446.0) / math.log(1000.0)) / math.log(2.0)
    assert isinstance(result, Outside)
    assert result.index == pytest.approx(expected)
    assert 3.0 < result.index < 4.0


def test_early_escape_is_clamped_to_zero():
    assert escape_time(ORIGIN, (1e7, 0.0), 100) == Outside(0.0)
    assert escape_time(ORIGIN, (1e200, 0.0), 100) == Outside(0.0)


def test_larger_budget_keeps_escape_iteration():
    points = [(0.3, 0.0), (-0.7, 0.4), (0.28, 0.01), (-1.8, 0.05), (0.1, 0.9)]
    for c in points:
        small = escape_time(ORIGIN, c, 60, ROUGH)
        if isinstance(small, Outside):
            assert escape_time(ORIGIN, c, 5_000, ROUGH) == small
            assert escape_time(ORIGIN, c, 60) == escape_time(ORIGIN, c, 5_000)


def test_inside_classification_depends_on_budget():
    c = (0.26, 0.0)
    assert escape_time(ORIGIN, c, 5) == INSIDE
    assert isinstance(escape_time(ORIGIN, c, 1_000), Outside)


def test_julia_orbits_use_pixel_as_start():
    seed = (0.0, 0.0)
    assert escape_time((0.5, 0.0), seed, 200) == INSIDE
    assert isinstance(escape_time((1.5, 0.0), seed, 200), Outside)


def test_smooth_index_is_continuous_along_a_scan():
    cs = np.arange(0.5, 1.5, 0.001)
    smooth = [escape_time(ORIGIN, (c, 0.0), 1_000).index for c in cs]
    rough = [escape_time(ORIGIN, (c, 0.0), 1_000, ROUGH).index for c in cs]

    assert np.max(np.abs(np.diff(rough))) >= 1.0
    assert np.max(np.abs(np.diff(smooth))) < 0.1


def test_field_agrees_with_scalar_evaluation():
    rng = np.random.default_rng(7)
    re = rng.uniform(-2.2, 0.8, size=300)
    im = rng.uniform(-1.3, 1.3, size=300)

    escaped, index = escape_field(0.0, 0.0, re, im, 200)

    for k in range(re.size):
        result = escape_time(ORIGIN, (re[k], im[k]), 200)
        if isinstance(result, Inside):
            assert not escaped[k]
            assert index[k] == 0.0
        else:
            assert escaped[k]
            assert index[k] == pytest.approx(result.index, abs=1e-9)


def test_field_julia_family_and_shape():
    re, im = np.meshgrid(np.linspace(-1.5, 1.5, 7), np.linspace(-1.5, 1.5, 5))
    escaped, index = escape_field(re, im, -0.8, 0.156, 300)
    assert escaped.shape == (5, 7)
    assert index.shape == (5, 7)
    for (row, col), flag in np.ndenumerate(escaped):
        result = escape_time((re[row, col], im[row, col]), (-0.8, 0.156), 300)
        assert flag == isinstance(result, Outside)


def test_escape_on_last_update_is_outside():
    c = (0.3, 0.0)
    updates = int(escape_time(ORIGIN, c, 1_000, ROUGH).index)

    assert escape_time(ORIGIN, c, updates, ROUGH) == Outside(float(updates))
    assert escape_time(ORIGIN, c, updates - 1, ROUGH) == INSIDE

    escaped, index = escape_field(0.0, 0.0, [c[0]], [c[1]], updates, ROUGH)
    assert escaped[0]
    assert index[0] == updates

    escaped, index = escape_field(0.0, 0.0, [c[0]], [c[1]], updates - 1, ROUGH)
    assert not escaped[0]
    assert index[0] == 0.0


def test_field_clamps_early_escapes():
    escaped, index = escape_field(0.0, 0.0, [1e7, 1e200], [0.0, 0.0], 50)
    assert escaped.tolist() == [True, True]
    assert index.tolist() == [0.0, 0.0]


def test_overflowing_orbit_escapes():
    # squaring 1e200 overflows and the real part becomes inf - inf
    assert escape_time((1e200, 1e200), ORIGIN, 10) == Outside(0.0)

    escaped, index = escape_field([1e200], [1e200], 0.0, 0.0, 10)
    assert escaped.tolist() == [True]
    assert index.tolist() == [0.0]
