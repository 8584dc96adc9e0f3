"""Escape-time evaluation of the quadratic map ``z -> z**2 + c``."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import tensorflow as tf

BAILOUT = 1000.0
DEGREE = 2.0


@dataclass(frozen=True)
class EscapeConfig:
    """Constants of the divergence test.

    A large bailout radius keeps the smooth index close to the true
    continuous escape time; the radius must be at least 2.
    """

    bailout: float = BAILOUT
    smooth: bool = True
    degree: float = DEGREE

    def escape_index(self, updates: int, mag_sq: float) -> float:
        """Escape index for a point whose ``updates``-th value has ``|z|**2 == mag_sq``."""

        if not self.smooth:
            return float(updates)
        log_mag = 0.5 * math.log(mag_sq)
        index = updates - math.log(log_mag / math.log(self.bailout)) / math.log(self.degree)
        if not math.isfinite(index) or index < 0.0:
            return 0.0
        return index


DEFAULT_ESCAPE = EscapeConfig()


@dataclass(frozen=True)
class Inside:
    """The iteration budget ran out without the orbit diverging."""


@dataclass(frozen=True)
class Outside:
    """The orbit diverged; ``index`` is the (possibly fractional) escape time."""

    index: float


EscapeResult = Union[Inside, Outside]

INSIDE = Inside()


def escape_time(
    z0: tuple[float, float],
    c: tuple[float, float],
    max_iterations: int,
    config: EscapeConfig = DEFAULT_ESCAPE,
) -> EscapeResult:
    """Iterate from ``z0`` with constant ``c`` for at most ``max_iterations`` updates."""

    zr, zi = float(z0[0]), float(z0[1])
    cr, ci = float(c[0]), float(c[1])
    bailout_sq = config.bailout * config.bailout

    for n in range(max_iterations):
        zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
        mag_sq = zr * zr + zi * zi
        if not mag_sq <= bailout_sq:
            return Outside(config.escape_index(n + 1, mag_sq))
    return INSIDE


@tf.function
def _escape_step(
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
    bailout_sq: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Perform a single update for points that have not diverged."""

    zr_new = zr * zr - zi * zi + cr
    zi_new = 2.0 * zr * zi + ci
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    ns = ns + tf.cast(active, ns.dtype)
    new_active = tf.logical_and(active, zr * zr + zi * zi <= bailout_sq)
    return zr, zi, ns, new_active


@tf.function
def _escape_run(
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    max_iterations: tf.Tensor,
    bailout_sq: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Iterate the map using a TensorFlow while loop until every point escapes."""

    i = tf.constant(0, dtype=tf.int64)
    ns = tf.zeros_like(zr, dtype=tf.int64)
    active = tf.ones_like(zr, dtype=tf.bool)

    def cond(i, zr, zi, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, ns, active):
        zr, zi, ns, active = _escape_step(zr, zi, cr, ci, ns, active, bailout_sq)
        return i + 1, zr, zi, ns, active

    return tf.while_loop(cond, body, (i, zr, zi, ns, active))


def escape_field(
    z0_re,
    z0_im,
    c_re,
    c_im,
    max_iterations: int,
    config: EscapeConfig = DEFAULT_ESCAPE,
    *,
    device: Optional[str] = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Evaluate many points at once.

    Arguments broadcast against each other. Returns a boolean ``escaped`` mask
    and a float64 escape index that is zero wherever ``escaped`` is false.
    """

    shape = np.broadcast(z0_re, z0_im, c_re, c_im).shape
    inputs = [
        np.ascontiguousarray(np.broadcast_to(np.asarray(a, dtype=np.float64), shape))
        for a in (z0_re, z0_im, c_re, c_im)
    ]

    with tf.device(device if device is not None else "/CPU:0"):
        zr, zi, cr, ci = (tf.convert_to_tensor(a, dtype=tf.float64) for a in inputs)
        _, zr, zi, ns, active = _escape_run(
            zr,
            zi,
            cr,
            ci,
            tf.constant(max_iterations, dtype=tf.int64),
            tf.constant(config.bailout * config.bailout, dtype=tf.float64),
        )

        escaped = tf.logical_not(active)
        counts = tf.cast(ns, tf.float64)
        if config.smooth:
            log_mag = 0.5 * tf.math.log(zr * zr + zi * zi)
            nu = tf.math.log(log_mag / math.log(config.bailout)) / math.log(config.degree)
            index = counts - nu
            index = tf.where(tf.math.is_finite(index), tf.maximum(index, 0.0), tf.zeros_like(index))
        else:
            index = counts
        index = tf.where(escaped, index, tf.zeros_like(index))

    return escaped.numpy(), index.numpy()
