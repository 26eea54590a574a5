"""
Postprocessing Module
====================

Baseline correction of hypercomplex traces with a weighted Whittaker
smoother.

The smoother minimizes, for every coefficient independently,

    sum(w_i * (y_i - z_i)^2) + lambda0 * lambda * sum((z_i - z_{i-1})^2)

where ``lambda0 = sum(w)`` keeps the smoothness independent of how many
points carry weight. Peak points can be excluded from the fit with
``baseline_weights``.

Reference:
    Eilers, P. H. C. (2003). A perfect smoother.
    Analytical Chemistry, 75(14), 3631-3636.
"""

import logging
import numpy as np
from scipy import sparse
from scipy.sparse.linalg import spsolve
from typing import Optional

from ..core.arith import data_sumsq
from ..core.array import HxArray
from ..core.errors import DimensionError
from ..core.parameters import BaselineParameters


logger = logging.getLogger(__name__)


def baseline_weights(x: HxArray) -> np.ndarray:
    """
    Binary weights marking the baseline points of a trace.

    The squared norm of the first difference is compared against an
    iterated ``mean + 2 sigma`` threshold (statistics over the points
    still marked as baseline) until the baseline set stops changing.
    Isolated points are then merged into their neighbours' class.

    Args:
        x: Trace; its points are taken in linear order

    Returns:
        Array of 0.0 (peak) and 1.0 (baseline), one per point
    """
    pts = x.points()
    npts = pts.shape[0]

    diff = np.zeros_like(pts)
    diff[1:] = pts[1:] - pts[:-1]
    y = data_sumsq(diff)

    w = np.ones(npts)
    count = npts
    while True:
        prev = count
        if prev < 2:
            break

        mu = np.sum(w * y) / prev
        sigma = np.sqrt(np.sum(w * (y - mu) ** 2) / (prev - 1))
        th = mu + 2.0 * sigma

        w = (y <= th).astype(float)
        count = int(w.sum())
        if count == prev:
            break

    for n in range(1, npts - 1):
        if w[n - 1] == 0.0 and w[n + 1] == 0.0:
            w[n] = 0.0
        if w[n - 1] == 1.0 and w[n + 1] == 1.0:
            w[n] = 1.0

    return w


def whittaker(x: HxArray, lam: float, w: Optional[np.ndarray] = None) -> HxArray:
    """
    Whittaker-smoothed copy of a trace.

    Args:
        x: Trace; its points are taken in linear order
        lam: Smoothness parameter (larger = smoother)
        w: Optional per-point weights (default: all ones)

    Returns:
        New array with the configuration of ``x`` holding the smooth
        component

    Example:
        >>> z = whittaker(trace, 10.0, baseline_weights(trace))
    """
    if lam <= 0.0:
        raise DimensionError(f"smoothness {lam:.3g} out of bounds (0,inf)")

    pts = x.points()
    npts = pts.shape[0]

    w = np.ones(npts) if w is None else np.asarray(w, dtype=float)
    if w.shape != (npts,):
        raise DimensionError(f"expected {npts} weights, got {w.size}")

    lam0 = float(w.sum())
    if lam0 <= 0.0:
        raise DimensionError("baseline weights sum to zero")

    # Construct difference matrix
    E = sparse.eye(npts, format='csc')
    D = E[1:] - E[:-1]

    W = sparse.diags(w, 0, shape=(npts, npts))
    A = sparse.csc_matrix(W + lam0 * lam * (D.T @ D))

    z = spsolve(A, w[:, np.newaxis] * pts)

    out = HxArray(x.d, x.k, x.sz, x.registry)
    out.points()[...] = np.reshape(z, pts.shape)
    return out


def baseline(x: HxArray, axis: int, lam: float, use_weights: bool = True) -> HxArray:
    """
    Subtract a Whittaker baseline from every vector along ``axis``.

    Args:
        x: Array to correct, modified in place
        axis: Topological axis of the traces
        lam: Smoothness parameter
        use_weights: Exclude peak points from the baseline fit

    Returns:
        ``x``
    """
    if axis < 0 or axis >= x.k:
        raise DimensionError(f"dimension index {axis} out of bounds [0,{x.k})")

    logger.debug("baseline correction along axis %d of %r (lambda=%.3g, weights=%s)",
                 axis, x, lam, use_weights)

    def correct(arr, y, idx, pidx):
        w = baseline_weights(y) if use_weights else None
        z = whittaker(y, lam, w)
        y.x -= z.x

    return x.foreach_vector(axis, correct)


def baseline_correction(x: HxArray, axis: int, params: BaselineParameters) -> HxArray:
    """Run ``baseline`` with the settings of a BaselineParameters record"""
    errors = params.validate()
    if errors:
        raise DimensionError(f"invalid baseline parameters: {'; '.join(errors)}")

    return baseline(x, axis, params.smoothness, params.use_weights)
