"""
Nonuniform Sampling Reconstruction
==================================

Reconstruct fully sampled time-domain data from nonuniformly sampled
acquisitions.

Dimension metadata names the indirect (nonuniformly sampled) dimensions:
``kx[j]`` is the topological axis of indirect dimension j and ``dx[j]``
the imaginary unit it is transformed along. The schedule lists the
sampled index combinations of the indirect axes (column j belongs to
axis ``kx[j]``). The remaining axes, including the directly detected
one, are never transformed.

Every combination of the non-indirect axes selects one independent
slice over the indirect axes. A single indirect axis gives vector
slices, which are processed in parallel by a thread pool; two or more
indirect axes give sub-array slices processed in turn.

Methods:
- IST: iterative soft thresholding with a geometrically decaying
  threshold
- FFM: fast forward maximum entropy, fixed-step gradient updates of the
  unsampled points driven by an entropy functional
- IRLS: iteratively reweighted least squares, a weighted minimum-norm
  fit of the sampled points by a Cholesky-factored Gram matrix
"""

import logging
import numpy as np
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..core import index as hxindex
from ..core.arith import data_multiply, data_norm, data_semiconj, data_sumsq
from ..core.array import HxArray
from ..core.blas import axpy, gemm, gemv, no_trans, nrm2, sumsq
from ..core.errors import DimensionError, HypercomplexError, ReconstructionError
from ..core.schedule import SamplingSchedule
from ..core.transforms import FFT_FORWARD, FFT_REVERSE, fft_lines, ispow2
from .entropy import EntropyType, entropy, entropy_gradient, lookup_entropy


logger = logging.getLogger(__name__)

# IRLS weight regularization and Lagrange multiplier bounds.
IRLS_EPSILON = 1.0e-4
IRLS_LAMBDA_MIN = 1.0e-3
IRLS_LAMBDA_MAX = 1.0e9


@dataclass
class IterationRecord:
    """Threshold state of one IST iteration"""
    iteration: int
    lam: float
    nzero: int


@dataclass
class _Plan:
    """Validated layout of a reconstruction"""
    units: List[int]              # imaginary unit of each indirect axis
    sub_sz: List[int]             # sizes of the indirect axes
    offsets: np.ndarray           # (nslices, sub_npoints) point offsets
    sampled: np.ndarray           # boolean mask over sub-array points


def _plan(x: HxArray, dx: Sequence[int], kx: Sequence[int], schedule) -> _Plan:
    if len(kx) < 1 or len(dx) != len(kx):
        raise DimensionError(f"need matching non-empty dimension lists (dx={list(dx)}, kx={list(kx)})")
    if len(set(kx)) != len(kx):
        raise DimensionError(f"repeated topological axes in {list(kx)}")
    for k in kx:
        if k < 0 or k >= x.k:
            raise DimensionError(f"topological dimension {k} out of bounds [0,{x.k})")

    indirect = list(kx)
    units = list(dx)
    for d, k in zip(units, indirect):
        if d < 0 or d >= x.d:
            raise DimensionError(f"algebraic dimension {d} out of bounds [0,{x.d})")
        if not ispow2(x.sz[k]):
            raise DimensionError(f"dimension {k} is not a power of two size ({x.sz[k]})")

    if not isinstance(schedule, SamplingSchedule):
        schedule = SamplingSchedule(schedule)
    errors = schedule.validate()
    if errors:
        raise DimensionError(f"invalid schedule configuration ({schedule.d_sched}x{schedule.n_sched}): {'; '.join(errors)}")
    if schedule.d_sched < len(indirect):
        raise DimensionError(f"schedule has {schedule.d_sched} columns for {len(indirect)} indirect dimensions")

    sub_sz = [x.sz[k] for k in indirect]
    sampled = np.zeros(int(np.prod(sub_sz)), dtype=bool)
    sampled[hxindex.scheduled(sub_sz, schedule.points)] = True

    # grid view axes: topological axis t sits at position k-1-t.
    ids = np.arange(x.npoints).reshape(tuple(reversed(x.sz)))
    outer = [t for t in range(x.k) if t not in indirect]
    order = [x.k - 1 - t for t in outer] + [x.k - 1 - t for t in reversed(indirect)]
    offsets = ids.transpose(order).reshape(-1, sampled.size)

    return _Plan(units, sub_sz, offsets, sampled)


def _transform(block: np.ndarray, sub_sz: List[int], units: List[int], direction: float, registry) -> np.ndarray:
    """Transform a (sub_npoints, n) block along every indirect axis"""
    n = block.shape[-1]
    grid = block.reshape(tuple(reversed(sub_sz)) + (n,))
    m = len(sub_sz)
    for j, d in enumerate(units):
        pos = m - 1 - j
        lines = np.moveaxis(grid, pos, -2)
        shape = lines.shape
        out = fft_lines(lines.reshape(-1, shape[-2], n), d, direction, registry)
        grid = np.moveaxis(out.reshape(shape), -2, pos)

    return np.ascontiguousarray(grid).reshape(-1, n)


def _check_iterations(niter: int):
    if niter < 1:
        raise DimensionError(f"iteration count {niter} out of bounds [1,inf)")


def _run(x: HxArray, plan: _Plan, solve, workers: Optional[int]):
    """Apply ``solve`` to every slice and store the results"""
    pts = x.points()

    def task(j):
        try:
            return j, solve(j, pts[plan.offsets[j]])
        except (HypercomplexError, ValueError, FloatingPointError) as err:
            raise ReconstructionError(f"failed to reconstruct slice {j}") from err

    nslices = plan.offsets.shape[0]
    if len(plan.sub_sz) == 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(task, range(nslices)))
    else:
        results = [task(j) for j in range(nslices)]

    for j, block in results:
        pts[plan.offsets[j]] = block


def ist(
    x: HxArray,
    dx: Sequence[int],
    kx: Sequence[int],
    schedule,
    niter: int = 100,
    thresh: float = 0.98,
    workers: Optional[int] = None,
    record: Optional[List[IterationRecord]] = None
) -> HxArray:
    """
    Iterative soft thresholding reconstruction, in place.

    Per slice, with acquired data a and spectrum estimate S = 0:

    1. residual r = a - F^-1(S), zeroed at unsampled points
    2. S += F(r)
    3. soft threshold S at lambda (lambda starts at max |S|)
    4. lambda *= thresh

    The result is F^-1(S) with the acquired values restored at the
    sampled points.

    Args:
        x: Time-domain array, zero at unsampled points
        dx: Imaginary unit of each indirect dimension
        kx: Topological axis of each indirect dimension
        schedule: SamplingSchedule or (n_sched, d_sched) array
        niter: Number of iterations (>= 1)
        thresh: Threshold decay factor in (0, 1)
        workers: Thread count for vector slices (None: executor default)
        record: Optional list receiving the iteration records of slice 0

    Returns:
        ``x``
    """
    _check_iterations(niter)
    if thresh <= 0.0 or thresh >= 1.0:
        raise DimensionError(f"threshold {thresh:.2f} out of bounds (0,1)")

    plan = _plan(x, dx, kx, schedule)
    npts = plan.sampled.size
    registry = x.registry

    logger.info("IST reconstruction of %r: %d slices, %d iterations, thresh=%.3f",
                x, plan.offsets.shape[0], niter, thresh)

    def solve(j, acquired):
        acquired = np.where(plan.sampled[:, np.newaxis], acquired, 0.0)
        spec = np.zeros_like(acquired)
        acc = np.zeros_like(acquired)
        lam = 0.0

        for it in range(niter):
            resid = acquired - acc
            resid[~plan.sampled] = 0.0
            spec += _transform(resid, plan.sub_sz, plan.units, FFT_FORWARD, registry)

            norms = data_norm(spec)
            if lam <= 0.0:
                lam = float(norms.max())

            keep = norms > lam
            factor = np.zeros_like(norms)
            factor[keep] = 1.0 - lam / norms[keep]
            spec *= factor[:, np.newaxis]

            acc = _transform(spec, plan.sub_sz, plan.units, FFT_REVERSE, registry) / npts

            if j == 0:
                logger.debug("IST iteration %d: lambda=%.6g, zeros=%d", it, lam, npts - int(keep.sum()))
                if record is not None:
                    record.append(IterationRecord(it, lam, npts - int(keep.sum())))

            lam *= thresh

        acc[plan.sampled] = acquired[plan.sampled]
        return acc

    _run(x, plan, solve, workers)
    return x


def ffm(
    x: HxArray,
    dx: Sequence[int],
    kx: Sequence[int],
    schedule,
    niter: int = 100,
    functional: str = "norm",
    workers: Optional[int] = None
) -> HxArray:
    """
    Fast forward maximum entropy reconstruction, in place.

    Per slice, with time-domain estimate y (the acquired data):

    1. Y = F(y)
    2. G = df(Y) for the chosen entropy functional
    3. g = F^-1(G), zeroed at the sampled points
    4. y += alpha * g

    ``alpha`` is the number of points per slice N (the product of the
    indirect axis lengths) and F^-1 is the normalized inverse transform,
    so each step adds the unnormalized inverse transform of the entropy
    gradient. Sampled points are never modified.

    Args:
        x: Time-domain array, zero at unsampled points
        dx: Imaginary unit of each indirect dimension
        kx: Topological axis of each indirect dimension
        schedule: SamplingSchedule or (n_sched, d_sched) array
        niter: Number of iterations (>= 1)
        functional: Entropy functional name (norm, shannon, skilling, hoch)
        workers: Thread count for vector slices (None: executor default)

    Returns:
        ``x``
    """
    _check_iterations(niter)
    kind = lookup_entropy(functional)
    if kind == EntropyType.UNDEFINED:
        raise DimensionError(f"entropy functional '{functional}' is undefined")

    plan = _plan(x, dx, kx, schedule)
    npts = plan.sampled.size
    alpha = float(npts)
    registry = x.registry

    logger.info("FFM reconstruction of %r: %d slices, %d iterations, functional=%s",
                x, plan.offsets.shape[0], niter, kind.value)

    def solve(j, acquired):
        y = np.where(plan.sampled[:, np.newaxis], acquired, 0.0)

        for it in range(niter):
            spec = _transform(y, plan.sub_sz, plan.units, FFT_FORWARD, registry)
            grad = entropy_gradient(kind, spec)
            g = _transform(grad, plan.sub_sz, plan.units, FFT_REVERSE, registry) / npts
            g[plan.sampled] = 0.0
            y += alpha * g

            if j == 0:
                logger.debug("FFM iteration %d: entropy=%.6g", it, entropy(kind, spec))

        return y

    _run(x, plan, solve, workers)
    return x


def _dft_matrix(plan: _Plan, rows: np.ndarray, order: int, registry) -> np.ndarray:
    """
    Unitary inverse DFT elements F[i, k] between sampled point ``rows[i]``
    and frequency point k, shape (nrows, N, n).
    """
    npts = plan.sampled.size
    cols = np.arange(npts)
    block = np.zeros((rows.size, npts, 1 << order))
    block[..., 0] = 1.0

    for d, sz, stride in zip(plan.units, plan.sub_sz, hxindex.strides(plan.sub_sz)):
        theta = 2.0 * np.pi * np.outer((rows // stride) % sz, (cols // stride) % sz) / sz
        ph = np.zeros_like(block)
        ph[..., 0] = np.cos(theta)
        ph[..., 1 << d] = np.sin(theta)
        block = data_multiply(block, ph, order, registry)

    return block / np.sqrt(npts)


def _equalize(X: HxArray, y: HxArray, z: HxArray, w: np.ndarray) -> np.ndarray:
    """
    Scale the weights by the ratio of the residual and weighted spectral
    sums of squares, returning diag(inv(W)).
    """
    resid = y.copy()
    axpy(-1.0, z, resid)
    rx = sumsq(resid)
    wx = float(np.sum((w * data_norm(X.points())) ** 2))

    lam = rx / wx if wx > 0.0 else IRLS_LAMBDA_MAX
    lam = min(max(lam, IRLS_LAMBDA_MIN), IRLS_LAMBDA_MAX)
    return 1.0 / (lam * w)


def _gramian(F: HxArray, Fh: HxArray, w: np.ndarray, Fw: HxArray, A: HxArray):
    """A = F * diag(w) * F^H + I"""
    nrows = F.sz[0]
    Fw.points()[...] = (Fh.points().reshape(nrows, -1, Fh.n) * w[np.newaxis, :, np.newaxis]).reshape(-1, Fh.n)
    gemm(no_trans, no_trans, 1.0, F, Fw, 0.0, A)
    A.points()[np.arange(nrows) * (nrows + 1), 0] += 1.0


def _cholesky_solve(A: HxArray, b: np.ndarray) -> np.ndarray:
    """Solve ``A z = b`` through the decomposition A = L * L^H"""
    L = np.array(no_trans(A))
    m = L.shape[0]
    d, registry = A.d, A.registry

    for j in range(m):
        diag = L[j, j, 0] - float(np.sum(data_sumsq(L[j, :j])))
        if diag <= 0.0:
            raise ReconstructionError(f"pivot {j} is {diag:.3e}")

        L[j, j] = 0.0
        L[j, j, 0] = np.sqrt(diag)

        conj = data_semiconj(L[j, :j])
        terms = data_multiply(L[j + 1:, :j], conj[np.newaxis], d, registry).sum(axis=1)
        L[j + 1:, j] = (L[j + 1:, j] - terms) / L[j, j, 0]

    # forward substitution L * y = b, then back substitution L^H * z = y.
    y = np.zeros_like(b)
    for j in range(m):
        acc = data_multiply(L[j, :j], y[:j], d, registry).sum(axis=0)
        y[j] = (b[j] - acc) / L[j, j, 0]

    z = np.zeros_like(b)
    for j in range(m - 1, -1, -1):
        acc = data_multiply(data_semiconj(L[j + 1:, j]), z[j + 1:], d, registry).sum(axis=0)
        z[j] = (y[j] - acc) / L[j, j, 0]

    return z


def irls(
    x: HxArray,
    dx: Sequence[int],
    kx: Sequence[int],
    schedule,
    niter: int = 10,
    pa: float = 1.0,
    pb: float = 1.0,
    workers: Optional[int] = None
) -> HxArray:
    """
    Iteratively reweighted least squares reconstruction, in place.

    Per slice, with acquired values y at the n sampled points, the
    unitary inverse DFT matrix F (n x N) and spectrum X = F^H y:

    1. w = 1 / (|X|^(2-p) + eps), with p moving linearly from pa to pb
    2. w = 1 / (lambda * w), lambda = |y - z|^2 / |w X|^2 clipped
    3. solve (F diag(w) F^H + I) z = y by Cholesky decomposition
    4. X = w * F^H z and z = F X

    The result is the inverse transform of the final spectrum with the
    acquired values restored at the sampled points.

    Args:
        x: Time-domain array, zero at unsampled points
        dx: Imaginary unit of each indirect dimension
        kx: Topological axis of each indirect dimension
        schedule: SamplingSchedule or (n_sched, d_sched) array
        niter: Number of iterations (>= 1)
        pa: Starting norm order in [0, 1]
        pb: Ending norm order in [0, pa]
        workers: Thread count for vector slices (None: executor default)

    Returns:
        ``x``
    """
    _check_iterations(niter)
    if pa < 0.0 or pa > 1.0:
        raise DimensionError(f"starting norm order {pa:.3f} out of bounds [0,1]")
    if pb < 0.0 or pb > 1.0:
        raise DimensionError(f"ending norm order {pb:.3f} out of bounds [0,1]")
    if pa < pb:
        raise DimensionError("norm orders must decrease during iteration")

    plan = _plan(x, dx, kx, schedule)
    npts = plan.sampled.size
    rows = np.flatnonzero(plan.sampled)
    nrows = rows.size
    d, registry = x.d, x.registry
    dp = (pb - pa) / niter

    block = _dft_matrix(plan, rows, d, registry)
    F = HxArray(d, 2, [nrows, npts], registry)
    F.points()[...] = block.transpose(1, 0, 2).reshape(-1, x.n)
    Fh = HxArray(d, 2, [npts, nrows], registry)
    Fh.points()[...] = data_semiconj(block).reshape(-1, x.n)

    logger.info("IRLS reconstruction of %r: %d slices, %d iterations, p=%.2f..%.2f",
                x, plan.offsets.shape[0], niter, pa, pb)

    def solve(j, acquired):
        y = HxArray(d, 1, [nrows], registry)
        y.points()[...] = acquired[rows]
        z = y.copy()
        X = gemv(no_trans, 1.0, Fh, y, 0.0, HxArray(d, 1, [npts], registry))
        A = HxArray(d, 2, [nrows, nrows], registry)
        Fw = HxArray(d, 2, [npts, nrows], registry)

        for it in range(niter):
            p = pa + it * dp
            w = 1.0 / (data_norm(X.points()) ** (2.0 - p) + IRLS_EPSILON)
            w = _equalize(X, y, z, w)

            _gramian(F, Fh, w, Fw, A)
            z.points()[...] = _cholesky_solve(A, y.points())

            gemv(no_trans, 1.0, Fh, z, 0.0, X)
            X.points()[...] *= w[:, np.newaxis]
            gemv(no_trans, 1.0, F, X, 0.0, z)

            if j == 0:
                logger.debug("IRLS iteration %d: p=%.3f, |X|=%.6g", it, p, nrm2(X))

        out = _transform(X.points(), plan.sub_sz, plan.units, FFT_REVERSE, registry) / np.sqrt(npts)
        out[plan.sampled] = acquired[plan.sampled]
        return out

    _run(x, plan, solve, workers)
    return x


def reconstruct(x: HxArray, dx: Sequence[int], kx: Sequence[int], schedule, params) -> HxArray:
    """
    Run the reconstruction selected by a ReconstructionParameters record.
    """
    errors = params.validate()
    if errors:
        raise DimensionError(f"invalid reconstruction parameters: {'; '.join(errors)}")

    if params.method == "ist":
        return ist(x, dx, kx, schedule, params.niter, params.thresh, params.workers)
    if params.method == "irls":
        return irls(x, dx, kx, schedule, params.niter, params.pa, params.pb, params.workers)

    return ffm(x, dx, kx, schedule, params.niter, params.entropy, params.workers)
