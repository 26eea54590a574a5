"""
Hypercomplex Array
==================

n-dimensional grids of hypercomplex scalars.

The coefficients live in one flat float64 buffer of length
``len = n * prod(sz)``. The n coefficients of a grid point are
contiguous, and among the topological axes axis 0 varies fastest. Two
numpy views expose the buffer without copying:

- ``points()``: shape (npoints, n), rows in linear-offset order
- ``grid()``: shape (sz[k-1], ..., sz[0], n)

Structural operations (resize, reshape, slicing, tiling, per-vector
iteration) are methods. Arithmetic lives in ``core.arith`` and the
Fourier layer in ``core.transforms``.
"""

import numpy as np
from typing import Callable, List, Optional, Sequence, Tuple

from . import index as hxindex
from .algebra import AlgebraRegistry, default_registry
from .arith import array_reorder_bases, data_shuffle
from .errors import ConfigurationMismatch, DimensionError


# tiler directions and traversal orders.
TILER_FORWARD = 1
TILER_REVERSE = -1
INCR_NORMAL = "normal"
INCR_REVERSE = "reverse"

VectorCallback = Callable[['HxArray', 'HxArray', List[int], int], None]


class HxArray:
    """
    Hypercomplex array with algebraic dimensionality d and k axes.

    Attributes:
        d: Algebraic dimensionality
        n: Coefficients per grid point (2^d)
        k: Topological dimensionality
        sz: Axis sizes (list of k ints)
        len: Total coefficient count
        x: Flat coefficient buffer
        tbl: Borrowed algebra table

    Example:
        >>> x = HxArray(1, 2, [4, 8])
        >>> x.points().shape
        (32, 2)
    """

    def __init__(
        self,
        d: int,
        k: int,
        sz: Sequence[int],
        registry: Optional[AlgebraRegistry] = None
    ):
        self.registry = registry if registry is not None else default_registry
        self.alloc(d, k, sz)

    @classmethod
    def from_points(
        cls,
        d: int,
        sz: Sequence[int],
        values,
        registry: Optional[AlgebraRegistry] = None
    ) -> 'HxArray':
        """
        Build an array from coefficient values.

        Args:
            d: Algebraic dimensionality
            sz: Axis sizes
            values: Anything reshapeable to (npoints, 2^d), in linear order

        Returns:
            New array
        """
        x = cls(d, len(sz), sz, registry)
        values = np.asarray(values, dtype=float)
        if values.size != x.len:
            raise DimensionError(f"expected {x.len} coefficients, got {values.size}")

        x.x[:] = values.ravel()
        return x

    # -----------------------------------------------------------------------
    # Allocation
    # -----------------------------------------------------------------------

    @staticmethod
    def _validate(d: int, k: int, sz: Sequence[int]):
        if d < 0:
            raise DimensionError(f"invalid algebraic dimensionality {d}")
        if k < 1:
            raise DimensionError(f"invalid topological dimensionality {k}")
        if len(sz) != k:
            raise DimensionError(f"expected {k} axis sizes, got {len(sz)}")
        for i, s in enumerate(sz):
            if s < 1:
                raise DimensionError(f"axis {i} has invalid size {s}")

    def alloc(self, d: int, k: int, sz: Sequence[int]) -> 'HxArray':
        """(Re)allocate a zeroed array of configuration (d, k, sz)"""
        self._validate(d, k, sz)
        sz = [int(s) for s in sz]
        n = 1 << d
        total = n * int(np.prod(sz, dtype=np.int64))

        tbl = self.registry.get(d)
        x = np.zeros(total)

        self.d, self.n, self.k = d, n, k
        self.sz = sz
        self.len = total
        self.tbl = tbl
        self.x = x
        return self

    def ensure(self, d: int, k: int, sz: Sequence[int]) -> 'HxArray':
        """
        Reuse this array as an output of configuration (d, k, sz).

        The buffer is reallocated (and zeroed) only when the configuration
        differs; otherwise the existing coefficients are left in place.
        """
        if self.d != d or self.k != k or list(self.sz) != [int(s) for s in sz]:
            self.alloc(d, k, sz)

        return self

    def free(self):
        """Release the coefficient and size buffers"""
        self.x = np.zeros(0)
        self.sz = []
        self.k = 0
        self.len = 0

    def copy(self) -> 'HxArray':
        """Create a deep copy"""
        out = HxArray(self.d, self.k, self.sz, self.registry)
        out.x[:] = self.x
        return out

    # -----------------------------------------------------------------------
    # Views and predicates
    # -----------------------------------------------------------------------

    @property
    def npoints(self) -> int:
        return self.len // self.n

    def points(self) -> np.ndarray:
        """View of the buffer as (npoints, n)"""
        return self.x.reshape(-1, self.n)

    def grid(self) -> np.ndarray:
        """View of the buffer as (sz[k-1], ..., sz[0], n)"""
        return self.x.reshape(tuple(reversed(self.sz)) + (self.n,))

    def nnzdims(self) -> int:
        """Number of axes longer than one point"""
        return sum(1 for s in self.sz if s > 1)

    def is_vector(self) -> bool:
        return self.nnzdims() == 1

    def is_matrix(self) -> bool:
        return self.nnzdims() == 2

    def is_cube(self) -> bool:
        return self.nnzdims() == 3

    def is_real(self) -> bool:
        return self.d == 0

    def _check_axis(self, axis: int, what: str = "topological axis"):
        if axis < 0 or axis >= self.k:
            raise DimensionError(f"{what} {axis} out of bounds [0,{self.k})")

    def _check_index(self, idx: Sequence[int]):
        if len(idx) != self.k or not hxindex.bounded(idx, [s - 1 for s in self.sz]):
            raise DimensionError(f"index {list(idx)} out of bounds for sizes {self.sz}")

    def get_coeff(self, idx: Sequence[int], coeff: int = 0) -> float:
        """Read coefficient ``coeff`` of the grid point at ``idx``"""
        self._check_index(idx)
        if coeff < 0 or coeff >= self.n:
            raise DimensionError(f"coefficient {coeff} out of bounds [0,{self.n})")

        return float(self.x[self.n * hxindex.pack(self.sz, idx) + coeff])

    def set_coeff(self, idx: Sequence[int], coeff: int, value: float) -> 'HxArray':
        """Write coefficient ``coeff`` of the grid point at ``idx``"""
        self._check_index(idx)
        if coeff < 0 or coeff >= self.n:
            raise DimensionError(f"coefficient {coeff} out of bounds [0,{self.n})")

        self.x[self.n * hxindex.pack(self.sz, idx) + coeff] = value
        return self

    # -----------------------------------------------------------------------
    # Reconfiguration
    # -----------------------------------------------------------------------

    def resize(self, d: int, k: int, sz: Sequence[int]) -> 'HxArray':
        """
        Change the configuration in place, preserving overlapping content.

        Grid points whose index is valid under both the old and the new
        sizes keep up to ``min(old n, new n)`` coefficients. Everything
        else is zero. Missing axes count as size one.

        Args:
            d: New algebraic dimensionality
            k: New topological dimensionality
            sz: New axis sizes
        """
        self._validate(d, k, sz)
        sz = [int(s) for s in sz]

        if d == self.d and k == self.k and sz == self.sz:
            return self
        if k == self.k and sz == self.sz:
            return self.resize_d(d)

        kmax = max(k, self.k)
        old_sz = list(self.sz) + [1] * (kmax - self.k)
        new_sz = sz + [1] * (kmax - k)
        overlap = [min(a, b) for a, b in zip(old_sz, new_sz)]
        ncpy = min(self.n, 1 << d)

        old = self.x.reshape(tuple(reversed(old_sz)) + (self.n,))
        region = tuple(slice(0, m) for m in reversed(overlap)) + (slice(0, ncpy),)

        out = HxArray(d, k, sz, self.registry)
        out.x.reshape(tuple(reversed(new_sz)) + (out.n,))[region] = old[region]

        self.d, self.n, self.k = out.d, out.n, out.k
        self.sz, self.len = out.sz, out.len
        self.tbl, self.x = out.tbl, out.x
        return self

    def resize_d(self, d: int) -> 'HxArray':
        """Change only the algebraic dimensionality, keeping the grid"""
        if d < 0:
            raise DimensionError(f"invalid algebraic dimensionality {d}")
        if d == self.d:
            return self

        n = 1 << d
        m = min(n, self.n)
        pts = np.zeros((self.npoints, n))
        pts[:, :m] = self.points()[:, :m]

        self.tbl = self.registry.get(d)
        self.d, self.n = d, n
        self.len = pts.size
        self.x = pts.ravel()
        return self

    def reshape(self, k: int, sz: Sequence[int]) -> 'HxArray':
        """Relabel the grid with new axis sizes of the same total size"""
        self._validate(self.d, k, sz)
        total = self.n * int(np.prod(sz, dtype=np.int64))
        if total != self.len:
            raise ConfigurationMismatch(f"reshape from {self.sz} to {list(sz)} changes the array length")

        self.k = k
        self.sz = [int(s) for s in sz]
        return self

    def repack(self, ndiv: int) -> 'HxArray':
        """Split the last axis into two axes of sizes (ndiv, sz/ndiv)"""
        top = self.sz[-1]
        if ndiv < 1 or top % ndiv:
            raise DimensionError(f"axis {self.k - 1} of size {top} is not divisible by {ndiv}")

        return self.reshape(self.k + 1, self.sz[:-1] + [ndiv, top // ndiv])

    def compact(self) -> 'HxArray':
        """Drop every axis of size one (at least one axis remains)"""
        sz = [s for s in self.sz if s > 1] or [1]
        return self.reshape(len(sz), sz)

    def complexify(self, genh: bool = False) -> 'HxArray':
        """
        Promote pairs along the last axis into a new imaginary unit.

        Consecutive points (2j, 2j+1) of the last axis become the low and
        high halves of one point with 2n coefficients:

            (d=0, k=1, sz=[2m])    -> (d=1, k=1, sz=[m])
            (d=1, k=2, sz=[n, 2m]) -> (d=2, k=2, sz=[n, m])

        Args:
            genh: Decode gradient-enhanced pairs (sum and rotated difference)
                  before interlacing. Ignored for one-dimensional arrays.
        """
        top = self.sz[-1]
        if top < 2 or top % 2:
            raise DimensionError(f"topmost dimension {self.k - 1} has invalid size {top}")

        if self.k > 1:
            rest = self.npoints // top
            blocks = self.x.reshape(top // 2, 2, rest, self.n)

            if genh:
                first, second = data_shuffle(blocks[:, 0], blocks[:, 1], self.d, self.registry)
                blocks = np.stack([first, second], axis=1)

            self.x = np.ascontiguousarray(blocks.transpose(0, 2, 1, 3)).ravel()

        self.d += 1
        self.n *= 2
        self.sz[-1] = top // 2
        self.tbl = self.registry.get(self.d)
        return self

    def real(self, dim: int) -> 'HxArray':
        """
        Remove imaginary unit ``dim``, keeping the coefficients without it.

        A negative ``dim`` removes every imaginary unit.
        """
        if dim < 0:
            return self.resize_d(0)
        if dim >= self.d:
            raise DimensionError(f"algebraic dimension {dim} out of bounds [0,{self.d})")

        # move the removed unit to the top, then demote.
        if dim != self.d - 1:
            order = [i for i in range(self.d) if i != dim] + [dim]
            array_reorder_bases(self, order)

        return self.resize_d(self.d - 1)

    def shift(self, axis: int, amount: int) -> 'HxArray':
        """Circularly shift every vector along ``axis`` by ``amount`` points"""
        self._check_axis(axis, "shift index")
        amount = int(amount) % self.sz[axis]
        if amount == 0:
            return self

        grid = self.grid()
        grid[...] = np.roll(grid, amount, axis=self.k - 1 - axis)
        return self

    # -----------------------------------------------------------------------
    # Slicing
    # -----------------------------------------------------------------------

    def _region(self, lower: Sequence[int], upper: Sequence[int]) -> Tuple[slice, ...]:
        if len(lower) != self.k or len(upper) != self.k:
            raise DimensionError(f"slice bounds must have {self.k} elements")
        for i, (lo, hi) in enumerate(zip(lower, upper)):
            if lo < 0 or hi >= self.sz[i] or lo > hi:
                raise DimensionError(f"slice bounds [{lo},{hi}] invalid for axis {i} of size {self.sz[i]}")

        return tuple(slice(lo, hi + 1) for lo, hi in zip(reversed(lower), reversed(upper)))

    def slice(
        self,
        lower: Sequence[int],
        upper: Sequence[int],
        out: Optional['HxArray'] = None
    ) -> 'HxArray':
        """
        Extract the sub-array spanned by inclusive bounds.

        Args:
            lower: First index of the region
            upper: Last index of the region
            out: Optional output array, reused when already configured

        Returns:
            Sub-array with sizes ``upper - lower + 1``
        """
        region = self._region(lower, upper)
        sz = [hi - lo + 1 for lo, hi in zip(lower, upper)]

        if out is None:
            out = HxArray(self.d, self.k, sz, self.registry)
        else:
            out.ensure(self.d, self.k, sz)

        out.grid()[...] = self.grid()[region]
        return out

    def store(self, y: 'HxArray', lower: Sequence[int], upper: Sequence[int]) -> 'HxArray':
        """Write a sub-array back into the region spanned by the bounds"""
        region = self._region(lower, upper)
        sz = [hi - lo + 1 for lo, hi in zip(lower, upper)]
        if y.d != self.d or list(y.sz) != sz:
            raise ConfigurationMismatch(f"stored array (d={y.d}, sz={y.sz}) does not fit region {sz}")

        self.grid()[region] = y.grid()
        return self

    def _line(self, axis: int, loc: int) -> np.ndarray:
        self._check_axis(axis)
        stride = int(np.prod(self.sz[:axis], dtype=np.int64))
        pts = loc + stride * np.arange(self.sz[axis])
        if loc < 0 or pts[-1] >= self.npoints:
            raise DimensionError(f"vector offset {loc} out of bounds along axis {axis}")

        return pts

    def slice_vector(self, axis: int, loc: int, out: Optional['HxArray'] = None) -> 'HxArray':
        """
        Extract the line along ``axis`` that starts at linear offset ``loc``.
        """
        pts = self._line(axis, loc)
        if out is None:
            out = HxArray(self.d, 1, [pts.size], self.registry)
        else:
            out.ensure(self.d, 1, [pts.size])

        out.points()[...] = self.points()[pts]
        return out

    def store_vector(self, y: 'HxArray', axis: int, loc: int) -> 'HxArray':
        """Write a vector back into the line along ``axis`` at offset ``loc``"""
        pts = self._line(axis, loc)
        if y.d != self.d or y.npoints != pts.size:
            raise ConfigurationMismatch(f"stored vector (d={y.d}, sz={y.sz}) does not fit line of {pts.size}")

        self.points()[pts] = y.points()
        return self

    def _plane(self, k1: int, k2: int, loc: int) -> np.ndarray:
        self._check_axis(k1)
        self._check_axis(k2)
        if k1 == k2:
            raise DimensionError(f"matrix axes must differ (got {k1} twice)")

        s1 = int(np.prod(self.sz[:k1], dtype=np.int64))
        s2 = int(np.prod(self.sz[:k2], dtype=np.int64))
        i = np.arange(self.sz[k1])
        j = np.arange(self.sz[k2])
        pts = (loc + s1 * i[np.newaxis, :] + s2 * j[:, np.newaxis]).ravel()
        if loc < 0 or pts.max() >= self.npoints:
            raise DimensionError(f"matrix offset {loc} out of bounds along axes ({k1},{k2})")

        return pts

    def slice_matrix(self, k1: int, k2: int, loc: int, out: Optional['HxArray'] = None) -> 'HxArray':
        """Extract the plane spanned by axes (k1, k2) at offset ``loc``"""
        pts = self._plane(k1, k2, loc)
        sz = [self.sz[k1], self.sz[k2]]
        if out is None:
            out = HxArray(self.d, 2, sz, self.registry)
        else:
            out.ensure(self.d, 2, sz)

        out.points()[...] = self.points()[pts]
        return out

    def store_matrix(self, y: 'HxArray', k1: int, k2: int, loc: int) -> 'HxArray':
        """Write a plane back into axes (k1, k2) at offset ``loc``"""
        pts = self._plane(k1, k2, loc)
        if y.d != self.d or y.npoints != pts.size:
            raise ConfigurationMismatch(f"stored matrix (d={y.d}, sz={y.sz}) does not fit plane")

        self.points()[pts] = y.points()
        return self

    def slice_sched(self, offsets: Sequence[int], out: Optional['HxArray'] = None) -> 'HxArray':
        """Gather the grid points at explicit linear offsets into a vector"""
        offsets = np.asarray(offsets, dtype=np.int64)
        if offsets.size == 0 or offsets.min() < 0 or offsets.max() >= self.npoints:
            raise DimensionError("scheduled offsets out of bounds")

        if out is None:
            out = HxArray(self.d, 1, [offsets.size], self.registry)
        else:
            out.ensure(self.d, 1, [offsets.size])

        out.points()[...] = self.points()[offsets]
        return out

    def store_sched(self, y: 'HxArray', offsets: Sequence[int]) -> 'HxArray':
        """Scatter a vector back to explicit linear offsets"""
        offsets = np.asarray(offsets, dtype=np.int64)
        if y.d != self.d or y.npoints != offsets.size:
            raise ConfigurationMismatch("scheduled vector does not match offset count")
        if offsets.min() < 0 or offsets.max() >= self.npoints:
            raise DimensionError("scheduled offsets out of bounds")

        self.points()[offsets] = y.points()
        return self

    # -----------------------------------------------------------------------
    # Iteration
    # -----------------------------------------------------------------------

    def foreach_vector(self, axis: int, fn: VectorCallback) -> 'HxArray':
        """
        Apply ``fn(x, y, idx, pidx)`` to every line along ``axis``.

        ``y`` is a scratch vector holding the line, ``idx`` the index of
        its first point and ``pidx`` that point's linear offset. Changes
        made to ``y`` are stored back. Extra state is passed by closure.
        """
        self._check_axis(axis)

        y = None
        for loc in hxindex.jump_offsets(self.sz, axis):
            loc = int(loc)
            y = self.slice_vector(axis, loc, y)
            fn(self, y, hxindex.unpack(self.sz, loc), loc)
            self.store_vector(y, axis, loc)

        return self

    def foreach_matrix(self, k1: int, k2: int, fn: VectorCallback) -> 'HxArray':
        """Apply ``fn(x, y, idx, pidx)`` to every plane spanned by (k1, k2)"""
        self._check_axis(k1)
        self._check_axis(k2)

        mask = [i in (k1, k2) for i in range(self.k)]
        idx = hxindex.index_alloc(self.k)
        y = None
        while True:
            loc = hxindex.pack(self.sz, idx)
            y = self.slice_matrix(k1, k2, loc, y)
            fn(self, y, list(idx), loc)
            self.store_matrix(y, k1, k2, loc)

            if not hxindex.incr_mask(self.sz, idx, mask):
                break

        return self

    def projector(self, axis: int, fn: Callable[['HxArray'], np.ndarray]) -> 'HxArray':
        """
        Collapse ``axis`` to size one with a reduction over every line.

        Args:
            axis: Axis to collapse
            fn: Reduction returning the n coefficients of one value

        Returns:
            New array with ``sz[axis] == 1``
        """
        self._check_axis(axis)

        sz = list(self.sz)
        sz[axis] = 1
        out = HxArray(self.d, self.k, sz, self.registry)

        y = None
        for loc in hxindex.jump_offsets(self.sz, axis):
            y = self.slice_vector(axis, int(loc), y)
            idx = hxindex.unpack(self.sz, int(loc))
            out.points()[hxindex.pack(sz, idx)] = np.asarray(fn(y), dtype=float)

        return out

    # -----------------------------------------------------------------------
    # Tiling
    # -----------------------------------------------------------------------

    def tiler(
        self,
        ntile: Sequence[int],
        sztile: Sequence[int],
        direction: int = TILER_FORWARD,
        order: str = INCR_NORMAL
    ) -> 'HxArray':
        """
        Convert between tiled and linear point ordering in place.

        In the tiled ordering the points of each tile are contiguous and
        tiles follow each other. ``TILER_FORWARD`` converts tiled to
        linear, ``TILER_REVERSE`` linear to tiled. ``order`` selects
        whether axis 0 (``INCR_NORMAL``) or the last axis
        (``INCR_REVERSE``) varies fastest, inside and across tiles.
        """
        if len(ntile) != self.k or len(sztile) != self.k:
            raise DimensionError(f"tiling must have {self.k} entries per axis")
        if [a * b for a, b in zip(ntile, sztile)] != self.sz:
            raise ConfigurationMismatch(f"tiling {list(ntile)}x{list(sztile)} does not cover sizes {self.sz}")
        if direction not in (TILER_FORWARD, TILER_REVERSE):
            raise DimensionError(f"invalid tiler direction {direction}")
        if order not in (INCR_NORMAL, INCR_REVERSE):
            raise DimensionError(f"invalid tiler order '{order}'")

        step = hxindex.incr if order == INCR_NORMAL else hxindex.incr_rev

        # linear offset of every tiled position.
        mapping = np.empty(self.npoints, dtype=np.int64)
        idx = hxindex.index_alloc(self.k)
        tidx = hxindex.index_alloc(self.k)
        pos = 0
        while True:
            while True:
                mapping[pos] = hxindex.pack_tiled(ntile, sztile, idx, tidx)
                pos += 1
                if not step(sztile, idx):
                    break

            if not step(ntile, tidx):
                break

        src = self.points().copy()
        if direction == TILER_FORWARD:
            self.points()[mapping] = src
        else:
            self.points()[...] = src[mapping]

        return self

    def tiling(self, nwords: int) -> Tuple[List[int], List[int]]:
        """
        Choose tile counts and sizes holding at most ``nwords`` points.

        Tiles are halved along the first even-sized axis, at least once,
        until they fit.

        Returns:
            Tuple of (tile counts, tile sizes)
        """
        nt = [1] * self.k
        szt = list(self.sz)

        kdiv = 0
        while True:
            while kdiv < self.k and szt[kdiv] % 2:
                kdiv += 1
            if kdiv >= self.k:
                raise DimensionError(f"failed to identify a tiling of {self.sz} within {nwords} words")

            szt[kdiv] //= 2
            nt[kdiv] *= 2

            if int(np.prod(szt)) <= nwords:
                break

        return nt, szt

    def __repr__(self) -> str:
        return f"HxArray(d={self.d}, k={self.k}, sz={self.sz})"


# ---------------------------------------------------------------------------
# Projection reducers
# ---------------------------------------------------------------------------

def project_sum(y: HxArray) -> np.ndarray:
    """Sum of every value of a vector"""
    return y.points().sum(axis=0)


def project_max(y: HxArray) -> np.ndarray:
    """Value of largest norm in a vector"""
    pts = y.points()
    return pts[np.argmax(np.sum(pts * pts, axis=1))].copy()


def project_min(y: HxArray) -> np.ndarray:
    """Value of smallest norm in a vector"""
    pts = y.points()
    return pts[np.argmin(np.sum(pts * pts, axis=1))].copy()
