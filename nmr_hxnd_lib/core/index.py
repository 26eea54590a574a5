"""
Multidimensional Index Utilities
================================

Arithmetic on index tuples of topological arrays.

An index is a plain list of k integers that is always paired with a
size list of the same length. Linear offsets use the axis-0-fastest
convention: ``stride[0] = 1`` and ``stride[i] = stride[i-1] * sizes[i-1]``.

The increment functions modify the index in place and return False only
when the whole index wraps back to its starting value, so they serve as
the condition of a traversal loop:

    >>> idx = index_alloc(2)
    >>> while True:
    ...     visit(idx)
    ...     if not incr([2, 3], idx):
    ...         break
"""

import numpy as np
from typing import List, Optional, Sequence, Tuple

from .errors import DimensionError


Index = List[int]


def index_alloc(k: int) -> Index:
    """Allocate a zeroed index of k elements"""
    if k < 0:
        raise DimensionError(f"invalid index length {k}")

    return [0] * k


def index_build(*values: int) -> Index:
    """Build an index from explicit values"""
    return [int(v) for v in values]


def strides(sizes: Sequence[int]) -> Index:
    """Linear strides of every axis"""
    out = []
    stride = 1
    for sz in sizes:
        out.append(stride)
        stride *= int(sz)

    return out


def pack(sizes: Sequence[int], idx: Sequence[int]) -> int:
    """
    Pack an index into a linear offset.

    Args:
        sizes: Axis sizes
        idx: Index tuple

    Returns:
        Linear offset
    """
    offset = 0
    stride = 1
    for sz, i in zip(sizes, idx):
        offset += int(i) * stride
        stride *= int(sz)

    return offset


def unpack(sizes: Sequence[int], offset: int) -> Index:
    """Unpack a linear offset into an index tuple"""
    idx = []
    for sz in sizes:
        idx.append(offset % sz)
        offset //= sz

    return idx


def pack_tiled(
    ntile: Sequence[int],
    sztile: Sequence[int],
    idx: Sequence[int],
    tile_idx: Sequence[int]
) -> int:
    """
    Pack an in-tile index and a tile index into a linear offset.

    Args:
        ntile: Number of tiles along each axis
        sztile: Tile size along each axis
        idx: Index within the tile
        tile_idx: Index of the tile

    Returns:
        Linear offset in the untiled grid
    """
    offset = 0
    stride = 1
    for nt, szt, i, it in zip(ntile, sztile, idx, tile_idx):
        offset += (i + it * szt) * stride
        stride *= nt * szt

    return offset


def incr(sizes: Sequence[int], idx: Index) -> bool:
    """Increment in place, axis 0 fastest"""
    for i in range(len(idx)):
        idx[i] += 1
        if idx[i] < sizes[i]:
            return True

        idx[i] = 0

    return False


def decr(sizes: Sequence[int], idx: Index) -> bool:
    """Decrement in place, axis 0 fastest"""
    for i in range(len(idx)):
        idx[i] -= 1
        if idx[i] >= 0:
            return True

        idx[i] = sizes[i] - 1

    return False


def incr_rev(sizes: Sequence[int], idx: Index) -> bool:
    """Increment in place, last axis fastest"""
    for i in reversed(range(len(idx))):
        idx[i] += 1
        if idx[i] < sizes[i]:
            return True

        idx[i] = 0

    return False


def decr_rev(sizes: Sequence[int], idx: Index) -> bool:
    """Decrement in place, last axis fastest"""
    for i in reversed(range(len(idx))):
        idx[i] -= 1
        if idx[i] >= 0:
            return True

        idx[i] = sizes[i] - 1

    return False


def incr_mask(sizes: Sequence[int], idx: Index, mask: Sequence[bool]) -> bool:
    """
    Increment in place, leaving every axis flagged in ``mask`` untouched.

    Used to visit every line or plane orthogonal to the masked axes.
    """
    for i in range(len(idx)):
        if mask[i]:
            continue

        idx[i] += 1
        if idx[i] < sizes[i]:
            return True

        idx[i] = 0

    return False


def skip(sizes: Sequence[int], idx: Index, axis: int) -> bool:
    """Increment in place over every axis except ``axis``"""
    return incr_mask(sizes, idx, [i == axis for i in range(len(idx))])


def incr_bounded(lower: Sequence[int], upper: Sequence[int], idx: Index) -> bool:
    """
    Increment in place within inclusive per-axis bounds.

    Axes with ``lower == upper`` are held fixed.
    """
    for i in range(len(idx)):
        if lower[i] == upper[i]:
            continue

        idx[i] += 1
        if idx[i] <= upper[i]:
            return True

        idx[i] = lower[i]

    return False


def jump_init(sizes: Sequence[int], axis: int) -> Tuple[int, int, int]:
    """
    Prepare strides for enumerating offsets orthogonal to ``axis``.

    Args:
        sizes: Axis sizes
        axis: Skipped axis

    Returns:
        Tuple of (small stride, large stride, count). For every ``j`` in
        ``range(count)``, ``jump(j, small, large)`` is the linear offset of
        a distinct line along ``axis``.
    """
    if axis < 0 or axis >= len(sizes):
        raise DimensionError(f"skipped axis {axis} out of bounds [0,{len(sizes)})")

    ja = int(np.prod(sizes[:axis], dtype=np.int64))
    jb = ja * int(sizes[axis])
    jmax = int(np.prod(sizes, dtype=np.int64)) // int(sizes[axis])

    return ja, jb, jmax


def jump(j: int, ja: int, jb: int) -> int:
    """Linear offset of the j-th line orthogonal to the skipped axis"""
    return jb * (j // ja) + j % ja


def jump_offsets(sizes: Sequence[int], axis: int) -> np.ndarray:
    """All ``jump`` offsets for ``axis`` as an integer vector"""
    ja, jb, jmax = jump_init(sizes, axis)
    j = np.arange(jmax, dtype=np.int64)
    return jb * (j // ja) + j % ja


def diff(a: Sequence[int], b: Sequence[int]) -> Index:
    """Elementwise difference ``a - b``"""
    return [int(x) - int(y) for x, y in zip(a, b)]


def compare(a: Sequence[int], b: Sequence[int]) -> int:
    """
    Compare two indices of equal length.

    Returns:
        -1, 0 or 1 according to the first differing element
    """
    for x, y in zip(a, b):
        if x < y:
            return -1
        if x > y:
            return 1

    return 0


def bounded(
    idx: Sequence[int],
    upper: Sequence[int],
    lower: Optional[Sequence[int]] = None
) -> bool:
    """Check ``lower <= idx <= upper`` (inclusive, lower defaults to zeros)"""
    for i, x in enumerate(idx):
        if x < 0 or (lower is not None and x < lower[i]):
            return False
        if x > upper[i]:
            return False

    return True


def sort(values: Sequence[int]) -> Index:
    """
    Stable ascending argsort.

    Example:
        >>> sort([2, 0, 1])
        [1, 2, 0]
    """
    return [int(i) for i in np.argsort(np.asarray(values), kind='stable')]


def scheduled(sizes: Sequence[int], schedule) -> np.ndarray:
    """
    Linear offsets of sampled grid points.

    Args:
        sizes: Sizes of the scheduled (indirect) axes
        schedule: (n_sched, d_sched) integer array, d_sched >= len(sizes)

    Returns:
        Sorted vector of unique linear offsets
    """
    points = np.atleast_2d(np.asarray(schedule, dtype=np.int64))
    k = len(sizes)

    if points.size == 0:
        raise DimensionError("empty sampling schedule")
    if points.shape[1] < k:
        raise DimensionError(f"schedule has {points.shape[1]} columns, need {k}")
    if np.any(points[:, :k] < 0) or np.any(points[:, :k] >= np.asarray(sizes)):
        raise DimensionError(f"schedule entries out of bounds for sizes {list(sizes)}")

    offsets = points[:, :k] @ np.asarray(strides(sizes), dtype=np.int64)
    return np.unique(offsets)


def unscheduled(sizes: Sequence[int], schedule) -> np.ndarray:
    """Sorted linear offsets of grid points absent from the schedule"""
    total = int(np.prod(sizes, dtype=np.int64))
    return np.setdiff1d(np.arange(total, dtype=np.int64), scheduled(sizes, schedule))
