"""
Configuration Comparison
========================

Comparisons between scalars, arrays and indices that report *what*
differs rather than a bare boolean. Every function returns a signed
``Mismatch`` code: zero when the operands agree, otherwise the kind of
the first difference, negative when the left operand is the smaller one.
"""

import numpy as np
from enum import IntEnum
from typing import Sequence


class Mismatch(IntEnum):
    """Comparison result kinds"""
    ID = 0        # identical
    DIMS = 1      # algebraic dimensionality differs
    TOPO = 2      # topological dimensionality differs
    SIZE = 3      # axis sizes differ
    DATA = 4      # coefficients differ


def _signed(kind: Mismatch, a, b) -> int:
    return -int(kind) if a < b else int(kind)


def index_cmp(a: Sequence[int], b: Sequence[int]) -> int:
    """Compare two index (or size) tuples of equal length"""
    for x, y in zip(a, b):
        if x != y:
            return _signed(Mismatch.SIZE, x, y)

    return Mismatch.ID


def scalar_dims_cmp(a, b) -> int:
    """Compare the algebraic dimensionality of two scalars"""
    if a.d != b.d:
        return _signed(Mismatch.DIMS, a.d, b.d)

    return Mismatch.ID


def scalar_cmp(a, b) -> int:
    """Compare two scalars by dimensionality, then coefficients"""
    kind = scalar_dims_cmp(a, b)
    if kind:
        return kind

    return _data_cmp(a.x, b.x)


def array_dims_cmp(a, b) -> int:
    """Compare algebraic dimensionality"""
    if a.d != b.d:
        return _signed(Mismatch.DIMS, a.d, b.d)

    return Mismatch.ID


def array_topo_cmp(a, b) -> int:
    """Compare topological dimensionality, then axis sizes"""
    if a.k != b.k:
        return _signed(Mismatch.TOPO, a.k, b.k)

    return index_cmp(a.sz, b.sz)


def array_conf_cmp(a, b) -> int:
    """Compare the full configuration (d, k, sizes)"""
    return array_dims_cmp(a, b) or array_topo_cmp(a, b)


def array_cmp(a, b) -> int:
    """Compare configuration, then coefficients"""
    kind = array_conf_cmp(a, b)
    if kind:
        return kind

    return _data_cmp(a.x, b.x)


def _data_cmp(x: np.ndarray, y: np.ndarray) -> int:
    diff = np.flatnonzero(x != y)
    if diff.size == 0:
        return Mismatch.ID

    i = diff[0]
    return _signed(Mismatch.DATA, x[i], y[i])
