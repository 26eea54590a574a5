"""
Hypercomplex Algebra Tables
===========================

Multiplication tables for hypercomplex numbers of order d.

A number of order d has n = 2^d real coefficients, one per subset of the
d imaginary units. The product of basis elements i and j is basis
element ``i ^ j`` with sign ``(-1)^popcount(i & j)``, so every single
unit squares to -1. The table is stored flat as ``tbl[i*n + j] = ±(k+1)``.

Tables are built lazily and cached by an ``AlgebraRegistry``. Cached
tables are read-only numpy arrays that scalars and arrays borrow.
"""

import logging
import threading
import numpy as np
from typing import Dict, Optional, Tuple

from .errors import DimensionError


logger = logging.getLogger(__name__)

# largest supported algebraic dimensionality.
MAX_DIMS = 16


def build_algebra(d: int) -> np.ndarray:
    """
    Build the flat signed multiplication table for order d.

    Args:
        d: Algebraic dimensionality (>= 0)

    Returns:
        Integer array of length (2^d)^2

    Example:
        >>> build_algebra(1)
        array([ 1,  2,  2, -1])
    """
    if d < 0 or d > MAX_DIMS:
        raise DimensionError(f"algebraic dimensionality {d} out of bounds [0,{MAX_DIMS}]")

    n = 1 << d
    i, j = np.meshgrid(np.arange(n), np.arange(n), indexing='ij')

    # output basis index and parity of the shared units.
    k = np.bitwise_xor(i, j)
    common = np.bitwise_and(i, j)
    parity = np.zeros_like(common)
    for bit in range(d):
        parity += (common >> bit) & 1

    sign = np.where(parity % 2, -1, 1)
    return (sign * (k + 1)).astype(np.int64).ravel()


def decode_algebra(tbl: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split a flat table into (output index, sign) matrices of shape (n, n).
    """
    n = int(round(np.sqrt(tbl.size)))
    tbl = tbl.reshape(n, n)
    return np.abs(tbl) - 1, np.sign(tbl).astype(float)


class AlgebraRegistry:
    """
    Lazily populated cache of algebra tables keyed by dimensionality.

    Tables are built once under a lock and never mutated afterwards, so
    concurrent readers may share them freely.
    """

    def __init__(self):
        self._tables: Dict[int, np.ndarray] = {}
        self._decoded: Dict[int, Tuple[np.ndarray, np.ndarray]] = {}
        self._lock = threading.Lock()

    def get(self, d: int) -> np.ndarray:
        """
        Return the table for order d, building it on first use.

        Args:
            d: Algebraic dimensionality

        Returns:
            Read-only flat table
        """
        tbl = self._tables.get(d)
        if tbl is not None:
            return tbl

        with self._lock:
            tbl = self._tables.get(d)
            if tbl is None:
                tbl = build_algebra(d)
                tbl.flags.writeable = False

                idx, sgn = decode_algebra(tbl)
                idx.flags.writeable = False
                sgn.flags.writeable = False

                self._decoded[d] = (idx, sgn)
                self._tables[d] = tbl
                logger.debug("built %d-algebra table (%d entries)", d, tbl.size)

        return tbl

    def decoded(self, d: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return the (output index, sign) matrices for order d"""
        self.get(d)
        return self._decoded[d]

    def __contains__(self, d: int) -> bool:
        return d in self._tables

    def __len__(self) -> int:
        return len(self._tables)


default_registry = AlgebraRegistry()


def get_algebra(d: int, registry: Optional[AlgebraRegistry] = None) -> np.ndarray:
    """Fetch the table for order d from ``registry`` (or the default one)"""
    if registry is None:
        registry = default_registry

    return registry.get(d)
