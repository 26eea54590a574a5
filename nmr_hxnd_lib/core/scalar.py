"""
Hypercomplex Scalar
===================

A single hypercomplex value: 2^d real coefficients plus a borrowed
reference to the algebra table of order d.
"""

import numpy as np
from typing import Iterable, Optional

from .algebra import AlgebraRegistry, default_registry
from .errors import DimensionError


class HxScalar:
    """
    Hypercomplex scalar of algebraic dimensionality d.

    Attributes:
        d: Algebraic dimensionality
        n: Number of coefficients (2^d)
        x: Coefficient vector
        tbl: Borrowed algebra table

    Example:
        >>> i = HxScalar(1, [0.0, 1.0])
        >>> i.phasor(0, np.pi / 2)
    """

    def __init__(
        self,
        d: int,
        values: Optional[Iterable[float]] = None,
        registry: Optional[AlgebraRegistry] = None
    ):
        if d < 0:
            raise DimensionError(f"invalid algebraic dimensionality {d}")

        self.registry = registry if registry is not None else default_registry
        self.d = d
        self.n = 1 << d
        self.tbl = self.registry.get(d)
        self.x = np.zeros(self.n)

        if values is not None:
            values = np.asarray(list(values), dtype=float)
            if values.size != self.n:
                raise DimensionError(f"expected {self.n} coefficients, got {values.size}")
            self.x[:] = values

    def copy(self) -> 'HxScalar':
        """Create a deep copy"""
        return HxScalar(self.d, self.x, self.registry)

    def resize(self, d: int) -> 'HxScalar':
        """
        Change the algebraic dimensionality in place.

        Existing coefficients are kept up to the smaller of the two sizes,
        new coefficients are zero.
        """
        if d < 0:
            raise DimensionError(f"invalid algebraic dimensionality {d}")
        if d == self.d:
            return self

        n = 1 << d
        x = np.zeros(n)
        m = min(n, self.n)
        x[:m] = self.x[:m]

        self.tbl = self.registry.get(d)
        self.d = d
        self.n = n
        self.x = x
        return self

    def zero(self) -> 'HxScalar':
        self.x[:] = 0.0
        return self

    def fill(self, value: float) -> 'HxScalar':
        """Set the real coefficient to ``value`` and zero the rest"""
        self.x[:] = 0.0
        self.x[0] = value
        return self

    def phasor(self, axis: int, phi: float) -> 'HxScalar':
        """
        Build ``exp(u_axis * phi)`` in place.

        Args:
            axis: Imaginary unit index (< d)
            phi: Phase angle in radians
        """
        if axis < 0 or axis >= self.d:
            raise DimensionError(f"phasor dimension {axis} out of bounds [0,{self.d})")

        self.x[:] = 0.0
        self.x[0] = np.cos(phi)
        self.x[1 << axis] = np.sin(phi)
        return self

    def __repr__(self) -> str:
        coeffs = ", ".join(f"{v:g}" for v in self.x)
        return f"HxScalar(d={self.d}, [{coeffs}])"


def scalar_phasor(d: int, axis: int, phi: float, registry: Optional[AlgebraRegistry] = None) -> HxScalar:
    """Allocate a phasor scalar of order d"""
    return HxScalar(d, registry=registry).phasor(axis, phi)
