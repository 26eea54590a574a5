"""
Entropy Functionals
===================

Entropy functionals used by maximum-entropy reconstruction.

Each functional is a value f(r) of the magnitude r = |x| of a
hypercomplex value x, and the derivative used for gradient steps:

    df(x) = -(f'(r) / r) * x

so the gradient is more negative for more probable (larger) values.
The derivative is zero at r = 0, where the value takes its limit: -2
for hoch and zero for the others.

| name     | f(r)                                        | f'(r)                      |
|----------|---------------------------------------------|----------------------------|
| norm     | r                                           | 1                          |
| shannon  | r log r                                     | log r + 1                  |
| skilling | r log r - r                                 | log r                      |
| hoch     | r log(r/2 + sqrt(1 + r^2/4)) - sqrt(4 + r^2) | log(r/2 + sqrt(1 + r^2/4)) |
"""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict

from ..core.arith import data_norm
from ..core.errors import DimensionError


class EntropyType(Enum):
    """Entropy functional types"""
    UNDEFINED = "undefined"
    NORM = "norm"
    SHANNON = "shannon"
    SKILLING = "skilling"
    HOCH = "hoch"


@dataclass(frozen=True)
class EntropyFunctional:
    """Value and derivative of an entropy functional as functions of r"""
    value: Callable[[np.ndarray], np.ndarray]
    derivative: Callable[[np.ndarray], np.ndarray]
    zero: float = 0.0                  # value at r = 0


def _asinh_half(r):
    return np.log(r / 2.0 + np.sqrt(1.0 + r * r / 4.0))


ENTROPY_FUNCTIONALS: Dict[EntropyType, EntropyFunctional] = {
    EntropyType.NORM: EntropyFunctional(
        value=lambda r: r,
        derivative=lambda r: np.ones_like(r),
    ),
    EntropyType.SHANNON: EntropyFunctional(
        value=lambda r: r * np.log(r),
        derivative=lambda r: np.log(r) + 1.0,
    ),
    EntropyType.SKILLING: EntropyFunctional(
        value=lambda r: r * np.log(r) - r,
        derivative=lambda r: np.log(r),
    ),
    EntropyType.HOCH: EntropyFunctional(
        value=lambda r: r * _asinh_half(r) - np.sqrt(4.0 + r * r),
        derivative=_asinh_half,
        zero=-2.0,
    ),
}


def lookup_entropy(name: str) -> EntropyType:
    """
    Map a functional name to its type.

    Returns:
        Matching type, or ``EntropyType.UNDEFINED`` for unknown names
    """
    try:
        return EntropyType(str(name).strip().lower())
    except ValueError:
        return EntropyType.UNDEFINED


def _functional(kind: EntropyType) -> EntropyFunctional:
    if kind not in ENTROPY_FUNCTIONALS:
        raise DimensionError(f"undefined entropy functional '{kind.value}'")

    return ENTROPY_FUNCTIONALS[kind]


def entropy_values(kind: EntropyType, x: np.ndarray) -> np.ndarray:
    """
    Functional value of every hypercomplex value.

    Args:
        kind: Entropy functional
        x: Coefficients, shape (..., n)

    Returns:
        Values, shape (...)
    """
    fn = _functional(kind)
    r = data_norm(x)
    out = np.full_like(r, fn.zero)

    nz = r > 0.0
    out[nz] = fn.value(r[nz])
    return out


def entropy(kind: EntropyType, x: np.ndarray) -> float:
    """Total functional value over all values"""
    return float(np.sum(entropy_values(kind, x)))


def entropy_gradient(kind: EntropyType, x: np.ndarray) -> np.ndarray:
    """
    Derivative ``-(f'(r) / r) * x`` of every hypercomplex value.

    Args:
        kind: Entropy functional
        x: Coefficients, shape (..., n)

    Returns:
        Gradient coefficients, same shape as ``x``
    """
    fn = _functional(kind)
    r = data_norm(x)
    scale = np.zeros_like(r)

    nz = r > 0.0
    scale[nz] = -fn.derivative(r[nz]) / r[nz]
    return scale[..., np.newaxis] * x
