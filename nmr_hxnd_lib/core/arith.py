"""
Hypercomplex Arithmetic
=======================

Coefficient-level arithmetic shared by scalars and arrays.

Raw operations act on numpy arrays whose last axis holds the n = 2^d
coefficients of each hypercomplex value. Two fused forms cover all
binary operations:

- ``c = a + s * b`` (``data_add``)
- ``c += a * b`` (``data_mul``), the product defined by the algebra table

Scalar and array variants validate their operands and then defer to the
raw operations. Array arguments broadcast a scalar over every grid point.
"""

import numpy as np
from typing import Optional, Sequence

from .algebra import AlgebraRegistry, default_registry
from .compare import array_conf_cmp, array_dims_cmp, array_topo_cmp, scalar_dims_cmp
from .errors import ConfigurationMismatch, DimensionError


# ---------------------------------------------------------------------------
# Raw coefficient operations
# ---------------------------------------------------------------------------

def data_add(
    a: Optional[np.ndarray],
    b: Optional[np.ndarray],
    out: np.ndarray,
    s: float = 1.0
) -> np.ndarray:
    """
    Compute ``out = a + s * b``.

    With ``a`` omitted this is a scaling (``out = s * b``). With ``b``
    omitted the real constant ``s`` is added to every coefficient of ``a``.

    Args:
        a: First operand (or None)
        b: Second operand (or None)
        out: Output coefficients, may alias either operand
        s: Scale factor

    Returns:
        ``out``
    """
    if a is None:
        np.multiply(b, s, out=out)
    elif b is None:
        np.add(a, s, out=out)
    else:
        np.add(a, s * b, out=out)

    return out


def data_mul(
    a: np.ndarray,
    b: np.ndarray,
    out: np.ndarray,
    d: int,
    registry: Optional[AlgebraRegistry] = None
) -> np.ndarray:
    """
    Accumulate the hypercomplex product ``out += a * b``.

    Every pair of basis elements (i, j) contributes
    ``sign(i, j) * a[i] * b[j]`` to coefficient ``i ^ j``. Left-operand
    coefficients that are zero everywhere are skipped.

    Args:
        a: Left operand, shape (..., n)
        b: Right operand, shape (..., n)
        out: Accumulator, must not alias ``a`` or ``b``
        d: Algebraic dimensionality
        registry: Algebra registry (default: process-wide registry)

    Returns:
        ``out``
    """
    if registry is None:
        registry = default_registry

    idx, sgn = registry.decoded(d)
    for i in range(1 << d):
        ai = a[..., i]
        if not np.any(ai):
            continue

        # idx[i] is a permutation, so the scattered add is collision-free.
        out[..., idx[i]] += sgn[i] * (ai[..., np.newaxis] * b)

    return out


def data_multiply(
    a: np.ndarray,
    b: np.ndarray,
    d: int,
    registry: Optional[AlgebraRegistry] = None
) -> np.ndarray:
    """Return the product ``a * b`` as a new coefficient array"""
    shape = np.broadcast_shapes(np.shape(a), np.shape(b))
    return data_mul(a, b, np.zeros(shape), d, registry)


def data_conj(x: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Negate every non-real coefficient"""
    if out is None:
        out = np.array(x, dtype=float)
    elif out is not x:
        out[...] = x

    out[..., 1:] *= -1.0
    return out


def data_semiconj(x: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Negate every coefficient whose basis holds an odd number of units.

    Unlike ``data_conj``, products of an even number of units keep their
    sign, so a product of phasors maps to the product of their conjugates.
    """
    if out is None:
        out = np.array(x, dtype=float)
    elif out is not x:
        out[...] = x

    n = out.shape[-1]
    odd = np.array([bin(i).count("1") % 2 == 1 for i in range(n)], dtype=bool)
    out[..., odd] *= -1.0
    return out


def data_sumsq(x: np.ndarray) -> np.ndarray:
    """Sum of squared coefficients of every value"""
    return np.sum(np.square(x), axis=-1)


def data_norm(x: np.ndarray) -> np.ndarray:
    """Euclidean norm over the coefficients of every value"""
    return np.sqrt(data_sumsq(x))


def data_negate_basis(x: np.ndarray, dim: int) -> np.ndarray:
    """Negate, in place, every coefficient whose basis contains unit ``dim``"""
    n = x.shape[-1]
    if dim < 0 or (1 << dim) >= n:
        raise DimensionError(f"basis index {dim} out of bounds [0,{n.bit_length() - 1})")

    mask = (np.arange(n) & (1 << dim)) != 0
    x[..., mask] *= -1.0
    return x


def basis_permutation(order: Sequence[int]) -> np.ndarray:
    """
    Coefficient permutation that moves unit ``order[i]`` to position i.

    Returns:
        Vector ``perm`` such that new coefficient ``perm[c]`` receives
        old coefficient ``c``
    """
    d = len(order)
    if sorted(order) != list(range(d)):
        raise DimensionError(f"invalid basis ordering {list(order)}")

    old = np.arange(1 << d)
    perm = np.zeros_like(old)
    for i, src in enumerate(order):
        perm |= ((old >> src) & 1) << i

    return perm


def data_reorder_bases(x: np.ndarray, order: Sequence[int]) -> np.ndarray:
    """Reorder, in place, the imaginary units of every value"""
    perm = basis_permutation(order)
    if perm.size != x.shape[-1]:
        raise DimensionError(f"ordering of {len(order)} units does not match {x.shape[-1]} coefficients")

    tmp = np.array(x)
    x[..., perm] = tmp
    return x


def data_shuffle(
    a: np.ndarray,
    b: np.ndarray,
    d: int,
    registry: Optional[AlgebraRegistry] = None
):
    """
    Recover hypercomplex pairs from gradient-enhanced pairs.

    Computes ``c = b + a`` and ``e = (b - a) * u`` where u is the highest
    imaginary unit of order d.

    Returns:
        Tuple of (c, e)
    """
    if d < 1:
        raise DimensionError("gradient-enhanced shuffle requires d >= 1")

    ph = np.zeros(1 << d)
    ph[1 << (d - 1)] = 1.0

    c = b + a
    e = data_multiply(b - a, ph, d, registry)
    return c, e


# ---------------------------------------------------------------------------
# Scalar operations
# ---------------------------------------------------------------------------

def scalar_add(a, b, s: float, c):
    """Compute ``c = a + s * b`` for scalars"""
    if scalar_dims_cmp(a, b) or scalar_dims_cmp(a, c):
        raise ConfigurationMismatch(f"scalar dimensionality mismatch ({a.d}, {b.d}, {c.d})")

    data_add(a.x, b.x, c.x, s)
    return c


def scalar_mul(a, b, c):
    """Accumulate ``c += a * b`` for scalars"""
    if scalar_dims_cmp(a, b) or scalar_dims_cmp(a, c):
        raise ConfigurationMismatch(f"scalar dimensionality mismatch ({a.d}, {b.d}, {c.d})")

    prod = data_multiply(a.x, b.x, a.d, a.registry)
    c.x += prod
    return c


def scalar_scale(a, s: float, b):
    """Compute ``b = s * a`` for scalars"""
    if scalar_dims_cmp(a, b):
        raise ConfigurationMismatch(f"scalar dimensionality mismatch ({a.d} != {b.d})")

    data_add(None, a.x, b.x, s)
    return b


def scalar_norm(a):
    """Replace ``a`` by its norm, stored in the real coefficient"""
    nrm = float(data_norm(a.x))
    a.x[...] = 0.0
    a.x[0] = nrm
    return a


def scalar_negate_basis(a, dim: int):
    """Negate unit ``dim`` of a scalar"""
    if dim < 0 or dim >= a.d:
        raise DimensionError(f"algebraic dimension {dim} out of bounds [0,{a.d})")

    data_negate_basis(a.x, dim)
    return a


def scalar_reorder_bases(a, order: Sequence[int]):
    """Reorder the imaginary units of a scalar"""
    if len(order) != a.d:
        raise DimensionError(f"ordering has {len(order)} entries, expected {a.d}")
    for dim in order:
        if dim < 0 or dim >= a.d:
            raise DimensionError(f"algebraic dimension {dim} out of bounds [0,{a.d})")

    data_reorder_bases(a.x, order)
    return a


# ---------------------------------------------------------------------------
# Array operations
# ---------------------------------------------------------------------------

def _check_conf(a, *others, what: str = "array"):
    for other in others:
        kind = array_conf_cmp(a, other)
        if kind:
            raise ConfigurationMismatch(
                f"{what} configuration mismatch: (d={a.d}, sz={a.sz}) vs (d={other.d}, sz={other.sz})",
                kind
            )


def array_add_scalar(a, b, s: float, c):
    """Compute ``c = a + s * b`` with scalar ``b`` broadcast over ``a``"""
    if a.d != b.d:
        raise ConfigurationMismatch(f"array-scalar dimensionality mismatch ({a.d} != {b.d})")
    _check_conf(a, c)

    data_add(a.points(), b.x, c.points(), s)
    return c


def array_add_array(a, b, s: float, c):
    """Compute ``c = a + s * b`` elementwise"""
    _check_conf(a, b, c)

    data_add(a.x, b.x, c.x, s)
    return c


def array_mul_scalar(a, b, c):
    """Accumulate ``c += b * a`` with scalar ``b`` on the left of every element"""
    if a.d != b.d:
        raise ConfigurationMismatch(f"array-scalar dimensionality mismatch ({a.d} != {b.d})")
    _check_conf(a, c)

    prod = data_multiply(b.x, a.points(), a.d, a.registry)
    c.points()[...] += prod
    return c


def array_mul_array(a, b, c):
    """Accumulate ``c += a * b`` elementwise"""
    _check_conf(a, b, c)

    prod = data_multiply(a.points(), b.points(), a.d, a.registry)
    c.points()[...] += prod
    return c


def array_mul_vector(a, b, axis: int, c):
    """
    Multiply every vector of ``a`` along ``axis`` by the vector ``b``.

    Args:
        a: Input array
        b: Vector (k = 1) of length ``a.sz[axis]``
        axis: Topological axis of the vectors
        c: Output array with the configuration of ``a`` (may be ``a``)

    Returns:
        ``c``
    """
    if axis < 0 or axis >= a.k:
        raise DimensionError(f"array index {axis} out of bounds [0,{a.k})")
    if b.k != 1:
        raise DimensionError("vector argument has invalid dimensionality")
    if array_dims_cmp(a, b) or array_dims_cmp(a, c):
        raise ConfigurationMismatch("array algebraic dimensionality mismatch")
    if a.sz[axis] != b.sz[0] or array_topo_cmp(a, c):
        raise ConfigurationMismatch("array topological dimensionality mismatch")

    if c is not a:
        c.x[...] = a.x

    factor = b.points()

    def multiply(x, y, idx, pidx):
        y.points()[...] = data_multiply(y.points(), factor, y.d, y.registry)

    c.foreach_vector(axis, multiply)
    return c


def array_scale(a, s: float, b):
    """Compute ``b = s * a``"""
    _check_conf(a, b)

    data_add(None, a.x, b.x, s)
    return b


def array_zero(a):
    """Zero every coefficient"""
    a.x[...] = 0.0
    return a


def array_fill(a, value: float):
    """Set every coefficient to ``value``"""
    a.x[...] = value
    return a


def array_norm(a):
    """Replace every value by its norm (stored in the real coefficient)"""
    pts = a.points()
    norms = data_norm(pts)
    pts[...] = 0.0
    pts[:, 0] = norms
    return a


def array_negate_basis(a, dim: int):
    """Negate unit ``dim`` across the whole array"""
    if dim < 0 or dim >= a.d:
        raise DimensionError(f"algebraic dimension {dim} out of bounds [0,{a.d})")

    data_negate_basis(a.points(), dim)
    return a


def array_reorder_bases(a, order: Sequence[int]):
    """Reorder the imaginary units across the whole array"""
    if len(order) != a.d:
        raise DimensionError(f"ordering has {len(order)} entries, expected {a.d}")

    data_reorder_bases(a.points(), order)
    return a


def array_alternate_sign(a, axis: int):
    """Negate every other value (odd positions) of each vector along ``axis``"""
    if axis < 0 or axis >= a.k:
        raise DimensionError(f"topological axis {axis} out of bounds [0,{a.k})")

    grid = a.grid()
    view = np.moveaxis(grid, a.k - 1 - axis, 0)
    view[1::2] *= -1.0
    return a
