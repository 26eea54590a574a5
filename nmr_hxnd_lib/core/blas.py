"""
Hypercomplex BLAS
=================

Level 1, 2 and 3 linear algebra with hypercomplex elements.

Vectors are arrays with k = 1. Matrices are arrays with k = 2, axis 0
indexing rows, so element (r, c) is grid point ``r + rows * c``
(column-major). Every operand is validated before any output is touched.

Transpose modes are plain functions mapping a matrix to the
(rows, cols, n) coefficient block of op(A); the same kernels serve all
three modes:

    >>> gemv(no_trans, 1.0, A, x, 0.0, y)
    >>> gemm(trans, conj_trans, 1.0, A, B, 0.0, C)
"""

import numpy as np
from typing import Callable

from .arith import data_conj, data_multiply
from .array import HxArray
from .errors import ConfigurationMismatch, DimensionError
from .scalar import HxScalar


def no_trans(A: HxArray) -> np.ndarray:
    """op(A) = A"""
    return A.x.reshape(A.sz[1], A.sz[0], A.n).transpose(1, 0, 2)


def trans(A: HxArray) -> np.ndarray:
    """op(A) = A^T"""
    return A.x.reshape(A.sz[1], A.sz[0], A.n)


def conj_trans(A: HxArray) -> np.ndarray:
    """op(A) = A^H (transpose and conjugate)"""
    return data_conj(trans(A))


Transpose = Callable[[HxArray], np.ndarray]


def _op_shape(tA: Transpose, A: HxArray):
    if tA is no_trans:
        return A.sz[0], A.sz[1]
    if tA in (trans, conj_trans):
        return A.sz[1], A.sz[0]

    raise DimensionError(f"unknown transpose mode {tA!r}")


def _assert_vector(x: HxArray, name: str):
    if x.k != 1:
        raise DimensionError(f"{name} must be a vector (k=1), got k={x.k}")


def _assert_matrix(A: HxArray, name: str):
    if A.k != 2:
        raise DimensionError(f"{name} must be a matrix (k=2), got k={A.k}")


def _assert_dims(*arrays):
    d = arrays[0].d
    if any(a.d != d for a in arrays):
        dims = ", ".join(str(a.d) for a in arrays)
        raise ConfigurationMismatch(f"algebraic dimensionality mismatch ({dims})")


def _assert_len(x: HxArray, y: HxArray):
    if x.len != y.len:
        raise ConfigurationMismatch(f"array length mismatch ({x.len} != {y.len})")


# ---------------------------------------------------------------------------
# Level 1
# ---------------------------------------------------------------------------

def dot(x: HxArray, y: HxArray, delta: HxScalar) -> HxScalar:
    """
    Hypercomplex dot product ``delta = sum(x(i) * y(i))``.

    Purely real operands take a plain real dot product.
    """
    _assert_len(x, y)
    if x.d != y.d or x.d != delta.d:
        raise ConfigurationMismatch(f"array dimensionality mismatch ({x.d} != {y.d}, {delta.d})")

    delta.zero()
    if x.is_real():
        delta.x[0] = float(np.dot(x.x, y.x))
    else:
        delta.x[:] = data_multiply(x.points(), y.points(), x.d, x.registry).sum(axis=0)

    return delta


def sumsq(x: HxArray) -> float:
    """Sum of squares of all coefficients"""
    return float(np.dot(x.x, x.x))


def nrm2(x: HxArray) -> float:
    """Euclidean norm of all coefficients"""
    return float(np.sqrt(sumsq(x)))


def asum(x: HxArray) -> float:
    """Sum of absolute coefficient values"""
    return float(np.sum(np.abs(x.x)))


def iamax(x: HxArray) -> int:
    """Point index of the value with the largest absolute coefficient sum"""
    return int(np.argmax(np.sum(np.abs(x.points()), axis=1)))


def swap(x: HxArray, y: HxArray):
    """Exchange the coefficients of two arrays of equal length"""
    _assert_len(x, y)

    tmp = x.x.copy()
    x.x[:] = y.x
    y.x[:] = tmp


def copy(x: HxArray, y: HxArray) -> HxArray:
    """Copy the coefficients of ``x`` into ``y``"""
    _assert_len(x, y)

    y.x[:] = x.x
    return y


def scal(alpha: float, x: HxArray) -> HxArray:
    """``x = alpha * x``"""
    x.x *= alpha
    return x


def axpy(alpha: float, x: HxArray, y: HxArray) -> HxArray:
    """``y = alpha * x + y``"""
    _assert_len(x, y)
    if x.d != y.d:
        raise ConfigurationMismatch(f"array dimensionality mismatch ({x.d} != {y.d})")

    y.x += alpha * x.x
    return y


# ---------------------------------------------------------------------------
# Level 2
# ---------------------------------------------------------------------------

def gemv(tA: Transpose, alpha: float, A: HxArray, x: HxArray, beta: float, y: HxArray) -> HxArray:
    """
    Matrix-vector product ``y = alpha * op(A) * x + beta * y``.

    Args:
        tA: Transpose mode (no_trans, trans, conj_trans)
        alpha: Product scale
        A: Matrix operand
        x: Vector of length cols(op(A))
        beta: Scale applied to ``y`` first
        y: Vector of length rows(op(A)), updated in place
    """
    _assert_matrix(A, "A")
    _assert_vector(x, "x")
    _assert_vector(y, "y")
    _assert_dims(A, x, y)

    rows, cols = _op_shape(tA, A)
    if y.sz[0] != rows or x.sz[0] != cols:
        raise ConfigurationMismatch(
            f"operand size mismatch: op(A) is {rows}x{cols}, x has {x.sz[0]}, y has {y.sz[0]}"
        )

    if beta == 0.0:
        y.x[:] = 0.0
    elif beta != 1.0:
        scal(beta, y)

    if alpha == 0.0:
        return y

    prod = data_multiply(tA(A), x.points()[np.newaxis, :, :], A.d, A.registry)
    y.points()[...] += alpha * prod.sum(axis=1)
    return y


def _check_ger(x: HxArray, y: HxArray, A: HxArray):
    _assert_vector(x, "x")
    _assert_vector(y, "y")
    _assert_matrix(A, "A")
    _assert_dims(x, y, A)

    if x.sz[0] != A.sz[0] or y.sz[0] != A.sz[1]:
        raise ConfigurationMismatch(
            f"operand size mismatch: A is {A.sz[0]}x{A.sz[1]}, x has {x.sz[0]}, y has {y.sz[0]}"
        )


def _rank1(alpha: float, xp: np.ndarray, yp: np.ndarray, A: HxArray):
    # outer[r, c] = x(r) * y(c), laid out column-major like A.
    outer = data_multiply(xp[np.newaxis, :, :], yp[:, np.newaxis, :], A.d, A.registry)
    A.points()[...] += alpha * outer.reshape(-1, A.n)


def rger(alpha: float, x: HxArray, y: HxArray, A: HxArray) -> HxArray:
    """
    Real rank-1 update ``A += alpha * x * y^T`` using real coefficients only.
    """
    _check_ger(x, y, A)

    outer = np.outer(y.points()[:, 0], x.points()[:, 0])
    A.points()[:, 0] += alpha * outer.ravel()
    return A


def geru(alpha: float, x: HxArray, y: HxArray, A: HxArray) -> HxArray:
    """Hypercomplex rank-1 update ``A += alpha * x * y^T``"""
    _check_ger(x, y, A)

    _rank1(alpha, x.points(), y.points(), A)
    return A


def gerc(alpha: float, x: HxArray, y: HxArray, A: HxArray) -> HxArray:
    """Hypercomplex rank-1 update ``A += alpha * x * y^H``"""
    _check_ger(x, y, A)

    _rank1(alpha, x.points(), data_conj(y.points()), A)
    return A


def ger(alpha: float, x: HxArray, y: HxArray, A: HxArray) -> HxArray:
    """Rank-1 update, dispatching to ``rger`` for real operands"""
    if A.is_real() and x.is_real() and y.is_real():
        return rger(alpha, x, y, A)

    return geru(alpha, x, y, A)


# ---------------------------------------------------------------------------
# Level 3
# ---------------------------------------------------------------------------

def gemm(
    tA: Transpose,
    tB: Transpose,
    alpha: float,
    A: HxArray,
    B: HxArray,
    beta: float,
    C: HxArray
) -> HxArray:
    """
    Matrix-matrix product ``C = alpha * op(A) * op(B) + beta * C``.

    Args:
        tA: Transpose mode of A
        tB: Transpose mode of B
        alpha: Product scale
        A: Left matrix
        B: Right matrix
        beta: Scale applied to ``C`` first
        C: Output matrix, updated in place
    """
    _assert_matrix(A, "A")
    _assert_matrix(B, "B")
    _assert_matrix(C, "C")
    _assert_dims(A, B, C)

    m, ka = _op_shape(tA, A)
    kb, ncols = _op_shape(tB, B)
    if C.sz[0] != m:
        raise ConfigurationMismatch(f"operand size mismatch: rows(C)={C.sz[0]} != rows(op(A))={m}")
    if C.sz[1] != ncols:
        raise ConfigurationMismatch(f"operand size mismatch: cols(C)={C.sz[1]} != cols(op(B))={ncols}")
    if ka != kb:
        raise ConfigurationMismatch(f"operand size mismatch: cols(op(A))={ka} != rows(op(B))={kb}")

    if beta == 0.0:
        C.x[:] = 0.0
    elif beta != 1.0:
        scal(beta, C)

    if alpha == 0.0:
        return C

    # terms[i, l, j] = op(A)(i, l) * op(B)(l, j).
    terms = data_multiply(tA(A)[:, :, np.newaxis, :], tB(B)[np.newaxis, :, :, :], A.d, A.registry)
    prod = terms.sum(axis=1)

    # column-major storage: point index i + m * j.
    C.points()[...] += alpha * prod.transpose(1, 0, 2).reshape(-1, C.n)
    return C
