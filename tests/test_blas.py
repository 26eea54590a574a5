"""Tests for hypercomplex BLAS routines."""
import numpy as np
import pytest

from nmr_hxnd_lib.core import blas
from nmr_hxnd_lib.core.array import HxArray
from nmr_hxnd_lib.core.errors import ConfigurationMismatch, DimensionError
from nmr_hxnd_lib.core.scalar import HxScalar


def _real_matrix(M):
    """Store a numpy matrix column-major as a (d=0, k=2) array"""
    rows, cols = M.shape
    return HxArray.from_points(0, [rows, cols], M.T.ravel())


def _complex_matrix(M):
    rows, cols = M.shape
    flat = M.T.ravel()
    return HxArray.from_points(1, [rows, cols], np.stack([flat.real, flat.imag], axis=1))


def _as_complex(x):
    pts = x.points()
    return pts[:, 0] + 1j * pts[:, 1]


def _complex_vector(v):
    return HxArray.from_points(1, [v.size], np.stack([v.real, v.imag], axis=1))


@pytest.fixture
def rng():
    return np.random.default_rng(42)


class TestLevel1:

    def test_real_dot(self, rng):
        a, b = rng.normal(size=6), rng.normal(size=6)
        delta = blas.dot(HxArray.from_points(0, [6], a), HxArray.from_points(0, [6], b), HxScalar(0))
        assert delta.x[0] == pytest.approx(np.dot(a, b))

    def test_complex_dot(self, rng):
        a = rng.normal(size=5) + 1j * rng.normal(size=5)
        b = rng.normal(size=5) + 1j * rng.normal(size=5)
        delta = blas.dot(_complex_vector(a), _complex_vector(b), HxScalar(1))
        expected = np.sum(a * b)
        np.testing.assert_allclose(delta.x, [expected.real, expected.imag])

    def test_dot_length_mismatch(self):
        with pytest.raises(ConfigurationMismatch):
            blas.dot(HxArray(0, 1, [3]), HxArray(0, 1, [4]), HxScalar(0))

    def test_norms(self):
        x = HxArray.from_points(1, [2], [3.0, 4.0, 0.0, -12.0])
        assert blas.sumsq(x) == pytest.approx(169.0)
        assert blas.nrm2(x) == pytest.approx(13.0)
        assert blas.asum(x) == pytest.approx(19.0)
        assert blas.iamax(x) == 1

    def test_swap_copy_scal_axpy(self):
        x = HxArray.from_points(0, [3], [1.0, 2.0, 3.0])
        y = HxArray.from_points(0, [3], [4.0, 5.0, 6.0])

        blas.swap(x, y)
        np.testing.assert_allclose(x.x, [4, 5, 6])
        np.testing.assert_allclose(y.x, [1, 2, 3])

        blas.axpy(2.0, y, x)
        np.testing.assert_allclose(x.x, [6, 9, 12])

        blas.scal(0.5, x)
        np.testing.assert_allclose(x.x, [3, 4.5, 6])

        blas.copy(y, x)
        np.testing.assert_allclose(x.x, [1, 2, 3])


class TestLevel2:

    @pytest.mark.parametrize("mode", [blas.no_trans, blas.trans])
    def test_real_gemv(self, rng, mode):
        M = rng.normal(size=(4, 3))
        op = M if mode is blas.no_trans else M.T
        x = rng.normal(size=op.shape[1])
        y = rng.normal(size=op.shape[0])

        out = HxArray.from_points(0, [y.size], y)
        blas.gemv(mode, 2.0, _real_matrix(M), HxArray.from_points(0, [x.size], x), 0.5, out)
        np.testing.assert_allclose(out.x, 2.0 * op @ x + 0.5 * y)

    def test_complex_conj_trans_gemv(self, rng):
        M = rng.normal(size=(3, 2)) + 1j * rng.normal(size=(3, 2))
        x = rng.normal(size=3) + 1j * rng.normal(size=3)

        y = HxArray(1, 1, [2])
        blas.gemv(blas.conj_trans, 1.0, _complex_matrix(M), _complex_vector(x), 0.0, y)
        np.testing.assert_allclose(_as_complex(y), M.conj().T @ x)

    def test_gemv_size_mismatch_leaves_y(self, rng):
        y = HxArray.from_points(0, [4], [1.0, 1.0, 1.0, 1.0])
        with pytest.raises(ConfigurationMismatch):
            blas.gemv(blas.trans, 1.0, _real_matrix(np.ones((4, 3))), HxArray(0, 1, [3]), 0.0, y)
        np.testing.assert_allclose(y.x, 1.0)

    def test_gemv_needs_matrix(self):
        with pytest.raises(DimensionError):
            blas.gemv(blas.no_trans, 1.0, HxArray(0, 1, [4]), HxArray(0, 1, [4]), 0.0, HxArray(0, 1, [4]))

    def test_rank1_updates(self, rng):
        x = rng.normal(size=3) + 1j * rng.normal(size=3)
        y = rng.normal(size=2) + 1j * rng.normal(size=2)

        A = HxArray(1, 2, [3, 2])
        blas.geru(1.0, _complex_vector(x), _complex_vector(y), A)
        np.testing.assert_allclose(_as_complex(A), np.outer(x, y).T.ravel())

        A = HxArray(1, 2, [3, 2])
        blas.gerc(1.0, _complex_vector(x), _complex_vector(y), A)
        np.testing.assert_allclose(_as_complex(A), np.outer(x, y.conj()).T.ravel())

    def test_real_ger(self, rng):
        x, y = rng.normal(size=3), rng.normal(size=4)
        A = _real_matrix(np.ones((3, 4)))
        blas.ger(0.5, HxArray.from_points(0, [3], x), HxArray.from_points(0, [4], y), A)
        np.testing.assert_allclose(A.x, (1.0 + 0.5 * np.outer(x, y)).T.ravel())


class TestLevel3:

    @pytest.mark.parametrize("ta", [blas.no_trans, blas.trans])
    @pytest.mark.parametrize("tb", [blas.no_trans, blas.trans])
    def test_real_gemm(self, rng, ta, tb):
        m, k, n = 3, 4, 2
        A = rng.normal(size=(m, k)) if ta is blas.no_trans else rng.normal(size=(k, m))
        B = rng.normal(size=(k, n)) if tb is blas.no_trans else rng.normal(size=(n, k))
        C = rng.normal(size=(m, n))

        opA = A if ta is blas.no_trans else A.T
        opB = B if tb is blas.no_trans else B.T

        out = _real_matrix(C)
        blas.gemm(ta, tb, 1.5, _real_matrix(A), _real_matrix(B), -1.0, out)
        np.testing.assert_allclose(out.x, (1.5 * opA @ opB - C).T.ravel())

    def test_complex_gemm(self, rng):
        A = rng.normal(size=(2, 3)) + 1j * rng.normal(size=(2, 3))
        B = rng.normal(size=(2, 2)) + 1j * rng.normal(size=(2, 2))

        C = HxArray(1, 2, [3, 2])
        blas.gemm(blas.conj_trans, blas.no_trans, 1.0, _complex_matrix(A), _complex_matrix(B), 0.0, C)
        np.testing.assert_allclose(_as_complex(C), (A.conj().T @ B).T.ravel())

    def test_gemm_inner_mismatch(self):
        with pytest.raises(ConfigurationMismatch):
            blas.gemm(blas.no_trans, blas.no_trans, 1.0,
                      HxArray(0, 2, [2, 3]), HxArray(0, 2, [2, 2]), 0.0, HxArray(0, 2, [2, 2]))

    def test_gemm_dims_mismatch(self):
        with pytest.raises(ConfigurationMismatch):
            blas.gemm(blas.no_trans, blas.no_trans, 1.0,
                      HxArray(1, 2, [2, 2]), HxArray(0, 2, [2, 2]), 0.0, HxArray(1, 2, [2, 2]))
