"""Tests for hypercomplex algebra tables."""
import threading

import numpy as np
import pytest

from nmr_hxnd_lib.core.algebra import (
    AlgebraRegistry,
    build_algebra,
    decode_algebra,
    get_algebra,
)
from nmr_hxnd_lib.core.errors import DimensionError


def _popcount(v):
    return bin(v).count("1")


class TestBuildAlgebra:

    @pytest.mark.parametrize("d", range(6))
    def test_table_entries(self, d):
        """Every product lands on i ^ j with the parity sign of i & j."""
        n = 1 << d
        tbl = build_algebra(d)
        assert tbl.size == n * n

        for i in range(n):
            for j in range(n):
                sign = -1 if _popcount(i & j) % 2 else 1
                assert tbl[i * n + j] == sign * ((i ^ j) + 1)

    @pytest.mark.parametrize("d", range(1, 6))
    def test_units_square_to_minus_one(self, d):
        n = 1 << d
        tbl = build_algebra(d)
        for bit in range(d):
            u = 1 << bit
            assert tbl[u * n + u] == -1

    def test_real_algebra(self):
        assert list(build_algebra(0)) == [1]

    def test_complex_algebra(self):
        assert list(build_algebra(1)) == [1, 2, 2, -1]

    def test_commutative(self):
        n = 8
        tbl = build_algebra(3).reshape(n, n)
        np.testing.assert_array_equal(tbl, tbl.T)

    def test_negative_dimension(self):
        with pytest.raises(DimensionError):
            build_algebra(-1)

    def test_decode(self):
        idx, sgn = decode_algebra(build_algebra(2))
        assert idx.shape == (4, 4)
        assert idx[3, 1] == 2
        assert sgn[3, 3] == 1.0
        assert sgn[1, 1] == -1.0


class TestRegistry:

    def test_cached(self):
        reg = AlgebraRegistry()
        assert 2 not in reg
        a = reg.get(2)
        b = reg.get(2)
        assert a is b
        assert 2 in reg
        assert len(reg) == 1

    def test_read_only(self):
        reg = AlgebraRegistry()
        tbl = reg.get(1)
        with pytest.raises(ValueError):
            tbl[0] = 5

    def test_empty_registry_is_used(self):
        """An empty registry is falsy but must still be honoured."""
        reg = AlgebraRegistry()
        get_algebra(3, reg)
        assert 3 in reg

    def test_concurrent_builds_share_one_table(self):
        reg = AlgebraRegistry()
        results = []

        def worker():
            results.append(reg.get(4))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(r is results[0] for r in results)
