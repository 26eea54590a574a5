"""Tests for hypercomplex arrays."""
import numpy as np
import pytest

from nmr_hxnd_lib.core import index as hxindex
from nmr_hxnd_lib.core.array import (
    INCR_NORMAL,
    INCR_REVERSE,
    TILER_FORWARD,
    TILER_REVERSE,
    HxArray,
    project_max,
    project_min,
    project_sum,
)
from nmr_hxnd_lib.core.compare import Mismatch, array_cmp
from nmr_hxnd_lib.core.errors import ConfigurationMismatch, DimensionError


def _ramp(d, sz):
    x = HxArray(d, len(sz), sz)
    x.x[:] = np.arange(x.len, dtype=float)
    return x


class TestAllocation:

    def test_layout(self):
        x = HxArray(1, 2, [4, 8])
        assert x.n == 2
        assert x.len == 64
        assert x.points().shape == (32, 2)
        assert x.grid().shape == (8, 4, 2)

    def test_axis_zero_fastest(self):
        x = _ramp(0, [3, 2])
        assert x.get_coeff([1, 0]) == 1.0
        assert x.get_coeff([0, 1]) == 3.0

    @pytest.mark.parametrize("sz", [[0], [2, -1]])
    def test_invalid_sizes(self, sz):
        with pytest.raises(DimensionError):
            HxArray(0, len(sz), sz)

    def test_from_points_size_check(self):
        with pytest.raises(DimensionError):
            HxArray.from_points(1, [3], np.zeros(5))

    def test_ensure_reuses_matching_buffer(self):
        x = _ramp(1, [4])
        buf = x.x
        x.ensure(1, 1, [4])
        assert x.x is buf
        x.ensure(1, 1, [8])
        assert x.x is not buf
        assert not np.any(x.x)

    def test_set_coeff_bounds(self):
        x = HxArray(1, 2, [2, 2])
        x.set_coeff([1, 1], 1, 5.0)
        assert x.get_coeff([1, 1], 1) == 5.0
        with pytest.raises(DimensionError):
            x.set_coeff([2, 0], 0, 1.0)
        with pytest.raises(DimensionError):
            x.get_coeff([0, 0], 2)

    def test_predicates(self):
        assert HxArray(0, 3, [1, 8, 1]).is_vector()
        assert HxArray(0, 2, [4, 8]).is_matrix()
        assert HxArray(1, 3, [2, 2, 2]).is_cube()
        assert HxArray(0, 1, [4]).is_real()
        assert not HxArray(1, 1, [4]).is_real()

    def test_free(self):
        x = _ramp(0, [4])
        x.free()
        assert x.len == 0
        assert x.x.size == 0


class TestReconfiguration:

    def test_resize_same_configuration_is_identity(self):
        x = _ramp(2, [3, 5])
        before = x.x.tobytes()
        x.resize(2, 2, [3, 5])
        assert x.x.tobytes() == before

    def test_resize_grow_keeps_overlap(self):
        x = _ramp(0, [2, 2])
        x.resize(0, 2, [3, 3])
        np.testing.assert_allclose(x.grid()[..., 0], [[0, 1, 0], [2, 3, 0], [0, 0, 0]])

    def test_resize_adds_axis(self):
        x = _ramp(0, [3])
        x.resize(0, 2, [3, 2])
        np.testing.assert_allclose(x.x, [0, 1, 2, 0, 0, 0])

    def test_resize_d(self):
        x = _ramp(1, [2])
        x.resize_d(2)
        np.testing.assert_allclose(x.points(), [[0, 1, 0, 0], [2, 3, 0, 0]])
        x.resize_d(0)
        np.testing.assert_allclose(x.x, [0, 2])

    def test_reshape_and_repack(self):
        x = _ramp(0, [2, 6])
        x.repack(3)
        assert x.sz == [2, 3, 2]
        x.reshape(1, [12])
        np.testing.assert_allclose(x.x, np.arange(12))

    def test_reshape_rejects_length_change(self):
        with pytest.raises(ConfigurationMismatch):
            _ramp(0, [4]).reshape(2, [3, 2])

    def test_compact(self):
        x = HxArray(0, 4, [1, 4, 1, 2]).compact()
        assert x.k == 2
        assert x.sz == [4, 2]

    def test_complexify_vector(self):
        x = _ramp(0, [4]).complexify()
        assert (x.d, x.k, x.sz) == (1, 1, [2])
        np.testing.assert_allclose(x.points(), [[0, 1], [2, 3]])

    def test_complexify_matrix(self):
        x = _ramp(1, [2, 2]).complexify()
        assert (x.d, x.sz) == (2, [2, 1])
        # points (i, 0) and (i, 1) of the old grid become one value.
        np.testing.assert_allclose(x.points(), [[0, 1, 4, 5], [2, 3, 6, 7]])

    def test_complexify_gradient_enhanced(self):
        x = HxArray(1, 2, [1, 2])
        x.points()[0] = [1.0, 0.0]
        x.points()[1] = [3.0, 0.0]
        x.complexify(genh=True)
        # sum (4) in the low half, difference (2) rotated by u0 in the high half.
        np.testing.assert_allclose(x.points(), [[4, 0, 0, 2]])

    def test_complexify_odd_size(self):
        with pytest.raises(DimensionError):
            HxArray(0, 1, [3]).complexify()

    def test_real_drops_unit(self):
        x = HxArray.from_points(2, [1], [1, 2, 3, 4])
        x.real(0)
        np.testing.assert_allclose(x.x, [1, 3])
        x = HxArray.from_points(2, [1], [1, 2, 3, 4])
        x.real(1)
        np.testing.assert_allclose(x.x, [1, 2])

    def test_shift(self):
        x = _ramp(0, [4, 2]).shift(0, 1)
        np.testing.assert_allclose(x.grid()[..., 0], [[3, 0, 1, 2], [7, 4, 5, 6]])


class TestSlicing:

    def test_slice_store_round_trip(self):
        x = _ramp(1, [4, 3])
        y = x.slice([1, 0], [2, 1])
        assert y.sz == [2, 2]
        np.testing.assert_allclose(y.points()[0], x.points()[1])

        z = x.copy()
        y.x *= -1.0
        z.store(y, [1, 0], [2, 1])
        z.store(x.slice([1, 0], [2, 1]), [1, 0], [2, 1])
        assert array_cmp(z, x) == Mismatch.ID

    def test_slice_bounds(self):
        with pytest.raises(DimensionError):
            _ramp(0, [4]).slice([2], [4])

    def test_slice_vector(self):
        x = _ramp(0, [3, 4])
        v = x.slice_vector(1, 2)
        np.testing.assert_allclose(v.x, [2, 5, 8, 11])
        v.x[:] = 0.0
        x.store_vector(v, 1, 2)
        assert x.get_coeff([2, 3]) == 0.0

    def test_slice_matrix(self):
        x = _ramp(0, [2, 3, 2])
        m = x.slice_matrix(0, 2, 2)
        assert m.sz == [2, 2]
        np.testing.assert_allclose(m.x, [2, 3, 8, 9])
        x.store_matrix(m, 0, 2, 0)
        np.testing.assert_allclose(x.x[[0, 1, 6, 7]], [2, 3, 8, 9])

    def test_slice_sched(self):
        x = _ramp(0, [8])
        y = x.slice_sched([6, 1, 3])
        np.testing.assert_allclose(y.x, [6, 1, 3])
        x.store_sched(y, [0, 0 + 2, 4])
        np.testing.assert_allclose(x.x[[0, 2, 4]], [6, 1, 3])


class TestIteration:

    def test_foreach_vector_visits_every_line(self):
        x = _ramp(0, [3, 4])
        starts = []

        def visit(arr, y, idx, pidx):
            starts.append(pidx)
            assert idx[1] == 0
            y.x *= 2.0

        x.foreach_vector(1, visit)
        assert starts == [0, 1, 2]
        np.testing.assert_allclose(x.x, 2.0 * np.arange(12))

    def test_foreach_matrix(self):
        x = _ramp(0, [2, 2, 3])
        seen = []

        def visit(arr, y, idx, pidx):
            seen.append(pidx)
            y.x[:] = pidx

        x.foreach_matrix(0, 1, visit)
        assert seen == [0, 4, 8]
        np.testing.assert_allclose(x.x, np.repeat([0, 4, 8], 4))

    def test_projector_sum(self):
        x = HxArray(0, 2, [2, 3])
        x.x[:] = [1, 2, 3, 4, 5, 6]
        p = x.projector(1, project_sum)
        assert p.sz == [2, 1]
        np.testing.assert_allclose(p.x, [9, 12])

    def test_projector_max_min_by_norm(self):
        x = HxArray.from_points(1, [3], [[1, 0], [0, -3], [2, 2]])
        np.testing.assert_allclose(x.projector(0, project_max).x, [0, -3])
        np.testing.assert_allclose(x.projector(0, project_min).x, [1, 0])


class TestTiling:

    @pytest.mark.parametrize("order", [INCR_NORMAL, INCR_REVERSE])
    def test_tiler_round_trip(self, order):
        x = _ramp(1, [4, 6])
        ref = x.copy()
        x.tiler([2, 3], [2, 2], TILER_REVERSE, order)
        assert array_cmp(x, ref) != Mismatch.ID
        x.tiler([2, 3], [2, 2], TILER_FORWARD, order)
        assert array_cmp(x, ref) == Mismatch.ID

    def test_tiled_order_groups_tiles(self):
        x = _ramp(0, [4, 2])
        x.tiler([2, 1], [2, 2], TILER_REVERSE)
        # first tile covers axis-0 indices 0..1.
        np.testing.assert_allclose(x.x, [0, 1, 4, 5, 2, 3, 6, 7])

    def test_tiler_must_cover_sizes(self):
        with pytest.raises(ConfigurationMismatch):
            _ramp(0, [4, 2]).tiler([2, 2], [2, 2])

    def test_tiling(self):
        x = HxArray(0, 2, [8, 4])
        nt, szt = x.tiling(8)
        assert nt == [4, 1]
        assert szt == [2, 4]

    def test_tiling_always_splits_once(self):
        nt, szt = HxArray(0, 2, [4, 4]).tiling(64)
        assert nt == [2, 1]
        assert szt == [2, 4]

        nt, szt = HxArray(0, 1, [2]).tiling(2)
        assert nt == [2]
        assert szt == [1]

    def test_tiling_impossible(self):
        with pytest.raises(DimensionError):
            HxArray(0, 1, [3]).tiling(2)
        with pytest.raises(DimensionError):
            HxArray(0, 2, [3, 5]).tiling(100)


def test_repr():
    assert repr(HxArray(1, 2, [2, 4])) == "HxArray(d=1, k=2, sz=[2, 4])"
