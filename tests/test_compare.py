"""Tests for configuration comparisons."""
from nmr_hxnd_lib.core.array import HxArray
from nmr_hxnd_lib.core.compare import (
    Mismatch,
    array_cmp,
    array_conf_cmp,
    array_dims_cmp,
    array_topo_cmp,
    index_cmp,
    scalar_cmp,
    scalar_dims_cmp,
)
from nmr_hxnd_lib.core.scalar import HxScalar


class TestCompare:

    def test_identical_arrays(self):
        a = HxArray.from_points(0, [3], [1, 2, 3])
        assert array_cmp(a, a.copy()) == Mismatch.ID

    def test_dims_ordering(self):
        assert array_dims_cmp(HxArray(1, 1, [2]), HxArray(2, 1, [2])) == -Mismatch.DIMS
        assert array_dims_cmp(HxArray(2, 1, [2]), HxArray(1, 1, [2])) == Mismatch.DIMS

    def test_topology_before_sizes(self):
        assert array_topo_cmp(HxArray(0, 1, [8]), HxArray(0, 2, [2, 2])) == -Mismatch.TOPO
        assert array_topo_cmp(HxArray(0, 2, [4, 2]), HxArray(0, 2, [2, 2])) == Mismatch.SIZE

    def test_conf_reports_dims_first(self):
        assert array_conf_cmp(HxArray(0, 1, [2]), HxArray(1, 2, [2, 2])) == -Mismatch.DIMS

    def test_data_difference(self):
        a = HxArray.from_points(0, [2], [1, 5])
        b = HxArray.from_points(0, [2], [1, 2])
        assert array_cmp(a, b) == Mismatch.DATA
        assert array_cmp(b, a) == -Mismatch.DATA

    def test_index_cmp(self):
        assert index_cmp([1, 2], [1, 2]) == Mismatch.ID
        assert index_cmp([1, 1], [1, 2]) == -Mismatch.SIZE

    def test_scalars(self):
        assert scalar_dims_cmp(HxScalar(0), HxScalar(1)) == -Mismatch.DIMS
        assert scalar_cmp(HxScalar(1, [1, 0]), HxScalar(1, [1, 0])) == Mismatch.ID
