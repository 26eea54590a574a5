"""Tests for Whittaker baseline correction."""
import numpy as np
import pytest

from nmr_hxnd_lib.core.array import HxArray
from nmr_hxnd_lib.core.errors import DimensionError
from nmr_hxnd_lib.core.parameters import BaselineParameters
from nmr_hxnd_lib.processing.postprocessing import (
    baseline,
    baseline_correction,
    baseline_weights,
    whittaker,
)


def _spike_trace(npts=64, offset=5.0, height=45.0, pos=32):
    x = HxArray(0, 1, [npts])
    x.x[:] = offset
    x.x[pos] += height
    return x


class TestWhittaker:

    def test_constant_is_fixed_point(self):
        x = HxArray(1, 1, [32])
        x.points()[:] = [3.0, -1.0]

        z = whittaker(x, 10.0)
        np.testing.assert_allclose(z.x, x.x, atol=1e-10)
        assert z is not x
        assert z.d == x.d and z.sz == x.sz

    def test_smooths_noise(self):
        rng = np.random.default_rng(2)
        x = HxArray(0, 1, [128])
        x.x[:] = rng.normal(size=128)

        z = whittaker(x, 50.0)
        assert np.sum(np.diff(z.x) ** 2) < 0.1 * np.sum(np.diff(x.x) ** 2)

    def test_zero_weight_points_ignored(self):
        x = _spike_trace()
        w = np.ones(64)
        w[32] = 0.0

        z = whittaker(x, 1.0, w)
        np.testing.assert_allclose(z.x, 5.0, atol=1e-8)

    @pytest.mark.parametrize("lam, w", [
        (0.0, None),
        (1.0, np.ones(3)),
        (1.0, np.zeros(64)),
    ])
    def test_invalid_arguments(self, lam, w):
        with pytest.raises(DimensionError):
            whittaker(_spike_trace(), lam, w)


class TestBaselineWeights:

    def test_flat_trace(self):
        x = HxArray(0, 1, [16])
        x.x[:] = 2.0
        np.testing.assert_array_equal(baseline_weights(x), np.ones(16))

    def test_excludes_spike(self):
        w = baseline_weights(_spike_trace())
        expected = np.ones(64)
        expected[32:34] = 0.0
        np.testing.assert_array_equal(w, expected)


class TestBaseline:

    def test_removes_offset_around_peak(self):
        x = _spike_trace()
        baseline(x, 0, 100.0)

        expected = np.zeros(64)
        expected[32] = 45.0
        np.testing.assert_allclose(x.x, expected, atol=1e-8)

    def test_every_coefficient_and_trace(self):
        x = HxArray(1, 2, [64, 2])
        grid = x.grid()
        grid[..., 0] = 5.0
        grid[..., 1] = 2.0
        grid[1, 32, 0] += 45.0

        baseline(x, 0, 100.0)
        assert not np.any(np.abs(x.grid()[..., 1]) > 1e-8)
        np.testing.assert_allclose(x.grid()[0, :, 0], 0.0, atol=1e-8)
        assert x.grid()[1, 32, 0] == pytest.approx(45.0)

    def test_unweighted(self):
        x = HxArray(0, 1, [32])
        x.x[:] = -3.0
        baseline(x, 0, 1.0, use_weights=False)
        np.testing.assert_allclose(x.x, 0.0, atol=1e-10)

    def test_invalid_axis(self):
        with pytest.raises(DimensionError):
            baseline(_spike_trace(), 1, 1.0)

    def test_parameters(self):
        x = _spike_trace()
        y = x.copy()

        baseline_correction(x, 0, BaselineParameters(smoothness=100.0))
        baseline(y, 0, 100.0)
        np.testing.assert_allclose(x.x, y.x)

    def test_invalid_parameters(self):
        with pytest.raises(DimensionError):
            baseline_correction(_spike_trace(), 0, BaselineParameters(smoothness=0.0))
