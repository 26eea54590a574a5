"""Tests for sampling schedules."""
import numpy as np
import pytest

from nmr_hxnd_lib.core.errors import ArrayFormatError, DimensionError
from nmr_hxnd_lib.core.schedule import SamplingSchedule


class TestSamplingSchedule:

    def test_shape(self):
        sched = SamplingSchedule([[0, 1], [2, 3], [4, 5]])
        assert sched.n_sched == 3
        assert sched.d_sched == 2
        np.testing.assert_array_equal(sched.flat, [0, 1, 2, 3, 4, 5])

    def test_single_row(self):
        sched = SamplingSchedule([3, 4])
        assert sched.n_sched == 1 and sched.d_sched == 2

    def test_from_flat(self):
        sched = SamplingSchedule.from_flat(2, [0, 0, 1, 3, 5, 2])
        np.testing.assert_array_equal(sched.points, [[0, 0], [1, 3], [5, 2]])

    def test_from_flat_ragged(self):
        with pytest.raises(DimensionError):
            SamplingSchedule.from_flat(2, [0, 1, 2])

    def test_validate(self):
        assert SamplingSchedule([[0], [5]]).validate() == []
        assert SamplingSchedule([[0], [-1]]).validate()
        assert SamplingSchedule(np.zeros((0, 1))).validate()

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "nuslist"
        sched = SamplingSchedule([[0, 0], [3, 1], [7, 2]])
        sched.save(path)

        loaded = SamplingSchedule.from_file(path)
        np.testing.assert_array_equal(loaded.points, sched.points)

    def test_single_column_file(self, tmp_path):
        path = tmp_path / "nuslist"
        path.write_text("0\n2\n5\n")

        sched = SamplingSchedule.from_file(path)
        assert sched.d_sched == 1
        np.testing.assert_array_equal(sched.flat, [0, 2, 5])

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "nuslist"
        path.write_text("0 1\nfoo bar\n")

        with pytest.raises(ArrayFormatError) as info:
            SamplingSchedule.from_file(path)
        assert isinstance(info.value.__cause__, ValueError)

    def test_negative_entries_in_file(self, tmp_path):
        path = tmp_path / "nuslist"
        path.write_text("0 1\n-2 3\n")

        with pytest.raises(ArrayFormatError):
            SamplingSchedule.from_file(path)
