"""
Sampling Schedules
==================

Nonuniform sampling schedules: the grid coordinates of the indirect
dimensions that were actually acquired.
"""

import numpy as np
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Union

from .errors import ArrayFormatError, DimensionError


@dataclass
class SamplingSchedule:
    """
    Sampled coordinate tuples.

    Attributes:
        points: Integer array of shape (n_sched, d_sched), one row per
                sampled combination of indirect-dimension indices
    """
    points: np.ndarray

    def __post_init__(self):
        self.points = np.atleast_2d(np.asarray(self.points, dtype=np.int64))

    @property
    def n_sched(self) -> int:
        return int(self.points.shape[0])

    @property
    def d_sched(self) -> int:
        return int(self.points.shape[1])

    @property
    def flat(self) -> np.ndarray:
        """Row-major flat list of all entries"""
        return self.points.ravel()

    @classmethod
    def from_flat(cls, d_sched: int, values: Sequence[int]) -> 'SamplingSchedule':
        """Build a schedule from a flat list of ``n_sched * d_sched`` values"""
        values = np.asarray(values, dtype=np.int64)
        if d_sched < 1 or values.size % d_sched:
            raise DimensionError(f"{values.size} schedule values do not form rows of {d_sched}")

        return cls(values.reshape(-1, d_sched))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'SamplingSchedule':
        """
        Read a schedule file of whitespace-separated integer rows.

        Args:
            path: Schedule file path

        Returns:
            Loaded schedule
        """
        try:
            values = np.loadtxt(path, dtype=np.int64, ndmin=2)
        except ValueError as err:
            raise ArrayFormatError(f"failed to parse schedule file '{path}'") from err

        sched = cls(values)
        errors = sched.validate()
        if errors:
            raise ArrayFormatError(f"invalid schedule file '{path}': {'; '.join(errors)}")

        return sched

    def save(self, path: Union[str, Path]):
        """Write the schedule as whitespace-separated rows"""
        np.savetxt(path, self.points, fmt='%d')

    def validate(self) -> List[str]:
        """
        Validate the schedule and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if self.points.size == 0 or self.n_sched < 1:
            errors.append("Schedule must have at least one row")
        elif self.d_sched < 1:
            errors.append("Schedule must have at least one column")
        elif np.any(self.points < 0):
            errors.append("Schedule entries must be >= 0")

        return errors
