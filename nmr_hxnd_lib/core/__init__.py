"""
Core module for hypercomplex data.

Contains the algebra tables, the scalar and array data structures,
arithmetic, linear algebra, Fourier transforms, I/O and parameters.
"""

from .errors import (
    HypercomplexError,
    DimensionError,
    ConfigurationMismatch,
    ArrayFormatError,
    ReconstructionError
)
from .algebra import AlgebraRegistry, default_registry, get_algebra
from .scalar import HxScalar, scalar_phasor
from .array import HxArray, project_sum, project_max, project_min
from .compare import Mismatch, array_cmp, scalar_cmp
from .transforms import fft, ifft, fftfn, fft1d, fshift, ht, phase
from .data_io import save, load, fread, fwrite, check_magic, print_array, read_raw
from .schedule import SamplingSchedule
from .parameters import (
    WindowType,
    ReconstructionParameters,
    WindowParameters,
    FilterParameters,
    BaselineParameters,
    ParameterManager
)

__all__ = [
    'HypercomplexError',
    'DimensionError',
    'ConfigurationMismatch',
    'ArrayFormatError',
    'ReconstructionError',
    'AlgebraRegistry',
    'default_registry',
    'get_algebra',
    'HxScalar',
    'scalar_phasor',
    'HxArray',
    'project_sum',
    'project_max',
    'project_min',
    'Mismatch',
    'array_cmp',
    'scalar_cmp',
    'fft',
    'ifft',
    'fftfn',
    'fft1d',
    'fshift',
    'ht',
    'phase',
    'save',
    'load',
    'fread',
    'fwrite',
    'check_magic',
    'print_array',
    'read_raw',
    'SamplingSchedule',
    'WindowType',
    'ReconstructionParameters',
    'WindowParameters',
    'FilterParameters',
    'BaselineParameters',
    'ParameterManager',
]
