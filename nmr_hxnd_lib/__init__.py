"""
Hypercomplex NMR Processing Library
===================================

A library for processing multidimensional NMR data stored as
n-dimensional arrays of hypercomplex numbers.

Main Components:
- HxScalar / HxArray: Hypercomplex values and n-D grids of them
- Arithmetic and BLAS: Elementwise algebra, dot products, gemv, gemm
- Transforms: Radix-2 FFT, phasing, shifts, Hilbert transform
- Processing: Windows, FIR filters, baseline correction
- Reconstruction: IST, FFM and IRLS for nonuniformly sampled data
- ParameterManager: Parameter storage and management

Version: 1.0.0
"""

from .core.errors import (
    HypercomplexError,
    DimensionError,
    ConfigurationMismatch,
    ArrayFormatError,
    ReconstructionError
)

from .core.algebra import (
    AlgebraRegistry,
    get_algebra
)

from .core.scalar import HxScalar

from .core.array import HxArray

from .core.transforms import (
    fft,
    ifft,
    fftfn,
    fshift,
    ht,
    phase
)

from .core.data_io import (
    save,
    load,
    read_raw
)

from .core.schedule import SamplingSchedule

from .core.parameters import (
    ReconstructionParameters,
    WindowParameters,
    FilterParameters,
    BaselineParameters,
    ParameterManager,
    WindowType
)

from .processing.filtering import (
    window,
    apply_window,
    fir_alloc,
    fir
)

from .processing.postprocessing import (
    baseline,
    whittaker
)

from .processing.reconstruction import (
    ist,
    ffm,
    irls,
    reconstruct
)

__version__ = "1.0.0"

__all__ = [
    # Errors
    'HypercomplexError',
    'DimensionError',
    'ConfigurationMismatch',
    'ArrayFormatError',
    'ReconstructionError',

    # Data structures
    'AlgebraRegistry',
    'get_algebra',
    'HxScalar',
    'HxArray',

    # Transforms
    'fft',
    'ifft',
    'fftfn',
    'fshift',
    'ht',
    'phase',

    # I/O
    'save',
    'load',
    'read_raw',
    'SamplingSchedule',

    # Parameters
    'ReconstructionParameters',
    'WindowParameters',
    'FilterParameters',
    'BaselineParameters',
    'ParameterManager',
    'WindowType',

    # Processing
    'window',
    'apply_window',
    'fir_alloc',
    'fir',
    'baseline',
    'whittaker',

    # Reconstruction
    'ist',
    'ffm',
    'irls',
    'reconstruct',
]
