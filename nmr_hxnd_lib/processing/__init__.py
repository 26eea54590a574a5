"""
Processing module for hypercomplex data.

Contains window functions, FIR filtering, baseline correction and
nonuniform sampling reconstruction.
"""

from .filtering import window, apply_window, lookup_window, fir_alloc, fir, fir_filter
from .postprocessing import baseline_weights, whittaker, baseline, baseline_correction
from .entropy import EntropyType, lookup_entropy
from .reconstruction import IterationRecord, ist, ffm, irls, reconstruct

__all__ = [
    'window',
    'apply_window',
    'lookup_window',
    'fir_alloc',
    'fir',
    'fir_filter',
    'baseline_weights',
    'whittaker',
    'baseline',
    'baseline_correction',
    'EntropyType',
    'lookup_entropy',
    'IterationRecord',
    'ist',
    'ffm',
    'irls',
    'reconstruct',
]
