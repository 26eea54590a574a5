"""
Error Types
===========

Exception hierarchy shared by every hypercomplex operation.

Errors are raised before any operand is modified. Frames that wrap a
lower-level failure re-raise with ``raise ... from err`` so the chained
exceptions read as a trace from the top-level call down to the cause.
"""

from typing import Optional


class HypercomplexError(Exception):
    """Base class for all library errors"""


class DimensionError(HypercomplexError, ValueError):
    """Out-of-bounds dimension or axis index, or an invalid parameter value"""


class ConfigurationMismatch(DimensionError):
    """
    Operands whose algebraic or topological configuration disagrees.

    Attributes:
        kind: Signed mismatch code from ``core.compare`` (0 when unknown)
    """

    def __init__(self, message: str, kind: Optional[int] = None):
        super().__init__(message)
        self.kind = 0 if kind is None else int(kind)


class ArrayFormatError(HypercomplexError, ValueError):
    """Malformed array file or raw byte buffer"""


class ReconstructionError(HypercomplexError):
    """A reconstruction slice failed inside the worker pool"""
