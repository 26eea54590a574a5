"""
Transform Module
================

Radix-2 Fourier transforms, phasing and shifts on hypercomplex arrays.

A transform runs along one topological axis and one imaginary unit d:
every line along the axis is treated as a sequence of hypercomplex
values and combined with twiddle phasors ``exp(u_d * phi)``.

Neither direction applies a 1/N normalization. Callers that need an
inverse transform to undo a forward one must scale by 1/N themselves.
"""

import logging
import numpy as np
from typing import Optional

from . import index as hxindex
from .arith import array_mul_vector, array_scale, data_multiply
from .array import HxArray
from .errors import DimensionError


logger = logging.getLogger(__name__)

FFT_FORWARD = 1.0
FFT_REVERSE = -1.0


def ispow2(value: int) -> bool:
    """
    Check for a power of two. One is deliberately not accepted.

    Example:
        >>> ispow2(8), ispow2(1), ispow2(12)
        (True, False, False)
    """
    return value > 1 and (value & (value - 1)) == 0


def prevpow2(value: int) -> int:
    """Largest power of two strictly below ``value`` (0 when none exists)"""
    pow2 = 1
    while pow2 < value:
        pow2 <<= 1

    return pow2 >> 1


def nextpow2(value: int) -> int:
    """Smallest power of two strictly above ``value``"""
    pow2 = 1
    while pow2 <= value:
        pow2 <<= 1

    return pow2


def _bit_reversal(npts: int) -> np.ndarray:
    bits = npts.bit_length() - 1
    idx = np.arange(npts)
    rev = np.zeros_like(idx)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)

    return rev


def fft_lines(lines: np.ndarray, d: int, direction: float, registry=None) -> np.ndarray:
    """
    Transform a batch of lines of shape (nlines, npts, n) along axis 1.

    ``d`` is the imaginary unit carrying the transform; the algebra order
    follows from the coefficient count n.

    Returns:
        Transformed batch (a new array)
    """
    nlines, npts, n = lines.shape
    order = n.bit_length() - 1
    if d < 0 or d >= order:
        raise DimensionError(f"algebraic dimension {d} out of bounds [0,{order})")

    out = np.ascontiguousarray(lines[:, _bit_reversal(npts)])

    k = 1
    while k < npts:
        step = 2 * k

        # twiddle phasors exp(-u_d * pi * dir * m / k).
        phi = -np.pi * direction * np.arange(k) / k
        w = np.zeros((k, n))
        w[:, 0] = np.cos(phi)
        w[:, 1 << d] = np.sin(phi)

        view = out.reshape(nlines, npts // step, 2, k, n)
        top = view[:, :, 0]
        swp = data_multiply(w, view[:, :, 1], order, registry)

        upper = top + swp
        lower = top - swp
        view[:, :, 0] = upper
        view[:, :, 1] = lower

        k = step

    return out


def _check_transform(x: HxArray, d: int, axis: int):
    if d < 0 or d >= x.d:
        raise DimensionError(f"algebraic dimension {d} out of bounds [0,{x.d})")
    if axis < 0 or axis >= x.k:
        raise DimensionError(f"topological dimension {axis} out of bounds [0,{x.k})")
    if not ispow2(x.sz[axis]):
        raise DimensionError(f"dimension {axis} is not a power of two size ({x.sz[axis]})")


def line_offsets(x: HxArray, axis: int) -> np.ndarray:
    """
    Point offsets of every line along ``axis``.

    Returns:
        Integer array (nlines, sz[axis]); row j lists the linear offsets
        of the j-th line in enumeration order
    """
    stride = int(np.prod(x.sz[:axis], dtype=np.int64))
    starts = hxindex.jump_offsets(x.sz, axis)
    return starts[:, np.newaxis] + stride * np.arange(x.sz[axis])[np.newaxis, :]


def fft1d(x: HxArray, d: int, direction: float = FFT_FORWARD) -> HxArray:
    """
    In-place radix-2 transform of a vector.

    Args:
        x: Vector array (k = 1) of power-of-two length
        d: Imaginary unit carrying the transform
        direction: FFT_FORWARD or FFT_REVERSE

    Returns:
        ``x``
    """
    if x.k != 1:
        raise DimensionError(f"expected a vector, got k={x.k}")
    _check_transform(x, d, 0)

    pts = x.points()
    pts[...] = fft_lines(pts[np.newaxis], d, direction, x.registry)[0]
    return x


def fftfn(x: HxArray, d: int, axis: int, direction: float) -> HxArray:
    """
    In-place radix-2 transform of every line along ``axis``.

    Args:
        x: Array to transform
        d: Imaginary unit carrying the transform
        axis: Topological axis, of power-of-two size
        direction: FFT_FORWARD or FFT_REVERSE

    Returns:
        ``x``

    Example:
        >>> fftfn(x, 0, 0, FFT_FORWARD)
    """
    _check_transform(x, d, axis)

    offsets = line_offsets(x, axis)
    pts = x.points()
    pts[offsets] = fft_lines(pts[offsets], d, direction, x.registry)
    return x


def fft(x: HxArray, d: int, axis: int) -> HxArray:
    """Forward transform along (d, axis)"""
    return fftfn(x, d, axis, FFT_FORWARD)


def ifft(x: HxArray, d: int, axis: int) -> HxArray:
    """Inverse transform along (d, axis), without 1/N scaling"""
    return fftfn(x, d, axis, FFT_REVERSE)


def phasor_array(x: HxArray, d: int, phi0: float, phi1: float = 0.0, pivot: float = 0.0) -> HxArray:
    """
    Fill a vector with the linear phase ramp ``exp(u_d * phi(i))``.

    ``phi(i) = phi0 + phi1 * (i / (N - 1) - pivot)``.

    Args:
        x: Vector array (k = 1), overwritten
        d: Imaginary unit of the phase
        phi0: Zero-order phase (radians)
        phi1: First-order phase (radians across the vector)
        pivot: Fractional position of zero first-order phase
    """
    if d < 0 or d >= x.d:
        raise DimensionError(f"algebraic dimension {d} out of bounds [0,{x.d})")
    if x.k != 1:
        raise DimensionError(f"expected a vector, got k={x.k}")

    npts = x.sz[0]
    fi = np.arange(npts) / (npts - 1) if npts > 1 else np.zeros(1)
    phi = phi0 + phi1 * (fi - pivot)

    pts = x.points()
    pts[...] = 0.0
    pts[:, 0] = np.cos(phi)
    pts[:, 1 << d] = np.sin(phi)
    return x


def phase(x: HxArray, d: int, axis: int, phi0: float, phi1: float = 0.0, pivot: float = 0.0) -> HxArray:
    """Apply a zero/first-order phase correction to every vector along ``axis``"""
    if axis < 0 or axis >= x.k:
        raise DimensionError(f"topological dimension {axis} out of bounds [0,{x.k})")

    ph = phasor_array(HxArray(x.d, 1, [x.sz[axis]], x.registry), d, phi0, phi1, pivot)
    return array_mul_vector(x, ph, axis, x)


def fshift(x: HxArray, axis: int, amount: float, d: Optional[int] = None) -> HxArray:
    """
    Circularly shift every vector along ``axis`` by a fractional amount.

    The shift is applied as a linear phase in the frequency domain, so an
    integer ``amount`` reproduces ``HxArray.shift`` on band-limited data.

    Args:
        x: Array to shift, power-of-two along ``axis``
        axis: Shifted axis
        amount: Shift in points (positive moves data to higher indices)
        d: Imaginary unit for the transform (defaults to ``axis``)
    """
    d = axis if d is None else d
    _check_transform(x, d, axis)
    if amount == 0.0:
        return x

    npts = x.sz[axis]
    freq = np.fft.fftfreq(npts) * npts
    phi = -2.0 * np.pi * amount * freq / npts

    ph = HxArray(x.d, 1, [npts], x.registry)
    pts = ph.points()
    pts[:, 0] = np.cos(phi)
    pts[:, 1 << d] = np.sin(phi)

    fft(x, d, axis)
    array_mul_vector(x, ph, axis, x)
    ifft(x, d, axis)
    return array_scale(x, 1.0 / npts, x)


def ht(x: HxArray, d: int, axis: int) -> HxArray:
    """
    Hilbert transform: rebuild the imaginary (unit d) component along
    ``axis`` from the real component, in place.
    """
    _check_transform(x, d, axis)

    npts = x.sz[axis]
    pts = x.points()
    mask = (np.arange(x.n) & (1 << d)) != 0
    pts[:, mask] = 0.0

    fft(x, d, axis)

    # one-sided spectrum weights.
    h = np.zeros(npts)
    h[0] = 1.0
    h[1:npts // 2] = 2.0
    h[npts // 2] = 1.0

    offsets = line_offsets(x, axis)
    pts[offsets] *= h[np.newaxis, :, np.newaxis]

    ifft(x, d, axis)
    return array_scale(x, 1.0 / npts, x)
