"""
Filtering Module
================

Window functions and windowed-sinc FIR filters for hypercomplex arrays.

Windows are vectors (k = 1) whose real coefficient carries the window
value; every other coefficient is zero. Multiplying a trace by a window
therefore scales all of its coefficients by the same real factor.
Window positions are expressed as fractions ``f = i / (N - 1)`` of the
vector length, so 0 is the first point and 1 the last.
"""

import logging
import numpy as np
from typing import Optional

from ..core.arith import array_mul_vector
from ..core.array import HxArray
from ..core.errors import DimensionError
from ..core.parameters import FilterParameters, WindowParameters, WindowType


logger = logging.getLogger(__name__)


def lookup_window(name: str) -> WindowType:
    """
    Map a window name to its type.

    Example:
        >>> lookup_window("gauss")
        <WindowType.GAUSS: 'gauss'>
        >>> lookup_window("hann")
        <WindowType.UNDEFINED: 'undefined'>
    """
    name = str(name).strip().lower()
    if name == "blackman":
        return WindowType.BLACKMAN

    try:
        return WindowType(name)
    except ValueError:
        return WindowType.UNDEFINED


def _window_array(d: int, npts: int, values: np.ndarray, out: Optional[HxArray]) -> HxArray:
    if npts < 1:
        raise DimensionError(f"invalid window length {npts}")

    w = out.ensure(d, 1, [npts]) if out is not None else HxArray(d, 1, [npts])
    pts = w.points()
    pts[...] = 0.0
    pts[:, 0] = values
    return w


def _fractions(npts: int) -> np.ndarray:
    if npts < 2:
        return np.zeros(max(npts, 0))

    return np.arange(npts) / (npts - 1)


def window_sine(
    d: int,
    npts: int,
    start: float = 0.0,
    end: float = 1.0,
    order: float = 1.0,
    out: Optional[HxArray] = None
) -> HxArray:
    """
    Sine-bell window ``sin(pi * (start + (end - start) * f)) ** order``.

    Args:
        d: Algebraic dimensionality of the window array
        npts: Window length
        start: Phase of the first point, fraction of pi in [0, 1]
        end: Phase of the last point, fraction of pi in [0, 1]
        order: Power of the sine, >= 1
        out: Optional array to reuse

    Returns:
        Window vector
    """
    if not 0.0 <= start <= 1.0:
        raise DimensionError(f"sine window start {start:.3f} out of bounds [0,1]")
    if not 0.0 <= end <= 1.0:
        raise DimensionError(f"sine window end {end:.3f} out of bounds [0,1]")
    if order < 1.0:
        raise DimensionError(f"sine window order {order:.3f} out of bounds [1,inf)")

    f = _fractions(npts)
    values = np.sin(np.pi * (start + (end - start) * f)) ** order
    return _window_array(d, npts, values, out)


def window_exp(d: int, npts: int, lb: float, width: float, out: Optional[HxArray] = None) -> HxArray:
    """
    Exponential line broadening ``exp(-pi * lb * t)`` with ``t = i / width``.

    Args:
        d: Algebraic dimensionality
        npts: Window length
        lb: Line broadening (Hz)
        width: Spectral width (Hz)
    """
    if width <= 0.0:
        raise DimensionError(f"spectral width {width:.3f} out of bounds (0,inf)")

    t = np.arange(npts) / width
    return _window_array(d, npts, np.exp(-np.pi * lb * t), out)


def window_gauss(
    d: int,
    npts: int,
    invlb: float,
    lb: float,
    center: float,
    width: float,
    out: Optional[HxArray] = None
) -> HxArray:
    """
    Lorentz-to-Gauss window.

    ``exp(pi * invlb * t - (0.6 * pi * lb * (t0 - t)) ** 2)`` with
    ``t = i / width`` and the Gaussian maximum at ``t0 = center * (N - 1) / width``.

    Args:
        d: Algebraic dimensionality
        npts: Window length
        invlb: Inverse exponential broadening (Hz)
        lb: Gaussian broadening (Hz)
        center: Position of the Gaussian maximum, fraction in [0, 1]
        width: Spectral width (Hz)
    """
    if width <= 0.0:
        raise DimensionError(f"spectral width {width:.3f} out of bounds (0,inf)")
    if not 0.0 <= center <= 1.0:
        raise DimensionError(f"gaussian center {center:.3f} out of bounds [0,1]")

    t = np.arange(npts) / width
    t0 = center * (npts - 1) / width
    values = np.exp(np.pi * invlb * t - (0.6 * np.pi * lb * (t0 - t)) ** 2)
    return _window_array(d, npts, values, out)


def window_trap(d: int, npts: int, start: float, end: float, out: Optional[HxArray] = None) -> HxArray:
    """
    Trapezoid window: rises linearly from 0 to 1 over [0, start], stays
    at 1 until ``end`` and falls linearly back to 0 at the last point.

    Args:
        d: Algebraic dimensionality
        npts: Window length
        start: End of the rising edge, fraction in [0, 1]
        end: Start of the falling edge, fraction in [start, 1]
    """
    if not 0.0 <= start <= end <= 1.0:
        raise DimensionError(f"trapezoid corners ({start:.3f}, {end:.3f}) must satisfy 0 <= start <= end <= 1")

    f = _fractions(npts)
    values = np.ones(npts)

    rise = f < start
    values[rise] = f[rise] / start

    fall = f > end
    values[fall] = (1.0 - f[fall]) / (1.0 - end)
    return _window_array(d, npts, values, out)


def window_tri(
    d: int,
    npts: int,
    center: float,
    start: float,
    end: float,
    out: Optional[HxArray] = None
) -> HxArray:
    """
    Triangle window: ``start`` at the first point, 1 at ``center`` and
    ``end`` at the last point, linear in between.

    Args:
        d: Algebraic dimensionality
        npts: Window length
        center: Position of the apex, fraction in [0, 1]
        start: Value at the first point
        end: Value at the last point
    """
    if not 0.0 <= center <= 1.0:
        raise DimensionError(f"triangle center {center:.3f} out of bounds [0,1]")

    f = _fractions(npts)
    values = np.ones(npts)

    left = f < center
    values[left] = start + (1.0 - start) * f[left] / center

    right = f > center
    values[right] = 1.0 + (end - 1.0) * (f[right] - center) / (1.0 - center)
    return _window_array(d, npts, values, out)


def window_black(d: int, npts: int, out: Optional[HxArray] = None) -> HxArray:
    """Blackman window ``0.42 - 0.5 cos(2 pi f) + 0.08 cos(4 pi f)``"""
    f = _fractions(npts)
    values = 0.42 - 0.5 * np.cos(2.0 * np.pi * f) + 0.08 * np.cos(4.0 * np.pi * f)
    return _window_array(d, npts, values, out)


def window(d: int, npts: int, params: WindowParameters, out: Optional[HxArray] = None) -> HxArray:
    """
    Build the window described by a WindowParameters record.

    Example:
        >>> params = WindowParameters(window_type=WindowType.EXP, lb=5.0, width=2000.0)
        >>> w = window(1, 1024, params)
    """
    wt = params.window_type
    if not isinstance(wt, WindowType):
        wt = lookup_window(wt)

    if wt == WindowType.SINE:
        return window_sine(d, npts, params.start, params.end, params.order, out)
    if wt == WindowType.EXP:
        return window_exp(d, npts, params.lb, params.width, out)
    if wt == WindowType.GAUSS:
        return window_gauss(d, npts, params.invlb, params.lb, params.center, params.width, out)
    if wt == WindowType.TRAP:
        return window_trap(d, npts, params.start, params.end, out)
    if wt == WindowType.TRI:
        return window_tri(d, npts, params.center, params.start, params.end, out)
    if wt == WindowType.BLACKMAN:
        return window_black(d, npts, out)

    raise DimensionError(f"window type '{params.window_type}' is undefined")


def apply_window(x: HxArray, axis: int, w: HxArray) -> HxArray:
    """
    Multiply every vector of ``x`` along ``axis`` by the window ``w``.

    A window built for another algebraic dimensionality is promoted (or
    demoted) first; its real coefficient is kept either way.

    Args:
        x: Array to apodize, modified in place
        axis: Topological axis of the traces
        w: Window vector of length ``x.sz[axis]``

    Returns:
        ``x``
    """
    if w.d != x.d:
        w = w.copy().resize_d(x.d)

    logger.debug("applying %d-point window along axis %d of %r", w.sz[0], axis, x)
    return array_mul_vector(x, w, axis, x)


def sinc(x):
    """
    Normalized sinc ``sin(pi x) / (pi x)`` with ``sinc(0) = 1``.

    Works on scalars and numpy arrays.
    """
    return np.sinc(x)


def fir_alloc(M: int, ft: float, band_stop: bool = False) -> HxArray:
    """
    Blackman-windowed sinc low-pass (or band-stop) filter taps.

    Args:
        M: Filter order; the filter has M + 1 taps and must be even for
           a band-stop filter
        ft: Normalized transition frequency in [0, 0.5]
        band_stop: Spectrally invert the low-pass response

    Returns:
        Real vector (d = 0, k = 1) of M + 1 taps

    Example:
        >>> b = fir_alloc(32, 0.1)
        >>> b.sz
        [33]
    """
    if M < 1:
        raise DimensionError(f"filter order {M} out of bounds [1,inf)")
    if band_stop and M % 2:
        raise DimensionError("band-stop filter must have even order")
    if ft < 0.0 or ft > 0.5:
        raise DimensionError(f"transition frequency {ft:.4f} out of bounds [0,0.5]")

    b = window_black(0, M + 1)

    offset = np.arange(M + 1) - M // 2
    taps = 2.0 * ft * sinc(2.0 * ft * offset)
    if band_stop:
        taps = -taps
        taps[offset == 0] = 1.0 - 2.0 * ft

    b.x *= taps
    return b


def fir(x: HxArray, axis: int, b: HxArray) -> HxArray:
    """
    Filter every vector of ``x`` along ``axis`` with the causal FIR taps ``b``.

    ``y[i] = sum(b[m] * x[i - m])`` over the taps that fall inside the
    vector, computed in place.

    Args:
        x: Array to filter
        axis: Topological axis of the traces
        b: Real tap vector (d = 0, k = 1) shorter than ``x.sz[axis]``

    Returns:
        ``x``
    """
    if axis < 0 or axis >= x.k:
        raise DimensionError(f"dimension index {axis} out of bounds [0,{x.k})")
    if b.d != 0 or b.k != 1 or b.sz[0] >= x.sz[axis]:
        raise DimensionError("invalid fir filter coefficient array")

    taps = b.x.copy()

    def convolve(arr, y, idx, pidx):
        pts = y.points()
        src = pts.copy()
        pts *= taps[0]
        for m in range(1, taps.size):
            pts[m:] += taps[m] * src[:-m]

    logger.debug("applying %d-tap fir filter along axis %d of %r", taps.size, axis, x)
    return x.foreach_vector(axis, convolve)


def fir_filter(x: HxArray, axis: int, params: FilterParameters) -> HxArray:
    """Build the taps of a FilterParameters record and apply them along ``axis``"""
    errors = params.validate()
    if errors:
        raise DimensionError(f"invalid filter parameters: {'; '.join(errors)}")

    return fir(x, axis, fir_alloc(params.order, params.cutoff, params.band_stop))
