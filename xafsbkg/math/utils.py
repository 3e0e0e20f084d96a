#!/usr/bin/env python
"""
Array helpers for energy and k grids: index lookup, cleaning of
repeated or non-finite values, interpolation, smoothing and fitting
"""
import numpy as np

from lmfit.lineshapes import gaussian, lorentzian

from ..errors import InterpolationRangeError


def index_of(array, value):
    """index of the last element of array at or below value,
    or 0 if value is below all elements
    """
    below = np.flatnonzero(np.asarray(array) <= value)
    if len(below) == 0:
        return 0
    return int(below[-1])

def index_nearest(array, value):
    """index of the element of array nearest to value"""
    return int(np.abs(np.asarray(array) - value).argmin())

def realimag(arr):
    """return real array of real/imag pairs from complex array

    For 2-d input, pairs are interleaved along the first axis, so that
    each column of the output is realimag() of the input column.
    """
    arr = np.asarray(arr)
    out = np.stack((arr.real, arr.imag), axis=1)
    return out.reshape((2*arr.shape[0],) + arr.shape[1:])

def complex_phase(arr):
    "phase of a complex array, with 2pi jumps removed"
    return np.unwrap(np.angle(arr))

def interp_within(x, y, xnew, xmin=None, xmax=None, tol=1.e-8):
    """linear interpolation of y(x) onto xnew, requiring that the
    range [xmin, xmax] (default: the range of xnew) lies inside the
    range of x.  Points of xnew outside [x[0], x[-1]] but also outside
    [xmin, xmax] take the end values of y.

    Raises InterpolationRangeError if [xmin, xmax] is not covered by x.
    """
    x, y, xnew = np.asarray(x), np.asarray(y), np.asarray(xnew)
    if xmin is None:
        xmin = xnew.min()
    if xmax is None:
        xmax = xnew.max()
    if xmin < x.min() - tol or xmax > x.max() + tol:
        raise InterpolationRangeError(
            "cannot interpolate onto [%g, %g]: data covers [%g, %g]"
            % (xmin, xmax, x.min(), x.max()))
    return np.interp(xnew, x, y)


def remove_dups(arr, tiny=1.e-6):
    """separate repeated values in an array expected to be increasing

    Returns a flattened float copy of arr in which a value within tiny
    of the previous (non-NaN) value is moved to tiny above it, so that
    runs of repeats become strictly increasing.  NaNs are left in place.

    >>> remove_dups([1, 2, 3, 3, 3, 4])
    array([1.      , 2.      , 3.      , 3.000001, 3.000002, 4.      ])
    """
    out = np.array(arr, dtype='float64').flatten()
    if out.size < 2 or np.all(np.diff(out) > 10*tiny):
        return out
    shift = np.zeros(out.size)
    last, last_shift = np.nan, 0.0
    for i in range(1, out.size):
        if not np.isnan(out[i-1]):
            last, last_shift = out[i-1], shift[i-1]
        if np.isnan(out[i]) or np.isnan(last):
            continue
        if abs(out[i] - last) < tiny:
            shift[i] = last_shift + tiny
    return out + shift


def remove_nans2(a, b):
    """drop the points where either of two equal-length arrays is NaN or Inf

    >>> remove_nans2([0, 1.1, np.nan, 3.3], [1, 2, 3, 4])
    (array([0. , 1.1, 3.3]), array([1, 2, 4]))
    """
    a, b = np.asarray(a), np.asarray(b)
    good = np.isfinite(a) & np.isfinite(b)
    return a[good], b[good]


def smooth(x, y, sigma=1, xstep=None, npad=5, form='lorentzian'):
    """smooth y(x) by convolution with a normalized lorentzian or gaussian

    Arguments
    ---------
      x       increasing 1-d array
      y       1-d array of data to be smoothed
      sigma   width of the convolving function, in units of x
      xstep   step of the uniform working grid [smallest step of x]
      npad    number of grid steps added at each end [5]
      form    'lorentzian' or 'gaussian' ['lorentzian']

    Returns
    -------
      smoothed y on the input x.  The data are mirrored at the ends of
      the working grid, so the ends are not pulled toward zero.
    """
    x = np.asarray(x, dtype='float64')
    y = np.asarray(y, dtype='float64')
    if xstep is None:
        xstep = np.diff(x).min()
    if xstep < 1.e-12:
        raise ValueError('cannot smooth data: x must be strictly increasing')
    gmin = xstep*int((x.min() - npad*xstep)/xstep)
    gmax = xstep*int((x.max() + npad*xstep)/xstep)
    ngrid = min(1 + int((gmax - gmin + 0.1*xstep)/xstep), 50*len(x))
    xgrid = np.linspace(gmin, gmax, ngrid)

    kernel = gaussian if form.lower().startswith('gauss') else lorentzian
    win = kernel(np.arange(2*ngrid-1), center=ngrid-1, sigma=sigma/xstep)
    ygrid = np.pad(np.interp(xgrid, x, y), ngrid-1, mode='reflect')
    ysmooth = np.convolve(ygrid, win/win.sum(), mode='valid')
    return np.interp(x, xgrid, ysmooth)


def polyfit(x, y, deg=1):
    """least-squares polynomial fit, returning coefficients
    in increasing order, c0 + c1*x + c2*x**2 ...
    """
    return np.polynomial.polynomial.polyfit(x, y, int(deg))
