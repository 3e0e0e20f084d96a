#!/usr/bin/env python
"""
  XAFS Fourier transforms and Fourier transform windows
"""
import numpy as np
from numpy import pi, sqrt
from scipy.fft import rfft, irfft
from scipy.special import i0 as bessel_i0

from ..bkglib import Make_CallArgs, parse_group_args
from ..errors import (InvalidWindowError, FFTSizeError,
                      InsufficientPointsError, LengthMismatchError)
from ..math import complex_phase
from .xafsutils import set_xafsGroup

VALID_WINDOWS = ('han', 'fha', 'gau', 'kai', 'par', 'wel', 'sin', 'bes')
sqrtpi = sqrt(pi)

# rising side of the tapered windows, for u from 0 (window edge) to 1 (flat top)
TAPERS = {'han': lambda u: np.sin(u*pi/2)**2,
          'fha': lambda u: np.sin(u*pi/2)**2,
          'par': lambda u: u,
          'wel': lambda u: 1 - (1-u)**2}


def window_name(window):
    """return the three-letter name for a window, or raise InvalidWindowError"""
    if window is None:
        return VALID_WINDOWS[0]
    if not isinstance(window, str):
        raise InvalidWindowError("invalid window name %r" % (window,))
    nam = window.strip().lower()[:3]
    if nam not in VALID_WINDOWS:
        raise InvalidWindowError("invalid window name '%s': use one of %s"
                                 % (window, ', '.join(VALID_WINDOWS)))
    return nam


def _window_corners(x, xmin, xmax, dx1, dx2, nam):
    """grid indices i1 <= i2 and i3 <= i4 where a window rises from
    x[i1] to x[i2] and falls from x[i3] to x[i4].  x is uniform."""
    npts = len(x)
    xstep = (x[-1] - x[0])/(npts-1)
    xeps = 1.e-4*xstep
    x1 = max(x.min(), xmin - dx1/2.0)
    x4 = min(x.max(), xmax + dx2/2.0)
    if nam == 'fha':
        # dx, dx2 are fractions of the window range
        x2 = x1 + xeps + max(dx1, 0)*(xmax-xmin)/2.0
        x3 = x4 - xeps - min(dx2, 1)*(xmax-xmin)/2.0
    else:
        x2 = xmin + dx1/2.0 + xeps
        x3 = xmax - dx2/2.0 - xeps

    def grid_index(val):
        return min(npts-1, max(0, int((val - x[0] + xeps)/xstep)))

    i1, i2, i3, i4 = (grid_index(val) for val in (x1, x2, x3, x4))
    if i2 == i1:
        i1 = max(0, i2-1)
    if i4 == i3:
        i3 = max(i2, i4-1)
    return i1, i2, i3, i4, xeps


def ftwindow(x, xmin=None, xmax=None, dx=1, dx2=None, window='hanning'):
    """
    Fourier transform window on a uniform grid x: 1 between xmin and
    xmax, going to 0 over a width dx below xmin and dx2 (=dx) above xmax.

    Windows:
        hanning     cosine-squared taper
        fhanning    cosine-squared taper, dx and dx2 as fractions of xmax-xmin
        parzen      linear taper
        welch       quadratic taper
        sine        sine function from xmin-dx/2 to xmax+dx2/2
        gaussian    Gaussian of width dx, centered in the range
        kaiser      Kaiser-Bessel function-derived window, dx as its parameter
        bessel      Kaiser-Bessel window as in ifeffit 1.0

    Only the first three letters of the name are used.
    Returns the window, an array of the length of x.
    """
    nam = window_name(window)
    x = np.asarray(x, dtype='float64')
    if len(x) < 2:
        raise InsufficientPointsError("ftwindow needs at least 2 points, got %d" % len(x))
    if dx2 is None:
        dx2 = dx
    if xmin is None:
        xmin = x.min()
    if xmax is None:
        xmax = x.max()

    i1, i2, i3, i4, xeps = _window_corners(x, xmin, xmax, dx, dx2, nam)
    x1, x2, x3, x4 = x[i1], x[i2], x[i3], x[i4]
    if x1 == x2:
        x2 += xeps
    if x3 == x4:
        x4 += xeps

    fwin = np.zeros(len(x))
    if nam in TAPERS:
        taper = TAPERS[nam]
        fwin[i2:i3] = 1.0
        rise, fall = slice(i1, i2+1), slice(i3, i4+1)
        fwin[rise] = taper((x[rise]-x1)/(x2-x1))
        fwin[fall] = taper((x4-x[fall])/(x4-x3))
    elif nam == 'sin':
        span = slice(i1, i4+1)
        fwin[span] = np.sin(pi*(x4-x[span])/(x4-x1))
    elif nam == 'gau':
        sigma = max(dx, xeps)
        fwin = np.exp(-(x - (x4+x1)/2)**2/(2*sigma*sigma))
    else:
        halfwidth = (x4-x1)/2
        arg = np.clip(1 - (x - (x4+x1)/2)**2/halfwidth**2, 0, None)
        if nam == 'bes':
            fwin = bessel_i0(dx*np.sqrt(arg))/bessel_i0(dx)
            fwin[(x <= x1) | (x >= x4)] = 0
        else:
            fwin = (bessel_i0(dx*np.sqrt(arg)) - 1)/max(1.e-10, bessel_i0(dx) - 1)
    return fwin


def xftf_fast(chi, nfft=2048, kstep=0.05):
    """
    calculate forward XAFS Fourier transform.  Unlike xftf(),
    this assumes that:
      1. data is already on a uniform grid starting at k=0
      2. any windowing and/or kweighting has been applied.
    and simply returns the complex chi(R), not setting any group data.

    A 2-d input is transformed column by column.

    Parameters:
    ------------
      chi:      real array of chi to be transformed, len(chi) <= nfft
      nfft:     value to use for N_fft (2048).
      kstep:    value to use for delta_k (0.05).

    Returns:
    --------
      complex array chi(R), with nfft//2 + 1 values along the first axis

    """
    chi = np.asarray(chi, dtype='float64')
    if chi.shape[0] > nfft:
        raise FFTSizeError("cannot transform %d points with nfft=%d"
                           % (chi.shape[0], nfft))
    return (kstep / sqrtpi) * rfft(chi, n=nfft, axis=0)


def xftr_fast(chir, nfft=2048, kstep=0.05):
    """
    calculate reverse XAFS Fourier transform, from chi(R) to chi(q),
    inverting xftf_fast(): the chi(R) bins (up to nfft//2 + 1 of them)
    are zero-padded and transformed back to the real chi(q) on the
    uniform q grid of spacing kstep.

    Parameters:
    -------------
      chir:     complex array of chi(R), as from xftf_fast()
      nfft:     value to use for N_fft (2048).
      kstep:    value to use for delta_k (0.05).

    Returns:
    ----------
      real array for chi(q), with nfft values along the first axis.
    """
    chir = np.asarray(chir)
    nbins = nfft//2 + 1
    if chir.shape[0] > nbins:
        raise FFTSizeError("%d chi(R) values do not fit nfft=%d (at most %d)"
                           % (chir.shape[0], nfft, nbins))
    cchir = np.zeros((nbins,) + chir.shape[1:], dtype='complex128')
    cchir[:chir.shape[0]] = chir
    return (sqrtpi / (kstep*nfft)) * irfft(cchir, n=nfft, axis=0, norm='forward')


def xftf_prep(k, chi, kmin=0, kmax=20, kweight=2, dk=1, dk2=None,
              window='kaiser', nfft=2048, kstep=0.05):
    """k-weighted chi(k) interpolated onto the uniform grid kstep*arange(n)
    reaching max(k) (at most nfft points), and the window on that grid.

    xftf_fast(wchi*win) is then the forward transform.
    """
    if dk2 is None:
        dk2 = dk
    kgrid = kstep*np.arange(int(1.01 + max(max(k), kmax+dk2)/kstep), dtype='float64')
    npts = min(nfft, int(1.01 + max(k)/kstep))
    win = ftwindow(kgrid, xmin=kmin, xmax=kmax, dx=dk, dx2=dk2, window=window)
    wchi = np.interp(kgrid, k, chi) * kgrid**kweight
    return wchi[:npts], win[:npts]


def _transform_input(x, y, xname, yname, fcn_name, ydtype='float64'):
    x = np.asarray(x, dtype='float64')
    y = np.asarray(y, dtype=ydtype)
    if len(x) != len(y):
        raise LengthMismatchError("%s: %s has %d points, %s has %d"
                                  % (fcn_name, xname, len(x), yname, len(y)))
    if len(x) < 2:
        raise InsufficientPointsError("%s needs at least 2 points, got %d"
                                      % (fcn_name, len(x)))
    return x, y

def _unexpected(fcn_name, kws):
    if len(kws) > 0:
        raise TypeError("%s() got unexpected keyword arguments: %s"
                        % (fcn_name, ', '.join(kws.keys())))


@Make_CallArgs(["k", "chi"])
def xftf(k, chi=None, group=None, kmin=0, kmax=20, kweight=0,
         dk=1, dk2=None, with_phase=False, window='kaiser', rmax_out=10,
         nfft=2048, kstep=0.05, **kws):
    """
    forward XAFS Fourier transform, from chi(k) to chi(R), using
    common XAFS conventions.

    Parameters:
    -----------
      k:        1-d array of photo-electron wavenumber in Ang^-1 or group
      chi:      1-d array of chi
      group:    output Group
      rmax_out: highest R for output data (10 Ang)
      kweight:  exponent for weighting spectra by k**kweight (alias kw)
      kmin:     starting k for FT Window
      kmax:     ending k for FT Window
      dk:       tapering parameter for FT Window
      dk2:      second tapering parameter for FT Window
      window:   name of window type
      nfft:     value to use for N_fft (2048).
      kstep:    value to use for delta_k (0.05 Ang^-1).
      with_phase: output the phase as well as magnitude, real, imag  [False]

    Returns:
    ---------
      the output group, with
        kwin      window function, on the uniform k grid
        r         uniform array of R, out to rmax_out
        chir      complex chi(R), and its chir_mag, chir_re, chir_im
        chir_pha  phase of chi(R), if with_phase=True

    Supports First Argument Group convention (with group member names 'k' and 'chi')
    """
    kweight = kws.pop('kw', kweight)
    _unexpected('xftf', kws)
    k, chi, group = parse_group_args(k, members=('k', 'chi'),
                                     defaults=(chi,), group=group,
                                     fcn_name='xftf')
    k, chi = _transform_input(k, chi, 'k', 'chi', 'xftf')

    wchi, win = xftf_prep(k, chi, kmin=kmin, kmax=kmax, kweight=kweight,
                          dk=dk, dk2=dk2, nfft=nfft, kstep=kstep, window=window)
    rstep = pi/(kstep*nfft)
    nrpts = int(min(nfft/2, 1.01 + rmax_out/rstep))
    chir = xftf_fast(wchi*win, nfft=nfft, kstep=kstep)[:nrpts]

    group = set_xafsGroup(group)
    group.kwin = win[:len(chi)]
    group.r = rstep*np.arange(nrpts)
    group.chir = chir
    group.chir_mag = np.abs(chir)
    group.chir_re = chir.real
    group.chir_im = chir.imag
    if with_phase:
        group.chir_pha = complex_phase(chir)
    return group


@Make_CallArgs(["r", "chir"])
def xftr(r, chir=None, group=None, rmin=0, rmax=20, dr=1, dr2=None,
         rweight=0, window='kaiser', qmax_out=30, nfft=2048, kstep=0.05,
         **kws):
    """
    reverse XAFS Fourier transform, from chi(R) to chi(q), for chi(R)
    on the R grid written by xftf(), starting at R=0.

    Parameters:
    ------------
      r:        1-d array of distance, or group.
      chir:     1-d complex array of chi(R)
      group:    output Group
      qmax_out: highest *k* for output data (30 Ang^-1)
      rweight:  exponent for weighting spectra by r^rweight (0, alias rw)
      rmin:     starting *R* for FT Window
      rmax:     ending *R* for FT Window
      dr:       tapering parameter for FT Window
      dr2:      second tapering parameter for FT Window
      window:   name of window type
      nfft:     value to use for N_fft (2048).
      kstep:    value to use for delta_k (0.05).

    Returns:
    ---------
      the output group, with
        rwin      window function, for the input chi(R)
        q         uniform array of k, out to qmax_out
        chiq      filtered chi(q), real-valued

    Supports First Argument Group convention (with group member names 'r' and 'chir')
    """
    rweight = kws.pop('rw', rweight)
    _unexpected('xftr', kws)
    r, chir, group = parse_group_args(r, members=('r', 'chir'),
                                      defaults=(chir,), group=group,
                                      fcn_name='xftr')
    r, chir = _transform_input(r, chir, 'r', 'chir', 'xftr', ydtype='complex128')

    nbins = nfft//2 + 1
    rgrid = (pi/(kstep*nfft))*np.arange(nbins, dtype='float64')
    nr = min(nbins, len(chir))
    cchir = np.zeros(nbins, dtype='complex128')
    cchir[:nr] = chir[:nr]

    win = ftwindow(rgrid, xmin=rmin, xmax=rmax, dx=dr, dx2=dr2, window=window)
    chiq = xftr_fast(cchir*win*rgrid**rweight, nfft=nfft, kstep=kstep)
    nqpts = min(nfft, int(1.01 + qmax_out/kstep))

    group = set_xafsGroup(group)
    group.q = kstep*np.arange(nqpts, dtype='float64')
    group.rwin = win[:len(chir)]
    group.chiq = chiq[:nqpts]
    return group
