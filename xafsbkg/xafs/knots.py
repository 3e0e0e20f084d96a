#!/usr/bin/env python
"""
  spline knots and initial spline for XAFS background removal
"""
import logging
from collections import namedtuple
import numpy as np
from scipy.interpolate import splrep

from ..errors import InvalidRbkgError, SplineKnotError
from ..math import index_nearest

logger = logging.getLogger(__name__)

NSPL_MIN, NSPL_MAX = 5, 128

KnotPlan = namedtuple('KnotPlan', ('rbkg', 'rgrid', 'nspl', 'irbkg', 'spl_k',
                                   'spl_y', 'knots', 'coefs', 'order'))

def plan_knots(kraw, mu, kmin, kmax, rbkg=1, nknots=None, kstep=0.05,
               nfft=2048, order=3):
    """choose spline knots and initial coefficients for autobk

    Arguments
    ---------
    kraw:    k values for the energies at and above ek0
    mu:      mu(E) values matching kraw
    kmin:    minimum k for spline
    kmax:    maximum k for spline
    rbkg:    R (in Ang) below which chi(R) is fitted [1]
    nknots:  number of knots, overrides the value from rbkg [None]
    kstep:   k step of uniform grid [0.05]
    nfft:    FFT length [2048]
    order:   spline order [3]

    Returns
    -------
    KnotPlan with
        rbkg     rbkg, at least 2 R grid points
        rgrid    R grid spacing, pi/(kstep*nfft)
        nspl     number of spline coefficients, between 5 and 128
        irbkg    number of chi(R) points below rbkg used in the fit
        spl_k    k values of the initial spline points
        spl_y    smoothed mu values at spl_k
        knots    knot vector (with order+1 repeated end knots)
        coefs    initial spline coefficients (nspl values)
        order    spline order
    """
    if rbkg is None or rbkg <= 0:
        raise InvalidRbkgError("rbkg must be positive, got %s" % rbkg)
    if kmax <= kmin:
        raise SplineKnotError("k range collapsed: kmin=%.3f, kmax=%.3f" % (kmin, kmax))
    kraw = np.asarray(kraw, dtype='float64')
    mu = np.asarray(mu, dtype='float64')

    rgrid = np.pi/(kstep*nfft)
    rbkg = max(rbkg, 2*rgrid)

    nspl = 1 + int(round(2*rbkg*(kmax-kmin)/np.pi))
    irbkg = int(round(1 + (nspl-1)*np.pi/(2*rgrid*(kmax-kmin))))
    irbkg = min(irbkg, nfft//2 + 1)
    if nknots is not None:
        nspl = nknots
    nspl = max(NSPL_MIN, min(NSPL_MAX, nspl))

    # initial spline points: mu smoothed over +/- 5 points near each k
    npts = len(kraw)
    spl_y, spl_k = np.ones(nspl), np.zeros(nspl)
    for i in range(nspl):
        q  = kmin + i*(kmax-kmin)/(nspl - 1)
        ik = index_nearest(kraw, q)
        i1 = min(npts-1, ik + 5)
        i2 = max(0, ik - 5)
        spl_k[i] = kraw[ik]
        spl_y[i] = (2*mu[ik] + mu[i1] + mu[i2]) / 4.0

    if np.any(np.diff(spl_k) <= 0):
        raise SplineKnotError("cannot place %d distinct knots between k=%.3f and %.3f "
                              "with %d data points" % (nspl, kmin, kmax, npts))

    knots, coefs, order = splrep(spl_k, spl_y, k=order)
    coefs = 1.0*coefs[:nspl]
    logger.debug("autobk knots: rbkg=%.3f nspl=%d irbkg=%d k=[%.3f, %.3f]",
                 rbkg, nspl, irbkg, spl_k[0], spl_k[-1])
    return KnotPlan(rbkg=rbkg, rgrid=rgrid, nspl=nspl, irbkg=irbkg,
                    spl_k=spl_k, spl_y=spl_y, knots=knots, coefs=coefs,
                    order=order)
