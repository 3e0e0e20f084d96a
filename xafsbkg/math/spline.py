#!/usr/bin/env python
"""
B-spline evaluation and basis functions
"""
import numpy as np
from scipy.interpolate import splev


def spline_eval(x, knots, coefs, order=3):
    """evaluate B-spline (knots, coefs, order) at x

    arguments:
    ------------
      x       input 1-d array for absicca
      knots   knot vector, as from scipy.interpolate.splrep
      coefs   spline coefficients
      order   spline order [3]

    returns:
    --------
      1-d array with spline values
    """
    return splev(x, (knots, np.asarray(coefs, dtype='float64'), order))


def bspline_basis(x, knots, ncoefs, order=3):
    """dense B-spline basis matrix

    Returns an array of shape (len(x), ncoefs) whose column j is
    the B-spline basis function j evaluated at x, that is the derivative
    of spline_eval(x, knots, coefs, order) with respect to coefs[j].
    """
    x = np.asarray(x, dtype='float64')
    ntot = len(knots) - order - 1
    basis = np.zeros((len(x), ncoefs), dtype='float64')
    unit = np.zeros(max(ntot, ncoefs), dtype='float64')
    for j in range(ncoefs):
        unit[:] = 0.0
        unit[j] = 1.0
        basis[:, j] = splev(x, (knots, unit, order))
    return basis
