#!/usr/bin/env python
"""
  Edge energy, edge step and normalization of mu(E)

  preedge() fits a line below the edge and a polynomial above it; their
  difference at e0 is the edge step.  The result is a Normalization,
  whose EdgeInfo is what background removal needs.
"""
import logging
from collections import namedtuple
import numpy as np

from ..group import Group
from ..bkglib import Make_CallArgs, parse_group_args
from ..errors import (InsufficientDataError, LengthMismatchError,
                      NormalizationError)
from ..math import (index_of, index_nearest, smooth, polyfit,
                    remove_dups, remove_nans2)
from .xafsutils import set_xafsGroup, TINY_ENERGY

logger = logging.getLogger(__name__)

MAX_NNORM = 5
MIN_E0_POINTS = 10

EdgeInfo = namedtuple('EdgeInfo', ('e0', 'edge_step'), defaults=(None, None))

NormRanges = namedtuple('NormRanges', ('pre1', 'pre2', 'norm1', 'norm2',
                                       'nnorm', 'nvict'))

Normalization = namedtuple('Normalization', ('edge', 'energy', 'norm', 'flat',
                                             'pre_edge', 'post_edge', 'ranges',
                                             'pre_coefs', 'norm_coefs'))


def _clean_spectrum(energy, mu):
    """energy and mu as float arrays, without non-finite points,
    sorted by energy and with repeated energies separated
    """
    energy = np.asarray(energy, dtype='float64').squeeze()
    mu = np.asarray(mu, dtype='float64').squeeze()
    if energy.shape != mu.shape:
        raise LengthMismatchError("energy has %d points, mu has %d"
                                  % (energy.size, mu.size))
    energy, mu = remove_nans2(energy, mu)
    order = np.argsort(energy, kind='stable')
    return remove_dups(energy[order], tiny=TINY_ENERGY), mu[order]


def find_energy_step(energy, frac_ignore=0.01, nave=10):
    """typical energy step of an energy array: the mean of the `nave`
    smallest steps, after ignoring the smallest fraction `frac_ignore`
    """
    steps = np.sort(np.diff(np.sort(np.asarray(energy, dtype='float64'))))
    nskip = int(frac_ignore*len(energy))
    steps = steps[nskip:nskip+nave]
    if len(steps) == 0:
        raise InsufficientDataError("too few energy points to find the energy step")
    return steps.mean()


def _steepest_index(energy, mu, estep, use_smooth=False):
    """index of the largest dmu/dE whose two neighbors are also steep,
    so that single-point glitches are skipped.  returns 0 if none is found
    """
    npts = len(energy)
    dmu = np.gradient(mu)/np.gradient(energy)
    if use_smooth:
        dmu = smooth(energy, dmu, xstep=estep, sigma=estep)
    dmu[~np.isfinite(dmu)] = -1.0

    nmin = max(3, int(npts*0.02))
    inner = dmu[nmin:npts-nmin]
    if len(inner) < 3:
        inner = dmu
    dmu = (dmu - inner.min())/max(1.e-10, np.ptp(inner))

    threshold = 0.60 if npts > 20 else 0.30
    steep = dmu > threshold
    for _ in range(2):
        if steep.sum() > 3:
            break
        threshold *= 0.5
        steep = dmu > threshold
    if steep.sum() < 3:
        steep = np.ones(npts, dtype=bool)

    candidate = np.zeros(npts, dtype=bool)
    candidate[1:-1] = steep[:-2] & steep[1:-1] & steep[2:]
    candidate[:nmin] = False
    candidate[npts-nmin+1:] = False
    score = np.where(candidate, dmu, 0.0)
    imax = int(np.argmax(score))
    return imax if score[imax] > 0 else 0


@Make_CallArgs(["energy", "mu"])
def find_e0(energy, mu=None, group=None):
    """edge energy E0: the point of maximum dmu/dE, avoiding glitches

    A first, unsmoothed pass locates the edge; a second pass over the
    points within 75 of it uses a smoothed derivative.

    Arguments
    ---------
    energy:  array of x-ray energies, in eV, or Group with energy and mu
    mu:      array of mu(E)
    group:   output group, where e0 is written

    Returns
    -------
    e0, an energy of the (sorted) input energy array.

    Raises InsufficientDataError for fewer than 10 points.
    """
    energy, mu, group = parse_group_args(energy, members=('energy', 'mu'),
                                         defaults=(mu,), group=group,
                                         fcn_name='find_e0')
    energy, mu = _clean_spectrum(energy, mu)
    npts = len(energy)
    if npts < MIN_E0_POINTS:
        raise InsufficientDataError("find_e0 needs at least %d points, got %d"
                                    % (MIN_E0_POINTS, npts))

    estep = find_energy_step(energy)
    ie0 = _steepest_index(energy, mu, estep)
    e1 = energy[ie0]
    istart, istop = max(3, ie0-75), min(ie0+75, npts-3)
    if ie0 < 0.05*npts:
        # an edge this close to the start is most likely a glitch
        e1 = energy.mean()
        istart, istop = max(3, ie0-20), npts-3

    estep = 0.5*(np.clip(estep, 0.01, 1.0) + np.clip(e1/25000., 0.01, 1.0))
    ix = _steepest_index(energy[istart:istop], mu[istart:istop], estep,
                         use_smooth=True)
    e0 = energy[istart + (ix if ix >= 1 else 2)]
    logger.debug("find_e0: e0=%.3f", e0)
    if group is not None:
        group.e0 = e0
    return e0


def _round_to(value, step):
    return step*round(value/step)

def norm_ranges(energy, e0, pre1=None, pre2=None, norm1=None, norm2=None,
                nnorm=None, nvict=0):
    """pre-edge and normalization ranges, relative to e0, with defaults:

      pre1   second energy point (the first is often bad), rounded to 5 eV
      pre2   pre1/2
      norm2  last energy point, rounded to 5 eV
      norm1  norm2/15 rounded to 5 eV, at most 25 eV
      nnorm  2 for a post-edge range of 300 eV or more, 1 for 30 eV or more, else 0

    Ranges given in the wrong order are swapped, the pre-edge range is
    widened to at least 2+nvict points, and norm1 is at most norm2-10.
    """
    erel = np.asarray(energy) - e0
    if pre1 is None:
        pre1 = _round_to(erel[1], 5.0 if index_nearest(erel, 0) > 20 else 2.0)
    pre1 = max(pre1, erel[0])
    if pre2 is None:
        pre2 = 0.5*pre1
    pre1, pre2 = min(pre1, pre2), max(pre1, pre2)
    ipre1 = index_of(erel, pre1)
    if index_of(erel, pre2) < ipre1 + 2 + nvict:
        pre2 = erel[min(len(erel)-1, int(ipre1 + 2 + nvict))]

    if norm2 is None:
        norm2 = _round_to(erel[-1], 5.0)
    if norm2 < 0:
        norm2 = erel[-1] - norm2
    norm2 = min(norm2, erel[-1])
    if norm1 is None:
        norm1 = min(25, _round_to(norm2/15.0, 5.0))
    norm1, norm2 = min(norm1, norm2), max(norm1, norm2)
    norm1 = min(norm1, norm2 - 10)

    if nnorm is None:
        span = norm2 - norm1
        nnorm = 2 if span >= 300 else (1 if span >= 30 else 0)
    nnorm = max(0, min(MAX_NNORM, int(nnorm)))
    return NormRanges(pre1=pre1, pre2=pre2, norm1=norm1, norm2=norm2,
                      nnorm=nnorm, nvict=nvict)


def _fit_slice(energy, emin, emax):
    """slice of energy from emin to emax, with at least 2 points"""
    i1 = index_of(energy, emin)
    i2 = max(index_nearest(energy, emax), min(len(energy), i1 + 2))
    if i2 - i1 < 2:
        i1 = max(0, i2 - 2)
    return slice(i1, i2)


def preedge(energy, mu, e0=None, step=None, nnorm=None, nvict=0, pre1=None,
            pre2=None, norm1=None, norm2=None):
    """pre-edge subtraction and normalization of mu(E)

    Arguments
    ---------
    energy:  array of x-ray energies, in eV
    mu:      array of mu(E)
    e0:      edge energy, in eV [found with find_e0()]
    step:    edge step [found from the pre- and post-edge curves]
    pre1, pre2:    pre-edge fit range, relative to e0
    norm1, norm2:  post-edge fit range, relative to e0
    nnorm:   degree of the post-edge polynomial
    nvict:   energy exponent for the fits: mu*E**nvict is fit

    See norm_ranges() for the default ranges.

    Returns
    -------
    Normalization(edge, energy, norm, flat, pre_edge, post_edge, ranges,
                  pre_coefs, norm_coefs) with
      edge       EdgeInfo(e0, edge_step)
      energy     energy used: sorted, without non-finite points
      norm       (mu - pre_edge)/edge_step
      flat       norm, with the post-edge curvature removed above e0
      pre_edge, post_edge   the fitted curves
      ranges     NormRanges used

    Raises InsufficientDataError for fewer than 2 usable points and
    NormalizationError if the edge step is not finite.
    """
    energy, mu = _clean_spectrum(energy, mu)
    if len(energy) < 2:
        raise InsufficientDataError("preedge needs at least 2 points, got %d" % len(energy))
    if e0 is None or not energy[1] <= e0 <= energy[-2]:
        e0 = find_e0(energy, mu)
    ie0 = index_nearest(energy, e0)
    e0 = energy[ie0]
    ranges = norm_ranges(energy, e0, pre1=pre1, pre2=pre2, norm1=norm1,
                         norm2=norm2, nnorm=nnorm, nvict=nvict)

    evict = energy**ranges.nvict
    pre = _fit_slice(energy, e0+ranges.pre1, e0+ranges.pre2)
    pre_coefs = polyfit(energy[pre], (mu*evict)[pre], 1)
    pre_edge = np.polynomial.polynomial.polyval(energy, pre_coefs)/evict

    post = _fit_slice(energy, e0+ranges.norm1, e0+ranges.norm2)
    norm_coefs = polyfit(energy[post], (mu-pre_edge)[post], ranges.nnorm)
    post_edge = pre_edge + np.polynomial.polynomial.polyval(energy, norm_coefs)

    edge_step = step
    if edge_step is None:
        edge_step = post_edge[ie0] - pre_edge[ie0]
    if not np.isfinite(edge_step):
        raise NormalizationError("edge step is not finite: %s" % edge_step)
    edge_step = max(1.e-12, abs(float(edge_step)))

    norm = (mu - pre_edge)/edge_step
    curve = (post_edge - pre_edge)/edge_step
    flat = norm - curve + curve[ie0]
    flat[:ie0] = norm[:ie0]
    return Normalization(edge=EdgeInfo(e0=float(e0), edge_step=edge_step),
                         energy=energy, norm=norm, flat=flat,
                         pre_edge=pre_edge, post_edge=post_edge, ranges=ranges,
                         pre_coefs=pre_coefs, norm_coefs=norm_coefs)


@Make_CallArgs(["energy","mu"])
def pre_edge(energy, mu=None, group=None, e0=None, step=None, nnorm=None,
             nvict=0, pre1=None, pre2=None, norm1=None, norm2=None):
    """pre-edge subtraction and normalization, written to a group

    Arguments are as for preedge(), with group the output group.  An e0
    already held by the group is used if e0 is not given.

    Returns
    -------
      the output group, with e0, edge_step, norm, flat, pre_edge,
      post_edge and pre_edge_details (the NormRanges values and fit
      coefficients) written.

    Supports the First Argument Group convention, with group members
    energy and mu.
    """
    energy, mu, group = parse_group_args(energy, members=('energy', 'mu'),
                                         defaults=(mu,), group=group,
                                         fcn_name='pre_edge')
    if e0 is None and group is not None:
        e0 = getattr(group, 'e0', None)
    dat = preedge(energy, mu, e0=e0, step=step, nnorm=nnorm, nvict=nvict,
                  pre1=pre1, pre2=pre2, norm1=norm1, norm2=norm2)

    group = set_xafsGroup(group)
    group.e0, group.edge_step = dat.edge
    group.norm = dat.norm
    group.flat = dat.flat
    group.pre_edge = dat.pre_edge
    group.post_edge = dat.post_edge
    group.pre_edge_details = Group(pre_coefs=dat.pre_coefs,
                                   norm_coefs=dat.norm_coefs,
                                   **dat.ranges._asdict())
    return group
