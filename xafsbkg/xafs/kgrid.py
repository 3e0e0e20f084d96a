#!/usr/bin/env python
"""
  k-space grids for XAFS background removal
"""
from collections import namedtuple
import numpy as np

from ..errors import InsufficientDataError, InsufficientPointsError, ParameterError
from ..math import index_of
from .xafsutils import ETOK

MIN_KPOINTS = 3

KGrid = namedtuple('KGrid', ('kraw', 'kout', 'kmin', 'kmax', 'kstep',
                             'iek0', 'iemax', 'ek0'))

def build_kgrid(energy, ek0, kmin=0, kmax=None, kstep=0.05):
    """build raw and uniform k grids for energies above ek0

    Arguments
    ---------
    energy:  strictly increasing array of x-ray energies, in eV
    ek0:     edge energy, in eV
    kmin:    minimum k value  [0]
    kmax:    maximum k value, clipped to the data range [full data range]
    kstep:   step for uniform k grid [0.05]

    Returns
    -------
    KGrid with
        kraw     k for energy[iek0:], sign(E-ek0)*sqrt(ETOK*|E-ek0|)
        kout     uniform k grid, kstep*arange(int(1.01+kmax/kstep))
        kmin, kmax, kstep
        iek0     index of energy at or below ek0
        iemax    last energy index used for k <= kmax
        ek0      edge energy
    """
    if kstep is None or kstep <= 0:
        raise ParameterError("kstep must be positive, got %s" % kstep)
    energy = np.asarray(energy, dtype='float64')
    iek0 = index_of(energy, ek0)
    enpe = energy[iek0:] - ek0
    kraw = np.sign(enpe)*np.sqrt(ETOK*abs(enpe))
    nabove = (enpe > 0).sum()
    if nabove < MIN_KPOINTS:
        raise InsufficientDataError("only %d energy points above ek0=%.3f, need %d"
                                    % (nabove, ek0, MIN_KPOINTS))
    if kmax is None:
        kmax = max(kraw)
    else:
        kmax = max(0, min(max(kraw), kmax))
    kout = kstep * np.arange(int(1.01+kmax/kstep), dtype='float64')
    if len(kout) < MIN_KPOINTS:
        raise InsufficientPointsError("k grid has only %d points for kmax=%.3f, kstep=%.3f"
                                      % (len(kout), kmax, kstep))
    iemax = min(len(energy), 2+index_of(energy, ek0+kmax*kmax/ETOK)) - 1
    return KGrid(kraw=kraw, kout=kout, kmin=kmin, kmax=kmax, kstep=kstep,
                 iek0=iek0, iemax=iemax, ek0=ek0)
