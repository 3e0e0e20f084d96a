#!/usr/bin/env python
"""
  XAS spectrum: a Group holding energy and mu(E) with its
  normalization, background and Fourier transform results
"""
import numpy as np
from xraydb import guess_edge

from ..group import Group
from ..errors import LengthMismatchError
from .pre_edge import EdgeInfo, pre_edge
from .background import calc_background
from .xafsft import xftf, xftr

FT_DEFAULTS = dict(kmin=2, kmax=15, dk=1, kweight=2, window='kaiser')

class XASSpectrum(Group):
    """XAS spectrum of energy and mu(E)

    Results are written as attributes, as for other Groups:
    normalize() writes e0, edge_step, norm, ... ;
    calc_background() writes bkg, chie, k, chi, chi_kweighted, kwin, ek0
    and autobk_result ; xftf() writes r, chir, ... ; xftr() writes q, chiq.
    The energy and mu arrays are never altered.
    """
    def __init__(self, energy, mu, name=None, e0=None, edge_step=None, **kws):
        energy = np.asarray(energy, dtype='float64')
        mu = np.asarray(mu, dtype='float64')
        if len(energy) != len(mu):
            raise LengthMismatchError("energy has %d points, mu has %d"
                                      % (len(energy), len(mu)))
        Group.__init__(self, name=name, energy=energy, mu=mu, **kws)
        self.e0 = e0
        self.edge_step = edge_step

    def __repr__(self):
        return f'<XASSpectrum {self.__name__}: {len(self.energy)} points>'

    @property
    def name(self):
        return self.__name__

    def edge_info(self):
        return EdgeInfo(e0=self.e0, edge_step=self.edge_step)

    def normalize(self, **pre_edge_kws):
        """run pre_edge() on this spectrum, and label its absorption
        edge (atsym, edge) from e0 unless already labelled"""
        pre_edge(self.energy, self.mu, group=self, **pre_edge_kws)
        if getattr(self, 'atsym', None) is None or getattr(self, 'edge', None) is None:
            self.atsym, self.edge = guess_edge(self.e0)
        return self.edge_info()

    def calc_background(self, method='autobk', config=None, pre_edge_kws=None, **kws):
        """remove background, using edge_info() when complete"""
        result = calc_background(self.energy, self.mu, method=method,
                                 edge=self.edge_info(), config=config,
                                 pre_edge_kws=pre_edge_kws, **kws)
        self.set_background(result)
        return result

    def set_background(self, result):
        """copy the arrays of a BackgroundResult to this spectrum"""
        if result is None:
            return
        self.autobk_result = result
        self.bkg = result.bkg
        self.chie = result.chie
        self.k = result.k
        self.chi = result.chi
        self.chi_kweighted = result.chi_kweighted
        self.kwin = result.kwin
        self.ek0 = result.ek0
        self.rbkg = result.rbkg
        if self.e0 is None:
            self.e0 = result.ek0
        if self.edge_step is None:
            self.edge_step = result.edge_step

    def xftf(self, **kws):
        """forward Fourier transform of chi(k), after calc_background()"""
        opts = dict(FT_DEFAULTS)
        opts.update(kws)
        return xftf(self.k, self.chi, group=self, **opts)

    def xftr(self, **kws):
        """reverse Fourier transform of chi(R), after xftf()"""
        opts = dict(rmin=1, rmax=3, dr=0.5, window='hanning')
        opts.update(kws)
        return xftr(self.r, self.chir, group=self, **opts)
