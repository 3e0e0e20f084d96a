#!/usr/bin/env python
"""
  Background removal and Fourier transform for collections of spectra,
  sequentially or with a pool of worker processes
"""
import logging
import multiprocessing as mp
from collections import namedtuple
from functools import partial

from ..group import Group
from ..errors import ParameterError, MissingDataError, IndexOutOfBoundsError
from ..utils import format_exception, logging_basicConfig
from .autobk import resolve_config
from .pre_edge import EdgeInfo
from .background import calc_background, BKG_METHODS
from .spectrum import XASSpectrum, FT_DEFAULTS
from .xafsft import xftf

logger = logging.getLogger(__name__)

BatchResult = namedtuple('BatchResult', ('index', 'name', 'result', 'xftf', 'error'))

SpectrumItem = namedtuple('SpectrumItem', ('index', 'name', 'energy', 'mu',
                                           'e0', 'edge_step'))

def spectrum_item(index, spectrum):
    """SpectrumItem for a Group (or XASSpectrum) or an (energy, mu) pair"""
    if isinstance(spectrum, (tuple, list)):
        energy, mu = (tuple(spectrum) + (None, None))[:2]
        return SpectrumItem(index, 'spectrum_%d' % index, energy, mu, None, None)
    name = getattr(spectrum, 'name', None)
    if name is None:
        name = 'spectrum_%d' % index
    return SpectrumItem(index, name, getattr(spectrum, 'energy', None),
                        getattr(spectrum, 'mu', None),
                        getattr(spectrum, 'e0', None),
                        getattr(spectrum, 'edge_step', None))


def process_spectrum(item, method='autobk', config=None, pre_edge_kws=None,
                     xftf_kws=None):
    """background removal and forward Fourier transform for one spectrum

    Any error is logged and returned in BatchResult.error, so that one
    failing spectrum does not stop the others.
    """
    try:
        if item.energy is None or item.mu is None:
            raise MissingDataError("spectrum needs 'energy' and 'mu'")
        result = calc_background(item.energy, item.mu, method=method,
                                 edge=EdgeInfo(e0=item.e0, edge_step=item.edge_step),
                                 config=config, pre_edge_kws=pre_edge_kws)
        ftgroup = None
        if result is not None:
            opts = dict(FT_DEFAULTS)
            if xftf_kws is not None:
                opts.update(xftf_kws)
            ftgroup = xftf(result.k, result.chi, group=Group(), **opts)
    except Exception as exc:
        logger.error("spectrum %d (%s) failed: %s: %s", item.index, item.name,
                     type(exc).__name__, exc)
        logger.debug('\n'.join(format_exception()))
        return BatchResult(item.index, item.name, None, None,
                           "%s: %s" % (type(exc).__name__, exc))
    return BatchResult(item.index, item.name, result, ftgroup, None)


def _init_worker(level):
    logging_basicConfig(level=level)
    logging.getLogger('xafsbkg').setLevel(level)


class BatchRunner:
    """run background removal and forward Fourier transform over many spectra

    Arguments
    ---------
    method:       background method, one of BKG_METHODS ['autobk']
    config:       AUTOBKConfig for all spectra [defaults]
    pre_edge_kws: keyword arguments for normalization, used for spectra
                  without e0 or edge_step
    xftf_kws:     keyword arguments for xftf() [FT_DEFAULTS]
    nworkers:     number of worker processes [cpu_count()-1];
                  0 runs sequentially

    Results are returned as a list of BatchResult, in input order.
    """
    def __init__(self, method='autobk', config=None, pre_edge_kws=None,
                 xftf_kws=None, nworkers=None):
        if str(method).lower() not in BKG_METHODS:
            raise ParameterError("unknown background method '%s': use one of %s"
                                 % (method, ', '.join(BKG_METHODS)))
        self.method = str(method).lower()
        if self.method == 'autobk':
            config = resolve_config(config)
        self.config = config
        self.pre_edge_kws = pre_edge_kws
        self.xftf_kws = xftf_kws
        if nworkers is None:
            nworkers = max(1, mp.cpu_count()-1)
        if nworkers < 0:
            raise ParameterError("nworkers must not be negative, got %s" % nworkers)
        self.nworkers = nworkers

    def _process_func(self):
        return partial(process_spectrum, method=self.method, config=self.config,
                       pre_edge_kws=self.pre_edge_kws, xftf_kws=self.xftf_kws)

    def run(self, spectra, parallel=True):
        """process spectra, in parallel if possible"""
        if parallel and self.nworkers > 0 and len(spectra) > 1:
            return self.run_parallel(spectra)
        return self.run_sequential(spectra)

    def run_sequential(self, spectra):
        func = self._process_func()
        return [func(spectrum_item(i, s)) for i, s in enumerate(spectra)]

    def run_parallel(self, spectra):
        items = [spectrum_item(i, s) for i, s in enumerate(spectra)]
        if len(items) == 0:
            return []
        nproc = max(1, min(self.nworkers, len(items)))
        level = logging.getLogger('xafsbkg').getEffectiveLevel()
        logger.debug("processing %d spectra with %d workers", len(items), nproc)
        with mp.Pool(nproc, initializer=_init_worker, initargs=(level,)) as pool:
            results = pool.map(self._process_func(), items)
            pool.close()
            pool.join()
        return results

    def apply(self, spectra, results):
        """copy successful results onto XASSpectrum inputs

        returns the number of spectra updated
        """
        nupdated = 0
        for res in results:
            if res.index < 0 or res.index >= len(spectra):
                raise IndexOutOfBoundsError("result index %d out of range for %d spectra"
                                            % (res.index, len(spectra)))
            spec = spectra[res.index]
            if res.result is None or not isinstance(spec, XASSpectrum):
                continue
            spec.set_background(res.result)
            if res.xftf is not None:
                for attr in ('kwin', 'r', 'chir', 'chir_mag', 'chir_re', 'chir_im'):
                    setattr(spec, attr, getattr(res.xftf, attr))
            nupdated += 1
        return nupdated
