#!/usr/bin/env python
"""
  Selection of XAFS background removal method
"""
from ..errors import ParameterError, MethodNotImplementedError
from .autobk import calc_autobk

BKG_METHODS = ('autobk', 'ilpbkg', 'none')

def calc_background(energy, mu, method='autobk', edge=None, config=None,
                    pre_edge_kws=None, **kws):
    """remove XAFS background with the named method

    Arguments
    ---------
    energy:   array of x-ray energies, in eV
    mu:       array of mu(E)
    method:   one of 'autobk', 'ilpbkg', 'none'   ['autobk']
    edge:     EdgeInfo(e0, edge_step) or None
    config:   configuration for the method (AUTOBKConfig for autobk)
    pre_edge_kws: keyword arguments for normalization, if edge is incomplete
    kws:      further keyword arguments for the method
              (calc_uncertainties, err_sigma for autobk)

    Returns
    -------
    BackgroundResult for 'autobk', None for 'none'.

    'ilpbkg' raises MethodNotImplementedError, and any other method
    raises ParameterError.
    """
    name = 'none' if method is None else str(method).lower()
    if name == 'autobk':
        return calc_autobk(energy, mu, edge=edge, config=config,
                           pre_edge_kws=pre_edge_kws, **kws)
    elif name == 'ilpbkg':
        raise MethodNotImplementedError("background method 'ilpbkg' is not implemented")
    elif name == 'none':
        return None
    raise ParameterError("unknown background method '%s': use one of %s"
                         % (method, ', '.join(BKG_METHODS)))
