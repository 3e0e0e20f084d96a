#!/usr/bin/env python
"""
  AUTOBK XAFS background removal: fit a cubic spline mu0(E) so that
  chi(R) = FT[(mu - mu0)(k)] is minimal below R = rbkg
"""
import logging
from collections import namedtuple
import numpy as np
from scipy.optimize import leastsq
from scipy.stats import t
from scipy.special import erf

from ..group import Group, isgroup
from ..bkglib import Make_CallArgs, parse_group_args, read_config, save_config
from ..errors import (ParameterError, DataError, InsufficientDataError,
                      LengthMismatchError, NonFiniteDataError,
                      MissingDataError, InvalidRbkgError, SplineKnotError,
                      ConvergenceError, InsufficientPointsError)
from ..math import realimag, remove_dups, interp_within, spline_eval, bspline_basis
from .xafsutils import TINY_ENERGY, guess_energy_units, set_xafsGroup
from .xafsft import ftwindow, xftf_fast, window_name
from .kgrid import build_kgrid
from .knots import plan_knots
from .pre_edge import EdgeInfo, preedge, pre_edge

logger = logging.getLogger(__name__)

MIN_POINTS = 5

AUTOBKConfig = namedtuple('AUTOBKConfig',
                          ('rbkg', 'nknots', 'kmin', 'kmax', 'kstep',
                           'nclamp', 'clamp_lo', 'clamp_hi', 'nfft', 'kweight',
                           'window', 'dk', 'k_std', 'chi_std'),
                          defaults=(None,)*14)

AUTOBK_DEFAULTS = AUTOBKConfig(rbkg=1.0, nknots=None, kmin=0.0, kmax=None,
                               kstep=0.05, nclamp=3, clamp_lo=0, clamp_hi=1,
                               nfft=2048, kweight=1, window='hanning', dk=0.1,
                               k_std=None, chi_std=None)

AutobkSetup = namedtuple('AutobkSetup', ('kgrid', 'plan', 'model', 'ftwin',
                                         'kwin', 'config'))

BackgroundResult = namedtuple('BackgroundResult',
                              ('energy', 'bkg', 'chie', 'k', 'chi',
                               'chi_kweighted', 'kwin', 'ftwin', 'ek0',
                               'edge_step', 'rbkg', 'kweight', 'delta_chi',
                               'delta_bkg', 'details'))


def resolve_config(config=None, **kws):
    """return a fully resolved and validated AUTOBKConfig

    Arguments
    ---------
    config:  AUTOBKConfig, dict, or None, possibly with unset (None) values
    kws:     values overriding those of config.  None values are ignored.

    Returns
    -------
    new AUTOBKConfig with unset values taken from AUTOBK_DEFAULTS.
    The input config is not altered.
    """
    if config is None:
        vals = {}
    elif isinstance(config, AUTOBKConfig):
        vals = config._asdict()
    elif isinstance(config, dict):
        vals = dict(config)
    else:
        raise ParameterError("config must be an AUTOBKConfig or dict, not %s"
                             % type(config).__name__)
    vals.update({key: val for key, val in kws.items() if val is not None})

    unknown = [key for key in vals if key not in AUTOBKConfig._fields]
    if len(unknown) > 0:
        raise ParameterError("unknown autobk options: %s" % ', '.join(unknown))

    for key, default in AUTOBK_DEFAULTS._asdict().items():
        if vals.get(key, None) is None:
            vals[key] = default

    if vals['rbkg'] <= 0:
        raise InvalidRbkgError("rbkg must be positive, got %s" % vals['rbkg'])
    if vals['kstep'] <= 0:
        raise ParameterError("kstep must be positive, got %s" % vals['kstep'])
    if int(vals['nfft']) != vals['nfft'] or vals['nfft'] < 4:
        raise ParameterError("nfft must be an integer >= 4, got %s" % vals['nfft'])
    if int(vals['nclamp']) != vals['nclamp'] or vals['nclamp'] < 0:
        raise ParameterError("nclamp must be a non-negative integer, got %s" % vals['nclamp'])
    if vals['dk'] < 0:
        raise ParameterError("dk must not be negative, got %s" % vals['dk'])
    if vals['kmin'] < 0:
        raise ParameterError("kmin must not be negative, got %s" % vals['kmin'])
    if vals['kmax'] is not None and vals['kmax'] <= vals['kmin']:
        raise ParameterError("kmax=%s must be larger than kmin=%s"
                             % (vals['kmax'], vals['kmin']))
    if vals['nknots'] is not None and (int(vals['nknots']) != vals['nknots']
                                       or vals['nknots'] < 1):
        raise ParameterError("nknots must be a positive integer, got %s" % vals['nknots'])
    if int(vals['kweight']) != vals['kweight']:
        raise ParameterError("kweight must be an integer, got %s" % vals['kweight'])
    vals['kweight'] = int(vals['kweight'])
    vals['nfft'] = int(vals['nfft'])
    vals['nclamp'] = int(vals['nclamp'])
    window_name(vals['window'])

    k_std, chi_std = vals['k_std'], vals['chi_std']
    if (k_std is None) != (chi_std is None):
        raise LengthMismatchError("k_std and chi_std must be given together")
    if k_std is not None:
        k_std = np.asarray(k_std, dtype='float64')
        chi_std = np.asarray(chi_std, dtype='float64')
        if len(k_std) != len(chi_std):
            raise LengthMismatchError("k_std has %d points, chi_std has %d"
                                      % (len(k_std), len(chi_std)))
        vals['k_std'], vals['chi_std'] = k_std, chi_std
    return AUTOBKConfig(**vals)


def _plain(val):
    if isinstance(val, np.generic):
        return val.item()
    return val

def save_autobk_config(filename, config):
    """save an AUTOBKConfig to a YAML file (without k_std, chi_std)

    relative file names are in the user xafsbkg directory.
    returns the full path name of the file written
    """
    config = resolve_config(config)
    conf = {key: _plain(val) for key, val in config._asdict().items()
            if key not in ('k_std', 'chi_std')}
    return save_config(filename, {'autobk': conf})

def read_autobk_config(filename):
    """read an AUTOBKConfig from a YAML file written by save_autobk_config"""
    conf = read_config(filename)
    if conf is None:
        raise FileNotFoundError("autobk configuration file '%s' not found" % filename)
    return resolve_config(conf.get('autobk', conf))


class AutobkModel:
    """residual and Jacobian for the AUTOBK spline fit

    The model is fixed at creation: raw k grid, mu(k), uniform k grid,
    knots, and the window.  The spline coefficients are passed to each
    method, so that one model can serve any number of evaluations.

    The residual is realimag(FT[chi*ftwin])[:irbkg], with
    chi = mu(kout) - spline(kout) [- chi_std], followed by 2*nclamp
    clamp terms, clamp*scale*chi, for the first and last nclamp points
    of chi, with scale = 1 + 100*mean(primary**2).
    """
    def __init__(self, kraw, mu, kout, knots, order, nspl, ftwin, irbkg,
                 nfft=2048, kstep=0.05, chi_std=None, nclamp=0,
                 clamp_lo=0, clamp_hi=1):
        self.kraw = np.array(kraw, dtype='float64')
        self.mu = np.array(mu, dtype='float64')
        self.kout = np.array(kout, dtype='float64')
        self.knots = np.array(knots, dtype='float64')
        self.order = order
        self.nspl = nspl
        self.ftwin = np.array(ftwin, dtype='float64')
        self.irbkg = irbkg
        self.nfft = nfft
        self.kstep = kstep
        self.chi_std = None if chi_std is None else np.array(chi_std, dtype='float64')
        self.nclamp = nclamp
        self.clamp_lo = abs(clamp_lo)
        self.clamp_hi = abs(clamp_hi)

        nout = len(self.kout)
        if len(self.kraw) != len(self.mu):
            raise LengthMismatchError("kraw has %d points, mu has %d"
                                      % (len(self.kraw), len(self.mu)))
        if len(self.ftwin) != nout:
            raise LengthMismatchError("ftwin has %d points, k has %d"
                                      % (len(self.ftwin), nout))
        if nclamp > 0 and nout < nclamp + 1:
            raise InsufficientPointsError("k grid of %d points is too short for nclamp=%d"
                                          % (nout, nclamp))
        self.lo_clamp = slice(0, nclamp)
        self.hi_clamp = slice(nout-nclamp-1, nout-1)

        # mu on the uniform k grid, linear and held at the end values
        self.mu_out = np.interp(self.kout, self.kraw, self.mu)
        self.basis_raw = bspline_basis(self.kraw, self.knots, nspl, order)
        self.basis_out = bspline_basis(self.kout, self.knots, nspl, order)

        # the residual is linear in coefs before the clamp scale,
        # so d(primary)/d(coefs) is the transform of -basis*ftwin
        self.ft_basis = realimag(xftf_fast(-self.basis_out*self.ftwin[:, np.newaxis],
                                           nfft=nfft, kstep=kstep)[:irbkg])
        for arr in (self.mu_out, self.basis_raw, self.basis_out, self.ft_basis):
            arr.flags.writeable = False

    @property
    def nresid(self):
        "length of the residual vector"
        return 2*self.irbkg + 2*self.nclamp

    def background(self, coefs):
        """spline background on raw and uniform k grids"""
        bkg_raw = spline_eval(self.kraw, self.knots, coefs, self.order)
        bkg_out = spline_eval(self.kout, self.knots, coefs, self.order)
        return bkg_raw, bkg_out

    def chi(self, coefs):
        """chi(k) = mu(k) - spline(k) on the uniform k grid"""
        return self.mu_out - spline_eval(self.kout, self.knots, coefs, self.order)

    def primary(self, chi):
        """windowed, transformed chi, below irbkg as real/imag pairs"""
        return realimag(xftf_fast(chi*self.ftwin, nfft=self.nfft,
                                  kstep=self.kstep)[:self.irbkg])

    def clamp_scale(self, primary):
        return 1.0 + 100*(primary*primary).mean()

    def residual(self, coefs):
        chi = self.chi(coefs)
        if self.chi_std is not None:
            chi = chi - self.chi_std
        out = self.primary(chi)
        if self.nclamp == 0:
            return out
        scale = self.clamp_scale(out)
        return np.concatenate((out,
                               self.clamp_lo*scale*chi[self.lo_clamp],
                               self.clamp_hi*scale*chi[self.hi_clamp]))

    def jacobian(self, coefs):
        """d(residual)/d(coefs), shape (nresid, nspl)

        The clamp scale is evaluated at coefs and treated as a constant.
        """
        if self.nclamp == 0:
            return np.array(self.ft_basis)
        chi = self.chi(coefs)
        if self.chi_std is not None:
            chi = chi - self.chi_std
        scale = self.clamp_scale(self.primary(chi))
        return np.concatenate((self.ft_basis,
                               -self.clamp_lo*scale*self.basis_out[self.lo_clamp],
                               -self.clamp_hi*scale*self.basis_out[self.hi_clamp]))


def prepare_autobk(energy, mu, ek0, config=None):
    """build k grids, knots, window and residual model for autobk

    Arguments
    ---------
    energy:  strictly increasing array of energies, in eV
    mu:      array of mu(E)
    ek0:     edge energy, in eV
    config:  AUTOBKConfig

    Returns
    -------
    AutobkSetup(kgrid, plan, model, ftwin, kwin, config)
    """
    config = resolve_config(config)
    energy = np.asarray(energy, dtype='float64')
    mu = np.asarray(mu, dtype='float64')

    kgrid = build_kgrid(energy, ek0, kmin=config.kmin, kmax=config.kmax,
                        kstep=config.kstep)
    iek0, iemax, kout = kgrid.iek0, kgrid.iemax, kgrid.kout
    nmu = iemax - iek0 + 1
    if len(kout) < 2*config.nclamp + 2:
        raise InsufficientPointsError("k grid of %d points is too short for nclamp=%d"
                                      % (len(kout), config.nclamp))

    plan = plan_knots(kgrid.kraw[:nmu], mu[iek0:iemax+1], kgrid.kmin, kgrid.kmax,
                      rbkg=config.rbkg, nknots=config.nknots, kstep=config.kstep,
                      nfft=config.nfft)

    chi_std = None
    if config.k_std is not None:
        chi_std = interp_within(config.k_std, config.chi_std, kout,
                                xmin=kgrid.kmin, xmax=kgrid.kmax)

    kwin = ftwindow(kout, xmin=kgrid.kmin, xmax=kgrid.kmax, window=config.window,
                    dx=config.dk, dx2=config.dk)
    ftwin = kout**config.kweight * kwin

    model = AutobkModel(kgrid.kraw[:nmu], mu[iek0:iemax+1], kout, plan.knots,
                        plan.order, plan.nspl, ftwin, plan.irbkg,
                        nfft=config.nfft, kstep=config.kstep, chi_std=chi_std,
                        nclamp=config.nclamp, clamp_lo=config.clamp_lo,
                        clamp_hi=config.clamp_hi)
    if plan.nspl > model.nresid:
        raise SplineKnotError("%d spline coefficients exceed %d residual values: "
                              "increase rbkg or reduce nknots" % (plan.nspl, model.nresid))
    return AutobkSetup(kgrid=kgrid, plan=plan, model=model, ftwin=ftwin,
                       kwin=kwin, config=config)


def solve_autobk(model, coefs, use_jacobian=True, maxfev=None):
    """run Levenberg-Marquardt least-squares for an AutobkModel

    Arguments
    ---------
    model:        AutobkModel
    coefs:        initial spline coefficients
    use_jacobian: whether to use the analytic Jacobian [True], or
                  finite differences
    maxfev:       maximum number of function evaluations [2000*(ncoefs+1)]

    Returns
    -------
    coefs, covar, info
      covar is the unscaled covariance (or None if singular),
      info is a Group with nfev, njev, ier, message

    The step bound is factor=100, the MINPACK default.  A bound of 1e-6
    converges to the same coefficients, after several times as many
    evaluations.

    Raises ConvergenceError if maxfev evaluations are used up.
    """
    coefs = np.array(coefs, dtype='float64')
    if maxfev is None:
        maxfev = 2000*(len(coefs)+1)
    dfun = model.jacobian if use_jacobian else None

    best, covar, infodict, errmsg, ier = leastsq(model.residual, coefs, Dfun=dfun,
                                                 full_output=1, col_deriv=0,
                                                 ftol=1.e-6, xtol=1.e-6,
                                                 gtol=1.e-6, epsfcn=1.e-6,
                                                 factor=100, maxfev=maxfev)
    info = Group(nfev=infodict['nfev'], njev=infodict.get('njev', 0),
                 ier=ier, message=errmsg)
    if ier in (1, 2, 3, 4):
        logger.debug("autobk fit converged: nfev=%d, %s", info.nfev, errmsg)
    elif ier in (6, 7, 8):
        logger.warning("autobk fit stopped: %s", errmsg)
    else:
        raise ConvergenceError("autobk fit did not converge after %d evaluations: %s"
                               % (info.nfev, errmsg), nfev=info.nfev, ier=ier,
                               message=errmsg)
    return best, covar, info


def autobk_delta_chi(model, covar, redchi, edge_step=1.0, err_sigma=1):
    """uncertainties in chi(k) and bkg(E) from the spline covariance

    Arguments
    ---------
    model:     AutobkModel used for the fit
    covar:     unscaled covariance of the spline coefficients
    redchi:    reduced chi-square of the fit
    edge_step: edge step used to normalize chi [1]
    err_sigma: sigma level for the uncertainties [1]

    Returns
    -------
    delta_chi (on model.kout, normalized by edge_step), delta_bkg (on model.kraw)
    or None, None if these cannot be computed.
    """
    nspl = model.nspl
    nchi = len(model.kout)
    nmue = len(model.kraw)
    jac_chi = model.basis_out
    jac_bkg = model.basis_raw
    dfchi = np.einsum('ij,jk,ik->i', jac_chi, covar, jac_chi)
    dfbkg = np.einsum('ij,jk,ik->i', jac_bkg, covar, jac_bkg)

    prob = 0.5*(1.0 + erf(err_sigma/np.sqrt(2.0)))
    dchi = t.ppf(prob, max(1, nchi-nspl)) * np.sqrt(np.clip(dfchi*redchi, 0, None))
    dbkg = t.ppf(prob, max(1, nmue-nspl)) * np.sqrt(np.clip(dfbkg*redchi, 0, None))
    if any(np.isnan(dchi)):
        return None, None
    return dchi/edge_step, dbkg


def _frozen(arr):
    if arr is None:
        return None
    out = np.array(arr, dtype='float64')
    out.flags.writeable = False
    return out

def _as_1d(arr, name):
    try:
        arr = np.asarray(arr, dtype='float64')
    except (TypeError, ValueError):
        raise DataError("%s must be an array of numbers" % name)
    if arr.ndim > 1:
        arr = arr.squeeze()
    if arr.ndim != 1:
        raise DataError("%s must be a 1-d array" % name)
    return arr

def calc_autobk(energy, mu, edge=None, config=None, pre_edge_kws=None,
                calc_uncertainties=False, err_sigma=1):
    """AUTOBK background removal for arrays of energy and mu

    Arguments
    ---------
    energy:       array of x-ray energies, in eV, increasing
    mu:           array of mu(E)
    edge:         EdgeInfo(e0, edge_step), either value may be None  [None]
    config:       AUTOBKConfig [AUTOBK_DEFAULTS]
    pre_edge_kws: keyword arguments for preedge(), used if e0 or
                  edge_step are not given
    calc_uncertainties: whether to calculate delta_chi and delta_bkg [False]
    err_sigma:    sigma level for uncertainties [1]

    Returns
    -------
    BackgroundResult, with read-only arrays

    The input arrays are not altered.
    """
    config = resolve_config(config)
    energy = _as_1d(energy, 'energy')
    mu = _as_1d(mu, 'mu')
    if len(energy) != len(mu):
        raise LengthMismatchError("energy has %d points, mu has %d" % (len(energy), len(mu)))
    if len(energy) < MIN_POINTS:
        raise InsufficientDataError("need at least %d points, got %d" % (MIN_POINTS, len(energy)))
    if not (np.all(np.isfinite(energy)) and np.all(np.isfinite(mu))):
        raise NonFiniteDataError("energy and mu must not contain NaN or Inf")

    energy = remove_dups(energy, tiny=TINY_ENERGY)
    if np.any(np.diff(energy) <= 0):
        raise DataError("energy must be increasing")
    units = guess_energy_units(energy)
    if units != 'eV':
        logger.warning("energy array looks like it is in '%s', not eV", units)

    ek0 = getattr(edge, 'e0', None)
    edge_step = getattr(edge, 'edge_step', None)
    if ek0 is not None and (ek0 < energy.min() or ek0 > energy.max()):
        logger.info("ignoring ek0=%.3f outside of energy range", ek0)
        ek0 = None
    if ek0 is None or edge_step is None:
        pre_kws = dict(nnorm=None, nvict=0, pre1=None,
                       pre2=None, norm1=None, norm2=None)
        if pre_edge_kws is not None:
            pre_kws.update(pre_edge_kws)
        found = preedge(energy, mu, e0=ek0, step=edge_step, **pre_kws).edge
        if ek0 is None:
            ek0 = found.e0
        if edge_step is None:
            edge_step = found.edge_step
    if ek0 is None or edge_step is None:
        raise MissingDataError("could not determine ek0 or edge_step")
    if edge_step == 0 or not np.isfinite(edge_step):
        raise DataError("edge_step must be finite and nonzero, got %s" % edge_step)

    setup = prepare_autobk(energy, mu, ek0, config)
    model, plan, kgrid = setup.model, setup.plan, setup.kgrid
    iek0 = kgrid.iek0

    init_bkg, _ = model.background(plan.coefs)
    init_chi = model.chi(plan.coefs)
    coefs, covar, info = solve_autobk(model, plan.coefs)

    chisqr = (model.residual(coefs)**2).sum()
    redchi = chisqr / max(1, model.nresid - plan.nspl)
    coefs_std = None
    if covar is not None:
        coefs_std = np.sqrt(redchi*np.abs(np.diag(covar)))

    bkg, _ = model.background(coefs)
    chi = model.chi(coefs)/edge_step
    obkg = 1.0*mu
    obkg[iek0:iek0+len(bkg)] = bkg
    ibkg = 1.0*mu
    ibkg[iek0:iek0+len(init_bkg)] = init_bkg

    delta_chi = delta_bkg = None
    if calc_uncertainties and covar is not None:
        delta_chi, dbkg = autobk_delta_chi(model, covar, redchi, edge_step=edge_step,
                                           err_sigma=err_sigma)
        if dbkg is not None:
            delta_bkg = 0.0*mu
            delta_bkg[iek0:iek0+len(dbkg)] = dbkg

    details = Group(kmin=kgrid.kmin, kmax=kgrid.kmax, irbkg=plan.irbkg,
                    nspl=plan.nspl, knots=_frozen(plan.knots), order=plan.order,
                    coefs=_frozen(coefs), init_coefs=_frozen(plan.coefs),
                    spl_k=_frozen(plan.spl_k), init_knots_y=_frozen(plan.spl_y),
                    coefs_std=_frozen(coefs_std), covar=_frozen(covar),
                    iek0=iek0, iemax=kgrid.iemax, init_bkg=_frozen(ibkg),
                    init_chi=_frozen(init_chi/edge_step), nfev=info.nfev,
                    njev=info.njev, ier=info.ier, message=info.message,
                    chisqr=chisqr, redchi=redchi, config=setup.config)
    logger.debug("autobk ek0=%.3f nspl=%d nfev=%d redchi=%.5g",
                 ek0, plan.nspl, info.nfev, redchi)

    return BackgroundResult(energy=_frozen(energy), bkg=_frozen(obkg),
                            chie=_frozen((mu-obkg)/edge_step),
                            k=_frozen(kgrid.kout), chi=_frozen(chi),
                            chi_kweighted=_frozen(chi*kgrid.kout**config.kweight),
                            kwin=_frozen(setup.kwin), ftwin=_frozen(setup.ftwin),
                            ek0=ek0, edge_step=edge_step, rbkg=plan.rbkg,
                            kweight=config.kweight, delta_chi=_frozen(delta_chi),
                            delta_bkg=_frozen(delta_bkg), details=details)


@Make_CallArgs(["energy" ,"mu"])
def autobk(energy, mu=None, group=None, rbkg=1, nknots=None, e0=None, ek0=None,
           edge_step=None, kmin=0, kmax=None, kweight=1, dk=0.1,
           win='hanning', k_std=None, chi_std=None, nfft=2048, kstep=0.05,
           pre_edge_kws=None, nclamp=3, clamp_lo=0, clamp_hi=1,
           calc_uncertainties=False, err_sigma=1, **kws):
    """Use Autobk algorithm to remove XAFS background

    Parameters:
    -----------
      energy:    1-d array of x-ray energies, in eV, or group
      mu:        1-d array of mu(E)
      group:     output group (and input group for e0 and edge_step).
      rbkg:      distance (in Ang) for chi(R) above
                 which the signal is ignored. Default = 1.
      e0:        edge energy, in eV.  (deprecated: use ek0)
      ek0:       edge energy, in eV.  If None, it will be determined.
      edge_step: edge step.  If None, it will be determined.
      pre_edge_kws:  keyword arguments to pass to pre_edge()
      nknots:    number of knots in spline.  If None, it will be determined.
      kmin:      minimum k value   [0]
      kmax:      maximum k value   [full data range].
      kweight:   k weight for FFT.  [1]
      dk:        FFT window window parameter.  [0.1]
      win:       FFT window function name.     ['hanning']
      nfft:      array size to use for FFT [2048]
      kstep:     k step size to use for FFT [0.05]
      k_std:     optional k array for standard chi(k).
      chi_std:   optional chi array for standard chi(k).
      nclamp:    number of energy end-points for clamp [3]
      clamp_lo:  weight of low-energy clamp [0]
      clamp_hi:  weight of high-energy clamp [1]
      calc_uncertaintites:  Flag to calculate uncertainties in
                            mu_0(E) and chi(k) [False]
      err_sigma: sigma level for uncertainties in mu_0(E) and chi(k) [1]

    Returns:
    --------
      BackgroundResult.  Output arrays are also written to the group:
        bkg, chie, k, chi, ek0, rbkg, kwin, autobk_details
      and delta_chi, delta_bkg if calc_uncertainties is True.

    Follows the 'First Argument Group' convention.
    """
    if 'kw' in kws:
        kweight = kws.pop('kw')
    if len(kws) > 0:
        raise ParameterError("unrecognized arguments for autobk(): %s"
                             % ', '.join(kws.keys()))
    energy, mu, group = parse_group_args(energy, members=('energy', 'mu'),
                                         defaults=(mu,), group=group,
                                         fcn_name='autobk')
    config = resolve_config(rbkg=rbkg, nknots=nknots, kmin=kmin, kmax=kmax,
                            kweight=kweight, dk=dk, window=win, k_std=k_std,
                            chi_std=chi_std, nfft=nfft, kstep=kstep,
                            nclamp=nclamp, clamp_lo=clamp_lo, clamp_hi=clamp_hi)
    group = set_xafsGroup(group)

    if edge_step is None and isgroup(group, 'edge_step'):
        edge_step = group.edge_step
    if e0 is not None and ek0 is None:
        ek0 = e0
    if ek0 is None and isgroup(group, 'ek0'):
        ek0 = group.ek0
    if ek0 is None and isgroup(group, 'e0'):
        ek0 = group.e0

    energy = np.asarray(energy, dtype='float64')
    if ek0 is not None and (ek0 < energy.min() or ek0 > energy.max()):
        ek0 = None
    if ek0 is None or edge_step is None:
        pre_kws = dict(nnorm=None, nvict=0, pre1=None,
                       pre2=None, norm1=None, norm2=None)
        if pre_edge_kws is not None:
            pre_kws.update(pre_edge_kws)
        pre_edge(energy, mu, group=group, e0=ek0, step=edge_step, **pre_kws)
        if ek0 is None:
            ek0 = group.e0
        if edge_step is None:
            edge_step = group.edge_step

    result = calc_autobk(energy, mu, edge=EdgeInfo(e0=ek0, edge_step=edge_step),
                         config=config, calc_uncertainties=calc_uncertainties,
                         err_sigma=err_sigma)

    group.bkg  = result.bkg
    group.chie = result.chie
    group.k    = result.k
    group.chi  = result.chi
    group.ek0  = result.ek0
    group.rbkg = result.rbkg
    group.kwin = result.kwin
    group.autobk_details = result.details
    if result.delta_chi is not None:
        group.delta_chi = result.delta_chi
        group.delta_bkg = result.delta_bkg
    return result
