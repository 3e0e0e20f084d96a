import importlib
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal
import pytest

from xafsbkg import Group
from xafsbkg.xafs import (AUTOBKConfig, AUTOBK_DEFAULTS, EdgeInfo, resolve_config,
                          prepare_autobk, solve_autobk, calc_autobk, autobk,
                          save_autobk_config, read_autobk_config, xftf)
from xafsbkg.errors import (InvalidRbkgError, ParameterError, LengthMismatchError,
                            InsufficientDataError, NonFiniteDataError,
                            SplineKnotError, ConvergenceError, InvalidWindowError,
                            DataError)

from xafs_testutils import synthetic_spectrum, synthetic_chi, E0, RDIST

autobk_module = importlib.import_module('xafsbkg.xafs.autobk')


def make_setup(**kws):
    energy, mu = synthetic_spectrum()
    return prepare_autobk(energy, mu, E0, resolve_config(**kws))

def finite_diff_jacobian(func, coefs, step=1.e-4):
    out = []
    for j in range(len(coefs)):
        dc = np.zeros(len(coefs))
        dc[j] = step
        out.append((func(coefs+dc) - func(coefs-dc))/(2*step))
    return np.array(out).T


def test_resolve_config():
    conf = resolve_config()
    assert conf == AUTOBK_DEFAULTS

    user = AUTOBKConfig(rbkg=1.2, kweight=2)
    conf = resolve_config(user, kmin=1.0, kmax=None)
    assert conf.rbkg == 1.2
    assert conf.kweight == 2
    assert conf.kmin == 1.0
    assert conf.kmax is None
    assert conf.nclamp == 3
    assert conf.window == 'hanning'
    # input is not altered
    assert user.kmin is None
    assert user.nclamp is None

    conf = resolve_config({'rbkg': 0.9, 'nknots': 12})
    assert conf.rbkg == 0.9
    assert conf.nknots == 12


@pytest.mark.parametrize("kws, exc", [
    (dict(rbkg=0), InvalidRbkgError),
    (dict(rbkg=-1.0), InvalidRbkgError),
    (dict(kstep=0), ParameterError),
    (dict(nfft=100.5), ParameterError),
    (dict(nclamp=-1), ParameterError),
    (dict(kmin=5, kmax=2), ParameterError),
    (dict(nknots=0), ParameterError),
    (dict(kweight=1.5), ParameterError),
    (dict(window='square'), InvalidWindowError),
    (dict(k_std=np.arange(10.)), LengthMismatchError),
    (dict(k_std=np.arange(10.), chi_std=np.arange(8.)), LengthMismatchError),
    (dict(rbkgg=1), ParameterError),
    ])
def test_resolve_config_errors(kws, exc):
    with pytest.raises(exc):
        resolve_config(**kws)


def test_config_yaml(tmp_path):
    conf = AUTOBKConfig(rbkg=1.3, kweight=2, window='kaiser', nknots=9)
    fname = str(tmp_path / 'autobk.yaml')
    out = save_autobk_config(fname, conf)
    assert out == fname
    assert read_autobk_config(fname) == resolve_config(conf)

    with pytest.raises(FileNotFoundError):
        read_autobk_config(str(tmp_path / 'missing.yaml'))


def test_residual_length():
    setup = make_setup(nclamp=0)
    model = setup.model
    resid = model.residual(setup.plan.coefs)
    assert len(resid) == 2*setup.plan.irbkg
    assert model.nresid == len(resid)

    setup = make_setup(nclamp=3)
    resid = setup.model.residual(setup.plan.coefs)
    assert len(resid) == 2*setup.plan.irbkg + 6
    assert setup.model.nresid == len(resid)

    # clamp_lo=0 gives zero low-k clamp terms
    irbkg = setup.plan.irbkg
    assert_array_equal(resid[2*irbkg:2*irbkg+3], 0)


def test_jacobian():
    setup = make_setup(nclamp=0)
    model, coefs = setup.model, setup.plan.coefs
    jac = model.jacobian(coefs)
    assert jac.shape == (2*setup.plan.irbkg, setup.plan.nspl)
    assert_allclose(jac, finite_diff_jacobian(model.residual, coefs),
                    rtol=1.e-6, atol=1.e-9)


def test_jacobian_clamps():
    setup = make_setup(nclamp=3, clamp_lo=2, clamp_hi=5)
    model, coefs = setup.model, setup.plan.coefs
    nprim = 2*setup.plan.irbkg
    jac = model.jacobian(coefs)
    assert jac.shape == (nprim + 6, setup.plan.nspl)
    fd = finite_diff_jacobian(model.residual, coefs)
    assert_allclose(jac[:nprim], fd[:nprim], rtol=1.e-6, atol=1.e-9)

    # clamp rows use the clamp scale at coefs, held constant
    scale = model.clamp_scale(model.primary(model.chi(coefs)))
    nout = len(model.kout)
    assert_allclose(jac[nprim:nprim+3], -2*scale*model.basis_out[:3])
    assert_allclose(jac[nprim+3:], -5*scale*model.basis_out[nout-4:nout-1])


def test_model_is_read_only():
    model = make_setup().model
    with pytest.raises(ValueError):
        model.ft_basis[0, 0] = 1.0
    with pytest.raises(ValueError):
        model.mu_out[0] = 1.0


def test_solve_analytic_vs_numeric():
    setup = make_setup()
    model, coefs = setup.model, setup.plan.coefs
    best1, covar1, info1 = solve_autobk(model, coefs, use_jacobian=True)
    best2, covar2, info2 = solve_autobk(model, coefs, use_jacobian=False)
    assert info1.ier in (1, 2, 3, 4)
    assert info2.ier in (1, 2, 3, 4)
    chi1 = model.chi(best1)*model.ftwin
    chi2 = model.chi(best2)*model.ftwin
    assert ((chi1-chi2)**2).mean() < 1.e-4
    # the fit reduces chi(R) below rbkg
    assert (model.residual(best1)**2).sum() < (model.residual(coefs)**2).sum()


def test_solve_convergence_error():
    setup = make_setup()
    with pytest.raises(ConvergenceError) as err:
        solve_autobk(setup.model, setup.plan.coefs, maxfev=1)
    assert err.value.ier == 5


def test_solve_step_bound(monkeypatch):
    calls = []
    scipy_leastsq = autobk_module.leastsq
    def recording_leastsq(*args, **kws):
        calls.append(kws)
        return scipy_leastsq(*args, **kws)
    monkeypatch.setattr(autobk_module, 'leastsq', recording_leastsq)

    setup = make_setup()
    best, covar, info = solve_autobk(setup.model, setup.plan.coefs)
    assert len(calls) == 1
    assert calls[0]['factor'] == 100
    assert info.ier in (1, 2, 3, 4)
    assert info.nfev < 200*(setup.plan.nspl+1)


def test_calc_autobk_recovers_chi():
    energy, mu = synthetic_spectrum()
    result = calc_autobk(energy, mu, edge=EdgeInfo(e0=E0, edge_step=1.0))
    assert result.ek0 == E0
    assert result.edge_step == 1.0
    assert len(result.bkg) == len(energy)
    assert len(result.chie) == len(energy)
    assert len(result.k) == len(result.chi)
    assert_allclose(result.k[1]-result.k[0], 0.05)

    iek0 = result.details.iek0
    assert_array_equal(result.bkg[:iek0], mu[:iek0])
    assert 5 <= result.details.nspl <= 128

    k = result.k
    sel = (k > 3) & (k < 13)
    corr = np.corrcoef(k[sel]*result.chi[sel], k[sel]*synthetic_chi(k[sel]))[0, 1]
    assert corr > 0.95
    chi_ref = synthetic_chi(k)*result.ftwin
    assert ((result.chi*result.ftwin - chi_ref)**2).mean() < 1.e-4

    ftgroup = xftf(result.k, result.chi, kmin=2, kmax=14, dk=1, kweight=2,
                   window='kaiser')
    rpeak = ftgroup.r[np.argmax(ftgroup.chir_mag)]
    assert abs(rpeak - RDIST) < 0.1
    lowr = ftgroup.chir_mag[ftgroup.r < 0.8]
    assert lowr.max() < 0.5*ftgroup.chir_mag.max()


def test_calc_autobk_outputs_read_only():
    energy, mu = synthetic_spectrum()
    result = calc_autobk(energy, mu, edge=EdgeInfo(e0=E0, edge_step=1.0))
    with pytest.raises(ValueError):
        result.chi[0] = 1.0
    with pytest.raises(ValueError):
        result.bkg[0] = 1.0
    for name in ('knots', 'coefs', 'init_coefs', 'spl_k', 'init_bkg', 'init_chi'):
        with pytest.raises(ValueError):
            getattr(result.details, name)[0] = 99.0


def test_calc_autobk_inputs_unchanged():
    energy, mu = synthetic_spectrum()
    energy_in, mu_in = energy.copy(), mu.copy()
    config = AUTOBKConfig(rbkg=1.1)
    calc_autobk(energy, mu, config=config)
    assert_array_equal(energy, energy_in)
    assert_array_equal(mu, mu_in)
    assert config == AUTOBKConfig(rbkg=1.1)


def test_calc_autobk_edge_fallback():
    energy, mu = synthetic_spectrum()
    result = calc_autobk(energy, mu)
    assert abs(result.ek0 - E0) < 5.0
    assert 0.8 < result.edge_step < 1.2

    # only edge_step given: e0 is found
    result = calc_autobk(energy, mu, edge=EdgeInfo(edge_step=1.0))
    assert abs(result.ek0 - E0) < 5.0
    assert result.edge_step == 1.0


def test_calc_autobk_edge_step_scaling():
    energy, mu1 = synthetic_spectrum(edge_step=1.0)
    energy, mu2 = synthetic_spectrum(edge_step=2.5)
    res1 = calc_autobk(energy, mu1, edge=EdgeInfo(e0=E0, edge_step=1.0))
    res2 = calc_autobk(energy, mu2, edge=EdgeInfo(e0=E0, edge_step=2.5))
    assert_allclose(res1.chi, res2.chi, atol=5.e-3)


def test_calc_autobk_uncertainties():
    energy, mu = synthetic_spectrum()
    result = calc_autobk(energy, mu, edge=EdgeInfo(e0=E0, edge_step=1.0),
                         calc_uncertainties=True)
    assert result.delta_chi is not None
    assert len(result.delta_chi) == len(result.k)
    assert len(result.delta_bkg) == len(energy)
    assert np.all(result.delta_chi >= 0)
    assert np.all(np.isfinite(result.delta_bkg))


def test_invalid_rbkg_before_fit(monkeypatch):
    def no_fit(*args, **kws):
        raise AssertionError("least-squares fit should not be run")
    monkeypatch.setattr(autobk_module, 'leastsq', no_fit)

    energy, mu = synthetic_spectrum()
    for rbkg in (0, -0.5):
        with pytest.raises(InvalidRbkgError):
            calc_autobk(energy, mu, config=AUTOBKConfig(rbkg=rbkg))
        with pytest.raises(InvalidRbkgError):
            autobk(energy, mu, rbkg=rbkg)


def test_calc_autobk_bad_data():
    energy, mu = synthetic_spectrum()
    with pytest.raises(LengthMismatchError):
        calc_autobk(energy, mu[:-1])
    with pytest.raises(InsufficientDataError):
        calc_autobk(energy[:4], mu[:4])

    mu_nan = mu.copy()
    mu_nan[100] = np.nan
    with pytest.raises(NonFiniteDataError):
        calc_autobk(energy, mu_nan)

    with pytest.raises(DataError):
        calc_autobk(energy[::-1], mu[::-1], edge=EdgeInfo(e0=E0, edge_step=1.0))
    with pytest.raises(DataError):
        calc_autobk(energy, mu, edge=EdgeInfo(e0=E0, edge_step=np.inf))

    # all of these are also ValueErrors
    with pytest.raises(ValueError):
        calc_autobk(energy, mu[:-1])


def test_calc_autobk_too_many_knots():
    energy, mu = synthetic_spectrum()
    with pytest.raises(SplineKnotError):
        calc_autobk(energy, mu, edge=EdgeInfo(e0=E0, edge_step=1.0),
                    config=AUTOBKConfig(nknots=100))


def test_calc_autobk_chi_std():
    energy, mu = synthetic_spectrum()
    k_std = 0.05*np.arange(330)
    chi_std = synthetic_chi(k_std)
    result = calc_autobk(energy, mu, edge=EdgeInfo(e0=E0, edge_step=1.0),
                         config=AUTOBKConfig(k_std=k_std, chi_std=chi_std))
    k = result.k
    sel = (k > 3) & (k < 13)
    corr = np.corrcoef(k[sel]*result.chi[sel], k[sel]*synthetic_chi(k[sel]))[0, 1]
    assert corr > 0.95


def test_autobk_group():
    energy, mu = synthetic_spectrum()
    grp = Group(energy=energy, mu=mu)
    result = autobk(grp, rbkg=1.0, kweight=2)
    assert grp.chi is result.chi
    assert len(grp.k) == len(grp.chi)
    assert len(grp.bkg) == len(energy)
    assert abs(grp.e0 - E0) < 5.0
    assert abs(grp.ek0 - grp.e0) < 1.e-6
    assert grp.autobk_details.nspl == result.details.nspl
    assert grp.autobk_details.call_args['kweight'] == 2
    assert result.kweight == 2

    grp = Group(energy=energy, mu=mu, e0=E0, edge_step=1.0)
    result = autobk(grp, kw=1, calc_uncertainties=True)
    assert result.ek0 == E0
    assert result.kweight == 1
    assert len(grp.delta_chi) == len(grp.k)

    with pytest.raises(ParameterError):
        autobk(grp, rbkgx=1.0)
