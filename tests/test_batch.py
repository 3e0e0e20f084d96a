import numpy as np
from numpy.testing import assert_allclose
import pytest

from xafsbkg import XASSpectrum, Group
from xafsbkg.xafs import BatchRunner, BatchResult, AUTOBKConfig, process_spectrum
from xafsbkg.xafs.batch import spectrum_item
from xafsbkg.errors import ParameterError, InvalidRbkgError, IndexOutOfBoundsError

from xafs_testutils import synthetic_spectrum, E0


def make_spectra(nspec=10):
    energy, mu = synthetic_spectrum()
    return [XASSpectrum(energy, mu*(1+0.05*i), name='s%d' % i, e0=E0,
                        edge_step=1+0.05*i) for i in range(nspec)]


def test_batch_sequential_vs_parallel():
    spectra = make_spectra(10)
    runner = BatchRunner(nworkers=2)
    seq = runner.run_sequential(spectra)
    par = runner.run_parallel(spectra)
    assert len(seq) == len(par) == 10
    for i, (rseq, rpar) in enumerate(zip(seq, par)):
        assert isinstance(rpar, BatchResult)
        assert rseq.index == rpar.index == i
        assert rseq.name == rpar.name == 's%d' % i
        assert rseq.error is None and rpar.error is None
        assert_allclose(rseq.result.chi, rpar.result.chi, rtol=0, atol=1.e-12)
        assert_allclose(rseq.xftf.chir_mag, rpar.xftf.chir_mag, rtol=0, atol=1.e-12)


def test_batch_failure_is_isolated():
    spectra = make_spectra(4)
    energy, mu = synthetic_spectrum()
    bad_mu = mu.copy()
    bad_mu[50] = np.nan
    spectra[2] = XASSpectrum(energy, bad_mu, name='bad', e0=E0, edge_step=1.0)
    runner = BatchRunner(nworkers=2)
    for results in (runner.run(spectra, parallel=False), runner.run(spectra)):
        assert [r.index for r in results] == [0, 1, 2, 3]
        assert results[2].result is None
        assert results[2].name == 'bad'
        assert results[2].error.startswith('NonFiniteDataError')
        for i in (0, 1, 3):
            assert results[i].error is None
            assert results[i].result is not None


def test_batch_inputs():
    energy, mu = synthetic_spectrum()
    runner = BatchRunner(nworkers=0, xftf_kws=dict(kweight=1, window='hanning'))
    results = runner.run([(energy, mu), Group(energy=energy, mu=mu), Group(mu=mu)])
    assert results[0].name == 'spectrum_0'
    assert results[0].error is None
    assert results[1].error is None
    assert_allclose(results[0].result.chi, results[1].result.chi)
    assert results[2].error.startswith('MissingDataError')


def test_batch_apply():
    spectra = make_spectra(3)
    runner = BatchRunner(nworkers=0)
    results = runner.run(spectra)
    assert runner.apply(spectra, results) == 3
    for spec, res in zip(spectra, results):
        assert spec.chi is res.result.chi
        assert len(spec.chir_mag) == len(spec.r)

    bad = results[0]._replace(index=7)
    with pytest.raises(IndexOutOfBoundsError):
        runner.apply(spectra, [bad])


def test_batch_options():
    runner = BatchRunner()
    assert runner.nworkers >= 1
    assert runner.run([]) == []
    with pytest.raises(ParameterError):
        BatchRunner(method='spline')
    with pytest.raises(InvalidRbkgError):
        BatchRunner(config=AUTOBKConfig(rbkg=-1))
    with pytest.raises(ParameterError):
        BatchRunner(nworkers=-2)


def test_process_spectrum():
    energy, mu = synthetic_spectrum()
    item = spectrum_item(3, XASSpectrum(energy, mu, name='one', e0=E0, edge_step=1.0))
    res = process_spectrum(item, xftf_kws=dict(kweight=1))
    assert res.index == 3 and res.name == 'one'
    assert res.error is None
    assert len(res.xftf.chir_mag) == len(res.xftf.r)

    res = process_spectrum(item, method='none')
    assert res.error is None
    assert res.result is None and res.xftf is None

    res = process_spectrum(item, method='ilpbkg')
    assert res.result is None
    assert res.error.startswith('MethodNotImplementedError')
