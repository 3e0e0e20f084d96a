import logging
import numpy as np
import pytest

from xafsbkg.utils import level_value, format_exception
from xafsbkg.xafs import calc_autobk, EdgeInfo, BatchRunner

from xafs_testutils import synthetic_spectrum, E0


def test_level_value():
    assert level_value('debug') == logging.DEBUG
    assert level_value('WARNING') == logging.WARNING
    assert level_value(logging.ERROR) == logging.ERROR
    with pytest.raises(ValueError):
        level_value('loud')


def test_format_exception():
    try:
        raise ValueError('bad value')
    except ValueError:
        out = format_exception()
        short = format_exception(with_traceback=False)
    assert out[0].startswith('Traceback')
    assert out[-1] == 'ValueError: bad value'
    assert short == ['ValueError: bad value']


def test_autobk_debug_log(caplog):
    energy, mu = synthetic_spectrum()
    with caplog.at_level(logging.DEBUG, logger='xafsbkg'):
        calc_autobk(energy, mu, edge=EdgeInfo(e0=E0, edge_step=1.0))
    names = [rec.name for rec in caplog.records]
    assert 'xafsbkg.xafs.autobk' in names
    assert 'xafsbkg.xafs.knots' in names


def test_batch_error_log(caplog):
    energy, mu = synthetic_spectrum()
    bad_mu = mu.copy()
    bad_mu[10] = np.inf
    runner = BatchRunner(nworkers=0)
    with caplog.at_level(logging.DEBUG, logger='xafsbkg'):
        results = runner.run([(energy, mu), (energy, bad_mu)])
    assert results[1].error.startswith('NonFiniteDataError')
    errors = [rec for rec in caplog.records if rec.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].name == 'xafsbkg.xafs.batch'
    assert 'spectrum_1' in errors[0].getMessage()
    tracebacks = [rec for rec in caplog.records
                  if rec.levelno == logging.DEBUG and 'Traceback' in rec.getMessage()]
    assert len(tracebacks) == 1
