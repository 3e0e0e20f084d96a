import numpy as np
from numpy.testing import assert_allclose, assert_array_equal
import pytest

from xafsbkg import Group
from xafsbkg.xafs import (find_e0, find_energy_step, preedge, pre_edge,
                          norm_ranges, guess_energy_units, EdgeInfo,
                          Normalization, NormRanges)
from xafsbkg.errors import InsufficientDataError, LengthMismatchError

from xafs_testutils import synthetic_spectrum, E0


def test_find_e0():
    energy, mu = synthetic_spectrum()
    e0 = find_e0(energy, mu)
    assert abs(e0 - E0) < 3.0

    grp = Group(energy=energy, mu=mu)
    find_e0(grp)
    assert abs(grp.e0 - e0) < 1.e-6

    with pytest.raises(InsufficientDataError):
        find_e0(energy[:8], mu[:8])


def test_preedge():
    energy, mu = synthetic_spectrum(edge_step=2.0)
    dat = preedge(energy, mu)
    assert isinstance(dat, Normalization)
    assert isinstance(dat.edge, EdgeInfo)
    assert abs(dat.edge.e0 - E0) < 3.0
    assert 1.6 < dat.edge.edge_step < 2.4
    assert len(dat.norm) == len(energy)
    assert len(dat.flat) == len(energy)
    assert len(dat.pre_edge) == len(energy)
    assert len(dat.pre_coefs) == 2
    assert len(dat.norm_coefs) == dat.ranges.nnorm + 1
    # pre-edge line follows the data below the edge
    below = (energy > E0 - 190) & (energy < E0 - 100)
    assert_allclose(dat.pre_edge[below], mu[below], atol=5.e-3)

    dat = preedge(energy, mu, e0=E0, step=1.5)
    assert dat.edge == EdgeInfo(e0=E0, edge_step=1.5)

    with pytest.raises(InsufficientDataError):
        preedge(energy[:1], mu[:1])
    with pytest.raises(LengthMismatchError):
        preedge(energy, mu[:-1])


def test_preedge_flat():
    energy, mu = synthetic_spectrum()
    dat = preedge(energy, mu, e0=E0)
    ie0 = np.argmin(abs(energy - E0))
    assert_array_equal(dat.flat[:ie0], dat.norm[:ie0])
    above = (energy > E0 + 100) & (energy < E0 + 800)
    assert abs(dat.flat[above].mean() - 1.0) < 0.05
    # flattening removes the post-edge slope that norm still has
    slope_norm = np.polyfit(energy[above], dat.norm[above], 1)[0]
    slope_flat = np.polyfit(energy[above], dat.flat[above], 1)[0]
    assert abs(slope_flat) < 0.25*abs(slope_norm)


def test_preedge_unsorted_input():
    energy, mu = synthetic_spectrum()
    ref = preedge(energy, mu)
    dat = preedge(energy[::-1], mu[::-1])
    assert_allclose(dat.edge, ref.edge, rtol=1.e-12)
    assert_array_equal(dat.energy, energy)

    mu_nan = mu.copy()
    mu_nan[5] = np.nan
    dat = preedge(energy, mu_nan, e0=E0)
    assert len(dat.energy) == len(energy) - 1
    assert np.all(np.isfinite(dat.norm))


def test_norm_ranges():
    energy, mu = synthetic_spectrum()
    ranges = norm_ranges(energy, E0)
    assert isinstance(ranges, NormRanges)
    assert ranges.pre1 == -195.0
    assert ranges.pre2 == -97.5
    assert ranges.norm2 == min(5*round((energy[-1]-E0)/5), energy[-1]-E0)
    assert ranges.norm1 == 25
    assert ranges.nnorm == 2
    assert ranges.nvict == 0

    # swapped ranges, and a short post-edge range
    ranges = norm_ranges(energy, E0, pre1=-50, pre2=-150, norm1=60, norm2=40,
                         nnorm=9)
    assert (ranges.pre1, ranges.pre2) == (-150, -50)
    assert ranges.norm2 == 60
    assert ranges.norm1 == 40
    assert ranges.nnorm == 5
    assert norm_ranges(energy, E0, norm1=40, norm2=60).nnorm == 0


def test_pre_edge_group():
    energy, mu = synthetic_spectrum()
    grp = Group(energy=energy, mu=mu)
    out = pre_edge(grp, nnorm=1)
    assert out is grp
    for attr in ('e0', 'edge_step', 'norm', 'flat', 'pre_edge', 'post_edge',
                 'pre_edge_details'):
        assert hasattr(grp, attr)
    assert abs(grp.e0 - E0) < 3.0
    assert grp.pre_edge_details.nnorm == 1
    assert len(grp.pre_edge_details.norm_coefs) == 2
    assert grp.pre_edge_details.call_args['nnorm'] == 1

    # an e0 held by the group is used
    grp = Group(energy=energy, mu=mu, e0=E0+2.0)
    pre_edge(grp)
    assert grp.e0 == E0+2.0


def test_energy_units():
    energy, mu = synthetic_spectrum()
    assert guess_energy_units(energy) == 'eV'
    ekev = np.linspace(8.8, 9.9, 500)
    assert guess_energy_units(ekev) == 'keV'


def test_find_energy_step():
    energy = np.linspace(8800, 9500, 1401)
    assert_allclose(find_energy_step(energy), 0.5, rtol=1.e-9)
    shuffled = energy.copy()
    shuffled[100], shuffled[101] = shuffled[101], shuffled[100]
    assert_allclose(find_energy_step(shuffled), 0.5, rtol=1.e-9)
