"""
Utility functions and constants used for xafs analysis
"""
import numpy as np
import scipy.constants as consts

from ..group import Group

KTOE = 1.e20*consts.hbar**2 / (2*consts.m_e * consts.e) # 3.8099819442818976
ETOK = 1.0/KTOE

# energy increment used to separate repeated energy values
TINY_ENERGY = 0.005

def etok(energy):
    """convert photo-electron energy to wavenumber"""
    return np.sqrt(energy/KTOE)

def ktoe(k):
    """convert photo-electron wavenumber to energy"""
    return k*k*KTOE

def guess_energy_units(e):
    """guesses the energy units of the input array of energies
    returns one of
        'eV'     energy looks to be in eV
        'keV'    energy looks to be in keV
        'steps'  energy looks to be in angular steps

    The default is 'eV'.
      keV   :  max(e) < 120, smallest step < 0.005
      steps :  max(e) > 200,000
    """
    ework = np.asarray(e).flatten()
    ediff = np.diff(ework)
    emax = max(ework)

    units = 'eV'
    if emax > 200000:
        units = 'steps'
    if emax < 120.0 and (abs(ediff).min() < 0.005):
        units = 'keV'
    return units

def set_xafsGroup(group):
    """return the supplied group, or a new, empty Group if that is None"""
    if group is None:
        group = Group()
    return group
