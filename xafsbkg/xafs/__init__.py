__DOC__ = '''
XAFS background removal functions

function          description
------------      ------------------------------
pre_edge          pre-edge subtraction, normalization
autobk            XAFS background subtraction (mu(E) to chi(k))
calc_autobk       autobk for arrays, returning a BackgroundResult
calc_background   background removal by method name
xftf              forward XAFS Fourier transform (k -> R)
xftr              backward XAFS Fourier transform, Filter (R -> q)
ftwindow          create XAFS Fourier transform window
XASSpectrum       Group for one spectrum of energy, mu(E)
BatchRunner       background removal for many spectra, in parallel
'''

from .xafsutils import (KTOE, ETOK, TINY_ENERGY, set_xafsGroup, etok, ktoe,
                        guess_energy_units)
from .xafsft import (xftf, xftr, xftf_fast, xftr_fast, ftwindow, xftf_prep,
                     window_name, VALID_WINDOWS)
from .pre_edge import (EdgeInfo, NormRanges, Normalization, pre_edge, preedge,
                       norm_ranges, find_e0, find_energy_step)
from .kgrid import KGrid, build_kgrid
from .knots import KnotPlan, plan_knots
from .autobk import (AUTOBKConfig, AUTOBK_DEFAULTS, AutobkSetup,
                     BackgroundResult, AutobkModel, resolve_config,
                     save_autobk_config, read_autobk_config, prepare_autobk,
                     solve_autobk, autobk_delta_chi, calc_autobk, autobk)
from .background import calc_background, BKG_METHODS
from .spectrum import XASSpectrum, FT_DEFAULTS
from .batch import BatchRunner, BatchResult, process_spectrum
