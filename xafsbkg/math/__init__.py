__DOC__ = """Mathematical functions for xafsbkg"""

from .utils import (polyfit, realimag, complex_phase, interp_within,
                    remove_dups, remove_nans2, index_of, index_nearest, smooth)

from .spline import spline_eval, bspline_basis
