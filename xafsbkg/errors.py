#!/usr/bin/env python
"""
Exceptions raised by XAFS background extraction and Fourier transforms
"""

class XAFSError(Exception):
    """Base Exception for xafsbkg"""
    def __init__(self, msg):
        Exception.__init__(self, msg)
        self.msg = msg

    def __str__(self):
        return "%s" % (self.msg)

class ParameterError(XAFSError, ValueError):
    """invalid value for a processing parameter"""

## data errors
class DataError(XAFSError, ValueError):
    """invalid or unusable input data"""

class InsufficientDataError(DataError):
    """too few data points for the requested operation"""

class LengthMismatchError(DataError):
    """arrays that must match in length do not"""

class NonFiniteDataError(DataError):
    """data contains NaN or Inf values"""

class MissingDataError(DataError):
    """a required value (e0, edge_step, ...) is absent and cannot be derived"""

class NormalizationError(XAFSError):
    """pre-edge subtraction or normalization failed"""

## background errors
class BackgroundError(XAFSError):
    """background extraction failed"""

class InvalidRbkgError(BackgroundError, ParameterError):
    """rbkg must be positive"""

class SplineKnotError(BackgroundError):
    """spline knots cannot be placed over the k range"""

class ConvergenceError(BackgroundError):
    """least-squares fit did not converge within the allowed number of evaluations"""
    def __init__(self, msg, nfev=None, ier=None, message=None):
        BackgroundError.__init__(self, msg)
        self.nfev = nfev
        self.ier = ier
        self.message = message

class MethodNotImplementedError(BackgroundError, NotImplementedError):
    """background method is recognized but not implemented"""

## Fourier transform errors
class FFTError(XAFSError):
    """Fourier transform failed"""

class InsufficientPointsError(FFTError):
    """too few points for the requested k range"""

class FFTSizeError(FFTError):
    """array size does not fit the FFT length"""

class InvalidWindowError(FFTError, ParameterError):
    """unknown Fourier transform window"""

## math errors
class MathError(XAFSError):
    """numerical helper failed"""

class InterpolationRangeError(MathError, DataError):
    """interpolation requested outside of the data range"""

class IndexOutOfBoundsError(MathError, IndexError):
    """array index out of bounds"""
