#!/usr/bin/env python
"""Version information"""

__version__ = '0.3.0'
__date__    = '2026-October-18'
__authors__ = "the xafsbkg developers"
