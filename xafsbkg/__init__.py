#!/usr/bin/env python

"""
  xafsbkg: XAFS background removal with the AUTOBK algorithm
"""
import sys
import logging

logger = logging.getLogger('xafsbkg')
logger.addHandler(logging.NullHandler())

if (sys.version_info.major < 3 or sys.version_info.minor < 9):
    raise EnvironmentError('xafsbkg requires python 3.9 or higher')

from .version import __date__, __version__
from .group import Group, isgroup
from .bkglib import Make_CallArgs, parse_group_args, read_config, save_config
from . import errors
from . import utils
from .xafs import (autobk, calc_autobk, calc_background, pre_edge, xftf,
                   xftr, ftwindow, AUTOBKConfig, EdgeInfo, BackgroundResult,
                   XASSpectrum, BatchRunner, BatchResult)
