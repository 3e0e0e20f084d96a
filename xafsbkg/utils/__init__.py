#!/usr/bin/env python
import sys
from traceback import format_tb

from .logutils import logging_basicConfig, level_value, LOG_FORMAT


def format_exception(with_traceback=True):
    """the exception being handled, as a list of lines,
    optionally starting with its traceback
    """
    etype, exc, tb = sys.exc_info()
    out = []
    if with_traceback:
        out.append("Traceback (most recent calls last):")
        out.extend(line.rstrip('\n') for line in format_tb(tb))
    out.append(f"{etype.__name__}: {exc}")
    return out
