#!/usr/bin/env python
"""
Logging setup for applications and worker processes using xafsbkg
"""
import logging

LOG_FORMAT = "[%(asctime)s | %(processName)s | %(name)s | %(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def level_value(level):
    """logging level as an integer, from a name such as 'debug' or an integer"""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError("unknown logging level '%s'" % level)
    return value


def logging_basicConfig(level="INFO", stream=None):
    """configure the root logger, if it has no handlers yet,
    with a format that names the process of each message
    """
    logging.basicConfig(level=level_value(level), format=LOG_FORMAT,
                        datefmt=LOG_DATEFMT, stream=stream)
