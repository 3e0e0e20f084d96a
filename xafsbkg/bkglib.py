#!/usr/bin/env python
"""
Call conventions shared by the xafsbkg functions, and
YAML configuration files
"""
import os
import inspect
import logging
from functools import wraps
from pathlib import Path

import yaml

from .group import Group, isgroup
from .errors import MissingDataError

logger = logging.getLogger(__name__)

user_configdir = Path(os.environ.get('XAFSBKG_DIR',
                                     Path(Path.home(), '.xafsbkg'))).absolute()


def _config_path(conffile):
    path = Path(conffile)
    if not path.is_absolute():
        path = Path(user_configdir, path)
    return path

def read_config(conffile):
    """read a YAML configuration file, relative to the user xafsbkg
    directory unless an absolute path is given.

    returns the configuration dictionary, or None if there is no such file
    """
    path = _config_path(conffile)
    if not path.exists():
        return None
    with open(path, 'r') as fh:
        return yaml.safe_load(fh)

def save_config(conffile, config):
    """write a configuration dictionary to a YAML file, as read by
    read_config().  returns the full path of the file written
    """
    path = _config_path(conffile)
    path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
    with open(path, 'w') as fh:
        yaml.safe_dump(config, fh, default_flow_style=None)
    logger.debug("wrote configuration file %s", path)
    return path.as_posix()


def parse_group_args(arg0, members=None, group=None, defaults=None,
                     fcn_name=None, check_outputs=True):
    """arguments for a function following the First Argument Group convention

    If arg0 is a Group with all the named members, their values are used,
    and arg0 becomes the output group unless group is given.  Otherwise
    the values are arg0 followed by defaults.  So

        autobk(spectrum)

    is the same as

        autobk(spectrum.energy, spectrum.mu, group=spectrum)

    Returns a list of the member values followed by the output group
    (which may be None).  With check_outputs, a missing (None) value
    raises MissingDataError.
    """
    members = tuple(members or ())
    if isgroup(arg0, *members):
        if group is None:
            group = arg0
        values = [getattr(arg0, name) for name in members]
    else:
        values = [arg0] + list(defaults or ())

    if check_outputs:
        missing = [name for name, val in zip(members, values) if val is None]
        if len(missing) > 0:
            raise MissingDataError("%s: needs a Group with members %s, or values for %s"
                                   % (fcn_name or 'function', ', '.join(members),
                                      ', '.join(missing)))
    return values + [group]


def Make_CallArgs(skipped_args):
    """decorator recording the arguments of each call in
    group.<function name>_details.call_args

    The data arguments named in skipped_args and 'group' are not
    recorded.  The output group is the 'group' argument, or else the
    first argument when that is a Group holding the data arguments.
    """
    def wrap(fcn):
        sig = inspect.signature(fcn)
        varkws = [p.name for p in sig.parameters.values()
                  if p.kind == inspect.Parameter.VAR_KEYWORD]

        @wraps(fcn)
        def wrapper(*args, **kwargs):
            result = fcn(*args, **kwargs)
            bound = sig.bind(*args, **kwargs)
            bound.apply_defaults()
            call_args = dict(bound.arguments)
            for name in varkws:
                call_args.update(call_args.pop(name))

            group = call_args.get('group', None)
            arg0 = call_args.get(skipped_args[0], None)
            if group is None and isgroup(arg0, *skipped_args):
                group = arg0
            for name in list(skipped_args) + ['group']:
                call_args.pop(name, None)

            if group is not None:
                details_name = '%s_details' % fcn.__name__
                if getattr(group, details_name, None) is None:
                    setattr(group, details_name, Group())
                getattr(group, details_name).call_args = call_args
            return result
        return wrapper
    return wrap
