#!/usr/bin/env python
"""
Group: attribute container for spectra, transforms and fit details
"""
import copy
import numpy
from lmfit.printfuncs import gformat


def repr_value(val):
    """short text for a member value, summarizing long arrays and lists"""
    if isinstance(val, numpy.ndarray) and (val.ndim > 1 or len(val) > 6):
        vals = numpy.abs(val) if numpy.iscomplexobj(val) else val
        return (f"array{val.shape} {val.dtype}, "
                f"[{gformat(vals.min())} : {gformat(vals.max())}]")
    if isinstance(val, (list, tuple)) and len(val) > 6:
        return f"{type(val).__name__} of {len(val)}: [{val[0]}, {val[1]}, ..., {val[-1]}]"
    return repr(val)


class Group():
    """
    Container of named values: arrays, scalars, configuration
    records and sub-groups, set and read as attributes.

    Members with names starting with '_' are private, and are not
    listed by keys(), values() or items().
    """
    def __init__(self, name=None, **kws):
        self.__name__ = hex(id(self)) if name is None else name
        for key, val in kws.items():
            setattr(self, key, val)

    def __repr__(self):
        return f'<Group {self.__name__}>'

    def __deepcopy__(self, memo):
        out = self.__class__.__new__(self.__class__)
        memo[id(self)] = out
        for key, val in self.__dict__.items():
            setattr(out, key, copy.deepcopy(val, memo))
        out.__name__ = hex(id(out))
        return out

    def keys(self):
        return [key for key in self.__dict__ if not key.startswith('_')]

    def values(self):
        return [getattr(self, key) for key in self.keys()]

    def items(self):
        return [(key, getattr(self, key)) for key in self.keys()]

    def __len__(self):
        return len(self.keys())

    def __iter__(self):
        return iter(self.keys())

    def __getitem__(self, key):
        if not isinstance(key, str):
            raise IndexError("Group members are accessed by name, not %r" % (key,))
        return getattr(self, key)

    def __setitem__(self, key, value):
        if not isinstance(key, str):
            raise IndexError("Group members are accessed by name, not %r" % (key,))
        setattr(self, key, value)

    def _repr_html_(self):
        """table of members, for Jupyter"""
        rows = [f"<tr><td>{key}</td><td><i>{type(val).__name__}</i></td>"
                f"<td>{repr_value(val)}</td></tr>" for key, val in self.items()]
        return '\n'.join([f"Group {self.__name__}", "<table>",
                          "<tr><td><b>Attribute</b></td><td><b>Type</b></td>"
                          "<td><b>Value</b></td></tr>"] + rows + ["</table>"])


def isgroup(grp, *args):
    """whether grp is a Group, and has members named by all args"""
    return isinstance(grp, Group) and all(hasattr(grp, a) for a in args)
