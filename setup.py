#!/usr/bin/env python
"""
Setup.py for xafsbkg
"""
import os
from setuptools import setup, find_packages

__version__ = None
with open(os.path.join('xafsbkg', 'version.py'), 'r') as version_file:
    for line in version_file.readlines():
        line = line[:-1]
        if line.startswith('__version__'):
            key, vers = [w.strip() for w in line.split('=')]
            __version__ = vers.replace("'",  "").replace('"',  "").strip()

## Dependencies: required modules
install_reqs = []
with open('requirements.txt', 'r') as f:
    for line in f.read().splitlines():
        if len(line.strip()) > 0 and not line.startswith('#'):
            install_reqs.append(line)

packages = ['xafsbkg']
for pname in find_packages('xafsbkg'):
    packages.append('xafsbkg.%s' % pname)

setup(name = 'xafsbkg',
      version = __version__,
      author = 'the xafsbkg developers',
      license = 'BSD',
      description = 'XAFS background removal with the AUTOBK algorithm',
      python_requires='>=3.9',
      packages = packages,
      install_requires=install_reqs,
      extras_require={'test': ['pytest']},
      zip_safe=False,
      platforms = ['Windows', 'Linux', 'Mac OS X'],
      classifiers=['Intended Audience :: Science/Research',
                   'Operating System :: OS Independent',
                   'Programming Language :: Python',
                   'License :: OSI Approved :: BSD License',
                   'Topic :: Scientific/Engineering'],
      )
