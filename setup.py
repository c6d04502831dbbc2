# -*- coding: utf-8 -*-
#
# Copyright (C) 2014-2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

import os
import sys
from os.path import join
from setuptools import setup, find_packages

setup_dir = os.path.dirname(os.path.abspath(__file__))
version = {}
with open(join(setup_dir, 'aiosofa', 'version.py')) as fobj:
    exec(fobj.read(), version)

install_requires = [
    'aiohttp>=3.8',
    'multidict>=4.5',
]

if sys.version_info < (3, 8):
    raise RuntimeError('aiosofa requires Python 3.8+')

with open(join(setup_dir, 'README.rst')) as fobj:
    long_description = fobj.read().strip()


setup(
    name='aiosofa',
    version=version['__version__'],
    license='BSD',

    description='Asynchronous CouchDB client built on top of aiohttp'
                ' (asyncio)',
    long_description=long_description,

    author='Alexander Shorin',
    author_email='kxepal@gmail.com',

    classifiers=[
        'Development Status :: 4 - Beta',
        'Framework :: AsyncIO',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: Database :: Front-Ends',
        'Topic :: Software Development :: Libraries :: Python Modules'
    ],

    packages=find_packages(),
    python_requires='>=3.8',
    zip_safe=False,

    install_requires=install_requires,
    extras_require={
        'tests': ['pytest>=6.0', 'yarl>=1.6']
    }
)
