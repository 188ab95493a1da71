#!/usr/bin/env python
# -*- encoding: utf-8 -*-

from setuptools import find_packages
from setuptools import setup


desc = ('spdx-expression is a small library to parse, validate and evaluate '
        'SPDX license expressions, check them against a list of accepted '
        'licenses and simplify them using boolean logic.')

setup(
    name='spdx-expression',
    version='0.1.0',
    license='apache-2.0',
    description=desc,
    long_description=desc,
    author='nexB Inc.',
    author_email='info@nexb.com',
    packages=find_packages('src'),
    package_dir={'': 'src'},
    include_package_data=True,
    zip_safe=False,
    python_requires='>=3.8',
    classifiers=[
        'Development Status :: 4 - Beta',
        'License :: OSI Approved :: Apache Software License',
        'Intended Audience :: Developers',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: Software Development :: Libraries',
        'Topic :: Utilities',
    ],
    keywords=[
        'license', 'spdx', 'license expression', 'open source', 'boolean',
        'parse expression', 'validate expression', 'licensee',
        'licence'
    ],
    install_requires=[
        'boolean.py',
    ],
    extras_require={
        'testing': [
            'pytest',
        ],
    },
)
