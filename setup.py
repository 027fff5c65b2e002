#!/usr/bin/env python
# encoding: utf-8

from setuptools import setup

setup(
    name='pglsclusters',
    version='1.0',
    description="Show information about PostgreSQL clusters installed on the host",
    long_description="Show information about PostgreSQL clusters installed on the host",
    license="PostgreSQL",
    platforms=["Linux", "BSD", "MacOS"],
    zip_safe=False,
    python_requires='>=3.10',
    packages=['pglsclusters'],
    package_dir={'pglsclusters': 'src'},
    install_requires=[
        'PyYAML',
    ],
    extras_require={
        'test': [
            'behave',
            'parse_type',
            'PyYAML',
        ],
    },
    entry_points={
        'console_scripts': [
            'pglsclusters = pglsclusters.cli:entry',
        ]
    },
)
