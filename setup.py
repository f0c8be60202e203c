#!/usr/bin/env python3
"""Setup script for pafcluster package.
"""

from setuptools import find_packages, setup

setup(
    name="pafcluster",
    version="0.1.0",
    description="Incremental single-linkage clustering of sequence members from pairwise hits",
    author="pafcluster Team",
    packages=find_packages(include=["pafcluster*"]),
    python_requires=">=3.10",
    install_requires=[
        "pandas>=1.5.0",
        "pyyaml>=6.0",
        "pyarrow>=10.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "hypothesis>=6.0.0",
            "black>=23.0.0",
            "ruff>=0.1.0",
            "mypy>=1.5.0",
            "pandas-stubs>=2.0.0",
            "types-PyYAML>=6.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pafcluster=pafcluster.cli:main",
        ],
    },
)
