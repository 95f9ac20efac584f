"""
Setup script for muon_tomo package.

Installation:
    pip install -e .
    pip install -e .[dev]
"""

from setuptools import setup, find_packages

setup(
    name="muon_tomo",
    version="0.1.0",
    description="Muon tomography detector simulation with a Geant4-style harness",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "scipy>=1.10",
        "matplotlib>=3.7",
        "numba>=0.58",
        "pyyaml>=6.0",
        "tqdm>=4.65",
    ],
    extras_require={
        "dev": ["pytest>=7.3"],
    },
    entry_points={
        "console_scripts": [
            "muon-tomo=muon_tomo.run.cli:main",
        ],
    },
)
