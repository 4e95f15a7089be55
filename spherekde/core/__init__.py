"""
Core modules for spherekde.

This package provides the numerical foundations for kernel density
estimation on the sphere.

Subpackages:
    geometry: Coordinate conventions, embeddings and rotations
    density: vMF kernel density grids and bandwidth selection
    vmf: vMF parameter fitting and random draws
"""

from spherekde.core import geometry
from spherekde.core import density
from spherekde.core import vmf

__all__ = ["geometry", "density", "vmf"]
