"""
spherekde: Kernel density estimation on the sphere.

This package provides von Mises-Fisher kernel density estimates of
directional (latitude/longitude) data evaluated on regular grids, with
automatic bandwidth selection and tools for sampling, export and plotting.
"""

__version__ = "0.1.0"
__author__ = "spherekde Contributors"

# Lazy imports to avoid heavy imports (scipy, matplotlib) at startup
def __getattr__(name: str):
    """Lazy import module attributes."""
    if name == "geometry":
        from spherekde.core import geometry
        return geometry
    elif name == "density":
        from spherekde.core import density
        return density
    elif name == "SphericalKDEGrid":
        from spherekde.core.density import SphericalKDEGrid
        return SphericalKDEGrid
    elif name == "DensityField":
        from spherekde.core.density import DensityField
        return DensityField
    elif name == "EvaluationGrid":
        from spherekde.core.density import EvaluationGrid
        return EvaluationGrid
    elif name == "estimate_density":
        from spherekde.core.density import estimate_density
        return estimate_density
    elif name == "vmf_density_grid":
        from spherekde.core.density import vmf_density_grid
        return vmf_density_grid
    elif name == "estimate_partitioned":
        from spherekde.core.density import estimate_partitioned
        return estimate_partitioned
    elif name == "sample_vmf":
        from spherekde.core.vmf import sample_vmf
        return sample_vmf
    elif name == "fit_vmf":
        from spherekde.core.vmf import fit_vmf
        return fit_vmf
    elif name == "Config":
        from spherekde.config.schema import Config
        return Config
    elif name == "InvalidInputError":
        from spherekde.errors import InvalidInputError
        return InvalidInputError
    elif name == "NumericalOverflowWarning":
        from spherekde.errors import NumericalOverflowWarning
        return NumericalOverflowWarning
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "__version__",
    "geometry",
    "density",
    "SphericalKDEGrid",
    "DensityField",
    "EvaluationGrid",
    "estimate_density",
    "vmf_density_grid",
    "estimate_partitioned",
    "sample_vmf",
    "fit_vmf",
    "Config",
    "InvalidInputError",
    "NumericalOverflowWarning",
]
