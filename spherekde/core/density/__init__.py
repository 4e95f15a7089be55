"""
Kernel density estimation on spherical manifolds.

This module implements von Mises-Fisher kernel density estimation on
latitude/longitude grids, with likelihood cross-validation and
rule-of-thumb bandwidth selection.
"""

from spherekde.core.density.kernels import (
    VonMisesFisherKernel,
    log_normalizer,
)
from spherekde.core.density.bandwidth import (
    BandwidthMode,
    LikelihoodCVBandwidthSelector,
    RuleOfThumbBandwidth,
    select_bandwidth,
)
from spherekde.core.density.estimator import (
    EvaluationGrid,
    DensityField,
    SphericalKDEGrid,
    estimate_density,
    vmf_density_grid,
)
from spherekde.core.density.partition import (
    CombineMethod,
    partition_samples,
    combine_fields,
    estimate_partitioned,
)

__all__ = [
    # Kernel
    "VonMisesFisherKernel",
    "log_normalizer",
    # Bandwidth selection
    "BandwidthMode",
    "LikelihoodCVBandwidthSelector",
    "RuleOfThumbBandwidth",
    "select_bandwidth",
    # Estimator
    "EvaluationGrid",
    "DensityField",
    "SphericalKDEGrid",
    "estimate_density",
    "vmf_density_grid",
    # Partition-and-combine
    "CombineMethod",
    "partition_samples",
    "combine_fields",
    "estimate_partitioned",
]
