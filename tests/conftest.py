"""Shared fixtures for the spherekde test suite."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from spherekde.core.geometry import to_internal
from spherekde.core.vmf import sample_vmf


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def equator_samples():
    """1000 public-convention draws around (0, 0) with kappa 10."""
    return sample_vmf(1000, mean_lat=0.0, mean_lon=0.0, kappa=10.0, seed=1)


@pytest.fixture
def seam_samples():
    """1000 public-convention draws around (75, 175) with kappa 10."""
    return sample_vmf(1000, mean_lat=75.0, mean_lon=175.0, kappa=10.0, seed=2)


@pytest.fixture
def small_internal_samples():
    """A small internal-convention sample set for quick estimator runs."""
    return to_internal(sample_vmf(120, mean_lat=20.0, mean_lon=-40.0, kappa=8.0, seed=3))
