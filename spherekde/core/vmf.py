"""
Von Mises-Fisher distribution on S²: parameter fitting and random draws.

The maximum-likelihood concentration κ solves A(κ) = R̄, where R̄ is the
mean resultant length of the sample and, for p = 3,

    A(κ) = coth(κ) − 1/κ

Random draws use Wood's (1994) method, which for p = 3 has a closed-form
inverse CDF for the cosine w = μ·x:

    w = 1 + log(u + (1 − u)·e^(−2κ)) / κ,   u ~ U(0, 1)
"""

from dataclasses import dataclass
import logging
from typing import Tuple, Union

import numpy as np
from scipy.optimize import brentq

from spherekde.errors import InvalidInputError
from spherekde.core.geometry.spherical import (
    directions_to_unit_vectors,
    unit_vectors_to_directions,
    to_internal,
    to_public,
    validate_directions,
)

__all__ = [
    "VMFFit",
    "mean_resultant_length",
    "estimate_concentration",
    "fit_vmf",
    "sample_vmf",
    "sample_from_config",
]

logger = logging.getLogger(__name__)

# Beyond this κ the density is numerically a point mass at float64 precision
MAX_CONCENTRATION = 1e10

SeedLike = Union[None, int, np.random.Generator]


@dataclass
class VMFFit:
    """
    Maximum-likelihood fit of a single vMF distribution.

    Attributes:
        mean_direction: Unit mean direction in R³
        mean_lat: Latitude of the mean direction (public convention)
        mean_lon: Longitude of the mean direction (public convention)
        kappa: Concentration parameter
        mean_resultant_length: R̄ of the sample, in [0, 1]
        n_samples: Sample size
    """

    mean_direction: np.ndarray
    mean_lat: float
    mean_lon: float
    kappa: float
    mean_resultant_length: float
    n_samples: int


def _mean_resultant(kappa: float) -> float:
    """A(κ) = coth(κ) − 1/κ, with its series near zero."""
    if kappa < 1e-3:
        return kappa / 3.0 - kappa ** 3 / 45.0
    return 1.0 / np.tanh(kappa) - 1.0 / kappa


def mean_resultant_length(vectors: np.ndarray) -> float:
    """Length of the average of a set of unit vectors."""
    return float(np.linalg.norm(np.asarray(vectors).mean(axis=0)))


def estimate_concentration(vectors: np.ndarray) -> float:
    """
    Maximum-likelihood vMF concentration of a set of unit vectors.

    Args:
        vectors: (N, 3) array of unit vectors

    Returns:
        κ ≥ 0

    Raises:
        InvalidInputError: If all vectors coincide (κ is unbounded)
    """
    r_bar = mean_resultant_length(vectors)

    if r_bar >= 1.0 - 1e-9:
        raise InvalidInputError(
            "Samples are concentrated at a single direction; concentration is unbounded"
        )

    lower = 1e-12
    if r_bar <= _mean_resultant(lower):
        return 0.0

    # A(κ) ≈ 1 − 1/κ for large κ, so this bracket always contains the root
    upper = min(2.0 / (1.0 - r_bar) + 10.0, MAX_CONCENTRATION)
    kappa = brentq(lambda k: _mean_resultant(k) - r_bar, lower, upper, xtol=1e-12)

    logger.debug(f"Estimated concentration kappa={kappa:.6g} (R̄={r_bar:.6f})")
    return float(kappa)


def fit_vmf(directions: np.ndarray, convention: str = "public") -> VMFFit:
    """
    Fit a vMF distribution to (lat, lon) directions.

    Args:
        directions: (N, 2) array of (lat, lon) in degrees
        convention: Coordinate convention of ``directions``

    Returns:
        VMFFit with mean direction (public convention) and κ
    """
    directions = validate_directions(directions, convention, min_samples=2)
    if convention == "public":
        directions = to_internal(directions)

    vectors = directions_to_unit_vectors(directions)
    resultant = vectors.mean(axis=0)
    r_bar = float(np.linalg.norm(resultant))
    kappa = estimate_concentration(vectors)

    mean_direction = resultant / max(r_bar, 1e-300)
    mean_lat, mean_lon = to_public(unit_vectors_to_directions(mean_direction[None, :]))[0]

    return VMFFit(
        mean_direction=mean_direction,
        mean_lat=float(mean_lat),
        mean_lon=float(mean_lon),
        kappa=kappa,
        mean_resultant_length=r_bar,
        n_samples=len(vectors),
    )


def _orthonormal_basis(mu: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Two unit vectors orthogonal to ``mu`` and to each other."""
    helper = np.eye(3)[np.argmin(np.abs(mu))]
    e1 = np.cross(mu, helper)
    e1 /= np.linalg.norm(e1)
    e2 = np.cross(mu, e1)
    return e1, e2


def sample_vmf(
    n: int,
    mean_lat: float = 0.0,
    mean_lon: float = 0.0,
    kappa: float = 10.0,
    seed: SeedLike = None,
) -> np.ndarray:
    """
    Draw directions from a vMF distribution on the sphere.

    Args:
        n: Number of draws (≥ 1)
        mean_lat: Mean latitude, public convention
        mean_lon: Mean longitude, public convention
        kappa: Concentration κ > 0
        seed: Seed or ``numpy.random.Generator``

    Returns:
        (n, 2) array of (lat, lon) in degrees, public convention

    Example:
        >>> pts = sample_vmf(1000, mean_lat=75, mean_lon=175, kappa=10, seed=0)
        >>> pts.shape
        (1000, 2)
    """
    if int(n) != n or n < 1:
        raise InvalidInputError(f"Number of draws must be a positive integer, got {n}")
    if not kappa > 0:
        raise InvalidInputError(f"Concentration must be positive, got {kappa}")

    mean = validate_directions([[mean_lat, mean_lon]], "public")
    mu = directions_to_unit_vectors(to_internal(mean))[0]

    rng = np.random.default_rng(seed)
    u = 1.0 - rng.uniform(size=int(n))  # (0, 1]

    w = 1.0 + np.log(u + (1.0 - u) * np.exp(-2.0 * kappa)) / kappa
    w = np.clip(w, -1.0, 1.0)

    angle = rng.uniform(0.0, 2 * np.pi, size=int(n))
    e1, e2 = _orthonormal_basis(mu)
    tangent = np.outer(np.cos(angle), e1) + np.outer(np.sin(angle), e2)

    vectors = w[:, None] * mu[None, :] + np.sqrt(1.0 - w ** 2)[:, None] * tangent

    return to_public(unit_vectors_to_directions(vectors))


def sample_from_config(config) -> np.ndarray:
    """Draw directions using a :class:`~spherekde.config.SamplingConfig`."""
    return sample_vmf(
        config.n_samples,
        mean_lat=config.mean_lat,
        mean_lon=config.mean_lon,
        kappa=config.kappa,
        seed=config.seed,
    )
