"""
Spherical geometry utilities for kernel density estimation on S².

Directions are handled as (latitude, longitude) pairs in degrees in one of
two conventions:

- ``public``: latitude in [-90, 90], longitude in [-180, 180]
- ``internal``: latitude in [0, 180], longitude in [0, 360]

The internal convention is the public one shifted by a fixed +90° / +180°
offset. All density computations run in the internal convention; the
embedding into R³ is

    x = (sin(lat)·cos(lon), sin(lat)·sin(lon), cos(lat))
"""

from typing import Tuple, Union
import numpy as np

from spherekde.errors import InvalidInputError

__all__ = [
    "LAT_OFFSET",
    "LON_OFFSET",
    "INTERNAL_LAT_RANGE",
    "INTERNAL_LON_RANGE",
    "PUBLIC_LAT_RANGE",
    "PUBLIC_LON_RANGE",
    "to_internal",
    "to_public",
    "validate_directions",
    "spherical_to_cartesian",
    "cartesian_to_spherical",
    "directions_to_unit_vectors",
    "unit_vectors_to_directions",
    "great_circle_distance",
    "rotation_matrix",
    "rotate_directions",
]

LAT_OFFSET = 90.0
LON_OFFSET = 180.0

INTERNAL_LAT_RANGE = (0.0, 180.0)
INTERNAL_LON_RANGE = (0.0, 360.0)
PUBLIC_LAT_RANGE = (-90.0, 90.0)
PUBLIC_LON_RANGE = (-180.0, 180.0)

_CONVENTIONS = ("internal", "public")

ArrayLike = Union[float, np.ndarray]


def to_internal(directions: np.ndarray) -> np.ndarray:
    """
    Shift public (lat, lon) pairs into the internal convention.

    Args:
        directions: (N, 2) array of (lat, lon) in degrees, public convention

    Returns:
        New (N, 2) array with lat + 90 and lon + 180
    """
    directions = np.asarray(directions, dtype=float)
    return directions + np.array([LAT_OFFSET, LON_OFFSET])


def to_public(directions: np.ndarray) -> np.ndarray:
    """Inverse of :func:`to_internal`."""
    directions = np.asarray(directions, dtype=float)
    return directions - np.array([LAT_OFFSET, LON_OFFSET])


def validate_directions(
    directions: np.ndarray,
    convention: str = "internal",
    min_samples: int = 1,
) -> np.ndarray:
    """
    Check that an array holds valid (lat, lon) directions.

    Args:
        directions: Array-like of shape (N, 2) in degrees
        convention: "internal" or "public"
        min_samples: Minimum number of rows required

    Returns:
        The directions as a float array of shape (N, 2)

    Raises:
        InvalidInputError: On wrong shape, too few rows, non-finite values
            or coordinates outside the convention's domain
    """
    if convention not in _CONVENTIONS:
        raise InvalidInputError(
            f"Unknown coordinate convention {convention!r}, expected one of {_CONVENTIONS}"
        )

    try:
        directions = np.asarray(directions, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Directions must be numeric: {e}") from e

    if directions.ndim != 2 or directions.shape[1] != 2:
        raise InvalidInputError(
            f"Directions must have shape (N, 2), got {directions.shape}"
        )

    if len(directions) < min_samples:
        raise InvalidInputError(
            f"At least {min_samples} directions are required, got {len(directions)}"
        )

    if not np.all(np.isfinite(directions)):
        raise InvalidInputError("Directions contain NaN or infinite values")

    if convention == "internal":
        lat_range, lon_range = INTERNAL_LAT_RANGE, INTERNAL_LON_RANGE
    else:
        lat_range, lon_range = PUBLIC_LAT_RANGE, PUBLIC_LON_RANGE

    lat, lon = directions[:, 0], directions[:, 1]
    if lat.min() < lat_range[0] or lat.max() > lat_range[1]:
        raise InvalidInputError(
            f"Latitude outside [{lat_range[0]:g}, {lat_range[1]:g}] "
            f"({convention} convention): range is [{lat.min():g}, {lat.max():g}]"
        )
    if lon.min() < lon_range[0] or lon.max() > lon_range[1]:
        raise InvalidInputError(
            f"Longitude outside [{lon_range[0]:g}, {lon_range[1]:g}] "
            f"({convention} convention): range is [{lon.min():g}, {lon.max():g}]"
        )

    return directions


def spherical_to_cartesian(
    lat: ArrayLike,
    lon: ArrayLike,
) -> Tuple[ArrayLike, ArrayLike, ArrayLike]:
    """
    Convert internal-convention angles in degrees to Cartesian coordinates.

    Args:
        lat: Latitude(s) in degrees, internal convention
        lon: Longitude(s) in degrees, internal convention

    Returns:
        x, y, z: Coordinates on the unit sphere
    """
    lat_rad = np.radians(lat)
    lon_rad = np.radians(lon)
    sin_lat = np.sin(lat_rad)
    x = sin_lat * np.cos(lon_rad)
    y = sin_lat * np.sin(lon_rad)
    z = np.cos(lat_rad)
    return x, y, z


def cartesian_to_spherical(
    x: ArrayLike,
    y: ArrayLike,
    z: ArrayLike,
) -> Tuple[ArrayLike, ArrayLike]:
    """
    Convert Cartesian coordinates to internal-convention angles in degrees.

    Args:
        x, y, z: Cartesian coordinates (normalised internally)

    Returns:
        lat: Latitude in [0, 180]
        lon: Longitude in [0, 360)
    """
    r = np.sqrt(x**2 + y**2 + z**2)
    r = np.maximum(r, 1e-12)

    lat = np.degrees(np.arccos(np.clip(z / r, -1.0, 1.0)))
    lon = np.degrees(np.arctan2(y, x)) % 360.0

    return lat, lon


def directions_to_unit_vectors(directions: np.ndarray) -> np.ndarray:
    """
    Embed (N, 2) internal-convention directions as (N, 3) unit vectors.
    """
    directions = np.asarray(directions, dtype=float)
    x, y, z = spherical_to_cartesian(directions[:, 0], directions[:, 1])
    return np.column_stack([x, y, z])


def unit_vectors_to_directions(vectors: np.ndarray) -> np.ndarray:
    """
    Map (N, 3) vectors back to (N, 2) internal-convention directions.
    """
    vectors = np.asarray(vectors, dtype=float)
    lat, lon = cartesian_to_spherical(vectors[:, 0], vectors[:, 1], vectors[:, 2])
    return np.column_stack([lat, lon])


def great_circle_distance(
    lat1: ArrayLike,
    lon1: ArrayLike,
    lat2: ArrayLike,
    lon2: ArrayLike,
) -> ArrayLike:
    """
    Angular distance between directions, internal convention, in radians.

    Since the internal latitude is a polar angle, the spherical law of
    cosines reads

        cos(d) = sin(φ₁)sin(φ₂)cos(Δλ) + cos(φ₁)cos(φ₂)

    Returns:
        Distance in radians, range [0, π]
    """
    phi1, phi2 = np.radians(lat1), np.radians(lat2)
    delta_lon = np.radians(lon2) - np.radians(lon1)

    cos_dist = (
        np.sin(phi1) * np.sin(phi2) * np.cos(delta_lon) +
        np.cos(phi1) * np.cos(phi2)
    )

    # Clamp to valid range to handle numerical errors
    cos_dist = np.clip(cos_dist, -1.0, 1.0)

    return np.arccos(cos_dist)


def rotation_matrix(axis: np.ndarray, angle_deg: float) -> np.ndarray:
    """
    Rotation about ``axis`` by ``angle_deg`` (Rodrigues' formula).

    Args:
        axis: 3-vector, normalised internally
        angle_deg: Rotation angle in degrees

    Returns:
        3x3 orthogonal matrix with determinant +1
    """
    axis = np.asarray(axis, dtype=float)
    norm = np.linalg.norm(axis)
    if norm < 1e-12:
        raise InvalidInputError("Rotation axis must be non-zero")
    kx, ky, kz = axis / norm

    theta = np.radians(angle_deg)
    K = np.array([
        [0.0, -kz, ky],
        [kz, 0.0, -kx],
        [-ky, kx, 0.0],
    ])
    return np.eye(3) + np.sin(theta) * K + (1 - np.cos(theta)) * (K @ K)


def rotate_directions(directions: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """
    Apply a rigid rotation to internal-convention directions.

    Args:
        directions: (N, 2) array of (lat, lon) in degrees
        matrix: 3x3 rotation matrix

    Returns:
        Rotated (N, 2) directions, internal convention
    """
    vectors = directions_to_unit_vectors(directions)
    return unit_vectors_to_directions(vectors @ np.asarray(matrix).T)
