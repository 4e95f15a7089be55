"""
Spherical geometry utilities.

This module provides the latitude/longitude conventions used by the
estimator, the embedding of directions into R³, great-circle distances
and rigid rotations of direction sets.
"""

from spherekde.core.geometry.spherical import (
    LAT_OFFSET,
    LON_OFFSET,
    INTERNAL_LAT_RANGE,
    INTERNAL_LON_RANGE,
    PUBLIC_LAT_RANGE,
    PUBLIC_LON_RANGE,
    to_internal,
    to_public,
    validate_directions,
    spherical_to_cartesian,
    cartesian_to_spherical,
    directions_to_unit_vectors,
    unit_vectors_to_directions,
    great_circle_distance,
    rotation_matrix,
    rotate_directions,
)

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
