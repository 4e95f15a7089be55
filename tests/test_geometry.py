import numpy as np
import pytest

from spherekde.core.geometry import (
    cartesian_to_spherical,
    directions_to_unit_vectors,
    great_circle_distance,
    rotate_directions,
    rotation_matrix,
    to_internal,
    to_public,
    unit_vectors_to_directions,
    validate_directions,
)
from spherekde.errors import InvalidInputError


def test_convention_offsets():
    public = np.array([[-90.0, -180.0], [0.0, 0.0], [90.0, 180.0]])
    internal = to_internal(public)
    np.testing.assert_array_equal(internal, [[0.0, 0.0], [90.0, 180.0], [180.0, 360.0]])
    np.testing.assert_array_equal(to_public(internal), public)


def test_to_internal_does_not_mutate_input():
    public = np.array([[10.0, 20.0]])
    to_internal(public)
    np.testing.assert_array_equal(public, [[10.0, 20.0]])


def test_unit_vectors_have_norm_one(rng):
    directions = np.column_stack([
        rng.uniform(0, 180, 500),
        rng.uniform(0, 360, 500),
    ])
    vectors = directions_to_unit_vectors(directions)
    np.testing.assert_allclose(np.linalg.norm(vectors, axis=1), 1.0, atol=1e-12)


def test_embedding_matches_formula():
    vectors = directions_to_unit_vectors(np.array([[90.0, 0.0], [0.0, 123.0], [90.0, 90.0]]))
    np.testing.assert_allclose(vectors[0], [1.0, 0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(vectors[1], [0.0, 0.0, 1.0], atol=1e-12)
    np.testing.assert_allclose(vectors[2], [0.0, 1.0, 0.0], atol=1e-12)


def test_cartesian_round_trip(rng):
    directions = np.column_stack([
        rng.uniform(1, 179, 200),
        rng.uniform(0, 359, 200),
    ])
    recovered = unit_vectors_to_directions(directions_to_unit_vectors(directions))
    np.testing.assert_allclose(recovered, directions, atol=1e-9)


def test_cartesian_to_spherical_longitude_range():
    lat, lon = cartesian_to_spherical(np.array([0.0]), np.array([-1.0]), np.array([0.0]))
    assert lat[0] == pytest.approx(90.0)
    assert lon[0] == pytest.approx(270.0)


@pytest.mark.parametrize("directions, convention", [
    ([[181.0, 10.0]], "internal"),
    ([[-1.0, 10.0]], "internal"),
    ([[10.0, 361.0]], "internal"),
    ([[91.0, 0.0]], "public"),
    ([[0.0, -181.0]], "public"),
    ([[np.nan, 0.0]], "internal"),
])
def test_validate_rejects_out_of_domain(directions, convention):
    with pytest.raises(InvalidInputError):
        validate_directions(directions, convention)


def test_validate_rejects_bad_shape_and_count():
    with pytest.raises(InvalidInputError):
        validate_directions(np.zeros((3, 3)))
    with pytest.raises(InvalidInputError):
        validate_directions([[10.0, 10.0]], min_samples=2)
    with pytest.raises(InvalidInputError):
        validate_directions([[10.0, 10.0]], convention="mercator")


def test_validate_accepts_domain_edges():
    out = validate_directions([[0.0, 0.0], [180.0, 360.0]], "internal")
    assert out.shape == (2, 2)


def test_great_circle_distance_known_values():
    # Internal latitude is a polar angle: 0 and 180 are antipodal
    assert great_circle_distance(0.0, 0.0, 180.0, 0.0) == pytest.approx(np.pi)
    assert great_circle_distance(90.0, 0.0, 90.0, 90.0) == pytest.approx(np.pi / 2)
    assert great_circle_distance(90.0, 359.0, 90.0, 1.0) == pytest.approx(np.radians(2.0))


def test_rotation_matrix_is_orthogonal():
    R = rotation_matrix([1.0, 2.0, 3.0], 37.0)
    np.testing.assert_allclose(R @ R.T, np.eye(3), atol=1e-12)
    assert np.linalg.det(R) == pytest.approx(1.0)


def test_rotation_matrix_rejects_zero_axis():
    with pytest.raises(InvalidInputError):
        rotation_matrix([0.0, 0.0, 0.0], 10.0)


def test_rotation_preserves_pairwise_distances(rng):
    directions = np.column_stack([
        rng.uniform(5, 175, 30),
        rng.uniform(0, 360, 30),
    ])
    rotated = rotate_directions(directions, rotation_matrix([0.3, -1.0, 0.5], 71.0))

    before = great_circle_distance(
        directions[:, None, 0], directions[:, None, 1],
        directions[None, :, 0], directions[None, :, 1],
    )
    after = great_circle_distance(
        rotated[:, None, 0], rotated[:, None, 1],
        rotated[None, :, 0], rotated[None, :, 1],
    )
    np.testing.assert_allclose(after, before, atol=1e-7)
