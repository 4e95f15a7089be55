import csv
import json

import numpy as np
import pytest

from spherekde.core.density import estimate_density
from spherekde.utils.io import load_density, load_samples, save_density, save_samples


@pytest.fixture
def field(small_internal_samples):
    result = estimate_density(small_internal_samples, bandwidth_mode="rule_of_thumb", grid_size=6)
    result.density[0, 0] = np.nan
    return result


class TestSamples:
    def test_csv_round_trip(self, tmp_path, equator_samples):
        path = tmp_path / "samples.csv"
        save_samples(equator_samples, path)
        np.testing.assert_array_equal(load_samples(path), equator_samples)

    def test_csv_column_aliases(self, tmp_path):
        path = tmp_path / "quakes.csv"
        path.write_text("Depth,Latitude,Longitude\n10,12.5,-45.0\n20,-3.25,100.0\n")
        np.testing.assert_array_equal(load_samples(path), [[12.5, -45.0], [-3.25, 100.0]])

    def test_csv_explicit_columns(self, tmp_path):
        path = tmp_path / "points.csv"
        path.write_text("a,b,c\n1,2,3\n4,5,6\n")
        np.testing.assert_array_equal(
            load_samples(path, lat_column="C", lon_column="a"), [[3.0, 1.0], [6.0, 4.0]]
        )

    def test_json_formats(self, tmp_path):
        rows = [{"lat": 1.0, "lon": 2.0}, {"lat": 3.0, "lon": 4.0}]
        as_list = tmp_path / "list.json"
        as_list.write_text(json.dumps(rows))
        wrapped = tmp_path / "wrapped.json"
        wrapped.write_text(json.dumps({"samples": rows}))

        np.testing.assert_array_equal(load_samples(as_list), [[1.0, 2.0], [3.0, 4.0]])
        np.testing.assert_array_equal(load_samples(wrapped), [[1.0, 2.0], [3.0, 4.0]])

    def test_empty_file_gives_empty_array(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("lat,lon\n")
        assert load_samples(path).shape == (0, 2)

    def test_errors(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_samples(tmp_path / "missing.csv")

        unsupported = tmp_path / "samples.txt"
        unsupported.write_text("1 2\n")
        with pytest.raises(ValueError):
            load_samples(unsupported)

        no_lat = tmp_path / "no_lat.csv"
        no_lat.write_text("depth,lon\n1,2\n")
        with pytest.raises(ValueError, match="No column"):
            load_samples(no_lat)

        text = tmp_path / "text.csv"
        text.write_text("lat,lon\nnorth,2\n")
        with pytest.raises(ValueError, match="not numeric"):
            load_samples(text)

        scalar_list = tmp_path / "scalars.json"
        scalar_list.write_text("[1, 2, 3]")
        with pytest.raises(ValueError):
            load_samples(scalar_list)


class TestDensity:
    def test_npz_round_trip(self, tmp_path, field):
        field.metadata["note"] = "checked"
        path = tmp_path / "density.npz"
        save_density(field, path)
        loaded = load_density(path)

        np.testing.assert_array_equal(loaded.density, field.density)
        np.testing.assert_array_equal(loaded.lat, field.lat)
        assert loaded.bandwidth == field.bandwidth
        assert loaded.bandwidth_mode == "rule_of_thumb"
        assert loaded.kappa == pytest.approx(field.kappa)
        assert loaded.metadata == {"note": "checked"}

    def test_json_round_trip_keeps_missing_cells(self, tmp_path, field):
        path = tmp_path / "density.json"
        save_density(field.to_public(), path)
        loaded = load_density(path)

        assert np.isnan(loaded.density[0, 0])
        np.testing.assert_allclose(loaded.density[1:], field.density[1:])
        assert loaded.convention == "public"
        assert loaded.n_samples == field.n_samples

    def test_csv_export(self, tmp_path, field):
        path = tmp_path / "density.csv"
        save_density(field, path)

        with open(path, newline="") as f:
            rows = list(csv.DictReader(f))

        assert len(rows) == field.density.size
        assert rows[0]["density"] == ""
        assert float(rows[1]["lon"]) == pytest.approx(field.lon[1])
        assert float(rows[1]["density"]) == pytest.approx(field.density[0, 1])

    def test_unsupported_formats(self, tmp_path, field):
        with pytest.raises(ValueError):
            save_density(field, tmp_path / "density.h5")
        csv_path = tmp_path / "density.csv"
        save_density(field, csv_path)
        with pytest.raises(ValueError):
            load_density(csv_path)
