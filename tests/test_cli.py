import json

import numpy as np
import pytest
from click.testing import CliRunner

from spherekde import __version__
from spherekde.cli import cli
from spherekde.config import Config
from spherekde.utils.io import load_density, load_samples, save_samples


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def samples_csv(tmp_path, equator_samples):
    path = tmp_path / "samples.csv"
    save_samples(equator_samples[:300], path)
    return path


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_info(runner):
    result = runner.invoke(cli, ["info"])
    assert result.exit_code == 0
    assert "NumPy" in result.output


def test_sample_command(runner, tmp_path):
    output = tmp_path / "out" / "draws.csv"
    result = runner.invoke(cli, [
        "sample", "-o", str(output), "-n", "500",
        "--lat", "75", "--lon", "175", "--kappa", "10", "--seed", "4",
    ])
    assert result.exit_code == 0, result.output
    assert "Fitted mean" in result.output

    samples = load_samples(output)
    assert samples.shape == (500, 2)


def test_sample_rejects_invalid_kappa(runner, tmp_path):
    result = runner.invoke(cli, ["sample", "-o", str(tmp_path / "x.csv"), "--kappa", "-1"])
    assert result.exit_code != 0
    assert not (tmp_path / "x.csv").exists()


def test_estimate_command(runner, tmp_path, samples_csv):
    output = tmp_path / "density.npz"
    result = runner.invoke(cli, [
        "estimate", str(samples_csv), "-o", str(output),
        "--grid-size", "20", "--bandwidth-mode", "rule_of_thumb",
    ])
    assert result.exit_code == 0, result.output
    assert "Saved density grid" in result.output

    field = load_density(output)
    assert field.shape == (20, 20)
    assert field.convention == "public"
    assert field.bandwidth_mode == "rule_of_thumb"


def test_estimate_default_output_name(runner, samples_csv):
    result = runner.invoke(cli, [
        "estimate", str(samples_csv), "-g", "8", "-b", "0.3", "--full-sphere",
    ])
    assert result.exit_code == 0, result.output

    field = load_density(samples_csv.parent / "samples_density.npz")
    assert field.full_sphere
    assert field.lat[0] == -90.0 and field.lat[-1] == 90.0
    assert field.bandwidth == 0.3


def test_estimate_internal_convention_json(runner, tmp_path):
    path = tmp_path / "internal.json"
    rows = [{"lat": 80.0 + i, "lon": 170.0 + 2 * i} for i in range(10)]
    path.write_text(json.dumps(rows))
    output = tmp_path / "density.json"

    result = runner.invoke(cli, [
        "estimate", str(path), "-o", str(output), "-g", "10", "-b", "0.2",
        "--convention", "internal",
    ])
    assert result.exit_code == 0, result.output
    field = load_density(output)
    assert field.convention == "internal"
    assert field.lat[0] == pytest.approx(75.0)


def test_estimate_rejects_out_of_range_samples(runner, tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("lat,lon\n10,20\n95,30\n")
    result = runner.invoke(cli, ["estimate", str(path), "-b", "0.3", "-g", "5"])
    assert result.exit_code != 0
    assert "Latitude outside" in result.output


def test_estimate_with_tiny_bandwidth(runner, tmp_path, samples_csv):
    output = tmp_path / "density.npz"
    result = runner.invoke(cli, [
        "estimate", str(samples_csv), "-o", str(output), "-b", "1e-200", "-g", "6",
    ])
    assert result.exit_code == 0, result.output
    assert load_density(output).n_missing == 0


def test_estimate_rejects_unknown_output_format(runner, tmp_path, samples_csv):
    result = runner.invoke(cli, [
        "estimate", str(samples_csv), "-o", str(tmp_path / "density.h5"), "-b", "0.3",
    ])
    assert result.exit_code != 0


def test_estimate_uses_config_file(runner, tmp_path, samples_csv):
    config_path = tmp_path / "spherekde.yaml"
    config = Config()
    config.estimation.grid_size = 12
    config.estimation.bandwidth = 0.4
    config.to_yaml(config_path)

    output = tmp_path / "density.npz"
    result = runner.invoke(cli, [
        "estimate", str(samples_csv), "-o", str(output), "-c", str(config_path),
    ])
    assert result.exit_code == 0, result.output

    field = load_density(output)
    assert field.shape == (12, 12)
    assert field.bandwidth == 0.4


def test_partition_command(runner, tmp_path, samples_csv):
    output = tmp_path / "partitioned.npz"
    result = runner.invoke(cli, [
        "partition", str(samples_csv), "-o", str(output),
        "-k", "3", "--combine", "mean", "--seed", "1", "-j", "2",
        "-g", "15", "-m", "rule_of_thumb",
    ])
    assert result.exit_code == 0, result.output

    field = load_density(output)
    assert field.metadata["combine"] == "mean"
    assert field.metadata["n_groups"] == 3
    assert field.n_samples == 300


def test_partition_rejects_too_many_groups(runner, samples_csv):
    result = runner.invoke(cli, ["partition", str(samples_csv), "-k", "500", "-b", "0.3"])
    assert result.exit_code != 0


@pytest.mark.parametrize("kind", ["contour", "heatmap"])
def test_plot_command(runner, tmp_path, samples_csv, kind):
    density_path = tmp_path / "density.npz"
    runner.invoke(cli, [
        "estimate", str(samples_csv), "-o", str(density_path), "-g", "15", "-b", "0.3",
    ])

    image = tmp_path / f"{kind}.png"
    args = ["plot", str(density_path), "-o", str(image), "--kind", kind]
    if kind == "contour":
        args += ["--samples", str(samples_csv), "--levels", "5"]
    else:
        args += ["--projection", "mollweide", "--colormap", "viridis"]

    result = runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    assert image.exists()


def test_plot_rejects_unknown_colormap(runner, tmp_path, samples_csv):
    density_path = tmp_path / "density.npz"
    runner.invoke(cli, ["estimate", str(samples_csv), "-o", str(density_path), "-b", "0.3", "-g", "5"])

    result = runner.invoke(cli, ["plot", str(density_path), "--colormap", "rainbow"])
    assert result.exit_code != 0


@pytest.mark.parametrize("fmt", ["yaml", "toml", "json"])
def test_config_init(runner, tmp_path, fmt):
    output = tmp_path / f"spherekde.{fmt}"
    result = runner.invoke(cli, ["config", "init", "--format", fmt, "-o", str(output)])
    assert result.exit_code == 0, result.output
    assert output.exists()

    if fmt != "json":
        validated = runner.invoke(cli, ["config", "validate", str(output)])
        assert validated.exit_code == 0
        assert "valid" in validated.output


def test_config_validate_reports_errors(runner, tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("[estimation]\ngrid_size = 1\n")
    result = runner.invoke(cli, ["config", "validate", str(path)])
    assert result.exit_code != 0
    assert "Configuration error" in result.output


def test_config_show(runner):
    result = runner.invoke(cli, ["config", "show"])
    assert result.exit_code == 0
    assert "grid_size: 100" in result.output


def test_verbose_runs_with_progress(runner, samples_csv, tmp_path):
    result = runner.invoke(cli, [
        "-v", "estimate", str(samples_csv), "-o", str(tmp_path / "d.npz"), "-g", "6", "-b", "0.3",
    ])
    assert result.exit_code == 0, result.output
    assert np.isfinite(load_density(tmp_path / "d.npz").density).all()
