"""
Density commands for the spherekde CLI.

Commands for computing kernel density grids from sample files, either
in one pass or with the partition-and-combine approximation.
"""

import logging
import time
from pathlib import Path
from typing import Optional

import click
import numpy as np

from spherekde.cli.utils import (
    apply_overrides,
    format_duration,
    load_config,
    validate_path,
)

logger = logging.getLogger(__name__)

_OUTPUT_SUFFIXES = (".npz", ".json", ".csv")


def _load_internal_samples(input_file: str, convention: str, lat_column, lon_column) -> np.ndarray:
    """Load samples and shift them into the internal convention."""
    from spherekde.core.geometry import to_internal, validate_directions
    from spherekde.errors import InvalidInputError
    from spherekde.utils.io import load_samples

    input_path = validate_path(input_file, must_exist=True, must_be_file=True)

    try:
        samples = load_samples(input_path, lat_column=lat_column, lon_column=lon_column)
        samples = validate_directions(samples, convention, min_samples=2)
    except (InvalidInputError, ValueError) as e:
        raise click.ClickException(str(e))

    click.echo(f"Loaded {len(samples)} samples from {input_path}", err=True)
    return to_internal(samples) if convention == "public" else samples


def _resolve_output(input_file: str, output: Optional[str]) -> Path:
    if output is None:
        output = str(Path(input_file).with_suffix("")) + "_density.npz"
    output_path = Path(output)
    if output_path.suffix.lower() not in _OUTPUT_SUFFIXES:
        raise click.ClickException(
            f"Output must end in one of {', '.join(_OUTPUT_SUFFIXES)}: {output_path}"
        )
    return output_path


def _write_field(field, convention: str, output_path: Path) -> None:
    from spherekde.utils.io import save_density

    if convention == "public":
        field = field.to_public()

    save_density(field, output_path)

    lat, lon, value = field.peak()
    click.echo(f"Bandwidth: {field.bandwidth:.5f} ({field.bandwidth_mode})")
    click.echo(f"Peak density {value:.6g} at lat={lat:.2f}, lon={lon:.2f}")
    if field.n_missing:
        click.echo(f"Warning: {field.n_missing} cells overflowed and are missing", err=True)
    click.echo(f"Saved density grid to {output_path}")


_common_options = [
    click.option("-o", "--output", type=click.Path(), default=None,
                 help="Output file (.npz, .json or .csv; default: INPUT_density.npz)"),
    click.option("-c", "--config-file", type=click.Path(exists=True), default=None,
                 help="Configuration file (TOML or YAML)"),
    click.option("--grid-size", "-g", type=int, default=None,
                 help="Grid breakpoints per axis (default: 100)"),
    click.option("--bandwidth-mode", "-m", type=click.Choice(["none", "rule_of_thumb"]),
                 default=None, help="Bandwidth rule (default: none = cross-validation)"),
    click.option("--bandwidth", "-b", type=float, default=None,
                 help="Explicit bandwidth (skips selection)"),
    click.option("--full-sphere/--bounding-box", default=None,
                 help="Evaluate over the whole sphere or the padded sample bounding box"),
    click.option("--convention", type=click.Choice(["public", "internal"]), default=None,
                 help="Coordinate convention of the input (default: public)"),
    click.option("--lat-column", type=str, default=None, help="Latitude column name"),
    click.option("--lon-column", type=str, default=None, help="Longitude column name"),
]


def common_options(func):
    for option in reversed(_common_options):
        func = option(func)
    return func


@click.command("estimate")
@click.argument("input_file", type=click.Path(exists=True))
@common_options
@click.pass_context
def estimate(
    ctx: click.Context,
    input_file: str,
    output: Optional[str],
    config_file: Optional[str],
    grid_size: Optional[int],
    bandwidth_mode: Optional[str],
    bandwidth: Optional[float],
    full_sphere: Optional[bool],
    convention: Optional[str],
    lat_column: Optional[str],
    lon_column: Optional[str],
) -> None:
    """
    Compute a vMF kernel density grid from a sample file.

    INPUT_FILE: CSV or JSON file with latitude/longitude columns
    """
    from spherekde.core.density import SphericalKDEGrid
    from spherekde.errors import InvalidInputError

    config = load_config(config_file)
    est = apply_overrides(config.estimation, dict(
        grid_size=grid_size,
        bandwidth_mode=bandwidth_mode,
        bandwidth=bandwidth,
        full_sphere=full_sphere,
        convention=convention,
    ))

    output_path = _resolve_output(input_file, output)
    samples = _load_internal_samples(input_file, est.convention, lat_column, lon_column)

    verbose = (ctx.obj or {}).get("verbose", 0)
    estimator = SphericalKDEGrid.from_config(est)
    estimator.progress = verbose > 0

    click.echo(
        f"Estimating on a {est.grid_size}x{est.grid_size} grid "
        f"({'full sphere' if est.full_sphere else 'bounding box'})...",
        err=True,
    )
    start = time.time()
    try:
        field = estimator.estimate(samples, grid_size=est.grid_size, full_sphere=est.full_sphere)
    except InvalidInputError as e:
        raise click.ClickException(str(e))
    logger.info(f"Estimation finished in {format_duration(time.time() - start)}")

    _write_field(field, est.convention, output_path)


@click.command("partition")
@click.argument("input_file", type=click.Path(exists=True))
@common_options
@click.option("--groups", "-k", type=int, default=None,
              help="Number of random sample groups (default: 10)")
@click.option("--combine", type=click.Choice(["sum", "mean", "max", "min"]), default=None,
              help="Cell-wise reduction (default: max)")
@click.option("--seed", type=int, default=None, help="Random seed for the partition")
@click.option("--jobs", "-j", type=int, default=None, help="Worker threads")
@click.pass_context
def partition(
    ctx: click.Context,
    input_file: str,
    output: Optional[str],
    config_file: Optional[str],
    grid_size: Optional[int],
    bandwidth_mode: Optional[str],
    bandwidth: Optional[float],
    full_sphere: Optional[bool],
    convention: Optional[str],
    lat_column: Optional[str],
    lon_column: Optional[str],
    groups: Optional[int],
    combine: Optional[str],
    seed: Optional[int],
    jobs: Optional[int],
) -> None:
    """
    Approximate a density grid by estimating on random sample groups.

    The groups share one evaluation grid and their fields are reduced
    cell-wise. This trades accuracy for memory on large sample sets.

    INPUT_FILE: CSV or JSON file with latitude/longitude columns
    """
    from spherekde.core.density import estimate_partitioned
    from spherekde.errors import InvalidInputError

    config = load_config(config_file)
    est = apply_overrides(config.estimation, dict(
        grid_size=grid_size,
        bandwidth_mode=bandwidth_mode,
        bandwidth=bandwidth,
        full_sphere=full_sphere,
        convention=convention,
    ))
    part = apply_overrides(config.partition, dict(
        n_groups=groups,
        combine=combine,
        seed=seed,
        n_jobs=jobs,
    ))

    output_path = _resolve_output(input_file, output)
    samples = _load_internal_samples(input_file, est.convention, lat_column, lon_column)

    click.echo(
        f"Estimating {part.n_groups} groups, combining with {part.combine.value}...",
        err=True,
    )
    start = time.time()
    try:
        field = estimate_partitioned(
            samples,
            n_groups=part.n_groups,
            combine=part.combine,
            bandwidth_mode=est.bandwidth_mode,
            grid_size=est.grid_size,
            full_sphere=est.full_sphere,
            bandwidth=est.bandwidth,
            bandwidth_range=est.bandwidth_range,
            seed=part.seed,
            n_jobs=part.n_jobs,
            max_chunk_elements=est.max_chunk_elements,
        )
    except InvalidInputError as e:
        raise click.ClickException(str(e))
    logger.info(f"Partitioned estimation finished in {format_duration(time.time() - start)}")

    _write_field(field, est.convention, output_path)
