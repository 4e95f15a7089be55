"""
Sample command for the spherekde CLI.

Draws synthetic directions from a von Mises-Fisher distribution, for
testing and demonstrating the density estimator.
"""

from typing import Optional

import click

from spherekde.cli.utils import apply_overrides, load_config, validate_path


@click.command("sample")
@click.option("-o", "--output", type=click.Path(), required=True,
              help="Output CSV file")
@click.option("-n", "--n-samples", type=int, default=None,
              help="Number of draws (default: 1000)")
@click.option("--lat", "mean_lat", type=float, default=None,
              help="Mean latitude in degrees (default: 0)")
@click.option("--lon", "mean_lon", type=float, default=None,
              help="Mean longitude in degrees (default: 0)")
@click.option("--kappa", type=float, default=None,
              help="Concentration (default: 10)")
@click.option("--seed", type=int, default=None, help="Random seed")
@click.option("-c", "--config-file", type=click.Path(exists=True), default=None,
              help="Configuration file (TOML or YAML)")
def sample(
    output: str,
    n_samples: Optional[int],
    mean_lat: Optional[float],
    mean_lon: Optional[float],
    kappa: Optional[float],
    seed: Optional[int],
    config_file: Optional[str],
) -> None:
    """Draw directions from a von Mises-Fisher distribution."""
    from spherekde.core.vmf import fit_vmf, sample_from_config
    from spherekde.utils.io import save_samples

    config = load_config(config_file)
    sampling = apply_overrides(config.sampling, dict(
        n_samples=n_samples,
        mean_lat=mean_lat,
        mean_lon=mean_lon,
        kappa=kappa,
        seed=seed,
    ))

    output_path = validate_path(output, must_exist=False, create_dirs=True)
    samples = sample_from_config(sampling)
    save_samples(samples, output_path)

    click.echo(
        f"Drew {len(samples)} samples around (lat={sampling.mean_lat:g}, "
        f"lon={sampling.mean_lon:g}) with kappa={sampling.kappa:g}"
    )
    if len(samples) >= 2:
        fit = fit_vmf(samples)
        click.echo(
            f"Fitted mean (lat={fit.mean_lat:.2f}, lon={fit.mean_lon:.2f}), kappa={fit.kappa:.3f}"
        )
    click.echo(f"Saved samples to {output_path}")
