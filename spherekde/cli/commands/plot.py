"""
Plot command for the spherekde CLI.

Renders saved density grids as contour maps or heatmaps.
"""

from pathlib import Path
from typing import Optional

import click

from spherekde.cli.utils import apply_overrides, load_config, validate_path


@click.command("plot")
@click.argument("density_file", type=click.Path(exists=True))
@click.option("-o", "--output", type=click.Path(), default=None,
              help="Output image path (default: DENSITY_FILE.png)")
@click.option("--kind", type=click.Choice(["contour", "heatmap"]), default="contour",
              help="Plot type (default: contour)")
@click.option("--colormap", type=str, default=None, help="Colormap name (default: magma)")
@click.option("--levels", type=int, default=None, help="Number of contour levels")
@click.option("--projection", type=click.Choice(["rectangular", "mollweide"]), default=None,
              help="Heatmap projection (default: rectangular)")
@click.option("--samples", "samples_file", type=click.Path(exists=True), default=None,
              help="Sample file to overlay on contour plots")
@click.option("-c", "--config-file", type=click.Path(exists=True), default=None,
              help="Configuration file (TOML or YAML)")
def plot(
    density_file: str,
    output: Optional[str],
    kind: str,
    colormap: Optional[str],
    levels: Optional[int],
    projection: Optional[str],
    samples_file: Optional[str],
    config_file: Optional[str],
) -> None:
    """
    Render a density grid to an image.

    DENSITY_FILE: Density grid saved by 'spherekde estimate' (.npz or .json)
    """
    import matplotlib
    matplotlib.use("Agg")

    from spherekde.core.geometry import to_internal
    from spherekde.utils.io import load_density, load_samples
    from spherekde.visualization import (
        plot_density_contours,
        plot_density_heatmap,
        save_figure,
    )

    config = load_config(config_file)
    plot_cfg = apply_overrides(config.plot, dict(
        colormap=colormap,
        levels=levels,
        projection=projection,
    ))

    input_path = validate_path(density_file, must_exist=True, must_be_file=True)
    if output is None:
        output = str(input_path.with_suffix("")) + ".png"

    try:
        field = load_density(input_path)
    except ValueError as e:
        raise click.ClickException(str(e))

    cmap = plot_cfg.colormap.value

    if kind == "contour":
        samples = None
        if samples_file is not None:
            samples = load_samples(samples_file)
            if field.convention == "internal":
                # Sample files are written in the public convention
                samples = to_internal(samples)
        fig = plot_density_contours(
            field,
            levels=plot_cfg.levels,
            colormap=cmap,
            samples=samples,
            figsize=plot_cfg.figsize,
        )
    else:
        fig = plot_density_heatmap(
            field,
            colormap=cmap,
            projection=plot_cfg.projection,
            figsize=plot_cfg.figsize,
        )

    output_path = save_figure(fig, Path(output), dpi=plot_cfg.dpi)
    click.echo(f"Saved {kind} plot to {output_path}")
