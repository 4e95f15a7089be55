"""
Contour and heatmap rendering of density fields.

Density fields are drawn on plain latitude/longitude axes, or on
matplotlib's built-in Mollweide axes for whole-sphere views. Map
reprojection onto other coordinate reference systems is left to
dedicated geospatial tools.
"""

from pathlib import Path
from typing import Optional, Tuple, Union

import matplotlib
import matplotlib.pyplot as plt
import numpy as np

from spherekde.core.density.estimator import DensityField

__all__ = [
    "plot_density_contours",
    "plot_density_heatmap",
    "figure_to_array",
    "save_figure",
]


def _axis_labels(field: DensityField) -> Tuple[str, str]:
    suffix = "" if field.convention == "public" else " (internal)"
    return f"Longitude{suffix} (degrees)", f"Latitude{suffix} (degrees)"


def plot_density_contours(
    field: DensityField,
    levels: int = 10,
    colormap: str = "magma",
    samples: Optional[np.ndarray] = None,
    figsize: Tuple[float, float] = (10, 6),
    title: Optional[str] = None,
    ax=None,
) -> "matplotlib.figure.Figure":
    """
    Draw filled contours of a density field on lat/lon axes.

    Args:
        field: Density field (either convention)
        levels: Number of contour levels
        colormap: Colormap name
        samples: Optional (N, 2) samples, same convention as ``field``,
            drawn as points
        figsize: Figure size in inches (width, height)
        title: Optional title
        ax: Existing axis to draw into

    Returns:
        The matplotlib Figure

    Example:
        >>> fig = plot_density_contours(field, levels=8, samples=points)
        >>> save_figure(fig, "density.png")
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    lon_grid, lat_grid = np.meshgrid(field.lon, field.lat)
    density = np.ma.masked_invalid(field.density)

    filled = ax.contourf(lon_grid, lat_grid, density, levels=levels, cmap=colormap)
    ax.contour(lon_grid, lat_grid, density, levels=levels, colors="k", linewidths=0.4, alpha=0.5)

    if samples is not None:
        samples = np.asarray(samples)
        ax.scatter(samples[:, 1], samples[:, 0], s=2, c="cyan", alpha=0.4, linewidths=0)

    xlabel, ylabel = _axis_labels(field)
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    ax.set_xlim(field.lon[0], field.lon[-1])
    ax.set_ylim(field.lat[0], field.lat[-1])
    ax.set_title(title or f"vMF kernel density (h={field.bandwidth:.3f}, n={field.n_samples})")

    fig.colorbar(filled, ax=ax, label="Density")
    return fig


def plot_density_heatmap(
    field: DensityField,
    colormap: str = "magma",
    projection: str = "rectangular",
    figsize: Tuple[float, float] = (12, 6),
    title: Optional[str] = None,
) -> "matplotlib.figure.Figure":
    """
    Draw a density field as a colour mesh.

    Args:
        field: Density field (either convention)
        colormap: Colormap name
        projection: "rectangular" or "mollweide"
        figsize: Figure size in inches
        title: Optional title

    Returns:
        The matplotlib Figure
    """
    density = np.ma.masked_invalid(field.density)

    if projection == "rectangular":
        fig, ax = plt.subplots(figsize=figsize)
        im = ax.pcolormesh(field.lon, field.lat, density, cmap=colormap, shading="auto")
        xlabel, ylabel = _axis_labels(field)
        ax.set_xlabel(xlabel)
        ax.set_ylabel(ylabel)
        fig.colorbar(im, ax=ax, label="Density")

    elif projection == "mollweide":
        fig, ax = plt.subplots(figsize=figsize, subplot_kw=dict(projection="mollweide"))

        # Mollweide axes expect radians, lon in [-π, π], lat in [-π/2, π/2]
        public = field.to_public()
        # Padded bounding boxes can extend past the poles or the seam
        rows = (public.lat >= -90.0) & (public.lat <= 90.0)
        cols = (public.lon >= -180.0) & (public.lon <= 180.0)
        lon = np.radians(public.lon[cols])
        lat = np.radians(public.lat[rows])

        im = ax.pcolormesh(
            lon, lat, density[np.ix_(rows, cols)], cmap=colormap, shading="auto"
        )
        ax.grid(True, alpha=0.3)
        fig.colorbar(im, ax=ax, label="Density", orientation="horizontal", pad=0.05)

    else:
        raise ValueError(f"Unknown projection: {projection}")

    ax.set_title(title or f"vMF kernel density ({projection})")
    return fig


def figure_to_array(fig: "matplotlib.figure.Figure", close: bool = True) -> np.ndarray:
    """Render a figure to an HxWx3 uint8 RGB array."""
    fig.canvas.draw()
    img = np.asarray(fig.canvas.buffer_rgba())[..., :3].copy()
    if close:
        plt.close(fig)
    return img


def save_figure(
    fig: "matplotlib.figure.Figure",
    path: Union[str, Path],
    dpi: int = 150,
    close: bool = True,
) -> Path:
    """
    Save a figure to file, creating parent directories.

    Args:
        fig: Matplotlib figure
        path: Output path (format inferred from extension)
        dpi: Resolution in dots per inch
        close: Close the figure afterwards

    Returns:
        The output path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    if close:
        plt.close(fig)
    return path
