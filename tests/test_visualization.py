import matplotlib.pyplot as plt
import numpy as np
import pytest

from spherekde.core.density import vmf_density_grid
from spherekde.visualization import (
    figure_to_array,
    plot_density_contours,
    plot_density_heatmap,
    save_figure,
)


@pytest.fixture
def public_field(equator_samples):
    return vmf_density_grid(equator_samples[:200], bandwidth=0.2, grid_size=20, full_sphere=True)


def test_contour_plot_with_samples(public_field, equator_samples):
    fig = plot_density_contours(public_field, levels=6, samples=equator_samples[:200])
    ax = fig.axes[0]
    assert ax.get_xlabel() == "Longitude (degrees)"
    assert "h=0.200" in ax.get_title()
    plt.close(fig)


def test_contour_plot_into_existing_axis(public_field):
    fig, ax = plt.subplots()
    returned = plot_density_contours(public_field, ax=ax, title="custom")
    assert returned is fig
    assert ax.get_title() == "custom"
    plt.close(fig)


def test_contours_tolerate_missing_cells(public_field):
    public_field.density[:2, :2] = np.nan
    fig = plot_density_contours(public_field)
    plt.close(fig)


@pytest.mark.parametrize("projection", ["rectangular", "mollweide"])
def test_heatmap_projections(public_field, projection):
    fig = plot_density_heatmap(public_field, projection=projection, colormap="viridis")
    image = figure_to_array(fig)
    assert image.ndim == 3 and image.shape[2] == 3
    assert image.dtype == np.uint8


def test_heatmap_rejects_unknown_projection(public_field):
    with pytest.raises(ValueError):
        plot_density_heatmap(public_field, projection="orthographic")
    plt.close("all")


def test_save_figure_creates_directories(tmp_path, public_field):
    fig = plot_density_heatmap(public_field)
    path = save_figure(fig, tmp_path / "plots" / "density.png", dpi=60)
    assert path.exists() and path.stat().st_size > 0


def test_mollweide_crops_padding_outside_sphere():
    samples = np.array([[88.0, 178.0], [80.0, 170.0], [84.0, 175.0]])
    field = vmf_density_grid(samples, bandwidth=0.2, grid_size=21)
    rows = np.count_nonzero(np.abs(field.lat) <= 90.0)
    cols = np.count_nonzero(np.abs(field.lon) <= 180.0)
    assert rows < 21 and cols < 21

    fig = plot_density_heatmap(field, projection="mollweide")
    mesh = fig.axes[0].collections[0]
    assert mesh.get_array().shape == (rows, cols)
    plt.close(fig)
