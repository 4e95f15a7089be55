"""
Visualization utilities for spherekde.

Sub-modules:
    - contours: Contour and heatmap rendering of density fields
"""

from spherekde.visualization.contours import (
    plot_density_contours,
    plot_density_heatmap,
    figure_to_array,
    save_figure,
)

__all__ = [
    "plot_density_contours",
    "plot_density_heatmap",
    "figure_to_array",
    "save_figure",
]
