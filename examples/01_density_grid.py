#!/usr/bin/env python3
"""
Example 01: Density Grid

This example draws directions around a point near the north pole and the
antimeridian, estimates their vMF kernel density and renders it.

Usage:
    python 01_density_grid.py [samples.csv]
"""

import sys
from pathlib import Path


def main():
    """Density grid example."""
    from spherekde import fit_vmf, sample_vmf, vmf_density_grid
    from spherekde.utils.io import load_samples, save_density
    from spherekde.visualization import (
        plot_density_contours,
        plot_density_heatmap,
        save_figure,
    )

    # Use provided file or generate synthetic data
    if len(sys.argv) > 1:
        samples_path = Path(sys.argv[1])
        print(f"Loading samples from: {samples_path}")
        samples = load_samples(samples_path)
    else:
        print("Drawing 1000 synthetic samples around (75, 175)...")
        samples = sample_vmf(1000, mean_lat=75.0, mean_lon=175.0, kappa=10.0, seed=42)

    fit = fit_vmf(samples)
    print(f"\nSample mean direction: lat={fit.mean_lat:.2f}, lon={fit.mean_lon:.2f}")
    print(f"Sample concentration:  kappa={fit.kappa:.3f}")

    print("\nEstimating density (rule-of-thumb bandwidth)...")
    field = vmf_density_grid(samples, bandwidth_mode="rule_of_thumb", grid_size=50)

    lat, lon, value = field.peak()
    low, high = field.density_range
    print(f"\nDensity grid:")
    print(f"  Bandwidth: {field.bandwidth:.4f}")
    print(f"  Peak:      {value:.4g} at lat={lat:.2f}, lon={lon:.2f}")
    print(f"  Range:     [{low:.4g}, {high:.4g}]")

    save_density(field, "density.npz")
    print("  Saved: density.npz")

    print("\nCreating visualizations...")
    save_figure(plot_density_contours(field, samples=samples), "density_contours.png")
    print("  Saved: density_contours.png")

    whole = vmf_density_grid(samples, bandwidth=field.bandwidth, grid_size=90, full_sphere=True)
    save_figure(plot_density_heatmap(whole, projection="mollweide"), "density_mollweide.png")
    print("  Saved: density_mollweide.png")

    print("\nDensity estimation complete!")


if __name__ == "__main__":
    main()
