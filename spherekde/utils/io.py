"""
I/O utilities for directional samples and density fields.

Provides functions for loading (lat, lon) samples from CSV or JSON
tables and for saving/loading density fields in NPZ, JSON or CSV form.
"""

import csv
import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from spherekde.core.density.estimator import DensityField

__all__ = [
    "load_samples",
    "save_samples",
    "load_density",
    "save_density",
    "LAT_ALIASES",
    "LON_ALIASES",
]

LAT_ALIASES = ("lat", "latitude", "y")
LON_ALIASES = ("lon", "long", "lng", "longitude", "x")


def _find_column(
    names: Sequence[str],
    requested: Optional[str],
    aliases: Sequence[str],
    path: Path,
) -> str:
    """Match a column name case-insensitively against a request or aliases."""
    lookup = {name.strip().lower(): name for name in names}
    candidates = [requested] if requested is not None else aliases
    for candidate in candidates:
        if candidate.lower() in lookup:
            return lookup[candidate.lower()]
    raise ValueError(
        f"No column matching {list(candidates)} in {path} (columns: {list(names)})"
    )


def _rows_to_array(
    rows: List[Dict[str, object]],
    lat_column: str,
    lon_column: str,
    path: Path,
) -> np.ndarray:
    samples = np.empty((len(rows), 2))
    for i, row in enumerate(rows):
        try:
            samples[i, 0] = float(row[lat_column])
            samples[i, 1] = float(row[lon_column])
        except (TypeError, ValueError) as e:
            raise ValueError(f"Row {i + 1} of {path} is not numeric: {e}") from e
    return samples


def load_samples(
    path: Union[str, Path],
    lat_column: Optional[str] = None,
    lon_column: Optional[str] = None,
) -> np.ndarray:
    """Load (lat, lon) samples from a CSV or JSON file.

    CSV files need a header row. JSON files hold either a list of objects
    or an object with a ``samples`` list. Column names are matched
    case-insensitively; without explicit names, common aliases such as
    ``latitude``/``longitude`` are tried.

    Args:
        path: Input file (.csv or .json)
        lat_column: Latitude column name
        lon_column: Longitude column name

    Returns:
        (N, 2) float array of (lat, lon) in degrees

    Example:
        >>> samples = load_samples("quakes.csv", lat_column="Latitude")
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Sample file not found: {path}")

    suffix = path.suffix.lower()

    if suffix == ".csv":
        with open(path, newline="") as f:
            reader = csv.DictReader(f)
            names = reader.fieldnames or []
            rows = list(reader)

    elif suffix == ".json":
        with open(path) as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("samples", [])
        if not isinstance(data, list) or (data and not isinstance(data[0], dict)):
            raise ValueError(f"Unknown JSON sample format in {path}")
        rows = data
        names = list(rows[0].keys()) if rows else []

    else:
        raise ValueError(f"Unsupported sample file format: {suffix}")

    if not rows:
        return np.empty((0, 2))

    lat_key = _find_column(names, lat_column, LAT_ALIASES, path)
    lon_key = _find_column(names, lon_column, LON_ALIASES, path)

    return _rows_to_array(rows, lat_key, lon_key, path)


def save_samples(samples: np.ndarray, path: Union[str, Path]) -> None:
    """Write (lat, lon) samples to CSV with a ``lat,lon`` header."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["lat", "lon"])
        for lat, lon in np.asarray(samples, dtype=float):
            writer.writerow([repr(float(lat)), repr(float(lon))])


def save_density(field: DensityField, path: Union[str, Path]) -> None:
    """Save a density field; format chosen by suffix (.npz, .json, .csv)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()

    if suffix == ".npz":
        field.save_npz(path)
    elif suffix == ".json":
        field.save_json(path)
    elif suffix == ".csv":
        field.save_csv(path)
    else:
        raise ValueError(f"Unsupported density output format: {suffix}")


def load_density(path: Union[str, Path]) -> DensityField:
    """Load a density field from .npz or .json."""
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Density file not found: {path}")

    suffix = path.suffix.lower()

    if suffix == ".npz":
        return DensityField.load_npz(path)
    elif suffix == ".json":
        with open(path) as f:
            return DensityField.from_dict(json.load(f))
    else:
        raise ValueError(f"Unsupported density file format: {suffix}")
