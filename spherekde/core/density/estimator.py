"""
Von Mises-Fisher kernel density estimation on a latitude/longitude grid.

Given directional samples x₁..xₙ (unit vectors) and a bandwidth h, the
estimate at a grid direction y is

    f(y) = Σₖ exp( (xₖ·y)/h² + log(cpk) ) / grid_size

Note the division by the number of grid points per axis rather than by n;
contour shapes are unaffected, absolute scale is. :meth:`SphericalKDEGrid.density_at`
gives the properly normalised density (division by n) at arbitrary points.

All grid computations use the internal coordinate convention
(lat ∈ [0, 180], lon ∈ [0, 360]); :func:`vmf_density_grid` wraps the
estimator for the public convention (lat ∈ [-90, 90], lon ∈ [-180, 180]).
"""

import csv
import json
import logging
import sys
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

from spherekde.errors import InvalidInputError, NumericalOverflowWarning
from spherekde.core.density.kernels import VonMisesFisherKernel
from spherekde.core.density.bandwidth import (
    BandwidthMode,
    DEFAULT_BANDWIDTH_RANGE,
    select_bandwidth,
)
from spherekde.core.geometry.spherical import (
    INTERNAL_LAT_RANGE,
    INTERNAL_LON_RANGE,
    LAT_OFFSET,
    LON_OFFSET,
    directions_to_unit_vectors,
    to_internal,
    validate_directions,
)

__all__ = [
    "GRID_PADDING",
    "EvaluationGrid",
    "DensityField",
    "SphericalKDEGrid",
    "estimate_density",
    "vmf_density_grid",
]

logger = logging.getLogger(__name__)

# Degrees added on each side of the sample bounding box
GRID_PADDING = 5.0

DEFAULT_CHUNK_ELEMENTS = 2 ** 22


def _validate_grid_size(grid_size: Any) -> int:
    if isinstance(grid_size, bool) or not isinstance(grid_size, (int, np.integer)):
        raise InvalidInputError(f"grid_size must be an integer, got {grid_size!r}")
    if grid_size < 2:
        raise InvalidInputError(f"grid_size must be at least 2, got {grid_size}")
    return int(grid_size)


def _caller_stacklevel() -> int:
    """Stack level of the first frame outside this package, for warnings."""
    frame = sys._getframe(1)
    level = 1
    while frame is not None and frame.f_globals.get("__name__", "").startswith("spherekde."):
        frame = frame.f_back
        level += 1
    return level


def _validate_bandwidth(bandwidth: Any) -> float:
    try:
        bandwidth = float(bandwidth)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Bandwidth must be a number, got {bandwidth!r}") from None
    if not np.isfinite(bandwidth) or bandwidth <= 0:
        raise InvalidInputError(f"Bandwidth must be positive and finite, got {bandwidth}")
    return bandwidth


@dataclass
class EvaluationGrid:
    """
    Regular latitude/longitude grid, internal convention, degrees.

    Attributes:
        lat: Latitude breakpoints (grid_size,)
        lon: Longitude breakpoints (grid_size,)
        full_sphere: Whether the grid covers the whole sphere
    """

    lat: np.ndarray
    lon: np.ndarray
    full_sphere: bool = False

    @classmethod
    def covering_sphere(cls, grid_size: int) -> "EvaluationGrid":
        """Grid over lat [0, 180] × lon [0, 360]."""
        grid_size = _validate_grid_size(grid_size)
        return cls(
            lat=np.linspace(INTERNAL_LAT_RANGE[0], INTERNAL_LAT_RANGE[1], grid_size),
            lon=np.linspace(INTERNAL_LON_RANGE[0], INTERNAL_LON_RANGE[1], grid_size),
            full_sphere=True,
        )

    @classmethod
    def around(
        cls,
        directions: np.ndarray,
        grid_size: int,
        padding: float = GRID_PADDING,
    ) -> "EvaluationGrid":
        """Grid over the sample bounding box padded by ``padding`` degrees."""
        grid_size = _validate_grid_size(grid_size)
        directions = np.asarray(directions, dtype=float)
        lat_min, lon_min = directions.min(axis=0)
        lat_max, lon_max = directions.max(axis=0)
        return cls(
            lat=np.linspace(lat_min - padding, lat_max + padding, grid_size),
            lon=np.linspace(lon_min - padding, lon_max + padding, grid_size),
            full_sphere=False,
        )

    @classmethod
    def for_samples(
        cls,
        directions: np.ndarray,
        grid_size: int,
        full_sphere: bool = False,
    ) -> "EvaluationGrid":
        if full_sphere:
            return cls.covering_sphere(grid_size)
        return cls.around(directions, grid_size)

    @property
    def grid_size(self) -> int:
        return len(self.lat)

    @property
    def shape(self) -> Tuple[int, int]:
        return len(self.lat), len(self.lon)

    @property
    def spacing(self) -> Tuple[float, float]:
        """(Δlat, Δlon) between neighbouring breakpoints."""
        return float(self.lat[1] - self.lat[0]), float(self.lon[1] - self.lon[0])

    def row_vectors(self, start: int, stop: int) -> np.ndarray:
        """Unit vectors for latitude rows [start, stop), row-major."""
        lat_grid, lon_grid = np.meshgrid(self.lat[start:stop], self.lon, indexing="ij")
        directions = np.column_stack([lat_grid.ravel(), lon_grid.ravel()])
        return directions_to_unit_vectors(directions)


@dataclass
class DensityField:
    """
    Kernel density values on a latitude/longitude grid.

    ``density[i, j]`` is the estimate at ``(lat[i], lon[j])``. Cells whose
    kernel sum overflowed hold NaN.

    Attributes:
        density: (grid_size, grid_size) array
        lat: Latitude breakpoints
        lon: Longitude breakpoints
        bandwidth: Bandwidth h used
        n_samples: Number of samples in the estimate
        bandwidth_mode: "none", "rule_of_thumb" or "fixed"
        convention: "internal" or "public"
        full_sphere: Whether the grid covers the whole sphere
        kappa: Concentration estimated by the rule of thumb, if used
        metadata: Additional metadata
    """

    density: np.ndarray
    lat: np.ndarray
    lon: np.ndarray
    bandwidth: float
    n_samples: int
    bandwidth_mode: str = "fixed"
    convention: str = "internal"
    full_sphere: bool = False
    kappa: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.density.shape

    @property
    def grid_size(self) -> int:
        return len(self.lat)

    @property
    def n_missing(self) -> int:
        """Number of cells marked missing after overflow."""
        return int(np.count_nonzero(np.isnan(self.density)))

    @property
    def density_range(self) -> Tuple[float, float]:
        return float(np.nanmin(self.density)), float(np.nanmax(self.density))

    def peak(self) -> Tuple[float, float, float]:
        """
        Location and value of the largest finite cell.

        Returns:
            (lat, lon, density)
        """
        if self.n_missing == self.density.size:
            raise ValueError("Density field has no finite cells")
        i, j = np.unravel_index(np.nanargmax(self.density), self.density.shape)
        return float(self.lat[i]), float(self.lon[j]), float(self.density[i, j])

    def to_public(self) -> "DensityField":
        """Copy of this field in the public convention (returned as is if already public)."""
        if self.convention == "public":
            return self
        return DensityField(
            density=self.density.copy(),
            lat=self.lat - LAT_OFFSET,
            lon=self.lon - LON_OFFSET,
            bandwidth=self.bandwidth,
            n_samples=self.n_samples,
            bandwidth_mode=self.bandwidth_mode,
            convention="public",
            full_sphere=self.full_sphere,
            kappa=self.kappa,
            metadata=dict(self.metadata),
        )

    def to_records(self) -> List[Dict[str, float]]:
        """
        Long-format rows, one per cell, latitude-major.

        Missing cells have ``density`` set to None.
        """
        records = []
        for i, lat in enumerate(self.lat):
            for j, lon in enumerate(self.lon):
                value = self.density[i, j]
                records.append({
                    'lat': float(lat),
                    'lon': float(lon),
                    'density': None if np.isnan(value) else float(value),
                })
        return records

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'density': [
                [None if np.isnan(v) else float(v) for v in row]
                for row in self.density
            ],
            'lat': self.lat.tolist(),
            'lon': self.lon.tolist(),
            'bandwidth': self.bandwidth,
            'n_samples': self.n_samples,
            'bandwidth_mode': self.bandwidth_mode,
            'convention': self.convention,
            'full_sphere': self.full_sphere,
            'kappa': self.kappa,
            'metadata': self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DensityField":
        density = np.array(
            [[np.nan if v is None else v for v in row] for row in data['density']],
            dtype=float,
        )
        return cls(
            density=density,
            lat=np.asarray(data['lat'], dtype=float),
            lon=np.asarray(data['lon'], dtype=float),
            bandwidth=float(data['bandwidth']),
            n_samples=int(data['n_samples']),
            bandwidth_mode=data.get('bandwidth_mode', 'fixed'),
            convention=data.get('convention', 'internal'),
            full_sphere=bool(data.get('full_sphere', False)),
            kappa=data.get('kappa'),
            metadata=data.get('metadata', {}),
        )

    def save_npz(self, path: Union[str, Path]) -> None:
        """Save to compressed NumPy file."""
        np.savez_compressed(
            path,
            density=self.density,
            lat=self.lat,
            lon=self.lon,
            bandwidth=np.array([self.bandwidth]),
            n_samples=np.array([self.n_samples]),
            bandwidth_mode=np.array([self.bandwidth_mode]),
            convention=np.array([self.convention]),
            full_sphere=np.array([self.full_sphere]),
            kappa=np.array([np.nan if self.kappa is None else self.kappa]),
            metadata=np.array([json.dumps(self.metadata)]),
        )

    @classmethod
    def load_npz(cls, path: Union[str, Path]) -> "DensityField":
        """Load from compressed NumPy file."""
        data = np.load(path)
        kappa = float(data['kappa'][0])
        return cls(
            density=data['density'],
            lat=data['lat'],
            lon=data['lon'],
            bandwidth=float(data['bandwidth'][0]),
            n_samples=int(data['n_samples'][0]),
            bandwidth_mode=str(data['bandwidth_mode'][0]),
            convention=str(data['convention'][0]),
            full_sphere=bool(data['full_sphere'][0]),
            kappa=None if np.isnan(kappa) else kappa,
            metadata=json.loads(str(data['metadata'][0])) if 'metadata' in data.files else {},
        )

    def save_json(self, path: Union[str, Path]) -> None:
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def save_csv(self, path: Union[str, Path]) -> None:
        """Write long-format ``lat,lon,density`` rows; missing cells are empty."""
        with open(path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=["lat", "lon", "density"])
            writer.writeheader()
            for record in self.to_records():
                if record['density'] is None:
                    record['density'] = ""
                writer.writerow(record)


class SphericalKDEGrid:
    """
    Von Mises-Fisher kernel density estimator for directional data.

    The estimator embeds (lat, lon) samples as unit vectors, selects a
    bandwidth (explicit, cross-validated or rule of thumb) and evaluates
    the kernel sum over an :class:`EvaluationGrid`.

    Grid evaluation is vectorised over blocks of latitude rows, holding at
    most ``max_chunk_elements`` kernel values in memory at a time.

    Example:
        >>> kde = SphericalKDEGrid(bandwidth_mode="rule_of_thumb")
        >>> field = kde.estimate(samples, grid_size=50)
        >>> field.peak()
    """

    def __init__(
        self,
        bandwidth_mode: Union[str, BandwidthMode] = BandwidthMode.NONE,
        bandwidth: Optional[float] = None,
        bandwidth_range: Tuple[float, float] = DEFAULT_BANDWIDTH_RANGE,
        max_chunk_elements: int = DEFAULT_CHUNK_ELEMENTS,
        progress: bool = False,
    ):
        """
        Initialize the estimator.

        Args:
            bandwidth_mode: Selection rule used when ``bandwidth`` is None
            bandwidth: Explicit bandwidth h (skips selection)
            bandwidth_range: Search interval for cross-validation
            max_chunk_elements: Memory bound for vectorised evaluation
            progress: Show a progress bar during grid evaluation
        """
        try:
            self.bandwidth_mode = BandwidthMode(bandwidth_mode)
        except ValueError:
            raise InvalidInputError(
                f"Unknown bandwidth mode {bandwidth_mode!r}, expected one of "
                f"{[m.value for m in BandwidthMode]}"
            ) from None

        self.fixed_bandwidth = None if bandwidth is None else _validate_bandwidth(bandwidth)
        self.bandwidth_range = tuple(bandwidth_range)
        self.max_chunk_elements = int(max_chunk_elements)
        self.progress = progress

        self.kernel: Optional[VonMisesFisherKernel] = None
        self.kappa: Optional[float] = None
        self._directions: Optional[np.ndarray] = None
        self._vectors: Optional[np.ndarray] = None

    @classmethod
    def from_config(cls, config) -> "SphericalKDEGrid":
        """Build from an :class:`~spherekde.config.EstimationConfig`."""
        return cls(
            bandwidth_mode=config.bandwidth_mode,
            bandwidth=config.bandwidth,
            bandwidth_range=config.bandwidth_range,
            max_chunk_elements=config.max_chunk_elements,
        )

    def fit(self, directions: np.ndarray) -> "SphericalKDEGrid":
        """
        Embed samples and determine the bandwidth.

        Args:
            directions: (N, 2) array of (lat, lon), internal convention, N ≥ 2

        Returns:
            self for method chaining
        """
        directions = validate_directions(directions, "internal", min_samples=2)
        vectors = directions_to_unit_vectors(directions)

        self.kappa = None
        if self.fixed_bandwidth is not None:
            h = self.fixed_bandwidth
        else:
            h, self.kappa = select_bandwidth(
                vectors, self.bandwidth_mode, self.bandwidth_range
            )

        self.kernel = VonMisesFisherKernel(bandwidth=h)
        self._directions = directions
        self._vectors = vectors

        logger.debug(f"Fitted {len(vectors)} samples with bandwidth h={h:.5f}")
        return self

    def _check_fitted(self) -> None:
        if self.kernel is None:
            raise RuntimeError("Estimator must be fit before evaluation")

    def kernel_sums(self, query_vectors: np.ndarray) -> np.ndarray:
        """
        Σₖ K_h(xₖ, y) for each query unit vector y.

        Args:
            query_vectors: (M, 3) unit vectors

        Returns:
            (M,) array; entries may be non-finite on overflow
        """
        self._check_fitted()
        query_vectors = np.asarray(query_vectors, dtype=float)

        n = len(self._vectors)
        rows_per_chunk = max(1, self.max_chunk_elements // n)
        sums = np.empty(len(query_vectors))

        with np.errstate(over="ignore", invalid="ignore"):
            for start in range(0, len(query_vectors), rows_per_chunk):
                stop = start + rows_per_chunk
                cosines = query_vectors[start:stop] @ self._vectors.T
                sums[start:stop] = np.sum(self.kernel(cosines), axis=1)

        return sums

    def density_at(self, directions: np.ndarray) -> np.ndarray:
        """
        Normalised density Σₖ K_h(xₖ, y) / n at internal-convention directions.

        Args:
            directions: (M, 2) array of (lat, lon)

        Returns:
            (M,) array of density values
        """
        self._check_fitted()
        vectors = directions_to_unit_vectors(np.asarray(directions, dtype=float))
        return self.kernel_sums(vectors) / self.n_samples

    def evaluate_grid(self, grid: EvaluationGrid) -> DensityField:
        """
        Evaluate the grid-normalised kernel sum on every grid cell.

        Args:
            grid: Evaluation grid (internal convention)

        Returns:
            DensityField with NaN in overflowed cells
        """
        self._check_fitted()

        n_lat, n_lon = grid.shape
        rows_per_block = max(1, self.max_chunk_elements // (self.n_samples * n_lon))
        density = np.empty((n_lat, n_lon))

        blocks = range(0, n_lat, rows_per_block)
        if self.progress:
            from tqdm import tqdm
            blocks = tqdm(blocks, desc="Evaluating density grid")

        for start in blocks:
            stop = min(start + rows_per_block, n_lat)
            sums = self.kernel_sums(grid.row_vectors(start, stop))
            density[start:stop] = sums.reshape(stop - start, n_lon) / grid.grid_size

        overflowed = ~np.isfinite(density)
        n_missing = int(np.count_nonzero(overflowed))
        if n_missing:
            density[overflowed] = np.nan
            logger.warning(
                f"{n_missing} of {density.size} grid cells overflowed and were marked missing"
            )
            warnings.warn(
                f"{n_missing} grid cells overflowed (bandwidth h={self.bandwidth:.3g})",
                NumericalOverflowWarning,
                stacklevel=_caller_stacklevel(),
            )

        if self.fixed_bandwidth is not None:
            mode = "fixed"
        else:
            mode = self.bandwidth_mode.value

        return DensityField(
            density=density,
            lat=grid.lat.copy(),
            lon=grid.lon.copy(),
            bandwidth=self.bandwidth,
            n_samples=self.n_samples,
            bandwidth_mode=mode,
            convention="internal",
            full_sphere=grid.full_sphere,
            kappa=self.kappa,
        )

    def estimate(
        self,
        directions: np.ndarray,
        grid_size: int = 100,
        full_sphere: bool = False,
        grid: Optional[EvaluationGrid] = None,
    ) -> DensityField:
        """
        Fit on ``directions`` and evaluate on a grid.

        Args:
            directions: (N, 2) internal-convention samples
            grid_size: Breakpoints per axis (ignored if ``grid`` is given)
            full_sphere: Cover the whole sphere instead of the padded
                sample bounding box
            grid: Precomputed grid to evaluate on

        Returns:
            DensityField in the internal convention
        """
        if grid is None:
            grid_size = _validate_grid_size(grid_size)
        self.fit(directions)
        if grid is None:
            grid = EvaluationGrid.for_samples(self._directions, grid_size, full_sphere)
        return self.evaluate_grid(grid)

    @property
    def bandwidth(self) -> float:
        self._check_fitted()
        return self.kernel.bandwidth

    @property
    def n_samples(self) -> int:
        return len(self._vectors) if self._vectors is not None else 0

    def __repr__(self) -> str:
        h = f"{self.kernel.bandwidth:.4f}" if self.kernel is not None else "unfit"
        return (
            f"SphericalKDEGrid(mode={self.bandwidth_mode.value}, "
            f"bandwidth={h}, n_samples={self.n_samples})"
        )


def estimate_density(
    samples: np.ndarray,
    bandwidth_mode: Union[str, BandwidthMode] = BandwidthMode.NONE,
    grid_size: int = 100,
    full_sphere: bool = False,
    bandwidth: Optional[float] = None,
    bandwidth_range: Tuple[float, float] = DEFAULT_BANDWIDTH_RANGE,
    max_chunk_elements: int = DEFAULT_CHUNK_ELEMENTS,
) -> DensityField:
    """
    Kernel density grid for internal-convention samples.

    Args:
        samples: (N, 2) array of (lat ∈ [0, 180], lon ∈ [0, 360]), N ≥ 2
        bandwidth_mode: "none" (cross-validation) or "rule_of_thumb"
        grid_size: Breakpoints per axis, ≥ 2
        full_sphere: Cover the whole sphere instead of the padded bounding box
        bandwidth: Explicit bandwidth (skips selection)
        bandwidth_range: Cross-validation search interval
        max_chunk_elements: Memory bound for vectorised evaluation

    Returns:
        DensityField (internal convention)

    Raises:
        InvalidInputError: On invalid samples, grid size, bandwidth or mode
        InvalidInputError: With ``bandwidth_mode="rule_of_thumb"``, when all
            samples coincide and the concentration estimate is unbounded
    """
    estimator = SphericalKDEGrid(
        bandwidth_mode=bandwidth_mode,
        bandwidth=bandwidth,
        bandwidth_range=bandwidth_range,
        max_chunk_elements=max_chunk_elements,
    )
    return estimator.estimate(samples, grid_size=grid_size, full_sphere=full_sphere)


def vmf_density_grid(
    samples: np.ndarray,
    bandwidth_mode: Union[str, BandwidthMode] = BandwidthMode.NONE,
    grid_size: int = 100,
    full_sphere: bool = False,
    bandwidth: Optional[float] = None,
    **kwargs,
) -> DensityField:
    """
    Kernel density grid for public-convention samples.

    Shifts (lat, lon) by +90° / +180° on entry, runs
    :func:`estimate_density`, and shifts the breakpoints back on exit.

    Args:
        samples: (N, 2) array of (lat ∈ [-90, 90], lon ∈ [-180, 180])
        bandwidth_mode: "none" (cross-validation) or "rule_of_thumb"
        grid_size: Breakpoints per axis, ≥ 2
        full_sphere: Cover the whole sphere instead of the padded bounding box
        bandwidth: Explicit bandwidth (skips selection)
        **kwargs: Passed to :func:`estimate_density`

    Returns:
        DensityField (public convention)
    """
    samples = validate_directions(samples, "public", min_samples=2)
    result = estimate_density(
        to_internal(samples),
        bandwidth_mode=bandwidth_mode,
        grid_size=grid_size,
        full_sphere=full_sphere,
        bandwidth=bandwidth,
        **kwargs,
    )
    return result.to_public()
