"""
Pydantic configuration schemas for spherekde.

This module defines all configuration classes using Pydantic v2 for
type-safe configuration management with validation and serialization.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from spherekde.core.density.bandwidth import BandwidthMode
from spherekde.core.density.partition import CombineMethod

__all__ = [
    "EstimationConfig",
    "SamplingConfig",
    "PartitionConfig",
    "PlotConfig",
    "Config",
    "BandwidthMode",
    "CombineMethod",
    "ColorMap",
]


class ColorMap(str, Enum):
    """Available colormaps for density rendering."""

    VIRIDIS = "viridis"
    PLASMA = "plasma"
    MAGMA = "magma"
    INFERNO = "inferno"
    HOT = "hot"
    TURBO = "turbo"
    CIVIDIS = "cividis"
    YLORRD = "YlOrRd"


class EstimationConfig(BaseModel):
    """Configuration for the kernel density grid."""

    model_config = ConfigDict(extra="forbid")

    grid_size: int = Field(
        default=100,
        ge=2,
        description="Number of breakpoints per axis",
    )
    bandwidth_mode: BandwidthMode = Field(
        default=BandwidthMode.NONE,
        description="Bandwidth rule: 'none' (cross-validation) or 'rule_of_thumb'",
    )
    bandwidth: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Explicit bandwidth (overrides bandwidth_mode)",
    )
    bandwidth_range: Tuple[float, float] = Field(
        default=(0.1, 1.0),
        description="Cross-validation search interval (min, max)",
    )
    full_sphere: bool = Field(
        default=False,
        description="Evaluate over the whole sphere instead of the padded sample bounding box",
    )
    convention: Literal["public", "internal"] = Field(
        default="public",
        description="Coordinate convention of input samples",
    )
    max_chunk_elements: int = Field(
        default=2 ** 22,
        ge=1,
        description="Maximum kernel values held in memory at once",
    )

    @field_validator("bandwidth_range", mode="before")
    @classmethod
    def validate_range(cls, v: Any) -> Tuple[float, float]:
        """Validate search interval."""
        if isinstance(v, (list, tuple)) and len(v) == 2:
            low, high = float(v[0]), float(v[1])
            if not 0 < low < high:
                raise ValueError("Bandwidth range must satisfy 0 < min < max")
            return (low, high)
        raise ValueError("Range must be a tuple of (min, max)")


class SamplingConfig(BaseModel):
    """Configuration for synthetic vMF draws."""

    model_config = ConfigDict(extra="forbid")

    n_samples: int = Field(
        default=1000,
        ge=1,
        description="Number of directions to draw",
    )
    mean_lat: float = Field(
        default=0.0,
        ge=-90.0,
        le=90.0,
        description="Mean latitude in degrees",
    )
    mean_lon: float = Field(
        default=0.0,
        ge=-180.0,
        le=180.0,
        description="Mean longitude in degrees",
    )
    kappa: float = Field(
        default=10.0,
        gt=0.0,
        description="Concentration parameter",
    )
    seed: Optional[int] = Field(
        default=None,
        description="Random seed (None for fresh entropy)",
    )


class PartitionConfig(BaseModel):
    """Configuration for the partition-and-combine approximation."""

    model_config = ConfigDict(extra="forbid")

    n_groups: int = Field(
        default=10,
        ge=1,
        description="Number of disjoint sample groups",
    )
    combine: CombineMethod = Field(
        default=CombineMethod.MAX,
        description="Cell-wise reduction: sum, mean, max or min",
    )
    seed: Optional[int] = Field(
        default=None,
        description="Random seed for the partition",
    )
    n_jobs: int = Field(
        default=1,
        ge=1,
        description="Worker threads for per-group estimation",
    )


class PlotConfig(BaseModel):
    """Configuration for density plots."""

    model_config = ConfigDict(extra="forbid")

    colormap: ColorMap = Field(
        default=ColorMap.MAGMA,
        description="Colormap for density rendering",
    )
    levels: int = Field(
        default=10,
        ge=2,
        le=100,
        description="Number of contour levels",
    )
    projection: Literal["rectangular", "mollweide"] = Field(
        default="rectangular",
        description="Axes projection for heatmaps",
    )
    figsize: Tuple[float, float] = Field(
        default=(10.0, 6.0),
        description="Figure size in inches (width, height)",
    )
    dpi: int = Field(
        default=150,
        ge=50,
        le=600,
        description="Output resolution in dots per inch",
    )

    @field_validator("figsize", mode="before")
    @classmethod
    def validate_figsize(cls, v: Any) -> Tuple[float, float]:
        """Validate figure size tuple."""
        if isinstance(v, (list, tuple)) and len(v) == 2:
            return (float(v[0]), float(v[1]))
        raise ValueError("Figure size must be (width, height)")


class Config(BaseModel):
    """
    Main configuration class for spherekde.

    This class combines all sub-configurations and provides methods
    for loading from and saving to TOML/YAML files.

    Example:
        >>> config = Config.from_toml("spherekde.toml")
        >>> config = Config(
        ...     estimation=EstimationConfig(grid_size=50, bandwidth_mode="rule_of_thumb"),
        ...     sampling=SamplingConfig(kappa=10, seed=1),
        ... )
    """

    model_config = ConfigDict(extra="forbid")

    estimation: EstimationConfig = Field(
        default_factory=EstimationConfig,
        description="Estimation configuration",
    )
    sampling: SamplingConfig = Field(
        default_factory=SamplingConfig,
        description="Sampling configuration",
    )
    partition: PartitionConfig = Field(
        default_factory=PartitionConfig,
        description="Partition-and-combine configuration",
    )
    plot: PlotConfig = Field(
        default_factory=PlotConfig,
        description="Plot configuration",
    )

    @model_validator(mode="after")
    def check_partition_seed(self) -> "Config":
        """Default the partition seed to the sampling seed."""
        if self.partition.seed is None and self.sampling.seed is not None:
            self.partition.seed = self.sampling.seed
        return self

    @classmethod
    def from_toml(cls, path: Union[str, Path]) -> "Config":
        """
        Load configuration from TOML file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance
        """
        import sys

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        # Use tomli for Python < 3.11, tomllib for >= 3.11
        if sys.version_info >= (3, 11):
            import tomllib

            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            import tomli

            with open(path, "rb") as f:
                data = tomli.load(f)

        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config instance
        """
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Config":
        """
        Load configuration from file (auto-detect format).

        Args:
            path: Path to configuration file (.toml or .yaml/.yml)

        Returns:
            Config instance
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == ".toml":
            return cls.from_toml(path)
        elif suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        else:
            raise ValueError(f"Unsupported config format: {suffix}")

    def to_toml(self, path: Union[str, Path]) -> None:
        """
        Save configuration to TOML file.

        Args:
            path: Output path
        """
        import tomli_w

        path = Path(path)
        data = _drop_none(self.model_dump(mode="json"))

        with open(path, "wb") as f:
            tomli_w.dump(data, f)

    def to_yaml(self, path: Union[str, Path]) -> None:
        """
        Save configuration to YAML file.

        Args:
            path: Output path
        """
        import yaml

        path = Path(path)
        data = self.model_dump(mode="json")

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def _drop_none(obj: Any) -> Any:
    """Recursively remove None values, which TOML cannot represent."""
    if isinstance(obj, dict):
        return {k: _drop_none(v) for k, v in obj.items() if v is not None}
    elif isinstance(obj, list):
        return [_drop_none(v) for v in obj]
    return obj
