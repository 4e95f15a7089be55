"""
Configuration management for spherekde.

This module provides Pydantic-based configuration schemas for
estimation, sampling, partitioning and plotting, with support for
loading from TOML and YAML files.
"""

from spherekde.config.schema import (
    Config,
    EstimationConfig,
    SamplingConfig,
    PartitionConfig,
    PlotConfig,
    BandwidthMode,
    CombineMethod,
    ColorMap,
)

__all__ = [
    "Config",
    "EstimationConfig",
    "SamplingConfig",
    "PartitionConfig",
    "PlotConfig",
    "BandwidthMode",
    "CombineMethod",
    "ColorMap",
]
