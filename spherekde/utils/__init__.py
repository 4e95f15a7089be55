"""
Utility modules for spherekde.

Provides sample loading and density field persistence.
"""

from spherekde.utils.io import (
    load_samples,
    save_samples,
    load_density,
    save_density,
)

__all__ = [
    "load_samples",
    "save_samples",
    "load_density",
    "save_density",
]
