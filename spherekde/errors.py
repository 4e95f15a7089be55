"""
Error types raised by spherekde.

Invalid calls are rejected with :class:`InvalidInputError` before any
computation starts. Floating-point overflow of individual density cells is
not fatal: the cell is stored as NaN and a :class:`NumericalOverflowWarning`
is emitted once per call.
"""

__all__ = [
    "InvalidInputError",
    "NumericalOverflowWarning",
]


class InvalidInputError(ValueError):
    """Malformed or out-of-domain parameters passed to an estimation call."""


class NumericalOverflowWarning(RuntimeWarning):
    """One or more grid cells overflowed and were marked missing."""
