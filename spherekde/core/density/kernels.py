"""
Von Mises-Fisher kernel on S².

The kernel centred at a unit vector x, evaluated at y, with bandwidth h is

    K_h(x, y) = cpk · exp((x·y) / h²)
    cpk = 1 / (h · (2π)^1.5 · I_0.5(1/h²))

where I_0.5 is the modified Bessel function of the first kind of order 0.5.
I_0.5 has the closed form sqrt(2/(πκ)) · sinh(κ), so the normalising
constant is kept in log space and weights are evaluated as
exp(κ(x·y - 1) + log(cpk) + κ), which stays finite for any positive
bandwidth.
"""

from typing import Union
import numpy as np

__all__ = [
    "VonMisesFisherKernel",
    "log_normalizer",
]


def _concentration(bandwidth: float) -> float:
    # 1/h² is +inf once h² underflows
    with np.errstate(over="ignore", divide="ignore"):
        return float(np.float64(1.0) / np.float64(bandwidth) ** 2)


def log_normalizer(bandwidth: float, scaled: bool = False) -> float:
    """
    Compute log(cpk) for a three-dimensional vMF kernel.

    Uses log I_0.5(κ) = 0.5·log(2/(πκ)) + κ + log((1 - e^(-2κ)) / 2).

    Args:
        bandwidth: Kernel bandwidth h > 0
        scaled: Return log(cpk) + κ instead, which is finite for every h > 0

    Returns:
        Natural log of the normalising constant
    """
    kappa = _concentration(bandwidth)
    log_h = np.log(bandwidth)
    log_scaled_bessel = (
        0.5 * (np.log(2.0 / np.pi) + 2.0 * log_h)
        + np.log(-np.expm1(-2.0 * kappa))
        - np.log(2.0)
    )
    log_cpk_scaled = float(-log_h - 1.5 * np.log(2 * np.pi) - log_scaled_bessel)
    if scaled:
        return log_cpk_scaled
    return log_cpk_scaled - kappa


class VonMisesFisherKernel:
    """
    Von Mises-Fisher kernel for directional data.

    The kernel takes cosines of angles between unit vectors (dot products)
    rather than distances, since that is what the vMF density depends on.

    - h → ∞: approaches the uniform density on the sphere
    - h → 0: concentrates at the kernel centre

    Attributes:
        _bandwidth: Bandwidth h (concentration is 1/h²)
        _log_cpk: Cached log normalising constant
        _log_cpk_scaled: Cached log(cpk) + κ
    """

    def __init__(self, bandwidth: float = 0.5):
        """
        Initialize Von Mises-Fisher kernel.

        Args:
            bandwidth: Bandwidth h > 0
        """
        self._set_bandwidth(bandwidth)

    def _set_bandwidth(self, value: float) -> None:
        if not value > 0:
            raise ValueError("Bandwidth must be positive")
        self._bandwidth = float(value)
        self._kappa = _concentration(self._bandwidth)
        self._log_cpk = log_normalizer(self._bandwidth)
        self._log_cpk_scaled = log_normalizer(self._bandwidth, scaled=True)

    def __call__(
        self, cosine: Union[float, np.ndarray]
    ) -> Union[float, np.ndarray]:
        """
        Compute kernel weight(s).

        Args:
            cosine: Dot product(s) x·y between unit vectors

        Returns:
            Kernel weight(s), non-negative
        """
        return np.exp(self.log_weight(cosine))

    def log_weight(
        self, cosine: Union[float, np.ndarray]
    ) -> Union[float, np.ndarray]:
        """Log kernel weight: κ(x·y - 1) + log(cpk) + κ."""
        return (np.asarray(cosine) - 1.0) * self._kappa + self._log_cpk_scaled

    @property
    def bandwidth(self) -> float:
        return self._bandwidth

    @bandwidth.setter
    def bandwidth(self, value: float) -> None:
        self._set_bandwidth(value)

    @property
    def concentration(self) -> float:
        """Kernel concentration 1/h² (inf when h² underflows)."""
        return self._kappa

    @property
    def log_normalizer(self) -> float:
        return self._log_cpk

    @property
    def normalizer(self) -> float:
        """Normalising constant cpk (may underflow to 0 for tiny bandwidths)."""
        return float(np.exp(self._log_cpk))

    def __repr__(self) -> str:
        return f"VonMisesFisherKernel(bandwidth={self._bandwidth:.4g})"
