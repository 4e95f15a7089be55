import numpy as np
import pytest
from scipy.integrate import trapezoid
from scipy.special import iv

from spherekde.core.density.kernels import VonMisesFisherKernel, log_normalizer


@pytest.mark.parametrize("h", [0.3, 0.5, 1.0, 2.0])
def test_normalizer_matches_bessel_formula(h):
    cpk = 1.0 / (h * (2 * np.pi) ** 1.5 * iv(0.5, 1.0 / h ** 2))
    assert log_normalizer(h) == pytest.approx(np.log(cpk), rel=1e-10)


@pytest.mark.parametrize("h", [0.05, 0.2, 0.5, 1.5])
def test_kernel_integrates_to_one(h):
    # ∫ cpk·exp(k·t) dΩ = cpk · 2π · ∫₋₁¹ exp(k·t) dt
    kernel = VonMisesFisherKernel(bandwidth=h)
    t = np.linspace(-1.0, 1.0, 200001)
    integral = 2 * np.pi * trapezoid(kernel(t), t)
    assert integral == pytest.approx(1.0, rel=1e-4)


def test_small_bandwidth_stays_finite():
    kernel = VonMisesFisherKernel(bandwidth=0.01)
    peak = kernel(1.0)
    assert np.isfinite(peak)
    # Near a point mass: cpk·e^k → k / (2π)
    assert peak == pytest.approx(1e4 / (2 * np.pi), rel=1e-6)
    assert kernel(0.0) == 0.0


def test_weights_decrease_with_angle():
    kernel = VonMisesFisherKernel(bandwidth=0.4)
    weights = kernel(np.cos(np.radians([0.0, 10.0, 45.0, 90.0, 180.0])))
    assert np.all(np.diff(weights) < 0)
    assert np.all(weights >= 0)


def test_bandwidth_setter_updates_normalizer():
    kernel = VonMisesFisherKernel(bandwidth=0.5)
    kernel.bandwidth = 0.8
    assert kernel.log_normalizer == pytest.approx(log_normalizer(0.8))
    assert kernel.concentration == pytest.approx(1.0 / 0.64)


@pytest.mark.parametrize("h", [0.0, -0.1])
def test_rejects_non_positive_bandwidth(h):
    with pytest.raises(ValueError):
        VonMisesFisherKernel(bandwidth=h)
    kernel = VonMisesFisherKernel()
    with pytest.raises(ValueError):
        kernel.bandwidth = h


@pytest.mark.parametrize("h", [1e-5, 1e-8, 1e-170])
def test_tiny_bandwidth_normalizer(h):
    kernel = VonMisesFisherKernel(bandwidth=h)
    scaled = log_normalizer(h, scaled=True)
    assert np.isfinite(scaled)
    # log(cpk·e^κ) → log(κ / 2π) as κ → ∞
    assert scaled == pytest.approx(-2 * np.log(h) - np.log(2 * np.pi), rel=1e-9)
    assert kernel(0.5) == 0.0
    assert kernel.log_weight(1.0 - 1e-3) < scaled
