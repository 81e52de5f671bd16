"""Tests for the bundled test objectives."""

import numpy as np
import pytest

from ganesh.errors import DimensionMismatch
from ganesh.test_functions import MultivariateNormal, Rosenbrock
from ganesh.utils import approx_grad


def test_rosenbrock_minimum_is_zero():
    f = Rosenbrock(4)
    np.testing.assert_allclose(f.minimum, np.ones(4))
    assert f.evaluate(f.minimum) == 0.0
    assert f.evaluate(np.zeros(4)) == pytest.approx(3.0)


def test_rosenbrock_gradient_matches_finite_differences(rng):
    f = Rosenbrock(3)
    x = rng.uniform(-1.5, 1.5, size=3)
    np.testing.assert_allclose(f.gradient(x), approx_grad(f.evaluate, x), rtol=1e-5, atol=1e-5)
    assert f.has_gradient


def test_rosenbrock_rejects_one_dimension():
    with pytest.raises(ValueError, match="n >= 2"):
        Rosenbrock(1)


def test_multivariate_normal_value_and_gradient():
    cov = np.array([[2.0, 0.5], [0.5, 1.0]])
    f = MultivariateNormal([1.0, -1.0], cov)
    assert f.evaluate([1.0, -1.0]) == 0.0
    x = np.array([0.3, 0.7])
    np.testing.assert_allclose(f.gradient(x), approx_grad(f.evaluate, x), rtol=1e-6, atol=1e-8)
    np.testing.assert_allclose(f.precision @ cov, np.eye(2), atol=1e-12)


def test_multivariate_normal_validates_covariance():
    with pytest.raises(DimensionMismatch):
        MultivariateNormal([0.0, 0.0], np.eye(3))
    with pytest.raises(ValueError, match="symmetric"):
        MultivariateNormal([0.0, 0.0], [[1.0, 0.2], [0.0, 1.0]])
    with pytest.raises(ValueError, match="positive definite"):
        MultivariateNormal([0.0, 0.0], [[1.0, 2.0], [2.0, 1.0]])
