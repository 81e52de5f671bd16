"""Negative log density of a multivariate normal distribution."""

from __future__ import annotations

from typing import Any

import numpy as np

from ..config import FLOAT, as_float_array
from ..core.function import Function
from ..errors import DimensionMismatch


class MultivariateNormal(Function):
    """``f(x) = (x - mean)^T cov^{-1} (x - mean) / 2``.

    Minimizing gives ``mean``; sampling ``exp(-f)`` gives ``N(mean, cov)``.
    """

    def __init__(self, mean, cov) -> None:
        self.mean = as_float_array(mean)
        cov = np.atleast_2d(np.asarray(cov, dtype=FLOAT))
        n = self.mean.size
        if cov.shape != (n, n):
            raise DimensionMismatch(f"cov has shape {cov.shape}, expected {(n, n)}")
        if not np.allclose(cov, cov.T):
            raise ValueError("cov must be symmetric")
        if np.any(np.linalg.eigvalsh(cov) <= 0):
            raise ValueError("cov must be positive definite")
        self.cov = cov
        self.precision = np.linalg.inv(cov)

    def evaluate(self, x: np.ndarray, user_data: Any = None) -> float:
        d = np.asarray(x, dtype=FLOAT) - self.mean
        return float(0.5 * d @ self.precision @ d)

    def gradient(self, x: np.ndarray, user_data: Any = None) -> np.ndarray:
        return self.precision @ (np.asarray(x, dtype=FLOAT) - self.mean)


__all__ = ["MultivariateNormal"]
