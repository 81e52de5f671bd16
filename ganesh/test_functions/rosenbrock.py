"""The generalized Rosenbrock function."""

from __future__ import annotations

from typing import Any

import numpy as np

from ..config import FLOAT
from ..core.function import Function


class Rosenbrock(Function):
    """``f(x) = sum_i 100 (x_{i+1} - x_i^2)^2 + (1 - x_i)^2`` for ``n >= 2``.

    The global minimum is ``f(1, ..., 1) = 0``.
    """

    def __init__(self, n: int = 2) -> None:
        if n < 2:
            raise ValueError(f"Rosenbrock requires n >= 2, got {n}")
        self.n = int(n)

    def evaluate(self, x: np.ndarray, user_data: Any = None) -> float:
        x = np.asarray(x, dtype=FLOAT)
        return float(np.sum(100.0 * (x[1:] - x[:-1] ** 2) ** 2 + (1.0 - x[:-1]) ** 2))

    def gradient(self, x: np.ndarray, user_data: Any = None) -> np.ndarray:
        x = np.asarray(x, dtype=FLOAT)
        grad = np.zeros_like(x)
        inner = x[1:] - x[:-1] ** 2
        grad[:-1] = -400.0 * x[:-1] * inner - 2.0 * (1.0 - x[:-1])
        grad[1:] += 200.0 * inner
        return grad

    @property
    def minimum(self) -> np.ndarray:
        return np.ones(self.n, dtype=FLOAT)


__all__ = ["Rosenbrock"]
