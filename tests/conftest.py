"""Pytest configuration and shared fixtures for ganesh tests.

This module provides:
- Deterministic RNG fixtures for numpy and torch
- Counting objectives used to check evaluation counters
"""

import os

import numpy as np
import pytest
import torch

from ganesh import Function


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    This ensures tests are reproducible while allowing override for debugging.

    Returns:
        A seeded numpy.random.Generator instance.
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function")
def torch_rng() -> torch.Generator:
    """Provide a deterministic torch RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).

    Returns:
        A seeded torch.Generator instance.
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    generator = torch.Generator(device="cpu")
    generator.manual_seed(seed)
    return generator


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds(rng: np.random.Generator, torch_rng: torch.Generator) -> None:
    """Auto-use fixture to set global random seeds for reproducibility."""
    np.random.seed(int(os.environ.get("TEST_RNG_SEED", "0")))
    torch.manual_seed(int(os.environ.get("TEST_RNG_SEED", "0")))


class CountingRosenbrock(Function):
    """Two-dimensional Rosenbrock that records every evaluation."""

    def __init__(self) -> None:
        self.calls = 0
        self.points = []

    def evaluate(self, x, user_data=None):
        self.calls += 1
        self.points.append(np.array(x, dtype=float))
        return float((1.0 - x[0]) ** 2 + 100.0 * (x[1] - x[0] ** 2) ** 2)


@pytest.fixture
def counting_rosenbrock() -> CountingRosenbrock:
    return CountingRosenbrock()
