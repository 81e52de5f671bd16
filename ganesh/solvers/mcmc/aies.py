"""Affine-invariant ensemble sampler (Goodman & Weare, 2010)."""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

import numpy as np

from ...core.function import Function
from ...core.summary import Summary
from .autocorr import AutocorrelationTerminator
from .ensemble import EnsembleSampler, choose_move, normalize_moves


class StretchMove:
    """Stretch along the line to a random complementary walker.

    ``z`` is drawn from ``g(z) ∝ 1/sqrt(z)`` on ``[1/a, a]``.
    """

    def __init__(self, a: float = 2.0) -> None:
        if a <= 1:
            raise ValueError(f"Stretch parameter a must be > 1, got {a}")
        self.a = float(a)

    def propose(
        self, x: np.ndarray, others: np.ndarray, rng: np.random.Generator
    ) -> Tuple[np.ndarray, float]:
        partner = others[rng.integers(len(others))]
        z = ((self.a - 1.0) * rng.random() + 1.0) ** 2 / self.a
        proposal = partner + z * (x - partner)
        return proposal, (x.size - 1) * np.log(z)


class WalkMove:
    """Gaussian step with the covariance of a random subset of walkers."""

    def __init__(self, n_subset: Optional[int] = None) -> None:
        if n_subset is not None and n_subset < 2:
            raise ValueError(f"n_subset must be >= 2, got {n_subset}")
        self.n_subset = n_subset

    def propose(
        self, x: np.ndarray, others: np.ndarray, rng: np.random.Generator
    ) -> Tuple[np.ndarray, float]:
        size = len(others) if self.n_subset is None else min(self.n_subset, len(others))
        subset = others[rng.choice(len(others), size=size, replace=False)]
        centered = subset - subset.mean(axis=0)
        weights = rng.standard_normal(size)
        return x + weights @ centered, 0.0


class AIES(EnsembleSampler):
    """Affine-invariant ensemble sampler.

    Each step picks one move from ``moves`` (``(move, weight)`` pairs,
    default stretch only) and updates every walker in turn against the rest
    of the ensemble, accepting with probability
    ``min(1, exp(log_factor + f(x) - f(y)))``.
    """

    def __init__(
        self,
        moves: Optional[Sequence[Tuple[Any, float]]] = None,
        n_walkers: Optional[int] = None,
        walkers: Optional[np.ndarray] = None,
        ball_scale: float = 0.1,
        rng: Optional[np.random.Generator] = None,
        terminator: Optional[AutocorrelationTerminator] = None,
    ) -> None:
        super().__init__(n_walkers, walkers, ball_scale, rng, terminator)
        self.moves = normalize_moves(moves, StretchMove())
        self.n_accepted = 0
        self.n_proposed = 0

    @staticmethod
    def stretch(a: float = 2.0) -> StretchMove:
        return StretchMove(a)

    @staticmethod
    def walk(n_subset: Optional[int] = None) -> WalkMove:
        return WalkMove(n_subset)

    @property
    def acceptance_fraction(self) -> float:
        if self.n_proposed == 0:
            return float("nan")
        return self.n_accepted / self.n_proposed

    def _reset_state(self, n: int) -> None:
        self.n_accepted = 0
        self.n_proposed = 0

    def _advance(self, i_step: int, func: Function, user_data: Any, status: Summary) -> None:
        move = choose_move(self.moves, self.rng)
        n_walkers = len(self.positions)
        for k in range(n_walkers):
            others = np.delete(self.positions, k, axis=0)
            proposal, log_factor = move.propose(self.positions[k], others, self.rng)
            cost = self._cost(proposal, func, user_data, status)
            self.n_proposed += 1
            if not np.isfinite(cost):
                continue
            log_accept = log_factor + self.costs[k] - cost
            if log_accept >= 0 or np.log(self.rng.random()) < log_accept:
                self.positions[k] = proposal
                self.costs[k] = cost
                self.n_accepted += 1


__all__ = ["AIES", "StretchMove", "WalkMove"]
