"""Ensemble slice sampler (Karamanis & Beutler, 2021).

Each walker performs a one-dimensional slice-sampling update along a
direction built from the rest of the ensemble. The scale ``mu`` of those
directions is tuned during the first ``n_adaptive`` steps so that stepping
out and shrinking happen about equally often.

References:
    - Karamanis, M. & Beutler, F. (2021). Ensemble slice sampling.
      Statistics and Computing 31, 61.
    - Neal, R. M. (2003). Slice sampling. Ann. Statist. 31(3), 705-767.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

import numpy as np

from ...core.function import Function
from ...core.summary import Summary
from ...logging import get_logger
from .autocorr import AutocorrelationTerminator
from .ensemble import EnsembleSampler, choose_move, normalize_moves

logger = get_logger(__name__)

MAX_SHRINK_STEPS = 1000


class DifferentialMove:
    """Direction along the difference of two random complementary walkers."""

    def direction(self, others: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        i, j = rng.choice(len(others), size=2, replace=False)
        return others[i] - others[j]


class GaussianMove:
    """Direction drawn from a normal with the complementary ensemble's covariance."""

    def direction(self, others: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        cov = np.atleast_2d(np.cov(others, rowvar=False))
        return rng.multivariate_normal(np.zeros(others.shape[1]), cov, method="eigh")


class ESS(EnsembleSampler):
    """Ensemble slice sampler.

    Parameters
    ----------
    moves:
        ``(move, weight)`` pairs; one move is chosen per step. Defaults to the
        differential move.
    mu:
        Initial scale of the slice directions.
    n_adaptive:
        Number of initial steps during which ``mu`` is tuned.
    max_slice_steps:
        Maximum total number of stepping-out expansions per update.
    """

    def __init__(
        self,
        moves: Optional[Sequence[Tuple[Any, float]]] = None,
        mu: float = 1.0,
        n_adaptive: int = 0,
        max_slice_steps: int = 10000,
        n_walkers: Optional[int] = None,
        walkers: Optional[np.ndarray] = None,
        ball_scale: float = 0.1,
        rng: Optional[np.random.Generator] = None,
        terminator: Optional[AutocorrelationTerminator] = None,
    ) -> None:
        super().__init__(n_walkers, walkers, ball_scale, rng, terminator)
        if mu <= 0:
            raise ValueError("mu must be positive")
        if n_adaptive < 0:
            raise ValueError("n_adaptive must be >= 0")
        if max_slice_steps < 1:
            raise ValueError("max_slice_steps must be >= 1")
        self.moves = normalize_moves(moves, DifferentialMove())
        self.initial_mu = float(mu)
        self.mu = float(mu)
        self.n_adaptive = int(n_adaptive)
        self.max_slice_steps = int(max_slice_steps)

    @staticmethod
    def differential() -> DifferentialMove:
        return DifferentialMove()

    @staticmethod
    def gaussian() -> GaussianMove:
        return GaussianMove()

    def _reset_state(self, n: int) -> None:
        self.mu = self.initial_mu

    def _slice(
        self,
        k: int,
        eta: np.ndarray,
        func: Function,
        user_data: Any,
        status: Summary,
    ) -> Tuple[int, int]:
        """Slice-sample walker ``k`` along ``eta``; return (expansions, contractions)."""
        rng = self.rng
        x = self.positions[k]
        threshold = self.costs[k] + rng.exponential()

        def cost_at(t: float) -> float:
            return self._cost(x + t * eta, func, user_data, status)

        left = -rng.random()
        right = left + 1.0
        j = int(np.floor(self.max_slice_steps * rng.random()))
        m = self.max_slice_steps - 1 - j
        n_expand = 0
        while j > 0 and cost_at(left) < threshold:
            left -= 1.0
            j -= 1
            n_expand += 1
        while m > 0 and cost_at(right) < threshold:
            right += 1.0
            m -= 1
            n_expand += 1

        n_contract = 0
        for _ in range(MAX_SHRINK_STEPS):
            t = left + (right - left) * rng.random()
            cost = cost_at(t)
            if cost < threshold:
                self.positions[k] = x + t * eta
                self.costs[k] = cost
                return n_expand, n_contract
            if t < 0:
                left = t
            else:
                right = t
            n_contract += 1
        logger.warning("Slice shrinking did not terminate for walker %d; keeping position", k)
        return n_expand, n_contract

    def _advance(self, i_step: int, func: Function, user_data: Any, status: Summary) -> None:
        move = choose_move(self.moves, self.rng)
        n_expand = 0
        n_contract = 0
        for k in range(len(self.positions)):
            others = np.delete(self.positions, k, axis=0)
            eta = self.mu * move.direction(others, self.rng)
            e, c = self._slice(k, eta, func, user_data, status)
            n_expand += e
            n_contract += c
        if i_step < self.n_adaptive and n_expand + n_contract > 0:
            # mu must stay positive when no expansion happened
            n_expand = max(n_expand, 1)
            self.mu = 2.0 * self.mu * n_expand / (n_expand + n_contract)


__all__ = ["DifferentialMove", "ESS", "GaussianMove", "MAX_SHRINK_STEPS"]
