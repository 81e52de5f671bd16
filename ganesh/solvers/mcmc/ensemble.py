"""Shared machinery for ensemble MCMC samplers.

The objective is read as a negative log density, so the samplers draw from
``p(x) ∝ exp(-f(x))``. Walkers move in internal coordinates; the recorded
chain holds external coordinates so it can be used directly.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, List, Optional

import numpy as np

from ...config import FLOAT, as_float_array
from ...core.bound import Bounds
from ...core.function import Function
from ...core.point import Point
from ...core.summary import Summary
from ...errors import DimensionMismatch
from ...logging import get_logger
from ...utils import std_from_covariance
from ..base import Solver, check_dimension
from .autocorr import AutocorrelationTerminator

logger = get_logger(__name__)


def default_n_walkers(n: int) -> int:
    return max(2 * n + 2, 4)


def choose_move(moves: list, rng: np.random.Generator):
    """Pick one ``(move, weight)`` entry at random, proportionally to weight."""
    weights = np.array([w for _, w in moves], dtype=FLOAT)
    index = int(rng.choice(len(moves), p=weights / weights.sum()))
    return moves[index][0]


def normalize_moves(moves, default) -> list:
    if moves is None:
        return [(default, 1.0)]
    moves = [(m, float(w)) for m, w in moves]
    if not moves:
        raise ValueError("At least one move is required")
    if any(w < 0 for _, w in moves) or sum(w for _, w in moves) <= 0:
        raise ValueError("Move weights must be non-negative with a positive sum")
    return moves


class EnsembleSampler(Solver):
    """Base class for samplers that evolve an ensemble of walkers.

    Parameters
    ----------
    n_walkers:
        Ensemble size. Defaults to ``max(2n + 2, 4)``.
    walkers:
        Explicit starting positions, shape (n_walkers, n), external
        coordinates. Overrides the Gaussian ball around x0.
    ball_scale:
        Standard deviation of the Gaussian ball (internal coordinates).
    rng:
        Random generator. Defaults to ``np.random.default_rng(0)``.
    terminator:
        Optional stopping rule. Without one runs last until ``max_steps``.
    """

    def __init__(
        self,
        n_walkers: Optional[int] = None,
        walkers: Optional[np.ndarray] = None,
        ball_scale: float = 0.1,
        rng: Optional[np.random.Generator] = None,
        terminator: Optional[AutocorrelationTerminator] = None,
    ) -> None:
        if n_walkers is not None and n_walkers < 3:
            raise ValueError(f"n_walkers must be >= 3, got {n_walkers}")
        if ball_scale <= 0:
            raise ValueError("ball_scale must be positive")
        self.n_walkers = n_walkers
        self.initial_walkers = None if walkers is None else np.array(walkers, dtype=FLOAT)
        self.ball_scale = float(ball_scale)
        self.rng = rng if rng is not None else np.random.default_rng(0)
        self.terminator = terminator
        self.positions: Optional[np.ndarray] = None
        self.costs: Optional[np.ndarray] = None
        self.best: Optional[Point] = None
        self._chain: List[np.ndarray] = []
        self._chain_costs: List[np.ndarray] = []
        self._bounds: Optional[Bounds] = None

    # Evaluation

    def _cost(self, z: np.ndarray, func: Function, user_data: Any, status: Summary) -> float:
        """Objective at the internal point ``z``; non-finite values become +inf."""
        point = Point(z)
        point.evaluate(func, user_data, status, self._internal_bounds(self._bounds))
        if point.rank < self.best.rank:
            self.best = point
        return point.rank

    # Initialization

    def _start_positions(self, x0: np.ndarray, n: int) -> np.ndarray:
        if self.initial_walkers is not None:
            walkers = self.initial_walkers
            if walkers.ndim != 2 or walkers.shape[1] != n:
                raise DimensionMismatch(
                    f"{self.name}: walkers have shape {walkers.shape}, expected (n_walkers, {n})"
                )
            if walkers.shape[0] < 3:
                raise ValueError(f"{self.name}: at least 3 walkers are required")
            bounds = self._internal_bounds(self._bounds)
            if bounds is None:
                return walkers.copy()
            return np.array([bounds.to_internal(w) for w in walkers], dtype=FLOAT)
        n_walkers = self.n_walkers or default_n_walkers(n)
        ball = self.rng.standard_normal((n_walkers, n)) * self.ball_scale
        ball[0] = 0.0
        return x0[None, :] + ball

    def initialize(
        self,
        func: Function,
        x0: np.ndarray,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> None:
        n = check_dimension(x0, bounds, self.name)
        self._bounds = bounds
        positions = self._start_positions(as_float_array(x0), n)
        first = Point(positions[0])
        self._evaluate_initial(first, func, bounds, user_data, status)
        status.with_position(first.x, first.fx)
        self.best = first
        costs = [first.rank]
        for z in positions[1:]:
            costs.append(self._cost(z, func, user_data, status))
        self.positions = np.array(positions, dtype=FLOAT)
        self.costs = np.array(costs, dtype=FLOAT)
        self._chain = []
        self._chain_costs = []
        if self.terminator is not None:
            self.terminator.reset()
        self._reset_state(n)
        logger.debug("%s initialized with %d walkers in %d dimensions", self.name, len(costs), n)

    def _reset_state(self, n: int) -> None:
        """Hook for sampler-specific state. No-op by default."""

    # Iteration

    @abstractmethod
    def _advance(self, i_step: int, func: Function, user_data: Any, status: Summary) -> None:
        """Move every walker once, updating :attr:`positions` and :attr:`costs`."""

    def _external(self, positions: np.ndarray) -> np.ndarray:
        bounds = self._internal_bounds(self._bounds)
        if bounds is None:
            return positions.copy()
        return np.array([bounds.to_external(z) for z in positions], dtype=FLOAT)

    def step(
        self,
        i_step: int,
        func: Function,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> None:
        self._advance(i_step, func, user_data, status)
        self._chain.append(self._external(self.positions))
        self._chain_costs.append(self.costs.copy())
        status.with_position(self.best.x, self.best.fx)

    def check_convergence(
        self,
        func: Function,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> bool:
        if self.terminator is None or self.n_steps % self.terminator.n_check != 0:
            return False
        converged, message = self.terminator.check(self.get_chain())
        if converged:
            status.message = message
        return converged

    def postprocess(
        self,
        func: Function,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> None:
        n = self.positions.shape[1]
        n_steps = len(self._chain)
        if n_steps < 2:
            status.std = np.full(n, np.nan, dtype=FLOAT)
            return
        samples = self.get_flat_chain(burn=n_steps // 2)
        cov = np.atleast_2d(np.cov(samples, rowvar=False)).astype(FLOAT)
        status.covariance = cov
        status.std = std_from_covariance(cov)

    # Results

    @property
    def n_steps(self) -> int:
        return len(self._chain)

    def get_chain(self, burn: int = 0, thin: int = 1) -> np.ndarray:
        """Recorded samples with shape (n_walkers, n_steps, n_params)."""
        if burn < 0 or thin < 1:
            raise ValueError("burn must be >= 0 and thin >= 1")
        if not self._chain:
            n_walkers = 0 if self.positions is None else self.positions.shape[0]
            n = 0 if self.positions is None else self.positions.shape[1]
            return np.zeros((n_walkers, 0, n), dtype=FLOAT)
        chain = np.stack(self._chain, axis=1)
        return chain[:, burn::thin, :]

    def get_flat_chain(self, burn: int = 0, thin: int = 1) -> np.ndarray:
        """Samples from every walker, shape (n_walkers * n_kept, n_params)."""
        chain = self.get_chain(burn, thin)
        return chain.reshape(-1, chain.shape[-1])

    def get_costs(self, burn: int = 0, thin: int = 1) -> np.ndarray:
        """Objective values matching :meth:`get_chain`, shape (n_walkers, n_steps)."""
        if not self._chain_costs:
            return np.zeros((0, 0), dtype=FLOAT)
        return np.stack(self._chain_costs, axis=1)[:, burn::thin]


__all__ = ["EnsembleSampler", "choose_move", "default_n_walkers", "normalize_moves"]
