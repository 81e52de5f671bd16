"""Step hooks that can be attached to a :class:`~ganesh.core.minimizer.Minimizer`.

Post-step hooks are called as ``hook(step, status)``; returning ``True``
asks the minimizer to stop after the current step.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

import numpy as np

from ..logging import get_logger
from .summary import Summary

StatusHook = Callable[[Summary], None]
StepHook = Callable[[int, Summary], Optional[bool]]


class DebugObserver:
    """Log the running status after every step."""

    def __init__(self, level: int = logging.DEBUG, every: int = 1) -> None:
        if every < 1:
            raise ValueError("every must be >= 1")
        self.level = level
        self.every = every
        self._logger = get_logger(__name__)

    def __call__(self, step: int, status: Summary) -> bool:
        if step % self.every == 0:
            self._logger.log(
                self.level,
                "step %d: fx=%.6g x=%s cost_evals=%d gradient_evals=%d",
                step,
                status.fx,
                np.array2string(status.x, precision=6),
                status.cost_evals,
                status.gradient_evals,
            )
        return False


class TrackingObserver:
    """Keep a copy of ``(x, fx)`` after every step."""

    def __init__(self) -> None:
        self.history: List[tuple[np.ndarray, float]] = []

    def __call__(self, step: int, status: Summary) -> bool:
        self.history.append((status.x.copy(), float(status.fx)))
        return False


class MaxEvalsObserver:
    """Stop the run once ``cost_evals`` reaches a limit."""

    def __init__(self, max_cost_evals: int) -> None:
        self.max_cost_evals = max_cost_evals

    def __call__(self, step: int, status: Summary) -> bool:
        return status.cost_evals >= self.max_cost_evals


__all__ = [
    "DebugObserver",
    "MaxEvalsObserver",
    "StatusHook",
    "StepHook",
    "TrackingObserver",
]
