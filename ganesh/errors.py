"""Exception hierarchy shared by the minimizer and all solvers.

Every fatal condition raised by ganesh derives from :class:`GaneshError`.
Running out of steps, an external abort or an observer stop are *not*
errors; they end in a non-converged :class:`~ganesh.core.summary.Summary`.
"""

from __future__ import annotations

from typing import Optional


class GaneshError(Exception):
    """Base class for all ganesh errors."""


class DimensionMismatch(GaneshError, ValueError):
    """Lengths of x0, bounds, parameter names or solver data disagree."""


class SolverError(GaneshError):
    """A solver could not initialize or advance."""


class InvalidInitialPoint(SolverError):
    """The objective (or its gradient) cannot be evaluated at the starting point."""


class NumericalError(SolverError):
    """A solver produced a non-finite or otherwise unusable intermediate result."""


class MinimizeError(GaneshError):
    """A minimization run failed. The underlying solver error is in :attr:`cause`."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class InitializationFailed(MinimizeError):
    """``Solver.initialize`` raised a :class:`SolverError`."""


class StepFailed(MinimizeError):
    """``Solver.step`` or ``Solver.postprocess`` raised a :class:`SolverError`."""


__all__ = [
    "DimensionMismatch",
    "GaneshError",
    "InitializationFailed",
    "InvalidInitialPoint",
    "MinimizeError",
    "NumericalError",
    "SolverError",
    "StepFailed",
]
