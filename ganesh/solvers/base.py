"""The interface every solver implements.

A :class:`Solver` owns its private algorithmic state and advances one
iteration per :meth:`Solver.step`. It never looks at the step limit or the
abort signal; both belong to :class:`~ganesh.core.minimizer.Minimizer`.

Solvers with ``uses_transform = True`` work in internal (unbounded)
coordinates: the minimizer hands them an internal ``x0`` and they convert
through ``bounds`` before every evaluation. Solvers with native box support
set ``uses_transform = False`` and receive external coordinates.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

import numpy as np

from ..errors import DimensionMismatch, InvalidInitialPoint

if TYPE_CHECKING:
    from ..core.bound import Bounds
    from ..core.function import Function
    from ..core.point import Point
    from ..core.summary import Summary


class Solver(ABC):
    """Base class for minimization and sampling algorithms."""

    #: Whether bounds are handled through the internal/external transform.
    uses_transform: bool = True

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def initialize(
        self,
        func: "Function",
        x0: np.ndarray,
        bounds: Optional["Bounds"],
        user_data: Any,
        status: "Summary",
    ) -> None:
        """Seed the algorithm at ``x0`` and evaluate the starting point.

        Raises:
            DimensionMismatch: If ``x0`` disagrees with solver-specific data.
            InvalidInitialPoint: If the objective cannot be evaluated at ``x0``.
        """

    @abstractmethod
    def step(
        self,
        i_step: int,
        func: "Function",
        bounds: Optional["Bounds"],
        user_data: Any,
        status: "Summary",
    ) -> None:
        """Advance by exactly one iteration and record the best point in ``status``."""

    @abstractmethod
    def check_convergence(
        self,
        func: "Function",
        bounds: Optional["Bounds"],
        user_data: Any,
        status: "Summary",
    ) -> bool:
        """Return True when the solver's own termination criterion holds."""

    def postprocess(
        self,
        func: "Function",
        bounds: Optional["Bounds"],
        user_data: Any,
        status: "Summary",
    ) -> None:
        """Finalize the status once the loop has ended. No-op by default."""

    def _internal_bounds(self, bounds: Optional["Bounds"]) -> Optional["Bounds"]:
        """Bounds to convert through before evaluating, or None."""
        return bounds if self.uses_transform else None

    def _evaluate_initial(
        self,
        point: "Point",
        func: "Function",
        bounds: Optional["Bounds"],
        user_data: Any,
        status: "Summary",
    ) -> float:
        """Evaluate the starting point, turning any failure into InvalidInitialPoint."""
        try:
            fx = point.evaluate(func, user_data, status, self._internal_bounds(bounds))
        except Exception as err:
            raise InvalidInitialPoint(
                f"{self.name}: objective failed at the starting point: {err}"
            ) from err
        if not np.isfinite(fx):
            raise InvalidInitialPoint(
                f"{self.name}: objective is not finite at the starting point (f = {fx})"
            )
        return fx


def check_dimension(x0: np.ndarray, bounds: Optional["Bounds"], solver: str) -> int:
    """Return ``len(x0)`` after checking it against ``bounds``."""
    n = int(x0.size)
    if n == 0:
        raise DimensionMismatch(f"{solver}: x0 must contain at least one parameter")
    if bounds is not None and len(bounds) != n:
        raise DimensionMismatch(
            f"{solver}: x0 has {n} parameters but {len(bounds)} bounds were given"
        )
    return n


__all__ = ["Solver", "check_dimension"]
