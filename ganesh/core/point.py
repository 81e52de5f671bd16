"""Candidate parameter vectors with a cached objective value."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

import numpy as np

from ..config import as_float_array

if TYPE_CHECKING:
    from .bound import Bounds
    from .function import Function
    from .summary import Summary


class Point:
    """A parameter vector paired with its (possibly not yet computed) value.

    The vector is stored read-only. Assigning a new vector through
    :attr:`x` drops the cached value, so ``fx`` always belongs to the vector
    currently held.
    """

    def __init__(self, x, fx: Optional[float] = None) -> None:
        self._x = self._freeze(x)
        self._fx = None if fx is None else float(fx)

    @staticmethod
    def _freeze(x) -> np.ndarray:
        arr = as_float_array(x)
        arr.setflags(write=False)
        return arr

    @property
    def x(self) -> np.ndarray:
        return self._x

    @x.setter
    def x(self, value) -> None:
        self._x = self._freeze(value)
        self._fx = None

    @property
    def fx(self) -> Optional[float]:
        return self._fx

    @property
    def is_evaluated(self) -> bool:
        return self._fx is not None

    @property
    def rank(self) -> float:
        """Value used for ordering. Unevaluated or non-finite values rank last."""
        if self._fx is None or not np.isfinite(self._fx):
            return np.inf
        return self._fx

    def external(self, bounds: Optional["Bounds"] = None) -> np.ndarray:
        if bounds is None:
            return self._x.copy()
        return bounds.to_external(self._x)

    def evaluate(
        self,
        func: "Function",
        user_data: Any,
        status: "Summary",
        bounds: Optional["Bounds"] = None,
    ) -> float:
        """Evaluate the objective unless the value is already cached.

        ``bounds`` is given when :attr:`x` holds internal coordinates; the
        objective then sees the external point. Each real evaluation
        increments ``status.cost_evals``.
        """
        if self._fx is None:
            self._fx = float(func.evaluate(self.external(bounds), user_data))
            status.cost_evals += 1
        return self._fx

    def copy(self) -> "Point":
        point = Point.__new__(Point)
        point._x = self._x
        point._fx = self._fx
        return point

    def __lt__(self, other: "Point") -> bool:
        return self.rank < other.rank

    def __repr__(self) -> str:
        return f"Point(x={self._x.tolist()}, fx={self._fx})"


__all__ = ["Point"]
