"""Running status and final result of a minimization run."""

from __future__ import annotations

from dataclasses import FrozenInstanceError, dataclass, field
from typing import List, Optional

import numpy as np

from ..config import FLOAT, as_float_array
from .bound import Bound, Bounds


def _empty() -> np.ndarray:
    return np.zeros(0, dtype=FLOAT)


@dataclass(eq=False)
class Summary:
    """Status record updated in place during a run and frozen when it ends.

    Attributes:
        bounds: Parameter bounds, or None when the run is unbounded.
        parameter_names: Optional display names, one per parameter.
        message: Free-text status set by the solver or the minimizer.
        x0: Starting point (external coordinates).
        x: Current best point. Internal coordinates while a transform-based
            solver runs with bounds; external once the run has finished.
        std: Per-parameter standard deviations (external coordinates).
        fx: Objective value at ``x``.
        cost_evals: Number of objective evaluations.
        gradient_evals: Number of analytic gradient evaluations.
        converged: Whether the solver's termination criterion was met.
        n_steps: Number of completed solver steps.
        covariance: Parameter covariance (external coordinates), if computed.
    """

    bounds: Optional[Bounds] = None
    parameter_names: Optional[List[str]] = None
    message: str = ""
    x0: np.ndarray = field(default_factory=_empty)
    x: np.ndarray = field(default_factory=_empty)
    std: np.ndarray = field(default_factory=_empty)
    fx: float = np.inf
    cost_evals: int = 0
    gradient_evals: int = 0
    converged: bool = False
    n_steps: int = 0
    covariance: Optional[np.ndarray] = None
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value) -> None:
        if getattr(self, "_frozen", False):
            raise FrozenInstanceError(f"cannot assign to field {name!r} of a finished Summary")
        super().__setattr__(name, value)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "Summary":
        """Make the record read-only. Called by the minimizer when a run ends."""
        for name in ("x0", "x", "std", "covariance"):
            value = getattr(self, name)
            if isinstance(value, np.ndarray):
                value.setflags(write=False)
        if self.parameter_names is not None:
            super().__setattr__("parameter_names", tuple(self.parameter_names))
        super().__setattr__("_frozen", True)
        return self

    @property
    def dimension(self) -> int:
        return int(self.x0.size)

    def with_x0(self, x0) -> "Summary":
        """Set the starting point (typically from a setup hook)."""
        self.x0 = as_float_array(x0)
        return self

    def with_position(self, x, fx: float) -> "Summary":
        """Record a new current point and its value."""
        self.x = as_float_array(x)
        self.fx = float(fx)
        return self

    def names(self) -> List[str]:
        if self.parameter_names is not None:
            return list(self.parameter_names)
        return [f"x_{i}" for i in range(self.x.size)]

    def _bound_list(self) -> List[Bound]:
        if self.bounds is not None:
            return list(self.bounds)
        return [Bound()] * self.x.size

    def __str__(self) -> str:
        status = "Converged" if self.converged else "Invalid Minimum"
        width = 86
        lines = [
            "FIT RESULTS".center(width),
            "=" * width,
            (
                f"Status: {status:<18} f(x): {self.fx:<14.5g} "
                f"#f(x): {self.cost_evals:<8d} #grad f(x): {self.gradient_evals:<8d}"
            ),
            f"Message: {self.message}",
            "-" * width,
            (
                f"{'Parameter':<12}{'Value':>12}{'Std':>12}{'Initial':>12}"
                f"{'-Bound':>12}{'+Bound':>12}{'At Limit?':>12}"
            ),
        ]
        std = self.std if self.std.size == self.x.size else np.full(self.x.size, np.nan)
        x0 = self.x0 if self.x0.size == self.x.size else np.full(self.x.size, np.nan)
        for name, v, e, v0, b in zip(self.names(), self.x, std, x0, self._bound_list()):
            at_limit = "Yes" if b.at_bound(float(v)) else "No"
            lines.append(
                f"{name:<12}{v:>12.5g}{e:>12.5g}{v0:>12.5g}"
                f"{b.lower:>12.5g}{b.upper:>12.5g}{at_limit:>12}"
            )
        lines.append("=" * width)
        return "\n".join(lines)


__all__ = ["Summary"]
