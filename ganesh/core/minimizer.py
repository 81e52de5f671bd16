"""The minimization control loop.

Example
-------
>>> from ganesh import Minimizer
>>> from ganesh.solvers import NelderMead
>>> from ganesh.test_functions import Rosenbrock
>>> m = Minimizer(NelderMead(), 2, max_steps=2000)
>>> status = m.minimize(Rosenbrock(2), [2.0, 2.0])
>>> status.converged
True
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Sequence, Union

import numpy as np

from ..config import DEFAULT_MAX_STEPS, as_float_array
from ..errors import DimensionMismatch, InitializationFailed, SolverError, StepFailed
from ..logging import get_logger
from ..solvers.base import Solver
from .abort_signal import AbortSignal, NopAbortSignal
from .bound import Bounds
from .function import Function, as_function
from .observers import StatusHook, StepHook
from .summary import Summary

logger = get_logger(__name__)

MSG_ABORTED = "Aborted"
MSG_MAX_STEPS = "Max steps reached"
MSG_OBSERVER_STOP = "Stopped by observer"


class Minimizer:
    """Drive a :class:`~ganesh.solvers.base.Solver` until it converges or is stopped.

    Parameters
    ----------
    solver:
        Algorithm to run. The minimizer owns it for the duration of a run.
    dimension:
        Expected number of parameters. Optional; when given, x0 is checked
        against it.
    max_steps:
        Maximum number of solver steps. ``0`` returns right after
        initialization.
    bounds:
        Optional box constraints, as :class:`Bounds` or a sequence of
        ``(lower, upper)`` pairs (``None`` for a missing limit).
    parameter_names:
        Optional display names, one per parameter.
    abort_signal:
        Cancellation source polled at step boundaries.
    """

    def __init__(
        self,
        solver: Solver,
        dimension: Optional[int] = None,
        *,
        max_steps: int = DEFAULT_MAX_STEPS,
        bounds: Union[Bounds, Iterable, None] = None,
        parameter_names: Optional[Sequence[str]] = None,
        abort_signal: Optional[AbortSignal] = None,
    ) -> None:
        if not isinstance(solver, Solver):
            raise TypeError(f"solver must be a Solver, got {type(solver)}")
        if dimension is not None and dimension < 1:
            raise ValueError(f"dimension must be >= 1, got {dimension}")
        self.solver = solver
        self.dimension = dimension
        self.max_steps = self._check_max_steps(max_steps)
        self.bounds = Bounds.coerce(bounds)
        self.parameter_names = None if parameter_names is None else list(parameter_names)
        self.abort_signal: AbortSignal = abort_signal or NopAbortSignal()
        self._status_hooks: List[StatusHook] = []
        self._pre_step_hooks: List[StepHook] = []
        self._post_step_hooks: List[StepHook] = []
        self.status = self._new_status()

    @staticmethod
    def _check_max_steps(max_steps: int) -> int:
        if max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {max_steps}")
        return int(max_steps)

    def _new_status(self) -> Summary:
        return Summary(
            bounds=self.bounds,
            parameter_names=None if self.parameter_names is None else list(self.parameter_names),
        )

    # Configuration (each returns self so calls can be chained)

    def with_max_steps(self, max_steps: int) -> "Minimizer":
        self.max_steps = self._check_max_steps(max_steps)
        return self

    def with_bounds(self, bounds: Union[Bounds, Iterable, None]) -> "Minimizer":
        self.bounds = Bounds.coerce(bounds)
        return self

    def with_parameter_names(self, names: Optional[Sequence[str]]) -> "Minimizer":
        self.parameter_names = None if names is None else list(names)
        return self

    def with_abort_signal(self, abort_signal: AbortSignal) -> "Minimizer":
        self.abort_signal = abort_signal
        return self

    def on_status(self, hook: StatusHook) -> "Minimizer":
        """Register a hook run on the fresh status before initialization."""
        self._status_hooks.append(hook)
        return self

    def on_pre_step(self, hook: StepHook) -> "Minimizer":
        self._pre_step_hooks.append(hook)
        return self

    def on_post_step(self, hook: StepHook) -> "Minimizer":
        self._post_step_hooks.append(hook)
        return self

    with_observer = on_post_step

    # Running

    def _resolve_x0(self, status: Summary) -> np.ndarray:
        if status.x0.size == 0:
            raise ValueError("A starting point is required: pass x0 or set it in an on_status hook")
        x0 = as_float_array(status.x0)
        n = x0.size
        if self.dimension is not None and n != self.dimension:
            raise DimensionMismatch(
                f"x0 has {n} parameters but the minimizer expects {self.dimension}"
            )
        if self.bounds is not None and len(self.bounds) != n:
            raise DimensionMismatch(f"x0 has {n} parameters but {len(self.bounds)} bounds are set")
        if self.parameter_names is not None and len(self.parameter_names) != n:
            raise DimensionMismatch(
                f"x0 has {n} parameters but {len(self.parameter_names)} names are set"
            )
        return x0

    def _transforms(self) -> bool:
        return self.bounds is not None and self.solver.uses_transform

    def minimize(
        self,
        func: Union[Function, Callable[..., float]],
        x0=None,
        user_data: Any = None,
        abort_signal: Optional[AbortSignal] = None,
    ) -> Summary:
        """Minimize ``func`` starting from ``x0`` and return the frozen status.

        Raises:
            ValueError: If no starting point is available.
            DimensionMismatch: If x0, bounds or parameter names disagree.
            InitializationFailed: If the solver cannot initialize.
            StepFailed: If the solver fails during a step or postprocessing.
        """
        func = as_function(func)
        signal = abort_signal if abort_signal is not None else self.abort_signal
        bounds = self.bounds

        status = self._new_status()
        if x0 is not None:
            status.with_x0(x0)
        for hook in self._status_hooks:
            hook(status)
        self.status = status
        x0_ext = self._resolve_x0(status)
        status.x0 = x0_ext

        transform = self._transforms()
        if bounds is not None and not bounds.contains(x0_ext):
            logger.warning("x0 lies outside the bounds and will be clipped")
        x0_solver = bounds.to_internal(x0_ext) if transform else x0_ext.copy()
        status.x = x0_solver.copy()

        logger.info(
            "Starting %s on %d parameters (max_steps=%d, bounds=%s)",
            self.solver.name,
            x0_ext.size,
            self.max_steps,
            "transform" if transform else ("native" if bounds is not None else "none"),
        )

        try:
            self.solver.initialize(func, x0_solver, bounds, user_data, status)
        except SolverError as err:
            raise InitializationFailed(f"{self.solver.name} failed to initialize: {err}", err) from err

        self._run_loop(func, bounds, user_data, status, signal)

        try:
            self.solver.postprocess(func, bounds, user_data, status)
        except SolverError as err:
            raise StepFailed(f"{self.solver.name} failed in postprocessing: {err}", err) from err

        if transform:
            if np.array_equal(status.x, x0_solver):
                # the round trip through internal coordinates is not exact
                status.x = bounds.clip(x0_ext)
            else:
                status.x = bounds.to_external(status.x)
        status.freeze()
        logger.info(
            "%s finished after %d steps: converged=%s fx=%.6g (%s)",
            self.solver.name,
            status.n_steps,
            status.converged,
            status.fx,
            status.message,
        )
        return status

    def _stop(self, status: Summary, message: str) -> None:
        status.converged = False
        status.message = message

    def _run_loop(
        self,
        func: Function,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
        signal: AbortSignal,
    ) -> None:
        if signal.is_aborted():
            self._stop(status, MSG_ABORTED)
            return
        if self.max_steps == 0:
            self._stop(status, MSG_MAX_STEPS)
            return

        while True:
            step = status.n_steps
            for hook in self._pre_step_hooks:
                hook(step, status)
            try:
                self.solver.step(step, func, bounds, user_data, status)
            except SolverError as err:
                raise StepFailed(
                    f"{self.solver.name} failed at step {step}: {err}", err
                ) from err
            status.n_steps += 1
            stop_requested = False
            for hook in self._post_step_hooks:
                if hook(step, status):
                    stop_requested = True

            if signal.is_aborted():
                logger.info("Abort requested after step %d", status.n_steps)
                self._stop(status, MSG_ABORTED)
                return
            if self.solver.check_convergence(func, bounds, user_data, status):
                status.converged = True
                return
            if stop_requested:
                self._stop(status, MSG_OBSERVER_STOP)
                return
            if status.n_steps >= self.max_steps:
                self._stop(status, MSG_MAX_STEPS)
                return


__all__ = ["MSG_ABORTED", "MSG_MAX_STEPS", "MSG_OBSERVER_STOP", "Minimizer"]
