"""Limited-memory BFGS with native box constraints.

A compact projected variant of L-BFGS-B (Byrd, Lu, Nocedal & Zhu, 1995):
variables sitting on a bound with the gradient pushing outward are held
fixed, the two-loop recursion runs on the remaining free variables and every
trial point of the Armijo backtracking is projected back into the box.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Optional

import numpy as np

from ...config import EPSILON, FLOAT, as_float_array
from ...core.bound import Bounds
from ...core.function import Function, compute_gradient, compute_hessian
from ...core.point import Point
from ...core.summary import Summary
from ...errors import NumericalError
from ...logging import get_logger
from ...utils import HESSIAN_STEP, inverse_or_nan, std_from_covariance
from ..base import Solver, check_dimension
from .line_search import backtracking_armijo

logger = get_logger(__name__)


class _Subspace(Function):
    """The objective restricted to the coordinates in ``mask``."""

    def __init__(self, func: Function, x: np.ndarray, mask: np.ndarray) -> None:
        self.func = func
        self.x = np.array(x, dtype=FLOAT)
        self.mask = mask

    def _full(self, z: np.ndarray) -> np.ndarray:
        x = self.x.copy()
        x[self.mask] = z
        return x

    def evaluate(self, x: np.ndarray, user_data: Any = None) -> float:
        return self.func.evaluate(self._full(x), user_data)

    def gradient(self, x: np.ndarray, user_data: Any = None) -> np.ndarray:
        return as_float_array(self.func.gradient(self._full(x), user_data))[self.mask]

    @property
    def has_gradient(self) -> bool:
        return self.func.has_gradient


class LBFGSB(Solver):
    """Box-constrained limited-memory quasi-Newton minimizer.

    Parameters
    ----------
    m:
        Number of correction pairs kept.
    eps_g:
        Tolerance on the infinity norm of the projected gradient.
    eps_f:
        Tolerance on the relative reduction of f over one step.
    max_line_search:
        Backtracking iterations per step.
    compute_parameter_errors:
        Estimate standard deviations from the Hessian in :meth:`postprocess`.
    """

    uses_transform = False

    def __init__(
        self,
        m: int = 10,
        eps_g: float = EPSILON ** (1.0 / 3.0),
        eps_f: float = 1e7 * EPSILON,
        max_line_search: int = 50,
        compute_parameter_errors: bool = True,
    ) -> None:
        if m <= 0:
            raise ValueError("Memory parameter m must be positive.")
        if eps_g <= 0 or eps_f <= 0:
            raise ValueError("Tolerances must be positive")
        if max_line_search <= 0:
            raise ValueError("max_line_search must be positive")
        self.m = int(m)
        self.eps_g = float(eps_g)
        self.eps_f = float(eps_f)
        self.max_line_search = int(max_line_search)
        self.compute_parameter_errors = compute_parameter_errors
        self.x: Optional[np.ndarray] = None
        self.fx = np.inf
        self.grad: Optional[np.ndarray] = None
        self.lower: Optional[np.ndarray] = None
        self.upper: Optional[np.ndarray] = None
        self.s_history: Deque[np.ndarray] = deque(maxlen=self.m)
        self.y_history: Deque[np.ndarray] = deque(maxlen=self.m)
        self.reduction: Optional[float] = None

    def _project(self, x: np.ndarray) -> np.ndarray:
        return np.clip(x, self.lower, self.upper)

    def _gradient(self, func: Function, x: np.ndarray, user_data: Any, status: Summary) -> np.ndarray:
        grad, nfev, njev = compute_gradient(func, x, user_data, self.lower, self.upper)
        status.cost_evals += nfev
        status.gradient_evals += njev
        if not np.all(np.isfinite(grad)):
            raise NumericalError(f"Non-finite gradient at x = {x.tolist()}")
        return grad

    def projected_gradient(self) -> np.ndarray:
        return self._project(self.x - self.grad) - self.x

    def free_variables(self) -> np.ndarray:
        """Mask of variables not pinned to a bound by the current gradient."""
        at_lower = (self.x <= self.lower) & (self.grad > 0)
        at_upper = (self.x >= self.upper) & (self.grad < 0)
        return ~(at_lower | at_upper)

    def initialize(
        self,
        func: Function,
        x0: np.ndarray,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> None:
        n = check_dimension(x0, bounds, self.name)
        if bounds is None:
            self.lower = np.full(n, -np.inf, dtype=FLOAT)
            self.upper = np.full(n, np.inf, dtype=FLOAT)
        else:
            self.lower = bounds.lower.copy()
            self.upper = bounds.upper.copy()
        point = Point(self._project(as_float_array(x0)))
        self._evaluate_initial(point, func, bounds, user_data, status)
        self.x = np.array(point.x, dtype=FLOAT)
        self.fx = float(point.fx)
        self.grad = self._gradient(func, self.x, user_data, status)
        self.s_history.clear()
        self.y_history.clear()
        self.reduction = None
        status.with_position(self.x, self.fx)

    def _two_loop(self, g: np.ndarray, free: np.ndarray) -> np.ndarray:
        q = g * free
        alpha_vals = []
        pairs = [(s * free, y * free) for s, y in zip(self.s_history, self.y_history)]
        pairs = [(s, y) for s, y in pairs if float(np.dot(y, s)) > 0]
        for s, y in reversed(pairs):
            rho = 1.0 / float(np.dot(y, s))
            alpha_i = rho * float(np.dot(s, q))
            q = q - alpha_i * y
            alpha_vals.append((rho, alpha_i, s, y))
        if pairs:
            last_s, last_y = pairs[-1]
            gamma = float(np.dot(last_s, last_y) / np.dot(last_y, last_y))
        else:
            gamma = 1.0
        r = gamma * q
        for rho, alpha_i, s, y in reversed(alpha_vals):
            beta = rho * float(np.dot(y, r))
            r = r + s * (alpha_i - beta)
        return -r * free

    def _direction(self, free: np.ndarray) -> np.ndarray:
        steepest = -self.grad * free
        if not self.s_history:
            return steepest
        direction = self._two_loop(self.grad, free)
        if not np.all(np.isfinite(direction)) or float(np.dot(direction, self.grad)) >= 0:
            return steepest
        return direction

    def _initial_step(self, direction: np.ndarray) -> float:
        """Unit step for quasi-Newton directions, unit-length otherwise."""
        if self.s_history:
            return 1.0
        norm = float(np.max(np.abs(direction)))
        return 1.0 if norm <= 1.0 else 1.0 / norm

    def step(
        self,
        i_step: int,
        func: Function,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> None:
        def objective(x: np.ndarray) -> float:
            return float(func.evaluate(x, user_data))

        free = self.free_variables()
        direction = self._direction(free)
        result = backtracking_armijo(
            objective,
            self.x,
            direction,
            self.grad,
            fx=self.fx,
            project=self._project,
            alpha0=self._initial_step(direction),
            max_iter=self.max_line_search,
        )
        status.cost_evals += result.nfev
        if not result.success and self.s_history:
            # quasi-Newton direction failed: retry along steepest descent
            self.s_history.clear()
            self.y_history.clear()
            result = backtracking_armijo(
                objective,
                self.x,
                -self.grad * free,
                self.grad,
                fx=self.fx,
                project=self._project,
                alpha0=self._initial_step(-self.grad * free),
                max_iter=self.max_line_search,
            )
            status.cost_evals += result.nfev
        if not result.success:
            logger.warning("Line search failed to decrease f at step %d; keeping x", i_step)
            self.s_history.clear()
            self.y_history.clear()
            self.reduction = 0.0
            status.with_position(self.x, self.fx)
            return

        x_new = np.array(result.x, dtype=FLOAT)
        grad_new = self._gradient(func, x_new, user_data, status)
        s = x_new - self.x
        y = grad_new - self.grad
        if float(np.dot(y, s)) > EPSILON * float(np.dot(y, y)):
            self.s_history.append(s)
            self.y_history.append(y)
        self.reduction = (self.fx - result.fx) / max(abs(self.fx), abs(result.fx), 1.0)
        self.x = x_new
        self.fx = result.fx
        self.grad = grad_new
        status.with_position(self.x, self.fx)

    def check_convergence(
        self,
        func: Function,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> bool:
        pg_norm = float(np.max(np.abs(self.projected_gradient())))
        if pg_norm <= self.eps_g:
            status.message = f"projected gradient norm {pg_norm:.3g} <= eps_g"
            return True
        if self.reduction is not None and self.reduction <= self.eps_f:
            status.message = f"relative reduction of f {self.reduction:.3g} <= eps_f"
            return True
        return False

    def _hessian_free_variables(self, bounds: Optional[Bounds]) -> np.ndarray:
        """Variables whose finite-difference Hessian stencil fits inside the box."""
        if bounds is None:
            return np.ones(self.x.size, dtype=bool)
        h = HESSIAN_STEP * np.maximum(np.abs(self.x), 1.0)
        inside = (self.x - self.lower >= h) & (self.upper - self.x >= h)
        return inside & ~bounds.at_bounds(self.x)

    def postprocess(
        self,
        func: Function,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> None:
        status.with_position(self.x, self.fx)
        n = self.x.size
        std = np.full(n, np.nan, dtype=FLOAT)
        if not self.compute_parameter_errors:
            status.std = std
            return
        free = self._hessian_free_variables(bounds)
        covariance = np.full((n, n), np.nan, dtype=FLOAT)
        if np.any(free):
            hessian, nfev, njev = compute_hessian(
                _Subspace(func, self.x, free), self.x[free], user_data
            )
            status.cost_evals += nfev
            status.gradient_evals += njev
            cov = inverse_or_nan(hessian)
            if not np.all(np.isfinite(cov)):
                logger.warning("Hessian is singular at the minimum; parameter errors are undefined")
            covariance[np.ix_(free, free)] = cov
            std[free] = std_from_covariance(cov)
        status.covariance = covariance
        status.std = std


__all__ = ["LBFGSB"]
