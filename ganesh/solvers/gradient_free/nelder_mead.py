"""Nelder-Mead downhill simplex.

The simplex lives in internal coordinates; every vertex is evaluated at its
external image. Coefficients follow Nelder & Mead (1965) by default, or the
dimension-dependent scheme of Gao & Han (2012) when ``adaptive`` is set.

References:
    - Nelder, J. A. & Mead, R. (1965). A simplex method for function
      minimization. The Computer Journal 7(4), 308-313.
    - Gao, F. & Han, L. (2012). Implementing the Nelder-Mead simplex
      algorithm with adaptive parameters. Comput. Optim. Appl. 51, 259-277.
    - Singer, S. & Singer, S. (2004). Efficient implementation of the
      Nelder-Mead search algorithm. Appl. Numer. Anal. Comput. Math. 1, 524-534.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

import numpy as np

from ...config import EPSILON, FLOAT, as_float_array
from ...core.bound import Bounds
from ...core.function import Function, compute_hessian
from ...core.point import Point
from ...core.summary import Summary
from ...errors import DimensionMismatch
from ...logging import get_logger
from ...utils import inverse_or_nan, std_from_covariance
from ..base import Solver, check_dimension

logger = get_logger(__name__)

MIN_SIMPLEX_SIZE = float(np.sqrt(EPSILON))
# Guards the relative test of the AMOEBA terminator when f is near zero
AMOEBA_TINY = 1e-10


class NelderMeadFTerminator(Enum):
    """Convergence tests on the objective values of the simplex."""

    AMOEBA = "amoeba"
    ABSOLUTE = "absolute"
    STDDEV = "stddev"


class NelderMeadXTerminator(Enum):
    """Convergence tests on the size of the simplex."""

    DIAMETER = "diameter"
    HIGHAM = "higham"
    ROWAN = "rowan"
    SINGER = "singer"


class _InternalFunction(Function):
    """The objective seen through the bound transform (internal coordinates)."""

    def __init__(self, func: Function, bounds: Optional[Bounds]) -> None:
        self.func = func
        self.bounds = bounds

    def _external(self, z: np.ndarray) -> np.ndarray:
        return z if self.bounds is None else self.bounds.to_external(z)

    def evaluate(self, x: np.ndarray, user_data: Any = None) -> float:
        return self.func.evaluate(self._external(x), user_data)

    def gradient(self, x: np.ndarray, user_data: Any = None) -> np.ndarray:
        grad = as_float_array(self.func.gradient(self._external(x), user_data))
        if self.bounds is None:
            return grad
        return grad * self.bounds.external_jacobian(x)

    @property
    def has_gradient(self) -> bool:
        return self.func.has_gradient


class Simplex:
    """``n + 1`` evaluated vertices kept sorted from best to worst."""

    def __init__(self, points: List[Point]) -> None:
        self.points = points
        self.initial_size: Optional[float] = None

    def __len__(self) -> int:
        return len(self.points)

    def sort(self) -> None:
        self.points.sort(key=lambda p: p.rank)

    @property
    def best(self) -> Point:
        return self.points[0]

    @property
    def worst(self) -> Point:
        return self.points[-1]

    @property
    def second_worst(self) -> Point:
        return self.points[-2]

    def vertices(self) -> np.ndarray:
        return np.array([p.x for p in self.points], dtype=FLOAT)

    def values(self) -> np.ndarray:
        return np.array([p.rank for p in self.points], dtype=FLOAT)

    def centroid(self) -> np.ndarray:
        """Centroid of every vertex except the worst."""
        return np.mean(self.vertices()[:-1], axis=0)

    def size(self) -> float:
        """Largest 2-norm distance from the best vertex."""
        vertices = self.vertices()
        return float(np.max(np.linalg.norm(vertices[1:] - vertices[0], axis=1)))


class NelderMead(Solver):
    """Downhill simplex minimizer.

    Parameters
    ----------
    alpha, beta, gamma, delta:
        Reflection, expansion, contraction and shrink coefficients.
    adaptive:
        Use the Gao-Han coefficients for the problem dimension. Overrides
        the four coefficients above when the dimension is known.
    simplex_size:
        Edge length of the orthogonal starting simplex (internal coordinates).
    simplex:
        Optional explicit starting simplex of ``n + 1`` vertices in external
        coordinates. The first vertex replaces x0.
    f_terminator, eps_f:
        Objective-spread test and tolerance (None disables it).
    x_terminator, eps_x:
        Simplex-size test and tolerance (None disables it).
    compute_parameter_errors:
        Estimate standard deviations from the Hessian in :meth:`postprocess`.
    """

    def __init__(
        self,
        alpha: float = 1.0,
        beta: float = 2.0,
        gamma: float = 0.5,
        delta: float = 0.5,
        adaptive: bool = False,
        simplex_size: float = 1.0,
        simplex: Optional[np.ndarray] = None,
        f_terminator: Optional[NelderMeadFTerminator] = NelderMeadFTerminator.STDDEV,
        eps_f: float = EPSILON**0.5,
        x_terminator: Optional[NelderMeadXTerminator] = NelderMeadXTerminator.SINGER,
        eps_x: float = EPSILON**0.25,
        compute_parameter_errors: bool = True,
    ) -> None:
        if alpha <= 0:
            raise ValueError("alpha must be positive")
        if beta <= 1 or beta <= alpha:
            raise ValueError("beta must be greater than 1 and greater than alpha")
        if not 0 < gamma < 1:
            raise ValueError("gamma must lie in (0, 1)")
        if not 0 < delta < 1:
            raise ValueError("delta must lie in (0, 1)")
        if f_terminator is None and x_terminator is None:
            raise ValueError("At least one of f_terminator and x_terminator must be set")
        if eps_f <= 0 or eps_x <= 0:
            raise ValueError("Tolerances must be positive")
        self.alpha = float(alpha)
        self.beta = float(beta)
        self.gamma = float(gamma)
        self.delta = float(delta)
        self.adaptive = adaptive
        self.simplex_size = float(simplex_size)
        self.custom_simplex = None if simplex is None else np.array(simplex, dtype=FLOAT)
        self.f_terminator = f_terminator
        self.eps_f = float(eps_f)
        self.x_terminator = x_terminator
        self.eps_x = float(eps_x)
        self.compute_parameter_errors = compute_parameter_errors
        self.simplex: Optional[Simplex] = None

    @classmethod
    def with_adaptive(cls, n: int, **kwargs) -> "NelderMead":
        """Build a solver with the Gao-Han coefficients for dimension ``n``."""
        alpha, beta, gamma, delta = adaptive_coefficients(n)
        return cls(alpha=alpha, beta=beta, gamma=gamma, delta=delta, **kwargs)

    # Initialization

    def _initial_vertices(self, x0: np.ndarray, bounds: Optional[Bounds]) -> np.ndarray:
        n = x0.size
        if self.custom_simplex is None:
            return orthogonal_simplex(x0, self.simplex_size)
        if self.custom_simplex.shape != (n + 1, n):
            raise DimensionMismatch(
                f"NelderMead: custom simplex has shape {self.custom_simplex.shape}, "
                f"expected {(n + 1, n)}"
            )
        internal_bounds = self._internal_bounds(bounds)
        if internal_bounds is None:
            return self.custom_simplex.copy()
        return np.array([internal_bounds.to_internal(v) for v in self.custom_simplex], dtype=FLOAT)

    def initialize(
        self,
        func: Function,
        x0: np.ndarray,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> None:
        n = check_dimension(x0, bounds, self.name)
        if self.adaptive:
            self.alpha, self.beta, self.gamma, self.delta = adaptive_coefficients(n)
        vertices = repair_degenerate_simplex(self._initial_vertices(x0, bounds))
        internal_bounds = self._internal_bounds(bounds)

        points = [Point(v) for v in vertices]
        self._evaluate_initial(points[0], func, bounds, user_data, status)
        status.with_position(points[0].x, points[0].fx)
        for point in points[1:]:
            point.evaluate(func, user_data, status, internal_bounds)
        self.simplex = Simplex(points)
        self.simplex.sort()
        self.simplex.initial_size = self.simplex.size()
        logger.debug(
            "NelderMead initialized: n=%d alpha=%.3g beta=%.3g gamma=%.3g delta=%.3g",
            n,
            self.alpha,
            self.beta,
            self.gamma,
            self.delta,
        )

    # Iteration

    def step(
        self,
        i_step: int,
        func: Function,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> None:
        simplex = self.simplex
        internal_bounds = self._internal_bounds(bounds)

        def evaluate(x: np.ndarray) -> Point:
            point = Point(x)
            point.evaluate(func, user_data, status, internal_bounds)
            return point

        simplex.sort()
        best, second_worst, worst = simplex.best, simplex.second_worst, simplex.worst
        centroid = simplex.centroid()

        reflected = evaluate(centroid + self.alpha * (centroid - worst.x))
        if reflected.rank < best.rank:
            expanded = evaluate(centroid + self.beta * (reflected.x - centroid))
            simplex.points[-1] = expanded if expanded.rank < reflected.rank else reflected
        elif reflected.rank < second_worst.rank:
            simplex.points[-1] = reflected
        else:
            if reflected.rank < worst.rank:
                contracted = evaluate(centroid + self.gamma * (reflected.x - centroid))
                accepted = contracted.rank <= reflected.rank
            else:
                contracted = evaluate(centroid + self.gamma * (worst.x - centroid))
                accepted = contracted.rank < worst.rank
            if accepted:
                simplex.points[-1] = contracted
            else:
                self._shrink(evaluate)

        simplex.sort()
        status.with_position(simplex.best.x, simplex.best.fx)

    def _shrink(self, evaluate) -> None:
        points = self.simplex.points
        best = points[0]
        for i in range(1, len(points)):
            points[i] = evaluate(best.x + self.delta * (points[i].x - best.x))

    # Termination

    def _f_converged(self) -> bool:
        values = self.simplex.values()
        f_best, f_worst = values[0], values[-1]
        if not np.all(np.isfinite(values)):
            return False
        if self.f_terminator is NelderMeadFTerminator.AMOEBA:
            return bool(
                2.0 * abs(f_worst - f_best)
                <= self.eps_f * (abs(f_worst) + abs(f_best) + AMOEBA_TINY)
            )
        if self.f_terminator is NelderMeadFTerminator.ABSOLUTE:
            return bool(abs(f_worst - f_best) <= self.eps_f)
        return bool(np.std(values) <= self.eps_f)

    def _x_converged(self) -> bool:
        vertices = self.simplex.vertices()
        best = vertices[0]
        offsets = vertices[1:] - best
        if self.x_terminator is NelderMeadXTerminator.DIAMETER:
            diffs = vertices[:, None, :] - vertices[None, :, :]
            return bool(np.max(np.abs(diffs)) <= self.eps_x)
        if self.x_terminator is NelderMeadXTerminator.HIGHAM:
            num = np.max(np.sum(np.abs(offsets), axis=1))
            return bool(num / max(1.0, float(np.sum(np.abs(best)))) <= self.eps_x)
        if self.x_terminator is NelderMeadXTerminator.ROWAN:
            initial = self.simplex.initial_size or 1.0
            return bool(self.simplex.size() <= self.eps_x * initial)
        num = np.max(np.abs(offsets))
        return bool(num / max(1.0, float(np.max(np.abs(best)))) <= self.eps_x)

    def check_convergence(
        self,
        func: Function,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> bool:
        self.simplex.sort()
        parts = []
        if self.f_terminator is not None:
            if not self._f_converged():
                return False
            parts.append(f"term_f = {self.f_terminator.name}")
        if self.x_terminator is not None:
            if not self._x_converged():
                return False
            parts.append(f"term_x = {self.x_terminator.name}")
        status.message = ", ".join(parts)
        return True

    # Parameter errors

    def postprocess(
        self,
        func: Function,
        bounds: Optional[Bounds],
        user_data: Any,
        status: Summary,
    ) -> None:
        x = as_float_array(status.x)
        n = x.size
        if not self.compute_parameter_errors:
            status.std = np.full(n, np.nan, dtype=FLOAT)
            return
        internal_bounds = self._internal_bounds(bounds)
        hessian, nfev, njev = compute_hessian(
            _InternalFunction(func, internal_bounds), x, user_data
        )
        # counters report simplex vertex evaluations only
        logger.debug(
            "Parameter errors used %d function and %d gradient evaluations", nfev, njev
        )
        cov = inverse_or_nan(hessian)
        if not np.all(np.isfinite(cov)):
            logger.warning("Hessian is singular at the best point; parameter errors are undefined")
        if internal_bounds is not None:
            jac = internal_bounds.external_jacobian(x)
            cov = cov * np.outer(jac, jac)
        status.covariance = cov
        status.std = std_from_covariance(cov)


def adaptive_coefficients(n: int) -> tuple[float, float, float, float]:
    """Gao-Han coefficients ``(alpha, beta, gamma, delta)`` for dimension ``n``."""
    if n < 1:
        raise ValueError(f"dimension must be >= 1, got {n}")
    return 1.0, 1.0 + 2.0 / n, 0.75 - 1.0 / (2.0 * n), 1.0 - 1.0 / n if n > 1 else 0.5


def orthogonal_simplex(x0: np.ndarray, size: float) -> np.ndarray:
    """``x0`` plus one vertex displaced by ``size`` along each axis."""
    x0 = as_float_array(x0)
    n = x0.size
    return np.vstack([x0, x0 + size * np.eye(n, dtype=FLOAT)])


def repair_degenerate_simplex(vertices: np.ndarray) -> np.ndarray:
    """Replace a degenerate simplex by an orthogonal one around its first vertex.

    A simplex is degenerate when an edge from the first vertex is shorter
    than :data:`MIN_SIMPLEX_SIZE` or the edges do not span the space.
    """
    vertices = np.asarray(vertices, dtype=FLOAT)
    origin = vertices[0]
    edges = vertices[1:] - origin
    lengths = np.linalg.norm(edges, axis=1)
    finite = np.all(np.isfinite(vertices))
    if finite and np.all(lengths >= MIN_SIMPLEX_SIZE):
        if np.linalg.matrix_rank(edges) == origin.size:
            return vertices
    usable = lengths[np.isfinite(lengths) & (lengths >= MIN_SIMPLEX_SIZE)]
    size = float(np.mean(usable)) if usable.size else 1.0
    logger.warning(
        "Degenerate initial simplex detected; rebuilding an orthogonal simplex of size %.3g",
        size,
    )
    return orthogonal_simplex(origin, max(size, MIN_SIMPLEX_SIZE))


__all__ = [
    "MIN_SIMPLEX_SIZE",
    "NelderMead",
    "NelderMeadFTerminator",
    "NelderMeadXTerminator",
    "Simplex",
    "adaptive_coefficients",
    "orthogonal_simplex",
    "repair_degenerate_simplex",
]
