"""Backtracking line searches following Nocedal & Wright, with projection."""

from __future__ import annotations

from typing import Callable, NamedTuple, Optional

import numpy as np

from ...utils import Array, Objective

Projection = Callable[[Array], Array]


class LineSearchResult(NamedTuple):
    x: Array
    fx: float
    alpha: float
    nfev: int
    success: bool


def backtracking_armijo(
    f: Objective,
    x: Array,
    p: Array,
    grad_fx: Array,
    fx: Optional[float] = None,
    project: Optional[Projection] = None,
    alpha0: float = 1.0,
    rho: float = 0.5,
    c: float = 1e-4,
    max_iter: int = 50,
) -> LineSearchResult:
    """Armijo backtracking along ``p``, optionally projecting each trial point.

    With a projection the sufficient-decrease test uses the actual
    displacement ``proj(x + alpha p) - x`` rather than ``alpha p``. When no
    trial point satisfies the test the result carries ``x`` unchanged and
    ``success=False``. ``nfev`` counts only the trial evaluations (plus one
    when ``fx`` is not supplied).
    """
    if not (0 < c < 1):
        raise ValueError("Armijo constant c must lie in (0, 1)")
    if not (0 < rho < 1):
        raise ValueError("rho must lie in (0, 1)")
    nfev = 0
    if fx is None:
        fx = f(x)
        nfev += 1
    alpha = float(alpha0)
    for _ in range(max_iter):
        candidate = x + alpha * p
        if project is not None:
            candidate = project(candidate)
        step = candidate - x
        if not np.any(step):
            break
        f_new = f(candidate)
        nfev += 1
        if np.isfinite(f_new) and f_new <= fx + c * float(np.dot(grad_fx, step)):
            return LineSearchResult(candidate, float(f_new), alpha, nfev, True)
        alpha *= rho
    return LineSearchResult(x, float(fx), 0.0, nfev, False)


__all__ = ["LineSearchResult", "Projection", "backtracking_armijo"]
