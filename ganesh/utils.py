"""Finite differences and small linear-algebra helpers.

Step sizes are relative to each coordinate, ``h_i = c * max(|x_i|, 1)``, with
``c = EPSILON ** (1/3)`` for first derivatives and ``EPSILON ** (1/4)`` for
second derivatives. All routines are pure NumPy and report how many
function evaluations they spent so callers can keep their counters exact.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from .config import EPSILON, FLOAT

Array = np.ndarray
Objective = Callable[[Array], float]
Gradient = Callable[[Array], Array]

GRADIENT_STEP = EPSILON ** (1.0 / 3.0)
HESSIAN_STEP = EPSILON ** 0.25


def _steps(x: Array, scale: float) -> Array:
    return scale * np.maximum(np.abs(x), 1.0)


def approx_grad(
    fun: Objective,
    x: Array,
    rel_step: float = GRADIENT_STEP,
    return_evals: bool = False,
    lower: Array | None = None,
    upper: Array | None = None,
) -> Array | tuple[Array, int]:
    """Compute a finite-difference gradient approximation.

    Parameters
    ----------
    fun:
        Objective function returning a scalar given x.
    x:
        Point where the gradient is approximated.
    rel_step:
        Relative perturbation size for each coordinate.
    lower, upper:
        Optional box. Every evaluation stays inside it: coordinates whose
        central stencil would cross a limit use a one-sided difference
        towards the wider side, with the step shortened to fit.
    """
    if rel_step <= 0:
        raise ValueError("rel_step must be positive")
    x = np.asarray(x, dtype=FLOAT).copy()
    h = _steps(x, rel_step)
    lo = np.full(x.size, -np.inf) if lower is None else np.asarray(lower, dtype=FLOAT)
    up = np.full(x.size, np.inf) if upper is None else np.asarray(upper, dtype=FLOAT)
    room_up = up - x
    room_down = x - lo
    grad = np.zeros_like(x)
    evals = 0
    fx = None

    def shifted(i: int, step: float) -> Array:
        p = x.copy()
        p[i] = min(max(x[i] + step, lo[i]), up[i])
        return p

    for i in range(x.size):
        if h[i] <= room_up[i] and h[i] <= room_down[i]:
            x_plus = shifted(i, h[i])
            x_minus = shifted(i, -h[i])
            evals += 2
            grad[i] = (fun(x_plus) - fun(x_minus)) / (x_plus[i] - x_minus[i])
            continue
        if fx is None:
            fx = fun(x)
            evals += 1
        # one-sided towards the wider side of the box
        step = min(h[i], room_up[i]) if room_up[i] >= room_down[i] else -min(h[i], room_down[i])
        x_step = shifted(i, step)
        evals += 1
        grad[i] = (fun(x_step) - fx) / (x_step[i] - x[i])
    if return_evals:
        return grad, evals
    return grad


def approx_hessian(
    fun: Objective, x: Array, rel_step: float = HESSIAN_STEP, return_evals: bool = False
) -> Array | tuple[Array, int]:
    """Approximate the Hessian using second-order central differences of ``fun``."""
    if rel_step <= 0:
        raise ValueError("rel_step must be positive")
    x = np.asarray(x, dtype=FLOAT)
    n = x.size
    h = _steps(x, rel_step)
    hess = np.zeros((n, n), dtype=FLOAT)
    fx = fun(x)
    evals = 1
    for i in range(n):
        ei = np.zeros_like(x)
        ei[i] = h[i]
        f_ip = fun(x + ei)
        f_im = fun(x - ei)
        evals += 2
        hess[i, i] = (f_ip - 2 * fx + f_im) / (h[i] ** 2)
        for j in range(i + 1, n):
            ej = np.zeros_like(x)
            ej[j] = h[j]
            f_pp = fun(x + ei + ej)
            f_pm = fun(x + ei - ej)
            f_mp = fun(x - ei + ej)
            f_mm = fun(x - ei - ej)
            evals += 4
            value = (f_pp - f_pm - f_mp + f_mm) / (4 * h[i] * h[j])
            hess[i, j] = value
            hess[j, i] = value
    if return_evals:
        return hess, evals
    return hess


def approx_hessian_from_grad(
    grad: Gradient, x: Array, rel_step: float = GRADIENT_STEP, return_evals: bool = False
) -> Array | tuple[Array, int]:
    """Approximate the Hessian by central differences of an analytic gradient.

    The result is symmetrized. ``return_evals`` reports gradient evaluations.
    """
    if rel_step <= 0:
        raise ValueError("rel_step must be positive")
    x = np.asarray(x, dtype=FLOAT)
    n = x.size
    h = _steps(x, rel_step)
    hess = np.zeros((n, n), dtype=FLOAT)
    evals = 0
    for i in range(n):
        ei = np.zeros_like(x)
        ei[i] = h[i]
        g_plus = np.asarray(grad(x + ei), dtype=FLOAT)
        g_minus = np.asarray(grad(x - ei), dtype=FLOAT)
        evals += 2
        hess[i, :] = (g_plus - g_minus) / (2.0 * h[i])
    hess = 0.5 * (hess + hess.T)
    if return_evals:
        return hess, evals
    return hess


def is_pos_def(mat: Array, tol: float = 1e-12) -> bool:
    """Check if a matrix is positive definite via eigenvalues."""
    sym = 0.5 * (mat + mat.T)
    eigvals = np.linalg.eigvalsh(sym)
    return bool(np.all(eigvals > tol))


def inverse_or_nan(mat: Array) -> Array:
    """Invert ``mat``; a singular or non-finite matrix yields an all-NaN result."""
    mat = np.asarray(mat, dtype=FLOAT)
    if not np.all(np.isfinite(mat)):
        return np.full_like(mat, np.nan)
    try:
        return np.linalg.inv(mat)
    except np.linalg.LinAlgError:
        return np.full_like(mat, np.nan)


def std_from_covariance(cov: Array) -> Array:
    """Square root of the covariance diagonal, NaN where the variance is negative."""
    diag = np.diag(np.asarray(cov, dtype=FLOAT)).copy()
    out = np.full_like(diag, np.nan)
    ok = np.isfinite(diag) & (diag >= 0)
    out[ok] = np.sqrt(diag[ok])
    return out


__all__ = [
    "Array",
    "GRADIENT_STEP",
    "HESSIAN_STEP",
    "Objective",
    "approx_grad",
    "approx_hessian",
    "approx_hessian_from_grad",
    "inverse_or_nan",
    "is_pos_def",
    "std_from_covariance",
]
