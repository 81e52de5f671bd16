"""The objective-function contract consumed by every solver.

A problem subclasses :class:`Function` and implements :meth:`Function.evaluate`.
Overriding :meth:`Function.gradient` (or :meth:`Function.hessian`) supplies
analytic derivatives; otherwise central finite differences are used.
Whether a problem provides its own gradient is detected from the subclass,
see :attr:`Function.has_gradient`.

Example
-------
>>> import numpy as np
>>> from ganesh import Function
>>> class Sphere(Function):
...     def evaluate(self, x, user_data=None):
...         return float(np.sum(x**2))
>>> Sphere().gradient(np.array([1.0, -2.0])).round(6)
array([ 2., -4.])
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import numpy as np

from ..config import FLOAT, as_float_array
from ..utils import approx_grad, approx_hessian, approx_hessian_from_grad


class Function(ABC):
    """Scalar objective ``f: R^n -> R`` with optional derivatives."""

    @abstractmethod
    def evaluate(self, x: np.ndarray, user_data: Any = None) -> float:
        """Return the objective value at the external point ``x``."""

    def gradient(self, x: np.ndarray, user_data: Any = None) -> np.ndarray:
        """Gradient at ``x``; central differences unless overridden."""
        return approx_grad(lambda p: self.evaluate(p, user_data), x)

    def hessian(self, x: np.ndarray, user_data: Any = None) -> np.ndarray:
        """Hessian at ``x``; finite differences unless overridden."""
        if self.has_gradient:
            return approx_hessian_from_grad(lambda p: self.gradient(p, user_data), x)
        return approx_hessian(lambda p: self.evaluate(p, user_data), x)

    @property
    def has_gradient(self) -> bool:
        """True if the problem supplies an analytic gradient."""
        return type(self).gradient is not Function.gradient

    @property
    def has_hessian(self) -> bool:
        """True if the problem supplies an analytic Hessian."""
        return type(self).hessian is not Function.hessian


class CallableFunction(Function):
    """Adapt plain callables ``fun(x)`` or ``fun(x, user_data)`` to :class:`Function`."""

    def __init__(
        self,
        fun: Callable[..., float],
        grad: Optional[Callable[..., np.ndarray]] = None,
    ) -> None:
        self.fun = fun
        self.grad = grad
        self._fun_takes_data = _accepts_user_data(fun)
        self._grad_takes_data = grad is not None and _accepts_user_data(grad)

    def evaluate(self, x: np.ndarray, user_data: Any = None) -> float:
        if self._fun_takes_data:
            return float(self.fun(x, user_data))
        return float(self.fun(x))

    def gradient(self, x: np.ndarray, user_data: Any = None) -> np.ndarray:
        if self.grad is None:
            return super().gradient(x, user_data)
        if self._grad_takes_data:
            return as_float_array(self.grad(x, user_data))
        return as_float_array(self.grad(x))

    @property
    def has_gradient(self) -> bool:
        return self.grad is not None


def _accepts_user_data(fun: Callable) -> bool:
    """True if ``fun`` needs a second positional argument or names it ``user_data``.

    Optional extra parameters (``def f(x, scale=2.0)``) keep their defaults.
    """
    try:
        params = list(inspect.signature(fun).parameters.values())
    except (TypeError, ValueError):
        return False
    positional = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    if len(params) >= 2 and params[1].name == "user_data" and params[1].kind in positional:
        return True
    required = [
        p
        for p in params
        if p.kind in positional and p.default is p.empty
    ]
    return len(required) >= 2


def as_function(func: Function | Callable[..., float]) -> Function:
    """Return ``func`` as a :class:`Function`, wrapping plain callables."""
    if isinstance(func, Function):
        return func
    if callable(func):
        return CallableFunction(func)
    raise TypeError(f"Expected a Function or a callable, got {type(func)}")


def compute_gradient(
    func: Function,
    x: np.ndarray,
    user_data: Any = None,
    lower: Optional[np.ndarray] = None,
    upper: Optional[np.ndarray] = None,
) -> tuple[np.ndarray, int, int]:
    """Return the gradient along with (cost_evals, gradient_evals) increments.

    ``lower`` and ``upper`` keep a finite-difference stencil inside a box.
    """
    if func.has_gradient:
        return as_float_array(func.gradient(x, user_data)), 0, 1
    grad, evals = approx_grad(
        lambda p: func.evaluate(p, user_data), x, return_evals=True, lower=lower, upper=upper
    )
    return grad, int(evals), 0


def compute_hessian(
    func: Function, x: np.ndarray, user_data: Any = None
) -> tuple[np.ndarray, int, int]:
    """Return the Hessian along with (cost_evals, gradient_evals) increments."""
    x = np.asarray(x, dtype=FLOAT)
    if func.has_hessian:
        return np.asarray(func.hessian(x, user_data), dtype=FLOAT), 0, 0
    if func.has_gradient:
        hess, evals = approx_hessian_from_grad(
            lambda p: func.gradient(p, user_data), x, return_evals=True
        )
        return hess, 0, int(evals)
    hess, evals = approx_hessian(lambda p: func.evaluate(p, user_data), x, return_evals=True)
    return hess, int(evals), 0


__all__ = [
    "CallableFunction",
    "Function",
    "as_function",
    "compute_gradient",
    "compute_hessian",
]
