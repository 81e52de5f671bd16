"""Objectives written with torch, differentiated by autograd."""

from __future__ import annotations

from typing import Any, Callable, Optional

import numpy as np
import torch

from ..config import FLOAT
from ..core.function import Function, _accepts_user_data
from .utils import as_float_tensor, infer_device, to_numpy


class TorchFunction(Function):
    """Wrap ``fun(x)`` or ``fun(x, user_data)`` taking and returning tensors.

    The gradient comes from ``torch.autograd`` on a single forward pass, so
    solvers see it as an analytic gradient.

    Example
    -------
    >>> import torch
    >>> f = TorchFunction(lambda x: torch.sum((x - 1.0) ** 2))
    >>> f.evaluate(np.array([0.0, 0.0]))
    2.0
    >>> f.gradient(np.array([0.0, 0.0]))
    array([-2., -2.])
    """

    def __init__(
        self,
        fun: Callable[..., torch.Tensor],
        device: Optional[torch.device] = None,
    ) -> None:
        self.fun = fun
        self.device = infer_device(device)
        self._takes_data = _accepts_user_data(fun)

    def _call(self, x: torch.Tensor, user_data: Any) -> torch.Tensor:
        value = self.fun(x, user_data) if self._takes_data else self.fun(x)
        value = torch.as_tensor(value)
        if value.numel() != 1:
            raise ValueError(f"Objective must return a scalar, got shape {tuple(value.shape)}")
        return value.reshape(())

    def evaluate(self, x: np.ndarray, user_data: Any = None) -> float:
        with torch.no_grad():
            value = self._call(as_float_tensor(x, self.device), user_data)
        return float(value.item())

    def gradient(self, x: np.ndarray, user_data: Any = None) -> np.ndarray:
        xt = as_float_tensor(x, self.device).requires_grad_(True)
        value = self._call(xt, user_data)
        if not value.requires_grad:
            return np.zeros(xt.numel(), dtype=FLOAT)
        (grad,) = torch.autograd.grad(value, xt, allow_unused=True)
        if grad is None:
            return np.zeros(xt.numel(), dtype=FLOAT)
        return to_numpy(grad)


__all__ = ["TorchFunction"]
