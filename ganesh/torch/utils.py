"""Utility functions for PyTorch integration with ganesh."""

from __future__ import annotations

from typing import Optional

import numpy as np
import torch

from ..config import FLOAT, as_float_array

_TORCH_DTYPES = {
    np.dtype(np.float32): torch.float32,
    np.dtype(np.float64): torch.float64,
}


def torch_dtype() -> torch.dtype:
    """Return the torch dtype matching :data:`ganesh.config.FLOAT`."""
    return _TORCH_DTYPES[np.dtype(FLOAT)]


def infer_device(device: Optional[torch.device]) -> torch.device:
    """
    Infer the PyTorch device to use.

    Parameters
    ----------
    device:
        Optional PyTorch device. If None, the CPU is used.

    Returns
    -------
    torch.device
        The device to use for computation.
    """
    if device is not None:
        return torch.device(device)
    return torch.device("cpu")


def as_float_tensor(x, device: Optional[torch.device] = None) -> torch.Tensor:
    """
    Convert an array-like to a 1D tensor of the configured float width.

    Parameters
    ----------
    x:
        Array, sequence or tensor.
    device:
        Optional device. If None, uses infer_device().
    """
    target_device = infer_device(device)
    if isinstance(x, torch.Tensor):
        return x.detach().to(device=target_device, dtype=torch_dtype()).reshape(-1)
    return torch.as_tensor(as_float_array(x), dtype=torch_dtype(), device=target_device)


def to_numpy(t: torch.Tensor) -> np.ndarray:
    """Copy a tensor back to a 1D NumPy array of :data:`FLOAT`."""
    return as_float_array(t.detach().cpu().numpy())


__all__ = ["as_float_tensor", "infer_device", "to_numpy", "torch_dtype"]
