"""PyTorch integration: objectives differentiated with autograd.

Example:
    >>> import torch
    >>> from ganesh import Minimizer
    >>> from ganesh.solvers import LBFGSB
    >>> from ganesh.torch import TorchFunction
    >>>
    >>> f = TorchFunction(lambda x: torch.sum((x - 3.0) ** 2))
    >>> status = Minimizer(LBFGSB()).minimize(f, [0.0, 0.0])
    >>> status.x.round(6)
    array([3., 3.])
"""

from ganesh.torch.function import TorchFunction
from ganesh.torch.utils import as_float_tensor, infer_device, to_numpy, torch_dtype

__all__ = [
    "TorchFunction",
    "as_float_tensor",
    "infer_device",
    "to_numpy",
    "torch_dtype",
]
