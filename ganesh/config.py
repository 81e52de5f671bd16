"""Build-time numeric configuration for ganesh.

The floating-point width used throughout the engine is read once, at import
time, from the ``GANESH_FLOAT`` environment variable (``"f64"`` by default,
``"f32"`` for single precision). It cannot be switched afterwards: every
array the engine creates uses :data:`FLOAT`.
"""

from __future__ import annotations

import os

import numpy as np

_FLOAT_ENV_VAR = "GANESH_FLOAT"
_FLOAT_WIDTHS = {
    "f32": np.float32,
    "float32": np.float32,
    "f64": np.float64,
    "float64": np.float64,
}


def _resolve_float(value: str) -> type:
    key = value.strip().lower()
    if key not in _FLOAT_WIDTHS:
        raise ValueError(
            f"Unsupported {_FLOAT_ENV_VAR}={value!r}. "
            f"Supported values: {sorted(_FLOAT_WIDTHS)}"
        )
    return _FLOAT_WIDTHS[key]


FLOAT: type = _resolve_float(os.getenv(_FLOAT_ENV_VAR, "f64"))
EPSILON: float = float(np.finfo(FLOAT).eps)

# Minimizer defaults
DEFAULT_MAX_STEPS = 4000


def float_dtype() -> np.dtype:
    """Return the configured floating-point dtype."""
    return np.dtype(FLOAT)


def as_float_array(x) -> np.ndarray:
    """Return ``x`` as a fresh 1-D array of the configured float type."""
    return np.array(x, dtype=FLOAT).reshape(-1)


__all__ = [
    "DEFAULT_MAX_STEPS",
    "EPSILON",
    "FLOAT",
    "as_float_array",
    "float_dtype",
]
