"""Gradient-free solvers."""

from .nelder_mead import (
    MIN_SIMPLEX_SIZE,
    NelderMead,
    NelderMeadFTerminator,
    NelderMeadXTerminator,
)

__all__ = ["MIN_SIMPLEX_SIZE", "NelderMead", "NelderMeadFTerminator", "NelderMeadXTerminator"]
