"""Gradient-based solvers."""

from .lbfgsb import LBFGSB
from .line_search import LineSearchResult, backtracking_armijo

__all__ = ["LBFGSB", "LineSearchResult", "backtracking_armijo"]
