"""Standard objectives for testing and benchmarking solvers."""

from .normal import MultivariateNormal
from .rosenbrock import Rosenbrock

__all__ = ["MultivariateNormal", "Rosenbrock"]
