"""Solver implementations.

Example
-------
>>> from ganesh import Minimizer
>>> from ganesh.solvers import LBFGSB
>>> from ganesh.test_functions import Rosenbrock
>>> status = Minimizer(LBFGSB(), bounds=[(-2, 2), (-2, 2)]).minimize(Rosenbrock(2), [-1.2, 1.0])
>>> status.converged
True
"""

from .base import Solver, check_dimension
from .gradient import LBFGSB, backtracking_armijo
from .gradient_free import NelderMead, NelderMeadFTerminator, NelderMeadXTerminator
from .mcmc import (
    AIES,
    ESS,
    AutocorrelationTerminator,
    DifferentialMove,
    EnsembleSampler,
    GaussianMove,
    StretchMove,
    WalkMove,
    integrated_time,
)

__all__ = [
    "AIES",
    "AutocorrelationTerminator",
    "DifferentialMove",
    "ESS",
    "EnsembleSampler",
    "GaussianMove",
    "LBFGSB",
    "NelderMead",
    "NelderMeadFTerminator",
    "NelderMeadXTerminator",
    "Solver",
    "StretchMove",
    "WalkMove",
    "backtracking_armijo",
    "check_dimension",
    "integrated_time",
]
