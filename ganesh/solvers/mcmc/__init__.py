"""Ensemble Markov chain Monte Carlo samplers for ``p(x) ∝ exp(-f(x))``."""

from .aies import AIES, StretchMove, WalkMove
from .autocorr import AutocorrelationTerminator, autocorrelation_function, integrated_time
from .ensemble import EnsembleSampler
from .ess import ESS, DifferentialMove, GaussianMove

__all__ = [
    "AIES",
    "AutocorrelationTerminator",
    "DifferentialMove",
    "ESS",
    "EnsembleSampler",
    "GaussianMove",
    "StretchMove",
    "WalkMove",
    "autocorrelation_function",
    "integrated_time",
]
