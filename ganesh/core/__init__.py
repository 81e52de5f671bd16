"""Core abstractions: bounds, points, functions, abort signals and the minimizer."""

from .abort_signal import AbortSignal, AtomicAbortSignal, CtrlCAbortSignal, NopAbortSignal
from .bound import Bound, BoundKind, Bounds
from .function import CallableFunction, Function, as_function, compute_gradient, compute_hessian
from .observers import DebugObserver, MaxEvalsObserver, TrackingObserver
from .point import Point
from .summary import Summary
from .minimizer import MSG_ABORTED, MSG_MAX_STEPS, MSG_OBSERVER_STOP, Minimizer

__all__ = [
    "AbortSignal",
    "AtomicAbortSignal",
    "Bound",
    "BoundKind",
    "Bounds",
    "CallableFunction",
    "CtrlCAbortSignal",
    "DebugObserver",
    "Function",
    "MSG_ABORTED",
    "MSG_MAX_STEPS",
    "MSG_OBSERVER_STOP",
    "MaxEvalsObserver",
    "Minimizer",
    "NopAbortSignal",
    "Point",
    "Summary",
    "TrackingObserver",
    "as_function",
    "compute_gradient",
    "compute_hessian",
]
