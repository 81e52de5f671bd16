"""ganesh - numerical minimization with pluggable solvers and box bounds."""

__version__ = "0.1.0"

# Core abstractions
from .config import DEFAULT_MAX_STEPS, EPSILON, FLOAT
from .core import (
    AbortSignal,
    AtomicAbortSignal,
    Bound,
    BoundKind,
    Bounds,
    CallableFunction,
    CtrlCAbortSignal,
    DebugObserver,
    Function,
    MaxEvalsObserver,
    Minimizer,
    NopAbortSignal,
    Point,
    Summary,
    TrackingObserver,
)

# Errors
from .errors import (
    DimensionMismatch,
    GaneshError,
    InitializationFailed,
    InvalidInitialPoint,
    MinimizeError,
    NumericalError,
    SolverError,
    StepFailed,
)

# Logging
from .logging import configure_logging, get_logger, set_log_level

# Solvers
from .solvers import (
    AIES,
    ESS,
    LBFGSB,
    AutocorrelationTerminator,
    NelderMead,
    NelderMeadFTerminator,
    NelderMeadXTerminator,
    Solver,
)

__all__ = [
    "AIES",
    "AbortSignal",
    "AtomicAbortSignal",
    "AutocorrelationTerminator",
    "Bound",
    "BoundKind",
    "Bounds",
    "CallableFunction",
    "CtrlCAbortSignal",
    "DEFAULT_MAX_STEPS",
    "DebugObserver",
    "DimensionMismatch",
    "EPSILON",
    "ESS",
    "FLOAT",
    "Function",
    "GaneshError",
    "InitializationFailed",
    "InvalidInitialPoint",
    "LBFGSB",
    "MaxEvalsObserver",
    "MinimizeError",
    "Minimizer",
    "NelderMead",
    "NelderMeadFTerminator",
    "NelderMeadXTerminator",
    "NopAbortSignal",
    "NumericalError",
    "Point",
    "Solver",
    "SolverError",
    "StepFailed",
    "Summary",
    "TrackingObserver",
    "__version__",
    "configure_logging",
    "get_logger",
    "set_log_level",
]
