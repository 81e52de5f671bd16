"""Box constraints and the internal/external parameter transform.

Solvers that work in an unbounded space (Nelder-Mead, the ensemble samplers)
run entirely in *internal* coordinates. The objective is only ever evaluated
in *external* coordinates, which always lie inside the box. The mapping is
the one used by MINUIT and LMFIT:

* both limits:  ``z = arcsin(2 (x - lo) / (hi - lo) - 1)``,
  ``x = lo + (sin(z) + 1) (hi - lo) / 2``
* upper only:   ``z = sqrt((hi - x + 1)^2 - 1)``, ``x = hi + 1 - sqrt(z^2 + 1)``
* lower only:   ``z = sqrt((x - lo + 1)^2 - 1)``, ``x = lo - 1 + sqrt(z^2 + 1)``
* no limits:    identity

The forward map clamps its argument into the box first, so both directions
are total.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Sequence, Union

import numpy as np

from ..config import EPSILON, FLOAT, as_float_array
from ..errors import DimensionMismatch

AT_BOUND_TOL = float(np.sqrt(EPSILON))


class BoundKind(Enum):
    """Which limits a :class:`Bound` has."""

    NONE = "none"
    LOWER = "lower"
    UPPER = "upper"
    BOTH = "both"


def _masks(lower: np.ndarray, upper: np.ndarray):
    has_lo = np.isfinite(lower)
    has_hi = np.isfinite(upper)
    return has_lo & has_hi, has_lo & ~has_hi, ~has_lo & has_hi


def _to_internal(x: np.ndarray, lower: np.ndarray, upper: np.ndarray) -> np.ndarray:
    x = np.clip(x, lower, upper)
    out = x.copy()
    both, lo_only, hi_only = _masks(lower, upper)
    if np.any(both):
        arg = 2.0 * (x[both] - lower[both]) / (upper[both] - lower[both]) - 1.0
        out[both] = np.arcsin(np.clip(arg, -1.0, 1.0))
    if np.any(lo_only):
        out[lo_only] = np.sqrt((x[lo_only] - lower[lo_only] + 1.0) ** 2 - 1.0)
    if np.any(hi_only):
        out[hi_only] = np.sqrt((upper[hi_only] - x[hi_only] + 1.0) ** 2 - 1.0)
    return out


def _to_external(z: np.ndarray, lower: np.ndarray, upper: np.ndarray) -> np.ndarray:
    out = z.copy()
    both, lo_only, hi_only = _masks(lower, upper)
    if np.any(both):
        out[both] = lower[both] + (np.sin(z[both]) + 1.0) * (upper[both] - lower[both]) / 2.0
    if np.any(lo_only):
        out[lo_only] = lower[lo_only] - 1.0 + np.sqrt(z[lo_only] ** 2 + 1.0)
    if np.any(hi_only):
        out[hi_only] = upper[hi_only] + 1.0 - np.sqrt(z[hi_only] ** 2 + 1.0)
    # sin/sqrt round-off can leave the box by an ulp
    return np.clip(out, lower, upper)


def _external_jacobian(z: np.ndarray, lower: np.ndarray, upper: np.ndarray) -> np.ndarray:
    out = np.ones_like(z)
    both, lo_only, hi_only = _masks(lower, upper)
    if np.any(both):
        out[both] = np.cos(z[both]) * (upper[both] - lower[both]) / 2.0
    if np.any(lo_only):
        out[lo_only] = z[lo_only] / np.sqrt(z[lo_only] ** 2 + 1.0)
    if np.any(hi_only):
        out[hi_only] = -z[hi_only] / np.sqrt(z[hi_only] ** 2 + 1.0)
    return out


@dataclass(frozen=True)
class Bound:
    """Limits for a single parameter. Infinite limits mean "no limit"."""

    lower: float = -np.inf
    upper: float = np.inf

    def __post_init__(self) -> None:
        lower = float(self.lower)
        upper = float(self.upper)
        if np.isnan(lower) or np.isnan(upper):
            raise ValueError("Bound limits must not be NaN")
        if lower == np.inf or upper == -np.inf:
            raise ValueError(f"Invalid bound ({lower}, {upper})")
        if np.isfinite(lower) and np.isfinite(upper) and not lower < upper:
            raise ValueError(f"Bound requires lower < upper, got ({lower}, {upper})")
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    @classmethod
    def from_pair(cls, lower: Optional[float], upper: Optional[float]) -> "Bound":
        """Build a bound from ``(lower, upper)`` where ``None`` means unlimited."""
        return cls(
            -np.inf if lower is None else lower,
            np.inf if upper is None else upper,
        )

    @property
    def kind(self) -> BoundKind:
        has_lo = np.isfinite(self.lower)
        has_hi = np.isfinite(self.upper)
        if has_lo and has_hi:
            return BoundKind.BOTH
        if has_lo:
            return BoundKind.LOWER
        if has_hi:
            return BoundKind.UPPER
        return BoundKind.NONE

    def contains(self, x: float) -> bool:
        return bool(self.lower <= x <= self.upper)

    def clip(self, x: float) -> float:
        return float(np.clip(x, self.lower, self.upper))

    def at_bound(self, x: float, tol: Optional[float] = None) -> bool:
        """Return True if ``x`` lies within a relative tolerance of a finite limit."""
        tol = AT_BOUND_TOL if tol is None else tol
        for limit in (self.lower, self.upper):
            if np.isfinite(limit) and abs(x - limit) <= tol * max(1.0, abs(limit)):
                return True
        return False

    def _arrays(self):
        return np.array([self.lower], dtype=FLOAT), np.array([self.upper], dtype=FLOAT)

    def to_internal(self, x: float) -> float:
        lower, upper = self._arrays()
        return float(_to_internal(np.array([x], dtype=FLOAT), lower, upper)[0])

    def to_external(self, z: float) -> float:
        lower, upper = self._arrays()
        return float(_to_external(np.array([z], dtype=FLOAT), lower, upper)[0])

    def __str__(self) -> str:
        return f"({self.lower}, {self.upper})"


BoundLike = Union[Bound, Sequence[Optional[float]], None]


def _coerce_bound(value: BoundLike) -> Bound:
    if value is None:
        return Bound()
    if isinstance(value, Bound):
        return value
    lower, upper = value
    return Bound.from_pair(lower, upper)


class Bounds:
    """Ordered, immutable collection of per-parameter :class:`Bound` values.

    Examples
    --------
    >>> bounds = Bounds([(0.0, 1.0), (None, 5.0), None])
    >>> len(bounds)
    3
    """

    def __init__(self, bounds: Iterable[BoundLike]) -> None:
        self._bounds = tuple(_coerce_bound(b) for b in bounds)
        self._lower = np.array([b.lower for b in self._bounds], dtype=FLOAT)
        self._upper = np.array([b.upper for b in self._bounds], dtype=FLOAT)
        self._lower.setflags(write=False)
        self._upper.setflags(write=False)

    @classmethod
    def unbounded(cls, n: int) -> "Bounds":
        return cls([Bound()] * n)

    @classmethod
    def coerce(cls, value: Union["Bounds", Iterable[BoundLike], None]) -> Optional["Bounds"]:
        if value is None or isinstance(value, Bounds):
            return value
        return cls(value)

    def __len__(self) -> int:
        return len(self._bounds)

    def __iter__(self) -> Iterator[Bound]:
        return iter(self._bounds)

    def __getitem__(self, index: int) -> Bound:
        return self._bounds[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bounds):
            return NotImplemented
        return self._bounds == other._bounds

    def __hash__(self) -> int:
        return hash(self._bounds)

    def __repr__(self) -> str:
        return f"Bounds({[(b.lower, b.upper) for b in self._bounds]})"

    @property
    def lower(self) -> np.ndarray:
        return self._lower

    @property
    def upper(self) -> np.ndarray:
        return self._upper

    def _check(self, x) -> np.ndarray:
        x = as_float_array(x)
        if x.size != len(self):
            raise DimensionMismatch(
                f"Vector of length {x.size} does not match {len(self)} bounds"
            )
        return x

    def to_internal(self, x) -> np.ndarray:
        return _to_internal(self._check(x), self._lower, self._upper)

    def to_external(self, z) -> np.ndarray:
        return _to_external(self._check(z), self._lower, self._upper)

    def external_jacobian(self, z) -> np.ndarray:
        """Diagonal of ``d external / d internal`` at internal point ``z``."""
        return _external_jacobian(self._check(z), self._lower, self._upper)

    def clip(self, x) -> np.ndarray:
        return np.clip(self._check(x), self._lower, self._upper)

    def contains(self, x) -> bool:
        x = self._check(x)
        return bool(np.all((x >= self._lower) & (x <= self._upper)))

    def at_bounds(self, x, tol: Optional[float] = None) -> np.ndarray:
        x = self._check(x)
        return np.array([b.at_bound(float(v), tol) for b, v in zip(self._bounds, x)], dtype=bool)


__all__ = ["AT_BOUND_TOL", "Bound", "BoundKind", "Bounds"]
