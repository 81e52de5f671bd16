"""Integrated autocorrelation time of ensemble chains.

References:
    - Sokal, A. (1997). Monte Carlo Methods in Statistical Mechanics:
      Foundations and New Algorithms.
    - Goodman, J. & Weare, J. (2010). Ensemble samplers with affine
      invariance. Comm. App. Math. Comp. Sci. 5(1), 65-80.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ...config import FLOAT


def _next_pow_two(n: int) -> int:
    i = 1
    while i < n:
        i <<= 1
    return i


def autocorrelation_function(x: np.ndarray) -> np.ndarray:
    """Normalized autocorrelation of a 1D series via FFT.

    Args:
        x: 1D series, shape (n,).

    Returns:
        Array of autocorrelations for lags 0..n-1 with ``acf[0] == 1``. The
        autocorrelation of a constant series is undefined (all NaN).

    Raises:
        ValueError: If x is not 1D.
    """
    x = np.asarray(x, dtype=FLOAT)
    if x.ndim != 1:
        raise ValueError(f"x must be 1D array, got shape {x.shape}")
    n = x.size
    size = 2 * _next_pow_two(n)
    centered = x - np.mean(x)
    f = np.fft.fft(centered, n=size)
    acf = np.fft.ifft(f * np.conjugate(f))[:n].real
    if acf[0] <= 0:
        return np.full(n, np.nan, dtype=FLOAT)
    return acf / acf[0]


def auto_window(taus: np.ndarray, c: float) -> int:
    """Smallest window ``M`` with ``M >= c * tau(M)`` (Sokal)."""
    m = np.arange(len(taus)) < c * taus
    if np.any(~m):
        return int(np.argmin(m))
    return len(taus) - 1


def integrated_time(chain: np.ndarray, c: float = 5.0) -> np.ndarray:
    """Estimate the integrated autocorrelation time per parameter.

    The walker autocorrelation functions are averaged before summing, as
    recommended for ensemble samplers.

    Args:
        chain: Samples with shape (n_walkers, n_steps, n_params).
        c: Window constant of the automatic windowing procedure.

    Returns:
        Array of shape (n_params,) with the estimated tau for each parameter.

    Raises:
        ValueError: If chain is not 3D or c is not positive.
    """
    chain = np.asarray(chain, dtype=FLOAT)
    if chain.ndim != 3:
        raise ValueError(f"chain must have shape (n_walkers, n_steps, n_params), got {chain.shape}")
    if c <= 0:
        raise ValueError(f"c must be positive, got {c}")
    n_walkers, n_steps, n_params = chain.shape
    taus = np.empty(n_params, dtype=FLOAT)
    for k in range(n_params):
        acf = np.zeros(n_steps, dtype=FLOAT)
        for w in range(n_walkers):
            acf += autocorrelation_function(chain[w, :, k])
        acf /= n_walkers
        cumulative = 2.0 * np.cumsum(acf) - 1.0
        window = auto_window(cumulative, c)
        taus[k] = cumulative[window]
    return taus


class AutocorrelationTerminator:
    """Stop sampling once the chain is long compared to its autocorrelation time.

    Every ``n_check`` steps tau is re-estimated after discarding the first
    ``discard`` fraction of the chain. The run is converged when the chain
    is longer than ``n_taus * max(tau)`` and the relative change of every
    tau since the previous check is below ``dtau``.

    Attributes:
        taus: History of the mean tau at each check.
    """

    def __init__(
        self,
        n_check: int = 50,
        n_taus: float = 50.0,
        dtau: float = 0.01,
        c: float = 5.0,
        discard: float = 0.5,
    ) -> None:
        if n_check < 1:
            raise ValueError("n_check must be >= 1")
        if n_taus <= 0 or dtau <= 0 or c <= 0:
            raise ValueError("n_taus, dtau and c must be positive")
        if not 0 <= discard < 1:
            raise ValueError("discard must lie in [0, 1)")
        self.n_check = int(n_check)
        self.n_taus = float(n_taus)
        self.dtau = float(dtau)
        self.c = float(c)
        self.discard = float(discard)
        self.taus: list[float] = []
        self._last_tau: Optional[np.ndarray] = None

    def reset(self) -> None:
        self.taus = []
        self._last_tau = None

    def check(self, chain: np.ndarray) -> tuple[bool, str]:
        """Return ``(converged, message)`` for a chain of shape (walkers, steps, params)."""
        n_steps = chain.shape[1]
        if n_steps == 0 or n_steps % self.n_check != 0:
            return False, ""
        burn = int(self.discard * n_steps)
        tau = integrated_time(chain[:, burn:, :], self.c)
        self.taus.append(float(np.mean(tau)))
        last, self._last_tau = self._last_tau, tau
        if last is None or not np.all(np.isfinite(tau)) or np.any(tau <= 0):
            return False, ""
        long_enough = n_steps > self.n_taus * float(np.max(tau))
        stable = bool(np.all(np.abs(last - tau) / tau < self.dtau))
        if long_enough and stable:
            return True, f"chain length {n_steps} > {self.n_taus:g} tau (tau = {np.max(tau):.3g})"
        return False, ""


__all__ = [
    "AutocorrelationTerminator",
    "auto_window",
    "autocorrelation_function",
    "integrated_time",
]
