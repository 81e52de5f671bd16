"""Cooperative cancellation sources polled by the minimizer.

The minimizer calls :meth:`AbortSignal.is_aborted` once before the first
step and once after every completed step, so an abort takes effect at the
next step boundary, never in the middle of a step.
"""

from __future__ import annotations

import signal
import threading
from abc import ABC, abstractmethod

from ..logging import get_logger

logger = get_logger(__name__)


class AbortSignal(ABC):
    """Polled, non-blocking cancellation flag."""

    @abstractmethod
    def is_aborted(self) -> bool:
        """Return True once an abort has been requested."""

    @abstractmethod
    def abort(self) -> None:
        """Request an abort."""

    @abstractmethod
    def reset(self) -> None:
        """Clear a previous abort request."""


class NopAbortSignal(AbortSignal):
    """A signal that never aborts."""

    def is_aborted(self) -> bool:
        return False

    def abort(self) -> None:
        pass

    def reset(self) -> None:
        pass

    def __repr__(self) -> str:
        return "NopAbortSignal()"


class AtomicAbortSignal(AbortSignal):
    """Flag that can be set from any thread (for example a UI cancel button).

    Example
    -------
    >>> sig = AtomicAbortSignal()
    >>> sig.is_aborted()
    False
    >>> sig.abort()
    >>> sig.is_aborted()
    True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def is_aborted(self) -> bool:
        return self._event.is_set()

    def abort(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    def __repr__(self) -> str:
        return f"AtomicAbortSignal(aborted={self.is_aborted()})"


class CtrlCAbortSignal(AtomicAbortSignal):
    """Abort on the first ``SIGINT`` (Ctrl-C).

    The handler is installed on construction and must therefore be created
    in the main thread. :meth:`restore` puts the previous handler back.
    """

    def __init__(self) -> None:
        super().__init__()
        self._previous = signal.signal(signal.SIGINT, self._handle)

    def _handle(self, signum, frame) -> None:
        logger.warning("Ctrl-C received, aborting after the current step")
        self.abort()

    def restore(self) -> None:
        """Reinstate the ``SIGINT`` handler that was active before this one."""
        if self._previous is not None:
            signal.signal(signal.SIGINT, self._previous)
            self._previous = None

    def __repr__(self) -> str:
        return f"CtrlCAbortSignal(aborted={self.is_aborted()})"


__all__ = ["AbortSignal", "AtomicAbortSignal", "CtrlCAbortSignal", "NopAbortSignal"]
