"""Debounced refresh scheduling and the per-note re-entrancy guard."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Set

from autonode.notify import Notifier, NullNotifier

LOGGER = logging.getLogger(__name__)

DEFAULT_DELAY = 0.5
FAILURE_MESSAGE = "Auto-node refresh failed. Check the log for details."

TimerFactory = Callable[[float, Callable[[], None]], Any]


class InProgressGuard:
    """Tracks notes whose generated section is currently being rewritten."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._paths: Set[str] = set()

    def is_active(self, path: str) -> bool:
        with self._lock:
            return path in self._paths

    @contextmanager
    def claim(self, path: str) -> Iterator[bool]:
        """Yield True when the caller now owns ``path``, False if it was busy."""
        with self._lock:
            if path in self._paths:
                acquired = False
            else:
                self._paths.add(path)
                acquired = True
        try:
            yield acquired
        finally:
            if acquired:
                with self._lock:
                    self._paths.discard(path)

    def clear(self) -> None:
        with self._lock:
            self._paths.clear()


class RefreshScheduler:
    """Collapses bursts of change signals into one trailing refresh pass.

    Idle until :meth:`schedule` arms a single-shot timer; every further signal
    re-arms it with the full delay. When the timer fires the scheduler is idle
    again and runs ``run_pass`` once. Failures are logged and reported through
    the notifier, never raised into the timer thread.
    """

    def __init__(
        self,
        run_pass: Callable[[], object],
        *,
        delay: float = DEFAULT_DELAY,
        notifier: Optional[Notifier] = None,
        guard: Optional[InProgressGuard] = None,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self.run_pass = run_pass
        self.delay = delay
        self.notifier = notifier or NullNotifier()
        self.guard = guard or InProgressGuard()
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._run_lock = threading.Lock()
        self._timer: Any = None
        self._generation = 0
        self._closed = False

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self, delay: Optional[float] = None) -> None:
        """Arm (or re-arm) the refresh timer."""
        with self._lock:
            if self._closed:
                LOGGER.debug("Ignoring refresh request after teardown")
                return
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(
                self.delay if delay is None else delay,
                lambda: self._fire(generation),
            )
            timer.daemon = True
            self._timer = timer
        timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._closed or generation != self._generation:
                return
            self._timer = None

        with self._run_lock:
            if self._closed:
                return
            try:
                self.run_pass()
            except Exception:
                LOGGER.exception("Auto-node refresh failed")
                self.notifier.notify(FAILURE_MESSAGE)

    def teardown(self) -> None:
        """Cancel the armed timer and forbid further passes."""
        with self._lock:
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self.guard.clear()
