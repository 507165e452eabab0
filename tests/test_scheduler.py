"""Tests for RefreshScheduler and InProgressGuard."""

from __future__ import annotations

import threading
import time
from typing import Callable, List
from unittest.mock import MagicMock

import pytest

from autonode.sync.scheduler import FAILURE_MESSAGE, InProgressGuard, RefreshScheduler


class FakeTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    def __init__(self, interval: float, function: Callable[[], None]) -> None:
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function()


@pytest.fixture
def timers() -> List[FakeTimer]:
    return []


@pytest.fixture
def run_pass() -> MagicMock:
    return MagicMock()


@pytest.fixture
def scheduler(timers: List[FakeTimer], run_pass: MagicMock) -> RefreshScheduler:
    def factory(interval: float, function: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, function)
        timers.append(timer)
        return timer

    return RefreshScheduler(run_pass, delay=0.5, notifier=MagicMock(), timer_factory=factory)


class TestInProgressGuard:
    """Test the per-note re-entrancy guard."""

    def test_claim_and_release(self) -> None:
        guard = InProgressGuard()

        with guard.claim("a.md") as acquired:
            assert acquired
            assert guard.is_active("a.md")
        assert not guard.is_active("a.md")

    def test_nested_claim_refused(self) -> None:
        guard = InProgressGuard()

        with guard.claim("a.md"):
            with guard.claim("a.md") as nested:
                assert not nested
            assert guard.is_active("a.md")

    def test_released_on_error(self) -> None:
        guard = InProgressGuard()

        with pytest.raises(RuntimeError):
            with guard.claim("a.md"):
                raise RuntimeError("boom")
        assert not guard.is_active("a.md")

    def test_clear(self) -> None:
        guard = InProgressGuard()
        with guard.claim("a.md"):
            guard.clear()
            assert not guard.is_active("a.md")


class TestRefreshScheduler:
    """Test the Idle/Pending state machine."""

    def test_starts_idle(self, scheduler: RefreshScheduler) -> None:
        assert not scheduler.pending

    def test_schedule_arms_timer(self, scheduler: RefreshScheduler, timers: List[FakeTimer]) -> None:
        scheduler.schedule()

        assert scheduler.pending
        assert len(timers) == 1
        assert timers[0].interval == 0.5
        assert timers[0].started
        assert timers[0].daemon

    def test_custom_delay(self, scheduler: RefreshScheduler, timers: List[FakeTimer]) -> None:
        scheduler.schedule(0.1)
        assert timers[0].interval == 0.1

    def test_burst_collapses_to_one_pass(
        self, scheduler: RefreshScheduler, timers: List[FakeTimer], run_pass: MagicMock
    ) -> None:
        """Every new signal cancels the previous timer; only the last one runs."""
        for _ in range(5):
            scheduler.schedule()

        assert [timer.cancelled for timer in timers] == [True, True, True, True, False]

        for timer in timers:
            timer.fire()

        run_pass.assert_called_once()
        assert not scheduler.pending

    def test_fires_again_after_idle(
        self, scheduler: RefreshScheduler, timers: List[FakeTimer], run_pass: MagicMock
    ) -> None:
        scheduler.schedule()
        timers[-1].fire()
        scheduler.schedule()
        timers[-1].fire()

        assert run_pass.call_count == 2

    def test_failure_is_reported_and_swallowed(
        self, scheduler: RefreshScheduler, timers: List[FakeTimer], run_pass: MagicMock
    ) -> None:
        run_pass.side_effect = RuntimeError("boom")

        scheduler.schedule()
        timers[-1].fire()

        scheduler.notifier.notify.assert_called_once_with(FAILURE_MESSAGE)  # type: ignore[attr-defined]
        assert not scheduler.pending

        run_pass.side_effect = None
        scheduler.schedule()
        timers[-1].fire()
        assert run_pass.call_count == 2

    def test_teardown(
        self, scheduler: RefreshScheduler, timers: List[FakeTimer], run_pass: MagicMock
    ) -> None:
        """Teardown cancels the timer and blocks any later pass."""
        scheduler.schedule()
        with scheduler.guard.claim("a.md"):
            scheduler.teardown()
            assert not scheduler.guard.is_active("a.md")

        assert timers[0].cancelled
        assert scheduler.closed
        timers[0].fire()
        scheduler.schedule()

        assert len(timers) == 1
        run_pass.assert_not_called()


def test_real_timer_debounce() -> None:
    """Signals arriving faster than the delay produce exactly one pass."""
    calls: List[float] = []
    done = threading.Event()

    def run() -> None:
        calls.append(time.monotonic())
        done.set()

    scheduler = RefreshScheduler(run, delay=0.1)
    try:
        for _ in range(5):
            scheduler.schedule()
            time.sleep(0.01)
        assert done.wait(2.0)
        time.sleep(0.3)
    finally:
        scheduler.teardown()

    assert len(calls) == 1
