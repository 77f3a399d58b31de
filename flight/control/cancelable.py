"""Cooperative cancellation for long-running vehicle actions.

Long-running commands (takeoff, land, hover, move helpers) loop at the
controller's command period. At every iteration boundary they poll a
CancelToken and return ActionResult.CANCELED promptly when it is set.
Cancellation is never preemptive.

Waiting goes through a Clock. WallClock sleeps in real time; a single-
threaded simulation passes a SimulationClock whose sleep() advances the
simulation by the requested duration, so the action and the physics share
one loop.

Example:
    >>> from flight.control.cancelable import CancelToken, SimulationClock, Waiter
    >>>
    >>> token = CancelToken()
    >>> clock = SimulationClock(tick=lambda dt: sim.step(dt))
    >>> waiter = Waiter(period=0.02, timeout=5.0, cancel=token, clock=clock)
    >>> while not waiter.is_timeout():
    ...     controller.command_velocity(...)
    ...     if not waiter.sleep():
    ...         break  # canceled
"""

import math
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Protocol, runtime_checkable

from beartype import beartype

from flight.control.errors import VehicleMoveError

# =============================================================================
# Results and Tokens
# =============================================================================


class ActionResult(Enum):
    """Outcome of a long-running action. Truthy only on success."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"

    def __bool__(self) -> bool:
        return self is ActionResult.SUCCEEDED


class CancelToken:
    """Cancellation flag shared between an action and whoever may abort it.

    cancel() may be called from any thread; the action only observes it at
    its next poll.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.is_cancelled})"


# =============================================================================
# Clocks
# =============================================================================


@runtime_checkable
class Clock(Protocol):
    """Time source used by Waiter."""

    def now(self) -> float:
        """Current time [s]."""
        ...

    def sleep(self, seconds: float) -> None:
        """Block (or advance) for the given duration [s]."""
        ...


class WallClock:
    """Real-time clock."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


@beartype
class SimulationClock:
    """Clock whose sleep() advances a single-threaded simulation.

    Attributes:
        time: Simulated time [s]
    """

    def __init__(self, tick: Callable[[float], None] | None = None, start: float = 0.0) -> None:
        """Initialize simulation clock.

        Args:
            tick: Called with the duration to advance on every sleep
            start: Initial simulated time [s]
        """
        self._tick = tick
        self.time = start

    def now(self) -> float:
        return self.time

    def sleep(self, seconds: float) -> None:
        if seconds <= 0:
            return
        if self._tick is not None:
            self._tick(seconds)
        self.time += seconds


# =============================================================================
# Waiter
# =============================================================================


@beartype
class Waiter:
    """Throttles an action loop to a fixed period with timeout and cancellation.

    sleep() waits for whatever remains of the current period since the last
    call, so loop bodies run once per period regardless of their own cost.
    """

    def __init__(
        self,
        period: float,
        timeout: float = math.inf,
        cancel: CancelToken | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize waiter.

        Args:
            period: Loop period [s]
            timeout: Total time budget [s]; infinite by default
            cancel: Cancellation token polled at every sleep
            clock: Time source; defaults to WallClock
        """
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        self.period = period
        self.timeout = timeout
        self.cancel = cancel or CancelToken()
        self.clock = clock or WallClock()

        self._start = self.clock.now()
        self._loop_start = self._start
        self._complete = False

    def sleep(self) -> bool:
        """Wait out the remainder of the current period.

        Returns:
            False if the action was canceled, True otherwise
        """
        if self._complete:
            raise VehicleMoveError("Waiter.sleep() called after the action completed")

        if self.cancel.is_cancelled:
            return False

        remaining = self.period - (self.clock.now() - self._loop_start)
        self.clock.sleep(remaining)
        self._loop_start = self.clock.now()

        return not self.cancel.is_cancelled

    def complete(self) -> None:
        """Mark the action finished; further sleeps are an error."""
        self._complete = True

    @property
    def is_complete(self) -> bool:
        return self._complete

    def elapsed(self) -> float:
        """Time since the waiter was created [s]."""
        return self.clock.now() - self._start

    def is_timeout(self) -> bool:
        """Whether the time budget is exhausted (never once complete)."""
        if self._complete or math.isinf(self.timeout):
            return False
        return self.elapsed() >= self.timeout
