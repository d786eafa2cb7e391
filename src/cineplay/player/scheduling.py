"""Cancellable delayed actions.

The controller never sleeps; it asks a ``Scheduler`` to call back later and
keeps the returned handle so the pending call can be cancelled on teardown.
"""
from __future__ import annotations

from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None:
        """Cancel the pending call. Calling it after the call fired is harmless."""
        ...


class Scheduler(Protocol):
    """Protocol for delayed-call schedulers.

    ``QtScheduler`` runs on the Qt event loop; tests inject a manual clock.
    """

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        ...

    def now(self) -> float:
        """Monotonic time in seconds."""
        ...


class DelayedAction:
    """Single pending action, rescheduled on demand, gated at fire time.

    ``armed`` is evaluated when the timer fires, not when it is scheduled, so
    a state change between the two turns the action into a no-op instead of
    acting on stale state.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        delay_ms: int,
        action: Callable[[], None],
        armed: Callable[[], bool],
    ) -> None:
        if delay_ms <= 0:
            raise ValueError("delay_ms must be positive")
        self._scheduler = scheduler
        self._delay_ms = delay_ms
        self._action = action
        self._armed = armed
        self._handle: Optional[TimerHandle] = None
        self._deadline: Optional[float] = None

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    def schedule(self) -> None:
        """(Re)start the countdown, dropping any pending call."""
        self.cancel()
        self._deadline = self._scheduler.now() + self._delay_ms / 1000.0
        self._handle = self._scheduler.call_later(self._delay_ms, self._fire)

    def cancel(self) -> None:
        handle, self._handle = self._handle, None
        self._deadline = None
        if handle is not None:
            handle.cancel()

    def _fire(self) -> None:
        self._handle = None
        self._deadline = None
        if self._armed():
            self._action()
