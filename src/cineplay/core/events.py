"""Event bus between the playback controller and host UI code.

The controller publishes every observable change under one of the event names
below; views subscribe and re-render from the controller's read-only state.

Example usage:
    bus.subscribe(PLAYBACK_STATE, lambda name, data: overlay.refresh())
    bus.emit(PLAYBACK_ERROR, {'uri': uri, 'message': 'stream unavailable'})
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional


EventCallback = Callable[[str, Dict[str, Any]], None]

PLAYBACK_STATE = "playback.state"
PLAYBACK_ERROR = "playback.error"
SESSION_STARTED = "session.started"
SESSION_CLOSED = "session.closed"
CONTROLS_CHANGED = "controls.changed"
EPISODE_CHANGED = "episode.changed"
ORIENTATION_CHANGED = "orientation.changed"
ORIENTATION_REJECTED = "orientation.rejected"

_log = logging.getLogger("CinePlay.EventBus")


class EventBus:
    """Central pub/sub hub."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventCallback]] = {}
        self._lock = threading.RLock()

    def subscribe(self, event_name: str, callback: EventCallback) -> None:
        """Subscribe to an event.

        Args:
            event_name: Name of the event to listen for (e.g., 'playback.state')
            callback: Called with (event_name, data) on every emit.
        """
        with self._lock:
            subscribers = self._subscribers.setdefault(event_name, [])
            if callback not in subscribers:
                subscribers.append(callback)

    def unsubscribe(self, event_name: str, callback: EventCallback) -> None:
        with self._lock:
            if event_name in self._subscribers:
                try:
                    self._subscribers[event_name].remove(callback)
                except ValueError:
                    pass

    def unsubscribe_all(self, callback: EventCallback) -> None:
        with self._lock:
            for subscribers in self._subscribers.values():
                try:
                    subscribers.remove(callback)
                except ValueError:
                    pass

    def emit(self, event_name: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Emit an event to all subscribers.

        A failing subscriber is logged and does not stop delivery to the others.
        """
        if data is None:
            data = {}

        with self._lock:
            callbacks = self._subscribers.get(event_name, []).copy()

        # Callbacks run outside the lock so they may (un)subscribe.
        for callback in callbacks:
            try:
                callback(event_name, data)
            except Exception:
                _log.exception("Subscriber for %s failed", event_name)

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()

    def subscriber_count(self, event_name: str) -> int:
        with self._lock:
            return len(self._subscribers.get(event_name, []))
