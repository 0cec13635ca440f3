"""Minimal publish/subscribe event emitter."""

import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]

# Event names emitted by FacePipeline
FACE_DETECTED = "face_detected"
FACE_TRACKED = "face_tracked"
FPS_UPDATE = "fps_update"


class EventEmitter:
    """
    Decouples the pipeline from peripheral consumers (overlays, recorders, UI).

    Listeners receive a single payload argument. A listener that raises is
    logged and skipped; the remaining listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: str, callback: Listener) -> Callable[[], None]:
        """
        Subscribe to an event.

        Returns:
            A callable that removes this subscription
        """
        self._listeners.setdefault(event, []).append(callback)
        return lambda: self.off(event, callback)

    def off(self, event: str, callback: Listener) -> None:
        listeners = self._listeners.get(event)
        if not listeners:
            return
        self._listeners[event] = [cb for cb in listeners if cb is not callback]

    def once(self, event: str, callback: Listener) -> Callable[[], None]:
        """Subscribe for a single delivery."""
        def wrapper(payload: Any) -> None:
            self.off(event, wrapper)
            callback(payload)

        return self.on(event, wrapper)

    def emit(self, event: str, payload: Any = None) -> None:
        # Iterate over a copy so listeners may unsubscribe while being called
        for callback in list(self._listeners.get(event, ())):
            try:
                callback(payload)
            except Exception:
                logger.exception("Error in %s listener %r", event, callback)

    def clear(self, event: Optional[str] = None) -> None:
        """Remove the listeners of one event, or of all events."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))
