"""
Minimal observer registry used for queue lifecycle notifications.

Listeners are plain callables invoked synchronously, in registration order,
on the thread (and event loop) that emits.
"""

import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List, Union

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class QueueEvent(str, Enum):
    """Lifecycle events, in the order one job emits them."""
    ENQUEUE = "enqueue"
    DEQUEUE = "dequeue"
    EXECUTE = "execute"
    DONE = "done"
    FAILED = "failed"


EventName = Union[QueueEvent, str]


def _key(event: EventName) -> str:
    return event.value if isinstance(event, QueueEvent) else str(event)


class EventEmitter:
    """
    Publish/subscribe helper.

    A listener that raises is logged and skipped; the remaining listeners
    still run and the emitter's own state is never affected.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def on(self, event: EventName, listener: Listener) -> Listener:
        """Register ``listener`` for ``event``. Returns the listener."""
        self._listeners[_key(event)].append(listener)
        return listener

    def once(self, event: EventName, listener: Listener) -> Listener:
        """Register ``listener`` to run on the next ``event`` only."""
        def _wrapper(*args):
            self.off(event, _wrapper)
            return listener(*args)

        return self.on(event, _wrapper)

    def off(self, event: EventName, listener: Listener) -> bool:
        """Remove ``listener``. Returns False if it was not registered."""
        listeners = self._listeners.get(_key(event), [])
        try:
            listeners.remove(listener)
        except ValueError:
            return False
        return True

    def listener_count(self, event: EventName) -> int:
        return len(self._listeners.get(_key(event), []))

    def emit(self, event: EventName, *args) -> bool:
        """
        Call every listener of ``event`` with ``args``.

        Returns:
            True if at least one listener was registered
        """
        listeners = list(self._listeners.get(_key(event), []))
        for listener in listeners:
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener %r for event '%s' raised", listener, _key(event))
        return bool(listeners)
