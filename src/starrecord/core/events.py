"""
Model Lifecycle Events

🎯 Guarded Lifecycle Transitions:
Every persistence transition (creating → created, updating → updated,
deleting → deleted) is gated by an ordered list of listeners. A listener
can abort the transition by stopping propagation on the event (or by
returning ``False``), which halts the remaining listeners and tells the
model to abort the operation.

Dispatchers are kept per concrete model type in the model registry.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple
from enum import Enum
import itertools
import logging

logger = logging.getLogger(__name__)


class LifecycleEvent(str, Enum):
    """Lifecycle events dispatched by models"""
    CREATING = "model.creating"
    CREATED = "model.created"
    UPDATING = "model.updating"
    UPDATED = "model.updated"
    DELETING = "model.deleting"
    DELETED = "model.deleted"


class ModelEvent:
    """Event object handed to every listener of a lifecycle event"""

    def __init__(self, model: Any, name: LifecycleEvent):
        self.model = model
        self.name = name
        self._propagation_stopped = False

    def stop_propagation(self) -> None:
        """Halt remaining listeners and abort the operation"""
        self._propagation_stopped = True

    def is_propagation_stopped(self) -> bool:
        return self._propagation_stopped

    def __repr__(self):
        return f"ModelEvent({self.name.value}, {self.model!r})"


Listener = Callable[[ModelEvent], Optional[bool]]


class EventDispatcher:
    """
    Prioritized listener registry for one model type.

    Higher priorities run first; listeners with equal priority run in
    registration order.
    """

    def __init__(self):
        self._listeners: Dict[LifecycleEvent, List[Tuple[int, int, Listener]]] = {}
        self._sequence = itertools.count()

    def add_listener(self, event: LifecycleEvent, listener: Listener, priority: int = 0) -> None:
        """
        Subscribe a listener to an event.

        Args:
            event: Lifecycle event to listen to
            listener: Callable receiving the ``ModelEvent``
            priority: Higher numbers get called first
        """
        event = LifecycleEvent(event)
        entries = self._listeners.setdefault(event, [])
        # negative priority + sequence gives "highest first, then FIFO"
        entries.append((-priority, next(self._sequence), listener))
        entries.sort(key=lambda entry: (entry[0], entry[1]))

    def remove_listener(self, event: LifecycleEvent, listener: Listener) -> None:
        event = LifecycleEvent(event)
        self._listeners[event] = [
            entry for entry in self._listeners.get(event, []) if entry[2] is not listener
        ]

    def get_listeners(self, event: LifecycleEvent) -> List[Listener]:
        """Get the listeners for an event in call order"""
        return [entry[2] for entry in self._listeners.get(LifecycleEvent(event), [])]

    def has_listeners(self, event: Optional[LifecycleEvent] = None) -> bool:
        if event is None:
            return any(self._listeners.values())
        return bool(self._listeners.get(LifecycleEvent(event)))

    def dispatch(self, event: ModelEvent) -> ModelEvent:
        """
        Run the listeners for an event until one stops propagation.

        Args:
            event: The event to dispatch

        Returns:
            The same event, inspect ``is_propagation_stopped()``
        """
        for listener in self.get_listeners(event.name):
            if listener(event) is False:
                event.stop_propagation()

            if event.is_propagation_stopped():
                logger.debug(f"{event.name.value} stopped by {getattr(listener, '__name__', listener)}")
                break

        return event


__all__ = ["LifecycleEvent", "ModelEvent", "EventDispatcher", "Listener"]
