"""
Capabilities shared by the dispatcher and the registries.

Registries are duck typed: the dispatcher only relies on the methods below
and checks the optional capabilities at runtime before forwarding calls.
"""

from typing import Any
from typing import Protocol
from typing import runtime_checkable

from courier import listeners
from courier import naming


@runtime_checkable
class StoppableEvent(Protocol):
    """An event able to halt the remaining listeners of a dispatch."""

    def is_propagation_stopped(self) -> bool: ...


@runtime_checkable
class ListenerProvider(Protocol):
    """Maps an event to the listeners to run for it, in execution order."""

    def get_listeners_for_event(self, event: Any) -> list[listeners.Listener]: ...


@runtime_checkable
class SubscribingProvider(ListenerProvider, Protocol):
    """A provider whose listeners are bound to explicitly named event types."""

    def on(
        self,
        event_type: naming.KEY,
        listener: listeners.LISTENER,
        priority: int = listeners.DEFAULT_PRIORITY,
    ) -> None: ...

    def off(self, event_type: naming.KEY, listener: listeners.LISTENER) -> None: ...


@runtime_checkable
class InferringProvider(ListenerProvider, Protocol):
    """A provider reading the event types from the listeners themselves."""

    def add(
        self, listener: listeners.LISTENER, priority: int = listeners.DEFAULT_PRIORITY
    ) -> None: ...

    def remove(self, listener: listeners.LISTENER) -> None: ...
