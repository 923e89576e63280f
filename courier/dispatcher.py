"""
# Event Dispatcher

Herein is the dispatcher itself. It asks a listener registry for the
listeners of an event, runs them in the order returned, and stops early when
a stoppable event reports its propagation stopped.

Registries are interchangeable: StaticRegistry (explicit event -> listeners
map), InferringRegistry (event types read from listener annotations) and
ExternalRegistry (invokable classes resolved through a DI container). The
registration passthroughs on()/off() and add()/remove() are only available
when the registry supports them.
"""

import copy
import json
import logging
import os
from typing import Any
from typing import Optional
from typing import Union

from courier import exceptions
from courier import handlers
from courier import listeners
from courier import naming
from courier import provider as provider_


logger = logging.getLogger(__name__)


class Dispatcher(object):
    """
    Synchronous event dispatcher.

    Use dispatch() to run listeners immediately.
    Use defer() and dispatch_deferred_events() to batch events for later.

    Args:
        provider (provider_.ListenerProvider): The listener registry.
        strict_deferred (bool): If True, dispatching deferred events with an
            empty queue raises NoDeferredEventsError, otherwise it does nothing.
    """

    def __init__(
        self, provider: provider_.ListenerProvider, strict_deferred: bool = True
    ) -> None:
        self._provider = provider
        self._deferred_events: list[Any] = []
        self.strict_deferred = strict_deferred

        self._exception_handler: Optional[handlers.EXCEPTION_HANDLER] = None

    @property
    def provider(self) -> provider_.ListenerProvider:
        return self._provider

    def set_exception_handler(
        self, handler: Optional[handlers.EXCEPTION_HANDLER]
    ) -> None:
        """
        Set the exception handler for listener errors.
        The handler is called when a listener raises an exception during
        dispatch.

        Args:
            handler (Optional[handlers.EXCEPTION_HANDLER]):
                Callable with signature (Listener, event, Exception) -> bool.
                Returns True to stop the dispatch, False to continue.
                Pass None to restore default behavior (re-raise exceptions).
        """
        self._exception_handler = handler

    # -----Dispatching---------------------------------------------------------

    def dispatch(self, event: Any) -> Any:
        """
        Run every listener of the event's class, highest priority first.

        A copy of the event is taken before any listener runs and returned, so
        the caller keeps what was dispatched regardless of what the listeners
        changed on the event itself.

        Args:
            event (Any): The event. Listeners receive this object.
        Returns:
            Any: The copy of the event taken before dispatching.
        Raises:
            NoListenersError: If there are no listeners for the event.
        Notes:
            If the event implements is_propagation_stopped(), it is checked
            before each listener and the remaining listeners are skipped once
            it returns True.
        """
        snapshot = copy.copy(event)

        registered = self._provider.get_listeners_for_event(event)
        if not registered:
            raise exceptions.NoListenersError("No listeners are defined for this event")

        stoppable = isinstance(event, provider_.StoppableEvent)

        for listener in registered:
            if stoppable and event.is_propagation_stopped():
                logger.debug(
                    f"Propagation of {type(event).__qualname__} stopped before "
                    f"{listeners.get_callable_name(listener)}"
                )
                return snapshot

            try:
                listener(event)
            except Exception as e:
                if self._exception_handler is None:
                    raise

                stop = self._exception_handler(listener, event, e)
                if stop:
                    break

        return snapshot

    def defer(self, event: Any) -> None:
        """Queue an event for dispatch_deferred_events()."""
        self._deferred_events.append(event)

    def dispatch_deferred_events(self) -> None:
        """
        Dispatch the events deferred so far, in the order they were deferred,
        then remove them from the queue.

        Raises:
            NoDeferredEventsError: If the queue is empty and strict_deferred is
                set.
        Notes:
            Events deferred by listeners while the queue is being dispatched
            stay queued for the next call.
            An error raised while dispatching one of the events propagates
            immediately. The remaining events are not dispatched and the queue
            is left as it was.
        """
        if not self._deferred_events:
            if self.strict_deferred:
                raise exceptions.NoDeferredEventsError("There are no deferred events")
            logger.debug("No deferred events to dispatch")
            return

        pending = list(self._deferred_events)
        for event in pending:
            self.dispatch(event)

        for event in pending:
            if self._deferred_events and self._deferred_events[0] is event:
                del self._deferred_events[0]

    def clear_deferred_events(self) -> None:
        """Drop every deferred event without dispatching it."""
        self._deferred_events = []

    @property
    def deferred_events(self) -> tuple[Any, ...]:
        """The events waiting for dispatch_deferred_events()."""
        return tuple(self._deferred_events)

    # -----Listener Management-------------------------------------------------

    def _require(self, capability: type, method_name: str) -> None:
        if not isinstance(self._provider, capability):
            raise exceptions.UnsupportedOperationError(
                f"Provider ({type(self._provider).__name__}) does not support "
                f"'{method_name}' method"
            )

    def _require_event_class(self, event_type: naming.KEY) -> str:
        try:
            naming.locate_class(event_type)
        except exceptions.ClassNotFoundError:
            raise exceptions.ClassNotFoundError(
                f"Event ({event_type}) does not exist"
            ) from None

        return naming.normalize_key(event_type)

    def on(
        self,
        event_type: naming.KEY,
        listener: listeners.LISTENER,
        priority: int = listeners.DEFAULT_PRIORITY,
    ) -> None:
        """
        Bind a listener to an event type.

        Args:
            event_type (naming.KEY): Event class or its dotted name.
            listener (LISTENER): The callable to run.
            priority (int): Higher priorities are ran before lower priorities.
        Raises:
            UnsupportedOperationError: If the provider has no on() method.
            ClassNotFoundError: If event_type does not name a class.
        """
        self._require(provider_.SubscribingProvider, "on")
        key = self._require_event_class(event_type)
        self._provider.on(key, listener, priority)

    def off(self, event_type: naming.KEY, listener: listeners.LISTENER) -> None:
        """
        Unbind a listener from an event type.

        Raises:
            UnsupportedOperationError: If the provider has no off() method.
            ClassNotFoundError: If event_type does not name a class.
        """
        self._require(provider_.SubscribingProvider, "off")
        key = self._require_event_class(event_type)
        self._provider.off(key, listener)

    def add(
        self, listener: listeners.LISTENER, priority: int = listeners.DEFAULT_PRIORITY
    ) -> None:
        """
        Add a listener under the event classes it is annotated with.

        Raises:
            UnsupportedOperationError: If the provider cannot infer event types.
        """
        self._require(provider_.InferringProvider, "add")
        self._provider.add(listener, priority)

    def remove(self, listener: listeners.LISTENER) -> None:
        """
        Remove a listener from every event class it was added under.

        Raises:
            UnsupportedOperationError: If the provider cannot infer event types.
        """
        self._require(provider_.InferringProvider, "remove")
        self._provider.remove(listener)

    # -----Introspection-------------------------------------------------------

    def to_dict(self) -> dict:
        """Convert the registry structure to a dictionary."""
        to_dict = getattr(self._provider, "to_dict", None)
        if to_dict is None:
            raise exceptions.UnsupportedOperationError(
                f"Provider ({type(self._provider).__name__}) does not support "
                f"'to_dict' method"
            )
        return to_dict()

    def to_string(self) -> str:
        """Returns a string representation of the registry."""
        return json.dumps(self.to_dict(), indent=4)

    def export(self, filepath: Union[str, os.PathLike]) -> None:
        """Export the registry structure to filepath."""
        with open(filepath, "w") as outfile:
            json.dump(self.to_dict(), outfile, indent=4)
