"""
Registry reading each listener's event types from its parameter annotation.

Definition format:
    [listener_a, (listener_b, 5), bound.method]

No event types are named, a listener annotated with a union of event classes
is filed under each of them.
"""

import logging
from collections.abc import Iterable
from typing import Any
from typing import Optional

from courier import exceptions
from courier import listeners
from courier import signature
from courier import static_registry


logger = logging.getLogger(__name__)


class InferringRegistry(object):
    """
    Listener registry binding listeners to the event classes they declare.

    Listeners are fully checked when they are added, so lookups skip
    validation.

    Args:
        definition (Optional[Iterable]): Listener entries, bare callables or
            (callable, priority) pairs.
    Raises:
        TypeContractError: If an entry is malformed or a listener's annotation
            does not name event classes.
        ArityError: If a listener does not take exactly one parameter.
    """

    def __init__(self, definition: Optional[Iterable[Any]] = None) -> None:
        self._listeners: dict[str, list[listeners.PriorityEntry]] = {}
        self._validator = signature.SignatureValidator()

        if definition is None:
            return

        if isinstance(definition, (str, bytes)) or not isinstance(definition, Iterable):
            raise exceptions.TypeContractError(
                "Wrong listeners definition format. Iterable is needed"
            )

        for item in definition:
            entry = listeners.normalize_entry(item)
            self._file(entry)

    def _file(self, entry: listeners.PriorityEntry) -> None:
        for key in self._validator.extract_event_types(entry.listener):
            self._listeners.setdefault(key, []).append(entry)
            logger.debug(
                f"Bound {entry.listener.name} to {key} [priority={entry.priority}]"
            )

    def get_listeners_for_event(self, event: Any) -> list[listeners.Listener]:
        """
        Get the listeners declaring the event's class, highest priority first.

        Raises:
            NoListenersError: If no listener ever declared the event's class.
        """
        provider = static_registry.StaticRegistry(self._listeners, skip_validation=True)
        return provider.get_listeners_for_event(event)

    def add(
        self, listener: listeners.LISTENER, priority: int = listeners.DEFAULT_PRIORITY
    ) -> None:
        """
        Add a listener under every event class its parameter is annotated with.

        Args:
            listener (LISTENER): The callable to run.
            priority (int): Higher priorities are ran before lower ones.
        Raises:
            TypeContractError: If listener is not callable, priority is not
                an int or the annotation does not name event classes.
        """
        self._file(listeners.make_entry(listener, priority))

    def remove(self, listener: listeners.LISTENER) -> None:
        """
        Remove every entry equal to the listener, under all event classes.

        Raises:
            NoListenersError: If the listener is not registered anywhere.
        """
        found = False

        for key, entries in self._listeners.items():
            kept = [entry for entry in entries if entry.listener != listener]
            if len(kept) != len(entries):
                found = True
                self._listeners[key] = kept
                logger.debug(
                    f"Removed {listeners.get_callable_name(listener)} from {key}"
                )

        if not found:
            raise exceptions.NoListenersError("The listener is not found")

    # -----Introspection-------------------------------------------------------

    def event_keys(self) -> list[str]:
        """Get all event type keys listeners were filed under."""
        return sorted(self._listeners.keys())

    def to_dict(self) -> dict[str, list[str]]:
        """Convert the registry to a dictionary of key -> listener names."""
        return static_registry.StaticRegistry(
            self._listeners, skip_validation=True
        ).to_dict()
