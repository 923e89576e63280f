"""
Registry holding an explicit map of event types to listeners.

Definition format:
    {
        FirstEvent: [listenera, (listenerb, 5)],
        "myapp.events.SecondEvent": [listenerc],
    }

Keys may be given as classes or as their dotted names. Each listener is
either a bare callable (default priority) or a (callable, priority) pair.
"""

import logging
from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any
from typing import Optional

from courier import exceptions
from courier import listeners
from courier import naming
from courier import ordering
from courier import signature


logger = logging.getLogger(__name__)


class StaticRegistry(object):
    """
    Listener registry keyed by explicitly named event types.

    Args:
        definition (Optional[Mapping]): Event type -> iterable of listener
            entries.
        skip_validation (bool): If True, listener signatures are not checked
            when they are fetched.
    Raises:
        TypeContractError: If the definition or one of its entries is malformed.
    """

    def __init__(
        self,
        definition: Optional[Mapping[naming.KEY, Iterable[Any]]] = None,
        skip_validation: bool = False,
    ) -> None:
        self._listeners: dict[str, list[listeners.PriorityEntry]] = {}
        self._validator = signature.SignatureValidator(skip_validation)

        if definition is None:
            return

        if not isinstance(definition, Mapping):
            raise exceptions.TypeContractError(
                "Wrong listeners definition format. A mapping of event types is needed"
            )

        for event_type, entries in definition.items():
            if isinstance(entries, (str, bytes)) or not isinstance(entries, Iterable):
                raise exceptions.TypeContractError(
                    "Wrong listeners definition format. Iterable is needed"
                )

            key = naming.normalize_key(event_type)
            bucket = self._listeners.setdefault(key, [])
            bucket.extend(listeners.normalize_entry(entry) for entry in entries)

    @property
    def skip_validation(self) -> bool:
        return self._validator.skip_validation

    def get_listeners_for_event(self, event: Any) -> list[listeners.Listener]:
        """
        Get the listeners registered for an event's class, highest priority first.

        Args:
            event (Any): The event being dispatched.
        Returns:
            list[listeners.Listener]: The listeners, possibly empty if all were
                removed.
        Raises:
            NoListenersError: If the event's class was never registered.
            SignatureError: If a listener breaks the signature contract.
        """
        key = naming.event_key(event)
        if key not in self._listeners:
            raise exceptions.NoListenersError(f"There are no listeners for {key}")

        result = []
        for entry in ordering.sort_by_priority(self._listeners[key]):
            self._validator.validate(entry.listener)
            result.append(entry.listener)

        return result

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
            priority (int): Higher priorities are ran before lower ones.
        Raises:
            TypeContractError: If listener is not callable or priority is
                not an int.
        """
        key = naming.normalize_key(event_type)
        entry = listeners.make_entry(listener, priority)
        self._listeners.setdefault(key, []).append(entry)
        logger.debug(f"Bound {entry.listener.name} to {key} [priority={priority}]")

    def off(self, event_type: naming.KEY, listener: listeners.LISTENER) -> None:
        """
        Unbind every entry equal to the listener from an event type.

        Raises:
            NoListenersError: If the event type was never registered.
        """
        key = naming.normalize_key(event_type)
        if key not in self._listeners:
            raise exceptions.NoListenersError(f"There are no listeners for {key}")

        self._listeners[key] = [
            entry for entry in self._listeners[key] if entry.listener != listener
        ]
        logger.debug(f"Unbound {listeners.get_callable_name(listener)} from {key}")

    # -----Introspection-------------------------------------------------------

    def event_keys(self) -> list[str]:
        """Get all registered event type keys."""
        return sorted(self._listeners.keys())

    def to_dict(self) -> dict[str, list[str]]:
        """Convert the registry to a dictionary of key -> listener names."""
        data = {}
        for key in self.event_keys():
            data[key] = [
                _describe_entry(entry)
                for entry in ordering.sort_by_priority(self._listeners[key])
            ]
        return data


def _describe_entry(entry: listeners.PriorityEntry) -> str:
    prioritystr = f" [priority={entry.priority}]" if entry.priority != 0 else ""
    return f"{entry.listener.name}{prioritystr}"
