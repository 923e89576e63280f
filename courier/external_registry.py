"""
Registry whose listeners are invokable classes resolved by name.

The definition is fetched from a resolver (usually the application's DI
container) and may take three shapes:

    {FirstEvent: ["myapp.listeners.OnFirst"], SecondEvent: [OnSecond]}

    ["myapp.listeners.OnFirst", OnSecond]

    [{FirstEvent: ["myapp.listeners.OnFirst"]}, OnSecond]

Classes listed without an event type have their event types read eagerly from
their __call__ annotation. Every listener instance is requested from the
resolver when an event is dispatched.
"""

import logging
from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from courier import exceptions
from courier import listeners
from courier import naming
from courier import resolver as resolver_
from courier import signature


logger = logging.getLogger(__name__)


DEFAULT_DEFINITION_NAME = "events_to_listeners"


@dataclass(frozen=True)
class InferredName(object):
    """A class name whose event types were read and checked at construction."""

    name: str


class ExternalRegistry(object):
    """
    Listener registry resolving invokable classes through a resolver.

    Args:
        resolver (resolver_.Resolver): Provides the definition and the listener
            instances.
        definition_name (str): Name the definition is stored under.
        skip_validation (bool): If True, resolved listeners are not checked.
            Classes listed without an event type are always checked, their
            event types cannot be read otherwise.
    Raises:
        NoListenersError: If the resolver has no definition.
        TypeContractError: If the definition is malformed.
        ClassNotFoundError: If a class listed without an event type does not
            exist.
        IntrospectionError: If such a class does not define __call__.
    """

    def __init__(
        self,
        resolver: resolver_.Resolver,
        definition_name: str = DEFAULT_DEFINITION_NAME,
        skip_validation: bool = False,
    ) -> None:
        self._resolver = resolver
        self._validator = signature.SignatureValidator(skip_validation)
        self._inference = signature.SignatureValidator()
        self._listeners: dict[str, list[Any]] = {}

        if not resolver.has(definition_name):
            raise exceptions.NoListenersError("There are no listeners definition")

        definition = resolver.get(definition_name)
        if isinstance(definition, (str, bytes)) or not isinstance(definition, Iterable):
            raise exceptions.TypeContractError(
                "Wrong listeners definition format. Iterable is needed"
            )

        if isinstance(definition, Mapping):
            self._merge(definition)
            return

        for item in definition:
            if isinstance(item, Mapping):
                self._merge(item)
            elif isinstance(item, (str, type)):
                self._infer(item)
            else:
                raise exceptions.TypeContractError(
                    "The listeners definition must contain class names or mappings"
                )

    @property
    def skip_validation(self) -> bool:
        return self._validator.skip_validation

    def _merge(self, mapping: Mapping[naming.KEY, Iterable[Any]]) -> None:
        for event_type, names in mapping.items():
            if isinstance(names, (str, bytes)) or not isinstance(names, Iterable):
                raise exceptions.TypeContractError(
                    "Wrong listeners definition format. Iterable is needed"
                )

            key = naming.normalize_key(event_type)
            bucket = self._listeners.setdefault(key, [])
            for name in names:
                # Checked lazily, when the event is dispatched.
                bucket.append(naming.type_key(name) if isinstance(name, type) else name)

    def _infer(self, item: naming.KEY) -> None:
        cls = naming.locate_class(item)
        name = naming.type_key(cls) if isinstance(item, type) else item

        for key in self._inference.extract_event_types(cls):
            self._listeners.setdefault(key, []).append(InferredName(name))
            logger.debug(f"Bound {name} to {key}")

    def _instantiate(self, name: str) -> Any:
        if not self._resolver.has(name):
            raise exceptions.ClassNotFoundError(f"Class ({name}) does not exist")
        return self._resolver.get(name)

    def _resolve(self, item: Any) -> listeners.Listener:
        if isinstance(item, InferredName):
            return listeners.Listener(self._instantiate(item.name))

        if not isinstance(item, str):
            raise exceptions.TypeContractError(
                f"The listener {listeners.get_callable_name(item)} must be given "
                f"as an invokable class name"
            )

        located = naming.locate(item)
        if not isinstance(located, type):
            if callable(located):
                raise exceptions.TypeContractError(
                    f"The listener {item} must be an invokable class, not a plain function"
                )
            raise exceptions.ClassNotFoundError(f"Class ({item}) does not exist")

        instance = self._instantiate(item)
        if not callable(instance):
            raise exceptions.TypeContractError(
                f"The listener must be callable. For this, the class {item} "
                f"must implement the __call__ method"
            )

        self._validator.validate(instance)
        return listeners.Listener(instance)

    def get_listeners_for_event(self, event: Any) -> list[listeners.Listener]:
        """
        Resolve the listeners of an event's class, in definition order.

        Raises:
            NoListenersError: If the event's class is not in the definition.
            ClassNotFoundError: If a listed class does not exist or the resolver
                cannot provide it.
            TypeContractError: If a listed entry is not an invokable class.
            SignatureError: If a resolved listener breaks the signature contract.
        """
        key = naming.event_key(event)
        if key not in self._listeners:
            raise exceptions.NoListenersError(f"There are no listeners for {key}")

        return [self._resolve(item) for item in self._listeners[key]]

    # -----Introspection-------------------------------------------------------

    def event_keys(self) -> list[str]:
        """Get all event type keys of the definition."""
        return sorted(self._listeners.keys())

    def to_dict(self) -> dict[str, list[str]]:
        """Convert the registry to a dictionary of key -> listener names."""
        data = {}
        for key in self.event_keys():
            data[key] = [
                item.name if isinstance(item, InferredName) else str(item)
                for item in self._listeners[key]
            ]
        return data
