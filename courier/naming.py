"""
Event type keys.

Registries store listeners under a string key derived from the event's
concrete class: the module path joined to the qualified class name, e.g.
'myapp.events.UserCreated'. Anywhere a key is accepted the class itself may
be passed instead.
"""

import importlib
import logging
from typing import Any
from typing import Union

from courier import exceptions


logger = logging.getLogger(__name__)


KEY = Union[str, type]
"""An event type given either as its key string or as the class."""


def type_key(cls: type) -> str:
    """Returns the registry key of a class."""
    return f"{cls.__module__}.{cls.__qualname__}"


def event_key(event: Any) -> str:
    """Returns the registry key of an event's concrete class."""
    return type_key(type(event))


def normalize_key(key: KEY) -> str:
    """
    Turn a class or key string into a key string.

    Raises:
        TypeContractError: If the key is neither a class nor a string.
    """
    if isinstance(key, type):
        return type_key(key)

    if isinstance(key, str):
        return key

    raise exceptions.TypeContractError(
        f"Event type must be a class or its dotted name, got {key!r}"
    )


def locate(name: str) -> Any:
    """
    Import and return the object a dotted name refers to.

    The longest importable module prefix is imported, then the remaining
    parts are resolved as attributes, so nested classes are found too.
    Names without a module part are looked up in builtins.

    Raises:
        ClassNotFoundError: If nothing can be found under the name.
    """
    parts = name.split(".")
    if not all(parts) or "<locals>" in parts:
        raise exceptions.ClassNotFoundError(f"Class ({name}) does not exist")

    if len(parts) == 1:
        parts = ["builtins", *parts]

    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            obj = importlib.import_module(module_name)
        except ImportError:
            continue

        try:
            for attr in parts[split:]:
                obj = getattr(obj, attr)
        except AttributeError:
            break

        return obj

    logger.debug(f"Unable to locate '{name}'")
    raise exceptions.ClassNotFoundError(f"Class ({name}) does not exist")


def locate_class(name: KEY) -> type:
    """
    Return the class a key refers to.

    Raises:
        ClassNotFoundError: If the key does not name an existing class.
    """
    if isinstance(name, type):
        return name

    obj = locate(normalize_key(name))
    if not isinstance(obj, type):
        raise exceptions.ClassNotFoundError(f"Class ({name}) does not exist")

    return obj
