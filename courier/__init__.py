"""
# courier

In-process event dispatching: listeners are registered for event classes and
run synchronously, highest priority first, whenever an event of that class
is dispatched.

    >>> import courier
    >>> class UserCreated:
    ...     name = "ada"
    >>> def greet(event: UserCreated) -> None:
    ...     print(f"hello {event.name}")
    >>> dispatcher = courier.Dispatcher(courier.InferringRegistry([greet]))
    >>> _ = dispatcher.dispatch(UserCreated())
    hello ada

Listener registries:
    StaticRegistry:    explicit event type -> listeners map, supports on()/off().
    InferringRegistry: event types read from the listener annotations, supports
                       add()/remove().
    ExternalRegistry:  invokable classes resolved by name through a container.
"""

# Keep in sync with pyproject.toml, see release.py.
version_major = 1
version_minor = 0
version_patch = 0
__version__ = f"{version_major}.{version_minor}.{version_patch}"

from courier import handlers
from courier.dispatcher import Dispatcher
from courier.exceptions import ArityError
from courier.exceptions import ClassNotFoundError
from courier.exceptions import CourierError
from courier.exceptions import IntrospectionError
from courier.exceptions import NoDeferredEventsError
from courier.exceptions import NoListenersError
from courier.exceptions import SignatureError
from courier.exceptions import TypeContractError
from courier.exceptions import UnsupportedOperationError
from courier.external_registry import ExternalRegistry
from courier.inferring_registry import InferringRegistry
from courier.listeners import DEFAULT_PRIORITY
from courier.listeners import Listener
from courier.listeners import PriorityEntry
from courier.naming import event_key
from courier.naming import type_key
from courier.provider import InferringProvider
from courier.provider import ListenerProvider
from courier.provider import StoppableEvent
from courier.provider import SubscribingProvider
from courier.resolver import Resolver
from courier.resolver import SimpleResolver
from courier.signature import CallableDescriptor
from courier.signature import SignatureValidator
from courier.static_registry import StaticRegistry


__all__ = [
    "ArityError",
    "CallableDescriptor",
    "ClassNotFoundError",
    "CourierError",
    "DEFAULT_PRIORITY",
    "Dispatcher",
    "ExternalRegistry",
    "InferringProvider",
    "InferringRegistry",
    "IntrospectionError",
    "Listener",
    "ListenerProvider",
    "NoDeferredEventsError",
    "NoListenersError",
    "PriorityEntry",
    "Resolver",
    "SignatureError",
    "SignatureValidator",
    "SimpleResolver",
    "StaticRegistry",
    "StoppableEvent",
    "SubscribingProvider",
    "TypeContractError",
    "UnsupportedOperationError",
    "event_key",
    "handlers",
    "type_key",
]
