"""
Exception types raised by the dispatcher, the registries and the listener
signature validator.

Every error derives from CourierError and mixes in the closest built-in
exception so callers can catch them either way. Nothing here is recovered
internally, errors propagate to the dispatcher's caller as raised.
"""


class CourierError(Exception):
    """Base class for all courier errors."""


class NoListenersError(CourierError, LookupError):
    """
    Raised when an event type was never registered, when a listener to remove
    cannot be found, or when a listener definition is missing entirely.
    """


class NoDeferredEventsError(CourierError, LookupError):
    """Raised when deferred events are dispatched with nothing queued."""


class SignatureError(CourierError, TypeError):
    """Raised when a listener breaks the one parameter, None return contract."""


class ArityError(SignatureError):
    """Raised when a listener does not accept exactly one positional parameter."""


class TypeContractError(SignatureError):
    """
    Raised for malformed listener shapes, untyped or wrongly typed parameters,
    non None return annotations, non iterable definitions and non callable
    resolved instances.
    """


class ClassNotFoundError(CourierError, LookupError):
    """Raised when a referenced type name does not locate a class."""


class UnsupportedOperationError(CourierError, NotImplementedError):
    """Raised when a registry does not support the requested capability."""


class IntrospectionError(CourierError, TypeError):
    """Raised when a listener or class cannot be reflected into a callable unit."""
