"""
Listener data structures and type definitions.

Defines the Listener wrapper which tags a callable with its shape once, when
it is registered, so the rest of the system never inspects the raw value
again, and the PriorityEntry record pairing a Listener with its execution
priority. Also normalises the entries accepted in listener definitions.
"""

import functools
import inspect
import types
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Callable
from typing import Union

from courier import exceptions


LISTENER = Callable[[Any], None]
"""
A unit of behavior receiving the event as its only argument.
Listeners cannot send values back to the dispatcher, mutate the event instead.
"""

DEFAULT_PRIORITY = 0
"""Priority assigned to listeners registered without one."""

FUNCTION = "function"
METHOD = "method"
INVOKABLE = "invokable"


def get_callable_name(callable_: Any) -> str:
    """
    Returns the name of the callable, using class name for items with __self__,
    __qualname__ for anything with __qualname__, or the class name of invokable
    instances.
    """
    if isinstance(callable_, Listener):
        callable_ = callable_.callback

    if inspect.ismethod(callable_):
        return f"{callable_.__self__.__class__.__name__}.{callable_.__name__}"
    elif hasattr(callable_, "__qualname__"):
        return callable_.__qualname__
    elif callable(callable_):
        return f"{callable_.__class__.__qualname__}.__call__"
    else:
        return repr(callable_)


def _listener_kind(callback: Any) -> str:
    if inspect.ismethod(callback):
        return METHOD
    if isinstance(
        callback, (types.FunctionType, types.BuiltinFunctionType, staticmethod)
    ):
        return FUNCTION
    return INVOKABLE


def _instance_state(value: Any) -> dict[str, Any]:
    """Attribute values of an instance, read from its __dict__ and __slots__."""
    state = dict(getattr(value, "__dict__", None) or {})

    for klass in type(value).__mro__:
        slots = vars(klass).get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot not in ("__dict__", "__weakref__") and hasattr(value, slot):
                state[slot] = getattr(value, slot)

    return state


def _same_value(first: Any, second: Any) -> bool:
    """
    Instances match by identity, by == or by equal attribute values.

    Attribute values only decide for classes written in Python, the state of
    builtin and extension types is not visible through their attributes.
    """
    if first is second:
        return True

    if type(first) is not type(second):
        return False

    if first == second:
        return True

    cls = type(first)
    has_slots = any("__slots__" in vars(klass) for klass in cls.__mro__)
    if cls.__module__ == "builtins" or not (hasattr(first, "__dict__") or has_slots):
        return False

    return _instance_state(first) == _instance_state(second)


_EMPTY = object()


def _cell_values(function: types.FunctionType) -> tuple[Any, ...]:
    values = []
    for cell in function.__closure__ or ():
        try:
            values.append(cell.cell_contents)
        except ValueError:
            values.append(_EMPTY)
    return tuple(values)


def _same_function(first: types.FunctionType, second: types.FunctionType) -> bool:
    """Functions built from the same code, defaults and closed over values."""
    return (
        first.__code__ is second.__code__
        and first.__globals__ is second.__globals__
        and first.__defaults__ == second.__defaults__
        and first.__kwdefaults__ == second.__kwdefaults__
        and _cell_values(first) == _cell_values(second)
    )


def _same_partial(first: functools.partial, second: functools.partial) -> bool:
    return (
        type(first) is type(second)
        and same_callable(first.func, second.func)
        and first.args == second.args
        and first.keywords == second.keywords
        and vars(first) == vars(second)
    )


def same_callable(first: Any, second: Any) -> bool:
    """
    Check whether two callables denote the same unit of behavior.

    Functions match when they share their code and hold equal defaults and
    closed over values, so a closure re-created with the same values still
    matches. Bound methods match when they wrap the same function and their
    instances are value-equal. Partials match when they wrap the same
    callable with equal arguments. Invokable instances match when they are
    value-equal.
    """
    if isinstance(first, Listener):
        first = first.callback
    if isinstance(second, Listener):
        second = second.callback

    if first is second:
        return True

    if inspect.ismethod(first) or inspect.ismethod(second):
        return (
            inspect.ismethod(first)
            and inspect.ismethod(second)
            and same_callable(first.__func__, second.__func__)
            and _same_value(first.__self__, second.__self__)
        )

    if isinstance(first, types.FunctionType) or isinstance(second, types.FunctionType):
        return (
            isinstance(first, types.FunctionType)
            and isinstance(second, types.FunctionType)
            and _same_function(first, second)
        )

    if isinstance(first, functools.partial) or isinstance(second, functools.partial):
        return (
            isinstance(first, functools.partial)
            and isinstance(second, functools.partial)
            and _same_partial(first, second)
        )

    return _same_value(first, second)


@dataclass(frozen=True, eq=False)
class Listener(object):
    """A registered callable, tagged with its shape."""

    callback: LISTENER
    """The end point the event is forwarded to. i.e. what gets ran."""

    kind: str = field(init=False)
    """One of FUNCTION, METHOD or INVOKABLE."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", _listener_kind(self.callback))

    @property
    def name(self) -> str:
        return get_callable_name(self.callback)

    def invoke(self, event: Any) -> None:
        """Forward the event to the wrapped callable."""
        self.callback(event)

    def __call__(self, event: Any) -> None:
        self.invoke(event)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Listener) and not callable(other):
            return NotImplemented
        return same_callable(self, other)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Listener({self.name}, kind={self.kind})"


@dataclass(frozen=True)
class PriorityEntry(object):
    """A listener with its priority."""

    listener: Listener
    """What gets ran."""

    priority: int = DEFAULT_PRIORITY
    """
    Where in the execution order the listener should take place.
    Higher numbers are executed before lower numbers.
    """


def make_listener(callback: Union[LISTENER, Listener]) -> Listener:
    """Wrap a callable, leaving existing Listener objects untouched."""
    if isinstance(callback, Listener):
        return callback
    return Listener(callback)


def is_listener_value(value: Any) -> bool:
    """Callables qualify, classes do not since calling them constructs instances."""
    return isinstance(value, Listener) or (
        callable(value) and not isinstance(value, type)
    )


def is_priority(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def make_entry(listener: Any, priority: Any = DEFAULT_PRIORITY) -> PriorityEntry:
    """
    Build the entry of a listener registered at runtime.

    Raises:
        TypeContractError: If listener is not a callable instance or function,
            or priority is not an int.
    """
    if not is_listener_value(listener):
        raise exceptions.TypeContractError(f"Wrong type of the listener: {listener!r}")

    if not is_priority(priority):
        raise exceptions.TypeContractError(f"Priority must be an int, got {priority!r}")

    return PriorityEntry(make_listener(listener), priority)


def normalize_entry(entry: Any) -> PriorityEntry:
    """
    Turn a listener definition entry into a PriorityEntry.

    Accepted entries:
        - a PriorityEntry, returned unchanged;
        - a bare callable, given the default priority;
        - a (callable, int) pair, given the int as priority;
        - a (callable, anything else) pair, the callable alone is used with
          the default priority.

    Raises:
        TypeContractError: If the entry has none of the accepted shapes.
    """
    if isinstance(entry, PriorityEntry):
        return entry

    if is_listener_value(entry):
        return PriorityEntry(make_listener(entry), DEFAULT_PRIORITY)

    if (
        isinstance(entry, (tuple, list))
        and 0 < len(entry) <= 2
        and is_listener_value(entry[0])
    ):
        priority = DEFAULT_PRIORITY
        if len(entry) == 2 and is_priority(entry[1]):
            priority = entry[1]
        return PriorityEntry(make_listener(entry[0]), priority)

    raise exceptions.TypeContractError(f"Wrong type of the listener: {entry!r}")
