"""
Listener signature validation.

A listener must accept exactly one positional parameter annotated with an
event class (or the object wildcard) and must be annotated to return None.
The validator reflects any supported callable shape into a CallableDescriptor
and runs the checks against it. It is also what the inferring registries use
to read which event classes a listener accepts.
"""

import inspect
import logging
import types
import typing
from dataclasses import dataclass
from typing import Any
from typing import Optional
from typing import Union

from courier import exceptions
from courier import listeners
from courier import naming


logger = logging.getLogger(__name__)


_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)

_WILDCARDS = (object, Any)
"""Annotations accepting any event."""


@dataclass(frozen=True)
class CallableDescriptor(object):
    """An introspected listener, independent of the shape it was given in."""

    name: str
    """Display name used in error messages."""

    parameters: tuple[inspect.Parameter, ...]
    """Parameters as seen by the dispatcher, i.e. without self or cls."""

    hints: dict[str, Any]
    """Resolved annotations keyed by parameter name, plus 'return'."""


def _find_call(cls: type) -> Optional[Any]:
    """Returns the raw __call__ attribute defined below object, if any."""
    for klass in cls.__mro__:
        if klass is object:
            break
        if "__call__" in vars(klass):
            return vars(klass)["__call__"]
    return None


def _resolve_hints(source: Any, signature: inspect.Signature, name: str) -> dict:
    try:
        hints = dict(typing.get_type_hints(source))
    except NameError as e:
        raise exceptions.TypeContractError(
            f"The listener {name} is annotated with a class that does not exist: {e}"
        ) from e
    except TypeError:
        # Objects get_type_hints cannot read, e.g. functools.partial.
        hints = {}

    for param_name, param in signature.parameters.items():
        if param.annotation is not inspect.Parameter.empty:
            hints.setdefault(param_name, param.annotation)
    if signature.return_annotation is not inspect.Signature.empty:
        hints.setdefault("return", signature.return_annotation)

    return hints


def _union_members(hint: Any) -> tuple[Any, ...]:
    if typing.get_origin(hint) in (Union, types.UnionType):
        return typing.get_args(hint)
    return (hint,)


def _is_event_class(hint: Any) -> bool:
    return (
        isinstance(hint, type)
        and typing.get_origin(hint) is None
        and hint is not type(None)
    )


class SignatureValidator(object):
    """
    Checks listeners against the one parameter, None return contract.

    Args:
        skip_validation (bool): If True, validate() does nothing. Used by
            registries which already checked their listeners or which trust
            the caller.
    """

    def __init__(self, skip_validation: bool = False) -> None:
        self.skip_validation = skip_validation

    # -----Reflection----------------------------------------------------------

    @staticmethod
    def build_reflection(listener: Any) -> CallableDescriptor:
        """
        Reflect a function, bound method, invokable instance or class.

        Classes are reflected through their unbound __call__ so the event type
        of a class can be read before it is instantiated.

        Raises:
            IntrospectionError: If no callable unit can be found.
            TypeContractError: If an annotation names a missing class.
        """
        if isinstance(listener, listeners.Listener):
            listener = listener.callback

        drop_first = False

        if isinstance(listener, type):
            raw = _find_call(listener)
            if raw is None:
                raise exceptions.IntrospectionError(
                    f"Method {listener.__qualname__}.__call__() does not exist"
                )

            name = f"{listener.__qualname__}.__call__"
            if isinstance(raw, staticmethod):
                target = raw.__func__
            elif isinstance(raw, classmethod):
                target = raw.__func__
                drop_first = True
            else:
                target = raw
                drop_first = inspect.isfunction(raw)
            source = inspect.unwrap(target)

        elif inspect.isfunction(listener) or inspect.ismethod(listener):
            name = listeners.get_callable_name(listener)
            target = listener
            source = inspect.unwrap(getattr(listener, "__func__", listener))

        elif inspect.isbuiltin(listener):
            name = listeners.get_callable_name(listener)
            target = source = listener

        elif callable(listener):
            raw = _find_call(type(listener))
            if raw is None:
                raise exceptions.IntrospectionError(
                    f"Method {type(listener).__qualname__}.__call__() does not exist"
                )

            name = listeners.get_callable_name(listener)
            target = listener
            source = inspect.unwrap(raw) if inspect.isfunction(raw) else listener

        else:
            raise exceptions.IntrospectionError(
                f"{listener!r} cannot be resolved to a callable"
            )

        try:
            signature = inspect.signature(target)
        except (TypeError, ValueError) as e:
            raise exceptions.IntrospectionError(
                f"Unable to read the signature of {name}: {e}"
            ) from e

        parameters = tuple(signature.parameters.values())
        if drop_first:
            parameters = parameters[1:]

        hints = _resolve_hints(source, signature, name)

        return CallableDescriptor(name=name, parameters=parameters, hints=hints)

    # -----Checks--------------------------------------------------------------

    @staticmethod
    def _check_arity(descriptor: CallableDescriptor) -> None:
        if len(descriptor.parameters) != 1:
            raise exceptions.ArityError(
                f"The listener {descriptor.name} must have only one parameter, "
                f"got {len(descriptor.parameters)}"
            )

        if descriptor.parameters[0].kind not in _POSITIONAL:
            raise exceptions.ArityError(
                f"The parameter of listener {descriptor.name} must be positional"
            )

    @staticmethod
    def _check_parameter_type(
        descriptor: CallableDescriptor, allow_wildcard: bool
    ) -> tuple[Any, ...]:
        param_name = descriptor.parameters[0].name
        if param_name not in descriptor.hints:
            raise exceptions.TypeContractError(
                f"The type of the listener {descriptor.name} parameter is undefined"
            )

        members = _union_members(descriptor.hints[param_name])
        for member in members:
            if any(member is wildcard for wildcard in _WILDCARDS):
                if allow_wildcard:
                    continue
                raise exceptions.TypeContractError(
                    f"The listener {descriptor.name} parameter must have only "
                    f"existent event class types, got {member!r}"
                )

            if not _is_event_class(member):
                raise exceptions.TypeContractError(
                    f"The listener {descriptor.name} parameter must have object "
                    f"or existent event class type, got {member!r}"
                )

        return members

    @staticmethod
    def _check_return_type(descriptor: CallableDescriptor) -> None:
        if "return" not in descriptor.hints:
            raise exceptions.TypeContractError(
                f"The listener {descriptor.name} must have only 'None' return "
                f"type, the return type is undefined"
            )

        returns = descriptor.hints["return"]
        if returns is not None and returns is not type(None):
            raise exceptions.TypeContractError(
                f"The listener {descriptor.name} must have only 'None' return "
                f"type, got {returns!r}"
            )

    # -----Public API----------------------------------------------------------

    def validate(self, listener: Any) -> None:
        """
        Check a listener signature.

        Checks in order, stopping at the first failure: exactly one positional
        parameter, a parameter annotated with event classes or object, and a
        None return annotation.

        Args:
            listener (Any): Function, bound method or invokable instance.
        Raises:
            ArityError: If the parameter count is not one.
            TypeContractError: If the parameter or return annotation is wrong.
            IntrospectionError: If the listener cannot be reflected.
        """
        if self.skip_validation:
            return

        descriptor = self.build_reflection(listener)
        self._check_arity(descriptor)
        self._check_parameter_type(descriptor, allow_wildcard=True)
        self._check_return_type(descriptor)

    check = validate

    def extract_event_types(self, listener_or_class: Any) -> list[str]:
        """
        Gives the event type keys a listener accepts.

        The same checks as validate() run, always, except that the object
        wildcard is refused since a concrete key is needed.

        Args:
            listener_or_class (Any): A listener, a class defining __call__, or
                the dotted name of such a class.
        Returns:
            list[str]: One key per member of the parameter annotation, in
                declaration order.
        """
        if isinstance(listener_or_class, str):
            listener_or_class = naming.locate_class(listener_or_class)

        descriptor = self.build_reflection(listener_or_class)
        self._check_arity(descriptor)
        members = self._check_parameter_type(descriptor, allow_wildcard=False)
        self._check_return_type(descriptor)

        keys = []
        for member in members:
            key = naming.type_key(member)
            if key not in keys:
                keys.append(key)

        logger.debug(f"Inferred event types {keys} for {descriptor.name}")
        return keys
