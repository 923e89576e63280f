"""
Name -> instance resolution for the external registry.

The registry only needs has() and get(). Applications normally pass their own
container, SimpleResolver covers small applications and tests.
"""

import logging
from typing import Any
from typing import Optional
from typing import Protocol
from typing import runtime_checkable

from courier import exceptions
from courier import naming


logger = logging.getLogger(__name__)


@runtime_checkable
class Resolver(Protocol):
    """A key -> instance lookup service, typically a DI container."""

    def has(self, name: str) -> bool: ...

    def get(self, name: str) -> Any: ...


class SimpleResolver(object):
    """
    Dictionary backed resolver.

    Args:
        values (Optional[dict[str, Any]]): Initial name -> value entries.
        autowire (bool): If True, names which are not set but locate an
            importable class are instantiated without arguments on first get()
            and cached.
    """

    def __init__(
        self, values: Optional[dict[str, Any]] = None, autowire: bool = True
    ) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self.autowire = autowire

    def set(self, name: naming.KEY, value: Any) -> None:
        """Register a value under a name, or under a class's dotted name."""
        self._values[naming.normalize_key(name)] = value

    def has(self, name: str) -> bool:
        if name in self._values:
            return True

        if not self.autowire:
            return False

        try:
            naming.locate_class(name)
        except exceptions.ClassNotFoundError:
            return False

        return True

    def get(self, name: str) -> Any:
        """
        Returns the value registered under name.

        Raises:
            ClassNotFoundError: If nothing is registered and autowiring is off
                or the name does not locate a class.
        """
        if name in self._values:
            return self._values[name]

        if not self.autowire:
            raise exceptions.ClassNotFoundError(f"No entry was found for {name}")

        instance = naming.locate_class(name)()
        logger.debug(f"Autowired {name}")
        self._values[name] = instance
        return instance
